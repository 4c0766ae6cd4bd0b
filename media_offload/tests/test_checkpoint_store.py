#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Unit tests for the durable checkpoint store.
"""

import json
from pathlib import Path
import sys

# Add the project root to Python path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from media_offload.checkpoint.manager import CheckpointStore


class TestCheckpointStore:
    """Test loading, flushing and forgetting checkpoint entries."""

    def test_missing_file_is_empty(self, tmp_path):
        store = CheckpointStore(tmp_path / "cp.json")
        doc = store.load()
        assert doc.total_files == 0
        assert not store.contains("100APPLE", "IMG_0001.JPG")

    def test_malformed_file_is_ignored(self, tmp_path):
        path = tmp_path / "cp.json"
        path.write_text("{not json")
        store = CheckpointStore(path)
        assert store.load().total_files == 0

    def test_wrong_shape_is_ignored(self, tmp_path):
        path = tmp_path / "cp.json"
        path.write_text(json.dumps({"Folders": [1, 2, 3]}))
        assert CheckpointStore(path).load().total_files == 0

    def test_record_flushes_immediately(self, tmp_path):
        path = tmp_path / "nested" / "cp.json"
        store = CheckpointStore(path)
        store.load()
        store.record_and_flush("100APPLE", "IMG_0001.JPG")

        data = json.loads(path.read_text(encoding="utf-8"))
        assert data == {"Folders": {"100APPLE": ["IMG_0001.JPG"]}}
        # No temp files left behind
        assert [p.name for p in path.parent.iterdir()] == ["cp.json"]

    def test_reload_sees_previous_records(self, tmp_path):
        path = tmp_path / "cp.json"
        first = CheckpointStore(path)
        first.load()
        first.record_and_flush("100APPLE", "IMG_0001.JPG")
        first.record_and_flush("100APPLE", "IMG_0002.MOV")

        second = CheckpointStore(path)
        second.load()
        assert second.contains("100APPLE", "IMG_0002.MOV")
        assert second.document.total_files == 2

    def test_bom_prefixed_file_loads(self, tmp_path):
        path = tmp_path / "cp.json"
        path.write_bytes(b"\xef\xbb\xbf" + json.dumps({"Folders": {"A": ["x.jpg"]}}).encode("utf-8"))
        store = CheckpointStore(path)
        store.load()
        assert store.contains("A", "x.jpg")

    def test_disabled_store_never_writes(self, tmp_path):
        path = tmp_path / "cp.json"
        path.write_text(json.dumps({"Folders": {"A": ["x.jpg"]}}))
        store = CheckpointStore(path, enabled=False)
        store.load()
        assert not store.contains("A", "x.jpg")
        store.record_and_flush("A", "y.jpg")
        assert json.loads(path.read_text()) == {"Folders": {"A": ["x.jpg"]}}

    def test_forget(self, tmp_path):
        path = tmp_path / "cp.json"
        path.write_text(json.dumps({"Folders": {"A": ["x.jpg", "y.jpg"]}}))
        store = CheckpointStore(path)
        store.load()

        assert store.forget("A", "x.jpg") == 1
        assert json.loads(path.read_text()) == {"Folders": {"A": ["y.jpg"]}}
        assert store.forget("missing") == 0
