#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Unit tests for configuration loading.
"""

import json
import pytest
from pathlib import Path
import sys

# Add the project root to Python path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from media_offload.config import TransferConfig, DEFAULT_OPERATION_TIMEOUT
from media_offload.errors import ConfigError


class TestTransferConfig:
    """Test defaults, JSON loading and override precedence."""

    def test_defaults(self):
        config = TransferConfig()
        assert config.operation_timeout == DEFAULT_OPERATION_TIMEOUT
        assert config.checkpoint_enabled is True
        assert config.dest_root == Path("Media")

    def test_paths_are_coerced(self):
        config = TransferConfig(dest_root="out", mount_root="/mnt/phone")
        assert isinstance(config.dest_root, Path)
        assert config.mount_root == Path("/mnt/phone")

    def test_file_then_overrides(self, tmp_path):
        path = tmp_path / "offload.json"
        path.write_text(json.dumps({"dest_root": "from_file", "by_name_only": True, "max_folders": 4}))

        config = TransferConfig.from_file(path, dest_root="from_cli", by_name_only=None)

        assert config.dest_root == Path("from_cli")
        assert config.by_name_only is True  # None override keeps the file value
        assert config.max_folders == 4

    def test_utf8_bom_is_accepted(self, tmp_path):
        path = tmp_path / "offload.json"
        path.write_bytes(b"\xef\xbb\xbf" + json.dumps({"storage_name": "Interner Speicher"}).encode("utf-8"))
        assert TransferConfig.from_file(path).storage_name == "Interner Speicher"

    def test_unknown_key_rejected(self, tmp_path):
        path = tmp_path / "offload.json"
        path.write_text(json.dumps({"dest_rot": "typo"}))
        with pytest.raises(ConfigError, match="dest_rot"):
            TransferConfig.from_file(path)

    def test_invalid_json_reports_position(self, tmp_path):
        path = tmp_path / "offload.json"
        path.write_text('{"dest_root": }')
        with pytest.raises(ConfigError, match="line 1"):
            TransferConfig.from_file(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError):
            TransferConfig.from_file(tmp_path / "absent.json")

    def test_to_dict_is_json_safe(self):
        data = TransferConfig(mount_root="/mnt/phone").to_dict()
        json.dumps(data)
        assert data["mount_root"] == str(Path("/mnt/phone"))
