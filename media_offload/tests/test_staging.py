#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Unit tests for the staging area: copy confirmation, verification and purging.
"""

import os
import time
import pytest
from pathlib import Path
from unittest.mock import patch
import sys

from PIL import Image

# Add the project root to Python path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from media_offload.config import COPY_FLAGS_FALLBACK, COPY_FLAGS_PRIMARY
from media_offload.errors import StagingConfirmationTimeout, StagingVerificationError
from media_offload.models import FileTransfer, MediaKind
from media_offload.namespace.provider import MountedNamespaceProvider
from media_offload.transfer.staging import StagingArea
from media_offload.tests.fixtures.fake_device import FakeDevice


class TestStagingArea:
    """Test the two-phase copy into staging."""

    @pytest.fixture
    def device(self):
        return FakeDevice()

    def _staging(self, tmp_path, device, **kwargs):
        values = dict(poll_interval=0, timeout=0.3, variant_grace=0.05, sleep=device.tick)
        values.update(kwargs)
        return StagingArea(tmp_path / ".staging", device, **values)

    def _item(self, device, name="IMG_0001.JPG", data=b"0123456789"):
        folder = device.add_device()
        item = device.add_file(folder, name, data=data)
        transfer = FileTransfer("DCIM", name, name, source_size=len(data))
        return item, transfer

    def test_dir_for_kind(self, tmp_path, device):
        staging = self._staging(tmp_path, device)
        assert staging.dir_for(MediaKind.IMAGE) == tmp_path / ".staging" / "Images"
        assert staging.dir_for(MediaKind.VIDEO).is_dir()

    def test_expected_name_confirmed(self, tmp_path, device):
        item, transfer = self._item(device)
        staged = self._staging(tmp_path, device).copy_and_confirm(transfer, item)
        assert staged == tmp_path / ".staging" / "Images" / "IMG_0001.JPG"
        assert staged.read_bytes() == b"0123456789"
        assert device.copy_calls == [("IMG_0001.JPG", COPY_FLAGS_PRIMARY)]

    def test_late_arrival_is_awaited(self, tmp_path, device):
        device.copy_delay_ticks = 3
        item, transfer = self._item(device)
        staged = self._staging(tmp_path, device, variant_grace=5).copy_and_confirm(transfer, item)
        assert staged.exists()
        assert len(device.copy_calls) == 1

    def test_renamed_arrival_taken_as_newest(self, tmp_path, device):
        device.rename_on_copy["IMG_0001.JPG"] = "IMG_0001(1).JPG"
        item, transfer = self._item(device)
        staged = self._staging(tmp_path, device).copy_and_confirm(transfer, item)
        assert staged.name == "IMG_0001(1).JPG"

    def test_arrival_of_another_size_is_not_taken(self, tmp_path, device):
        # A late copy of some other file lands while this one never arrives
        device.rename_on_copy["IMG_0001.JPG"] = "IMG_0001 (2).JPG"
        item, transfer = self._item(device, data=b"x" * 27)
        transfer.source_size = 10
        staging = self._staging(tmp_path, device, timeout=0.1, variant_grace=0.02)

        with pytest.raises(StagingConfirmationTimeout):
            staging.copy_and_confirm(transfer, item)
        assert (staging.dir_for(MediaKind.IMAGE) / "IMG_0001 (2).JPG").stat().st_size == 27

    def test_arrival_of_source_size_is_taken(self, tmp_path, device):
        staging = self._staging(tmp_path, device)
        stray = staging.dir_for(MediaKind.IMAGE) / "IMG_0000.JPG"
        device.rename_on_copy["IMG_0001.JPG"] = "IMG_0001 (1).JPG"
        device.after_copy = lambda item: stray.write_bytes(b"y" * 27)
        item, transfer = self._item(device)

        staged = staging.copy_and_confirm(transfer, item)

        assert staged.name == "IMG_0001 (1).JPG"
        assert staged.read_bytes() == b"0123456789"

    def test_ignored_primary_flags_fall_back(self, tmp_path, device):
        device.ignored_flags.add(COPY_FLAGS_PRIMARY)
        item, transfer = self._item(device)
        staged = self._staging(tmp_path, device).copy_and_confirm(transfer, item)
        assert staged.exists()
        assert [flags for _, flags in device.copy_calls] == [COPY_FLAGS_PRIMARY, COPY_FLAGS_FALLBACK]

    def test_silent_failure_times_out(self, tmp_path, device):
        device.silent_fail.add("IMG_0001.JPG")
        item, transfer = self._item(device)
        with pytest.raises(StagingConfirmationTimeout):
            self._staging(tmp_path, device, timeout=0.1, variant_grace=0.02).copy_and_confirm(transfer, item)
        assert len(device.copy_calls) == 2

    def test_copy_call_errors_fall_back(self, tmp_path, device):
        item, transfer = self._item(device)
        real = device.copy_into

        def refuse_primary(dest_dir, it, flags):
            if flags == COPY_FLAGS_PRIMARY:
                raise OSError("The parameter is incorrect")
            real(dest_dir, it, flags)

        device.copy_into = refuse_primary
        staged = self._staging(tmp_path, device).copy_and_confirm(transfer, item)
        assert staged.exists()

    def test_incomplete_copy_fails_verification(self, tmp_path, device):
        item, transfer = self._item(device)
        transfer.source_size = 1000
        with pytest.raises(StagingVerificationError):
            self._staging(tmp_path, device, timeout=0.1).copy_and_confirm(transfer, item)

    def test_verify_rejects_empty(self, tmp_path, device):
        staging = self._staging(tmp_path, device)
        path = staging.dir_for(MediaKind.IMAGE) / "empty.jpg"
        path.write_bytes(b"")
        with pytest.raises(StagingVerificationError, match="empty"):
            staging.verify(FileTransfer("DCIM", "empty.jpg", "empty.jpg"), path)


class TestImageVerification:
    """Test the optional Pillow decode check."""

    def _staging(self, tmp_path):
        return StagingArea(tmp_path / ".staging", FakeDevice(), verify_images=True)

    def _jpeg(self, path):
        Image.effect_noise((64, 64), 64).convert("RGB").save(path, "JPEG")
        return path

    def test_valid_image_passes(self, tmp_path):
        path = self._jpeg(tmp_path / "ok.jpg")
        self._staging(tmp_path).verify(FileTransfer("DCIM", "ok.jpg", "ok.jpg"), path)

    def test_truncated_image_fails(self, tmp_path):
        path = self._jpeg(tmp_path / "cut.jpg")
        data = path.read_bytes()
        path.write_bytes(data[:len(data) // 2])
        with pytest.raises(StagingVerificationError, match="decode"):
            self._staging(tmp_path).verify(FileTransfer("DCIM", "cut.jpg", "cut.jpg"), path)

    def test_unidentified_format_passes(self, tmp_path):
        path = tmp_path / "IMG_0001.HEIC"
        path.write_bytes(b"ftypheic not decodable here")
        self._staging(tmp_path).verify(FileTransfer("DCIM", path.name, path.name), path)

    def test_videos_are_not_decoded(self, tmp_path):
        path = tmp_path / "clip.mov"
        path.write_bytes(b"\xff\xd8\xff broken")
        transfer = FileTransfer("DCIM", path.name, path.name, kind=MediaKind.VIDEO)
        self._staging(tmp_path).verify(transfer, path)


class TestPurge:
    """Test removal of stale staging leftovers."""

    def test_purges_old_files_and_empty_dirs(self, tmp_path):
        staging = StagingArea(tmp_path / ".staging", FakeDevice())
        images = staging.dir_for(MediaKind.IMAGE)
        old = images / "old.jpg"
        new = images / "new.jpg"
        old.write_bytes(b"old")
        new.write_bytes(b"new")
        (images / "leftover").mkdir()
        stale = time.time() - 48 * 3600
        arrivals = {"old.jpg": stale}

        landed = lambda p: arrivals.get(p.name, time.time())
        with patch.object(StagingArea, "landed_at", side_effect=landed):
            assert staging.purge(12 * 3600) == 1
        assert not old.exists()
        assert new.exists()
        assert not (images / "leftover").exists()
        assert images.is_dir()

    def test_missing_root(self, tmp_path):
        assert StagingArea(tmp_path / "nowhere", FakeDevice()).purge(0) == 0

    def test_copy_keeping_old_mtime_counts_as_new(self, tmp_path):
        card = tmp_path / "card" / "Camera" / "DCIM"
        card.mkdir(parents=True)
        source = card / "IMG_0001.JPG"
        source.write_bytes(b"taken years ago")
        taken = time.time() - 3 * 365 * 24 * 3600
        os.utime(source, (taken, taken))

        staging = StagingArea(tmp_path / ".staging", MountedNamespaceProvider(tmp_path / "card"))
        images = staging.dir_for(MediaKind.IMAGE)
        staging.provider.copy_into(images, source, 0)
        staged = images / "IMG_0001.JPG"

        assert staged.stat().st_mtime < time.time() - 24 * 3600
        assert staging.landed_at(staged) > time.time() - 3600
        assert staging.purge(12 * 3600) == 0
        assert staged.exists()

    def test_files_landed_long_ago_are_purged(self, tmp_path):
        staging = StagingArea(tmp_path / ".staging", FakeDevice())
        old = staging.dir_for(MediaKind.VIDEO) / "orphan.mov"
        old.write_bytes(b"left behind")

        with patch("media_offload.transfer.staging.time") as fake_time:
            fake_time.time.return_value = time.time() + 48 * 3600
            assert staging.purge(12 * 3600) == 1
        assert not old.exists()
