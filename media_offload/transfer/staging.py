#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Local staging area: issue device copies, confirm arrival, purge leftovers.
"""

import logging
import os
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Optional, Sequence, Set

from PIL import Image, UnidentifiedImageError

from ..config import (
    COPY_FLAG_VARIANTS, DEFAULT_OPERATION_TIMEOUT, DEFAULT_POLL_INTERVAL,
    DEFAULT_VARIANT_GRACE, IMAGES_DIRNAME, VIDEOS_DIRNAME,
)
from ..errors import StagingConfirmationTimeout, StagingVerificationError
from ..models.transfer import FileTransfer, MediaKind
from ..namespace.provider import NamespaceProvider
from ..utils.path import ensure_dir

logger = logging.getLogger(__name__)


@dataclass
class DirSnapshot:
    count: int = 0
    total_bytes: int = 0
    names: Set[str] = field(default_factory=set)


class StagingArea:
    """Two-phase copy target partitioned by media kind.

    The provider's copy call can return before the file is visible, so
    arrival is confirmed by polling: either the expected name appears, or
    the directory's file count / byte total grows and the newest file of
    the source's size is taken as the result.
    """

    def __init__(self, root: Path, provider: NamespaceProvider,
                 poll_interval: float = DEFAULT_POLL_INTERVAL,
                 timeout: float = DEFAULT_OPERATION_TIMEOUT,
                 variant_grace: float = DEFAULT_VARIANT_GRACE,
                 flag_variants: Sequence[int] = COPY_FLAG_VARIANTS,
                 verify_images: bool = False,
                 sleep: Callable[[float], None] = time.sleep,
                 clock: Callable[[], float] = time.monotonic):
        self.root = Path(root)
        self.provider = provider
        self.poll_interval = poll_interval
        self.timeout = timeout
        self.variant_grace = variant_grace
        self.flag_variants = tuple(flag_variants)
        self.verify_images = verify_images
        self._sleep = sleep
        self._clock = clock

    def dir_for(self, kind: MediaKind) -> Path:
        path = self.root / (VIDEOS_DIRNAME if kind == MediaKind.VIDEO else IMAGES_DIRNAME)
        ensure_dir(path)
        return path

    @staticmethod
    def snapshot(directory: Path) -> DirSnapshot:
        snap = DirSnapshot()
        try:
            with os.scandir(directory) as entries:
                for entry in entries:
                    if not entry.is_file():
                        continue
                    try:
                        snap.total_bytes += entry.stat().st_size
                    except FileNotFoundError:
                        continue
                    snap.count += 1
                    snap.names.add(entry.name)
        except FileNotFoundError:
            pass
        return snap

    @staticmethod
    def landed_at(path: Path) -> float:
        """When the file appeared locally; copies keep the source mtime, so ctime counts too."""
        st = path.stat()
        return max(st.st_mtime, st.st_ctime)

    def copy_and_confirm(self, transfer: FileTransfer, item: Any) -> Path:
        """Issue the copy (trying each flag variant) and return the staged file.

        Raises StagingConfirmationTimeout when nothing arrives before the
        deadline and StagingVerificationError when the arrival never completes.
        """
        directory = self.dir_for(transfer.kind)
        before = self.snapshot(directory)
        deadline = self._clock() + self.timeout

        arrived = None
        for index, flags in enumerate(self.flag_variants):
            last = index == len(self.flag_variants) - 1
            try:
                self.provider.copy_into(directory, item, flags)
            except Exception as e:
                logger.warning("Copy call for %s with flags 0x%x failed: %s", transfer.filename, flags, e)
                if last:
                    break
                continue
            window_end = deadline if last else min(deadline, self._clock() + self.variant_grace)
            arrived = self._wait_visible(transfer, directory, before, window_end)
            if arrived is not None:
                break
            logger.debug("Nothing visible for %s with flags 0x%x", transfer.filename, flags)

        if arrived is None:
            remaining = deadline - self._clock()
            if remaining > 0:
                arrived = self._wait_visible(transfer, directory, before, deadline)
        if arrived is None:
            raise StagingConfirmationTimeout(transfer.filename, self.timeout)

        self._wait_complete(transfer, arrived, deadline)
        self.verify(transfer, arrived)
        return arrived

    def _expected_names(self, transfer: FileTransfer):
        names = [transfer.filename]
        if transfer.device_name != transfer.filename:
            names.append(transfer.device_name)
        return names

    def _arrival(self, transfer: FileTransfer, directory: Path, before: DirSnapshot) -> Optional[Path]:
        for name in self._expected_names(transfer):
            path = directory / name
            if path.is_file():
                return path

        now = self.snapshot(directory)
        if now.count <= before.count and now.total_bytes <= before.total_bytes:
            return None
        new_names = now.names - before.names
        candidates = [directory / n for n in (new_names or now.names)]
        candidates = [p for p in candidates if p.is_file()]
        if transfer.source_size is not None:
            # A file of another size is someone else's late copy
            candidates = [p for p in candidates if p.stat().st_size == transfer.source_size]
        if not candidates:
            return None
        newest = max(candidates, key=self.landed_at)
        logger.info("Expected %s in staging; taking newest arrival %s", transfer.filename, newest.name)
        return newest

    def _wait_visible(self, transfer, directory, before, until) -> Optional[Path]:
        while True:
            arrived = self._arrival(transfer, directory, before)
            if arrived is not None:
                return arrived
            if self._clock() >= until:
                return None
            self._sleep(self.poll_interval)

    def _wait_complete(self, transfer: FileTransfer, path: Path, until: float) -> None:
        """Wait for the expected size, or for one stable poll when the size is unknown."""
        expected = transfer.source_size if path.name in self._expected_names(transfer) else None
        last_size = None
        while True:
            try:
                size = path.stat().st_size
            except FileNotFoundError:
                size = None
            if size:
                if expected is not None and size >= expected:
                    return
                if expected is None and size == last_size:
                    return
            last_size = size
            if self._clock() >= until:
                raise StagingVerificationError(
                    transfer.filename,
                    f"incomplete copy ({size or 0} of {expected if expected is not None else '?'} bytes)",
                )
            self._sleep(self.poll_interval)

    def verify(self, transfer: FileTransfer, path: Path) -> None:
        if path.stat().st_size == 0:
            raise StagingVerificationError(transfer.filename, "empty file")
        if not self.verify_images or transfer.kind != MediaKind.IMAGE:
            return
        try:
            with Image.open(path) as im:
                im.load()
        except UnidentifiedImageError:
            # Formats Pillow cannot decode (e.g. HEIC without a plugin) pass
            logger.debug("Pillow cannot identify %s; skipping decode check", path.name)
        except (OSError, SyntaxError, ValueError) as e:
            raise StagingVerificationError(transfer.filename, f"image does not decode: {e}") from e

    def purge(self, max_age_seconds: float) -> int:
        """Delete staged entries idle for longer than ``max_age_seconds``."""
        if not self.root.exists():
            return 0
        cutoff = time.time() - max_age_seconds
        removed = 0
        for path in sorted(self.root.rglob("*"), reverse=True):
            try:
                if path.is_file() and self.landed_at(path) < cutoff:
                    path.unlink()
                    removed += 1
                elif path.is_dir() and path.parent != self.root and not any(path.iterdir()):
                    path.rmdir()
            except FileNotFoundError:
                continue
        if removed:
            logger.info("Purged %d stale staging entries from %s", removed, self.root)
        return removed
