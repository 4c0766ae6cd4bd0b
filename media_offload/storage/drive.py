#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Local drive checks for the Media Offload Tool.
"""

import logging
import shutil
from pathlib import Path

from ..errors import InsufficientSpace

logger = logging.getLogger(__name__)


class DriveManager:
    """Free-space checks for the staging and destination drives."""

    @staticmethod
    def free_bytes(path: Path) -> int:
        """Free bytes on the drive holding ``path`` (nearest existing ancestor)."""
        probe = Path(path).resolve()
        while not probe.exists() and probe != probe.parent:
            probe = probe.parent
        return shutil.disk_usage(str(probe)).free

    @staticmethod
    def ensure_free_space(path: Path, min_free_bytes: int) -> int:
        """Raise InsufficientSpace when free space is under ``min_free_bytes``."""
        if not min_free_bytes or min_free_bytes <= 0:
            return -1
        free = DriveManager.free_bytes(path)
        if free < min_free_bytes:
            raise InsufficientSpace(path, free, min_free_bytes)
        logger.debug("%s: %d MB free", path, free // (1024 ** 2))
        return free
