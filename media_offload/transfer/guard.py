#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Duplicate checks applied before any bytes move.
"""

import glob
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional

from ..checkpoint.manager import CheckpointStore
from ..models.transfer import FileTransfer

logger = logging.getLogger(__name__)

PROCEED = "proceed"
SKIP = "skip"
PROMOTE = "promote"


@dataclass
class GuardDecision:
    action: str
    reason: str = ""
    path: Optional[Path] = None


class DuplicateGuard:
    """Three independent skip checks, always run in the same order.

    1. checkpoint record for folder + filename
    2. file already at the final destination (name, or name + size)
    3. file left in staging by an earlier run: promoted when complete,
       deleted when it is a stale partial
    """

    def __init__(self, checkpoint: CheckpointStore, by_name_only: bool = False):
        self.checkpoint = checkpoint
        self.by_name_only = by_name_only

    def evaluate(self, transfer: FileTransfer, destination_candidates: Iterable[Path],
                 staging_dir: Path) -> GuardDecision:
        if self.already_recorded(transfer):
            return GuardDecision(SKIP, "already recorded in checkpoint")

        existing = self.find_at_destination(transfer, destination_candidates)
        if existing is not None:
            return GuardDecision(SKIP, "already at destination", existing)

        staged = self.find_in_staging(transfer, staging_dir)
        if staged is not None:
            return GuardDecision(PROMOTE, "complete copy left in staging", staged)
        return GuardDecision(PROCEED)

    def already_recorded(self, transfer: FileTransfer) -> bool:
        return self.checkpoint.contains(transfer.folder_name, transfer.filename)

    def find_at_destination(self, transfer: FileTransfer,
                            candidates: Iterable[Path]) -> Optional[Path]:
        """Match the planned name, then the numbered names a collision produces.

        ``IMG_0001 (1).JPG`` only counts when its size equals the source size.
        """
        for path in candidates:
            if path.is_file():
                if self.by_name_only or transfer.source_size is None:
                    return path
                if path.stat().st_size == transfer.source_size:
                    return path
            if transfer.source_size is None:
                continue
            for sibling in self._numbered_siblings(path):
                if sibling.stat().st_size == transfer.source_size:
                    return sibling
        return None

    @staticmethod
    def _numbered_siblings(path: Path):
        pattern = f"{glob.escape(path.stem)} ([0-9]*){glob.escape(path.suffix)}"
        if not path.parent.is_dir():
            return []
        return sorted(p for p in path.parent.glob(pattern)
                      if p.stem[len(path.stem) + 2:-1].isdigit() and p.is_file())

    def find_in_staging(self, transfer: FileTransfer, staging_dir: Path) -> Optional[Path]:
        """Return a complete staged copy, deleting any stale partial found."""
        names = [transfer.filename]
        if transfer.device_name != transfer.filename:
            names.append(transfer.device_name)

        for name in names:
            path = staging_dir / name
            if not path.is_file():
                continue
            size = path.stat().st_size
            if size > 0 and transfer.source_size is not None and size == transfer.source_size:
                return path
            if size > 0 and transfer.source_size is None and self.by_name_only:
                return path
            logger.info("Removing stale staged partial %s (%d bytes, expected %s)",
                        path.name, size, transfer.source_size)
            path.unlink(missing_ok=True)
        return None
