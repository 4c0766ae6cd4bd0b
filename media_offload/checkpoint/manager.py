#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Checkpoint store for resumable transfers in the Media Offload Tool.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Optional

from ..models.checkpoint import CheckpointDocument
from ..utils.path import ensure_dir

logger = logging.getLogger(__name__)


class CheckpointStore:
    """Durable per-folder record of filenames already transferred.

    The whole document is rewritten after every success. No locking: the
    pipeline is single-threaded and flushes synchronously.
    """

    def __init__(self, checkpoint_path: Path, enabled: bool = True):
        self.checkpoint_path = Path(checkpoint_path)
        self.enabled = enabled
        self.document = CheckpointDocument()

    def load(self) -> CheckpointDocument:
        """Load the checkpoint file. Missing or malformed data means no prior progress."""
        self.document = CheckpointDocument()
        if not self.enabled:
            return self.document
        if not self.checkpoint_path.exists():
            logger.info("No checkpoint at %s; starting fresh", self.checkpoint_path)
            return self.document
        try:
            with self.checkpoint_path.open("r", encoding="utf-8-sig") as f:
                data = json.load(f)
            self.document = CheckpointDocument.from_dict(data)
        except (OSError, ValueError) as e:
            logger.warning("Ignoring unreadable checkpoint %s: %s", self.checkpoint_path, e)
            self.document = CheckpointDocument()
            return self.document

        logger.info("Loaded checkpoint: %d files across %d folders",
                    self.document.total_files, len(self.document.folders))
        return self.document

    def contains(self, folder_name: str, filename: str) -> bool:
        return self.enabled and self.document.contains(folder_name, filename)

    def record_and_flush(self, folder_name: str, filename: str) -> None:
        """Record a completed transfer and persist the whole document immediately."""
        if not self.enabled:
            return
        self.document.add(folder_name, filename)
        self.flush()

    def forget(self, folder_name: str, filename: Optional[str] = None) -> int:
        """Remove entries on explicit request. Returns the number removed."""
        removed = self.document.remove(folder_name, filename)
        if removed and self.enabled:
            self.flush()
        return removed

    def flush(self) -> None:
        """Write the document atomically (temp file + fsync + replace)."""
        ensure_dir(self.checkpoint_path.parent)
        payload = json.dumps(self.document.to_dict(), ensure_ascii=False, indent=2)
        fd, tmp_name = tempfile.mkstemp(prefix=".checkpoint-", suffix=".tmp",
                                        dir=str(self.checkpoint_path.parent))
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, self.checkpoint_path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
