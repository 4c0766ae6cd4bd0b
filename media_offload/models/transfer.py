#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Data structures for per-file transfers and run summaries.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..errors import InvalidStateTransition


class MediaKind(str, Enum):
    IMAGE = "Image"
    VIDEO = "Video"


class FileState(str, Enum):
    DISCOVERED = "discovered"
    STAGED_COPY_ISSUED = "staged_copy_issued"
    STAGED_CONFIRMED = "staged_confirmed"
    FINAL_MOVED = "final_moved"
    SKIPPED_DUPLICATE = "skipped_duplicate"
    FAILED = "failed"


TERMINAL_STATES = {FileState.FINAL_MOVED, FileState.SKIPPED_DUPLICATE, FileState.FAILED}

_FORWARD = {
    FileState.DISCOVERED: {FileState.STAGED_COPY_ISSUED, FileState.STAGED_CONFIRMED},
    FileState.STAGED_COPY_ISSUED: {FileState.STAGED_CONFIRMED},
    FileState.STAGED_CONFIRMED: {FileState.FINAL_MOVED},
}


@dataclass
class SourceFolderView:
    """One visit of a device folder. Discarded once its files are processed."""
    name: str
    handle: Any
    filenames: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class TransferRecord:
    """A (folder, resolved filename) pair that is permanently done."""
    source_folder: str
    filename: str


@dataclass
class FileTransfer:
    """State of one file moving through the pipeline.

    ``device_name`` is the name as the device reports it; ``filename`` is the
    resolved name (with an inferred extension when the device gave none).
    Staging to final move may skip STAGED_COPY_ISSUED when an earlier run
    left a complete staged copy behind.
    """
    folder_name: str
    device_name: str
    filename: str
    kind: MediaKind = MediaKind.IMAGE
    source_size: Optional[int] = None
    state: FileState = FileState.DISCOVERED
    staged_path: Optional[Path] = None
    destination: Optional[Path] = None
    resumed: bool = False
    message: str = ""

    def advance(self, target: FileState) -> None:
        """Move to a new state, enforcing the per-file state machine."""
        if self.state in TERMINAL_STATES:
            raise InvalidStateTransition(self.filename, self.state.value, target.value)
        if target in (FileState.SKIPPED_DUPLICATE, FileState.FAILED):
            self.state = target
            return
        if target not in _FORWARD.get(self.state, set()):
            raise InvalidStateTransition(self.filename, self.state.value, target.value)
        self.state = target

    def fail(self, message: str) -> None:
        self.advance(FileState.FAILED)
        self.message = message

    def skip(self, message: str) -> None:
        self.advance(FileState.SKIPPED_DUPLICATE)
        self.message = message

    @property
    def record(self) -> TransferRecord:
        return TransferRecord(self.folder_name, self.filename)


@dataclass
class FileFailure:
    filename: str
    destination: str
    message: str


@dataclass
class RunSummary:
    """Counters reported at the end of a run (also on fatal abort)."""
    copied: int = 0
    resumed: int = 0
    skipped: int = 0
    failed: int = 0
    folders: int = 0
    elapsed_seconds: float = 0.0
    failures: List[FileFailure] = field(default_factory=list)
    aborted: Optional[str] = None

    @property
    def total(self) -> int:
        return self.copied + self.skipped + self.failed

    def count(self, transfer: FileTransfer) -> None:
        """Tally a file that reached a terminal state."""
        if transfer.state == FileState.FINAL_MOVED:
            self.copied += 1
            if transfer.resumed:
                self.resumed += 1
        elif transfer.state == FileState.SKIPPED_DUPLICATE:
            self.skipped += 1
        elif transfer.state == FileState.FAILED:
            self.failed += 1
            self.failures.append(FileFailure(
                filename=transfer.filename,
                destination=str(transfer.destination or ""),
                message=transfer.message,
            ))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "copied": self.copied,
            "resumed": self.resumed,
            "skipped": self.skipped,
            "failed": self.failed,
            "total": self.total,
            "folders": self.folders,
            "elapsed_seconds": round(self.elapsed_seconds, 2),
            "failures": [f.__dict__ for f in self.failures],
            "aborted": self.aborted,
        }
