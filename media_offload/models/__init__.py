"""Data models for the Media Offload Tool."""

from .checkpoint import CheckpointDocument
from .transfer import (
    FileFailure, FileState, FileTransfer, MediaKind, RunSummary,
    SourceFolderView, TransferRecord, TERMINAL_STATES,
)

__all__ = [
    'CheckpointDocument', 'FileFailure', 'FileState', 'FileTransfer', 'MediaKind',
    'RunSummary', 'SourceFolderView', 'TransferRecord', 'TERMINAL_STATES',
]
