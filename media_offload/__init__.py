"""Media Offload Tool - Resumable media transfer from phones and cameras."""

__version__ = "1.0.0"
__author__ = "Media Tool Team"

# Import key classes for convenient top-level access
from .commands import TransferCommand
from .config import TransferConfig
from .checkpoint import CheckpointStore
from .transfer import TransferPipeline, StagingArea, DuplicateGuard, Classifier
from .namespace import NamespaceProvider, ShellNamespaceProvider, MountedNamespaceProvider
from .models import FileTransfer, RunSummary, CheckpointDocument

# Common convenience imports
from .utils import utc_now_str, ensure_dir

__all__ = [
    # Core classes
    'TransferCommand',
    'TransferConfig',
    'CheckpointStore',
    'TransferPipeline',

    # Transfer components
    'StagingArea',
    'DuplicateGuard',
    'Classifier',

    # Namespace providers
    'NamespaceProvider',
    'ShellNamespaceProvider',
    'MountedNamespaceProvider',

    # Data models
    'FileTransfer',
    'RunSummary',
    'CheckpointDocument',

    # Utilities
    'utc_now_str',
    'ensure_dir',

    # Package metadata
    '__version__',
    '__author__'
]
