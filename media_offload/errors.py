"""
Transfer engine error types.

All errors inherit from TransferError for easy catching.
Fatal errors stop the whole run; the rest are recorded per file or per folder.
"""


class TransferError(Exception):
    """Base exception for all transfer-related failures."""
    pass


class ConfigError(TransferError):
    """Raised when a configuration file or value is invalid."""
    pass


class FatalTransferError(TransferError):
    """Base for conditions that abort the run.

    The pipeline attaches the partial run summary as ``summary`` before
    the error propagates.
    """

    summary = None


class DeviceNotFound(FatalTransferError):
    """Raised when no connected device matches the requested name."""

    def __init__(self, pattern: str, available=None):
        self.pattern = pattern
        self.available = list(available or [])
        super().__init__(f"No connected device matches '{pattern}'")


class HandleUnavailable(FatalTransferError):
    """Raised when a matched node yields no folder handle (locked or untrusted device)."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Device '{name}' returned no folder handle (is it unlocked and trusted?)")


class DeviceUnavailable(FatalTransferError):
    """Raised when several consecutive folders enumerate as empty."""

    def __init__(self, folders):
        self.folders = list(folders)
        super().__init__(
            f"Device stopped responding: {len(self.folders)} consecutive folders were empty "
            f"({', '.join(self.folders)})"
        )


class InsufficientSpace(FatalTransferError):
    """Raised when local free space drops under the configured threshold."""

    def __init__(self, path, free_bytes: int, required_bytes: int):
        self.path = path
        self.free_bytes = free_bytes
        self.required_bytes = required_bytes
        super().__init__(
            f"Only {free_bytes // (1024 ** 2):,} MB free on {path} "
            f"(minimum {required_bytes // (1024 ** 2):,} MB)"
        )


class FolderVanished(TransferError):
    """Raised when a source folder can no longer be re-opened by name."""

    def __init__(self, folder_name: str):
        self.folder_name = folder_name
        super().__init__(f"Source folder vanished: {folder_name}")


class StagingConfirmationTimeout(TransferError):
    """Raised when a staged copy never becomes visible before the deadline."""

    def __init__(self, filename: str, seconds: float):
        self.filename = filename
        self.seconds = seconds
        super().__init__(f"Copy of {filename} not confirmed within {seconds:g} seconds")


class StagingVerificationError(TransferError):
    """Raised when a staged file arrived but fails verification."""

    def __init__(self, filename: str, reason: str):
        self.filename = filename
        self.reason = reason
        super().__init__(f"Staged copy of {filename} failed verification: {reason}")


class InvalidStateTransition(TransferError):
    """Raised when attempting an illegal per-file state transition."""

    def __init__(self, filename: str, current_state: str, target_state: str):
        self.filename = filename
        self.current_state = current_state
        self.target_state = target_state
        super().__init__(
            f"Invalid transfer state transition for {filename}: "
            f"{current_state} -> {target_state}"
        )
