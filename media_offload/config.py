#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Global configuration and constants for the Media Offload Tool.
"""

import json
from dataclasses import dataclass, field, fields, asdict
from pathlib import Path
from typing import Any, Dict, List, Optional, Set

from .errors import ConfigError

# File type categories
IMAGE_EXT: Set[str] = {
    ".jpg", ".jpeg", ".png", ".bmp", ".gif", ".tiff", ".tif", ".webp",
    ".heic", ".heif", ".dng", ".raw",
}
VIDEO_EXT: Set[str] = {
    ".mp4", ".mov", ".avi", ".mkv", ".wmv", ".flv", ".mpeg", ".mpg",
    ".m4v", ".3gp", ".webm", ".mts",
}

# Destination subroots
IMAGES_DIRNAME = "Images"
VIDEOS_DIRNAME = "Videos"

# Shell detail column indexes
NAME_FIELD = 0
SIZE_FIELD = 1
ITEM_TYPE_FIELD = 2
DATE_MODIFIED_FIELD = 3
DATE_TAKEN_FIELD = 12
PROBE_DETAIL_FIELDS = (NAME_FIELD, SIZE_FIELD, ITEM_TYPE_FIELD, DATE_MODIFIED_FIELD, DATE_TAKEN_FIELD)

# Shell CopyHere option bits
FOF_SILENT = 0x0004
FOF_NOCONFIRMATION = 0x0010
FOF_NOCONFIRMMKDIR = 0x0200
FOF_NOERRORUI = 0x0400
COPY_FLAGS_PRIMARY = FOF_SILENT | FOF_NOCONFIRMATION | FOF_NOERRORUI | FOF_NOCONFIRMMKDIR
COPY_FLAGS_FALLBACK = FOF_SILENT | FOF_NOCONFIRMATION
COPY_FLAG_VARIANTS = (COPY_FLAGS_PRIMARY, COPY_FLAGS_FALLBACK)

# Device lookup
DEFAULT_DEVICE_PATTERN = "iPhone"
VENDOR_FALLBACK_PATTERN = r"(?i)apple|iphone|ipad|android|galaxy|pixel"
DEFAULT_STORAGE_NAME = "Internal Storage"
STORAGE_FALLBACK_PATTERN = (
    r"(?i)internal storage|almacenamiento interno|interner speicher|stockage interne|storage"
)
MEDIA_ROOT_DIRNAME = "DCIM"

# Engine defaults
DEFAULT_ACCESS_ATTEMPTS = 3
DEFAULT_ACCESS_DELAY = 0.5
DEFAULT_PROBE_ROUNDS = 5
DEFAULT_PROBE_COOLDOWN = 1.0
DEFAULT_PROBE_DELAY = 0.5
DEFAULT_PREWARM_DEPTH = 1
DEFAULT_POLL_INTERVAL = 0.5
DEFAULT_OPERATION_TIMEOUT = 300.0
DEFAULT_VARIANT_GRACE = 5.0
DEFAULT_YIELD_DELAY = 0.2
DEFAULT_FLUSH_INTERVAL = 25
DEFAULT_STAGING_MAX_AGE_HOURS = 12.0
DEFAULT_HOUSEKEEPING_COOLDOWN = 1.0
DEFAULT_EMPTY_FOLDER_LIMIT = 3
DEFAULT_MIN_FREE_BYTES = 500 * 1024 * 1024  # 500MB

_PATH_FIELDS = ("dest_root", "staging_root", "checkpoint_path", "mount_root")


@dataclass
class TransferConfig:
    """Configuration surface consumed by the transfer engine."""
    dest_root: Path = Path("Media")
    staging_root: Path = Path(".staging")
    checkpoint_path: Path = Path("offload_checkpoint.json")
    checkpoint_enabled: bool = True

    device_pattern: str = DEFAULT_DEVICE_PATTERN
    storage_name: str = DEFAULT_STORAGE_NAME
    mount_root: Optional[Path] = None

    by_name_only: bool = False
    flat_layout: bool = False
    strict_extensions: bool = False
    verify_images: bool = False

    include_folders: List[str] = field(default_factory=list)
    exclude_folders: List[str] = field(default_factory=list)
    max_folders: int = 0

    operation_timeout: float = DEFAULT_OPERATION_TIMEOUT
    min_free_bytes: int = DEFAULT_MIN_FREE_BYTES
    yield_delay: float = DEFAULT_YIELD_DELAY
    flush_interval: int = DEFAULT_FLUSH_INTERVAL

    # Timing knobs for the unreliable namespace
    access_attempts: int = DEFAULT_ACCESS_ATTEMPTS
    access_delay: float = DEFAULT_ACCESS_DELAY
    probe_rounds: int = DEFAULT_PROBE_ROUNDS
    probe_cooldown: float = DEFAULT_PROBE_COOLDOWN
    probe_delay: float = DEFAULT_PROBE_DELAY
    prewarm_depth: int = DEFAULT_PREWARM_DEPTH
    poll_interval: float = DEFAULT_POLL_INTERVAL
    variant_grace: float = DEFAULT_VARIANT_GRACE
    staging_max_age_hours: float = DEFAULT_STAGING_MAX_AGE_HOURS
    housekeeping_cooldown: float = DEFAULT_HOUSEKEEPING_COOLDOWN
    empty_folder_limit: int = DEFAULT_EMPTY_FOLDER_LIMIT

    def __post_init__(self):
        for name in _PATH_FIELDS:
            value = getattr(self, name)
            if value is not None and not isinstance(value, Path):
                setattr(self, name, Path(value))

    @classmethod
    def field_names(cls) -> Set[str]:
        return {f.name for f in fields(cls)}

    @classmethod
    def from_file(cls, path: Path, **overrides) -> "TransferConfig":
        """Load a JSON config file, then apply keyword overrides on top."""
        try:
            text = Path(path).read_text(encoding="utf-8-sig")
        except OSError as e:
            raise ConfigError(f"Cannot read config file {path}: {e}") from e
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise ConfigError(
                f"Invalid JSON in {Path(path).name} at line {e.lineno}, column {e.colno}: {e.msg}"
            ) from e
        if not isinstance(data, dict):
            raise ConfigError(f"Config file {path} must contain a JSON object")

        unknown = set(data) - cls.field_names()
        if unknown:
            raise ConfigError(f"Unknown config keys in {path}: {', '.join(sorted(unknown))}")

        data.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**data)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        for name in _PATH_FIELDS:
            if data[name] is not None:
                data[name] = str(data[name])
        return data
