#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Media kind classification and destination layout.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Optional, Tuple

from PIL import ExifTags, Image

from ..config import (
    DATE_MODIFIED_FIELD, DATE_TAKEN_FIELD, IMAGE_EXT, IMAGES_DIRNAME, ITEM_TYPE_FIELD,
    VIDEO_EXT, VIDEOS_DIRNAME,
)
from ..models.transfer import MediaKind
from ..utils.time import parse_date_text

logger = logging.getLogger(__name__)

# Item-type keywords -> extension, first match wins
TYPE_HINTS = (
    ("heic", ".heic"),
    ("heif", ".heic"),
    ("jpeg", ".jpg"),
    ("jpg", ".jpg"),
    ("png", ".png"),
    ("gif", ".gif"),
    ("dng", ".dng"),
    ("mpeg-4", ".mp4"),
    ("mp4", ".mp4"),
    ("quicktime", ".mov"),
    ("mov", ".mov"),
    ("3gp", ".3gp"),
    ("m4v", ".m4v"),
    ("avi", ".avi"),
)


class Classifier:
    """Maps filenames to media kinds and destination paths.

    Unknown extensions classify as Image; that is the documented default,
    not an error.
    """

    def __init__(self, accessor=None):
        self.accessor = accessor

    @staticmethod
    def classify(filename: str) -> MediaKind:
        suffix = Path(filename).suffix.lower()
        if suffix in VIDEO_EXT:
            return MediaKind.VIDEO
        if suffix in IMAGE_EXT:
            return MediaKind.IMAGE
        return MediaKind.IMAGE

    def resolve_filename(self, folder: Any, item: Any, device_name: str,
                         strict: bool = False) -> Tuple[Optional[str], str]:
        """Return (resolved name, note). A None name means skip the item."""
        if Path(device_name).suffix:
            return device_name, ""
        if strict:
            return None, "missing extension"
        type_text = self.accessor.detail(folder, item, ITEM_TYPE_FIELD).lower() if self.accessor else ""
        for keyword, ext in TYPE_HINTS:
            if keyword in type_text:
                return device_name + ext, f"extension inferred from '{type_text}'"
        return device_name, "extension unknown"

    def device_date(self, folder: Any, item: Any) -> Optional[datetime]:
        """Capture-date column first, then the generic modified-date column."""
        if self.accessor is None:
            return None
        for index in (DATE_TAKEN_FIELD, DATE_MODIFIED_FIELD):
            parsed = parse_date_text(self.accessor.detail(folder, item, index))
            if parsed is not None:
                return parsed
        return None

    @staticmethod
    def exif_date(path: Path) -> Optional[datetime]:
        """DateTimeOriginal (or DateTime) embedded in an image file."""
        try:
            with Image.open(path) as im:
                exif = im.getexif()
                value = exif.get_ifd(ExifTags.IFD.Exif).get(ExifTags.Base.DateTimeOriginal)
                value = value or exif.get(ExifTags.Base.DateTime)
        except (OSError, ValueError, SyntaxError) as e:
            logger.debug("No EXIF date in %s: %s", path, e)
            return None
        return parse_date_text(value)

    def resolve_date(self, device_date: Optional[datetime], staged_path: Optional[Path] = None,
                     kind: MediaKind = MediaKind.IMAGE) -> datetime:
        if device_date is not None:
            return device_date
        if staged_path is not None and kind == MediaKind.IMAGE:
            taken = self.exif_date(staged_path)
            if taken is not None:
                return taken
        return datetime.now()

    def date_of(self, folder: Any, item: Any, staged_path: Optional[Path] = None) -> datetime:
        """Best known capture date of an item; wall-clock time when nothing parses."""
        kind = self.classify(staged_path.name) if staged_path is not None else MediaKind.IMAGE
        return self.resolve_date(self.device_date(folder, item), staged_path, kind)

    @staticmethod
    def kind_subroot(dest_root: Path, kind: MediaKind) -> Path:
        return Path(dest_root) / (VIDEOS_DIRNAME if kind == MediaKind.VIDEO else IMAGES_DIRNAME)

    @classmethod
    def destination_dir(cls, dest_root: Path, kind: MediaKind, when: Optional[datetime],
                        flat: bool = False) -> Path:
        """``<kind subroot>/[<yyyy>/<yyyy-MM>/]``"""
        base = cls.kind_subroot(dest_root, kind)
        if flat or when is None:
            return base
        return base / f"{when:%Y}" / f"{when:%Y-%m}"
