#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Time utility functions for the Media Offload Tool.
"""

from datetime import datetime, timezone
from typing import Optional

# Formats seen in shell detail columns and EXIF tags
DATE_FORMATS = (
    "%Y:%m:%d %H:%M:%S",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%d %H:%M",
    "%m/%d/%Y %I:%M %p",
    "%m/%d/%Y %H:%M",
    "%d/%m/%Y %H:%M",
    "%d.%m.%Y %H:%M",
    "%Y-%m-%d",
    "%m/%d/%Y",
    "%d.%m.%Y",
)

# Left-to-right / right-to-left marks the Windows shell puts around date parts
_DIRECTION_MARKS = dict.fromkeys(map(ord, "\u200e\u200f\u202a\u202c\u202d\u202e"), None)


def utc_now_str() -> str:
    """Return current UTC time in ISO-8601 format with 'Z'."""
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def parse_date_text(text) -> Optional[datetime]:
    """Parse a localized date string. Returns None when no format matches."""
    if not text:
        return None
    value = str(text).translate(_DIRECTION_MARKS).replace("\x00", "").replace("\xa0", " ").strip()
    if not value:
        return None
    value = " ".join(value.split())
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(value, fmt)
        except ValueError:
            continue
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        return None
