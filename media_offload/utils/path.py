#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Path utility functions for the Media Offload Tool.
"""

from pathlib import Path


def ensure_dir(p: Path) -> None:
    """Ensure directory exists, creating it if necessary."""
    p.mkdir(parents=True, exist_ok=True)


def unique_path(dst_dir: Path, base_name: str) -> Path:
    """Return dst_dir/base_name, or the first free 'stem (n).ext' sibling."""
    candidate = dst_dir / base_name
    if not candidate.exists():
        return candidate
    stem = Path(base_name).stem
    suffix = Path(base_name).suffix
    i = 1
    while True:
        candidate = dst_dir / f"{stem} ({i}){suffix}"
        if not candidate.exists():
            return candidate
        i += 1
