"""Utility functions for the Media Offload Tool."""

from .time import utc_now_str, parse_date_text
from .path import ensure_dir, unique_path

__all__ = ['utc_now_str', 'parse_date_text', 'ensure_dir', 'unique_path']
