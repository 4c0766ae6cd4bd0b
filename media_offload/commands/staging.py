#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Staging maintenance command for the Media Offload Tool.
"""

from pathlib import Path

from ..jsonio import success
from ..namespace.provider import MountedNamespaceProvider
from ..transfer.staging import StagingArea


def cmd_purge_staging(staging_root: Path, max_age_hours: float, as_json: bool = False):
    """Delete staged entries idle for longer than ``max_age_hours``."""
    # Purging never touches the device; any provider will do.
    staging = StagingArea(Path(staging_root), MountedNamespaceProvider(Path(staging_root)))
    removed = staging.purge(max_age_hours * 3600)

    if as_json:
        return success("purge-staging", {
            "staging_root": str(staging_root),
            "max_age_hours": max_age_hours,
            "removed": removed,
        })
    print(f"Purged {removed:,} staging entries older than {max_age_hours:g}h from {staging_root}")
    return 0
