#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Checkpoint command implementations for the Media Offload Tool.
"""

from pathlib import Path
from typing import Optional

from ..checkpoint.manager import CheckpointStore
from ..jsonio import success, error


def cmd_checkpoint_info(checkpoint_path: Path, as_json: bool = False):
    """Show per-folder counts of a checkpoint document."""
    checkpoint_path = Path(checkpoint_path)
    if not checkpoint_path.exists():
        if as_json:
            return error("checkpoint-info", f"Checkpoint {checkpoint_path} not found")
        print(f"Checkpoint {checkpoint_path} not found.")
        return 1

    document = CheckpointStore(checkpoint_path).load()
    folders = {name: len(files) for name, files in sorted(document.folders.items())}

    if as_json:
        return success("checkpoint-info", {
            "checkpoint_path": str(checkpoint_path),
            "folders": folders,
            "total_files": document.total_files,
        })

    if not folders:
        print("Checkpoint is empty.")
        return 0

    print(f"Checkpoint: {checkpoint_path}")
    print(f"{'Folder':<40} {'Files':>10}")
    print("-" * 51)
    for name, count in folders.items():
        short_name = name if len(name) <= 37 else "..." + name[-34:]
        print(f"{short_name:<40} {count:>10,}")
    print("-" * 51)
    print(f"{'Total':<40} {document.total_files:>10,}")
    return 0


def cmd_checkpoint_forget(checkpoint_path: Path, folder: str, filename: Optional[str] = None,
                          as_json: bool = False):
    """Remove a folder, or one file of a folder, from the checkpoint."""
    store = CheckpointStore(Path(checkpoint_path))
    store.load()
    removed = store.forget(folder, filename)

    target = f"{folder}/{filename}" if filename else folder
    if not removed:
        if as_json:
            return error("checkpoint-forget", f"No checkpoint entries for {target}")
        print(f"No checkpoint entries for {target}.")
        return 1

    if as_json:
        return success("checkpoint-forget", {
            "folder": folder,
            "filename": filename,
            "removed": removed,
        })
    print(f"Removed {removed:,} checkpoint entries for {target}")
    return 0
