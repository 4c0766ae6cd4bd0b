#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Data structures for checkpoints in the Media Offload Tool.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Set


@dataclass
class CheckpointDocument:
    """Per-folder record of filenames already transferred.

    Serialized shape: ``{"Folders": {"<folder>": ["<filename>", ...]}}``.
    """
    folders: Dict[str, Set[str]] = field(default_factory=dict)

    def contains(self, folder_name: str, filename: str) -> bool:
        return filename in self.folders.get(folder_name, ())

    def add(self, folder_name: str, filename: str) -> bool:
        """Add an entry. Returns False if it was already present."""
        names = self.folders.setdefault(folder_name, set())
        if filename in names:
            return False
        names.add(filename)
        return True

    def remove(self, folder_name: str, filename: str = None) -> int:
        """Remove one filename, or the whole folder when filename is None."""
        names = self.folders.get(folder_name)
        if names is None:
            return 0
        if filename is None:
            del self.folders[folder_name]
            return len(names)
        if filename not in names:
            return 0
        names.discard(filename)
        if not names:
            del self.folders[folder_name]
        return 1

    @property
    def total_files(self) -> int:
        return sum(len(names) for names in self.folders.values())

    def to_dict(self) -> Dict[str, Any]:
        """Convert checkpoint to dictionary for serialization."""
        return {
            "Folders": {
                folder: sorted(names)
                for folder, names in sorted(self.folders.items())
            }
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CheckpointDocument':
        """Create checkpoint from dictionary.

        Raises ValueError when the data does not have the expected shape.
        """
        if not isinstance(data, dict):
            raise ValueError("checkpoint root must be an object")
        raw = data.get("Folders", {})
        if not isinstance(raw, dict):
            raise ValueError("'Folders' must be an object")

        folders: Dict[str, Set[str]] = {}
        for folder, names in raw.items():
            if isinstance(names, str):
                names = [names]
            if not isinstance(names, list):
                raise ValueError(f"entries for folder '{folder}' must be a list")
            folders[str(folder)] = {str(n) for n in names}
        return cls(folders=folders)
