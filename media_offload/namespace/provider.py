#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Device namespace providers.

A provider exposes a hierarchical, MTP-like namespace: enumerate a folder,
open a folder item, copy an item into a local directory, read a detail
column. Handles it returns are borrowed and may silently go stale.
"""

import logging
import shutil
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Any, Iterable, Optional

from ..config import (
    DATE_MODIFIED_FIELD, DATE_TAKEN_FIELD, ITEM_TYPE_FIELD, NAME_FIELD, SIZE_FIELD,
)
from ..errors import ConfigError

logger = logging.getLogger(__name__)


class NamespaceProvider(ABC):
    """Interface for device namespace providers."""

    @abstractmethod
    def root(self) -> Any:
        """Return the handle listing connected devices."""

    @abstractmethod
    def enumerate(self, folder: Any) -> Optional[Iterable[Any]]:
        """Return the item handles of a folder. May return None or nothing for a valid folder."""

    @abstractmethod
    def open_folder(self, item: Any) -> Any:
        """Return a folder handle for a folder item, or None."""

    @abstractmethod
    def copy_into(self, dest_dir: Path, item: Any, flags: int) -> None:
        """Ask the provider to copy an item into a local directory.

        Completion is not signalled; the copy may land later or never.
        """

    @abstractmethod
    def detail_field(self, folder: Any, item: Any, index: int) -> str:
        """Return a detail column value as text ('' when unknown)."""

    @abstractmethod
    def name_of(self, item: Any) -> str:
        pass

    @abstractmethod
    def is_folder(self, item: Any) -> bool:
        pass

    def size_of(self, item: Any) -> Optional[int]:
        """Exact byte size when the provider knows it."""
        return None

    def close(self) -> None:
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False


class ShellNamespaceProvider(NamespaceProvider):
    """Windows Shell namespace ("This PC") through pywin32 COM automation."""

    MY_COMPUTER = 17

    def __init__(self):
        try:
            import pythoncom
            import win32com.client
        except ImportError as e:
            raise ConfigError(
                "pywin32 is required for Shell namespace access. Install with: pip install pywin32"
            ) from e

        # COM objects are apartment-threaded; everything runs on this thread.
        self._pythoncom = pythoncom
        pythoncom.CoInitialize()
        self.shell = win32com.client.Dispatch("Shell.Application")
        logger.debug("Shell.Application created")

    def close(self) -> None:
        if self._pythoncom is not None:
            self.shell = None
            self._pythoncom.CoUninitialize()
            self._pythoncom = None

    def root(self):
        return self.shell.Namespace(self.MY_COMPUTER)

    def enumerate(self, folder):
        if folder is None:
            return None
        items = folder.Items()
        if items is None:
            return None
        # Snapshot because the COM collection is live
        return [items.Item(i) for i in range(items.Count)]

    def open_folder(self, item):
        folder = item.GetFolder
        if folder is None and getattr(item, "Path", None):
            folder = self.shell.Namespace(item.Path)
        return folder

    def copy_into(self, dest_dir: Path, item, flags: int) -> None:
        dest_folder = self.shell.Namespace(str(dest_dir))
        if dest_folder is None:
            raise OSError(f"Could not open destination folder via Shell: {dest_dir}")
        dest_folder.CopyHere(item, flags)

    def detail_field(self, folder, item, index: int) -> str:
        value = folder.GetDetailsOf(item, index)
        return str(value) if value else ""

    def name_of(self, item) -> str:
        return str(item.Name)

    def is_folder(self, item) -> bool:
        return bool(item.IsFolder)

    def size_of(self, item) -> Optional[int]:
        try:
            size = int(item.Size)
        except (AttributeError, TypeError, ValueError):
            return None
        return size if size > 0 else None


class MountedNamespaceProvider(NamespaceProvider):
    """A mounted device tree (gvfs, mtpfs, a plain directory) used as the namespace.

    Each top-level directory under ``root_path`` is treated as a device.
    """

    def __init__(self, root_path: Path):
        self.root_path = Path(root_path)

    def root(self):
        return self.root_path if self.root_path.is_dir() else None

    def enumerate(self, folder):
        if folder is None:
            return None
        try:
            return sorted(folder.iterdir(), key=lambda p: p.name)
        except FileNotFoundError:
            return None

    def open_folder(self, item):
        return item if item.is_dir() else None

    def copy_into(self, dest_dir: Path, item, flags: int) -> None:
        shutil.copy2(item, Path(dest_dir) / item.name)

    def detail_field(self, folder, item, index: int) -> str:
        try:
            st = item.stat()
        except OSError:
            return ""
        if index == NAME_FIELD:
            return item.name
        if index == SIZE_FIELD:
            return f"{st.st_size} bytes"
        if index == ITEM_TYPE_FIELD:
            if item.is_dir():
                return "File folder"
            suffix = item.suffix.lstrip(".").upper()
            return f"{suffix} File" if suffix else "File"
        if index == DATE_MODIFIED_FIELD:
            return datetime.fromtimestamp(st.st_mtime).strftime("%Y-%m-%d %H:%M:%S")
        if index == DATE_TAKEN_FIELD:
            return ""
        return ""

    def name_of(self, item) -> str:
        return item.name

    def is_folder(self, item) -> bool:
        return item.is_dir()

    def size_of(self, item) -> Optional[int]:
        try:
            return item.stat().st_size
        except OSError:
            return None
