#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Device and media-root lookup for the Media Offload Tool.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, List, Optional

from ..config import (
    DEFAULT_DEVICE_PATTERN, DEFAULT_STORAGE_NAME, MEDIA_ROOT_DIRNAME,
    STORAGE_FALLBACK_PATTERN, VENDOR_FALLBACK_PATTERN,
)
from ..errors import DeviceNotFound, FolderVanished, HandleUnavailable
from .accessor import NamespaceAccessor, norm_name

logger = logging.getLogger(__name__)

MODE_MEDIA_ROOT = "media-root"
MODE_STORAGE_ROOT = "storage-root"


@dataclass
class ResolvedRoot:
    """Where source folders live. ``handle`` is only valid right after resolve()."""
    handle: Any
    mode: str
    device_name: str
    storage_name: str
    candidates: List[str] = field(default_factory=list)


class DeviceRootResolver:
    """Finds the device, its storage and the folder that holds media.

    Handles are never cached: ``reopen_folder`` walks from the namespace
    root each time, because a handle can silently go stale between calls.
    """

    def __init__(self, accessor: NamespaceAccessor,
                 vendor_pattern: str = VENDOR_FALLBACK_PATTERN,
                 storage_pattern: str = STORAGE_FALLBACK_PATTERN,
                 media_root_name: str = MEDIA_ROOT_DIRNAME):
        self.accessor = accessor
        self.vendor_pattern = vendor_pattern
        self.storage_pattern = storage_pattern
        self.media_root_name = media_root_name

    def resolve(self, device_pattern: str = DEFAULT_DEVICE_PATTERN,
                storage_name: str = DEFAULT_STORAGE_NAME) -> ResolvedRoot:
        device_item = self._find_device(device_pattern)
        device_name = self.accessor.name_of(device_item)

        device_folder = self.accessor.open_folder(device_item)
        if device_folder is None:
            raise HandleUnavailable(device_name)
        logger.info("Using device: %s", device_name)

        storage_item = self._find_storage(device_folder, storage_name)
        if storage_item is None:
            raise HandleUnavailable(f"{device_name} (no storage folder visible)")
        resolved_storage = self.accessor.name_of(storage_item)
        storage_folder = self.accessor.open_folder(storage_item)
        if storage_folder is None:
            raise HandleUnavailable(f"{device_name}\\{resolved_storage}")
        logger.info("Using storage: %s", resolved_storage)

        media_item = self.accessor.find_child(storage_folder, self.media_root_name)
        if media_item is not None:
            media_folder = self.accessor.open_folder(media_item)
            if media_folder is not None:
                candidates = self._folder_names(media_folder)
                logger.info("Fast path: %s with %d folders", self.media_root_name, len(candidates))
                return ResolvedRoot(media_folder, MODE_MEDIA_ROOT, device_name,
                                    resolved_storage, candidates)

        candidates = self._folder_names(storage_folder)
        logger.info("No %s folder; enumerating %d storage folders", self.media_root_name, len(candidates))
        return ResolvedRoot(storage_folder, MODE_STORAGE_ROOT, device_name,
                            resolved_storage, candidates)

    def reopen_root(self, resolved: ResolvedRoot) -> Any:
        """Walk root -> device -> storage [-> media root] by name and return a fresh handle."""
        device_item = self.accessor.find_child(self.accessor.provider.root(), resolved.device_name)
        folder = self.accessor.open_folder(device_item)
        storage_item = self.accessor.find_child(folder, resolved.storage_name) if folder is not None else None
        folder = self.accessor.open_folder(storage_item)
        if folder is not None and resolved.mode == MODE_MEDIA_ROOT:
            folder = self.accessor.open_folder(self.accessor.find_child(folder, self.media_root_name))
        return folder

    def reopen_folder(self, resolved: ResolvedRoot, folder_name: str) -> Any:
        """Re-acquire a source folder handle by name. Raises FolderVanished."""
        root = self.reopen_root(resolved)
        item = self.accessor.find_child(root, folder_name) if root is not None else None
        folder = self.accessor.open_folder(item)
        if folder is None:
            raise FolderVanished(folder_name)
        return folder

    def _find_device(self, device_pattern: str) -> Any:
        root = self.accessor.provider.root()
        devices = self.accessor.subfolders(root)
        names = [self.accessor.name_of(d) for d in devices]
        logger.debug("Top-level nodes: %s", names)

        wanted = norm_name(device_pattern)
        for item, name in zip(devices, names):
            if wanted and wanted in norm_name(name):
                return item
        try:
            regex = re.compile(device_pattern, re.IGNORECASE)
        except re.error:
            regex = None
        if regex is not None:
            for item, name in zip(devices, names):
                if regex.search(name):
                    return item
        vendor = re.compile(self.vendor_pattern)
        for item, name in zip(devices, names):
            if vendor.search(name):
                logger.warning("No device matches '%s'; falling back to '%s'", device_pattern, name)
                return item
        raise DeviceNotFound(device_pattern, names)

    def _find_storage(self, device_folder: Any, storage_name: str) -> Optional[Any]:
        item = self.accessor.find_child(device_folder, storage_name)
        if item is None:
            item = self.accessor.find_child_matching(device_folder, self.storage_pattern)
        if item is None:
            folders = self.accessor.subfolders(device_folder)
            item = folders[0] if folders else None
        return item

    def _folder_names(self, folder: Any) -> List[str]:
        return sorted(self.accessor.name_of(item) for item in self.accessor.subfolders(folder))
