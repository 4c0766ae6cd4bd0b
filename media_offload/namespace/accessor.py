#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Retrying access to an unreliable device namespace.
"""

import logging
import re
import time
from typing import Any, Callable, List, Optional

from ..config import DEFAULT_ACCESS_ATTEMPTS, DEFAULT_ACCESS_DELAY
from .provider import NamespaceProvider

logger = logging.getLogger(__name__)


def norm_name(name: str) -> str:
    """Case-fold a device-reported name and unify curly apostrophes."""
    return str(name).strip().lower().replace("\u2019", "'").replace("\u2018", "'")


class NamespaceAccessor:
    """Wraps enumerate/open with bounded retry.

    The provider intermittently returns empty or null results for valid
    folders, so a single empty answer is never trusted. After all attempts
    ``list_items`` returns an empty list and ``open_folder`` returns None;
    neither raises.
    """

    def __init__(self, provider: NamespaceProvider,
                 attempts: int = DEFAULT_ACCESS_ATTEMPTS,
                 delay: float = DEFAULT_ACCESS_DELAY,
                 sleep: Callable[[float], None] = time.sleep):
        self.provider = provider
        self.attempts = max(1, attempts)
        self.delay = delay
        self._sleep = sleep

    def list_items(self, folder: Any) -> List[Any]:
        """Enumerate a folder, retrying empty/null/erroring results."""
        if folder is None:
            return []
        for attempt in range(1, self.attempts + 1):
            try:
                items = self.provider.enumerate(folder)
            except Exception as e:
                logger.debug("Enumeration attempt %d/%d raised: %s", attempt, self.attempts, e)
                items = None
            if items is not None:
                snapshot = [item for item in items if item is not None]
                if snapshot:
                    return snapshot
            if attempt < self.attempts:
                self._sleep(self.delay)
        logger.debug("Enumeration still empty after %d attempts", self.attempts)
        return []

    def open_folder(self, item: Any) -> Optional[Any]:
        """Open a folder item, retrying null handles."""
        if item is None:
            return None
        for attempt in range(1, self.attempts + 1):
            try:
                folder = self.provider.open_folder(item)
            except Exception as e:
                logger.debug("Open attempt %d/%d raised: %s", attempt, self.attempts, e)
                folder = None
            if folder is not None:
                return folder
            if attempt < self.attempts:
                self._sleep(self.delay)
        return None

    def name_of(self, item: Any) -> str:
        try:
            return self.provider.name_of(item)
        except Exception as e:
            logger.debug("Could not read item name: %s", e)
            return ""

    def is_folder(self, item: Any) -> bool:
        try:
            return self.provider.is_folder(item)
        except Exception as e:
            logger.debug("Could not read folder flag: %s", e)
            return False

    def size_of(self, item: Any) -> Optional[int]:
        try:
            return self.provider.size_of(item)
        except Exception as e:
            logger.debug("Could not read item size: %s", e)
            return None

    def detail(self, folder: Any, item: Any, index: int) -> str:
        try:
            return self.provider.detail_field(folder, item, index) or ""
        except Exception as e:
            logger.debug("Detail field %d unavailable: %s", index, e)
            return ""

    def subfolders(self, folder: Any) -> List[Any]:
        return [item for item in self.list_items(folder) if self.is_folder(item)]

    def files(self, folder: Any) -> List[Any]:
        return [item for item in self.list_items(folder) if not self.is_folder(item)]

    def find_child(self, folder: Any, name: str, folders_only: bool = True) -> Optional[Any]:
        """Find a child item by exact (normalized) name."""
        wanted = norm_name(name)
        for item in self.list_items(folder):
            if folders_only and not self.is_folder(item):
                continue
            if norm_name(self.name_of(item)) == wanted:
                return item
        return None

    def find_child_matching(self, folder: Any, pattern: str, folders_only: bool = True) -> Optional[Any]:
        """Find the first child whose name matches a regular expression."""
        regex = re.compile(pattern)
        for item in self.list_items(folder):
            if folders_only and not self.is_folder(item):
                continue
            if regex.search(self.name_of(item)):
                return item
        return None
