#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Stability probe: wait out asynchronous population of a device folder.
"""

import logging
import time
from typing import Any, Callable, Optional

from ..config import (
    DEFAULT_PREWARM_DEPTH, DEFAULT_PROBE_COOLDOWN, DEFAULT_PROBE_DELAY,
    DEFAULT_PROBE_ROUNDS, PROBE_DETAIL_FIELDS,
)
from .accessor import NamespaceAccessor

logger = logging.getLogger(__name__)


class StabilityProbe:
    """Enumerates a folder until its item count stops changing.

    Best effort: after ``max_rounds`` the last observed count is returned
    even if it never settled.
    """

    def __init__(self, accessor: NamespaceAccessor,
                 max_rounds: int = DEFAULT_PROBE_ROUNDS,
                 cooldown: float = DEFAULT_PROBE_COOLDOWN,
                 round_delay: float = DEFAULT_PROBE_DELAY,
                 prewarm_depth: int = DEFAULT_PREWARM_DEPTH,
                 touch_details: bool = True,
                 sleep: Callable[[float], None] = time.sleep):
        self.accessor = accessor
        self.max_rounds = max(1, max_rounds)
        self.cooldown = cooldown
        self.round_delay = round_delay
        self.prewarm_depth = prewarm_depth
        self.touch_details = touch_details
        self._sleep = sleep

    def settle(self, folder: Any, depth: Optional[int] = None) -> int:
        """Return the item count of ``folder`` once two consecutive rounds agree."""
        depth = self.prewarm_depth if depth is None else depth
        previous = None
        count = 0
        items = []
        for round_no in range(1, self.max_rounds + 1):
            items = self.accessor.list_items(folder)
            count = len(items)
            if self.touch_details:
                # Reading every column forces the provider to materialise metadata
                for item in items:
                    for index in PROBE_DETAIL_FIELDS:
                        self.accessor.detail(folder, item, index)
                self._sleep(self.cooldown)
            if previous is not None and count == previous:
                logger.debug("Folder settled at %d items after %d rounds", count, round_no)
                break
            previous = count
            if not self.touch_details and round_no < self.max_rounds:
                self._sleep(self.round_delay)
        else:
            logger.debug("Folder did not settle after %d rounds (last count %d)", self.max_rounds, count)

        if depth > 0:
            for item in items:
                if not self.accessor.is_folder(item):
                    continue
                sub = self.accessor.open_folder(item)
                if sub is not None:
                    self.settle(sub, depth - 1)
        return count
