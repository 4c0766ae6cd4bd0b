#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
In-memory device namespace for exercising the transfer engine.

Simulates the faults seen on real phones: transient empty enumerations,
folders that populate while being listed, copy flags that are silently
ignored, copies that land under a different name or never land, and
folders that disappear mid-run.
"""

from pathlib import Path
from typing import Dict, List, Optional, Set

from media_offload.config import (
    DATE_MODIFIED_FIELD, DATE_TAKEN_FIELD, ITEM_TYPE_FIELD, NAME_FIELD, SIZE_FIELD,
    TransferConfig,
)
from media_offload.namespace.provider import NamespaceProvider


class FakeItem:
    def __init__(self, name: str, is_folder: bool = False, data: bytes = b"",
                 type_text: str = "", date_taken: str = "", date_modified: str = "",
                 size_known: bool = True):
        self.name = name
        self.is_folder = is_folder
        self.data = data
        self.type_text = type_text
        self.date_taken = date_taken
        self.date_modified = date_modified
        self.size_known = size_known
        self.children: List["FakeItem"] = []
        self.hidden: List["FakeItem"] = []
        self.parent: Optional["FakeItem"] = None
        self.locked = False

    def __repr__(self):
        return f"FakeItem({self.name!r})"


class FakeDevice(NamespaceProvider):
    """Scriptable NamespaceProvider. Pass ``tick`` as the engine's sleep."""

    def __init__(self):
        self._root = FakeItem("This PC", is_folder=True)
        self.flaky_empty: Dict[str, int] = {}
        self.ignored_flags: Set[int] = set()
        self.silent_fail: Set[str] = set()
        self.rename_on_copy: Dict[str, str] = {}
        self.copy_delay_ticks = 0
        self.after_copy = None

        self.copy_calls: List[tuple] = []
        self.enumerations: Dict[str, int] = {}
        self.size_reads = 0
        self.ticks = 0
        self._pending: List[tuple] = []

    # -------------------------------------------------------------- building

    def add_folder(self, parent: Optional[FakeItem], name: str) -> FakeItem:
        folder = FakeItem(name, is_folder=True)
        self._attach(parent or self._root, folder)
        return folder

    def add_device(self, name: str = "Apple iPhone", storage: str = "Internal Storage",
                   dcim: bool = True) -> FakeItem:
        """Create device/storage[/DCIM] and return the folder that holds media folders."""
        device = self.add_folder(None, name)
        storage_folder = self.add_folder(device, storage)
        return self.add_folder(storage_folder, "DCIM") if dcim else storage_folder

    def add_file(self, parent: FakeItem, name: str, data: bytes = b"fake image bytes",
                 date_taken: str = "2024:01:15 10:30:00", **kwargs) -> FakeItem:
        item = FakeItem(name, data=data, date_taken=date_taken, **kwargs)
        self._attach(parent, item)
        return item

    def populate_later(self, parent: FakeItem, item: FakeItem) -> None:
        """Item becomes visible one enumeration after it is queued."""
        item.parent = parent
        parent.hidden.append(item)

    def vanish(self, folder: FakeItem) -> None:
        folder.parent.children.remove(folder)

    @staticmethod
    def _attach(parent: FakeItem, item: FakeItem) -> None:
        item.parent = parent
        parent.children.append(item)

    # --------------------------------------------------------------- timing

    def tick(self, seconds: float = 0) -> None:
        self.ticks += 1
        due = [p for p in self._pending if p[0] <= self.ticks]
        self._pending = [p for p in self._pending if p[0] > self.ticks]
        for _, path, data in due:
            path.write_bytes(data)

    # ------------------------------------------------------------- provider

    def root(self):
        return self._root

    def enumerate(self, folder):
        if folder is None:
            return None
        self.enumerations[folder.name] = self.enumerations.get(folder.name, 0) + 1
        if self.flaky_empty.get(folder.name, 0) > 0:
            self.flaky_empty[folder.name] -= 1
            return None
        snapshot = list(folder.children)
        if folder.hidden:
            folder.children.append(folder.hidden.pop(0))
        return snapshot

    def open_folder(self, item):
        if item is None or not item.is_folder or item.locked:
            return None
        return item

    def copy_into(self, dest_dir: Path, item, flags: int) -> None:
        self.copy_calls.append((item.name, flags))
        if flags in self.ignored_flags or item.name in self.silent_fail:
            return
        target = Path(dest_dir) / self.rename_on_copy.get(item.name, item.name)
        if self.copy_delay_ticks:
            self._pending.append((self.ticks + self.copy_delay_ticks, target, item.data))
        else:
            target.write_bytes(item.data)
        if self.after_copy is not None:
            self.after_copy(item)

    def detail_field(self, folder, item, index: int) -> str:
        if index == NAME_FIELD:
            return item.name
        if index == SIZE_FIELD:
            return f"{len(item.data)} bytes"
        if index == ITEM_TYPE_FIELD:
            return "File folder" if item.is_folder else item.type_text
        if index == DATE_MODIFIED_FIELD:
            return item.date_modified
        if index == DATE_TAKEN_FIELD:
            return item.date_taken
        return ""

    def name_of(self, item) -> str:
        return item.name

    def is_folder(self, item) -> bool:
        return item.is_folder

    def size_of(self, item) -> Optional[int]:
        self.size_reads += 1
        return len(item.data) if item.size_known else None


def fast_config(tmp_path: Path, **overrides) -> TransferConfig:
    """TransferConfig rooted in tmp_path with every wait shrunk to (near) zero."""
    values = dict(
        dest_root=tmp_path / "Media",
        staging_root=tmp_path / ".staging",
        checkpoint_path=tmp_path / "offload_checkpoint.json",
        min_free_bytes=0,
        yield_delay=0,
        access_delay=0,
        probe_cooldown=0,
        probe_delay=0,
        poll_interval=0,
        operation_timeout=0.5,
        variant_grace=0.05,
        housekeeping_cooldown=0,
    )
    values.update(overrides)
    return TransferConfig(**values)
