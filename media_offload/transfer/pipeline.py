#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Transfer pipeline for the Media Offload Tool.
Walks the device folders and moves each file through staging to its
final destination, recording every success in the checkpoint.
"""

import fnmatch
import gc
import glob
import logging
import os
import shutil
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Tuple

from tqdm import tqdm

from ..checkpoint.manager import CheckpointStore
from ..config import TransferConfig
from ..errors import (
    DeviceUnavailable, FatalTransferError, FolderVanished, StagingConfirmationTimeout,
    StagingVerificationError,
)
from ..models.transfer import FileState, FileTransfer, RunSummary, SourceFolderView
from ..namespace.accessor import NamespaceAccessor
from ..namespace.probe import StabilityProbe
from ..namespace.provider import NamespaceProvider
from ..namespace.resolver import DeviceRootResolver, ResolvedRoot
from ..storage.drive import DriveManager
from ..utils.path import ensure_dir, unique_path
from .classifier import Classifier
from .guard import PROMOTE, SKIP, DuplicateGuard
from .staging import StagingArea

logger = logging.getLogger(__name__)


@dataclass
class TransferRun:
    """Mutable state scoped to one run of the pipeline."""
    summary: RunSummary = field(default_factory=RunSummary)
    started: float = field(default_factory=time.perf_counter)
    empty_streak: List[str] = field(default_factory=list)
    processed: int = 0

    def finish(self) -> RunSummary:
        self.summary.elapsed_seconds = time.perf_counter() - self.started
        return self.summary


class TransferPipeline:
    """Orchestrates device folder walking, staging, final moves and checkpoints.

    Single-threaded. Safe to re-run at any time: the checkpoint record and
    the destination/staging checks make a repeated run skip completed files.
    """

    def __init__(self, provider: NamespaceProvider, config: TransferConfig,
                 progress: bool = True,
                 sleep: Callable[[float], None] = time.sleep):
        self.config = config
        self.progress = progress
        self._sleep = sleep

        self.accessor = NamespaceAccessor(provider, config.access_attempts, config.access_delay, sleep=sleep)
        self.probe = StabilityProbe(
            self.accessor,
            max_rounds=config.probe_rounds,
            cooldown=config.probe_cooldown,
            round_delay=config.probe_delay,
            prewarm_depth=config.prewarm_depth,
            sleep=sleep,
        )
        self.resolver = DeviceRootResolver(self.accessor)
        self.checkpoint = CheckpointStore(config.checkpoint_path, config.checkpoint_enabled)
        self.guard = DuplicateGuard(self.checkpoint, by_name_only=config.by_name_only)
        self.classifier = Classifier(self.accessor)
        self.staging = StagingArea(
            config.staging_root,
            provider,
            poll_interval=config.poll_interval,
            timeout=config.operation_timeout,
            variant_grace=config.variant_grace,
            verify_images=config.verify_images,
            sleep=sleep,
        )

    # ------------------------------------------------------------------ run

    def run(self) -> RunSummary:
        """Transfer everything. Fatal errors propagate with the partial summary attached."""
        run = TransferRun()
        ensure_dir(self.config.dest_root)
        ensure_dir(self.config.staging_root)
        self.checkpoint.load()

        try:
            resolved = self.resolver.resolve(self.config.device_pattern, self.config.storage_name)
            folders = self.select_folders(resolved.candidates)
            if not folders:
                logger.warning("No source folders to process under %s\\%s",
                               resolved.device_name, resolved.storage_name)
            for folder_name in folders:
                self.process_folder(run, resolved, folder_name)
        except FatalTransferError as e:
            run.summary.aborted = str(e)
            e.summary = run.finish()
            logger.error("Run aborted: %s", e)
            raise

        return run.finish()

    def select_folders(self, names: List[str]) -> List[str]:
        """Apply the include/exclude patterns and the folder count cap."""
        selected = []
        for name in sorted(names):
            lowered = name.lower()
            if self.config.include_folders and not any(
                    fnmatch.fnmatch(lowered, pat.lower()) for pat in self.config.include_folders):
                continue
            if any(fnmatch.fnmatch(lowered, pat.lower()) for pat in self.config.exclude_folders):
                continue
            selected.append(name)
        if self.config.max_folders and self.config.max_folders > 0:
            selected = selected[:self.config.max_folders]
        return selected

    # --------------------------------------------------------------- folder

    def discover(self, resolved: ResolvedRoot, folder_name: str) -> Tuple[SourceFolderView, Dict[str, Any]]:
        """Open a folder by name, let it settle and list its files.

        Returns the view and the item handles keyed by name.
        """
        try:
            handle = self.resolver.reopen_folder(resolved, folder_name)
        except FolderVanished:
            logger.warning("Could not open folder %s", folder_name)
            return SourceFolderView(folder_name, None, []), {}

        self.probe.settle(handle)
        items = {}
        for item in self.accessor.files(handle):
            name = self.accessor.name_of(item)
            if name:
                items[name] = item
        return SourceFolderView(folder_name, handle, list(items)), items

    def process_folder(self, run: TransferRun, resolved: ResolvedRoot, folder_name: str) -> None:
        view, items = self.discover(resolved, folder_name)

        if not view.filenames:
            run.empty_streak.append(folder_name)
            logger.warning("Folder %s yielded no files (%d in a row)", folder_name, len(run.empty_streak))
            if len(run.empty_streak) >= self.config.empty_folder_limit:
                raise DeviceUnavailable(run.empty_streak)
            return
        run.empty_streak.clear()
        run.summary.folders += 1
        logger.info("Folder %s: %d files", folder_name, len(view.filenames))

        names = tqdm(view.filenames, desc=folder_name, unit="file", leave=False,
                     disable=not self.progress)
        for index, device_name in enumerate(names):
            try:
                transfer = self.process_file(resolved, view, device_name, items.get(device_name))
            except FolderVanished as e:
                logger.error("%s; failing %d remaining files", e, len(view.filenames) - index)
                for remaining in view.filenames[index:]:
                    lost = FileTransfer(folder_name, remaining, remaining)
                    lost.fail(str(e))
                    self._finish_file(run, lost)
                break
            self._finish_file(run, transfer)

    # ----------------------------------------------------------------- file

    def process_file(self, resolved: ResolvedRoot, view: SourceFolderView,
                     device_name: str, item: Any) -> FileTransfer:
        """Drive one file from Discovered to a terminal state.

        Raises FolderVanished when the source folder cannot be re-opened.
        """
        handle = view.handle
        filename, note = self.classifier.resolve_filename(
            handle, item, device_name, strict=self.config.strict_extensions)
        transfer = FileTransfer(view.name, device_name, filename or device_name)
        if filename is None:
            transfer.skip(note)
            return transfer
        if note:
            logger.debug("%s: %s", device_name, note)
        if self.guard.already_recorded(transfer):
            # Before any device metadata reads
            transfer.skip("already recorded in checkpoint")
            return transfer

        transfer.kind = self.classifier.classify(filename)
        transfer.source_size = self.accessor.size_of(item)
        device_date = self.classifier.device_date(handle, item)
        transfer.destination = self._planned_destination(transfer, device_date)

        try:
            self._stage(resolved, view, transfer, device_date)
            if transfer.state == FileState.STAGED_CONFIRMED:
                self._move_to_destination(transfer, device_date)
        except (StagingConfirmationTimeout, StagingVerificationError) as e:
            transfer.fail(str(e))
        except OSError as e:
            transfer.fail(f"{type(e).__name__}: {e}")
        return transfer

    def _stage(self, resolved: ResolvedRoot, view: SourceFolderView,
               transfer: FileTransfer, device_date) -> None:
        staging_dir = self.staging.dir_for(transfer.kind)
        decision = self.guard.evaluate(
            transfer, self._destination_candidates(transfer, device_date), staging_dir)

        if decision.action == SKIP:
            if decision.path is not None:
                transfer.destination = decision.path
            transfer.skip(decision.reason)
            return
        if decision.action == PROMOTE:
            transfer.staged_path = decision.path
            transfer.resumed = True
            transfer.advance(FileState.STAGED_CONFIRMED)
            return

        DriveManager.ensure_free_space(self.config.staging_root, self.config.min_free_bytes)
        DriveManager.ensure_free_space(self.config.dest_root, self.config.min_free_bytes)

        # Never trust the discovery handle for the copy itself
        fresh = self.resolver.reopen_folder(resolved, view.name)
        item = self.accessor.find_child(fresh, transfer.device_name, folders_only=False)
        if item is None:
            transfer.fail("no longer listed on device")
            return

        transfer.advance(FileState.STAGED_COPY_ISSUED)
        transfer.staged_path = self.staging.copy_and_confirm(transfer, item)
        transfer.advance(FileState.STAGED_CONFIRMED)

    def _move_to_destination(self, transfer: FileTransfer, device_date) -> None:
        when = self.classifier.resolve_date(device_date, transfer.staged_path, transfer.kind)
        dest_dir = self.classifier.destination_dir(
            self.config.dest_root, transfer.kind, when, self.config.flat_layout)
        ensure_dir(dest_dir)

        target = dest_dir / transfer.filename
        if target.exists():
            if target.stat().st_size == transfer.staged_path.stat().st_size:
                logger.debug("Replacing same-size %s", target)
            else:
                target = unique_path(dest_dir, transfer.filename)
        transfer.destination = target

        shutil.move(str(transfer.staged_path), str(target))
        self.checkpoint.record_and_flush(transfer.folder_name, transfer.filename)
        transfer.advance(FileState.FINAL_MOVED)

    def _planned_destination(self, transfer: FileTransfer, device_date) -> Path:
        dest_dir = self.classifier.destination_dir(
            self.config.dest_root, transfer.kind, device_date, self.config.flat_layout)
        return dest_dir / transfer.filename

    def _destination_candidates(self, transfer: FileTransfer, device_date) -> List[Path]:
        if self.config.flat_layout or device_date is not None:
            return [self._planned_destination(transfer, device_date)]
        # Date unknown before staging: any partition may hold it
        kind_root = self.classifier.kind_subroot(self.config.dest_root, transfer.kind)
        pattern = os.path.join(glob.escape(str(kind_root)), "*", "*", glob.escape(transfer.filename))
        return [Path(p) for p in sorted(glob.glob(pattern))]

    # --------------------------------------------------------- bookkeeping

    def _finish_file(self, run: TransferRun, transfer: FileTransfer) -> None:
        run.summary.count(transfer)
        if transfer.state == FileState.FINAL_MOVED:
            logger.info("%s %s -> %s", "Resumed" if transfer.resumed else "Copied",
                        transfer.filename, transfer.destination)
        elif transfer.state == FileState.SKIPPED_DUPLICATE:
            logger.debug("Skipped %s: %s", transfer.filename, transfer.message)
        else:
            logger.error("Failed %s -> %s: %s", transfer.filename, transfer.destination, transfer.message)

        run.processed += 1
        if self.config.flush_interval > 0 and run.processed % self.config.flush_interval == 0:
            self.housekeeping()
        if self.config.yield_delay > 0:
            self._sleep(self.config.yield_delay)

    def housekeeping(self) -> int:
        removed = self.staging.purge(self.config.staging_max_age_hours * 3600)
        gc.collect()
        if self.config.housekeeping_cooldown > 0:
            self._sleep(self.config.housekeeping_cooldown)
        return removed
