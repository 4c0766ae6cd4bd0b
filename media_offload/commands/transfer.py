#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Transfer command (thin wrapper).
All transfer logic lives in the pipeline; this module picks the namespace
provider, prints the banner and summary, and maps outcomes to exit codes.
"""

import logging
import sys
from typing import Callable, Optional

from ..config import TransferConfig
from ..errors import DeviceNotFound, FatalTransferError, HandleUnavailable
from ..jsonio import error, success
from ..models.transfer import RunSummary
from ..namespace.provider import MountedNamespaceProvider, NamespaceProvider, ShellNamespaceProvider
from ..transfer.pipeline import TransferPipeline
from ..utils.time import utc_now_str

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FILE_FAILURES = 1
EXIT_FATAL = 2


def default_provider(config: TransferConfig) -> NamespaceProvider:
    if config.mount_root is not None:
        return MountedNamespaceProvider(config.mount_root)
    return ShellNamespaceProvider()


class TransferCommand:
    def __init__(self, config: TransferConfig,
                 provider_factory: Callable[[TransferConfig], NamespaceProvider] = default_provider):
        self.config = config
        self.provider_factory = provider_factory

    def execute(self, as_json: bool = False, progress: bool = True) -> int:
        """Run one transfer and return the process exit code."""
        if not as_json:
            self._print_header()

        summary: Optional[RunSummary] = None
        try:
            with self.provider_factory(self.config) as provider:
                pipeline = TransferPipeline(provider, self.config, progress=progress and not as_json)
                summary = pipeline.run()
        except FatalTransferError as e:
            summary = e.summary or RunSummary(aborted=str(e))
            if as_json:
                return error("transfer", str(e), data=summary.to_dict(), code=EXIT_FATAL)
            print(f"\n❌ {e}")
            self._print_help(e)
            self._print_final_stats(summary)
            print("💡 Progress so far is saved; re-run the same command to resume.")
            return EXIT_FATAL

        code = EXIT_FILE_FAILURES if summary.failed else EXIT_OK
        if as_json:
            return success("transfer", summary.to_dict(), code=code)
        self._print_final_stats(summary)
        return code

    def _print_header(self):
        c = self.config
        print("=" * 80)
        print(f"MEDIA OFFLOAD - {utc_now_str()}")
        print("=" * 80)
        print(f"Device: {c.device_pattern} / {c.storage_name}"
              + (f" (mounted at {c.mount_root})" if c.mount_root else ""))
        print(f"Destination: {c.dest_root} ({'flat' if c.flat_layout else 'yyyy/yyyy-MM'})")
        print(f"Staging: {c.staging_root}")
        print(f"Checkpoint: {c.checkpoint_path if c.checkpoint_enabled else 'Disabled'}")
        print(f"Duplicate match: {'name only' if c.by_name_only else 'name + size'}")
        print(f"Timeout: {c.operation_timeout:g}s, min free: {c.min_free_bytes // (1024 ** 2):,} MB")
        print()

    @staticmethod
    def _print_final_stats(summary: RunSummary):
        print("=" * 80)
        print(f"TRANSFER {'ABORTED' if summary.aborted else 'COMPLETED'} - {utc_now_str()}")
        print("=" * 80)
        print(f"  Copied:  {summary.copied:,}" + (f" ({summary.resumed:,} resumed from staging)" if summary.resumed else ""))
        print(f"  Skipped: {summary.skipped:,}")
        print(f"  Failed:  {summary.failed:,}")
        print(f"  Total:   {summary.total:,} in {summary.folders:,} folders")
        print(f"  Elapsed: {summary.elapsed_seconds:.1f}s")
        for failure in summary.failures:
            print(f"  ✗ {failure.filename} -> {failure.destination or '?'}: {failure.message}")

    @staticmethod
    def _print_help(e: FatalTransferError):
        if isinstance(e, (DeviceNotFound, HandleUnavailable)):
            print("How to fix:", file=sys.stderr)
            print("- Unlock the device and accept 'Trust This Computer' / 'Allow access'.", file=sys.stderr)
            print("- Reconnect the cable and check the device appears under 'This PC'.", file=sys.stderr)
            print("- Pass the exact device name with --device.", file=sys.stderr)
        if isinstance(e, DeviceNotFound) and e.available:
            print("Visible devices: " + ", ".join(e.available), file=sys.stderr)
