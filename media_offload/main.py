#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Main CLI entry point for the Media Offload Tool.
"""

import argparse
import sys
import logging
from pathlib import Path

from .config import TransferConfig, DEFAULT_STAGING_MAX_AGE_HOURS
from .errors import ConfigError
from .commands.transfer import TransferCommand, EXIT_FATAL
from .commands.checkpoint import cmd_checkpoint_info, cmd_checkpoint_forget
from .commands.staging import cmd_purge_staging
from .jsonio import enable_json_logging

_DEFAULTS = TransferConfig()


def setup_logging(verbose: bool):
    """Configure logging for the CLI tool."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)]
    )
    logging.debug("Verbose logging enabled (DEBUG level).")


def create_parser():
    """Create and configure the argument parser."""
    parser = argparse.ArgumentParser(
        description="Media Offload Tool - Resumable photo/video transfer from phones and cameras",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""Examples:
  # Copy everything from the first iPhone into ./Media
  %(prog)s transfer --dest ./Media

  # Named device, only the newest folders, match duplicates by name
  %(prog)s transfer --device "Jane's iPhone" --include-folder "2024*" --by-name-only

  # Transfer from a mounted card; each directory under --mount-root is a device
  # and its subdirectories are storages (here /media/card/DCIM/100CANON/...)
  %(prog)s transfer --mount-root /media --device card --storage DCIM

  # Checkpoint maintenance
  %(prog)s checkpoint-info --json
  %(prog)s checkpoint-forget --folder 202401__ --file IMG_0001.JPG
  %(prog)s purge-staging --max-age-hours 1
        """
    )

    # Global options
    parser.add_argument("--verbose", "-v", action="store_true",
                       help="Enable verbose (DEBUG) output")
    parser.add_argument("--json", action="store_true",
                       help="Output results as JSON instead of human-readable text")

    subparsers = parser.add_subparsers(dest="command", required=True, help="Available commands")

    _add_transfer_parser(subparsers)
    _add_checkpoint_parsers(subparsers)
    _add_staging_parser(subparsers)

    return parser


def _add_transfer_parser(subparsers):
    """Add transfer command parser.

    Defaults are None so that values from --config survive unless overridden.
    """
    p = subparsers.add_parser("transfer", help="Copy media off the device")
    p.add_argument("--config", help="JSON config file (CLI flags override its values)")
    p.add_argument("--device", dest="device_pattern",
                   help=f"Device name or regex (default: {_DEFAULTS.device_pattern})")
    p.add_argument("--storage", dest="storage_name",
                   help=f"Storage node under the device (default: {_DEFAULTS.storage_name})")
    p.add_argument("--mount-root",
                   help="Read from a mounted tree laid out as <root>/<device>/<storage> "
                        "instead of the Windows Shell")
    p.add_argument("--dest", dest="dest_root",
                   help=f"Destination root (default: {_DEFAULTS.dest_root})")
    p.add_argument("--staging", dest="staging_root",
                   help=f"Staging directory (default: {_DEFAULTS.staging_root})")
    p.add_argument("--checkpoint", dest="checkpoint_path",
                   help=f"Checkpoint file (default: {_DEFAULTS.checkpoint_path})")
    p.add_argument("--no-checkpoint", action="store_true",
                   help="Do not read or write the checkpoint file")
    p.add_argument("--by-name-only", action="store_true", default=None,
                   help="Treat a same-name file at the destination as a duplicate regardless of size")
    p.add_argument("--flat", dest="flat_layout", action="store_true", default=None,
                   help="Do not partition the destination by yyyy/yyyy-MM")
    p.add_argument("--strict-extensions", action="store_true", default=None,
                   help="Skip files without a recognizable media extension")
    p.add_argument("--verify-images", action="store_true", default=None,
                   help="Decode staged images with Pillow before the final move")
    p.add_argument("--timeout", dest="operation_timeout", type=float,
                   help=f"Per-file copy confirmation timeout in seconds (default: {_DEFAULTS.operation_timeout:g})")
    p.add_argument("--min-free-mb", type=int,
                   help=f"Abort when free space drops below this (default: {_DEFAULTS.min_free_bytes // (1024 ** 2)})")
    p.add_argument("--include-folder", dest="include_folders", action="append",
                   help="Only process folders matching this glob (repeatable)")
    p.add_argument("--exclude-folder", dest="exclude_folders", action="append",
                   help="Skip folders matching this glob (repeatable)")
    p.add_argument("--max-folders", type=int,
                   help="Process at most N folders (0 = all)")
    p.add_argument("--yield-delay", type=float,
                   help=f"Pause after each file in seconds (default: {_DEFAULTS.yield_delay:g})")
    p.add_argument("--flush-interval", type=int,
                   help=f"Run staging housekeeping every N files (default: {_DEFAULTS.flush_interval})")
    p.add_argument("--no-progress", action="store_true",
                   help="Disable progress bars")
    p.add_argument("--json", action="store_true", default=argparse.SUPPRESS, help="Output as JSON")


def _add_checkpoint_parsers(subparsers):
    """Add checkpoint command parsers."""
    info_parser = subparsers.add_parser("checkpoint-info", help="Show checkpoint contents per folder")
    info_parser.add_argument("--checkpoint", default=str(_DEFAULTS.checkpoint_path),
                             help=f"Checkpoint file (default: {_DEFAULTS.checkpoint_path})")
    info_parser.add_argument("--json", action="store_true", default=argparse.SUPPRESS, help="Output as JSON")

    forget_parser = subparsers.add_parser("checkpoint-forget",
                                          help="Remove entries so they are transferred again")
    forget_parser.add_argument("--checkpoint", default=str(_DEFAULTS.checkpoint_path),
                               help=f"Checkpoint file (default: {_DEFAULTS.checkpoint_path})")
    forget_parser.add_argument("--folder", required=True, help="Source folder name")
    forget_parser.add_argument("--file", dest="filename",
                               help="Single filename to forget (default: whole folder)")
    forget_parser.add_argument("--json", action="store_true", default=argparse.SUPPRESS, help="Output as JSON")


def _add_staging_parser(subparsers):
    """Add staging maintenance parser."""
    purge_parser = subparsers.add_parser("purge-staging", help="Delete stale files from the staging area")
    purge_parser.add_argument("--staging", default=str(_DEFAULTS.staging_root),
                              help=f"Staging directory (default: {_DEFAULTS.staging_root})")
    purge_parser.add_argument("--max-age-hours", type=float, default=DEFAULT_STAGING_MAX_AGE_HOURS,
                              help=f"Remove entries idle longer than this (default: {DEFAULT_STAGING_MAX_AGE_HOURS:g})")
    purge_parser.add_argument("--json", action="store_true", default=argparse.SUPPRESS, help="Output as JSON")


def build_config(args) -> TransferConfig:
    """Defaults, then the JSON config file, then CLI flags."""
    overrides = {
        name: getattr(args, name, None)
        for name in (
            "device_pattern", "storage_name", "mount_root", "dest_root", "staging_root",
            "checkpoint_path", "by_name_only", "flat_layout", "strict_extensions",
            "verify_images", "operation_timeout", "include_folders", "exclude_folders",
            "max_folders", "yield_delay", "flush_interval",
        )
    }
    if getattr(args, "no_checkpoint", False):
        overrides["checkpoint_enabled"] = False
    if getattr(args, "min_free_mb", None) is not None:
        overrides["min_free_bytes"] = args.min_free_mb * 1024 * 1024

    if getattr(args, "config", None):
        return TransferConfig.from_file(Path(args.config), **overrides)
    return TransferConfig(**{k: v for k, v in overrides.items() if v is not None})


def main():
    """Main CLI entry point."""
    parser = create_parser()
    args = parser.parse_args()
    as_json = getattr(args, 'json', False)

    # Setup logging based on --verbose (but suppress if JSON output requested)
    if as_json:
        enable_json_logging()
    else:
        setup_logging(args.verbose)

    logging.debug("Parsed arguments: %s", args)

    try:
        if args.command == "transfer":
            config = build_config(args)
            logging.debug("Effective configuration: %s", config.to_dict())
            code = TransferCommand(config).execute(as_json=as_json, progress=not args.no_progress)

        elif args.command == "checkpoint-info":
            logging.info("Reading checkpoint %s", args.checkpoint)
            code = cmd_checkpoint_info(Path(args.checkpoint), as_json)

        elif args.command == "checkpoint-forget":
            logging.info("Forgetting %s/%s", args.folder, args.filename or "*")
            code = cmd_checkpoint_forget(Path(args.checkpoint), args.folder, args.filename, as_json)

        elif args.command == "purge-staging":
            logging.info("Purging staging entries older than %gh", args.max_age_hours)
            code = cmd_purge_staging(Path(args.staging), args.max_age_hours, as_json)

    except KeyboardInterrupt:
        if as_json:
            from .jsonio import error
            error(args.command, "Operation interrupted by user", code=130)
        else:
            logging.warning("Operation interrupted by user.")
            if args.command == "transfer":
                print("💡 Completed files are in the checkpoint; re-run to resume.")
        sys.exit(130)
    except ConfigError as e:
        if as_json:
            from .jsonio import error
            error(args.command, str(e), code=EXIT_FATAL)
        else:
            logging.error("Configuration error: %s", e)
        sys.exit(EXIT_FATAL)
    except Exception as e:
        if as_json:
            from .jsonio import error
            debug_info = {"exception_type": type(e).__name__} if args.verbose else None
            error(args.command, str(e), debug=debug_info, code=1)
        else:
            logging.error("Error occurred: %s", e, exc_info=args.verbose)
        sys.exit(1)

    sys.exit(code)


if __name__ == "__main__":
    main()
