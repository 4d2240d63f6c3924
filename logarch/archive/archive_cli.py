"""
Command-line interface for the log archiver.

Archives aged log files from a source tree into a compressed archive tree
and removes the originals once their archived copies exist.
"""

import argparse
import logging
import sys
import warnings
from typing import List, Optional

from .archive_config import (
    ArchiveConfigManager,
    ArchiveSettings,
    CRON_SCHEDULES,
    DEFAULT_COMPRESS_LEVEL,
    DEFAULT_LOG_RETENTION_DAYS,
    DEFAULT_RETENTION_DAYS,
)
from .archive_logging import default_log_path, setup_logging
from .archive_manager import create_archive_manager
from .errors import ArchiverEnvironmentError, ConsistencyWarning, ValidationError

logger = logging.getLogger(__name__)

DEFAULT_LOG_DIR = "logs/archiver"

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_INTERRUPTED = 130


def compress_level(value: str) -> int:
    if value not in {str(n) for n in range(1, 10)}:
        raise argparse.ArgumentTypeError("Compression level must be between 1 and 9")
    return int(value)


def non_negative_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected a whole number of days, got {value!r}")
    if number < 0:
        raise argparse.ArgumentTypeError("days must be zero or positive")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="logarch-archive",
        description="Archive and compress log files from source to destination with retention management.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Retention:
  0 = archive all files
  1 = archive files from yesterday and older
  N = archive files older than N-1 days

Pattern placeholders:
  {YYYY}  4-digit year
  {MM}    2-digit month
  {DD}    2-digit day

Examples:
  # Archive syslog partitions older than 6 days
  logarch-archive --src-path /var/syslog --src-pattern "{YYYY}/{MM}/{DD}/*.log" \\
      --dst-path /archives --retention 7 --verbose

  # Preview the same run without touching any file
  logarch-archive --src-path /var/syslog --src-pattern "{YYYY}/{MM}/{DD}/*.log" \\
      --dst-path /archives --retention 7 --dry-run
        """
    )

    parser.add_argument('--config', help='YAML file with an "archive" section of defaults')
    parser.add_argument('--src-path', help='Source root path of log files (required)')
    parser.add_argument('--src-pattern', help='Pattern with {YYYY}, {MM}, {DD} placeholders (required)')
    parser.add_argument('--dst-path', help='Destination path for archives (required)')
    parser.add_argument('--retention', type=non_negative_int, dest='retention_days',
                        help=f'Days to keep logs in source (default: {DEFAULT_RETENTION_DAYS})')
    parser.add_argument('--compress-level', type=compress_level,
                        help=f'Compression level 1-9 (default: {DEFAULT_COMPRESS_LEVEL})')
    parser.add_argument('--dry-run', action='store_true', default=None,
                        help='Simulate operations without making changes')
    parser.add_argument('--log-path', help=f'Log file location (default: {DEFAULT_LOG_DIR}/logs-archiver-<timestamp>.log)')
    parser.add_argument('--no-log', action='store_true', default=None,
                        help='Console output only, no log file')
    parser.add_argument('--verbose', '-v', action='store_true', default=None,
                        help='Enable verbose output')
    parser.add_argument('--log-retention', type=non_negative_int, dest='log_retention_days',
                        help=f'Days to keep script log files (default: {DEFAULT_LOG_RETENTION_DAYS})')
    parser.add_argument('--cron-schedule', choices=CRON_SCHEDULES,
                        help='Create/update a cron job in /etc/cron.d (hourly, daily, weekly)')
    parser.add_argument('--metrics-path', help='Write Prometheus textfile metrics to this path')
    return parser


def load_settings(args: argparse.Namespace) -> ArchiveSettings:
    """Merge the YAML config file and the command-line flags."""
    overrides = {
        'src_path': args.src_path,
        'src_pattern': args.src_pattern,
        'dst_path': args.dst_path,
        'retention_days': args.retention_days,
        'compress_level': args.compress_level,
        'dry_run': args.dry_run,
        'log_path': args.log_path,
        'no_log': args.no_log,
        'verbose': args.verbose,
        'log_retention_days': args.log_retention_days,
        'cron_schedule': args.cron_schedule,
        'metrics_path': args.metrics_path,
    }
    settings = ArchiveConfigManager(args.config).build_settings(overrides)

    if not settings.log_path and not settings.no_log:
        settings = settings.model_copy(update={'log_path': str(default_log_path(DEFAULT_LOG_DIR))})
    return settings


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    # skipped deletions are already in the run log
    warnings.simplefilter("ignore", ConsistencyWarning)

    # console logging until the settings are known
    setup_logging(verbose=bool(args.verbose), no_log=True)

    try:
        settings = load_settings(args)
        setup_logging(settings.verbose, settings.log_path, settings.no_log)
        create_archive_manager(settings).run()
        return EXIT_OK

    except ValidationError as e:
        for message in str(e).split("; "):
            logger.error(message)
        print("Use --help for usage information", file=sys.stderr)
        return EXIT_FAILURE
    except ArchiverEnvironmentError as e:
        logger.error(str(e))
        logger.error("Please install missing tools and try again")
        return EXIT_FAILURE
    except KeyboardInterrupt:
        logger.error("Operation cancelled by user")
        return EXIT_INTERRUPTED


if __name__ == '__main__':
    sys.exit(main())
