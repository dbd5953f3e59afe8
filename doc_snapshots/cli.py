"""CLI entrypoint for doc-snapshots."""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from doc_snapshots.builder import run_build
from doc_snapshots.config import Settings

_LOGGER_NAME = "doc_snapshots"
_TAGS = {"WARNING": "warn"}


class _SeverityFormatter(logging.Formatter):
    """Prefix each line with a lower-case severity tag (``info: ...``)."""

    def format(self, record: logging.LogRecord) -> str:
        tag = _TAGS.get(record.levelname, record.levelname.lower())
        return f"{tag}: {super().format(record)}"


def configure_logging(verbose: bool = False) -> logging.Logger:
    """Send doc_snapshots logs to stdout, warnings and errors to stderr."""
    level = logging.DEBUG if verbose else logging.INFO
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    # Repeated invocations in one process must not duplicate output.
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    formatter = _SeverityFormatter("%(message)s")

    out = logging.StreamHandler(sys.stdout)
    out.setLevel(level)
    out.addFilter(lambda record: record.levelno < logging.WARNING)
    out.setFormatter(formatter)
    logger.addHandler(out)

    err = logging.StreamHandler(sys.stderr)
    err.setLevel(logging.WARNING)
    err.setFormatter(formatter)
    logger.addHandler(err)
    return logger


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="doc-snapshots",
        description="Generate API documentation snapshots for tracked branches",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s build
  %(prog)s build --force
  BUILD_FORCE=true %(prog)s build --output dist

MAKEFILE_BUILD_FORCE=true is accepted as an alias of BUILD_FORCE=true.
        """,
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    build = subparsers.add_parser("build", help="Build snapshots if any tracked branch moved")
    build.add_argument(
        "--force",
        action="store_true",
        default=False,
        help="Force build even if the published metadata is up to date",
    )
    build.add_argument(
        "--config",
        type=Path,
        default=None,
        help="JSON file listing tracked sources (default: built-in configuration)",
    )
    build.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Output directory (default: $OUTPUT_DIR or ./dist)",
    )
    build.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=args.verbose)

    settings = Settings.from_env()
    if args.config is not None:
        settings.config_path = args.config
    if args.output is not None:
        settings.output_dir = args.output

    if args.command == "build":
        run_build(settings, force=args.force)
    return 0


if __name__ == "__main__":
    sys.exit(main())
