#!/usr/bin/env python3
"""
Command line entry point: ``gmail-headline`` / ``python -m gmailheadline``.

Exits 0 when the run completes (including when nothing matched) and 1 on
any fatal error, after printing which stage failed and why.
"""

import argparse
import logging
import sys
from typing import List, Optional

from .config import DEFAULT_CONFIG_PATH, load_config
from .errors import ConfigError, HeadlineError
from .headline import run

logger = logging.getLogger("gmailheadline")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gmail-headline",
        description="Export Gmail message headers to a JSON Lines file, mark them read, and delete unwanted mail.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("-c", "--config", default=DEFAULT_CONFIG_PATH, help="Path to the TOML configuration file")
    parser.add_argument("--dry-run", action="store_true",
                        help="Export as usual but only log the mark-read and delete requests")
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("-v", "--verbose", action="store_true", help="Log debug output")
    verbosity.add_argument("-q", "--quiet", action="store_true", help="Only log warnings and errors")
    return parser


def setup_logging(verbose: bool = False, quiet: bool = False) -> None:
    level = logging.INFO
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose, args.quiet)

    try:
        config = load_config(args.config)
        result = run(config, dry_run=args.dry_run)
    except ConfigError as e:
        logger.error("Configuration error: %s", e)
        return 1
    except HeadlineError as e:
        logger.error("%s failed during %s stage: %s", type(e).__name__, e.stage or "unknown", e)
        return 1

    logger.info(
        "Run complete: %d exported, %d skipped, %d failed, %d marked read, %d deleted%s",
        result.retrieved,
        len(result.retrieval.skipped),
        len(result.retrieval.failed),
        result.marked_read,
        sum(result.deleted.values()),
        " (dry run)" if result.dry_run else "",
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
