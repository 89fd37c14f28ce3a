#!/usr/bin/env python3
"""
Example: a dry run against the configuration in this directory
"""

import logging
import os

from gmailheadline import load_config, run


def main():
    logging.basicConfig(level=logging.INFO)

    config = load_config(os.path.join(os.path.dirname(__file__), "gmail-headline.toml"))

    # Nothing is marked read or deleted in a dry run
    result = run(config, dry_run=True)

    print(f"📬 Exported {result.retrieved} messages to {config.output_file}")
    for query, count in result.deleted.items():
        print(f"🗑  {query}: {count} would be deleted")


if __name__ == "__main__":
    main()
