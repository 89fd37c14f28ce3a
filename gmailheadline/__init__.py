#!/usr/bin/env python3
"""
gmail-headline - Scheduled Gmail triage

Pulls messages matching configured Gmail searches, appends a header-only
excerpt of each one to a JSON Lines file, marks the exported messages read,
and deletes messages matching a second set of searches.

Main Components:
- GmailClient: OAuth session plus the search / fetch / batch calls
- extract_excerpt: Raw message to header map + metadata
- JsonLinesStorage: Append-only export file
- retrieve, mark_read, delete_matching: The three pipeline stages
- run: One complete run driven by a Config

Usage:
    from gmailheadline import load_config, run

    config = load_config("gmail-headline.toml")
    result = run(config)
    print(f"Exported {result.retrieved} messages")
"""

from .config import Config, load_config, parse_config
from .errors import (
    HeadlineError,
    ConfigError,
    CredentialError,
    SinkError,
    RemoteError
)
from .excerpt import MessageExcerpt, extract_excerpt
from .storage import ExcerptStorage, JsonLinesStorage
from .gmail_client import GmailClient
from .dummy_client import DummyClient, make_message
from .headline import (
    RetrievalResult,
    RunResult,
    retrieve,
    mark_read,
    delete_matching,
    run
)

__all__ = [
    # Configuration
    'Config',
    'load_config',
    'parse_config',

    # Errors
    'HeadlineError',
    'ConfigError',
    'CredentialError',
    'SinkError',
    'RemoteError',

    # Excerpts and export
    'MessageExcerpt',
    'extract_excerpt',
    'ExcerptStorage',
    'JsonLinesStorage',

    # Email clients
    'GmailClient',
    'DummyClient',
    'make_message',

    # Pipeline
    'RetrievalResult',
    'RunResult',
    'retrieve',
    'mark_read',
    'delete_matching',
    'run',
]
