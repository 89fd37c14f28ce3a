"""
Configuration loading.

The configuration file is TOML with two tables, ``[gmail]`` for the mailbox
side and ``[headline]`` for the export side. Relative paths are resolved
against the directory that holds the configuration file.
"""

import os
import tomllib
from dataclasses import dataclass, field
from typing import Any, Dict, Tuple

from .errors import ConfigError
from .gmail_client import MAX_BATCH_IDS

DEFAULT_CONFIG_PATH = "gmail-headline.toml"


@dataclass(frozen=True)
class Config:
    credentials_file: str
    output_file: str
    token_file: str = "token.json"
    user: str = "me"
    retrieve_conditions: Tuple[str, ...] = field(default_factory=tuple)
    delete_conditions: Tuple[str, ...] = field(default_factory=tuple)
    skip_labels: Tuple[str, ...] = field(default_factory=tuple)
    limit: int = 100


def _table(data: Dict[str, Any], name: str) -> Dict[str, Any]:
    table = data.get(name, {})
    if not isinstance(table, dict):
        raise ConfigError(f"[{name}] must be a table")
    return table


def _string(table: Dict[str, Any], section: str, key: str, default=None) -> str:
    value = table.get(key, default)
    if value is None:
        raise ConfigError(f"{section}.{key} is required")
    if not isinstance(value, str) or not value:
        raise ConfigError(f"{section}.{key} must be a non-empty string")
    return value


def _string_list(table: Dict[str, Any], section: str, key: str) -> Tuple[str, ...]:
    value = table.get(key, [])
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ConfigError(f"{section}.{key} must be a list of strings")
    return tuple(value)


def parse_config(data: Dict[str, Any], base_dir: str = ".") -> Config:
    """
    Build a Config from an already-decoded TOML document.

    Args:
        data: Decoded TOML mapping
        base_dir: Directory that relative file paths are resolved against
    """
    gmail = _table(data, "gmail")
    headline = _table(data, "headline")

    limit = headline.get("limit", 100)
    # bool is a subclass of int, and `limit = true` is certainly a mistake
    if isinstance(limit, bool) or not isinstance(limit, int):
        raise ConfigError("headline.limit must be an integer")
    if limit < 0:
        raise ConfigError("headline.limit must not be negative")
    if limit > MAX_BATCH_IDS:
        raise ConfigError(f"headline.limit must not exceed {MAX_BATCH_IDS}")

    def resolve(path: str) -> str:
        return os.path.normpath(os.path.join(base_dir, os.path.expanduser(path)))

    return Config(
        credentials_file=resolve(_string(gmail, "gmail", "credentials_file")),
        token_file=resolve(_string(gmail, "gmail", "token_file", "token.json")),
        user=_string(gmail, "gmail", "user", "me"),
        retrieve_conditions=_string_list(gmail, "gmail", "retrieve_conditions"),
        delete_conditions=_string_list(gmail, "gmail", "delete_conditions"),
        skip_labels=_string_list(gmail, "gmail", "skip_labels"),
        limit=limit,
        output_file=resolve(_string(headline, "headline", "output_file")),
    )


def load_config(path: str = DEFAULT_CONFIG_PATH) -> Config:
    """Read and validate the configuration file at ``path``"""
    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except OSError as e:
        raise ConfigError(f"Unable to read config file {path}: {e}") from e
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Unable to parse config file {path}: {e}") from e

    return parse_config(data, base_dir=os.path.dirname(os.path.abspath(path)))
