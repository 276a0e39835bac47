"""
Copyright (c) Microsoft Corporation.
Licensed under the MIT license.
This module provides helper functions and package settings for impala_python.
"""

import threading
from typing import Any, Dict, List, Optional, Tuple

from impala_python.exceptions import InvalidQueryError
from impala_python.logging import logger


DEFAULT_BUFFER_SIZE = 1024

# Leading keywords accepted when command validation is enabled
KNOWN_COMMANDS: Tuple[str, ...] = (
    "alter",
    "compute",
    "create",
    "delete",
    "describe",
    "drop",
    "explain",
    "insert",
    "invalidate",
    "load",
    "refresh",
    "select",
    "set",
    "show",
    "truncate",
    "update",
    "upsert",
    "use",
    "values",
    "with",
)


def log(level: str, message: str, *args) -> None:
    """
    Universal logging helper.

    Args:
        level: Log level ('debug', 'info', 'warning', 'error')
        message: Log message with optional format placeholders
        *args: Arguments for message formatting
    """
    getattr(logger, level)(message, *args)


class Settings:
    """
    Global settings for the impala_python package.

    buffer_size is both the number of rows requested per fetch and the
    number of buffered rows at which a cursor stops fetching ahead.
    validate_commands turns the leading-keyword whitelist on or off.
    """

    def __init__(self) -> None:
        self.buffer_size: int = DEFAULT_BUFFER_SIZE
        self.validate_commands: bool = True
        self.known_commands: Tuple[str, ...] = KNOWN_COMMANDS


_settings: Settings = Settings()
_settings_lock: threading.Lock = threading.Lock()


def get_settings() -> Settings:
    """Return the global settings object"""
    with _settings_lock:
        return _settings


def set_buffer_size(size: int) -> None:
    """
    Set the number of rows fetched per round trip.

    Raises:
        ValueError: If size is not a positive integer.
    """
    if isinstance(size, bool) or not isinstance(size, int) or size <= 0:
        raise ValueError("buffer size must be a positive integer")
    with _settings_lock:
        _settings.buffer_size = size
    log('info', "Buffer size set to %d rows", size)


def get_buffer_size() -> int:
    return get_settings().buffer_size


def set_command_validation(enabled: bool, commands: Optional[List[str]] = None) -> None:
    """
    Configure how query text is checked before it is sent.

    Args:
        enabled: If False, any non-empty query text is accepted.
        commands: Optional replacement for the whitelist of leading keywords.
    """
    with _settings_lock:
        _settings.validate_commands = bool(enabled)
        if commands is not None:
            _settings.known_commands = tuple(c.lower() for c in commands)
    log('info', "Command validation %s", "enabled" if enabled else "disabled")


def sanitize_query(raw_query: str, settings: Optional[Settings] = None) -> str:
    """
    Validate query text and normalize it before submission.

    The leading command is lowercased and runs of whitespace are collapsed
    to single spaces.

    Raises:
        InvalidQueryError: If the query is empty, or its leading command is
            not whitelisted while validation is enabled.
    """
    settings = settings or get_settings()
    if not isinstance(raw_query, str):
        raise InvalidQueryError(f"Query must be a string, got {type(raw_query).__name__}")

    words = raw_query.split()
    if not words:
        raise InvalidQueryError("Empty query")

    command = words[0].lower()
    if settings.validate_commands and command not in settings.known_commands:
        raise InvalidQueryError(f"Unrecognized command: '{words[0]}'")

    return " ".join([command] + words[1:])


def _option_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def build_configuration(options: Optional[Dict[str, Any]]) -> List[str]:
    """
    Serialize query options into the 'key=value' strings the server expects.

    Returns an empty list when there are no options.
    """
    if not options:
        return []
    return [f"{key}={_option_value(value)}" for key, value in options.items()]
