"""
Copyright (c) Microsoft Corporation.
Licensed under the MIT license.
This module initializes the impala_python package.
"""

import atexit
import threading
import weakref

# Client version
__version__ = "0.1.0"

# Exceptions
from .exceptions import (
    Warning,
    Error,
    InterfaceError,
    ConnectionClosedError,
    CursorClosedError,
    CursorExpiredError,
    DatabaseError,
    OperationalError,
    QueryError,
    ProgrammingError,
    InvalidQueryError,
    NotSupportedError,
    DataError,
    DecodeError,
    InvalidBooleanLiteralError,
    UnknownColumnTypeError,
)

# Types and schema
from .type import TypeTag, FieldSchema, Schema, Timestamp, TimestampFromTicks
from .row import Row
from .decoder import decode_row, decode_value

# Settings
from .helpers import (
    Settings,
    get_settings,
    set_buffer_size,
    get_buffer_size,
    set_command_validation,
    KNOWN_COMMANDS,
)

# Connection and cursor objects
from .service import ServiceAccessor, TRANSPORT_ERRORS, is_transport_error, open_transport
from .cursor import Cursor
from .connection import Connection
from .db_connection import connect

# Logging
from .logging import logger, setup_logging

# Connections opened through connect(), closed at interpreter exit
_active_connections = weakref.WeakSet()
_connections_lock = threading.Lock()


def _register_connection(conn):
    """Register a connection for cleanup before shutdown."""
    with _connections_lock:
        _active_connections.add(conn)


def _cleanup_connections():
    """
    Close every registered connection that is still open, so that query
    handles and sockets are released before the interpreter finalizes.
    """
    with _connections_lock:
        connections_to_close = list(_active_connections)

    for conn in connections_to_close:
        try:
            if conn.is_open():
                conn.close()
        except Exception as e:
            try:
                logger.error(
                    "Error during connection cleanup at shutdown: %s: %s", type(e).__name__, e
                )
            except Exception:
                # Logging may already be torn down at shutdown
                pass


atexit.register(_cleanup_connections)

# GLOBALS
# Read-Only
apilevel: str = "2.0"
threadsafety: int = 1
# No paramstyle: queries are sent as plain text without parameter binding
