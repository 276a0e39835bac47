"""
This file contains tests for the exception hierarchy and how errors
propagate out of connections and cursors.
"""

import pytest

import impala_python
from impala_python.exceptions import (
    Error,
    Warning,
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


@pytest.mark.parametrize("exc_class,parent", [
    (InterfaceError, Error),
    (ConnectionClosedError, InterfaceError),
    (CursorClosedError, InterfaceError),
    (CursorExpiredError, CursorClosedError),
    (DatabaseError, Error),
    (OperationalError, DatabaseError),
    (QueryError, OperationalError),
    (ProgrammingError, DatabaseError),
    (InvalidQueryError, ProgrammingError),
    (NotSupportedError, DatabaseError),
    (DataError, DatabaseError),
    (DecodeError, DataError),
    (InvalidBooleanLiteralError, DecodeError),
    (UnknownColumnTypeError, DecodeError),
])
def test_hierarchy(exc_class, parent):
    assert issubclass(exc_class, parent)


def test_warning_is_not_an_error():
    assert not issubclass(Warning, Error)


def test_default_messages():
    assert str(ConnectionClosedError()) == "Connection closed"
    assert str(CursorClosedError()) == "Cursor has expired or been closed"
    assert str(CursorExpiredError()) == "Cursor has expired or been closed"


def test_custom_message():
    error = InvalidQueryError("Empty query")
    assert error.message == "Empty query"
    assert str(error) == "Empty query"


def test_invalid_boolean_literal_keeps_value():
    error = InvalidBooleanLiteralError("maybe")
    assert error.value == "maybe"
    assert str(error) == "Invalid value for boolean: maybe"


def test_unknown_column_type_keeps_name():
    error = UnknownColumnTypeError("decimal")
    assert error.type_name == "decimal"
    assert str(error) == "Unknown type: decimal"


def test_decode_error_leaves_connection_open(make_connection, make_service):
    impala_python.set_buffer_size(1)
    service = make_service(batches=[["1"], ["x"], ["3"]], fields=[("n", "int")])
    conn = make_connection(service)
    cursor = conn.execute("select n from t")
    assert cursor.fetch_row() == {"n": 1}

    with pytest.raises(DecodeError):
        cursor.fetch_row()
    assert len(service.fetch_calls) == 2
    assert conn.is_open() is True
