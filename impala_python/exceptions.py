"""
Copyright (c) Microsoft Corporation.
Licensed under the MIT license.
This module defines the exception hierarchy for the impala_python package.
Transport failures are not part of it: the Thrift or socket exception is
propagated as-is after the owning connection has been closed.
"""


class Error(Exception):
    """
    Base class for errors.
    This is the base class for all error-related exceptions raised by this
    package. Catch it to handle any client-side or server-reported failure.
    """

    def __init__(self, message="An error occurred") -> None:
        self.message = message
        super().__init__(self.message)


class Warning(Exception):
    """
    Base class for warnings.
    Used to report conditions that do not stop the operation.
    """

    def __init__(self, message="A warning occurred") -> None:
        self.message = message
        super().__init__(self.message)


class InterfaceError(Error):
    """
    Error related to the client interface rather than the server.
    Raised for misuse of connections and cursors.
    """

    def __init__(self, message="An interface error occurred") -> None:
        super().__init__(message)


class ConnectionClosedError(InterfaceError):
    """
    An operation was attempted on a connection that is not open.
    The caller must reopen the connection with open() before retrying.
    """

    def __init__(self, message="Connection closed") -> None:
        super().__init__(message)


class CursorClosedError(InterfaceError):
    """
    An operation was attempted on a cursor that was closed before its
    result set was exhausted.
    """

    def __init__(self, message="Cursor has expired or been closed") -> None:
        super().__init__(message)


class CursorExpiredError(CursorClosedError):
    """
    The server no longer recognizes the query handle behind a cursor.
    """

    def __init__(self, message="Cursor has expired or been closed") -> None:
        super().__init__(message)


class DatabaseError(Error):
    """
    Base class for errors reported by, or about data coming from, the server.
    """

    def __init__(self, message="A database error occurred") -> None:
        super().__init__(message)


class OperationalError(DatabaseError):
    """
    Error related to the server's operation.
    """

    def __init__(self, message="An operational error occurred") -> None:
        super().__init__(message)


class QueryError(OperationalError):
    """
    The server rejected a query submission or a metadata request.
    The server's own exception is available as __cause__.
    """

    def __init__(self, message="The server rejected the request") -> None:
        super().__init__(message)


class ProgrammingError(DatabaseError):
    """
    Error related to programming errors such as malformed queries.
    """

    def __init__(self, message="A programming error occurred") -> None:
        super().__init__(message)


class InvalidQueryError(ProgrammingError):
    """
    Query text failed local validation: it was empty, or its leading
    command is not on the whitelist.
    """

    def __init__(self, message="Invalid query") -> None:
        super().__init__(message)


class NotSupportedError(DatabaseError):
    """
    An unsupported operation was attempted.
    """

    def __init__(self, message="Operation not supported") -> None:
        super().__init__(message)


class DataError(DatabaseError):
    """
    Error related to problems with the processed data.
    """

    def __init__(self, message="A data error occurred") -> None:
        super().__init__(message)


class DecodeError(DataError):
    """
    A raw value did not match the type declared for its column.
    """

    def __init__(self, message="Unable to decode value") -> None:
        super().__init__(message)


class InvalidBooleanLiteralError(DecodeError):
    """
    A boolean column held something other than 'true' or 'false'.
    """

    def __init__(self, value=None) -> None:
        self.value = value
        super().__init__(f"Invalid value for boolean: {value}")


class UnknownColumnTypeError(DecodeError):
    """
    A column declared a type outside the supported set.
    """

    def __init__(self, type_name=None) -> None:
        self.type_name = type_name
        super().__init__(f"Unknown type: {type_name}")
