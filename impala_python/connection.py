"""
Copyright (c) Microsoft Corporation.
Licensed under the MIT license.
This module defines the Connection class, which manages the Thrift transport
to an Impala server and submits queries over it.
Resource Management:
- Every remote call, including those made by cursors, goes through run().
- A transport failure seen by run() closes the connection before the error
  reaches the caller, so is_open() never reports a dead socket as usable.
- The connection does not reopen itself; call open() to reconnect.
- close() releases the handles of cursors that are still open, then closes
  the transport.
"""
import weakref
from typing import Any, Callable, Dict, List, Optional, TypeVar

from thrift.Thrift import TException

from impala_python.cursor import Cursor
from impala_python.exceptions import ConnectionClosedError, QueryError
from impala_python.helpers import build_configuration, log, sanitize_query
from impala_python.logging import logger
from impala_python.row import Row
from impala_python.service import is_transport_error, open_transport

T = TypeVar("T")


class Connection:
    """
    A connection to an Impala server's Beeswax service.

    The generated Thrift classes are supplied by the caller: client_class is
    the service client (constructed from a protocol) and query_class is the
    Beeswax Query struct.

    Methods:
        open() -> None
        close() -> None
        is_open() -> bool
        refresh_catalog() -> None
        execute(query, options=None) -> Cursor
        query(query, options=None) -> list of Row
        run(func) -> result of func(service)
    """

    def __init__(
        self,
        host: str,
        port: int,
        client_class: Callable[[Any], Any],
        query_class: Callable[[], Any],
        timeout: Optional[float] = None,
        transport_factory: Callable[..., Any] = open_transport,
        autoopen: bool = True,
    ) -> None:
        """
        Initialize the connection object and, by default, open it.

        Args:
            host (str): Server host name.
            port (int): Beeswax port.
            client_class: Generated service client class, called with the protocol.
            query_class: Generated Beeswax Query struct class.
            timeout (float): Socket timeout in seconds, None for no timeout.
            transport_factory: Callable (host, port, timeout) -> (transport, protocol).
            autoopen (bool): Open the transport immediately.

        Raises:
            TTransportException: If the transport cannot be opened.
        """
        self.host = host
        self.port = port
        self._client_class = client_class
        self._query_class = query_class
        self._timeout = timeout
        self._transport_factory = transport_factory

        self._transport = None
        self._service = None
        self._connected = False

        # Sent with each query as the Beeswax LogContextId
        self._log_context = logger.generate_trace_id("CONN")
        self._cursors = weakref.WeakSet()

        if autoopen:
            self.open()

    def __repr__(self) -> str:
        state = "" if self.is_open() else " (DISCONNECTED)"
        return f"<{self.__class__.__name__} {self.host}:{self.port}{state}>"

    def __enter__(self) -> "Connection":
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def open(self) -> None:
        """
        Open the connection if it's currently closed.

        Raises:
            TTransportException: If the transport cannot be opened. The
                connection stays closed.
        """
        if self._connected:
            return

        with logger.trace_context(self._log_context):
            transport, protocol = self._transport_factory(self.host, self.port, self._timeout)
            try:
                service = self._client_class(protocol)
            except Exception:
                transport.close()
                raise
            self._transport = transport
            self._service = service
            self._connected = True
            log('info', "Connection opened to %s:%s", self.host, self.port)

    def close(self) -> None:
        """
        Close this connection. It can still be reopened with open().
        Closing a closed connection does nothing.

        Open cursors are closed first. Rows a finished cursor has already
        buffered stay readable.
        """
        if not self._connected:
            return

        with logger.trace_context(self._log_context):
            close_errors = 0
            for cursor in list(self._cursors):
                try:
                    if cursor.is_open():
                        cursor.close()
                except Exception as e:
                    # Keep closing the rest; the transport goes down regardless
                    close_errors += 1
                    log('warning', "Error closing cursor: %s", e)
            if close_errors:
                log('warning', "Encountered %d errors while closing cursors", close_errors)
            self._cursors.clear()

            if not self._connected:
                # A cursor close hit a transport failure and already tore it down
                return
            try:
                self._transport.close()
            finally:
                self._forget_transport()
            log('info', "Connection closed")

    def is_open(self) -> bool:
        """Returns true if the connection is currently open."""
        return self._connected

    @property
    def closed(self) -> bool:
        return not self._connected

    def _forget_transport(self) -> None:
        self._connected = False
        self._transport = None
        self._service = None

    def _invalidate(self, error: BaseException) -> None:
        """
        Tear down the transport after a transport failure. No remote calls
        are made and cursor handles are not released; they died with the
        session.
        """
        log('error', "Connection invalidated by transport failure: %s: %s",
            type(error).__name__, error)
        transport = self._transport
        self._forget_transport()
        if transport is not None:
            try:
                transport.close()
            except Exception as close_error:
                log('debug', "Ignoring error while closing broken transport: %s", close_error)

    def run(self, func: Callable[[Any], T]) -> T:
        """
        Call func with the service stub.

        This is the single path for remote calls. If func raises a
        transport-level error the connection is closed and the original
        exception is re-raised. Other exceptions leave the connection open.
        Records logged during the call carry the connection's trace ID.

        Raises:
            ConnectionClosedError: If the connection is not open.
        """
        if not self._connected:
            raise ConnectionClosedError()

        with logger.trace_context(self._log_context):
            try:
                return func(self._service)
            except Exception as e:
                if is_transport_error(e):
                    self._invalidate(e)
                raise

    def refresh_catalog(self) -> None:
        """
        Refresh the server's metadata catalog.

        Raises:
            ConnectionClosedError: If the connection is not open.
            QueryError: If the server rejects the request.
        """
        if not self.is_open():
            raise ConnectionClosedError()

        with logger.trace_context(self._log_context):
            try:
                self.run(lambda service: service.ResetCatalog())
            except TException as e:
                if is_transport_error(e):
                    raise
                log('error', "Catalog refresh rejected by server: %s", e)
                raise QueryError(f"Catalog refresh failed: {e}") from e
            log('info', "Catalog refresh requested")

    refresh = refresh_catalog

    def query(self, raw_query: str, options: Optional[Dict[str, Any]] = None) -> List[Row]:
        """
        Perform a query and return all the results. This loads the entire
        result set into memory; use execute() to stream large results.

        Args:
            raw_query (str): The query to run.
            options (dict): Query options passed to the server as key=value
                pairs, e.g. {"mem_limit": "2g"}.

        Returns:
            list: One Row per result row.
        """
        return self.execute(raw_query, options).fetch_all()

    def execute(self, raw_query: str, options: Optional[Dict[str, Any]] = None) -> Cursor:
        """
        Perform a query and return a cursor for iterating over the results.

        Args:
            raw_query (str): The query to run.
            options (dict): Query options passed to the server as key=value pairs.

        Returns:
            Cursor: A cursor over the result rows.

        Raises:
            ConnectionClosedError: If the connection is not open.
            InvalidQueryError: If the query text fails validation.
            QueryError: If the server rejects the query.
        """
        if not self.is_open():
            raise ConnectionClosedError()

        query = sanitize_query(raw_query)
        with logger.trace_context(self._log_context):
            handle = self._send_query(query, options)

        cursor = Cursor(handle, self)
        self._cursors.add(cursor)
        return cursor

    def _send_query(self, sanitized_query: str, options: Optional[Dict[str, Any]] = None) -> Any:
        request = self._query_class()
        request.query = sanitized_query

        configuration = build_configuration(options)
        if configuration:
            request.configuration = configuration

        log('debug', "Executing query: %s (options: %s)", sanitized_query, configuration)
        try:
            return self.run(lambda service: service.executeAndWait(request, self._log_context))
        except TException as e:
            if is_transport_error(e):
                raise
            log('error', "Query rejected by server: %s", e)
            raise QueryError(f"Query failed: {e}") from e

    def __del__(self):
        """
        Close the connection if it is garbage collected while still open.
        """
        if self.__dict__.get("_connected"):
            try:
                self.close()
            except Exception as e:
                # Dont raise exceptions from __del__ to avoid issues during garbage collection
                log('error', "Error during connection cleanup: %s", e)
