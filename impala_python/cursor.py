"""
Copyright (c) Microsoft Corporation.
Licensed under the MIT license.
This module contains the Cursor class, which streams the rows of one
executed query.
Resource Management:
- A cursor owns one server-side query handle.
- The handle is released exactly once: by the cursor itself as soon as the
  server reports that no rows are left, or by close().
- Every remote call goes through the owning connection, so a transport
  failure while fetching closes the connection as well.
- A batch with a row that cannot be decoded closes the cursor, so a
  caller that catches the DecodeError cannot read past the gap.
"""
from collections import deque
from typing import Any, Deque, Iterator, List, Optional

from thrift.Thrift import TException

from impala_python.decoder import decode_row
from impala_python.exceptions import (
    CursorClosedError,
    CursorExpiredError,
    DecodeError,
    Error,
    QueryError,
)
from impala_python.helpers import get_settings, log
from impala_python.logging import logger
from impala_python.row import Row
from impala_python.service import ServiceAccessor, is_transport_error
from impala_python.type import Schema


class Cursor:
    """
    Buffered, lazily refilled sequence of decoded rows for one query handle.

    Rows are fetched from the server in batches of buffer_size and decoded
    with the query's schema. A consumer reading one row at a time still
    costs one round trip per batch.

    Attributes:
        arraysize: Default number of rows returned by fetchmany().
        rownumber: Number of rows handed out so far.

    Methods:
        fetch_row() / fetchone() -> Row or None at end of stream.
        fetch_all() / fetchall() -> list of the remaining rows.
        fetchmany(size=None) -> list of up to size rows.
        close() -> None.
        is_open() -> bool.
        has_more() -> bool.
    """

    def __init__(self, handle: Any, accessor: ServiceAccessor, buffer_size: Optional[int] = None) -> None:
        """
        Bind the cursor to a query handle and fill the first buffer.

        Args:
            handle: The query handle returned by executeAndWait.
            accessor: The owning connection; all remote calls go through it.
            buffer_size: Rows per fetch. Defaults to the package setting.
        """
        self._handle = handle
        self._accessor = accessor
        self._buffer_size = buffer_size or get_settings().buffer_size

        self._row_buffer: Deque[Row] = deque()
        self._done = False
        self._open = True
        # Set once the handle has been closed on the server
        self._released = False
        self._schema: Optional[Schema] = None

        self.arraysize = 1
        self.rownumber = 0
        self._trace_id = logger.generate_trace_id("CURS")

        with logger.trace_context(self._trace_id):
            log('debug', "Cursor bound to handle %s", self._handle_id)
            try:
                self._fetch_more()
            except Error:
                # The caller never receives this cursor, so release the handle here
                self.close()
                raise

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}{'' if self.is_open() else ' (CLOSED)'}>"

    @property
    def _handle_id(self) -> str:
        return str(getattr(self._handle, "id", self._handle))

    def __iter__(self) -> Iterator[Row]:
        while True:
            row = self.fetch_row()
            if row is None:
                return
            yield row

    def __enter__(self) -> "Cursor":
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def fetch_row(self) -> Optional[Row]:
        """
        Return the next row, or None if there are none left.

        Raises:
            CursorClosedError: If the cursor was closed before it was exhausted.
        """
        if not self._open and not self._done:
            raise CursorClosedError()

        if not self._row_buffer:
            if self._done:
                return None
            with logger.trace_context(self._trace_id):
                self._fetch_more()
            if not self._row_buffer:
                return None

        self.rownumber += 1
        return self._row_buffer.popleft()

    fetchone = fetch_row

    def fetch_all(self) -> List[Row]:
        """Return all the remaining rows in the result set."""
        return list(self)

    fetchall = fetch_all

    def fetchmany(self, size: Optional[int] = None) -> List[Row]:
        """
        Return up to size rows (arraysize by default).
        An empty list means the result set is exhausted.
        """
        if size is None:
            size = self.arraysize
        if size < 0:
            raise ValueError("fetchmany size must not be negative")

        rows = []
        while len(rows) < size:
            row = self.fetch_row()
            if row is None:
                break
            rows.append(row)
        return rows

    def close(self) -> None:
        """
        Close the cursor. Closing twice is harmless and releases the handle
        only once.

        Nothing more is fetched from the server after close. Rows of a
        finished result that are already buffered can still be read; the
        buffer of an unfinished result is discarded.
        """
        self._open = False
        if not self._done:
            self._row_buffer.clear()
        with logger.trace_context(self._trace_id):
            self._release_handle()

    @property
    def closed(self) -> bool:
        return not self._open

    def is_open(self) -> bool:
        """Returns True if the cursor has not been closed or expired."""
        return self._open

    def has_more(self) -> bool:
        """Returns True if there are any more rows to fetch."""
        return not self._done or bool(self._row_buffer)

    @property
    def schema(self) -> Schema:
        """
        The result schema, requested from the server on first use and kept
        for the lifetime of the cursor.
        """
        if self._schema is None:
            with logger.trace_context(self._trace_id):
                self._schema = self._fetch_schema()
        return self._schema

    @property
    def description(self):
        """
        DB-API column description, or None if the schema was never loaded
        and the handle is gone.
        """
        if self._schema is None and (self._released or not self._accessor.is_open()):
            return None
        return self.schema.description

    def _fetch_schema(self) -> Schema:
        try:
            metadata = self._accessor.run(
                lambda service: service.get_results_metadata(self._handle)
            )
        except TException as e:
            if is_transport_error(e):
                raise
            raise QueryError(f"Unable to read result metadata: {e}") from e
        schema = Schema.from_metadata(metadata)
        log('debug', "Result schema: %s", ", ".join(
            f"{f.name}:{f.type_name}" for f in schema.fields))
        return schema

    def _fetch_more(self) -> None:
        # Fetch ahead until a whole batch is buffered or the server runs dry
        while not self._done and len(self._row_buffer) < self._buffer_size:
            self._fetch_batch()

    def _fetch_batch(self) -> None:
        if self._done:
            return

        try:
            result = self._accessor.run(
                lambda service: service.fetch(self._handle, False, self._buffer_size)
            )
        except TException as e:
            if is_transport_error(e):
                raise
            self._open = False
            # The server no longer knows the handle, there is nothing to close
            self._released = True
            log('warning', "Server rejected fetch on handle %s: %s", self._handle_id, e)
            raise CursorExpiredError() from e

        data = result.data or []
        if data:
            schema = self.schema
            try:
                rows = [decode_row(raw, schema) for raw in data]
            except DecodeError as e:
                # A batch is buffered whole or not at all; the stream cannot
                # continue past a row that failed to decode
                log('error', "Could not decode batch from handle %s: %s", self._handle_id, e)
                self.close()
                raise
            self._row_buffer.extend(rows)
        log('debug', "Fetched %d rows (has_more=%s)", len(data), result.has_more)

        if not result.has_more:
            self._done = True
            self._release_handle()

    def _release_handle(self) -> None:
        """Close the handle on the server unless that already happened."""
        if self._released:
            return
        if not self._accessor.is_open():
            # The handle went away with the session
            self._released = True
            log('debug', "Connection closed, handle %s not released remotely", self._handle_id)
            return

        try:
            self._accessor.run(lambda service: service.close(self._handle))
        except TException as e:
            if is_transport_error(e):
                raise
            log('warning', "Server refused to close handle %s: %s", self._handle_id, e)
        self._released = True
        log('debug', "Released handle %s", self._handle_id)

    def __del__(self):
        """
        Release the handle if the cursor is garbage collected while open.
        """
        if "_trace_id" not in self.__dict__ or self._released:
            return
        try:
            self._open = False
            with logger.trace_context(self._trace_id):
                self._release_handle()
        except Exception as e:
            # Don't raise an exception in __del__, just log it
            log('error', "Error during cursor cleanup in __del__: %s", e)
