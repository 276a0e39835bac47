"""
This file contains fixtures for the tests in the impala_python package.
The Thrift service and transport are replaced by in-memory fakes, so no
server is needed.
Functions:
- FakeService: Stand-in for the generated ImpalaService client.
- FakeTransportFactory: Records the transports a connection opens.
- service: Fixture with a two column, one batch result.
- transport_factory: Fixture creating a FakeTransportFactory.
- make_connection: Fixture building connections bound to a fake service.
- db_connection: Fixture with an open connection to the default service.
- make_service: Fixture returning the FakeService class.
- make_rows: Fixture returning a raw row generator.
- query_class: Fixture returning the FakeQuery struct class.
- make_transport_factory: Fixture returning the FakeTransportFactory class.
- restore_settings: Resets package settings after every test.
"""

import pytest

import impala_python
from impala_python.connection import Connection
from impala_python.helpers import KNOWN_COMMANDS, get_settings


class FakeTransport:
    def __init__(self):
        self.close_calls = 0

    def close(self):
        self.close_calls += 1


class FakeTransportFactory:
    def __init__(self, error=None):
        self.transports = []
        self.error = error

    def __call__(self, host, port, timeout):
        if self.error is not None:
            raise self.error
        transport = FakeTransport()
        self.transports.append(transport)
        return transport, object()


class FakeQuery:
    """Mirrors the attributes of the beeswax Query struct."""

    def __init__(self):
        self.query = None
        self.configuration = None
        self.hadoop_user = None


class FakeHandle:
    def __init__(self, handle_id):
        self.id = handle_id
        self.log_context = None

    def __repr__(self):
        return f"FakeHandle({self.id})"


class FakeFieldSchema:
    def __init__(self, name, type):
        self.name = name
        self.type = type
        self.comment = None


class FakeHiveSchema:
    def __init__(self, field_schemas):
        self.fieldSchemas = field_schemas


class FakeMetadata:
    def __init__(self, fields, delim):
        self.schema = FakeHiveSchema([FakeFieldSchema(name, type) for name, type in fields])
        self.delim = delim


class FakeResults:
    def __init__(self, data, has_more):
        self.ready = True
        self.columns = None
        self.data = data
        self.start_row = 0
        self.has_more = has_more


class FakeService:
    """
    In-memory replacement for the ImpalaService client.

    Every executed query gets the same list of batches. failures maps a
    method name to an exception raised on the next call of that method.
    """

    def __init__(self, batches=None, fields=None, delim="\t"):
        self.batches = batches if batches is not None else [[]]
        self.fields = fields if fields is not None else [("id", "int"), ("name", "string")]
        self.delim = delim
        self.failures = {}

        self.queries = []
        self.fetch_calls = []
        self.metadata_calls = []
        self.close_calls = []
        self.reset_calls = 0
        self._remaining = {}
        self._next_id = 0

    def _maybe_fail(self, method):
        error = self.failures.pop(method, None)
        if error is not None:
            raise error

    def executeAndWait(self, query, client_ctx):
        self._maybe_fail("executeAndWait")
        self.queries.append((query, client_ctx))
        self._next_id += 1
        handle = FakeHandle(f"q{self._next_id}")
        self._remaining[handle.id] = [list(batch) for batch in self.batches]
        return handle

    def fetch(self, query_id, start_over, fetch_size):
        self._maybe_fail("fetch")
        self.fetch_calls.append((query_id.id, start_over, fetch_size))
        remaining = self._remaining[query_id.id]
        data = remaining.pop(0) if remaining else []
        return FakeResults(data, bool(remaining))

    def get_results_metadata(self, handle):
        self._maybe_fail("get_results_metadata")
        self.metadata_calls.append(handle.id)
        return FakeMetadata(self.fields, self.delim)

    def close(self, handle):
        self._maybe_fail("close")
        self.close_calls.append(handle.id)

    def ResetCatalog(self):
        self._maybe_fail("ResetCatalog")
        self.reset_calls += 1


def _make_rows(count, start=0):
    """Raw tab-delimited rows matching the default (id, name) schema."""
    return [f"{i}\tname{i}" for i in range(start, start + count)]


@pytest.fixture(autouse=True)
def restore_settings():
    settings = get_settings()
    yield
    settings.buffer_size = impala_python.helpers.DEFAULT_BUFFER_SIZE
    settings.validate_commands = True
    settings.known_commands = KNOWN_COMMANDS


@pytest.fixture
def service():
    return FakeService(batches=[["1\tone", "2\ttwo"]])


@pytest.fixture
def transport_factory():
    return FakeTransportFactory()


@pytest.fixture
def make_connection(transport_factory):
    def factory(fake_service, **kwargs):
        return Connection(
            "impalad",
            21000,
            lambda protocol: fake_service,
            FakeQuery,
            transport_factory=transport_factory,
            **kwargs,
        )

    return factory


@pytest.fixture
def db_connection(make_connection, service):
    conn = make_connection(service)
    yield conn
    conn.close()


@pytest.fixture
def make_rows():
    return _make_rows


@pytest.fixture
def make_service():
    return FakeService


@pytest.fixture
def query_class():
    return FakeQuery


@pytest.fixture
def make_transport_factory():
    return FakeTransportFactory
