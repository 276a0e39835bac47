"""
This file contains tests for transport construction and the classification
of transport failures.
"""

import socket

import pytest
from thrift.Thrift import TApplicationException, TException
from thrift.protocol.TProtocol import TProtocolException
from thrift.transport.TTransport import TTransportException

from impala_python import service as service_module
from impala_python.service import TRANSPORT_ERRORS, is_transport_error, open_transport


@pytest.mark.parametrize("error", [
    TTransportException(TTransportException.TIMED_OUT, "timed out"),
    TProtocolException(TProtocolException.INVALID_DATA, "bad frame"),
    socket.timeout("timed out"),
    ConnectionResetError("reset"),
    BrokenPipeError("pipe"),
    EOFError(),
])
def test_transport_errors(error):
    assert is_transport_error(error)


@pytest.mark.parametrize("error", [
    TException("AnalysisException"),
    TApplicationException(TApplicationException.INTERNAL_ERROR, "boom"),
    ValueError("bad"),
    KeyError("id"),
])
def test_service_errors(error):
    assert not is_transport_error(error)


def test_transport_errors_are_exception_types():
    assert all(issubclass(kind, Exception) for kind in TRANSPORT_ERRORS)


class _Recorder:
    def __init__(self):
        self.events = []


@pytest.fixture
def fake_thrift(monkeypatch):
    recorder = _Recorder()

    class FakeSocket:
        def __init__(self, host, port):
            recorder.events.append(("socket", host, port))

        def setTimeout(self, ms):
            recorder.events.append(("timeout", ms))

    class FakeBuffered:
        def __init__(self, trans):
            self.trans = trans

        def open(self):
            recorder.events.append(("open",))

    class FakeProtocol:
        def __init__(self, trans):
            self.trans = trans

    monkeypatch.setattr(service_module.TSocket, "TSocket", FakeSocket)
    monkeypatch.setattr(service_module.TTransport, "TBufferedTransport", FakeBuffered)
    monkeypatch.setattr(service_module.TBinaryProtocol, "TBinaryProtocol", FakeProtocol)
    recorder.socket_class = FakeSocket
    return recorder


def test_open_transport(fake_thrift):
    transport, protocol = open_transport("impalad", 21000)

    assert fake_thrift.events == [("socket", "impalad", 21000), ("open",)]
    assert isinstance(transport.trans, fake_thrift.socket_class)
    assert protocol.trans is transport


def test_open_transport_timeout_in_milliseconds(fake_thrift):
    open_transport("impalad", 21000, timeout=2.5)
    assert ("timeout", 2500.0) in fake_thrift.events


def test_open_transport_refused():
    # Nothing listens on port 1 of the loopback interface
    with pytest.raises(TTransportException):
        open_transport("127.0.0.1", 1, timeout=1)
