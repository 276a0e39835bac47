"""
Copyright (c) Microsoft Corporation.
Licensed under the MIT license.
This module holds the pieces shared by connections and cursors for talking
to the Thrift service: transport construction, the classification of
transport-level failures, and the ServiceAccessor protocol through which
every remote call is made.
"""

from typing import Any, Callable, Optional, Protocol, Tuple, TypeVar

from thrift.protocol import TBinaryProtocol
from thrift.protocol.TProtocol import TProtocolException
from thrift.transport import TSocket, TTransport
from thrift.transport.TTransport import TTransportException

from impala_python.helpers import log

T = TypeVar("T")

# A protocol decode failure leaves the byte stream out of sync, so the
# transport is as unusable as after a socket error.
TRANSPORT_ERRORS: Tuple[type, ...] = (
    TTransportException,
    TProtocolException,
    OSError,
    EOFError,
)


def is_transport_error(exc: BaseException) -> bool:
    """Return True if exc means the connection to the server is unusable."""
    return isinstance(exc, TRANSPORT_ERRORS)


class ServiceAccessor(Protocol):
    """
    Scoped access to a service stub.

    Cursors hold one of these (their Connection) instead of the stub itself,
    so a transport failure seen by a cursor also invalidates the connection.
    """

    def run(self, func: Callable[[Any], T]) -> T:
        ...

    def is_open(self) -> bool:
        ...


def open_transport(
    host: str, port: int, timeout: Optional[float] = None
) -> Tuple[TTransport.TTransportBase, TBinaryProtocol.TBinaryProtocol]:
    """
    Open a buffered binary-protocol Thrift transport to host:port.

    Args:
        host: Server host name.
        port: Beeswax port of the server (21000 by default on impalad).
        timeout: Socket timeout in seconds, None to block indefinitely.

    Returns:
        tuple: (transport, protocol). The transport is already open.

    Raises:
        TTransportException: If the socket cannot be opened.
    """
    socket = TSocket.TSocket(host, port)
    if timeout is not None:
        socket.setTimeout(timeout * 1000.0)

    transport = TTransport.TBufferedTransport(socket)
    transport.open()
    log('debug', "Opened Thrift transport to %s:%s", host, port)

    protocol = TBinaryProtocol.TBinaryProtocol(transport)
    return transport, protocol
