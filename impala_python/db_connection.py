"""
Copyright (c) Microsoft Corporation.
Licensed under the MIT license.
This module provides the connect() entry point.
"""
from typing import Any, Callable, Optional

from impala_python.connection import Connection
from impala_python.helpers import log
from impala_python.service import open_transport


def connect(
    host: str,
    port: int = 21000,
    client_class: Optional[Callable[[Any], Any]] = None,
    query_class: Optional[Callable[[], Any]] = None,
    timeout: Optional[float] = None,
    transport_factory: Callable[..., Any] = open_transport,
) -> Connection:
    """
    Constructor for creating a connection to an Impala server.

    Args:
        host (str): Server host name.
        port (int): Beeswax port, 21000 by default.
        client_class: Generated ImpalaService.Client class.
        query_class: Generated beeswaxd Query struct class.
        timeout (float): Socket timeout in seconds.
        transport_factory: Callable (host, port, timeout) -> (transport, protocol).

    Returns:
        Connection: An open connection. Use it as a context manager to have
        it closed automatically:

            with connect("impalad", 21000, ImpalaService.Client, Query) as conn:
                rows = conn.query("SELECT 1")

    Raises:
        TypeError: If the service classes are not supplied.
        TTransportException: If the server cannot be reached.
    """
    if client_class is None or query_class is None:
        raise TypeError("connect() requires the generated client_class and query_class")

    log('info', "Connecting to %s:%s", host, port)
    try:
        conn = Connection(
            host,
            port,
            client_class,
            query_class,
            timeout=timeout,
            transport_factory=transport_factory,
        )
    except Exception as e:
        log('error', "Error while connecting to %s:%s: %s", host, port, e)
        raise

    from impala_python import _register_connection
    _register_connection(conn)
    return conn
