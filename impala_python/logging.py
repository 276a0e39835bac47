"""
Copyright (c) Microsoft Corporation.
Licensed under the MIT license.

Logging module for impala_python.
Logging is off until setup_logging() is called, and then everything is logged
at DEBUG level. Each connection and cursor gets a trace id so that the
interleaved messages of several query handles can be told apart.
"""

import logging
from logging.handlers import RotatingFileHandler
import os
import sys
import threading
import datetime
import re
import contextvars
import contextlib
from typing import Optional


DEBUG = logging.DEBUG

# Output destination constants
STDOUT = 'stdout'
FILE = 'file'
BOTH = 'both'

_LOG_DIR_NAME = "impala_python_logs"
_MAX_LOG_BYTES = 64 * 1024 * 1024
_LOG_BACKUPS = 5

_trace_id_var = contextvars.ContextVar('impala_trace_id', default=None)


class TraceIDFilter(logging.Filter):
    """Filter that adds trace_id to all log records."""

    def filter(self, record):
        trace_id = _trace_id_var.get()
        record.trace_id = trace_id if trace_id else '-'
        return True


class ImpalaLogger:
    """
    Singleton logger for impala_python.

    Features:
    - Disabled by default, a single DEBUG level once enabled
    - File output with rotation, stdout output, or both
    - Credential masking in messages (query options can carry secrets)
    - Trace IDs carried in a context variable
    """

    _instance: Optional['ImpalaLogger'] = None
    _lock = threading.Lock()

    def __new__(cls) -> 'ImpalaLogger':
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super(ImpalaLogger, cls).__new__(cls)
        return cls._instance

    def __init__(self):
        if hasattr(self, '_initialized'):
            return

        self._initialized = True

        self._logger = logging.getLogger('impala_python')
        self._logger.setLevel(logging.CRITICAL)
        self._logger.propagate = False
        self._logger.addFilter(TraceIDFilter())

        self._trace_counter = 0
        self._trace_lock = threading.Lock()

        self._output_mode = FILE
        self._log_file = None
        self._custom_log_path = None
        # Handlers are created lazily so that importing the package never
        # creates a log file.
        self._handlers_initialized = False

    def _setup_handlers(self):
        """Replace the current handlers with ones matching the output mode."""
        for handler in self._logger.handlers[:]:
            handler.close()
            self._logger.removeHandler(handler)

        formatter = logging.Formatter(
            '%(asctime)s [%(trace_id)s] - %(levelname)s - %(filename)s:%(lineno)d - %(message)s'
        )

        if self._output_mode in (FILE, BOTH):
            if self._custom_log_path:
                self._log_file = self._custom_log_path
                log_dir = os.path.dirname(self._custom_log_path)
            else:
                log_dir = os.path.join(os.getcwd(), _LOG_DIR_NAME)
                timestamp = datetime.datetime.now().strftime("%Y%m%d_%H%M%S")
                self._log_file = os.path.join(
                    log_dir, f"impala_python_trace_{timestamp}_{os.getpid()}.log"
                )
            if log_dir:
                os.makedirs(log_dir, exist_ok=True)

            file_handler = RotatingFileHandler(
                self._log_file, maxBytes=_MAX_LOG_BYTES, backupCount=_LOG_BACKUPS
            )
            file_handler.setFormatter(formatter)
            self._logger.addHandler(file_handler)
        else:
            self._log_file = None

        if self._output_mode in (STDOUT, BOTH):
            stdout_handler = logging.StreamHandler(sys.stdout)
            stdout_handler.setFormatter(formatter)
            self._logger.addHandler(stdout_handler)

    @staticmethod
    def _sanitize_message(msg: str) -> str:
        """
        Mask credentials in a log message.

        Query options are logged as key=value pairs, and some Impala options
        (and LDAP style settings) carry secrets.
        """
        patterns = [
            (r'(password|passwd|pwd)\s*=\s*[^;,\s\'"\]]+', r'\1=***'),
            (r'(token|secret|api_key|apikey)\s*=\s*[^;,\s\'"\]]+', r'\1=***'),
        ]
        sanitized = msg
        for pattern, replacement in patterns:
            sanitized = re.sub(pattern, replacement, sanitized, flags=re.IGNORECASE)
        return sanitized

    def generate_trace_id(self, prefix: str = "TRACE") -> str:
        """
        Generate a unique trace ID in the form PREFIX-PID-ThreadID-Counter.

        Connections use the "CONN" prefix and pass the id to the server as
        the Beeswax log context, cursors use "CURS".
        """
        with self._trace_lock:
            self._trace_counter += 1
            counter = self._trace_counter
        return f"{prefix}-{os.getpid()}-{threading.get_ident()}-{counter}"

    def set_trace_id(self, trace_id: str):
        _trace_id_var.set(trace_id)

    def get_trace_id(self) -> Optional[str]:
        return _trace_id_var.get()

    def clear_trace_id(self):
        _trace_id_var.set(None)

    @contextlib.contextmanager
    def trace_context(self, trace_id: str):
        """
        Make trace_id the current trace ID for the duration of the block.

        The previous ID is restored on exit, so a cursor operation that calls
        into its connection logs under the connection ID only while the
        remote call runs.
        """
        token = _trace_id_var.set(trace_id)
        try:
            yield
        finally:
            _trace_id_var.reset(token)

    def _log(self, level: int, msg: str, *args, **kwargs):
        # Cheap level check first, formatting only happens when enabled
        if not self._logger.isEnabledFor(level):
            return
        if args:
            msg = msg % args
        self._logger.log(level, self._sanitize_message(msg), **kwargs)

    def debug(self, msg: str, *args, **kwargs):
        self._log(logging.DEBUG, msg, *args, **kwargs)

    def info(self, msg: str, *args, **kwargs):
        self._log(logging.INFO, msg, *args, **kwargs)

    def warning(self, msg: str, *args, **kwargs):
        self._log(logging.WARNING, msg, *args, **kwargs)

    def error(self, msg: str, *args, **kwargs):
        self._log(logging.ERROR, msg, *args, **kwargs)

    def critical(self, msg: str, *args, **kwargs):
        self._log(logging.CRITICAL, msg, *args, **kwargs)

    def log(self, level: int, msg: str, *args, **kwargs):
        self._log(level, msg, *args, **kwargs)

    def _setLevel(self, level: int, output: Optional[str] = None, log_file_path: Optional[str] = None):
        """
        Internal method to set the logging level (use setup_logging() instead).

        Raises:
            ValueError: If output mode is invalid
        """
        if output is not None:
            self._validate_output(output)
            self._output_mode = output

        if log_file_path is not None:
            self._custom_log_path = log_file_path

        if not self._handlers_initialized or output is not None or log_file_path is not None:
            self._setup_handlers()
            self._handlers_initialized = True

        self._logger.setLevel(level)

    @staticmethod
    def _validate_output(mode: str):
        if mode not in (FILE, STDOUT, BOTH):
            raise ValueError(
                f"Invalid output mode: {mode}. "
                f"Must be one of: {FILE}, {STDOUT}, {BOTH}"
            )

    def getLevel(self) -> int:
        return self._logger.level

    def isEnabledFor(self, level: int) -> bool:
        return self._logger.isEnabledFor(level)

    def addHandler(self, handler: logging.Handler):
        self._logger.addHandler(handler)

    def removeHandler(self, handler: logging.Handler):
        self._logger.removeHandler(handler)

    @property
    def handlers(self) -> list:
        return self._logger.handlers

    @property
    def output(self) -> str:
        """Get the current output mode"""
        return self._output_mode

    @output.setter
    def output(self, mode: str):
        self._validate_output(mode)
        self._output_mode = mode
        if self._handlers_initialized:
            self._setup_handlers()

    @property
    def log_file(self) -> Optional[str]:
        """Get the current log file path (None if file output is disabled)"""
        return self._log_file

    @property
    def level(self) -> int:
        return self._logger.level


logger = ImpalaLogger()


def setup_logging(output: str = FILE, log_file_path: Optional[str] = None):
    """
    Enable DEBUG logging for troubleshooting.

    Args:
        output: Where to send logs: 'file' (default), 'stdout' or 'both'.
        log_file_path: Optional custom path for the log file. If not given,
            a file is created under ./impala_python_logs/.

    Examples:
        import impala_python

        impala_python.setup_logging()
        impala_python.setup_logging(output='stdout')
        impala_python.setup_logging(output='both', log_file_path="/tmp/impala.log")
    """
    logger._setLevel(logging.DEBUG, output, log_file_path)
    return logger
