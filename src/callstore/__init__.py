"""Callstore - newest-first, cursor-paginated call and log storage on object stores."""

from callstore.config import Config, MarkerFailurePolicy
from callstore.exceptions import (
    BackendError,
    CallNotFoundError,
    CallStoreError,
    ConfigError,
    CorruptRecordError,
    InvalidFilterError,
    InvalidKeyError,
    LogNotFoundError,
    MarkerWriteError,
    NotFoundError,
)
from callstore.ids import new_call_id
from callstore.models import CallFilter, CallPage, CallRecord, LogRecord
from callstore.observability import (
    LogLevel,
    RequestContext,
    StructuredLogger,
    Timer,
    configure_logging,
    emit_metric,
    get_logger,
    register_metric_callback,
)
from callstore.store import CallStore

__version__ = "0.1.0"
__all__ = [
    # Core
    "CallFilter",
    "CallPage",
    "CallRecord",
    "CallStore",
    "Config",
    "LogRecord",
    "MarkerFailurePolicy",
    "new_call_id",
    # Errors
    "BackendError",
    "CallNotFoundError",
    "CallStoreError",
    "ConfigError",
    "CorruptRecordError",
    "InvalidFilterError",
    "InvalidKeyError",
    "LogNotFoundError",
    "MarkerWriteError",
    "NotFoundError",
    # Observability
    "LogLevel",
    "RequestContext",
    "StructuredLogger",
    "Timer",
    "configure_logging",
    "emit_metric",
    "get_logger",
    "register_metric_callback",
]
