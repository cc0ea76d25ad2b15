"""RemoteOps middleware components."""

from remoteops.middleware.base import RemoteOpsMiddleware
from remoteops.middleware.errors import ErrorHandlingMiddleware
from remoteops.middleware.logging import LoggingMiddleware

__all__ = [
    "ErrorHandlingMiddleware",
    "LoggingMiddleware",
    "RemoteOpsMiddleware",
]
