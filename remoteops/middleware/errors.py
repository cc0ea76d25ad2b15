"""Error handling middleware for consistent error logging."""

import logging
from collections import Counter
from typing import Any

from fastmcp.server.middleware import MiddlewareContext

from remoteops.middleware.base import RemoteOpsMiddleware
from remoteops.services.session import ConnectionError, ExecutionError

# Failures caused by the remote side rather than by this server
REMOTE_ERRORS: tuple[type[Exception], ...] = (ConnectionError, ExecutionError)


class ErrorHandlingMiddleware(RemoteOpsMiddleware):
    """Logs errors raised while handling MCP requests and counts them by type.

    Unreachable hosts and failed commands are logged as warnings without a
    traceback; anything else is logged as an error. Errors are re-raised so
    FastMCP can turn them into error responses.
    """

    def __init__(
        self,
        logger: logging.Logger | None = None,
        include_traceback: bool = False,
    ) -> None:
        """Initialize error handling middleware.

        Args:
            logger: Optional custom logger.
            include_traceback: Log full tracebacks for unexpected errors.
        """
        super().__init__(logger=logger)
        self.include_traceback = include_traceback
        self._counts: Counter[str] = Counter()

    def get_error_stats(self) -> dict[str, int]:
        """Get error counts by exception type name."""
        return dict(self._counts)

    def reset_stats(self) -> None:
        self._counts.clear()

    async def on_message(
        self,
        context: MiddlewareContext,
        call_next: Any,
    ) -> Any:
        """Log and count errors, then re-raise them."""
        try:
            return await call_next(context)
        except Exception as e:
            name = type(e).__name__
            self._counts[name] += 1

            if isinstance(e, REMOTE_ERRORS):
                self.logger.warning("Remote failure in %s: %s", context.method, e)
            else:
                self.logger.error(
                    "Unhandled %s in %s: %s",
                    name,
                    context.method,
                    e,
                    exc_info=self.include_traceback,
                )
            raise
