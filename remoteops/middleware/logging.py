"""Logging middleware for tool call tracking."""

import logging
import time
from typing import Any

from fastmcp.server.middleware import MiddlewareContext

from remoteops.middleware.base import RemoteOpsMiddleware

# Tool arguments that must never reach the logs
SECRET_ARGS = frozenset({"password", "passphrase"})


class LoggingMiddleware(RemoteOpsMiddleware):
    """Logs tool calls with masked arguments and timing."""

    def __init__(
        self,
        logger: logging.Logger | None = None,
        slow_threshold_ms: float = 5000.0,
    ) -> None:
        """Initialize logging middleware.

        Args:
            logger: Optional custom logger.
            slow_threshold_ms: Threshold in ms for slow call warnings.
        """
        super().__init__(logger=logger)
        self.slow_threshold_ms = slow_threshold_ms

    @staticmethod
    def format_args(args: dict[str, Any] | None) -> str:
        """Format tool arguments for logging, masking secrets."""
        if not args:
            return "()"
        parts = []
        for key, value in args.items():
            if key in SECRET_ARGS and value:
                value = "***"
            elif isinstance(value, str) and len(value) > 50:
                value = value[:50] + "..."
            parts.append(f"{key}={value!r}")
        return f"({', '.join(parts)})"

    async def on_call_tool(
        self,
        context: MiddlewareContext,
        call_next: Any,
    ) -> Any:
        """Log tool calls with name, arguments, and timing."""
        start = time.perf_counter()
        tool_name = getattr(context.message, "name", "unknown")
        args = getattr(context.message, "arguments", None)

        self.logger.info("TOOL %s%s", tool_name, self.format_args(args))

        try:
            result = await call_next(context)
        except Exception as e:
            duration_ms = (time.perf_counter() - start) * 1000
            self.logger.error(
                "TOOL %s failed: %s [%.1fms]", tool_name, type(e).__name__, duration_ms
            )
            raise

        duration_ms = (time.perf_counter() - start) * 1000
        level = logging.WARNING if duration_ms >= self.slow_threshold_ms else logging.INFO
        self.logger.log(level, "TOOL %s completed [%.1fms]", tool_name, duration_ms)
        return result
