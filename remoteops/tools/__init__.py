"""MCP tool handlers for RemoteOps."""

from remoteops.tools.handlers import (
    handle_diagnose,
    handle_disconnect,
    handle_multi_run,
    handle_os_info,
    handle_pool_status,
    handle_run_command,
)

__all__ = [
    "handle_diagnose",
    "handle_disconnect",
    "handle_multi_run",
    "handle_os_info",
    "handle_pool_status",
    "handle_run_command",
]
