"""Services for RemoteOps."""

from remoteops.services.commands import (
    DiagnosticKind,
    format_command,
    get_cpu_command,
    get_diagnostic_command,
    get_disk_space_command,
    get_memory_command,
    get_system_info_command,
    get_top_processes_command,
)
from remoteops.services.executors import run_command, run_diagnostic, run_on_hosts
from remoteops.services.health import check_session_health
from remoteops.services.os_detector import OSDetector
from remoteops.services.pool import ConnectionPool
from remoteops.services.session import ConnectionError, ExecutionError, RemoteSession

__all__ = [
    "check_session_health",
    "ConnectionError",
    "ConnectionPool",
    "DiagnosticKind",
    "ExecutionError",
    "format_command",
    "get_cpu_command",
    "get_diagnostic_command",
    "get_disk_space_command",
    "get_memory_command",
    "get_system_info_command",
    "get_top_processes_command",
    "OSDetector",
    "RemoteSession",
    "run_command",
    "run_diagnostic",
    "run_on_hosts",
]
