"""RemoteOps: pooled, OS-aware SSH sessions for remote diagnostics."""

from remoteops.dependencies import Dependencies
from remoteops.models import OSFamily, OSInfo, ShellDialect, SSHConnectionConfig
from remoteops.services import (
    ConnectionError,
    ConnectionPool,
    ExecutionError,
    OSDetector,
    RemoteSession,
    format_command,
)

__version__ = "0.1.0"

__all__ = [
    "ConnectionError",
    "ConnectionPool",
    "Dependencies",
    "ExecutionError",
    "format_command",
    "OSDetector",
    "OSFamily",
    "OSInfo",
    "RemoteSession",
    "ShellDialect",
    "SSHConnectionConfig",
]
