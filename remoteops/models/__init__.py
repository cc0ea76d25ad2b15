"""Data models for RemoteOps."""

from remoteops.models.broadcast import HostCommandResult
from remoteops.models.command import CommandResult
from remoteops.models.os_info import OSFamily, OSInfo, ShellDialect
from remoteops.models.ssh import (
    ConnectionKey,
    ConnectionSummary,
    PooledEntry,
    PoolStatus,
    SSHConnectionConfig,
)

__all__ = [
    "CommandResult",
    "ConnectionKey",
    "ConnectionSummary",
    "HostCommandResult",
    "OSFamily",
    "OSInfo",
    "PooledEntry",
    "PoolStatus",
    "ShellDialect",
    "SSHConnectionConfig",
]
