"""Results for multi-host operations."""

from dataclasses import dataclass


@dataclass
class HostCommandResult:
    """Result from a single host in a multi-host command run."""

    host: str
    command: str
    output: str
    success: bool
    exit_code: int | None = None
    error: str | None = None
