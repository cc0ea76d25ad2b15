"""Operating system classification models."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class OSFamily(str, Enum):
    """Operating system family of a remote host."""

    WINDOWS = "windows"
    LINUX = "linux"
    UNIX = "unix"
    UNKNOWN = "unknown"


class ShellDialect(str, Enum):
    """Command syntax family used on a remote host."""

    POWERSHELL = "powershell"
    CMD = "cmd"
    BASH = "bash"
    SH = "sh"


@dataclass
class OSInfo:
    """Detected environment of a remote host."""

    family: OSFamily
    shell: ShellDialect
    version: str = "Unknown"
    architecture: str | None = None
    detected_at: datetime = field(default_factory=datetime.now)

    @property
    def is_windows(self) -> bool:
        return self.family is OSFamily.WINDOWS

    def age_seconds(self, now: datetime | None = None) -> float:
        """Seconds since detection."""
        return ((now or datetime.now()) - self.detected_at).total_seconds()

    def describe(self) -> str:
        """One-line human readable description."""
        arch = f" ({self.architecture})" if self.architecture else ""
        return f"{self.family.value}: {self.version}{arch} [shell={self.shell.value}]"
