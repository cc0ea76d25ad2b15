"""SSH-related data models."""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from remoteops.models.os_info import OSInfo
    from remoteops.protocols import Session

DEFAULT_PORT = 22
AGENT_CREDENTIAL = "agent"


@dataclass
class SSHConnectionConfig:
    """Connection settings for a single remote host."""

    host: str
    port: int | None = None
    username: str | None = None
    password: str | None = None
    private_key: str | None = None
    passphrase: str | None = None
    use_agent: bool | None = None
    config_file: str | None = None

    def __post_init__(self) -> None:
        if self.use_agent is None:
            self.use_agent = not self.password and not self.private_key

    @property
    def effective_port(self) -> int:
        """Port to connect to, defaulting to 22."""
        return self.port or DEFAULT_PORT

    @property
    def credential_id(self) -> str:
        """Identify the credential used for authentication.

        Key path wins over password; agent auth uses a fixed sentinel.
        """
        return self.private_key or self.password or AGENT_CREDENTIAL

    def __repr__(self) -> str:
        return (
            f"SSHConnectionConfig(host={self.host!r}, port={self.port!r}, "
            f"username={self.username!r}, private_key={self.private_key!r}, "
            f"password={'***' if self.password else None}, "
            f"use_agent={self.use_agent!r})"
        )


@dataclass(frozen=True)
class ConnectionKey:
    """Pool identity of a logical connection."""

    host: str
    port: int
    username: str | None
    credential_id: str

    @classmethod
    def derive(cls, host: str, config: SSHConnectionConfig) -> "ConnectionKey":
        """Derive the key for a host and its connection settings.

        Args:
            host: Target host name or address
            config: Connection settings (auth material, port, username)

        Returns:
            Key shared by every request for the same logical connection
        """
        return cls(
            host=host,
            port=config.effective_port,
            username=config.username,
            credential_id=config.credential_id,
        )

    def __str__(self) -> str:
        return f"{self.host}:{self.port}:{self.username}:{self.credential_id}"

    def __repr__(self) -> str:
        # Passwords may be the credential id; never print them
        return f"ConnectionKey({self.username}@{self.host}:{self.port})"


@dataclass
class PooledEntry:
    """A pooled session with its usage and classification metadata."""

    session: "Session"
    host: str
    username: str
    os_info: "OSInfo | None" = None
    last_used: datetime = field(default_factory=datetime.now)

    def touch(self) -> None:
        """Update last-used timestamp."""
        now = datetime.now()
        # last_used must strictly increase across touches
        if now <= self.last_used:
            now = self.last_used + timedelta(microseconds=1)
        self.last_used = now

    @property
    def is_stale(self) -> bool:
        """Check if the session reports itself disconnected."""
        return not self.session.connected

    def idle_seconds(self, now: datetime | None = None) -> float:
        """Seconds since this entry was last handed out."""
        return ((now or datetime.now()) - self.last_used).total_seconds()


@dataclass
class ConnectionSummary:
    """Snapshot of one pooled connection."""

    host: str
    username: str
    last_used: datetime
    is_connected: bool
    os_family: str | None = None
    shell: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "host": self.host,
            "username": self.username,
            "last_used": self.last_used.isoformat(),
            "is_connected": self.is_connected,
            "os_family": self.os_family,
            "shell": self.shell,
        }


@dataclass
class PoolStatus:
    """Snapshot of the whole connection pool."""

    total_connections: int
    active_connections: int
    connections: list[ConnectionSummary] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_connections": self.total_connections,
            "active_connections": self.active_connections,
            "connections": [c.to_dict() for c in self.connections],
        }
