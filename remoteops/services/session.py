"""Remote shell session backed by asyncssh."""

import asyncio
import getpass
import logging
from pathlib import Path
from typing import Any

import asyncssh

from remoteops.config.parser import SSHConfigParser
from remoteops.models import CommandResult, SSHConnectionConfig

logger = logging.getLogger(__name__)


class ConnectionError(Exception):
    """Failed to establish an SSH session."""

    def __init__(self, host_name: str, original_error: Exception):
        """Initialize connection error.

        Args:
            host_name: Name of the SSH host
            original_error: Original exception that caused the failure
        """
        self.host_name = host_name
        self.original_error = original_error
        super().__init__(f"Cannot connect to {host_name}: {original_error}")


class ExecutionError(Exception):
    """A remote command could not be dispatched."""

    def __init__(self, command: str, original_error: Exception):
        self.command = command
        self.original_error = original_error
        super().__init__(f"Failed to execute command {command!r}: {original_error}")


class _SessionClient(asyncssh.SSHClient):
    """Reports transport loss back to the owning session."""

    def __init__(self, session: "RemoteSession") -> None:
        self._session = session

    def connection_lost(self, exc: Exception | None) -> None:
        self._session._mark_disconnected(exc)


def _decode(data: Any) -> str:
    if data is None:
        return ""
    if isinstance(data, bytes):
        return data.decode("utf-8", errors="replace")
    return str(data)


class RemoteSession:
    """A single SSH session to one host.

    The session connects lazily on first command if ``connect`` was not
    awaited. Commands run in their own channel; cancelling a running
    command closes that channel.
    """

    def __init__(
        self,
        config: SSHConnectionConfig,
        known_hosts: str | None = None,
        strict_host_key_checking: bool = True,
        ssh_config: SSHConfigParser | None = None,
    ) -> None:
        self.config = config
        self._known_hosts = known_hosts
        self._strict_host_key = strict_host_key_checking
        self._ssh_config = ssh_config
        self._conn: asyncssh.SSHClientConnection | None = None
        self._connected = False
        self._connect_lock = asyncio.Lock()

    @property
    def host(self) -> str:
        return self.config.host

    @property
    def connected(self) -> bool:
        """Whether the underlying transport is open."""
        return self._connected

    def _mark_disconnected(self, exc: Exception | None) -> None:
        if self._connected:
            if exc:
                logger.info("SSH connection to %s lost: %s", self.host, exc)
            else:
                logger.debug("SSH connection to %s closed", self.host)
        self._connected = False

    def _connect_options(self) -> dict[str, Any]:
        """Build asyncssh.connect keyword arguments from the config.

        Port, user and identity file not given explicitly are filled from
        the matching ~/.ssh/config entry.
        """
        cfg = self.config
        hostname = cfg.host
        port = cfg.port
        username = cfg.username
        private_key = cfg.private_key

        if cfg.config_file or not (cfg.private_key or cfg.password):
            parser = self._ssh_config or SSHConfigParser(cfg.config_file)
            entry = parser.resolve(cfg.host)
            if entry is not None:
                hostname = entry.hostname or hostname
                port = port or entry.port
                username = username or entry.user
                if not private_key:
                    private_key = entry.existing_identity_file()

        options: dict[str, Any] = {
            "host": hostname,
            "port": port or 22,
            "username": username or getpass.getuser(),
            "known_hosts": self._known_hosts,
            "client_factory": lambda: _SessionClient(self),
        }

        if cfg.password:
            options["password"] = cfg.password
        elif private_key:
            if Path(private_key).expanduser().exists():
                options["client_keys"] = [str(Path(private_key).expanduser())]
                if cfg.passphrase:
                    options["passphrase"] = cfg.passphrase
            else:
                # Key material passed inline rather than as a path
                options["client_keys"] = [
                    asyncssh.import_private_key(private_key, cfg.passphrase)
                ]
        elif not cfg.use_agent:
            options["agent_path"] = None

        return options

    async def connect(self) -> None:
        """Open the SSH connection.

        Raises:
            ConnectionError: On transport or authentication failure
        """
        async with self._connect_lock:
            if self._connected:
                return

            try:
                options = self._connect_options()
                logger.info(
                    "Opening SSH connection to %s (%s@%s:%d)",
                    self.host,
                    options["username"],
                    options["host"],
                    options["port"],
                )
                host = options.pop("host")

                try:
                    conn = await asyncssh.connect(host, **options)
                except asyncssh.HostKeyNotVerifiable as e:
                    if self._strict_host_key:
                        logger.error(
                            "Host key verification failed for %s: %s. "
                            "Add the host key to %s or set "
                            "REMOTEOPS_STRICT_HOST_KEY_CHECKING=false",
                            self.host,
                            e,
                            self._known_hosts,
                        )
                        raise
                    logger.warning(
                        "Host key not verified for %s (strict mode disabled): %s",
                        self.host,
                        e,
                    )
                    options["known_hosts"] = None
                    conn = await asyncssh.connect(host, **options)
            except (asyncssh.Error, OSError, asyncio.TimeoutError, ValueError) as e:
                raise ConnectionError(self.host, e) from e

            self._conn = conn
            self._connected = True

    async def execute_command(
        self, command: str, timeout: float | None = None
    ) -> CommandResult:
        """Run a command and collect its output.

        Args:
            command: Command line to run in the remote shell
            timeout: Optional limit in seconds; the channel is closed on expiry

        Returns:
            Command output and exit code (nonzero exit is not an error)

        Raises:
            ConnectionError: If a lazy connect fails
            ExecutionError: If the channel cannot be opened or the command times out
        """
        if not self._connected or self._conn is None:
            await self.connect()
        assert self._conn is not None

        try:
            async with self._conn.create_process(command) as process:
                if timeout is None:
                    completed = await process.wait(check=False)
                else:
                    completed = await asyncio.wait_for(
                        process.wait(check=False), timeout=timeout
                    )
        except asyncio.TimeoutError as e:
            raise ExecutionError(command, e) from e
        except (asyncssh.Error, OSError) as e:
            raise ExecutionError(command, e) from e

        exit_code = completed.exit_status
        return CommandResult(
            stdout=_decode(completed.stdout),
            stderr=_decode(completed.stderr),
            exit_code=exit_code if exit_code is not None else -1,
        )

    async def disconnect(self) -> None:
        """Close the connection. Safe to call more than once."""
        conn = self._conn
        self._conn = None
        self._connected = False
        if conn is None:
            return

        conn.close()
        await conn.wait_closed()
        logger.debug("Disconnected from %s", self.host)

    def __repr__(self) -> str:
        state = "connected" if self._connected else "disconnected"
        return f"<RemoteSession {self.config.username or ''}@{self.host} {state}>"
