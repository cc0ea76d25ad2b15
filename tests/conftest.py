"""Shared fixtures: in-memory sessions that satisfy the Session protocol."""

import asyncio
from collections.abc import Callable

import pytest
import pytest_asyncio

from remoteops.models import CommandResult, SSHConnectionConfig
from remoteops.services.health import PING_COMMAND
from remoteops.services.os_detector import (
    ARCH_PROBE,
    LINUX_PROBE,
    UNIX_PROBE,
    WINDOWS_ENV_PROBE,
    WINDOWS_PROBE,
)
from remoteops.services.pool import ConnectionPool
from remoteops.services.session import ConnectionError, ExecutionError


Response = CommandResult | Exception | Callable[[], CommandResult]

UBUNTU_RELEASE = (
    'NAME="Ubuntu"\n'
    'VERSION="22.04.3 LTS (Jammy Jellyfish)"\n'
    "ID=ubuntu\n"
    'PRETTY_NAME="Ubuntu 22.04.3 LTS"\n'
)

WINDOWS_SYSTEMINFO = (
    "OS Name:                   Microsoft Windows Server 2022 Standard\n"
    "OS Version:                10.0.20348 N/A Build 20348\n"
    "System Type:               x64-based PC\n"
)

LINUX_RESPONSES: dict[str, Response] = {
    WINDOWS_PROBE: CommandResult("", "'systeminfo' not found", 127),
    WINDOWS_ENV_PROBE: CommandResult("%OS%\n", "", 0),
    LINUX_PROBE: CommandResult(UBUNTU_RELEASE, "", 0),
    ARCH_PROBE: CommandResult("x86_64\n", "", 0),
}

WINDOWS_RESPONSES: dict[str, Response] = {
    WINDOWS_PROBE: CommandResult(WINDOWS_SYSTEMINFO, "", 0),
}

UNIX_RESPONSES: dict[str, Response] = {
    WINDOWS_PROBE: CommandResult("", "not found", 127),
    WINDOWS_ENV_PROBE: CommandResult("%OS%\n", "", 0),
    LINUX_PROBE: CommandResult("", "", 1),
    UNIX_PROBE: CommandResult("FreeBSD\n", "", 0),
    ARCH_PROBE: CommandResult("amd64\n", "", 0),
}


class FakeSession:
    """Scripted session; unknown commands fail to dispatch."""

    def __init__(
        self,
        responses: dict[str, Response] | None = None,
        connect_error: Exception | None = None,
        connect_delay: float = 0.0,
        name: str = "fake",
    ) -> None:
        self.responses = dict(responses or {})
        self.connect_error = connect_error
        self.connect_delay = connect_delay
        self.name = name
        self.commands: list[str] = []
        self.connect_calls = 0
        self.disconnect_calls = 0
        self.ping_reply: Response = CommandResult("ping\n", "", 0)
        self.ping_delay = 0.0
        self._connected = False

    @property
    def connected(self) -> bool:
        return self._connected

    def drop(self) -> None:
        """Simulate transport loss."""
        self._connected = False

    async def connect(self) -> None:
        self.connect_calls += 1
        if self.connect_delay:
            await asyncio.sleep(self.connect_delay)
        if self.connect_error is not None:
            raise self.connect_error
        self._connected = True

    async def execute_command(
        self, command: str, timeout: float | None = None
    ) -> CommandResult:
        self.commands.append(command)
        if command == PING_COMMAND:
            if self.ping_delay:
                await asyncio.sleep(self.ping_delay)
            response = self.ping_reply
        elif command in self.responses:
            response = self.responses[command]
        else:
            raise ExecutionError(command, RuntimeError("no scripted response"))

        if isinstance(response, Exception):
            raise response
        if callable(response):
            return response()
        return response

    async def disconnect(self) -> None:
        self.disconnect_calls += 1
        self._connected = False

    def __repr__(self) -> str:
        return f"<FakeSession {self.name}>"


class FakeSessionFactory:
    """Session factory recording every session it builds."""

    def __init__(self, responses: dict[str, Response] | None = None) -> None:
        self.responses = LINUX_RESPONSES if responses is None else responses
        self.sessions: list[FakeSession] = []
        self.connect_error: Exception | None = None
        self.connect_delay = 0.0

    def __call__(self, config: SSHConnectionConfig) -> FakeSession:
        session = FakeSession(
            self.responses,
            connect_error=self.connect_error,
            connect_delay=self.connect_delay,
            name=f"{config.host}#{len(self.sessions)}",
        )
        self.sessions.append(session)
        return session


@pytest.fixture
def fake_factory() -> FakeSessionFactory:
    """Factory producing Linux-looking sessions."""
    return FakeSessionFactory()


@pytest_asyncio.fixture
async def pool(fake_factory: FakeSessionFactory):
    """Pool over fake sessions, closed after the test."""
    pool = ConnectionPool(idle_timeout=60, session_factory=fake_factory)
    yield pool
    await pool.close_all()


@pytest.fixture
def host_config() -> SSHConnectionConfig:
    """Password-authenticated settings for a single host."""
    return SSHConnectionConfig(host="web1", username="deploy", password="s3cret")


@pytest.fixture
def refused() -> ConnectionError:
    return ConnectionError("web1", OSError("Connection refused"))
