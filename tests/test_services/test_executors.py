"""Tests for command execution on pooled sessions."""

import pytest

from conftest import WINDOWS_RESPONSES, FakeSessionFactory
from remoteops.models import CommandResult, SSHConnectionConfig
from remoteops.services.commands import DiagnosticKind
from remoteops.services.executors import run_command, run_diagnostic, run_on_hosts
from remoteops.services.pool import ConnectionPool
from remoteops.services.session import ConnectionError, ExecutionError


@pytest.fixture
def windows_factory() -> FakeSessionFactory:
    responses = dict(WINDOWS_RESPONSES)
    responses['powershell "Get-Service"'] = CommandResult("Running  WinRM\n", "", 0)
    responses["systeminfo"] = CommandResult("Host Name: WIN1\n", "", 0)
    return FakeSessionFactory(responses)


@pytest.mark.asyncio
async def test_run_command_on_linux_is_unchanged(
    pool: ConnectionPool,
    fake_factory: FakeSessionFactory,
    host_config: SSHConnectionConfig,
) -> None:
    fake_factory.responses = {
        **fake_factory.responses,
        "uptime": CommandResult("up 3 days\n", "", 0),
    }

    result = await run_command(pool, "web1", host_config, "uptime")

    assert result.stdout == "up 3 days\n"
    assert fake_factory.sessions[0].commands[-1] == "uptime"


@pytest.mark.asyncio
async def test_run_command_adapts_for_powershell(
    windows_factory: FakeSessionFactory,
) -> None:
    pool = ConnectionPool(session_factory=windows_factory)
    config = SSHConnectionConfig(host="win1", username="Administrator", password="pw")
    try:
        result = await run_command(pool, "win1", config, "Get-Service")

        assert result.stdout == "Running  WinRM\n"
        assert windows_factory.sessions[0].commands[-1] == 'powershell "Get-Service"'
    finally:
        await pool.close_all()


@pytest.mark.asyncio
async def test_run_command_without_adaptation(
    windows_factory: FakeSessionFactory,
) -> None:
    pool = ConnectionPool(session_factory=windows_factory)
    config = SSHConnectionConfig(host="win1", password="pw")
    try:
        with pytest.raises(ExecutionError):
            await run_command(pool, "win1", config, "Get-Service", adapt=False)

        assert windows_factory.sessions[0].commands[-1] == "Get-Service"
    finally:
        await pool.close_all()


@pytest.mark.asyncio
async def test_run_command_nonzero_exit_is_returned(
    pool: ConnectionPool,
    fake_factory: FakeSessionFactory,
    host_config: SSHConnectionConfig,
) -> None:
    fake_factory.responses = {
        **fake_factory.responses,
        "false": CommandResult("", "", 1),
    }

    result = await run_command(pool, "web1", host_config, "false")

    assert result.exit_code == 1
    assert not result.ok


@pytest.mark.asyncio
async def test_run_diagnostic_picks_family_command(
    windows_factory: FakeSessionFactory,
) -> None:
    """Canonical Windows commands run as written, without re-wrapping."""
    pool = ConnectionPool(session_factory=windows_factory)
    config = SSHConnectionConfig(host="win1", password="pw")
    try:
        result = await run_diagnostic(pool, "win1", config, DiagnosticKind.SYSTEM_INFO)

        assert result.stdout == "Host Name: WIN1\n"
        assert windows_factory.sessions[0].commands[-1] == "systeminfo"
    finally:
        await pool.close_all()


@pytest.mark.asyncio
async def test_run_diagnostic_on_linux(
    pool: ConnectionPool,
    fake_factory: FakeSessionFactory,
    host_config: SSHConnectionConfig,
) -> None:
    fake_factory.responses = {
        **fake_factory.responses,
        "df -h": CommandResult("/dev/sda1 50G\n", "", 0),
    }

    result = await run_diagnostic(pool, "web1", host_config, "disk")

    assert "/dev/sda1" in result.stdout


@pytest.mark.asyncio
async def test_run_diagnostic_rejects_unknown_kind(
    pool: ConnectionPool,
    fake_factory: FakeSessionFactory,
    host_config: SSHConnectionConfig,
) -> None:
    with pytest.raises(ValueError):
        await run_diagnostic(pool, "web1", host_config, "network")

    assert fake_factory.sessions == []


@pytest.mark.asyncio
async def test_run_on_hosts_reports_each_host(
    pool: ConnectionPool,
    fake_factory: FakeSessionFactory,
) -> None:
    fake_factory.responses = {
        **fake_factory.responses,
        "hostname": CommandResult("node\n", "", 0),
    }
    targets = [SSHConnectionConfig(host=f"node{i}") for i in range(3)]

    results = await run_on_hosts(pool, targets, "hostname")

    assert [r.host for r in results] == ["node0", "node1", "node2"]
    assert all(r.success for r in results)
    assert all(r.output == "node\n" for r in results)
    assert pool.pool_size == 3


@pytest.mark.asyncio
async def test_run_on_hosts_isolates_failures(
    pool: ConnectionPool,
    fake_factory: FakeSessionFactory,
    refused: ConnectionError,
) -> None:
    """One unreachable host does not abort the others."""
    fake_factory.responses = {
        **fake_factory.responses,
        "check": CommandResult("partial\n", "disk full\n", 2),
    }
    original_call = fake_factory.__call__

    def factory(config):
        session = original_call(config)
        if config.host == "down":
            session.connect_error = refused
        return session

    pool._session_factory = factory
    targets = [
        SSHConnectionConfig(host="up"),
        SSHConnectionConfig(host="down"),
    ]

    up, down = await run_on_hosts(pool, targets, "check")

    assert up.success is False
    assert up.exit_code == 2
    assert "Errors:\ndisk full" in up.output
    assert "Exit code: 2" in up.output

    assert down.success is False
    assert down.exit_code is None
    assert "Connection refused" in down.error
