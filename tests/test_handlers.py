"""Tests for MCP tool handlers."""

import json

import pytest

from conftest import FakeSessionFactory
from remoteops.config import Config
from remoteops.dependencies import Dependencies
from remoteops.models import CommandResult, SSHConnectionConfig
from remoteops.services.pool import ConnectionPool
from remoteops.services.session import ConnectionError
from remoteops.tools import (
    handle_diagnose,
    handle_disconnect,
    handle_multi_run,
    handle_os_info,
    handle_pool_status,
    handle_run_command,
)


@pytest.fixture
def deps(pool: ConnectionPool) -> Dependencies:
    return Dependencies(config=Config.for_testing(), pool=pool)


@pytest.fixture
def scripted(fake_factory: FakeSessionFactory) -> FakeSessionFactory:
    fake_factory.responses = {
        **fake_factory.responses,
        "uptime": CommandResult(" 10:00 up 3 days\n", "", 0),
        "cat /missing": CommandResult("", "No such file or directory\n", 1),
        "df -h": CommandResult("/dev/sda1  50G\n", "", 0),
        "free -h": CommandResult("Mem: 16Gi\n", "", 0),
    }
    return fake_factory


@pytest.mark.asyncio
async def test_run_command_returns_output(
    deps: Dependencies, scripted: FakeSessionFactory, host_config: SSHConnectionConfig
) -> None:
    result = await handle_run_command(deps, host_config, "uptime")

    assert result == " 10:00 up 3 days"


@pytest.mark.asyncio
async def test_run_command_reports_stderr_and_exit_code(
    deps: Dependencies, scripted: FakeSessionFactory, host_config: SSHConnectionConfig
) -> None:
    result = await handle_run_command(deps, host_config, "cat /missing")

    assert "Errors:\nNo such file or directory" in result
    assert "Exit code: 1" in result


@pytest.mark.asyncio
async def test_run_command_connection_error(
    deps: Dependencies,
    fake_factory: FakeSessionFactory,
    host_config: SSHConnectionConfig,
    refused: ConnectionError,
) -> None:
    fake_factory.connect_error = refused

    result = await handle_run_command(deps, host_config, "uptime")

    assert result.startswith("Error: Cannot connect to web1")


@pytest.mark.asyncio
async def test_diagnose_selected_sections(
    deps: Dependencies, scripted: FakeSessionFactory, host_config: SSHConnectionConfig
) -> None:
    result = await handle_diagnose(deps, host_config, ["disk", "memory"])

    assert result.startswith("# Diagnostics for web1\nlinux: Ubuntu 22.04.3 LTS")
    assert "## disk\n/dev/sda1  50G" in result
    assert "## memory\nMem: 16Gi" in result
    assert "## cpu" not in result


@pytest.mark.asyncio
async def test_diagnose_failed_section_does_not_abort(
    deps: Dependencies, scripted: FakeSessionFactory, host_config: SSHConnectionConfig
) -> None:
    result = await handle_diagnose(deps, host_config, ["cpu", "disk"])

    assert "## cpu\nError:" in result
    assert "## disk\n/dev/sda1" in result


@pytest.mark.asyncio
async def test_diagnose_rejects_unknown_kind(
    deps: Dependencies, fake_factory: FakeSessionFactory, host_config: SSHConnectionConfig
) -> None:
    result = await handle_diagnose(deps, host_config, ["network"])

    assert result.startswith("Error:")
    assert "Valid diagnostics: system_info, disk, memory, cpu, processes" in result
    assert fake_factory.sessions == []


@pytest.mark.asyncio
async def test_multi_run_summary(
    deps: Dependencies, scripted: FakeSessionFactory
) -> None:
    targets = [SSHConnectionConfig(host="a"), SSHConnectionConfig(host="b")]

    result = await handle_multi_run(deps, targets, "uptime")

    assert "=== a ===" in result
    assert "=== b ===" in result
    assert result.endswith("--- 2/2 hosts succeeded ---")


@pytest.mark.asyncio
async def test_multi_run_marks_failures(
    deps: Dependencies, scripted: FakeSessionFactory
) -> None:
    targets = [SSHConnectionConfig(host="a")]

    result = await handle_multi_run(deps, targets, "cat /missing")

    assert "=== a [FAILED] ===" in result
    assert result.endswith("--- 0/1 hosts succeeded ---")


@pytest.mark.asyncio
async def test_multi_run_requires_hosts(deps: Dependencies) -> None:
    assert await handle_multi_run(deps, [], "uptime") == "Error: no hosts given"


@pytest.mark.asyncio
async def test_os_info_json(
    deps: Dependencies, host_config: SSHConnectionConfig
) -> None:
    data = json.loads(await handle_os_info(deps, host_config))

    assert data["host"] == "web1"
    assert data["family"] == "linux"
    assert data["shell"] == "bash"
    assert data["architecture"] == "x86_64"


@pytest.mark.asyncio
async def test_pool_status_and_disconnect(
    deps: Dependencies, host_config: SSHConnectionConfig
) -> None:
    await handle_os_info(deps, host_config)

    status = json.loads(handle_pool_status(deps))
    assert status["total_connections"] == 1
    assert status["connections"][0]["host"] == "web1"

    assert await handle_disconnect(deps, host_config) == "Disconnected web1"
    assert json.loads(handle_pool_status(deps))["total_connections"] == 0
