"""Command execution on pooled sessions."""

import asyncio
import logging
from typing import TYPE_CHECKING

from remoteops.models import CommandResult, HostCommandResult, OSInfo
from remoteops.services.commands import (
    DiagnosticKind,
    format_command,
    get_diagnostic_command,
)
from remoteops.services.os_detector import unknown_os

if TYPE_CHECKING:
    from remoteops.models import SSHConnectionConfig
    from remoteops.services.pool import ConnectionPool

logger = logging.getLogger(__name__)


def _classification(
    pool: "ConnectionPool", host: str, config: "SSHConnectionConfig"
) -> OSInfo:
    return (
        pool.get_os_info(host, config)
        or pool.detector.get_cached(host)
        or unknown_os()
    )


async def run_command(
    pool: "ConnectionPool",
    host: str,
    config: "SSHConnectionConfig",
    command: str,
    adapt: bool = True,
    timeout: float | None = None,
) -> CommandResult:
    """Execute a command on a pooled session.

    Args:
        pool: Connection pool
        host: Target host
        config: Connection settings for the host
        command: Command to run
        adapt: Rewrite the command for the host's shell dialect
        timeout: Optional command timeout in seconds

    Returns:
        CommandResult with stdout, stderr, and exit code.

    Raises:
        ConnectionError: If no session can be established
        ExecutionError: If the command cannot be dispatched
    """
    session = await pool.get_connection(host, config)
    if adapt:
        command = format_command(_classification(pool, host, config), command)

    logger.debug("Running on %s: %s", host, command)
    return await session.execute_command(command, timeout=timeout)


async def run_diagnostic(
    pool: "ConnectionPool",
    host: str,
    config: "SSHConnectionConfig",
    kind: DiagnosticKind | str,
    timeout: float | None = None,
) -> CommandResult:
    """Run the canonical diagnostic command for the host's OS family.

    Canonical commands are already written for their target shell and are
    executed without further adaptation.

    Raises:
        ValueError: If kind is not a known diagnostic
    """
    kind = DiagnosticKind(kind)
    session = await pool.get_connection(host, config)
    command = get_diagnostic_command(_classification(pool, host, config), kind)

    logger.debug("Running %s diagnostic on %s", kind.value, host)
    return await session.execute_command(command, timeout=timeout)


async def run_on_hosts(
    pool: "ConnectionPool",
    targets: list["SSHConnectionConfig"],
    command: str,
    timeout: float | None = None,
) -> list[HostCommandResult]:
    """Execute a command on multiple hosts concurrently.

    A failure on one host is reported in its result and does not abort
    the others.

    Args:
        pool: Connection pool
        targets: Connection settings, one per host
        command: Command to run, adapted per host
        timeout: Optional command timeout in seconds

    Returns:
        List of HostCommandResult, one per target.
    """

    async def execute_single(config: "SSHConnectionConfig") -> HostCommandResult:
        try:
            result = await run_command(pool, config.host, config, command, timeout=timeout)
        except Exception as e:
            logger.warning("Command on %s failed: %s", config.host, e)
            return HostCommandResult(
                host=config.host, command=command, output="", success=False, error=str(e)
            )

        output_parts = [result.stdout]
        if result.stderr:
            output_parts.append("\n---\nErrors:\n" + result.stderr)
        if not result.ok:
            output_parts.append(f"\nExit code: {result.exit_code}")

        return HostCommandResult(
            host=config.host,
            command=command,
            output="".join(output_parts),
            success=result.ok,
            exit_code=result.exit_code,
            error=None if result.ok else f"Command exited with code {result.exit_code}",
        )

    results = await asyncio.gather(*(execute_single(t) for t in targets))
    return list(results)
