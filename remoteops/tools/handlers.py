"""Tool handlers exposing the connection pool to MCP clients.

Handlers take the dependency container explicitly and return plain text.
Connection and execution failures are reported as ``Error: ...`` strings.
"""

import json
import logging
from typing import TYPE_CHECKING

from remoteops.models import CommandResult, SSHConnectionConfig
from remoteops.services import (
    ConnectionError,
    DiagnosticKind,
    ExecutionError,
    run_command,
    run_diagnostic,
    run_on_hosts,
)

if TYPE_CHECKING:
    from remoteops.dependencies import Dependencies

logger = logging.getLogger(__name__)


def _format_result(host: str, result: CommandResult) -> str:
    parts = [result.stdout.rstrip("\n")]
    if result.stderr:
        parts.append(f"---\nErrors:\n{result.stderr.rstrip()}")
    if not result.ok:
        parts.append(f"Exit code: {result.exit_code}")
    return "\n".join(p for p in parts if p) or f"(no output from {host})"


async def handle_run_command(
    deps: "Dependencies",
    settings: SSHConnectionConfig,
    command: str,
    adapt: bool = True,
) -> str:
    """Run a command on a host and format its output."""
    try:
        result = await run_command(
            deps.pool,
            settings.host,
            settings,
            command,
            adapt=adapt,
            timeout=deps.config.command_timeout,
        )
    except (ConnectionError, ExecutionError) as e:
        return f"Error: {e}"
    return _format_result(settings.host, result)


async def handle_diagnose(
    deps: "Dependencies",
    settings: SSHConnectionConfig,
    kinds: list[str] | None = None,
) -> str:
    """Run canonical diagnostics and format one section per diagnostic."""
    try:
        selected = [DiagnosticKind(k) for k in kinds] if kinds else list(DiagnosticKind)
    except ValueError as e:
        valid = ", ".join(k.value for k in DiagnosticKind)
        return f"Error: {e}. Valid diagnostics: {valid}"

    sections = []
    for kind in selected:
        try:
            result = await run_diagnostic(
                deps.pool, settings.host, settings, kind, timeout=deps.config.command_timeout
            )
        except ConnectionError as e:
            return f"Error: {e}"
        except ExecutionError as e:
            sections.append(f"## {kind.value}\nError: {e}")
            continue
        sections.append(f"## {kind.value}\n{_format_result(settings.host, result)}")

    os_info = deps.pool.get_os_info(settings.host, settings)
    header = f"# Diagnostics for {settings.host}"
    if os_info is not None:
        header += f"\n{os_info.describe()}"
    return "\n\n".join([header, *sections])


async def handle_multi_run(
    deps: "Dependencies",
    targets: list[SSHConnectionConfig],
    command: str,
) -> str:
    """Run a command on several hosts and summarize."""
    if not targets:
        return "Error: no hosts given"

    results = await run_on_hosts(
        deps.pool, targets, command, timeout=deps.config.command_timeout
    )

    lines = []
    for r in results:
        status = "" if r.success else " [FAILED]"
        lines.append(f"=== {r.host}{status} ===")
        lines.append(r.output if r.success else (r.output or f"Error: {r.error}"))
        lines.append("")

    success_count = sum(1 for r in results if r.success)
    lines.append(f"--- {success_count}/{len(results)} hosts succeeded ---")
    return "\n".join(lines)


async def handle_os_info(deps: "Dependencies", settings: SSHConnectionConfig) -> str:
    """Connect if needed and report the host's classification."""
    try:
        await deps.pool.get_connection(settings.host, settings)
    except ConnectionError as e:
        return f"Error: {e}"

    os_info = deps.pool.get_os_info(settings.host, settings)
    if os_info is None:
        return f"No OS information for {settings.host}"

    return json.dumps(
        {
            "host": settings.host,
            "family": os_info.family.value,
            "version": os_info.version,
            "architecture": os_info.architecture,
            "shell": os_info.shell.value,
            "detected_at": os_info.detected_at.isoformat(),
        },
        indent=2,
    )


def handle_pool_status(deps: "Dependencies") -> str:
    """Describe the pool as JSON."""
    return json.dumps(deps.pool.get_pool_status().to_dict(), indent=2)


async def handle_disconnect(deps: "Dependencies", settings: SSHConnectionConfig) -> str:
    """Drop a pooled connection."""
    await deps.pool.remove_connection(settings.host, settings)
    return f"Disconnected {settings.host}"
