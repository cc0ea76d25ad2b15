"""RemoteOps FastMCP server.

This is a thin wrapper that exposes the connection pool as MCP tools.
All business logic is delegated to the tools/ and services/ modules.
"""

import logging
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastmcp import FastMCP
from starlette.requests import Request
from starlette.responses import PlainTextResponse

from remoteops.config import Settings
from remoteops.dependencies import Dependencies
from remoteops.middleware import ErrorHandlingMiddleware, LoggingMiddleware
from remoteops.models import SSHConnectionConfig
from remoteops.tools import (
    handle_diagnose,
    handle_disconnect,
    handle_multi_run,
    handle_os_info,
    handle_pool_status,
    handle_run_command,
)
from remoteops.utils.console import ColorfulFormatter

logger = logging.getLogger(__name__)

NOISY_LOGGERS = (
    "asyncssh",
    "fastmcp",
    "mcp",
    "uvicorn",
    "uvicorn.access",
    "uvicorn.error",
    "httpx",
    "httpcore",
    "starlette",
    "anyio",
)


def configure_logging(settings: Settings) -> None:
    """Configure colorful logging for the remoteops package.

    Args:
        settings: Provides log level and color preference
    """
    use_colors = settings.log_colors and sys.stderr.isatty()

    package_logger = logging.getLogger("remoteops")
    package_logger.setLevel(getattr(logging, settings.log_level, logging.INFO))

    # Only add handler if not already configured
    if not package_logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(ColorfulFormatter(use_colors=use_colors))
        package_logger.addHandler(handler)
        package_logger.propagate = False

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def _settings(
    host: str,
    username: str | None,
    port: int | None,
    password: str | None,
    private_key: str | None,
    passphrase: str | None,
) -> SSHConnectionConfig:
    return SSHConnectionConfig(
        host=host,
        port=port,
        username=username,
        password=password,
        private_key=private_key,
        passphrase=passphrase,
    )


@asynccontextmanager
async def app_lifespan(server: FastMCP) -> AsyncIterator[dict[str, Any]]:
    """Own the dependency container for the server's lifetime.

    The pool is closed on shutdown so no remote sessions outlive the server.

    Args:
        server: The FastMCP server instance

    Yields:
        Dict with the dependency container
    """
    logger.info("RemoteOps server starting up")
    deps: Dependencies | None = getattr(server, "deps", None)
    if deps is None:
        deps = Dependencies.create()
        server.deps = deps  # type: ignore[attr-defined]

    logger.info("RemoteOps server ready to accept connections")
    try:
        yield {"deps": deps}
    finally:
        logger.info("RemoteOps server shutting down")
        if deps.pool.pool_size > 0:
            logger.info(
                "Closing %d pooled SSH connection(s): %s",
                deps.pool.pool_size,
                ", ".join(deps.pool.active_hosts),
            )
        await deps.cleanup()
        logger.info("RemoteOps server shutdown complete")


def configure_middleware(server: FastMCP, settings: Settings) -> None:
    """Add middleware in order: ErrorHandling -> Logging."""
    server.add_middleware(
        ErrorHandlingMiddleware(include_traceback=settings.include_traceback)
    )
    server.add_middleware(LoggingMiddleware())


def register_tools(server: FastMCP) -> None:
    """Register pool-backed tools on the server.

    Tools resolve the dependency container from the server at call time.
    """

    def deps() -> Dependencies:
        container: Dependencies | None = getattr(server, "deps", None)
        if container is None:
            raise RuntimeError("RemoteOps dependencies are not initialized")
        return container

    @server.tool(output_schema=None)
    async def ssh_run_command(
        host: str,
        command: str,
        username: str | None = None,
        port: int | None = None,
        password: str | None = None,
        private_key: str | None = None,
        passphrase: str | None = None,
        adapt: bool = True,
    ) -> str:
        """Execute a command on a remote host, adapted to its shell.

        Args:
            host: Server hostname or IP address
            command: Command to execute
            username: SSH username
            port: SSH port (default: 22)
            password: SSH password (optional if using a key or agent)
            private_key: Path to private key file
            passphrase: Passphrase for an encrypted private key
            adapt: Wrap the command for PowerShell hosts
        """
        settings = _settings(host, username, port, password, private_key, passphrase)
        return await handle_run_command(deps(), settings, command, adapt=adapt)

    @server.tool(output_schema=None)
    async def ssh_diagnose(
        host: str,
        username: str | None = None,
        port: int | None = None,
        password: str | None = None,
        private_key: str | None = None,
        passphrase: str | None = None,
        diagnostics: list[str] | None = None,
    ) -> str:
        """Run OS-appropriate system diagnostics on a remote host.

        Args:
            host: Server hostname or IP address
            diagnostics: Subset of system_info, disk, memory, cpu, processes
        """
        settings = _settings(host, username, port, password, private_key, passphrase)
        return await handle_diagnose(deps(), settings, diagnostics)

    @server.tool(output_schema=None)
    async def ssh_multi_run(
        hosts: list[str],
        command: str,
        username: str | None = None,
        port: int | None = None,
        password: str | None = None,
        private_key: str | None = None,
        passphrase: str | None = None,
    ) -> str:
        """Execute the same command on several hosts concurrently.

        Args:
            hosts: Hostnames or IP addresses sharing the same credentials
            command: Command to execute, adapted per host
        """
        targets = [
            _settings(h, username, port, password, private_key, passphrase)
            for h in hosts
        ]
        return await handle_multi_run(deps(), targets, command)

    @server.tool(output_schema=None)
    async def ssh_os_info(
        host: str,
        username: str | None = None,
        port: int | None = None,
        password: str | None = None,
        private_key: str | None = None,
        passphrase: str | None = None,
    ) -> str:
        """Report the detected operating system and shell of a remote host."""
        settings = _settings(host, username, port, password, private_key, passphrase)
        return await handle_os_info(deps(), settings)

    @server.tool(output_schema=None)
    def ssh_pool_status() -> str:
        """Show pooled SSH connections and their state."""
        return handle_pool_status(deps())

    @server.tool(output_schema=None)
    async def ssh_disconnect(
        host: str,
        username: str | None = None,
        port: int | None = None,
        password: str | None = None,
        private_key: str | None = None,
    ) -> str:
        """Close and forget the pooled connection to a host."""
        settings = _settings(host, username, port, password, private_key, None)
        return await handle_disconnect(deps(), settings)


def create_server(deps: Dependencies | None = None) -> FastMCP:
    """Create and configure the MCP server.

    Args:
        deps: Dependency container; created from the environment at
            startup when omitted

    Returns:
        Configured FastMCP server instance
    """
    server = FastMCP("remoteops", lifespan=app_lifespan)
    if deps is not None:
        server.deps = deps  # type: ignore[attr-defined]

    settings = deps.config.settings if deps is not None else Settings.from_env()
    configure_middleware(server, settings)
    register_tools(server)

    @server.custom_route("/health", methods=["GET"])
    async def health_check(request: Request) -> PlainTextResponse:
        """Health check endpoint."""
        client_host = request.client.host if request.client else "unknown"
        logger.debug("Health check from %s", client_host)
        return PlainTextResponse("OK")

    return server
