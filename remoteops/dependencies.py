"""Dependency injection container for RemoteOps.

The pool is an explicit object owned by this container; whoever creates
the container is responsible for shutting it down.
"""

import asyncio
import logging
import signal
from collections.abc import Callable
from dataclasses import dataclass, field

from remoteops.config import Config
from remoteops.models import SSHConnectionConfig
from remoteops.services.os_detector import OSDetector
from remoteops.services.pool import ConnectionPool
from remoteops.services.session import RemoteSession

logger = logging.getLogger(__name__)


def build_pool(config: Config) -> ConnectionPool:
    """Create a connection pool from configuration."""

    def session_factory(settings: SSHConnectionConfig) -> RemoteSession:
        return RemoteSession(
            settings,
            known_hosts=config.known_hosts_path,
            strict_host_key_checking=config.strict_host_key_checking,
            ssh_config=None if settings.config_file else config.parser,
        )

    return ConnectionPool(
        idle_timeout=config.idle_timeout,
        cleanup_interval=config.cleanup_interval,
        health_check_timeout=config.health_check_timeout,
        max_size=config.max_pool_size,
        detector=OSDetector(ttl=config.os_cache_ttl),
        session_factory=session_factory,
    )


@dataclass
class Dependencies:
    """Container for RemoteOps dependencies.

    Holds configuration and connection pool instances.
    Pass this to functions/tools that need access to config or pool.

    Example:
        deps = Dependencies.create()
        try:
            session = await deps.pool.get_connection(host, settings)
        finally:
            await deps.cleanup()
    """

    config: Config
    pool: ConnectionPool
    _shutdown_task: "asyncio.Task[None] | None" = field(
        default=None, init=False, repr=False
    )

    @classmethod
    def create(cls) -> "Dependencies":
        """Create dependencies from the environment.

        Returns:
            Initialized Dependencies instance
        """
        return cls.from_config(Config.from_env())

    @classmethod
    def from_config(cls, config: Config) -> "Dependencies":
        """Create dependencies with custom configuration.

        Args:
            config: Custom Config instance

        Returns:
            Dependencies with pool initialized from config
        """
        return cls(config=config, pool=build_pool(config))

    async def cleanup(self) -> None:
        """Clean up resources (close all connections)."""
        await self.pool.close_all()

    def install_signal_handlers(
        self,
        on_shutdown: Callable[[], None] | None = None,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> bool:
        """Close the pool when the process receives SIGINT or SIGTERM.

        For callers that run the pool outside the MCP server, whose
        lifespan already closes the pool on shutdown.

        Args:
            on_shutdown: Called after the pool is closed, e.g. to stop the loop
            loop: Event loop to register on (default: the running loop)

        Returns:
            True if handlers were installed, False if the platform lacks support
        """
        loop = loop or asyncio.get_running_loop()

        def handle(sig: signal.Signals) -> None:
            if self._shutdown_task is not None:
                return
            logger.info("Received %s, shutting down connection pool", sig.name)
            self._shutdown_task = loop.create_task(self._shutdown(on_shutdown))

        try:
            for sig in (signal.SIGINT, signal.SIGTERM):
                loop.add_signal_handler(sig, handle, sig)
        except (NotImplementedError, RuntimeError) as e:
            logger.warning("Signal handlers not supported here: %s", e)
            return False
        return True

    async def _shutdown(self, on_shutdown: Callable[[], None] | None) -> None:
        await self.cleanup()
        if on_shutdown is not None:
            on_shutdown()
