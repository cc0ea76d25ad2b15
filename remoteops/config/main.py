"""Application configuration.

Delegates to specialized components:
- Settings: Environment variables
- SSHConfigParser: Reads ~/.ssh/config
- HostKeyVerifier: Manages known_hosts
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from remoteops.config.host_keys import HostKeyVerifier
from remoteops.config.parser import SSHConfigParser
from remoteops.config.settings import Settings

logger = logging.getLogger(__name__)


@dataclass
class Config:
    """Application configuration.

    Aggregates settings, SSH config and known_hosts handling.
    """

    settings: Settings
    parser: SSHConfigParser
    host_keys: HostKeyVerifier

    @classmethod
    def from_env(cls) -> "Config":
        """Create config from environment.

        Returns:
            Configured instance with all components initialized
        """
        settings = Settings.from_env()
        parser = SSHConfigParser(config_path=os.getenv("REMOTEOPS_SSH_CONFIG") or None)
        host_keys = HostKeyVerifier(
            known_hosts_path=os.getenv("REMOTEOPS_KNOWN_HOSTS"),
            strict_checking=os.getenv(
                "REMOTEOPS_STRICT_HOST_KEY_CHECKING", "true"
            ).lower()
            != "false",
        )
        logger.debug(
            "Config initialized: transport=%s, idle_timeout=%d, "
            "cleanup_interval=%d, max_pool_size=%d, os_cache_ttl=%d",
            settings.transport,
            settings.idle_timeout,
            settings.cleanup_interval,
            settings.max_pool_size,
            settings.os_cache_ttl,
        )
        return cls(settings=settings, parser=parser, host_keys=host_keys)

    @classmethod
    def for_testing(
        cls,
        ssh_config_path: Path | str | None = None,
        settings: Settings | None = None,
    ) -> "Config":
        """Create config with host key verification disabled.

        Args:
            ssh_config_path: Path to SSH config file
            settings: Settings to use instead of defaults

        Returns:
            Configured instance
        """
        return cls(
            settings=settings or Settings(),
            parser=SSHConfigParser(config_path=ssh_config_path),
            host_keys=HostKeyVerifier(known_hosts_path="none", strict_checking=False),
        )

    # Delegate to settings for convenience
    @property
    def idle_timeout(self) -> int:
        """Connection idle timeout in seconds."""
        return self.settings.idle_timeout

    @property
    def cleanup_interval(self) -> int:
        """Seconds between idle sweeps."""
        return self.settings.cleanup_interval

    @property
    def health_check_timeout(self) -> float:
        """Liveness probe timeout in seconds."""
        return self.settings.health_check_timeout

    @property
    def max_pool_size(self) -> int:
        """Maximum connection pool size."""
        return self.settings.max_pool_size

    @property
    def os_cache_ttl(self) -> int:
        """OS classification cache lifetime in seconds."""
        return self.settings.os_cache_ttl

    @property
    def command_timeout(self) -> float | None:
        """Command timeout in seconds, or None for no limit."""
        return self.settings.command_timeout or None

    @property
    def transport(self) -> str:
        """Transport type (stdio or http)."""
        return self.settings.transport

    @property
    def http_host(self) -> str:
        return self.settings.http_host

    @property
    def http_port(self) -> int:
        return self.settings.http_port

    @property
    def known_hosts_path(self) -> str | None:
        """Path to known_hosts file or None if disabled."""
        return self.host_keys.get_known_hosts_path()

    @property
    def strict_host_key_checking(self) -> bool:
        """Whether to reject unknown host keys."""
        return self.host_keys.strict_checking
