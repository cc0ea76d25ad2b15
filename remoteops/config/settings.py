"""Application settings from environment variables.

Centralized environment variable parsing and validation.
"""

import logging
import os
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)


@dataclass
class Settings:
    """Application settings from environment.

    Handles parsing, validation, and defaults for all env vars.
    """

    # Connection pool
    idle_timeout: int = field(default=600)
    cleanup_interval: int = field(default=300)
    health_check_timeout: float = field(default=5.0)
    max_pool_size: int = field(default=100)

    # OS detection
    os_cache_ttl: int = field(default=3600)

    # Commands (0 disables the timeout)
    command_timeout: int = field(default=0)

    # Transport
    transport: str = field(default="stdio")
    http_host: str = field(default="0.0.0.0")
    http_port: int = field(default=8000)

    # Logging
    log_level: str = field(default="INFO")
    log_colors: bool = field(default=True)
    include_traceback: bool = field(default=False)

    @classmethod
    def from_env(cls) -> "Settings":
        """Load settings from REMOTEOPS_* environment variables.

        Returns:
            Settings instance with values from environment
        """
        max_pool_size = cls._get_int("REMOTEOPS_MAX_POOL_SIZE", 100)
        if max_pool_size <= 0:
            logger.warning(
                "REMOTEOPS_MAX_POOL_SIZE must be > 0, got %d. Using default: 100",
                max_pool_size,
            )
            max_pool_size = 100

        return cls(
            idle_timeout=cls._get_int("REMOTEOPS_IDLE_TIMEOUT", 600),
            cleanup_interval=cls._get_int("REMOTEOPS_CLEANUP_INTERVAL", 300),
            health_check_timeout=cls._get_float("REMOTEOPS_HEALTH_CHECK_TIMEOUT", 5.0),
            max_pool_size=max_pool_size,
            os_cache_ttl=cls._get_int("REMOTEOPS_OS_CACHE_TTL", 3600),
            command_timeout=cls._get_int("REMOTEOPS_COMMAND_TIMEOUT", 0),
            transport=cls._get_transport(),
            http_host=os.getenv("REMOTEOPS_HTTP_HOST", "0.0.0.0"),
            http_port=cls._get_int("REMOTEOPS_HTTP_PORT", 8000),
            log_level=os.getenv("REMOTEOPS_LOG_LEVEL", "INFO").upper(),
            log_colors=cls._get_bool("REMOTEOPS_LOG_COLORS", True),
            include_traceback=cls._get_bool("REMOTEOPS_INCLUDE_TRACEBACK", False),
        )

    @staticmethod
    def _get_int(key: str, default: int) -> int:
        """Get integer from environment.

        Args:
            key: Environment variable key
            default: Default value if not set or invalid

        Returns:
            Integer value from environment or default
        """
        value = os.getenv(key)
        if value is None:
            return default

        try:
            return int(value)
        except ValueError:
            logger.warning("Invalid int for %s: %s, using default %d", key, value, default)
            return default

    @staticmethod
    def _get_float(key: str, default: float) -> float:
        value = os.getenv(key)
        if value is None:
            return default

        try:
            return float(value)
        except ValueError:
            logger.warning("Invalid float for %s: %s, using default %s", key, value, default)
            return default

    @staticmethod
    def _get_bool(key: str, default: bool) -> bool:
        """Get boolean from environment.

        Args:
            key: Environment variable key
            default: Default value if not set

        Returns:
            Boolean value from environment or default
        """
        value = os.getenv(key)
        if value is None:
            return default
        return value.lower() in ("1", "true", "yes", "on")

    @staticmethod
    def _get_transport() -> str:
        """Get transport from environment with validation.

        Returns:
            Transport type ("stdio" or "http")
        """
        transport = os.getenv("REMOTEOPS_TRANSPORT", "").lower()
        if transport in ("http", "stdio"):
            return transport
        return "stdio"
