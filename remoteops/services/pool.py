"""SSH session pooling with health-gated reuse and idle eviction.

Locking Strategy:
- `_meta_lock`: Protects _entries OrderedDict and _key_locks dict structure
- Per-key locks: Serialize creation/removal for one connection key, so
  concurrent callers for the same key share a single connect attempt
- Lock acquisition order: Always per-key lock first, then meta-lock if needed
- Eviction does not take the victim's key lock, so a key-lock holder must
  re-check under the meta-lock that its entry is still pooled
- A key lock is dropped once its key has no entry and no holders or waiters

LRU Eviction:
- Uses OrderedDict with move_to_end() for O(1) LRU tracking
- Eviction happens when pool reaches max_size before creating new connection
- Oldest (first) connection is evicted

Liveness:
- Every reuse is gated by a round-trip health check; failed entries are
  torn down and replaced transparently
- A background sweep reaps entries idle beyond idle_timeout or already
  disconnected; it is best-effort and not a liveness guarantee
"""

import asyncio
import logging
from collections import Counter, OrderedDict
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from datetime import datetime, timedelta
from typing import Any

from remoteops.models import (
    ConnectionKey,
    ConnectionSummary,
    OSInfo,
    PooledEntry,
    PoolStatus,
    SSHConnectionConfig,
)
from remoteops.protocols import Session
from remoteops.services.health import DEFAULT_HEALTH_TIMEOUT, check_session_health
from remoteops.services.os_detector import OSDetector
from remoteops.services.session import RemoteSession

logger = logging.getLogger(__name__)

SessionFactory = Callable[[SSHConnectionConfig], Session]


class ConnectionPool:
    """SSH session pool keyed by host, port, user and credential."""

    def __init__(
        self,
        idle_timeout: int = 600,
        cleanup_interval: int = 300,
        health_check_timeout: float = DEFAULT_HEALTH_TIMEOUT,
        max_size: int = 100,
        detector: OSDetector | None = None,
        session_factory: SessionFactory | None = None,
        known_hosts: str | None = None,
        strict_host_key_checking: bool = True,
    ) -> None:
        """Initialize pool with idle timeout and size limits.

        Args:
            idle_timeout: Seconds before idle connections are closed
            cleanup_interval: Seconds between idle sweeps
            health_check_timeout: Seconds allowed for the reuse health check
            max_size: Maximum number of concurrent SSH connections (must be > 0)
            detector: OS detector shared by all entries
            session_factory: Builds an unconnected session from settings
            known_hosts: Path to known_hosts file, or None to disable
                verification. Only used when no session_factory is given.
            strict_host_key_checking: Whether to reject unknown host keys.
                Only used when no session_factory is given.

        Raises:
            ValueError: If max_size is not positive
        """
        if max_size <= 0:
            raise ValueError(f"max_size must be > 0, got {max_size}")

        self.idle_timeout = idle_timeout
        self.cleanup_interval = cleanup_interval
        self.health_check_timeout = health_check_timeout
        self.max_size = max_size
        self.detector = detector or OSDetector()
        self._known_hosts = known_hosts
        self._strict_host_key = strict_host_key_checking
        self._session_factory = session_factory or self._default_session_factory

        self._entries: OrderedDict[ConnectionKey, PooledEntry] = OrderedDict()
        self._key_locks: dict[ConnectionKey, asyncio.Lock] = {}
        self._key_users: Counter[ConnectionKey] = Counter()  # holders + waiters
        self._meta_lock = asyncio.Lock()  # Protects _entries and _key_locks
        self._cleanup_task: asyncio.Task[Any] | None = None

        logger.info(
            "ConnectionPool initialized (idle_timeout=%ds, cleanup_interval=%ds, "
            "max_size=%d)",
            idle_timeout,
            cleanup_interval,
            max_size,
        )

    def _default_session_factory(self, config: SSHConnectionConfig) -> RemoteSession:
        return RemoteSession(
            config,
            known_hosts=self._known_hosts,
            strict_host_key_checking=self._strict_host_key,
        )

    @asynccontextmanager
    async def _key_locked(self, key: ConnectionKey) -> AsyncIterator[None]:
        """Hold the lock for one connection key.

        The lock is created on first use and dropped by the last user once
        the key has no pooled entry.
        """
        async with self._meta_lock:
            lock = self._key_locks.setdefault(key, asyncio.Lock())
            self._key_users[key] += 1
        try:
            async with lock:
                yield
        finally:
            async with self._meta_lock:
                self._key_users[key] -= 1
                if self._key_users[key] <= 0:
                    del self._key_users[key]
                    if key not in self._entries:
                        self._key_locks.pop(key, None)

    def _pop_entry(self, key: ConnectionKey) -> PooledEntry | None:
        """Remove an entry; caller holds the meta-lock."""
        entry = self._entries.pop(key, None)
        if entry is not None and key not in self._key_users:
            self._key_locks.pop(key, None)
        return entry

    async def _teardown(self, session: Session, host: str, reason: str) -> None:
        """Disconnect a session that has already left the pool."""
        logger.info("Closing %s connection to %s", reason, host)
        try:
            await session.disconnect()
        except Exception as e:
            logger.warning("Error disconnecting from %s: %s", host, e)

    async def _evict_lru_if_needed(self) -> None:
        """Evict least recently used connections if at capacity.

        Connections are closed outside the meta-lock to avoid blocking.
        """
        to_close: list[PooledEntry] = []

        async with self._meta_lock:
            while len(self._entries) >= self.max_size:
                oldest_key = next(iter(self._entries))
                logger.info(
                    "Pool at capacity (%d/%d), evicting LRU: %s",
                    len(self._entries),
                    self.max_size,
                    oldest_key.host,
                )
                to_close.append(self._pop_entry(oldest_key))

        for entry in to_close:
            await self._teardown(entry.session, entry.host, "LRU")

    async def get_connection(self, host: str, config: SSHConnectionConfig) -> Session:
        """Get a healthy session for the host, creating one if needed.

        Args:
            host: Target host name or address
            config: Auth material and optional port/username

        Returns:
            Connected, classified session

        Raises:
            ConnectionError: If a new session cannot be established
        """
        key = ConnectionKey.derive(host, config)

        async with self._key_locked(key):
            entry = self._entries.get(key)

            if entry is not None:
                healthy = await check_session_health(
                    entry.session, self.health_check_timeout
                )
                async with self._meta_lock:
                    # Eviction may have taken the entry during the check
                    still_pooled = self._entries.get(key) is entry
                    if still_pooled:
                        if healthy:
                            entry.touch()
                            self._entries.move_to_end(key)
                        else:
                            del self._entries[key]

                if still_pooled and healthy:
                    logger.debug(
                        "Reusing SSH connection to %s (pool_size=%d)",
                        host,
                        len(self._entries),
                    )
                    return entry.session

                if still_pooled:
                    logger.info("Connection to %s is dead, removing from pool", host)
                    await self._teardown(entry.session, host, "dead")
                else:
                    logger.info("Connection to %s was evicted during reuse", host)

            await self._evict_lru_if_needed()

            logger.info("Creating new SSH connection to %s", host)
            session = self._session_factory(config)
            try:
                await session.connect()
            except Exception as e:
                logger.error("Failed to connect to %s: %s", host, e)
                raise

            try:
                os_info = await self.detector.detect(session, host)

                async with self._meta_lock:
                    self._entries[key] = PooledEntry(
                        session=session,
                        host=host,
                        username=config.username or "unknown",
                        os_info=os_info,
                    )
                    self._entries.move_to_end(key)
            except BaseException:
                logger.warning("Setup of connection to %s interrupted", host)
                await self._teardown(session, host, "unpooled")
                raise

            logger.info(
                "SSH connection to %s established and pooled (%s - %s, pool_size=%d/%d)",
                host,
                os_info.family.value,
                os_info.shell.value,
                len(self._entries),
                self.max_size,
            )

            self._ensure_cleanup_task()
            return session

    def _ensure_cleanup_task(self) -> None:
        if self._cleanup_task is None or self._cleanup_task.done():
            self._cleanup_task = asyncio.create_task(self._cleanup_loop())
            logger.debug("Started connection cleanup task")

    async def _cleanup_loop(self) -> None:
        """Periodically clean up idle connections."""
        logger.debug("Cleanup loop started (interval=%ds)", self.cleanup_interval)
        while True:
            await asyncio.sleep(self.cleanup_interval)
            await self._cleanup_idle()

            # Stop if no connections left
            if not self._entries:
                logger.debug("Cleanup loop stopped - no connections remaining")
                break

    async def _cleanup_idle(self) -> None:
        """Close connections that have been idle too long or already died."""
        async with self._meta_lock:
            keys_to_check = list(self._entries.keys())

        cutoff = datetime.now() - timedelta(seconds=self.idle_timeout)
        removed_count = 0

        for key in keys_to_check:
            async with self._key_locked(key):
                entry = self._entries.get(key)
                if entry is None:
                    continue
                if entry.last_used >= cutoff and not entry.is_stale:
                    continue

                async with self._meta_lock:
                    if self._entries.get(key) is not entry:
                        continue
                    self._pop_entry(key)
                reason = "stale" if entry.is_stale else "idle"
                logger.info(
                    "Cleaned up %s connection to %s (idle for %ds)",
                    reason,
                    entry.host,
                    entry.idle_seconds(),
                )
                await self._teardown(entry.session, entry.host, reason)
                removed_count += 1

        if removed_count > 0:
            logger.debug(
                "Cleanup complete: removed %d connection(s), %d remaining",
                removed_count,
                len(self._entries),
            )

    async def remove_connection(self, host: str, config: SSHConnectionConfig) -> None:
        """Disconnect and evict the connection for host, if pooled.

        Args:
            host: Target host name or address
            config: Settings the connection was created with
        """
        await self._remove_key(ConnectionKey.derive(host, config))

    async def _remove_key(self, key: ConnectionKey) -> None:
        async with self._key_locked(key):
            async with self._meta_lock:
                entry = self._pop_entry(key)
            if entry is None:
                logger.debug("No connection to remove for %s (not in pool)", key.host)
                return
            logger.info(
                "Removing connection to %s (pool_size=%d)",
                key.host,
                len(self._entries),
            )
            await self._teardown(entry.session, entry.host, "removed")

    def get_os_info(self, host: str, config: SSHConnectionConfig) -> OSInfo | None:
        """Return the cached classification for a pooled connection.

        No remote calls are made.
        """
        entry = self._entries.get(ConnectionKey.derive(host, config))
        return entry.os_info if entry else None

    def get_pool_status(self) -> PoolStatus:
        """Snapshot the pool without touching any session."""
        connections = [
            ConnectionSummary(
                host=entry.host,
                username=entry.username,
                last_used=entry.last_used,
                is_connected=entry.session.connected,
                os_family=entry.os_info.family.value if entry.os_info else None,
                shell=entry.os_info.shell.value if entry.os_info else None,
            )
            for entry in self._entries.values()
        ]
        return PoolStatus(
            total_connections=len(connections),
            active_connections=sum(1 for c in connections if c.is_connected),
            connections=connections,
        )

    async def close_all(self) -> None:
        """Close all connections and stop the idle sweep. Idempotent."""
        async with self._meta_lock:
            keys = list(self._entries.keys())

        if keys:
            logger.info("Closing all %d pooled connection(s)", len(keys))
            for key in keys:
                await self._remove_key(key)

        if self._cleanup_task and not self._cleanup_task.done():
            self._cleanup_task.cancel()
            logger.debug("Cleanup task cancelled")
        self._cleanup_task = None

    @property
    def pool_size(self) -> int:
        """Return the current number of connections in the pool."""
        return len(self._entries)

    @property
    def active_hosts(self) -> list[str]:
        """Return hosts with pooled connections."""
        return [entry.host for entry in self._entries.values()]
