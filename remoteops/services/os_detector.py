"""Remote operating system detection.

Detection runs an ordered list of probes against a live session. Each
probe either returns a definite classification or None, and the first
definite answer wins. Probes absorb their own failures; a host that
answers nothing is classified as ``unknown`` with an ``sh`` shell.

Results are cached per host for a fixed lifetime, after which the next
request runs the full cascade again.
"""

import logging
from collections.abc import Awaitable, Callable, Sequence
from datetime import datetime, timedelta

from remoteops.models import OSFamily, OSInfo, ShellDialect
from remoteops.protocols import Session

logger = logging.getLogger(__name__)

DEFAULT_CACHE_TTL = 3600

WINDOWS_PROBE = 'systeminfo | findstr /C:"OS Name" /C:"OS Version" /C:"System Type"'
WINDOWS_ENV_PROBE = "echo %OS%"
LINUX_PROBE = (
    "cat /etc/os-release 2>/dev/null || "
    "cat /etc/lsb-release 2>/dev/null || "
    'echo "ID=linux"'
)
UNIX_PROBE = "uname -s 2>/dev/null"
ARCH_PROBE = "uname -m"

# Release-file keys in order of preference
_LINUX_NAME_KEYS = ("PRETTY_NAME", "NAME", "DISTRIB_DESCRIPTION")


Probe = Callable[[Session], Awaitable[OSInfo | None]]


def _value_after_colon(line: str) -> str:
    _, _, value = line.partition(":")
    return value.strip() or "Unknown"


async def _probe_architecture(session: Session) -> str:
    try:
        result = await session.execute_command(ARCH_PROBE)
    except Exception as e:
        logger.debug("Architecture probe failed: %s", e)
        return "Unknown"
    if result.exit_code == 0 and result.stdout.strip():
        return result.stdout.strip()
    return "Unknown"


async def probe_windows(session: Session) -> OSInfo | None:
    """Detect Windows via systeminfo, falling back to %OS%."""
    try:
        result = await session.execute_command(WINDOWS_PROBE)
    except Exception as e:
        logger.debug("systeminfo probe failed: %s", e)
        result = None

    if result is not None and result.exit_code == 0:
        if "windows" not in result.stdout.lower():
            return None

        version = "Unknown"
        architecture = "Unknown"
        for line in result.stdout.splitlines():
            if "OS Name" in line:
                version = _value_after_colon(line)
            elif "System Type" in line:
                architecture = _value_after_colon(line)

        return OSInfo(
            family=OSFamily.WINDOWS,
            shell=ShellDialect.POWERSHELL,
            version=version,
            architecture=architecture,
        )

    try:
        env_result = await session.execute_command(WINDOWS_ENV_PROBE)
    except Exception as e:
        logger.debug("%%OS%% probe failed: %s", e)
        return None

    if env_result.exit_code == 0 and "windows" in env_result.stdout.lower():
        return OSInfo(
            family=OSFamily.WINDOWS,
            shell=ShellDialect.CMD,
            version="Windows (detected via %OS%)",
        )
    return None


async def probe_linux(session: Session) -> OSInfo | None:
    """Detect Linux from the distribution release files."""
    try:
        result = await session.execute_command(LINUX_PROBE)
    except Exception as e:
        logger.debug("Release file probe failed: %s", e)
        return None

    if result.exit_code != 0:
        return None

    lowered = result.stdout.lower()
    if "id=" not in lowered and "name=" not in lowered:
        return None

    fields: dict[str, str] = {}
    for line in result.stdout.splitlines():
        key, sep, value = line.strip().partition("=")
        if sep:
            fields[key] = value.strip().strip("\"'")

    version = next(
        (fields[key] for key in _LINUX_NAME_KEYS if fields.get(key)),
        "Linux",
    )

    return OSInfo(
        family=OSFamily.LINUX,
        shell=ShellDialect.BASH,
        version=version,
        architecture=await _probe_architecture(session),
    )


async def probe_unix(session: Session) -> OSInfo | None:
    """Detect a generic Unix from the kernel name."""
    try:
        result = await session.execute_command(UNIX_PROBE)
    except Exception as e:
        logger.debug("uname probe failed: %s", e)
        return None

    kernel = result.stdout.strip()
    if result.exit_code != 0 or not kernel:
        return None

    return OSInfo(
        family=OSFamily.UNIX,
        shell=ShellDialect.BASH,
        version=kernel,
        architecture=await _probe_architecture(session),
    )


DEFAULT_PROBES: tuple[Probe, ...] = (probe_windows, probe_linux, probe_unix)


def unknown_os() -> OSInfo:
    return OSInfo(family=OSFamily.UNKNOWN, shell=ShellDialect.SH)


class OSDetector:
    """Classifies remote hosts and caches the result per host."""

    def __init__(
        self,
        ttl: int = DEFAULT_CACHE_TTL,
        probes: Sequence[Probe] = DEFAULT_PROBES,
    ) -> None:
        """Initialize detector.

        Args:
            ttl: Seconds a classification stays valid
            probes: Ordered probes, first definite answer wins
        """
        self.ttl = ttl
        self.probes = tuple(probes)
        self._cache: dict[str, OSInfo] = {}

    def get_cached(self, host: str) -> OSInfo | None:
        """Return the cached classification if it has not expired."""
        cached = self._cache.get(host)
        if cached is None:
            return None
        if datetime.now() - cached.detected_at >= timedelta(seconds=self.ttl):
            logger.debug("OS classification for %s expired", host)
            del self._cache[host]
            return None
        return cached

    def invalidate(self, host: str) -> None:
        self._cache.pop(host, None)

    def clear_cache(self) -> None:
        self._cache.clear()

    async def detect(self, session: Session, host: str) -> OSInfo:
        """Classify the host behind a session.

        Never raises; hosts that cannot be classified are reported as unknown.

        Args:
            session: Live session to probe
            host: Host name used as the cache key

        Returns:
            Cached or freshly detected classification
        """
        cached = self.get_cached(host)
        if cached is not None:
            logger.debug("Using cached OS classification for %s", host)
            return cached

        logger.info("Detecting OS for %s", host)
        try:
            info = await self._run_probes(session)
        except Exception as e:
            logger.warning("OS detection failed for %s: %s", host, e)
            info = unknown_os()

        if info.family is OSFamily.UNKNOWN:
            logger.info("Unknown OS on %s, using generic shell", host)
        else:
            logger.info("Detected OS on %s: %s", host, info.describe())

        self._cache[host] = info
        return info

    async def _run_probes(self, session: Session) -> OSInfo:
        for probe in self.probes:
            info = await probe(session)
            if info is not None:
                return info
        return unknown_os()
