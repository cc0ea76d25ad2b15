"""SSH config file parser.

Reads ~/.ssh/config and resolves the settings that apply to a target host.
"""

import logging
import os
import re
from dataclasses import dataclass, field
from fnmatch import fnmatchcase
from pathlib import Path

logger = logging.getLogger(__name__)


@dataclass
class SSHConfigEntry:
    """Settings from the first Host block matching a target."""

    pattern: str
    hostname: str | None = None
    port: int | None = None
    user: str | None = None
    identity_files: list[str] = field(default_factory=list)

    def existing_identity_file(self) -> str | None:
        """Return the first identity file that exists on disk."""
        for path in self.identity_files:
            if Path(path).exists():
                return path
        return None


class SSHConfigParser:
    """Parser for SSH config files.

    Only the keys needed to open a session are read: HostName, Port,
    User and IdentityFile.
    """

    def __init__(self, config_path: Path | str | None = None):
        """Initialize SSH config parser.

        Args:
            config_path: Path to SSH config file (default: ~/.ssh/config)
        """
        if config_path is None:
            config_path = Path.home() / ".ssh" / "config"

        self.config_path = Path(os.path.expanduser(str(config_path)))

    def _read(self) -> str | None:
        if not self.config_path.exists():
            logger.debug("SSH config not found: %s", self.config_path)
            return None

        try:
            return self.config_path.read_text()
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Cannot read SSH config %s: %s", self.config_path, e)
            return None

    @staticmethod
    def matches(pattern: str, target: str) -> bool:
        """Check if a Host pattern list matches the target.

        Patterns may be separated by commas or whitespace and use
        the ``*`` and ``?`` wildcards.
        """
        for part in re.split(r"[,\s]+", pattern.strip()):
            if part and fnmatchcase(target, part):
                return True
        return False

    def entries(self) -> list[SSHConfigEntry]:
        """Parse every Host block in file order."""
        content = self._read()
        if content is None:
            return []

        entries: list[SSHConfigEntry] = []
        current: SSHConfigEntry | None = None

        for line in content.splitlines():
            line = line.strip()
            if not line or line.startswith("#"):
                continue

            kv_match = re.match(r"^(\w+)(?:\s*=\s*|\s+)(.+)$", line)
            if not kv_match:
                continue

            key = kv_match.group(1).lower()
            value = kv_match.group(2).strip()

            if key == "host":
                current = SSHConfigEntry(pattern=value)
                entries.append(current)
                continue

            if current is None:
                continue

            if key == "hostname":
                current.hostname = value
            elif key == "port":
                try:
                    current.port = int(value)
                except ValueError:
                    logger.warning(
                        "Ignoring invalid port %r for Host %s", value, current.pattern
                    )
            elif key == "user":
                current.user = value
            elif key == "identityfile":
                current.identity_files.append(os.path.expanduser(value))

        logger.debug("Parsed %d Host block(s) from %s", len(entries), self.config_path)
        return entries

    def resolve(self, target: str) -> SSHConfigEntry | None:
        """Find the settings for a target host.

        Args:
            target: Host name or address as given by the caller

        Returns:
            First matching Host block, or None if nothing matches
        """
        for entry in self.entries():
            if self.matches(entry.pattern, target):
                logger.debug("SSH config Host %s matches %s", entry.pattern, target)
                return entry
        return None
