"""SSH host key verification.

Resolves which known_hosts file asyncssh should verify against.
"""

import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)


class HostKeyVerifier:
    """Known_hosts resolution for outgoing sessions."""

    def __init__(
        self,
        known_hosts_path: str | None = None,
        strict_checking: bool = True,
    ):
        """Initialize host key verifier.

        Args:
            known_hosts_path: Path to known_hosts file, 'none' to disable,
                or None to use ~/.ssh/known_hosts when present
            strict_checking: Reject hosts whose key cannot be verified

        Raises:
            FileNotFoundError: If strict mode and an explicit path is missing
        """
        self.strict_checking = strict_checking
        self._known_hosts = self._resolve_known_hosts(known_hosts_path)

    def _resolve_known_hosts(self, value: str | None) -> str | None:
        if value and value.strip().lower() == "none":
            logger.critical(
                "SSH host key verification DISABLED (REMOTEOPS_KNOWN_HOSTS=none). "
                "Connections are vulnerable to man-in-the-middle attacks."
            )
            return None

        if value:
            path = Path(os.path.expanduser(value.strip()))
            if path.exists():
                return str(path)
            if self.strict_checking:
                raise FileNotFoundError(
                    f"known_hosts file not found: {path}\n"
                    f"Add host keys with: ssh-keyscan <hostname> >> {path}\n"
                    f"or set REMOTEOPS_KNOWN_HOSTS=none to disable verification."
                )
            logger.warning("known_hosts not found at %s, verification disabled", path)
            return None

        default = Path.home() / ".ssh" / "known_hosts"
        if default.exists():
            return str(default)

        logger.warning(
            "No known_hosts file at %s, host key verification disabled", default
        )
        return None

    def get_known_hosts_path(self) -> str | None:
        """Get path to known_hosts file, or None if verification is disabled."""
        return self._known_hosts

    def is_enabled(self) -> bool:
        return self._known_hosts is not None
