"""Protocol interfaces for dependency inversion.

The pool, liveness checker and OS detector only rely on the narrow
session contract below, so tests and embedders can supply any
implementation.

Usage Example:

    from remoteops.protocols import Session

    class RecordingSession:
        connected = True

        async def connect(self) -> None: ...
        async def execute_command(self, command, timeout=None): ...
        async def disconnect(self) -> None: ...

    pool = ConnectionPool(session_factory=lambda cfg: RecordingSession())
"""

from typing import Protocol, runtime_checkable

from remoteops.models import CommandResult


@runtime_checkable
class Session(Protocol):
    """Remote shell session contract.

    Implementations own one transport connection to one host.
    """

    @property
    def connected(self) -> bool:
        """Whether the transport is currently open."""
        ...

    async def connect(self) -> None:
        """Open the transport.

        Raises:
            ConnectionError: On transport or authentication failure
        """
        ...

    async def execute_command(
        self, command: str, timeout: float | None = None
    ) -> CommandResult:
        """Run a command; nonzero exit codes are returned, not raised.

        Raises:
            ExecutionError: If the command channel cannot be opened
        """
        ...

    async def disconnect(self) -> None:
        """Close the transport. Safe to call more than once."""
        ...
