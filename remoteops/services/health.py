"""Session liveness checking."""

import asyncio
import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from remoteops.protocols import Session

logger = logging.getLogger(__name__)

PING_SENTINEL = "ping"
# Unquoted so cmd.exe, which echoes quotes literally, prints the bare word
PING_COMMAND = f"echo {PING_SENTINEL}"
DEFAULT_HEALTH_TIMEOUT = 5.0


async def check_session_health(
    session: "Session",
    timeout: float = DEFAULT_HEALTH_TIMEOUT,
) -> bool:
    """Check that a session can still run commands.

    Runs ``echo ping`` and compares the output with whitespace and any
    surrounding quotes trimmed. On timeout the probe is cancelled, which
    closes its channel on the remote side.

    Args:
        session: Session believed to be connected.
        timeout: Probe timeout in seconds.

    Returns:
        True if the session answered correctly in time, False otherwise.
    """
    if not session.connected:
        return False

    try:
        result = await asyncio.wait_for(
            session.execute_command(PING_COMMAND),
            timeout=timeout,
        )
    except asyncio.TimeoutError:
        logger.debug("Health check timed out after %.1fs for %s", timeout, session)
        return False
    except Exception as e:
        logger.debug("Health check failed for %s: %s", session, e)
        return False

    return result.stdout.strip().strip("\"'") == PING_SENTINEL
