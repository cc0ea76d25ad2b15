"""Tests for protocol interfaces.

Verifies that concrete implementations satisfy protocol contracts.
"""

from typing import Protocol

from conftest import FakeSession
from remoteops.protocols import Session


def test_session_protocol_runtime_checkable() -> None:
    assert issubclass(Session, Protocol)
    assert isinstance(FakeSession(), Session)


def test_object_without_methods_is_not_a_session() -> None:
    class Incomplete:
        connected = True

        async def connect(self) -> None: ...

    assert not isinstance(Incomplete(), Session)
