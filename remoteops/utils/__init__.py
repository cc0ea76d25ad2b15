"""Utilities for RemoteOps."""

from remoteops.utils.console import ColorfulFormatter

__all__ = ["ColorfulFormatter"]
