"""Colorful console logging formatter."""

import logging
import re
from datetime import datetime

# ANSI color codes
COLORS = {
    "reset": "\033[0m",
    "bold": "\033[1m",
    "dim": "\033[2m",
    "white": "\033[37m",
    "cyan": "\033[36m",
    "yellow": "\033[33m",
    "green": "\033[32m",
    "bright_black": "\033[90m",
    "bright_red": "\033[91m",
    "bright_green": "\033[92m",
    "bright_yellow": "\033[93m",
    "bright_blue": "\033[94m",
    "bright_magenta": "\033[95m",
    "bright_cyan": "\033[96m",
    "bg_red": "\033[41m",
}

LEVEL_COLORS = {
    "DEBUG": COLORS["bright_black"],
    "INFO": COLORS["bright_green"],
    "WARNING": COLORS["bright_yellow"],
    "ERROR": COLORS["bright_red"],
    "CRITICAL": COLORS["bg_red"] + COLORS["white"] + COLORS["bold"],
}

# Component colors for logger names
COMPONENT_COLORS = {
    "remoteops.server": COLORS["bright_cyan"],
    "remoteops.services.pool": COLORS["bright_magenta"],
    "remoteops.services.os_detector": COLORS["bright_blue"],
    "remoteops.services.session": COLORS["cyan"],
    "remoteops.middleware": COLORS["yellow"],
    "remoteops.config": COLORS["green"],
    "default": COLORS["white"],
}

# Leading markers for lifecycle events, checked in order
EVENT_MARKERS = (
    (("starting", "ready"), ">>>", COLORS["bright_green"]),
    (("shutting down", "shutdown"), "<<<", COLORS["bright_red"]),
    (("error", "failed", "dead"), "!!", COLORS["bright_red"]),
    (("warning", "disabled"), "!", COLORS["bright_yellow"]),
    (("established", "detected"), "OK", COLORS["bright_green"]),
    (("opening", "creating"), "+", COLORS["bright_cyan"]),
    (("closing", "removing", "cleaned up"), "-", COLORS["bright_yellow"]),
    (("reusing",), "~", COLORS["bright_magenta"]),
)

_SSH_TARGET = re.compile(r"(\w+@[\w.\-]+:\d+)")
_POOL_SIZE = re.compile(r"(pool_size=\d+(?:/\d+)?)")
_DURATION = re.compile(r"(\d+\.?\d*m?s)\b")


class ColorfulFormatter(logging.Formatter):
    """Log formatter with level, component and event highlighting."""

    def __init__(self, use_colors: bool = True) -> None:
        """Initialize the formatter.

        Args:
            use_colors: Whether to use ANSI colors.
        """
        super().__init__()
        self.use_colors = use_colors

    def _colorize(self, text: str, color: str) -> str:
        if not self.use_colors:
            return text
        return f"{color}{text}{COLORS['reset']}"

    def _get_component_color(self, name: str) -> str:
        for prefix, color in COMPONENT_COLORS.items():
            if prefix != "default" and name.startswith(prefix):
                return color
        return COMPONENT_COLORS["default"]

    def _format_timestamp(self, record: logging.LogRecord) -> str:
        dt = datetime.fromtimestamp(record.created)
        return f"{dt:%H:%M:%S}.{int(record.msecs):03d} {dt:%m/%d}"

    def _format_component(self, record: logging.LogRecord) -> str:
        name = record.name
        if name.startswith("remoteops."):
            name = name[len("remoteops.") :]
        return self._colorize(f"{name:<22}", self._get_component_color(record.name))

    def _highlight_message(self, message: str) -> str:
        if not self.use_colors:
            return message
        message = _SSH_TARGET.sub(
            f"{COLORS['bright_magenta']}\\1{COLORS['reset']}", message
        )
        message = _POOL_SIZE.sub(f"{COLORS['cyan']}\\1{COLORS['reset']}", message)
        return _DURATION.sub(f"{COLORS['bright_yellow']}\\1{COLORS['reset']}", message)

    def _event_marker(self, message: str) -> str:
        lowered = message.lower()
        for words, marker, color in EVENT_MARKERS:
            if any(word in lowered for word in words):
                return self._colorize(f"{marker:<3}", color)
        return "   "

    def format(self, record: logging.LogRecord) -> str:
        """Format the log record."""
        sep = self._colorize("|", COLORS["dim"])
        timestamp = self._colorize(self._format_timestamp(record), COLORS["dim"])
        level = self._colorize(
            f"{record.levelname:<8}", LEVEL_COLORS.get(record.levelname, COLORS["white"])
        )
        component = self._format_component(record)
        message = record.getMessage()

        line = (
            f"{timestamp} {sep} {level} {sep} {component} {sep} "
            f"{self._highlight_message(message)}"
        )
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)

        if not self.use_colors:
            return line
        return f"{self._event_marker(message)} {line}"
