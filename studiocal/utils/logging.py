"""Logging configuration and setup utilities."""

import logging
import logging.handlers
import os
import sys
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from ..config.settings import StudioCalSettings

# Custom log level between INFO(20) and DEBUG(10)
VERBOSE = 15
logging.addLevelName(VERBOSE, "VERBOSE")

THIRD_PARTY_LOGGERS = ("aiohttp", "aiosqlite", "httpx", "httpcore", "asyncio")

CONSOLE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s"


def get_log_level(level_name: str) -> int:
    """Get numeric log level from string name, including custom VERBOSE level.

    Args:
        level_name: Log level name (DEBUG, VERBOSE, INFO, WARNING, ERROR, CRITICAL)

    Returns:
        Numeric log level

    Raises:
        AttributeError: If the level name is not recognized
    """
    level_name = level_name.upper()
    if level_name == "VERBOSE":
        return VERBOSE
    level: int = getattr(logging, level_name)
    return level


class AutoColoredFormatter(logging.Formatter):
    """Formatter that auto-detects terminal color support."""

    COLORS = {
        "ERROR": {"truecolor": "\033[91m", "basic": "\033[31m", "none": ""},
        "INFO": {"truecolor": "\033[94m", "basic": "\033[34m", "none": ""},
        "VERBOSE": {"truecolor": "\033[92m", "basic": "\033[32m", "none": ""},
        "WARNING": {"truecolor": "\033[93m", "basic": "\033[33m", "none": ""},
        "DEBUG": {"truecolor": "\033[95m", "basic": "\033[35m", "none": ""},
        "CRITICAL": {"truecolor": "\033[91m\033[1m", "basic": "\033[31m\033[1m", "none": ""},
        "RESET": {"truecolor": "\033[0m", "basic": "\033[0m", "none": ""},
    }

    def __init__(self, *args: Any, enable_colors: bool = True, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.enable_colors = enable_colors
        self.color_mode = self._detect_color_support() if enable_colors else "none"

    def _detect_color_support(self) -> str:
        """Auto-detect terminal color capabilities."""
        if not hasattr(sys.stderr, "isatty") or not sys.stderr.isatty():
            return "none"

        term = os.environ.get("TERM", "").lower()
        colorterm = os.environ.get("COLORTERM", "").lower()

        if term == "dumb" or "NO_COLOR" in os.environ:
            return "none"
        if colorterm in ("truecolor", "24bit") or "256color" in term:
            return "truecolor"
        if term and "color" in term:
            return "basic"
        return "none"

    def format(self, record: logging.LogRecord) -> str:
        """Format log record with a colored level name if supported."""
        formatted = super().format(record)

        if self.color_mode == "none" or record.levelname not in self.COLORS:
            return formatted

        color_start = self.COLORS[record.levelname][self.color_mode]
        color_end = self.COLORS["RESET"][self.color_mode]
        return formatted.replace(record.levelname, f"{color_start}{record.levelname}{color_end}", 1)


def setup_logging(settings: "StudioCalSettings") -> logging.Logger:
    """Configure the ``studiocal`` logger from settings.

    Console output goes to stderr so exported calendars written to stdout
    stay clean. File output uses a size-rotated log in
    ``settings.log_directory``.

    Args:
        settings: Application settings

    Returns:
        The configured ``studiocal`` logger
    """
    log_settings = settings.logging
    console_level = get_log_level(log_settings.console_level)
    file_level = get_log_level(log_settings.file_level)

    logger = logging.getLogger("studiocal")
    logger.handlers.clear()
    logger.propagate = False

    levels = [console_level]

    if log_settings.console_enabled:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(console_level)
        console_handler.setFormatter(
            AutoColoredFormatter(
                CONSOLE_FORMAT, datefmt="%H:%M:%S", enable_colors=log_settings.console_colors
            )
        )
        logger.addHandler(console_handler)

    if log_settings.file_enabled:
        log_dir = settings.log_directory
        log_dir.mkdir(parents=True, exist_ok=True)
        log_path = log_dir / f"{log_settings.file_prefix}.log"

        file_handler = logging.handlers.RotatingFileHandler(
            log_path,
            maxBytes=log_settings.max_file_bytes,
            backupCount=log_settings.max_log_files,
            encoding="utf-8",
        )
        file_handler.setLevel(file_level)
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        logger.addHandler(file_handler)
        levels.append(file_level)

    logger.setLevel(min(levels))

    third_party_level = get_log_level(log_settings.third_party_level)
    for lib in THIRD_PARTY_LOGGERS:
        logging.getLogger(lib).setLevel(third_party_level)

    logger.debug(f"Logging initialized (console={log_settings.console_level})")
    return logger


def apply_command_line_overrides(settings: "StudioCalSettings", args: Any) -> "StudioCalSettings":
    """Apply ``--log-level``/``--verbose``/``--quiet`` flags to logging settings.

    Priority: Command-line > Environment > YAML > Defaults
    """
    if getattr(args, "log_level", None):
        settings.logging.console_level = args.log_level
        settings.logging.file_level = args.log_level

    if getattr(args, "verbose", False):
        settings.logging.console_level = "VERBOSE"

    if getattr(args, "quiet", False):
        settings.logging.console_level = "ERROR"

    if getattr(args, "log_file", False):
        settings.logging.file_enabled = True

    return settings
