"""stderr logging for near-balance.

Level names are tinted with ANSI colors when the stream is a terminal, and
a TRACE level below DEBUG also opens up urllib3's connection logs.
"""

import logging
import os
import sys

TRACE = 5
logging.addLevelName(TRACE, "TRACE")

_LEVEL_TINTS = {
    TRACE: "90",
    logging.DEBUG: "36",
    logging.INFO: "32",
    logging.WARNING: "33",
    logging.ERROR: "31",
    logging.CRITICAL: "1;35",
}


class LevelTintFormatter(logging.Formatter):
    """Wraps ``%(levelname)s`` in the ANSI tint for the record's level."""

    def __init__(self, *args, use_color: bool = True, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.use_color = use_color

    def formatMessage(self, record: logging.LogRecord) -> str:
        tint = _LEVEL_TINTS.get(record.levelno)
        if not self.use_color or tint is None:
            return super().formatMessage(record)
        tinted = logging.makeLogRecord(record.__dict__)
        tinted.levelname = f"\033[{tint}m{record.levelname}\033[0m"
        return super().formatMessage(tinted)


def setup_logging(log_level: str | None = None) -> None:
    """Configure logging for the application.

    Uses ``log_level`` when given, else the LOG_LEVEL environment variable
    (defaults to INFO). Logs go to stderr so ``--json`` output stays clean.

    urllib3 is held at WARNING unless the level is TRACE.
    """
    level_name = (log_level or os.getenv("LOG_LEVEL", "INFO")).upper()
    if level_name == "TRACE":
        level = TRACE
    else:
        level = getattr(logging, level_name, logging.INFO)

    handler = logging.StreamHandler(sys.stderr)
    formatter = LevelTintFormatter(
        fmt="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%H:%M:%S",
        use_color=sys.stderr.isatty(),
    )
    handler.setFormatter(formatter)

    logging.basicConfig(
        level=level,
        handlers=[handler],
        force=True,
    )

    logging.getLogger("urllib3").setLevel(TRACE if level == TRACE else logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Module logger; handlers come from ``setup_logging``."""
    return logging.getLogger(name)
