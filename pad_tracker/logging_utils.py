"""Diagnostics logging for tracker sessions.

Telemetry rows go to the output sinks; this logger carries everything else
(open/read failures, session start and summary) tagged with the session name.
"""

import logging
from typing import Optional, TextIO, Union

FORMAT = "%(asctime)s %(levelname)s [%(session)s] %(message)s"


class SessionNameFilter(logging.Filter):
    def __init__(self, session_name: str):
        super().__init__()
        self.session_name = session_name

    def filter(self, record: logging.LogRecord) -> bool:
        record.session = self.session_name
        return True


def parse_level(level: Union[int, str]) -> int:
    """Accept 10 / "10" / "debug" / "DEBUG"."""
    if isinstance(level, int):
        return level
    text = str(level).strip()
    if text.isdigit():
        return int(text)
    value = logging.getLevelName(text.upper())
    if not isinstance(value, int):
        raise ValueError(f"Unknown log level: {level!r}")
    return value


def _tagged(handler: logging.Handler, session_name: str) -> logging.Handler:
    handler.setFormatter(logging.Formatter(FORMAT))
    handler.addFilter(SessionNameFilter(session_name))
    return handler


def setup_logger(
    session_name: str,
    level: Union[int, str] = logging.INFO,
    stream: Optional[TextIO] = None,
) -> logging.Logger:
    """Logger ``pad_tracker.<session>`` with one stderr handler, reused across calls."""
    logger = logging.getLogger(f"pad_tracker.{session_name}")
    logger.setLevel(parse_level(level))

    if not any(isinstance(h, logging.StreamHandler) and not isinstance(h, logging.FileHandler)
               for h in logger.handlers):
        logger.addHandler(_tagged(logging.StreamHandler(stream), session_name))

    return logger


def add_file_handler(logger: logging.Logger, session_name: str, log_path: str) -> logging.Handler:
    """Mirror the session log into ``log_path``; the caller detaches it when the run ends."""
    handler = _tagged(logging.FileHandler(log_path, encoding="utf-8"), session_name)
    logger.addHandler(handler)
    return handler
