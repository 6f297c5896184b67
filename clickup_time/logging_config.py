import logging
import sys
from datetime import datetime

from clickup_time.config import LOG_LEVEL, get_timezone


class ZoneFormatter(logging.Formatter):
    """Renders record timestamps in the configured calendar zone."""

    def __init__(self, fmt=None, datefmt=None, tz=None):
        super().__init__(fmt, datefmt)
        self.tz = tz

    def formatTime(self, record, datefmt=None):
        if self.tz is None:
            dt = datetime.fromtimestamp(record.created)
        else:
            dt = datetime.fromtimestamp(record.created, tz=self.tz)
        return dt.strftime(datefmt or "%H:%M:%S")


def setup_logging(level: str = LOG_LEVEL):
    formatter = ZoneFormatter(
        "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        "%H:%M:%S",
        tz=get_timezone(),
    )

    # stderr keeps the stdio transport's stdout clean
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        handlers=[handler],
        force=True,
    )
