"""Logging setup."""
import logging
from typing import Optional

from tagvault.core.config import settings


def setup_logging(level: Optional[str] = None) -> None:
    """Configure root logging and SQL query logging.

    Args:
        level: Log level name (defaults to settings.LOG_LEVEL)
    """
    logging.basicConfig(
        level=(level or settings.LOG_LEVEL).upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    # Enable SQL query logging only when asked for
    sql_level = logging.INFO if settings.SQL_ECHO else logging.WARNING
    logging.getLogger("sqlalchemy.engine").setLevel(sql_level)
