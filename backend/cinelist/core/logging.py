"""
Logging setup for the API process.

Imported once from cinelist.main before the routers so every module logger
inherits the same root configuration. Modules just call
``logging.getLogger(__name__)``.
"""
import logging

from cinelist.core.config import settings


def _resolve_level() -> int:
    if settings.LOG_LEVEL:
        return logging.getLevelName(settings.LOG_LEVEL.upper())
    if settings.APP_ENV in ("development", "test"):
        return logging.DEBUG
    return logging.INFO


log_level = _resolve_level()

# Don't stack handlers when uvicorn --reload re-imports us
if not logging.root.handlers:
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

# SQL echo is controlled by the engine, keep the sqlalchemy logger quiet otherwise
logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

logger = logging.getLogger(__name__)
logger.debug("Core logging configured (level=%s).", logging.getLevelName(log_level))
