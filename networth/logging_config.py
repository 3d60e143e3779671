"""
Logging for the net worth service.

Everything the service logs hangs off the "networth" logger. Libraries that
talk a lot at INFO (SQLAlchemy, uvicorn, the seeding tools) are held at a
separate, quieter level.
"""
import logging
import logging.handlers
import os
import sys
from pathlib import Path
from typing import Optional

APP_LOGGER_NAME = "networth"

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

SQLALCHEMY_ENGINE_LOGGERS = (
    "sqlalchemy.engine",
    "sqlalchemy.engine.Engine",
)

THIRD_PARTY_LOGGERS = (
    "sqlalchemy.dialects",
    "sqlalchemy.pool",
    "sqlalchemy.orm",
    "alembic",
    "uvicorn.access",
    "uvicorn.error",
    "httpx",
    "faker",
)


def _resolve_level(level_name: str, fallback: int) -> int:
    return getattr(logging, level_name.upper(), fallback)


def sql_echo_enabled() -> bool:
    return os.getenv("SQL_ECHO", "false").lower() == "true"


def setup_logging(
    app_log_level: Optional[str] = None,
    third_party_log_level: Optional[str] = None,
    log_file: Optional[str] = None,
    max_file_size: int = 10 * 1024 * 1024,  # 10MB
    backup_count: int = 5,
) -> logging.Logger:
    """
    Configure the "networth" logger and pin third-party loggers.

    Levels come from the arguments, then APP_LOG_LEVEL / THIRD_PARTY_LOG_LEVEL,
    then INFO / WARNING. LOG_FILE adds a rotating file next to stdout.
    With SQL_ECHO=true the SQLAlchemy engine loggers are left alone so the
    statements the engine echoes stay visible.
    """
    app_level = _resolve_level(app_log_level or os.getenv("APP_LOG_LEVEL", "INFO"), logging.INFO)
    third_party_level = _resolve_level(
        third_party_log_level or os.getenv("THIRD_PARTY_LOG_LEVEL", "WARNING"), logging.WARNING
    )
    log_file = log_file or os.getenv("LOG_FILE")

    app_logger = logging.getLogger(APP_LOGGER_NAME)
    app_logger.setLevel(app_level)
    app_logger.handlers.clear()

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=max_file_size,
            backupCount=backup_count
        ))

    for handler in handlers:
        handler.setLevel(app_level)
        handler.setFormatter(formatter)
        app_logger.addHandler(handler)

    pinned = THIRD_PARTY_LOGGERS if sql_echo_enabled() else SQLALCHEMY_ENGINE_LOGGERS + THIRD_PARTY_LOGGERS
    for logger_name in pinned:
        logging.getLogger(logger_name).setLevel(third_party_level)

    app_logger.propagate = False

    return app_logger


def log_service_settings(logger: logging.Logger) -> None:
    """Log the runtime settings an operator needs when reading the logs. Secrets are never logged."""
    database_url = os.getenv("DATABASE_URL", "sqlite:///networth.db")
    backend = database_url.split(":", 1)[0]
    workers = os.getenv("NET_WORTH_FETCH_WORKERS") or "one per snapshot read"
    cron_mode = "bearer token required" if os.getenv("CRON_SECRET") else "open (CRON_SECRET not set)"

    logger.info(f"Database backend: {backend}")
    logger.info(f"Snapshot fetch workers: {workers}")
    logger.info(f"Scheduled recording endpoint: {cron_mode}")
    if sql_echo_enabled():
        logger.info("SQL_ECHO is on, SQLAlchemy statements will be logged")


def get_logger(name: str = APP_LOGGER_NAME) -> logging.Logger:
    """Logger under the "networth" prefix; module names already inside it are kept as-is."""
    if name == APP_LOGGER_NAME or name.startswith(f"{APP_LOGGER_NAME}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{APP_LOGGER_NAME}.{name}")
