# =============================================================================
# health_store/logging/config.py
# Logging Configuration for the Entity Store
# =============================================================================

import logging
import os
import sys
import time
from pathlib import Path
from datetime import datetime
from typing import Optional, Union

from health_store.errors import ConfigurationError


LOG_FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

LOG_DIR = Path("logs")
LOG_LEVEL_ENV = "HEALTH_STORE_LOG_LEVEL"

# HTTP/client libraries underneath the Supabase adapter
NOISY_LOGGERS = ("urllib3", "httpx", "httpcore", "hpack", "supabase", "postgrest")


def resolve_level(level: Union[int, str, None]) -> int:
    """
    Turn a level number or name ("debug", "WARNING") into a logging level.

    None reads HEALTH_STORE_LOG_LEVEL and defaults to INFO.
    """
    if level is None:
        level = os.environ.get(LOG_LEVEL_ENV) or logging.INFO
    if isinstance(level, int):
        return level

    resolved = logging.getLevelName(str(level).strip().upper())
    if not isinstance(resolved, int):
        raise ConfigurationError(
            f"Unknown log level {level!r}",
            config_key=LOG_LEVEL_ENV,
            expected_type="DEBUG|INFO|WARNING|ERROR|CRITICAL",
        )
    return resolved


def setup_logging(
    level: Union[int, str, None] = None,
    log_to_file: bool = False,
    log_filename: Optional[str] = None,
) -> None:
    """
    Configure application-wide logging.

    Args:
        level: Level number or name (default: HEALTH_STORE_LOG_LEVEL or INFO)
        log_to_file: Whether to also log to a file under logs/
        log_filename: Custom log filename (default: store_YYYY-MM-DD.log)
    """
    level = resolve_level(level)
    handlers = [logging.StreamHandler(sys.stdout)]

    if log_to_file:
        LOG_DIR.mkdir(exist_ok=True)
        if log_filename is None:
            log_filename = f"store_{datetime.now().strftime('%Y-%m-%d')}.log"
        handlers.append(logging.FileHandler(LOG_DIR / log_filename, encoding="utf-8"))

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
        handlers=handlers,
        force=True,
    )

    # Request-level chatter from the Supabase stack drowns out fallback warnings
    quiet = max(level, logging.WARNING)
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(quiet)

    logging.getLogger("health_store").info(
        f"Logging initialized at {logging.getLevelName(level)}"
    )


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance with the given name.

    Usage:
        from health_store.logging import get_logger
        logger = get_logger(__name__)
    """
    return logging.getLogger(name)


def log_fallback(
    logger: logging.Logger,
    collection: str,
    operation: str,
    error: BaseException,
) -> None:
    """
    Record that a remote call failed and the local store took over.

    The collection, operation and error type are attached as record
    attributes so handlers and tests can filter on them.
    """
    logger.warning(
        f"Remote {operation} failed for {collection}, falling back to local: "
        f"{type(error).__name__}: {error}",
        extra={
            "collection": collection,
            "operation": operation,
            "error_type": type(error).__name__,
        },
    )


class LogContext:
    """
    Times an operation and logs its start, completion or failure.

    Works with both `with` and `async with`.

    Usage:
        async with LogContext(logger, "Migrating health_metrics"):
            await push()
        # Logs: "Migrating health_metrics... started"
        # Logs: "Migrating health_metrics... completed (0.34s)"
    """

    def __init__(self, logger: logging.Logger, operation: str):
        self.logger = logger
        self.operation = operation
        self.start_time: Optional[float] = None
        self.elapsed: Optional[float] = None

    def __enter__(self):
        self.start_time = time.perf_counter()
        self.logger.info(f"{self.operation}... started")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.elapsed = time.perf_counter() - self.start_time

        if exc_type is None:
            self.logger.info(f"{self.operation}... completed ({self.elapsed:.2f}s)")
        else:
            self.logger.error(
                f"{self.operation}... failed ({self.elapsed:.2f}s): {exc_val}",
                exc_info=(exc_type, exc_val, exc_tb),
            )

        return False

    async def __aenter__(self):
        return self.__enter__()

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return self.__exit__(exc_type, exc_val, exc_tb)
