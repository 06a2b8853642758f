"""Loguru setup for the webhook service.

Every record carries ``request_id``, ``workflow_id`` and ``user_id`` extras.
The request middleware binds the first; workflow handlers bind the other two
so a capture can be matched with the token requests that follow it.
"""

import logging
import sys
from pathlib import Path

from loguru import logger

from src.idp_claims.runtime.config.config_data import LoggingConfig
from src.idp_claims.runtime.context import get_config

DEFAULT_EXTRA = {"request_id": "-", "workflow_id": "-", "user_id": "-"}

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "[<cyan>{extra[request_id]}</cyan>] "
    "<magenta>{extra[workflow_id]}</magenta> user=<cyan>{extra[user_id]}</cyan> | "
    "<cyan>{name}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)

# httpx logs every management API call at INFO; access logs come from the middleware
_QUIET_LOGGERS = {
    "httpx": logging.WARNING,
    "httpcore": logging.WARNING,
    "uvicorn.access": logging.CRITICAL,
}


class InterceptHandler(logging.Handler):
    """Forward stdlib logging records (uvicorn, httpx) to loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        logger.opt(depth=2, exception=record.exc_info).bind(
            logger_name=record.name
        ).log(level, record.getMessage())


def _add_file_sink(cfg: LoggingConfig, diagnose: bool) -> None:
    path = Path(cfg.file)
    path.parent.mkdir(parents=True, exist_ok=True)
    serialize = cfg.format == "json"
    logger.add(
        str(path),
        level=cfg.level,
        # serialized records carry the extras as JSON fields
        format="{message}" if serialize else CONSOLE_FORMAT,
        serialize=serialize,
        rotation=f"{cfg.max_size_mb} MB",
        retention=cfg.backup_count,
        compression="zip",
        enqueue=True,
        backtrace=diagnose,
        diagnose=diagnose,
    )


def configure_logging() -> None:
    """Route all service and library logging through loguru."""
    config = get_config()
    cfg = config.logging
    # no local variable dumps in production tracebacks
    diagnose = config.app.environment != "production"

    logger.remove()
    logger.configure(extra=DEFAULT_EXTRA)
    logger.add(
        sys.stderr,
        level=cfg.level,
        format=CONSOLE_FORMAT,
        colorize=True,
        backtrace=diagnose,
        diagnose=diagnose,
    )
    if cfg.file:
        _add_file_sink(cfg, diagnose)

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        logging.getLogger(name).handlers = []
    for name, level in _QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(level)

    logger.debug(f"Logging configured: {cfg.format} to {cfg.file or 'stderr'}")
