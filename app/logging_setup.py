"""Root logging: stdout always, plus a rotating file when a log directory is configured."""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path


LOG_FILE_NAME = "todo.log"
_MAX_LOG_BYTES = 5 * 1024 * 1024
_BACKUP_COUNT = 5
_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
# httpx logs every request at INFO.
_QUIET_LOGGERS = ("httpx", "httpcore")

_installed: list[logging.Handler] = []


def setup_logging(log_dir: Path | None, debug: bool = False) -> list[logging.Handler]:
    """Install the app's handlers on the root logger.

    Calling it again swaps out the handlers installed by the previous call and
    leaves any other root handlers alone.
    """
    log_level = logging.DEBUG if debug else logging.INFO
    root_logger = logging.getLogger()
    for handler in _installed:
        root_logger.removeHandler(handler)
        handler.close()
    _installed.clear()

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_dir is not None:
        log_dir.mkdir(parents=True, exist_ok=True)
        handlers.append(
            RotatingFileHandler(
                log_dir / LOG_FILE_NAME,
                maxBytes=_MAX_LOG_BYTES,
                backupCount=_BACKUP_COUNT,
                encoding="utf-8",
            )
        )

    formatter = logging.Formatter(_FORMAT)
    for handler in handlers:
        handler.setLevel(log_level)
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)
    _installed.extend(handlers)
    root_logger.setLevel(log_level)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(log_level if debug else logging.WARNING)
    return list(handlers)
