import logging
import os
from datetime import datetime
from pathlib import Path

_LOGGERS = {}


def _log_dir() -> Path:
    return Path(os.getenv("MATCHDESK_LOG_DIR", "logs"))


def get_logger(
    name: str,
    *,
    runtime: str = "matchdesk",
) -> logging.Logger:
    """
    Create or retrieve a named logger.

    Parameters:
    - name: logger namespace (e.g. obs.gateway, commands.dispatcher)
    - runtime: log file prefix (matchdesk | future runtimes)

    Console output is always attached. A file handler (one per run) is added
    under MATCHDESK_LOG_DIR (default: ./logs) when the directory is writable.
    """
    cache_key = f"{runtime}:{name}"
    if cache_key in _LOGGERS:
        return _LOGGERS[cache_key]

    logger = logging.getLogger(cache_key)
    logger.setLevel(logging.DEBUG)

    formatter = logging.Formatter(
        "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
    )

    # ------------------------------
    # Console handler
    # ------------------------------
    console = logging.StreamHandler()
    console.setFormatter(formatter)
    logger.addHandler(console)

    # ------------------------------
    # File handler (one per run)
    # ------------------------------
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_dir = _log_dir()
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
        logfile = log_dir / f"{runtime}-{timestamp}.log"
        file_handler = logging.FileHandler(logfile, encoding="utf-8")
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)
    except OSError as e:
        logger.warning(f"File logging disabled ({log_dir}): {e}")

    logger.propagate = False
    _LOGGERS[cache_key] = logger

    return logger
