"""Per-run logging setup shared by the CLI and the server."""

import logging
from pathlib import Path

from ulid import ULID

from studymate.application.config import AppConfig

LOG_FORMAT = "%(asctime)s %(levelname)s:%(name)s:%(message)s"


def level_for_verbosity(verbose: int) -> int:
    if verbose <= 0:
        return logging.WARNING
    if verbose == 1:
        return logging.INFO
    return logging.DEBUG


def setup_logging(config: AppConfig) -> tuple[logging.Logger, Path, str]:
    """
    Attach a per-run file handler to the ``studymate`` logger.

    Returns:
        (logger, log_path, run_id)
    """
    run_id = str(ULID())
    config.log_dir.mkdir(parents=True, exist_ok=True)
    log_path = config.log_dir / f"run_{run_id}.log"

    logger = logging.getLogger("studymate")
    logger.setLevel(level_for_verbosity(config.verbose))

    handler = logging.FileHandler(log_path, encoding="utf-8")
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)

    logger.debug(f"Logging run {run_id} to {log_path}")
    return logger, log_path, run_id
