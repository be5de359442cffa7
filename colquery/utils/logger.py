"""Centralized logging for colquery. Library modules log under the `colquery.*` namespace."""
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Mapping

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def get_logger(
    name: str = "colquery",
    log_dir: str | Path | None = None,
    level: int | str = logging.INFO,
) -> logging.Logger:
    """
    Return the named logger with a stdout handler (and a dated file handler when
    log_dir is given). Handlers are attached once; later calls only adjust the level.
    """
    logger = logging.getLogger(name)
    logger.setLevel(level.upper() if isinstance(level, str) else level)
    if logger.handlers:
        return logger

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(formatter)
    logger.addHandler(console)

    if log_dir:
        Path(log_dir).mkdir(parents=True, exist_ok=True)
        log_file = Path(log_dir) / f"colquery_{datetime.now():%Y%m%d}.log"
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def logger_from_config(log_cfg: Mapping | None, verbose: bool = False) -> logging.Logger:
    """Build the root `colquery` logger from the `logging` section of config.yaml."""
    log_cfg = log_cfg or {}
    level = logging.DEBUG if verbose else log_cfg.get("level") or logging.INFO
    return get_logger("colquery", log_dir=log_cfg.get("logs_dir"), level=level)
