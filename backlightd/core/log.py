import logging
from logging.handlers import RotatingFileHandler

from .config import settings


def configure_logging(level: str | None = None, log_file: str | None = None) -> None:
    logger = logging.getLogger()
    logger.setLevel((level or settings.log_level).upper())

    fmt = logging.Formatter(
        "%(asctime)s %(levelname)s %(name)s - %(message)s"
    )

    # Console
    ch = logging.StreamHandler()
    ch.setFormatter(fmt)
    logger.addHandler(ch)

    # Rotating file (ramps log a line per event; keep it bounded)
    path = log_file if log_file is not None else settings.log_file
    if path:
        fh = RotatingFileHandler(path, maxBytes=1_000_000, backupCount=3)
        fh.setFormatter(fmt)
        logger.addHandler(fh)

    logging.getLogger("sdbus").setLevel(logging.WARNING)
