import logging
import sys

from conexa.config import settings

_LEVELS = {
    "CRITICAL": logging.CRITICAL,
    "ERROR": logging.ERROR,
    "WARNING": logging.WARNING,
    "WARN": logging.WARNING,
    "INFO": logging.INFO,
    "DEBUG": logging.DEBUG,
}


def setup_logging(level: str | int | None = None) -> None:
    """Initialize the root logger once with a stdout handler.

    Level comes from the explicit `level` argument, then the LOG_LEVEL setting,
    then INFO.
    """
    raw = level if level is not None else settings.LOG_LEVEL
    if isinstance(raw, int):
        desired_level = raw
    else:
        name = str(raw).strip().upper()
        desired_level = int(name) if name.isdigit() else _LEVELS.get(name, logging.INFO)

    root = logging.getLogger()
    if not root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s [%(name)s] %(message)s"))
        root.addHandler(handler)
        logging.captureWarnings(True)
    root.setLevel(desired_level)
