"""
Package logging: one stream handler on the "sheetgpt" logger, shared by every module logger.
"""
import logging

from sheetgpt.config import LOG_LEVEL

__all__ = ["get_logger"]

PACKAGE_LOGGER = "sheetgpt"
LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def _configure_package_logger() -> logging.Logger:
    root = logging.getLogger(PACKAGE_LOGGER)
    # Streamlit reruns re-import modules; attach the handler only once
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)
        root.setLevel(getattr(logging, LOG_LEVEL, logging.INFO))
        root.propagate = False
    return root


def get_logger(name: str = PACKAGE_LOGGER) -> logging.Logger:
    """Return a logger under the "sheetgpt" hierarchy.

    Names outside the package (e.g. "__main__") are nested under it so they
    share the package handler and LOG_LEVEL.
    """
    root = _configure_package_logger()
    if name == PACKAGE_LOGGER:
        return root
    if not name.startswith(PACKAGE_LOGGER + "."):
        name = f"{PACKAGE_LOGGER}.{name}"
    return logging.getLogger(name)
