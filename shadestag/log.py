"""Logging setup."""

import logging

PACKAGE_LOGGER = "shadestag"
LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(debug: bool = False) -> logging.Logger:
    """Set the package log level from the debug flag.

    Debug enables verbose cache and parser messages, otherwise only warnings
    and errors are emitted. Handlers are left to the host application.
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(logging.DEBUG if debug else logging.WARNING)
    return logger


def add_stream_handler() -> logging.Handler:
    """Attach a stderr handler to the package logger, once.

    Used by the command line entry point.
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in logger.handlers:
        if isinstance(handler, logging.StreamHandler):
            return handler
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    return handler
