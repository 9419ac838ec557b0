import os
import sys
import logging

LOG_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'


def debug_enabled() -> bool:
    """LSI_DEBUG in the environment turns on debug output."""
    return bool(os.environ.get("LSI_DEBUG"))


def attach_handler(handler: logging.Handler) -> logging.Handler:
    """Formats ``handler`` like every other LSI sink and hooks it to the root logger."""
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG if debug_enabled() else logging.INFO)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root_logger.addHandler(handler)
    return handler


def detach_handler(handler: logging.Handler):
    logging.getLogger().removeHandler(handler)
    handler.close()


def setup_logging(stream=None) -> logging.Logger:
    """
    Configures the root logger for the command line tools and returns it.
    Safe to call more than once.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG if debug_enabled() else logging.INFO)

    for handler in root_logger.handlers:
        if getattr(handler, "_lsi_handler", False):
            return root_logger

    handler = attach_handler(logging.StreamHandler(stream or sys.stderr))
    handler._lsi_handler = True
    return root_logger
