import logging
import sys

LOG_FORMAT = "%(asctime)s [%(name)s] %(levelname)s: %(message)s"


def configure_logging(verbose: bool = False) -> logging.Logger:
    """
    Route the package's log records to stderr.

    stdout is left alone: it carries the MCP stdio transport and CLI reports.
    Calling this again replaces the handler instead of stacking a second one.

    Args:
        verbose: DEBUG level when True (compiler fallbacks become visible), else WARNING

    Returns:
        The configured `hive_proxy` logger.
    """
    logger = logging.getLogger("hive_proxy")
    for handler in list(logger.handlers):
        if getattr(handler, "_hive_proxy", False):
            logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler._hive_proxy = True
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    return logger
