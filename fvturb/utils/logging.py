import sys
from loguru import logger


def setup_logging(level="INFO", show_time=True, sink=sys.stderr):
    """Configure loguru for the package.

    Parameters
    ----------
    level : str
        Logging level (DEBUG, INFO, SUCCESS, WARNING, ERROR, CRITICAL)
    show_time : bool
        Whether to show timestamps in the output.
    sink : file-like or callable
        Destination of the handler, stderr by default.
    """
    logger.remove()

    log_format = (
        "<level>{level: <8}</level> | "
        "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
    )
    if show_time:
        log_format = "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | " + log_format

    logger.add(sink, format=log_format, level=level, colorize=sink in (sys.stderr, sys.stdout))

    return logger


def setup_logging_from_config(config):
    """Configure logging from a ``LoggingConfig`` section."""
    return setup_logging(level=config.level, show_time=config.show_time)
