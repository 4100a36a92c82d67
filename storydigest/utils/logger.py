"""
Logging configuration using Loguru.

Console records go to stderr so command output on stdout can be piped.
The optional file sink writes one JSON record per line, rotated by size.
"""

import sys
from pathlib import Path

from loguru import logger

from storydigest.config import LoggingConfig

CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{extra[module]}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {extra[module]}:{line} - {message}"
LOG_FILE_NAME = "storydigest_{time:YYYY-MM-DD}.log"


def resolve_level(config: LoggingConfig, debug: bool = False) -> str:
    """DEBUG when requested on the command line or in config, else the configured level."""
    return "DEBUG" if debug or config.debug else config.level.upper()


def setup_logging(config: LoggingConfig | None = None, debug: bool = False) -> Path | None:
    """
    Configure sinks from the logging section.

    Args:
        config: Logging section; defaults apply when omitted
        debug: Force DEBUG, surfacing heuristic degradations

    Returns:
        Log directory when the file sink is enabled, else None
    """
    config = config or LoggingConfig()
    level = resolve_level(config, debug)

    logger.remove()
    # Records logged through the bare logger have no module binding
    logger.configure(extra={"module": "storydigest"})
    logger.add(sys.stderr, level=level, format=CONSOLE_FORMAT, colorize=True)

    if not config.log_to_file:
        return None

    log_path = Path(config.log_dir)
    log_path.mkdir(parents=True, exist_ok=True)
    logger.add(
        log_path / LOG_FILE_NAME,
        level=level,
        format=FILE_FORMAT,
        rotation=config.file_rotation,
        retention=config.file_retention,
        compression=config.compression,
        serialize=config.serialize,
        enqueue=True,
    )
    return log_path


def get_logger(name: str):
    """Get a logger instance for a module."""
    return logger.bind(module=name)
