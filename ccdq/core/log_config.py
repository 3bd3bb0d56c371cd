"""
FILE: core/log_config.py
-------------------------
Loguru sink setup for command line runs and the report pipeline.
"""

import sys
from pathlib import Path

from loguru import logger


CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan> - <level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"


def configure_logging(level: str = "INFO", log_file: Path | None = None) -> None:
    """
    Replace loguru's default sink with a stderr sink at `level`.
    If `log_file` is given, DEBUG and above are also written there.
    """
    logger.remove()
    logger.add(sys.stderr, level=level.upper(), format=CONSOLE_FORMAT)
    if log_file is not None:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        logger.add(log_file, level="DEBUG", format=FILE_FORMAT, encoding="utf-8")
