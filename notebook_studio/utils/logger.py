"""
Logger configuration utility
"""
import sys
from pathlib import Path
from typing import Optional
from loguru import logger


def setup_logger(level: str = "INFO", log_file: Optional[Path] = None):
    """
    Setup loguru logger for the notebook application

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        log_file: Optional file that additionally receives DEBUG output,
            rotated at 5 MB and kept for a week
    """
    logger.remove()
    logger.add(
        sys.stderr,
        format="<green>{time:HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{line}</cyan> | <level>{message}</level>",
        level=level,
        colorize=True,
        backtrace=True,
        # Source contents end up in locals; never dump them into tracebacks
        diagnose=False,
    )
    if log_file is not None:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_file,
            level="DEBUG",
            rotation="5 MB",
            retention="7 days",
            encoding="utf-8",
            enqueue=True,
            diagnose=False,
        )
    return logger
