import os
import sys
from loguru import logger


def config(sink=None):
    """
    Configure the global Loguru logger. Kept lightweight so it can be
    imported across the codebase without side-effects beyond the sink swap.

    `sink` defaults to stdout; the CLI passes stderr so stdout stays clean for output.
    """
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
    logger.remove()
    logger.add(
        sink if sink is not None else sys.stdout,
        level=LOG_LEVEL,
        colorize=True,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
        "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
    )
