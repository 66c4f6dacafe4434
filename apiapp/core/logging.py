import sys

from loguru import logger


def setup_logging(level: str = "INFO"):
    logger.remove()
    logger.add(sys.stdout, level=level,
               backtrace=True, diagnose=False,
               format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level}</level> | "
                      "<cyan>{name}</cyan> | {message}")
    return logger
