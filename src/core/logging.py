import sys
from loguru import logger
from .config import settings


def setup_logging():
    """Install a single stderr sink at the configured level and return the logger."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=settings.log_level.upper(),
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
               "<cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level> | {extra}",
    )
    logger.info("Logging initialized", app=settings.app_name, env=settings.app_env)
    return logger
