"""
Logging Configuration

Centralized logging using loguru with structured output.
"""

import sys
from pathlib import Path

from loguru import logger

from config import get_settings

_settings = get_settings()

# Remove default handler
logger.remove()

# Add console handler with custom format
logger.add(
    sys.stderr,
    format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | <level>{message}</level>",
    level="DEBUG" if _settings.debug else _settings.log_level,
    colorize=True,
)

# Add file handler for persistent logs
if _settings.log_to_file:
    logger.add(
        str(Path(_settings.log_dir) / "engine_{time:YYYY-MM-DD}.log"),
        rotation="10 MB",
        retention="7 days",
        format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} | {message}",
        level="DEBUG",
    )


def get_logger(name: str):
    """Get a logger with a specific name for component identification."""
    return logger.bind(name=name)


# Pre-configured loggers for different components
analysis_logger = get_logger("analysis")
insights_logger = get_logger("insights")
forecast_logger = get_logger("forecast")
relations_logger = get_logger("relations")
data_logger = get_logger("data")
