"""
Logging Configuration

Applies the process-wide logging format used by every engine component.
"""

from typing import Optional
import logging

from config.settings import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: Optional[str] = None) -> None:
    """
    Configure root logging for a host application embedding the engine.
    
    Args:
        level: Log level name; defaults to settings.LOG_LEVEL
    """
    level_name = (level or settings.LOG_LEVEL).upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format=LOG_FORMAT
    )
