"""Configuration module: mapper settings and logging setup.

Usage:
    from graphmapper.config import MapperConfig, setup_logging

    config = MapperConfig(throw_on_unmatched_field=True)
    setup_logging(level="DEBUG", log_format="console")
"""

from graphmapper.config.logging import get_logger, setup_logging
from graphmapper.config.settings import MapperConfig

__all__ = [
    "MapperConfig",
    "get_logger",
    "setup_logging",
]
