"""Shared utilities for docqa."""

from .config import Config, DocQAConfig, load_config
from .logging import get_logger, set_log_level

__all__ = ["Config", "DocQAConfig", "load_config", "get_logger", "set_log_level"]
