"""Configuration module for archivist."""

from archivist.config.loader import get_config_path, load_config
from archivist.config.schema import Config

__all__ = ["Config", "load_config", "get_config_path"]
