"""
Configuration Management System

This package contains configuration management and YAML configuration files.
"""

from .configuration_manager import (
    ConfigurationManager,
    ConfigurationValidator,
    load_config_from_env,
)

__all__ = [
    "ConfigurationManager",
    "ConfigurationValidator",
    "load_config_from_env",
]
