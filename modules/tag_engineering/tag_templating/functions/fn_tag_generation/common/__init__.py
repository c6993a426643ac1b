"""
Common utilities shared across the tag generation function.
"""

from .cdf_utils import create_table_if_not_exists
from .config_utils import load_config_from_yaml
from .logger import TagEngineLogger

__all__ = [
    "TagEngineLogger",
    "create_table_if_not_exists",
    "load_config_from_yaml",
]
