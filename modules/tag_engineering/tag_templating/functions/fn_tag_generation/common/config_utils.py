"""
Configuration utility functions.

Shared helpers for loading YAML (or JSON, which YAML parses) files used as
engine settings and dataset snapshots.
"""

from typing import Any, Dict, Optional

import yaml

from .logger import TagEngineLogger


def load_config_from_yaml(
    file_path: str, logger: Optional[TagEngineLogger] = None
) -> Dict[str, Any]:
    """
    Load configuration from YAML file.

    Args:
        file_path: Path to the YAML configuration file
        logger: Optional logger instance for error logging

    Returns:
        Dictionary containing the parsed configuration, or empty dict on error
    """
    if logger is None:
        logger = TagEngineLogger("INFO", False)

    try:
        with open(file_path, "r", encoding="utf-8") as f:
            return yaml.safe_load(f) or {}
    except FileNotFoundError:
        logger.error(f"Configuration file not found: {file_path}")
        return {}
    except yaml.YAMLError as e:
        logger.error(f"Error parsing YAML configuration: {e}")
        return {}
