"""
Configuration Management System for Tag Generation

This module provides configuration management for the tag templating and
numbering engine: YAML configuration files, schema validation and
environment-specific overrides.

Features:
- YAML-based configuration files
- Configuration validation and schema checking
- Environment-specific configurations (<name>_<environment>.yaml)
- Generation, preview, inheritance and history settings
"""

import copy
import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import jsonschema
import yaml

from ..functions.fn_tag_generation.engine.settings import (
    GenerationSettings,
    HistorySettings,
    InheritanceSettings,
    PreviewSettings,
    TagEngineConfig,
)

logger = logging.getLogger(__name__)


class ConfigurationValidator:
    """Validates configuration files against schemas."""

    def __init__(self):
        self.schemas = self._load_schemas()

    def _load_schemas(self) -> Dict[str, Dict[str, Any]]:
        """Load JSON schemas for validation."""
        return {
            "generation": {
                "type": "object",
                "properties": {
                    "max_batch_size": {"type": "integer", "minimum": 1, "maximum": 1000},
                    "default_padding": {"type": "integer", "minimum": 1, "maximum": 10},
                    "require_complete_values": {"type": "boolean"},
                    "default_actor": {"type": "string", "minLength": 1},
                },
            },
            "preview": {
                "type": "object",
                "properties": {
                    "placeholder": {"type": "string"},
                    "number_placeholder": {"type": "string", "minLength": 1, "maxLength": 1},
                },
            },
            "inheritance": {
                "type": "object",
                "properties": {
                    "wbs_categories": {
                        "type": "array",
                        "items": {"type": "string", "minLength": 1},
                    },
                },
            },
            "history": {
                "type": "object",
                "properties": {
                    "created_action": {"type": "string", "minLength": 1},
                    "edited_action": {"type": "string", "minLength": 1},
                    "assembly_action": {"type": "string", "minLength": 1},
                },
            },
        }

    def validate_section(self, section: str, section_config: Any) -> List[str]:
        """Validate one configuration section."""
        errors = []
        try:
            jsonschema.validate(section_config, self.schemas[section])
        except jsonschema.ValidationError as e:
            errors.append(f"{section} validation error: {e.message}")
        return errors


class ConfigurationManager:
    """Manages configuration files and settings."""

    def __init__(self, config_dir: Union[str, Path] = Path(__file__).parent):
        """
        Initialize configuration manager.

        Args:
            config_dir: Directory containing config files. Defaults to this package directory.
        """
        self.config_dir = Path(config_dir)
        self.validator = ConfigurationValidator()
        self.config_cache: Dict[Tuple[str, str], TagEngineConfig] = {}

    def load_config(
        self, config_name: str = "default", environment: Optional[str] = None
    ) -> TagEngineConfig:
        """
        Load configuration from file.

        Args:
            config_name: Name of the configuration file
            environment: Environment-specific override

        Returns:
            Loaded configuration
        """
        cache_key = (config_name, environment or "default")
        if cache_key in self.config_cache:
            return self.config_cache[cache_key]

        config_file = self.config_dir / f"{config_name}.yaml"
        if not config_file.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_file}")

        config_data = self.load_yaml_file(config_file)

        if environment:
            env_file = self.config_dir / f"{config_name}_{environment}.yaml"
            if env_file.exists():
                config_data = self._merge_configs(config_data, self.load_yaml_file(env_file))
                logger.info(f"Applied {environment} overrides from {env_file.name}")

        validation_errors = self.validate_config(config_data)
        if validation_errors:
            raise ValueError(f"Configuration validation failed: {validation_errors}")

        config = self._parse_config(config_data)
        self.config_cache[cache_key] = config
        return config

    def load_yaml_file(self, file_path: Union[str, Path]) -> Dict[str, Any]:
        file_path = Path(file_path)
        if not file_path.exists():
            raise FileNotFoundError(f"YAML file not found: {file_path}")

        with open(file_path, "r", encoding="utf-8") as f:
            config_data = yaml.safe_load(f)
        return config_data or {}

    def save_config(
        self,
        config: TagEngineConfig,
        config_name: str = "default",
        environment: Optional[str] = None,
    ) -> str:
        """
        Save configuration to file.

        Returns:
            Path to saved file
        """
        if environment:
            config_file = self.config_dir / f"{config_name}_{environment}.yaml"
        else:
            config_file = self.config_dir / f"{config_name}.yaml"

        config_file.parent.mkdir(parents=True, exist_ok=True)
        with open(config_file, "w", encoding="utf-8") as f:
            yaml.dump(
                self._config_to_dict(config),
                f,
                default_flow_style=False,
                indent=2,
                allow_unicode=True,
            )

        logger.info(f"Configuration saved to: {config_file}")
        self.config_cache.pop((config_name, environment or "default"), None)
        return str(config_file)

    def validate_config(self, config_data: Dict[str, Any]) -> List[str]:
        """Validate configuration data."""
        errors = []
        if not isinstance(config_data, dict):
            return [f"Configuration must be a mapping, got {type(config_data).__name__}"]
        for section in self.validator.schemas:
            if section in config_data:
                errors.extend(self.validator.validate_section(section, config_data[section]))
        return errors

    def _parse_config(self, config_data: Dict[str, Any]) -> TagEngineConfig:
        """Parse configuration data into configuration objects."""
        generation_data = config_data.get("generation") or {}
        preview_data = config_data.get("preview") or {}
        inheritance_data = config_data.get("inheritance") or {}
        history_data = config_data.get("history") or {}
        defaults = TagEngineConfig()

        return TagEngineConfig(
            generation=GenerationSettings(
                max_batch_size=generation_data.get(
                    "max_batch_size", defaults.generation.max_batch_size
                ),
                default_padding=generation_data.get(
                    "default_padding", defaults.generation.default_padding
                ),
                require_complete_values=generation_data.get(
                    "require_complete_values", defaults.generation.require_complete_values
                ),
                default_actor=generation_data.get(
                    "default_actor", defaults.generation.default_actor
                ),
            ),
            preview=PreviewSettings(
                placeholder=preview_data.get("placeholder", defaults.preview.placeholder),
                number_placeholder=preview_data.get(
                    "number_placeholder", defaults.preview.number_placeholder
                ),
            ),
            inheritance=InheritanceSettings(
                wbs_categories=list(
                    inheritance_data.get(
                        "wbs_categories", defaults.inheritance.wbs_categories
                    )
                ),
            ),
            history=HistorySettings(
                created_action=history_data.get(
                    "created_action", defaults.history.created_action
                ),
                edited_action=history_data.get(
                    "edited_action", defaults.history.edited_action
                ),
                assembly_action=history_data.get(
                    "assembly_action", defaults.history.assembly_action
                ),
            ),
        )

    def _config_to_dict(self, config: TagEngineConfig) -> Dict[str, Any]:
        return config.to_dict()

    def _merge_configs(
        self, base_config: Dict[str, Any], override_config: Dict[str, Any]
    ) -> Dict[str, Any]:
        """Merge configuration dictionaries."""
        merged = copy.deepcopy(base_config)
        for key, value in (override_config or {}).items():
            if (
                key in merged
                and isinstance(merged[key], dict)
                and isinstance(value, dict)
            ):
                merged[key] = self._merge_configs(merged[key], value)
            else:
                merged[key] = value
        return merged


def load_config_from_env() -> TagEngineConfig:
    """Load configuration from environment variables."""
    config_manager = ConfigurationManager()

    wbs_categories = os.getenv("TAG_ENGINE_WBS_CATEGORIES")
    config_data = {
        "generation": {
            "max_batch_size": int(os.getenv("TAG_ENGINE_MAX_BATCH_SIZE", "50")),
            "default_padding": int(os.getenv("TAG_ENGINE_DEFAULT_PADDING", "3")),
            "require_complete_values": os.getenv(
                "TAG_ENGINE_REQUIRE_COMPLETE_VALUES", "false"
            ).lower()
            == "true",
            "default_actor": os.getenv("TAG_ENGINE_DEFAULT_ACTOR", "system"),
        },
        "preview": {
            "placeholder": os.getenv("TAG_ENGINE_PLACEHOLDER", "?"),
        },
        "metadata": {
            "loaded_from": "environment_variables",
            "loaded_at": datetime.now().isoformat(),
        },
    }
    if wbs_categories:
        config_data["inheritance"] = {
            "wbs_categories": [c.strip() for c in wbs_categories.split(",") if c.strip()]
        }

    validation_errors = config_manager.validate_config(config_data)
    if validation_errors:
        raise ValueError(
            f"Environment configuration validation failed: {validation_errors}"
        )

    return config_manager._parse_config(config_data)
