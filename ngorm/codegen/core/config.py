"""
Configuration management for code generation.

Handles loading and merging configuration from JSON files,
providing defaults and validation for generator settings.
"""

import json
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .errors import ConfigError

DEFAULT_OUTPUT_NAME = "ngorm_generate.py"


@dataclass
class GeneratorConfig:
    """Configuration for the mapper generator."""

    # Output settings
    output_file: Optional[str] = None

    # Selection: declared class names to generate (empty means all)
    type_names: List[str] = field(default_factory=list)

    # Naming settings
    trim_prefix: str = ""

    # Use class docstrings as tag/edge comments in the schema DDL
    line_comment: bool = False

    # Text shown in the generated module docstring; defaults to the source
    # directory name
    package_name: str = ""

    # Emit docstrings on generated mapper classes
    add_comments: bool = True

    # Custom settings
    custom: Dict[str, Any] = field(default_factory=dict)


class ConfigManager:
    """Manages configuration loading and merging."""

    def __init__(self):
        """Initialize configuration manager."""
        self._defaults: Dict[str, Any] = {
            "output_file": None,
            "type_names": [],
            "trim_prefix": "",
            "line_comment": False,
            "package_name": "",
            "add_comments": True,
        }

    def get_config(
        self,
        custom_config: Optional[Dict[str, Any]] = None,
        config_file: Optional[Union[str, Path]] = None,
    ) -> GeneratorConfig:
        """
        Get complete configuration.

        Args:
            custom_config: Custom configuration overrides
            config_file: Path to JSON configuration file

        Returns:
            Merged configuration
        """
        # Start with defaults
        base_config = dict(self._defaults)

        # Load from file if provided
        if config_file:
            base_config.update(self._load_config_file(config_file))

        # Apply custom overrides
        if custom_config:
            base_config.update(custom_config)

        config = self._dict_to_config(base_config)
        self._validate(config)
        return config

    def _load_config_file(self, config_path: Union[str, Path]) -> Dict[str, Any]:
        """Load configuration from JSON file."""
        path = Path(config_path)

        if not path.exists():
            raise ConfigError(f"Configuration file not found: {path}")

        if not path.suffix.lower() == ".json":
            raise ConfigError(f"Configuration file must be JSON: {path}")

        try:
            with open(path, "r", encoding="utf-8") as f:
                config = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid JSON in configuration file {path}: {e}") from e
        except OSError as e:
            raise ConfigError(f"Failed to load configuration file {path}: {e}") from e

        if not isinstance(config, dict):
            raise ConfigError(f"Configuration file must contain a JSON object: {path}")

        return config

    def _dict_to_config(self, config_dict: Dict[str, Any]) -> GeneratorConfig:
        """Convert dictionary to GeneratorConfig instance."""
        known_fields = {f.name for f in fields(GeneratorConfig)}

        config_args = {}
        custom_args = {}

        for key, value in config_dict.items():
            if key in known_fields:
                config_args[key] = value
            else:
                custom_args[key] = value

        # Unknown keys are kept for callers in the custom dict
        if custom_args:
            existing_custom = dict(config_args.get("custom") or {})
            existing_custom.update(custom_args)
            config_args["custom"] = existing_custom

        type_names = config_args.get("type_names")
        if isinstance(type_names, str):
            config_args["type_names"] = [
                name.strip() for name in type_names.split(",") if name.strip()
            ]

        return GeneratorConfig(**config_args)

    def _validate(self, config: GeneratorConfig):
        """Reject settings that cannot drive a run."""
        if not isinstance(config.type_names, list) or not all(
            isinstance(name, str) and name.isidentifier() for name in config.type_names
        ):
            raise ConfigError(f"Invalid type_names: {config.type_names!r}")

        if not isinstance(config.trim_prefix, str):
            raise ConfigError(f"Invalid trim_prefix: {config.trim_prefix!r}")

        if config.output_file is not None and not str(config.output_file).endswith(".py"):
            raise ConfigError(f"Output file must be a .py file: {config.output_file}")

    def save_config(self, config: GeneratorConfig, output_path: Union[str, Path]):
        """Save configuration to JSON file."""
        path = Path(output_path)

        config_dict = {
            "output_file": config.output_file,
            "type_names": config.type_names,
            "trim_prefix": config.trim_prefix,
            "line_comment": config.line_comment,
            "package_name": config.package_name,
            "add_comments": config.add_comments,
        }
        config_dict.update(config.custom)

        try:
            with open(path, "w", encoding="utf-8") as f:
                json.dump(config_dict, f, indent=2, ensure_ascii=False)
        except OSError as e:
            raise ConfigError(f"Failed to save configuration to {path}: {e}") from e


# Global configuration manager instance
_config_manager = None


def get_config_manager() -> ConfigManager:
    """Get the global configuration manager instance."""
    global _config_manager
    if _config_manager is None:
        _config_manager = ConfigManager()
    return _config_manager


def load_config(
    custom_config: Optional[Dict[str, Any]] = None,
    config_file: Optional[Union[str, Path]] = None,
) -> GeneratorConfig:
    """
    Convenience function to load configuration.

    Args:
        custom_config: Custom configuration overrides
        config_file: Path to JSON configuration file

    Returns:
        Merged configuration
    """
    return get_config_manager().get_config(custom_config, config_file)


# Example configuration file for reference
EXAMPLE_CONFIG = {
    "type_names": ["Person", "Follow"],
    "trim_prefix": "Graph",
    "line_comment": True,
    "output_file": "graph_mappers.py",
}
