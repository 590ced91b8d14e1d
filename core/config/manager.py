"""
Configuration Management
Loading, inheritance and validation of tag detector configuration
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import jsonschema
import yaml

from core.config.families import TAG_FAMILIES, normalize_family
from core.exceptions import ConfigError
from utils.logger_config import get_logger

logger = get_logger(__name__, debug=os.getenv("DEBUG") == "1")


@dataclass
class ConfigValidationResult:
    """Result of configuration validation"""

    is_valid: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def add_error(self, error: str) -> None:
        """Add validation error"""
        self.errors.append(error)
        self.is_valid = False

    def add_warning(self, warning: str) -> None:
        """Add validation warning"""
        self.warnings.append(warning)


class ConfigSchema:
    """Configuration schema definitions"""

    BASE_SCHEMA = {
        "type": "object",
        "properties": {
            "name": {"type": "string"},
            "version": {"type": "string"},
            "detector": {
                "type": "object",
                "properties": {
                    "family": {"type": "string"},
                    "tag_size": {"type": "number", "exclusiveMinimum": 0},
                    "nthreads": {"type": "integer", "minimum": 1},
                    "quad_decimate": {"type": "number", "minimum": 1.0},
                    "refine_edges": {"type": "integer", "minimum": 0, "maximum": 1},
                    "timing": {"type": "boolean"},
                },
            },
            "camera": {
                "type": "object",
                "properties": {
                    "width": {"type": "integer", "minimum": 1},
                    "height": {"type": "integer", "minimum": 1},
                    "fx": {"type": "number", "exclusiveMinimum": 0},
                    "fy": {"type": "number", "exclusiveMinimum": 0},
                    "px": {"type": ["number", "null"]},
                    "py": {"type": ["number", "null"]},
                },
            },
            "memory": {
                "type": "object",
                "properties": {"capacity": {"type": "integer", "minimum": 1}},
            },
            "frames": {
                "type": "object",
                "properties": {
                    "source_frame": {"type": "string", "minLength": 1},
                    "target_frame": {"type": "string", "minLength": 1},
                    "marker_frame": {"type": "string", "minLength": 1},
                },
            },
            "ros2": {
                "type": "object",
                "properties": {
                    "node_name": {"type": "string", "minLength": 1},
                    "image_topic": {"type": "string", "minLength": 1},
                    "location_topic": {"type": "string", "minLength": 1},
                    "marker_topic": {"type": "string", "minLength": 1},
                    "reset_service": {"type": "string", "minLength": 1},
                    "queue_depth": {"type": "integer", "minimum": 1},
                },
            },
            "display": {
                "type": "object",
                "properties": {
                    "draw": {"type": "boolean"},
                    "window_name": {"type": "string"},
                },
            },
            "logging": {
                "type": "object",
                "properties": {
                    "level": {
                        "type": "string",
                        "enum": ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
                    },
                    "file": {"type": ["string", "null"]},
                },
            },
        },
    }


class ConfigManager:
    """
    Configuration manager with validation and inheritance support
    """

    def __init__(self, configs_dir: Optional[Path] = None):
        """
        Initialize configuration manager

        Args:
            configs_dir: Base directory for configuration files
        """
        if configs_dir is None:
            configs_dir = Path(__file__).parent.parent.parent / "configs"

        self.configs_dir = Path(configs_dir)
        self._loaded_configs: Dict[str, Dict[str, Any]] = {}

        logger.debug(f"ConfigManager initialized with configs directory: {self.configs_dir}")

    def load_config(
        self, config_name: str = "default", validate: bool = True
    ) -> Dict[str, Any]:
        """
        Load configuration by name or path, with validation and caching

        Args:
            config_name: Name of config file (without .yaml extension) or path
            validate: Whether to validate the configuration

        Returns:
            Configuration dictionary

        Raises:
            FileNotFoundError: If config file not found
            ConfigError: If configuration is invalid
        """
        cache_key = f"{config_name}:{validate}"
        if cache_key in self._loaded_configs:
            logger.debug(f"Loading config from cache: {config_name}")
            return self._deep_merge({}, self._loaded_configs[cache_key])

        config_path = self._find_config_file(config_name)
        if not config_path.exists():
            raise FileNotFoundError(
                f"Configuration file not found: {config_name} (searched: {config_path})"
            )

        config = self._load_config_file(config_path)

        if validate:
            validation_result = self.validate_config(config)
            if not validation_result.is_valid:
                error_msg = f"Configuration validation failed for '{config_name}': {validation_result.errors}"
                logger.error(error_msg)
                raise ConfigError(error_msg)

            if validation_result.warnings:
                logger.warning(
                    f"Configuration warnings for '{config_name}': {validation_result.warnings}"
                )

        self._loaded_configs[cache_key] = self._deep_merge({}, config)

        logger.info(f"Configuration loaded successfully: {config_name}")
        return config

    def _find_config_file(self, config_name: Union[str, Path]) -> Path:
        """
        Find configuration file with fallback paths

        Args:
            config_name: Configuration name or path to a YAML file

        Returns:
            Path to configuration file
        """
        direct = Path(config_name)
        if direct.suffix in (".yaml", ".yml") and direct.exists():
            return direct

        search_paths = [
            self.configs_dir / f"{config_name}.yaml",
            self.configs_dir / f"{config_name}.yml",
        ]

        for path in search_paths:
            if path.exists():
                return path

        return self.configs_dir / f"{config_name}.yaml"

    def _load_config_file(self, config_path: Path) -> Dict[str, Any]:
        """
        Load a single configuration file with inheritance support

        Args:
            config_path: Path to configuration file

        Returns:
            Configuration dictionary
        """
        logger.debug(f"Loading config file: {config_path}")

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in config file {config_path}: {e}")
        except OSError as e:
            raise ConfigError(f"Failed to read config file {config_path}: {e}")

        if not isinstance(config, dict):
            raise ConfigError(
                f"Configuration file {config_path} must contain a dictionary at root level"
            )

        if "extends" in config:
            extends_name = config.pop("extends")
            logger.debug(f"Config {config_path.name} extends: {extends_name}")
            base_config = self.load_config(extends_name, validate=False)
            config = self._deep_merge(base_config, config)

        return config

    def _deep_merge(
        self, base: Dict[str, Any], override: Dict[str, Any]
    ) -> Dict[str, Any]:
        """
        Deep merge two dictionaries

        Args:
            base: Base configuration
            override: Override configuration

        Returns:
            Merged configuration
        """
        result = base.copy()

        for key, value in override.items():
            if (
                key in result
                and isinstance(result[key], dict)
                and isinstance(value, dict)
            ):
                result[key] = self._deep_merge(result[key], value)
            elif isinstance(value, dict):
                result[key] = self._deep_merge({}, value)
            else:
                result[key] = value

        return result

    def merge_overrides(
        self, config: Dict[str, Any], overrides: Dict[str, Any]
    ) -> Dict[str, Any]:
        """Apply overrides (e.g. from the command line) and re-validate"""
        merged = self._deep_merge(config, overrides)
        result = self.validate_config(merged)
        if not result.is_valid:
            raise ConfigError(f"Invalid configuration overrides: {result.errors}")
        return merged

    def validate_config(self, config: Dict[str, Any]) -> ConfigValidationResult:
        """
        Validate configuration against schema and custom rules

        Args:
            config: Configuration to validate

        Returns:
            Validation result
        """
        result = ConfigValidationResult(is_valid=True)

        try:
            jsonschema.validate(instance=config, schema=ConfigSchema.BASE_SCHEMA)
        except jsonschema.ValidationError as e:
            result.add_error(f"Schema validation failed: {e.message}")
            result.add_error(
                f"Failed at path: {' -> '.join(str(p) for p in e.absolute_path)}"
            )

        self._validate_custom_rules(config, result)

        return result

    def _validate_custom_rules(
        self, config: Dict[str, Any], result: ConfigValidationResult
    ) -> None:
        """
        Apply custom validation rules

        Args:
            config: Configuration to validate
            result: Validation result to update
        """
        detector_config = config.get("detector", {})
        if isinstance(detector_config, dict) and "family" in detector_config:
            try:
                normalize_family(detector_config["family"])
            except ConfigError:
                result.add_error(
                    f"Unsupported tag family '{detector_config['family']}', "
                    f"expected one of {list(TAG_FAMILIES)}"
                )

        memory_config = config.get("memory", {})
        if isinstance(memory_config, dict) and "capacity" in memory_config:
            capacity = memory_config["capacity"]
            if isinstance(capacity, bool) or not isinstance(capacity, int):
                result.add_error(
                    f"Memory capacity must be a whole number, got {capacity!r}"
                )

        camera_config = config.get("camera", {})
        if isinstance(camera_config, dict):
            width = camera_config.get("width")
            px = camera_config.get("px")
            if isinstance(width, int) and isinstance(px, (int, float)) and not (0 <= px <= width):
                result.add_warning(f"Principal point x={px} lies outside image width {width}")

        frames_config = config.get("frames", {})
        if isinstance(frames_config, dict):
            source = frames_config.get("source_frame")
            target = frames_config.get("target_frame")
            if source and source == target:
                result.add_warning(
                    f"Source and target frame are both '{source}', transforms are identity"
                )

    def save_config(
        self, config: Dict[str, Any], config_path: Union[str, Path]
    ) -> Path:
        """
        Save configuration to file

        Args:
            config: Configuration to save
            config_path: Path to save configuration

        Returns:
            Path to saved configuration file
        """
        config_path = Path(config_path)
        config_path.parent.mkdir(parents=True, exist_ok=True)

        with open(config_path, "w", encoding="utf-8") as f:
            yaml.dump(config, f, default_flow_style=False, sort_keys=False)

        logger.info(f"Configuration saved to: {config_path}")
        return config_path

    def get_available_configs(self) -> List[str]:
        """
        Get list of available configuration files

        Returns:
            List of configuration names
        """
        config_names = set()

        if self.configs_dir.exists():
            for yaml_file in self.configs_dir.rglob("*.yaml"):
                if yaml_file.is_file():
                    config_names.add(yaml_file.stem)

        return sorted(config_names)


# Global config manager instance
config_manager = ConfigManager()


def load_config(config_name: str = "default", validate: bool = True) -> Dict[str, Any]:
    """
    Convenience function to load configuration

    Args:
        config_name: Configuration name or path
        validate: Whether to validate configuration

    Returns:
        Configuration dictionary
    """
    return config_manager.load_config(config_name, validate)
