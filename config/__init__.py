"""
Configuration Module for the Document Intake Pipeline.

This module provides centralized configuration management using YAML files.
Defaults live in settings.yaml next to this module; an optional override
file is deep-merged on top of them.
"""

from pathlib import Path
from typing import Any, Dict, Optional

import yaml


DEFAULT_SETTINGS = Path(__file__).parent / "settings.yaml"


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _merge(result[key], value)
        else:
            result[key] = value
    return result


class ConfigurationManager:
    """
    Centralized configuration for the ingestion pipeline.

    Attributes:
        config_path (Optional[Path]): Override file merged over the defaults.

    Example:
        >>> config = ConfigurationManager()
        >>> config.get("jobs.pool_size")
        1
        >>> config.get("ocr.language")
        'pol+eng'
    """

    _instance: Optional['ConfigurationManager'] = None
    _config: Dict[str, Any] = {}

    def __new__(cls, config_path: Optional[str] = None) -> 'ConfigurationManager':
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self, config_path: Optional[str] = None) -> None:
        """
        Initialize the configuration manager.

        Only the first construction loads anything; later calls return the
        same instance untouched. Call reset() to load a different file.

        Args:
            config_path: Optional YAML file overriding settings.yaml.
        """
        if self._initialized:
            return

        self.config_path = Path(config_path) if config_path else None
        self._load_config()
        self._initialized = True

    def _load_config(self) -> None:
        """
        Load the defaults and merge the override file over them.

        Raises:
            FileNotFoundError: If a configuration file doesn't exist.
            yaml.YAMLError: If a configuration file is invalid.
        """
        config = self._read_yaml(DEFAULT_SETTINGS)

        if self.config_path is not None:
            config = _merge(config, self._read_yaml(self.config_path))

        self._config = config

    @staticmethod
    def _read_yaml(path: Path) -> Dict[str, Any]:
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        with open(path, 'r', encoding='utf-8') as f:
            return yaml.safe_load(f) or {}

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a configuration value using dot notation.

        Args:
            key: Configuration key in dot notation (e.g., "pdf.dpi").
            default: Default value if key doesn't exist.

        Returns:
            Configuration value or default.

        Example:
            >>> config.get("pdf.dpi")
            300
            >>> config.get("nonexistent.key", "default_value")
            'default_value'
        """
        value = self._config

        try:
            for k in key.split('.'):
                value = value[k]
            return value
        except (KeyError, TypeError):
            return default

    def get_all(self) -> Dict[str, Any]:
        """Return a copy of the complete configuration dictionary."""
        return self._config.copy()

    def reload(self) -> None:
        """Reload configuration from disk."""
        self._load_config()

    @classmethod
    def reset(cls) -> None:
        """
        Reset the singleton instance.
        Useful for testing or configuration changes.
        """
        cls._instance = None


def get_config(key: str, default: Any = None) -> Any:
    """
    Convenience function to get configuration values.

    Args:
        key: Configuration key in dot notation.
        default: Default value if key doesn't exist.

    Returns:
        Configuration value or default.
    """
    return ConfigurationManager().get(key, default)


__all__ = ['ConfigurationManager', 'get_config']
