"""
Configuration Module for the Invoice Computation Engine.

This module provides centralized configuration management using YAML files.
Policy constants (reconciliation tolerance, GST split share, proforma number
prefixes) and export/logging settings are controlled through configuration.
"""

import yaml
from pathlib import Path
from typing import Any, Dict, Optional


DEFAULT_SETTINGS = Path(__file__).parent / "settings.yaml"


class ConfigurationManager:
    """
    Centralized configuration management for the invoice engine.

    The bundled settings.yaml is always loaded first. When a custom file
    is supplied, its keys are deep-merged over the bundled defaults so
    that partial override files are valid.

    Attributes:
        config_path (Path): Path to the override file, or the bundled file.
        config (Dict): Loaded configuration dictionary.

    Example:
        >>> config = ConfigurationManager()
        >>> config.get("engine.reconciliation.tolerance")
        0.5
    """

    _instance: Optional['ConfigurationManager'] = None
    _config: Dict[str, Any] = {}

    def __new__(cls, config_path: Optional[str] = None) -> 'ConfigurationManager':
        """
        Singleton pattern to ensure only one configuration instance exists.

        Args:
            config_path: Optional path to an override configuration file.

        Returns:
            ConfigurationManager instance.
        """
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self, config_path: Optional[str] = None) -> None:
        """
        Initialize the configuration manager.

        Args:
            config_path: Optional path to an override configuration file.
        """
        if self._initialized:
            return

        self.config_path = Path(config_path) if config_path else DEFAULT_SETTINGS
        self._load_config()
        self._initialized = True

    def _load_config(self) -> None:
        """
        Load the bundled defaults and merge the override file on top.

        Raises:
            FileNotFoundError: If a configuration file doesn't exist.
            yaml.YAMLError: If a configuration file is invalid.
        """
        from invoice_engine.utils.helpers import merge_dicts

        config = self._read_yaml(DEFAULT_SETTINGS)
        if self.config_path != DEFAULT_SETTINGS:
            config = merge_dicts(config, self._read_yaml(self.config_path))
        self._config = config

    @staticmethod
    def _read_yaml(path: Path) -> Dict[str, Any]:
        """Read one YAML mapping; an empty file yields an empty dict."""
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        with open(path, 'r', encoding='utf-8') as f:
            return yaml.safe_load(f) or {}

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a configuration value using dot notation.

        Args:
            key: Configuration key in dot notation (e.g., "export.default_currency").
            default: Default value if key doesn't exist.

        Returns:
            Configuration value or default.

        Example:
            >>> config.get("engine.gst.cgst_share")
            0.5
            >>> config.get("nonexistent.key", "default_value")
            "default_value"
        """
        value = self._config

        try:
            for k in key.split('.'):
                value = value[k]
            return value
        except (KeyError, TypeError):
            return default

    def get_all(self) -> Dict[str, Any]:
        """
        Get the complete configuration dictionary.

        Returns:
            Complete configuration dictionary.
        """
        return self._config.copy()

    def reload(self) -> None:
        """Reload configuration from file."""
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


__all__ = ['ConfigurationManager', 'get_config', 'DEFAULT_SETTINGS']
