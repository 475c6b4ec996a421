"""
Configuration Loader

Handles loading and parsing configuration from an optional YAML file and
merging environment variable overrides.

Author: brick-sync Project
License: MIT
"""

import os
import yaml
from pathlib import Path
from typing import Optional, Dict, Any
from dotenv import load_dotenv
from pydantic import ValidationError

from .schema import Config


class ConfigLoader:
    """
    Configuration loader and manager.

    Loads configuration from YAML file, merges with environment variables
    and validates the structure.
    """

    def __init__(self, config_path: Optional[str] = None):
        """
        Initialize the configuration loader.

        Args:
            config_path: Path to the configuration file. If None, uses CONFIG_PATH
                or config.yaml in the working directory.
        """
        # Load environment variables from .env if present
        load_dotenv()

        self.config_path = config_path or os.getenv("CONFIG_PATH", "config.yaml")
        self._config: Optional[Config] = None

    def load(self) -> Config:
        """
        Load and validate configuration.

        Returns:
            Validated Config object

        Raises:
            ValueError: If YAML parsing or configuration validation fails
        """
        config_data = self._load_yaml()
        config_data = self._merge_env_vars(config_data)

        try:
            self._config = Config(**config_data)
        except ValidationError as e:
            raise ValueError(f"Invalid configuration: {e}") from e

        return self._config

    def _load_yaml(self) -> Dict[str, Any]:
        """
        Load YAML configuration file.

        A missing file is not an error; every setting has a default.

        Returns:
            Dictionary with configuration data
        """
        config_file = Path(self.config_path)

        if not config_file.exists():
            return {}

        try:
            with open(config_file, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Failed to parse YAML config: {e}")

        if not isinstance(data, dict):
            raise ValueError(f"Config file must contain a mapping: {config_file}")
        return data

    def _merge_env_vars(self, config_data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Merge environment variables into configuration.

        Environment variables override config file values.
        Naming convention: BRICK_SYNC_<SETTING>

        Args:
            config_data: Configuration dictionary from file

        Returns:
            Merged configuration dictionary
        """
        # Sync settings
        if os.getenv("BRICK_SYNC_SOURCE"):
            config_data.setdefault("sync", {})["source_root"] = os.getenv("BRICK_SYNC_SOURCE")
        if os.getenv("BRICK_SYNC_DESTINATION"):
            config_data.setdefault("sync", {})["destination_root"] = os.getenv("BRICK_SYNC_DESTINATION")
        if os.getenv("BRICK_SYNC_EXTENSION"):
            config_data.setdefault("sync", {})["extension"] = os.getenv("BRICK_SYNC_EXTENSION")
        if os.getenv("BRICK_SYNC_POLL_INTERVAL"):
            interval = float(os.getenv("BRICK_SYNC_POLL_INTERVAL"))
            config_data.setdefault("sync", {})["poll_source_interval"] = interval
            config_data["sync"]["poll_destination_interval"] = interval
        if os.getenv("BRICK_SYNC_PASS_INTERVAL"):
            config_data.setdefault("sync", {})["pass_interval"] = float(os.getenv("BRICK_SYNC_PASS_INTERVAL"))
        if os.getenv("BRICK_SYNC_COLLISION_STRATEGY"):
            config_data.setdefault("sync", {})["collision_strategy"] = os.getenv("BRICK_SYNC_COLLISION_STRATEGY").lower()

        # Logging
        if os.getenv("BRICK_SYNC_LOG_LEVEL"):
            config_data.setdefault("logging", {})["log_level"] = os.getenv("BRICK_SYNC_LOG_LEVEL").upper()
        if os.getenv("BRICK_SYNC_LOG_FILE"):
            config_data.setdefault("logging", {})["log_to_file"] = True
            config_data["logging"]["log_file_path"] = os.getenv("BRICK_SYNC_LOG_FILE")
        if os.getenv("BRICK_SYNC_JSON_LOGS"):
            config_data.setdefault("logging", {})["json_format"] = os.getenv("BRICK_SYNC_JSON_LOGS").lower() == "true"

        return config_data

    def save(self, config: Config, path: Optional[str] = None) -> None:
        """
        Save configuration to YAML file.

        Args:
            config: Config object to save
            path: Path to save to (uses default if None)
        """
        save_path = Path(path or self.config_path)
        save_path.parent.mkdir(parents=True, exist_ok=True)

        config_dict = config.model_dump(mode="json")

        with open(save_path, 'w', encoding='utf-8') as f:
            yaml.safe_dump(config_dict, f, default_flow_style=False, sort_keys=False)

    def reload(self) -> Config:
        """
        Reload configuration from file.

        Returns:
            Reloaded Config object
        """
        return self.load()

    @property
    def config(self) -> Optional[Config]:
        """Get the current configuration object."""
        return self._config


def load_config(config_path: Optional[str] = None) -> Config:
    """
    Convenience function to load configuration.

    Args:
        config_path: Optional path to config file

    Returns:
        Loaded and validated Config object
    """
    loader = ConfigLoader(config_path)
    return loader.load()
