"""
Configuration management for the parameter processor.

This module provides configuration management with support for:
- Environment variables
- Configuration files (YAML/JSON)
- Configuration validation
- Hot-reloading
"""

import os
import json
import logging
import yaml
import threading
from pathlib import Path
from typing import Any, Dict, Optional, Union
from dataclasses import dataclass
from watchdog.observers import Observer
from watchdog.events import FileSystemEventHandler
from pydantic import BaseModel, ValidationError, Field

logger = logging.getLogger(__name__)


def _parse_bool(value: str) -> bool:
    return value.lower() in ['true', '1', 'yes']


@dataclass
class ProcessorConfig:
    """Processor behaviour."""
    cast_integer_to_string: bool = True


@dataclass
class LoggingConfig:
    """Logging configuration."""
    level: str = "INFO"
    structured: bool = True
    log_file: Optional[str] = None


class ConfigurationModel(BaseModel):
    """Pydantic model for configuration validation."""
    processor: ProcessorConfig = Field(default_factory=ProcessorConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {"arbitrary_types_allowed": True}


class ConfigFileHandler(FileSystemEventHandler):
    """File system event handler for configuration hot-reloading."""

    def __init__(self, config_manager: 'ConfigManager'):
        self.config_manager = config_manager
        super().__init__()

    def on_modified(self, event):
        if not event.is_directory and event.src_path == str(self.config_manager.config_file_path):
            logger.info(f"Configuration file {event.src_path} modified, reloading...")
            self.config_manager.reload_configuration()


class ConfigManager:
    """
    Configuration manager supporting environment variables,
    configuration files, validation, and hot-reloading.
    """

    ENV_MAPPINGS = {
        'PARAM_PROCESSOR_CAST_INTEGER_TO_STRING': ('processor', 'cast_integer_to_string', _parse_bool),
        'PARAM_PROCESSOR_LOG_LEVEL': ('logging', 'level', str),
        'PARAM_PROCESSOR_LOG_STRUCTURED': ('logging', 'structured', _parse_bool),
        'PARAM_PROCESSOR_LOG_FILE': ('logging', 'log_file', str),
    }

    def __init__(self, config_file: Optional[Union[str, Path]] = None, enable_hot_reload: bool = True):
        """
        Initialize the configuration manager.

        Args:
            config_file: Path to configuration file (YAML or JSON)
            enable_hot_reload: Whether to enable hot-reloading of configuration files
        """
        self.config_file_path = Path(config_file) if config_file else None
        self.enable_hot_reload = enable_hot_reload
        self._config_lock = threading.RLock()
        self._observer = None
        self._config: Optional[ConfigurationModel] = None

        self.load_configuration()

        if self.enable_hot_reload and self.config_file_path and self.config_file_path.exists():
            self._setup_hot_reload()

    def _setup_hot_reload(self):
        """Set up file system monitoring for hot-reloading."""
        if self._observer:
            self._observer.stop()
            self._observer.join()

        self._observer = Observer()
        event_handler = ConfigFileHandler(self)
        self._observer.schedule(event_handler, str(self.config_file_path.parent), recursive=False)
        self._observer.start()

    def load_configuration(self):
        """Load configuration from environment variables and config file."""
        with self._config_lock:
            config_dict = {}

            if self.config_file_path and self.config_file_path.exists():
                config_dict = self._load_config_file()

            # Environment variables override the file
            config_dict = self._load_environment_variables(config_dict)

            try:
                self._config = ConfigurationModel(**config_dict)
            except ValidationError as e:
                raise ValueError(f"Configuration validation failed: {e}")

    def _load_config_file(self) -> Dict[str, Any]:
        """Load configuration from YAML or JSON file."""
        suffix = self.config_file_path.suffix.lower()
        if suffix not in ['.yml', '.yaml', '.json']:
            raise ValueError(f"Unsupported configuration file format: {self.config_file_path.suffix}")
        try:
            with open(self.config_file_path, 'r') as f:
                if suffix == '.json':
                    return json.load(f)
                return yaml.safe_load(f) or {}
        except (OSError, ValueError, yaml.YAMLError) as e:
            raise ValueError(f"Failed to load configuration file {self.config_file_path}: {e}")

    def _load_environment_variables(self, config_dict: Dict[str, Any]) -> Dict[str, Any]:
        """Load configuration from environment variables."""
        for env_var, (section, key, type_converter) in self.ENV_MAPPINGS.items():
            env_value = os.getenv(env_var)
            if env_value is not None:
                try:
                    if section not in config_dict:
                        config_dict[section] = {}
                    config_dict[section][key] = type_converter(env_value)
                except (ValueError, TypeError) as e:
                    raise ValueError(f"Invalid value for environment variable {env_var}: {env_value} ({e})")

        return config_dict

    def reload_configuration(self):
        """Reload configuration from file and environment variables."""
        try:
            self.load_configuration()
            logger.info("Configuration reloaded successfully")
        except ValueError as e:
            logger.error(f"Failed to reload configuration: {e}")

    @property
    def config(self) -> ConfigurationModel:
        """Get the current configuration."""
        with self._config_lock:
            if self._config is None:
                raise RuntimeError("Configuration not loaded")
            return self._config

    def stop(self):
        """Stop the configuration manager and clean up resources."""
        if self._observer:
            self._observer.stop()
            self._observer.join()
            self._observer = None


_config_manager: Optional[ConfigManager] = None


def get_config_manager() -> ConfigManager:
    """Get the process-wide configuration manager instance."""
    global _config_manager
    if _config_manager is None:
        config_paths = [
            Path("param_processor.yml"),
            Path("param_processor.yaml"),
            Path("param_processor.json"),
        ]

        config_file = None
        for path in config_paths:
            if path.exists():
                config_file = path
                break

        _config_manager = ConfigManager(config_file)

    return _config_manager


def set_config_manager(config_manager: Optional[ConfigManager]):
    """Set the process-wide configuration manager instance."""
    global _config_manager
    if _config_manager and _config_manager is not config_manager:
        _config_manager.stop()
    _config_manager = config_manager
