"""Simple YAML configuration loader for CareVoice."""

import copy
import os
import yaml
from pathlib import Path
from typing import Dict, Any, Optional
import logging

logger = logging.getLogger(__name__)


# Closed language lists offered to the user (tag -> label).
INPUT_LANGUAGES: Dict[str, str] = {
    "en-US": "English (US)",
    "en-GB": "English (UK)",
    "bn-BD": "Bengali (Bangla)",
    "hi-IN": "Hindi",
    "es-ES": "Spanish",
}

OUTPUT_LANGUAGES: Dict[str, str] = {
    "en": "English",
    "bn": "Bengali",
    "hi": "Hindi",
    "es": "Spanish",
}

DEFAULT_CONFIG: Dict[str, Any] = {
    "server": {
        "host": "0.0.0.0",
        "port": 3000,
    },
    "openai": {
        "api_key": None,
        "model": "gpt-4o-mini",
        "base_url": "https://api.openai.com/v1/chat/completions",
        "max_tokens": 500,
        "temperature": 0.2,
    },
    "client": {
        "backend_url": "http://localhost:3000",
        "input_language": "en-US",
        "output_language": "bn",
    },
    "translation": {
        "debounce_seconds": 1.0,
    },
    "google_cloud": {
        "credentials_path": None,
        "sample_rate": 16000,
        "chunk_size": 1024,
    },
    "synthesis": {
        "rate": None,
        "volume": None,
    },
    "logging": {
        "level": "INFO",
        "file_path": "data/logs/carevoice.log",
        "console_output": True,
    },
}

# Environment variable -> dot path it overrides.
ENV_OVERRIDES: Dict[str, str] = {
    "OPENAI_API_KEY": "openai.api_key",
    "PORT": "server.port",
    "CAREVOICE_BACKEND_URL": "client.backend_url",
}


class CareVoiceConfig:
    """CareVoice configuration loader."""

    def __init__(self, config_path: Optional[str] = None, environ: Optional[Dict[str, str]] = None):
        """Initialize configuration loader.

        Args:
            config_path: Path to YAML config file. If None, built-in defaults are
                        used (environment overrides still apply).
            environ: Environment mapping used for overrides (defaults to os.environ)
        """
        self.config_file = Path(config_path) if config_path else None

        if self.config_file is not None and not self.config_file.exists():
            raise FileNotFoundError(f"Configuration file not found: {self.config_file}")

        self.config = copy.deepcopy(DEFAULT_CONFIG)
        if self.config_file is not None:
            logger.info(f"Loading configuration from: {self.config_file}")
            _merge(self.config, self._load_config())
            self._resolve_paths(self.config)
        else:
            logger.info("No configuration file given, using built-in defaults")

        self._apply_environment(os.environ if environ is None else environ)

    def _load_config(self) -> Dict[str, Any]:
        """Load and parse YAML configuration file."""
        try:
            with open(self.config_file, 'r', encoding='utf-8') as f:
                config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in configuration file: {e}")
        except OSError as e:
            raise ValueError(f"Failed to load configuration: {e}")

        if not config:
            raise ValueError("Configuration file is empty")
        if not isinstance(config, dict):
            raise ValueError("Configuration file must contain a mapping at the top level")

        logger.info("Configuration loaded successfully")
        return config

    def _resolve_paths(self, config: Dict[str, Any]) -> None:
        """Resolve relative paths in configuration relative to config file location."""
        config_dir = self.config_file.parent

        # Resolve Google credentials path
        creds_path = config['google_cloud'].get('credentials_path')
        if creds_path and not os.path.isabs(creds_path):
            config['google_cloud']['credentials_path'] = str(config_dir / creds_path)

        # Resolve log file path
        log_path = config['logging'].get('file_path')
        if log_path and not os.path.isabs(log_path):
            config['logging']['file_path'] = str(config_dir / log_path)

    def _apply_environment(self, environ: Dict[str, str]) -> None:
        """Apply environment variable overrides on top of the file values."""
        for variable, key_path in ENV_OVERRIDES.items():
            value = environ.get(variable)
            if not value:
                continue
            if key_path == "server.port":
                try:
                    value = int(value)
                except ValueError:
                    raise ValueError(f"{variable} must be an integer, got: {value!r}")
            self.set(key_path, value)
            logger.debug(f"Configuration key '{key_path}' taken from ${variable}")

    def get(self, key_path: str, default: Any = None) -> Any:
        """Get configuration value using dot notation (e.g., 'client.backend_url').

        Args:
            key_path: Dot-separated key path (e.g., 'openai.model')
            default: Default value if key not found or unset

        Returns:
            Configuration value or default
        """
        keys = key_path.split('.')
        value = self.config

        for key in keys:
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default

        return default if value is None else value

    def set(self, key_path: str, value: Any) -> None:
        """Set configuration value using dot notation.

        Args:
            key_path: Dot-separated path to config value (e.g., 'server.port')
            value: Value to set
        """
        keys = key_path.split('.')
        config_dict = self.config

        # Navigate to the parent dictionary
        for key in keys[:-1]:
            if key not in config_dict or not isinstance(config_dict[key], dict):
                config_dict[key] = {}
            config_dict = config_dict[key]

        # Set the final value
        config_dict[keys[-1]] = value
        if 'key' in keys[-1]:
            logger.debug(f"Configuration key '{key_path}' set")
        else:
            logger.debug(f"Configuration key '{key_path}' set to: {value}")

    def get_openai_api_key(self) -> Optional[str]:
        """Get OpenAI API key, or None when the server should echo input instead."""
        return self.get('openai.api_key')

    def get_google_credentials_path(self) -> Optional[str]:
        """Get Google credentials path if configured and present on disk."""
        creds_path = self.get('google_cloud.credentials_path')
        if not creds_path:
            return None

        creds_file = Path(creds_path)
        if not creds_file.exists():
            logger.warning(f"Google credentials file not found: {creds_path}")
            return None

        return str(creds_file.absolute())

    def get_input_language(self) -> str:
        return check_language(self.get('client.input_language'), INPUT_LANGUAGES, "input")

    def get_output_language(self) -> str:
        return check_language(self.get('client.output_language'), OUTPUT_LANGUAGES, "output")


def check_language(tag: str, allowed: Dict[str, str], kind: str) -> str:
    if tag not in allowed:
        raise ValueError(f"Unsupported {kind} language '{tag}', expected one of: {', '.join(allowed)}")
    return tag


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> None:
    """Recursively merge override into base in place."""
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            _merge(base[key], value)
        else:
            base[key] = value
