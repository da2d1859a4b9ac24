"""Configuration management for cdp-cookies.

Supports multiple configuration sources with precedence:
CLI flags > Environment variables > Config file > Defaults

Usage:
    >>> config = Configuration()
    >>> config.load_from_file("~/.cdpcookiesrc")
    >>> config.load_from_env()
    >>> config.merge(chrome_port=9333)  # CLI overrides
    >>> print(config.chrome_port)
    9333
"""

import os
import json
import logging
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "~/.cdpcookiesrc"


class Configuration:
    """Configuration manager with layered precedence.

    Precedence order (highest to lowest):
    1. CLI arguments (via merge method)
    2. Environment variables (CDP_COOKIES_* prefix)
    3. Config file (~/.cdpcookiesrc JSON)
    4. Default values

    Attributes:
        chrome_host: Host of the debug HTTP endpoint (default: "localhost")
        chrome_port: Remote debugging port (default: None, must be supplied)
        timeout: Deadline in seconds for each blocking call, None blocks forever
        max_size: Maximum WebSocket message size in bytes (default: 2MB)
        log_level: Logging level (default: "WARNING")
        log_format: Log output format "text" or "json" (default: "text")
    """

    # Default configuration values
    DEFAULTS = {
        "chrome_host": "localhost",
        "chrome_port": None,
        "timeout": 30.0,
        "max_size": 2_097_152,  # 2MB
        "log_level": "WARNING",
        "log_format": "text",
    }

    # Converters applied to environment and config file values
    FIELD_TYPES = {
        "chrome_host": str,
        "chrome_port": int,
        "timeout": float,
        "max_size": int,
        "log_level": str,
        "log_format": str,
    }

    def __init__(self):
        """Initialize configuration with default values."""
        self.chrome_host: str = self.DEFAULTS["chrome_host"]
        self.chrome_port: Optional[int] = self.DEFAULTS["chrome_port"]
        self.timeout: Optional[float] = self.DEFAULTS["timeout"]
        self.max_size: int = self.DEFAULTS["max_size"]
        self.log_level: str = self.DEFAULTS["log_level"]
        self.log_format: str = self.DEFAULTS["log_format"]

    def load_from_file(self, file_path: str) -> None:
        """Load configuration from JSON file.

        Args:
            file_path: Path to config file (typically ~/.cdpcookiesrc)

        Note:
            Invalid JSON or missing file is ignored with a log message.
            Partial configs are merged with existing values. Values that
            cannot be converted to the field's type are ignored with warning log.
        """
        path = Path(file_path).expanduser()

        if not path.exists():
            logger.debug(f"Config file not found: {path}")
            return

        try:
            with open(path, "r") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            logger.warning(f"Invalid JSON in config file {path}: {e}")
            return
        except OSError as e:
            logger.warning(f"Error loading config file {path}: {e}")
            return

        if not isinstance(data, dict):
            logger.warning(f"Config file {path} must contain a JSON object")
            return

        converted = {}
        for key, value in data.items():
            if key not in self.FIELD_TYPES or value is None:
                continue
            try:
                converted[key] = self._convert(key, value)
            except (ValueError, TypeError) as e:
                logger.warning(f"Invalid value for {key} in {path}: {value!r} ({e})")

        self._merge_dict(converted)
        logger.info(f"Loaded configuration from {path}")

    def load_from_env(self) -> None:
        """Load configuration from environment variables.

        Environment variables use CDP_COOKIES_ prefix:
        - CDP_COOKIES_HOST
        - CDP_COOKIES_PORT
        - CDP_COOKIES_TIMEOUT
        - CDP_COOKIES_MAX_SIZE
        - CDP_COOKIES_LOG_LEVEL
        - CDP_COOKIES_LOG_FORMAT

        Invalid values are ignored with warning log.
        """
        env_mappings = {
            "CDP_COOKIES_HOST": "chrome_host",
            "CDP_COOKIES_PORT": "chrome_port",
            "CDP_COOKIES_TIMEOUT": "timeout",
            "CDP_COOKIES_MAX_SIZE": "max_size",
            "CDP_COOKIES_LOG_LEVEL": "log_level",
            "CDP_COOKIES_LOG_FORMAT": "log_format",
        }

        for env_var, attr_name in env_mappings.items():
            value = os.getenv(env_var)
            if value is not None:
                try:
                    converted_value = self._convert(attr_name, value)
                    setattr(self, attr_name, converted_value)
                    logger.debug(f"Loaded {attr_name}={converted_value} from {env_var}")
                except (ValueError, TypeError) as e:
                    logger.warning(f"Invalid value for {env_var}: {value} ({e})")

    def merge(self, **kwargs) -> None:
        """Merge CLI arguments into configuration (highest precedence).

        Args:
            **kwargs: Configuration key-value pairs to override

        Example:
            >>> config.merge(chrome_port=9333, timeout=15.0)
        """
        self._merge_dict(kwargs)

    def _convert(self, key: str, value):
        """Convert a raw env/file value to the type of field ``key``."""
        type_converter = self.FIELD_TYPES[key]
        if isinstance(value, bool) or isinstance(value, (dict, list)):
            raise TypeError(f"expected {type_converter.__name__}")
        if type_converter is str and not isinstance(value, str):
            raise TypeError("expected str")
        return type_converter(value)

    def _merge_dict(self, data: dict) -> None:
        """Merge dictionary into configuration, skipping unknown keys and None."""
        for key, value in data.items():
            if key in self.DEFAULTS and value is not None:
                setattr(self, key, value)
                logger.debug(f"Set {key}={value}")

    def to_dict(self) -> dict:
        """Export configuration as dictionary."""
        return {key: getattr(self, key) for key in self.DEFAULTS}

    def __repr__(self) -> str:
        return f"Configuration({self.to_dict()})"
