"""
httpstream Configuration System.

Priority order (highest to lowest):
1. Command-line arguments
2. Environment variables
3. Configuration file (YAML)
4. Default values
"""

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml

logger = logging.getLogger(__name__)


# Valid log levels
VALID_LOG_LEVELS = {"debug", "info", "warning", "error"}

# Environment variable mappings
ENV_MAPPINGS = {
    # Network
    "HTTPSTREAM_WEBPROXY": ("network", "webproxy"),
    "HTTPSTREAM_USER_AGENT": ("network", "user_agent"),
    "HTTPSTREAM_COOKIES": ("network", "cookies"),
    "HTTPSTREAM_TIMEOUT": ("network", "timeout"),
    "HTTPSTREAM_MAX_REDIRECTS": ("network", "max_redirects"),
    # Logging
    "HTTPSTREAM_LOG_LEVEL": ("logging", "level"),
}

_WEBPROXY_RE = re.compile(r"^[A-Za-z0-9._-]+(?::(\d+))?$")


class ConfigError(Exception):
    """Configuration error."""

    pass


@dataclass
class NetworkConfig:
    """Outbound connection configuration."""

    webproxy: str = ""  # host:port, empty for direct connections
    user_agent: str = ""  # Empty uses the built-in User-Agent
    cookies: bool = True  # False disables the cookie store
    timeout: float = 10.0  # Seconds for connect and header read
    max_redirects: int = 5

    @property
    def proxy_address(self) -> Optional[tuple[str, int]]:
        """Web proxy as (host, port), port defaulting to 80."""
        if not self.webproxy:
            return None
        host, _, port = self.webproxy.partition(":")
        return host, int(port) if port else 80


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "info"


@dataclass
class Config:
    """Complete httpstream configuration."""

    network: NetworkConfig = field(default_factory=NetworkConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def validate_port(port: int) -> bool:
    """Validate port number."""
    return 1 <= port <= 65535


def validate_config(config: Config) -> None:
    """
    Validate configuration.

    Raises:
        ConfigError: If configuration is invalid
    """
    errors = []

    # Network
    if config.network.webproxy:
        match = _WEBPROXY_RE.match(config.network.webproxy)
        if not match:
            errors.append(f"Invalid webproxy: {config.network.webproxy}. Use host:port")
        elif match.group(1) and not validate_port(int(match.group(1))):
            errors.append(f"Invalid webproxy port: {match.group(1)}")

    if config.network.timeout <= 0:
        errors.append(f"Invalid timeout: {config.network.timeout}. Must be positive")

    if config.network.max_redirects < 0:
        errors.append(f"Invalid max_redirects: {config.network.max_redirects}")

    # Logging
    if config.logging.level.lower() not in VALID_LOG_LEVELS:
        errors.append(
            f"Invalid log level: {config.logging.level}. "
            f"Valid values: {sorted(VALID_LOG_LEVELS)}"
        )

    if errors:
        raise ConfigError("Configuration validation failed:\n  - " + "\n  - ".join(errors))


def load_yaml_config(path: Path) -> dict:
    """
    Load configuration from YAML file.

    Args:
        path: Path to YAML file

    Returns:
        Configuration dictionary

    Raises:
        ConfigError: If file cannot be read or parsed
    """
    if not path.exists():
        logger.debug(f"Config file not found: {path}")
        return {}

    try:
        with open(path) as f:
            data = yaml.safe_load(f)
            return data if data else {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Error parsing YAML config: {e}")
    except IOError as e:
        raise ConfigError(f"Error reading config file: {e}")


def _set_nested(d: dict, path: tuple, value: Any) -> None:
    """Set a nested dictionary value using a path tuple."""
    for key in path[:-1]:
        d = d.setdefault(key, {})
    d[path[-1]] = value


def load_env_config() -> dict:
    """
    Load configuration from environment variables.

    Returns:
        Configuration dictionary with values from environment
    """
    result: dict = {}

    for env_var, path in ENV_MAPPINGS.items():
        value: Any = os.environ.get(env_var)
        if value is not None:
            if env_var == "HTTPSTREAM_TIMEOUT":
                try:
                    value = float(value)
                except ValueError:
                    logger.warning(f"Invalid number for {env_var}: {value}")
                    continue
            elif env_var == "HTTPSTREAM_MAX_REDIRECTS":
                try:
                    value = int(value)
                except ValueError:
                    logger.warning(f"Invalid integer for {env_var}: {value}")
                    continue
            elif env_var == "HTTPSTREAM_COOKIES":
                value = value.lower() in ("true", "1", "yes", "on")

            _set_nested(result, path, value)

    return result


def _deep_merge(base: dict, override: dict) -> None:
    """Recursively merge override into base."""
    for key, value in override.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value


def merge_configs(*configs: dict) -> dict:
    """
    Deep merge multiple configuration dictionaries.
    Later configs override earlier ones.
    """
    result: dict = {}
    for config in configs:
        _deep_merge(result, config)
    return result


def dict_to_config(d: dict) -> Config:
    """Convert a dictionary to Config dataclass."""
    config = Config()

    # Network
    if "network" in d:
        n = d["network"] or {}
        config.network.webproxy = n.get("webproxy") or config.network.webproxy
        config.network.user_agent = n.get("user_agent") or config.network.user_agent
        config.network.cookies = bool(n.get("cookies", config.network.cookies))
        config.network.timeout = float(n.get("timeout", config.network.timeout))
        config.network.max_redirects = int(
            n.get("max_redirects", config.network.max_redirects)
        )

    # Logging
    if "logging" in d:
        config.logging.level = (d["logging"] or {}).get("level", config.logging.level)

    return config


def load_config(
    config_path: Optional[Path] = None,
    cli_args: Optional[dict] = None,
) -> Config:
    """
    Load configuration from all sources.

    Priority (highest to lowest):
    1. CLI arguments
    2. Environment variables
    3. Config file
    4. Defaults

    Args:
        config_path: Path to YAML config file
        cli_args: Dictionary of CLI arguments

    Returns:
        Merged Config object

    Raises:
        ConfigError: If configuration is invalid
    """
    configs = []

    if config_path:
        file_config = load_yaml_config(config_path)
        if file_config:
            configs.append(file_config)
            logger.debug(f"Loaded config from {config_path}")

    env_config = load_env_config()
    if env_config:
        configs.append(env_config)
        logger.debug("Loaded config from environment variables")

    if cli_args:
        configs.append(cli_args)
        logger.debug("Loaded config from CLI arguments")

    merged = merge_configs(*configs) if configs else {}

    # Convert to Config object (fills in defaults)
    try:
        config = dict_to_config(merged)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid configuration value: {e}")

    validate_config(config)

    return config
