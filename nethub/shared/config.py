"""
Configuration Management

Provides configuration classes and environment-based configuration loading.
"""

import json
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .constants import (
    DEFAULT_CHAT_HOST,
    DEFAULT_CHAT_PORT,
    DEFAULT_CONNECT_TIMEOUT,
    DEFAULT_ENCODING,
    DEFAULT_PROBE_HOST,
    DEFAULT_PROBE_PORT,
    DEFAULT_PROBE_TIMEOUT,
    PROBE_BUFFER_SIZE,
    DEFAULT_LINK_TIMEOUT,
    LINK_CHECKER_USER_AGENT,
    DEFAULT_WORKER_THREADS,
)
from .exceptions import ConfigurationError


def _validate_endpoint(host: Any, port: Any, errors: List[str]) -> None:
    if not isinstance(host, str) or not host.strip():
        errors.append("host must be a non-empty string")

    if not isinstance(port, int) or not (1 <= port <= 65535):
        errors.append("port must be an integer between 1 and 65535")


def _validate_timeout(name: str, value: Any, errors: List[str]) -> None:
    if not isinstance(value, (int, float)) or value <= 0:
        errors.append(f"{name} must be a positive number")


@dataclass
class ChatServiceConfig:
    """TCP chat endpoint settings."""

    host: str = DEFAULT_CHAT_HOST
    port: int = DEFAULT_CHAT_PORT
    connect_timeout: float = DEFAULT_CONNECT_TIMEOUT
    encoding: str = DEFAULT_ENCODING

    def validate(self) -> None:
        """Validate configuration values."""
        errors: List[str] = []
        _validate_endpoint(self.host, self.port, errors)
        _validate_timeout("connect_timeout", self.connect_timeout, errors)

        if not isinstance(self.encoding, str) or not self.encoding:
            errors.append("encoding must be a non-empty string")

        if errors:
            raise ConfigurationError(f"Chat configuration validation failed: {'; '.join(errors)}")

    @classmethod
    def from_env(cls) -> "ChatServiceConfig":
        """Load configuration from environment variables."""
        try:
            config = cls(
                host=os.getenv("NETHUB_CHAT_HOST", cls.host),
                port=int(os.getenv("NETHUB_CHAT_PORT", str(cls.port))),
                connect_timeout=float(
                    os.getenv("NETHUB_CHAT_CONNECT_TIMEOUT", str(cls.connect_timeout))
                ),
            )
            config.validate()
            return config
        except ValueError as e:
            raise ConfigurationError(f"Failed to load chat configuration from environment: {e}")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ChatServiceConfig":
        """Create configuration from dictionary."""
        return _from_dict(cls, data, "chat")


@dataclass
class ProbeServiceConfig:
    """UDP health probe endpoint settings."""

    host: str = DEFAULT_PROBE_HOST
    port: int = DEFAULT_PROBE_PORT
    timeout: float = DEFAULT_PROBE_TIMEOUT
    buffer_size: int = PROBE_BUFFER_SIZE

    def validate(self) -> None:
        """Validate configuration values."""
        errors: List[str] = []
        _validate_endpoint(self.host, self.port, errors)
        _validate_timeout("timeout", self.timeout, errors)

        if not isinstance(self.buffer_size, int) or self.buffer_size < 1:
            errors.append("buffer_size must be a positive integer")

        if errors:
            raise ConfigurationError(f"Probe configuration validation failed: {'; '.join(errors)}")

    @classmethod
    def from_env(cls) -> "ProbeServiceConfig":
        """Load configuration from environment variables."""
        try:
            config = cls(
                host=os.getenv("NETHUB_PROBE_HOST", cls.host),
                port=int(os.getenv("NETHUB_PROBE_PORT", str(cls.port))),
                timeout=float(os.getenv("NETHUB_PROBE_TIMEOUT", str(cls.timeout))),
            )
            config.validate()
            return config
        except ValueError as e:
            raise ConfigurationError(f"Failed to load probe configuration from environment: {e}")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProbeServiceConfig":
        """Create configuration from dictionary."""
        return _from_dict(cls, data, "probe")


@dataclass
class LinkCheckConfig:
    """HTTP link validation settings."""

    connect_timeout: float = DEFAULT_LINK_TIMEOUT
    read_timeout: float = DEFAULT_LINK_TIMEOUT
    user_agent: str = LINK_CHECKER_USER_AGENT
    follow_redirects: bool = True
    # Honour HTTP_PROXY/HTTPS_PROXY and friends from the environment
    trust_env: bool = False

    def validate(self) -> None:
        """Validate configuration values."""
        errors: List[str] = []
        _validate_timeout("connect_timeout", self.connect_timeout, errors)
        _validate_timeout("read_timeout", self.read_timeout, errors)

        if not isinstance(self.user_agent, str) or not self.user_agent.strip():
            errors.append("user_agent must be a non-empty string")

        if errors:
            raise ConfigurationError(f"Link check configuration validation failed: {'; '.join(errors)}")

    @classmethod
    def from_env(cls) -> "LinkCheckConfig":
        """Load configuration from environment variables."""
        try:
            config = cls(
                connect_timeout=float(
                    os.getenv("NETHUB_LINK_CONNECT_TIMEOUT", str(cls.connect_timeout))
                ),
                read_timeout=float(
                    os.getenv("NETHUB_LINK_READ_TIMEOUT", str(cls.read_timeout))
                ),
                user_agent=os.getenv("NETHUB_LINK_USER_AGENT", cls.user_agent),
            )
            config.validate()
            return config
        except ValueError as e:
            raise ConfigurationError(f"Failed to load link check configuration from environment: {e}")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LinkCheckConfig":
        """Create configuration from dictionary."""
        return _from_dict(cls, data, "link check")


@dataclass
class ClientConfig:
    """Top-level client configuration aggregating the three services."""

    chat: ChatServiceConfig = field(default_factory=ChatServiceConfig)
    probe: ProbeServiceConfig = field(default_factory=ProbeServiceConfig)
    link: LinkCheckConfig = field(default_factory=LinkCheckConfig)
    worker_threads: int = DEFAULT_WORKER_THREADS
    log_level: str = "INFO"

    def validate(self) -> None:
        """Validate configuration values, including the nested sections."""
        self.chat.validate()
        self.probe.validate()
        self.link.validate()

        errors: List[str] = []
        if not isinstance(self.worker_threads, int) or self.worker_threads < 1:
            errors.append("worker_threads must be a positive integer")

        if self.log_level.upper() not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            errors.append("log_level must be one of DEBUG, INFO, WARNING, ERROR, CRITICAL")

        if errors:
            raise ConfigurationError(f"Client configuration validation failed: {'; '.join(errors)}")

    @classmethod
    def from_env(cls) -> "ClientConfig":
        """Load configuration from environment variables."""
        try:
            config = cls(
                chat=ChatServiceConfig.from_env(),
                probe=ProbeServiceConfig.from_env(),
                link=LinkCheckConfig.from_env(),
                worker_threads=int(os.getenv("NETHUB_WORKER_THREADS", str(DEFAULT_WORKER_THREADS))),
                log_level=os.getenv("NETHUB_LOG_LEVEL", "INFO"),
            )
            config.validate()
            return config
        except ValueError as e:
            raise ConfigurationError(f"Failed to load client configuration from environment: {e}")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ClientConfig":
        """Create configuration from a dictionary with optional nested sections."""
        try:
            config = cls(
                chat=ChatServiceConfig.from_dict(data.get("chat", {})),
                probe=ProbeServiceConfig.from_dict(data.get("probe", {})),
                link=LinkCheckConfig.from_dict(data.get("link", {})),
                worker_threads=data.get("worker_threads", DEFAULT_WORKER_THREADS),
                log_level=data.get("log_level", "INFO"),
            )
            config.validate()
            return config
        except (TypeError, AttributeError) as e:
            raise ConfigurationError(f"Failed to create client configuration from dictionary: {e}")


def _from_dict(cls, data: Dict[str, Any], label: str):
    try:
        # Filter only known fields
        field_names = {f.name for f in fields(cls)}
        filtered_data = {k: v for k, v in data.items() if k in field_names}
        config = cls(**filtered_data)
        config.validate()
        return config
    except (TypeError, ValueError, AttributeError) as e:
        raise ConfigurationError(f"Failed to create {label} configuration from dictionary: {e}")


class ConfigurationLoader:
    """Configuration loader with support for multiple sources."""

    DEFAULT_CONFIG_PATHS = [
        "nethub.json",
        ".nethub.json",
        "nethub.yaml",
        ".nethub.yaml",
        "nethub.yml",
        ".nethub.yml",
    ]

    @staticmethod
    def load_from_file(config_path: Optional[Union[str, Path]] = None) -> Dict[str, Any]:
        """
        Load configuration from a JSON or YAML file.

        Args:
            config_path: Path to configuration file. If None, looks for default locations.

        Returns:
            Dictionary containing configuration values.

        Raises:
            ConfigurationError: If file cannot be loaded or parsed.
        """
        if config_path is None:
            for path in ConfigurationLoader.DEFAULT_CONFIG_PATHS:
                if os.path.exists(path):
                    config_path = path
                    break

        if config_path is None:
            return {}

        config_path = Path(config_path)

        if not config_path.exists():
            raise ConfigurationError(f"Configuration file not found: {config_path}")

        if config_path.suffix not in ('.json', '.yml', '.yaml'):
            raise ConfigurationError(f"Unsupported configuration file format: {config_path.suffix}")

        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                if config_path.suffix == '.json':
                    return json.load(f)
                try:
                    import yaml
                except ImportError:
                    raise ConfigurationError(
                        "PyYAML is required for YAML configuration files. Install with: pip install PyYAML"
                    )
                return yaml.safe_load(f) or {}
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Invalid JSON in configuration file {config_path}: {e}")
        except ConfigurationError:
            raise
        except Exception as e:
            raise ConfigurationError(f"Failed to load configuration from {config_path}: {e}")

    @staticmethod
    def load_client_config(
        config_path: Optional[Union[str, Path]] = None,
        use_env: bool = True
    ) -> ClientConfig:
        """
        Load client configuration from file and/or environment.

        Environment values that differ from the defaults override file values.

        Args:
            config_path: Path to configuration file.
            use_env: Whether to load from environment variables.

        Returns:
            ClientConfig instance.
        """
        file_config: Dict[str, Any] = {}
        if config_path or any(os.path.exists(p) for p in ConfigurationLoader.DEFAULT_CONFIG_PATHS):
            file_config = ConfigurationLoader.load_from_file(config_path)

        config = ClientConfig.from_dict(file_config) if file_config else ClientConfig()

        if use_env:
            env_config = ClientConfig.from_env()
            default_config = ClientConfig()
            for section in ("chat", "probe", "link"):
                _override_changed(
                    getattr(config, section),
                    getattr(env_config, section),
                    getattr(default_config, section),
                )
            for name in ("worker_threads", "log_level"):
                if getattr(env_config, name) != getattr(default_config, name):
                    setattr(config, name, getattr(env_config, name))

        config.validate()
        return config


def _override_changed(target: Any, source: Any, default: Any) -> None:
    for f in fields(target):
        value = getattr(source, f.name)
        if value != getattr(default, f.name):
            setattr(target, f.name, value)
