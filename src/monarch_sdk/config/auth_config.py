"""
Authentication configuration for the Python SDK

Loads per-environment client settings and an ordered list of authentication
schemes from a JSON document, and turns them into a ClientConfig and a
SigningChain. String values of the form "${NAME}" are read from the process
environment so that secrets can stay out of configuration files.
"""

import json
import logging
import os
import re
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from ..exceptions import ConfigurationError, ErrorCodes, MonarchSDKError
from ..http_client import ClientConfig, RestClient
from ..signing.api_key import ApiKeyStrategy
from ..signing.base import SigningStrategy
from ..signing.basic_auth import BasicAuthStrategy
from ..signing.chain import SigningChain
from ..signing.hawk_signer import MacAuthStrategy
from ..tokens import AccessTokenSource

logger = logging.getLogger(__name__)

ENV_REFERENCE = re.compile(r'^\$\{([A-Za-z_][A-Za-z0-9_]*)\}$')

SUPPORTED_SCHEMES = ('api_key', 'basic', 'hawk')

DEFAULT_CONFIG_PATHS = [
    Path("config/monarch-auth.json"),
    Path("../config/monarch-auth.json"),
    Path.home() / ".monarch" / "auth.json",
]


@dataclass
class SchemeConfig:
    """One entry of an environment's authentication list"""
    scheme: str
    settings: Dict[str, Any] = field(default_factory=dict)


@dataclass
class LoggingConfig:
    """Logging configuration"""
    level: str = "WARNING"
    log_canonical_strings: bool = False

    def __post_init__(self):
        self.level = str(self.level).upper()
        if not isinstance(logging.getLevelName(self.level), int):
            raise ConfigurationError(
                f"Unknown logging level: {self.level}",
                ErrorCodes.INVALID_FORMAT,
                {"level": self.level}
            )
        self.log_canonical_strings = _as_bool(self.log_canonical_strings, "log_canonical_strings")


@dataclass
class EnvironmentConfig:
    """Environment-specific configuration"""
    client: Dict[str, Any]
    authentication: List[SchemeConfig]
    logging: LoggingConfig


@dataclass
class DefaultConfig:
    """Default configuration values"""
    environment: str


@dataclass
class AuthConfig:
    """Authentication configuration document"""
    config_format_version: str
    environments: Dict[str, EnvironmentConfig]
    defaults: DefaultConfig


class AuthConfigManager:
    """Authentication configuration manager"""

    def __init__(self, config: AuthConfig, environment: Optional[str] = None):
        self.config = config
        self.current_environment = environment or config.defaults.environment
        self._validate()

    @classmethod
    def from_json(cls, json_string: str, environment: Optional[str] = None) -> 'AuthConfigManager':
        """Load configuration from a JSON string"""
        try:
            data = json.loads(json_string)
        except json.JSONDecodeError as e:
            raise ConfigurationError(
                f"Failed to parse configuration JSON: {e}", ErrorCodes.PARSE_ERROR
            ) from e
        return cls.from_dict(data, environment)

    @classmethod
    def from_dict(cls, data: Dict[str, Any], environment: Optional[str] = None) -> 'AuthConfigManager':
        """Load configuration from an already decoded document"""
        try:
            config = cls._parse_config_dict(resolve_env_references(data))
        except MonarchSDKError:
            raise
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise ConfigurationError(
                f"Invalid configuration format: {e}", ErrorCodes.INVALID_FORMAT
            ) from e
        return cls(config, environment)

    @classmethod
    def from_file(cls, file_path: Union[str, Path], environment: Optional[str] = None) -> 'AuthConfigManager':
        """Load configuration from a file"""
        path = Path(file_path)
        try:
            with open(path, 'r', encoding='utf-8') as f:
                json_string = f.read()
        except FileNotFoundError as e:
            raise ConfigurationError(
                f"Configuration file not found: {path}", ErrorCodes.FILE_NOT_FOUND, {"path": str(path)}
            ) from e
        except OSError as e:
            raise ConfigurationError(
                f"Failed to read configuration file: {e}", ErrorCodes.FILE_ERROR, {"path": str(path)}
            ) from e

        logger.debug(f"Loaded authentication configuration from {path}")
        return cls.from_json(json_string, environment)

    @classmethod
    def load_default(cls, environment: Optional[str] = None) -> 'AuthConfigManager':
        """
        Load configuration from MONARCH_AUTH_CONFIG, or the first default
        location that exists.
        """
        override = os.environ.get('MONARCH_AUTH_CONFIG')
        if override:
            return cls.from_file(override, environment)

        for path in DEFAULT_CONFIG_PATHS:
            if path.exists():
                return cls.from_file(path, environment)

        raise ConfigurationError("Default configuration file not found", ErrorCodes.FILE_NOT_FOUND)

    def set_environment(self, environment: str) -> None:
        """Set current environment"""
        if environment not in self.config.environments:
            raise ConfigurationError(
                f"Environment '{environment}' not found",
                ErrorCodes.ENVIRONMENT_NOT_FOUND,
                {"environment": environment}
            )
        self.current_environment = environment

    def get_current_environment(self) -> str:
        return self.current_environment

    def list_environments(self) -> List[str]:
        return list(self.config.environments.keys())

    def get_current_environment_config(self) -> EnvironmentConfig:
        """Get current environment configuration"""
        env_config = self.config.environments.get(self.current_environment)
        if env_config is None:
            raise ConfigurationError(
                f"Environment '{self.current_environment}' not found",
                ErrorCodes.ENVIRONMENT_NOT_FOUND,
                {"environment": self.current_environment}
            )
        return env_config

    def get_logging_config(self) -> LoggingConfig:
        return self.get_current_environment_config().logging

    def to_client_config(self) -> ClientConfig:
        """Build the transport configuration for the current environment"""
        try:
            return ClientConfig(**self.get_current_environment_config().client)
        except TypeError as e:
            raise ConfigurationError(
                f"Invalid client configuration for environment '{self.current_environment}': {e}",
                ErrorCodes.INVALID_FORMAT,
                {"environment": self.current_environment}
            ) from e

    def to_signing_chain(self, access_token_source: Optional[AccessTokenSource] = None) -> SigningChain:
        """
        Build the signing chain for the current environment.

        Args:
            access_token_source: Token source handed to the api_key and hawk
                schemes

        Returns:
            SigningChain: Strategies in the order they are listed

        Raises:
            ConfigurationError: If a scheme entry is missing credentials
        """
        env_config = self.get_current_environment_config()
        chain = SigningChain()
        for entry in env_config.authentication:
            chain.add(self._build_strategy(entry, env_config.logging, access_token_source))

        logger.debug(
            f"Built signing chain for environment '{self.current_environment}': "
            f"{[entry.scheme for entry in env_config.authentication]}"
        )
        return chain

    def create_client(self, access_token_source: Optional[AccessTokenSource] = None) -> RestClient:
        """Create a RestClient for the current environment"""
        return RestClient(self.to_client_config(), self.to_signing_chain(access_token_source))

    @staticmethod
    def _build_strategy(
        entry: SchemeConfig,
        logging_config: LoggingConfig,
        access_token_source: Optional[AccessTokenSource],
    ) -> SigningStrategy:
        settings = entry.settings
        try:
            if entry.scheme == 'api_key':
                return ApiKeyStrategy(settings.get('api_key'), access_token_source)

            if entry.scheme == 'basic':
                return BasicAuthStrategy(settings.get('username'), settings.get('password'))

            return MacAuthStrategy(
                key_id=settings.get('key_id'),
                shared_secret=settings.get('shared_secret'),
                algorithm=settings.get('algorithm', 'sha256'),
                access_token_source=access_token_source,
                verify_payload=_as_bool(settings.get('verify_payload', True), 'verify_payload'),
                ext=settings.get('ext'),
                log_canonical_strings=logging_config.log_canonical_strings,
            )
        except ConfigurationError as e:
            e.details.setdefault('scheme', entry.scheme)
            raise

    def _validate(self) -> None:
        """Validate the configuration"""
        if self.config.defaults.environment not in self.config.environments:
            raise ConfigurationError(
                f"Default environment '{self.config.defaults.environment}' not found",
                ErrorCodes.ENVIRONMENT_NOT_FOUND,
                {"environment": self.config.defaults.environment}
            )

        if self.current_environment not in self.config.environments:
            raise ConfigurationError(
                f"Environment '{self.current_environment}' not found",
                ErrorCodes.ENVIRONMENT_NOT_FOUND,
                {"environment": self.current_environment}
            )

        for env_name, env_config in self.config.environments.items():
            for entry in env_config.authentication:
                if entry.scheme not in SUPPORTED_SCHEMES:
                    raise ConfigurationError(
                        f"Environment '{env_name}' uses unknown authentication scheme '{entry.scheme}'",
                        ErrorCodes.UNKNOWN_SCHEME,
                        {"environment": env_name, "scheme": entry.scheme}
                    )

    @staticmethod
    def _parse_config_dict(data: Dict[str, Any]) -> AuthConfig:
        """Parse configuration dictionary into structured objects"""
        client_fields = {f.name for f in fields(ClientConfig)}

        environments = {}
        for env_name, env_data in data['environments'].items():
            client = dict(env_data.get('client', {}))
            unknown = set(client) - client_fields
            if unknown:
                raise ValueError(f"unknown client settings in '{env_name}': {sorted(unknown)}")

            authentication = []
            for scheme_data in env_data.get('authentication', []):
                settings = dict(scheme_data)
                authentication.append(SchemeConfig(scheme=settings.pop('scheme'), settings=settings))

            environments[env_name] = EnvironmentConfig(
                client=client,
                authentication=authentication,
                logging=LoggingConfig(**env_data.get('logging', {})),
            )

        return AuthConfig(
            config_format_version=str(data.get('config_format_version', '1.0')),
            environments=environments,
            defaults=DefaultConfig(**data['defaults']),
        )


def resolve_env_references(value: Any) -> Any:
    """
    Replace "${NAME}" strings with the value of environment variable NAME,
    recursively through dicts and lists.

    Raises:
        ConfigurationError: If a referenced variable is not set
    """
    if isinstance(value, dict):
        return {key: resolve_env_references(item) for key, item in value.items()}
    if isinstance(value, list):
        return [resolve_env_references(item) for item in value]
    if isinstance(value, str):
        match = ENV_REFERENCE.match(value)
        if match:
            name = match.group(1)
            if name not in os.environ:
                raise ConfigurationError(
                    f"Environment variable {name} is not set",
                    ErrorCodes.MISSING_ENV_VAR,
                    {"variable": name}
                )
            return os.environ[name]
    return value


def _as_bool(value: Any, name: str) -> bool:
    """Read a boolean setting, accepting "true"/"false" strings from the environment."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("true", "false"):
        return value.strip().lower() == "true"
    raise ConfigurationError(
        f"Setting '{name}' must be a boolean, got {value!r}",
        ErrorCodes.INVALID_FORMAT,
        {"setting": name}
    )


def load_auth_config_from_json(json_string: str, environment: Optional[str] = None) -> AuthConfigManager:
    """Load authentication configuration from JSON string"""
    return AuthConfigManager.from_json(json_string, environment)


def load_auth_config_from_file(file_path: Union[str, Path], environment: Optional[str] = None) -> AuthConfigManager:
    """Load authentication configuration from file"""
    return AuthConfigManager.from_file(file_path, environment)


def load_default_auth_config(environment: Optional[str] = None) -> AuthConfigManager:
    """Load default authentication configuration"""
    return AuthConfigManager.load_default(environment)
