"""
Configuration management for Monarch Python SDK

This module loads environment-specific client settings and authentication
schemes from JSON and builds clients and signing chains from them.
"""

from .auth_config import (
    AuthConfig,
    AuthConfigManager,
    EnvironmentConfig,
    SchemeConfig,
    LoggingConfig,
    DefaultConfig,
    SUPPORTED_SCHEMES,
    resolve_env_references,
    load_auth_config_from_json,
    load_auth_config_from_file,
    load_default_auth_config,
)

__all__ = [
    'AuthConfig',
    'AuthConfigManager',
    'EnvironmentConfig',
    'SchemeConfig',
    'LoggingConfig',
    'DefaultConfig',
    'SUPPORTED_SCHEMES',
    'resolve_env_references',
    'load_auth_config_from_json',
    'load_auth_config_from_file',
    'load_default_auth_config',
]
