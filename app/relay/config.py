"""Configuration system for page relay.

This module provides configuration management for the browser, navigation
and login settings, including YAML loading, validation, and
environment-specific overrides.
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from pydantic import BaseModel, Field, field_validator

from .capture.browser_factory import DEFAULT_LAUNCH_ARGS, DEFAULT_USER_AGENT, BrowserConfig
from .capture.page_renderer import NavigationConfig
from .login.flow import LoginFlowConfig

logger = logging.getLogger(__name__)


ENV_VAR = 'RELAY_ENV'
VALID_ENVIRONMENTS = {'production', 'staging', 'development', 'test'}
DEFAULT_CONFIG_PATH = Path(__file__).parent.parent.parent / "config" / "relay.yaml"


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


class RelayConfig(BaseModel):
    """Root configuration for page relay."""

    environment: str = Field(default="production", description="Environment name")
    browser: Dict[str, Any] = Field(default_factory=dict, description="Browser configuration")
    navigation: Dict[str, Any] = Field(default_factory=dict, description="Render/screenshot navigation")
    login: Dict[str, Any] = Field(default_factory=dict, description="Login flow configuration")
    api: Dict[str, Any] = Field(default_factory=dict, description="HTTP API settings")
    environments: Dict[str, Dict[str, Any]] = Field(
        default_factory=dict,
        description="Environment-specific overrides"
    )

    @field_validator('environment')
    @classmethod
    def validate_environment(cls, v):
        if v not in VALID_ENVIRONMENTS:
            raise ValueError(f"Environment must be one of: {VALID_ENVIRONMENTS}")
        return v

    def _section(self, name: str) -> Dict[str, Any]:
        """Return a config section with environment overrides applied."""
        section = dict(getattr(self, name))
        env_config = self.environments.get(self.environment, {})
        if name in env_config:
            section = _merge(section, env_config[name])
        return section

    @property
    def is_development(self) -> bool:
        return self.environment == 'development'

    @property
    def expose_error_details(self) -> bool:
        """Raw engine errors are only shown to callers in development."""
        return self.is_development

    def get_browser_config(self) -> BrowserConfig:
        config = self._section('browser')
        return BrowserConfig(
            headless=config.get('headless', True),
            launch_args=config.get('launch_args', DEFAULT_LAUNCH_ARGS),
            viewport={
                'width': config.get('window_width', 1920),
                'height': config.get('window_height', 1080),
            },
            user_agent=config.get('user_agent', DEFAULT_USER_AGENT),
            locale=config.get('locale'),
            ignore_https_errors=config.get('ignore_https_errors', False),
            blocked_hosts=config.get('blocked_hosts', []),
            hide_webdriver=config.get('hide_webdriver', True),
        )

    def get_navigation_config(self) -> NavigationConfig:
        config = self._section('navigation')
        return NavigationConfig(
            wait_until=config.get('wait_until', 'networkidle'),
            navigation_timeout_ms=config.get('navigation_timeout_ms', 30000),
            load_fallback_ms=config.get('load_fallback_ms', 5000),
        )

    def get_login_flow_config(self) -> LoginFlowConfig:
        return LoginFlowConfig(**self._section('login'))

    def get_api_settings(self) -> Dict[str, Any]:
        config = self._section('api')
        config.setdefault('cors_origins', ['*'])
        return config


class RelayConfigManager:
    """Manager for relay configuration loading and caching."""

    def __init__(self, config_path: Optional[Union[str, Path]] = None):
        """Initialize configuration manager.

        Args:
            config_path: Path to relay config YAML file. Defaults to config/relay.yaml;
                an explicit path must exist, a missing default falls back to built-in defaults.
        """
        self._explicit_path = config_path is not None
        self.config_path = Path(config_path) if config_path is not None else DEFAULT_CONFIG_PATH
        self._config: Optional[RelayConfig] = None
        self._loaded_env: Optional[str] = None

    def load_config(self, force_reload: bool = False) -> RelayConfig:
        """Load configuration from YAML file.

        Args:
            force_reload: Force reload even if already cached

        Returns:
            Loaded and validated configuration

        Raises:
            FileNotFoundError: If an explicitly given config file doesn't exist
            yaml.YAMLError: If YAML is invalid
            ValueError: If configuration validation fails
        """
        current_env = os.environ.get(ENV_VAR, 'production')

        if self._config is not None and not force_reload and current_env == self._loaded_env:
            return self._config

        if not self.config_path.exists():
            if self._explicit_path:
                raise FileNotFoundError(f"Configuration file not found: {self.config_path}")
            logger.info(f"No config file at {self.config_path}, using defaults")
            config_data: Dict[str, Any] = {}
        else:
            try:
                with open(self.config_path, 'r') as f:
                    config_data = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise yaml.YAMLError(f"Invalid YAML in {self.config_path}: {e}")

        # Environment variable wins over the file
        if ENV_VAR in os.environ:
            config_data['environment'] = current_env

        try:
            self._config = RelayConfig(**config_data)
        except Exception as e:
            raise ValueError(f"Configuration validation failed: {e}")

        self._loaded_env = current_env
        logger.debug(f"Loaded relay config (environment={self._config.environment})")
        return self._config

    @property
    def config(self) -> RelayConfig:
        """Get current configuration, loading if necessary."""
        if self._config is None:
            return self.load_config()
        return self._config

    @property
    def environment(self) -> str:
        return self.config.environment

    @property
    def is_production(self) -> bool:
        return self.environment == 'production'


# Global config manager instance
_config_manager: Optional[RelayConfigManager] = None


def get_config(config_path: Optional[Union[str, Path]] = None) -> RelayConfigManager:
    """Get global relay configuration manager.

    Args:
        config_path: Path to config file (only used on first call)
    """
    global _config_manager
    if _config_manager is None:
        _config_manager = RelayConfigManager(config_path)
    return _config_manager


def reset_config() -> None:
    """Drop the cached global configuration manager."""
    global _config_manager
    _config_manager = None
