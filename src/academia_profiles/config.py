"""Configuration management for academia-profiles.

Loads settings from YAML configuration file with sensible defaults.
Supports environment variable overrides for credentials and service URLs.
"""

import copy
import logging
import os
from pathlib import Path
from typing import Any

import yaml

# Module logger
logger = logging.getLogger("academia_profiles.config")


# Default configuration values
DEFAULT_CONFIG = {
    "profiles": {
        "base_url": "https://profiles.ucl.ac.uk/api",
        "timeout": 60,
    },
    "orcid": {
        "api_base_url": "https://pub.orcid.org/v3.0",
        "auth_site": "https://orcid.org",
        "token_path": "https://orcid.org/oauth/token",
        "internal_api_base_url": None,
        "access_token": None,
        "client_id": None,
        "client_secret": None,
        "redirect_uri": None,
        "cache_dir_name": "cache",
        "cache_ttl_seconds": 7 * 24 * 60 * 60,  # 7 days
        "timeout": 60,
    },
    "openwebui": {
        "api_url": None,
        "api_key": None,
        "model": "llama3",
        "timeout": 120,
    },
    "comfyui": {
        "url": None,
        "workflow_file": "comfyui-workflow.json",
        "workflow_dir": "data",
        "poll_attempts": 120,
        "poll_interval": 1.0,
    },
    "output": {
        "json_indent": 2,
    },
}

# Environment variable -> (section, key)
_ENV_OVERRIDES = {
    "PROFILES_API_BASE_URL": ("profiles", "base_url"),
    "INTERNAL_API_BASE_URL": ("orcid", "internal_api_base_url"),
    "ORCID_ACCESS_TOKEN": ("orcid", "access_token"),
    "ORCID_CLIENT_ID": ("orcid", "client_id"),
    "ORCID_CLIENT_SECRET": ("orcid", "client_secret"),
    "ORCID_REDIRECT_URI": ("orcid", "redirect_uri"),
    "ORCID_TOKEN_PATH": ("orcid", "token_path"),
    "ORCID_AUTH_SITE": ("orcid", "auth_site"),
    "OPENWEBUI_API_URL": ("openwebui", "api_url"),
    "OPENWEBUI_API_KEY": ("openwebui", "api_key"),
    "OPENWEBUI_MODEL": ("openwebui", "model"),
    "COMFYUI_URL": ("comfyui", "url"),
    "COMFYUI_WORKFLOW_FILE": ("comfyui", "workflow_file"),
}

_INT_ENV_OVERRIDES = {
    "ORCID_CACHE_TTL": ("orcid", "cache_ttl_seconds"),
    "PROFILES_API_TIMEOUT": ("profiles", "timeout"),
}


class Config:
    """Configuration manager for academia-profiles."""

    def __init__(self, config_file: Path | None = None, environ: dict | None = None):
        """Initialize configuration.

        Args:
            config_file: Path to YAML config file (optional)
            environ: Mapping used for overrides (defaults to os.environ)
        """
        self._config = copy.deepcopy(DEFAULT_CONFIG)

        if config_file and config_file.exists():
            self._load_from_file(config_file)

        self._apply_env_overrides(os.environ if environ is None else environ)
        self._validate_config()

    def _load_from_file(self, config_file: Path) -> None:
        try:
            with open(config_file, 'r') as f:
                user_config = yaml.safe_load(f)

            if user_config:
                self._merge_config(user_config)
        except (OSError, yaml.YAMLError) as e:
            logger.warning(f"Failed to load config from {config_file}: {e}")

    def _merge_config(self, user_config: dict) -> None:
        """Merge user configuration with defaults.

        Args:
            user_config: User-provided configuration dict
        """
        for section, values in user_config.items():
            if section in self._config and isinstance(values, dict):
                self._config[section].update(values)
            else:
                self._config[section] = values

        self._validate_config()

    def _validate_config(self) -> None:
        """Validate security-sensitive configuration values."""
        for section, key in (("profiles", "base_url"), ("orcid", "api_base_url")):
            url = self._config.get(section, {}).get(key, "")
            if url and not url.startswith("https://"):
                logger.warning(f"Rejecting non-HTTPS {section}.{key}: {url}")
                self._config[section][key] = DEFAULT_CONFIG[section][key]

        # cache_dir_name must be a simple name (no path separators or traversal)
        dir_name = self._config.get("orcid", {}).get("cache_dir_name", "")
        if dir_name and (
            "/" in dir_name or "\\" in dir_name or ".." in dir_name
        ):
            logger.warning(f"Rejecting unsafe orcid.cache_dir_name: {dir_name}")
            self._config["orcid"]["cache_dir_name"] = DEFAULT_CONFIG["orcid"]["cache_dir_name"]

    def _apply_env_overrides(self, environ) -> None:
        for name, (section, key) in _ENV_OVERRIDES.items():
            if value := environ.get(name):
                self._config[section][key] = value

        for name, (section, key) in _INT_ENV_OVERRIDES.items():
            if value := environ.get(name):
                try:
                    self._config[section][key] = int(value)
                except ValueError:
                    pass

    def get(self, section: str, key: str, default: Any = None) -> Any:
        """Get configuration value.

        Args:
            section: Configuration section (e.g., 'profiles', 'orcid')
            key: Configuration key within section
            default: Default value if not found

        Returns:
            Configuration value or default
        """
        return self._config.get(section, {}).get(key, default)

    def set(self, section: str, key: str, value: Any) -> None:
        """Set a configuration value (used by CLIs and tests)."""
        self._config.setdefault(section, {})[key] = value

    @property
    def profiles_base_url(self) -> str:
        """Get profile service API base URL."""
        return self.get("profiles", "base_url").rstrip("/")

    @property
    def profiles_timeout(self) -> int:
        """Get profile service request timeout in seconds."""
        return self.get("profiles", "timeout")

    @property
    def orcid_api_base_url(self) -> str:
        return self.get("orcid", "api_base_url").rstrip("/")

    @property
    def internal_api_base_url(self) -> str | None:
        """Base URL of the internal ORCID caching endpoint, if configured."""
        url = self.get("orcid", "internal_api_base_url")
        return url.rstrip("/") if url else None

    @property
    def orcid_access_token(self) -> str | None:
        return self.get("orcid", "access_token")

    @property
    def orcid_access_configured(self) -> bool:
        """True when an ORCID access credential is available."""
        return bool(self.orcid_access_token)

    @property
    def orcid_timeout(self) -> int:
        return self.get("orcid", "timeout")

    @property
    def cache_dir_name(self) -> str:
        return self.get("orcid", "cache_dir_name")

    @property
    def cache_ttl(self) -> int:
        """Get ORCID cache TTL in seconds."""
        return self.get("orcid", "cache_ttl_seconds")

    @property
    def openwebui_api_url(self) -> str | None:
        return self.get("openwebui", "api_url")

    @property
    def openwebui_api_key(self) -> str | None:
        return self.get("openwebui", "api_key")

    @property
    def openwebui_model(self) -> str:
        return self.get("openwebui", "model")

    @property
    def comfyui_url(self) -> str | None:
        url = self.get("comfyui", "url")
        return url.rstrip("/") if url else None

    @property
    def comfyui_workflow_path(self) -> Path:
        """Path of the ComfyUI workflow JSON file."""
        return Path(self.get("comfyui", "workflow_dir")) / self.get("comfyui", "workflow_file")

    @property
    def json_indent(self) -> int:
        """Get JSON output indentation."""
        return self.get("output", "json_indent")


# Global default config instance
_default_config = None


def get_config(config_file: Path | None = None) -> Config:
    """Get configuration instance.

    Args:
        config_file: Optional path to config file

    Returns:
        Config instance
    """
    global _default_config

    if config_file:
        _default_config = Config(config_file)
        return _default_config

    if _default_config is None:
        # Try to load from default locations
        default_paths = [
            Path.cwd() / ".academia-profiles.yaml",
            Path.home() / ".academia-profiles.yaml",
            Path("/etc/academia-profiles/config.yaml"),
        ]

        for path in default_paths:
            if path.exists():
                _default_config = Config(path)
                break

        if _default_config is None:
            _default_config = Config()

    return _default_config


def reset_config() -> None:
    """Drop the cached global configuration."""
    global _default_config
    _default_config = None
