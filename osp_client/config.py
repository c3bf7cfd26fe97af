"""Configuration management for OSP Client."""

import json
import logging
import os
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Optional

from platformdirs import user_config_dir, user_log_dir

from .auth.discovery import DiscoveryDocument
from .auth.tokens import RefreshTokenPolicy
from .errors import ConfigError

__all__ = [
    "Config",
    "setup_logging",
    "DEFAULT_AUTH_URL",
    "DEFAULT_REDIRECT_URI",
]

logger = logging.getLogger(__name__)

APP_NAME = "OSP Client"
APP_AUTHOR = "OSP"

DEFAULT_AUTH_URL = "http://localhost:3020"
DEFAULT_REDIRECT_URI = "http://127.0.0.1:8765/callback"

# Environment overrides, applied on top of the config file
ENV_OVERRIDES = {
    "OSP_AUTH_URL": "auth_host",
    "OSP_NOTIFICATION_SERVICE_URL": "notification_host",
    "OSP_CLIENT_ID": "client_id",
    "OSP_CLIENT_SECRET": "client_secret",
    "OSP_REDIRECT_URI": "redirect_uri",
    "OSP_DEVICE_PUSH_TOKEN": "device_push_token",
}


@dataclass
class Config:
    """Main configuration object."""

    auth_host: str = DEFAULT_AUTH_URL
    notification_host: Optional[str] = None  # falls back to auth_host
    client_id: Optional[str] = None
    # Only used for refresh/revoke. Keep it out of source control.
    client_secret: Optional[str] = None
    redirect_uri: str = DEFAULT_REDIRECT_URI
    refresh_token_policy: str = RefreshTokenPolicy.DROP.value
    request_timeout: Optional[float] = None
    device_push_token: Optional[str] = None
    debug_mode: bool = False

    @property
    def notification_base_url(self) -> str:
        return self.notification_host or self.auth_host

    @classmethod
    def get_config_dir(cls) -> Path:
        """Get the configuration directory path."""
        return Path(user_config_dir(APP_NAME, APP_AUTHOR))

    @classmethod
    def get_log_dir(cls) -> Path:
        """Get the log directory path."""
        return Path(user_log_dir(APP_NAME, APP_AUTHOR))

    @classmethod
    def get_config_file(cls) -> Path:
        """Get the config file path."""
        return cls.get_config_dir() / "config.json"

    @classmethod
    def load(cls, path: Optional[Path] = None, environ: Optional[dict] = None) -> "Config":
        """Load config from file (or defaults), then apply environment overrides."""
        config_file = path or cls.get_config_file()
        config = cls()
        if config_file.exists():
            try:
                with open(config_file, "r") as f:
                    config = cls._from_dict(json.load(f))
            except (OSError, ValueError, TypeError) as e:
                logger.warning(f"Failed to load config: {e}, using defaults")
        config._apply_env(os.environ if environ is None else environ)
        return config

    @classmethod
    def _from_dict(cls, data: dict) -> "Config":
        """Create Config from dictionary, ignoring unknown keys."""
        if not isinstance(data, dict):
            raise TypeError(f"Expected a JSON object, got {type(data).__name__}")
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})

    def _apply_env(self, environ) -> None:
        for var, attr in ENV_OVERRIDES.items():
            value = environ.get(var)
            if value:
                setattr(self, attr, value)

    def save(self, path: Optional[Path] = None) -> None:
        """Save config to file."""
        config_file = path or self.get_config_file()
        config_file.parent.mkdir(parents=True, exist_ok=True)
        with open(config_file, "w") as f:
            json.dump(asdict(self), f, indent=2)
        logger.info(f"Config saved to {config_file}")

    def validate(self) -> None:
        """Check the settings the auth flow cannot run without.

        Raises:
            ConfigError: If the auth host, client id or redirect URI is
                missing, or the refresh token policy is unknown
        """
        if not self.auth_host:
            raise ConfigError("No auth host configured")
        if not self.client_id:
            raise ConfigError("No client id configured")
        if not self.redirect_uri:
            raise ConfigError("No redirect URI configured")
        try:
            RefreshTokenPolicy(self.refresh_token_policy)
        except ValueError as e:
            raise ConfigError(
                f"Unknown refresh token policy: {self.refresh_token_policy}"
            ) from e

    def discovery(self) -> DiscoveryDocument:
        return DiscoveryDocument.from_host(self.auth_host)


def setup_logging(debug: bool = False) -> None:
    """Configure logging."""
    log_dir = Config.get_log_dir()
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / "osp-client.log"

    level = logging.DEBUG if debug else logging.INFO
    format_str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    logging.basicConfig(
        level=level,
        format=format_str,
        handlers=[
            logging.FileHandler(log_file),
            logging.StreamHandler(),
        ],
    )

    # Reduce noise from libraries
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("requests").setLevel(logging.WARNING)
