"""
Configuration settings with environment variable loading.

All secrets MUST be provided via environment variables.
Never log or expose credentials in any output.
"""

import os
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from productsync.sync.registry import ACTION_GROUPS

logger = logging.getLogger(__name__)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class ConfigurationError(Exception):
    """Raised when required configuration is missing or invalid."""
    pass


@dataclass(frozen=True)
class ApiConfig:
    """Product API configuration."""
    project_key: str
    client_id: str
    client_secret: str
    api_url: str
    auth_url: str
    scope: Optional[str] = None

    def __post_init__(self):
        if not self.project_key:
            raise ConfigurationError("PRODUCTSYNC_PROJECT_KEY is required")
        if not self.client_id:
            raise ConfigurationError("PRODUCTSYNC_CLIENT_ID is required")
        if not self.client_secret:
            raise ConfigurationError("PRODUCTSYNC_CLIENT_SECRET is required")
        if not self.api_url.startswith("https://"):
            raise ConfigurationError("PRODUCTSYNC_API_URL must use HTTPS")
        if not self.auth_url.startswith("https://"):
            raise ConfigurationError("PRODUCTSYNC_AUTH_URL must use HTTPS")

    def __repr__(self) -> str:
        """Never expose the secret in repr."""
        return (
            f"ApiConfig(project_key='{self.project_key}', "
            f"client_id='{self.client_id[:8]}...', client_secret='***REDACTED***', "
            f"api_url='{self.api_url}', auth_url='{self.auth_url}')"
        )


@dataclass(frozen=True)
class SyncConfig:
    """Sync engine configuration."""
    dry_run: bool = False
    max_retries: int = 3
    retry_delay_seconds: float = 1.0
    max_workers: int = 1
    ignored_groups: tuple = field(default_factory=tuple)

    def __post_init__(self):
        object.__setattr__(self, "ignored_groups", tuple(self.ignored_groups))
        unknown = [g for g in self.ignored_groups if g not in ACTION_GROUPS]
        if unknown:
            raise ConfigurationError(
                f"SYNC_IGNORED_GROUPS contains unknown groups: {unknown}. "
                f"Valid groups: {list(ACTION_GROUPS)}"
            )
        if self.max_workers < 1:
            raise ConfigurationError("SYNC_MAX_WORKERS must be at least 1")
        if self.max_retries < 0:
            raise ConfigurationError("SYNC_MAX_RETRIES must not be negative")


@dataclass(frozen=True)
class Settings:
    """
    Application settings container.

    All configuration is loaded from environment variables.
    Secrets are never logged or exposed. ``api`` is None in offline mode.
    """
    api: Optional[ApiConfig]
    sync: SyncConfig
    log_level: str = "INFO"

    def __repr__(self) -> str:
        return (
            f"Settings(\n"
            f"  api={self.api},\n"
            f"  sync={self.sync},\n"
            f"  log_level={self.log_level}\n"
            f")"
        )


def _parse_groups(value: str) -> tuple:
    return tuple(g.strip() for g in value.split(",") if g.strip())


def load_settings(env_file: Optional[Path] = None, offline: bool = False) -> Settings:
    """
    Load settings from environment variables.

    Optionally loads from a .env file first.

    Args:
        env_file: Optional path to .env file
        offline: Skip API configuration (no network access needed)

    Returns:
        Configured Settings instance

    Raises:
        ConfigurationError: If required configuration is missing
    """
    if env_file and not env_file.exists():
        logger.warning(f"Environment file {env_file} not found, using .env if present")

    if env_file and env_file.exists():
        _load_env_file(env_file)
    elif Path(".env").exists():
        _load_env_file(Path(".env"))

    try:
        api = None
        if not offline:
            api = ApiConfig(
                project_key=os.getenv("PRODUCTSYNC_PROJECT_KEY", ""),
                client_id=os.getenv("PRODUCTSYNC_CLIENT_ID", ""),
                client_secret=os.getenv("PRODUCTSYNC_CLIENT_SECRET", ""),
                api_url=os.getenv("PRODUCTSYNC_API_URL", "").rstrip("/"),
                auth_url=os.getenv("PRODUCTSYNC_AUTH_URL", "").rstrip("/"),
                scope=os.getenv("PRODUCTSYNC_SCOPE") or None,
            )

        sync = SyncConfig(
            dry_run=os.getenv("SYNC_DRY_RUN", "false").lower() == "true",
            max_retries=int(os.getenv("SYNC_MAX_RETRIES", "3")),
            retry_delay_seconds=float(os.getenv("SYNC_RETRY_DELAY", "1.0")),
            max_workers=int(os.getenv("SYNC_MAX_WORKERS", "1")),
            ignored_groups=_parse_groups(os.getenv("SYNC_IGNORED_GROUPS", "")),
        )

        log_level = os.getenv("LOG_LEVEL", "INFO").upper()
        if log_level not in LOG_LEVELS:
            raise ConfigurationError(
                f"LOG_LEVEL must be one of {list(LOG_LEVELS)}, got {log_level!r}"
            )

        settings = Settings(api=api, sync=sync, log_level=log_level)

        logger.info("Configuration loaded successfully")
        logger.debug(f"Settings: {settings}")

        return settings

    except ConfigurationError:
        raise
    except Exception as e:
        raise ConfigurationError(f"Failed to load configuration: {e}") from e


def _load_env_file(path: Path) -> None:
    """
    Load environment variables from a file.

    Simple .env parser that handles:
    - KEY=value
    - KEY="quoted value"
    - # comments
    - Empty lines
    """
    logger.debug(f"Loading environment from {path}")

    with open(path) as f:
        for line_num, line in enumerate(f, 1):
            line = line.strip()

            if not line or line.startswith("#"):
                continue

            if "=" not in line:
                logger.warning(f"Invalid line {line_num} in {path}: no '=' found")
                continue

            key, _, value = line.partition("=")
            key = key.strip()
            value = value.strip()

            if value.startswith('"') and value.endswith('"'):
                value = value[1:-1]
            elif value.startswith("'") and value.endswith("'"):
                value = value[1:-1]

            # Environment variables take precedence
            if key not in os.environ:
                os.environ[key] = value
