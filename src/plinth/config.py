"""
Plinth Configuration.

Centralized configuration management using Pydantic Settings.
Loads configuration from environment variables.
"""

import os
from pathlib import Path
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def get_xdg_state_dir() -> str:
    """
    Get XDG-compliant state directory for Plinth logs.

    Follows XDG Base Directory Specification:
    - Uses $XDG_STATE_HOME/plinth if XDG_STATE_HOME is set
    - Falls back to $HOME/.local/state/plinth if not set
    - Returns relative path ./logs if HOME not available (dev/testing)

    Returns:
        str: Path to state/logs directory
    """
    xdg_state_home = os.getenv("XDG_STATE_HOME")
    if xdg_state_home:
        return str(Path(xdg_state_home) / "plinth" / "logs")

    home = os.getenv("HOME")
    if home:
        return str(Path(home) / ".local" / "state" / "plinth" / "logs")

    # Fallback for development/testing environments without HOME
    return "./logs"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    database_url: str = "sqlite:///./plinth.db"

    # API
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    api_reload: bool = True
    cors_origins: list[str] | str = ["http://localhost:3000"]

    # Auth
    jwt_secret_key: str = "plinth-dev-secret-change-me-in-production"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 15
    refresh_token_expire_days: int = 7
    bcrypt_rounds: int = 10

    # Application
    environment: str = "development"

    # Modules
    modules_paths: list[str] | str = ["./modules", "./packages"]
    modules_auto_enable: Optional[bool] = None  # None = auto-enable in development
    module_manifest_name: str = "manifest.json"

    # Logging
    log_level: str = "INFO"
    log_dir: str = ""  # XDG-compliant log directory (defaults to XDG state dir if empty)
    log_format: str = "standard"  # standard or json
    log_console_enabled: bool = True
    log_file_enabled: bool = False
    log_max_bytes: int = 10_485_760  # 10MB per log file
    log_backup_count: int = 5

    @field_validator("modules_paths", "cors_origins", mode="before")
    @classmethod
    def split_comma_separated(cls, value):
        """Accept comma separated strings from the environment."""
        if isinstance(value, str):
            return [part.strip() for part in value.split(",") if part.strip()]
        return value

    @property
    def module_roots(self) -> list[Path]:
        """Module root directories, resolved, in scan order."""
        paths = self.modules_paths
        if isinstance(paths, str):
            paths = [paths]
        return [Path(p).expanduser().resolve() for p in paths]

    @property
    def auto_enable_modules(self) -> bool:
        """Whether every discovered module is enabled at boot."""
        if self.modules_auto_enable is not None:
            return self.modules_auto_enable
        return self.environment == "development"

    @property
    def log_directory(self) -> Path:
        """Get the log directory path, using XDG default if not specified."""
        if self.log_dir:
            return Path(self.log_dir).expanduser()
        return Path(get_xdg_state_dir())


# Global settings instance
settings = Settings()
