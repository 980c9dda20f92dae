# =============================================================================
# Configuration Management
# =============================================================================
# Handles loading, saving, and validating JustSend configuration.
#
# XDG Base Directory Compliance (https://specifications.freedesktop.org/basedir-spec/):
#   - Config:  $XDG_CONFIG_HOME/justsend/  (default: ~/.config/justsend/)
#   - Data:    $XDG_DATA_HOME/justsend/    (default: ~/.local/share/justsend/)
#
# Files:
#   - config.toml: User preferences (API endpoint, storage, composer limits)
#   - justsend.db: SQLite database (in data directory)
#   - Attachments/: Copies of every attachment that was sent (in data directory)
#
# Sender accounts are NOT kept in config.toml. They live in the database,
# and their API keys live in the system keyring.
# =============================================================================

import os
import tomllib  # Built into Python 3.11+
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import tomli_w  # For writing TOML (tomllib is read-only)


# =============================================================================
# XDG Directory Management
# =============================================================================

# Application identifier used in all XDG paths
APP_NAME = "justsend"

# Name of the attachments folder inside the data directory
ATTACHMENTS_FOLDER_NAME = "Attachments"


def get_xdg_config_home() -> Path:
    """
    Returns the XDG config directory for JustSend.

    Respects $XDG_CONFIG_HOME if set, otherwise uses ~/.config/justsend/
    This is where user configuration files live (config.toml).
    """
    xdg_config = os.environ.get("XDG_CONFIG_HOME")
    if xdg_config:
        base = Path(xdg_config)
    else:
        base = Path.home() / ".config"
    return base / APP_NAME


def get_xdg_data_home() -> Path:
    """
    Returns the XDG data directory for JustSend.

    Respects $XDG_DATA_HOME if set, otherwise uses ~/.local/share/justsend/
    This is where persistent data lives (SQLite database, sent attachments).
    """
    xdg_data = os.environ.get("XDG_DATA_HOME")
    if xdg_data:
        base = Path(xdg_data)
    else:
        base = Path.home() / ".local" / "share"
    return base / APP_NAME


def ensure_directories() -> dict[str, Path]:
    """
    Creates all required XDG directories if they don't exist.

    Returns:
        Dictionary mapping directory type to path.

    Example:
        >>> dirs = ensure_directories()
        >>> dirs['data']
        PosixPath('/home/user/.local/share/justsend')
    """
    dirs = {
        "config": get_xdg_config_home(),
        "data": get_xdg_data_home(),
    }

    for dir_path in dirs.values():
        dir_path.mkdir(parents=True, exist_ok=True)

    return dirs


# =============================================================================
# Configuration Data Structures
# =============================================================================

@dataclass
class ApiConfig:
    """
    Configuration for the Resend API client.

    Attributes:
        base_url: Root URL of the Resend API. Sends go to {base_url}/emails.
        timeout: Request timeout in seconds. 0 disables the timeout and
                 leaves the request waiting on the HTTP stack.
    """
    base_url: str = "https://api.resend.com"
    timeout: float = 30.0               # 0 = wait forever


@dataclass
class StorageConfig:
    """
    Configuration for local persistence.

    Attributes:
        attachments_dir: Base directory for stored attachment copies.
                         Empty means <data-dir>/Attachments.
    """
    attachments_dir: str = ""


@dataclass
class ComposerConfig:
    """
    Configuration for the composer.

    Attributes:
        attachment_soft_limit_mb: Advisory total attachment size. Resend
                                  rejects emails above roughly 40MB, so the
                                  composer warns past this but never blocks.
    """
    attachment_soft_limit_mb: int = 40


@dataclass
class Config:
    """
    Main configuration container for JustSend.

    Attributes:
        api: Resend API configuration.
        storage: Local storage configuration.
        composer: Composer configuration.

    Usage:
        >>> config = Config.load()
        >>> config.api.base_url
        'https://api.resend.com'
    """
    api: ApiConfig = field(default_factory=ApiConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    composer: ComposerConfig = field(default_factory=ComposerConfig)

    # -------------------------------------------------------------------------
    # File Paths
    # -------------------------------------------------------------------------

    @staticmethod
    def config_file_path() -> Path:
        """Returns the path to the main config file."""
        return get_xdg_config_home() / "config.toml"

    @staticmethod
    def database_path() -> Path:
        """Returns the path to the SQLite database."""
        return get_xdg_data_home() / "justsend.db"

    def attachments_path(self) -> Path:
        """Returns the base directory for stored attachments."""
        if self.storage.attachments_dir:
            return Path(self.storage.attachments_dir).expanduser()
        return get_xdg_data_home() / ATTACHMENTS_FOLDER_NAME

    @property
    def request_timeout(self) -> float | None:
        """Timeout to hand to the HTTP client (None = no timeout)."""
        return self.api.timeout if self.api.timeout > 0 else None

    @property
    def attachment_soft_limit_bytes(self) -> int:
        """Soft attachment limit converted to bytes."""
        return self.composer.attachment_soft_limit_mb * 1024 * 1024

    # -------------------------------------------------------------------------
    # Loading and Saving
    # -------------------------------------------------------------------------

    @classmethod
    def load(cls, config_path: Path | None = None) -> "Config":
        """
        Load configuration from the config file.

        If the config file doesn't exist, returns default configuration.
        Creates necessary directories if they don't exist.

        Args:
            config_path: Optional explicit config file. Defaults to the
                         XDG location.

        Returns:
            Loaded Config object.

        Raises:
            ConfigError: If the config file exists but is invalid.
        """
        # Ensure all XDG directories exist
        ensure_directories()

        config_path = config_path or cls.config_file_path()

        if not config_path.exists():
            # No config file yet - return defaults
            return cls()

        # Load and parse the TOML file
        try:
            with open(config_path, "rb") as f:
                data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f"Invalid config file: {e}") from e

        return cls._from_dict(data)

    def save(self, config_path: Path | None = None) -> None:
        """
        Save configuration to the config file.

        Creates the config directory if it doesn't exist.
        """
        ensure_directories()

        config_path = config_path or self.config_file_path()
        config_path.parent.mkdir(parents=True, exist_ok=True)

        with open(config_path, "wb") as f:
            tomli_w.dump(self._to_dict(), f)

    @classmethod
    def _from_dict(cls, data: dict[str, Any]) -> "Config":
        """
        Create a Config object from a dictionary (parsed TOML).
        """
        config = cls()

        api = data.get("api", {})
        config.api = ApiConfig(
            base_url=str(api.get("base_url", "https://api.resend.com")).rstrip("/"),
            timeout=float(api.get("timeout", 30.0)),
        )

        storage = data.get("storage", {})
        config.storage = StorageConfig(
            attachments_dir=storage.get("attachments_dir", ""),
        )

        composer = data.get("composer", {})
        config.composer = ComposerConfig(
            attachment_soft_limit_mb=int(composer.get("attachment_soft_limit_mb", 40)),
        )

        if config.api.timeout < 0:
            raise ConfigError("api.timeout must be 0 or a positive number of seconds")
        if config.composer.attachment_soft_limit_mb < 0:
            raise ConfigError("composer.attachment_soft_limit_mb must not be negative")

        return config

    def _to_dict(self) -> dict[str, Any]:
        """
        Convert Config to a dictionary for TOML serialization.
        """
        return {
            "api": {
                "base_url": self.api.base_url,
                "timeout": self.api.timeout,
            },
            "storage": {
                "attachments_dir": self.storage.attachments_dir,
            },
            "composer": {
                "attachment_soft_limit_mb": self.composer.attachment_soft_limit_mb,
            },
        }


# =============================================================================
# Exceptions
# =============================================================================

class ConfigError(Exception):
    """Raised when there's an error loading or parsing configuration."""
    pass


# =============================================================================
# Utility Functions
# =============================================================================

def print_paths(config: Config | None = None) -> None:
    """
    Print all XDG paths for debugging.
    Useful for users wondering where their config/data is stored.
    """
    config = config or Config()
    print(f"Config:  {get_xdg_config_home()}")
    print(f"Data:    {get_xdg_data_home()}")
    print()
    print(f"Config file:  {Config.config_file_path()}")
    print(f"Database:     {Config.database_path()}")
    print(f"Attachments:  {config.attachments_path()}")
