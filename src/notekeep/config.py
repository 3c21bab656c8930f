"""
Configuration management for Notekeep.

Uses XDG base directories:
- Config: ~/.config/notekeep/config.toml
- Data: ~/notekeep/ (where the notes blob lives)
"""

from pathlib import Path
from typing import Any
import os

# XDG defaults
DEFAULT_CONFIG_HOME = Path.home() / ".config"
DEFAULT_DATA_HOME = Path.home() / "notekeep"

BACKENDS = ("memory", "file", "sqlite")


def get_config_dir() -> Path:
    """Get the config directory (XDG_CONFIG_HOME/notekeep)."""
    base = Path(os.environ.get("XDG_CONFIG_HOME", DEFAULT_CONFIG_HOME))
    return base / "notekeep"


def get_notekeep_home() -> Path:
    """Get the notekeep data directory (~/notekeep or NOTEKEEP_HOME)."""
    if env_home := os.environ.get("NOTEKEEP_HOME"):
        return Path(env_home)
    return DEFAULT_DATA_HOME


def get_data_dir(config: dict[str, Any] | None = None) -> Path:
    """Get the data directory, preferring [notekeep] home from config."""
    if config and (home := config.get("notekeep", {}).get("home")):
        return Path(home).expanduser()
    return get_notekeep_home()


def get_config_path() -> Path:
    """Get the path to config.toml."""
    return get_config_dir() / "config.toml"


def get_db_path() -> Path:
    """Get the path to notekeep.db (sqlite backend)."""
    return get_notekeep_home() / "notekeep.db"


def ensure_dirs(config: dict[str, Any] | None = None) -> None:
    """Ensure all required directories exist."""
    get_config_dir().mkdir(parents=True, exist_ok=True)
    get_data_dir(config).mkdir(parents=True, exist_ok=True)


def load_config() -> dict[str, Any]:
    """
    Load configuration from config.toml.

    Returns default config if file doesn't exist. Sections present in the
    file are merged over the defaults, then env overrides are applied.
    """
    config = get_default_config()
    config_path = get_config_path()

    if config_path.exists():
        # Lazy import tomli only when needed
        import tomli

        with open(config_path, "rb") as f:
            user_config = tomli.load(f)

        for section, values in user_config.items():
            if isinstance(values, dict) and isinstance(config.get(section), dict):
                config[section].update(values)
            else:
                config[section] = values

    if backend := os.environ.get("NOTEKEEP_BACKEND"):
        config["storage"]["backend"] = backend
    if level := os.environ.get("NOTEKEEP_LOG_LEVEL"):
        config["logging"]["level"] = level

    if config["storage"]["backend"] not in BACKENDS:
        raise ValueError(
            f"Unknown storage backend: {config['storage']['backend']} "
            f"(expected one of: {', '.join(BACKENDS)})"
        )

    return config


def get_default_config() -> dict[str, Any]:
    """Return default configuration."""
    return {
        "notekeep": {
            "home": str(get_notekeep_home()),
        },
        "storage": {
            "backend": "file",  # or "sqlite", "memory"
            "key": "notes",
        },
        "logging": {
            "level": "WARNING",
        },
    }
