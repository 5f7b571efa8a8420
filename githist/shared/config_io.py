"""Configuration I/O utilities for reading TOML config files."""

import os
import platform
import tomllib  # Built-in Python 3.11+
from pathlib import Path
from typing import Any

from githist.domain.exceptions import ConfigError

# Repository-local config file, at the root of the working tree
LOCAL_CONFIG_NAME = ".git-hist.toml"


def get_global_config_path() -> Path:
    """Get the path to the global config file.

    The location is platform-dependent:
    - Linux/macOS: $XDG_CONFIG_HOME/git-hist/config.toml or ~/.config/git-hist/config.toml
    - Windows: %APPDATA%/git-hist/config.toml

    Returns:
        Path to the global config file (may not exist)
    """
    if platform.system() == "Windows":
        appdata = os.environ.get("APPDATA", "")
        if appdata:
            return Path(appdata) / "git-hist" / "config.toml"
        return Path.home() / ".config" / "git-hist" / "config.toml"
    else:
        # Unix-like: respect XDG_CONFIG_HOME
        xdg_config = os.environ.get("XDG_CONFIG_HOME", "")
        if xdg_config:
            return Path(xdg_config) / "git-hist" / "config.toml"
        return Path.home() / ".config" / "git-hist" / "config.toml"


def get_local_config_path(repo_root: Path) -> Path:
    """Get the path to the repository-local config file."""
    return repo_root / LOCAL_CONFIG_NAME


def load_config_data(path: Path) -> dict[str, Any]:
    """Load raw TOML data from a config file.

    Args:
        path: Path to a TOML config file

    Returns:
        Dictionary with parsed TOML data

    Raises:
        FileNotFoundError: If config file doesn't exist
        ConfigError: If config file is malformed
    """
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    try:
        with path.open("rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(
            str(path), f"invalid TOML: {e}", hint="Fix or remove the config file"
        ) from e
