"""Configuration I/O utilities for reading and writing TOML config files.

Also resolves the well-known per-user locations the daemon uses: config and
theme directories, the runtime directory holding the control socket, and the
state directory holding the log file.
"""

import os
import tomllib
from pathlib import Path
from typing import Any

import tomli_w

from zlaunch.domain.config import ZlaunchConfig


def get_config_dir() -> Path:
    """$XDG_CONFIG_HOME/zlaunch, or ~/.config/zlaunch."""
    xdg_config = os.environ.get("XDG_CONFIG_HOME", "")
    if xdg_config:
        return Path(xdg_config) / "zlaunch"
    return Path.home() / ".config" / "zlaunch"


def get_global_config_path() -> Path:
    """Path to the user config file (may not exist)."""
    return get_config_dir() / "config.toml"


def get_themes_dir() -> Path:
    """Directory holding user theme files (may not exist)."""
    return get_config_dir() / "themes"


def get_runtime_dir() -> Path:
    """$XDG_RUNTIME_DIR, or /tmp when unset."""
    runtime = os.environ.get("XDG_RUNTIME_DIR", "")
    return Path(runtime) if runtime else Path("/tmp")


def get_socket_path() -> Path:
    """Well-known control socket path, one per user."""
    return get_runtime_dir() / "zlaunch.sock"


def get_pid_path() -> Path:
    return get_runtime_dir() / "zlaunch.pid"


def get_state_dir() -> Path:
    """$XDG_STATE_HOME/zlaunch, or ~/.local/state/zlaunch."""
    xdg_state = os.environ.get("XDG_STATE_HOME", "")
    if xdg_state:
        return Path(xdg_state) / "zlaunch"
    return Path.home() / ".local" / "state" / "zlaunch"


def get_log_path() -> Path:
    return get_state_dir() / "daemon.log"


def load_config_data(path: Path) -> dict[str, Any]:
    """Load raw TOML data from a file.

    Args:
        path: Path to a TOML file

    Returns:
        Dictionary with parsed TOML data

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the file is malformed
    """
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    try:
        with path.open("rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ValueError(f"Invalid TOML in {path.name}: {e}") from e


def update_config_value(path: Path, key: str, value: Any) -> bool:
    """Set one top-level key in an existing config file, keeping the rest.

    Args:
        path: Config file to update
        key: Top-level key
        value: New TOML-serializable value

    Returns:
        True if the file was updated, False if it does not exist

    Raises:
        ValueError: If the existing file is malformed
    """
    if not path.exists():
        return False

    data = load_config_data(path)
    data[key] = value
    with path.open("wb") as f:
        tomli_w.dump(data, f)
    return True


def config_to_data(config: ZlaunchConfig) -> dict[str, Any]:
    """Convert a config to a TOML-serializable dictionary.

    Optional lists that are unset are omitted, since TOML has no null.
    """
    data: dict[str, Any] = {
        "theme": config.theme,
        "window_width": config.window_width,
        "window_height": config.window_height,
        "hyprland_auto_blur": config.hyprland_auto_blur,
        "enable_transparency": config.enable_transparency,
        "default_modes": list(config.default_modes),
        "sticky_query": config.sticky_query,
        "clipboard_capacity": config.clipboard_capacity,
        "clipboard_poll_interval": config.clipboard_poll_interval,
        "compositor_timeout": config.compositor_timeout,
        "desktop_watch_interval": config.desktop_watch_interval,
    }
    if config.combined_modules is not None:
        data["combined_modules"] = list(config.combined_modules)
    if config.disabled_modules is not None:
        data["disabled_modules"] = list(config.disabled_modules)
    data["search_providers"] = [p.to_dict() for p in config.search_providers]
    return data


def save_config(config: ZlaunchConfig, path: Path) -> None:
    """Write a config to a TOML file, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("wb") as f:
        tomli_w.dump(config_to_data(config), f)
