"""Theme discovery and the active theme selection.

Bundled themes ship inside the package; user themes are TOML files in
~/.config/zlaunch/themes. The "default" theme is built in and always
available. Colour parsing is left to the renderer: this module only checks
that a theme file exists and is valid TOML.
"""

import logging
import threading
import tomllib
from importlib import resources
from importlib.resources.abc import Traversable
from pathlib import Path
from typing import Any

from zlaunch.domain.entities import ActionKind, ActionPayload, Entry, ThemeInfo
from zlaunch.domain.exceptions import ThemeNotFoundError, ValidationError
from zlaunch.domain.value_objects import Module, RefreshPolicy
from zlaunch.shared.config_io import load_config_data, update_config_value

logger = logging.getLogger(__name__)

DEFAULT_THEME = "default"


def _bundled_theme_files() -> dict[str, Traversable]:
    themes_dir = resources.files("zlaunch") / "themes"
    if not themes_dir.is_dir():
        return {}
    return {
        item.name[: -len(".toml")]: item
        for item in themes_dir.iterdir()
        if item.name.endswith(".toml")
    }


class ThemeCatalog:
    """Lists and loads bundled and user themes.

    Args:
        user_dir: Directory of user theme files; None disables user themes.
        bundled: Mapping of bundled theme name to resource; defaults to the
            themes shipped with the package.
    """

    def __init__(
        self,
        user_dir: Path | None = None,
        bundled: dict[str, Traversable] | None = None,
    ) -> None:
        self._user_dir = user_dir
        self._bundled = bundled if bundled is not None else _bundled_theme_files()

    def _user_files(self) -> dict[str, Path]:
        if self._user_dir is None or not self._user_dir.is_dir():
            return {}
        return {path.stem: path for path in self._user_dir.glob("*.toml")}

    def list_themes(self) -> list[ThemeInfo]:
        """All themes sorted by name; bundled names shadow user files."""
        themes = {DEFAULT_THEME: ThemeInfo(name=DEFAULT_THEME, is_bundled=True)}
        for name in self._bundled:
            themes[name] = ThemeInfo(name=name, is_bundled=True)
        for name in self._user_files():
            themes.setdefault(name, ThemeInfo(name=name, is_bundled=False))
        return [themes[name] for name in sorted(themes)]

    def names(self) -> set[str]:
        return {theme.name for theme in self.list_themes()}

    def exists(self, name: str) -> bool:
        return name in self.names()

    def load(self, name: str) -> dict[str, Any]:
        """Load a theme's raw TOML data.

        Raises:
            ThemeNotFoundError: If no theme has this name.
            ValueError: If the theme file is not valid TOML.
        """
        if name == DEFAULT_THEME:
            return {"name": DEFAULT_THEME}

        bundled = self._bundled.get(name)
        if bundled is not None:
            try:
                data = tomllib.loads(bundled.read_text(encoding="utf-8"))
            except tomllib.TOMLDecodeError as e:
                raise ValueError(f"Invalid TOML in bundled theme '{name}': {e}") from e
            data["name"] = name
            return data

        path = self._user_files().get(name)
        if path is None:
            raise ThemeNotFoundError(name)
        data = load_config_data(path)
        data["name"] = name
        return data


class ThemeController:
    """Holds the active theme name and persists changes to the config file.

    Args:
        catalog: Theme catalog used for validation.
        current: Initial theme name.
        config_path: Config file the selection is written back to, if it exists.
    """

    def __init__(
        self,
        catalog: ThemeCatalog,
        current: str = DEFAULT_THEME,
        config_path: Path | None = None,
    ) -> None:
        self._catalog = catalog
        self._config_path = config_path
        self._lock = threading.Lock()
        self._current = current if catalog.exists(current) else DEFAULT_THEME
        if self._current != current:
            logger.warning(f"Theme '{current}' not found, using '{DEFAULT_THEME}'")

    @property
    def catalog(self) -> ThemeCatalog:
        return self._catalog

    def current(self) -> str:
        with self._lock:
            return self._current

    def list_themes(self) -> list[ThemeInfo]:
        return self._catalog.list_themes()

    def set(self, name: str) -> str:
        """Switch the active theme.

        The theme is loaded before switching, so a broken file leaves the
        active theme unchanged. The new name is written to the config file
        when one exists; a write failure is logged, not raised.

        Raises:
            ThemeNotFoundError: If the theme does not exist.
            ValidationError: If the theme file cannot be parsed.
        """
        try:
            self._catalog.load(name)
        except ValueError as e:
            raise ValidationError(f"Theme '{name}' is invalid: {e}") from e

        with self._lock:
            self._current = name
        logger.info(f"Theme set to '{name}'")

        if self._config_path is not None:
            try:
                if update_config_value(self._config_path, "theme", name):
                    logger.debug(f"Persisted theme to {self._config_path}")
            except (OSError, ValueError) as e:
                logger.warning(f"Failed to persist theme to config: {e}")
        return name

    def apply_config(self, name: str) -> None:
        """Adopt the theme named by a reloaded config, if it exists."""
        if not self._catalog.exists(name):
            logger.warning(f"Theme '{name}' not found, keeping '{self.current()}'")
            return
        with self._lock:
            self._current = name


class ThemeSource:
    """Index source listing available themes."""

    module = Module.THEMES
    policy = RefreshPolicy.STATIC

    def __init__(self, catalog: ThemeCatalog) -> None:
        self._catalog = catalog

    def build(self) -> list[Entry]:
        return [
            Entry(
                id=f"theme-{theme.name}",
                title=theme.name,
                subtitle="Bundled theme" if theme.is_bundled else "User theme",
                icon="palette",
                module=Module.THEMES,
                action=ActionPayload(kind=ActionKind.THEME, value=theme.name),
            )
            for theme in self._catalog.list_themes()
        ]
