"""Value objects for zlaunch domain.

Modules name the searchable indexes; modes name the views a user can cycle
through. Every mode except ``combined`` maps onto exactly one module.
"""

from collections.abc import Iterable
from enum import Enum

from zlaunch.domain.exceptions import UnknownModeError


class Module(str, Enum):
    """A searchable domain with its own index."""

    APPLICATIONS = "applications"
    WINDOWS = "windows"
    CLIPBOARD = "clipboard"
    EMOJIS = "emojis"
    ACTIONS = "actions"
    SEARCH = "search"
    THEMES = "themes"

    @classmethod
    def parse(cls, name: str) -> "Module":
        """Parse a module name, accepting the same aliases as modes.

        Raises:
            UnknownModeError: If the name is not a known module.
        """
        mode = LauncherMode.parse(name)
        if mode.module is None:
            raise UnknownModeError(name)
        return mode.module


class RefreshPolicy(str, Enum):
    """How a module's index is kept current."""

    CACHED = "cached"  # rebuilt only after invalidation
    ON_QUERY = "on_query"  # rebuilt before every query
    PUSHED = "pushed"  # rebuilt by a background watcher
    STATIC = "static"  # rebuilt at startup and on reload


class LauncherMode(str, Enum):
    """A named view composed of one or more modules."""

    COMBINED = "combined"
    APPLICATIONS = "applications"
    WINDOWS = "windows"
    CLIPBOARD = "clipboard"
    EMOJIS = "emojis"
    ACTIONS = "actions"
    SEARCH = "search"
    THEMES = "themes"

    @classmethod
    def parse(cls, name: str) -> "LauncherMode":
        """Parse a mode name case-insensitively, accepting aliases.

        Args:
            name: Mode name such as "apps", "Emoji" or "combined".

        Returns:
            The matching LauncherMode.

        Raises:
            UnknownModeError: If the name is not a known mode or alias.
        """
        key = name.strip().lower()
        mode = _MODE_ALIASES.get(key)
        if mode is None:
            raise UnknownModeError(name)
        return mode

    @property
    def module(self) -> Module | None:
        """The single module this mode shows, or None for combined."""
        if self is LauncherMode.COMBINED:
            return None
        return Module(self.value)

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]


_MODE_ALIASES: dict[str, LauncherMode] = {
    "combined": LauncherMode.COMBINED,
    "applications": LauncherMode.APPLICATIONS,
    "apps": LauncherMode.APPLICATIONS,
    "app": LauncherMode.APPLICATIONS,
    "windows": LauncherMode.WINDOWS,
    "window": LauncherMode.WINDOWS,
    "clipboard": LauncherMode.CLIPBOARD,
    "emojis": LauncherMode.EMOJIS,
    "emoji": LauncherMode.EMOJIS,
    "actions": LauncherMode.ACTIONS,
    "action": LauncherMode.ACTIONS,
    "search": LauncherMode.SEARCH,
    "themes": LauncherMode.THEMES,
    "theme": LauncherMode.THEMES,
}

_DISPLAY_NAMES: dict[LauncherMode, str] = {
    LauncherMode.COMBINED: "Combined",
    LauncherMode.APPLICATIONS: "Applications",
    LauncherMode.WINDOWS: "Windows",
    LauncherMode.CLIPBOARD: "Clipboard",
    LauncherMode.EMOJIS: "Emojis",
    LauncherMode.ACTIONS: "Actions",
    LauncherMode.SEARCH: "Search",
    LauncherMode.THEMES: "Themes",
}

DEFAULT_COMBINED_MODULES: tuple[Module, ...] = (
    Module.WINDOWS,
    Module.APPLICATIONS,
    Module.ACTIONS,
    Module.THEMES,
    Module.SEARCH,
)


def parse_modes(names: Iterable[str]) -> tuple[LauncherMode, ...]:
    """Parse a list of mode names, splitting comma-separated items.

    Duplicates are dropped, keeping first occurrence order. Empty input
    yields an empty tuple; callers decide the fallback.

    Raises:
        UnknownModeError: On the first name that is not a known mode.
    """
    modes: list[LauncherMode] = []
    for item in names:
        for part in str(item).split(","):
            if not part.strip():
                continue
            mode = LauncherMode.parse(part)
            if mode not in modes:
                modes.append(mode)
    return tuple(modes)
