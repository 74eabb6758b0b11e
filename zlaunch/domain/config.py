"""Config domain models for zlaunch.

Configuration is stored in ~/.config/zlaunch/config.toml and represents user
preferences for window geometry, theme, modes and search providers. The
daemon receives it as an immutable snapshot at startup and on reload.
"""

from dataclasses import dataclass, field, fields, replace
from typing import Any

from zlaunch.domain.exceptions import UnknownModeError
from zlaunch.domain.value_objects import (
    DEFAULT_COMBINED_MODULES,
    LauncherMode,
    Module,
    parse_modes,
)


@dataclass(frozen=True)
class SearchProviderConfig:
    """A web search shortcut.

    Attributes:
        name: Display name (e.g., "Google").
        trigger: Prefix that selects the provider (e.g., "!g").
        url: URL template containing a {query} placeholder.
        icon: Icon name shown next to the entry.

    Raises:
        ValueError: If name, trigger or url is empty.
    """

    name: str
    trigger: str
    url: str
    icon: str = "magnifying-glass"

    def __post_init__(self) -> None:
        """Validate provider after initialization."""
        for attr in ("name", "trigger", "url"):
            if not getattr(self, attr):
                raise ValueError(f"search provider {attr} cannot be empty")

    def to_dict(self) -> dict[str, str]:
        return {
            "name": self.name,
            "trigger": self.trigger,
            "url": self.url,
            "icon": self.icon,
        }


def default_search_providers() -> tuple[SearchProviderConfig, ...]:
    return (
        SearchProviderConfig(
            name="Google",
            trigger="!g",
            url="https://www.google.com/search?q={query}",
            icon="magnifying-glass",
        ),
        SearchProviderConfig(
            name="DuckDuckGo",
            trigger="!d",
            url="https://duckduckgo.com/?q={query}",
            icon="globe",
        ),
        SearchProviderConfig(
            name="Wikipedia",
            trigger="!wiki",
            url="https://en.wikipedia.org/wiki/Special:Search?search={query}",
            icon="book-open",
        ),
        SearchProviderConfig(
            name="YouTube",
            trigger="!yt",
            url="https://www.youtube.com/results?search_query={query}",
            icon="youtube-logo",
        ),
    )


@dataclass(frozen=True)
class ZlaunchConfig:
    """Complete zlaunch configuration.

    Attributes:
        theme: Active theme name.
        window_width: Picker width in pixels.
        window_height: Picker height in pixels.
        hyprland_auto_blur: Apply blur layer rules on Hyprland at startup.
        enable_transparency: Whether the picker is drawn translucent.
        default_modes: Mode names shown by a bare `show`; empty means combined.
        combined_modules: Module order for combined mode; None means default.
        disabled_modules: Deprecated; modules removed from combined mode.
        sticky_query: Keep the query across hide/show.
        clipboard_capacity: Maximum clipboard history items kept in memory.
        clipboard_poll_interval: Seconds between clipboard polls.
        compositor_timeout: Seconds before a compositor call is abandoned.
        desktop_watch_interval: Seconds between desktop directory checks.
        search_providers: Configured web search shortcuts.

    Raises:
        ValueError: If sizes, capacity or intervals are not positive.
    """

    theme: str = "default"
    window_width: float = 600.0
    window_height: float = 400.0
    hyprland_auto_blur: bool = True
    enable_transparency: bool = True
    default_modes: tuple[str, ...] = ()
    combined_modules: tuple[str, ...] | None = None
    disabled_modules: tuple[str, ...] | None = None
    sticky_query: bool = False
    clipboard_capacity: int = 100
    clipboard_poll_interval: float = 0.5
    compositor_timeout: float = 2.0
    desktop_watch_interval: float = 5.0
    search_providers: tuple[SearchProviderConfig, ...] = field(
        default_factory=default_search_providers
    )

    def __post_init__(self) -> None:
        """Validate config after initialization."""
        if self.window_width <= 0 or self.window_height <= 0:
            raise ValueError(
                f"window size must be positive, got "
                f"{self.window_width}x{self.window_height}"
            )
        if self.clipboard_capacity <= 0:
            raise ValueError(
                f"clipboard_capacity must be positive, got {self.clipboard_capacity}"
            )
        for name in (
            "clipboard_poll_interval",
            "compositor_timeout",
            "desktop_watch_interval",
        ):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive, got {getattr(self, name)}")
        if not self.theme:
            raise ValueError("theme cannot be empty")

    @staticmethod
    def default() -> "ZlaunchConfig":
        """Create a config with all default values."""
        return ZlaunchConfig()

    @classmethod
    def from_partial(cls, base: "ZlaunchConfig", data: dict[str, Any]) -> "ZlaunchConfig":
        """Overlay parsed TOML data onto a base config.

        Unknown keys are ignored; keys with the wrong type raise.

        Args:
            base: Config providing values for keys absent from data.
            data: Parsed TOML document.

        Returns:
            New ZlaunchConfig with data's values applied.

        Raises:
            ValueError: If a value has the wrong type or fails validation.
        """
        known = {f.name for f in fields(cls)}
        updates: dict[str, Any] = {}
        for key, value in data.items():
            if key not in known:
                continue
            updates[key] = _coerce(key, value)
        return replace(base, **updates)

    def resolved_default_modes(self) -> tuple[LauncherMode, ...]:
        """Default mode cycle, falling back to combined.

        Invalid names are dropped here; validate_config reports them.
        """
        modes: list[LauncherMode] = []
        for name in self.default_modes:
            try:
                parsed = parse_modes([name])
            except UnknownModeError:
                continue
            modes.extend(m for m in parsed if m not in modes)
        return tuple(modes) or (LauncherMode.COMBINED,)

    def resolved_combined_modules(self) -> tuple[Module, ...]:
        """Module order used when combined mode is active."""
        if self.combined_modules is None:
            modules = list(DEFAULT_COMBINED_MODULES)
        else:
            modules = []
            for name in self.combined_modules:
                try:
                    module = Module.parse(name)
                except UnknownModeError:
                    continue
                if module not in modules:
                    modules.append(module)
        if self.disabled_modules:
            disabled = set()
            for name in self.disabled_modules:
                try:
                    disabled.add(Module.parse(name))
                except UnknownModeError:
                    continue
            modules = [m for m in modules if m not in disabled]
        return tuple(modules)


def _coerce(key: str, value: Any) -> Any:
    """Convert a raw TOML value to the field's type."""
    if key == "search_providers":
        if not isinstance(value, list):
            raise ValueError("search_providers must be an array of tables")
        providers = []
        for item in value:
            if not isinstance(item, dict):
                raise ValueError("each search provider must be a table")
            providers.append(
                SearchProviderConfig(
                    name=str(item.get("name", "")),
                    trigger=str(item.get("trigger", "")),
                    url=str(item.get("url", "")),
                    icon=str(item.get("icon", "magnifying-glass")),
                )
            )
        return tuple(providers)
    if key in ("default_modes", "combined_modules", "disabled_modules"):
        if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
            raise ValueError(f"{key} must be a list of strings")
        return tuple(value)
    if key in ("hyprland_auto_blur", "enable_transparency", "sticky_query"):
        if not isinstance(value, bool):
            raise ValueError(f"{key} must be a boolean")
        return value
    if key == "theme":
        if not isinstance(value, str):
            raise ValueError("theme must be a string")
        return value
    if key == "clipboard_capacity":
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValueError("clipboard_capacity must be an integer")
        return value
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{key} must be a number")
    return float(value)


def validate_config(config: ZlaunchConfig, known_themes: set[str] | None = None) -> list[str]:
    """Collect non-fatal warnings about a loaded config.

    Args:
        config: Loaded configuration.
        known_themes: Theme names available; None skips the theme check.

    Returns:
        Human-readable warnings; empty when the config looks sane.
    """
    warnings: list[str] = []

    if config.window_width < 300:
        warnings.append(
            f"window_width {config.window_width:.0f} is very small (min recommended: 300)"
        )
    elif config.window_width > 2000:
        warnings.append(
            f"window_width {config.window_width:.0f} is very large (max recommended: 2000)"
        )
    if config.window_height < 200:
        warnings.append(
            f"window_height {config.window_height:.0f} is very small (min recommended: 200)"
        )
    elif config.window_height > 1500:
        warnings.append(
            f"window_height {config.window_height:.0f} is very large (max recommended: 1500)"
        )

    for provider in config.search_providers:
        if "{query}" not in provider.url:
            warnings.append(
                f"search provider '{provider.name}' url has no {{query}} placeholder"
            )
        if not provider.url.startswith(("http://", "https://")):
            warnings.append(
                f"search provider '{provider.name}' url should start with http:// or https://"
            )
        if not provider.trigger.startswith(("!", ":")):
            warnings.append(
                f"search provider '{provider.name}' trigger '{provider.trigger}' "
                "should start with '!' or ':'"
            )

    for key in ("default_modes", "combined_modules", "disabled_modules"):
        for name in getattr(config, key) or ():
            try:
                parse_modes([name])
            except UnknownModeError:
                warnings.append(f"{key} contains unknown mode '{name}'")

    if config.disabled_modules:
        warnings.append("disabled_modules is deprecated; use combined_modules instead")

    if known_themes is not None and config.theme not in known_themes:
        warnings.append(f"theme '{config.theme}' not found, falling back to default")

    return warnings
