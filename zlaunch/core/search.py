"""Web search shortcut detection and URL building."""

from collections.abc import Sequence
from dataclasses import dataclass
from urllib.parse import quote_plus

from zlaunch.domain.config import SearchProviderConfig
from zlaunch.domain.entities import ActionKind, ActionPayload, Entry
from zlaunch.domain.value_objects import Module, RefreshPolicy


@dataclass(frozen=True)
class Triggered:
    """Input started with a provider trigger followed by a query."""

    provider: SearchProviderConfig
    query: str


@dataclass(frozen=True)
class Fallback:
    """Input did not start with a trigger; any provider may be offered."""

    query: str


SearchDetection = Triggered | Fallback


def build_url(provider: SearchProviderConfig, query: str) -> str:
    """Substitute a URL-encoded query into the provider's template."""
    return provider.url.replace("{query}", quote_plus(query.strip()))


def detect_search(
    text: str, providers: Sequence[SearchProviderConfig]
) -> SearchDetection | None:
    """Classify raw input against the configured triggers.

    Args:
        text: Raw query text.
        providers: Configured providers; the longest matching trigger wins.

    Returns:
        Triggered when the input is "<trigger> <query>", None when it is a
        bare trigger with nothing to search for, otherwise Fallback.
    """
    stripped = text.strip()
    if not stripped:
        return None
    for provider in sorted(providers, key=lambda p: len(p.trigger), reverse=True):
        trigger = provider.trigger
        if stripped == trigger:
            return None
        if stripped.startswith(trigger + " "):
            rest = stripped[len(trigger):].strip()
            if not rest:
                return None
            return Triggered(provider=provider, query=rest)
    return Fallback(query=stripped)


def _slug(name: str) -> str:
    return "-".join(name.lower().split())


def provider_entry(provider: SearchProviderConfig, query: str) -> Entry:
    """Entry that opens the provider's results page for a query."""
    return Entry(
        id=f"search-{_slug(provider.name)}",
        title=f"Search {provider.name} for '{query.strip()}'",
        subtitle=provider.trigger,
        icon=provider.icon,
        module=Module.SEARCH,
        action=ActionPayload(kind=ActionKind.URL, value=build_url(provider, query)),
    )


class SearchProviderSource:
    """Index source listing the configured providers."""

    policy = RefreshPolicy.STATIC
    module = Module.SEARCH

    def __init__(self, providers: Sequence[SearchProviderConfig]) -> None:
        self._providers = tuple(providers)

    def build(self) -> list[Entry]:
        return [
            Entry(
                id=f"search-{_slug(p.name)}",
                title=f"Search {p.name}",
                subtitle=f"{p.trigger}  {p.url}",
                icon=p.icon,
                module=Module.SEARCH,
                action=ActionPayload(kind=ActionKind.URL, value=p.url),
            )
            for p in self._providers
        ]
