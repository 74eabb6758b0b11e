"""Domain entities for zlaunch.

Entries and indexes are immutable: a module's refresh produces a new
generation of entries wrapped in a new Index, which the registry swaps in
as a single reference assignment.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any

from zlaunch.domain.value_objects import LauncherMode, Module


class ActionKind(str, Enum):
    """What executing an entry does."""

    LAUNCH = "launch"  # run a desktop entry command line
    WINDOW = "window"  # focus a compositor window
    CLIPBOARD = "clipboard"  # paste a clipboard slot
    URL = "url"  # open a URL
    EMOJI = "emoji"  # copy an emoji character
    COMMAND = "command"  # run a system command
    THEME = "theme"  # switch the active theme


@dataclass(frozen=True)
class ActionPayload:
    """Opaque payload attached to an entry.

    Attributes:
        kind: Category of action.
        value: Kind-specific data (command line, window id, URL, ...).
    """

    kind: ActionKind
    value: str

    def to_dict(self) -> dict[str, str]:
        return {"kind": self.kind.value, "value": self.value}


@dataclass(frozen=True)
class Entry:
    """A single searchable candidate produced by a module's index.

    Attributes:
        id: Stable identifier, unique within its module.
        title: Display title; fuzzy matching runs against this.
        module: Module whose index produced this entry.
        action: What happens when the entry is executed.
        subtitle: Optional secondary line.
        icon: Optional icon name or path.
    """

    id: str
    title: str
    module: Module
    action: ActionPayload
    subtitle: str | None = None
    icon: str | None = None

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("Entry id cannot be empty")

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "subtitle": self.subtitle,
            "icon": self.icon,
            "module": self.module.value,
            "action": self.action.to_dict(),
        }


@dataclass(frozen=True)
class Index:
    """The current-generation entries of one module plus bookkeeping.

    Attributes:
        module: Owning module.
        entries: Entries in index order.
        generation: Monotonic counter, bumped on every swap.
        refreshed_at: Wall-clock time of the refresh that built it (0 = never).
        refresh_cost: Seconds spent building it.
        stale: True when the index is known to be out of date or failed.
        error: Failure message from the last refresh, if any.
    """

    module: Module
    entries: tuple[Entry, ...] = ()
    generation: int = 0
    refreshed_at: float = 0.0
    refresh_cost: float = 0.0
    stale: bool = True
    error: str | None = None

    @staticmethod
    def empty(module: Module) -> Index:
        """Create the placeholder index a module starts with."""
        return Index(module=module)

    def mark_stale(self) -> Index:
        return replace(self, stale=True)

    def __len__(self) -> int:
        return len(self.entries)

    def stats(self) -> dict[str, Any]:
        return {
            "module": self.module.value,
            "entries": len(self.entries),
            "generation": self.generation,
            "refreshed_at": self.refreshed_at,
            "refresh_cost": round(self.refresh_cost, 4),
            "stale": self.stale,
            "error": self.error,
        }


@dataclass(frozen=True)
class Query:
    """A transient query value.

    Attributes:
        text: Raw query text as typed.
        modules: Modules the query applies to, in section order.
        trigger: Search-provider trigger detected in the text, if any.
    """

    text: str
    modules: tuple[Module, ...] = ()
    trigger: str | None = None

    @property
    def is_empty(self) -> bool:
        return not self.text.strip()


@dataclass(frozen=True)
class ScoredEntry:
    """An entry matched against a query.

    Attributes:
        entry: The matched entry.
        score: Match score; 0.0 for unscored (empty query) results.
        positions: Indices into the entry title that matched, for highlighting.
    """

    entry: Entry
    score: float
    positions: tuple[int, ...] = ()

    @property
    def module(self) -> Module:
        return self.entry.module

    def to_dict(self) -> dict[str, Any]:
        data = self.entry.to_dict()
        data["score"] = round(self.score, 3)
        data["positions"] = list(self.positions)
        return data


@dataclass(frozen=True)
class WindowInfo:
    """A window as reported by the compositor.

    Attributes:
        id: Compositor-specific opaque identifier.
        title: Window title.
        app_id: Application class / app id.
        workspace: Workspace identifier, if reported.
        focused: True for the currently focused window.
    """

    id: str
    title: str
    app_id: str
    workspace: str | None = None
    focused: bool = False


@dataclass(frozen=True)
class ClipboardItem:
    """A clipboard snapshot held in the in-memory history.

    Attributes:
        seq: Monotonic sequence number, stable for the item's lifetime.
        content: Text content, or a description for binary content.
        mime: Mime type the content was read as.
        timestamp: Capture time (epoch seconds).
        data: Raw bytes for binary content such as images.
    """

    seq: int
    content: str
    mime: str
    timestamp: float
    data: bytes | None = field(default=None, repr=False)

    @property
    def kind(self) -> str:
        """Content kind: text, image, files or rich_text."""
        if self.mime.startswith("image/"):
            return "image"
        if self.mime == "text/uri-list":
            return "files"
        if self.mime == "text/html":
            return "rich_text"
        return "text"

    def preview(self, max_chars: int = 30) -> str:
        """One-line preview of the content, truncated with an ellipsis."""
        if self.kind == "image":
            return f"Image ({self.mime})"
        if self.kind == "files":
            paths = [p for p in self.content.splitlines() if p.strip()]
            names = [p.rstrip("/").rsplit("/", 1)[-1] for p in paths]
            text = ", ".join(names)
        else:
            text = " ".join(self.content.split())
        if len(text) > max_chars:
            return text[:max_chars] + "..."
        return text


@dataclass(frozen=True)
class ThemeInfo:
    """A theme available to the launcher."""

    name: str
    is_bundled: bool

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "is_bundled": self.is_bundled}


@dataclass(frozen=True)
class SessionSnapshot:
    """Immutable view of the session handed to subscribers and clients.

    Attributes:
        visible: Whether the picker is shown.
        active_mode: Mode currently displayed.
        cycle: Ordered modes the user can cycle through.
        query: Current query text.
        selection: Selection cursor.
        generation: Session generation at the time of the snapshot.
    """

    visible: bool
    active_mode: LauncherMode
    cycle: tuple[LauncherMode, ...]
    query: str
    selection: int
    generation: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "visible": self.visible,
            "mode": self.active_mode.value,
            "cycle": [mode.value for mode in self.cycle],
            "query": self.query,
            "selection": self.selection,
            "generation": self.generation,
        }
