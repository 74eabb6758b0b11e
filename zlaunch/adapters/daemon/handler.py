"""Command dispatch for the control endpoint.

Each request is one bounded read-then-write cycle against the session, the
registry, the theme controller or the compositor bridge. Domain errors are
mapped to error codes here so the server never sees them.
"""

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from zlaunch.adapters.daemon.protocol import ErrorCode, ProtocolError, Request, Response
from zlaunch.domain.exceptions import (
    CompositorUnavailable,
    ConfigLoadError,
    UnknownModeError,
    UnknownModuleError,
    ValidationError,
    WindowNotFound,
)
from zlaunch.domain.value_objects import LauncherMode, Module, parse_modes

if TYPE_CHECKING:
    from zlaunch.adapters.daemon.runtime import LauncherDaemon

logger = logging.getLogger(__name__)

DEFAULT_QUERY_LIMIT = 50


def _modes_arg(args: dict[str, Any]) -> tuple[LauncherMode, ...] | None:
    raw = args.get("modes")
    if raw is None:
        return None
    if isinstance(raw, str):
        raw = [raw]
    if not isinstance(raw, list) or not all(isinstance(m, str) for m in raw):
        raise ProtocolError("'modes' must be a list of strings")
    return parse_modes(raw) or None


def _str_arg(args: dict[str, Any], name: str, default: str | None = None) -> str:
    value = args.get(name, default)
    if value is None:
        raise ProtocolError(f"Missing '{name}' argument")
    if not isinstance(value, str):
        raise ProtocolError(f"'{name}' must be a string")
    return value


def _int_arg(args: dict[str, Any], name: str, default: int) -> int:
    value = args.get(name, default)
    if not isinstance(value, int) or isinstance(value, bool):
        raise ProtocolError(f"'{name}' must be an integer")
    return value


class CommandHandler:
    """Maps control commands onto the daemon's components.

    Args:
        daemon: Daemon context owning the session, registry, themes and
            compositor bridge.
    """

    def __init__(self, daemon: "LauncherDaemon") -> None:
        self._daemon = daemon
        self._commands: dict[str, Callable[[dict[str, Any]], Any]] = {
            "health": self._health,
            "show": self._show,
            "hide": self._hide,
            "toggle": self._toggle,
            "quit": self._quit,
            "reload": self._reload,
            "theme": self._theme,
            "status": self._status,
            "query": self._query,
            "input": self._input,
            "cycle": self._cycle,
            "refresh": self._refresh,
            "activate": self._activate,
        }

    @property
    def commands(self) -> list[str]:
        return sorted(self._commands)

    def handle(self, request: Request) -> Response:
        """Run one request and build its reply. Never raises."""
        command = self._commands.get(request.command)
        if command is None:
            return Response.error(
                ErrorCode.PROTOCOL, f"Unknown command: {request.command}", request.id
            )

        try:
            result = command(request.args)
        except ProtocolError as e:
            return Response.error(ErrorCode.PROTOCOL, str(e), request.id)
        except (WindowNotFound, UnknownModuleError) as e:
            return Response.error(ErrorCode.NOT_FOUND, e.message, request.id)
        except ValidationError as e:
            return Response.error(ErrorCode.VALIDATION, e.message, request.id)
        except ConfigLoadError as e:
            logger.warning(f"Reload rejected: {e.message}")
            return Response.error(ErrorCode.VALIDATION, e.message, request.id)
        except CompositorUnavailable as e:
            logger.warning(f"Compositor unavailable: {e.message}")
            return Response.error(ErrorCode.COMPOSITOR_UNAVAILABLE, e.message, request.id)
        except Exception as e:
            logger.exception(f"Error handling {request.command}: {e}")
            return Response.error(ErrorCode.INTERNAL, f"Internal error: {e}", request.id)

        return Response.success(result, request.id)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def _health(self, args: dict[str, Any]) -> dict[str, Any]:
        return self._daemon.health()

    def _show(self, args: dict[str, Any]) -> dict[str, Any]:
        return self._daemon.session.show(_modes_arg(args)).to_dict()

    def _hide(self, args: dict[str, Any]) -> dict[str, Any]:
        return self._daemon.session.hide().to_dict()

    def _toggle(self, args: dict[str, Any]) -> dict[str, Any]:
        return self._daemon.session.toggle(_modes_arg(args)).to_dict()

    def _quit(self, args: dict[str, Any]) -> str:
        self._daemon.session.quit()
        return "ok"

    def _reload(self, args: dict[str, Any]) -> str:
        self._daemon.reload()
        return "ok"

    def _theme(self, args: dict[str, Any]) -> Any:
        themes = self._daemon.themes
        action = _str_arg(args, "action", "get")
        if action == "get":
            return themes.current()
        if action == "list":
            return [theme.to_dict() for theme in themes.list_themes()]
        if action == "set":
            themes.set(_str_arg(args, "name"))
            return "ok"
        raise ProtocolError(f"Unknown theme action: {action}")

    def _status(self, args: dict[str, Any]) -> dict[str, Any]:
        return self._daemon.status()

    def _query(self, args: dict[str, Any]) -> list[dict[str, Any]]:
        text = _str_arg(args, "text", "")
        limit = _int_arg(args, "limit", DEFAULT_QUERY_LIMIT)
        if limit <= 0:
            raise ValidationError(f"limit must be positive, got {limit}")

        modes = _modes_arg(args) or (self._daemon.session.snapshot().active_mode,)
        modules: list[Module] = []
        for mode in modes:
            for module in self._daemon.modules_for(mode):
                if module not in modules:
                    modules.append(module)

        results = self._daemon.registry.query(modules, text, limit=limit)
        return [result.to_dict() for result in results]

    def _input(self, args: dict[str, Any]) -> dict[str, Any]:
        return self._daemon.session.set_query(_str_arg(args, "text")).to_dict()

    def _cycle(self, args: dict[str, Any]) -> dict[str, Any]:
        direction = _str_arg(args, "direction", "next")
        if direction == "next":
            return self._daemon.session.next_mode().to_dict()
        if direction == "prev":
            return self._daemon.session.prev_mode().to_dict()
        raise ValidationError(f"Unknown cycle direction: '{direction}' (use next or prev)")

    def _refresh(self, args: dict[str, Any]) -> list[dict[str, Any]]:
        registry = self._daemon.registry
        name = args.get("module")
        if name is None:
            return [index.stats() for index in registry.refresh_all()]
        if not isinstance(name, str):
            raise ProtocolError("'module' must be a string")
        try:
            module = Module.parse(name)
        except UnknownModeError as e:
            raise UnknownModuleError(name) from e
        try:
            return [registry.refresh(module).stats()]
        except KeyError as e:
            raise UnknownModuleError(name) from e

    def _activate(self, args: dict[str, Any]) -> str:
        window_id = _str_arg(args, "window_id")
        self._daemon.bridge.activate_window(window_id)
        return "ok"
