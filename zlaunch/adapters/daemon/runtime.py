"""The launcher daemon process.

LauncherDaemon is the single context object owning the session, the module
registry, the compositor bridge and the control endpoint. Startup order:

1. Load configuration
2. Build the registry and register every module source
3. Bind the control socket (fails fast if another daemon owns it)
4. Start the clipboard and desktop watchers and the initial refresh
5. Serve requests until quit, SIGTERM or SIGINT
"""

import logging
import os
import signal
import sys
import threading
import time
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Any

from zlaunch.adapters.compositor import BLUR_LAYER_RULES, CompositorBridge, detect_compositor
from zlaunch.adapters.config.toml_config_provider import TomlConfigProvider
from zlaunch.adapters.daemon.handler import CommandHandler
from zlaunch.adapters.daemon.server import ControlServer
from zlaunch.adapters.sources.actions import ActionSource
from zlaunch.adapters.sources.applications import ApplicationSource, DesktopWatcher
from zlaunch.adapters.sources.clipboard import ClipboardRead, ClipboardSource, ClipboardWatcher
from zlaunch.adapters.sources.emoji import EmojiSource
from zlaunch.adapters.sources.windows import WindowSource
from zlaunch.core.clipboard import ClipboardHistory
from zlaunch.core.errors import ExitCode
from zlaunch.core.query_worker import QueryWorker
from zlaunch.core.registry import ModuleRegistry, modules_for_mode
from zlaunch.core.session import Session
from zlaunch.core.streams import StreamSupervisor
from zlaunch.core.themes import ThemeCatalog, ThemeController, ThemeSource
from zlaunch.domain.config import ZlaunchConfig
from zlaunch.domain.entities import ScoredEntry, SessionSnapshot
from zlaunch.domain.exceptions import ConfigLoadError, StartupFatal
from zlaunch.domain.value_objects import LauncherMode, Module
from zlaunch.ports.compositor import Compositor
from zlaunch.ports.config import ConfigProvider
from zlaunch.shared.config_io import (
    get_global_config_path,
    get_log_path,
    get_socket_path,
    get_themes_dir,
)

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


class LauncherDaemon:
    """Top-level context object of a running daemon.

    Args:
        socket_path: Control socket path (default: $XDG_RUNTIME_DIR/zlaunch.sock)
        config_path: Config file (default: ~/.config/zlaunch/config.toml)
        themes_dir: User theme directory (default: ~/.config/zlaunch/themes)
        detector: Compositor detection function.
        clipboard_reader: Clipboard reader for the watcher (default: wl-paste).
        app_dirs: Application directories (default: XDG data dirs).
        start_watchers: Start the clipboard and desktop watcher threads.
    """

    def __init__(
        self,
        socket_path: Path | None = None,
        config_path: Path | None = None,
        themes_dir: Path | None = None,
        detector: Callable[..., Compositor] = detect_compositor,
        clipboard_reader: Callable[[], ClipboardRead | None] | None = None,
        app_dirs: list[Path] | None = None,
        start_watchers: bool = True,
    ) -> None:
        self.socket_path = socket_path or get_socket_path()
        self.config_path = config_path or get_global_config_path()
        self.themes_dir = themes_dir or get_themes_dir()
        self._detector = detector
        self._clipboard_reader = clipboard_reader
        self._app_dirs = app_dirs
        self._start_watchers = start_watchers

        self.catalog = ThemeCatalog(user_dir=self.themes_dir)
        self._config_provider: ConfigProvider = TomlConfigProvider(
            known_themes=self.catalog.names
        )

        self.config: ZlaunchConfig | None = None
        self.session: Session | None = None
        self.registry: ModuleRegistry | None = None
        self.bridge: CompositorBridge | None = None
        self.themes: ThemeController | None = None
        self.history: ClipboardHistory | None = None
        self.server: ControlServer | None = None
        self.query_worker: QueryWorker | None = None
        self.streams: StreamSupervisor | None = None
        self.clipboard_watcher: ClipboardWatcher | None = None
        self.desktop_watcher: DesktopWatcher | None = None

        self.started_at: float | None = None
        self.last_delivery: dict[str, Any] | None = None
        self._lock = threading.Lock()
        self._stopped = False

    # ------------------------------------------------------------------
    # Startup
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Load config, build components and bind the control socket.

        Nothing is left running if this raises.

        Raises:
            ConfigLoadError: If the config file exists but is invalid.
            AddressInUseError: If another daemon owns the control socket.
        """
        config = self._config_provider.load(self.config_path)
        self.config = config

        self.registry = ModuleRegistry()
        self.bridge = CompositorBridge(self._detector, timeout=config.compositor_timeout)
        self.themes = ThemeController(
            self.catalog, current=config.theme, config_path=self.config_path
        )
        self.history = ClipboardHistory(config.clipboard_capacity)
        self.session = Session(
            default_modes=config.resolved_default_modes(),
            sticky_query=config.sticky_query,
            on_quit=self.request_shutdown,
        )

        applications = ApplicationSource(self._app_dirs)
        for source in (
            applications,
            WindowSource(self.bridge),
            ClipboardSource(self.history),
            EmojiSource(),
            ActionSource(),
            ThemeSource(self.catalog),
        ):
            self.registry.register(source)
        self.registry.set_search_providers(config.search_providers)

        self.server = ControlServer(self.socket_path, CommandHandler(self))
        try:
            self.server.bind()
        except StartupFatal:
            self.registry.close()
            self.bridge.close()
            self.server = None
            raise

        self.query_worker = QueryWorker(self.registry, self.modules_for, self._deliver)
        self.query_worker.attach(self.session)
        self.streams = StreamSupervisor()
        self.streams.attach(self.session)

        if self._start_watchers:
            self.clipboard_watcher = ClipboardWatcher(
                self.history,
                on_change=lambda: self.registry.refresh(Module.CLIPBOARD),
                reader=self._clipboard_reader,
                interval=config.clipboard_poll_interval,
            )
            self.clipboard_watcher.start()
            self.desktop_watcher = DesktopWatcher(
                applications,
                on_change=self._applications_changed,
                interval=config.desktop_watch_interval,
            )
            self.desktop_watcher.start()

        self._initial_refresh()
        if config.hyprland_auto_blur and config.enable_transparency:
            threading.Thread(
                target=self.bridge.apply_layer_rule,
                args=(BLUR_LAYER_RULES,),
                name="layer-rules",
                daemon=True,
            ).start()

        self.started_at = time.time()
        logger.info(f"Daemon started (pid {os.getpid()})")

    def _initial_refresh(self) -> None:
        for module in self.registry.modules:
            if module is Module.SEARCH:
                continue  # built by set_search_providers
            if self.registry.snapshot(module).generation == 0:
                self.registry.refresh_async(module)

    def _applications_changed(self) -> None:
        self.registry.invalidate(Module.APPLICATIONS)
        self.registry.refresh_async(Module.APPLICATIONS)

    def _deliver(self, snapshot: SessionSnapshot, results: list[ScoredEntry]) -> None:
        self.last_delivery = {
            "generation": snapshot.generation,
            "mode": snapshot.active_mode.value,
            "results": len(results),
        }
        logger.debug(
            f"Delivered {len(results)} result(s) for generation {snapshot.generation}"
        )

    def modules_for(self, mode: LauncherMode) -> tuple[Module, ...]:
        """Modules a mode shows under the current config."""
        return modules_for_mode(mode, self.config.resolved_combined_modules())

    # ------------------------------------------------------------------
    # Runtime operations
    # ------------------------------------------------------------------

    def reload(self) -> ZlaunchConfig:
        """Re-read config and apply it without dropping runtime state.

        The clipboard history and a visible session are kept. Search
        providers, the theme, default modes and the compositor timeout are
        replaced.

        Raises:
            ConfigLoadError: If the file is invalid; the old config stays.
        """
        config = self._config_provider.load(self.config_path)
        old = self.config
        with self._lock:
            self.config = config

        self.registry.set_search_providers(config.search_providers)
        self.themes.apply_config(config.theme)
        self.session.configure(config.resolved_default_modes(), config.sticky_query)
        self.bridge.timeout = config.compositor_timeout
        self.registry.invalidate(Module.THEMES)
        self.registry.refresh_async(Module.THEMES)

        if old is not None and old.clipboard_capacity != config.clipboard_capacity:
            logger.warning("clipboard_capacity changes take effect after a restart")
        logger.info("Configuration reloaded")
        return config

    def health(self) -> dict[str, Any]:
        from zlaunch.version import __version__

        return {"status": "ok", "pid": os.getpid(), "version": __version__}

    def status(self) -> dict[str, Any]:
        """Session snapshot, per-module stats and daemon metadata."""
        uptime = time.time() - self.started_at if self.started_at else 0.0
        stats = self.registry.stats()
        for entry in stats:
            entry["policy"] = self._policy_of(entry["module"])
        return {
            "pid": os.getpid(),
            "uptime": round(uptime, 1),
            "session": self.session.snapshot().to_dict(),
            "modules": stats,
            "compositor": self.bridge.name,
            "theme": self.themes.current(),
            "clipboard_items": len(self.history),
            "requests_served": self.server.requests_served if self.server else 0,
            "last_delivery": self.last_delivery,
        }

    def _policy_of(self, module_name: str) -> str | None:
        source = self.registry.source(Module(module_name))
        return source.policy.value if source is not None else None

    # ------------------------------------------------------------------
    # Shutdown
    # ------------------------------------------------------------------

    def request_shutdown(self) -> None:
        """Ask the accept loop to stop; shutdown() then runs on the main thread."""
        logger.info("Shutdown requested")
        if self.server is not None:
            self.server.shutdown()

    def shutdown(self) -> None:
        """Tear everything down. Idempotent."""
        with self._lock:
            if self._stopped:
                return
            self._stopped = True

        if self.server is not None:
            self.server.close()
        if self.bridge is not None:
            self.bridge.close()
        for watcher in (self.clipboard_watcher, self.desktop_watcher):
            if watcher is not None:
                watcher.stop()
        if self.streams is not None:
            self.streams.cancel_active()
        if self.query_worker is not None:
            self.query_worker.close()
        if self.registry is not None:
            self.registry.close()
        logger.info("Daemon stopped")

    def install_signal_handlers(self) -> None:
        """SIGTERM/SIGINT shut down; SIGHUP reloads. Main thread only."""

        def stop_handler(signum, frame):
            logger.info(f"Received signal {signum}, shutting down...")
            self.request_shutdown()

        def reload_handler(signum, frame):
            logger.info("Received SIGHUP, reloading configuration")
            threading.Thread(target=self._reload_logged, name="reload", daemon=True).start()

        signal.signal(signal.SIGTERM, stop_handler)
        signal.signal(signal.SIGINT, stop_handler)
        signal.signal(signal.SIGHUP, reload_handler)

    def _reload_logged(self) -> None:
        try:
            self.reload()
        except ConfigLoadError as e:
            logger.warning(f"Reload rejected: {e.message}")

    def run(self) -> int:
        """Start, serve until shutdown, and return the process exit code."""
        try:
            self.start()
        except StartupFatal as e:
            logger.error(e.message)
            if e.hint:
                logger.error(f"Hint: {e.hint}")
            return e.exit_code

        if threading.current_thread() is threading.main_thread():
            self.install_signal_handlers()
        try:
            self.server.serve_forever()
        finally:
            self.shutdown()
        return ExitCode.OK


def setup_logging(level: str = "INFO", log_path: Path | None = None) -> None:
    """Configure daemon logging to the state-dir log file and stderr."""
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    log_path = log_path or get_log_path()
    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.insert(0, logging.FileHandler(log_path))
    except OSError as e:
        print(f"zlaunch: cannot open log file {log_path}: {e}", file=sys.stderr)

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=handlers,
        force=True,
    )


def run_daemon(
    socket_path: Path | None = None,
    config_path: Path | None = None,
) -> int:
    """Run a daemon in the current process and return its exit code."""
    return int(LauncherDaemon(socket_path=socket_path, config_path=config_path).run())


def main(argv: Sequence[str] | None = None) -> None:
    """Entry point for the daemon process (python -m zlaunch.adapters.daemon)."""
    import argparse

    parser = argparse.ArgumentParser(description="zlaunch launcher daemon")
    parser.add_argument("--socket", type=Path, default=None, help="Unix socket path")
    parser.add_argument("--config", type=Path, default=None, help="Config file path")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="Log level",
    )
    args = parser.parse_args(argv)

    setup_logging(args.log_level)
    sys.exit(run_daemon(socket_path=args.socket, config_path=args.config))


if __name__ == "__main__":
    main()
