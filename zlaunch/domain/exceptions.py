"""Domain exceptions for zlaunch.

These exceptions represent rule violations and recoverable failures inside
the daemon. Per-request errors are caught by the control endpoint and turned
into structured replies; startup errors are caught by the daemon entrypoint
and turned into distinct exit codes.
"""


class ZlaunchDomainError(Exception):
    """Base exception for all domain errors.

    Attributes:
        message: User-facing error message.
        hint: Optional actionable suggestion.
    """

    def __init__(self, message: str, hint: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.hint = hint


class ValidationError(ZlaunchDomainError):
    """Raised when a request is well-formed but names something invalid."""

    pass


class UnknownModeError(ValidationError):
    """Raised when a mode name does not match any known mode or alias."""

    def __init__(self, name: str) -> None:
        super().__init__(
            f"Unknown mode: '{name}'",
            hint="Valid modes: combined, applications, windows, clipboard, "
            "emojis, actions, search, themes",
        )
        self.name = name


class ThemeNotFoundError(ValidationError):
    """Raised when setting a theme that is neither bundled nor user-provided."""

    def __init__(self, name: str) -> None:
        super().__init__(
            f"Theme '{name}' not found",
            hint="Run 'zlaunch theme list' to see available themes",
        )
        self.name = name


class InvalidStateError(ValidationError):
    """Raised when a session operation is not valid in the current state."""

    pass


class CompositorUnavailable(ZlaunchDomainError):
    """Raised when the compositor IPC socket cannot be reached in time."""

    pass


class WindowNotFound(ZlaunchDomainError):
    """Raised when activating a window id that no longer exists."""

    def __init__(self, window_id: str) -> None:
        super().__init__(f"Window not found: {window_id}")
        self.window_id = window_id


class IndexRefreshFailure(ZlaunchDomainError):
    """Raised when a module's index cannot be rebuilt from its source."""

    def __init__(self, module: str, reason: str) -> None:
        super().__init__(f"Failed to refresh {module} index: {reason}")
        self.module = module
        self.reason = reason


class StartupFatal(ZlaunchDomainError):
    """Raised when the daemon cannot start. Carries the process exit code."""

    exit_code: int = 1


class AddressInUseError(StartupFatal):
    """Raised when another daemon already owns the control socket."""

    exit_code = 4

    def __init__(self, socket_path: str) -> None:
        super().__init__(
            "Another instance is already running",
            hint=f"A daemon is listening on {socket_path}. "
            "Use 'zlaunch quit' to stop it first",
        )
        self.socket_path = socket_path


class ConfigLoadError(StartupFatal):
    """Raised when the configuration file exists but cannot be used."""

    exit_code = 5


class UnknownModuleError(ZlaunchDomainError):
    """Raised when a request names a module that is unknown or not registered."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Unknown module: '{name}'")
        self.name = name
