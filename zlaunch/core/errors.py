"""CLI error handling with actionable hints and distinct exit codes."""

from enum import IntEnum
from typing import NoReturn

import click


class ExitCode(IntEnum):
    """Process exit codes for the CLI and the daemon."""

    OK = 0
    ERROR = 1
    MALFORMED = 2  # click usage errors and protocol 400 replies
    NO_DAEMON = 3
    ADDRESS_IN_USE = 4
    CONFIG = 5
    VALIDATION = 6  # 422 and 404 replies


class ZlaunchCliError(click.ClickException):
    """CLI error with an optional hint line and a specific exit code.

    Attributes:
        message: The primary error message.
        hint: Optional actionable suggestion for the user.
        exit_code: Process exit status.

    Example:
        raise ZlaunchCliError(
            "Theme 'solarized' not found",
            hint="Run 'zlaunch theme list' to see available themes",
            exit_code=ExitCode.VALIDATION,
        )
    """

    def __init__(
        self,
        message: str,
        hint: str | None = None,
        exit_code: int = ExitCode.ERROR,
    ) -> None:
        super().__init__(message)
        self.hint = hint
        self.exit_code = int(exit_code)

    def format_message(self) -> str:
        msg = self.message
        if self.hint:
            msg += f"\nHint: {self.hint}"
        return msg


def daemon_not_running_error() -> NoReturn:
    """Raise the error shown when a client command finds no daemon.

    Raises:
        ZlaunchCliError: Always, with exit code NO_DAEMON.
    """
    raise ZlaunchCliError(
        "zlaunch daemon is not running. Start it first by running: zlaunch",
        exit_code=ExitCode.NO_DAEMON,
    )


def exit_code_for_reply(code: int) -> ExitCode:
    """Map a daemon error reply code to a CLI exit code."""
    if code == 400:
        return ExitCode.MALFORMED
    if code in (404, 422):
        return ExitCode.VALIDATION
    return ExitCode.ERROR
