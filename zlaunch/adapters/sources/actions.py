"""Built-in system actions."""

from dataclasses import dataclass

from zlaunch.domain.entities import ActionKind, ActionPayload, Entry
from zlaunch.domain.value_objects import Module, RefreshPolicy


@dataclass(frozen=True)
class SystemAction:
    id: str
    name: str
    description: str
    icon: str
    command: str


BUILTIN_ACTIONS = (
    SystemAction("action-shutdown", "Shutdown", "Power off the system", "power", "systemctl poweroff"),
    SystemAction("action-reboot", "Reboot", "Restart the system", "reboot", "systemctl reboot"),
    SystemAction("action-suspend", "Suspend", "Suspend to RAM", "moon", "systemctl suspend"),
    SystemAction("action-lock", "Lock Screen", "Lock the session", "lock", "loginctl lock-session"),
    SystemAction(
        "action-logout", "Log Out", "End the session", "sign-out", "loginctl terminate-session"
    ),
)


class ActionSource:
    module = Module.ACTIONS
    policy = RefreshPolicy.STATIC

    def __init__(self, actions: tuple[SystemAction, ...] = BUILTIN_ACTIONS) -> None:
        self._actions = actions

    def build(self) -> list[Entry]:
        return [
            Entry(
                id=action.id,
                title=action.name,
                subtitle=action.description,
                icon=action.icon,
                module=Module.ACTIONS,
                action=ActionPayload(kind=ActionKind.COMMAND, value=action.command),
            )
            for action in self._actions
        ]
