"""Open windows, listed through the compositor bridge."""

import logging

from zlaunch.adapters.compositor.bridge import CompositorBridge
from zlaunch.domain.entities import Entry
from zlaunch.domain.exceptions import CompositorUnavailable
from zlaunch.domain.value_objects import Module, RefreshPolicy

logger = logging.getLogger(__name__)


class WindowSource:
    """Index source rebuilt on every query.

    An unreachable compositor yields an empty list rather than a failed
    refresh, so the rest of the launcher keeps working.
    """

    module = Module.WINDOWS
    policy = RefreshPolicy.ON_QUERY

    def __init__(self, bridge: CompositorBridge) -> None:
        self._bridge = bridge

    def build(self) -> list[Entry]:
        try:
            return self._bridge.list_windows()
        except CompositorUnavailable as e:
            logger.warning(f"Window list unavailable: {e}")
            return []
