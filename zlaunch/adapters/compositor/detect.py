"""Compositor detection from the session environment."""

import logging
import os

from zlaunch.adapters.compositor.hyprland import HyprlandCompositor
from zlaunch.adapters.compositor.kwin import KWinCompositor
from zlaunch.adapters.compositor.niri import NiriCompositor
from zlaunch.adapters.compositor.noop import NoopCompositor
from zlaunch.ports.compositor import Compositor

logger = logging.getLogger(__name__)

DETECTION_ORDER = (HyprlandCompositor, KWinCompositor, NiriCompositor)


def detect_compositor(env: dict[str, str] | None = None, timeout: float = 2.0) -> Compositor:
    """Pick the compositor variant for this session.

    Checked in order: Hyprland, KWin, Niri. Falls back to a no-op variant
    so the windows module simply stays empty.

    Args:
        env: Environment to inspect (defaults to os.environ).
        timeout: Per-call IPC timeout handed to the variant.
    """
    env = dict(os.environ) if env is None else env
    for variant in DETECTION_ORDER:
        compositor = variant.detect(env, timeout=timeout)
        if compositor is not None:
            logger.info(f"Detected compositor: {compositor.name}")
            return compositor
    logger.info("No supported compositor detected, window switching disabled")
    return NoopCompositor()
