"""Compositor IPC variants and the bridge that isolates them."""

from zlaunch.adapters.compositor.bridge import BLUR_LAYER_RULES, CompositorBridge
from zlaunch.adapters.compositor.detect import detect_compositor

__all__ = ["BLUR_LAYER_RULES", "CompositorBridge", "detect_compositor"]
