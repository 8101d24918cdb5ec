"""Render lifecycle module."""

from .engine import RenderEngine
from .lifecycle import RenderLifecycleManager
from .types import ALLOWED_TRANSITIONS, ComponentState, RenderJob, can_transition

__all__ = [
    "RenderEngine",
    "RenderLifecycleManager",
    "ComponentState",
    "RenderJob",
    "ALLOWED_TRANSITIONS",
    "can_transition",
]
