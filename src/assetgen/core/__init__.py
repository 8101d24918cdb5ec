"""Core module - id utilities"""

from .ids import ComponentIdAllocator, normalize_layer_id, short_name

__all__ = [
    "ComponentIdAllocator",
    "normalize_layer_id",
    "short_name",
]
