"""Document module - host document interface"""

from .base import ChangeCallback, Document, Layer, LayerTree, Subscription
from .memory import InMemoryDocument, InMemoryLayerTree

__all__ = [
    "ChangeCallback",
    "Document",
    "Layer",
    "LayerTree",
    "Subscription",
    "InMemoryDocument",
    "InMemoryLayerTree",
]
