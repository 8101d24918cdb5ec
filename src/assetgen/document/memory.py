"""In-memory document

A self-contained Document implementation for embedding assetgen in tools
that keep their own layer model, and for tests. Mutating helpers emit the
same change payloads a real host would send.
"""

from collections.abc import Callable
from typing import Any

from ..telemetry import get_logger
from .base import ChangeCallback, Document, Layer, LayerTree, Subscription

logger = get_logger(__name__)

ROOT_LAYER_ID = -1


class InMemoryLayerTree(LayerTree):
    """Layer tree held in memory, rooted at an unnamed implicit group."""

    def __init__(self):
        self.root = Layer(id=ROOT_LAYER_ID)
        self._index: dict[int, Layer] = {}

    def visit(self, callback: Callable[[Layer], Any]) -> None:
        # Depth-first, children in document order, root excluded.
        stack = list(reversed(self.root.layers))
        while stack:
            layer = stack.pop()
            callback(layer)
            stack.extend(reversed(layer.layers))

    def find_layer(self, layer_id: int) -> Layer | None:
        return self._index.get(layer_id)

    def add(self, layer_id: int, name: str | None = None, parent_id: int | None = None) -> Layer:
        """Insert a new layer under parent_id (root when None)."""
        if layer_id in self._index:
            raise ValueError(f"Duplicate layer id: {layer_id}")

        parent = self.root if parent_id is None else self._index.get(parent_id)
        if parent is None:
            raise KeyError(parent_id)

        layer = Layer(id=layer_id, name=name, group=parent)
        parent.layers.append(layer)
        self._index[layer_id] = layer
        return layer

    def remove(self, layer_id: int) -> list[Layer]:
        """Detach a layer and its descendants.

        Returns:
            The removed layers, the detached layer first. Removed layers keep
            their group link so change handlers can still walk ancestors.
        """
        layer = self._index[layer_id]
        if layer.group is not None:
            layer.group.layers.remove(layer)

        removed = []
        stack = [layer]
        while stack:
            current = stack.pop()
            removed.append(current)
            self._index.pop(current.id, None)
            stack.extend(current.layers)
        return removed

    def __len__(self) -> int:
        return len(self._index)


class InMemoryDocument(Document):
    """In-memory document with synchronous change notification.

    Attributes:
        layer_tree: the backing InMemoryLayerTree
    """

    def __init__(self, document_id: int, file: str):
        self._id = document_id
        self._file = file
        self.layer_tree = InMemoryLayerTree()
        self._callbacks: list[ChangeCallback] = []

    @property
    def id(self) -> int:
        return self._id

    @property
    def file(self) -> str:
        return self._file

    @property
    def layers(self) -> InMemoryLayerTree:
        return self.layer_tree

    @property
    def subscriber_count(self) -> int:
        return len(self._callbacks)

    def subscribe(self, callback: ChangeCallback) -> Subscription:
        self._callbacks.append(callback)

        def cancel() -> None:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return Subscription(cancel)

    def emit(self, change: dict[str, Any]) -> None:
        """Deliver a raw change payload to every subscriber."""
        for callback in list(self._callbacks):
            try:
                callback(change)
            except Exception as e:
                logger.error(f"[Document:{self._id}] Change callback error: {e}")

    # === Mutations (each emits one change) ===

    def add_layer(self, layer_id: int, name: str | None = None, parent_id: int | None = None) -> Layer:
        layer = self.layer_tree.add(layer_id, name, parent_id)
        self.emit({"layers": {layer_id: {"type": "added", "layer": layer}}})
        return layer

    def rename_layer(self, layer_id: int, name: str | None) -> Layer:
        layer = self.layer_tree.find_layer(layer_id)
        if layer is None:
            raise KeyError(layer_id)
        layer.name = name
        self.emit({"layers": {layer_id: {"type": "changed", "layer": layer}}})
        return layer

    def remove_layer(self, layer_id: int) -> list[Layer]:
        removed = self.layer_tree.remove(layer_id)
        self.emit({
            "layers": {layer.id: {"type": "removed", "layer": layer} for layer in removed}
        })
        return removed

    def move_file(self, file: str) -> None:
        self._file = file
        self.emit({"file": True})
