"""ID utilities

Component ids are plain integers handed out by an allocator owned by one
registry. They increase monotonically and are never reused, even after the
registry is cleared, so a late render completion can never be mistaken for a
newer component.

Layer ids come from the host document. Some hosts deliver them as strings
in change payloads ("12"), so helpers here normalize them to ints.
"""

import itertools

from .. import config


class ComponentIdAllocator:
    """Monotonic component id source.

    Attributes:
        last_issued: the most recently issued id, or None if none yet
    """

    def __init__(self, start: int = 0):
        self._counter = itertools.count(start)
        self.last_issued: int | None = None

    def next_id(self) -> int:
        """Issue the next id."""
        component_id = next(self._counter)
        self.last_issued = component_id
        return component_id

    def __iter__(self):
        return self

    def __next__(self) -> int:
        return self.next_id()


def normalize_layer_id(layer_id: int | str) -> int:
    """Normalize a host layer id to an int.

    Args:
        layer_id: Layer id as int or decimal string (e.g. "12")

    Returns:
        The integer layer id

    Raises:
        ValueError: if the id is not a decimal integer
    """
    if isinstance(layer_id, bool):
        raise ValueError(f"Invalid layer id: {layer_id!r}")
    if isinstance(layer_id, int):
        return layer_id
    return int(str(layer_id).strip(), 10)


def short_name(name: str | None, length: int | None = None) -> str:
    """Get a short display version of a layer name for logging.

    Args:
        name: The layer name (may be None for unnamed layers)
        length: Maximum length (default config.LOG_MAX_NAME_LEN)

    Returns:
        Truncated name, "<unnamed>" for empty names
    """
    if not name:
        return "<unnamed>"
    limit = length if length is not None else config.LOG_MAX_NAME_LEN
    if len(name) <= limit:
        return name
    return name[: max(limit - 3, 0)] + "..."
