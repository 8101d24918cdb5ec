"""Exception types raised across assetgen."""


class AssetGenError(Exception):
    """Base class for assetgen errors."""


class UnknownComponentError(AssetGenError, KeyError):
    """A component id that is not (or no longer) in the registry."""

    def __init__(self, component_id: int):
        super().__init__(component_id)
        self.component_id = component_id

    def __str__(self) -> str:
        return f"Unknown component: {self.component_id}"


class RenderCancelledError(AssetGenError):
    """Raised by a render engine when a render was cancelled before finishing."""


class InvalidDestinationError(AssetGenError, ValueError):
    """An asset destination that resolves outside the document's asset directory."""
