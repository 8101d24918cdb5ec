"""assetgen: 按图层名增量生成文档资源"""

from .components import (
    AnalysisResult,
    ChangeSet,
    ChangeType,
    Component,
    ComponentRegistry,
    DocumentChange,
    compute_changes,
)
from .errors import (
    AssetGenError,
    InvalidDestinationError,
    RenderCancelledError,
    UnknownComponentError,
)
from .manager import AssetManager
from .render import ComponentState, RenderEngine, RenderLifecycleManager
from .runtime import RuntimeComponents, bootstrap

__all__ = [
    "AssetManager",
    "bootstrap",
    "RuntimeComponents",
    "Component",
    "AnalysisResult",
    "ChangeType",
    "DocumentChange",
    "ChangeSet",
    "ComponentRegistry",
    "compute_changes",
    "ComponentState",
    "RenderEngine",
    "RenderLifecycleManager",
    "AssetGenError",
    "UnknownComponentError",
    "RenderCancelledError",
    "InvalidDestinationError",
]
