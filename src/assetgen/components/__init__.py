"""Components 模块

- types: 组件与变更数据类型
- registry: ComponentRegistry 组件登记表
- diff: compute_changes 变更 diff 引擎
"""

from .diff import analyze_layer, compute_changes, get_dependent_layers
from .registry import ComponentRegistry
from .types import (
    AnalysisResult,
    ChangeSet,
    ChangeType,
    Component,
    DocumentChange,
    LayerChange,
    NameAnalyzer,
    SkippedComponent,
)

__all__ = [
    # Types
    "Component",
    "AnalysisResult",
    "SkippedComponent",
    "NameAnalyzer",
    "ChangeType",
    "LayerChange",
    "DocumentChange",
    "ChangeSet",
    # Registry
    "ComponentRegistry",
    # Diff
    "compute_changes",
    "analyze_layer",
    "get_dependent_layers",
]
