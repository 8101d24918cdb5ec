"""Components 模块数据类型定义

包含：
- Component: 从图层名解析出的构建目标
- AnalysisResult: 名称分析器的单条输出
- SkippedComponent: 被跳过的分析结果（无目标文件或分析失败）
- ChangeType / LayerChange / DocumentChange: 文档变更 payload（pydantic 校验）
- ChangeSet: diff 引擎输出
"""

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator

from ..core.ids import normalize_layer_id
from ..document.base import Layer


@dataclass(frozen=True)
class Component:
    """构建目标

    Attributes:
        name: 显示名称（通常为原始图层名片段）
        file: 目标文件名，None 表示不应产出资源
        folder: 目标子目录（可选）
        params: 渲染引擎参数（对 assetgen 不透明）
    """

    name: str
    file: str | None = None
    folder: str | None = None
    params: dict[str, Any] = field(default_factory=dict, compare=False, hash=False)


@dataclass
class AnalysisResult:
    """名称分析结果"""

    component: Component | None
    errors: list[str] = field(default_factory=list)


@dataclass
class SkippedComponent:
    """未生成组件的分析结果"""

    layer_id: int
    name: str
    errors: list[str] = field(default_factory=list)


# 名称分析器：图层名 → 分析结果序列
NameAnalyzer = Callable[[str], Sequence[AnalysisResult]]


class ChangeType(str, Enum):
    """图层变更类型"""

    ADDED = "added"
    CHANGED = "changed"
    REMOVED = "removed"


class LayerChange(BaseModel):
    """单个图层的变更"""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    type: ChangeType
    layer: Any = None

    @field_validator("layer")
    @classmethod
    def _check_layer(cls, value: Any) -> Layer | None:
        if value is not None and not isinstance(value, Layer):
            raise ValueError(f"expected Layer, got {type(value).__name__}")
        return value


class DocumentChange(BaseModel):
    """文档变更通知

    payload 形如 {"layers": {"12": {"type": "changed", "layer": layer}}, "file": True}，
    图层 ID 字符串会被转换为 int。
    """

    layers: dict[int, LayerChange] | None = None
    file: bool = False

    @field_validator("layers", mode="before")
    @classmethod
    def _normalize_layer_ids(cls, value: Any) -> Any:
        if isinstance(value, dict):
            return {normalize_layer_id(key): item for key, item in value.items()}
        return value

    @property
    def is_empty(self) -> bool:
        return not self.layers and not self.file


@dataclass
class ChangeSet:
    """diff 结果

    Attributes:
        changed: 重新解析过的图层 → 新组件列表（可为空列表，表示需要拆除旧组件）
        removed: 被删除的图层 ID（按 delta 顺序）
        skipped: 被跳过的分析结果
    """

    changed: dict[int, list[Component]] = field(default_factory=dict)
    removed: list[int] = field(default_factory=list)
    skipped: list[SkippedComponent] = field(default_factory=list)

    @property
    def affected_layer_ids(self) -> list[int]:
        """需要拆除旧组件的图层：先 removed，再 changed"""
        return self.removed + [layer_id for layer_id in self.changed if layer_id not in self.removed]
