"""Document 抽象接口

定义宿主文档的统一接口，assetgen 只通过这里的类型访问文档：
- Layer: 图层节点（带父 group 链接）
- LayerTree: 图层树遍历/查找
- Document: 文档本体（id、文件路径、图层树、变更订阅）
- Subscription: 显式的订阅句柄，取消订阅不依赖继承事件基类

设计原则：
1. 最小接口：只定义 assetgen 需要的操作
2. 订阅即句柄：调用方持有 Subscription，自己决定何时 unsubscribe
"""

from abc import ABC, abstractmethod
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from typing import Any

# 变更回调：参数为原始 change payload（dict）
ChangeCallback = Callable[[dict[str, Any]], Any]


@dataclass(eq=False)
class Layer:
    """图层节点

    Attributes:
        id: 宿主文档分配的图层 ID
        name: 显示名称（可能为空）
        group: 父 group，根 group 为 None
        layers: 子图层（仅 group 有）
    """

    id: int
    name: str | None = None
    group: "Layer | None" = field(default=None, repr=False)
    layers: list["Layer"] = field(default_factory=list, repr=False)

    @property
    def is_root(self) -> bool:
        """是否为隐式根 group"""
        return self.group is None

    def ancestors(self) -> Iterator["Layer"]:
        """从父 group 开始向上遍历（不含自身）"""
        seen: set[int] = {id(self)}
        current = self.group
        while current is not None and id(current) not in seen:
            seen.add(id(current))
            yield current
            current = current.group


class LayerTree(ABC):
    """图层树接口"""

    @abstractmethod
    def visit(self, callback: Callable[[Layer], Any]) -> None:
        """深度优先遍历所有图层（不含隐式根 group）"""
        pass

    @abstractmethod
    def find_layer(self, layer_id: int) -> Layer | None:
        """按 ID 查找图层，找不到返回 None"""
        pass


class Subscription:
    """变更订阅句柄

    unsubscribe() 可重复调用，第二次起无效果。
    """

    def __init__(self, cancel: Callable[[], None]):
        self._cancel: Callable[[], None] | None = cancel

    @property
    def active(self) -> bool:
        return self._cancel is not None

    def unsubscribe(self) -> None:
        if self._cancel is None:
            return
        cancel, self._cancel = self._cancel, None
        cancel()


class Document(ABC):
    """宿主文档接口

    使用示例:
        subscription = document.subscribe(on_change)
        document.layers.visit(print)
        subscription.unsubscribe()
    """

    @property
    @abstractmethod
    def id(self) -> int:
        """文档 ID"""
        pass

    @property
    @abstractmethod
    def file(self) -> str:
        """文档当前文件路径（资源根目录由此推导）"""
        pass

    @property
    @abstractmethod
    def layers(self) -> LayerTree:
        """图层树"""
        pass

    @abstractmethod
    def subscribe(self, callback: ChangeCallback) -> Subscription:
        """订阅变更通知

        Args:
            callback: 收到原始 change payload 时调用

        Returns:
            订阅句柄
        """
        pass
