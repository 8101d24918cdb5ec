"""ComponentRegistry - 组件登记表

维护三张表：
- components: {component_id: Component}
- layer_for_component: {component_id: layer_id}
- components_for_layer: {layer_id: {component_id}}

后两张表互为精确逆映射。删除组件时三张表同时更新，
图层的最后一个组件被删除时，该图层条目整体删除（不留空集合）。
"""

from ..config import METRICS_ENABLED
from ..core.ids import ComponentIdAllocator
from ..errors import UnknownComponentError
from ..telemetry import get_logger, metrics
from .types import Component

logger = get_logger(__name__)


class ComponentRegistry:
    """组件登记表

    没有异步行为；所有方法在调用返回时已完成。

    Attributes:
        allocator: 组件 ID 分配器（实例持有，clear() 后不重置）
    """

    def __init__(self, allocator: ComponentIdAllocator | None = None):
        self.allocator = allocator or ComponentIdAllocator()
        self._components: dict[int, Component] = {}
        self._layer_for_component: dict[int, int] = {}
        self._components_for_layer: dict[int, set[int]] = {}

    # === 写操作 ===

    def add(self, layer_id: int, component: Component) -> int:
        """登记组件

        Args:
            layer_id: 所属图层
            component: 组件定义

        Returns:
            新分配的 component_id
        """
        component_id = self.allocator.next_id()

        self._components[component_id] = component
        self._layer_for_component[component_id] = layer_id
        self._components_for_layer.setdefault(layer_id, set()).add(component_id)

        logger.debug(
            f"[Registry] Added component {component_id} for layer {layer_id}: {component.file}"
        )
        self._record("components.added")
        return component_id

    def remove(self, component_id: int) -> Component:
        """删除组件

        Args:
            component_id: 组件 ID

        Returns:
            被删除的组件

        Raises:
            UnknownComponentError: component_id 不存在
        """
        if component_id not in self._components:
            raise UnknownComponentError(component_id)

        layer_id = self._layer_for_component.pop(component_id)
        component = self._components.pop(component_id)

        siblings = self._components_for_layer[layer_id]
        siblings.discard(component_id)
        if not siblings:
            del self._components_for_layer[layer_id]

        logger.debug(f"[Registry] Removed component {component_id} of layer {layer_id}")
        self._record("components.removed")
        return component

    def remove_all(self, layer_id: int) -> list[int]:
        """删除图层的全部组件

        Args:
            layer_id: 图层 ID

        Returns:
            被删除的 component_id 列表（升序）；未知图层返回空列表
        """
        removed = sorted(self._components_for_layer.get(layer_id, ()))
        for component_id in removed:
            self.remove(component_id)
        return removed

    def clear(self) -> None:
        """清空登记表（ID 分配器继续递增）"""
        self._components.clear()
        self._layer_for_component.clear()
        self._components_for_layer.clear()
        if METRICS_ENABLED:
            metrics.gauge("components.count", 0)

    # === 查询 ===

    def lookup(self, component_id: int) -> Component:
        """获取组件

        Raises:
            UnknownComponentError: component_id 不存在
        """
        try:
            return self._components[component_id]
        except KeyError:
            raise UnknownComponentError(component_id) from None

    def get(self, component_id: int) -> Component | None:
        """获取组件，不存在返回 None"""
        return self._components.get(component_id)

    def layer_of(self, component_id: int) -> int:
        """获取组件所属图层

        Raises:
            UnknownComponentError: component_id 不存在
        """
        try:
            return self._layer_for_component[component_id]
        except KeyError:
            raise UnknownComponentError(component_id) from None

    def components_of(self, layer_id: int) -> frozenset[int]:
        """获取图层的组件 ID 集合（未知图层返回空集合）"""
        return frozenset(self._components_for_layer.get(layer_id, ()))

    def component_ids(self) -> list[int]:
        return sorted(self._components)

    def layer_ids(self) -> list[int]:
        return list(self._components_for_layer)

    def __contains__(self, component_id: object) -> bool:
        return component_id in self._components

    def __len__(self) -> int:
        return len(self._components)

    def _record(self, counter: str) -> None:
        if METRICS_ENABLED:
            metrics.inc(counter)
            metrics.gauge("components.count", len(self._components))
