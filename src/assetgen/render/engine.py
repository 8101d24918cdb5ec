"""Render engine 抽象接口

渲染引擎负责把图层渲染成临时文件，assetgen 负责把结果放到目标位置。

约定：
1. render() 是 async，成功返回临时文件路径，无输出返回 None
2. 被取消的渲染应抛出 RenderCancelledError（或 asyncio.CancelledError）
3. cancel()/cancel_all() 只是信号，不要求立刻生效
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..components.types import Component
    from ..document.base import Document, Layer


class RenderEngine(ABC):
    """渲染引擎接口"""

    @abstractmethod
    async def render(
        self,
        document: "Document",
        layer: "Layer",
        component: "Component",
        component_id: int,
    ) -> str | None:
        """渲染组件

        Args:
            document: 所属文档
            layer: 组件所属图层
            component: 组件定义
            component_id: 组件 ID（取消时使用）

        Returns:
            临时输出文件路径，无输出时返回 None

        Raises:
            RenderCancelledError: 渲染被取消
        """
        pass

    @abstractmethod
    def cancel(self, component_id: int) -> None:
        """请求取消单个组件的渲染"""
        pass

    @abstractmethod
    def cancel_all(self, document_id: int) -> None:
        """请求取消文档的全部渲染"""
        pass
