"""Render 数据类型

组件生命周期状态机：

| from | to |
|------|----|
| CREATED | RENDER_PENDING, REMOVED |
| RENDER_PENDING | PLACED, DISCARDED, ERRORED, CANCELLED, REMOVED |
| PLACED / DISCARDED / ERRORED / CANCELLED | RENDER_PENDING, REMOVED |
| REMOVED | (终态) |
"""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class ComponentState(Enum):
    """组件生命周期状态"""

    CREATED = "created"
    RENDER_PENDING = "render_pending"
    PLACED = "placed"
    DISCARDED = "discarded"
    ERRORED = "errored"
    CANCELLED = "cancelled"
    REMOVED = "removed"

    @property
    def is_settled(self) -> bool:
        """渲染是否已结束"""
        return self in _SETTLED

    @property
    def is_terminal(self) -> bool:
        return self == ComponentState.REMOVED


_SETTLED = frozenset({
    ComponentState.PLACED,
    ComponentState.DISCARDED,
    ComponentState.ERRORED,
    ComponentState.CANCELLED,
})

ALLOWED_TRANSITIONS: dict[ComponentState, frozenset[ComponentState]] = {
    ComponentState.CREATED: frozenset({ComponentState.RENDER_PENDING, ComponentState.REMOVED}),
    ComponentState.RENDER_PENDING: _SETTLED | {ComponentState.REMOVED},
    **{
        state: frozenset({ComponentState.RENDER_PENDING, ComponentState.REMOVED})
        for state in _SETTLED
    },
    ComponentState.REMOVED: frozenset(),
}


def can_transition(from_state: ComponentState | None, to_state: ComponentState) -> bool:
    """检查状态流转是否合法（None 表示尚未登记）"""
    if from_state is None:
        return to_state in (ComponentState.CREATED, ComponentState.RENDER_PENDING)
    return to_state in ALLOWED_TRANSITIONS[from_state]


@dataclass(eq=False)
class RenderJob:
    """单次渲染请求

    Attributes:
        component_id: 组件 ID
        layer_id: 所属图层
        name: 组件名（组件删除后仍可用于日志）
        base_path: 发起渲染时的资源根目录快照
        task: 等待渲染结果的 asyncio.Task
        cancel_requested: 是否已请求取消
    """

    component_id: int
    layer_id: int
    name: str = ""
    base_path: str | None = None
    task: "asyncio.Task[None] | None" = field(default=None, repr=False)
    cancel_requested: bool = False
    issued_at: datetime = field(default_factory=datetime.now)

    @property
    def done(self) -> bool:
        return self.task is not None and self.task.done()
