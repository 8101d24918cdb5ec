"""ChangeQueue - 每文档的串行变更处理

Actor 模式：变更由同步回调 submit() 入队，单个 drain task 依次交给 handler
处理。一个 delta 的登记表更新、取消和新渲染请求全部完成后才开始下一个。

- 从不丢弃 delta，积压到 warn_size 打印 warning，高水位打印 debug
- handler 抛出的异常被记录，不影响后续 delta
- queue.depth 指标以 owner 为标签
"""

import asyncio
from collections import deque
from collections.abc import Awaitable, Callable
from typing import Any, Generic, TypeVar

from .components.types import DocumentChange
from .config import CHANGE_QUEUE_HIGH_WATERMARK, CHANGE_QUEUE_WARN_SIZE, METRICS_ENABLED
from .telemetry import get_logger, metrics

logger = get_logger(__name__)

T = TypeVar("T")


class ActorQueue(Generic[T]):
    """串行处理队列

    Attributes:
        owner_id: 队列所属对象标识（用于日志和指标标签）
    """

    def __init__(
        self,
        owner_id: str,
        handler: Callable[[T], Awaitable[Any]],
        warn_size: int = CHANGE_QUEUE_WARN_SIZE,
        high_watermark: float = CHANGE_QUEUE_HIGH_WATERMARK,
    ):
        self.owner_id = owner_id
        self._handler = handler
        self._warn_size = warn_size
        self._high_watermark = high_watermark
        self._items: deque[T] = deque()
        self._drain_task: asyncio.Task[None] | None = None

    def submit(self, item: T) -> None:
        """入队并确保 drain task 在运行（需要运行中的事件循环）"""
        self._items.append(item)
        self._report_depth()

        if not self.busy:
            self._drain_task = asyncio.get_running_loop().create_task(
                self._drain(), name=f"assetgen-queue-{self.owner_id}"
            )

    def clear(self) -> int:
        """丢弃尚未开始处理的项，返回丢弃数量

        正在处理的项不受影响。
        """
        count = len(self._items)
        self._items.clear()
        if METRICS_ENABLED:
            metrics.gauge("queue.depth", 0, {"owner": self.owner_id})
        return count

    async def join(self) -> None:
        """等待队列处理完毕（包括 join 期间新入队的项）"""
        while self.busy:
            await asyncio.shield(self._drain_task)

    @property
    def busy(self) -> bool:
        return self._drain_task is not None and not self._drain_task.done()

    def __len__(self) -> int:
        return len(self._items)

    def _report_depth(self) -> None:
        depth = len(self._items)
        if METRICS_ENABLED:
            metrics.gauge("queue.depth", depth, {"owner": self.owner_id})

        if depth == self._warn_size:
            logger.warning(f"[Queue:{self.owner_id}] Backlog reached {depth} items")
        elif depth >= self._warn_size * self._high_watermark:
            logger.debug(
                f"[Queue:{self.owner_id}] High watermark: {depth}/{self._warn_size} "
                f"({depth / self._warn_size:.0%})"
            )

    async def _drain(self) -> None:
        while self._items:
            item = self._items.popleft()
            if METRICS_ENABLED:
                metrics.gauge("queue.depth", len(self._items), {"owner": self.owner_id})
            try:
                await self._handler(item)
            except Exception as e:
                logger.error(f"[Queue:{self.owner_id}] Handler failed: {e}", exc_info=e)


class ChangeQueue(ActorQueue[DocumentChange]):
    """DocumentChange 队列，空变更（既无图层也无文件移动）不入队"""

    def __init__(
        self,
        document_id: int,
        handler: Callable[[DocumentChange], Awaitable[Any]],
        warn_size: int = CHANGE_QUEUE_WARN_SIZE,
    ):
        super().__init__(f"doc-{document_id}", handler, warn_size)

    def submit_change(self, change: DocumentChange) -> bool:
        """入队变更

        Returns:
            是否入队（空变更返回 False）
        """
        if change.is_empty:
            logger.debug(f"[Queue:{self.owner_id}] Ignored empty change")
            return False
        self.submit(change)
        return True
