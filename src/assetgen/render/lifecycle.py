"""RenderLifecycleManager - 渲染生命周期管理

职责：
- 每个组件发起一次异步渲染，按 component_id 跟踪进行中的 RenderJob
- 渲染结束（成功/失败/取消）时移除跟踪条目，且只移除一次
- 成功 → AssetPlacement 放置产物；失败 → 记录日志；取消 → 单独记录
- 维护每个组件的显式生命周期状态（见 render/types.py 状态表）

不负责：
- 组件登记/删除（由 AssetManager 按"先取消、再删除"顺序调用）
- 重试（失败的组件只有在图层再次变化时才会重新渲染）
"""

import asyncio
from datetime import datetime
from typing import TYPE_CHECKING

from ..config import METRICS_ENABLED
from ..core.ids import short_name
from ..errors import RenderCancelledError
from ..telemetry import format_component_log, get_logger, metrics
from .types import ComponentState, RenderJob, can_transition

if TYPE_CHECKING:
    from ..assets.placement import AssetPlacement
    from ..components.registry import ComponentRegistry
    from ..components.types import Component
    from ..document.base import Document, Layer
    from .engine import RenderEngine

logger = get_logger(__name__)


class RenderLifecycleManager:
    """渲染生命周期管理器

    所有方法都在事件循环线程中调用；request_render 需要运行中的事件循环。

    Attributes:
        document: 所属文档
    """

    def __init__(
        self,
        document: "Document",
        registry: "ComponentRegistry",
        engine: "RenderEngine",
        placement: "AssetPlacement",
    ):
        self.document = document
        self._registry = registry
        self._engine = engine
        self._placement = placement

        self._jobs: dict[int, RenderJob] = {}
        self._states: dict[int, ComponentState] = {}
        # 持有所有渲染 task 的强引用（包括 reset 后仍未结束的旧 task）
        self._tasks: set[asyncio.Task[None]] = set()

    # === 发起/取消 ===

    def request_render(self, component_id: int) -> RenderJob | None:
        """发起渲染

        Args:
            component_id: 已登记的组件 ID

        Returns:
            RenderJob，图层已不存在时返回 None

        Raises:
            UnknownComponentError: 组件未登记
        """
        component = self._registry.lookup(component_id)
        layer_id = self._registry.layer_of(component_id)

        layer = self.document.layers.find_layer(layer_id)
        if layer is None:
            logger.warning(
                format_component_log("Render", component_id, layer_id, "Layer not found, skipping render")
            )
            return None

        previous = self._jobs.get(component_id)
        if previous is not None and not previous.done:
            logger.warning(
                format_component_log("Render", component_id, layer_id, "Superseding pending render")
            )
            self._cancel_job(previous)

        job = RenderJob(
            component_id=component_id,
            layer_id=layer_id,
            name=component.name,
            base_path=self._placement.base_path,
        )
        self._jobs[component_id] = job
        self._set_state(component_id, ComponentState.RENDER_PENDING)

        task = asyncio.create_task(
            self._run(job, layer, component),
            name=f"assetgen-render-{component_id}",
        )
        job.task = task
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

        logger.debug(
            format_component_log(
                "Render", component_id, layer_id, f"Requested render of '{short_name(component.name)}'"
            )
        )
        if METRICS_ENABLED:
            metrics.inc("render.issued")
        return job

    def cancel(self, component_id: int) -> bool:
        """向渲染引擎发送取消信号（不修改登记表）

        Returns:
            是否存在被跟踪的渲染
        """
        job = self._jobs.get(component_id)
        if job is not None:
            job.cancel_requested = True

        try:
            self._engine.cancel(component_id)
        except Exception as e:
            logger.warning(f"[Render:{component_id}] Engine cancel failed: {e}")

        return job is not None

    def cancel_all(self, document_id: int) -> None:
        """批量取消文档的全部渲染"""
        for job in self._jobs.values():
            job.cancel_requested = True

        try:
            self._engine.cancel_all(document_id)
        except Exception as e:
            logger.warning(f"[Render] Engine cancel_all failed for document {document_id}: {e}")

    def _cancel_job(self, job: RenderJob) -> None:
        job.cancel_requested = True
        self.cancel(job.component_id)
        if job.task is not None and not job.task.done():
            job.task.cancel()

    # === 查询 ===

    def has_pending(self, component_id: int) -> bool:
        """是否有尚未结束的渲染"""
        job = self._jobs.get(component_id)
        return job is not None and not job.done

    def pending_ids(self) -> list[int]:
        return sorted(cid for cid, job in self._jobs.items() if not job.done)

    def get_job(self, component_id: int) -> RenderJob | None:
        return self._jobs.get(component_id)

    def status(self, component_id: int) -> ComponentState | None:
        """获取组件生命周期状态，未知组件返回 None"""
        return self._states.get(component_id)

    # === 状态 ===

    def mark_created(self, component_id: int) -> None:
        self._set_state(component_id, ComponentState.CREATED)

    def mark_removed(self, component_id: int) -> None:
        """组件已从登记表删除（终态）"""
        self._set_state(component_id, ComponentState.REMOVED)

    def reset(self) -> None:
        """清空跟踪条目和状态

        不取消仍在进行的 task；它们结束时找不到跟踪条目，按过期结果处理。
        """
        self._jobs.clear()
        self._states.clear()

    async def wait_idle(self) -> None:
        """等待所有渲染 task 结束（包括已不被跟踪的旧 task）"""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def _set_state(self, component_id: int, state: ComponentState) -> bool:
        current = self._states.get(component_id)
        if current == state:
            return True
        if not can_transition(current, state):
            logger.debug(
                f"[Render:{component_id}] Ignored transition "
                f"{current.value if current else None} -> {state.value}"
            )
            return False
        self._states[component_id] = state
        return True

    # === 结算 ===

    def _release(self, job: RenderJob) -> bool:
        """移除跟踪条目（仅当仍是当前 job）

        Returns:
            job 是否仍是该组件的当前渲染
        """
        if self._jobs.get(job.component_id) is job:
            del self._jobs[job.component_id]
            return True
        return False

    async def _run(self, job: RenderJob, layer: "Layer", component: "Component") -> None:
        temp_path: str | None = None
        error: Exception | None = None
        cancelled = False

        try:
            temp_path = await self._engine.render(self.document, layer, component, job.component_id)
        except (RenderCancelledError, asyncio.CancelledError):
            cancelled = True
        except Exception as e:
            error = e
        finally:
            is_current = self._release(job)
            if METRICS_ENABLED:
                metrics.observe("render.duration", (datetime.now() - job.issued_at).total_seconds())

        try:
            if cancelled or (error is None and job.cancel_requested):
                await self._handle_cancelled(job, temp_path, is_current)
            elif error is not None:
                self._handle_failure(job, error, is_current)
            else:
                await self._handle_response(job, temp_path, is_current)
        except Exception as e:
            logger.error(
                format_component_log("Render", job.component_id, job.layer_id, f"Settlement error: {e}"),
                exc_info=e,
            )

    async def _handle_response(self, job: RenderJob, temp_path: str | None, is_current: bool) -> None:
        component_id = job.component_id
        component = self._registry.get(component_id)

        if component is None or not is_current:
            logger.debug(
                format_component_log("Render", component_id, job.layer_id, "Stale render result, dropping")
            )
            if METRICS_ENABLED:
                metrics.inc("render.stale")
            if temp_path:
                await self._placement.discard_temp(temp_path)
            return

        if not temp_path:
            self._set_state(component_id, ComponentState.DISCARDED)
            logger.debug(format_component_log("Render", component_id, job.layer_id, "No output"))
            return

        try:
            destination = await self._placement.place(component, temp_path, base_path=job.base_path)
        except Exception as e:
            self._set_state(component_id, ComponentState.ERRORED)
            logger.error(
                format_component_log("Render", component_id, job.layer_id, f"Failed to place asset: {e}")
            )
            if METRICS_ENABLED:
                metrics.inc("render.failed")
            return

        if destination is None:
            self._set_state(component_id, ComponentState.DISCARDED)
            if METRICS_ENABLED:
                metrics.inc("render.discarded")
        else:
            self._set_state(component_id, ComponentState.PLACED)
            if METRICS_ENABLED:
                metrics.inc("render.placed")

    def _handle_failure(self, job: RenderJob, error: Exception, is_current: bool) -> None:
        logger.warning(
            f"Failed to render component {job.component_id} for layer {job.layer_id}: {error}",
            exc_info=error,
        )
        if is_current:
            self._set_state(job.component_id, ComponentState.ERRORED)
        if METRICS_ENABLED:
            metrics.inc("render.failed")

    async def _handle_cancelled(self, job: RenderJob, temp_path: str | None, is_current: bool) -> None:
        logger.info(f"Canceled render of component '{short_name(job.name)}' for layer {job.layer_id}")

        if temp_path:
            await self._placement.discard_temp(temp_path)
        if is_current:
            self._set_state(job.component_id, ComponentState.CANCELLED)
        if METRICS_ENABLED:
            metrics.inc("render.cancelled")
