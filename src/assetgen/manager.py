"""AssetManager - 文档资源管理器

维护一个文档的全部资源：
- resume(): 订阅文档变更，全量重建组件并请求渲染
- pause(): 取消订阅，取消全部进行中的渲染
- 变更处理：diff → 删除旧组件（先取消渲染、再删除登记、再删除旧资源）
  → 登记新组件 → 请求渲染

变更通过 ChangeQueue 串行处理；渲染完成与后续变更可以任意交错，
过期的渲染结果由 RenderLifecycleManager 丢弃。

使用示例:
    manager = AssetManager(document, engine, analyze)
    manager.resume()
    ...
    manager.pause()
"""

from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from .assets.files import FileStore, LocalFileManager
from .assets.placement import AssetPlacement, resolve_asset_path
from .components.diff import analyze_layer, compute_changes
from .components.registry import ComponentRegistry
from .components.types import DocumentChange, NameAnalyzer, SkippedComponent
from .config import METRICS_ENABLED
from .core.ids import short_name
from .queue import ChangeQueue
from .render.lifecycle import RenderLifecycleManager
from .telemetry import get_logger, metrics

if TYPE_CHECKING:
    from .components.types import Component
    from .document.base import Document, Layer, Subscription
    from .render.engine import RenderEngine

logger = get_logger(__name__)


class AssetManager:
    """文档资源管理器

    Attributes:
        document: 管理的文档
        registry: 组件登记表
        renders: 渲染生命周期管理器
        placement: 资源放置
    """

    def __init__(
        self,
        document: "Document",
        render_engine: "RenderEngine",
        analyze: NameAnalyzer,
        file_store: FileStore | None = None,
        registry: ComponentRegistry | None = None,
    ):
        """初始化

        Args:
            document: 宿主文档
            render_engine: 渲染引擎
            analyze: 图层名分析器
            file_store: 文件操作（默认 LocalFileManager）
            registry: 组件登记表（默认新建）
        """
        self.document = document
        self._engine = render_engine
        self._analyze = analyze

        self.files = file_store or LocalFileManager()
        self.registry = registry or ComponentRegistry()
        self.placement = AssetPlacement(self.files)
        self.renders = RenderLifecycleManager(document, self.registry, render_engine, self.placement)

        self._subscription: "Subscription | None" = None
        # pause()/resume() 递增；处理中的 delta 据此判断是否已过期
        self._generation = 0
        self._queue = ChangeQueue(document.id, self.process_change)

    # === 生命周期 ===

    @property
    def is_running(self) -> bool:
        """是否已订阅文档变更"""
        return self._subscription is not None and self._subscription.active

    def resume(self) -> None:
        """订阅变更并全量重建

        需要在运行中的事件循环内调用（渲染以 task 形式发起）。
        """
        if self.is_running:
            logger.debug(f"[AssetManager:{self.document.id}] Already subscribed")
        else:
            self._subscription = self.document.subscribe(self._on_change)

        self._generation += 1
        self._queue.clear()
        self._reset()
        logger.info(
            f"[AssetManager:{self.document.id}] Resumed with {len(self.registry)} components"
        )

    def pause(self) -> None:
        """取消订阅并取消全部进行中的渲染"""
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None

        self._generation += 1
        dropped = self._queue.clear()
        if dropped:
            logger.debug(f"[AssetManager:{self.document.id}] Dropped {dropped} queued changes")

        self.renders.cancel_all(self.document.id)
        # Engines may ignore the bulk cancel for ids still tracked here.
        for component_id in self.renders.pending_ids():
            self.renders.cancel(component_id)

        logger.info(f"[AssetManager:{self.document.id}] Paused")

    async def join(self) -> None:
        """等待已入队的变更全部处理完"""
        await self._queue.join()

    def _reset(self) -> None:
        """清空状态并从文档全量重建组件"""
        self.registry.clear()
        self.renders.reset()
        self.files.set_base_path(self.document.file)

        layers: list["Layer"] = []
        self.document.layers.visit(layers.append)

        new_ids: list[int] = []
        for layer in layers:
            if layer.is_root or not layer.name:
                continue
            components, skipped = analyze_layer(layer, self._analyze)
            self._report_skipped(skipped)
            new_ids.extend(self._add_components(layer.id, components))

        for component_id in new_ids:
            self.renders.request_render(component_id)

    # === 变更处理 ===

    def _on_change(self, raw: dict[str, Any]) -> None:
        """文档变更回调（同步），校验后入队"""
        try:
            change = DocumentChange.model_validate(raw)
        except ValidationError as e:
            logger.error(f"[AssetManager:{self.document.id}] Invalid change payload: {e}")
            if METRICS_ENABLED:
                metrics.inc("changes.invalid")
            return

        self._queue.submit_change(change)

    async def process_change(self, change: DocumentChange) -> list[int]:
        """处理一个变更 delta

        Args:
            change: 已校验的变更

        Returns:
            新登记的 component_id 列表
        """
        logger.debug(f"[AssetManager:{self.document.id}] handleChange: {change!r}")
        if METRICS_ENABLED:
            metrics.inc("changes.processed")

        generation = self._generation
        new_ids: list[int] = []
        stale_assets: list[str] = []

        if change.layers:
            changeset = compute_changes(change, self._analyze)
            self._report_skipped(changeset.skipped)

            # Cancel before unregistering so a late completion finds nothing to place.
            for layer_id in changeset.affected_layer_ids:
                for component_id in sorted(self.registry.components_of(layer_id)):
                    component = self._remove_component(component_id)
                    asset_path = resolve_asset_path(component)
                    if asset_path is not None:
                        stale_assets.append(asset_path)

            for layer_id, components in changeset.changed.items():
                new_ids.extend(self._add_components(layer_id, components))

        for asset_path in stale_assets:
            await self.placement.remove_asset(asset_path)

        if generation != self._generation:
            logger.debug(
                f"[AssetManager:{self.document.id}] Paused or reset while processing change, "
                f"skipping {len(new_ids)} renders"
            )
            return new_ids

        if change.file:
            self.files.set_base_path(self.document.file)

        for component_id in new_ids:
            if component_id not in self.registry:
                continue
            try:
                self.renders.request_render(component_id)
            except Exception as e:
                logger.error(f"[AssetManager:{self.document.id}] Failed to request render {component_id}: {e}")

        return new_ids

    def _add_components(self, layer_id: int, components: list["Component"]) -> list[int]:
        ids = []
        for component in components:
            component_id = self.registry.add(layer_id, component)
            self.renders.mark_created(component_id)
            ids.append(component_id)
        return ids

    def _remove_component(self, component_id: int) -> "Component":
        if self.renders.has_pending(component_id):
            self.renders.cancel(component_id)
        component = self.registry.remove(component_id)
        self.renders.mark_removed(component_id)
        return component

    def _report_skipped(self, skipped: list[SkippedComponent]) -> None:
        for entry in skipped:
            # No errors: an ordinary layer name with no file.
            log = logger.warning if entry.errors else logger.debug
            log(
                f"[AssetManager:{self.document.id}] Skipping component "
                f"'{short_name(entry.name)}' of layer {entry.layer_id}: {entry.errors}"
            )
        if METRICS_ENABLED and skipped:
            metrics.inc("components.skipped", value=len(skipped))
