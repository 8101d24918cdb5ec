"""Bootstrap - 集中构造一个文档的资源组件

职责：
- 创建 FileStore、ComponentRegistry、AssetManager
- 可选安装 rich 日志 handler
- 返回 RuntimeComponents 供调用方使用

不负责：
- 启动/暂停（由调用方调用 resume()/pause()）
- 渲染引擎和名称分析器（由宿主提供）
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING

from ..assets.files import FileStore, LocalFileManager
from ..components.registry import ComponentRegistry
from ..manager import AssetManager
from ..telemetry import configure_logging, get_logger

if TYPE_CHECKING:
    from ..assets.placement import AssetPlacement
    from ..components.types import NameAnalyzer
    from ..document.base import Document
    from ..render.engine import RenderEngine
    from ..render.lifecycle import RenderLifecycleManager

logger = get_logger(__name__)


@dataclass
class RuntimeComponents:
    """bootstrap 返回的运行时组件集合"""

    manager: AssetManager
    registry: ComponentRegistry
    files: FileStore

    @property
    def renders(self) -> "RenderLifecycleManager":
        return self.manager.renders

    @property
    def placement(self) -> "AssetPlacement":
        return self.manager.placement

    def start(self) -> None:
        """开始维护资源（需要运行中的事件循环）"""
        self.manager.resume()

    def stop(self) -> None:
        """停止维护资源"""
        self.manager.pause()


def bootstrap(
    document: "Document",
    render_engine: "RenderEngine",
    analyze: "NameAnalyzer",
    file_store: FileStore | None = None,
    log_level: str | int | None = None,
    setup_logging: bool = False,
) -> RuntimeComponents:
    """构造运行时组件

    Args:
        document: 宿主文档
        render_engine: 渲染引擎
        analyze: 图层名分析器
        file_store: 文件操作（默认 LocalFileManager）
        log_level: 日志级别（仅 setup_logging=True 时生效）
        setup_logging: 是否安装 rich 日志 handler

    Returns:
        RuntimeComponents 包含所有构造好的组件
    """
    if setup_logging:
        configure_logging(log_level)

    files = file_store or LocalFileManager()
    registry = ComponentRegistry()
    manager = AssetManager(
        document,
        render_engine,
        analyze,
        file_store=files,
        registry=registry,
    )

    logger.info(f"[Bootstrap] Components created for document {document.id}")

    return RuntimeComponents(manager=manager, registry=registry, files=files)
