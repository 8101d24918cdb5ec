"""Pytest 配置与共享 fixtures"""

import asyncio

import pytest

from assetgen.assets.files import FileStore, assets_dir_for
from assetgen.components.types import AnalysisResult, Component
from assetgen.document.memory import InMemoryDocument
from assetgen.errors import RenderCancelledError
from assetgen.render.engine import RenderEngine
from assetgen.telemetry import metrics


def simple_analyze(name: str) -> list[AnalysisResult]:
    """测试用名称分析器

    逗号分隔多个组件；"folder/file.ext" 带目录；不含 "." 的片段没有目标文件；
    以 "!" 开头的片段视为语法错误。
    """
    results = []
    for part in name.split(","):
        part = part.strip()
        if not part:
            continue
        if part.startswith("!"):
            results.append(AnalysisResult(component=None, errors=[f"Bad name: {part}"]))
            continue
        folder, _, file = part.rpartition("/")
        if "." in file:
            component = Component(name=part, file=file, folder=folder or None)
        else:
            component = Component(name=part)
        results.append(AnalysisResult(component=component))
    return results


class FakeRenderEngine(RenderEngine):
    """可控的渲染引擎

    每个 component_id 对应一个 future，测试通过 complete()/fail() 结算。
    honor_cancel=True 时 cancel()/cancel_all() 会以 RenderCancelledError 结算。
    """

    def __init__(self, honor_cancel: bool = True):
        self.honor_cancel = honor_cancel
        self.calls: list[tuple[int, int]] = []  # (component_id, layer_id)
        self.cancelled: list[int] = []
        self.cancelled_documents: list[int] = []
        self._futures: dict[int, asyncio.Future] = {}
        self._consumed: set[int] = set()  # 已被 render() 等待过的 future

    def _future(self, component_id: int) -> asyncio.Future:
        future = self._futures.get(component_id)
        if future is None or (future.done() and component_id in self._consumed):
            self._consumed.discard(component_id)
            future = asyncio.get_running_loop().create_future()
            self._futures[component_id] = future
        return future

    async def render(self, document, layer, component, component_id):
        self.calls.append((component_id, layer.id))
        future = self._future(component_id)
        self._consumed.add(component_id)
        return await future

    def complete(self, component_id: int, temp_path: str | None) -> None:
        future = self._future(component_id)
        if not future.done():
            future.set_result(temp_path)

    def fail(self, component_id: int, error: Exception) -> None:
        future = self._future(component_id)
        if not future.done():
            future.set_exception(error)

    def cancel(self, component_id: int) -> None:
        self.cancelled.append(component_id)
        if self.honor_cancel:
            future = self._futures.get(component_id)
            if future is not None and not future.done():
                future.set_exception(RenderCancelledError(component_id))

    def cancel_all(self, document_id: int) -> None:
        self.cancelled_documents.append(document_id)
        if self.honor_cancel:
            for future in self._futures.values():
                if not future.done():
                    future.set_exception(RenderCancelledError())

    def rendered_ids(self) -> list[int]:
        return [component_id for component_id, _ in self.calls]


class FakeFileStore(FileStore):
    """记录所有文件操作的 FileStore"""

    def __init__(self, fail_moves: bool = False):
        self._base_path: str | None = None
        self.fail_moves = fail_moves
        self.moves: list[tuple[str, str, str | None]] = []  # (temp, relative, base)
        self.removed_within: list[tuple[str, str | None]] = []
        self.removed_absolute: list[str] = []
        # 设置后 remove_file_within 会等待该事件，用于在变更处理中途插入操作
        self.remove_gate: asyncio.Event | None = None

    @property
    def base_path(self) -> str | None:
        return self._base_path

    def set_base_path(self, document_file: str) -> None:
        self._base_path = assets_dir_for(document_file)

    async def move_file_into(self, temp_path, relative_path, base_path=None):
        if self.fail_moves:
            raise OSError("disk full")
        base = base_path or self._base_path
        self.moves.append((temp_path, relative_path, base))
        return f"{base}/{relative_path}"

    async def remove_file_within(self, relative_path, base_path=None):
        self.removed_within.append((relative_path, base_path or self._base_path))
        if self.remove_gate is not None:
            await self.remove_gate.wait()
        return True

    async def remove_file_absolute(self, path):
        self.removed_absolute.append(path)
        return True

    @property
    def moved_destinations(self) -> list[str]:
        return [relative for _, relative, _ in self.moves]


async def settle() -> None:
    """让已就绪的 task 运行若干轮"""
    for _ in range(5):
        await asyncio.sleep(0)


@pytest.fixture(autouse=True)
def reset_metrics():
    """每次测试前重置指标"""
    metrics.reset()
    yield
    metrics.reset()


@pytest.fixture
def analyze():
    return simple_analyze


@pytest.fixture
def engine():
    return FakeRenderEngine()


@pytest.fixture
def files():
    return FakeFileStore()


@pytest.fixture
def document():
    return InMemoryDocument(document_id=1, file="/work/poster.psd")


@pytest.fixture
def tick():
    """返回 settle 协程函数，供测试推进事件循环"""
    return settle
