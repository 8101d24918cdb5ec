"""RenderLifecycleManager 测试"""

import logging
from unittest.mock import MagicMock

import pytest

from assetgen.assets.placement import AssetPlacement
from assetgen.components.registry import ComponentRegistry
from assetgen.components.types import Component
from assetgen.errors import UnknownComponentError
from assetgen.render.lifecycle import RenderLifecycleManager
from assetgen.render.types import ComponentState
from assetgen.telemetry import metrics


@pytest.fixture
def registry():
    return ComponentRegistry()


def _make_renders(document, registry, engine, files) -> RenderLifecycleManager:
    document.layer_tree.add(1, "icon.png")
    document.layer_tree.add(2, "banner")
    files.set_base_path(document.file)
    return RenderLifecycleManager(document, registry, engine, AssetPlacement(files))


@pytest.fixture
def renders(document, registry, engine, files):
    return _make_renders(document, registry, engine, files)


def _add(registry, renders, layer_id=1, file="icon.png", folder=None) -> int:
    component_id = registry.add(layer_id, Component(name=file or "banner", file=file, folder=folder))
    renders.mark_created(component_id)
    return component_id


class TestRequestRender:
    """发起渲染"""

    async def test_success_places_asset(self, renders, registry, engine, files, tick):
        component_id = _add(registry, renders)

        job = renders.request_render(component_id)
        assert job is not None
        assert job.base_path == "/work/poster-assets"
        assert job.name == "icon.png"
        assert renders.has_pending(component_id)
        assert renders.pending_ids() == [component_id]
        assert renders.status(component_id) == ComponentState.RENDER_PENDING

        await tick()
        assert engine.calls == [(component_id, 1)]

        engine.complete(component_id, "/tmp/a")
        await renders.wait_idle()

        assert files.moves == [("/tmp/a", "icon.png", "/work/poster-assets")]
        assert not renders.has_pending(component_id)
        assert renders.get_job(component_id) is None
        assert renders.status(component_id) == ComponentState.PLACED
        assert metrics.get_counter("render.issued") == 1
        assert metrics.get_counter("render.placed") == 1

    async def test_folder_destination(self, renders, registry, engine, files):
        component_id = _add(registry, renders, folder="icons")
        renders.request_render(component_id)

        engine.complete(component_id, "/tmp/a")
        await renders.wait_idle()

        assert files.moved_destinations == ["icons/icon.png"]

    async def test_empty_output_is_noop(self, renders, registry, engine, files):
        component_id = _add(registry, renders)
        renders.request_render(component_id)

        engine.complete(component_id, None)
        await renders.wait_idle()

        assert files.moves == []
        assert files.removed_absolute == []
        assert renders.status(component_id) == ComponentState.DISCARDED

    async def test_no_destination_discards_temp(self, renders, registry, engine, files):
        component_id = _add(registry, renders, layer_id=2, file=None)
        renders.request_render(component_id)

        engine.complete(component_id, "/tmp/orphan")
        await renders.wait_idle()

        assert files.moves == []
        assert files.removed_absolute == ["/tmp/orphan"]
        assert renders.status(component_id) == ComponentState.DISCARDED
        assert metrics.get_counter("render.discarded") == 1

    async def test_unknown_component_raises(self, renders):
        with pytest.raises(UnknownComponentError):
            renders.request_render(1234)

    async def test_missing_layer_skips(self, renders, registry, engine, tick):
        component_id = registry.add(99, Component(name="ghost.png", file="ghost.png"))

        assert renders.request_render(component_id) is None
        await tick()
        assert engine.calls == []
        assert not renders.has_pending(component_id)

    async def test_base_path_snapshot_used(self, renders, registry, engine, files):
        component_id = _add(registry, renders)
        renders.request_render(component_id)

        files.set_base_path("/elsewhere/moved.psd")
        engine.complete(component_id, "/tmp/a")
        await renders.wait_idle()

        assert files.moves == [("/tmp/a", "icon.png", "/work/poster-assets")]

    async def test_overlapping_request_supersedes(self, renders, registry, engine, files, tick):
        component_id = _add(registry, renders)
        first = renders.request_render(component_id)
        await tick()

        second = renders.request_render(component_id)
        await tick()

        assert first.cancel_requested
        assert renders.get_job(component_id) is second
        assert engine.cancelled == [component_id]

        engine.complete(component_id, "/tmp/second")
        await renders.wait_idle()

        assert files.moves == [("/tmp/second", "icon.png", "/work/poster-assets")]
        assert renders.status(component_id) == ComponentState.PLACED


class TestFailure:
    """渲染失败"""

    async def test_failure_logged_component_kept(self, renders, registry, engine, files, caplog):
        component_id = _add(registry, renders)
        renders.request_render(component_id)

        engine.fail(component_id, RuntimeError("out of memory"))
        await renders.wait_idle()

        assert component_id in registry
        assert files.moves == []
        assert renders.status(component_id) == ComponentState.ERRORED
        assert not renders.has_pending(component_id)
        assert metrics.get_counter("render.failed") == 1
        assert f"Failed to render component {component_id} for layer 1" in caplog.text

    async def test_placement_error_isolated(self, renders, registry, engine, files):
        files.fail_moves = True
        component_id = _add(registry, renders)
        renders.request_render(component_id)

        engine.complete(component_id, "/tmp/a")
        await renders.wait_idle()

        assert renders.status(component_id) == ComponentState.ERRORED
        assert metrics.get_counter("render.failed") == 1


class TestCancellation:
    """取消"""

    async def test_cancel_settles_as_cancelled(self, renders, registry, engine, files, tick, caplog):
        caplog.set_level(logging.INFO, logger="assetgen")
        component_id = _add(registry, renders)
        renders.request_render(component_id)
        await tick()

        assert renders.cancel(component_id) is True
        await renders.wait_idle()

        assert engine.cancelled == [component_id]
        assert files.moves == []
        assert renders.status(component_id) == ComponentState.CANCELLED
        assert component_id in registry
        assert metrics.get_counter("render.cancelled") == 1
        assert metrics.get_counter("render.failed") == 0
        assert "Canceled render of component 'icon.png' for layer 1" in caplog.text

    async def test_cancel_without_pending(self, renders, engine):
        assert renders.cancel(77) is False
        assert engine.cancelled == [77]

    async def test_engine_cancel_error_logged(self, renders, registry, engine, caplog):
        component_id = _add(registry, renders)
        renders.request_render(component_id)
        engine.cancel = MagicMock(side_effect=RuntimeError("engine gone"))

        assert renders.cancel(component_id) is True
        assert renders.get_job(component_id).cancel_requested
        assert f"[Render:{component_id}] Engine cancel failed: engine gone" in caplog.text

        engine.complete(component_id, "/tmp/a")
        await renders.wait_idle()
        assert renders.status(component_id) == ComponentState.CANCELLED

    async def test_success_after_cancel_is_cancelled(self, renders, registry, engine, files, tick):
        engine.honor_cancel = False
        component_id = _add(registry, renders)
        renders.request_render(component_id)
        await tick()

        renders.cancel(component_id)
        engine.complete(component_id, "/tmp/late")
        await renders.wait_idle()

        assert files.moves == []
        assert files.removed_absolute == ["/tmp/late"]
        assert renders.status(component_id) == ComponentState.CANCELLED

    async def test_cancel_all(self, renders, registry, engine, files, tick):
        first = _add(registry, renders)
        second = _add(registry, renders, file="logo.png")
        renders.request_render(first)
        renders.request_render(second)
        await tick()

        renders.cancel_all(document_id=1)
        await renders.wait_idle()

        assert engine.cancelled_documents == [1]
        assert renders.pending_ids() == []
        assert renders.status(first) == ComponentState.CANCELLED
        assert renders.status(second) == ComponentState.CANCELLED
        assert files.moves == []


class TestStaleResults:
    """过期结果"""

    async def test_completion_after_removal(self, renders, registry, engine, files, tick):
        component_id = _add(registry, renders)
        renders.request_render(component_id)
        await tick()

        registry.remove(component_id)
        renders.mark_removed(component_id)
        engine.complete(component_id, "/tmp/stale")
        await renders.wait_idle()

        assert files.moves == []
        assert files.removed_absolute == ["/tmp/stale"]
        assert renders.status(component_id) == ComponentState.REMOVED
        assert renders.get_job(component_id) is None
        assert metrics.get_counter("render.stale") == 1

    async def test_completion_after_reset(self, renders, registry, engine, files, tick):
        component_id = _add(registry, renders)
        renders.request_render(component_id)
        await tick()

        renders.reset()
        engine.complete(component_id, "/tmp/old")
        await renders.wait_idle()

        assert files.moves == []
        assert files.removed_absolute == ["/tmp/old"]
        assert renders.status(component_id) is None

    async def test_removed_state_is_terminal(self, renders, registry):
        component_id = _add(registry, renders)
        renders.mark_removed(component_id)
        renders.mark_created(component_id)

        assert renders.status(component_id) == ComponentState.REMOVED
