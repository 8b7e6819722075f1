"""Tests for chunk streaming around an anchor."""

import asyncio

import pytest

from voxelworld.blocks import BlockRegistry
from voxelworld.exceptions import ChunkFetchError
from voxelworld.lifecycle import (
    ChunkLifecycleManager,
    ChunkState,
    ChunkStateStore,
    fallback_params,
)
from voxelworld.terrain.params import GenerationParams


@pytest.fixture
def template() -> GenerationParams:
    return GenerationParams(size=4, seed="lifecycle")


class BlockingAcquire:
    """Acquire stub that holds every request until released."""

    def __init__(self):
        self.release = asyncio.Event()
        self.requested: list[tuple[int, int]] = []

    async def __call__(self, params: GenerationParams) -> bytes:
        self.requested.append((params.cx, params.cz))
        await self.release.wait()
        return bytes(params.size ** 3)


async def _refuse(params: GenerationParams) -> bytes:
    raise ChunkFetchError("HTTP 503", status=503)


class TestChunkStateStore:
    """Tests for ChunkStateStore."""

    def test_mark_in_flight_once(self) -> None:
        store = ChunkStateStore()
        assert store.try_mark_in_flight("0,0", 0, 0)
        assert not store.try_mark_in_flight("0,0", 0, 0)
        assert store.state_of("0,0") is ChunkState.IN_FLIGHT
        assert store.state_of("1,0") is None

    def test_remove_returns_to_unloaded(self) -> None:
        store = ChunkStateStore()
        store.try_mark_in_flight("0,0", 0, 0)
        assert store.remove("0,0") is not None
        assert "0,0" not in store
        assert store.try_mark_in_flight("0,0", 0, 0)


class TestEnsureAround:
    """Tests for loading chunks around an anchor."""

    @pytest.mark.asyncio
    async def test_local_synthesis_loads_square(
        self, template: GenerationParams, registry: BlockRegistry
    ) -> None:
        """Radius 1 loads the 3x3 square with no acquire function."""
        manager = ChunkLifecycleManager(template, registry, view_radius=1)
        started = manager.ensure_around(0, 0)
        assert len(started) == 9
        await manager.wait_idle()
        assert len(manager.world) == 9
        assert len(manager.store.loaded()) == 9
        assert "-1,1" in manager.world
        assert not any(d.fallback for d in manager.world.children.values())
        assert manager.world.children["1,-1"].position == (4.0, 0.0, -4.0)

    @pytest.mark.asyncio
    async def test_no_duplicate_requests(
        self, template: GenerationParams, registry: BlockRegistry
    ) -> None:
        """Keys in flight are not requested again."""
        acquire = BlockingAcquire()
        manager = ChunkLifecycleManager(template, registry, acquire=acquire, view_radius=1)
        manager.ensure_around(0, 0)
        await asyncio.sleep(0)
        assert manager.ensure_around(0, 0) == []
        assert len(manager.store.in_flight()) == 9
        acquire.release.set()
        await manager.wait_idle()
        assert manager.ensure_around(0, 0) == []
        assert manager.acquisitions == 9
        assert sorted(acquire.requested) == sorted(
            (x, z) for x in (-1, 0, 1) for z in (-1, 0, 1)
        )

    @pytest.mark.asyncio
    async def test_fetch_failure_falls_back(
        self, template: GenerationParams, registry: BlockRegistry
    ) -> None:
        """Failed acquisitions are synthesized locally instead."""
        manager = ChunkLifecycleManager(template, registry, acquire=_refuse, view_radius=1)
        manager.ensure_around(0, 0)
        await manager.wait_idle()
        assert len(manager.store.loaded()) == 9
        assert all(d.fallback for d in manager.world.children.values())
        assert manager.world.total_instances > 0

    @pytest.mark.asyncio
    async def test_failed_fallback_returns_to_unloaded(
        self, template: GenerationParams, registry: BlockRegistry, monkeypatch
    ) -> None:
        """When local synthesis also fails the key can be retried later."""

        def broken(params: GenerationParams):
            raise RuntimeError("no terrain")

        monkeypatch.setattr("voxelworld.lifecycle.synthesize", broken)
        manager = ChunkLifecycleManager(template, registry, acquire=_refuse, view_radius=1)
        manager.ensure_around(0, 0)
        await manager.wait_idle()
        assert len(manager.store) == 0
        assert len(manager.world) == 0

        monkeypatch.undo()
        assert len(manager.ensure_around(0, 0)) == 9
        await manager.wait_idle()
        assert len(manager.world) == 9


class TestPrune:
    """Tests for unloading distant chunks."""

    @pytest.mark.asyncio
    async def test_prunes_beyond_radius_plus_one(
        self, template: GenerationParams, registry: BlockRegistry
    ) -> None:
        manager = ChunkLifecycleManager(template, registry, view_radius=1)
        manager.ensure_around(0, 0)
        await manager.wait_idle()
        drawable = manager.world.children["-1,0"]
        pruned = manager.prune(3, 0)
        assert sorted(pruned) == sorted(f"{x},{z}" for x in (-1, 0) for z in (-1, 0, 1))
        assert len(manager.world) == 3
        assert drawable.disposed
        assert manager.store.state_of("-1,0") is None

    @pytest.mark.asyncio
    async def test_in_flight_chunks_attach_then_prune(
        self, template: GenerationParams, registry: BlockRegistry
    ) -> None:
        """Loads are not cancelled when the anchor moves away."""
        acquire = BlockingAcquire()
        manager = ChunkLifecycleManager(template, registry, acquire=acquire, view_radius=1)
        manager.ensure_around(0, 0)
        assert manager.prune(10, 10) == []
        acquire.release.set()
        await manager.wait_idle()
        assert len(manager.world) == 9
        assert len(manager.prune(10, 10)) == 9
        assert len(manager.world) == 0


class TestUpdateAnchor:
    """Tests for anchor tracking."""

    @pytest.mark.asyncio
    async def test_only_acts_when_anchor_moves(
        self, template: GenerationParams, registry: BlockRegistry
    ) -> None:
        manager = ChunkLifecycleManager(template, registry, view_radius=1)
        assert manager.update_anchor(0.0, 0.0)
        assert manager.anchor == (0, 0)
        assert not manager.update_anchor(1.0, 1.9)
        assert manager.update_anchor(4.0, 0.0)
        assert manager.anchor == (1, 0)
        await manager.wait_idle()
        assert len(manager.world) == 12


class TestClose:
    """Tests for shutdown."""

    @pytest.mark.asyncio
    async def test_close_releases_everything(
        self, template: GenerationParams, registry: BlockRegistry
    ) -> None:
        manager = ChunkLifecycleManager(template, registry, view_radius=1)
        manager.ensure_around(0, 0)
        await manager.wait_idle()
        drawables = list(manager.world.children.values())
        await manager.close()
        assert len(manager.world) == 0
        assert len(manager.store) == 0
        assert all(d.disposed for d in drawables)
        assert manager.ensure_around(0, 0) == []

    @pytest.mark.asyncio
    async def test_close_cancels_in_flight(
        self, template: GenerationParams, registry: BlockRegistry
    ) -> None:
        acquire = BlockingAcquire()
        manager = ChunkLifecycleManager(template, registry, acquire=acquire, view_radius=1)
        manager.ensure_around(0, 0)
        await asyncio.sleep(0)
        await manager.close()
        assert len(manager.store) == 0
        assert len(manager.world) == 0


class TestFallbackParams:
    """Tests for fallback_params."""

    def test_deterministic(self, template: GenerationParams) -> None:
        params = template.with_coord(3, 0, -7)
        assert fallback_params(params) == fallback_params(params)

    def test_keeps_identity_and_default_knobs(self) -> None:
        params = GenerationParams(size=8, seed="x", base_block=2, cx=1, cz=2, surface_scale=0.3)
        fallback = fallback_params(params)
        assert (fallback.size, fallback.seed, fallback.cx, fallback.cz) == (8, "x", 1, 2)
        assert fallback.base_block == params.base_block
        assert fallback.surface_scale == GenerationParams().surface_scale

    def test_dirt_depth_range(self, template: GenerationParams) -> None:
        depths = {fallback_params(template.with_coord(x, 0, z)).dirt_depth for x in range(-5, 5) for z in range(-5, 5)}
        assert depths <= {1, 2, 3, 4, 5}
        assert len(depths) > 1
