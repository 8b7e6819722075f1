"""Chunk streaming around a moving view anchor.

Each chunk key moves Unloaded -> InFlight -> Loaded. Loads run as asyncio
tasks on the caller's event loop; the loaded and in-flight bookkeeping is
only touched from that loop, and every check-and-mark happens without an
intervening await so a key is never requested twice.
"""

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable

import structlog

from .blocks import FLOWER_BLOCKS, BlockRegistry
from .chunks import anchor_for, chebyshev_distance, chunk_key, grid_from_bytes, square_around
from .instancing import build_billboard_layer, compile_instances
from .scene import ChunkDrawable, WorldGroup, dispose_drawable
from .terrain.generator import synthesize
from .terrain.params import GenerationParams
from .terrain.seeding import FALLBACK_SALT, hash32, mix, to_unit_float

logger = structlog.get_logger()

DEFAULT_VIEW_RADIUS = 6

# Remote acquisition: params -> raw grid bytes; any exception means failure
AcquireFn = Callable[[GenerationParams], Awaitable[bytes]]


class ChunkState(str, Enum):
    """States of a tracked chunk. Untracked keys are Unloaded."""

    IN_FLIGHT = "in_flight"
    LOADED = "loaded"


@dataclass
class ChunkRecord:
    """Bookkeeping for one tracked chunk."""

    key: str
    cx: int
    cz: int
    state: ChunkState
    drawable: ChunkDrawable | None = None


class ChunkStateStore:
    """Owned container for loaded and in-flight chunk records."""

    def __init__(self) -> None:
        self._records: dict[str, ChunkRecord] = {}

    def state_of(self, key: str) -> ChunkState | None:
        """Current state of key, or None when Unloaded."""
        record = self._records.get(key)
        return record.state if record else None

    def get(self, key: str) -> ChunkRecord | None:
        return self._records.get(key)

    def try_mark_in_flight(self, key: str, cx: int, cz: int) -> bool:
        """Claim an Unloaded key. Returns False if it is already tracked."""
        if key in self._records:
            return False
        self._records[key] = ChunkRecord(key=key, cx=cx, cz=cz, state=ChunkState.IN_FLIGHT)
        return True

    def mark_loaded(self, key: str, drawable: ChunkDrawable) -> None:
        record = self._records[key]
        record.state = ChunkState.LOADED
        record.drawable = drawable

    def remove(self, key: str) -> ChunkRecord | None:
        return self._records.pop(key, None)

    def loaded(self) -> list[ChunkRecord]:
        return [r for r in self._records.values() if r.state is ChunkState.LOADED]

    def in_flight(self) -> list[ChunkRecord]:
        return [r for r in self._records.values() if r.state is ChunkState.IN_FLIGHT]

    def __contains__(self, key: object) -> bool:
        return key in self._records

    def __len__(self) -> int:
        return len(self._records)


def fallback_params(params: GenerationParams) -> GenerationParams:
    """Default terrain settings for local synthesis of a chunk.

    Keeps size, seed, base block and coordinate; the dirt depth is drawn
    from [1, 5] by hashing (seed, cx, cz), so the fallback is reproducible.
    """
    roll = to_unit_float(mix(hash32(params.seed), params.cx, params.cz, FALLBACK_SALT))
    return GenerationParams(
        size=params.size,
        seed=params.seed,
        base_block=params.base_block,
        cx=params.cx,
        cy=params.cy,
        cz=params.cz,
        dirt_depth=1 + int(roll * 5),
    )


class ChunkLifecycleManager:
    """Loads chunks within a square radius of an anchor and evicts distant ones.

    Acquisition goes through `acquire` (typically ChunkClient.fetch) and
    falls back to local synthesis on any failure. A chunk that leaves the
    radius while in flight is not cancelled; it is attached when it
    completes and removed by a later prune().
    """

    def __init__(
        self,
        template: GenerationParams,
        registry: BlockRegistry,
        world: WorldGroup | None = None,
        *,
        acquire: AcquireFn | None = None,
        view_radius: int = DEFAULT_VIEW_RADIUS,
        store: ChunkStateStore | None = None,
    ):
        self.template = template
        self.registry = registry
        self.world = world if world is not None else WorldGroup()
        self.acquire = acquire
        self.view_radius = view_radius
        self.store = store if store is not None else ChunkStateStore()
        self.anchor: tuple[int, int] | None = None
        self.acquisitions = 0
        self._tasks: set[asyncio.Task[None]] = set()
        self._closed = False

    @property
    def chunk_size(self) -> int:
        return self.template.size

    def ensure_around(self, cx: int, cz: int) -> list[asyncio.Task[None]]:
        """Start loading every untracked chunk within view_radius of (cx, cz).

        Must be called from the running event loop. Returns the tasks
        started by this call.
        """
        if self._closed:
            return []
        loop = asyncio.get_running_loop()
        started = []
        for gx, gz in square_around(cx, cz, self.view_radius):
            key = chunk_key(gx, gz)
            if not self.store.try_mark_in_flight(key, gx, gz):
                continue
            task = loop.create_task(self._load(key, gx, gz), name=f"chunk-{key}")
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)
            started.append(task)
        if started:
            logger.debug("chunks_requested", anchor=(cx, cz), count=len(started))
        return started

    def prune(self, cx: int, cz: int) -> list[str]:
        """Unload Loaded chunks farther than view_radius + 1 from (cx, cz).

        Returns:
            Keys that were unloaded.
        """
        pruned = []
        limit = self.view_radius + 1
        for record in self.store.loaded():
            if chebyshev_distance((record.cx, record.cz), (cx, cz)) <= limit:
                continue
            self.world.detach(record.key)
            if record.drawable is not None:
                dispose_drawable(record.drawable)
            self.store.remove(record.key)
            pruned.append(record.key)
        if pruned:
            logger.debug("chunks_pruned", anchor=(cx, cz), count=len(pruned))
        return pruned

    def update_anchor(self, x: float, z: float) -> bool:
        """Re-anchor on a world position; loads and prunes only when the anchor moves.

        Returns:
            True if the anchor changed.
        """
        anchor = anchor_for(x, z, self.chunk_size)
        if anchor == self.anchor:
            return False
        self.anchor = anchor
        self.ensure_around(*anchor)
        self.prune(*anchor)
        return True

    async def wait_idle(self) -> None:
        """Wait until no loads are outstanding."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def close(self) -> None:
        """Cancel outstanding loads and release every loaded chunk."""
        self._closed = True
        for task in list(self._tasks):
            task.cancel()
        await asyncio.gather(*list(self._tasks), return_exceptions=True)
        for record in self.store.in_flight():
            self.store.remove(record.key)
        for record in self.store.loaded():
            self.world.detach(record.key)
            if record.drawable is not None:
                dispose_drawable(record.drawable)
            self.store.remove(record.key)

    async def _load(self, key: str, cx: int, cz: int) -> None:
        params = self.template.with_coord(cx, 0, cz)
        fallback = False
        try:
            grid = await self._acquire_grid(params)
        except Exception as e:
            logger.info("chunk_fallback", key=key, error=str(e))
            try:
                grid = synthesize(fallback_params(params))
            except Exception as inner:
                logger.error("chunk_fallback_failed", key=key, error=str(inner))
                self.store.remove(key)
                return
            fallback = True

        if self._closed:
            self.store.remove(key)
            return

        try:
            details = build_billboard_layer(grid, params.size, FLOWER_BLOCKS)
            instances = compile_instances(grid, params.size, self.registry)
        except Exception as e:
            logger.error("chunk_build_failed", key=key, error=str(e))
            self.store.remove(key)
            return

        drawable = ChunkDrawable.for_chunk(
            key, cx, cz, instances, details=details, fallback=fallback
        )
        self.world.attach(drawable)
        self.store.mark_loaded(key, drawable)
        logger.debug(
            "chunk_loaded",
            key=key,
            instances=instances.total_instances,
            fallback=fallback,
        )

    async def _acquire_grid(self, params: GenerationParams):
        if self.acquire is None:
            return synthesize(params)
        self.acquisitions += 1
        data = await self.acquire(params)
        return grid_from_bytes(data, params.size)
