"""Voxel grid to instanced-draw batches.

Each solid block type becomes one batch of 4x4 translation matrices (row
major, translation in the last column) so a renderer can bind one material
and issue one instanced draw per type.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Iterable

import numpy as np
from numpy.typing import NDArray

from .blocks import MAX_BLOCK_ID, SOLID_BLOCKS, Block, BlockRegistry
from .chunks import VoxelGrid, as_volume


@dataclass
class InstanceBatch:
    """Fixed-capacity transform buffer for one block type."""

    block: Block
    material: Any
    matrices: NDArray[np.float32]  # (capacity, 4, 4)
    count: int = 0

    @property
    def capacity(self) -> int:
        return self.matrices.shape[0]

    @property
    def instances(self) -> NDArray[np.float32]:
        """The filled transforms, in grid iteration order."""
        return self.matrices[: self.count]

    @property
    def positions(self) -> NDArray[np.float32]:
        """Translation component of each filled transform, shape (count, 3)."""
        return self.matrices[: self.count, :3, 3]

    def release(self) -> None:
        """Drop the transform buffer."""
        self.matrices = np.zeros((0, 4, 4), dtype=np.float32)
        self.count = 0


@dataclass
class ChunkInstances:
    """All batches for one chunk, keyed by block type."""

    size: int
    batches: dict[Block, InstanceBatch] = field(default_factory=dict)

    @property
    def total_instances(self) -> int:
        return sum(b.count for b in self.batches.values())

    def batch(self, block: Block) -> InstanceBatch:
        return self.batches[Block(block)]

    def release(self) -> None:
        for batch in self.batches.values():
            batch.release()


def count_blocks(grid: VoxelGrid, size: int) -> dict[Block, int]:
    """Occurrences of every block type in a grid (Air included)."""
    counts = np.bincount(grid[: size ** 3], minlength=MAX_BLOCK_ID + 1)
    return {b: int(counts[b]) for b in Block}


def _identity_stack(n: int) -> NDArray[np.float32]:
    return np.tile(np.eye(4, dtype=np.float32), (n, 1, 1))


def compile_instances(
    grid: VoxelGrid,
    size: int,
    registry: BlockRegistry,
    blocks: Iterable[Block] = SOLID_BLOCKS,
) -> ChunkInstances:
    """Build per-type instance batches for a chunk.

    Count pass sizes every batch exactly (minimum capacity 1, so handles
    stay valid for absent types); fill pass writes a centred translation
    per solid voxel in flat-index order, advancing a cursor per type.

    Args:
        grid: Flat size**3 grid in xyz layout.
        size: Chunk side length.
        registry: Supplies the material bound to each batch.
        blocks: Block types to build batches for.

    Returns:
        ChunkInstances with one batch per requested block type.
    """
    counts = count_blocks(grid, size)
    batches: dict[Block, InstanceBatch] = {}
    for block in blocks:
        block = Block(block)
        if not block.solid:
            continue
        batches[block] = InstanceBatch(
            block=block,
            material=registry.material_of(block),
            matrices=_identity_stack(max(1, counts[block])),
        )

    half = size / 2
    solid = np.flatnonzero(grid[: size ** 3])
    ids = grid[solid]
    xs = solid % size
    ys = (solid // size) % size
    zs = solid // (size * size)
    positions = np.stack([xs, ys, zs], axis=1).astype(np.float32) + np.float32(-half + 0.5)

    for block, batch in batches.items():
        selected = positions[ids == int(block)]
        cursor = batch.count
        end = cursor + selected.shape[0]
        batch.matrices[cursor:end, :3, 3] = selected
        batch.count = end

    return ChunkInstances(size=size, batches=batches)


@dataclass
class BillboardLayer:
    """Camera-facing quads for detail blocks such as flowers."""

    matrices: NDArray[np.float32]  # (count, 4, 4)
    sizes: NDArray[np.float32]  # (count, 2) width, height
    frames: NDArray[np.float32]  # (count,) atlas frame
    blocks: NDArray[np.uint8]  # (count,) source block ids
    render_order: int = 2  # draw after solid voxels

    @property
    def count(self) -> int:
        return self.matrices.shape[0]


def build_billboard_layer(
    grid: VoxelGrid,
    size: int,
    detail_blocks: Iterable[int],
    *,
    layout: str = "xyz",
    air: int = Block.AIR,
    frame_of: Callable[[int], float] = lambda block: 0,
    size_of: Callable[[int], tuple[float, float]] = lambda block: (0.9, 1.2),
    y_offset: float = 1.0,
) -> BillboardLayer | None:
    """Extract detail voxels into a billboard layer.

    Consumed cells are set to `air` in the grid so the cube compiler does
    not also draw them. Instances are ordered y, then z, then x.

    Returns:
        The layer, or None if the grid holds no detail blocks.
    """
    detail = np.array(sorted({int(b) for b in detail_blocks}), dtype=np.uint8)
    vol = as_volume(grid, size, layout).transpose(1, 0, 2)  # (y, z, x)
    ys, zs, xs = np.nonzero(np.isin(vol, detail))
    count = len(ys)
    if count == 0:
        return None

    ids = vol[ys, zs, xs].copy()
    matrices = _identity_stack(count)
    matrices[:, 0, 3] = xs + 0.5
    matrices[:, 1, 3] = ys + y_offset - 0.5
    matrices[:, 2, 3] = zs + 0.5

    sizes = np.array([size_of(int(b)) for b in ids], dtype=np.float32).reshape(count, 2)
    frames = np.array([frame_of(int(b)) for b in ids], dtype=np.float32)

    vol[ys, zs, xs] = int(air)

    return BillboardLayer(matrices=matrices, sizes=sizes, frames=frames, blocks=ids)
