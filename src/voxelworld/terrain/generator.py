"""Chunk terrain synthesis.

A chunk is built in full-grid passes, each overriding the previous one:
base fill, heightmap carving, cave carving, grass cap, dirt layer.
"""

import logging
from enum import Enum

import numpy as np
from numpy.typing import NDArray

from ..blocks import Block
from ..chunks import VoxelGrid, as_volume, generate_chunk
from .noise import PerlinNoise, make_noise
from .params import GenerationParams
from .seeding import derive_noise_seeds

logger = logging.getLogger(__name__)


class ReliefMode(str, Enum):
    """How a noise field cuts into the grid."""

    SURFACE = "surface"  # heightmap: fill above floor(n * size)
    REVERSE_SURFACE = "reverse_surface"  # inverted heightmap: fill below
    VOLUME = "volume"  # 3D: fill where n > threshold


class PaintMode(str, Enum):
    """Column walk policy for paint_layer."""

    CONTIGUOUS = "contiguous"
    ANY = "any"


def _axis(size: int, offset: int, scale: float) -> NDArray[np.float64]:
    return (np.arange(size, dtype=np.int64) + offset).astype(np.float64) * scale


def carve_relief(
    grid: VoxelGrid,
    size: int,
    noise: PerlinNoise,
    *,
    scale: float = 0.1,
    threshold: float = 0.5,
    mode: ReliefMode = ReliefMode.SURFACE,
    fill: Block = Block.AIR,
    offset: tuple[int, int, int] = (0, 0, 0),
) -> None:
    """Cut a noise-driven shape into the grid in place.

    Args:
        grid: Flat size**3 grid in xyz layout.
        size: Chunk side length.
        noise: Noise field to sample.
        scale: Noise frequency applied to world-space voxel coordinates.
        threshold: Cut-off for VOLUME mode.
        mode: SURFACE clears cells above the column height, REVERSE_SURFACE
            fills cells below it, VOLUME fills cells whose noise exceeds
            threshold.
        fill: Block written into carved cells.
        offset: World-space voxel offset of the chunk.
    """
    mode = ReliefMode(mode)
    vol = as_volume(grid, size, "xyz")
    ox, oy, oz = offset
    xs = _axis(size, ox, scale)
    zs = _axis(size, oz, scale)
    ys_idx = np.arange(size)

    if mode in (ReliefMode.SURFACE, ReliefMode.REVERSE_SURFACE):
        heights = noise(xs[None, :], zs[:, None])  # (z, x)
        cut = np.floor(heights * size).astype(np.int64)
        if mode is ReliefMode.SURFACE:
            mask = ys_idx[None, :, None] > cut[:, None, :]
        else:
            mask = ys_idx[None, :, None] < cut[:, None, :]
        vol[mask] = int(fill)
    elif mode is ReliefMode.VOLUME:
        ys = _axis(size, oy, scale)
        n = noise(xs[None, None, :], ys[None, :, None], zs[:, None, None])
        vol[n > threshold] = int(fill)
    else:
        raise ValueError(f"Unknown relief mode: {mode!r}")


def paint_layer(
    grid: VoxelGrid,
    size: int,
    from_block: Block | None,
    to_block: Block,
    depth: int,
    mode: PaintMode = PaintMode.CONTIGUOUS,
    layout: str = "xyz",
) -> int:
    """Recolour the top of every (x, z) column in place.

    Both modes start at the topmost solid cell of the column. CONTIGUOUS
    replaces matching cells until `depth` replacements, an Air cell or the
    first non-matching cell. ANY visits the top `depth` solid cells (Air
    gaps are passed over without counting) and replaces the matching ones.

    Args:
        grid: Flat size**3 grid.
        size: Chunk side length.
        from_block: Block to replace, or None to match any solid block.
        to_block: Replacement block.
        depth: Cells from the top to consider; <= 0 is a no-op.
        mode: Column walk policy.
        layout: "xyz" (x + y*S + z*S^2) or "xzy" (x + z*S + y*S^2).

    Returns:
        Number of cells replaced.
    """
    if depth <= 0:
        return 0

    vol = as_volume(grid, size, layout)
    air = int(Block.AIR)
    target = int(to_block)
    source = None if from_block is None else int(from_block)
    contiguous = PaintMode(mode) is PaintMode.CONTIGUOUS
    replaced_total = 0

    for z in range(size):
        for x in range(size):
            column = vol[z, :, x]
            solid = np.flatnonzero(column != air)
            if solid.size == 0:
                continue
            y = int(solid[-1])
            visited = 0
            while y >= 0 and visited < depth:
                b = int(column[y])
                if contiguous:
                    if b == air or (source is not None and b != source):
                        break
                    column[y] = target
                    visited += 1
                    replaced_total += 1
                elif b != air:
                    if source is None or b == source:
                        column[y] = target
                        replaced_total += 1
                    visited += 1
                y -= 1

    return replaced_total


def synthesize(params: GenerationParams) -> VoxelGrid:
    """Generate the voxel grid for one chunk.

    Deterministic: equal params always yield byte-identical grids.
    Noise seeds are derived from the world seed and the chunk's world
    offset, so neighbouring chunks sample decorrelated fields.
    """
    size = params.size
    offset = params.world_offset
    surface_seed, caves_seed = derive_noise_seeds(params.seed, offset)

    grid = generate_chunk(size, params.base_block)

    carve_relief(
        grid,
        size,
        make_noise(surface_seed),
        scale=params.surface_scale,
        mode=ReliefMode.SURFACE,
        offset=offset,
    )
    carve_relief(
        grid,
        size,
        make_noise(caves_seed),
        scale=params.caves_scale,
        threshold=params.caves_threshold,
        mode=ReliefMode.VOLUME,
        offset=offset,
    )

    grass = paint_layer(grid, size, params.base_block, Block.GRASS, params.grass_depth, PaintMode.CONTIGUOUS)
    dirt = paint_layer(grid, size, params.base_block, Block.DIRT, params.dirt_depth, PaintMode.ANY)

    logger.debug(
        f"Synthesized chunk ({params.cx},{params.cy},{params.cz}) size {size}: "
        f"{grass} grass, {dirt} dirt"
    )
    return grid
