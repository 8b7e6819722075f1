"""Voxel grid layout and chunk-space coordinate helpers."""

import math
from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from .blocks import MAX_BLOCK_ID, Block
from .exceptions import InvalidGridError

MIN_CHUNK_SIZE = 4
MAX_CHUNK_SIZE = 128

# Flat grid of Block ids, length size**3, indexed by idx()
VoxelGrid = NDArray[np.uint8]


def idx(x: int, y: int, z: int, size: int) -> int:
    """Flat index of voxel (x, y, z) in a size**3 grid."""
    return x + y * size + z * size * size


def clamp_size(size: int) -> int:
    """Clamp a chunk size to the supported range."""
    return max(MIN_CHUNK_SIZE, min(MAX_CHUNK_SIZE, int(size)))


def generate_chunk(size: int, fill: Block) -> VoxelGrid:
    """Allocate a size**3 grid filled with a single block."""
    return np.full(size * size * size, int(fill), dtype=np.uint8)


def as_volume(grid: VoxelGrid, size: int, layout: str = "xyz") -> NDArray[np.uint8]:
    """Writable (z, y, x) view of a flat grid stored in the given layout.

    "xyz" is x + y*S + z*S^2 (the wire layout), "xzy" is x + z*S + y*S^2.
    """
    if layout == "xyz":
        return grid.reshape(size, size, size)
    if layout == "xzy":
        return grid.reshape(size, size, size).transpose(1, 0, 2)
    raise ValueError(f"Unknown grid layout: {layout!r}")


def validate_grid(grid: VoxelGrid, size: int) -> None:
    """Check length and block id range of a grid.

    Raises:
        InvalidGridError: If the grid is malformed.
    """
    expected = size * size * size
    if grid.size != expected:
        raise InvalidGridError(
            f"Grid has {grid.size} voxels, expected {expected} for size {size}"
        )
    if grid.size and int(grid.max()) > MAX_BLOCK_ID:
        raise InvalidGridError(f"Grid contains unknown block id {int(grid.max())}")


def grid_to_bytes(grid: VoxelGrid) -> bytes:
    """Serialize a grid as one byte per voxel."""
    return grid.astype(np.uint8, copy=False).tobytes()


def grid_from_bytes(data: bytes, size: int) -> VoxelGrid:
    """Decode a one-byte-per-voxel payload into a writable grid.

    Raises:
        InvalidGridError: If the payload length or contents are invalid.
    """
    grid = np.frombuffer(data, dtype=np.uint8).copy()
    validate_grid(grid, size)
    return grid


@dataclass(frozen=True, order=True)
class ChunkCoord:
    """Integer position of a chunk in chunk space."""

    cx: int
    cy: int
    cz: int

    def world_offset(self, size: int) -> tuple[int, int, int]:
        """World-space voxel offset of this chunk's origin."""
        return (self.cx * size, self.cy * size, self.cz * size)


def chunk_key(cx: int, cz: int) -> str:
    """Client-side record key for a surface-layer chunk."""
    return f"{cx},{cz}"


def parse_chunk_key(key: str) -> tuple[int, int]:
    """Inverse of chunk_key."""
    cx, cz = key.split(",", 1)
    return (int(cx), int(cz))


def anchor_for(x: float, z: float, chunk_size: int) -> tuple[int, int]:
    """Chunk coordinates nearest to a world position, rounding each axis half-up."""
    return (
        math.floor(x / chunk_size + 0.5),
        math.floor(z / chunk_size + 0.5),
    )


def chebyshev_distance(a: tuple[int, int], b: tuple[int, int]) -> int:
    """Chessboard distance between two chunk coordinates."""
    return max(abs(a[0] - b[0]), abs(a[1] - b[1]))


def square_around(cx: int, cz: int, radius: int) -> list[tuple[int, int]]:
    """All chunk coordinates within a square radius, row by row."""
    coords = []
    for dz in range(-radius, radius + 1):
        for dx in range(-radius, radius + 1):
            coords.append((cx + dx, cz + dz))
    return coords
