"""Shared test fixtures for voxelworld tests."""

import numpy as np
import pytest

from voxelworld.blocks import BlockRegistry, create_default_registry
from voxelworld.cache import ChunkCache
from voxelworld.terrain.params import GenerationParams


@pytest.fixture
def example_params() -> GenerationParams:
    """The 4x4x4 reference chunk: seed 'seed', stone base, origin chunk."""
    return GenerationParams(
        size=4,
        seed="seed",
        base_block=3,
        cx=0,
        cy=0,
        cz=0,
        surface_scale=0.04,
        caves_scale=0.16,
        caves_threshold=0.72,
        grass_depth=2,
        dirt_depth=3,
    )


@pytest.fixture
def registry() -> BlockRegistry:
    """Registry with the default block materials."""
    return create_default_registry()


@pytest.fixture
def cache() -> ChunkCache:
    """Empty chunk cache backed by the real synthesizer."""
    return ChunkCache()


class ConstantNoise:
    """Noise stand-in returning one value everywhere."""

    def __init__(self, value: float):
        self.value = value

    def __call__(self, x, y, z=None):
        arrays = [np.asarray(x), np.asarray(y)]
        if z is not None:
            arrays.append(np.asarray(z))
        return np.full(np.broadcast(*arrays).shape, self.value, dtype=np.float64)


@pytest.fixture
def constant_noise():
    """Factory for ConstantNoise."""
    return ConstantNoise
