"""Procedural voxel terrain package.

Seeded Perlin noise, per-chunk seed derivation and the staged synthesis
pipeline that turns generation parameters into a voxel grid.
"""

from .generator import PaintMode, ReliefMode, carve_relief, paint_layer, synthesize
from .noise import PerlinNoise, make_noise
from .params import GenerationParams
from .seeding import derive_noise_seeds, hash32, mix, to_unit_float

__all__ = [
    "GenerationParams",
    "PaintMode",
    "PerlinNoise",
    "ReliefMode",
    "carve_relief",
    "derive_noise_seeds",
    "hash32",
    "make_noise",
    "mix",
    "paint_layer",
    "synthesize",
    "to_unit_float",
]
