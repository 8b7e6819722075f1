"""Seeded gradient noise for terrain generation.

Improved Perlin noise over a seed-shuffled permutation table. Evaluation is
vectorized with numpy: coordinates may be scalars or arrays of any
broadcastable shape.
"""

import numpy as np
from numpy.typing import ArrayLike, NDArray


def build_permutation(seed: float) -> NDArray[np.int64]:
    """Build the doubled (512-entry) permutation table for a unit-float seed.

    The shuffle swaps index i with floor(seed * (i + 1)) for i from 255 down
    to 1, using the same seed scalar for every swap.
    """
    p = list(range(256))
    for i in range(255, 0, -1):
        j = int(np.floor(seed * (i + 1)))
        p[i], p[j] = p[j], p[i]
    return np.array(p + p, dtype=np.int64)


def _fade(t: NDArray[np.float64]) -> NDArray[np.float64]:
    return t * t * t * (t * (t * 6 - 15) + 10)


def _lerp(a: NDArray[np.float64], b: NDArray[np.float64], t: NDArray[np.float64]) -> NDArray[np.float64]:
    return a + t * (b - a)


def _grad(
    hash_value: NDArray[np.int64],
    x: NDArray[np.float64],
    y: NDArray[np.float64],
    z: NDArray[np.float64],
) -> NDArray[np.float64]:
    h = hash_value & 15
    u = np.where(h < 8, x, y)
    v = np.where(h < 4, y, np.where((h == 12) | (h == 14), x, z))
    return np.where((h & 1) == 0, u, -u) + np.where((h & 2) == 0, v, -v)


class PerlinNoise:
    """Noise field for a fixed seed. Calls return values in roughly [0, 1].

    The permutation table is built once and never mutated, so instances are
    safe to share and calls are pure functions of (seed, x, y, z).
    """

    def __init__(self, seed: float) -> None:
        self.seed = float(seed)
        self._perm = build_permutation(self.seed)
        self._perm.setflags(write=False)

    def __call__(self, x: ArrayLike, y: ArrayLike, z: ArrayLike | None = None):
        if z is None:
            result = self._noise2(np.asarray(x, dtype=np.float64), np.asarray(y, dtype=np.float64))
        else:
            result = self._noise3(
                np.asarray(x, dtype=np.float64),
                np.asarray(y, dtype=np.float64),
                np.asarray(z, dtype=np.float64),
            )
        result = result * 0.5 + 0.5
        if np.ndim(result) == 0:
            return float(result)
        return result

    def _noise3(
        self,
        x: NDArray[np.float64],
        y: NDArray[np.float64],
        z: NDArray[np.float64],
    ) -> NDArray[np.float64]:
        p = self._perm
        xf, yf, zf = np.floor(x), np.floor(y), np.floor(z)
        X = xf.astype(np.int64) & 255
        Y = yf.astype(np.int64) & 255
        Z = zf.astype(np.int64) & 255
        x, y, z = x - xf, y - yf, z - zf
        u, v, w = _fade(x), _fade(y), _fade(z)

        A = p[X] + Y
        AA = p[A] + Z
        AB = p[A + 1] + Z
        B = p[X + 1] + Y
        BA = p[B] + Z
        BB = p[B + 1] + Z

        return _lerp(
            _lerp(
                _lerp(_grad(p[AA], x, y, z), _grad(p[BA], x - 1, y, z), u),
                _lerp(_grad(p[AB], x, y - 1, z), _grad(p[BB], x - 1, y - 1, z), u),
                v,
            ),
            _lerp(
                _lerp(_grad(p[AA + 1], x, y, z - 1), _grad(p[BA + 1], x - 1, y, z - 1), u),
                _lerp(_grad(p[AB + 1], x, y - 1, z - 1), _grad(p[BB + 1], x - 1, y - 1, z - 1), u),
                v,
            ),
            w,
        )

    def _noise2(self, x: NDArray[np.float64], y: NDArray[np.float64]) -> NDArray[np.float64]:
        # z = 0 plane of _noise3: the far-z face has zero weight, so only
        # the four near-face gradients are evaluated.
        p = self._perm
        xf, yf = np.floor(x), np.floor(y)
        X = xf.astype(np.int64) & 255
        Y = yf.astype(np.int64) & 255
        x, y = x - xf, y - yf
        z = np.zeros_like(x)
        u, v = _fade(x), _fade(y)

        A = p[X] + Y
        B = p[X + 1] + Y
        AA, AB = p[A], p[A + 1]
        BA, BB = p[B], p[B + 1]

        return _lerp(
            _lerp(_grad(p[AA], x, y, z), _grad(p[BA], x - 1, y, z), u),
            _lerp(_grad(p[AB], x, y - 1, z), _grad(p[BB], x - 1, y - 1, z), u),
            v,
        )


def make_noise(seed: float) -> PerlinNoise:
    """Create a noise function for a seed in [0, 1)."""
    return PerlinNoise(seed)
