"""Tests for seeded Perlin noise."""

import numpy as np
import pytest

from voxelworld.terrain.noise import PerlinNoise, build_permutation, make_noise


class TestPermutation:
    """Tests for the seed-shuffled permutation table."""

    def test_table_is_doubled_permutation(self) -> None:
        """Table has 512 entries: a permutation of 0..255 repeated."""
        perm = build_permutation(0.37)
        assert perm.shape == (512,)
        assert sorted(perm[:256].tolist()) == list(range(256))
        np.testing.assert_array_equal(perm[:256], perm[256:])

    def test_zero_seed_rotates_table(self) -> None:
        """Seed 0 swaps every index with slot 0, rotating the identity by one."""
        perm = build_permutation(0.0)
        assert perm[0] == 1
        assert perm[1] == 2
        assert perm[254] == 255
        assert perm[255] == 0

    def test_same_seed_same_table(self) -> None:
        """Construction is deterministic."""
        np.testing.assert_array_equal(build_permutation(0.5), build_permutation(0.5))

    def test_different_seed_different_table(self) -> None:
        """Different seeds shuffle differently."""
        assert not np.array_equal(build_permutation(0.1), build_permutation(0.9))


class TestPerlinNoise:
    """Tests for noise evaluation."""

    def test_lattice_points_are_midpoint(self) -> None:
        """Integer coordinates have zero gradient contribution -> 0.5."""
        noise = make_noise(0.42)
        assert noise(3, 7) == 0.5
        assert noise(1, 2, 3) == 0.5
        assert noise(-5, 0, 12) == 0.5

    def test_scalar_input_returns_float(self) -> None:
        """Scalar calls return plain floats."""
        noise = make_noise(0.42)
        assert isinstance(noise(0.3, 0.4), float)
        assert isinstance(noise(0.3, 0.4, 0.5), float)

    def test_array_input_matches_scalar_calls(self) -> None:
        """Vectorized evaluation agrees with point-by-point evaluation."""
        noise = make_noise(0.7)
        xs = np.array([0.1, 1.7, -2.3, 10.25])
        ys = np.array([0.9, 3.3, 4.4, -0.75])
        batch = noise(xs, ys, 0.5)
        for i in range(len(xs)):
            assert batch[i] == noise(float(xs[i]), float(ys[i]), 0.5)

    def test_two_dimensional_equals_z_zero(self) -> None:
        """Omitting z is exactly the z = 0 slice of the 3D field."""
        noise = make_noise(0.123)
        xs = np.linspace(-3.0, 3.0, 37)
        ys = np.linspace(-2.0, 5.0, 37)
        np.testing.assert_array_equal(noise(xs, ys), noise(xs, ys, 0.0))

    def test_deterministic_with_same_seed(self) -> None:
        """Same seed, same inputs, same output across instances."""
        xs = np.linspace(0.0, 8.0, 50)
        a = PerlinNoise(0.31)(xs, xs * 0.5, xs * 0.25)
        b = PerlinNoise(0.31)(xs, xs * 0.5, xs * 0.25)
        np.testing.assert_array_equal(a, b)

    def test_different_seed_different_output(self) -> None:
        """Different seeds give different fields."""
        xs = np.linspace(0.05, 8.05, 50)
        a = make_noise(0.2)(xs, xs * 0.7)
        b = make_noise(0.8)(xs, xs * 0.7)
        assert not np.allclose(a, b)

    def test_output_range(self) -> None:
        """Values stay in (approximately) [0, 1]."""
        noise = make_noise(0.66)
        grid = np.linspace(-10.0, 10.0, 41)
        values = noise(grid[:, None, None], grid[None, :, None], grid[None, None, :])
        assert values.min() >= -0.05
        assert values.max() <= 1.05

    def test_continuous(self) -> None:
        """Nearby inputs give nearby outputs."""
        noise = make_noise(0.5)
        assert abs(noise(2.5, 3.5) - noise(2.501, 3.5)) < 0.01

    def test_permutation_is_read_only(self) -> None:
        """No mutable state escapes construction."""
        noise = make_noise(0.5)
        with pytest.raises(ValueError):
            noise._perm[0] = 7


class TestReferenceValues:
    """Pinned outputs that must not change between releases."""

    def test_permutation_prefix(self) -> None:
        """The shuffle uses one seed scalar for every swap."""
        assert build_permutation(0.5)[:10].tolist() == [0, 129, 1, 193, 2, 161, 3, 225, 4, 145]
        assert build_permutation(0.123)[:10].tolist() == [65, 130, 195, 32, 40, 48, 56, 0, 73, 81]

    @pytest.mark.parametrize(
        "point,expected",
        [
            ((0.3, 0.7), 0.865232),
            ((10.5, -7.25), 0.6055908203125),
            ((1.25, 2.5, 3.75), 0.5881514549255371),
            ((-3.1, 4.2, -0.6), 0.567065451936973),
        ],
    )
    def test_samples(self, point: tuple[float, ...], expected: float) -> None:
        assert make_noise(0.5)(*point) == pytest.approx(expected, abs=1e-12)

    def test_surface_seed_samples(self) -> None:
        """Samples of the reference chunk's surface field."""
        noise = make_noise(0.32276422530412674)
        assert noise(0.04, 0.12) == pytest.approx(0.48634960201280775, abs=1e-12)
        assert noise(0.5, 0.5, 0.5) == pytest.approx(0.5625, abs=1e-12)
