"""Tests for the coordinate mapper and pixel evaluator."""

import numpy as np
import pytest

from rowcue.kernel import (
    MAX_ITER,
    compute_row,
    escape_count,
    escape_counts,
    map_pixel,
    map_row,
    pixel_value,
    shade,
)


class TestMapPixel:
    """Tests for pixel -> complex plane mapping."""

    def test_center_maps_to_origin(self):
        """The middle of a 100x100 image is the origin."""
        assert map_pixel(50, 50, 100, 100) == complex(0.0, 0.0)

    def test_corner_maps_to_minus_two(self):
        """The top-left pixel is (-2, -2)."""
        c = map_pixel(0, 0, 100, 100)
        assert c.real == pytest.approx(-2.0)
        assert c.imag == pytest.approx(-2.0)

    def test_scale_uses_width_only(self):
        """Both axes use radius^2 / width, so tall images stretch."""
        c = map_pixel(100, 0, 50, 200)
        assert c.real == pytest.approx(-2.0)
        assert c.imag == pytest.approx((100 - 100) * 4.0 / 50)
        c = map_pixel(200, 0, 50, 200)
        assert c.imag == pytest.approx(100 * 4.0 / 50)

    def test_map_row_matches_map_pixel(self):
        """Vectorised row mapping gives exactly the scalar points."""
        width, height = 37, 23
        for row in (0, 11, 22):
            real, imag = map_row(row, width, height)
            for col in range(width):
                c = map_pixel(row, col, width, height)
                assert real[col] == c.real
                assert imag[col] == c.imag


class TestEscapeCount:
    """Tests for the escape-time iteration."""

    def test_origin_never_escapes(self):
        """Points inside the set use the whole budget."""
        assert escape_count(0j) == MAX_ITER == 256

    def test_far_point_escapes_on_first_iteration(self):
        """(-2, -2) has |z|^2 = 8 after one step."""
        assert escape_count(complex(-2.0, -2.0)) == 1

    def test_count_is_at_least_one(self):
        """The loop body always runs once."""
        assert escape_count(complex(100.0, 100.0)) == 1

    def test_known_slow_escape(self):
        """c = 0.3 escapes, but only after several iterations."""
        count = escape_count(complex(0.3, 0.0))
        assert 1 < count < MAX_ITER

    def test_custom_cap(self):
        assert escape_count(-1 + 0j, max_iter=10) == 10

    def test_vectorised_counts_match_scalar(self):
        """escape_counts agrees with escape_count point by point."""
        rng = np.random.default_rng(7)
        real = rng.uniform(-2.0, 1.0, 500)
        imag = rng.uniform(-1.5, 1.5, 500)
        counts = escape_counts(real, imag)
        expected = [escape_count(complex(r, i)) for r, i in zip(real, imag)]
        assert counts.tolist() == expected


class TestShade:
    """Tests for the grayscale palette stretch."""

    def test_full_budget_is_black(self):
        """(256 * 35) mod 256 == 0."""
        assert shade(256) == 0

    def test_single_iteration(self):
        assert shade(1) == 35

    def test_wraps_modulo_256(self):
        assert shade(8) == (8 * 35) % 256 == 24


class TestComputeRow:
    """Tests for whole-row computation."""

    def test_concrete_pixels(self):
        """Row 50 of a 100x100 image is black at the origin."""
        row = compute_row(50, 100, 100)
        assert len(row) == 100
        assert row[50] == 0
        assert compute_row(0, 100, 100)[0] == 35

    def test_row_matches_scalar_path(self):
        """The numpy row is byte-identical to per-pixel evaluation."""
        width, height = 64, 48
        for row in range(0, height, 5):
            expected = bytes(pixel_value(row, col, width, height) for col in range(width))
            assert compute_row(row, width, height) == expected

    def test_single_pixel_image(self):
        """A 1x1 image maps its only pixel to (-2, -2)."""
        assert compute_row(0, 1, 1) == bytes([pixel_value(0, 0, 1, 1)])
        assert pixel_value(0, 0, 1, 1) == 35
