"""Tests for plain normalisation and histogram equalisation."""

import unittest

import numpy as np

from mandelbrust.core.plotting import Normalization
from mandelbrust.rendering.coloring import (
    apply_normalization, cumulative_histogram, histogram_equalize, normalise,
    pixels_per_iteration,
)


class TestHistogram(unittest.TestCase):

    def test_pixels_per_iteration(self):
        raw = np.array([[0.0, 1.0], [1.5, 5.0]])
        np.testing.assert_array_equal(pixels_per_iteration(raw, 5), [1, 2, 0, 0, 0, 1])

    def test_out_of_range_values_are_clipped_into_buckets(self):
        raw = np.array([-0.5, 2.0, 7.25])
        np.testing.assert_array_equal(pixels_per_iteration(raw, 4), [1, 0, 1, 0, 1])

    def test_cumulative_histogram_ends_at_total(self):
        raw = np.random.default_rng(1).uniform(0, 50, size=(30, 20))
        cum_hist = cumulative_histogram(raw, 50)
        self.assertEqual(len(cum_hist), 51)
        self.assertEqual(cum_hist[-1], raw.size)
        self.assertTrue(np.all(np.diff(cum_hist) >= 0))


class TestHistogramEqualize(unittest.TestCase):

    def test_output_in_unit_interval(self):
        raw = np.random.default_rng(2).uniform(-2, 110, size=(40, 25))
        hue = histogram_equalize(raw, 100)
        self.assertEqual(hue.shape, raw.shape)
        self.assertTrue(np.all(hue >= 0.0))
        self.assertTrue(np.all(hue <= 1.0))

    def test_monotonic_in_raw_value(self):
        raw = np.random.default_rng(3).uniform(0, 100, size=(40, 25))
        raw[0, :5] = [0.0, 12.0, 12.5, 99.99, 100.0]
        hue = histogram_equalize(raw, 100)

        order = np.argsort(raw, axis=None, kind='stable')
        self.assertTrue(np.all(np.diff(hue.ravel()[order]) >= 0.0))

    def test_bounded_points_map_to_one(self):
        raw = np.array([[0.0, 3.0], [3.0, 10.0]])
        hue = histogram_equalize(raw, 10)
        self.assertEqual(hue[1, 1], 1.0)

    def test_discrete_values_take_their_bucket_total(self):
        raw = np.array([[0.0, 3.0], [3.0, 10.0]])
        hue = histogram_equalize(raw, 10)
        # cum_hist = [1, 1, 1, 3, 3, ..., 4]
        np.testing.assert_array_equal(hue, [[0.25, 0.75], [0.75, 1.0]])

    def test_fractional_values_interpolate(self):
        raw = np.array([0.0, 1.0, 1.5, 2.0])
        hue = histogram_equalize(raw, 2)
        # cum_hist = [1, 3, 4]
        np.testing.assert_array_equal(hue, [0.25, 0.75, 0.875, 1.0])

    def test_explicit_total_points(self):
        raw = np.array([[0.0, 3.0], [3.0, 10.0]])
        hue = histogram_equalize(raw, 10, total_points=8)
        self.assertEqual(hue[1, 1], 0.5)


class TestNormalization(unittest.TestCase):

    def test_plain_normalise(self):
        raw = np.array([[0.0, 25.0], [50.0, 100.0]])
        np.testing.assert_array_equal(normalise(raw, 100), [[0.0, 0.25], [0.5, 1.0]])

    def test_apply_normalization_dispatch(self):
        raw = np.array([[0.0, 3.0], [3.0, 10.0]])
        np.testing.assert_array_equal(apply_normalization(raw, 10, Normalization.PLAIN),
                                      normalise(raw, 10))
        np.testing.assert_array_equal(apply_normalization(raw, 10, Normalization.HISTOGRAM),
                                      histogram_equalize(raw, 10))


if __name__ == '__main__':
    unittest.main()
