"""Tests for the render entry points."""

import unittest
from dataclasses import replace

import numpy as np

from mandelbrust.api import BACKENDS, MAX_BAILOUT, FractalRenderer, RenderConfig, render_grid
from mandelbrust.core.math_functions import Complex, InvalidZoomError
from mandelbrust.core.plotting import EscapeMode, Normalization
from mandelbrust.rendering.palette import BUILTIN_PALETTES


SEAHORSE = dict(centre=(-0.745, 0.113), zoom=400000, width=4, height=4,
                max_iters=1000, bailout=4.0, mode='discrete', coloring='plain')


class TestRenderConfig(unittest.TestCase):

    def test_coerces_convenience_types(self):
        config = RenderConfig(centre=complex(-0.5, 0.25), mode='smooth', normalization='plain')
        self.assertEqual(config.centre, Complex(-0.5, 0.25))
        self.assertIs(config.mode, EscapeMode.SMOOTH)
        self.assertIs(config.normalization, Normalization.PLAIN)

        self.assertEqual(RenderConfig(centre=(1, 2)).centre, Complex(1.0, 2.0))

    def test_from_algorithm(self):
        config = RenderConfig.from_algorithm('smooth-histogram', zoom=2.0)
        self.assertIs(config.mode, EscapeMode.SMOOTH)
        self.assertIs(config.normalization, Normalization.HISTOGRAM)
        self.assertEqual(config.zoom, 2.0)

    def test_invalid_zoom(self):
        for zoom in (0, -8.0):
            with self.assertRaises(InvalidZoomError):
                RenderConfig(zoom=zoom).validate()
            with self.assertRaises(InvalidZoomError):
                FractalRenderer(RenderConfig(zoom=zoom))

    def test_invalid_parameters(self):
        for kwargs in ({'width': 0}, {'height': -1}, {'max_iterations': 0},
                       {'bailout': 0.0}, {'backend': 'gpu'}, {'tile_size': 0}):
            with self.assertRaises(ValueError, msg=str(kwargs)):
                RenderConfig(**kwargs).validate()

    def test_bailout_range(self):
        for bailout in (1e200, float('inf'), float('nan'), -4.0):
            with self.assertRaises(ValueError, msg=str(bailout)):
                RenderConfig(bailout=bailout).validate()
        RenderConfig(bailout=MAX_BAILOUT).validate()

    def test_smooth_needs_bailout_of_at_least_one(self):
        with self.assertRaises(ValueError):
            RenderConfig(mode='smooth', bailout=0.5).validate()
        RenderConfig(mode='smooth', bailout=1.0).validate()
        RenderConfig(mode='discrete', bailout=0.5).validate()


class TestRenderGrid(unittest.TestCase):

    def test_seahorse_grid(self):
        grid = render_grid(**SEAHORSE)
        self.assertEqual(grid.shape, (4, 4))
        self.assertEqual(grid.dtype, np.float64)
        self.assertTrue(np.all(grid >= 0.0))
        self.assertTrue(np.all(grid <= 1.0))

    def test_deterministic_across_calls(self):
        np.testing.assert_array_equal(render_grid(**SEAHORSE), render_grid(**SEAHORSE))

    def test_identical_across_backends(self):
        for mode in ('discrete', 'smooth'):
            for coloring in ('plain', 'histogram'):
                params = dict(SEAHORSE, mode=mode, coloring=coloring)
                reference = render_grid(**params, backend='python')
                for backend in BACKENDS:
                    with self.subTest(mode=mode, coloring=coloring, backend=backend):
                        np.testing.assert_array_equal(render_grid(**params, backend=backend),
                                                      reference)

    def test_smooth_bailout_below_one_rejected(self):
        for backend in ('python', 'numba'):
            with self.subTest(backend=backend):
                with self.assertRaises(ValueError):
                    render_grid(centre=(-0.5, 0.0), zoom=8.0, width=8, height=6, max_iters=50,
                                bailout=0.5, mode='smooth', coloring='histogram', backend=backend)

    def test_smooth_bailout_of_one_identical_across_backends(self):
        params = dict(centre=(-0.5, 0.0), zoom=8.0, width=8, height=6, max_iters=50,
                      bailout=1.0, mode='smooth', coloring='histogram')
        reference = render_grid(**params, backend='python')
        np.testing.assert_array_equal(render_grid(**params, backend='numba'), reference)
        self.assertTrue(np.all(np.isfinite(reference)))
        self.assertTrue(np.all((reference >= 0.0) & (reference <= 1.0)))

    def test_discrete_accepts_small_bailout(self):
        params = dict(centre=(-0.5, 0.0), zoom=8.0, width=8, height=6, max_iters=50,
                      bailout=0.5, mode='discrete', coloring='histogram')
        np.testing.assert_array_equal(render_grid(**params, backend='numba'),
                                      render_grid(**params, backend='python'))

    def test_histogram_output_in_unit_interval(self):
        for mode in ('discrete', 'smooth'):
            grid = render_grid(centre=(-0.5, 0.0), zoom=8.0, width=32, height=18,
                               max_iters=300, bailout=1e6, mode=mode, coloring='histogram')
            self.assertTrue(np.all(grid >= 0.0))
            self.assertTrue(np.all(grid <= 1.0))
            # Points inside the set fill the top bucket
            self.assertEqual(grid.max(), 1.0)


class TestFractalRenderer(unittest.TestCase):

    def setUp(self):
        self.config = RenderConfig(centre=Complex(-0.5, 0.0), zoom=8.0, width=32, height=18,
                                   max_iterations=200, bailout=4.0)

    def test_evaluate_returns_raw_counts(self):
        raw = FractalRenderer(self.config).evaluate()
        self.assertEqual(raw.shape, (32, 18))
        self.assertEqual(raw.max(), 200.0)

    def test_render_image(self):
        image = FractalRenderer(self.config).render_image(BUILTIN_PALETTES['midnight'])
        self.assertEqual(image.shape, (18, 32, 3))
        self.assertEqual(image.dtype, np.uint8)

    def test_benchmark_backends(self):
        renderer = FractalRenderer(replace(self.config, width=16, height=9))
        results = renderer.benchmark_backends(('numba', 'numba-serial', 'python'))

        self.assertEqual(results['resolution'], '16x9')
        self.assertEqual(list(results['backends']), ['numba', 'numba-serial', 'python'])
        for stats in results['backends'].values():
            self.assertTrue(stats['identical'])
            self.assertGreater(stats['pixels_per_second'], 0)


if __name__ == '__main__':
    unittest.main()
