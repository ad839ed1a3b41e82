"""Tests for complex arithmetic, escape-time iteration and the viewport mapper."""

import unittest

from mandelbrust.core.math_functions import (
    Complex, Interval, InvalidZoomError, escape_time, pixel_to_plane,
    validate_zoom, viewport_from_centre,
)


class TestComplex(unittest.TestCase):

    def test_identity_is_origin(self):
        self.assertEqual(Complex.id(), Complex(0.0, 0.0))

    def test_abs_value_sq(self):
        self.assertEqual(Complex(3.0, 4.0).abs_value_sq(), 25.0)

    def test_mandelbrot_step(self):
        z = Complex(1.0, 2.0).mandelbrot_step(Complex(0.5, -0.5))
        self.assertEqual(z, Complex(-2.5, 3.5))

    def test_inverse(self):
        inv = Complex(3.0, 4.0).inverse()
        self.assertAlmostEqual(inv.re, 0.12)
        self.assertAlmostEqual(inv.im, -0.16)

    def test_inverse_of_zero_raises(self):
        with self.assertRaises(ZeroDivisionError):
            Complex.id().inverse()

    def test_builtin_complex_conversion(self):
        value = Complex.from_complex(complex(-0.745, 0.113))
        self.assertEqual(value, Complex(-0.745, 0.113))
        self.assertEqual(value.to_complex(), complex(-0.745, 0.113))


class TestEscapeTime(unittest.TestCase):

    def test_points_outside_radius_two_escape(self):
        for c in (Complex(2.1, 0.0), Complex(0.0, -2.5), Complex(-1.5, 1.5)):
            for max_iters in (10, 100):
                result = escape_time(c, Complex.id(), 4.0, max_iters)
                self.assertLess(result.count, max_iters, c)

    def test_escapes_on_first_iteration(self):
        result = escape_time(Complex(2.5, 0.0), Complex.id(), 2.0, 50)
        self.assertEqual(result.count, 1)
        self.assertEqual(result.final, Complex(2.5, 0.0))

    def test_origin_never_escapes(self):
        for max_iters in (1, 7, 1000):
            result = escape_time(Complex.id(), Complex.id(), 4.0, max_iters)
            self.assertEqual(result.count, max_iters)
            self.assertEqual(result.final, Complex.id())

    def test_starting_iterate_outside_bailout(self):
        z0 = Complex(3.0, 0.0)
        result = escape_time(Complex.id(), z0, 4.0, 100)
        self.assertEqual(result.count, 0)
        self.assertEqual(result.final, z0)

    def test_bounded_point_in_main_cardioid(self):
        result = escape_time(Complex(-0.1, 0.1), Complex.id(), 4.0, 500)
        self.assertEqual(result.count, 500)


class TestViewport(unittest.TestCase):

    def test_viewport_from_centre(self):
        x_range, y_range = viewport_from_centre(Complex(0.0, 0.0), 8.0)
        self.assertEqual(x_range, Interval(-2.0, 2.0))
        self.assertEqual(y_range, Interval(-1.125, 1.125))

    def test_viewport_keeps_aspect_ratio(self):
        x_range, y_range = viewport_from_centre(Complex(-0.745, 0.113), 400000.0)
        width = x_range.upper - x_range.lower
        height = y_range.upper - y_range.lower
        self.assertAlmostEqual(width / height, 16.0 / 9.0)

    def test_pixel_to_plane_has_no_half_pixel_offset(self):
        x_range, y_range = Interval(-2.0, 2.0), Interval(-1.0, 1.0)
        self.assertEqual(pixel_to_plane(0, 0, 4, 4, x_range, y_range), Complex(-2.0, -1.0))
        self.assertEqual(pixel_to_plane(2, 2, 4, 4, x_range, y_range), Complex(0.0, 0.0))
        self.assertEqual(pixel_to_plane(3, 1, 4, 4, x_range, y_range), Complex(1.0, -0.5))

    def test_inverted_interval_flips_interpolation(self):
        self.assertEqual(Interval(1.0, -1.0).lerp(0.25), 0.5)

    def test_validate_zoom(self):
        validate_zoom(1e-3)
        for zoom in (0, -1.0, float('nan')):
            with self.assertRaises(InvalidZoomError):
                validate_zoom(zoom)


if __name__ == '__main__':
    unittest.main()
