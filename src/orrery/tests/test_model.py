"""Tests for orbital elements and body advancement."""
import math
import random
import unittest

import numpy as np

from orrery.core.errors import ConfigurationError, MotionModelError
from orrery.core.model import Appearance, MotionModel, OrbitalBody, OrbitalElements


def make_elements(**overrides):
    values = dict(eccentricity=0.0, inclination=0.0, longitude_of_perihelion=0.0,
                  semi_major_axis=100.0, period=1.0)
    values.update(overrides)
    return OrbitalElements(**values)


class TestOrbitalElements(unittest.TestCase):

    def test_derived_quantities(self):
        elements = make_elements(eccentricity=0.6, semi_major_axis=10.0, period=4.0)
        self.assertAlmostEqual(elements.semi_minor_axis, 8.0)
        self.assertAlmostEqual(elements.focal_distance, 6.0)
        self.assertAlmostEqual(elements.mean_motion, math.pi / 2)

    def test_zero_period_rejected_at_construction(self):
        with self.assertRaises(ConfigurationError):
            make_elements(period=0.0)

    def test_negative_period_rejected(self):
        with self.assertRaises(ConfigurationError):
            make_elements(period=-1.0)

    def test_eccentricity_range(self):
        for bad in (-0.01, 1.0, 1.5):
            with self.assertRaises(ConfigurationError):
                make_elements(eccentricity=bad)

    def test_non_finite_rejected(self):
        with self.assertRaises(ConfigurationError):
            make_elements(inclination=float("nan"))

    def test_configuration_error_is_value_error(self):
        with self.assertRaises(ValueError):
            make_elements(semi_major_axis=0.0)

    def test_from_degrees(self):
        elements = OrbitalElements.from_degrees(eccentricity=0.1, inclination_deg=90.0,
                                                longitude_of_perihelion_deg=180.0,
                                                semi_major_axis=1.0, period=1.0)
        self.assertAlmostEqual(elements.inclination, math.pi / 2)
        self.assertAlmostEqual(elements.longitude_of_perihelion, math.pi)


class TestOrbitalBody(unittest.TestCase):

    def test_circular_quarter_turn(self):
        """period 1, dt 0.25: the angle grows by exactly pi/2."""
        body = OrbitalBody("earth", make_elements(), MotionModel.CIRCULAR, phase=0.4)
        body.advance(0.25)
        self.assertAlmostEqual(body.angle - 0.4, 2 * math.pi * 0.25, places=12)
        self.assertAlmostEqual(body.angle - 0.4, 1.5707963267948966, places=12)

    def test_circular_angle_is_unbounded(self):
        body = OrbitalBody("earth", make_elements(), MotionModel.CIRCULAR, phase=0.0)
        body.advance(2.5)
        self.assertAlmostEqual(body.angle, 5.0 * math.pi)

    def test_elliptical_half_orbit(self):
        body = OrbitalBody("earth", make_elements(eccentricity=0.017), MotionModel.ELLIPTICAL)
        start = np.array(body.position())
        body.advance(0.5)
        self.assertAlmostEqual(body.mean_anomaly, math.pi, places=12)
        end = np.array(body.position())
        np.testing.assert_allclose(end / np.linalg.norm(end), -start / np.linalg.norm(start),
                                   atol=1e-9)

    def test_elliptical_half_orbit_with_rotation_removed(self):
        omega, inclination = 1.8, 0.3
        body = OrbitalBody("earth",
                           make_elements(eccentricity=0.017, longitude_of_perihelion=omega,
                                         inclination=inclination),
                           MotionModel.ELLIPTICAL)

        def in_plane(point):
            x, y = point[0], point[1] / math.cos(inclination)
            return np.array([x * math.cos(-omega) - y * math.sin(-omega),
                             x * math.sin(-omega) + y * math.cos(-omega)])

        start = in_plane(body.position())
        body.advance(0.5)
        end = in_plane(body.position())
        np.testing.assert_allclose(end / np.linalg.norm(end), -start / np.linalg.norm(start),
                                   atol=1e-9)

    def test_mean_anomaly_wraps(self):
        body = OrbitalBody("mars", make_elements(eccentricity=0.093), MotionModel.ELLIPTICAL,
                           phase=6.0)
        body.advance(0.25)
        self.assertGreaterEqual(body.mean_anomaly, 0.0)
        self.assertLess(body.mean_anomaly, 2 * math.pi)
        self.assertAlmostEqual(body.mean_anomaly, (6.0 + math.pi / 2) % (2 * math.pi))

    def test_degenerate_ellipse_matches_circle(self):
        elements = make_elements(eccentricity=0.0)
        for phase in np.linspace(0.0, 2 * math.pi, 50, endpoint=False):
            circle = OrbitalBody("a", elements, MotionModel.CIRCULAR, float(phase))
            ellipse = OrbitalBody("b", elements, MotionModel.ELLIPTICAL, float(phase))
            cx, cy = circle.position()
            ex, ey = ellipse.position()
            self.assertLess(abs(cx - ex), 1e-9)
            self.assertLess(abs(cy - ey), 1e-9)

    def test_wrong_phase_variable_raises(self):
        circle = OrbitalBody("a", make_elements(), MotionModel.CIRCULAR)
        ellipse = OrbitalBody("b", make_elements(), MotionModel.ELLIPTICAL)
        with self.assertRaises(MotionModelError):
            circle.mean_anomaly
        with self.assertRaises(MotionModelError):
            ellipse.angle

    def test_apply_keeps_phase(self):
        body = OrbitalBody("venus", make_elements(), MotionModel.CIRCULAR, phase=1.25)
        new_elements = make_elements(eccentricity=0.007, semi_major_axis=70.0, period=0.62)
        body.apply(new_elements, MotionModel.ELLIPTICAL, Appearance(size=7.0, color="#DEB887"))
        self.assertIs(body.elements, new_elements)
        self.assertIs(body.motion_model, MotionModel.ELLIPTICAL)
        self.assertEqual(body.mean_anomaly, 1.25)
        self.assertEqual(body.appearance.size, 7.0)

    def test_apply_wraps_unbounded_angle(self):
        body = OrbitalBody("venus", make_elements(), MotionModel.CIRCULAR, phase=0.5)
        body.advance(3.0)
        body.apply(make_elements(eccentricity=0.01), MotionModel.ELLIPTICAL)
        self.assertAlmostEqual(body.mean_anomaly, 0.5)

    def test_random_phase_is_reproducible(self):
        a = OrbitalBody.with_random_phase("x", make_elements(), MotionModel.CIRCULAR,
                                          random.Random(7))
        b = OrbitalBody.with_random_phase("x", make_elements(), MotionModel.CIRCULAR,
                                          random.Random(7))
        self.assertEqual(a.phase, b.phase)
        self.assertGreaterEqual(a.phase, 0.0)
        self.assertLess(a.phase, 2 * math.pi)

    def test_non_finite_phase_rejected(self):
        with self.assertRaises(ConfigurationError):
            OrbitalBody("x", make_elements(), MotionModel.CIRCULAR, phase=float("inf"))


if __name__ == '__main__':
    unittest.main()
