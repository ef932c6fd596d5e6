"""
Unit tests for the gravity filter.
"""

import math
import unittest

from shakeskip.motion.filter import FilterState, MotionSample, apply_filter, magnitude

class TestApplyFilter(unittest.TestCase):
    """Test cases for apply_filter."""

    def setUp(self):
        self.state = FilterState()

    def test_first_sample_from_rest(self):
        """Starting from zero gravity, 20% of the first sample becomes gravity."""
        linear = apply_filter(MotionSample(20.0, 0.0, 0.0, 0.0), self.state)
        self.assertAlmostEqual(self.state.gravity[0], 4.0)
        self.assertAlmostEqual(linear[0], 16.0)
        self.assertEqual(linear[1], 0.0)
        self.assertEqual(linear[2], 0.0)

    def test_constant_sample_converges(self):
        """A constant reading ends up entirely in the gravity estimate."""
        sample = (0.3, -1.2, 9.81)
        for i in range(100):
            apply_filter(MotionSample(*sample, timestamp_ms=i * 10.0), self.state)

        for axis in range(3):
            expected_gravity = sample[axis] * (1 - 0.8 ** 100)
            self.assertAlmostEqual(self.state.gravity[axis], expected_gravity, places=9)
            self.assertAlmostEqual(self.state.linear[axis], 0.0, places=6)

    def test_converges_within_bounded_iterations(self):
        """50 samples are enough to bring the residual below 1e-3 of the signal."""
        for i in range(50):
            linear = apply_filter(MotionSample(0.0, 0.0, 9.81, i * 10.0), self.state)
        self.assertLess(abs(linear[2]), 9.81 * 1e-3)

    def test_non_finite_sample_is_ignored(self):
        """NaN and infinite readings return None and leave the state alone."""
        apply_filter(MotionSample(1.0, 2.0, 3.0, 0.0), self.state)
        gravity_before = list(self.state.gravity)
        linear_before = list(self.state.linear)

        for bad in (MotionSample(math.nan, 0.0, 0.0, 10.0),
                    MotionSample(0.0, math.inf, 0.0, 20.0),
                    MotionSample(0.0, 0.0, -math.inf, 30.0)):
            self.assertIsNone(apply_filter(bad, self.state))

        self.assertEqual(self.state.gravity, gravity_before)
        self.assertEqual(self.state.linear, linear_before)

    def test_reset(self):
        apply_filter(MotionSample(5.0, 5.0, 5.0, 0.0), self.state)
        self.state.reset()
        self.assertEqual(self.state.gravity, [0.0, 0.0, 0.0])
        self.assertEqual(self.state.linear, [0.0, 0.0, 0.0])

    def test_custom_alpha(self):
        """alpha=0 tracks the sample immediately, leaving no linear component."""
        linear = apply_filter(MotionSample(3.0, 4.0, 0.0, 0.0), self.state, alpha=0.0)
        self.assertEqual(linear, (0.0, 0.0, 0.0))
        self.assertEqual(self.state.gravity, [3.0, 4.0, 0.0])

class TestMagnitude(unittest.TestCase):

    def test_magnitude(self):
        self.assertEqual(magnitude((3.0, 4.0, 0.0)), 5.0)
        self.assertEqual(magnitude((0.0, 0.0, 0.0)), 0.0)
        self.assertAlmostEqual(magnitude((1.0, 1.0, 1.0)), math.sqrt(3))

class TestMotionSample(unittest.TestCase):

    def test_default_timestamp_is_monotonic(self):
        first = MotionSample(0.0, 0.0, 0.0)
        second = MotionSample(0.0, 0.0, 0.0)
        self.assertLessEqual(first.timestamp_ms, second.timestamp_ms)

    def test_is_finite(self):
        self.assertTrue(MotionSample(1.0, 2.0, 3.0, 0.0).is_finite())
        self.assertFalse(MotionSample(math.nan, 2.0, 3.0, 0.0).is_finite())

if __name__ == '__main__':
    unittest.main()
