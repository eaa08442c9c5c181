"""
Tests for the users signal generator: phase schedule, base levels,
noise/burst layering and output bounds.
"""

import random
import unittest

from fakes import ScriptedRandom

from wl_sim.config import SignalConfig
from wl_sim.model.entities import CyclePhase
from wl_sim.sim.signal import (
    base_level_at,
    classify_phase,
    compute_users,
    round_half_up,
)

CFG = SignalConfig(
    peak_duration=3600,
    off_duration=3600,
    ramp_duration=300,
    peak_base_level=65,
    off_base_level=10,
    min_users=5,
    max_users=80,
)


class TestPhaseSchedule(unittest.TestCase):

    def test_cycle_length(self):
        self.assertEqual(CFG.cycle_length, 7800)

    def test_phase_boundaries(self):
        cases = [
            (0, CyclePhase.RAMP_UP),
            (299.9, CyclePhase.RAMP_UP),
            (300, CyclePhase.PEAK_PLATEAU),
            (3899.9, CyclePhase.PEAK_PLATEAU),
            (3900, CyclePhase.RAMP_DOWN),
            (4199.9, CyclePhase.RAMP_DOWN),
            (4200, CyclePhase.OFF_PLATEAU),
            (7799.9, CyclePhase.OFF_PLATEAU),
        ]
        for position, expected in cases:
            with self.subTest(position=position):
                self.assertIs(classify_phase(CFG, position), expected)

    def test_elapsed_wraps_to_next_cycle(self):
        phase, position, base = base_level_at(CFG, 7800 + 10)
        self.assertIs(phase, CyclePhase.RAMP_UP)
        self.assertAlmostEqual(position, 10)


class TestBaseLevel(unittest.TestCase):

    def test_reference_scenario(self):
        self.assertEqual(base_level_at(CFG, 0)[2], 10)
        self.assertEqual(base_level_at(CFG, 300)[2], 65)
        self.assertEqual(base_level_at(CFG, 3600 + 150)[2], 65)
        self.assertAlmostEqual(base_level_at(CFG, 3900 + 150)[2], 37.5)

    def test_continuity_at_boundaries(self):
        eps = 1e-6
        for boundary in (300, 3900, 4200, 7800):
            with self.subTest(boundary=boundary):
                before = base_level_at(CFG, boundary - eps)[2]
                at = base_level_at(CFG, boundary)[2]
                self.assertAlmostEqual(before, at, places=3)

    def test_periodicity(self):
        for t in (0, 17.5, 299, 1234, 3950, 4100, 6000, 7799):
            with self.subTest(t=t):
                self.assertAlmostEqual(
                    base_level_at(CFG, t)[2],
                    base_level_at(CFG, t + CFG.cycle_length)[2],
                )

    def test_ramp_up_is_linear(self):
        self.assertAlmostEqual(base_level_at(CFG, 150)[2], 37.5)
        self.assertAlmostEqual(base_level_at(CFG, 75)[2], 23.75)


class TestComputeUsers(unittest.TestCase):

    def test_noise_free_draw_rounds_base(self):
        rng = ScriptedRandom(uniforms=[1.0], randoms=[0.99])
        sample = compute_users(CFG, 3900 + 150, rng)
        self.assertIs(sample.phase, CyclePhase.RAMP_DOWN)
        # 37.5 rounds half up
        self.assertEqual(sample.users, 38)
        self.assertFalse(sample.is_burst)

    def test_noise_is_redrawn_every_call(self):
        rng = ScriptedRandom(uniforms=[0.88, 1.12], randoms=[0.99])
        low = compute_users(CFG, 3600, rng)
        high = compute_users(CFG, 3600, rng)
        self.assertEqual(rng.uniform_calls, 2)
        self.assertEqual(low.users, round_half_up(65 * 0.88))
        self.assertEqual(high.users, round_half_up(65 * 1.12))

    def test_burst_applied_in_peak_plateau(self):
        rng = ScriptedRandom(uniforms=[1.0], randoms=[0.0])
        sample = compute_users(CFG, 1000, rng)
        self.assertTrue(sample.is_burst)
        self.assertEqual(sample.burst_multiplier, CFG.burst_multiplier)
        self.assertEqual(sample.users, round_half_up(65 * 1.8))

    def test_burst_never_outside_peak_plateau(self):
        rng = ScriptedRandom(uniforms=[1.0], randoms=[0.0])
        for t in (0, 150, 3950, 4100, 5000, 7700):
            with self.subTest(t=t):
                sample = compute_users(CFG, t, rng)
                self.assertEqual(sample.burst_multiplier, 1.0)
        # burst draw is not even consumed outside the plateau
        self.assertEqual(rng.random_calls, 0)

    def test_bounds_hold_for_random_draws(self):
        rng = random.Random(42)
        for i in range(5000):
            t = i * 7.3
            sample = compute_users(CFG, t, rng)
            self.assertGreaterEqual(sample.users, CFG.min_users)
            self.assertLessEqual(sample.users, CFG.max_users * CFG.burst_multiplier)

    def test_clamped_to_min_users(self):
        cfg = SignalConfig(off_base_level=2)
        sample = compute_users(cfg, 5000, ScriptedRandom(uniforms=[0.88]))
        self.assertEqual(sample.users, cfg.min_users)

    def test_upper_clamp_uses_configured_burst_multiplier(self):
        cfg = SignalConfig(peak_base_level=500)
        rng = ScriptedRandom(uniforms=[1.12], randoms=[0.99])
        sample = compute_users(cfg, 1000, rng)
        self.assertFalse(sample.is_burst)
        self.assertEqual(sample.users, int(cfg.max_users * cfg.burst_multiplier))

    def test_negative_elapsed_treated_as_start(self):
        sample = compute_users(CFG, -5, ScriptedRandom())
        self.assertIs(sample.phase, CyclePhase.RAMP_UP)
        self.assertEqual(sample.base_level, 10)


class TestRoundHalfUp(unittest.TestCase):

    def test_halves_go_up(self):
        self.assertEqual(round_half_up(2.5), 3)
        self.assertEqual(round_half_up(37.5), 38)
        self.assertEqual(round_half_up(2.49), 2)
