"""
Time-boxed CPU burn.
"""

import unittest

from wl_sim.sim.cpu import burn_cpu


class TestBurnCpu(unittest.TestCase):

    def test_zero_budget_returns_immediately(self):
        self.assertEqual(burn_cpu(0), 0)

    def test_burns_at_least_budget_and_stays_bounded(self):
        spent = burn_cpu(20)
        self.assertGreaterEqual(spent, 20)
        self.assertLess(spent, 1000)

    def test_longer_budget_takes_longer(self):
        short = burn_cpu(5)
        long = burn_cpu(40)
        self.assertGreater(long, short)
