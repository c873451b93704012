"""
This file implements unit tests to check AiyagariSSJ/rewards.py
"""

# Bring in modules we need
import unittest

import numpy as np

from AiyagariSSJ.rewards import CRRAutilityP, CRRAutilityP_inv


class testsForCRRA(unittest.TestCase):
    def setUp(self):
        self.c_vals = np.linspace(0.5, 10.0, 20)
        self.CRRA_vals = np.linspace(1.0, 10.0, 10)

    def test_log_case(self):
        self.assertEqual(CRRAutilityP(2.0, 1.0), 0.5)
        self.assertTrue(np.allclose(CRRAutilityP(self.c_vals, 1.0), 1.0 / self.c_vals))

    def test_inverse(self):
        for rho in self.CRRA_vals:
            uP = CRRAutilityP(self.c_vals, rho)
            self.assertTrue(np.allclose(CRRAutilityP_inv(uP, rho), self.c_vals))

    def test_decreasing(self):
        for rho in self.CRRA_vals:
            self.assertTrue(np.all(np.diff(CRRAutilityP(self.c_vals, rho)) < 0.0))
