import unittest

import numpy as np

from AiyagariSSJ.mat_methods import (
    get_lottery,
    interpolate_extrap,
    lottery_expect,
    lottery_forward,
)


class testLottery(unittest.TestCase):
    def setUp(self):
        self.grid = np.array([0.0, 1.0, 2.0, 4.0])
        self.policy = np.array(
            [[0.0, 0.25], [1.5, 2.0], [3.0, 4.0], [-1.0, 5.0]]
        )
        self.lower, self.weight = get_lottery(self.policy, self.grid)

    def test_lower_and_weight(self):
        self.assertTrue(
            np.array_equal(self.lower, np.array([[0, 0], [1, 1], [2, 2], [0, 2]]))
        )
        expected = np.array([[1.0, 0.75], [0.5, 0.0], [0.5, 0.0], [1.0, 0.0]])
        self.assertTrue(np.allclose(self.weight, expected))

    def test_mean_preserving(self):
        # Inside the grid the lottery reproduces the choice exactly
        inside = self.policy[:3]
        lottery_mean = (
            self.weight[:3] * self.grid[self.lower[:3]]
            + (1.0 - self.weight[:3]) * self.grid[self.lower[:3] + 1]
        )
        self.assertTrue(np.allclose(lottery_mean, inside))

    def test_forward_preserves_mass(self):
        D = np.full((4, 2), 1.0 / 8.0)
        D_end = lottery_forward(D, self.lower, self.weight)
        self.assertAlmostEqual(D_end.sum(), 1.0)
        self.assertTrue(np.all(D_end >= 0.0))

    def test_expect_is_adjoint(self):
        D = np.random.default_rng(0).random((4, 2))
        X = np.random.default_rng(1).random((4, 2))
        lhs = np.vdot(lottery_forward(D, self.lower, self.weight), X)
        rhs = np.vdot(D, lottery_expect(X, self.lower, self.weight))
        self.assertAlmostEqual(lhs, rhs)


class testInterpolation(unittest.TestCase):
    def test_interp_and_extrap(self):
        xp = np.array([1.0, 2.0, 4.0])
        yp = np.array([0.0, 1.0, 2.0])
        x = np.array([0.0, 1.5, 3.0, 6.0])
        y = interpolate_extrap(x, xp, yp)
        self.assertTrue(np.allclose(y, [-1.0, 0.5, 1.5, 3.0]))
