"""
Unit tests for the distribution engine in AiyagariSSJ.simulator.
"""

import unittest

import numpy as np

from AiyagariSSJ.core import DegenerateSystemError, NonConvergenceError
from AiyagariSSJ.simulator import distribution_transition, invariant_dist


class testTransitionOperator(unittest.TestCase):
    def setUp(self):
        self.grid = np.linspace(0.0, 10.0, 11)
        self.Pi = np.array([[0.9, 0.1], [0.3, 0.7]])
        # Save 80% of assets plus a little, which keeps everyone inside the grid
        a = self.grid[:, np.newaxis]
        self.saving = np.hstack((0.8 * a + 0.5, 0.8 * a + 1.5))
        self.Lambda = distribution_transition(self.saving, self.grid, self.Pi)

    def test_sparse_matches_factored(self):
        M = self.Lambda.as_sparse()
        self.assertEqual(M.shape, (22, 22))
        self.assertTrue(np.allclose(np.asarray(M.sum(axis=1)).ravel(), 1.0))
        D = np.random.default_rng(0).random((11, 2))
        D /= D.sum()
        forward_dense = (M.T @ D.ravel()).reshape((11, 2))
        self.assertTrue(np.allclose(forward_dense, self.Lambda.forward(D)))
        X = np.random.default_rng(1).random((11, 2))
        expect_dense = (M @ X.ravel()).reshape((11, 2))
        self.assertTrue(np.allclose(expect_dense, self.Lambda.expect(X)))

    def test_sparse_is_cached(self):
        self.assertIs(self.Lambda.as_sparse(), self.Lambda.as_sparse())

    def test_shape_mismatch(self):
        with self.assertRaises(ValueError):
            distribution_transition(self.saving[:5], self.grid, self.Pi)

    def test_invariant_dist(self):
        D = invariant_dist(self.Lambda)
        self.assertAlmostEqual(D.sum(), 1.0)
        self.assertTrue(np.all(D >= 0.0))
        self.assertTrue(np.allclose(self.Lambda.forward(D), D, atol=1e-12))
        # The productivity marginal is the stationary distribution of Pi
        self.assertTrue(np.allclose(D.sum(axis=0), [0.75, 0.25]))

    def test_initial_guess_does_not_matter(self):
        D_init = np.zeros((11, 2))
        D_init[-1, -1] = 5.0
        D_a = invariant_dist(self.Lambda)
        D_b = invariant_dist(self.Lambda, D_init=D_init)
        self.assertTrue(np.allclose(D_a, D_b, atol=1e-10))

    def test_not_stochastic(self):
        bad_Pi = np.array([[0.9, 0.2], [0.3, 0.7]])
        Lambda = distribution_transition(self.saving, self.grid, bad_Pi)
        with self.assertRaises(DegenerateSystemError):
            invariant_dist(Lambda)

    def test_iteration_ceiling(self):
        with self.assertRaises(NonConvergenceError) as cm:
            invariant_dist(self.Lambda, maxit=2)
        self.assertEqual(cm.exception.iterations, 2)
        self.assertEqual(cm.exception.last_iterate.shape, (11, 2))
