import unittest

import numpy as np

from AiyagariSSJ.ConsumptionSaving.ConsAiyagariModel import (
    aggregate_labor,
    egm_step,
    get_aggregates_and_prices,
    get_prices,
    setup_model,
    single_run,
    solve_household,
    solve_steady_state,
)
from AiyagariSSJ.core import (
    DegenerateSystemError,
    EquilibriumNotFoundError,
    NonConvergenceError,
)
from AiyagariSSJ.parameters import SolutionParams, make_parameters
from tests import AIYAGARI_PRECISION

# A coarse version of the Krusell-Smith calibration that solves quickly
small_calibration = {
    "aCount": 40,
    "aMax": 50.0,
    "IncShkCount": 3,
    "T": 20,
}


class testSetupModel(unittest.TestCase):
    def setUp(self):
        self.model = setup_model(make_parameters(**small_calibration))

    def test_shapes(self):
        model = self.model
        self.assertEqual((model.n_a, model.n_e, model.T), (40, 3, 20))
        self.assertEqual(model.asset_mat.shape, (40, 3))
        self.assertEqual(model.income_mat.shape, (40, 3))
        self.assertTrue(np.array_equal(model.asset_mat[:, 1], model.asset_grid))
        self.assertTrue(np.array_equal(model.income_mat[7, :], model.income_grid))

    def test_income_normalized(self):
        model = self.model
        self.assertTrue(np.allclose(model.income_transition.sum(axis=1), 1.0))
        self.assertAlmostEqual(
            np.dot(model.income_dstn, np.exp(model.log_income_grid)),
            1.0,
            places=AIYAGARI_PRECISION,
        )
        self.assertAlmostEqual(
            aggregate_labor(model.income_transition, model.income_grid),
            1.0,
            places=AIYAGARI_PRECISION,
        )

    def test_read_only(self):
        with self.assertRaises(ValueError):
            self.model.asset_grid[0] = 1.0
        with self.assertRaises(AttributeError):
            self.model.params = None

    def test_asset_bounds_override(self):
        model = setup_model(self.model.params, a_min=-1.0, a_max=20.0)
        self.assertEqual(model.asset_grid[0], -1.0)
        self.assertEqual(model.asset_grid[-1], 20.0)
        self.assertEqual(model.params.aMin, -1.0)


class testFirm(unittest.TestCase):
    def setUp(self):
        self.params = make_parameters()

    def test_prices_round_trip(self):
        aggregates, prices = get_aggregates_and_prices(0.01, 1.0, self.params)
        self.assertAlmostEqual(prices.r, 0.01)
        again = get_prices(aggregates, self.params)
        self.assertAlmostEqual(again.r, 0.01, places=10)
        self.assertAlmostEqual(again.w, prices.w, places=10)

    def test_capital_demand_falls_with_r(self):
        low, _ = get_aggregates_and_prices(0.005, 1.0, self.params)
        high, _ = get_aggregates_and_prices(0.015, 1.0, self.params)
        self.assertGreater(low.capital, high.capital)

    def test_labor_scales_capital(self):
        one, p1 = get_aggregates_and_prices(0.01, 1.0, self.params)
        two, p2 = get_aggregates_and_prices(0.01, 2.0, self.params)
        self.assertAlmostEqual(two.capital, 2.0 * one.capital)
        self.assertAlmostEqual(p1.w, p2.w)

    def test_rate_below_depreciation(self):
        with self.assertRaises(ValueError):
            get_aggregates_and_prices(-self.params.DeprFac, 1.0, self.params)


class testHousehold(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.model = setup_model(make_parameters(**small_calibration))
        _, cls.prices = get_aggregates_and_prices(0.01, 1.0, cls.model.params)
        cls.policy = solve_household(cls.prices, cls.model)

    def test_budget_constraint(self):
        model, prices, policy = self.model, self.prices, self.policy
        resources = (1.0 + prices.r) * model.asset_mat + prices.w * model.income_mat
        self.assertTrue(
            np.allclose(policy.consumption + policy.saving, resources, atol=1e-12)
        )

    def test_borrowing_limit(self):
        self.assertTrue(np.all(self.policy.saving >= self.model.params.aMin))
        self.assertTrue(np.all(self.policy.consumption > 0.0))
        # The poorest households are constrained
        self.assertEqual(self.policy.saving[0, 0], self.model.params.aMin)

    def test_fixed_point(self):
        again = egm_step(self.policy.Va, self.prices, self.model)
        self.assertLess(again.distance(self.policy), 1e-8)

    def test_monotone(self):
        self.assertTrue(np.all(np.diff(self.policy.saving, axis=0) >= 0.0))
        self.assertTrue(np.all(np.diff(self.policy.consumption, axis=0) > 0.0))

    def test_iteration_ceiling(self):
        model = setup_model(
            self.model.params, solution_params=SolutionParams(egm_maxit=2)
        )
        with self.assertRaises(NonConvergenceError) as cm:
            solve_household(self.prices, model)
        self.assertEqual(cm.exception.iterations, 2)
        self.assertIsNotNone(cm.exception.last_iterate)

    def test_infeasible_borrowing_limit(self):
        model = setup_model(self.model.params, a_min=-100.0)
        with self.assertRaises(DegenerateSystemError):
            solve_household(self.prices, model)


class testSingleRun(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.model = setup_model(make_parameters(**small_calibration))
        cls.candidate = single_run(0.01, cls.model)

    def test_distribution(self):
        D = self.candidate.distribution
        self.assertEqual(D.shape, (40, 3))
        self.assertAlmostEqual(D.sum(), 1.0, places=12)
        self.assertTrue(np.all(D >= 0.0))
        self.assertTrue(np.allclose(self.candidate.Lambda.forward(D), D, atol=1e-11))

    def test_aggregates(self):
        candidate = self.candidate
        self.assertAlmostEqual(
            candidate.capital_supply,
            np.sum(candidate.distribution * candidate.policy.saving),
        )
        self.assertAlmostEqual(
            candidate.excess_demand,
            candidate.aggregates.capital - candidate.capital_supply,
        )
        self.assertEqual(candidate.prices.r, 0.01)

    def test_fresh_per_call(self):
        again = single_run(0.01, self.model)
        self.assertIsNot(again, self.candidate)
        self.assertTrue(np.array_equal(again.distribution, self.candidate.distribution))


class testSteadyState(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.model = setup_model(make_parameters(**small_calibration))
        cls.ss = solve_steady_state(cls.model, 0.01)

    def test_market_clears(self):
        ss = self.ss
        market_tol = self.model.solution_params.market_tol
        self.assertLessEqual(abs(ss.excess_demand), market_tol)
        self.assertAlmostEqual(ss.distribution.sum(), 1.0, places=12)
        self.assertTrue(np.all(ss.distribution >= 0.0))
        self.assertGreaterEqual(ss.evaluations, 1)

    def test_firm_first_order_conditions(self):
        ss = self.ss
        params = self.model.params
        KtoL = ss.aggregates.capital / ss.aggregates.labor
        alpha = params.CapShare
        self.assertAlmostEqual(
            ss.prices.r, alpha * KtoL ** (alpha - 1.0) - params.DeprFac, places=10
        )
        self.assertAlmostEqual(ss.prices.w, (1.0 - alpha) * KtoL**alpha, places=10)

    def test_idempotent(self):
        again = solve_steady_state(self.model, self.ss.prices.r)
        self.assertEqual(again.evaluations, 1)
        self.assertEqual(again.prices, self.ss.prices)

    def test_bracket(self):
        ss = solve_steady_state(self.model, (0.0, 0.015))
        market_tol = self.model.solution_params.market_tol
        self.assertLessEqual(abs(ss.excess_demand), market_tol)
        self.assertAlmostEqual(ss.prices.r, self.ss.prices.r, places=4)

    def test_bracket_without_root(self):
        with self.assertRaises(EquilibriumNotFoundError):
            solve_steady_state(self.model, (0.0, 0.001))

    def test_bracket_outside_admissible_rates(self):
        with self.assertRaises(EquilibriumNotFoundError):
            solve_steady_state(self.model, (0.01, 0.10))


class testKrusellSmithCalibration(unittest.TestCase):
    """
    The full scenario: rho = 0.966, 200 asset points on [0,200], 7 income states.
    """

    @classmethod
    def setUpClass(cls):
        cls.model = setup_model(make_parameters())
        cls.ss = solve_steady_state(cls.model, 0.01)

    def test_equilibrium(self):
        ss = self.ss
        params = self.model.params
        self.assertGreater(ss.prices.r, 0.0)
        self.assertLess(ss.prices.r, 1.0 / params.DiscFac - 1.0)
        self.assertGreater(ss.prices.w, 0.0)
        self.assertLessEqual(
            abs(ss.excess_demand), self.model.solution_params.market_tol
        )
        self.assertAlmostEqual(ss.aggregates.labor, 1.0, places=AIYAGARI_PRECISION)

        KtoL = ss.aggregates.capital / ss.aggregates.labor
        alpha = params.CapShare
        self.assertAlmostEqual(
            ss.prices.r, alpha * KtoL ** (alpha - 1.0) - params.DeprFac, places=10
        )
        self.assertAlmostEqual(ss.prices.w, (1.0 - alpha) * KtoL**alpha, places=10)

    def test_distribution(self):
        D = self.ss.distribution
        self.assertEqual(D.shape, (200, 7))
        self.assertAlmostEqual(D.sum(), 1.0, places=12)
        self.assertTrue(np.all(D >= 0.0))
        # Productivity marginal is the stationary income distribution
        self.assertTrue(np.allclose(D.sum(axis=0), self.model.income_dstn, atol=1e-8))
