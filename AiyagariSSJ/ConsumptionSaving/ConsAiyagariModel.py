"""
Classes and functions for solving the stationary equilibrium of an Aiyagari (1994)
economy: a continuum of households facing uninsurable, persistent productivity
risk who save in a single asset, capital, which they rent to a representative
Cobb-Douglas firm.

The household problem is solved by the endogenous grid method (EGM) on a fixed
grid of assets and a discretized productivity process; the wealth distribution
is found by non-stochastic simulation on the same grid; and the interest rate is
found by a root-find that clears the capital market.
"""

from dataclasses import dataclass
from time import time

import numpy as np
from scipy import optimize

from AiyagariSSJ.core import (
    DegenerateSystemError,
    EquilibriumNotFoundError,
    NonConvergenceError,
    _log,
)
from AiyagariSSJ.distributions import (
    calc_stationary_dstn,
    make_normalized_income_process,
)
from AiyagariSSJ.mat_methods import interpolate_extrap
from AiyagariSSJ.metric import MetricObject
from AiyagariSSJ.parameters import AiyagariParameters, SolutionParams
from AiyagariSSJ.rewards import CRRAutilityP, CRRAutilityP_inv
from AiyagariSSJ.simulator import (
    TransitionOperator,
    distribution_transition,
    invariant_dist,
)
from AiyagariSSJ.utilities import construct_assets_grid

__all__ = [
    "Prices",
    "Aggregates",
    "Policy",
    "AiyagariModel",
    "SteadyState",
    "setup_model",
    "aggregate_labor",
    "get_aggregates_and_prices",
    "get_prices",
    "egm_step",
    "initial_policy",
    "solve_household",
    "single_run",
    "solve_steady_state",
]


# =====================================================================
# === Records passed between the solvers ==============================
# =====================================================================


@dataclass(frozen=True)
class Prices:
    """
    Factor prices faced by households: the net interest rate r and the wage w
    per efficiency unit of labor.
    """

    r: float
    w: float


@dataclass(frozen=True)
class Aggregates:
    """
    Aggregate capital and (exogenous) aggregate labor in efficiency units.
    """

    capital: float
    labor: float


@dataclass(frozen=True, eq=False)
class Policy(MetricObject):
    """
    Household decision rules on the (asset, productivity) grid.

    Parameters
    ----------
    saving : np.array
        End-of-period assets chosen at each gridpoint, shape (n_a, n_e).
    consumption : np.array
        Consumption at each gridpoint, shape (n_a, n_e).
    Va : np.array
        Marginal value of beginning-of-period assets at each gridpoint; this is
        what the backward iteration carries from one period to the one before.
    """

    saving: np.ndarray
    consumption: np.ndarray
    Va: np.ndarray

    distance_criteria = ["saving"]


@dataclass(frozen=True, eq=False)
class AiyagariModel:
    """
    One configuration of the Aiyagari economy: parameters, tolerances and the
    grids built from them.  Constructed by setup_model(); every array it holds is
    read-only.

    Parameters
    ----------
    params : AiyagariParameters
        Primitive parameters.
    solution_params : SolutionParams
        Tolerances and iteration ceilings.
    asset_grid : np.array
        Asset gridpoints, size n_a.
    income_grid : np.array
        Productivity levels, size n_e, with mean one under income_dstn.
    log_income_grid : np.array
        Log of income_grid.
    income_transition : np.array
        Productivity transition matrix, shape (n_e, n_e).
    income_dstn : np.array
        Stationary distribution of productivity, size n_e.
    asset_mat : np.array
        asset_grid broadcast to shape (n_a, n_e).
    income_mat : np.array
        income_grid broadcast to shape (n_a, n_e).
    """

    params: AiyagariParameters
    solution_params: SolutionParams
    asset_grid: np.ndarray
    income_grid: np.ndarray
    log_income_grid: np.ndarray
    income_transition: np.ndarray
    income_dstn: np.ndarray
    asset_mat: np.ndarray
    income_mat: np.ndarray

    @property
    def n_a(self):
        return self.asset_grid.size

    @property
    def n_e(self):
        return self.income_grid.size

    @property
    def T(self):
        return self.params.T


@dataclass(frozen=True, eq=False)
class SteadyState:
    """
    A stationary equilibrium candidate of the economy at a given interest rate:
    prices, household policies, the stationary distribution and the transition
    operator that leaves it invariant.  It is an equilibrium when excess_demand
    is zero, as for the objects returned by solve_steady_state().

    Parameters
    ----------
    prices : Prices
        Interest rate and wage.
    policy : Policy
        Household decision rules at these prices.
    distribution : np.array
        Stationary distribution over (asset, productivity), shape (n_a, n_e).
    aggregates : Aggregates
        Capital demanded by the firm at these prices, and aggregate labor.
    Lambda : TransitionOperator
        Transition operator implied by policy.saving.
    evaluations : int
        Number of household solutions used to find this object.
    """

    prices: Prices
    policy: Policy
    distribution: np.ndarray
    aggregates: Aggregates
    Lambda: TransitionOperator
    evaluations: int = 1

    @property
    def capital_supply(self):
        """Aggregate end-of-period assets held by households."""
        return float(np.vdot(self.distribution, self.policy.saving))

    @property
    def excess_demand(self):
        """Capital demanded by the firm minus capital supplied by households."""
        return self.aggregates.capital - self.capital_supply


# =====================================================================
# === Model construction and the firm side ============================
# =====================================================================


def _read_only(array):
    array = np.ascontiguousarray(array, dtype=np.float64)
    array.setflags(write=False)
    return array


def setup_model(params, a_min=None, a_max=None, solution_params=None):
    """
    Sets up an Aiyagari model: discretizes the productivity process, builds the
    asset grid and broadcasts both to the (n_a, n_e) shape used by the solvers.

    Parameters
    ----------
    params : AiyagariParameters
        Primitive parameters of the economy.
    a_min : float or None
        Borrowing limit; defaults to params.aMin.
    a_max : float or None
        Top of the asset grid; defaults to params.aMax.
    solution_params : SolutionParams or None
        Tolerances and iteration ceilings; defaults to SolutionParams().

    Returns
    -------
    model : AiyagariModel
        The model configuration.
    """
    if a_min is not None or a_max is not None:
        params = params.replace(
            aMin=params.aMin if a_min is None else a_min,
            aMax=params.aMax if a_max is None else a_max,
        )
    if solution_params is None:
        solution_params = SolutionParams()

    log_income_grid, income_grid, income_transition = make_normalized_income_process(
        params.IncShkStd, params.IncShkPersist, params.IncShkCount
    )
    income_dstn = calc_stationary_dstn(income_transition)
    asset_grid = construct_assets_grid(
        params.aMin, params.aMax, params.aCount, params.aNestFac
    )
    asset_mat, income_mat = np.meshgrid(asset_grid, income_grid, indexing="ij")

    return AiyagariModel(
        params=params,
        solution_params=solution_params,
        asset_grid=_read_only(asset_grid),
        income_grid=_read_only(income_grid),
        log_income_grid=_read_only(log_income_grid),
        income_transition=_read_only(income_transition),
        income_dstn=_read_only(income_dstn),
        asset_mat=_read_only(asset_mat),
        income_mat=_read_only(income_mat),
    )


def aggregate_labor(income_transition, income_grid):
    """
    Aggregate labor supply in efficiency units: mean productivity under the
    stationary distribution of the productivity process.
    """
    return float(np.dot(calc_stationary_dstn(income_transition), income_grid))


def get_aggregates_and_prices(r, labor, params):
    """
    Given the interest rate and aggregate labor, returns the capital the firm
    demands (from r = alpha * (K/L)^(alpha-1) - delta) and the wage that goes
    with it.

    Parameters
    ----------
    r : float
        Net interest rate, above -DeprFac.
    labor : float
        Aggregate labor in efficiency units.
    params : AiyagariParameters
        Primitive parameters.

    Returns
    -------
    aggregates : Aggregates
        Capital demanded and aggregate labor.
    prices : Prices
        The interest rate and the implied wage.
    """
    alpha = params.CapShare
    if not r > -params.DeprFac:
        raise ValueError("The interest rate must exceed -DeprFac.")
    KtoL = ((r + params.DeprFac) / alpha) ** (1.0 / (alpha - 1.0))
    w = (1.0 - alpha) * KtoL**alpha
    return Aggregates(KtoL * labor, labor), Prices(r, w)


def get_prices(aggregates, params):
    """
    Factor prices from the firm's first order conditions, given aggregate capital
    and labor and aggregate productivity of one.
    """
    alpha = params.CapShare
    KtoL = aggregates.capital / aggregates.labor
    r = alpha * KtoL ** (alpha - 1.0) - params.DeprFac
    w = (1.0 - alpha) * KtoL**alpha
    return Prices(r, w)


# =====================================================================
# === The household problem ===========================================
# =====================================================================


def egm_step(Va_next, prices, model):
    """
    Solves one period of the household problem by the endogenous grid method,
    given the marginal value of assets next period.

    Parameters
    ----------
    Va_next : np.array
        Marginal value of beginning-of-period assets next period, (n_a, n_e).
    prices : Prices
        Interest rate and wage this period.
    model : AiyagariModel
        The model configuration.

    Returns
    -------
    policy : Policy
        Saving and consumption this period, and the marginal value of assets.
    """
    params = model.params
    R = 1.0 + prices.r

    # Expected discounted marginal value at each end-of-period gridpoint
    EndOfPrdvP = params.DiscFac * (Va_next @ model.income_transition.T)

    # Invert the Euler equation to find the endogenous cash-on-hand grid
    c_endo = CRRAutilityP_inv(EndOfPrdvP, params.CRRA)
    m_endo = c_endo + model.asset_grid[:, np.newaxis]

    # Interpolate saving back onto the exogenous grid of cash-on-hand
    m_now = R * model.asset_mat + prices.w * model.income_mat
    saving = np.empty_like(m_now)
    for j in range(model.n_e):
        saving[:, j] = interpolate_extrap(
            m_now[:, j], m_endo[:, j], model.asset_grid
        )

    # Impose the borrowing constraint and back out consumption
    saving = np.maximum(saving, params.aMin)
    consumption = m_now - saving
    if not np.all(consumption > 0.0):
        raise DegenerateSystemError(
            "Consumption is not positive everywhere; the borrowing limit cannot "
            + "be respected at r = {:.6f}, w = {:.6f}.".format(prices.r, prices.w)
        )
    Va = R * CRRAutilityP(consumption, params.CRRA)
    return Policy(saving, consumption, Va)


def initial_policy(prices, model):
    """
    A starting point for the EGM iteration in which households consume a tenth
    of their cash-on-hand above the borrowing limit, or of their labor income if
    that is larger.  Only its marginal value matters, and it is always positive.
    """
    labor_income = prices.w * model.income_mat
    m_now = (1.0 + prices.r) * model.asset_mat + labor_income
    consumption = 0.1 * np.maximum(m_now - model.params.aMin, labor_income)
    Va = (1.0 + prices.r) * CRRAutilityP(consumption, model.params.CRRA)
    return Policy(m_now - consumption, consumption, Va)


def solve_household(prices, model, policy_init=None):
    """
    Solves the infinite horizon household problem at constant prices by iterating
    egm_step() until the saving policy stops changing.

    Parameters
    ----------
    prices : Prices
        Interest rate and wage.
    model : AiyagariModel
        The model configuration.
    policy_init : Policy or None
        Starting point for the iteration; defaults to initial_policy().

    Returns
    -------
    policy : Policy
        The converged household policy.
    """
    tol = model.solution_params.egm_tol
    maxit = model.solution_params.egm_maxit
    policy = initial_policy(prices, model) if policy_init is None else policy_init

    t0 = time()
    for it in range(1, maxit + 1):
        policy_new = egm_step(policy.Va, prices, model)
        solution_distance = policy_new.distance(policy)
        policy = policy_new
        if solution_distance < tol:
            break
    else:
        raise NonConvergenceError(
            "EGM did not converge at r = {:.6f}".format(prices.r),
            last_iterate=policy,
            residual=solution_distance,
            iterations=maxit,
        )
    _log.debug(
        "EGM converged in {} iterations, {:.3f} seconds.".format(it, time() - t0)
    )
    return policy


# =====================================================================
# === Stationary equilibrium ==========================================
# =====================================================================


def single_run(r, model):
    """
    Given an interest rate, solves the household problem and the stationary
    distribution.  This is not the equilibrium: the capital households supply
    need not equal what the firm demands at r.

    Parameters
    ----------
    r : float
        Net interest rate.
    model : AiyagariModel
        The model configuration.

    Returns
    -------
    steady_state : SteadyState
        Prices, policies and distribution at r.
    """
    solution_params = model.solution_params
    labor = aggregate_labor(model.income_transition, model.income_grid)
    aggregates, prices = get_aggregates_and_prices(r, labor, model.params)
    policy = solve_household(prices, model)
    Lambda = distribution_transition(
        policy.saving, model.asset_grid, model.income_transition
    )
    D = invariant_dist(
        Lambda,
        tol=solution_params.dist_tol,
        maxit=solution_params.dist_maxit,
        stochastic_tol=solution_params.stochastic_tol,
    )
    return SteadyState(prices, policy, D, aggregates, Lambda)


def solve_steady_state(model, initial_r_guess=0.01):
    """
    Finds the stationary equilibrium interest rate, at which the capital the firm
    demands equals the assets households hold.

    Parameters
    ----------
    model : AiyagariModel
        The model configuration.
    initial_r_guess : float or (float, float)
        A starting value for a secant (Newton-type) root-find, or a bracketing
        interval for Brent's method.  Both must lie in (-DeprFac, 1/DiscFac - 1).

    Returns
    -------
    steady_state : SteadyState
        The stationary equilibrium.
    """
    params = model.params
    solution_params = model.solution_params
    r_low = -params.DeprFac
    r_high = 1.0 / params.DiscFac - 1.0

    # Every evaluation is a full single_run; keep each one, keyed by its r
    evaluated = {}

    def residual(r):
        r = float(r)
        if not r_low < r < r_high:
            raise EquilibriumNotFoundError(
                "The root-find left the admissible interval for r "
                + "({:.6f}, {:.6f}) at r = {:.6f}".format(r_low, r_high, r),
                last_iterate=r,
                iterations=len(evaluated),
            )
        if r not in evaluated:
            evaluated[r] = single_run(r, model)
            _log.debug(
                "r = {:.10f}: excess capital demand = {:.3e}".format(
                    r, evaluated[r].excess_demand
                )
            )
        return evaluated[r].excess_demand

    t0 = time()
    if np.ndim(initial_r_guess) == 0:
        r_guess = float(initial_r_guess)
        if abs(residual(r_guess)) <= solution_params.market_tol:
            r_star = r_guess
        else:
            r_star, result = optimize.newton(
                residual,
                r_guess,
                tol=solution_params.ss_tol,
                maxiter=solution_params.ss_maxit,
                full_output=True,
                disp=False,
            )
            if not result.converged:
                _log.warning("Secant iteration on r stopped early: " + result.flag)
    else:
        a, b = (float(x) for x in initial_r_guess)
        f_a, f_b = residual(a), residual(b)
        if abs(f_a) <= solution_params.market_tol:
            r_star = a
        elif abs(f_b) <= solution_params.market_tol:
            r_star = b
        elif np.sign(f_a) == np.sign(f_b):
            raise EquilibriumNotFoundError(
                "The interval ({:.6f}, {:.6f}) does not bracket the equilibrium".format(
                    a, b
                ),
                last_iterate=(a, b),
                residual=min(abs(f_a), abs(f_b)),
                iterations=len(evaluated),
            )
        else:
            r_star, result = optimize.brentq(
                residual,
                a,
                b,
                xtol=solution_params.ss_tol,
                maxiter=solution_params.ss_maxit,
                full_output=True,
                disp=False,
            )
            if not result.converged:
                _log.warning("Brent's method on r stopped early: " + result.flag)

    r_star = float(r_star)
    excess = residual(r_star)
    if not abs(excess) <= solution_params.market_tol:
        raise EquilibriumNotFoundError(
            "The capital market does not clear at r = {:.10f}".format(r_star),
            last_iterate=r_star,
            residual=abs(excess),
            iterations=len(evaluated),
        )

    ss = evaluated[r_star]
    _log.info(
        "Found the steady state in {} evaluations, {:.3f} seconds: ".format(
            len(evaluated), time() - t0
        )
        + "r = {:.6f}, w = {:.6f}, K = {:.6f}.".format(
            ss.prices.r, ss.prices.w, ss.aggregates.capital
        )
    )
    return SteadyState(
        ss.prices,
        ss.policy,
        ss.distribution,
        ss.aggregates,
        ss.Lambda,
        evaluations=len(evaluated),
    )
