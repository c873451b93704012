"""
The Krusell-Smith (1998) economy solved in sequence space: an Aiyagari economy
whose representative firm is hit by aggregate productivity shocks.  Linearized
around the stationary equilibrium, the economy is summarized by the Jacobians of
aggregate household saving with respect to the paths of r and w, together with
the derivatives of the firm's first order conditions.  Impulse responses to a
productivity path dZ then solve a single T x T linear system.
"""

from dataclasses import dataclass
from time import time

import numpy as np

from AiyagariSSJ.core import (
    DimensionMismatchError,
    NonConvergenceError,
    SingularSystemError,
    _log,
)
from AiyagariSSJ.parameters import init_solution
from AiyagariSSJ.SSJutils import (
    PRICE_INPUTS,
    calc_curlyDs,
    calc_curlyYs,
    calc_jacobian_from_fake_news,
    check_horizon,
    expectation_vectors,
    get_transition_sequence,
    get_yso,
    make_fake_news_matrix,
)

__all__ = [
    "Derivatives",
    "Solution",
    "calc_firm_derivatives",
    "make_ghost_run",
    "get_jacobian",
    "solve_sequence_space_jacobians",
    "make_system_matrices",
    "generate_impulse_response",
    "to_percent_deviation",
]


@dataclass(frozen=True)
class Derivatives:
    """
    Derivatives of the firm's first order conditions at the steady state, with
    respect to aggregate capital K and aggregate productivity Z.
    """

    dr_dK: float
    dw_dK: float
    dr_dZ: float
    dw_dZ: float


@dataclass(frozen=True, eq=False)
class Solution:
    """
    The sequence space representation of the household block.

    Parameters
    ----------
    fake_news_r : np.array
        Fake news matrix of aggregate saving with respect to r, shape (T,T).
    fake_news_w : np.array
        Fake news matrix of aggregate saving with respect to w, shape (T,T).
    jacobian_r : np.array
        Jacobian of aggregate saving with respect to r, shape (T,T).
    jacobian_w : np.array
        Jacobian of aggregate saving with respect to w, shape (T,T).
    derivatives : Derivatives
        Derivatives of factor prices with respect to K and Z.
    cond_max : float
        Largest acceptable condition number when solving for impulse responses.
    """

    fake_news_r: np.ndarray
    fake_news_w: np.ndarray
    jacobian_r: np.ndarray
    jacobian_w: np.ndarray
    derivatives: Derivatives
    cond_max: float = init_solution["cond_max"]

    @property
    def T(self):
        return self.jacobian_r.shape[0]


def calc_firm_derivatives(aggregates, params):
    """
    Derivatives of r = Z*alpha*(K/L)^(alpha-1) - delta and w = Z*(1-alpha)*(K/L)^alpha
    with respect to K and Z, evaluated at Z = 1.

    Parameters
    ----------
    aggregates : Aggregates
        Steady state capital and labor.
    params : AiyagariParameters
        Primitive parameters.

    Returns
    -------
    Derivatives
    """
    alpha = params.CapShare
    L = aggregates.labor
    KtoL = aggregates.capital / L
    return Derivatives(
        dr_dK=alpha * (alpha - 1.0) * KtoL ** (alpha - 2.0) / L,
        dw_dK=alpha * (1.0 - alpha) * KtoL ** (alpha - 1.0) / L,
        dr_dZ=alpha * KtoL ** (alpha - 1.0),
        dw_dZ=(1.0 - alpha) * KtoL**alpha,
    )


def make_ghost_run(model, steady_state):
    """
    Iterates the steady state policy backward T times with no perturbation.  Its
    policies and transitions are subtracted from the perturbed ones so that the
    numerical drift of the iteration cancels out.  The same ghost run serves
    every price input.

    Returns
    -------
    yso_ghost : [Policy]
        Unperturbed policy sequence.
    Lambdaso_ghost : [TransitionOperator]
        Transition operators implied by yso_ghost.
    """
    yso_ghost = get_yso(model, steady_state, PRICE_INPUTS[0], 0.0)

    # The first ghost step should reproduce the steady state policy
    drift = np.max(np.abs(yso_ghost[0].saving - steady_state.policy.saving))
    if drift > np.sqrt(model.solution_params.egm_tol):
        raise NonConvergenceError(
            "The steady state policy is not a fixed point of the EGM step",
            last_iterate=steady_state.policy,
            residual=drift,
        )
    return yso_ghost, get_transition_sequence(model, yso_ghost)


def get_jacobian(model, steady_state, E, input, ghost=None):
    """
    Builds the fake news matrix and sequence space Jacobian of aggregate saving
    with respect to one price.

    Parameters
    ----------
    model : AiyagariModel
        The model configuration.
    steady_state : SteadyState
        The stationary equilibrium.
    E : np.array
        Expectation vectors of shape (T, n_a, n_e), from expectation_vectors().
    input : str
        Name of the price, 'r' or 'w'.
    ghost : (list, list) or None
        Output of make_ghost_run(); computed here if not provided.

    Returns
    -------
    fake_news : np.array
        Fake news matrix of shape (T,T).
    jacobian : np.array
        Jacobian of shape (T,T).
    """
    T = model.T
    dx = model.params.dx
    check_horizon(E, T, "The expectation vectors")
    if ghost is None:
        ghost = make_ghost_run(model, steady_state)
    yso_ghost, Lambdaso_ghost = ghost
    if len(yso_ghost) != T or len(Lambdaso_ghost) != T:
        raise DimensionMismatchError(
            "The ghost run has {} periods but the horizon is T = {}.".format(
                len(yso_ghost), T
            )
        )

    D_ss = steady_state.distribution
    yso = get_yso(model, steady_state, input, dx)
    Lambdaso = get_transition_sequence(model, yso)
    curlyY = calc_curlyYs(D_ss, yso, yso_ghost, dx)
    curlyD = calc_curlyDs(D_ss, Lambdaso, Lambdaso_ghost, dx)

    fake_news = make_fake_news_matrix(
        curlyY,
        np.ascontiguousarray(curlyD.reshape((T, -1))),
        np.ascontiguousarray(E.reshape((T, -1))),
    )
    return fake_news, calc_jacobian_from_fake_news(fake_news)


def solve_sequence_space_jacobians(model, steady_state):
    """
    Computes the fake news matrices and Jacobians of aggregate saving with respect
    to r and w, and the firm derivatives that close the Krusell-Smith economy.

    Parameters
    ----------
    model : AiyagariModel
        The model configuration.
    steady_state : SteadyState
        The stationary equilibrium, e.g. from solve_steady_state().

    Returns
    -------
    Solution
    """
    t0 = time()
    E = expectation_vectors(steady_state, model.T)
    ghost = make_ghost_run(model, steady_state)
    fake_news_r, jacobian_r = get_jacobian(model, steady_state, E, "r", ghost)
    fake_news_w, jacobian_w = get_jacobian(model, steady_state, E, "w", ghost)
    _log.info(
        "Sequence space Jacobians with T = {} took {:.3f} seconds.".format(
            model.T, time() - t0
        )
    )
    return Solution(
        fake_news_r,
        fake_news_w,
        jacobian_r,
        jacobian_w,
        calc_firm_derivatives(steady_state.aggregates, model.params),
        cond_max=model.solution_params.cond_max,
    )


def make_system_matrices(solution):
    """
    Stacks the linearized capital market clearing conditions of every date,
    H_K dK + H_Z dZ = 0, with H_K = J_r dr/dK + J_w dw/dK - I and
    H_Z = J_r dr/dZ + J_w dw/dZ.

    Returns
    -------
    H_K : np.array
        Derivative of the conditions with respect to the path of K, shape (T,T).
    H_Z : np.array
        Derivative of the conditions with respect to the path of Z, shape (T,T).
    """
    T = solution.T
    for name in ["fake_news_r", "fake_news_w", "jacobian_r", "jacobian_w"]:
        if np.shape(getattr(solution, name)) != (T, T):
            raise DimensionMismatchError(
                name
                + " has shape "
                + str(np.shape(getattr(solution, name)))
                + " but the horizon is T = "
                + str(T)
                + "."
            )
    d = solution.derivatives
    J_r = solution.jacobian_r
    J_w = solution.jacobian_w
    H_K = J_r * d.dr_dK + J_w * d.dw_dK - np.eye(T)
    H_Z = J_r * d.dr_dZ + J_w * d.dw_dZ
    return H_K, H_Z


def generate_impulse_response(solution, steady_state, shock_path):
    """
    Solves for the path of aggregate capital after a path of aggregate productivity
    shocks, known at date 0.

    Parameters
    ----------
    solution : Solution
        Output of solve_sequence_space_jacobians().
    steady_state : SteadyState
        The stationary equilibrium the solution linearizes around.
    shock_path : np.array
        Deviation of aggregate productivity from one at each date, size T.

    Returns
    -------
    dK : np.array
        Deviation of aggregate capital from its steady state level at each date,
        in levels; see to_percent_deviation().
    """
    dZ = np.asarray(shock_path, dtype=np.float64)
    if dZ.ndim != 1:
        raise DimensionMismatchError("The shock path must be one dimensional.")
    check_horizon(dZ, solution.T, "The shock path")
    H_K, H_Z = make_system_matrices(solution)

    condition_number = np.linalg.cond(H_K)
    if not condition_number <= solution.cond_max:
        raise SingularSystemError(
            "The linearized system is singular or ill-conditioned "
            + "(condition number {:.3e}).".format(condition_number),
            condition_number=condition_number,
        )
    try:
        dK = np.linalg.solve(H_K, -H_Z @ dZ)
    except np.linalg.LinAlgError as err:
        raise SingularSystemError(
            "The linearized system could not be solved: " + str(err),
            condition_number=condition_number,
        ) from err

    _log.debug(
        "Impact response of capital is {:.3e} around K = {:.6f}.".format(
            dK[0], steady_state.aggregates.capital
        )
    )
    return dK


def to_percent_deviation(path, level):
    """
    Converts a path of level deviations from a steady state into percent deviations.

    Parameters
    ----------
    path : np.array
        Deviations in levels.
    level : float
        Steady state level, nonzero.

    Returns
    -------
    np.array
    """
    if level == 0.0:
        raise ValueError("Cannot express deviations relative to a level of zero.")
    return 100.0 * np.asarray(path) / level
