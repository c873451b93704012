"""
The distribution engine: transition operators over the joint (asset, productivity)
grid implied by a saving policy, and the stationary distributions they imply.
Distributions are "simulated" non-stochastically by moving probability mass
between gridpoints, rather than by drawing agents.
"""

from dataclasses import dataclass, field
from time import time

import numpy as np
from scipy.sparse import csr_matrix

from AiyagariSSJ.core import DegenerateSystemError, NonConvergenceError, _log
from AiyagariSSJ.mat_methods import get_lottery, lottery_expect, lottery_forward


@dataclass(frozen=True, eq=False)
class TransitionOperator:
    """
    Factored representation of the transition matrix Lambda over the joint grid
    of assets and productivity.  Agents at gridpoint (i,j) move to asset gridpoint
    lower[i,j] with probability weight[i,j] and to lower[i,j]+1 otherwise, and
    then draw next period's productivity from row j of income_transition.

    Parameters
    ----------
    lower : np.array
        Lower asset gridpoint index of each agent's saving choice, shape (n_a, n_e).
    weight : np.array
        Probability placed on the lower gridpoint, shape (n_a, n_e).
    income_transition : np.array
        Productivity transition matrix, shape (n_e, n_e).
    """

    lower: np.ndarray
    weight: np.ndarray
    income_transition: np.ndarray
    _sparse: list = field(default_factory=list, repr=False, compare=False)

    @property
    def shape(self):
        n = self.lower.size
        return (n, n)

    def forward(self, D):
        """
        Distribution next period given distribution D today, i.e. Lambda' D.
        """
        return lottery_forward(D, self.lower, self.weight) @ self.income_transition

    def expect(self, X):
        """
        Expectation today of a function X of next period's state, i.e. Lambda X.
        """
        return lottery_expect(X @ self.income_transition.T, self.lower, self.weight)

    def as_sparse(self):
        """
        The explicit transition matrix as a scipy.sparse.csr_matrix, with rows
        indexing today's state and columns tomorrow's, states ordered as in
        np.ravel of an (n_a, n_e) array.  Built once and then reused.
        """
        if not self._sparse:
            n_a, n_e = self.lower.shape
            Pi = self.income_transition
            src = np.arange(n_a * n_e).reshape((n_a, n_e))

            # One entry per (origin, lower/upper node, productivity tomorrow)
            rows = np.repeat(src[:, :, None], n_e, axis=2)
            e_now = np.broadcast_to(np.arange(n_e)[None, :, None], rows.shape)
            e_next = np.broadcast_to(np.arange(n_e)[None, None, :], rows.shape)
            k = self.lower[:, :, None]
            w = self.weight[:, :, None]
            cols_lo = k * n_e + e_next
            vals_lo = w * Pi[e_now, e_next]
            vals_hi = (1.0 - w) * Pi[e_now, e_next]

            data = np.concatenate((vals_lo.ravel(), vals_hi.ravel()))
            row_ind = np.concatenate((rows.ravel(), rows.ravel()))
            col_ind = np.concatenate((cols_lo.ravel(), (cols_lo + n_e).ravel()))
            self._sparse.append(
                csr_matrix((data, (row_ind, col_ind)), shape=self.shape)
            )
        return self._sparse[0]

    def check_stochastic(self, tol):
        """
        Raise a DegenerateSystemError unless every row of the operator is a
        probability distribution (within tol).
        """
        Pi = self.income_transition
        if (
            np.any(self.weight < -tol)
            or np.any(self.weight > 1.0 + tol)
            or np.any(Pi < -tol)
            or not np.allclose(np.sum(Pi, axis=1), 1.0, rtol=0.0, atol=tol)
        ):
            raise DegenerateSystemError(
                "The transition operator is not stochastic; check the policy "
                + "and the productivity transition matrix."
            )
        row_sums = np.asarray(self.as_sparse().sum(axis=1)).ravel()
        err = np.max(np.abs(row_sums - 1.0))
        if err > tol:
            raise DegenerateSystemError(
                "Rows of the transition operator sum to one only within "
                + "{:.3e}.".format(err)
            )


def distribution_transition(saving_policy, asset_grid, income_transition):
    """
    Builds the transition operator over (asset, productivity) implied by a saving
    policy.  Each saving choice is split between the two neighbouring asset
    gridpoints in proportion to its distance from them, so that the mean is
    preserved, and then productivity transits according to income_transition.

    Parameters
    ----------
    saving_policy : np.array
        End-of-period assets chosen at each gridpoint, shape (n_a, n_e).
    asset_grid : np.array
        Strictly increasing asset grid of size n_a.
    income_transition : np.array
        Row-stochastic productivity transition matrix, shape (n_e, n_e).

    Returns
    -------
    Lambda : TransitionOperator
        The transition operator implied by the policy.
    """
    saving_policy = np.ascontiguousarray(saving_policy, dtype=np.float64)
    if saving_policy.shape != (asset_grid.size, income_transition.shape[0]):
        raise ValueError(
            "Saving policy of shape "
            + str(saving_policy.shape)
            + " does not match the grids."
        )
    lower, weight = get_lottery(saving_policy, asset_grid)
    return TransitionOperator(
        lower, weight, np.ascontiguousarray(income_transition, dtype=np.float64)
    )


def invariant_dist(
    Lambda, tol=1e-13, maxit=500_000, D_init=None, stochastic_tol=1e-9
):
    """
    Finds the stationary distribution D = Lambda' D of a transition operator by
    power iteration.

    Parameters
    ----------
    Lambda : TransitionOperator
        The transition operator.
    tol : float
        Convergence criterion on the sup-norm change in the distribution.
    maxit : int
        Maximum number of iterations.
    D_init : np.array or None
        Initial guess; if None, the uniform distribution over the joint grid.
    stochastic_tol : float
        Tolerance for the check that Lambda is stochastic.

    Returns
    -------
    D : np.array
        Stationary distribution of shape (n_a, n_e), nonnegative, summing to one.
    """
    Lambda.check_stochastic(stochastic_tol)

    n_a, n_e = Lambda.lower.shape
    if D_init is None:
        D = np.full((n_a, n_e), 1.0 / (n_a * n_e))
    else:
        D = np.array(D_init, dtype=np.float64)
        D /= np.sum(D)

    t0 = time()
    for it in range(1, maxit + 1):
        D_new = Lambda.forward(D)
        dist = np.max(np.abs(D_new - D))
        D = D_new
        if dist < tol:
            break
    else:
        raise NonConvergenceError(
            "Power iteration for the stationary distribution did not converge",
            last_iterate=D,
            residual=dist,
            iterations=maxit,
        )
    _log.debug(
        "Stationary distribution found in {} iterations, {:.3f} seconds.".format(
            it, time() - t0
        )
    )

    if np.min(D) < -tol:
        raise DegenerateSystemError(
            "The stationary distribution has negative mass; Lambda is not stochastic."
        )
    D = np.maximum(D, 0.0)
    return D / np.sum(D)
