"""
Discrete approximations to the idiosyncratic productivity process and related
Markov chain tools.
"""

import numpy as np

from AiyagariSSJ.core import ConfigurationError, NonConvergenceError, _log


def make_rouwenhorst_ar1(N, sigma=1.0, ar_1=0.9):
    """
    Function to return a discretized version of an AR1 process using the method
    of Rouwenhorst (1995), as refined by Kopecky and Suen (2010).  The method
    matches the persistence and the unconditional variance of the process exactly,
    which makes it the preferred choice for highly persistent processes.

    Parameters
    ----------
    N: int
        Size of discretized grid, at least 2.
    sigma: float
        Standard deviation of the error term, nonnegative.
    ar_1: float
        AR1 coefficient, strictly between -1 and 1.

    Returns
    -------
    y: np.array
        Evenly spaced grid points on which the discretized process takes values
    trans_matrix: np.array
        Row-stochastic Markov transition array for the discretized process
    """
    if N < 2:
        raise ConfigurationError("The Rouwenhorst method needs at least 2 states.")
    if sigma < 0.0:
        raise ConfigurationError("The standard deviation sigma cannot be negative.")
    if not abs(ar_1) < 1.0:
        raise ConfigurationError("The AR1 coefficient must lie in (-1,1).")

    p = (1.0 + ar_1) / 2.0
    trans_matrix = np.array([[p, 1.0 - p], [1.0 - p, p]])
    for n in range(3, N + 1):
        P = np.zeros((n, n))
        P[:-1, :-1] += p * trans_matrix
        P[:-1, 1:] += (1.0 - p) * trans_matrix
        P[1:, :-1] += (1.0 - p) * trans_matrix
        P[1:, 1:] += p * trans_matrix
        P[1:-1, :] /= 2.0  # interior rows were counted twice
        trans_matrix = P

    yN = np.sqrt(N - 1) * sigma / np.sqrt(1.0 - ar_1**2)
    y = np.linspace(-yN, yN, N)
    return y, trans_matrix


def calc_stationary_dstn(trans_matrix, tol=1e-12, maxit=100_000):
    """
    Finds the stationary distribution of a finite Markov chain by iterating on
    the transition matrix from a uniform initial distribution.

    Parameters
    ----------
    trans_matrix : np.array
        Square, row-stochastic transition matrix.
    tol : float
        Convergence criterion on the sup-norm change in the distribution.
    maxit : int
        Maximum number of iterations.

    Returns
    -------
    pi : np.array
        The stationary distribution, nonnegative and summing to one.
    """
    N = trans_matrix.shape[0]
    pi = np.full(N, 1.0 / N)
    for it in range(maxit):
        pi_new = pi @ trans_matrix
        dist = np.max(np.abs(pi_new - pi))
        pi = pi_new
        if dist < tol:
            return pi / np.sum(pi)
    raise NonConvergenceError(
        "Stationary distribution of the Markov chain did not converge",
        last_iterate=pi,
        residual=dist,
        iterations=maxit,
    )


def make_normalized_income_process(sigma, ar_1, N):
    """
    Discretize log productivity as a Rouwenhorst AR1 and normalize it so that
    average productivity under the stationary distribution is exactly one.

    Parameters
    ----------
    sigma : float
        Standard deviation of innovations to log productivity.
    ar_1 : float
        Persistence of log productivity.
    N : int
        Number of productivity states.

    Returns
    -------
    log_grid : np.array
        Normalized log productivity gridpoints, with pi @ exp(log_grid) == 1.
    income_grid : np.array
        Productivity levels exp(log_grid).
    trans_matrix : np.array
        Row-stochastic transition matrix between productivity states.
    """
    y, trans_matrix = make_rouwenhorst_ar1(N, sigma=sigma, ar_1=ar_1)
    pi = calc_stationary_dstn(trans_matrix)
    income_grid = np.exp(y) / np.dot(pi, np.exp(y))
    log_grid = np.log(income_grid)
    _log.debug(
        "Discretized productivity with {} states; levels range from {:.4f} to {:.4f}.".format(
            N, income_grid[0], income_grid[-1]
        )
    )
    return log_grid, income_grid, trans_matrix


def make_ar1_shock_path(T, ar_1, size=0.01):
    """
    Makes the path of an aggregate shock that hits at date 0 and decays
    geometrically: dZ_t = size * ar_1**t.

    Parameters
    ----------
    T : int
        Length of the path.
    ar_1 : float
        Rate of geometric decay of the shock.
    size : float
        Impact size of the shock.

    Returns
    -------
    dZ : np.array
        Shock path of length T.
    """
    return size * ar_1 ** np.arange(T)
