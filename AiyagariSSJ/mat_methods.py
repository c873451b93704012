"""
Numba kernels for the 'lottery' representation of a policy on a one dimensional
asset grid.  A choice a' that falls between gridpoints a_k and a_{k+1} is
represented by the lower index k and the weight placed on a_k; the remaining
weight goes to a_{k+1}.  Arrays are indexed (asset, productivity).
"""

import numpy as np
from numba import njit


@njit
def get_lottery(policy: np.ndarray, grid: np.ndarray):  # pragma: no cover
    """
    Get the lower index and lower weight of each policy value on a grid.
    Values outside the grid are clipped to its end points.

    Parameters
    ----------
    policy : np.ndarray
        Array of shape (n_a, n_e) of choices on the grid's support.
    grid : np.ndarray
        Strictly increasing grid of size n_a >= 2.

    Returns
    -------
    lower : np.ndarray
        Array of shape (n_a, n_e) with the index of the gridpoint below each
        choice, between 0 and n_a - 2.
    weight : np.ndarray
        Array of shape (n_a, n_e) with the probability placed on the lower
        gridpoint, between 0 and 1.
    """
    n_a, n_e = policy.shape
    top = grid.size - 2
    lower = np.empty((n_a, n_e), dtype=np.int64)
    weight = np.empty((n_a, n_e))
    for j in range(n_e):
        for i in range(n_a):
            x = policy[i, j]
            k = np.searchsorted(grid, x) - 1
            if k < 0:
                k = 0
            elif k > top:
                k = top
            w = (grid[k + 1] - x) / (grid[k + 1] - grid[k])
            if w < 0.0:
                w = 0.0
            elif w > 1.0:
                w = 1.0
            lower[i, j] = k
            weight[i, j] = w
    return lower, weight


@njit
def lottery_forward(
    D: np.ndarray, lower: np.ndarray, weight: np.ndarray
) -> np.ndarray:  # pragma: no cover
    """
    Moves the mass of a distribution over (asset, productivity) today to its
    end-of-period asset choices, keeping productivity fixed.

    Parameters
    ----------
    D : np.ndarray
        Distribution of shape (n_a, n_e).
    lower : np.ndarray
        Lower gridpoint index of each choice.
    weight : np.ndarray
        Weight placed on the lower gridpoint of each choice.

    Returns
    -------
    D_end : np.ndarray
        End-of-period distribution of shape (n_a, n_e).
    """
    n_a, n_e = D.shape
    D_end = np.zeros((n_a, n_e))
    for j in range(n_e):
        for i in range(n_a):
            k = lower[i, j]
            w = weight[i, j]
            D_end[k, j] += w * D[i, j]
            D_end[k + 1, j] += (1.0 - w) * D[i, j]
    return D_end


@njit
def lottery_expect(
    X: np.ndarray, lower: np.ndarray, weight: np.ndarray
) -> np.ndarray:  # pragma: no cover
    """
    The transpose of lottery_forward: evaluates a function defined on end-of-period
    gridpoints at each agent's lottery over them.

    Parameters
    ----------
    X : np.ndarray
        Values of shape (n_a, n_e) defined on end-of-period gridpoints.
    lower : np.ndarray
        Lower gridpoint index of each choice.
    weight : np.ndarray
        Weight placed on the lower gridpoint of each choice.

    Returns
    -------
    X_now : np.ndarray
        Expected values of shape (n_a, n_e) at today's gridpoints.
    """
    n_a, n_e = X.shape
    X_now = np.empty((n_a, n_e))
    for j in range(n_e):
        for i in range(n_a):
            k = lower[i, j]
            w = weight[i, j]
            X_now[i, j] = w * X[k, j] + (1.0 - w) * X[k + 1, j]
    return X_now


@njit
def interpolate_extrap(
    x: np.ndarray, xp: np.ndarray, yp: np.ndarray
) -> np.ndarray:  # pragma: no cover
    """
    Linear interpolation of the function (xp, yp) at points x, extrapolating
    linearly beyond both ends of xp rather than flattening as np.interp does.

    Parameters
    ----------
    x : np.ndarray
        Points of evaluation.
    xp : np.ndarray
        Increasing nodes of the function, at least two.
    yp : np.ndarray
        Function values at the nodes.

    Returns
    -------
    y : np.ndarray
        Interpolated values at x.
    """
    top = xp.size - 2
    y = np.empty(x.size)
    for i in range(x.size):
        k = np.searchsorted(xp, x[i]) - 1
        if k < 0:
            k = 0
        elif k > top:
            k = top
        slope = (yp[k + 1] - yp[k]) / (xp[k + 1] - xp[k])
        y[i] = yp[k] + slope * (x[i] - xp[k])
    return y
