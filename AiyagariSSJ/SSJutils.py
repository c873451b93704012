"""
Functions for building sequence space Jacobian (SSJ) matrices of aggregate household
saving with respect to factor prices, by the "fake news" algorithm of Auclert,
Bardoczy, Rognlie and Straub (2021).  A Jacobian answers: if households learn at
date 0 that a price will be perturbed at date s, by how much does aggregate saving
move at date t?  The fake news algorithm builds it from a single backward pass of
perturbed policies and one sequence of expectation vectors, rather than from T
separate simulations; calc_jacobian_manually() does the latter for verification.
"""

from time import time

import numpy as np
from numba import njit

from AiyagariSSJ.core import DimensionMismatchError, _log
from AiyagariSSJ.ConsumptionSaving.ConsAiyagariModel import Prices, egm_step
from AiyagariSSJ.simulator import distribution_transition

__all__ = [
    "PRICE_INPUTS",
    "expectation_vectors",
    "perturbed_prices",
    "get_yso",
    "get_transition_sequence",
    "calc_curlyYs",
    "calc_curlyDs",
    "make_fake_news_matrix",
    "calc_jacobian_from_fake_news",
    "calc_jacobian_manually",
]

PRICE_INPUTS = ("r", "w")


def perturbed_prices(prices, input, dx):
    """
    Returns a copy of prices with the named input shifted by dx.

    Parameters
    ----------
    prices : Prices
        Baseline factor prices.
    input : str
        Name of the price to perturb, 'r' or 'w'.
    dx : float
        Size of the perturbation.

    Returns
    -------
    Prices
    """
    if input == "r":
        return Prices(prices.r + dx, prices.w)
    if input == "w":
        return Prices(prices.r, prices.w + dx)
    raise ValueError(
        "Cannot perturb " + str(input) + "; input must be one of " + str(PRICE_INPUTS)
    )


def expectation_vectors(steady_state, T):
    """
    Builds the expectation vectors of aggregate saving, E[t] = Lambda^t a'_ss, whose
    [i,j] entry is the expected saving t periods from now of an agent who is at
    gridpoint (i,j) today.

    Parameters
    ----------
    steady_state : SteadyState
        The stationary equilibrium.
    T : int
        Number of vectors to compute.

    Returns
    -------
    E : np.array
        Array of shape (T, n_a, n_e).
    """
    Lambda = steady_state.Lambda
    E = np.empty((T,) + steady_state.policy.saving.shape)
    E[0] = steady_state.policy.saving
    for t in range(1, T):
        E[t] = Lambda.expect(E[t - 1])
    return E


def get_yso(model, steady_state, input, dx):
    """
    Solves backward for the sequence of policies that agents choose at date 0 when
    they learn that the named price will be perturbed by dx at date s, for s from
    0 to T-1.  With dx = 0 this is the "ghost" sequence, which removes the drift
    of iterating the steady state policy from the perturbed one.

    Parameters
    ----------
    model : AiyagariModel
        The model configuration.
    steady_state : SteadyState
        The stationary equilibrium.
    input : str
        Name of the price to perturb, 'r' or 'w'.
    dx : float
        Size of the perturbation.

    Returns
    -------
    yso : [Policy]
        List of T policies; entry s is the date 0 policy when the perturbation
        arrives at date s.
    """
    prices = steady_state.prices
    yso = [egm_step(steady_state.policy.Va, perturbed_prices(prices, input, dx), model)]
    for s in range(1, model.T):
        yso.append(egm_step(yso[-1].Va, prices, model))
    return yso


def get_transition_sequence(model, yso):
    """
    Makes the transition operator implied by each policy in a sequence.
    """
    return [
        distribution_transition(
            policy.saving, model.asset_grid, model.income_transition
        )
        for policy in yso
    ]


def calc_curlyYs(D_ss, yso, yso_ghost, dx):
    """
    Derivative of date 0 aggregate saving with respect to news about date s,
    curlyY[s] = sum(D_ss * (yso[s] - yso_ghost[s])) / dx.
    """
    return np.array(
        [
            np.vdot(D_ss, policy.saving - ghost.saving) / dx
            for policy, ghost in zip(yso, yso_ghost)
        ]
    )


def calc_curlyDs(D_ss, Lambdaso, Lambdaso_ghost, dx):
    """
    Derivative of the date 1 distribution with respect to news about date s,
    curlyD[s] = (Lambdaso[s]' D_ss - Lambdaso_ghost[s]' D_ss) / dx.
    """
    return np.array(
        [
            (Lambda.forward(D_ss) - ghost.forward(D_ss)) / dx
            for Lambda, ghost in zip(Lambdaso, Lambdaso_ghost)
        ]
    )


@njit
def make_fake_news_matrix(curlyY, curlyD, E):  # pragma: no cover
    """
    Numba-compatible function to assemble the fake news matrix from first order
    perturbation information.

    Parameters
    ----------
    curlyY : np.array
        Array of size T, the response of the date 0 outcome to news about date s.
    curlyD : np.array
        Array of shape (T,K), the response of the date 1 distribution to news
        about date s, flattened over the K state space nodes.
    E : np.array
        Array of shape (T,K), the flattened expectation vectors.

    Returns
    -------
    FN : np.array
        Fake news matrix of shape (T,T).
    """
    T = curlyY.size
    FN = np.empty((T, T))
    FN[0, :] = curlyY  # Fill in row zero
    for t in range(1, T):  # Loop over other rows
        for s in range(T):
            FN[t, s] = np.dot(E[t - 1], curlyD[s])
    return FN


@njit
def calc_jacobian_from_fake_news(FN):  # pragma: no cover
    """
    Numba-compatible function to accumulate a fake news matrix along its diagonals
    into a sequence space Jacobian: J[t,s] = F[t,s] + J[t-1,s-1].

    Parameters
    ----------
    FN : np.array
        Fake news matrix of shape (T,T).

    Returns
    -------
    J : np.array
        Sequence space Jacobian of shape (T,T).
    """
    T = FN.shape[0]
    J = np.empty((T, T))
    J[0, :] = FN[0, :]  # Fill in row zero
    J[:, 0] = FN[:, 0]  # Fill in column zero
    for t in range(1, T):  # Loop over other rows
        for s in range(1, T):  # Loop over other columns
            J[t, s] = J[t - 1, s - 1] + FN[t, s]
    return J


def check_horizon(array, T, name="array"):
    """
    Raise a DimensionMismatchError unless array has leading dimension T.
    """
    if np.shape(array)[:1] != (T,):
        raise DimensionMismatchError(
            name
            + " has shape "
            + str(np.shape(array))
            + " but the horizon is T = "
            + str(T)
            + "."
        )


def calc_jacobian_manually(model, steady_state, input, T=None, dx=None):
    """
    Compute the sequence space Jacobian of aggregate saving with respect to the
    named price *manually*: for each date s, solve backward and simulate forward
    the full transition path in which the price is perturbed at date s only, and
    difference it against the unperturbed path.  This takes T times as long as
    the fake news algorithm and is meant to verify and debug its output.

    Parameters
    ----------
    model : AiyagariModel
        The model configuration.
    steady_state : SteadyState
        The stationary equilibrium.
    input : str
        Name of the price to perturb, 'r' or 'w'.
    T : int or None
        Horizon of the paths; defaults to model.T.
    dx : float or None
        Size of the perturbation; defaults to model.params.dx.

    Returns
    -------
    J : np.array
        Jacobian of shape (T,T); column s is the response of aggregate saving at
        each date to the perturbation at date s.
    """
    if T is None:
        T = model.T
    if dx is None:
        dx = model.params.dx
    prices = steady_state.prices
    D_ss = steady_state.distribution

    def aggregate_path(price_path):
        # Backward pass from the stationary marginal value
        policies = [None] * T
        Va = steady_state.policy.Va
        for t in range(T - 1, -1, -1):
            policies[t] = egm_step(Va, price_path[t], model)
            Va = policies[t].Va

        # Forward pass from the stationary distribution
        path = np.empty(T)
        D = D_ss
        for t in range(T):
            path[t] = np.vdot(D, policies[t].saving)
            Lambda = distribution_transition(
                policies[t].saving, model.asset_grid, model.income_transition
            )
            D = Lambda.forward(D)
        return path

    t0 = time()
    ghost_path = aggregate_path([prices] * T)
    J = np.empty((T, T))
    for s in range(T):
        price_path = [prices] * T
        price_path[s] = perturbed_prices(prices, input, dx)
        J[:, s] = (aggregate_path(price_path) - ghost_path) / dx
    _log.info(
        "Computed the {} Jacobian manually in {:.3f} seconds.".format(input, time() - t0)
    )
    return J
