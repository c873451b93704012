# ==============================================================================
# ============== Define utility functions        ===============================
# ==============================================================================


def CRRAutilityP(c, rho):
    """
    Evaluates constant relative risk aversion (CRRA) marginal utility of consumption
    c given risk aversion parameter rho.

    Parameters
    ----------
    c : float or np.array
        Consumption value
    rho : float
        Risk aversion

    Returns
    -------
    uP : float or np.array
        Marginal utility

    Tests
    -----
    >>> CRRAutilityP(c=2.0, rho=1.0)
    0.5
    """
    if rho == 1:
        return 1.0 / c
    return c**-rho


def CRRAutilityP_inv(uP, rho):
    """
    Evaluates the inverse of the CRRA marginal utility function (with risk aversion
    parameter rho) at a given marginal utility level uP.

    Parameters
    ----------
    uP : float or np.array
        Marginal utility value
    rho : float
        Risk aversion

    Returns
    -------
    (unnamed) : float or np.array
        Consumption corresponding to given marginal utility value.
    """
    return uP ** (-1.0 / rho)
