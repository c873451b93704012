"""
General purpose functions for building the grids on which household problems
are solved.
"""

import numpy as np

from AiyagariSSJ.core import ConfigurationError

# ==============================================================================
# ============== Functions for generating state space grids  ===================
# ==============================================================================


def make_grid_exp_mult(ming, maxg, ng, timestonest=20):
    """
    Make a multi-exponentially spaced grid.

    Parameters
    ----------
    ming : float
        Minimum value of the grid
    maxg : float
        Maximum value of the grid
    ng : int
        The number of grid points
    timestonest : int
        the number of times to nest the exponentiation

    Returns
    -------
    points : np.array
        A multi-exponentially spaced grid

    Original Matab code can be found in Chris Carroll's
    [Solution Methods for Microeconomic Dynamic Optimization Problems]
    (http://www.econ2.jhu.edu/people/ccarroll/solvingmicrodsops/) toolkit.
    """
    if timestonest > 0:
        Lming = ming
        Lmaxg = maxg
        for j in range(timestonest):
            Lming = np.log(Lming + 1)
            Lmaxg = np.log(Lmaxg + 1)
        grid = np.linspace(Lming, Lmaxg, ng)
        for j in range(timestonest):
            grid = np.exp(grid) - 1
    else:
        grid = np.exp(np.linspace(np.log(ming), np.log(maxg), ng))
    return grid


def construct_assets_grid(aMin, aMax, aCount, aNestFac=-1):
    """
    Constructs the grid of end-of-period (and beginning-of-period) asset holdings
    on which the household problem and the wealth distribution are represented.

    Parameters
    ----------
    aMin : float
        Borrowing limit, the lowest gridpoint.
    aMax : float
        Highest gridpoint.
    aCount : int
        Number of gridpoints.
    aNestFac : int
        Level of nesting for the exponentially spaced grid. If -1, the grid is
        linearly spaced.

    Returns
    -------
    aGrid : np.array
        Strictly increasing array of asset gridpoints from aMin to aMax.
    """
    if aCount < 2:
        raise ConfigurationError("The asset grid needs at least two points.")
    if not aMin < aMax:
        raise ConfigurationError("aMin must be strictly below aMax.")

    if aNestFac == -1:
        aGrid = np.linspace(aMin, aMax, aCount)
    elif aNestFac >= 1:
        # Nest on the distance from the borrowing limit so that negative limits work
        aGrid = aMin + make_grid_exp_mult(
            ming=0.0, maxg=aMax - aMin, ng=aCount, timestonest=aNestFac
        )
        aGrid[0] = aMin
        aGrid[-1] = aMax
    else:
        raise ConfigurationError(
            "aNestFac not recognized. "
            + "Please ensure aNestFac is either -1 or a positive integer."
        )

    if np.any(np.diff(aGrid) <= 0.0):
        raise ConfigurationError("The asset grid is not strictly increasing.")
    return aGrid
