"""
Parameter records for the Aiyagari / Krusell-Smith economy.  Default values are
kept in a module level dictionary; make_parameters() copies it, applies any
overrides, and builds an immutable, validated AiyagariParameters instance.
"""

from dataclasses import asdict, dataclass, fields

import numpy as np

from AiyagariSSJ.core import ConfigurationError

__all__ = [
    "AiyagariParameters",
    "SolutionParams",
    "init_krusell_smith",
    "init_solution",
    "make_parameters",
]

# Household preferences
DiscFac = 0.98  # Intertemporal discount factor
CRRA = 1.0  # Coefficient of relative risk aversion

# Idiosyncratic productivity process
IncShkPersist = 0.966  # Persistence of log productivity
IncShkScale = 0.5  # Cross-sectional standard deviation of log productivity
IncShkStd = IncShkScale * np.sqrt(1.0 - IncShkPersist**2)  # Innovation std
IncShkCount = 7  # Number of points in the discretized productivity process

# Firm side
CapShare = 0.11  # Capital's share of income
DeprFac = 0.025  # Capital depreciation rate

# Grids and sequence space objects
aMin = 0.0  # Borrowing limit, lowest point of the asset grid
aMax = 200.0  # Highest point of the asset grid
aCount = 200  # Number of points in the asset grid
aNestFac = -1  # Exponential nesting of the asset grid; -1 means evenly spaced
dx = 1e-4  # Size of the perturbation used for sequence space derivatives
T = 300  # Horizon of the sequence space Jacobians

# Make a dictionary to specify a Krusell-Smith economy
init_krusell_smith = {
    "DiscFac": DiscFac,
    "CRRA": CRRA,
    "IncShkStd": IncShkStd,
    "IncShkPersist": IncShkPersist,
    "DeprFac": DeprFac,
    "CapShare": CapShare,
    "dx": dx,
    "aMin": aMin,
    "aMax": aMax,
    "aCount": aCount,
    "IncShkCount": IncShkCount,
    "T": T,
    "aNestFac": aNestFac,
}

# Tolerances and iteration ceilings for the numerical procedures
init_solution = {
    "egm_tol": 1e-9,  # Sup-norm change in saving policy for EGM convergence
    "egm_maxit": 10_000,  # Iteration ceiling for the EGM fixed point
    "dist_tol": 1e-13,  # Sup-norm change in distribution for power iteration
    "dist_maxit": 500_000,  # Iteration ceiling for power iteration
    "ss_tol": 1e-9,  # Step tolerance on r for the market clearing root-find
    "ss_maxit": 50,  # Iteration ceiling for the market clearing root-find
    "market_tol": 1e-5,  # Largest acceptable excess capital demand in equilibrium
    "stochastic_tol": 1e-9,  # Tolerance when checking that a transition is stochastic
    "cond_max": 1e12,  # Largest acceptable condition number of the IRF system
}


@dataclass(frozen=True)
class AiyagariParameters:
    """
    Primitive parameters of an Aiyagari economy together with the sizes of the
    grids and the horizon of its sequence space representation.

    Parameters
    ----------
    DiscFac : float
        Intertemporal discount factor, in (0,1).
    CRRA : float
        Coefficient of relative risk aversion, positive.
    IncShkStd : float
        Standard deviation of innovations to log productivity.
    IncShkPersist : float
        AR(1) coefficient of log productivity, |IncShkPersist| < 1.
    DeprFac : float
        Capital depreciation rate, in [0,1].
    CapShare : float
        Capital's share of income, in (0,1).
    dx : float
        Size of the perturbation used for sequence space derivatives.
    aMin : float
        Borrowing limit (lowest asset gridpoint).
    aMax : float
        Highest asset gridpoint.
    aCount : int
        Number of asset gridpoints.
    IncShkCount : int
        Number of productivity states.
    T : int
        Horizon of the sequence space Jacobians.
    aNestFac : int
        Exponential nesting of the asset grid; -1 for an evenly spaced grid.
    """

    DiscFac: float
    CRRA: float
    IncShkStd: float
    IncShkPersist: float
    DeprFac: float
    CapShare: float
    dx: float
    aMin: float
    aMax: float
    aCount: int
    IncShkCount: int
    T: int
    aNestFac: int = -1

    def __post_init__(self):
        checks = [
            (0.0 < self.DiscFac < 1.0, "DiscFac must lie in (0,1)"),
            (self.CRRA > 0.0, "CRRA must be positive"),
            (self.IncShkStd >= 0.0, "IncShkStd cannot be negative"),
            (abs(self.IncShkPersist) < 1.0, "IncShkPersist must lie in (-1,1)"),
            (0.0 <= self.DeprFac <= 1.0, "DeprFac must lie in [0,1]"),
            (0.0 < self.CapShare < 1.0, "CapShare must lie in (0,1)"),
            (self.dx > 0.0, "dx must be positive"),
            (self.aMin < self.aMax, "aMin must be strictly below aMax"),
            (int(self.aCount) >= 2, "aCount must be at least 2"),
            (int(self.IncShkCount) >= 2, "IncShkCount must be at least 2"),
            (int(self.T) >= 1, "T must be at least 1"),
            (
                int(self.aNestFac) == -1 or int(self.aNestFac) >= 1,
                "aNestFac must be -1 or a positive integer",
            ),
        ]
        for ok, message in checks:
            if not ok:
                raise ConfigurationError(message + ".")

        # Sizes are stored as plain ints whatever was passed in
        for name in ["aCount", "IncShkCount", "T", "aNestFac"]:
            object.__setattr__(self, name, int(getattr(self, name)))

    def replace(self, **kwds):
        """
        Return a new, validated parameter record with some values replaced.
        """
        values = self.to_dict()
        values.update(kwds)
        return type(self)(**values)

    def to_dict(self):
        return asdict(self)


@dataclass(frozen=True)
class SolutionParams:
    """
    Tolerances and iteration ceilings used by every iterative procedure.  See
    init_solution for the meaning of each field.
    """

    egm_tol: float = init_solution["egm_tol"]
    egm_maxit: int = init_solution["egm_maxit"]
    dist_tol: float = init_solution["dist_tol"]
    dist_maxit: int = init_solution["dist_maxit"]
    ss_tol: float = init_solution["ss_tol"]
    ss_maxit: int = init_solution["ss_maxit"]
    market_tol: float = init_solution["market_tol"]
    stochastic_tol: float = init_solution["stochastic_tol"]
    cond_max: float = init_solution["cond_max"]

    def __post_init__(self):
        for field in fields(self):
            value = getattr(self, field.name)
            if not value > 0:
                raise ConfigurationError(
                    "Solution parameter " + field.name + " must be positive."
                )


def make_parameters(**kwds):
    """
    Build an AiyagariParameters instance from the default Krusell-Smith
    calibration, overriding any entries passed as keyword arguments.

    Returns
    -------
    params : AiyagariParameters
        Validated, immutable parameter record.
    """
    params = init_krusell_smith.copy()
    unknown = set(kwds) - set(params)
    if unknown:
        raise ConfigurationError(
            "Unrecognized parameter(s): " + ", ".join(sorted(unknown))
        )
    params.update(kwds)
    return AiyagariParameters(**params)
