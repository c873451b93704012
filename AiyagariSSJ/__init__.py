"""
AiyagariSSJ: the stationary equilibrium of an Aiyagari economy and its linearized
Krusell-Smith dynamics by the sequence space Jacobian method.
"""

__version__ = "0.1.0"

from AiyagariSSJ.core import (
    ConfigurationError,
    DegenerateSystemError,
    DimensionMismatchError,
    EquilibriumNotFoundError,
    NonConvergenceError,
    SingularSystemError,
    disable_logging,
    enable_logging,
    quiet,
    set_verbosity_level,
    verbose,
    warnings,
)
from AiyagariSSJ.parameters import (
    AiyagariParameters,
    SolutionParams,
    init_krusell_smith,
    init_solution,
    make_parameters,
)
from AiyagariSSJ.distributions import make_ar1_shock_path
from AiyagariSSJ.ConsumptionSaving.ConsAiyagariModel import (
    AiyagariModel,
    SteadyState,
    setup_model,
    single_run,
    solve_steady_state,
)
from AiyagariSSJ.ConsumptionSaving.ConsKrusellSmithModel import (
    Solution,
    generate_impulse_response,
    solve_sequence_space_jacobians,
    to_percent_deviation,
)
