"""
Logging tools and the error taxonomy shared by every solver in AiyagariSSJ.

The logger prints logged statements to STDERR with a bare message format. It is
quiet by default; use verbose() to see solver progress and timings, or
set_verbosity_level(logging.DEBUG) to see iteration-by-iteration residuals.
"""

import logging

logging.basicConfig(format="%(message)s")
_log = logging.getLogger("AiyagariSSJ")
_log.setLevel(logging.ERROR)


def disable_logging():
    _log.disabled = True


def enable_logging():
    _log.disabled = False


def warnings():
    _log.setLevel(logging.WARNING)


def quiet():
    _log.setLevel(logging.ERROR)


def verbose():
    _log.setLevel(logging.INFO)


def set_verbosity_level(level):
    _log.setLevel(level)


# ==============================================================================
# ============== Errors raised by the solvers ==================================
# ==============================================================================


class ConfigurationError(ValueError):
    """
    Raised when parameters, grids or solver tolerances are invalid. Always raised
    eagerly at construction time, never from inside a numerical solve.
    """


class NonConvergenceError(RuntimeError):
    """
    Raised when an iterative procedure exhausts its iteration ceiling without
    meeting its tolerance.

    Parameters
    ----------
    message : str
        Description of the procedure that failed.
    last_iterate : object
        The final iterate the procedure produced.
    residual : float
        Magnitude of the convergence criterion at the final iterate.
    iterations : int
        Number of iterations performed.
    """

    def __init__(self, message, last_iterate=None, residual=None, iterations=None):
        self.last_iterate = last_iterate
        self.residual = residual
        self.iterations = iterations
        if residual is not None:
            message += " (residual = {:.3e}".format(residual)
            if iterations is not None:
                message += " after {} iterations".format(iterations)
            message += ")"
        super().__init__(message)


class EquilibriumNotFoundError(NonConvergenceError):
    """
    Raised when the market clearing root-find over the interest rate fails.
    """


class DegenerateSystemError(ValueError):
    """
    Raised when a linear operator fails a structural check, e.g. a transition
    matrix whose rows do not sum to one.
    """


class SingularSystemError(DegenerateSystemError):
    """
    Raised when the linearized equilibrium system has no unique solution.

    Parameters
    ----------
    message : str
        Description of the failure.
    condition_number : float
        Condition number of the offending matrix, if it could be computed.
    """

    def __init__(self, message, condition_number=None):
        self.condition_number = condition_number
        super().__init__(message)


class DimensionMismatchError(ValueError):
    """
    Raised when a sequence space object is combined with an object of a different
    time horizon.
    """
