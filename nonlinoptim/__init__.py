"""Local nonlinear minimization with finite-difference derivatives.

Example
-------
>>> import numpy as np
>>> from nonlinoptim import ResultInfo, gauss_newton_method
>>> t = np.linspace(0.0, 0.9, 10)
>>> y = (0.2 * t - 0.2) ** 2
>>> optimizer = gauss_newton_method(lambda x: (x[0] * t - 0.2) ** 2 - y)
>>> x = np.array([0.0])
>>> optimizer.run(x) is ResultInfo.TOLERANCE_REACHED
True
>>> round(float(x[0]), 3)
0.2
"""

__version__ = "1.0.0"

from .core import (
    DEFAULT_LAMBDA,
    DEFAULT_MAX_ITER,
    DEFAULT_STEP,
    DEFAULT_TOL,
    InvalidArgumentError,
    MinimizerConfig,
    ResultInfo,
)
from .driver import Minimizer, Strategy
from .gauss_newton import GaussNewtonStep, gauss_newton_method, solve_normal_equations
from .gradient import GradientDescentStep, gradient_descent
from .linsolve import (
    SOLVERS,
    FailureKind,
    LinearSolveError,
    SolveResult,
    solve,
    try_solve,
)
from .newton import NewtonStep, newton_method
from .numdiff import hessian_approx, jacobian_approx, jacobian_approx_central

__all__ = [
    "DEFAULT_LAMBDA",
    "DEFAULT_MAX_ITER",
    "DEFAULT_STEP",
    "DEFAULT_TOL",
    "FailureKind",
    "GaussNewtonStep",
    "GradientDescentStep",
    "InvalidArgumentError",
    "LinearSolveError",
    "Minimizer",
    "MinimizerConfig",
    "NewtonStep",
    "ResultInfo",
    "SOLVERS",
    "SolveResult",
    "Strategy",
    "gauss_newton_method",
    "gradient_descent",
    "hessian_approx",
    "jacobian_approx",
    "jacobian_approx_central",
    "newton_method",
    "solve",
    "solve_normal_equations",
    "try_solve",
]
