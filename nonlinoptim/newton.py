"""Newton's method on a scalar objective with finite-difference derivatives."""

from __future__ import annotations

from typing import Optional, Union

from .core import (
    DEFAULT_LAMBDA,
    DEFAULT_MAX_ITER,
    DEFAULT_STEP,
    DEFAULT_TOL,
    Array,
    MinimizerConfig,
    ScalarFunction,
    check_step,
    evaluate_scalar,
)
from .driver import Minimizer
from .linsolve import Solver, get_solver, ldlt
from .numdiff import hessian_approx, jacobian_approx


class NewtonStep:
    """
    Newton step ``H delta = -grad``.

    The error is the objective value itself. Gradient and Hessian are finite
    differences with spacing ``step``; the system is solved with ``solver``
    (pivoted LDLT by default) and any :class:`~nonlinoptim.linsolve.LinearSolveError`
    it raises ends the run.
    """

    def __init__(
        self,
        fun: ScalarFunction,
        step: float = DEFAULT_STEP,
        solver: Union[str, Solver] = ldlt,
    ) -> None:
        self.fun = fun
        self.step = check_step(step)
        self.solver = get_solver(solver)

    def compute_error(self, x: Array) -> float:
        return evaluate_scalar(self.fun, x)

    def compute_delta(self, x: Array) -> Array:
        grad = jacobian_approx(self.fun, x, self.step)[0]
        hess = hessian_approx(self.fun, x, self.step)
        return self.solver(hess, -grad)


def newton_method(
    fun: ScalarFunction,
    max_iter: int = DEFAULT_MAX_ITER,
    tol: float = DEFAULT_TOL,
    lam: float = DEFAULT_LAMBDA,
    *,
    step: float = DEFAULT_STEP,
    solver: Union[str, Solver] = ldlt,
    dim: Optional[int] = None,
) -> Minimizer:
    """Build a :class:`Minimizer` running Newton's method on ``fun``."""
    config = MinimizerConfig(max_iter=max_iter, tol=tol, lam=lam)
    return Minimizer(NewtonStep(fun, step=step, solver=solver), config, dim=dim)


__all__ = ["NewtonStep", "newton_method"]
