"""Gauss-Newton least squares with a permissive fallback solve."""

from __future__ import annotations

from typing import Optional, Union

from .core import (
    DEFAULT_LAMBDA,
    DEFAULT_MAX_ITER,
    DEFAULT_STEP,
    DEFAULT_TOL,
    Array,
    MinimizerConfig,
    ResidualFunction,
    check_jacobian_rows,
    check_step,
    evaluate_residuals,
    sum_of_squares,
)
from .driver import Minimizer
from .linsolve import (
    FailureKind,
    LinearSolveError,
    Solver,
    SolveResult,
    get_solver,
    ldlt,
    lu_full_piv,
    try_solve,
)
from .logging import get_logger
from .numdiff import jacobian_approx_central

logger = get_logger(__name__)


def solve_normal_equations(
    jtj: Array,
    rhs: Array,
    primary: Union[str, Solver] = ldlt,
    fallback: Union[str, Solver] = lu_full_piv,
) -> SolveResult:
    """
    Solve ``J^T J delta = rhs``, retrying once when the primary solve refuses.

    Only a ``NOT_POSITIVE_DEFINITE`` failure of ``primary`` triggers the
    ``fallback``; the returned result then has ``used_fallback=True``. Any
    other failure, or a failing fallback, raises :class:`LinearSolveError`.
    """
    result = try_solve(primary, jtj, rhs)
    if result.ok:
        return result
    if result.failure is not FailureKind.NOT_POSITIVE_DEFINITE:
        raise LinearSolveError(result.failure, result.message)

    logger.info("Primary solve failed (%s); using fallback solver", result.message)
    retry = try_solve(fallback, jtj, rhs)
    if not retry.ok:
        raise LinearSolveError(retry.failure, retry.message)
    retry.used_fallback = True
    return retry


class GaussNewtonStep:
    """
    Gauss-Newton step from the normal equations ``J^T J delta = -J^T r``.

    The error is ``||r||^2``. The residuals from ``compute_error`` are reused
    by the next ``compute_delta``, so the two must be called in that order for
    the same point. ``J`` is a central-difference Jacobian.
    """

    def __init__(
        self,
        fun: ResidualFunction,
        step: float = DEFAULT_STEP,
        primary: Union[str, Solver] = ldlt,
        fallback: Union[str, Solver] = lu_full_piv,
    ) -> None:
        self.fun = fun
        self.step = check_step(step)
        self.primary = get_solver(primary)
        self.fallback = get_solver(fallback)
        self.fallback_count = 0
        self._residuals: Optional[Array] = None

    def compute_error(self, x: Array) -> float:
        self._residuals = evaluate_residuals(self.fun, x)
        return sum_of_squares(self._residuals)

    def compute_delta(self, x: Array) -> Array:
        if self._residuals is None:
            raise RuntimeError("compute_error must be called before compute_delta")
        jac = jacobian_approx_central(self.fun, x, self.step)
        check_jacobian_rows(jac, self._residuals)
        result = solve_normal_equations(
            jac.T @ jac, -jac.T @ self._residuals, self.primary, self.fallback
        )
        if result.used_fallback:
            self.fallback_count += 1
        return result.x


def gauss_newton_method(
    fun: ResidualFunction,
    max_iter: int = DEFAULT_MAX_ITER,
    tol: float = DEFAULT_TOL,
    lam: float = DEFAULT_LAMBDA,
    *,
    step: float = DEFAULT_STEP,
    primary: Union[str, Solver] = ldlt,
    fallback: Union[str, Solver] = lu_full_piv,
    dim: Optional[int] = None,
) -> Minimizer:
    """Build a :class:`Minimizer` running Gauss-Newton on the residuals ``fun``."""
    config = MinimizerConfig(max_iter=max_iter, tol=tol, lam=lam)
    strategy = GaussNewtonStep(fun, step=step, primary=primary, fallback=fallback)
    return Minimizer(strategy, config, dim=dim)


__all__ = ["GaussNewtonStep", "gauss_newton_method", "solve_normal_equations"]
