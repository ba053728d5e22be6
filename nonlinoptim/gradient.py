"""Gradient descent on a sum of squared residuals."""

from __future__ import annotations

from typing import Optional

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
from .numdiff import jacobian_approx_central


class GradientDescentStep:
    """Step ``-J^T r``; no curvature and no step normalization, so keep ``lam`` small."""

    def __init__(self, fun: ResidualFunction, step: float = DEFAULT_STEP) -> None:
        self.fun = fun
        self.step = check_step(step)
        self._residuals: Optional[Array] = None

    def compute_error(self, x: Array) -> float:
        self._residuals = evaluate_residuals(self.fun, x)
        return sum_of_squares(self._residuals)

    def compute_delta(self, x: Array) -> Array:
        if self._residuals is None:
            raise RuntimeError("compute_error must be called before compute_delta")
        jac = jacobian_approx_central(self.fun, x, self.step)
        check_jacobian_rows(jac, self._residuals)
        return -jac.T @ self._residuals


def gradient_descent(
    fun: ResidualFunction,
    max_iter: int = DEFAULT_MAX_ITER,
    tol: float = DEFAULT_TOL,
    lam: float = DEFAULT_LAMBDA,
    *,
    step: float = DEFAULT_STEP,
    dim: Optional[int] = None,
) -> Minimizer:
    """Build a :class:`Minimizer` running gradient descent on the residuals ``fun``."""
    config = MinimizerConfig(max_iter=max_iter, tol=tol, lam=lam)
    return Minimizer(GradientDescentStep(fun, step=step), config, dim=dim)


__all__ = ["GradientDescentStep", "gradient_descent"]
