"""Finite-difference Jacobians and Hessians.

Every evaluation is made on a freshly perturbed copy of the point, so the
caller's array is never modified, not even transiently. Accuracy depends on
``step`` relative to the curvature of the function and degrades silently
when it is badly chosen.
"""

from __future__ import annotations

from typing import Callable

import numpy as np

from .core import DEFAULT_STEP, Array, InvalidArgumentError, check_step


def _as_point(x: Array) -> Array:
    x = np.array(x, dtype=float)
    if x.ndim != 1 or x.size == 0:
        raise InvalidArgumentError(f"point must be a non-empty 1-D array, got shape {x.shape}")
    return x


def _shifted(x: Array, *moves: tuple[int, float]) -> Array:
    point = x.copy()
    for index, amount in moves:
        point[index] += amount
    return point


def _evaluate(fun: Callable, point: Array, size: int | None = None) -> Array:
    value = np.asarray(fun(point), dtype=float)
    if value.ndim > 1:
        raise InvalidArgumentError(f"function must return a scalar or 1-D array, got shape {value.shape}")
    if size is not None and value.size != size:
        raise InvalidArgumentError(
            f"function output changed length from {size} to {value.size}"
        )
    return value


def jacobian_approx(
    fun: Callable[[Array], float | Array],
    x: Array,
    step: float = DEFAULT_STEP,
    return_evals: bool = False,
) -> Array | tuple[Array, int]:
    """Forward-difference Jacobian.

    Parameters
    ----------
    fun:
        Scalar or residual function. A scalar result gives a ``(1, N)``
        Jacobian, an M-vector gives ``(M, N)``.
    x:
        Point of evaluation, length N.
    step:
        Forward perturbation ``h``.
    return_evals:
        Also return the number of evaluations (``1 + N``).
    """
    step = check_step(step)
    x = _as_point(x)
    base = _evaluate(fun, x)
    outputs = base.size if base.ndim else 1
    jac = np.empty((outputs, x.size), dtype=float)
    for i in range(x.size):
        shifted = _evaluate(fun, _shifted(x, (i, step)), base.size)
        jac[:, i] = np.atleast_1d((shifted - base) / step)
    if return_evals:
        return jac, 1 + x.size
    return jac


def jacobian_approx_central(
    fun: Callable[[Array], float | Array],
    x: Array,
    step: float = DEFAULT_STEP,
    return_evals: bool = False,
) -> Array | tuple[Array, int]:
    """Central-difference Jacobian, ``(f(x+h e_i) - f(x-h e_i)) / 2h`` per column.

    Costs ``2N`` evaluations and no base value; error is O(h^2).
    """
    step = check_step(step)
    x = _as_point(x)
    jac = None
    size = None
    for i in range(x.size):
        plus = _evaluate(fun, _shifted(x, (i, step)), size)
        size = plus.size
        minus = _evaluate(fun, _shifted(x, (i, -step)), size)
        if jac is None:
            jac = np.empty((plus.size if plus.ndim else 1, x.size), dtype=float)
        jac[:, i] = np.atleast_1d((plus - minus) / (2.0 * step))
    if return_evals:
        return jac, 2 * x.size
    return jac


def hessian_approx(
    fun: Callable[[Array], float],
    x: Array,
    step: float = DEFAULT_STEP,
    return_evals: bool = False,
) -> Array | tuple[Array, int]:
    """Finite-difference Hessian of a scalar function.

    Diagonal entries use the five-point stencil
    ``(-f(x+2h) + 16 f(x+h) - 30 f(x) + 16 f(x-h) - f(x-2h)) / 12h^2``,
    off-diagonal entries the mixed central difference
    ``(f(++) - f(+-) - f(-+) + f(--)) / 4h^2``, written to ``(i, j)`` and
    ``(j, i)`` from the same value so the result is exactly symmetric.
    """
    step = check_step(step)
    x = _as_point(x)

    def scalar(point: Array) -> float:
        value = _evaluate(fun, point)
        if value.ndim != 0:
            raise InvalidArgumentError("hessian_approx requires a scalar-valued function")
        return float(value)

    n = x.size
    hess = np.zeros((n, n), dtype=float)
    fx = scalar(x)
    evals = 1
    denom_diag = 12.0 * step * step
    denom_mixed = 4.0 * step * step
    for i in range(n):
        f_p = scalar(_shifted(x, (i, step)))
        f_p2 = scalar(_shifted(x, (i, 2.0 * step)))
        f_m = scalar(_shifted(x, (i, -step)))
        f_m2 = scalar(_shifted(x, (i, -2.0 * step)))
        evals += 4
        hess[i, i] = (-f_p2 + 16.0 * f_p - 30.0 * fx + 16.0 * f_m - f_m2) / denom_diag
        for j in range(i + 1, n):
            f_pp = scalar(_shifted(x, (i, step), (j, step)))
            f_mp = scalar(_shifted(x, (i, -step), (j, step)))
            f_mm = scalar(_shifted(x, (i, -step), (j, -step)))
            f_pm = scalar(_shifted(x, (i, step), (j, -step)))
            evals += 4
            value = (f_pp - f_pm - f_mp + f_mm) / denom_mixed
            hess[i, j] = value
            hess[j, i] = value
    if return_evals:
        return hess, evals
    return hess


__all__ = ["jacobian_approx", "jacobian_approx_central", "hessian_approx"]
