"""Core types, defaults and configuration shared by the minimizers."""

from __future__ import annotations

import math
from dataclasses import dataclass, fields
from enum import Enum
from typing import Any, Callable, Mapping

import numpy as np

Array = np.ndarray
ScalarFunction = Callable[[Array], float]
ResidualFunction = Callable[[Array], Array]

DEFAULT_STEP = 1e-6
DEFAULT_MAX_ITER = 10_000
DEFAULT_TOL = 1e-12
DEFAULT_LAMBDA = 1.0

# Stagnation is sampled every STAGNATION_INTERVAL iterations and declared
# after more than STAGNATION_PATIENCE non-improving samples.
STAGNATION_INTERVAL = 100
STAGNATION_PATIENCE = 10


class InvalidArgumentError(ValueError):
    """Raised for malformed inputs: shapes, dimensions or configuration."""


class ResultInfo(Enum):
    """Terminal status of a single ``Minimizer.run`` call."""

    TOLERANCE_REACHED = "ToleranceReached"
    CONVERGED = "Converged"
    MAX_ITERATION_REACHED = "MaxIterationReached"

    def __str__(self) -> str:
        return self.value


_OPTION_ALIASES = {
    "max_iterations": "max_iter",
    "tolerance": "tol",
    "lambda": "lam",
}


@dataclass(frozen=True)
class MinimizerConfig:
    """
    Settings of the iterative loop, fixed at construction.

    Args:
        max_iter: Maximum number of iterations performed by ``run``.
        tol: Absolute error threshold; an error strictly below it stops the
            loop with ``ResultInfo.TOLERANCE_REACHED``.
        lam: Step-scaling factor applied as ``x <- x + lam * delta``.
    """

    max_iter: int = DEFAULT_MAX_ITER
    tol: float = DEFAULT_TOL
    lam: float = DEFAULT_LAMBDA

    def __post_init__(self) -> None:
        if isinstance(self.max_iter, bool) or not isinstance(self.max_iter, (int, np.integer)):
            raise InvalidArgumentError(f"max_iter must be an integer, got {self.max_iter!r}")
        if self.max_iter < 0:
            raise InvalidArgumentError("max_iter must be non-negative")
        if not math.isfinite(self.tol) or self.tol < 0:
            raise InvalidArgumentError("tol must be finite and non-negative")
        if not math.isfinite(self.lam):
            raise InvalidArgumentError("lam must be finite")

    @classmethod
    def from_options(cls, options: Mapping[str, Any]) -> "MinimizerConfig":
        """Build a config from ``max_iterations``/``tolerance``/``lambda`` style keys."""
        known = {f.name for f in fields(cls)}
        kwargs: dict[str, Any] = {}
        for key, value in options.items():
            name = _OPTION_ALIASES.get(key, key)
            if name not in known:
                raise InvalidArgumentError(f"Unknown minimizer option {key!r}")
            if name in kwargs:
                raise InvalidArgumentError(f"Option {name!r} given more than once")
            kwargs[name] = value
        return cls(**kwargs)


def check_step(step: float) -> float:
    """Return ``step`` as float, rejecting non-positive or non-finite values."""
    step = float(step)
    if not math.isfinite(step) or step <= 0:
        raise InvalidArgumentError("step must be a positive finite number")
    return step


def check_parameters(x: Any, dim: int | None = None) -> Array:
    """Validate a parameter vector that is going to be updated in place."""
    if not isinstance(x, np.ndarray):
        raise InvalidArgumentError(
            f"parameter vector must be a numpy array, got {type(x).__name__}"
        )
    if x.ndim != 1:
        raise InvalidArgumentError(f"parameter vector must be 1-D, got shape {x.shape}")
    if x.size == 0:
        raise InvalidArgumentError("parameter vector must not be empty")
    if not np.issubdtype(x.dtype, np.floating):
        raise InvalidArgumentError(f"parameter vector must be floating point, got {x.dtype}")
    if not x.flags.writeable:
        raise InvalidArgumentError("parameter vector must be writeable")
    if dim is not None and x.size != dim:
        raise InvalidArgumentError(f"parameter vector has length {x.size}, expected {dim}")
    return x


def sum_of_squares(residuals: Array) -> float:
    """Squared Euclidean norm of a residual vector."""
    return float(np.linalg.norm(residuals) ** 2)


def evaluate_scalar(fun: ScalarFunction, x: Array) -> float:
    """Evaluate a scalar objective on a copy of ``x``."""
    value = np.asarray(fun(np.array(x, dtype=float)), dtype=float)
    if value.ndim != 0:
        raise InvalidArgumentError(
            f"scalar objective must return a single number, got shape {value.shape}"
        )
    return float(value)


def evaluate_residuals(fun: ResidualFunction, x: Array) -> Array:
    """Evaluate a residual function on a copy of ``x``."""
    residuals = np.asarray(fun(np.array(x, dtype=float)), dtype=float)
    if residuals.ndim != 1:
        raise InvalidArgumentError(
            f"residual function must return a 1-D array, got shape {residuals.shape}"
        )
    return residuals


def check_jacobian_rows(jac: Array, residuals: Array) -> None:
    """Reject a Jacobian whose row count differs from the cached residuals."""
    if jac.shape[0] != residuals.size:
        raise InvalidArgumentError(
            f"residual function changed length from {residuals.size} to {jac.shape[0]}"
        )


__all__ = [
    "Array",
    "ScalarFunction",
    "ResidualFunction",
    "DEFAULT_STEP",
    "DEFAULT_MAX_ITER",
    "DEFAULT_TOL",
    "DEFAULT_LAMBDA",
    "STAGNATION_INTERVAL",
    "STAGNATION_PATIENCE",
    "InvalidArgumentError",
    "ResultInfo",
    "MinimizerConfig",
    "check_step",
    "check_parameters",
    "sum_of_squares",
    "evaluate_scalar",
    "evaluate_residuals",
    "check_jacobian_rows",
]
