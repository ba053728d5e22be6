"""Generic iterative minimization loop shared by every step strategy."""

from __future__ import annotations

import math
from typing import Optional, Protocol

import numpy as np

from .core import (
    STAGNATION_INTERVAL,
    STAGNATION_PATIENCE,
    Array,
    InvalidArgumentError,
    MinimizerConfig,
    ResultInfo,
    check_parameters,
)
from .logging import get_logger

logger = get_logger(__name__)


class Strategy(Protocol):
    """How error and step are computed at the current point."""

    def compute_error(self, x: Array) -> float:
        ...

    def compute_delta(self, x: Array) -> Array:
        ...


class Minimizer:
    """
    Drive a :class:`Strategy` until tolerance, stagnation or the iteration cap.

    Each iteration evaluates the error, stops with ``TOLERANCE_REACHED`` if it
    is strictly below ``config.tol``, samples the error for stagnation every
    ``STAGNATION_INTERVAL`` iterations (``CONVERGED`` after more than
    ``STAGNATION_PATIENCE`` non-improving samples), then applies
    ``x += lam * delta`` in place.

    ``errors`` and ``deltas`` record every iteration and are never cleared, so
    they accumulate across ``run`` calls. A single instance is not safe to run
    concurrently.

    Args:
        strategy: Object implementing ``compute_error`` and ``compute_delta``.
        config: Loop settings; defaults to ``MinimizerConfig()``.
        dim: Expected parameter length. Locked on the first ``run`` if omitted.
    """

    def __init__(
        self,
        strategy: Strategy,
        config: Optional[MinimizerConfig] = None,
        dim: Optional[int] = None,
    ) -> None:
        if dim is not None and dim <= 0:
            raise InvalidArgumentError("dim must be positive")
        self.strategy = strategy
        self.config = config if config is not None else MinimizerConfig()
        self.dim = dim
        self.errors: list[float] = []
        self.deltas: list[Array] = []

    def run(self, x: Array) -> ResultInfo:
        """Minimize starting from ``x``, which holds the last iterate afterwards."""
        check_parameters(x, self.dim)
        if self.dim is None:
            self.dim = x.size

        max_iter = self.config.max_iter
        tol = self.config.tol
        lam = self.config.lam
        prev_error = math.inf
        convergence_count = 0

        for i in range(max_iter):
            error = float(self.strategy.compute_error(x))
            self.errors.append(error)

            if error < tol:
                return self._finish(ResultInfo.TOLERANCE_REACHED, i + 1, error)

            if i % STAGNATION_INTERVAL == 0:
                if error < prev_error:
                    prev_error = error
                    convergence_count = 0
                else:
                    convergence_count += 1
                    if convergence_count > STAGNATION_PATIENCE:
                        return self._finish(ResultInfo.CONVERGED, i + 1, error)
                logger.debug(
                    "iteration %d: error=%.6e best=%.6e stalled=%d",
                    i,
                    error,
                    prev_error,
                    convergence_count,
                )

            delta = np.asarray(self.strategy.compute_delta(x), dtype=float)
            if delta.shape != x.shape:
                raise InvalidArgumentError(
                    f"step has shape {delta.shape}, expected {x.shape}"
                )
            self.deltas.append(delta)
            x += lam * delta

        last = self.errors[-1] if self.errors else math.nan
        return self._finish(ResultInfo.MAX_ITERATION_REACHED, max_iter, last)

    def _finish(self, status: ResultInfo, iterations: int, error: float) -> ResultInfo:
        logger.info(
            "%s finished: %s after %d iterations (error=%.6e)",
            type(self.strategy).__name__,
            status,
            iterations,
            error,
        )
        return status


__all__ = ["Strategy", "Minimizer"]
