"""Pytest configuration and shared fixtures for nonlinoptim tests.

This module provides:
- A deterministic numpy RNG fixture
- Residual-function builders shared by the least-squares tests
"""

import os

import numpy as np
import pytest


@pytest.fixture(scope="function")
def rng() -> np.random.Generator:
    """Provide a deterministic numpy RNG for tests.

    Uses seed from TEST_RNG_SEED environment variable (default: 0).
    """
    seed = int(os.environ.get("TEST_RNG_SEED", "0"))
    return np.random.default_rng(seed)


@pytest.fixture(scope="function", autouse=True)
def set_random_seeds() -> None:
    """Seed numpy's global RNG so every test starts from the same state."""
    np.random.seed(int(os.environ.get("TEST_RNG_SEED", "0")))


@pytest.fixture
def curve_fit_residuals():
    """Residuals of ``(x0 * t - 0.2)^2`` against data generated at ``x0 = 0.2``."""
    t = np.arange(10) / 10.0

    def model(x: np.ndarray) -> np.ndarray:
        return (x[0] * t - 0.2) ** 2

    y = model(np.array([0.2]))

    def residuals(x: np.ndarray) -> np.ndarray:
        return model(x) - y

    return residuals


@pytest.fixture
def two_parameter_residuals():
    """Residuals of ``(x0 * t - 0.2)^2 + (x1 - 0.9)^4`` against data at ``(0.2, 0.3)``."""
    t = np.arange(10) / 10.0

    def model(x: np.ndarray) -> np.ndarray:
        return (x[0] * t - 0.2) ** 2 + (x[1] - 0.9) ** 4

    y = model(np.array([0.2, 0.3]))

    def residuals(x: np.ndarray) -> np.ndarray:
        return model(x) - y

    return residuals


BIVARIATE_CENTER = np.array([1.4, -3.5])


@pytest.fixture
def bivariate_gaussian():
    """Single residual ``1 - exp(||x - c||^2 / 2)`` vanishing only at ``c = (1.4, -3.5)``."""

    def residuals(x: np.ndarray) -> np.ndarray:
        return np.array([1.0 - np.exp(np.sum((x - BIVARIATE_CENTER) ** 2) / 2.0)])

    return residuals


@pytest.fixture
def growing_residuals():
    """Residual function that returns two values on its first call and three afterwards."""
    calls = {"count": 0}

    def residuals(x: np.ndarray) -> np.ndarray:
        calls["count"] += 1
        size = 2 if calls["count"] == 1 else 3
        return np.full(size, x[0] - 1.0)

    return residuals
