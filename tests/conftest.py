"""
pytest configuration and shared fixtures.
"""

import pytest
import numpy as np


@pytest.fixture
def rng():
    """Seeded random number generator for reproducible tests."""
    return np.random.default_rng(42)


@pytest.fixture
def regression_data(rng):
    """Intercept plus two regressors, homoskedastic noise."""
    n = 200
    X = np.column_stack([np.ones(n), rng.standard_normal((n, 2))])
    beta_true = np.array([1.0, -2.0, 0.5])
    y = X @ beta_true + rng.standard_normal(n) * 0.5
    return X, y, beta_true


@pytest.fixture
def heteroskedastic_data(rng):
    """Error variance grows with |x1|."""
    n = 300
    x1 = rng.standard_normal(n)
    x2 = rng.standard_normal(n)
    X = np.column_stack([np.ones(n), x1, x2])
    y = X @ [0.5, 1.0, -1.0] + rng.standard_normal(n) * (0.2 + np.abs(x1))
    return X, y


@pytest.fixture
def collinear_data(rng):
    """Intercept, x1, x2 and x3 = x1 + x2 (exactly one redundant column)."""
    n = 100
    x1 = rng.standard_normal(n)
    x2 = rng.standard_normal(n)
    x3 = x1 + x2
    X = np.column_stack([np.ones(n), x1, x2, x3])
    y = 1.0 + 2.0 * x1 - x2 + rng.standard_normal(n)
    return X, y


@pytest.fixture
def iv_data(rng):
    """
    One endogenous regressor, two excluded instruments.

    X = [1, x], Z = [1, z1, z2]; x is correlated with the error u.
    """
    n = 500
    z1 = rng.standard_normal(n)
    z2 = rng.standard_normal(n)
    v = rng.standard_normal(n)
    u = 0.8 * v + 0.6 * rng.standard_normal(n)
    x = 0.7 * z1 + 0.5 * z2 + v
    y = 1.0 + 2.0 * x + u
    X = np.column_stack([np.ones(n), x])
    Z = np.column_stack([np.ones(n), z1, z2])
    return y, X, Z


@pytest.fixture
def ar1_data(rng):
    """Linear model with AR(1) errors, rho = 0.6."""
    n = 400
    x = rng.standard_normal(n)
    e = rng.standard_normal(n) * 0.5
    u = np.empty(n)
    u[0] = e[0]
    for t in range(1, n):
        u[t] = 0.6 * u[t - 1] + e[t]
    X = np.column_stack([np.ones(n), x])
    y = X @ [1.0, 2.0] + u
    return X, y
