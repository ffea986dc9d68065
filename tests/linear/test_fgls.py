"""
Tests for wls() and cochrane_orcutt().
"""

import numpy as np
import pytest

from pyeconometrics.core.exceptions import (
    ConvergenceError,
    DimensionError,
    InsufficientObservationsError,
    ValidationError,
)
from pyeconometrics.linear import cochrane_orcutt, ols, wls


# ═══════════════════════════════════════════════════════════════════════
# Weighted least squares
# ═══════════════════════════════════════════════════════════════════════


class TestWLS:

    def test_matches_weighted_normal_equations(self, heteroskedastic_data, rng):
        X, y = heteroskedastic_data
        w = rng.uniform(0.5, 2.0, size=len(y))
        expected = np.linalg.solve(X.T @ (X * w[:, None]), X.T @ (w * y))
        result = wls(y, X, w)
        np.testing.assert_allclose(result.coefficients, expected, rtol=1e-10)
        assert result.method == 'wls'

    def test_invariant_to_weight_scale(self, heteroskedastic_data, rng):
        X, y = heteroskedastic_data
        w = rng.uniform(0.5, 2.0, size=len(y))
        a = wls(y, X, w)
        b = wls(y, X, 10.0 * w)
        np.testing.assert_allclose(a.coefficients, b.coefficients, rtol=1e-10)
        np.testing.assert_allclose(a.covariance, b.covariance, rtol=1e-10)

    def test_unit_weights_equal_ols(self, regression_data):
        X, y, _ = regression_data
        a = wls(y, X, np.ones(len(y)))
        b = ols(y, X)
        np.testing.assert_allclose(a.coefficients, b.coefficients, rtol=1e-12)
        np.testing.assert_allclose(a.covariance, b.covariance, rtol=1e-10)
        assert a.r_squared == pytest.approx(b.r_squared, rel=1e-12)
        assert a.log_likelihood == pytest.approx(b.log_likelihood, rel=1e-12)

    def test_residuals_on_original_scale(self, heteroskedastic_data, rng):
        X, y = heteroskedastic_data
        w = rng.uniform(0.5, 2.0, size=len(y))
        result = wls(y, X, w)
        np.testing.assert_allclose(result.residuals, y - X @ result.coefficients, atol=1e-12)
        assert result.rss == pytest.approx(float(np.sum(w * result.residuals ** 2)))
        assert 0.0 <= result.r_squared <= 1.0

    def test_inverse_variance_weights_shrink_errors(self, rng):
        n = 400
        x = rng.standard_normal(n)
        sd = np.where(np.arange(n) % 2 == 0, 0.1, 3.0)
        X = np.column_stack([np.ones(n), x])
        y = X @ [1.0, 2.0] + sd * rng.standard_normal(n)
        se_ols = ols(y, X, cov_type='HC1').standard_errors
        se_wls = wls(y, X, 1.0 / sd ** 2).standard_errors
        assert np.all(se_wls < se_ols)

    @pytest.mark.parametrize("bad", [0.0, -1.0])
    def test_non_positive_weights(self, regression_data, bad):
        X, y, _ = regression_data
        w = np.ones(len(y))
        w[5] = bad
        with pytest.raises(ValidationError, match="strictly positive"):
            wls(y, X, w)

    def test_non_finite_weights(self, regression_data):
        X, y, _ = regression_data
        w = np.ones(len(y))
        w[0] = np.inf
        with pytest.raises(ValidationError, match="non-finite"):
            wls(y, X, w)

    def test_weight_length(self, regression_data):
        X, y, _ = regression_data
        with pytest.raises(DimensionError):
            wls(y, X, np.ones(len(y) - 1))


# ═══════════════════════════════════════════════════════════════════════
# Cochrane-Orcutt
# ═══════════════════════════════════════════════════════════════════════


class TestCochraneOrcutt:

    def test_estimates_rho(self, ar1_data):
        X, y = ar1_data
        result = cochrane_orcutt(y, X)
        assert abs(result.rho - 0.6) < 0.15
        assert result.iterations >= 1
        assert result.info['converged'] is True
        np.testing.assert_allclose(result.coefficients, [1.0, 2.0], atol=0.3)

    def test_drops_first_observation(self, ar1_data):
        X, y = ar1_data
        n, k = X.shape
        result = cochrane_orcutt(y, X)
        assert result.n_obs == n - 1
        assert result.df_residual == (n - 1) - k
        assert result.residuals.shape == (n - 1,)

    def test_final_regression_is_quasi_differenced_ols(self, ar1_data):
        X, y = ar1_data
        result = cochrane_orcutt(y, X)
        rho = result.rho
        y_star = y[1:] - rho * y[:-1]
        X_star = X[1:] - rho * X[:-1]
        reference = ols(y_star, X_star)
        np.testing.assert_allclose(result.coefficients, reference.coefficients, rtol=1e-10)
        np.testing.assert_allclose(result.covariance, reference.covariance, rtol=1e-8)

    def test_rho_is_a_fixed_point(self, ar1_data):
        X, y = ar1_data
        result = cochrane_orcutt(y, X, tol=1e-10)
        u = y - X @ result.coefficients
        rho_next = float(u[:-1] @ u[1:]) / float(u[:-1] @ u[:-1])
        assert rho_next == pytest.approx(result.rho, abs=1e-8)

    def test_robust_covariance_on_transformed_sample(self, ar1_data):
        X, y = ar1_data
        result = cochrane_orcutt(y, X, cov_type='newey-west', lags=3)
        assert result.cov_type == 'Newey-West (L=3)'
        assert np.all(np.isfinite(result.standard_errors))

    def test_clusters_cover_full_sample(self, ar1_data):
        X, y = ar1_data
        clusters = np.arange(len(y)) // 20
        result = cochrane_orcutt(y, X, cov_type='clustered', clusters=clusters)
        assert np.all(np.isfinite(result.standard_errors))

    def test_single_cluster_left_after_dropping_first(self, ar1_data):
        X, y = ar1_data
        clusters = np.r_[0, np.ones(len(y) - 1)]
        with pytest.raises(ValidationError, match="at least 2 clusters"):
            cochrane_orcutt(y, X, cov_type='clustered', clusters=clusters)

    def test_two_way_cluster_left_after_dropping_first(self, ar1_data):
        X, y = ar1_data
        clusters = np.arange(len(y)) % 5
        clusters2 = np.r_[0, np.ones(len(y) - 1)]
        with pytest.raises(ValidationError, match="clusters2"):
            cochrane_orcutt(
                y, X, cov_type='clustered', clusters=clusters, clusters2=clusters2
            )

    def test_iteration_cap(self, ar1_data):
        X, y = ar1_data
        with pytest.raises(ConvergenceError) as exc_info:
            cochrane_orcutt(y, X, max_iter=1)
        err = exc_info.value
        assert err.iterations == 1
        assert err.reason == 'max_iterations'
        assert err.threshold == 1e-6
        assert err.final_change > 1e-6

    def test_too_few_observations(self):
        y = np.array([1.0, 2.0, 4.0])
        X = np.column_stack([np.ones(3), [0.0, 1.0, 3.0]])
        with pytest.raises(InsufficientObservationsError):
            cochrane_orcutt(y, X)

    @pytest.mark.parametrize("kwargs", [
        {'tol': 0.0}, {'tol': 'a'}, {'max_iter': 0}, {'max_iter': 2.5}, {'max_iter': 'a'},
    ])
    def test_invalid_settings(self, ar1_data, kwargs):
        X, y = ar1_data
        with pytest.raises(ValidationError):
            cochrane_orcutt(y, X, **kwargs)
