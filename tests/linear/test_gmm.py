"""
Tests for gmm() (linear GMM, one-step and two-step efficient).
"""

import numpy as np
import pytest

from pyeconometrics.core.exceptions import OrderConditionError, ValidationError
from pyeconometrics.linear import fit, gmm, iv


@pytest.fixture
def just_identified(iv_data):
    y, X, Z = iv_data
    return y, X, Z[:, :2]


def _efficient_gmm(y, X, Z):
    P = Z @ np.linalg.solve(Z.T @ Z, Z.T)
    beta1 = np.linalg.solve(X.T @ P @ X, X.T @ P @ y)
    e1 = y - X @ beta1
    S = Z.T @ (Z * e1[:, None] ** 2)
    W = np.linalg.inv(S)
    A = X.T @ Z @ W @ Z.T @ X
    beta2 = np.linalg.solve(A, X.T @ Z @ W @ Z.T @ y)
    e2 = y - X @ beta2
    g = Z.T @ e2
    return beta2, np.linalg.inv(A), float(g @ W @ g)


class TestGMMExactlyIdentified:

    def test_matches_two_sls(self, just_identified):
        y, X, Z = just_identified
        np.testing.assert_allclose(
            gmm(y, X, Z).coefficients, iv(y, X, Z).coefficients, rtol=1e-8, atol=1e-8
        )

    def test_j_is_zero(self, just_identified):
        y, X, Z = just_identified
        result = gmm(y, X, Z)
        assert result.j_statistic == 0.0
        assert result.j_p_value == 1.0
        assert result.j_df == 0


class TestGMMOverIdentified:

    def test_matches_textbook_formula(self, iv_data):
        y, X, Z = iv_data
        beta, V, J = _efficient_gmm(y, X, Z)
        result = gmm(y, X, Z)
        np.testing.assert_allclose(result.coefficients, beta, rtol=1e-8)
        np.testing.assert_allclose(result.covariance, V, rtol=1e-8)
        assert result.j_statistic == pytest.approx(J, rel=1e-8)

    def test_j_test(self, iv_data):
        y, X, Z = iv_data
        result = gmm(y, X, Z)
        assert result.j_df == 1
        assert result.j_statistic >= 0.0
        assert 0.0 <= result.j_p_value <= 1.0

    def test_default_distribution_is_normal(self, iv_data):
        y, X, Z = iv_data
        result = gmm(y, X, Z)
        assert result.distribution == 'normal'
        assert result.cov_type == 'Efficient GMM'

    def test_one_step_is_robust_two_sls(self, iv_data):
        y, X, Z = iv_data
        one = gmm(y, X, Z, steps=1)
        robust = iv(y, X, Z, cov_type='HC0')
        np.testing.assert_allclose(one.coefficients, robust.coefficients, rtol=1e-12)
        np.testing.assert_allclose(one.covariance, robust.covariance, rtol=1e-10)

    def test_hac_weight_matrix(self, iv_data):
        y, X, Z = iv_data
        result = gmm(y, X, Z, hac_lags=2)
        assert result.info['hac_lags'] == 2
        assert np.all(np.isfinite(result.standard_errors))

    def test_fit_dispatches_to_gmm(self, iv_data):
        y, X, Z = iv_data
        np.testing.assert_array_equal(
            fit(y, X, Z, method='gmm').coefficients, gmm(y, X, Z).coefficients
        )


class TestGMMErrors:

    def test_order_condition(self, iv_data):
        y, X, Z = iv_data
        with pytest.raises(OrderConditionError):
            gmm(y, X, Z[:, :1])

    @pytest.mark.parametrize("steps", [0, 3])
    def test_steps(self, iv_data, steps):
        y, X, Z = iv_data
        with pytest.raises(ValidationError, match="steps"):
            gmm(y, X, Z, steps=steps)

    def test_negative_hac_lags(self, iv_data):
        y, X, Z = iv_data
        with pytest.raises(ValidationError, match="hac_lags"):
            gmm(y, X, Z, hac_lags=-1)

    @pytest.mark.parametrize("hac_lags", ['a', 1.0, True])
    def test_non_integer_hac_lags(self, iv_data, hac_lags):
        y, X, Z = iv_data
        with pytest.raises(ValidationError, match="hac_lags"):
            gmm(y, X, Z, hac_lags=hac_lags)
