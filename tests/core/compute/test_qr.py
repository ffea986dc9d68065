"""
Tests for the QR kernels and the Gram-Schmidt rank scan.
"""

import numpy as np
import pytest

from pyeconometrics.core.exceptions import SingularMatrixError
from pyeconometrics.core.compute.linalg import (
    cross_product_inverse,
    gram_schmidt_scan,
    leverage,
    qr_cpu,
    qr_solve_cpu,
    require_full_rank,
)


class TestQR:

    def test_solve_matches_lstsq(self, rng):
        X = rng.standard_normal((50, 4))
        y = rng.standard_normal(50)
        beta = qr_solve_cpu(qr_cpu(X), y)
        expected, *_ = np.linalg.lstsq(X, y, rcond=None)
        np.testing.assert_allclose(beta, expected, rtol=1e-10)

    def test_cross_product_inverse(self, rng):
        X = rng.standard_normal((40, 3))
        inv = cross_product_inverse(qr_cpu(X).R)
        np.testing.assert_allclose(inv, np.linalg.inv(X.T @ X), rtol=1e-10)
        np.testing.assert_array_equal(inv, inv.T)

    def test_leverage_sums_to_rank(self, rng):
        X = rng.standard_normal((30, 3))
        h = leverage(qr_cpu(X).Q)
        assert h.sum() == pytest.approx(3.0)
        assert np.all((h >= 0) & (h <= 1 + 1e-12))

    def test_require_full_rank_raises(self, rng):
        x = rng.standard_normal(20)
        X = np.column_stack([x, 2 * x])
        with pytest.raises(SingularMatrixError) as exc_info:
            require_full_rank(qr_cpu(X), 'X')
        assert exc_info.value.rank == 1
        assert exc_info.value.expected_rank == 2


class TestGramSchmidtScan:

    def test_full_rank_keeps_everything(self, rng):
        scan = gram_schmidt_scan(rng.standard_normal((20, 4)))
        assert scan.kept == (0, 1, 2, 3)
        assert scan.omitted == ()
        np.testing.assert_allclose(scan.Q.T @ scan.Q, np.eye(4), atol=1e-12)

    def test_later_column_dropped(self, rng):
        x1, x2 = rng.standard_normal((2, 50))
        X = np.column_stack([x1, x2, x1 + x2])
        scan = gram_schmidt_scan(X)
        assert scan.kept == (0, 1)
        assert scan.omitted == ((2, 0),)

    def test_duplicate_points_at_original(self, rng):
        x1, x2 = rng.standard_normal((2, 30))
        X = np.column_stack([x1, x2, 3.0 * x2])
        scan = gram_schmidt_scan(X)
        assert scan.omitted == ((2, 1),)

    def test_zero_column(self, rng):
        X = np.column_stack([rng.standard_normal(10), np.zeros(10)])
        scan = gram_schmidt_scan(X)
        assert scan.kept == (0,)
        assert scan.omitted == ((1, None),)

    def test_more_columns_than_rows(self, rng):
        scan = gram_schmidt_scan(rng.standard_normal((3, 5)))
        assert scan.kept == (0, 1, 2)
        assert [idx for idx, _ in scan.omitted] == [3, 4]

    def test_does_not_modify_input(self, rng):
        X = rng.standard_normal((10, 3))
        X[:, 2] = X[:, 0]
        before = X.copy()
        gram_schmidt_scan(X)
        np.testing.assert_array_equal(X, before)
