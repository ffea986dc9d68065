"""
Tests for design-matrix preprocessing and LinearDesign construction.

Covers:
    - First occurrence wins: the later-declared dependent column is dropped
    - Back-references to the column an omitted column depends on
    - RankReport bookkeeping and scatter-back
    - Intercept detection and name handling
"""

import numpy as np
import pytest

from pyeconometrics.core.exceptions import (
    DimensionError,
    RankDeficiencyError,
    ValidationError,
)
from pyeconometrics.linear import LinearDesign, preprocess


# ═══════════════════════════════════════════════════════════════════════
# preprocess
# ═══════════════════════════════════════════════════════════════════════


class TestPreprocess:

    def test_sum_column_is_single_omission(self, rng):
        x1, x2 = rng.standard_normal((2, 60))
        X = np.column_stack([x1, x2, x1 + x2])
        X_kept, report = preprocess(X, ('x1', 'x2', 'x3'))

        assert report.kept == (0, 1)
        assert len(report.omitted) == 1
        omitted = report.omitted[0]
        assert omitted.index == 2
        assert omitted.name == 'x3'
        assert omitted.depends_on == 0
        assert omitted.depends_on_name == 'x1'
        np.testing.assert_array_equal(X_kept, X[:, :2])

    def test_order_decides_which_column_goes(self, rng):
        x1, x2 = rng.standard_normal((2, 60))
        X = np.column_stack([x1 + x2, x1, x2])
        _, report = preprocess(X, ('s', 'x1', 'x2'))
        assert report.omitted_names == ('x2',)

    def test_dummy_variable_trap(self, rng):
        group = rng.integers(0, 2, size=80)
        d0 = (group == 0).astype(float)
        d1 = (group == 1).astype(float)
        X = np.column_stack([np.ones(80), rng.standard_normal(80), d0, d1])
        _, report = preprocess(X, ('const', 'x', 'd0', 'd1'))
        assert report.kept_names == ('const', 'x', 'd0')
        assert report.omitted_names == ('d1',)
        assert report.omitted[0].depends_on_name == 'const'

    def test_zero_column_has_no_dependency(self, rng):
        X = np.column_stack([rng.standard_normal(10), np.zeros(10)])
        _, report = preprocess(X, ('x', 'z'))
        assert report.omitted[0].depends_on is None
        assert report.omitted[0].depends_on_name is None

    def test_all_zero_raises(self):
        with pytest.raises(RankDeficiencyError) as exc_info:
            preprocess(np.zeros((5, 2)), ('a', 'b'))
        assert exc_info.value.rank == 0
        assert exc_info.value.required == 1

    def test_min_columns(self, rng):
        x = rng.standard_normal(10)
        with pytest.raises(RankDeficiencyError, match="Z"):
            preprocess(np.column_stack([x, x]), ('a', 'b'), min_columns=2, matrix_name='Z')

    def test_note_text(self, collinear_data):
        X, _ = collinear_data
        _, report = preprocess(X, ('const', 'x1', 'x2', 'x3'))
        assert report.omitted[0].note() == "note: x3 omitted because of collinearity"


class TestRankReport:

    def test_scatter_and_mask(self, collinear_data):
        X, _ = collinear_data
        _, report = preprocess(X, ('const', 'x1', 'x2', 'x3'))
        full = report.scatter(np.array([1.0, 2.0, 3.0]))
        np.testing.assert_array_equal(full[:3], [1.0, 2.0, 3.0])
        assert np.isnan(full[3])
        np.testing.assert_array_equal(report.kept_mask(), [True, True, True, False])
        assert report.rank == 3
        assert report.n_columns == 4
        assert not report.is_full_rank


# ═══════════════════════════════════════════════════════════════════════
# LinearDesign
# ═══════════════════════════════════════════════════════════════════════


class TestLinearDesign:

    def test_intercept_detected(self, regression_data):
        X, y, _ = regression_data
        design = LinearDesign.build(y, X)
        assert design.has_intercept
        assert design.intercept_index == 0
        assert design.names == ('x0', 'x1', 'x2')

    def test_no_intercept(self, rng):
        X = rng.standard_normal((20, 2))
        design = LinearDesign.build(rng.standard_normal(20), X)
        assert not design.has_intercept
        assert design.intercept_index is None

    def test_intercept_override_without_constant(self, rng):
        with pytest.raises(ValidationError, match="constant"):
            LinearDesign.build(
                rng.standard_normal(20), rng.standard_normal((20, 2)), has_intercept=True
            )

    def test_intercept_can_be_switched_off(self, regression_data):
        X, y, _ = regression_data
        design = LinearDesign.build(y, X, has_intercept=False)
        assert not design.has_intercept
        assert design.intercept_index is None

    def test_length_mismatch(self, rng):
        with pytest.raises(DimensionError, match="y=10, X=9"):
            LinearDesign.build(rng.standard_normal(10), rng.standard_normal((9, 2)))

    def test_instrument_length_mismatch(self, rng):
        with pytest.raises(DimensionError):
            LinearDesign.build(
                rng.standard_normal(10),
                rng.standard_normal((10, 2)),
                Z=rng.standard_normal((8, 2)),
            )

    def test_weights_validated(self, rng):
        with pytest.raises(ValidationError, match="weights"):
            LinearDesign.build(
                rng.standard_normal(5),
                rng.standard_normal((5, 1)),
                weights=[1.0, 1.0, 0.0, 1.0, 1.0],
            )

    def test_nan_rejected(self, rng):
        X = rng.standard_normal((10, 2))
        X[3, 1] = np.nan
        with pytest.raises(ValidationError, match="non-finite"):
            LinearDesign.build(rng.standard_normal(10), X)

    def test_inputs_not_aliased(self, regression_data):
        X, y, _ = regression_data
        X_before = X.copy()
        design = LinearDesign.build(y, X)
        assert not np.shares_memory(design.X, X)
        np.testing.assert_array_equal(X, X_before)

    def test_dataframe_like_names(self, regression_data):
        X, y, _ = regression_data

        class Frame:
            columns = ['const', 'educ', 'exper']

            def __array__(self, dtype=None, copy=None):
                return X

        design = LinearDesign.build(y, Frame())
        assert design.names == ('const', 'educ', 'exper')

    def test_instrument_omission_notes(self, iv_data):
        y, X, Z = iv_data
        Z = np.column_stack([Z, Z[:, 1]])
        design = LinearDesign.build(y, X, Z=Z)
        assert design.instrument_report.omitted_names == ('z3',)
        assert design.omission_notes() == (
            "note: instrument z3 omitted because of collinearity",
        )
