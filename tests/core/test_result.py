"""
Tests for the Result[P] envelope.

Validates:
    - Payload and metadata access
    - Frozen immutability
    - Default factories (warnings, provenance)
    - has_warning() substring lookup
"""

from dataclasses import FrozenInstanceError, dataclass

import numpy as np
import pytest

from pyeconometrics import __version__
from pyeconometrics.core.result import Result, _default_provenance


@dataclass(frozen=True)
class FakeParams:
    """Minimal payload for testing."""
    coefficients: tuple[float, ...]


def make_result(**overrides):
    fields = dict(
        params=FakeParams(coefficients=(1.0, 2.0)),
        info={'method': 'ols', 'rank': 2},
        timing=None,
        backend_name='cpu_qr',
    )
    fields.update(overrides)
    return Result(**fields)


# ═══════════════════════════════════════════════════════════════════════
# Construction
# ═══════════════════════════════════════════════════════════════════════


class TestResultConstruction:

    def test_fields(self):
        result = make_result(timing={'total_seconds': 0.01, 'qr_decomposition': 0.004})
        assert result.params.coefficients == (1.0, 2.0)
        assert result.info['method'] == 'ols'
        assert result.timing['qr_decomposition'] == 0.004
        assert result.backend_name == 'cpu_qr'

    def test_warnings_default_empty_tuple(self):
        result = make_result()
        assert result.warnings == ()

    def test_provenance_auto_generated(self):
        prov = make_result().provenance
        assert prov['pyeconometrics_version'] == __version__
        assert prov['numpy_version'] == np.__version__
        assert 'scipy_version' in prov
        assert 'python_version' in prov

    def test_provenance_explicit_override(self):
        result = make_result(provenance={'custom': 'metadata'})
        assert result.provenance == {'custom': 'metadata'}

    def test_default_provenance_returns_fresh_dict(self):
        assert _default_provenance() is not _default_provenance()


# ═══════════════════════════════════════════════════════════════════════
# Immutability
# ═══════════════════════════════════════════════════════════════════════


class TestImmutability:

    @pytest.mark.parametrize("name, value", [
        ('params', FakeParams(coefficients=(0.0,))),
        ('backend_name', 'other'),
        ('warnings', ('new',)),
        ('timing', None),
    ])
    def test_cannot_set(self, name, value):
        result = make_result()
        with pytest.raises(FrozenInstanceError):
            setattr(result, name, value)


# ═══════════════════════════════════════════════════════════════════════
# has_warning()
# ═══════════════════════════════════════════════════════════════════════


class TestHasWarning:

    def test_no_warnings(self):
        assert make_result().has_warning('x3') is False

    def test_substring_match(self):
        result = make_result(
            warnings=('note: x3 omitted because of collinearity',)
        )
        assert result.has_warning('x3 omitted') is True
        assert result.has_warning('collinearity') is True
        assert result.has_warning('x4') is False
