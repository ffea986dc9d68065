"""
Tests for the section timer.
"""

import pytest

from pyeconometrics.core.compute import Timer, timed


class TestTimer:

    def test_sections_accumulate(self):
        timer = Timer()
        timer.start()
        for _ in range(3):
            with timer.section('solve'):
                pass
        timer.stop()
        result = timer.result()
        assert set(result) == {'total_seconds', 'solve'}
        assert result['solve'] >= 0.0
        assert result['total_seconds'] >= result['solve']

    def test_stop_before_start(self):
        with pytest.raises(RuntimeError):
            Timer().stop()

    def test_result_before_stop(self):
        timer = Timer()
        timer.start()
        with pytest.raises(RuntimeError):
            timer.result()

    def test_timed_context(self):
        with timed() as timer:
            pass
        assert timer.result()['total_seconds'] >= 0.0
