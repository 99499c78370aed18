"""
Unit tests for fallback strategies.
"""

from stylematch.fallback import (
    CallableStrategy,
    DiagnosticsStrategy,
    IgnoreUnknownStrategy,
    SuggestAlternativesStrategy,
)
from stylematch.matchers import NoOpMatcher
from stylematch.results import Result


AVAILABLE = ['bold', 'column', 'page', 'paragraph', 'run', 'table']


class TestIgnoreUnknown:

    def test_returns_noop_with_warning(self):
        result = IgnoreUnknownStrategy().handle('mystery', {})

        assert isinstance(result.value, NoOpMatcher)
        assert result.value.matches({'type': 'mystery'}) is False
        assert result.warnings[0].message == "Unknown matcher type 'mystery' ignored"


class TestSuggestAlternatives:

    def test_same_first_letter_case_insensitive(self):
        result = SuggestAlternativesStrategy(lambda: AVAILABLE).handle('Pargraph', {})

        assert result.value is None
        assert result.warnings[0].message == 'Unknown matcher type: Pargraph. Did you mean: page, paragraph?'

    def test_at_most_three_suggestions(self):
        strategy = SuggestAlternativesStrategy(lambda: ['pa', 'pb', 'pc', 'pd'])

        message = strategy.handle('px', {}).warnings[0].message

        assert message == 'Unknown matcher type: px. Did you mean: pa, pb, pc?'

    def test_no_candidates(self):
        result = SuggestAlternativesStrategy(lambda: AVAILABLE).handle('xyz', {})

        assert result.warnings[0].message == 'Unknown matcher type: xyz'


class TestDiagnosticsStrategy:

    def test_routes_through_error_handler(self):
        result = DiagnosticsStrategy(lambda: AVAILABLE).handle('tabel', {})

        assert isinstance(result.value, NoOpMatcher)
        assert "Did you mean: table" in result.warnings[0].message


class TestCallableStrategy:

    def test_delegates(self):
        strategy = CallableStrategy('always', lambda t, o: Result(t, []))

        assert strategy.name == 'always'
        assert strategy.handle('x', {}).value == 'x'
