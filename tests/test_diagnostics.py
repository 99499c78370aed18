"""
Unit tests for diagnostics: edit distance, suggestions, failure handlers
and error reports.
"""

from datetime import datetime, timezone

import pytest

from stylematch import results
from stylematch.diagnostics import (
    ERROR_CATEGORIES,
    HandledError,
    MatcherErrorHandler,
    SuggestionProvider,
    WarningHandler,
    category_matches,
    fuzzy_matches,
    levenshtein_distance,
    similarity,
)
from stylematch.matchers import NoOpMatcher


class TestEditDistance:

    def test_kitten_sitting(self):
        assert levenshtein_distance('kitten', 'sitting') == 3

    def test_similarity(self):
        assert similarity('kitten', 'sitting') == pytest.approx(0.571, abs=1e-3)

    def test_identical_and_empty(self):
        assert levenshtein_distance('', '') == 0
        assert levenshtein_distance('abc', '') == 3
        assert similarity('', '') == 1.0
        assert similarity('same', 'same') == 1.0


class TestSuggestions:
    """Fuzzy and category providers."""

    def test_prefix_match(self, builtin_types):
        assert 'paragraph' in fuzzy_matches('paragrap', builtin_types)

    def test_fuzzy_order_is_prefix_then_contains_then_similar(self):
        suggestions = fuzzy_matches('page', ['page-break', 'column-page', 'pace'])

        assert suggestions == ['page-break', 'column-page', 'pace']

    def test_category_keywords(self, builtin_types):
        assert category_matches('my-break-type', builtin_types) == ['line', 'page', 'column']

    def test_aggregated_suggestions_are_unique(self, error_handler, builtin_types):
        suggestions = error_handler.get_suggestions('paragrap', builtin_types)

        assert suggestions == ['paragraph']

    def test_failing_provider_is_skipped(self, error_handler):
        def explode(unknown_type, available):
            raise RuntimeError('provider broke')

        error_handler.register_suggestion_provider(SuggestionProvider('explode', explode, priority=100))

        assert error_handler.get_suggestions('tabl', ['table']) == ['table']

    def test_providers_run_by_priority(self, error_handler):
        error_handler.register_suggestion_provider(
            SuggestionProvider('first', lambda unknown, available: ['zzz'], priority=50))

        assert error_handler.get_suggestions('tabl', ['table'])[0] == 'zzz'

    def test_provider_without_provide_rejected(self, error_handler):
        with pytest.raises(TypeError):
            error_handler.register_suggestion_provider(object())

    def test_warning_handler_without_handle_rejected(self, error_handler):
        with pytest.raises(TypeError):
            error_handler.register_warning_handler(object())


class TestFailureHandlers:
    """Each handler builds a categorised error and returns a Result."""

    def test_unknown_type_is_recoverable(self, error_handler):
        result = error_handler.handle_unknown_type('paragrap', {'available_types': ['paragraph', 'run']})

        assert isinstance(result.value, NoOpMatcher)
        assert result.warnings[0].message == (
            "Unknown document matcher type: 'paragrap'. Did you mean: paragraph?\n"
            "Available types: paragraph, run"
        )

    def test_validation_error(self, error_handler):
        result = error_handler.handle_validation_error('wrap-text', ['side must be left, right or both'])

        assert result.value is None
        assert result.errors[0].message == (
            "Validation failed for matcher 'wrap-text': side must be left, right or both")

    def test_plugin_error(self, error_handler):
        exc = ImportError('missing module')

        result = error_handler.handle_plugin_error('my-plugin', exc)

        assert result.value is None
        assert result.errors[0].message == "Plugin 'my-plugin' error: missing module"
        assert result.errors[0].error is exc

    def test_xslt_error(self, error_handler):
        result = error_handler.handle_xslt_error('fancy.xsl', ValueError('bad stylesheet'))

        assert result.errors[0].message == "XSLT transform 'fancy.xsl' error: bad stylesheet"

    def test_dependency_error(self, error_handler):
        result = error_handler.handle_dependency_error('child', ['parent', 'base'])

        assert result.errors[0].message == "Plugin 'child' has unmet dependencies: parent, base"

    def test_registered_handler_rewords_message(self, error_handler):
        code = ERROR_CATEGORIES['PLUGIN_ERROR'].code

        def reword(matcher_error, context):
            return HandledError(f"[{matcher_error.code}] {matcher_error.matcher_type} failed", code, 'error')

        error_handler.register_warning_handler(WarningHandler('plugin-handler', [code], reword))

        result = error_handler.handle_plugin_error('my-plugin', RuntimeError('x'))

        assert result.errors[0].message == '[MATCHER_004] my-plugin failed'

    def test_error_strategies_sorted_by_priority(self, error_handler):
        class Strategy:
            def __init__(self, priority):
                self.priority = priority

            def handle(self, error):
                return None

        error_handler.register_error_strategy(Strategy(1))
        error_handler.register_error_strategy(Strategy(5))

        assert [s.priority for s in error_handler.error_strategies] == [5, 1]


class TestErrorReport:

    def test_summary_counts(self, error_handler):
        records = [
            results.warning('unknown type'),
            results.error('factory broke'),
            {'type': 'error', 'message': 'engine down', 'severity': 'critical', 'code': 'MATCHER_005'},
        ]

        report = error_handler.create_error_report(records, {'document': 'report.docx'})

        assert report['summary'] == {'total_errors': 2, 'total_warnings': 1, 'critical_errors': 1}
        assert report['context'] == {'document': 'report.docx'}
        assert [d['code'] for d in report['details']] == ['UNKNOWN', 'UNKNOWN', 'MATCHER_005']
        assert report['details'][0]['severity'] == 'warning'

    def test_timestamps_are_iso_strings(self, error_handler):
        stamp = datetime(2024, 1, 2, tzinfo=timezone.utc)

        report = error_handler.create_error_report([{'type': 'warning', 'message': 'm', 'timestamp': stamp}])

        assert report['details'][0]['timestamp'] == stamp.isoformat()
        assert isinstance(report['timestamp'], str)

    def test_empty_report(self, error_handler):
        report = error_handler.create_error_report([])

        assert report['summary'] == {'total_errors': 0, 'total_warnings': 0, 'critical_errors': 0}
        assert report['details'] == []
