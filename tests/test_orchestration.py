"""
Tests for MatchOrchestrator: registry setup order, rule compilation and runs
over an element tree.
"""

import pytest

from stylematch.config_loader import MatcherConfiguration
from stylematch.matchers import NoOpMatcher
from stylematch.orchestration import MatchOrchestrator
from stylematch.plugins import BasePlugin, ExtendedBreakPlugin


class AlwaysMatcher:
    def matches(self, element):
        return True


class NeedsParentPlugin(BasePlugin):
    def __init__(self):
        super().__init__('child-plugin')
        self.dependencies = ['parent-plugin']

    def register(self, registry):
        registry.register('child', lambda options: AlwaysMatcher())


def make_orchestrator(config=None, plugins=None):
    return MatchOrchestrator(MatcherConfiguration(env_file=None, config=config or {}), plugins)


class TestBuildRegistry:
    """built-ins, plugins, configuration, then runtime registrations."""

    def test_configuration_overrides_plugin_and_runtime_overrides_configuration(self):
        orchestrator = make_orchestrator(
            config={'matchers': {'section': {'template': {'elementType': 'sectionBreak'}}}},
            plugins=[ExtendedBreakPlugin()],
        )

        registry = orchestrator.build_registry()
        assert registry.create_matcher('section').value.matches({'type': 'sectionBreak'})

        orchestrator.add_matcher('section', lambda options: NoOpMatcher(), {'namespace': 'runtime'})
        registry = orchestrator.build_registry()

        assert registry.get_matcher_info('section')['namespace'] == 'runtime'

    def test_transform_engine_from_configuration(self):
        registry = make_orchestrator(config={'transforms': {'common_templates': True}}).build_registry()

        assert registry.transform_engine.has_template('style-matcher')
        assert [p['name'] for p in registry.transform_engine.get_processor_info()] == ['lxml']

    def test_transforms_disabled(self):
        registry = make_orchestrator(config={'transforms': {'enabled': False}}).build_registry()

        assert registry.transform_engine is None

    def test_missing_dependency_is_advisory(self):
        registry = make_orchestrator(plugins=[NeedsParentPlugin()]).build_registry()

        assert registry.create_matcher('child').is_success
        assert [m.message for m in registry.setup_messages] == [
            "Plugin 'child-plugin' has unmet dependencies: parent-plugin"]

    def test_fallback_mode_from_configuration(self):
        registry = make_orchestrator(config={'error_handling': {'fallback_strategy': 'diagnose'}}).build_registry()

        assert [s.name for s in registry.get_fallback_strategies()] == ['diagnose-unknown']


class TestRun:

    def test_matches_paths_depth_first(self, document_tree):
        result = make_orchestrator().run({
            'rules': [
                {'type': 'paragraph', 'options': {'styleName': 'Heading 1'}},
                {'type': 'paragraph'},
                {'type': 'bold'},
                {'type': 'line'},
            ],
            'elements': document_tree,
        })

        assert result['statusCode'] == 200
        assert [r['matches'] for r in result['rules']] == [
            [[0]],
            [[0], [1]],
            [[0, 0, 0]],
            [[0, 0, 1]],
        ]
        assert result['messages'] == []
        assert result['report']['summary']['total_warnings'] == 0

    def test_unknown_rule_matches_nothing_and_warns(self, document_tree):
        result = make_orchestrator().run({
            'rules': [{'type': 'paragrap'}],
            'elements': document_tree,
            'context': {'document': 'sample.docx'},
        })

        rule = result['rules'][0]
        assert rule['compiled'] is True
        assert rule['matches'] == []
        assert result['messages'] == [{'type': 'warning', 'message': "Unknown matcher type 'paragrap' ignored"}]
        assert result['report']['context'] == {'document': 'sample.docx'}
        assert result['report']['summary']['total_warnings'] == 1

    def test_invalid_rule_not_compiled(self, document_tree):
        result = make_orchestrator(config={'plugins': ['extended-breaks']}).run({
            'rules': [{'type': 'wrap-text', 'options': {'side': 'middle'}}],
            'elements': document_tree,
        })

        assert result['rules'][0]['compiled'] is False
        assert result['rules'][0]['matches'] == []
        assert result['messages'][0]['message'] == 'Invalid options for matcher type: wrap-text'

    def test_strict_mode_raises_on_failed_rule(self, document_tree):
        orchestrator = make_orchestrator(config={
            'error_handling': {'strict_mode': True, 'fallback_strategy': 'suggest-alternatives'},
        })

        with pytest.raises(ValueError, match='0:paragrap'):
            orchestrator.run({'rules': [{'type': 'paragrap'}], 'elements': document_tree})

    def test_report_capped_by_max_errors(self, document_tree):
        result = make_orchestrator(config={'error_handling': {'max_errors': 1}}).run({
            'rules': [{'type': 'mystery-one'}, {'type': 'mystery-two'}],
            'elements': document_tree,
        })

        assert len(result['messages']) == 2
        assert len(result['report']['details']) == 1

    def test_transform_rule(self, document_tree, tmp_path):
        (tmp_path / 'heading.xsl').write_text(
            '<xsl:stylesheet version="1.0" xmlns:xsl="http://www.w3.org/1999/XSL/Transform">'
            '<xsl:template match="/"><result><xsl:value-of select="/element/@styleId = \'Heading1\'"/></result>'
            '</xsl:template></xsl:stylesheet>',
            encoding='utf-8',
        )
        orchestrator = make_orchestrator(config={
            'transforms': {'transform_paths': [str(tmp_path)]},
            'xslt_transforms': {'heading': {'path': 'heading.xsl'}},
        })

        result = orchestrator.run({'rules': [{'type': 'heading'}], 'elements': document_tree})

        assert result['rules'][0]['matches'] == [[0]]

    def test_raising_matcher_counts_as_non_match(self, document_tree):
        class ExplodingMatcher:
            def matches(self, element):
                return element['attrs']['lang'] == 'en'

        orchestrator = make_orchestrator().add_matcher('exploding', lambda options: ExplodingMatcher())

        result = orchestrator.run({
            'rules': [{'type': 'exploding'}, {'type': 'paragraph'}],
            'elements': document_tree,
        })

        assert result['statusCode'] == 200
        assert [r['matches'] for r in result['rules']] == [[], [[0], [1]]]
        assert result['rules'][0]['compiled'] is True
        assert len(result['messages']) == 1
        assert result['messages'][0]['type'] == 'error'
        assert result['messages'][0]['message'].startswith(
            "Matcher for rule 0 (exploding) failed on 5 elements: KeyError")
        assert result['report']['summary']['total_errors'] == 1


class TestTransformEngineSettings:

    def test_invalid_cache_size_from_environment(self, monkeypatch):
        monkeypatch.setenv('STYLEMATCH_TRANSFORMS_MAX_CACHE_SIZE', '0')

        with pytest.raises(ValueError, match='STYLEMATCH_TRANSFORMS_MAX_CACHE_SIZE'):
            make_orchestrator().build_transform_engine()

    def test_cache_size_from_environment(self, monkeypatch):
        monkeypatch.setenv('STYLEMATCH_TRANSFORMS_MAX_CACHE_SIZE', '3')

        assert make_orchestrator().build_transform_engine().max_cache_size == 3
