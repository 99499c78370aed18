"""
Unit tests for configuration-defined template matchers.
"""

from stylematch.matchers import TemplateMatcher, evaluate_condition


class TestTemplateMatcher:
    """Element type, style and conditions are combined with AND."""

    def test_property_condition(self):
        matcher = TemplateMatcher({
            'elementType': 'paragraph',
            'conditions': [{'type': 'property', 'property': 'styleName', 'value': 'Title'}],
        })

        assert matcher.matches({'type': 'paragraph', 'styleName': 'Title'}) is True
        assert matcher.matches({'type': 'paragraph', 'styleName': 'Body'}) is False
        assert matcher.matches({'type': 'run', 'styleName': 'Title'}) is False

    def test_style_id_and_name(self):
        matcher = TemplateMatcher({'styleId': 'Quote', 'styleName': 'Quote'})

        assert matcher.matches({'type': 'paragraph', 'styleId': 'Quote', 'styleName': 'Quote'})
        assert not matcher.matches({'type': 'paragraph', 'styleId': 'Quote'})

    def test_attribute_condition(self):
        matcher = TemplateMatcher({
            'conditions': [{'type': 'attribute', 'attribute': 'lang', 'value': 'en'}],
        })

        assert matcher.matches({'type': 'run', 'attributes': {'lang': 'en'}})
        assert not matcher.matches({'type': 'run', 'attributes': {'lang': 'fr'}})
        assert not matcher.matches({'type': 'run'})

    def test_custom_condition_receives_options(self):
        seen = []

        def evaluator(element, options):
            seen.append(options)
            return len(element.get('children', [])) >= options['min_children']

        matcher = TemplateMatcher(
            {'conditions': [{'type': 'custom', 'evaluator': evaluator}]},
            {'min_children': 2},
        )

        assert matcher.matches({'type': 'table', 'children': [{}, {}]})
        assert not matcher.matches({'type': 'table', 'children': [{}]})
        assert seen[0] == {'min_children': 2}

    def test_custom_condition_exception_is_non_match(self):
        def evaluator(element, options):
            raise RuntimeError('boom')

        matcher = TemplateMatcher({'conditions': [{'type': 'custom', 'evaluator': evaluator}]})

        assert matcher.matches({'type': 'paragraph'}) is False

    def test_all_conditions_must_pass(self):
        matcher = TemplateMatcher({
            'conditions': [
                {'type': 'property', 'property': 'styleId', 'value': 'A'},
                {'type': 'property', 'property': 'styleName', 'value': 'B'},
            ],
        })

        assert matcher.matches({'styleId': 'A', 'styleName': 'B'})
        assert not matcher.matches({'styleId': 'A', 'styleName': 'C'})

    def test_empty_template_matches_everything(self):
        assert TemplateMatcher({}).matches({'type': 'anything'})


class TestEvaluateCondition:

    def test_unknown_kind_does_not_constrain(self):
        assert evaluate_condition({'type': 'mystery'}, {'type': 'paragraph'}, {}) is True

    def test_custom_without_evaluator_fails(self):
        assert evaluate_condition({'type': 'custom'}, {'type': 'paragraph'}, {}) is False
