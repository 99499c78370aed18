"""
Break types beyond line, page and column: section, wrap-text and clear
breaks, plus a condition-driven matcher with a fallback.
"""
from typing import Any, Dict, Optional

from ..elements import get_field
from ..matchers.base import BaseMatcher, ConditionalMatcher
from .base import BasePlugin

NAMESPACE = 'extended-breaks'

WRAP_SIDES = ('left', 'right', 'both')
CLEAR_VALUES = ('left', 'right', 'both', 'none')


class SectionBreakMatcher(BaseMatcher):
    """Section breaks of one section type (default nextPage), continuous or not (default not)."""

    def __init__(self, options: Optional[Dict[str, Any]] = None):
        options = options or {}
        self.section_type = options.get('sectionType') or 'nextPage'
        self.continuous = options.get('continuous') or False

    def matches(self, element: Any) -> bool:
        return (get_field(element, 'type') == 'break'
                and get_field(element, 'breakType') == 'section'
                and get_field(element, 'sectionType') == self.section_type
                and get_field(element, 'continuous') == self.continuous)


class WrapTextBreakMatcher(BaseMatcher):
    def __init__(self, options: Optional[Dict[str, Any]] = None):
        options = options or {}
        self.side = options.get('side')
        self.wrap_type = options.get('wrapType') or 'around'

    def matches(self, element: Any) -> bool:
        if get_field(element, 'type') != 'break' or get_field(element, 'breakType') != 'wrapText':
            return False
        if self.side is not None and get_field(element, 'side') != self.side:
            return False
        return get_field(element, 'wrapType') == self.wrap_type


class ClearBreakMatcher(BaseMatcher):
    def __init__(self, options: Optional[Dict[str, Any]] = None):
        options = options or {}
        self.clear = options.get('clear') or 'both'

    def matches(self, element: Any) -> bool:
        return (get_field(element, 'type') == 'break'
                and get_field(element, 'breakType') == 'clear'
                and get_field(element, 'clear') == self.clear)


class ConditionalBreakMatcher(ConditionalMatcher):
    """
    Options:
        condition: Callable taking the element
        fallbackMatcher: Matcher consulted when the condition raises or is falsy
    """

    def __init__(self, options: Optional[Dict[str, Any]] = None):
        options = options or {}
        super().__init__(options.get('condition'), options.get('fallbackMatcher'))


def _valid_wrap_text(matcher_type: str, options: Dict[str, Any]) -> bool:
    return not options.get('side') or options['side'] in WRAP_SIDES


def _valid_clear(matcher_type: str, options: Dict[str, Any]) -> bool:
    return not options.get('clear') or options['clear'] in CLEAR_VALUES


def _valid_conditional(matcher_type: str, options: Dict[str, Any]) -> bool:
    return bool(options) and callable(options.get('condition'))


class ExtendedBreakPlugin(BasePlugin):
    def __init__(self):
        super().__init__('ExtendedBreakPlugin', '1.0.0')

    def get_description(self) -> str:
        return "Adds support for extended break types including section, wrap-text, and clear breaks"

    def register(self, registry: Any) -> None:
        registry.register('section', SectionBreakMatcher, {
            'priority': 10,
            'namespace': NAMESPACE,
            'description': "Matches section breaks in documents",
            'validation': lambda matcher_type, options: True,
        })
        registry.register('wrap-text', WrapTextBreakMatcher, {
            'priority': 10,
            'namespace': NAMESPACE,
            'description': "Matches text wrapping breaks",
            'validation': _valid_wrap_text,
        })
        registry.register('clear', ClearBreakMatcher, {
            'priority': 10,
            'namespace': NAMESPACE,
            'description': "Matches clear breaks (similar to CSS clear)",
            'validation': _valid_clear,
        })
        registry.register('conditional', ConditionalBreakMatcher, {
            'priority': 15,
            'namespace': NAMESPACE,
            'description': "Matches breaks based on conditions",
            'validation': _valid_conditional,
        })
