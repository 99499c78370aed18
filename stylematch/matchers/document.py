"""
Canonical element predicates.

These are the matchers the built-in rule catalog delegates to: structural
elements with optional style constraints, break kinds and the virtual
formatting elements (bold, italic, ...) emitted for run properties.
"""
from collections.abc import Mapping
from typing import Any, Callable, Dict, Optional

from ..elements import get_field
from .base import BaseMatcher


def equal_to(operand: str, value: str) -> bool:
    return operand.upper() == value.upper()


def starts_with(operand: str, value: str) -> bool:
    return value.upper().startswith(operand.upper())


STYLE_NAME_OPERATORS: Dict[str, Callable[[str, str], bool]] = {
    'equalTo': equal_to,
    'startsWith': starts_with,
}


class StyleNameMatcher:
    """Compares an element style name using a named operator (case-insensitive)."""

    def __init__(self, operand: str, operator: str = 'equalTo'):
        if operator not in STYLE_NAME_OPERATORS:
            available = ', '.join(sorted(STYLE_NAME_OPERATORS))
            raise ValueError(f"Unknown style name operator '{operator}'. Available operators: {available}")
        self.operand = operand
        self.operator = operator

    @classmethod
    def from_option(cls, option: Any) -> Optional['StyleNameMatcher']:
        if option is None:
            return None
        if isinstance(option, StyleNameMatcher):
            return option
        if isinstance(option, Mapping):
            return cls(str(option['operand']), option.get('operator', 'equalTo'))
        return cls(str(option))

    def matches(self, style_name: Any) -> bool:
        if not isinstance(style_name, str) or not style_name:
            return False
        return STYLE_NAME_OPERATORS[self.operator](self.operand, style_name)


class ElementMatcher(BaseMatcher):
    """
    Matches elements of one type, optionally narrowed by style and list level.

    Options:
        styleId: Exact style id
        styleName: Style name, a string (equalTo) or {"operator", "operand"}
        list: {"levelIndex": int, "isOrdered": bool} numbering constraint
    """

    def __init__(self, element_type: str, options: Optional[Dict[str, Any]] = None):
        options = options or {}
        self.element_type = element_type
        self.style_id = options.get('styleId')
        self.style_name = StyleNameMatcher.from_option(options.get('styleName'))
        self.list = options.get('list')

    def matches(self, element: Any) -> bool:
        if get_field(element, 'type') != self.element_type:
            return False
        if self.style_id is not None and get_field(element, 'styleId') != self.style_id:
            return False
        if self.style_name is not None and not self.style_name.matches(get_field(element, 'styleName')):
            return False
        if self.list is not None and not _is_list(element, self.list):
            return False
        return True


def _is_list(element: Any, list_options: Any) -> bool:
    numbering = get_field(element, 'numbering')
    if not numbering:
        return False
    return (get_field(numbering, 'level') == get_field(list_options, 'levelIndex')
            and get_field(numbering, 'isOrdered') == get_field(list_options, 'isOrdered'))


class BreakMatcher(BaseMatcher):
    """Matches break elements of a single kind (line, page, column)."""

    def __init__(self, break_type: str):
        self.break_type = break_type

    def matches(self, element: Any) -> bool:
        return (get_field(element, 'type') == 'break'
                and get_field(element, 'breakType') == self.break_type)


class HighlightMatcher(BaseMatcher):
    """Matches highlight elements, optionally of a single colour."""

    def __init__(self, color: Optional[str] = None):
        self.color = color

    def matches(self, element: Any) -> bool:
        if get_field(element, 'type') != 'highlight':
            return False
        return self.color is None or get_field(element, 'color') == self.color


def paragraph(options: Optional[Dict[str, Any]] = None) -> ElementMatcher:
    return ElementMatcher('paragraph', options)


def run(options: Optional[Dict[str, Any]] = None) -> ElementMatcher:
    return ElementMatcher('run', options)


def table(options: Optional[Dict[str, Any]] = None) -> ElementMatcher:
    return ElementMatcher('table', options)


def highlight(options: Optional[Dict[str, Any]] = None) -> HighlightMatcher:
    options = options or {}
    return HighlightMatcher(options.get('color'))


line_break = BreakMatcher('line')
page_break = BreakMatcher('page')
column_break = BreakMatcher('column')

bold = ElementMatcher('bold')
italic = ElementMatcher('italic')
underline = ElementMatcher('underline')
strikethrough = ElementMatcher('strikethrough')
all_caps = ElementMatcher('allCaps')
small_caps = ElementMatcher('smallCaps')
comment_reference = ElementMatcher('commentReference')
