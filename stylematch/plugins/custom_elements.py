"""
Matchers for document elements the core catalog does not cover: form fields,
equations, media objects, generic containers, and a structural template
matcher for everything else.
"""
import logging
import re
from collections.abc import Mapping
from typing import Any, Dict, Optional

from ..elements import get_children, get_field
from ..matchers.base import BaseMatcher
from .base import BasePlugin

logger = logging.getLogger(__name__)

NAMESPACE = 'custom-elements'

FIELD_TYPES = ('text', 'checkbox', 'dropdown', 'date', 'number')
MEDIA_TYPES = ('image', 'video', 'audio', 'embed')
MEDIA_ELEMENT_TYPES = ('media', 'image', 'video', 'audio')
EQUATION_ELEMENT_TYPES = ('equation', 'math')

_REGEX_FLAGS = {
    'i': re.IGNORECASE,
    'm': re.MULTILINE,
    's': re.DOTALL,
}


class FormFieldMatcher(BaseMatcher):
    def __init__(self, options: Optional[Dict[str, Any]] = None):
        options = options or {}
        self.field_type = options.get('fieldType')
        self.field_name = options.get('fieldName')
        self.required = options.get('required')
        self.placeholder = options.get('placeholder')

    def matches(self, element: Any) -> bool:
        if get_field(element, 'type') != 'formField':
            return False
        if self.field_type and get_field(element, 'fieldType') != self.field_type:
            return False
        if self.field_name and get_field(element, 'name') != self.field_name:
            return False
        if self.required is not None and get_field(element, 'required') != self.required:
            return False
        if self.placeholder and get_field(element, 'placeholder') != self.placeholder:
            return False
        return True


class EquationMatcher(BaseMatcher):
    def __init__(self, options: Optional[Dict[str, Any]] = None):
        options = options or {}
        self.math_type = options.get('mathType')
        self.notation = options.get('notation')

    def matches(self, element: Any) -> bool:
        if get_field(element, 'type') not in EQUATION_ELEMENT_TYPES:
            return False
        if self.math_type and get_field(element, 'mathType') != self.math_type:
            return False
        if self.notation and get_field(element, 'notation') != self.notation:
            return False
        return True


class MediaMatcher(BaseMatcher):
    """
    Media objects. mediaType falls back to the element type, source is a
    substring of the element's src.
    """

    def __init__(self, options: Optional[Dict[str, Any]] = None):
        options = options or {}
        self.media_type = options.get('mediaType')
        self.mime_type = options.get('mimeType')
        self.source = options.get('source')

    def matches(self, element: Any) -> bool:
        element_type = get_field(element, 'type')
        if element_type not in MEDIA_ELEMENT_TYPES:
            return False
        if self.media_type and (get_field(element, 'mediaType') or element_type) != self.media_type:
            return False
        if self.mime_type and get_field(element, 'mimeType') != self.mime_type:
            return False
        if self.source:
            src = get_field(element, 'src')
            if not src or self.source not in src:
                return False
        return True


class CustomContainerMatcher(BaseMatcher):
    def __init__(self, options: Optional[Dict[str, Any]] = None):
        options = options or {}
        self.container_type = options.get('containerType')
        self.class_name = options.get('className')
        self.attributes = options.get('attributes') or {}
        self.children = options.get('children')

    def matches(self, element: Any) -> bool:
        element_type = get_field(element, 'type')
        if not element_type or element_type == 'text':
            return False

        if self.container_type and get_field(element, 'containerType') != self.container_type:
            return False

        if self.class_name:
            class_name = get_field(element, 'className')
            if not class_name or self.class_name not in class_name:
                return False

        if self.attributes:
            attributes = get_field(element, 'attributes')
            if not attributes:
                return False
            for name, value in self.attributes.items():
                if get_field(attributes, name) != value:
                    return False

        children = get_field(element, 'children')
        if self.children and children is not None:
            min_count = self.children.get('minCount')
            max_count = self.children.get('maxCount')
            if min_count and len(children) < min_count:
                return False
            if max_count and len(children) > max_count:
                return False

        return True


def _compile_regex(expected: Mapping) -> 're.Pattern':
    flags = 0
    for flag in expected.get('flags') or '':
        flags |= _REGEX_FLAGS.get(flag, 0)
    return re.compile(expected['regex'], flags)


class StructuralTemplateMatcher(BaseMatcher):
    """
    Generic matcher driven by a nested template.

    Template keys:
        type: Element type
        properties: {field: expected}
        attributes: {name: expected}, looked up in element['attributes']
        children: List of child templates, compared position by position
        customMatcher: Callable deciding the match once everything else passed

    Expected values may be literals, {"regex": pattern, "flags": "im"},
    {"oneOf": [...]}, or a callable taking the actual value. In strict mode
    (the default) an expected None requires a missing value, a missing
    attribute map fails an attribute constraint, and the child count must
    equal the template's.
    """

    def __init__(self, options: Optional[Dict[str, Any]] = None):
        options = options or {}
        self.template = options.get('template')
        self.strict = options.get('strict', True) is not False

    def matches(self, element: Any) -> bool:
        if not self.template:
            return False
        try:
            return self._matches_template(element, self.template)
        except Exception as e:
            logger.debug("Structural template raised %s", e)
            return False

    def _matches_template(self, element: Any, template: Mapping) -> bool:
        template_type = template.get('type')
        if template_type and get_field(element, 'type') != template_type:
            return False

        for name, expected in (template.get('properties') or {}).items():
            if not self._matches_value(get_field(element, name), expected):
                return False

        expected_attributes = template.get('attributes')
        if expected_attributes:
            attributes = get_field(element, 'attributes')
            if not attributes and self.strict:
                return False
            for name, expected in expected_attributes.items():
                actual = get_field(attributes, name) if attributes else None
                if not self._matches_value(actual, expected):
                    return False

        child_templates = template.get('children')
        if child_templates and get_field(element, 'children') is not None:
            children = get_children(element)
            if len(child_templates) != len(children) and self.strict:
                return False
            for child, child_template in zip(children, child_templates):
                if not self._matches_template(child, child_template):
                    return False

        custom_matcher = template.get('customMatcher')
        if callable(custom_matcher):
            try:
                return bool(custom_matcher(element))
            except Exception:
                return False

        return True

    def _matches_value(self, actual: Any, expected: Any) -> bool:
        if expected is None:
            return not self.strict or actual is None

        if isinstance(expected, Mapping) and expected.get('regex'):
            if actual is None:
                return False
            return _compile_regex(expected).search(str(actual)) is not None

        if isinstance(expected, Mapping) and expected.get('oneOf'):
            return actual in expected['oneOf']

        if callable(expected):
            try:
                return bool(expected(actual))
            except Exception:
                return False

        return actual == expected


def _valid_form_field(matcher_type: str, options: Dict[str, Any]) -> bool:
    return not options.get('fieldType') or options['fieldType'] in FIELD_TYPES


def _valid_media(matcher_type: str, options: Dict[str, Any]) -> bool:
    return not options.get('mediaType') or options['mediaType'] in MEDIA_TYPES


def _valid_container(matcher_type: str, options: Dict[str, Any]) -> bool:
    return bool(options.get('containerType') or options.get('className') or options.get('attributes'))


def _valid_template(matcher_type: str, options: Dict[str, Any]) -> bool:
    return isinstance(options.get('template'), Mapping)


class CustomElementPlugin(BasePlugin):
    def __init__(self):
        super().__init__('CustomElementPlugin', '1.0.0')

    def get_description(self) -> str:
        return "Adds support for custom document elements including form fields, equations, and media objects"

    def register(self, registry: Any) -> None:
        registry.register('form-field', FormFieldMatcher, {
            'priority': 20,
            'namespace': NAMESPACE,
            'description': "Matches form fields (text inputs, checkboxes, etc.)",
            'validation': _valid_form_field,
        })
        registry.register('equation', EquationMatcher, {
            'priority': 20,
            'namespace': NAMESPACE,
            'description': "Matches mathematical equations and formulas",
            'validation': lambda matcher_type, options: True,
        })
        registry.register('media', MediaMatcher, {
            'priority': 20,
            'namespace': NAMESPACE,
            'description': "Matches media objects (audio, video, embedded content)",
            'validation': _valid_media,
        })
        registry.register('container', CustomContainerMatcher, {
            'priority': 15,
            'namespace': NAMESPACE,
            'description': "Matches custom container elements with nested content",
            'validation': _valid_container,
        })
        registry.register('template', StructuralTemplateMatcher, {
            'priority': 5,
            'namespace': NAMESPACE,
            'description': "Template-based matcher for complex custom elements",
            'validation': _valid_template,
        })
