"""
Declarative template matcher used for configuration-defined rule types.
"""
import logging
from typing import Any, Dict, Optional

from ..elements import get_field
from .base import BaseMatcher

logger = logging.getLogger(__name__)


def evaluate_condition(condition: Dict[str, Any], element: Any, options: Dict[str, Any]) -> bool:
    """
    Evaluate one template condition against an element.

    Condition kinds:
        property: element field equals condition['value']
        attribute: element['attributes'][name] equals condition['value']
        custom: condition['evaluator'](element, options) is truthy

    Unknown kinds do not constrain the match.
    """
    kind = condition.get('type')
    if kind == 'property':
        return get_field(element, condition.get('property')) == condition.get('value')
    if kind == 'attribute':
        attributes = get_field(element, 'attributes')
        if not attributes:
            return False
        return get_field(attributes, condition.get('attribute')) == condition.get('value')
    if kind == 'custom':
        evaluator = condition.get('evaluator')
        if not callable(evaluator):
            return False
        return bool(evaluator(element, options))
    return True


def apply_template(template: Dict[str, Any], element: Any, options: Dict[str, Any]) -> bool:
    """Element type, then style, then every condition (logical AND)."""
    element_type = template.get('elementType')
    if element_type and get_field(element, 'type') != element_type:
        return False

    style_id = template.get('styleId')
    if style_id and get_field(element, 'styleId') != style_id:
        return False

    style_name = template.get('styleName')
    if style_name and get_field(element, 'styleName') != style_name:
        return False

    for condition in template.get('conditions') or []:
        if not evaluate_condition(condition, element, options):
            return False
    return True


class TemplateMatcher(BaseMatcher):
    """
    Structural matcher compiled from a template definition.

    Template keys:
        elementType: Required element type (optional)
        styleId: Required style id (optional)
        styleName: Required style name, exact (optional)
        conditions: List of property/attribute/custom conditions
    """

    def __init__(self, template: Dict[str, Any], options: Optional[Dict[str, Any]] = None):
        self.template = template or {}
        self.options = options or {}

    def matches(self, element: Any) -> bool:
        try:
            return apply_template(self.template, element, self.options)
        except Exception as e:
            logger.debug("Template condition failed: %s", e)
            return False
