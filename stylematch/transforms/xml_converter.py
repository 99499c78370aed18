"""
Element to XML conversion for transform-backed matchers, and parsing of the
transform output back into a match decision.
"""
import re
import xml.etree.ElementTree as ET
from collections.abc import Mapping
from typing import Any

from ..elements import get_children, get_field, iter_fields

_SKIPPED_FIELDS = ('children', 'text', 'attributes')
_RESULT_PATTERN = re.compile(r"<result>(.*?)</result>", re.DOTALL)


def _is_scalar(value: Any) -> bool:
    return isinstance(value, (str, int, float, bool))


def _format_scalar(value: Any) -> str:
    if isinstance(value, bool):
        return 'true' if value else 'false'
    return str(value)


def _build_node(element: Any) -> ET.Element:
    node = ET.Element('element')

    for name, value in iter_fields(element):
        if name in _SKIPPED_FIELDS or not _is_scalar(value):
            continue
        node.set(name, _format_scalar(value))

    attributes = get_field(element, 'attributes')
    if isinstance(attributes, Mapping) and attributes:
        attributes_node = ET.SubElement(node, 'attributes')
        for name, value in attributes.items():
            if _is_scalar(value):
                attributes_node.set(str(name), _format_scalar(value))

    text = get_field(element, 'text')
    if text:
        ET.SubElement(node, 'text').text = str(text)

    children = get_children(element)
    if children:
        children_node = ET.SubElement(node, 'children')
        for child in children:
            children_node.append(_build_node(child))

    return node


def element_to_xml(element: Any) -> str:
    """
    Serialize an element as <element .../>.

    Scalar fields become XML attributes, the attribute map becomes an
    <attributes> child, text becomes a <text> child and children recurse
    under <children>. Values are XML-escaped by the serializer.
    """
    return ET.tostring(_build_node(element), encoding='unicode')


def parse_match_result(transform_result: Any) -> bool:
    """
    Interpret transform output as a match decision.

    Accepts native booleans, a <result>true|false</result> marker anywhere in
    the output, or the bare strings 'true' / '1'.
    """
    if isinstance(transform_result, bool):
        return transform_result

    if isinstance(transform_result, bytes):
        transform_result = transform_result.decode('utf-8', errors='replace')

    if isinstance(transform_result, str):
        trimmed = transform_result.strip().lower()
        match = _RESULT_PATTERN.search(trimmed)
        if match:
            return match.group(1).strip() == 'true'
        return trimmed in ('true', '1')

    return bool(transform_result)
