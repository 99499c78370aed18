"""
Transform extension.
Maps backend names to transform processor classes. Backends are only
registered when enabled explicitly.
"""
from .base import CallableProcessor, TransformProcessor
from .lxml_backend import LxmlXsltProcessor
from .xml_converter import element_to_xml, parse_match_result
from .xslt_processor import TransformTemplate, UnboundXsltMatcher, XsltMatcher, XsltProcessor


# Static backend table consulted by XsltProcessor.enable_backends
BACKENDS = {
    'lxml': LxmlXsltProcessor,
}


__all__ = [
    'BACKENDS',
    'CallableProcessor',
    'LxmlXsltProcessor',
    'TransformProcessor',
    'TransformTemplate',
    'UnboundXsltMatcher',
    'XsltMatcher',
    'XsltProcessor',
    'element_to_xml',
    'parse_match_result',
]
