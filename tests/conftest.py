"""
Pytest configuration and shared fixtures for stylematch.
"""

import os

import pytest

from stylematch.diagnostics import MatcherErrorHandler
from stylematch.matchers import BUILTIN_MATCHERS
from stylematch.registry import MatcherRegistry
from stylematch.transforms import XsltProcessor


# ==============================================================================
# ENVIRONMENT FIXTURES
# ==============================================================================

@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Remove STYLEMATCH_* variables so configuration lookups see only test data."""
    for key in list(os.environ):
        if key.startswith('STYLEMATCH_'):
            monkeypatch.delenv(key, raising=False)


# ==============================================================================
# REGISTRY FIXTURES
# ==============================================================================

@pytest.fixture
def registry():
    """Registry with built-ins and the default fallback chain."""
    return MatcherRegistry()


@pytest.fixture
def builtin_types():
    return sorted(BUILTIN_MATCHERS)


@pytest.fixture
def error_handler():
    return MatcherErrorHandler()


@pytest.fixture
def lxml_engine(tmp_path):
    """Transform engine with the lxml backend and the stock templates."""
    engine = XsltProcessor(transform_paths=[str(tmp_path)])
    engine.enable_backends(['lxml'])
    engine.define_common_templates()
    return engine


# ==============================================================================
# ELEMENT FIXTURES
# ==============================================================================

@pytest.fixture
def document_tree():
    """
    Two paragraphs: a heading holding a run with bold text and a line
    break, and an empty body paragraph.
    """
    return [
        {
            'type': 'paragraph',
            'styleId': 'Heading1',
            'styleName': 'Heading 1',
            'children': [
                {
                    'type': 'run',
                    'children': [
                        {'type': 'bold', 'children': []},
                        {'type': 'break', 'breakType': 'line'},
                    ],
                },
            ],
        },
        {'type': 'paragraph', 'styleId': 'Normal', 'styleName': 'Normal', 'children': []},
    ]
