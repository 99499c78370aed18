"""
Style rule matcher engine.
Compiles style rules into predicates over document elements.
"""
from .config_loader import MatcherConfiguration
from .diagnostics import ERROR_CATEGORIES, MatcherErrorHandler, levenshtein_distance, similarity
from .fallback import (
    CallableStrategy,
    DiagnosticsStrategy,
    FallbackStrategy,
    IgnoreUnknownStrategy,
    SuggestAlternativesStrategy,
)
from .matchers import BaseMatcher, ConditionalMatcher, NoOpMatcher, TemplateMatcher
from .orchestration import MatchOrchestrator
from .plugins import PLUGIN_REGISTRY, BasePlugin, CustomElementPlugin, ExtendedBreakPlugin
from .registry import MatcherRegistry
from .results import Message, Result
from .transforms import BACKENDS, XsltProcessor


__all__ = [
    'BACKENDS',
    'BaseMatcher',
    'BasePlugin',
    'CallableStrategy',
    'ConditionalMatcher',
    'CustomElementPlugin',
    'DiagnosticsStrategy',
    'ERROR_CATEGORIES',
    'ExtendedBreakPlugin',
    'FallbackStrategy',
    'IgnoreUnknownStrategy',
    'MatchOrchestrator',
    'MatcherConfiguration',
    'MatcherErrorHandler',
    'MatcherRegistry',
    'Message',
    'NoOpMatcher',
    'PLUGIN_REGISTRY',
    'Result',
    'SuggestAlternativesStrategy',
    'TemplateMatcher',
    'XsltProcessor',
    'levenshtein_distance',
    'similarity',
]
