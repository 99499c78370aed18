"""
Built-in matcher catalog.
Maps rule type names to matcher factories.
"""
from . import document
from .base import BaseMatcher, ConditionalMatcher, NoOpMatcher
from .template import TemplateMatcher, apply_template, evaluate_condition


# Built-in catalog mapping rule type names to factories taking the rule options
BUILTIN_MATCHERS = {
    'line': lambda options: document.line_break,
    'page': lambda options: document.page_break,
    'column': lambda options: document.column_break,
    'paragraph': document.paragraph,
    'run': document.run,
    'table': document.table,
    'bold': lambda options: document.bold,
    'italic': lambda options: document.italic,
    'underline': lambda options: document.underline,
    'strikethrough': lambda options: document.strikethrough,
    'all-caps': lambda options: document.all_caps,
    'small-caps': lambda options: document.small_caps,
    'highlight': document.highlight,
    'comment-reference': lambda options: document.comment_reference,
}


__all__ = [
    'BaseMatcher',
    'BUILTIN_MATCHERS',
    'ConditionalMatcher',
    'NoOpMatcher',
    'TemplateMatcher',
    'apply_template',
    'evaluate_condition',
]
