"""
Matcher plugin registry.
Maps plugin names usable in configuration to plugin classes.
"""
from .base import BasePlugin
from .custom_elements import CustomElementPlugin, StructuralTemplateMatcher
from .extended_breaks import ConditionalBreakMatcher, ExtendedBreakPlugin


# Plugin registry mapping configuration names to plugin classes
PLUGIN_REGISTRY = {
    'extended-breaks': ExtendedBreakPlugin,
    'custom-elements': CustomElementPlugin,
}


__all__ = [
    'BasePlugin',
    'ConditionalBreakMatcher',
    'CustomElementPlugin',
    'ExtendedBreakPlugin',
    'PLUGIN_REGISTRY',
    'StructuralTemplateMatcher',
]
