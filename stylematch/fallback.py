"""
Fallback strategies tried, in registration order, for rule types that have
neither a direct nor a transform-backed registration.
"""
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional

from . import results
from .diagnostics import MatcherErrorHandler
from .matchers.base import NoOpMatcher
from .results import Result


class FallbackStrategy(ABC):
    """A strategy returns a Result; the first Result with a value ends the chain."""

    name: str = 'fallback'

    @abstractmethod
    def handle(self, matcher_type: str, options: Dict[str, Any]) -> Result:
        pass


class IgnoreUnknownStrategy(FallbackStrategy):
    """Degrades unknown types to a matcher that never matches."""

    name = 'ignore-unknown'

    def handle(self, matcher_type: str, options: Dict[str, Any]) -> Result:
        return Result(NoOpMatcher(f"unknown type {matcher_type}"), [
            results.warning(f"Unknown matcher type '{matcher_type}' ignored")
        ])


class SuggestAlternativesStrategy(FallbackStrategy):
    """Suggests registered types sharing the unknown type's first letter."""

    name = 'suggest-alternatives'

    def __init__(self, available_types: Callable[[], List[str]]):
        self._available_types = available_types

    def handle(self, matcher_type: str, options: Dict[str, Any]) -> Result:
        first = matcher_type[:1].lower()
        suggestions = [t for t in self._available_types() if t[:1].lower() == first]

        message = f"Unknown matcher type: {matcher_type}"
        if suggestions:
            message += f". Did you mean: {', '.join(suggestions[:3])}?"
        return Result(None, [results.warning(message)])


class DiagnosticsStrategy(FallbackStrategy):
    """Routes unknown types through the diagnostics subsystem (fuzzy + category suggestions)."""

    name = 'diagnose-unknown'

    def __init__(self,
                 available_types: Callable[[], List[str]],
                 error_handler: Optional[MatcherErrorHandler] = None):
        self._available_types = available_types
        self.error_handler = error_handler or MatcherErrorHandler()

    def handle(self, matcher_type: str, options: Dict[str, Any]) -> Result:
        context = {'available_types': self._available_types(), 'options': options}
        return self.error_handler.handle_unknown_type(matcher_type, context)


class CallableStrategy(FallbackStrategy):
    """Adapts a plain function to the strategy interface."""

    def __init__(self, name: str, handle: Callable[[str, Dict[str, Any]], Result]):
        self.name = name
        self._handle = handle

    def handle(self, matcher_type: str, options: Dict[str, Any]) -> Result:
        return self._handle(matcher_type, options)
