"""
Base matcher interface for the matcher registry.
Every compiled style rule is a matcher: a pure predicate over document elements.
"""
import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)


class BaseMatcher(ABC):
    """
    Abstract base class for all matchers.

    A matcher must be side-effect free and must not raise for well-formed
    elements. Matchers wrapping user supplied predicates catch failures and
    degrade to False or to a fallback matcher.
    """

    @abstractmethod
    def matches(self, element: Any) -> bool:
        """
        Test an element.

        Args:
            element: Document element (mapping or object)

        Returns:
            True if the element satisfies this matcher
        """
        pass

    def __call__(self, element: Any) -> bool:
        return self.matches(element)


class NoOpMatcher(BaseMatcher):
    """Matches nothing. Stands in for rules whose type could not be resolved."""

    def __init__(self, reason: Optional[str] = None):
        self.reason = reason

    def matches(self, element: Any) -> bool:
        return False

    def __repr__(self) -> str:
        return f"NoOpMatcher(reason={self.reason!r})"


class ConditionalMatcher(BaseMatcher):
    """
    Predicate-with-fallback combinator.

    The condition is called with the element. When it raises, or returns a
    falsy value, the optional fallback matcher decides instead. Without a
    condition nothing matches.
    """

    def __init__(self,
                 condition: Optional[Callable[[Any], Any]] = None,
                 fallback_matcher: Optional[BaseMatcher] = None):
        self._condition = condition
        self._fallback_matcher = fallback_matcher

    def _fallback(self, element: Any) -> bool:
        if self._fallback_matcher is None:
            return False
        try:
            return bool(self._fallback_matcher.matches(element))
        except Exception as e:
            logger.debug("Fallback matcher failed: %s", e)
            return False

    def matches(self, element: Any) -> bool:
        if self._condition is None:
            return False

        try:
            condition_result = self._condition(element)
        except Exception as e:
            logger.debug("Condition raised %s, using fallback matcher", e)
            return self._fallback(element)

        if not condition_result:
            return self._fallback(element)
        return bool(condition_result)
