"""
Diagnostics for matcher resolution failures.

Categorises failures, builds user-facing messages with suggestions for
unrecognised rule types and aggregates batches of messages into reports.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

from . import results
from .matchers.base import NoOpMatcher
from .results import Message, Result

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ErrorCategory:
    code: str
    severity: str
    description: str


ERROR_CATEGORIES: Dict[str, ErrorCategory] = {
    'UNKNOWN_TYPE': ErrorCategory('MATCHER_001', 'warning', 'Unknown matcher type encountered'),
    'INVALID_OPTIONS': ErrorCategory('MATCHER_002', 'error', 'Invalid options provided for matcher'),
    'VALIDATION_FAILED': ErrorCategory('MATCHER_003', 'error', 'Matcher validation failed'),
    'PLUGIN_ERROR': ErrorCategory('MATCHER_004', 'error', 'Plugin encountered an error'),
    'XSLT_ERROR': ErrorCategory('MATCHER_005', 'error', 'XSLT transformation error'),
    'DEPENDENCY_ERROR': ErrorCategory('MATCHER_006', 'error', 'Plugin dependency error'),
}

# Keyword -> related rule types, used to suggest types by category
CATEGORY_KEYWORDS: Dict[str, List[str]] = {
    'break': ['line', 'page', 'column', 'section', 'wrap-text', 'clear'],
    'format': ['bold', 'italic', 'underline', 'strikethrough'],
    'text': ['all-caps', 'small-caps', 'highlight'],
    'structure': ['paragraph', 'run', 'table'],
    'form': ['form-field', 'checkbox', 'dropdown'],
    'media': ['image', 'video', 'audio', 'media'],
}


@dataclass
class MatcherError:
    """A categorised failure handed to warning handlers."""
    category: str
    context: Dict[str, Any] = field(default_factory=dict)
    unknown_type: Optional[str] = None
    matcher_type: Optional[str] = None
    details: str = ''
    validation_errors: List[str] = field(default_factory=list)
    cause: Optional[BaseException] = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def code(self) -> str:
        return ERROR_CATEGORIES[self.category].code


@dataclass
class HandledError:
    """What a warning handler produces for a MatcherError."""
    message: str
    code: str
    severity: str
    recoverable: bool = False
    suggestions: List[str] = field(default_factory=list)
    validation_errors: List[str] = field(default_factory=list)
    recovery: Optional[Callable[[], Any]] = None


@dataclass
class WarningHandler:
    name: str
    handles: Sequence[str]
    handle: Callable[[MatcherError, Dict[str, Any]], HandledError]


@dataclass
class SuggestionProvider:
    name: str
    provide: Callable[[str, List[str]], List[str]]
    priority: int = 0


def levenshtein_distance(str1: str, str2: str) -> int:
    """Edit distance with unit cost insert, delete and substitute."""
    matrix = [[0] * (len(str1) + 1) for _ in range(len(str2) + 1)]
    for i in range(len(str2) + 1):
        matrix[i][0] = i
    for j in range(len(str1) + 1):
        matrix[0][j] = j

    for i in range(1, len(str2) + 1):
        for j in range(1, len(str1) + 1):
            if str2[i - 1] == str1[j - 1]:
                matrix[i][j] = matrix[i - 1][j - 1]
            else:
                matrix[i][j] = min(
                    matrix[i - 1][j - 1] + 1,
                    matrix[i][j - 1] + 1,
                    matrix[i - 1][j] + 1,
                )
    return matrix[len(str2)][len(str1)]


def similarity(str1: str, str2: str) -> float:
    """(longest length - edit distance) / longest length, 1.0 for two empty strings."""
    longer, shorter = (str1, str2) if len(str1) > len(str2) else (str2, str1)
    if len(longer) == 0:
        return 1.0
    return (len(longer) - levenshtein_distance(longer, shorter)) / len(longer)


def fuzzy_matches(unknown_type: str, available_types: Iterable[str]) -> List[str]:
    """Prefix matches, then substring matches, then near-length similar names."""
    available = list(available_types)
    unknown_lower = unknown_type.lower()

    prefix_matches = [t for t in available if t.lower().find(unknown_lower) == 0]
    contains_matches = [t for t in available if t.lower().find(unknown_lower) > 0]
    length_matches = [
        t for t in available
        if abs(len(t) - len(unknown_type)) <= 2 and similarity(unknown_type, t) > 0.5
    ]
    return prefix_matches + contains_matches + length_matches


def category_matches(unknown_type: str, available_types: Iterable[str]) -> List[str]:
    available = list(available_types)
    unknown_lower = unknown_type.lower()
    suggestions: List[str] = []
    for keyword, category_types in CATEGORY_KEYWORDS.items():
        if keyword in unknown_lower:
            suggestions.extend(t for t in category_types if t in available)
    return suggestions


def _unique(items: Iterable[str]) -> List[str]:
    seen = set()
    unique = []
    for item in items:
        if item not in seen:
            seen.add(item)
            unique.append(item)
    return unique


class MatcherErrorHandler:
    """
    Error taxonomy, warning handlers and suggestion providers.

    Warning handlers are looked up by error code; the first registered handler
    claiming a code wins. Suggestion providers run in descending priority and
    their output is concatenated, then de-duplicated in order.
    """

    def __init__(self):
        self.categories = dict(ERROR_CATEGORIES)
        self._error_strategies: List[Any] = []
        self._warning_handlers: List[WarningHandler] = []
        self._suggestion_providers: List[SuggestionProvider] = []
        self._register_builtin_strategies()

    def _register_builtin_strategies(self) -> None:
        self.register_suggestion_provider(SuggestionProvider('fuzzy-matcher', fuzzy_matches, priority=10))
        self.register_suggestion_provider(SuggestionProvider('category-matcher', category_matches, priority=5))
        self.register_warning_handler(WarningHandler(
            'unknown-type-handler', [ERROR_CATEGORIES['UNKNOWN_TYPE'].code], self._handle_unknown_type_error))
        self.register_warning_handler(WarningHandler(
            'validation-handler', [ERROR_CATEGORIES['VALIDATION_FAILED'].code], self._handle_validation_failure))

    # Registration

    def register_error_strategy(self, strategy: Any) -> 'MatcherErrorHandler':
        if not callable(getattr(strategy, 'handle', None)):
            raise TypeError("Error strategy must have a handle function")
        self._error_strategies.append(strategy)
        self._error_strategies.sort(key=lambda s: getattr(s, 'priority', 0) or 0, reverse=True)
        return self

    def register_warning_handler(self, handler: Any) -> 'MatcherErrorHandler':
        if not callable(getattr(handler, 'handle', None)):
            raise TypeError("Warning handler must have a handle function")
        self._warning_handlers.append(handler)
        return self

    def register_suggestion_provider(self, provider: Any) -> 'MatcherErrorHandler':
        if not callable(getattr(provider, 'provide', None)):
            raise TypeError("Suggestion provider must have a provide function")
        self._suggestion_providers.append(provider)
        self._suggestion_providers.sort(key=lambda p: getattr(p, 'priority', 0) or 0, reverse=True)
        return self

    @property
    def error_strategies(self) -> List[Any]:
        return list(self._error_strategies)

    # Suggestions

    def get_suggestions(self, unknown_type: str, available_types: Iterable[str]) -> List[str]:
        available = list(available_types)
        all_suggestions: List[str] = []
        for provider in self._suggestion_providers:
            try:
                suggestions = provider.provide(unknown_type, available)
            except Exception as e:
                logger.warning("Suggestion provider '%s' failed: %s", getattr(provider, 'name', provider), e)
                continue
            if suggestions:
                all_suggestions.extend(suggestions)
        return _unique(all_suggestions)

    # Failure handling

    def handle_unknown_type(self, unknown_type: str, context: Optional[Dict[str, Any]] = None) -> Result:
        """Recoverable: the Result carries a NoOpMatcher when a handler supplies recovery."""
        context = context or {}
        matcher_error = MatcherError('UNKNOWN_TYPE', context, unknown_type=unknown_type)

        handler = self._find_warning_handler(matcher_error.code)
        if handler is None:
            return Result(None, [results.warning(f"Unknown matcher type: {unknown_type}")])

        handled = handler.handle(matcher_error, context)
        if handled.recoverable and handled.recovery is not None:
            return Result(handled.recovery(), [results.warning(handled.message)])
        return Result(None, [results.warning(handled.message)])

    def handle_validation_error(self,
                                matcher_type: str,
                                validation_errors: List[str],
                                context: Optional[Dict[str, Any]] = None) -> Result:
        context = context or {}
        matcher_error = MatcherError(
            'VALIDATION_FAILED',
            context,
            matcher_type=matcher_type,
            validation_errors=list(validation_errors),
            details='; '.join(validation_errors),
        )
        handler = self._find_warning_handler(matcher_error.code)
        if handler is not None:
            handled = handler.handle(matcher_error, context)
            return Result(None, [results.error(ValueError(handled.message))])
        return Result(None, [results.error(ValueError(f"Validation failed for matcher: {matcher_type}"))])

    def handle_plugin_error(self,
                            plugin_name: str,
                            exc: BaseException,
                            context: Optional[Dict[str, Any]] = None) -> Result:
        matcher_error = MatcherError(
            'PLUGIN_ERROR',
            context or {},
            matcher_type=plugin_name,
            details=str(exc) or "Unknown plugin error",
            cause=exc,
        )
        return self._error_result(matcher_error, f"Plugin '{plugin_name}' error: {matcher_error.details}")

    def handle_xslt_error(self,
                          transform_path: str,
                          exc: BaseException,
                          context: Optional[Dict[str, Any]] = None) -> Result:
        matcher_error = MatcherError(
            'XSLT_ERROR',
            context or {},
            matcher_type=transform_path,
            details=str(exc) or "XSLT transformation failed",
            cause=exc,
        )
        return self._error_result(matcher_error, f"XSLT transform '{transform_path}' error: {matcher_error.details}")

    def handle_dependency_error(self,
                                plugin_name: str,
                                missing: Iterable[str],
                                context: Optional[Dict[str, Any]] = None) -> Result:
        missing = list(missing)
        matcher_error = MatcherError(
            'DEPENDENCY_ERROR',
            context or {},
            matcher_type=plugin_name,
            details=', '.join(missing),
            validation_errors=missing,
        )
        return self._error_result(
            matcher_error, f"Plugin '{plugin_name}' has unmet dependencies: {matcher_error.details}")

    def _error_result(self, matcher_error: MatcherError, default_message: str) -> Result:
        """Non-recoverable failure; a registered handler may reword the message."""
        handler = self._find_warning_handler(matcher_error.code)
        message = default_message
        if handler is not None:
            message = handler.handle(matcher_error, matcher_error.context).message
        return Result(None, [results.Message(results.ERROR, message, matcher_error.cause)])

    def _find_warning_handler(self, code: str) -> Optional[WarningHandler]:
        for handler in self._warning_handlers:
            if code in (getattr(handler, 'handles', None) or ()):
                return handler
        return None

    # Built-in handlers

    def _handle_unknown_type_error(self, matcher_error: MatcherError, context: Dict[str, Any]) -> HandledError:
        available_types = list(context.get('available_types') or [])
        suggestions = self.get_suggestions(matcher_error.unknown_type, available_types)
        message = f"Unknown document matcher type: '{matcher_error.unknown_type}'"
        if suggestions:
            message += f". Did you mean: {', '.join(suggestions[:3])}?"
        message += f"\nAvailable types: {', '.join(available_types)}"

        category = ERROR_CATEGORIES['UNKNOWN_TYPE']
        return HandledError(
            message=message,
            code=category.code,
            severity=category.severity,
            recoverable=True,
            suggestions=suggestions,
            recovery=lambda: NoOpMatcher(f"unknown type {matcher_error.unknown_type}"),
        )

    def _handle_validation_failure(self, matcher_error: MatcherError, context: Dict[str, Any]) -> HandledError:
        category = ERROR_CATEGORIES['VALIDATION_FAILED']
        return HandledError(
            message=f"Validation failed for matcher '{matcher_error.matcher_type}': {matcher_error.details}",
            code=category.code,
            severity=category.severity,
            validation_errors=matcher_error.validation_errors,
        )

    # Reporting

    def create_error_report(self, errors: Iterable[Any], context: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Aggregate raw error/warning records into a report.

        Args:
            errors: Message objects or dicts with 'type', 'message' and
                optionally 'code', 'severity', 'timestamp'
            context: Free-form context echoed in the report

        Returns:
            Dict with 'summary' counts and one entry per record in 'details'
        """
        now = datetime.now(timezone.utc)
        report: Dict[str, Any] = {
            'timestamp': now.isoformat(),
            'context': context or {},
            'summary': {
                'total_errors': 0,
                'total_warnings': 0,
                'critical_errors': 0,
            },
            'details': [],
            'suggestions': [],
        }

        for record in errors:
            if isinstance(record, Message):
                record = record.to_dict()
            record_type = record.get('type')
            severity = record.get('severity') or ('error' if record_type == results.ERROR else 'warning')
            timestamp = record.get('timestamp') or now
            detail = {
                'type': record_type,
                'message': record.get('message'),
                'code': record.get('code') or 'UNKNOWN',
                'severity': severity,
                'timestamp': timestamp.isoformat() if isinstance(timestamp, datetime) else timestamp,
            }

            if record_type == results.ERROR:
                report['summary']['total_errors'] += 1
                if severity == 'critical':
                    report['summary']['critical_errors'] += 1
            else:
                report['summary']['total_warnings'] += 1

            report['details'].append(detail)

        return report
