"""
Orchestrates one matching run: registry setup, rule compilation and
evaluation of the compiled rules against an element tree.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

from . import results
from .config_loader import MatcherConfiguration
from .diagnostics import MatcherErrorHandler
from .elements import walk
from .registry import MatcherRegistry
from .results import Message, Result
from .transforms import XsltProcessor

logger = logging.getLogger(__name__)


@dataclass
class CompiledRule:
    index: int
    type: str
    options: Dict[str, Any]
    result: Result

    @property
    def matcher(self) -> Any:
        return self.result.value


@dataclass
class RuntimeRegistration:
    type: str
    factory: Callable[[Dict[str, Any]], Any]
    options: Dict[str, Any] = field(default_factory=dict)


class MatchOrchestrator:
    """
    Builds a registry per conversion context and runs rules against elements.

    Setup order is built-ins, plugins, configuration, then runtime
    registrations added with add_matcher; later registrations of a type
    replace earlier ones.
    """

    def __init__(self,
                 configuration: Optional[MatcherConfiguration] = None,
                 plugins: Optional[List[Any]] = None):
        self.configuration = configuration or MatcherConfiguration(env_file=None)
        self.plugins = list(plugins or [])
        self._runtime_registrations: List[RuntimeRegistration] = []

    def add_matcher(self,
                    matcher_type: str,
                    factory: Callable[[Dict[str, Any]], Any],
                    options: Optional[Dict[str, Any]] = None) -> 'MatchOrchestrator':
        self._runtime_registrations.append(RuntimeRegistration(matcher_type, factory, dict(options or {})))
        return self

    def build_transform_engine(self) -> Optional[XsltProcessor]:
        if not self.configuration.get('transforms.enabled', True):
            logger.info("Transform extension disabled")
            return None

        engine = XsltProcessor(
            cache_enabled=self.configuration.get('transforms.cache_enabled', True),
            max_cache_size=self.configuration.get('transforms.max_cache_size', 100),
            default_processor=self.configuration.get('transforms.default_processor', 'lxml'),
            transform_paths=self.configuration.get('transforms.transform_paths'),
        )
        engine.enable_backends(self.configuration.get('transforms.processors') or [])
        if self.configuration.get('transforms.common_templates', False):
            engine.define_common_templates()
        return engine

    def build_registry(self) -> MatcherRegistry:
        error_handler = MatcherErrorHandler()
        registry = MatcherRegistry(
            transform_engine=self.build_transform_engine(),
            error_handler=error_handler,
        )
        registry.set_fallback_mode(self.configuration.get('error_handling.fallback_strategy', 'ignore'))

        for plugin in self.plugins:
            loaded = [getattr(p, 'name', None) for p in registry.get_plugins()]
            missing_dependencies = getattr(plugin, 'missing_dependencies', None)
            missing = missing_dependencies(loaded) if callable(missing_dependencies) else []
            if missing:
                logger.warning("Plugin '%s' is missing dependencies: %s", plugin.name, ', '.join(missing))
                registry.setup_messages.extend(
                    error_handler.handle_dependency_error(plugin.name, missing).messages)
            registry.register_plugin(plugin)

        registry.load_configuration(self.configuration.registry_config())

        for registration in self._runtime_registrations:
            registry.register(registration.type, registration.factory, registration.options)

        logger.info("Registry ready with %d matcher types and %d plugins",
                    len(registry.get_available_types()), len(registry.get_plugins()))
        return registry

    def compile_rules(self, registry: MatcherRegistry, specs: List[Dict[str, Any]]) -> List[CompiledRule]:
        compiled = []
        for index, spec in enumerate(specs):
            matcher_type = spec.get('type')
            options = spec.get('options') or {}
            result = registry.create_matcher(matcher_type, options)
            if not result.is_success:
                logger.warning("Rule %d (%s) did not compile", index, matcher_type)
            compiled.append(CompiledRule(index, matcher_type, options, result))
        return compiled

    def _evaluate_rule(self, rule: CompiledRule, flattened: List[Any]) -> Tuple[List[List[int]], List[Message]]:
        """Matched paths for one rule; a raising matcher counts as a non-match."""
        if rule.matcher is None:
            return [], []

        matched = []
        failed_paths = []
        first_error = None
        for path, element in flattened:
            try:
                if rule.matcher.matches(element):
                    matched.append(list(path))
            except Exception as e:
                failed_paths.append(path)
                first_error = first_error or e

        if first_error is None:
            return matched, []

        logger.warning("Rule %d (%s) raised on %d elements: %r",
                       rule.index, rule.type, len(failed_paths), first_error)
        text = (f"Matcher for rule {rule.index} ({rule.type}) failed on {len(failed_paths)} elements: "
                f"{type(first_error).__name__}: {first_error}")
        return matched, [Message(results.ERROR, text, first_error)]

    def run(self, event: Dict[str, Any]) -> Dict[str, Any]:
        """
        Compile the event's rules and evaluate them against its elements.

        Args:
            event: Dict with 'rules' ([{type, options}]), 'elements' (the
                document tree as a list of elements) and optional 'context'

        Returns:
            Dict with per-rule matched element paths, all messages and an
            error report

        Raises:
            ValueError: In strict mode, when any rule fails to compile
        """
        rules = event.get('rules') or []
        elements = event.get('elements') or []
        context = event.get('context') or {}

        logger.info("Matching %d rules against %d top-level elements", len(rules), len(elements))

        registry = self.build_registry()
        compiled = self.compile_rules(registry, rules)

        failed = [rule for rule in compiled if not rule.result.is_success]
        if failed and self.configuration.get('error_handling.strict_mode', False):
            names = ', '.join(f"{rule.index}:{rule.type}" for rule in failed)
            raise ValueError(f"Rules failed to compile in strict mode: {names}")

        flattened = list(walk(elements))
        rule_results = []
        evaluation_messages: List[Message] = []
        for rule in compiled:
            matched, failures = self._evaluate_rule(rule, flattened)
            evaluation_messages.extend(failures)
            rule_results.append({
                'index': rule.index,
                'type': rule.type,
                'compiled': rule.result.is_success,
                'matches': matched,
            })

        messages: List[Message] = list(registry.setup_messages)
        for rule in compiled:
            messages.extend(rule.result.messages)
        messages.extend(evaluation_messages)

        max_errors = self.configuration.get('error_handling.max_errors', 100)
        report = registry.error_handler.create_error_report(messages[:max_errors], context)

        logger.info("Matching completed with %d messages", len(messages))
        return {
            'statusCode': 200,
            'rules': rule_results,
            'messages': [m.to_dict() for m in messages],
            'report': report,
        }
