"""
Matcher registry.

Compiles style rule specs ({type, options}) into matchers. Resolution order is
direct registration, then transform-backed registration, then the fallback
chain. create_matcher never raises; every failure is reported in the Result.
"""
import importlib
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from . import results
from .diagnostics import MatcherErrorHandler
from .fallback import (
    DiagnosticsStrategy,
    FallbackStrategy,
    IgnoreUnknownStrategy,
    SuggestAlternativesStrategy,
)
from .matchers import BUILTIN_MATCHERS, TemplateMatcher
from .plugins import PLUGIN_REGISTRY
from .results import Message, Result
from .transforms import UnboundXsltMatcher, XsltProcessor

logger = logging.getLogger(__name__)


@dataclass
class RegisteredMatcher:
    factory: Callable[[Dict[str, Any]], Any]
    priority: int = 0
    namespace: str = 'default'
    validation: Optional[Callable[[str, Dict[str, Any]], Any]] = None
    description: str = ''


@dataclass
class RegisteredTransform:
    path: str
    priority: int = 0
    namespace: str = 'xslt'
    caching: bool = True


def import_object(path: str) -> Any:
    """Resolve a 'package.module:attribute' string."""
    module_name, sep, attribute = path.partition(':')
    if not sep or not module_name or not attribute:
        raise ValueError(f"Expected 'module:attribute', got '{path}'")
    module = importlib.import_module(module_name)
    return getattr(module, attribute)


class MatcherRegistry:
    """
    Registry of matcher types for one conversion context.

    Built-in matchers are registered on construction. Registering a type that
    already exists replaces it; there is no duplicate detection.

    Args:
        transform_engine: XsltProcessor backing transform registrations. Without
            one, transform-backed types compile to matchers that never match.
        error_handler: Diagnostics used for transform and plugin failures
        install_default_fallbacks: Install ignore-unknown then suggest-alternatives
    """

    def __init__(self,
                 transform_engine: Optional[XsltProcessor] = None,
                 error_handler: Optional[MatcherErrorHandler] = None,
                 install_default_fallbacks: bool = True):
        self.transform_engine = transform_engine
        self.error_handler = error_handler or MatcherErrorHandler()
        self._matchers: Dict[str, RegisteredMatcher] = {}
        self._plugins: List[Any] = []
        self._fallback_strategies: List[Any] = []
        self._xslt_transforms: Dict[str, RegisteredTransform] = {}
        self.setup_messages: List[Message] = []

        self._register_builtin_matchers()
        if install_default_fallbacks:
            self.set_fallback_mode('ignore')

    def _register_builtin_matchers(self) -> None:
        for matcher_type, factory in BUILTIN_MATCHERS.items():
            self.register(matcher_type, factory, {'description': f"Built-in matcher for {matcher_type}"})

    # Registration

    def register(self,
                 matcher_type: str,
                 factory: Callable[[Dict[str, Any]], Any],
                 options: Optional[Dict[str, Any]] = None) -> 'MatcherRegistry':
        options = options or {}
        if matcher_type in self._matchers:
            logger.debug("Replacing matcher type '%s'", matcher_type)
        self._matchers[matcher_type] = RegisteredMatcher(
            factory=factory,
            priority=options.get('priority') or 0,
            namespace=options.get('namespace') or 'default',
            validation=options.get('validation'),
            description=options.get('description') or f"Custom matcher for {matcher_type}",
        )
        return self

    def register_plugin(self, plugin: Any) -> 'MatcherRegistry':
        if plugin is None or not callable(getattr(plugin, 'register', None)):
            raise TypeError("Plugin must have a register function")

        self._plugins.append(plugin)
        plugin.register(self)
        initialize = getattr(plugin, 'initialize', None)
        if callable(initialize):
            initialize(self)
        logger.debug("Registered plugin '%s'", getattr(plugin, 'name', type(plugin).__name__))
        return self

    def register_xslt_transform(self,
                                matcher_type: str,
                                xslt_path: str,
                                options: Optional[Dict[str, Any]] = None) -> 'MatcherRegistry':
        options = options or {}
        self._xslt_transforms[matcher_type] = RegisteredTransform(
            path=xslt_path,
            priority=options.get('priority') or 0,
            namespace=options.get('namespace') or 'xslt',
            caching=options.get('caching', True) is not False,
        )
        logger.debug("Registered transform-backed type '%s' (%s)", matcher_type, xslt_path)
        return self

    def register_fallback_strategy(self, strategy: Any) -> 'MatcherRegistry':
        if strategy is None or not callable(getattr(strategy, 'handle', None)):
            raise TypeError("Fallback strategy must have a handle function")
        self._fallback_strategies.append(strategy)
        return self

    def set_fallback_strategies(self, strategies: List[Any]) -> 'MatcherRegistry':
        self._fallback_strategies = []
        for strategy in strategies:
            self.register_fallback_strategy(strategy)
        return self

    def get_fallback_strategies(self) -> List[Any]:
        return list(self._fallback_strategies)

    def set_fallback_mode(self, mode: str) -> 'MatcherRegistry':
        """
        Replace the fallback chain with a named preset.

        Modes:
            ignore: ignore-unknown, then suggest-alternatives
            suggest-alternatives: suggestions only, unknown types do not compile
            diagnose: fuzzy and category suggestions with no-op recovery
        """
        if mode == 'ignore':
            chain: List[FallbackStrategy] = [
                IgnoreUnknownStrategy(),
                SuggestAlternativesStrategy(self.get_available_types),
            ]
        elif mode == 'suggest-alternatives':
            chain = [SuggestAlternativesStrategy(self.get_available_types)]
        elif mode == 'diagnose':
            chain = [DiagnosticsStrategy(self.get_available_types, self.error_handler)]
        else:
            raise ValueError(f"Unknown fallback mode '{mode}'. Available modes: diagnose, ignore, suggest-alternatives")
        return self.set_fallback_strategies(chain)

    # Resolution

    def create_matcher(self, matcher_type: str, options: Optional[Dict[str, Any]] = None) -> Result:
        options = options or {}

        registered = self._matchers.get(matcher_type)
        if registered is not None:
            return self._create_registered_matcher(matcher_type, registered, options)

        if matcher_type in self._xslt_transforms:
            return self._create_xslt_matcher(matcher_type, options)

        # Messages of strategies that did not resolve the type are kept
        unresolved: List[Message] = []
        for strategy in self._fallback_strategies:
            try:
                result = strategy.handle(matcher_type, options)
            except Exception as e:
                logger.warning("Fallback strategy '%s' failed for '%s': %s",
                               getattr(strategy, 'name', strategy), matcher_type, e)
                continue
            if result is None:
                continue
            if result.value is not None:
                return result
            unresolved.extend(result.messages)

        return Result(None, unresolved + [results.warning(
            f"Unknown document matcher type: {matcher_type}. "
            f"Available types: {', '.join(self.get_available_types())}"
        )])

    def _create_registered_matcher(self,
                                   matcher_type: str,
                                   registered: RegisteredMatcher,
                                   options: Dict[str, Any]) -> Result:
        try:
            if registered.validation is not None and not registered.validation(matcher_type, options):
                return Result(None, [results.warning(f"Invalid options for matcher type: {matcher_type}")])
            return results.success(registered.factory(options))
        except Exception as e:
            logger.debug("Matcher factory for '%s' failed: %s", matcher_type, e)
            return Result(None, [results.error(e)])

    def _create_xslt_matcher(self, matcher_type: str, options: Dict[str, Any]) -> Result:
        transform = self._xslt_transforms[matcher_type]

        if self.transform_engine is None:
            return results.success(UnboundXsltMatcher(matcher_type, transform.path))

        try:
            if not self.transform_engine.has_template(matcher_type):
                self.transform_engine.load_template(matcher_type, transform.path)
        except Exception as e:
            return self.error_handler.handle_xslt_error(transform.path, e, {'matcher_type': matcher_type})

        return self.transform_engine.create_matcher(matcher_type, {
            'parameters': options.get('parameters') or {},
            'use_cache': transform.caching,
        })

    # Introspection

    def get_available_types(self) -> List[str]:
        return sorted(set(self._matchers) | set(self._xslt_transforms))

    def get_matcher_info(self, matcher_type: str) -> Optional[Dict[str, Any]]:
        registered = self._matchers.get(matcher_type)
        if registered is not None:
            return {
                'type': matcher_type,
                'namespace': registered.namespace,
                'description': registered.description,
                'priority': registered.priority,
                'source': 'registered',
            }

        transform = self._xslt_transforms.get(matcher_type)
        if transform is not None:
            return {
                'type': matcher_type,
                'namespace': transform.namespace,
                'description': 'XSLT-based matcher',
                'priority': transform.priority,
                'source': 'xslt',
                'transform_path': transform.path,
            }

        return None

    def get_plugins(self) -> List[Any]:
        return list(self._plugins)

    # Configuration

    def load_configuration(self, config: Optional[Dict[str, Any]] = None) -> 'MatcherRegistry':
        """
        Apply a configuration batch.

        Args:
            config: Dict with optional keys
                matchers: {type: {factory | template, options}}
                xslt_transforms: {type: {path, options}}
                plugins: [name in PLUGIN_REGISTRY | 'module:Class' | plugin instance]

        A failing entry (bad factory reference, transform without a path,
        plugin that cannot be loaded) is logged, recorded in setup_messages
        and skipped; the rest of the batch is still applied.
        """
        config = config or {}

        for matcher_type, matcher_config in (config.get('matchers') or {}).items():
            try:
                self._load_matcher(matcher_type, matcher_config)
            except Exception as e:
                logger.warning("Failed to load matcher: %s (%s)", matcher_type, e)
                self.setup_messages.extend(
                    self.error_handler.handle_validation_error(matcher_type, [str(e)]).messages)

        for matcher_type, transform in (config.get('xslt_transforms') or {}).items():
            try:
                if not isinstance(transform, dict) or not transform.get('path'):
                    raise ValueError("transform entry needs a 'path'")
                self.register_xslt_transform(matcher_type, transform['path'], transform.get('options'))
            except Exception as e:
                logger.warning("Failed to register transform: %s (%s)", matcher_type, e)
                self.setup_messages.extend(self.error_handler.handle_xslt_error(matcher_type, e).messages)

        for plugin_ref in config.get('plugins') or []:
            self._load_plugin(plugin_ref)

        return self

    def _load_matcher(self, matcher_type: str, matcher_config: Dict[str, Any]) -> None:
        factory = matcher_config.get('factory')
        if factory is not None:
            if isinstance(factory, str):
                factory = import_object(factory)
            self.register(matcher_type, factory, matcher_config.get('options'))
        elif matcher_config.get('template'):
            self._register_template_matcher(matcher_type, matcher_config)
        else:
            logger.warning("Matcher '%s' has neither a factory nor a template, skipping", matcher_type)

    def _register_template_matcher(self, matcher_type: str, matcher_config: Dict[str, Any]) -> None:
        template = matcher_config['template']
        self.register(
            matcher_type,
            lambda options: TemplateMatcher(template, options),
            matcher_config.get('options'),
        )

    def _load_plugin(self, plugin_ref: Any) -> None:
        name = plugin_ref if isinstance(plugin_ref, str) else getattr(plugin_ref, 'name', repr(plugin_ref))
        try:
            if isinstance(plugin_ref, str):
                plugin_class = PLUGIN_REGISTRY.get(plugin_ref)
                if plugin_class is None:
                    plugin_class = import_object(plugin_ref)
                plugin = plugin_class()
            else:
                plugin = plugin_ref
            self.register_plugin(plugin)
        except Exception as e:
            logger.warning("Failed to load plugin: %s (%s)", name, e)
            self.setup_messages.extend(self.error_handler.handle_plugin_error(name, e).messages)
