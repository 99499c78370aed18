"""
Template-driven transform engine for complex matching.

Keeps independent tables of backends (processors) and named templates, runs
transforms with a bounded result cache and wraps templates as matchers.
"""
import hashlib
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from .. import results
from ..matchers.base import BaseMatcher
from ..results import Result
from .xml_converter import element_to_xml, parse_match_result

logger = logging.getLogger(__name__)

AUTO_PROCESSOR = 'auto'


@dataclass
class TransformTemplate:
    name: str
    body: str
    processor: str
    parameters: Dict[str, Any] = field(default_factory=dict)
    namespaces: Dict[str, str] = field(default_factory=dict)
    version: str = '1.0'


class XsltMatcher(BaseMatcher):
    """
    Matcher backed by a transform template.

    Any failure (serialization, transform, result parsing) is a non-match.
    """

    def __init__(self, engine: 'XsltProcessor', template_name: str, options: Optional[Dict[str, Any]] = None):
        options = options or {}
        self._engine = engine
        self.template_name = template_name
        self.parameters = dict(options.get('parameters') or {})
        self.use_cache = options.get('use_cache', True)

    def matches(self, element: Any) -> bool:
        try:
            xml_input = element_to_xml(element)
            result = self._engine.transform(
                xml_input,
                self.template_name,
                self.parameters,
                use_cache=self.use_cache,
            )
            if result.value is None:
                return False
            return parse_match_result(result.value)
        except Exception as e:
            logger.warning("XSLT matcher error for template '%s': %s", self.template_name, e)
            return False


class UnboundXsltMatcher(BaseMatcher):
    """Transform-backed rule with no engine bound: never matches."""

    def __init__(self, matcher_type: str, transform_path: str):
        self.matcher_type = matcher_type
        self.transform_path = transform_path

    def matches(self, element: Any) -> bool:
        return False


class XsltProcessor:
    """
    Registry of transform backends and templates.

    Config parameters:
        cache_enabled: Cache transform output per (input, template, parameters) (default: True)
        max_cache_size: Entries kept before the oldest inserted one is evicted (default: 100)
        default_processor: Backend used by templates that name none (default: 'lxml')
        transform_paths: Directories searched by load_template for relative paths
        processors: Backends to register up front
    """

    def __init__(self,
                 cache_enabled: bool = True,
                 max_cache_size: int = 100,
                 default_processor: str = 'lxml',
                 transform_paths: Optional[Iterable[str]] = None,
                 processors: Optional[Iterable[Any]] = None):
        if isinstance(max_cache_size, bool) or not isinstance(max_cache_size, (int, float)) or max_cache_size < 1:
            raise ValueError(f"max_cache_size must be a positive integer, got {max_cache_size!r}")
        self.cache_enabled = cache_enabled
        self.max_cache_size = int(max_cache_size)
        self.default_processor = default_processor
        self.transform_paths = [Path(p) for p in (transform_paths or ['./transforms'])]
        self._transform_cache: Dict[str, Any] = {}
        self._processors: Dict[str, Any] = {}
        self._templates: Dict[str, TransformTemplate] = {}

        for processor in processors or []:
            self.register_processor(processor.name, processor)

    # Backends

    def register_processor(self, name: str, processor: Any) -> 'XsltProcessor':
        if not callable(getattr(processor, 'transform', None)):
            raise TypeError("XSLT processor must have a transform function")
        self._processors[name] = processor
        logger.debug("Registered transform processor '%s'", name)
        return self

    def enable_backends(self, names: Iterable[str]) -> 'XsltProcessor':
        """Register backends by name from the static BACKENDS table."""
        from . import BACKENDS

        for name in names:
            backend_class = BACKENDS.get(name)
            if backend_class is None:
                available = ', '.join(sorted(BACKENDS))
                raise ValueError(f"Unknown transform backend '{name}'. Available backends: {available}")
            self.register_processor(name, backend_class())
        return self

    def get_processor_info(self) -> List[Dict[str, Any]]:
        info = [
            {
                'name': name,
                'display_name': getattr(processor, 'display_name', None) or name,
                'supports': list(getattr(processor, 'supports', None) or []),
                'priority': getattr(processor, 'priority', 0) or 0,
            }
            for name, processor in self._processors.items()
        ]
        return sorted(info, key=lambda p: p['priority'], reverse=True)

    # Templates

    def register_template(self,
                          name: str,
                          body: str,
                          processor: Optional[str] = None,
                          parameters: Optional[Dict[str, Any]] = None,
                          namespaces: Optional[Dict[str, str]] = None,
                          version: str = '1.0') -> 'XsltProcessor':
        self._templates[name] = TransformTemplate(
            name=name,
            body=body,
            processor=processor or self.default_processor,
            parameters=dict(parameters or {}),
            namespaces=dict(namespaces or {}),
            version=version,
        )
        return self

    def load_template(self, name: str, file_path: str, **options: Any) -> 'XsltProcessor':
        template_path = self._find_template_path(file_path)
        if template_path is None:
            raise FileNotFoundError(f"XSLT template not found: {file_path}")
        logger.info("Loading XSLT template '%s' from %s", name, template_path)
        return self.register_template(name, template_path.read_text(encoding='utf-8'), **options)

    def has_template(self, name: str) -> bool:
        return name in self._templates

    def get_template(self, name: str) -> Optional[TransformTemplate]:
        return self._templates.get(name)

    def _find_template_path(self, file_path: str) -> Optional[Path]:
        path = Path(file_path)
        if path.is_absolute():
            return path if path.is_file() else None
        for base in self.transform_paths:
            candidate = base / path
            if candidate.is_file():
                return candidate
        return path if path.is_file() else None

    # Transform

    def _resolve_processor(self, template: TransformTemplate, override: Optional[str]) -> Optional[Any]:
        name = override or template.processor
        if name != AUTO_PROCESSOR:
            return self._processors.get(name)

        wanted = f"xslt{template.version}"
        candidates = [
            p for p in self._processors.values()
            if wanted in (getattr(p, 'supports', None) or [])
        ]
        if not candidates:
            return None
        return max(candidates, key=lambda p: getattr(p, 'priority', 0) or 0)

    @staticmethod
    def _create_cache_key(xml_input: str, template_name: str, parameters: Dict[str, Any]) -> str:
        serialized = json.dumps(parameters, sort_keys=True, default=str)
        key = f"{xml_input}|{template_name}|{serialized}"
        return hashlib.md5(key.encode('utf-8')).hexdigest()

    def _cache_result(self, key: str, value: Any) -> None:
        if len(self._transform_cache) >= self.max_cache_size:
            oldest = next(iter(self._transform_cache))
            del self._transform_cache[oldest]
        self._transform_cache[key] = value

    def transform(self,
                  xml_input: str,
                  template_name: str,
                  parameters: Optional[Dict[str, Any]] = None,
                  processor: Optional[str] = None,
                  use_cache: bool = True) -> Result:
        """
        Run a registered template over an XML document.

        Args:
            xml_input: Serialized XML document
            template_name: Registered template name
            parameters: Call-site parameters, override the template defaults
            processor: Backend name overriding the template's own
            use_cache: Consult and fill the result cache (if caching is enabled)

        Returns:
            Result with the transform output, or an error Result
        """
        parameters = parameters or {}

        template = self._templates.get(template_name)
        if template is None:
            return Result(None, [results.error(LookupError(f"XSLT template not found: {template_name}"))])

        backend = self._resolve_processor(template, processor)
        if backend is None:
            processor_name = processor or template.processor
            return Result(None, [results.error(LookupError(f"XSLT processor not found: {processor_name}"))])

        caching = self.cache_enabled and use_cache
        cache_key = self._create_cache_key(xml_input, template_name, parameters)
        if caching and cache_key in self._transform_cache:
            return results.success(self._transform_cache[cache_key])

        try:
            merged = dict(template.parameters)
            merged.update(parameters)
            output = backend.transform(xml_input, template.body, merged)
        except Exception as e:
            logger.debug("Transform '%s' failed: %s", template_name, e)
            return Result(None, [results.error(e)])

        if caching:
            self._cache_result(cache_key, output)
        return results.success(output)

    def create_matcher(self, template_name: str, options: Optional[Dict[str, Any]] = None) -> Result:
        if template_name not in self._templates:
            return Result(None, [results.error(LookupError(f"XSLT template not found: {template_name}"))])
        return results.success(XsltMatcher(self, template_name, options))

    def clear_cache(self) -> 'XsltProcessor':
        self._transform_cache = {}
        return self

    @property
    def cache_size(self) -> int:
        return len(self._transform_cache)

    def define_common_templates(self) -> 'XsltProcessor':
        """Register the stock style-matcher, complex-matcher and attribute-matcher templates."""
        self.register_template('style-matcher', STYLE_MATCHER_XSLT)
        self.register_template('complex-matcher', COMPLEX_MATCHER_XSLT)
        self.register_template('attribute-matcher', ATTRIBUTE_MATCHER_XSLT)
        return self


STYLE_MATCHER_XSLT = """<xsl:stylesheet version="1.0" xmlns:xsl="http://www.w3.org/1999/XSL/Transform">
    <xsl:param name="styleId"/>
    <xsl:param name="styleName"/>
    <xsl:param name="matchType" select="'exact'"/>

    <xsl:template match="/">
        <xsl:choose>
            <xsl:when test="$styleId and /element/@styleId = $styleId">
                <result>true</result>
            </xsl:when>
            <xsl:when test="$styleName">
                <xsl:choose>
                    <xsl:when test="$matchType = 'contains' and contains(/element/@styleName, $styleName)">
                        <result>true</result>
                    </xsl:when>
                    <xsl:when test="$matchType = 'startsWith' and starts-with(/element/@styleName, $styleName)">
                        <result>true</result>
                    </xsl:when>
                    <xsl:when test="$matchType = 'exact' and /element/@styleName = $styleName">
                        <result>true</result>
                    </xsl:when>
                    <xsl:otherwise>
                        <result>false</result>
                    </xsl:otherwise>
                </xsl:choose>
            </xsl:when>
            <xsl:otherwise>
                <result>false</result>
            </xsl:otherwise>
        </xsl:choose>
    </xsl:template>
</xsl:stylesheet>
"""

COMPLEX_MATCHER_XSLT = """<xsl:stylesheet version="1.0" xmlns:xsl="http://www.w3.org/1999/XSL/Transform">
    <xsl:param name="elementType"/>
    <xsl:param name="minChildren" select="0"/>
    <xsl:param name="maxChildren" select="999"/>
    <xsl:param name="hasText"/>

    <xsl:template match="/">
        <xsl:variable name="element" select="/element"/>
        <xsl:variable name="childCount" select="count($element/children/element)"/>

        <xsl:choose>
            <xsl:when test="$elementType and $element/@type != $elementType">
                <result>false</result>
            </xsl:when>
            <xsl:when test="$childCount &lt; number($minChildren) or $childCount &gt; number($maxChildren)">
                <result>false</result>
            </xsl:when>
            <xsl:when test="$hasText = 'true' and not($element/text)">
                <result>false</result>
            </xsl:when>
            <xsl:when test="$hasText = 'false' and $element/text">
                <result>false</result>
            </xsl:when>
            <xsl:otherwise>
                <result>true</result>
            </xsl:otherwise>
        </xsl:choose>
    </xsl:template>
</xsl:stylesheet>
"""

ATTRIBUTE_MATCHER_XSLT = """<xsl:stylesheet version="1.0" xmlns:xsl="http://www.w3.org/1999/XSL/Transform">
    <xsl:param name="attribute"/>
    <xsl:param name="value"/>

    <xsl:template match="/">
        <xsl:choose>
            <xsl:when test="$attribute and /element/attributes/@*[name() = $attribute] = $value">
                <result>true</result>
            </xsl:when>
            <xsl:otherwise>
                <result>false</result>
            </xsl:otherwise>
        </xsl:choose>
    </xsl:template>
</xsl:stylesheet>
"""
