"""
Base interface for transform backends.
Every backend registered with the XsltProcessor implements this capability.
"""
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional


class TransformProcessor(ABC):
    """
    Abstract base class for transform backends.

    Attributes:
        name: Short name the backend is registered under
        display_name: Human readable name for informational output
        supports: Transform language versions handled, e.g. ['xslt1.0']
        priority: Higher wins when a template asks for automatic selection
    """

    name: str = 'processor'
    display_name: str = ''
    supports: List[str] = []
    priority: int = 0

    @abstractmethod
    def transform(self, xml_input: str, template: str, parameters: Dict[str, Any]) -> Any:
        """
        Apply a template to an XML document.

        Args:
            xml_input: Serialized XML document
            template: Template source text
            parameters: Template parameters (template defaults already merged)

        Returns:
            The transform output, usually a string
        """
        pass


class CallableProcessor(TransformProcessor):
    """Wraps a plain function as a backend."""

    def __init__(self,
                 name: str,
                 transform: Callable[[str, str, Dict[str, Any]], Any],
                 supports: Optional[List[str]] = None,
                 priority: int = 0,
                 display_name: Optional[str] = None):
        self.name = name
        self.display_name = display_name or name
        self.supports = list(supports or [])
        self.priority = priority
        self._transform = transform

    def transform(self, xml_input: str, template: str, parameters: Dict[str, Any]) -> Any:
        return self._transform(xml_input, template, parameters)
