"""
Base plugin interface for the matcher registry.
Plugins register batches of matcher types; only register and get_description
need implementing.
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, Optional


class BasePlugin(ABC):
    """
    Abstract base class for matcher plugins.

    Attributes:
        name: Plugin name, used in dependency checks and diagnostics
        version: Plugin version string
        dependencies: Names of plugins this one expects to be loaded first
        enabled: Informational flag; disabling does not unregister matchers
    """

    def __init__(self, name: Optional[str] = None, version: str = '1.0.0'):
        self.name = name or type(self).__name__
        self.version = version
        self.dependencies: List[str] = []
        self.enabled = True

    @abstractmethod
    def register(self, registry: Any) -> None:
        """
        Register matcher types with the registry.

        May be called more than once; re-registration overwrites.
        """
        pass

    def initialize(self, registry: Any) -> None:
        """Called by the registry after register."""
        pass

    def get_description(self) -> str:
        return "Base plugin for extending document matcher functionality"

    def check_dependencies(self, available_plugins: Iterable[str]) -> bool:
        available = list(available_plugins)
        return all(dependency in available for dependency in self.dependencies)

    def missing_dependencies(self, available_plugins: Iterable[str]) -> List[str]:
        available = list(available_plugins)
        return [dependency for dependency in self.dependencies if dependency not in available]

    def get_metadata(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'version': self.version,
            'dependencies': list(self.dependencies),
            'enabled': self.enabled,
            'description': self.get_description(),
        }

    def enable(self) -> None:
        self.enabled = True

    def disable(self) -> None:
        self.enabled = False

    def validate_configuration(self, config: Dict[str, Any]) -> List[str]:
        """Return a list of configuration errors, empty when valid."""
        return []
