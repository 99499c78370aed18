"""
Read-only access to document elements.

Elements come from the document reader either as JSON-like dicts or as plain
objects. Matchers only ever read them through get_field.
"""
from collections.abc import Mapping
from typing import Any, Iterator, List, Tuple

_MISSING = object()


def get_field(element: Any, name: str, default: Any = None) -> Any:
    """Return element[name] for mappings, element.name otherwise."""
    if element is None:
        return default
    if isinstance(element, Mapping):
        return element.get(name, default)
    value = getattr(element, name, _MISSING)
    return default if value is _MISSING else value


def get_children(element: Any) -> List[Any]:
    children = get_field(element, 'children')
    if not children:
        return []
    return list(children)


def iter_fields(element: Any) -> Iterator[Tuple[str, Any]]:
    """Yield (name, value) pairs for every public field of the element."""
    if isinstance(element, Mapping):
        yield from element.items()
        return
    for name, value in vars(element).items():
        if not name.startswith('_'):
            yield name, value


def walk(elements: List[Any], path: Tuple[int, ...] = ()) -> Iterator[Tuple[Tuple[int, ...], Any]]:
    """Depth-first walk yielding (index path, element) for a list of elements."""
    for index, element in enumerate(elements):
        element_path = path + (index,)
        yield element_path, element
        yield from walk(get_children(element), element_path)
