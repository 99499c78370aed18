"""
Result envelope shared by the registry, the transform engine and diagnostics.

Every operation that may degrade returns a Result: a value (None on failure
or degradation) plus the warning/error messages a caller should surface.
"""
from dataclasses import dataclass, field
from typing import Any, List, Optional, Union

WARNING = "warning"
ERROR = "error"


@dataclass
class Message:
    """A single diagnostic attached to a Result."""
    type: str
    message: str
    error: Optional[BaseException] = None

    def to_dict(self) -> dict:
        return {'type': self.type, 'message': self.message}


@dataclass
class Result:
    """
    Value plus messages.

    Attributes:
        value: The produced value, or None when the operation failed or degraded
        messages: Warnings and errors collected while producing the value
    """
    value: Any = None
    messages: List[Message] = field(default_factory=list)

    @property
    def is_success(self) -> bool:
        return self.value is not None

    @property
    def warnings(self) -> List[Message]:
        return [m for m in self.messages if m.type == WARNING]

    @property
    def errors(self) -> List[Message]:
        return [m for m in self.messages if m.type == ERROR]

    def to_dict(self) -> dict:
        return {
            'success': self.is_success,
            'messages': [m.to_dict() for m in self.messages],
        }


def success(value: Any) -> Result:
    return Result(value, [])


def warning(text: str) -> Message:
    return Message(WARNING, text)


def error(exc: Union[BaseException, str]) -> Message:
    """Build an error message from an exception or plain text."""
    if isinstance(exc, BaseException):
        return Message(ERROR, str(exc) or type(exc).__name__, exc)
    return Message(ERROR, exc)
