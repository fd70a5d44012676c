from dataclasses import dataclass
from typing import Optional


class DesignerError(Exception):
    """Base class for errors raised by the design canvas."""


class InitFailure(DesignerError):
    """The drawing surface could not be created; the session cannot start."""


class NotReady(DesignerError):
    """A mutating operation was requested before the canvas finished loading."""


class ResourceLoadFailure(DesignerError):
    """An image resource could not be fetched or decoded.

    Attributes:
        source: Short description of what was being loaded (path, URL or
            "<upload>" for in-memory uploads).
    """

    def __init__(self, message: str, source: Optional[str] = None) -> None:
        super().__init__(message)
        self.source = source


@dataclass(frozen=True)
class Rejected:
    """Result returned instead of raising when an operation cannot proceed."""

    error: DesignerError

    @property
    def reason(self) -> type:
        return type(self.error)

    def __bool__(self) -> bool:
        return False
