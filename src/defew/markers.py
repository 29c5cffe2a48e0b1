"""Runtime markers for Defew record classes.

The markers only make annotated source importable; synthesis reads them
from the source text and never inspects these objects.

Usage:
    from __future__ import annotations

    from typing import Annotated
    from defew import Defew, defew, new

    @defew(Factory)
    class Settings(Defew):
        retries: int
        name: Annotated[str, new]
        label: Annotated[str, new(name.upper())]
        limit: Annotated[int, new(const=10)]
"""

from __future__ import annotations

import inspect
from dataclasses import dataclass
from typing import Any, TypeVar

T = TypeVar("T")


class Defew:
    """Base class that opts a class into constructor synthesis."""


@dataclass(frozen=True)
class NewMarker:
    """Field marker produced by ``new(...)``."""

    value: Any = None
    const: Any = None


class _New:
    def __call__(self, *args: Any, **kwargs: Any) -> NewMarker:
        return NewMarker(
            value=args[0] if args else None,
            const=kwargs.get("const"),
        )

    def __repr__(self) -> str:
        return "new"


new = _New()


def defew(*args: Any, **kwargs: Any) -> Any:
    """Type-level marker; usable bare (``@defew``) or called.

    A single class argument is the decorated record when it subclasses
    ``Defew`` or declares its own annotated fields. Any other class is an
    interface, so ``@defew(Factory)`` returns a pass-through decorator.
    """
    if len(args) == 1 and not kwargs and _is_decorated_class(args[0]):
        return args[0]

    def _decorate(cls: T) -> T:
        return cls

    return _decorate


def _is_decorated_class(candidate: Any) -> bool:
    if not isinstance(candidate, type):
        return False
    if issubclass(candidate, Defew):
        return True
    if getattr(candidate, "_is_protocol", False):
        return False
    return bool(inspect.get_annotations(candidate))
