from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal as LiteralType, Mapping, Tuple, Union

Position = Tuple[int, int]

FIELD_MARKER = "new"
TYPE_MARKER = "defew"

RECORD_SHAPE = "record"
ENUM_SHAPE = "enum"


@dataclass(frozen=True)
class SourceSpan:
    path: str = "<unknown>"
    start: Position = (0, 0)
    end: Position = (0, 0)

    def label(self) -> str:
        line, column = self.start
        return f"{self.path}:{line}:{column}"


@dataclass(frozen=True)
class RawExpression:
    """Verbatim expression text spliced into the generated constructor.

    The text is never parsed into an AST or evaluated here; the only
    checks applied are the ones the parser already performed when the
    marker was read.
    """

    text: str
    span: SourceSpan = field(default_factory=SourceSpan)


@dataclass(frozen=True)
class Bare:
    marker: str
    span: SourceSpan = field(default_factory=SourceSpan)


@dataclass(frozen=True)
class Parenthesized:
    marker: str
    expression: RawExpression
    span: SourceSpan = field(default_factory=SourceSpan)


@dataclass(frozen=True)
class Literal:
    marker: str
    name: str
    text: str
    span: SourceSpan = field(default_factory=SourceSpan)


@dataclass(frozen=True)
class Malformed:
    marker: str
    reason: str
    span: SourceSpan = field(default_factory=SourceSpan)


AnnotationToken = Union[Bare, Parenthesized, Literal, Malformed]


@dataclass(frozen=True)
class FieldDescriptor:
    position: int
    name: str | None
    type_text: str
    annotations: Tuple[AnnotationToken, ...] = ()
    span: SourceSpan = field(default_factory=SourceSpan)
    default_text: str | None = None

    @property
    def label(self) -> str:
        if self.name is not None:
            return f"`{self.name}`"
        return f"#{self.position}"


@dataclass(frozen=True)
class StructuralDescription:
    type_identifier: str
    fields: Tuple[FieldDescriptor, ...]
    type_annotations: Tuple[AnnotationToken, ...] = ()
    generics: Tuple[str, ...] = ()
    bases: Tuple[str, ...] = ()
    shape: str = RECORD_SHAPE
    qualname: str = ""
    span: SourceSpan = field(default_factory=SourceSpan)

    @property
    def positional(self) -> bool:
        return bool(self.fields) and all(spec.name is None for spec in self.fields)


@dataclass(frozen=True)
class UseDefault:
    pass


@dataclass(frozen=True)
class RequireParameter:
    pass


@dataclass(frozen=True)
class ComputeFromExpression:
    expression: RawExpression


@dataclass(frozen=True)
class BindConstant:
    literal: str


FieldDirective = Union[UseDefault, RequireParameter, ComputeFromExpression, BindConstant]


@dataclass(frozen=True)
class Public:
    pass


@dataclass(frozen=True)
class Private:
    pass


@dataclass(frozen=True)
class Scoped:
    token: str


Visibility = Union[Public, Private, Scoped]


@dataclass(frozen=True)
class StructDirective:
    visibility: Visibility = field(default_factory=Public)
    trait_target: str | None = None


@dataclass(frozen=True)
class Parameter:
    name: str
    type_text: str


@dataclass(frozen=True)
class Binding:
    name: str
    kind: LiteralType["let", "const"]
    type_text: str | None
    expression: str


@dataclass(frozen=True)
class ConstructionRef:
    key: str | int
    reference: str


@dataclass(frozen=True)
class SynthesisPlan:
    type_identifier: str
    method_name: str
    visibility: Visibility = field(default_factory=Public)
    trait_target: str | None = None
    generics: Tuple[str, ...] = ()
    positional: bool = False
    parameters: Tuple[Parameter, ...] = ()
    bindings: Tuple[Binding, ...] = ()
    construction: Tuple[ConstructionRef, ...] = ()
    qualname: str = ""

    @property
    def uses_const(self) -> bool:
        return any(binding.kind == "const" for binding in self.bindings)


@dataclass(frozen=True)
class SynthesisConfig:
    constructor_name: str = "new"
    private_constructor_name: str = "_new"
    placeholder_prefix: str = "field"
    add_trait_base: bool = True

    @classmethod
    def from_mapping(cls, values: Mapping[str, object]) -> SynthesisConfig:
        defaults = cls()
        return cls(
            constructor_name=_as_str(values.get("constructor_name"), defaults.constructor_name),
            private_constructor_name=_as_str(
                values.get("private_constructor_name"), defaults.private_constructor_name
            ),
            placeholder_prefix=_as_str(
                values.get("placeholder_prefix"), defaults.placeholder_prefix
            ),
            add_trait_base=_as_bool(values.get("add_trait_base"), defaults.add_trait_base),
        )


def _as_str(value: object, fallback: str) -> str:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return fallback


def _as_bool(value: object, fallback: bool) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value != 0
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return fallback
