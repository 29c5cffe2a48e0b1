from __future__ import annotations

from pathlib import Path
from typing import List, Sequence

import libcst as cst
from libcst.metadata import CodeRange, MetadataWrapper, PositionProvider

from defew.diagnostics import DiagnosticKind, report
from defew.exceptions import DiagnosticError
from defew.synthesis.model import (
    ENUM_SHAPE,
    RECORD_SHAPE,
    AnnotationToken,
    FieldDescriptor,
    SourceSpan,
    StructuralDescription,
)
from defew.synthesis.tokens import (
    call_text,
    code_for,
    marker_name,
    parse_token,
    terminal_name,
)

DERIVE_BASE = "Defew"
ENUM_BASES = frozenset({"Enum", "IntEnum", "StrEnum", "Flag", "IntFlag"})


def _span(path: str, code_range: CodeRange) -> SourceSpan:
    return SourceSpan(
        path=path,
        start=(code_range.start.line, code_range.start.column),
        end=(code_range.end.line, code_range.end.column),
    )


def is_derive_base(expr: cst.BaseExpression) -> bool:
    return terminal_name(expr) == DERIVE_BASE


def is_selected(node: cst.ClassDef) -> bool:
    """A class opts in through the ``Defew`` base or a type-level marker."""
    if any(is_derive_base(arg.value) for arg in node.bases if arg.keyword is None):
        return True
    return any(marker_name(dec.decorator) is not None for dec in node.decorators)


def _base_name(expr: cst.BaseExpression) -> str | None:
    if isinstance(expr, cst.Subscript):
        return terminal_name(expr.value)
    return terminal_name(expr)


def _split_annotated(
    annotation: cst.BaseExpression,
) -> tuple[cst.BaseExpression, Sequence[cst.BaseExpression]]:
    if not isinstance(annotation, cst.Subscript):
        return annotation, ()
    if terminal_name(annotation.value) != "Annotated":
        return annotation, ()
    elements = [
        element.slice.value
        for element in annotation.slice
        if isinstance(element.slice, cst.Index)
    ]
    if not elements:
        return annotation, ()
    return elements[0], elements[1:]


def _is_class_var(annotation: cst.BaseExpression) -> bool:
    target = annotation.value if isinstance(annotation, cst.Subscript) else annotation
    return terminal_name(target) == "ClassVar"


def _default_text(value: cst.BaseExpression | None) -> str | None:
    """Source text of a declared default, unwrapping dataclass ``field(...)``."""
    if value is None:
        return None
    if isinstance(value, cst.Call) and terminal_name(value.func) == "field":
        for arg in value.args:
            if arg.keyword is None:
                continue
            if arg.keyword.value == "default":
                return code_for(arg.value)
            if arg.keyword.value == "default_factory":
                return call_text(arg.value)
        return None
    return code_for(value)


class _DescriptionCollector(cst.CSTVisitor):
    METADATA_DEPENDENCIES = (PositionProvider,)

    def __init__(self, path: str) -> None:
        self.path = path
        self.scope: List[str] = []
        self.descriptions: List[StructuralDescription] = []

    def _span_for(self, node: cst.CSTNode) -> SourceSpan:
        return _span(self.path, self.get_metadata(PositionProvider, node))

    def visit_FunctionDef(self, node: cst.FunctionDef) -> None:
        self.scope.append(node.name.value)

    def leave_FunctionDef(self, original_node: cst.FunctionDef) -> None:
        self.scope.pop()

    def visit_ClassDef(self, node: cst.ClassDef) -> None:
        self.scope.append(node.name.value)
        if is_selected(node):
            self.descriptions.append(self._describe(node))

    def leave_ClassDef(self, original_node: cst.ClassDef) -> None:
        self.scope.pop()

    def _describe(self, node: cst.ClassDef) -> StructuralDescription:
        type_annotations: List[AnnotationToken] = []
        for decorator in node.decorators:
            token = parse_token(decorator.decorator, self._span_for)
            if token is not None:
                type_annotations.append(token)

        shape = RECORD_SHAPE
        generics: List[str] = []
        bases: List[str] = []
        for arg in node.bases:
            if arg.keyword is not None:
                continue
            bases.append(code_for(arg.value))
            name = _base_name(arg.value)
            if name in ENUM_BASES:
                shape = ENUM_SHAPE
            if name == "Generic" and isinstance(arg.value, cst.Subscript):
                generics.extend(code_for(element.slice) for element in arg.value.slice)
        if node.type_parameters is not None:
            generics.extend(code_for(param.param) for param in node.type_parameters.params)

        return StructuralDescription(
            type_identifier=node.name.value,
            fields=tuple(self._fields(node)),
            type_annotations=tuple(type_annotations),
            generics=tuple(generics),
            bases=tuple(bases),
            shape=shape,
            qualname=".".join(self.scope),
            span=self._span_for(node.name),
        )

    def _fields(self, node: cst.ClassDef) -> List[FieldDescriptor]:
        if isinstance(node.body, cst.IndentedBlock):
            statements = [
                small
                for statement in node.body.body
                if isinstance(statement, cst.SimpleStatementLine)
                for small in statement.body
            ]
        else:
            statements = list(node.body.body)
        fields: List[FieldDescriptor] = []
        for small in statements:
            if not isinstance(small, cst.AnnAssign):
                continue
            if not isinstance(small.target, cst.Name):
                continue
            annotation = small.annotation.annotation
            if _is_class_var(annotation):
                continue
            type_expr, metadata = _split_annotated(annotation)
            tokens: List[AnnotationToken] = []
            for item in metadata:
                token = parse_token(item, self._span_for)
                if token is not None:
                    tokens.append(token)
            fields.append(
                FieldDescriptor(
                    position=len(fields),
                    name=small.target.value,
                    type_text=code_for(type_expr),
                    annotations=tuple(tokens),
                    span=self._span_for(small),
                    default_text=_default_text(small.value),
                )
            )
        return fields


def collect_descriptions(source: str, path: str = "<string>") -> List[StructuralDescription]:
    """Describe every opted-in class of ``source`` in traversal order."""
    try:
        module = cst.parse_module(source)
    except cst.ParserSyntaxError as exc:
        diagnostic = report(
            DiagnosticKind.UNSUPPORTED_SHAPE,
            SourceSpan(path=path, start=(exc.raw_line, exc.raw_column)),
            f"module `{path}`",
            f"source does not parse: {exc.message}",
        )
        raise DiagnosticError(diagnostic) from exc
    wrapper = MetadataWrapper(module)
    collector = _DescriptionCollector(path)
    wrapper.visit(collector)
    return collector.descriptions


def collect_file_descriptions(path: Path) -> List[StructuralDescription]:
    return collect_descriptions(path.read_text(encoding="utf-8"), str(path))
