from __future__ import annotations

from defew.diagnostics import Diagnostic, DiagnosticKind, malformed_field, report
from defew.synthesis.model import (
    FIELD_MARKER,
    TYPE_MARKER,
    Bare,
    BindConstant,
    ComputeFromExpression,
    FieldDescriptor,
    FieldDirective,
    Literal,
    Malformed,
    Parenthesized,
    RequireParameter,
    UseDefault,
)

CONST_KEYWORD = "const"


def resolve_field(field: FieldDescriptor) -> FieldDirective | Diagnostic:
    subject = f"field {field.label}"
    tokens = field.annotations
    if len(tokens) > 1:
        return report(DiagnosticKind.MULTIPLE_ANNOTATIONS, tokens[-1].span, subject)
    if not tokens:
        return UseDefault()
    token = tokens[0]
    if token.marker == TYPE_MARKER:
        return report(
            DiagnosticKind.CONFLICTING_NAMESPACE,
            token.span,
            subject,
            f"`{TYPE_MARKER}` is a class decorator; fields take `{FIELD_MARKER}`",
        )
    if isinstance(token, Bare):
        return RequireParameter()
    if isinstance(token, Parenthesized):
        return ComputeFromExpression(token.expression)
    if isinstance(token, Literal):
        if token.name != CONST_KEYWORD:
            return malformed_field(token.span, subject, f"unknown keyword `{token.name}`")
        return BindConstant(token.text)
    if isinstance(token, Malformed):
        return malformed_field(token.span, subject, token.reason)
    raise TypeError(f"unexpected annotation token: {token!r}")
