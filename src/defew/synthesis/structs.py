from __future__ import annotations

import ast
import re

from defew.diagnostics import Diagnostic, DiagnosticKind, malformed_type, report
from defew.synthesis.model import (
    FIELD_MARKER,
    Bare,
    Literal,
    Malformed,
    Parenthesized,
    Private,
    Public,
    Scoped,
    StructDirective,
    StructuralDescription,
)

SCOPE_KEYWORD = "scope"

_DOTTED_NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)*$")


def is_dotted_name(text: str) -> bool:
    return bool(_DOTTED_NAME_RE.match(text))


def resolve_struct(description: StructuralDescription) -> StructDirective | Diagnostic:
    subject = f"class `{description.type_identifier}`"
    tokens = description.type_annotations
    if len(tokens) > 1:
        return report(DiagnosticKind.MULTIPLE_ANNOTATIONS, tokens[-1].span, subject)
    if not tokens:
        return StructDirective(visibility=Public())
    token = tokens[0]
    if token.marker == FIELD_MARKER:
        return report(
            DiagnosticKind.CONFLICTING_NAMESPACE,
            token.span,
            subject,
            f"`{FIELD_MARKER}` annotates fields; classes take `@defew`",
        )
    if isinstance(token, Bare):
        return StructDirective(visibility=Private())
    if isinstance(token, Parenthesized):
        target = token.expression.text
        if not is_dotted_name(target):
            return malformed_type(
                token.span, subject, f"`{target}` is not an interface name"
            )
        # Interface factory methods carry no visibility of their own.
        return StructDirective(visibility=Public(), trait_target=target)
    if isinstance(token, Literal):
        if token.name != SCOPE_KEYWORD:
            return malformed_type(token.span, subject, f"unknown keyword `{token.name}`")
        scope = _scope_value(token.text)
        if scope is None:
            return malformed_type(
                token.span, subject, f"{token.text} is not a dotted scope path"
            )
        return StructDirective(visibility=Scoped(scope))
    if isinstance(token, Malformed):
        return malformed_type(token.span, subject, token.reason)
    raise TypeError(f"unexpected annotation token: {token!r}")


def _scope_value(text: str) -> str | None:
    try:
        value = ast.literal_eval(text)
    except (ValueError, SyntaxError):
        return None
    if not isinstance(value, str):
        return None
    value = value.strip()
    if not is_dotted_name(value):
        return None
    return value
