from __future__ import annotations

from typing import Callable

import libcst as cst

from defew.synthesis.model import (
    FIELD_MARKER,
    TYPE_MARKER,
    AnnotationToken,
    Bare,
    Literal,
    Malformed,
    Parenthesized,
    RawExpression,
    SourceSpan,
)

MARKERS = frozenset({FIELD_MARKER, TYPE_MARKER})

SpanFor = Callable[[cst.CSTNode], SourceSpan]

_EMPTY_MODULE = cst.Module(body=[])


def code_for(node: cst.CSTNode) -> str:
    return _EMPTY_MODULE.code_for_node(node).strip()


def terminal_name(expr: cst.BaseExpression) -> str | None:
    if isinstance(expr, cst.Name):
        return expr.value
    if isinstance(expr, cst.Attribute):
        return expr.attr.value
    return None


def marker_name(expr: cst.BaseExpression) -> str | None:
    """Return ``new``/``defew`` when ``expr`` is written with a marker."""
    target = expr
    if isinstance(expr, cst.Call):
        target = expr.func
    elif isinstance(expr, cst.Subscript):
        target = expr.value
    name = terminal_name(target)
    if name in MARKERS:
        return name
    return None


def call_text(expr: cst.BaseExpression) -> str:
    """Source text that calls ``expr`` with no arguments."""
    if isinstance(expr, (cst.Name, cst.Attribute, cst.Subscript)):
        return f"{code_for(expr)}()"
    return f"({code_for(expr)})()"


def is_literal(expr: cst.BaseExpression) -> bool:
    if isinstance(expr, (cst.Integer, cst.Float, cst.Imaginary, cst.SimpleString)):
        return True
    if isinstance(expr, cst.ConcatenatedString):
        return is_literal(expr.left) and is_literal(expr.right)
    if isinstance(expr, cst.Name):
        return expr.value in {"True", "False", "None"}
    if isinstance(expr, cst.UnaryOperation) and isinstance(
        expr.operator, (cst.Minus, cst.Plus)
    ):
        return isinstance(expr.expression, (cst.Integer, cst.Float, cst.Imaginary))
    return False


def parse_token(
    expr: cst.BaseExpression,
    span_for: SpanFor,
) -> AnnotationToken | None:
    """Classify one marker expression; ``None`` when it is not a marker."""
    marker = marker_name(expr)
    if marker is None:
        return None
    span = span_for(expr)
    if isinstance(expr, (cst.Name, cst.Attribute)):
        return Bare(marker=marker, span=span)
    if isinstance(expr, cst.Subscript):
        return Malformed(marker=marker, reason="bracket delimiters are not supported", span=span)
    assert isinstance(expr, cst.Call)
    if not expr.args:
        return Malformed(marker=marker, reason="empty parentheses", span=span)
    if len(expr.args) > 1:
        return Malformed(marker=marker, reason="more than one expression", span=span)
    arg = expr.args[0]
    if arg.star:
        return Malformed(marker=marker, reason="starred arguments are not supported", span=span)
    if arg.keyword is None:
        return Parenthesized(
            marker=marker,
            expression=RawExpression(text=code_for(arg.value), span=span_for(arg.value)),
            span=span,
        )
    if not is_literal(arg.value):
        return Malformed(
            marker=marker,
            reason=f"`{arg.keyword.value}=` expects a literal value",
            span=span,
        )
    return Literal(
        marker=marker,
        name=arg.keyword.value,
        text=code_for(arg.value),
        span=span,
    )


def parse_token_text(text: str, span: SourceSpan) -> AnnotationToken:
    """Parse an annotation written as text, as found in description documents."""
    try:
        expr = cst.parse_expression(text)
    except cst.ParserSyntaxError:
        return Malformed(marker="", reason=f"`{text}` is not a valid expression", span=span)
    token = parse_token(expr, lambda _node: span)
    if token is None:
        return Malformed(marker="", reason=f"`{text}` is not a Defew marker", span=span)
    return token
