"""Positioned diagnostics for constructor synthesis.

Every failure inside the resolvers and the synthesizer is returned as a
``Diagnostic`` value. Only the outer boundaries (``require_plans``, source
ingest and the CLI) turn one into an exception or an exit code.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from defew.synthesis.model import SourceSpan


class DiagnosticKind(str, Enum):
    UNSUPPORTED_SHAPE = "unsupported-shape"
    MULTIPLE_ANNOTATIONS = "multiple-annotations"
    CONFLICTING_NAMESPACE = "conflicting-annotation-namespace"
    MALFORMED_SYNTAX = "malformed-annotation-syntax"


_MESSAGES: dict[DiagnosticKind, str] = {
    DiagnosticKind.UNSUPPORTED_SHAPE: (
        "Defew only supports single-variant record classes with at least one field"
    ),
    DiagnosticKind.MULTIPLE_ANNOTATIONS: "Defew accepts one annotation per element",
    DiagnosticKind.CONFLICTING_NAMESPACE: (
        "annotation marker belongs to the other element's namespace"
    ),
    DiagnosticKind.MALFORMED_SYNTAX: "malformed Defew annotation",
}

FIELD_SYNTAX = "new, new(<expression>) or new(const=<literal>)"
TYPE_SYNTAX = '@defew, @defew(<Interface>) or @defew(scope="<dotted.scope>")'


@dataclass(frozen=True)
class Diagnostic:
    kind: DiagnosticKind
    span: SourceSpan
    subject: str = ""
    detail: str = ""

    @property
    def message(self) -> str:
        parts = [_MESSAGES[self.kind]]
        if self.subject:
            parts.append(f"on {self.subject}")
        text = " ".join(parts)
        if self.detail:
            text = f"{text}: {self.detail}"
        return text

    def render(self) -> str:
        return f"{self.span.label()}: error[{self.kind.value}]: {self.message}"


def report(
    kind: DiagnosticKind,
    location: SourceSpan,
    subject: str = "",
    detail: str = "",
) -> Diagnostic:
    return Diagnostic(kind=kind, span=location, subject=subject, detail=detail)


def malformed_field(location: SourceSpan, subject: str, reason: str) -> Diagnostic:
    return report(
        DiagnosticKind.MALFORMED_SYNTAX,
        location,
        subject,
        f"{reason}; expected {FIELD_SYNTAX}",
    )


def malformed_type(location: SourceSpan, subject: str, reason: str) -> Diagnostic:
    return report(
        DiagnosticKind.MALFORMED_SYNTAX,
        location,
        subject,
        f"{reason}; expected {TYPE_SYNTAX}",
    )
