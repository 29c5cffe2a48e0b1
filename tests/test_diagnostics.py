from __future__ import annotations

from pathlib import Path
import sys

import pytest


def _load():
    repo_root = Path(__file__).resolve().parents[1]
    sys.path.insert(0, str(repo_root / "src"))
    from defew import diagnostics
    from defew.exceptions import DefewError, DiagnosticError
    from defew.synthesis.model import SourceSpan
    from defew.synthesis.synthesizer import require_plans

    return diagnostics, DefewError, DiagnosticError, SourceSpan, require_plans


def test_render_includes_location_kind_and_message() -> None:
    diagnostics, _, _, SourceSpan, _ = _load()
    span = SourceSpan(path="records.py", start=(4, 27), end=(4, 33))
    diagnostic = diagnostics.report(
        diagnostics.DiagnosticKind.MULTIPLE_ANNOTATIONS, span, "field `a`"
    )
    assert diagnostic.message == "Defew accepts one annotation per element on field `a`"
    assert diagnostic.render() == (
        "records.py:4:27: error[multiple-annotations]: "
        "Defew accepts one annotation per element on field `a`"
    )


def test_malformed_helpers_append_expected_syntax() -> None:
    diagnostics, _, _, SourceSpan, _ = _load()
    span = SourceSpan(path="records.py")
    field = diagnostics.malformed_field(span, "field `a`", "empty parentheses")
    assert field.kind is diagnostics.DiagnosticKind.MALFORMED_SYNTAX
    assert field.detail == f"empty parentheses; expected {diagnostics.FIELD_SYNTAX}"
    struct = diagnostics.malformed_type(span, "class `A`", "bad scope")
    assert struct.detail.endswith(diagnostics.TYPE_SYNTAX)


def test_diagnostic_error_carries_the_diagnostic() -> None:
    diagnostics, DefewError, DiagnosticError, SourceSpan, _ = _load()
    diagnostic = diagnostics.report(
        diagnostics.DiagnosticKind.UNSUPPORTED_SHAPE, SourceSpan(path="x.py", start=(1, 0))
    )
    error = DiagnosticError(diagnostic)
    assert isinstance(error, DefewError)
    assert error.diagnostic is diagnostic
    assert str(error) == diagnostic.render()


def test_require_plans_raises_on_first_diagnostic() -> None:
    diagnostics, _, DiagnosticError, SourceSpan, require_plans = _load()
    from defew.synthesis.model import StructuralDescription

    empty = StructuralDescription(type_identifier="Empty", fields=(), span=SourceSpan("x.py"))
    with pytest.raises(DiagnosticError) as excinfo:
        require_plans([empty])
    assert excinfo.value.diagnostic.kind is diagnostics.DiagnosticKind.UNSUPPORTED_SHAPE
    assert require_plans([]) == []
