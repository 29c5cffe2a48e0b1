from __future__ import annotations

from pathlib import Path
import sys


def _load():
    repo_root = Path(__file__).resolve().parents[1]
    sys.path.insert(0, str(repo_root / "src"))
    from defew.diagnostics import Diagnostic, DiagnosticKind
    from defew.synthesis import model
    from defew.synthesis.fields import resolve_field
    from defew.synthesis.structs import resolve_struct
    from defew.synthesis.tokens import parse_token_text

    return Diagnostic, DiagnosticKind, model, resolve_field, resolve_struct, parse_token_text


def _field(*annotations: str, name: str | None = "value", line: int = 3):
    _, _, model, _, _, parse_token_text = _load()
    tokens = tuple(
        parse_token_text(text, model.SourceSpan(path="m.py", start=(line, index)))
        for index, text in enumerate(annotations)
    )
    return model.FieldDescriptor(position=0, name=name, type_text="int", annotations=tokens)


def _struct(*annotations: str):
    _, _, model, _, _, parse_token_text = _load()
    tokens = tuple(
        parse_token_text(text, model.SourceSpan(path="m.py", start=(1, index)))
        for index, text in enumerate(annotations)
    )
    return model.StructuralDescription(
        type_identifier="Point",
        fields=(_field(),),
        type_annotations=tokens,
    )


def test_field_without_annotation_uses_default() -> None:
    _, _, model, resolve_field, _, _ = _load()
    assert resolve_field(_field()) == model.UseDefault()


def test_field_bare_marker_requires_parameter() -> None:
    _, _, model, resolve_field, _, _ = _load()
    assert resolve_field(_field("new")) == model.RequireParameter()


def test_field_expression_marker_computes() -> None:
    _, _, model, resolve_field, _, _ = _load()
    directive = resolve_field(_field("new(other * 2)"))
    assert isinstance(directive, model.ComputeFromExpression)
    assert directive.expression.text == "other * 2"


def test_field_const_marker_binds_constant() -> None:
    _, _, model, resolve_field, _, _ = _load()
    assert resolve_field(_field('new(const="x")')) == model.BindConstant('"x"')


def test_field_unknown_keyword_is_malformed() -> None:
    Diagnostic, DiagnosticKind, _, resolve_field, _, _ = _load()
    directive = resolve_field(_field("new(value=1)"))
    assert isinstance(directive, Diagnostic)
    assert directive.kind is DiagnosticKind.MALFORMED_SYNTAX
    assert "`value`" in directive.message
    assert "new(const=<literal>)" in directive.message


def test_field_malformed_message_names_field_and_syntax() -> None:
    Diagnostic, DiagnosticKind, _, resolve_field, _, _ = _load()
    directive = resolve_field(_field("new()"))
    assert isinstance(directive, Diagnostic)
    assert directive.kind is DiagnosticKind.MALFORMED_SYNTAX
    assert "field `value`" in directive.message
    assert "empty parentheses" in directive.message


def test_multiple_annotations_reported_before_shape() -> None:
    Diagnostic, DiagnosticKind, _, resolve_field, _, _ = _load()
    directive = resolve_field(_field("new()", "new[1]", line=7))
    assert isinstance(directive, Diagnostic)
    assert directive.kind is DiagnosticKind.MULTIPLE_ANNOTATIONS
    assert directive.span.start == (7, 1)


def test_type_marker_on_field_conflicts() -> None:
    Diagnostic, DiagnosticKind, _, resolve_field, _, _ = _load()
    directive = resolve_field(_field("defew(Factory)"))
    assert isinstance(directive, Diagnostic)
    assert directive.kind is DiagnosticKind.CONFLICTING_NAMESPACE


def test_unnamed_field_label_uses_position() -> None:
    Diagnostic, _, _, resolve_field, _, _ = _load()
    directive = resolve_field(_field("new()", name=None))
    assert isinstance(directive, Diagnostic)
    assert "field #0" in directive.message


def test_struct_without_annotation_is_public() -> None:
    _, _, model, _, resolve_struct, _ = _load()
    directive = resolve_struct(_struct())
    assert directive == model.StructDirective(visibility=model.Public(), trait_target=None)


def test_struct_bare_marker_is_private() -> None:
    _, _, model, _, resolve_struct, _ = _load()
    assert resolve_struct(_struct("defew")).visibility == model.Private()


def test_struct_interface_target() -> None:
    _, _, model, _, resolve_struct, _ = _load()
    directive = resolve_struct(_struct("defew(interfaces.SomeInterface)"))
    assert directive.trait_target == "interfaces.SomeInterface"
    assert directive.visibility == model.Public()


def test_struct_interface_must_be_a_name() -> None:
    Diagnostic, DiagnosticKind, _, _, resolve_struct, _ = _load()
    directive = resolve_struct(_struct("defew(make())"))
    assert isinstance(directive, Diagnostic)
    assert directive.kind is DiagnosticKind.MALFORMED_SYNTAX


def test_struct_scope_literal() -> None:
    _, _, model, _, resolve_struct, _ = _load()
    directive = resolve_struct(_struct('defew(scope="app.models")'))
    assert directive.visibility == model.Scoped("app.models")
    assert directive.trait_target is None


def test_struct_unparsable_scope_fails_loudly() -> None:
    Diagnostic, DiagnosticKind, _, _, resolve_struct, _ = _load()
    for text in ('defew(scope="not a path")', "defew(scope=3)", 'defew(scope="")'):
        directive = resolve_struct(_struct(text))
        assert isinstance(directive, Diagnostic), text
        assert directive.kind is DiagnosticKind.MALFORMED_SYNTAX, text


def test_struct_multiple_and_conflicting_markers() -> None:
    Diagnostic, DiagnosticKind, _, _, resolve_struct, _ = _load()
    multiple = resolve_struct(_struct("defew", "defew(Factory)"))
    assert isinstance(multiple, Diagnostic)
    assert multiple.kind is DiagnosticKind.MULTIPLE_ANNOTATIONS
    conflicting = resolve_struct(_struct("new"))
    assert isinstance(conflicting, Diagnostic)
    assert conflicting.kind is DiagnosticKind.CONFLICTING_NAMESPACE
