from __future__ import annotations

import ast
from dataclasses import dataclass, field
from typing import List, Sequence

import libcst as cst

from defew.diagnostics import Diagnostic, DiagnosticKind, report
from defew.exceptions import DiagnosticError
from defew.synthesis.fields import resolve_field
from defew.synthesis.model import (
    RECORD_SHAPE,
    Binding,
    BindConstant,
    ComputeFromExpression,
    ConstructionRef,
    FieldDescriptor,
    FieldDirective,
    Parameter,
    RequireParameter,
    StructDirective,
    StructuralDescription,
    SynthesisConfig,
    SynthesisPlan,
    UseDefault,
)
from defew.synthesis.naming import (
    RESERVED_NAMES,
    constructor_name,
    is_valid_identifier,
    placeholder_name,
)
from defew.synthesis.structs import resolve_struct
from defew.synthesis.tokens import call_text


@dataclass(frozen=True)
class SynthesisResult:
    plan: SynthesisPlan | None = None
    diagnostic: Diagnostic | None = None

    @property
    def ok(self) -> bool:
        return self.plan is not None


@dataclass
class Synthesizer:
    config: SynthesisConfig = field(default_factory=SynthesisConfig)

    def synthesize(self, description: StructuralDescription) -> SynthesisResult:
        shape_error = self.check_shape(description)
        if shape_error is not None:
            return SynthesisResult(diagnostic=shape_error)
        struct_directive = resolve_struct(description)
        if isinstance(struct_directive, Diagnostic):
            return SynthesisResult(diagnostic=struct_directive)
        field_directives: List[FieldDirective] = []
        for spec in description.fields:
            directive = resolve_field(spec)
            if isinstance(directive, Diagnostic):
                return SynthesisResult(diagnostic=directive)
            field_directives.append(directive)
        return SynthesisResult(
            plan=self.plan(description, field_directives, struct_directive)
        )

    def check_shape(self, description: StructuralDescription) -> Diagnostic | None:
        subject = f"class `{description.type_identifier}`"
        if description.shape != RECORD_SHAPE:
            return report(
                DiagnosticKind.UNSUPPORTED_SHAPE,
                description.span,
                subject,
                f"{description.shape} types have more than one variant",
            )
        if not description.fields:
            return report(
                DiagnosticKind.UNSUPPORTED_SHAPE,
                description.span,
                subject,
                "fieldless classes have nothing to construct",
            )
        named = [spec.name is not None for spec in description.fields]
        if any(named) and not all(named):
            return report(
                DiagnosticKind.UNSUPPORTED_SHAPE,
                description.span,
                subject,
                "fields must be either all named or all positional",
            )
        seen: set[str] = set()
        for spec in description.fields:
            if spec.name is None:
                continue
            if not is_valid_identifier(spec.name) or spec.name in RESERVED_NAMES:
                return report(
                    DiagnosticKind.UNSUPPORTED_SHAPE,
                    spec.span,
                    f"field {spec.label}",
                    "field name cannot be used as a constructor parameter",
                )
            if spec.name in seen:
                return report(
                    DiagnosticKind.UNSUPPORTED_SHAPE,
                    spec.span,
                    f"field {spec.label}",
                    "field is declared more than once",
                )
            seen.add(spec.name)
        return None

    def plan(
        self,
        description: StructuralDescription,
        field_directives: Sequence[FieldDirective],
        struct_directive: StructDirective,
    ) -> SynthesisPlan:
        parameters: List[Parameter] = []
        bindings: List[Binding] = []
        construction: List[ConstructionRef] = []
        for spec, directive in zip(description.fields, field_directives, strict=True):
            name = placeholder_name(spec, self.config)
            if isinstance(directive, RequireParameter):
                parameters.append(Parameter(name=name, type_text=spec.type_text))
            elif isinstance(directive, UseDefault):
                bindings.append(
                    Binding(
                        name=name,
                        kind="let",
                        type_text=spec.type_text,
                        expression=_default_expression(spec),
                    )
                )
            elif isinstance(directive, ComputeFromExpression):
                bindings.append(
                    Binding(
                        name=name,
                        kind="let",
                        type_text=None,
                        expression=directive.expression.text,
                    )
                )
            elif isinstance(directive, BindConstant):
                bindings.append(
                    Binding(
                        name=name,
                        kind="const",
                        type_text=spec.type_text,
                        expression=directive.literal,
                    )
                )
            else:
                raise TypeError(f"unexpected field directive: {directive!r}")
            key = spec.name if spec.name is not None else spec.position
            construction.append(ConstructionRef(key=key, reference=name))

        return SynthesisPlan(
            type_identifier=description.type_identifier,
            method_name=constructor_name(struct_directive.visibility, self.config),
            visibility=struct_directive.visibility,
            trait_target=struct_directive.trait_target,
            generics=description.generics,
            positional=description.positional,
            parameters=tuple(parameters),
            bindings=tuple(bindings),
            construction=tuple(construction),
            qualname=description.qualname or description.type_identifier,
        )


def _default_expression(spec: FieldDescriptor) -> str:
    if spec.default_text is not None:
        return spec.default_text
    type_text = spec.type_text
    # String annotations name the type without quotes at call sites.
    if type_text[:1] in {"'", '"'}:
        try:
            value = ast.literal_eval(type_text)
        except (ValueError, SyntaxError):
            value = None
        if isinstance(value, str):
            type_text = value
    try:
        return call_text(cst.parse_expression(type_text))
    except cst.ParserSyntaxError:
        return f"({type_text})()"


def require_plans(
    descriptions: Sequence[StructuralDescription],
    synthesizer: Synthesizer | None = None,
) -> List[SynthesisPlan]:
    """Plan every description, raising on the first diagnostic."""
    synthesizer = synthesizer or Synthesizer()
    plans: List[SynthesisPlan] = []
    for description in descriptions:
        result = synthesizer.synthesize(description)
        if result.diagnostic is not None:
            raise DiagnosticError(result.diagnostic)
        assert result.plan is not None
        plans.append(result.plan)
    return plans
