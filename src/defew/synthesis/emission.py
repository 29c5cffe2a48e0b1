from __future__ import annotations

from typing import List, Tuple

import libcst as cst

from defew.synthesis.model import Binding, Scoped, SynthesisPlan

_NO_SPACE = cst.SimpleWhitespace("")


def _expression(text: str) -> cst.BaseExpression:
    return cst.parse_expression(text)


def _tight_equal() -> cst.AssignEqual:
    return cst.AssignEqual(whitespace_before=_NO_SPACE, whitespace_after=_NO_SPACE)


def _generic_arguments(generics: Tuple[str, ...]) -> str:
    # PEP 695 parameters may carry bounds or defaults; only the name is an argument.
    names = [text.split(":", 1)[0].split("=", 1)[0].strip() for text in generics]
    return ", ".join(names)


def return_annotation_text(plan: SynthesisPlan) -> str:
    if plan.generics:
        return f"{plan.type_identifier}[{_generic_arguments(plan.generics)}]"
    return plan.type_identifier


def _binding_statement(binding: Binding) -> cst.SimpleStatementLine:
    target = cst.Name(binding.name)
    value = _expression(binding.expression)
    if binding.kind == "const":
        annotation: cst.BaseExpression = cst.Name("Final")
        if binding.type_text:
            annotation = cst.Subscript(
                value=cst.Name("Final"),
                slice=[cst.SubscriptElement(slice=cst.Index(value=_expression(binding.type_text)))],
            )
        statement: cst.BaseSmallStatement = cst.AnnAssign(
            target=target,
            annotation=cst.Annotation(annotation),
            value=value,
        )
    elif binding.type_text:
        statement = cst.AnnAssign(
            target=target,
            annotation=cst.Annotation(_expression(binding.type_text)),
            value=value,
        )
    else:
        statement = cst.Assign(targets=[cst.AssignTarget(target=target)], value=value)
    return cst.SimpleStatementLine([statement])


def _construction_call(plan: SynthesisPlan) -> cst.Call:
    args: List[cst.Arg] = []
    for ref in plan.construction:
        if plan.positional:
            args.append(cst.Arg(value=cst.Name(ref.reference)))
        else:
            args.append(
                cst.Arg(
                    value=cst.Name(ref.reference),
                    keyword=cst.Name(str(ref.key)),
                    equal=_tight_equal(),
                )
            )
    return cst.Call(func=cst.Name("cls"), args=args)


def build_constructor(plan: SynthesisPlan) -> cst.FunctionDef:
    params = [cst.Param(name=cst.Name("cls"))]
    for parameter in plan.parameters:
        params.append(
            cst.Param(
                name=cst.Name(parameter.name),
                annotation=cst.Annotation(_expression(parameter.type_text)),
            )
        )
    body: List[cst.BaseStatement] = []
    if isinstance(plan.visibility, Scoped):
        body.append(
            cst.SimpleStatementLine(
                [
                    cst.Expr(
                        cst.SimpleString(
                            f'"""Constructor restricted to the `{plan.visibility.token}` scope."""'
                        )
                    )
                ]
            )
        )
    body.extend(_binding_statement(binding) for binding in plan.bindings)
    body.append(cst.SimpleStatementLine([cst.Return(_construction_call(plan))]))
    return cst.FunctionDef(
        name=cst.Name(plan.method_name),
        params=cst.Parameters(params=params),
        body=cst.IndentedBlock(body=body),
        decorators=[cst.Decorator(decorator=cst.Name("classmethod"))],
        returns=cst.Annotation(cst.SimpleString(f'"{return_annotation_text(plan)}"')),
    )


def build_impl(plan: SynthesisPlan) -> cst.ClassDef:
    bases: List[cst.Arg] = []
    if plan.trait_target:
        bases.append(cst.Arg(_expression(plan.trait_target)))
    if plan.generics:
        bases.append(cst.Arg(_expression(f"Generic[{_generic_arguments(plan.generics)}]")))
    return cst.ClassDef(
        name=cst.Name(plan.type_identifier),
        bases=bases,
        body=cst.IndentedBlock(body=[build_constructor(plan)]),
    )


def render_constructor(plan: SynthesisPlan) -> str:
    return cst.Module(body=[build_constructor(plan)]).code


def _typing_import(plan: SynthesisPlan) -> cst.SimpleStatementLine | None:
    names: List[str] = []
    if plan.uses_const:
        names.append("Final")
    if plan.generics:
        names.append("Generic")
    if not names:
        return None
    return cst.SimpleStatementLine(
        [
            cst.ImportFrom(
                module=cst.Name("typing"),
                names=[cst.ImportAlias(name=cst.Name(name)) for name in names],
            )
        ]
    )


def render_impl(plan: SynthesisPlan) -> str:
    body: List[cst.BaseStatement] = []
    header = _typing_import(plan)
    if header is not None:
        body.append(header)
    impl = build_impl(plan)
    if header is not None:
        impl = impl.with_changes(leading_lines=[cst.EmptyLine(indent=False)] * 2)
    body.append(impl)
    return cst.Module(body=body).code
