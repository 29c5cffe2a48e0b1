from __future__ import annotations

import json
from pathlib import Path
from typing import List, Optional

import typer

from defew.config import synthesis_config
from defew.diagnostics import Diagnostic
from defew.exceptions import DescriptionError, DiagnosticError
from defew.ingest.description import load_descriptions
from defew.ingest.python_ingest import collect_file_descriptions
from defew.refactor.engine import RefactorEngine
from defew.refactor.model import RefactorRequest
from defew.schema import BindingDTO, DiagnosticDTO, ParameterDTO, PlanDTO, RenderResponseDTO
from defew.synthesis.emission import render_constructor, render_impl
from defew.synthesis.model import Private, Scoped, SynthesisConfig, SynthesisPlan
from defew.synthesis.synthesizer import Synthesizer, require_plans

app = typer.Typer(add_completion=False)


def _load_synthesis_config(
    config: Optional[Path],
    constructor_name: Optional[str],
) -> SynthesisConfig:
    return synthesis_config(
        {"constructor_name": constructor_name},
        root=Path.cwd(),
        config_path=config,
    )


def _fail(diagnostic: Diagnostic) -> typer.Exit:
    typer.echo(diagnostic.render(), err=True)
    return typer.Exit(code=1)


def _visibility_label(plan: SynthesisPlan) -> str:
    if isinstance(plan.visibility, Scoped):
        return "scoped"
    if isinstance(plan.visibility, Private):
        return "private"
    return "public"


def plan_payload(plan: SynthesisPlan) -> PlanDTO:
    return PlanDTO(
        type_identifier=plan.type_identifier,
        qualname=plan.qualname,
        method_name=plan.method_name,
        visibility=_visibility_label(plan),
        scope=plan.visibility.token if isinstance(plan.visibility, Scoped) else None,
        trait_target=plan.trait_target,
        parameters=[
            ParameterDTO(name=parameter.name, type=parameter.type_text)
            for parameter in plan.parameters
        ],
        bindings=[
            BindingDTO(
                name=binding.name,
                kind=binding.kind,
                type=binding.type_text,
                expression=binding.expression,
            )
            for binding in plan.bindings
        ],
        construction={str(ref.key): ref.reference for ref in plan.construction},
        source=render_constructor(plan),
    )


def diagnostic_payload(diagnostic: Diagnostic) -> DiagnosticDTO:
    line, column = diagnostic.span.start
    return DiagnosticDTO(
        kind=diagnostic.kind.value,
        path=diagnostic.span.path,
        line=line,
        column=column,
        message=diagnostic.message,
    )


def _emit_json(plans: List[SynthesisPlan], diagnostics: List[Diagnostic]) -> None:
    response = RenderResponseDTO(
        plans=[plan_payload(plan) for plan in plans],
        diagnostics=[diagnostic_payload(diagnostic) for diagnostic in diagnostics],
    )
    typer.echo(json.dumps(response.model_dump(), indent=2, sort_keys=True))


@app.command()
def render(
    paths: List[Path] = typer.Argument(..., help="Python modules to read."),
    class_names: Optional[List[str]] = typer.Option(
        None, "--class", help="Only render these classes."
    ),
    config: Optional[Path] = typer.Option(None, "--config"),
    constructor_name: Optional[str] = typer.Option(None, "--constructor-name"),
    as_json: bool = typer.Option(False, "--json", help="Print plans as JSON."),
) -> None:
    """Print the synthesized constructor of every Defew class."""
    synthesizer = Synthesizer(config=_load_synthesis_config(config, constructor_name))
    wanted = set(class_names or [])
    plans: List[SynthesisPlan] = []
    for path in paths:
        try:
            descriptions = collect_file_descriptions(path)
        except OSError as exc:
            raise typer.BadParameter(f"Failed to read {path}: {exc}") from exc
        except DiagnosticError as exc:
            if as_json:
                _emit_json([], [exc.diagnostic])
            raise _fail(exc.diagnostic) from exc
        if wanted:
            descriptions = [
                description
                for description in descriptions
                if description.type_identifier in wanted or description.qualname in wanted
            ]
        try:
            plans.extend(require_plans(descriptions, synthesizer))
        except DiagnosticError as exc:
            if as_json:
                _emit_json(plans, [exc.diagnostic])
            raise _fail(exc.diagnostic) from exc
    if as_json:
        _emit_json(plans, [])
        return
    if not plans:
        typer.echo("No Defew classes found.", err=True)
        return
    for plan in plans:
        typer.echo(f"# {plan.qualname}")
        typer.echo(render_constructor(plan))


@app.command()
def apply(
    path: Path = typer.Argument(..., help="Python module to rewrite."),
    class_names: Optional[List[str]] = typer.Option(
        None, "--class", help="Only rewrite these classes."
    ),
    write: bool = typer.Option(False, "--write/--dry-run"),
    config: Optional[Path] = typer.Option(None, "--config"),
    constructor_name: Optional[str] = typer.Option(None, "--constructor-name"),
) -> None:
    """Insert synthesized constructors into a module."""
    engine = RefactorEngine(config=_load_synthesis_config(config, constructor_name))
    plan = engine.plan_constructors(
        RefactorRequest(target_path=str(path), class_names=list(class_names or []))
    )
    for warning in plan.warnings:
        typer.echo(f"warning: {warning}", err=True)
    if plan.diagnostics:
        raise _fail(plan.diagnostics[0])
    if plan.errors:
        for error in plan.errors:
            typer.echo(error, err=True)
        raise typer.Exit(code=1)
    for edit in plan.edits:
        if write:
            Path(edit.path).write_text(edit.replacement, encoding="utf-8")
            typer.echo(f"Wrote {edit.path}")
        else:
            typer.echo(edit.replacement, nl=False)


@app.command()
def describe(
    document: Path = typer.Argument(..., help="TOML or JSON description document."),
    config: Optional[Path] = typer.Option(None, "--config"),
    constructor_name: Optional[str] = typer.Option(None, "--constructor-name"),
    as_json: bool = typer.Option(False, "--json", help="Print plans as JSON."),
) -> None:
    """Render implementation blocks for a description document."""
    synthesizer = Synthesizer(config=_load_synthesis_config(config, constructor_name))
    try:
        descriptions = load_descriptions(document)
    except DescriptionError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1) from exc
    try:
        plans = require_plans(descriptions, synthesizer)
    except DiagnosticError as exc:
        if as_json:
            _emit_json([], [exc.diagnostic])
        raise _fail(exc.diagnostic) from exc
    if as_json:
        _emit_json(plans, [])
        return
    for index, plan in enumerate(plans):
        if index:
            typer.echo("")
        typer.echo(render_impl(plan), nl=False)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
