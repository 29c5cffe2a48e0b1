from __future__ import annotations

from pathlib import Path
from typing import List, Sequence

import libcst as cst

from defew.exceptions import DiagnosticError
from defew.ingest.python_ingest import collect_descriptions, is_selected
from defew.refactor.model import RefactorPlan, RefactorRequest, TextEdit
from defew.synthesis.emission import build_constructor
from defew.synthesis.model import SynthesisConfig, SynthesisPlan
from defew.synthesis.synthesizer import Synthesizer
from defew.synthesis.tokens import code_for


class RefactorEngine:
    def __init__(
        self,
        project_root: Path | None = None,
        config: SynthesisConfig | None = None,
    ) -> None:
        self.project_root = project_root
        self.config = config or SynthesisConfig()

    def plan_constructors(self, request: RefactorRequest) -> RefactorPlan:
        path = Path(request.target_path)
        if self.project_root and not path.is_absolute():
            path = self.project_root / path
        try:
            source = path.read_text(encoding="utf-8")
        except OSError as exc:
            return RefactorPlan(errors=[f"Failed to read {path}: {exc}"])
        return self.plan_source(source, str(path), request.class_names)

    def plan_source(
        self,
        source: str,
        path: str,
        class_names: Sequence[str] = (),
    ) -> RefactorPlan:
        try:
            descriptions = collect_descriptions(source, path)
        except DiagnosticError as exc:
            return RefactorPlan(
                diagnostics=[exc.diagnostic], errors=[exc.diagnostic.render()]
            )
        wanted = {name.strip() for name in class_names if name.strip()}
        synthesizer = Synthesizer(config=self.config)
        slots: List[SynthesisPlan | None] = []
        plans: List[SynthesisPlan] = []
        for description in descriptions:
            if wanted and not (
                description.type_identifier in wanted or description.qualname in wanted
            ):
                slots.append(None)
                continue
            result = synthesizer.synthesize(description)
            if result.diagnostic is not None:
                # No partial output: the first diagnostic aborts the whole file.
                return RefactorPlan(
                    diagnostics=[result.diagnostic],
                    errors=[result.diagnostic.render()],
                )
            assert result.plan is not None
            slots.append(result.plan)
            plans.append(result.plan)

        warnings: List[str] = []
        if wanted:
            found = {plan.type_identifier for plan in plans} | {plan.qualname for plan in plans}
            for name in sorted(wanted - found):
                warnings.append(f"No Defew class named {name} in {path}.")
        if not plans:
            warnings.append(f"No Defew classes found in {path}.")
            return RefactorPlan(warnings=warnings)

        module = cst.parse_module(source)
        transformer = _ConstructorTransformer(
            slots=slots,
            add_trait_base=self.config.add_trait_base,
        )
        new_module = module.visit(transformer)
        if any(plan.uses_const for plan in plans):
            new_module = _ensure_final_import(new_module)
        new_source = new_module.code
        if new_source == source:
            warnings.append("Constructors are already up to date.")
            return RefactorPlan(plans=plans, warnings=warnings)
        end_line = len(source.splitlines())
        edits = [
            TextEdit(
                path=path,
                start=(0, 0),
                end=(end_line, 0),
                replacement=new_source,
            )
        ]
        return RefactorPlan(edits=edits, plans=plans, warnings=warnings)


def _is_docstring(stmt: cst.CSTNode) -> bool:
    if not isinstance(stmt, cst.SimpleStatementLine) or not stmt.body:
        return False
    expr = stmt.body[0]
    return isinstance(expr, cst.Expr) and isinstance(expr.value, cst.SimpleString)


def _is_import(stmt: cst.CSTNode) -> bool:
    if not isinstance(stmt, cst.SimpleStatementLine):
        return False
    return any(isinstance(item, (cst.Import, cst.ImportFrom)) for item in stmt.body)


def _find_import_insert_index(body: list[cst.CSTNode]) -> int:
    insert_idx = 0
    if body and _is_docstring(body[0]):
        insert_idx = 1
    while insert_idx < len(body) and _is_import(body[insert_idx]):
        insert_idx += 1
    return insert_idx


def _module_expr_to_str(expr: cst.BaseExpression | None) -> str | None:
    if expr is None:
        return None
    if isinstance(expr, (cst.Name, cst.Attribute)):
        return code_for(expr)
    return None


def _has_typing_name_import(body: list[cst.CSTNode], name: str) -> bool:
    for stmt in body:
        if not isinstance(stmt, cst.SimpleStatementLine):
            continue
        for item in stmt.body:
            if not isinstance(item, cst.ImportFrom):
                continue
            if _module_expr_to_str(item.module) not in {"typing", "typing_extensions"}:
                continue
            if isinstance(item.names, cst.ImportStar):
                return True
            for alias in item.names:
                if alias.asname is not None:
                    continue
                if isinstance(alias.name, cst.Name) and alias.name.value == name:
                    return True
    return False


def _ensure_final_import(module: cst.Module) -> cst.Module:
    body = list(module.body)
    if _has_typing_name_import(body, "Final"):
        return module
    insert_idx = _find_import_insert_index(body)
    body.insert(
        insert_idx,
        cst.SimpleStatementLine(
            [
                cst.ImportFrom(
                    module=cst.Name("typing"),
                    names=[cst.ImportAlias(name=cst.Name("Final"))],
                )
            ]
        ),
    )
    return module.with_changes(body=body)


def _has_base(node: cst.ClassDef, target: str) -> bool:
    return any(code_for(arg.value) == target for arg in node.bases if arg.keyword is None)


class _ConstructorTransformer(cst.CSTTransformer):
    """Insert synthesized constructors into the selected classes.

    Classes are matched with the plans by traversal order, which is the
    same order the ingest collector used to describe them.
    """

    def __init__(self, *, slots: Sequence[SynthesisPlan | None], add_trait_base: bool) -> None:
        self._pending = list(slots)
        self._stack: List[SynthesisPlan | None] = []
        self.add_trait_base = add_trait_base

    def visit_ClassDef(self, node: cst.ClassDef) -> None:
        plan = self._pending.pop(0) if is_selected(node) else None
        self._stack.append(plan)

    def leave_ClassDef(
        self, original_node: cst.ClassDef, updated_node: cst.ClassDef
    ) -> cst.ClassDef:
        plan = self._stack.pop()
        if plan is None:
            return updated_node
        method = build_constructor(plan)
        if isinstance(updated_node.body, cst.IndentedBlock):
            statements = list(updated_node.body.body)
            block = updated_node.body
        else:
            statements = [cst.SimpleStatementLine(body=list(updated_node.body.body))]
            block = cst.IndentedBlock(body=[])
        replaced = False
        for idx, stmt in enumerate(statements):
            if isinstance(stmt, cst.FunctionDef) and stmt.name.value == plan.method_name:
                statements[idx] = method.with_changes(leading_lines=stmt.leading_lines)
                replaced = True
                break
        if not replaced:
            statements.append(method.with_changes(leading_lines=[cst.EmptyLine(indent=False)]))
        updated = updated_node.with_changes(body=block.with_changes(body=statements))
        if plan.trait_target and self.add_trait_base and not _has_base(updated, plan.trait_target):
            bases = list(updated.bases)
            bases.append(cst.Arg(cst.parse_expression(plan.trait_target)))
            updated = updated.with_changes(bases=bases)
        return updated
