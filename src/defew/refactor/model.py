from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Tuple

from defew.diagnostics import Diagnostic
from defew.synthesis.model import SynthesisPlan

Position = Tuple[int, int]


@dataclass(frozen=True)
class TextEdit:
    path: str
    start: Position
    end: Position
    replacement: str


@dataclass(frozen=True)
class RefactorRequest:
    target_path: str
    class_names: List[str] = field(default_factory=list)


@dataclass
class RefactorPlan:
    edits: List[TextEdit] = field(default_factory=list)
    plans: List[SynthesisPlan] = field(default_factory=list)
    diagnostics: List[Diagnostic] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
