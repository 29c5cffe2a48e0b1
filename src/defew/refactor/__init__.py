from defew.refactor.engine import RefactorEngine
from defew.refactor.model import RefactorPlan, RefactorRequest, TextEdit

__all__ = [
    "RefactorEngine",
    "RefactorPlan",
    "RefactorRequest",
    "TextEdit",
]
