from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class FieldDescriptionDTO(BaseModel):
    name: Optional[str] = None
    type: str
    annotations: List[str] = []
    default: Optional[str] = None


class StructDescriptionDTO(BaseModel):
    name: str
    fields: List[FieldDescriptionDTO] = []
    annotations: List[str] = []
    generics: List[str] = []
    shape: str = "record"


class DescriptionDocumentDTO(BaseModel):
    structs: List[StructDescriptionDTO] = Field(default_factory=list)


class ParameterDTO(BaseModel):
    name: str
    type: str


class BindingDTO(BaseModel):
    name: str
    kind: str
    type: Optional[str] = None
    expression: str


class PlanDTO(BaseModel):
    type_identifier: str
    qualname: str
    method_name: str
    visibility: str
    scope: Optional[str] = None
    trait_target: Optional[str] = None
    parameters: List[ParameterDTO] = []
    bindings: List[BindingDTO] = []
    construction: Dict[str, str] = {}
    source: str


class DiagnosticDTO(BaseModel):
    kind: str
    path: str
    line: int
    column: int
    message: str


class RenderResponseDTO(BaseModel):
    plans: List[PlanDTO] = []
    diagnostics: List[DiagnosticDTO] = []
