from __future__ import annotations

import json
import tomllib
from pathlib import Path
from typing import List, Mapping

import libcst as cst
from pydantic import ValidationError

from defew.exceptions import DescriptionError
from defew.schema import DescriptionDocumentDTO, StructDescriptionDTO
from defew.synthesis.model import FieldDescriptor, SourceSpan, StructuralDescription
from defew.synthesis.tokens import parse_token_text


def _load_payload(path: Path) -> Mapping[str, object]:
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise DescriptionError(f"Failed to read {path}: {exc}") from exc
    try:
        if path.suffix == ".json":
            data = json.loads(raw)
        else:
            data = tomllib.loads(raw)
    except (json.JSONDecodeError, tomllib.TOMLDecodeError) as exc:
        raise DescriptionError(f"Failed to parse {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise DescriptionError(f"Description in {path} must be a table/object.")
    return data


def _check_expression(text: str, path: str, owner: str, role: str) -> None:
    try:
        cst.parse_expression(text)
    except cst.ParserSyntaxError as exc:
        raise DescriptionError(
            f"{path}: {role} `{text}` of {owner} is not a valid expression"
        ) from exc


def to_description(dto: StructDescriptionDTO, path: str) -> StructuralDescription:
    span = SourceSpan(path=path)
    fields: List[FieldDescriptor] = []
    for position, item in enumerate(dto.fields):
        owner = f"field `{item.name}`" if item.name else f"field #{position}"
        _check_expression(item.type, path, owner, "type")
        if item.default is not None:
            _check_expression(item.default, path, owner, "default")
        fields.append(
            FieldDescriptor(
                position=position,
                name=item.name,
                type_text=item.type,
                annotations=tuple(parse_token_text(text, span) for text in item.annotations),
                span=span,
                default_text=item.default,
            )
        )
    return StructuralDescription(
        type_identifier=dto.name,
        fields=tuple(fields),
        type_annotations=tuple(parse_token_text(text, span) for text in dto.annotations),
        generics=tuple(dto.generics),
        shape=dto.shape,
        qualname=dto.name,
        span=span,
    )


def load_descriptions(path: Path) -> List[StructuralDescription]:
    """Read a TOML or JSON description document.

    A document holds either one struct at the top level or a ``structs``
    array of them.
    """
    payload = _load_payload(path)
    try:
        if "structs" in payload:
            document = DescriptionDocumentDTO.model_validate(payload)
            structs = document.structs
        else:
            structs = [StructDescriptionDTO.model_validate(payload)]
    except ValidationError as exc:
        raise DescriptionError(f"Invalid description in {path}: {exc}") from exc
    return [to_description(dto, str(path)) for dto in structs]
