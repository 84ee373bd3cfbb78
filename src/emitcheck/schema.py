from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel


class ConstantDTO(BaseModel):
    qualified_name: str
    literal_value: str
    declared_type: str
    declared_type_resolved: bool
    path: str
    line: int


class EmitterBindingDTO(BaseModel):
    local_name: str
    channel_constant: str
    path: str
    line: int


class CallSiteDTO(BaseModel):
    receiver_name: str
    method_name: str
    argument_name: str
    inferred_type: str
    inferred_type_resolved: bool
    path: str
    line: int


class EmitterFieldDTO(BaseModel):
    name: str
    type_name: str
    path: str
    line: int


class MismatchDTO(BaseModel):
    method_name: str
    channel_constant: str
    declared_type: str
    inferred_type: str
    path: str
    line: int


class AmbiguousBindingDTO(BaseModel):
    local_name: str
    chosen: EmitterBindingDTO
    rejected: EmitterBindingDTO


class ParseFailureDTO(BaseModel):
    path: str
    stage: str
    error: str


class AnalysisStatsDTO(BaseModel):
    files: int
    constants: int
    bindings: int
    call_sites: int
    mismatches: int


class AnalysisResponse(BaseModel):
    mismatches: List[MismatchDTO]
    constants: List[ConstantDTO] = []
    bindings: List[EmitterBindingDTO] = []
    call_sites: List[CallSiteDTO] = []
    emitter_fields: List[EmitterFieldDTO] = []
    ambiguous_bindings: List[AmbiguousBindingDTO] = []
    parse_failures: List[ParseFailureDTO] = []
    stats: Optional[AnalysisStatsDTO] = None
