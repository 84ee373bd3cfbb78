from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from emitcheck.analysis.qualified import InferredType, QualifiedName


@dataclass(frozen=True)
class ConstantDeclaration:
    qualified_name: QualifiedName
    literal_value: str
    declared_type: InferredType
    path: Path
    line: int


@dataclass(frozen=True)
class EmitterBinding:
    local_name: str
    channel_constant: QualifiedName
    path: Path
    line: int
    column: int = 0

    @property
    def position(self) -> tuple[str, int, int]:
        return (self.path.as_posix(), self.line, self.column)


@dataclass(frozen=True)
class CallSite:
    receiver_name: str
    method_name: str
    argument_name: str
    inferred_type: InferredType
    path: Path
    line: int


@dataclass(frozen=True)
class EmitterField:
    name: str
    type_name: QualifiedName
    path: Path
    line: int


@dataclass(frozen=True)
class MismatchRecord:
    method_name: str
    channel_constant: QualifiedName
    declared_type: QualifiedName
    inferred_type: QualifiedName
    path: Path
    line: int


@dataclass(frozen=True)
class AmbiguousBinding:
    local_name: str
    chosen: EmitterBinding
    rejected: EmitterBinding


@dataclass(frozen=True)
class FileFacts:
    """Facts collected from a single file by one extraction worker."""

    path: Path
    constants: tuple[ConstantDeclaration, ...] = ()
    bindings: tuple[EmitterBinding, ...] = ()
    call_sites: tuple[CallSite, ...] = ()
    emitter_fields: tuple[EmitterField, ...] = ()


@dataclass
class MergedFacts:
    constants: dict[QualifiedName, ConstantDeclaration] = field(default_factory=dict)
    bindings: dict[str, EmitterBinding] = field(default_factory=dict)
    call_sites: list[CallSite] = field(default_factory=list)
    emitter_fields: list[EmitterField] = field(default_factory=list)
    ambiguous_bindings: list[AmbiguousBinding] = field(default_factory=list)
