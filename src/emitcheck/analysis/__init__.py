"""Fact extraction, type resolution and correlation for emitcheck."""

from .correlation import correlate, merge_facts
from .extractor import extract_file_facts
from .facts import (
    AmbiguousBinding,
    CallSite,
    ConstantDeclaration,
    EmitterBinding,
    EmitterField,
    FileFacts,
    MergedFacts,
    MismatchRecord,
)
from .qualified import InferredType, QualifiedName

__all__ = [
    "AmbiguousBinding",
    "CallSite",
    "ConstantDeclaration",
    "EmitterBinding",
    "EmitterField",
    "FileFacts",
    "InferredType",
    "MergedFacts",
    "MismatchRecord",
    "QualifiedName",
    "correlate",
    "extract_file_facts",
    "merge_facts",
]
