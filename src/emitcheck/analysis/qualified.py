from __future__ import annotations

import ast
import re
from dataclasses import dataclass

_IDENT = r"[A-Za-z_][A-Za-z0-9_]*"
_QUALIFIED_RE = re.compile(rf"^(?P<package>{_IDENT})\.(?P<name>{_IDENT})$")


@dataclass(frozen=True, order=True)
class QualifiedName:
    package: str
    name: str

    def __str__(self) -> str:
        return f"{self.package}.{self.name}"

    @classmethod
    def parse(cls, text: str) -> QualifiedName | None:
        match = _QUALIFIED_RE.match(text.strip())
        if match is None:
            return None
        return cls(match.group("package"), match.group("name"))


@dataclass(frozen=True)
class InferredType:
    """A best-effort nominal type; only ``qualified`` values take part in comparisons."""

    text: str
    qualified: QualifiedName | None = None

    @property
    def resolved(self) -> bool:
        return self.qualified is not None

    def __str__(self) -> str:
        return self.text

    @classmethod
    def of(cls, name: QualifiedName) -> InferredType:
        return cls(text=str(name), qualified=name)

    @classmethod
    def placeholder(cls, text: str) -> InferredType:
        return cls(text=text, qualified=None)

    @classmethod
    def from_text(cls, text: str) -> InferredType:
        name = QualifiedName.parse(text)
        if name is None:
            return cls.placeholder(text)
        return cls.of(name)


def selector_parts(node: ast.AST | None) -> QualifiedName | None:
    """Return ``pkg.Name`` for a two-part attribute reference, else ``None``."""
    if isinstance(node, ast.Attribute) and isinstance(node.value, ast.Name):
        return QualifiedName(node.value.id, node.attr)
    return None


def _is_none(node: ast.AST) -> bool:
    return isinstance(node, ast.Constant) and node.value is None


def annotation_reference(node: ast.AST | None) -> QualifiedName | None:
    """Qualified type named by an annotation.

    Accepts ``pkg.T``, ``"pkg.T"``, ``Optional[pkg.T]`` and ``pkg.T | None``.
    """
    if node is None:
        return None
    direct = selector_parts(node)
    if direct is not None:
        return direct
    if isinstance(node, ast.Constant) and isinstance(node.value, str):
        return QualifiedName.parse(node.value)
    if isinstance(node, ast.BinOp) and isinstance(node.op, ast.BitOr):
        if _is_none(node.right):
            return annotation_reference(node.left)
        if _is_none(node.left):
            return annotation_reference(node.right)
        return None
    if isinstance(node, ast.Subscript):
        head = node.value
        head_name = head.attr if isinstance(head, ast.Attribute) else getattr(head, "id", None)
        if head_name == "Optional":
            return annotation_reference(node.slice)
    return None
