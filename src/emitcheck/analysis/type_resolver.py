"""Best-effort nominal type inference for payload identifiers.

Resolution is pattern based and deliberately shallow:

* a function declaration resolves to its return annotation;
* a parameter or annotated name resolves to its annotation;
* ``x = helper(...)`` where ``helper`` is a plain local function resolves to
  ``helper``'s return annotation.

Two shapes are known gaps and stay unresolved: ``x = y`` (the hop to ``y`` is
resolved and logged but its result is not returned) and ``x = mod.helper(...)``
(calls through a qualified reference are not looked up). Anything else
degrades to an unresolved placeholder; nothing here raises except when there
is no declaration at all.
"""

from __future__ import annotations

import ast
import logging

from emitcheck.analysis.bindings import (
    AssignDecl,
    Declaration,
    DeclarationLookup,
    FieldDecl,
    FunctionDecl,
    UnknownDecl,
    declaration_kind,
)
from emitcheck.analysis.qualified import InferredType, annotation_reference, selector_parts
from emitcheck.config import DEFAULT_MAX_DEPTH
from emitcheck.exceptions import UnresolvedDeclaration

logger = logging.getLogger(__name__)


def placeholder(tag: str, kind: str) -> InferredType:
    return InferredType.placeholder(f"<unresolved:{tag}:{kind}>")


def _annotated(annotation: ast.expr | None, tag: str, kind: str) -> InferredType:
    name = annotation_reference(annotation)
    if name is None:
        return placeholder(tag, kind)
    return InferredType.of(name)


def resolve_type(
    decl: Declaration | None,
    tag: str,
    *,
    lookup: DeclarationLookup,
    max_depth: int = DEFAULT_MAX_DEPTH,
    _depth: int = 0,
) -> InferredType:
    if decl is None:
        raise UnresolvedDeclaration(tag)
    kind = declaration_kind(decl)
    if _depth >= max_depth:
        logger.debug("%s: resolution depth %d exhausted", tag, _depth)
        return placeholder(tag, "depth")
    if isinstance(decl, FunctionDecl):
        return _annotated(decl.returns, tag, kind)
    if isinstance(decl, FieldDecl):
        return _annotated(decl.annotation, tag, kind)
    if isinstance(decl, AssignDecl):
        return _resolve_assignment(decl, tag, lookup=lookup, max_depth=max_depth, depth=_depth)
    if isinstance(decl, UnknownDecl):
        return placeholder(tag, kind)
    raise TypeError(f"unsupported declaration {decl!r}")


def _resolve_assignment(
    decl: AssignDecl,
    tag: str,
    *,
    lookup: DeclarationLookup,
    max_depth: int,
    depth: int,
) -> InferredType:
    value = decl.value
    if isinstance(value, ast.Name):
        hop = lookup(value)
        if hop is not None:
            # Aliases are followed for diagnostics only; the hop's type is not
            # propagated back to the caller.
            aliased = resolve_type(
                hop, f"{tag}-rhs", lookup=lookup, max_depth=max_depth, _depth=depth + 1
            )
            logger.debug("%s: alias of %s resolves to %s (not propagated)", tag, value.id, aliased)
        return placeholder(tag, declaration_kind(decl))
    if isinstance(value, ast.Call):
        qualified = selector_parts(value.func)
        if qualified is not None:
            logger.debug("%s: result of %s(...) is not tracked", tag, qualified)
            return placeholder(tag, declaration_kind(decl))
        if isinstance(value.func, ast.Name):
            callee = lookup(value.func)
            if callee is not None:
                return resolve_type(
                    callee,
                    f"{tag}-rhs-obj",
                    lookup=lookup,
                    max_depth=max_depth,
                    _depth=depth + 1,
                )
    return placeholder(tag, declaration_kind(decl))
