from __future__ import annotations

import ast
import logging
from pathlib import Path
from typing import Mapping

from emitcheck.analysis.bindings import DeclarationIndex
from emitcheck.analysis.facts import (
    CallSite,
    ConstantDeclaration,
    EmitterBinding,
    EmitterField,
    FileFacts,
)
from emitcheck.analysis.qualified import InferredType, QualifiedName, selector_parts
from emitcheck.analysis.type_resolver import resolve_type
from emitcheck.analysis.visitors import ImportVisitor, module_leaf
from emitcheck.config import ExtractionConfig

logger = logging.getLogger(__name__)

_LITERAL_TYPES = (str, int, float)


def declared_type_from_comment(comment: str | None, config: ExtractionConfig) -> InferredType:
    """Payload type named by a constant's trailing comment, or the unknown sentinel."""
    if comment is None:
        return InferredType.placeholder(config.unknown_type)
    hint = config.comment_strip.sub("", comment, count=1).strip()
    if not hint or hint == config.unknown_type:
        return InferredType.placeholder(config.unknown_type)
    return InferredType.from_text(hint)


def _literal_value(node: ast.AST) -> str | None:
    if not isinstance(node, ast.Constant):
        return None
    if isinstance(node.value, bool) or not isinstance(node.value, _LITERAL_TYPES):
        return None
    return str(node.value)


class FactExtractor(ast.NodeVisitor):
    def __init__(
        self,
        *,
        path: Path,
        module_name: str,
        index: DeclarationIndex,
        comments: Mapping[int, str],
        config: ExtractionConfig,
        import_aliases: Mapping[str, str] | None = None,
    ) -> None:
        self.path = path
        self.package = module_leaf(module_name)
        self.index = index
        self.comments = comments
        self.config = config
        self.import_aliases = dict(import_aliases or {})
        self.emitter_type = QualifiedName.parse(config.emitter_type)
        self.constants: list[ConstantDeclaration] = []
        self.bindings: list[EmitterBinding] = []
        self.call_sites: list[CallSite] = []
        self.emitter_fields: list[EmitterField] = []

    def _canonical(self, name: QualifiedName) -> QualifiedName:
        if not self.config.canonicalize_imports:
            return name
        target = self.import_aliases.get(name.package)
        if target is None:
            return name
        return QualifiedName(module_leaf(target), name.name)

    def visit_Module(self, node: ast.Module) -> None:
        for stmt in node.body:
            self._check_constant(stmt)
        self.generic_visit(node)

    def _check_constant(self, stmt: ast.stmt) -> None:
        if isinstance(stmt, ast.Assign):
            if len(stmt.targets) != 1 or not isinstance(stmt.targets[0], ast.Name):
                return
            target = stmt.targets[0]
            value: ast.AST | None = stmt.value
        elif isinstance(stmt, ast.AnnAssign):
            if not isinstance(stmt.target, ast.Name):
                return
            target = stmt.target
            value = stmt.value
        else:
            return
        literal = _literal_value(value) if value is not None else None
        if literal is None or not target.id.startswith(self.config.constant_prefix):
            return
        line = stmt.end_lineno or stmt.lineno
        declared = declared_type_from_comment(self.comments.get(line), self.config)
        constant = ConstantDeclaration(
            qualified_name=QualifiedName(self.package, target.id),
            literal_value=literal,
            declared_type=declared,
            path=self.path,
            line=stmt.lineno,
        )
        logger.debug(
            "emitter const= %s event= %r type= %s",
            constant.qualified_name,
            literal,
            declared,
        )
        self.constants.append(constant)

    def visit_Call(self, node: ast.Call) -> None:
        for keyword in node.keywords:
            if keyword.arg is not None:
                self._check_binding(keyword.arg, keyword.value, keyword)
        self._check_call_site(node)
        self.generic_visit(node)

    def visit_Dict(self, node: ast.Dict) -> None:
        for key, value in zip(node.keys, node.values):
            if isinstance(key, ast.Constant) and isinstance(key.value, str):
                self._check_binding(key.value, value, key)
        self.generic_visit(node)

    def _check_binding(self, key: str, value: ast.AST, anchor: ast.AST) -> None:
        if not isinstance(value, ast.Call) or not value.args:
            return
        if selector_parts(value.func) is None:
            return
        channel = selector_parts(value.args[0])
        if channel is None:
            return
        binding = EmitterBinding(
            local_name=key,
            channel_constant=self._canonical(channel),
            path=self.path,
            line=getattr(anchor, "lineno", value.lineno),
            column=getattr(anchor, "col_offset", value.col_offset),
        )
        logger.debug("emitter: (%s) => (%s)", key, binding.channel_constant)
        self.bindings.append(binding)

    def _check_call_site(self, node: ast.Call) -> None:
        callee = selector_parts(node.func)
        if callee is None or not node.args:
            return
        last = node.args[-1]
        if not isinstance(last, ast.Name):
            return
        decl = self.index.lookup(last)
        if decl is None:
            logger.debug("%s: %s has no declaration in %s", callee, last.id, self.path)
            return
        inferred = resolve_type(
            decl,
            callee.name,
            lookup=self.index.lookup,
            max_depth=self.config.max_depth,
        )
        if inferred.qualified is not None:
            inferred = InferredType.of(self._canonical(inferred.qualified))
        self.call_sites.append(
            CallSite(
                receiver_name=callee.package,
                method_name=callee.name,
                argument_name=last.id,
                inferred_type=inferred,
                path=self.path,
                line=node.lineno,
            )
        )

    def visit_AnnAssign(self, node: ast.AnnAssign) -> None:
        target = node.target
        if isinstance(target, ast.Name):
            self._check_emitter_field(target.id, node.annotation, node.lineno)
        elif isinstance(target, ast.Attribute):
            self._check_emitter_field(target.attr, node.annotation, node.lineno)
        self.generic_visit(node)

    def visit_arg(self, node: ast.arg) -> None:
        self._check_emitter_field(node.arg, node.annotation, node.lineno)
        self.generic_visit(node)

    def _check_emitter_field(self, name: str, annotation: ast.AST | None, line: int) -> None:
        declared = selector_parts(annotation)
        if declared is None or self.emitter_type is None:
            return
        if self._canonical(declared) != self.emitter_type:
            return
        logger.debug("found an emitter: %s", name)
        self.emitter_fields.append(
            EmitterField(name=name, type_name=declared, path=self.path, line=line)
        )

    def facts(self) -> FileFacts:
        # A binding anywhere in the file counts, whether it precedes the call or not.
        local_names = {binding.local_name for binding in self.bindings}
        call_sites = tuple(
            call for call in self.call_sites if call.method_name in local_names
        )
        for call in call_sites:
            logger.debug(
                "checkemitter: %s.%s => %s L= %d",
                call.receiver_name,
                call.method_name,
                call.inferred_type,
                call.line,
            )
        return FileFacts(
            path=self.path,
            constants=tuple(self.constants),
            bindings=tuple(self.bindings),
            call_sites=call_sites,
            emitter_fields=tuple(self.emitter_fields),
        )


def extract_file_facts(
    tree: ast.Module,
    *,
    path: Path,
    module_name: str,
    comments: Mapping[int, str],
    config: ExtractionConfig,
    is_package: bool = False,
) -> FileFacts:
    imports = ImportVisitor(module_name, is_package=is_package)
    imports.visit(tree)
    extractor = FactExtractor(
        path=path,
        module_name=module_name,
        index=DeclarationIndex(tree),
        comments=comments,
        config=config,
        import_aliases=imports.imports,
    )
    extractor.visit(tree)
    return extractor.facts()
