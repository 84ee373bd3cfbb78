"""Identifier-to-declaration resolution for a single module.

Python's ``ast`` carries no name bindings, so this module supplies the
"declaration object" each identifier refers to. Lookups follow the lexical
scope chain: innermost comprehension or function, enclosing functions, then the
module. A class body is consulted only for statements written directly inside
it. Defaults, decorators, annotations and a comprehension's first iterable are
looked up where Python evaluates them, in the enclosing scope. The first
declaration of a name in a scope is the one that sticks.
"""

from __future__ import annotations

import ast
from dataclasses import dataclass
from typing import Callable, TypeAlias

from emitcheck.analysis.visitors import ParentAnnotator

_FUNCTION_NODES = (ast.FunctionDef, ast.AsyncFunctionDef, ast.Lambda)
_COMPREHENSION_NODES = (ast.ListComp, ast.SetComp, ast.DictComp, ast.GeneratorExp)
_SCOPE_NODES = (ast.Module, ast.ClassDef, *_FUNCTION_NODES, *_COMPREHENSION_NODES)


@dataclass(frozen=True)
class FunctionDecl:
    node: ast.FunctionDef | ast.AsyncFunctionDef

    @property
    def returns(self) -> ast.expr | None:
        return self.node.returns


@dataclass(frozen=True)
class FieldDecl:
    node: ast.AST
    annotation: ast.expr | None


@dataclass(frozen=True)
class AssignDecl:
    node: ast.AST
    value: ast.expr


@dataclass(frozen=True)
class UnknownDecl:
    node: ast.AST


Declaration: TypeAlias = FunctionDecl | FieldDecl | AssignDecl | UnknownDecl
DeclarationLookup: TypeAlias = Callable[[ast.Name], "Declaration | None"]


def declaration_kind(decl: Declaration) -> str:
    return type(decl).__name__


def _target_names(target: ast.AST) -> list[str]:
    return [
        node.id
        for node in ast.walk(target)
        if isinstance(node, ast.Name) and isinstance(node.ctx, ast.Store)
    ]


class _DeclarationCollector(ast.NodeVisitor):
    def __init__(self, scopes: dict[ast.AST, dict[str, Declaration]]) -> None:
        self.scopes = scopes
        self._stack: list[dict[str, Declaration]] = []
        self._owners: list[ast.AST] = []

    def _declare(self, name: str, decl: Declaration) -> None:
        self._stack[-1].setdefault(name, decl)

    def _enter(self, node: ast.AST) -> dict[str, Declaration]:
        table = self.scopes.setdefault(node, {})
        self._stack.append(table)
        self._owners.append(node)
        return table

    def _leave(self) -> None:
        self._stack.pop()
        self._owners.pop()

    def visit_Module(self, node: ast.Module) -> None:
        self._enter(node)
        self.generic_visit(node)
        self._leave()

    def _visit_function(self, node: ast.FunctionDef | ast.AsyncFunctionDef) -> None:
        self._declare(node.name, FunctionDecl(node))
        for decorator in node.decorator_list:
            self.visit(decorator)
        for default in [*node.args.defaults, *node.args.kw_defaults]:
            if default is not None:
                self.visit(default)
        self._enter(node)
        self._declare_arguments(node.args)
        for stmt in node.body:
            self.visit(stmt)
        self._leave()

    visit_FunctionDef = _visit_function
    visit_AsyncFunctionDef = _visit_function

    def visit_Lambda(self, node: ast.Lambda) -> None:
        for default in [*node.args.defaults, *node.args.kw_defaults]:
            if default is not None:
                self.visit(default)
        self._enter(node)
        self._declare_arguments(node.args)
        self.visit(node.body)
        self._leave()

    def _declare_arguments(self, args: ast.arguments) -> None:
        every = [*args.posonlyargs, *args.args, *args.kwonlyargs]
        if args.vararg is not None:
            every.append(args.vararg)
        if args.kwarg is not None:
            every.append(args.kwarg)
        for arg in every:
            self._declare(arg.arg, FieldDecl(arg, arg.annotation))

    def visit_ClassDef(self, node: ast.ClassDef) -> None:
        self._declare(node.name, UnknownDecl(node))
        for expr in [*node.decorator_list, *node.bases]:
            self.visit(expr)
        self._enter(node)
        for stmt in node.body:
            self.visit(stmt)
        self._leave()

    def _declare_target(self, statement: ast.AST, target: ast.AST, value: ast.expr) -> None:
        if isinstance(target, ast.Name):
            self._declare(target.id, AssignDecl(statement, value))
            return
        if (
            isinstance(target, (ast.Tuple, ast.List))
            and isinstance(value, (ast.Tuple, ast.List))
            and len(target.elts) == len(value.elts)
        ):
            for lhs, rhs in zip(target.elts, value.elts):
                self._declare_target(statement, lhs, rhs)
            return
        for name in _target_names(target):
            self._declare(name, UnknownDecl(statement))

    def visit_Assign(self, node: ast.Assign) -> None:
        for target in node.targets:
            self._declare_target(node, target, node.value)
        self.generic_visit(node)

    def visit_AnnAssign(self, node: ast.AnnAssign) -> None:
        if isinstance(node.target, ast.Name):
            self._declare(node.target.id, FieldDecl(node, node.annotation))
        self.generic_visit(node)

    def visit_AugAssign(self, node: ast.AugAssign) -> None:
        for name in _target_names(node.target):
            self._declare(name, UnknownDecl(node))
        self.generic_visit(node)

    def visit_NamedExpr(self, node: ast.NamedExpr) -> None:
        # := inside a comprehension binds in the nearest enclosing non-comprehension scope.
        depth = len(self._owners) - 1
        while depth > 0 and isinstance(self._owners[depth], _COMPREHENSION_NODES):
            depth -= 1
        self._stack[depth].setdefault(node.target.id, AssignDecl(node, node.value))
        self.generic_visit(node)

    def _visit_loop(self, node: ast.For | ast.AsyncFor) -> None:
        for name in _target_names(node.target):
            self._declare(name, UnknownDecl(node))
        self.generic_visit(node)

    visit_For = _visit_loop
    visit_AsyncFor = _visit_loop

    def _visit_with(self, node: ast.With | ast.AsyncWith) -> None:
        for item in node.items:
            if item.optional_vars is not None:
                for name in _target_names(item.optional_vars):
                    self._declare(name, UnknownDecl(node))
        self.generic_visit(node)

    visit_With = _visit_with
    visit_AsyncWith = _visit_with

    def visit_comprehension(self, node: ast.comprehension) -> None:
        for name in _target_names(node.target):
            self._declare(name, UnknownDecl(node))
        self.generic_visit(node)

    def _visit_comprehension_scope(
        self, node: ast.ListComp | ast.SetComp | ast.DictComp | ast.GeneratorExp
    ) -> None:
        first, *rest = node.generators
        self.visit(first.iter)
        self._enter(node)
        for name in _target_names(first.target):
            self._declare(name, UnknownDecl(first))
        for condition in first.ifs:
            self.visit(condition)
        for generator in rest:
            self.visit(generator)
        if isinstance(node, ast.DictComp):
            self.visit(node.key)
            self.visit(node.value)
        else:
            self.visit(node.elt)
        self._leave()

    visit_ListComp = _visit_comprehension_scope
    visit_SetComp = _visit_comprehension_scope
    visit_DictComp = _visit_comprehension_scope
    visit_GeneratorExp = _visit_comprehension_scope

    def visit_ExceptHandler(self, node: ast.ExceptHandler) -> None:
        if node.name:
            self._declare(node.name, UnknownDecl(node))
        self.generic_visit(node)

    def _visit_import(self, node: ast.Import | ast.ImportFrom) -> None:
        for alias in node.names:
            if alias.name == "*":
                continue
            local = alias.asname or alias.name.split(".")[0]
            self._declare(local, UnknownDecl(node))

    visit_Import = _visit_import
    visit_ImportFrom = _visit_import


def _evaluated_inside(scope: ast.AST, path: list[ast.AST]) -> bool:
    """Whether the node that ``path`` leads up from runs inside ``scope``'s own namespace."""
    child = path[-1]
    if isinstance(scope, (ast.FunctionDef, ast.AsyncFunctionDef, ast.ClassDef)):
        return any(child is stmt for stmt in scope.body)
    if isinstance(scope, ast.Lambda):
        return child is scope.body
    if isinstance(scope, _COMPREHENSION_NODES):
        first_iter = scope.generators[0].iter
        return not any(item is first_iter for item in path)
    return True


class DeclarationIndex:
    def __init__(self, tree: ast.Module) -> None:
        annotator = ParentAnnotator()
        annotator.visit(tree)
        self.parents = annotator.parents
        self._scopes: dict[ast.AST, dict[str, Declaration]] = {}
        _DeclarationCollector(self._scopes).visit(tree)

    def enclosing_scopes(self, node: ast.AST) -> list[ast.AST]:
        chain: list[ast.AST] = []
        path: list[ast.AST] = [node]
        current = self.parents.get(node)
        immediate = True
        while current is not None:
            if isinstance(current, _SCOPE_NODES) and _evaluated_inside(current, path):
                if immediate or not isinstance(current, ast.ClassDef):
                    chain.append(current)
                immediate = False
            path.append(current)
            current = self.parents.get(current)
        return chain

    def lookup(self, node: ast.Name) -> Declaration | None:
        for scope in self.enclosing_scopes(node):
            decl = self._scopes.get(scope, {}).get(node.id)
            if decl is not None:
                return decl
        return None
