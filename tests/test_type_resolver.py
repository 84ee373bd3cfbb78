from __future__ import annotations

import ast
import textwrap

import pytest

from emitcheck.analysis.bindings import (
    AssignDecl,
    DeclarationIndex,
    FieldDecl,
    FunctionDecl,
    UnknownDecl,
)
from emitcheck.analysis.qualified import QualifiedName
from emitcheck.analysis.type_resolver import resolve_type
from emitcheck.exceptions import UnresolvedDeclaration


def _index(source: str) -> tuple[ast.Module, DeclarationIndex]:
    tree = ast.parse(textwrap.dedent(source))
    return tree, DeclarationIndex(tree)


def _argument(tree: ast.Module, method: str = "notify") -> ast.Name:
    for node in ast.walk(tree):
        if (
            isinstance(node, ast.Call)
            and isinstance(node.func, ast.Attribute)
            and node.func.attr == method
        ):
            last = node.args[-1]
            assert isinstance(last, ast.Name)
            return last
    raise AssertionError(f"no call to {method}")


def _resolve(source: str, *, max_depth: int = 8):
    tree, index = _index(source)
    decl = index.lookup(_argument(tree))
    return decl, resolve_type(decl, "notify", lookup=index.lookup, max_depth=max_depth)


@pytest.mark.parametrize(
    "annotation",
    ["pkg.FooPayload", '"pkg.FooPayload"', "Optional[pkg.FooPayload]", "pkg.FooPayload | None"],
)
def test_parameter_annotation_resolves(annotation: str) -> None:
    decl, inferred = _resolve(
        f"""
        def publish(svc, payload: {annotation}):
            svc.notify(payload)
        """
    )
    assert isinstance(decl, FieldDecl)
    assert inferred.qualified == QualifiedName("pkg", "FooPayload")


def test_annotated_local_resolves_as_field() -> None:
    decl, inferred = _resolve(
        """
        def publish(svc):
            payload: pkg.FooPayload = build()
            svc.notify(payload)
        """
    )
    assert isinstance(decl, FieldDecl)
    assert str(inferred) == "pkg.FooPayload"


def test_unqualified_annotation_stays_unresolved() -> None:
    _, inferred = _resolve(
        """
        def publish(svc, payload: FooPayload, other: list[pkg.FooPayload]):
            svc.notify(payload)
        """
    )
    assert not inferred.resolved


def test_function_declaration_resolves_to_return_annotation() -> None:
    decl, inferred = _resolve(
        """
        def make_payload() -> pkg.FooPayload:
            return pkg.FooPayload()


        def publish(svc):
            svc.notify(make_payload)
        """
    )
    assert isinstance(decl, FunctionDecl)
    assert str(inferred) == "pkg.FooPayload"


def test_assignment_from_local_function_call_is_transitive() -> None:
    decl, inferred = _resolve(
        """
        def make_payload() -> pkg.BarPayload:
            return pkg.BarPayload()


        class Service:
            def publish(self):
                payload = make_payload()
                self.notify(payload)
        """
    )
    assert isinstance(decl, AssignDecl)
    assert inferred.qualified == QualifiedName("pkg", "BarPayload")


def test_assignment_from_qualified_call_is_not_tracked() -> None:
    _, inferred = _resolve(
        """
        def publish(svc):
            payload = pkg.make_payload()
            svc.notify(payload)
        """
    )
    assert not inferred.resolved
    assert inferred.text == "<unresolved:notify:AssignDecl>"


def test_assignment_alias_is_followed_but_not_propagated() -> None:
    _, inferred = _resolve(
        """
        def publish(svc, original: pkg.FooPayload):
            payload = original
            svc.notify(payload)
        """
    )
    assert not inferred.resolved


def test_circular_aliases_terminate() -> None:
    _, inferred = _resolve(
        """
        def publish(svc):
            first = second
            second = first
            svc.notify(first)
        """,
        max_depth=3,
    )
    assert not inferred.resolved


def test_self_referential_assignment_terminates() -> None:
    _, inferred = _resolve(
        """
        def publish(svc):
            payload = payload
            svc.notify(payload)
        """
    )
    assert not inferred.resolved


def test_tuple_assignment_pairs_targets_with_values() -> None:
    decl, inferred = _resolve(
        """
        def make_payload() -> pkg.FooPayload:
            ...


        def publish(svc):
            payload, count = make_payload(), 1
            svc.notify(payload)
        """
    )
    assert isinstance(decl, AssignDecl)
    assert str(inferred) == "pkg.FooPayload"


def test_loop_variable_is_unknown_declaration() -> None:
    decl, inferred = _resolve(
        """
        def publish(svc, payloads):
            for payload in payloads:
                svc.notify(payload)
        """
    )
    assert isinstance(decl, UnknownDecl)
    assert inferred.text == "<unresolved:notify:UnknownDecl>"


def test_first_declaration_in_scope_wins() -> None:
    decl, inferred = _resolve(
        """
        def publish(svc, payload: pkg.FooPayload):
            payload = pkg.other()
            svc.notify(payload)
        """
    )
    assert isinstance(decl, FieldDecl)
    assert str(inferred) == "pkg.FooPayload"


def test_method_bodies_skip_class_scope() -> None:
    tree, index = _index(
        """
        payload: pkg.ModulePayload = None


        class Service:
            payload: pkg.ClassPayload

            def publish(self):
                self.notify(payload)
        """
    )
    decl = index.lookup(_argument(tree))
    inferred = resolve_type(decl, "notify", lookup=index.lookup)
    assert str(inferred) == "pkg.ModulePayload"


def test_comprehension_target_shadows_parameter() -> None:
    decl, inferred = _resolve(
        """
        def publish(svc, payload: pkg.FooPayload, items):
            return [svc.notify(payload) for payload in items]
        """
    )
    assert isinstance(decl, UnknownDecl)
    assert not inferred.resolved


def test_comprehension_first_iterable_uses_enclosing_scope() -> None:
    decl, inferred = _resolve(
        """
        def publish(svc, payload: pkg.FooPayload):
            return [item for payload in svc.notify(payload) for item in payload]
        """
    )
    assert isinstance(decl, FieldDecl)
    assert str(inferred) == "pkg.FooPayload"


def test_walrus_in_comprehension_binds_in_function() -> None:
    decl, inferred = _resolve(
        """
        def make_payload() -> pkg.FooPayload:
            ...


        def publish(svc, items):
            built = [(payload := make_payload()) for _ in items]
            svc.notify(payload)
        """
    )
    assert isinstance(decl, AssignDecl)
    assert str(inferred) == "pkg.FooPayload"


def test_parameter_default_resolves_in_enclosing_scope() -> None:
    decl, inferred = _resolve(
        """
        payload: pkg.ModulePayload = None


        def publish(svc, hook=svc.notify(payload), payload: pkg.ParamPayload = None):
            return hook
        """
    )
    assert isinstance(decl, FieldDecl)
    assert str(inferred) == "pkg.ModulePayload"


def test_method_decorator_sees_class_body() -> None:
    _, inferred = _resolve(
        """
        payload: pkg.ModulePayload = None


        class Service:
            payload: pkg.ClassPayload

            @svc.notify(payload)
            def publish(self, payload: pkg.ParamPayload):
                return payload
        """
    )
    assert str(inferred) == "pkg.ClassPayload"


def test_missing_declaration_raises() -> None:
    with pytest.raises(UnresolvedDeclaration):
        resolve_type(None, "notify", lookup=lambda _node: None)
