"""Fixtures for extractor tests: a stub semantic model and symbol builders."""

import pytest

from src.analysis.exceptions import ResolutionError
from src.analysis.semantic import MethodSymbol, ParameterSymbol, SymbolKind, TypeSymbol, namespace_from_name


class StubSemanticModel:
    """Semantic model answering from explicit lookup tables.

    Syntax values compare by identity, so they key the tables directly.
    Anything not registered resolves to None.
    """

    def __init__(self):
        self.declared = {}
        self.types = {}
        self.invocations = {}
        self.failing = set()

    def _answer(self, table, syntax):
        if syntax in self.failing:
            raise ResolutionError(f"cannot resolve {syntax!r}")
        return table.get(syntax)

    def get_declared_symbol(self, declaration):
        return self._answer(self.declared, declaration)

    def get_type_info(self, syntax):
        return self._answer(self.types, syntax)

    def get_symbol_info(self, invocation):
        return self._answer(self.invocations, invocation)


@pytest.fixture
def semantic_model() -> StubSemanticModel:
    return StubSemanticModel()


@pytest.fixture
def namespace():
    return namespace_from_name("Shop.Orders")


@pytest.fixture
def make_type(namespace):
    def _make(name: str, kind: SymbolKind = SymbolKind.class_) -> TypeSymbol:
        return TypeSymbol(name=name, kind=kind, containing_namespace=namespace)

    return _make


@pytest.fixture
def make_method():
    def _make(name: str, owner: TypeSymbol, parameters=(), return_type: str = "void") -> MethodSymbol:
        return MethodSymbol(
            name=name,
            containing_type=owner,
            parameters=tuple(ParameterSymbol(n, t) for n, t in parameters),
            return_type=return_type,
        )

    return _make
