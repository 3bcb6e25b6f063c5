"""
Symbols and the semantic oracle interface.

The extractor asks a `SemanticModel` three questions:
  - which symbol does this declaration declare?
  - which type does this type reference / object creation denote?
  - which symbol does this invocation call?

Any answer may be `None` (or a raised `ResolutionError`), which means the reference
could not be resolved and the corresponding triple is dropped.
"""

from __future__ import annotations

import dataclasses
import enum
from typing import Protocol, Union

from src.analysis.syntax import Expression, MethodDeclaration, TypeDeclaration, TypeReference


class SymbolKind(enum.StrEnum):
    class_ = "class"
    interface = "interface"
    struct = "struct"
    enum = "enum"
    delegate = "delegate"
    method = "method"
    other = "other"


@dataclasses.dataclass(frozen=True)
class NamespaceSymbol:
    """A namespace; the global namespace has an empty name and no parent."""

    name: str
    containing_namespace: NamespaceSymbol | None = None


@dataclasses.dataclass(frozen=True)
class TypeSymbol:
    name: str
    kind: SymbolKind
    containing_namespace: NamespaceSymbol | None = None
    containing_type: TypeSymbol | None = None


@dataclasses.dataclass(frozen=True)
class ParameterSymbol:
    name: str
    type_name: str


@dataclasses.dataclass(frozen=True)
class MethodSymbol:
    name: str
    containing_type: TypeSymbol
    parameters: tuple[ParameterSymbol, ...] = ()
    return_type: str = "void"

    @property
    def kind(self) -> SymbolKind:
        return SymbolKind.method

    @property
    def containing_namespace(self) -> NamespaceSymbol | None:
        return self.containing_type.containing_namespace


Symbol = Union[TypeSymbol, MethodSymbol]


def namespace_chain(namespace: NamespaceSymbol | None) -> list[str]:
    """Names from the outermost namespace inwards.

    Walks the parent pointers iteratively, so the depth of nesting is not bounded
    by the interpreter's recursion limit.
    """
    names: list[str] = []
    current = namespace
    while current is not None and current.name:
        names.append(current.name)
        current = current.containing_namespace
    names.reverse()
    return names


def qualify(namespace: NamespaceSymbol | None, *names: str) -> str:
    """Fold the namespace chain and the given names into a dotted full name."""
    return ".".join([*namespace_chain(namespace), *names])


def namespace_from_name(full_name: str) -> NamespaceSymbol | None:
    """Build a parent-linked namespace chain from 'A.B.C'."""
    namespace = None
    for part in full_name.split("."):
        if part:
            namespace = NamespaceSymbol(part, namespace)
    return namespace


class SemanticModel(Protocol):
    """Resolution oracle supplied by the source front-end."""

    def get_declared_symbol(
        self, declaration: TypeDeclaration | MethodDeclaration
    ) -> Symbol | None:
        ...

    def get_type_info(self, syntax: TypeReference | Expression) -> TypeSymbol | None:
        ...

    def get_symbol_info(self, invocation: Expression) -> Symbol | None:
        ...
