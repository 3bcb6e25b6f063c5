"""
Front-end neutral syntax model consumed by the extractor.

A source front-end (see `src/parser/csharp`) turns its concrete syntax tree into
these values. They only carry what graph construction needs: type declarations
with their base lists and methods, and the expressions found in method bodies.
Each value keeps an opaque `syntax` payload that the front-end's semantic model
uses to resolve it; the extractor never looks inside.

Values compare by identity so a semantic model can key lookups on them.
"""

from __future__ import annotations

import dataclasses
import enum
from typing import Any, Iterator


class DeclarationKind(enum.StrEnum):
    class_ = "class"
    interface = "interface"
    struct = "struct"
    record = "record"
    enum = "enum"


class ExpressionKind(enum.StrEnum):
    object_creation = "object_creation"
    invocation = "invocation"
    other = "other"


@dataclasses.dataclass(frozen=True, eq=False)
class Expression:
    """An expression inside a method body.

    Attributes:
        kind: What the expression does, as far as graph construction is concerned
        text: Source text, for logging
        children: Expressions nested inside this one, in source order
        syntax: Front-end payload used by the semantic model
    """

    kind: ExpressionKind
    text: str = ""
    children: tuple[Expression, ...] = ()
    syntax: Any = None

    def walk(self) -> Iterator[Expression]:
        """Yield this expression and every nested one in pre-order."""
        stack = [self]
        while stack:
            current = stack.pop()
            yield current
            stack.extend(reversed(current.children))


@dataclasses.dataclass(frozen=True, eq=False)
class MethodDeclaration:
    name: str
    modifiers: tuple[str, ...] = ()
    body: tuple[Expression, ...] = ()
    syntax: Any = None

    def descendant_expressions(self) -> Iterator[Expression]:
        """Every expression in the body at any depth, in source pre-order."""
        for expression in self.body:
            yield from expression.walk()


@dataclasses.dataclass(frozen=True, eq=False)
class TypeReference:
    """A type named in a base list."""

    name: str
    syntax: Any = None


@dataclasses.dataclass(frozen=True, eq=False)
class TypeDeclaration:
    kind: DeclarationKind
    name: str
    modifiers: tuple[str, ...] = ()
    base_types: tuple[TypeReference, ...] = ()
    methods: tuple[MethodDeclaration, ...] = ()
    nested_types: tuple[TypeDeclaration, ...] = ()
    syntax: Any = None

    def descendant_methods(self) -> Iterator[MethodDeclaration]:
        """Methods of this type, then those of its nested types, depth first."""
        yield from self.methods
        for nested in self.nested_types:
            yield from nested.descendant_methods()


@dataclasses.dataclass(frozen=True, eq=False)
class CompilationUnit:
    """One parsed source file.

    Attributes:
        file_path: Path of the file, relative to the parent of the analysis root folder
        declarations: Every type declaration in the file, nested ones included, in source order
    """

    file_path: str
    declarations: tuple[TypeDeclaration, ...] = ()
