"""
Project-wide C# symbol table answering the extractor's resolution questions.

The model is built once per project from every compilation unit, then shared
read-only by the extraction workers. Resolution is best effort and purely
syntactic:

  - Type names are looked up through nested types, the enclosing namespace
    chain, the file's using directives, and finally by a unique simple name.
  - Receiver types of invocations are inferred from locals, parameters, fields,
    properties, `this`/`base`, casts, object creations and return types of
    already-resolved calls. Conditional access (`x?.M()`) is typed like `x.M()`.
  - Overloads are picked by argument count. A lone method of that name is used
    whatever its arity; several candidates with no arity match leave the call
    unresolved.

Anything declared outside the analyzed sources (framework and package types)
does not resolve, so the corresponding triples are dropped.
"""

from __future__ import annotations

import dataclasses
import re
from collections import defaultdict
from typing import Iterable

from tree_sitter import Node

from src.analysis.semantic import (
    MethodSymbol,
    ParameterSymbol,
    Symbol,
    SymbolKind,
    TypeSymbol,
    namespace_chain,
    qualify,
)
from src.analysis.syntax import (
    CompilationUnit,
    DeclarationKind,
    Expression,
    ExpressionKind,
    MethodDeclaration,
    TypeDeclaration,
    TypeReference,
)
from src.parser.csharp.syntax_builder import LocalVariable, Scope, node_text
from src.utils.logging import get_logger

logger = get_logger(__name__)

DECLARATION_SYMBOL_KINDS: dict[DeclarationKind, SymbolKind] = {
    DeclarationKind.class_: SymbolKind.class_,
    DeclarationKind.record: SymbolKind.class_,
    DeclarationKind.interface: SymbolKind.interface,
    DeclarationKind.struct: SymbolKind.struct,
    DeclarationKind.enum: SymbolKind.enum,
}

MAX_INFERENCE_DEPTH = 16

_ARRAY_SUFFIX = re.compile(r"(\[[,\s]*\])+$")

# (dotted namespace, enclosing type names)
ContainerKey = tuple[str, tuple[str, ...]]


def simple_type_name(type_text: str) -> str:
    """Strip generic arguments, nullability, arrays and the `global::` alias."""
    name = type_text.strip()
    if name.startswith("global::"):
        name = name[len("global::"):]
    if "<" in name:
        name = name[:name.index("<")]
    name = _ARRAY_SUFFIX.sub("", name).rstrip("?").strip()
    return name


@dataclasses.dataclass
class _MethodContext:
    type_symbol: TypeSymbol
    scope: Scope
    source: bytes
    parameters: dict[str, str]
    locals: dict[str, LocalVariable]


class CSharpSemanticModel:
    """Symbol table over every compilation unit of one project."""

    def __init__(self, units: Iterable[CompilationUnit]):
        self._type_symbols: dict[TypeDeclaration, TypeSymbol] = {}
        self._method_symbols: dict[MethodDeclaration, MethodSymbol] = {}
        self._declarations: dict[TypeSymbol, list[TypeDeclaration]] = defaultdict(list)
        self._types_by_name: dict[str, list[TypeSymbol]] = defaultdict(list)
        self._container_keys: dict[TypeSymbol, ContainerKey] = {}
        self._symbols_by_path: dict[tuple[str, tuple[str, ...]], TypeSymbol] = {}
        self._methods_by_type: dict[TypeSymbol, list[MethodSymbol]] = defaultdict(list)
        self._members_by_type: dict[TypeSymbol, dict[str, str]] = defaultdict(dict)
        self._expression_owners: dict[Expression, MethodDeclaration] = {}
        self._reference_owners: dict[TypeReference, TypeDeclaration] = {}
        self._contexts: dict[MethodDeclaration, _MethodContext] = {}

        for unit in units:
            self._index_unit(unit)

        logger.debug(
            f"Semantic model indexed {len(self._container_keys)} types "
            f"and {len(self._method_symbols)} methods"
        )

    # ---- indexing ---------------------------------------------------------

    def _index_unit(self, unit: CompilationUnit) -> None:
        # Outer declarations precede nested ones, so containing types are indexed first.
        for declaration in unit.declarations:
            symbol = self._index_type(declaration)
            for reference in declaration.base_types:
                self._reference_owners[reference] = declaration
            for method in declaration.methods:
                self._index_method(method, symbol)

    def _index_type(self, declaration: TypeDeclaration) -> TypeSymbol:
        scope: Scope = declaration.syntax.scope
        namespace_name = qualify(scope.namespace)
        containing_type = (
            self._symbols_by_path.get((namespace_name, scope.type_path)) if scope.type_path else None
        )

        symbol = TypeSymbol(
            name=declaration.name,
            kind=DECLARATION_SYMBOL_KINDS[declaration.kind],
            containing_namespace=scope.namespace,
            containing_type=containing_type,
        )
        self._type_symbols[declaration] = symbol
        self._declarations[symbol].append(declaration)

        if symbol not in self._container_keys:
            self._container_keys[symbol] = (namespace_name, scope.type_path)
            self._types_by_name[declaration.name].append(symbol)
            self._symbols_by_path[(namespace_name, (*scope.type_path, declaration.name))] = symbol

        self._members_by_type[symbol].update(declaration.syntax.members)
        return symbol

    def _index_method(self, method: MethodDeclaration, type_symbol: TypeSymbol) -> None:
        symbol = MethodSymbol(
            name=method.name,
            containing_type=type_symbol,
            parameters=tuple(
                ParameterSymbol(name, type_name) for name, type_name in method.syntax.parameters
            ),
            return_type=method.syntax.return_type,
        )
        self._method_symbols[method] = symbol
        self._methods_by_type[type_symbol].append(symbol)
        for expression in method.descendant_expressions():
            self._expression_owners[expression] = method

    # ---- SemanticModel ----------------------------------------------------

    def get_declared_symbol(self, declaration: TypeDeclaration | MethodDeclaration) -> Symbol | None:
        if isinstance(declaration, TypeDeclaration):
            return self._type_symbols.get(declaration)
        if isinstance(declaration, MethodDeclaration):
            return self._method_symbols.get(declaration)
        return None

    def get_type_info(self, syntax: TypeReference | Expression) -> TypeSymbol | None:
        if isinstance(syntax, TypeReference):
            owner = self._reference_owners.get(syntax)
            if owner is None:
                return None
            return self.lookup_type(syntax.name, owner.syntax.scope.enter_type(owner.name))

        if isinstance(syntax, Expression) and syntax.kind == ExpressionKind.object_creation:
            context = self._context_for(syntax)
            if context is None:
                return None
            return self._creation_type(syntax.syntax, context)

        return None

    def get_symbol_info(self, invocation: Expression) -> Symbol | None:
        if invocation.kind != ExpressionKind.invocation:
            return None
        context = self._context_for(invocation)
        if context is None:
            return None
        return self._resolve_invocation(invocation.syntax, context, depth=0)

    # ---- type lookup ------------------------------------------------------

    def lookup_type(self, type_text: str, scope: Scope) -> TypeSymbol | None:
        """Resolve a type name as written at `scope`."""
        name = simple_type_name(type_text)
        if not name:
            return None

        if "." in name:
            return self._lookup_qualified(name, scope)

        candidates = self._types_by_name.get(name)
        if not candidates:
            return None

        by_key = {self._container_keys[c]: c for c in candidates}
        namespace_names = namespace_chain(scope.namespace)
        namespace_name = ".".join(namespace_names)

        for i in range(len(scope.type_path), 0, -1):
            found = by_key.get((namespace_name, scope.type_path[:i]))
            if found is not None:
                return found

        for i in range(len(namespace_names), -1, -1):
            found = by_key.get((".".join(namespace_names[:i]), ()))
            if found is not None:
                return found

        for using in scope.usings:
            found = by_key.get((using, ()))
            if found is not None:
                return found

        if len(candidates) == 1:
            return candidates[0]
        return None

    def _lookup_qualified(self, name: str, scope: Scope) -> TypeSymbol | None:
        last = name.rsplit(".", 1)[1]
        matches = [
            candidate
            for candidate in self._types_by_name.get(last, ())
            if self.full_name(candidate) == name or self.full_name(candidate).endswith("." + name)
        ]
        if len(matches) == 1:
            return matches[0]
        for candidate in matches:
            namespace_name = self._container_keys[candidate][0]
            if namespace_name in scope.usings or namespace_name == qualify(scope.namespace):
                return candidate
        return matches[0] if matches else None

    def full_name(self, symbol: TypeSymbol) -> str:
        namespace_name, type_path = self._container_keys[symbol]
        return ".".join(part for part in (namespace_name, *type_path, symbol.name) if part)

    def _member_scope(self, symbol: TypeSymbol) -> Scope:
        declaration = self._declarations[symbol][0]
        return declaration.syntax.scope.enter_type(declaration.name)

    def base_types(self, symbol: TypeSymbol) -> list[TypeSymbol]:
        bases: list[TypeSymbol] = []
        for declaration in self._declarations.get(symbol, ()):
            for reference in declaration.base_types:
                base = self.get_type_info(reference)
                if base is not None and base not in bases:
                    bases.append(base)
        return bases

    # ---- member lookup ----------------------------------------------------

    def find_method(
        self,
        symbol: TypeSymbol,
        name: str,
        argument_count: int,
        visited: set[TypeSymbol] | None = None,
    ) -> MethodSymbol | None:
        """Find a method by name on a type or its bases, preferring a matching arity."""
        visited = visited if visited is not None else set()
        if symbol in visited:
            return None
        visited.add(symbol)

        methods = [m for m in self._methods_by_type.get(symbol, ()) if m.name == name]
        for method in methods:
            if len(method.parameters) == argument_count:
                return method
        if len(methods) == 1:
            return methods[0]

        for base in self.base_types(symbol):
            found = self.find_method(base, name, argument_count, visited)
            if found is not None:
                return found
        return None

    def member_type(
        self, symbol: TypeSymbol, name: str, visited: set[TypeSymbol] | None = None
    ) -> TypeSymbol | None:
        """Type of a field or property, searched through the base types."""
        visited = visited if visited is not None else set()
        if symbol in visited:
            return None
        visited.add(symbol)

        type_text = self._members_by_type.get(symbol, {}).get(name)
        if type_text:
            return self.lookup_type(type_text, self._member_scope(symbol))
        for base in self.base_types(symbol):
            found = self.member_type(base, name, visited)
            if found is not None:
                return found
        return None

    # ---- expressions ------------------------------------------------------

    def _context_for(self, expression: Expression) -> _MethodContext | None:
        method = self._expression_owners.get(expression)
        if method is None:
            return None

        context = self._contexts.get(method)
        if context is None:
            syntax = method.syntax
            context = _MethodContext(
                type_symbol=self._method_symbols[method].containing_type,
                scope=syntax.scope,
                source=syntax.source,
                parameters=dict(syntax.parameters),
                locals={},
            )
            for local in syntax.locals:
                context.locals.setdefault(local.name, local)
            self._contexts[method] = context
        return context

    def _creation_type(self, node: Node, context: _MethodContext) -> TypeSymbol | None:
        type_node = node.child_by_field_name("type")
        if type_node is not None:
            return self.lookup_type(node_text(type_node, context.source), context.scope)

        # Target-typed `new()`: take the type from the enclosing declaration.
        parent = node.parent
        for _ in range(3):
            if parent is None:
                return None
            if parent.type == "variable_declaration":
                type_text = node_text(parent.child_by_field_name("type"), context.source)
                return None if type_text == "var" else self.lookup_type(type_text, context.scope)
            parent = parent.parent
        return None

    def _resolve_invocation(
        self, node: Node, context: _MethodContext, depth: int
    ) -> MethodSymbol | None:
        function = node.child_by_field_name("function")
        arguments = node.child_by_field_name("arguments")
        argument_count = (
            sum(1 for child in arguments.named_children if child.type == "argument")
            if arguments is not None
            else 0
        )
        if function is None:
            return None

        match function.type:
            case "identifier" | "generic_name":
                name = self._simple_name(function, context.source)
                # Unqualified calls search the containing type, then its outer types.
                current: TypeSymbol | None = context.type_symbol
                while current is not None:
                    found = self.find_method(current, name, argument_count)
                    if found is not None:
                        return found
                    current = current.containing_type
                return None
            case "member_access_expression":
                return self._resolve_member_call(
                    function.child_by_field_name("expression"),
                    function.child_by_field_name("name"),
                    argument_count,
                    context,
                    depth,
                )
            case "conditional_access_expression":
                # `x?.M()` with the whole conditional access as the callee.
                binding = next(
                    (c for c in function.named_children if c.type == "member_binding_expression"), None
                )
                if binding is None:
                    return None
                return self._resolve_member_call(
                    self._condition(function), self._binding_name(binding), argument_count, context, depth
                )
            case "member_binding_expression":
                # `x?.M()` with the invocation nested inside the conditional access.
                conditional = node.parent
                while conditional is not None and conditional.type != "conditional_access_expression":
                    conditional = conditional.parent
                if conditional is None:
                    return None
                return self._resolve_member_call(
                    self._condition(conditional), self._binding_name(function), argument_count, context, depth
                )
            case _:
                return None

    def _resolve_member_call(
        self,
        receiver: Node | None,
        name_node: Node | None,
        argument_count: int,
        context: _MethodContext,
        depth: int,
    ) -> MethodSymbol | None:
        name = self._simple_name(name_node, context.source)
        receiver_type = self._infer_type(receiver, context, depth + 1)
        if receiver_type is None or not name:
            return None
        return self.find_method(receiver_type, name, argument_count)

    @staticmethod
    def _condition(conditional: Node) -> Node | None:
        condition = conditional.child_by_field_name("condition")
        if condition is None and conditional.named_children:
            condition = conditional.named_children[0]
        return condition

    @staticmethod
    def _binding_name(binding: Node) -> Node | None:
        name = binding.child_by_field_name("name")
        if name is None and binding.named_children:
            name = binding.named_children[-1]
        return name

    def _infer_type(self, node: Node | None, context: _MethodContext, depth: int) -> TypeSymbol | None:
        """Static type of an expression, or None when it cannot be determined."""
        if node is None or depth > MAX_INFERENCE_DEPTH:
            return None

        match node.type:
            case "identifier":
                return self._identifier_type(node_text(node, context.source), context, depth)
            case "this" | "this_expression":
                return context.type_symbol
            case "base" | "base_expression":
                bases = [b for b in self.base_types(context.type_symbol) if b.kind == SymbolKind.class_]
                return bases[0] if bases else None
            case "object_creation_expression" | "implicit_object_creation_expression":
                return self._creation_type(node, context)
            case "invocation_expression":
                method = self._resolve_invocation(node, context, depth + 1)
                if method is None:
                    return None
                return self.lookup_type(method.return_type, self._member_scope(method.containing_type))
            case "member_access_expression":
                receiver_type = self._infer_type(node.child_by_field_name("expression"), context, depth + 1)
                name = self._simple_name(node.child_by_field_name("name"), context.source)
                if receiver_type is not None:
                    return self.member_type(receiver_type, name)
                # `Namespace.Type` used as a static receiver.
                return self.lookup_type(node_text(node, context.source), context.scope)
            case "conditional_access_expression":
                binding = next(
                    (c for c in node.named_children if c.type == "member_binding_expression"), None
                )
                if binding is None:
                    return None
                receiver_type = self._infer_type(self._condition(node), context, depth + 1)
                if receiver_type is None:
                    return None
                return self.member_type(
                    receiver_type, self._simple_name(self._binding_name(binding), context.source)
                )
            case "parenthesized_expression":
                inner = node.named_children[0] if node.named_children else None
                return self._infer_type(inner, context, depth + 1)
            case "cast_expression":
                return self.lookup_type(node_text(node.child_by_field_name("type"), context.source), context.scope)
            case "qualified_name" | "generic_name" | "predefined_type":
                return self.lookup_type(node_text(node, context.source), context.scope)
            case _:
                return None

    def _identifier_type(self, name: str, context: _MethodContext, depth: int) -> TypeSymbol | None:
        local = context.locals.get(name)
        if local is not None:
            if local.type_name:
                return self.lookup_type(local.type_name, context.scope)
            return self._infer_type(local.initializer, context, depth + 1)

        parameter_type = context.parameters.get(name)
        if parameter_type:
            return self.lookup_type(parameter_type, context.scope)

        member = self.member_type(context.type_symbol, name)
        if member is not None:
            return member

        # A bare type name used as a static receiver.
        return self.lookup_type(name, context.scope)

    @staticmethod
    def _simple_name(node: Node | None, source: bytes) -> str:
        if node is None:
            return ""
        if node.type == "generic_name":
            identifier = node.child_by_field_name("name") or next(
                (c for c in node.named_children if c.type == "identifier"), None
            )
            return node_text(identifier, source)
        return node_text(node, source)
