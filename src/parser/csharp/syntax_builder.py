"""
C#-specific syntax builder using Tree-sitter.

Converts a Tree-sitter C# tree into the neutral syntax model of `src.analysis.syntax`:
  - Namespaces (block and file-scoped) and using directives, kept as a Scope
  - Type declarations (class, interface, struct, record, enum), nested ones included
  - Methods with modifiers, parameters, return type and body expressions
  - Fields and properties, kept for member typing in the semantic model

Only object creations and invocations are kept as body expressions; they are
nested the way they nest in the source, so a pre-order walk of the result visits
them in source order.

C# Tree-sitter grammar reference:
  https://github.com/tree-sitter/tree-sitter-c-sharp/blob/master/grammar.js
"""

from __future__ import annotations

import dataclasses

from tree_sitter import Node, Tree

from src.analysis.exceptions import ExtractionError
from src.analysis.semantic import NamespaceSymbol
from src.analysis.syntax import (
    CompilationUnit,
    DeclarationKind,
    Expression,
    ExpressionKind,
    MethodDeclaration,
    TypeDeclaration,
    TypeReference,
)

TYPE_DECLARATIONS: dict[str, DeclarationKind] = {
    "class_declaration": DeclarationKind.class_,
    "interface_declaration": DeclarationKind.interface,
    "struct_declaration": DeclarationKind.struct,
    "record_declaration": DeclarationKind.record,
    "record_struct_declaration": DeclarationKind.struct,
    "enum_declaration": DeclarationKind.enum,
}

EXPRESSION_KINDS: dict[str, ExpressionKind] = {
    "object_creation_expression": ExpressionKind.object_creation,
    "implicit_object_creation_expression": ExpressionKind.object_creation,
    "invocation_expression": ExpressionKind.invocation,
}


@dataclasses.dataclass(frozen=True)
class Scope:
    """Where a declaration lives.

    Attributes:
        namespace: Innermost enclosing namespace (None for the global namespace)
        usings: Namespaces imported by using directives visible at this point
        type_path: Names of the enclosing types, outermost first
    """

    namespace: NamespaceSymbol | None = None
    usings: tuple[str, ...] = ()
    type_path: tuple[str, ...] = ()

    def enter_namespace(self, name: str) -> Scope:
        namespace = self.namespace
        for part in name.split("."):
            if part.strip():
                namespace = NamespaceSymbol(part.strip(), namespace)
        return dataclasses.replace(self, namespace=namespace)

    def add_using(self, name: str) -> Scope:
        return dataclasses.replace(self, usings=(*self.usings, name))

    def enter_type(self, name: str) -> Scope:
        return dataclasses.replace(self, type_path=(*self.type_path, name))


@dataclasses.dataclass(frozen=True)
class LocalVariable:
    """A local declared in a method body; `type_name` is None for `var`."""

    name: str
    type_name: str | None
    initializer: Node | None = None


@dataclasses.dataclass(frozen=True, eq=False)
class TypeSyntax:
    node: Node
    scope: Scope
    members: tuple[tuple[str, str], ...] = ()
    source: bytes = b""


@dataclasses.dataclass(frozen=True, eq=False)
class MethodSyntax:
    node: Node
    scope: Scope
    parameters: tuple[tuple[str, str], ...] = ()
    return_type: str = "void"
    locals: tuple[LocalVariable, ...] = ()
    source: bytes = b""


def node_text(node: Node | None, source: bytes) -> str:
    """Extract text from byte content; Tree-sitter offsets are byte offsets."""
    if node is None:
        return ""
    return source[node.start_byte:node.end_byte].decode("utf-8", errors="replace")


class CSharpSyntaxBuilder:
    """Builds a CompilationUnit from a Tree-sitter C# syntax tree."""

    DEFAULT_MAX_DEPTH: int = 400

    @property
    def language(self) -> str:
        return "csharp"

    def build(self, tree: Tree, file_path: str, source: bytes) -> CompilationUnit:
        """Convert a parsed file.

        Args:
            tree: The Tree-sitter syntax tree
            file_path: Relative path recorded on the compilation unit
            source: Raw file content as bytes

        Raises:
            ExtractionError: If the tree is nested deeper than DEFAULT_MAX_DEPTH
        """
        declarations: list[TypeDeclaration | None] = []
        self._visit_container(tree.root_node, Scope(), declarations, source, depth=0, file_path=file_path)
        return CompilationUnit(
            file_path=file_path,
            declarations=tuple(d for d in declarations if d is not None),
        )

    def _check_depth(self, depth: int, file_path: str) -> None:
        if depth > self.DEFAULT_MAX_DEPTH:
            raise ExtractionError(
                f"Recursion depth exceeded: {depth} > {self.DEFAULT_MAX_DEPTH}",
                language=self.language,
                file_path=file_path,
            )

    def _visit_container(
        self,
        node: Node,
        scope: Scope,
        declarations: list[TypeDeclaration | None],
        source: bytes,
        depth: int,
        file_path: str,
    ) -> Scope:
        """Visit the members of a compilation unit, namespace or declaration list.

        Returns the scope in effect after the last member, which carries any
        file-scoped namespace or using directive found along the way.
        """
        self._check_depth(depth, file_path)

        for child in node.named_children:
            if child.type == "using_directive":
                using = self._using_name(child, source)
                if using:
                    scope = scope.add_using(using)
            elif child.type == "namespace_declaration":
                name = node_text(child.child_by_field_name("name"), source)
                body = child.child_by_field_name("body")
                if body is not None:
                    self._visit_container(
                        body, scope.enter_namespace(name), declarations, source, depth + 1, file_path
                    )
            elif child.type == "file_scoped_namespace_declaration":
                # Applies to every following sibling; newer grammars also nest the members.
                scope = scope.enter_namespace(node_text(child.child_by_field_name("name"), source))
                scope = self._visit_container(child, scope, declarations, source, depth + 1, file_path)
            elif child.type in TYPE_DECLARATIONS:
                self._visit_type(child, scope, declarations, source, depth + 1, file_path)
            elif child.type == "declaration_list":
                self._visit_container(child, scope, declarations, source, depth + 1, file_path)

        return scope

    def _visit_type(
        self,
        node: Node,
        scope: Scope,
        declarations: list[TypeDeclaration | None],
        source: bytes,
        depth: int,
        file_path: str,
    ) -> TypeDeclaration:
        self._check_depth(depth, file_path)

        name = node_text(node.child_by_field_name("name"), source)
        # Reserve the slot so the outer type precedes its nested types.
        index = len(declarations)
        declarations.append(None)

        member_scope = scope.enter_type(name)
        methods: list[MethodDeclaration] = []
        nested_types: list[TypeDeclaration] = []
        members: list[tuple[str, str]] = []

        body = node.child_by_field_name("body") or _first_child_of_type(node, "declaration_list")
        for member in body.named_children if body is not None else ():
            if member.type == "method_declaration":
                methods.append(self._build_method(member, member_scope, source, depth + 1, file_path))
            elif member.type == "field_declaration":
                members.extend(self._field_members(member, source))
            elif member.type == "property_declaration":
                members.append((
                    node_text(member.child_by_field_name("name"), source),
                    node_text(member.child_by_field_name("type"), source),
                ))
            elif member.type in TYPE_DECLARATIONS:
                nested_types.append(
                    self._visit_type(member, member_scope, declarations, source, depth + 1, file_path)
                )

        declarations[index] = TypeDeclaration(
            kind=TYPE_DECLARATIONS[node.type],
            name=name,
            modifiers=_modifiers(node, source),
            base_types=self._base_types(node, source),
            methods=tuple(methods),
            nested_types=tuple(nested_types),
            syntax=TypeSyntax(node=node, scope=scope, members=tuple(members), source=source),
        )
        return declarations[index]

    def _base_types(self, node: Node, source: bytes) -> tuple[TypeReference, ...]:
        base_list = _first_child_of_type(node, "base_list")
        if base_list is None:
            return ()

        references: list[TypeReference] = []
        for child in base_list.named_children:
            if child.type == "primary_constructor_base_type":
                child = child.child_by_field_name("type") or child.named_children[0]
            elif child.type == "argument_list":
                continue
            references.append(TypeReference(name=node_text(child, source), syntax=child))
        return tuple(references)

    def _build_method(
        self,
        node: Node,
        scope: Scope,
        source: bytes,
        depth: int,
        file_path: str,
    ) -> MethodDeclaration:
        return_type = node.child_by_field_name("returns") or node.child_by_field_name("type")

        parameters: list[tuple[str, str]] = []
        parameter_list = node.child_by_field_name("parameters")
        for parameter in parameter_list.named_children if parameter_list is not None else ():
            if parameter.type == "parameter":
                parameters.append((
                    node_text(parameter.child_by_field_name("name"), source),
                    node_text(parameter.child_by_field_name("type"), source),
                ))

        body = node.child_by_field_name("body") or _first_child_of_type(node, "arrow_expression_clause")
        expressions = self._collect_expressions(body, source, depth + 1, file_path) if body is not None else ()
        locals_ = self._collect_locals(body, source) if body is not None else ()

        return MethodDeclaration(
            name=node_text(node.child_by_field_name("name"), source),
            modifiers=_modifiers(node, source),
            body=expressions,
            syntax=MethodSyntax(
                node=node,
                scope=scope,
                parameters=tuple(parameters),
                return_type=node_text(return_type, source) or "void",
                locals=locals_,
                source=source,
            ),
        )

    def _collect_expressions(
        self, node: Node, source: bytes, depth: int, file_path: str
    ) -> tuple[Expression, ...]:
        """Object creations and invocations under `node`, nested as in the source."""
        self._check_depth(depth, file_path)

        expressions: list[Expression] = []
        for child in node.named_children:
            kind = EXPRESSION_KINDS.get(child.type)
            nested = self._collect_expressions(child, source, depth + 1, file_path)
            if kind is None:
                expressions.extend(nested)
            else:
                expressions.append(Expression(
                    kind=kind,
                    text=node_text(child, source),
                    children=nested,
                    syntax=child,
                ))
        return tuple(expressions)

    def _collect_locals(self, body: Node, source: bytes) -> tuple[LocalVariable, ...]:
        locals_: list[LocalVariable] = []
        stack = [body]
        while stack:
            node = stack.pop()
            if node.type == "variable_declaration":
                type_name = node_text(node.child_by_field_name("type"), source)
                for declarator in node.named_children:
                    if declarator.type != "variable_declarator":
                        continue
                    name_node = declarator.child_by_field_name("name") or _first_child_of_type(declarator, "identifier")
                    locals_.append(LocalVariable(
                        name=node_text(name_node, source),
                        type_name=None if type_name == "var" else type_name,
                        initializer=_initializer(declarator, name_node),
                    ))
            elif node.type == "foreach_statement":
                type_name = node_text(node.child_by_field_name("type"), source)
                left = node.child_by_field_name("left")
                if left is not None and left.type == "identifier" and type_name != "var":
                    locals_.append(LocalVariable(name=node_text(left, source), type_name=type_name))
            stack.extend(reversed(node.named_children))
        return tuple(locals_)

    @staticmethod
    def _field_members(node: Node, source: bytes) -> list[tuple[str, str]]:
        declaration = _first_child_of_type(node, "variable_declaration")
        if declaration is None:
            return []
        type_name = node_text(declaration.child_by_field_name("type"), source)
        members = []
        for declarator in declaration.named_children:
            if declarator.type == "variable_declarator":
                name_node = declarator.child_by_field_name("name") or _first_child_of_type(declarator, "identifier")
                members.append((node_text(name_node, source), type_name))
        return members

    @staticmethod
    def _using_name(node: Node, source: bytes) -> str | None:
        """Namespace imported by a plain using directive; aliases and static usings are skipped."""
        text = node_text(node, source).strip().rstrip(";").strip()
        if text.startswith("global "):
            text = text[len("global "):].strip()
        if not text.startswith("using "):
            return None
        name = text[len("using "):].strip()
        if not name or "=" in name or name.startswith("static "):
            return None
        return name


def _first_child_of_type(node: Node, node_type: str) -> Node | None:
    for child in node.children:
        if child.type == node_type:
            return child
    return None


def _modifiers(node: Node, source: bytes) -> tuple[str, ...]:
    return tuple(node_text(child, source) for child in node.children if child.type == "modifier")


def _initializer(declarator: Node, name_node: Node | None) -> Node | None:
    equals_value = _first_child_of_type(declarator, "equals_value_clause")
    if equals_value is not None:
        return equals_value.named_children[0] if equals_value.named_children else None
    for child in reversed(declarator.named_children):
        if child.type != "bracketed_argument_list" and (name_node is None or child.id != name_node.id):
            return child
    return None
