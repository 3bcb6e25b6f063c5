"""
Unit tests for CodeGraphExtractor against a stub semantic model.

Tests for:
- Declarations, inheritance filtering and method membership
- Body expressions at any depth, in source order
- Dropping unresolved references
- The end-to-end triple sequence of a small file
"""

import pytest

from src.analysis.extractor import CodeGraphExtractor, create_method_node, create_type_node
from src.analysis.semantic import SymbolKind
from src.analysis.syntax import (
    CompilationUnit,
    DeclarationKind,
    Expression,
    ExpressionKind,
    MethodDeclaration,
    TypeDeclaration,
    TypeReference,
)
from src.graph.graph_types import (
    ClassNode,
    FileNode,
    FolderNode,
    InterfaceNode,
    MethodNode,
    RelationshipType,
)


def _kinds(triples):
    return [t.relationship_type for t in triples]


class TestNodeCreation:

    def test_class_full_name_folds_namespace(self, make_type):
        node = create_type_node(make_type("Order"), ("public",))

        assert isinstance(node, ClassNode)
        assert node.full_name == "Shop.Orders.Order"
        assert node.modifiers == ("public",)

    def test_interface_node(self, make_type):
        node = create_type_node(make_type("IOrder", SymbolKind.interface))

        assert isinstance(node, InterfaceNode)

    def test_other_kinds_have_no_node(self, make_type):
        assert create_type_node(make_type("Color", SymbolKind.enum)) is None
        assert create_type_node(make_type("Point", SymbolKind.struct)) is None

    def test_method_node_signature(self, make_type, make_method):
        method = make_method("Add", make_type("Cart"), (("item", "Item"), ("count", "int")), "bool")

        node = create_method_node(method)

        assert node.full_name == "Shop.Orders.Cart.Add"
        assert node.arguments == "Item item, int count"
        assert node.return_type == "bool"


class TestAnalyzeDeclaration:

    @pytest.fixture
    def file_node(self):
        return FileNode("Root/Order.cs", "Order.cs")

    def test_no_base_list(self, semantic_model, make_type, file_node):
        declaration = TypeDeclaration(DeclarationKind.class_, "Order")
        semantic_model.declared[declaration] = make_type("Order")

        triples = CodeGraphExtractor(semantic_model).analyze_declaration(declaration, file_node)

        assert _kinds(triples) == [RelationshipType.declared_at]
        assert triples[0].target_node == file_node

    def test_unsupported_declaration_kind_is_skipped(self, semantic_model, make_type, file_node):
        declaration = TypeDeclaration(DeclarationKind.struct, "Point")
        semantic_model.declared[declaration] = make_type("Point", SymbolKind.struct)

        assert CodeGraphExtractor(semantic_model).analyze_declaration(declaration, file_node) == []

    def test_unresolved_declaration_is_skipped(self, semantic_model, file_node):
        declaration = TypeDeclaration(DeclarationKind.class_, "Ghost")

        assert CodeGraphExtractor(semantic_model).analyze_declaration(declaration, file_node) == []

    def test_class_points_at_class_and_interface_bases(self, semantic_model, make_type, file_node):
        base, contract = TypeReference("EntityBase"), TypeReference("IOrder")
        declaration = TypeDeclaration(DeclarationKind.class_, "Order", base_types=(base, contract))
        semantic_model.declared[declaration] = make_type("Order")
        semantic_model.types[base] = make_type("EntityBase")
        semantic_model.types[contract] = make_type("IOrder", SymbolKind.interface)

        triples = CodeGraphExtractor(semantic_model).analyze_declaration(declaration, file_node)

        of_type = [t for t in triples if t.relationship_type == RelationshipType.of_type]
        assert [t.target_node.name for t in of_type] == ["EntityBase", "IOrder"]

    def test_interface_ignores_class_bases(self, semantic_model, make_type, file_node):
        base = TypeReference("EntityBase")
        declaration = TypeDeclaration(DeclarationKind.interface, "IOrder", base_types=(base,))
        semantic_model.declared[declaration] = make_type("IOrder", SymbolKind.interface)
        semantic_model.types[base] = make_type("EntityBase")

        triples = CodeGraphExtractor(semantic_model).analyze_declaration(declaration, file_node)

        assert _kinds(triples) == [RelationshipType.declared_at]

    def test_interface_keeps_interface_bases(self, semantic_model, make_type, file_node):
        base = TypeReference("IEntity")
        declaration = TypeDeclaration(DeclarationKind.interface, "IOrder", base_types=(base,))
        semantic_model.declared[declaration] = make_type("IOrder", SymbolKind.interface)
        semantic_model.types[base] = make_type("IEntity", SymbolKind.interface)

        triples = CodeGraphExtractor(semantic_model).analyze_declaration(declaration, file_node)

        assert _kinds(triples) == [RelationshipType.declared_at, RelationshipType.of_type]

    def test_unresolved_base_is_dropped(self, semantic_model, make_type, file_node):
        known, unknown = TypeReference("IOrder"), TypeReference("IDisposable")
        declaration = TypeDeclaration(DeclarationKind.class_, "Order", base_types=(unknown, known))
        semantic_model.declared[declaration] = make_type("Order")
        semantic_model.types[known] = make_type("IOrder", SymbolKind.interface)

        triples = CodeGraphExtractor(semantic_model).analyze_declaration(declaration, file_node)

        assert _kinds(triples) == [RelationshipType.declared_at, RelationshipType.of_type]

    def test_resolution_error_counts_as_unresolved(self, semantic_model, make_type, file_node):
        base = TypeReference("Broken")
        declaration = TypeDeclaration(DeclarationKind.class_, "Order", base_types=(base,))
        semantic_model.declared[declaration] = make_type("Order")
        semantic_model.failing.add(base)

        triples = CodeGraphExtractor(semantic_model).analyze_declaration(declaration, file_node)

        assert _kinds(triples) == [RelationshipType.declared_at]


class TestMethods:

    @pytest.fixture
    def owner(self, make_type):
        return make_type("Cart")

    def _declare(self, semantic_model, owner, make_method, method):
        declaration = TypeDeclaration(DeclarationKind.class_, "Cart", methods=(method,))
        semantic_model.declared[declaration] = owner
        semantic_model.declared[method] = make_method(method.name, owner)
        return declaration

    def test_empty_body(self, semantic_model, owner, make_method):
        method = MethodDeclaration("Clear", ("public",))
        declaration = self._declare(semantic_model, owner, make_method, method)

        triples = CodeGraphExtractor(semantic_model).get_methods_all(
            declaration, create_type_node(owner)
        )

        assert _kinds(triples) == [RelationshipType.have]
        assert triples[0].target_node.modifiers == ("public",)

    def test_methods_of_nested_types(self, semantic_model, owner, make_method, make_type):
        line = make_type("Line")
        total = MethodDeclaration("Total")
        line_declaration = TypeDeclaration(DeclarationKind.class_, "Line", methods=(total,))
        checkout = MethodDeclaration("Checkout")
        cart_declaration = TypeDeclaration(
            DeclarationKind.class_, "Cart", methods=(checkout,), nested_types=(line_declaration,)
        )
        semantic_model.declared[checkout] = make_method("Checkout", owner)
        semantic_model.declared[total] = make_method("Total", line)
        extractor = CodeGraphExtractor(semantic_model)

        outer = extractor.get_methods_all(cart_declaration, create_type_node(owner))
        nested = extractor.get_methods_all(line_declaration, create_type_node(line))

        assert [(t.source_node.name, t.target_node.full_name) for t in outer] == [
            ("Cart", "Shop.Orders.Cart.Checkout"),
            ("Cart", "Shop.Orders.Line.Total"),
        ]
        assert [(t.source_node.name, t.target_node.full_name) for t in nested] == [
            ("Line", "Shop.Orders.Line.Total"),
        ]

    def test_nested_expressions_in_source_order(self, semantic_model, owner, make_method, make_type):
        # Add(new Item(Price())) inside a closure: outer call, then creation, then inner call.
        inner_call = Expression(ExpressionKind.invocation, "Price()")
        creation = Expression(ExpressionKind.object_creation, "new Item(Price())", (inner_call,))
        outer_call = Expression(ExpressionKind.invocation, "Add(new Item(Price()))", (creation,))
        method = MethodDeclaration("Fill", body=(outer_call,))
        declaration = self._declare(semantic_model, owner, make_method, method)

        item = make_type("Item")
        semantic_model.types[creation] = item
        semantic_model.invocations[outer_call] = make_method("Add", owner, (("item", "Item"),))
        semantic_model.invocations[inner_call] = make_method("Price", item, (), "decimal")

        triples = CodeGraphExtractor(semantic_model).get_methods_all(
            declaration, create_type_node(owner)
        )

        assert _kinds(triples) == [
            RelationshipType.have,
            RelationshipType.invoke,
            RelationshipType.construct,
            RelationshipType.invoke,
        ]
        assert triples[1].target_node.name == "Add"
        assert triples[3].target_node.full_name == "Shop.Orders.Item.Price"

    def test_construction_of_non_class_is_dropped(self, semantic_model, owner, make_method, make_type):
        creation = Expression(ExpressionKind.object_creation, "new Point()")
        method = MethodDeclaration("Fill", body=(creation,))
        declaration = self._declare(semantic_model, owner, make_method, method)
        semantic_model.types[creation] = make_type("Point", SymbolKind.struct)

        triples = CodeGraphExtractor(semantic_model).get_methods_all(
            declaration, create_type_node(owner)
        )

        assert _kinds(triples) == [RelationshipType.have]

    def test_unresolved_invocation_is_dropped(self, semantic_model, owner, make_method):
        call = Expression(ExpressionKind.invocation, "callback()")
        method = MethodDeclaration("Fill", body=(call,))
        declaration = self._declare(semantic_model, owner, make_method, method)

        triples = CodeGraphExtractor(semantic_model).get_methods_all(
            declaration, create_type_node(owner)
        )

        assert _kinds(triples) == [RelationshipType.have]


class TestAnalyzeTree:
    """End-to-end triple sequence for one file."""

    def test_end_to_end_scenario(self, semantic_model, make_type, make_method):
        i_symbol = make_type("I", SymbolKind.interface)
        a_symbol = make_type("A")
        b_symbol = make_type("B")
        go_symbol = make_method("Go", b_symbol)

        construct_b = Expression(ExpressionKind.object_creation, "new B()")
        call_go = Expression(ExpressionKind.invocation, "new B().Go()", (construct_b,))
        m = MethodDeclaration("M", body=(call_go,))
        go = MethodDeclaration("Go")
        base_i = TypeReference("I")

        i_decl = TypeDeclaration(DeclarationKind.interface, "I")
        a_decl = TypeDeclaration(DeclarationKind.class_, "A", base_types=(base_i,), methods=(m,))
        b_decl = TypeDeclaration(DeclarationKind.class_, "B", methods=(go,))

        semantic_model.declared.update({
            i_decl: i_symbol,
            a_decl: a_symbol,
            b_decl: b_symbol,
            m: make_method("M", a_symbol),
            go: go_symbol,
        })
        semantic_model.types.update({base_i: i_symbol, construct_b: b_symbol})
        semantic_model.invocations[call_go] = go_symbol

        unit = CompilationUnit("root/Proj/Src/A.ext", (i_decl, a_decl, b_decl))
        triples = CodeGraphExtractor(semantic_model).analyze_tree(unit, "root")

        file_node = FileNode("root/Proj/Src/A.ext", "A.ext")
        root, proj, src = FolderNode("root", "root"), FolderNode("root/Proj", "Proj"), FolderNode(
            "root/Proj/Src", "Src"
        )
        i_node = InterfaceNode("Shop.Orders.I", "I")
        a_node = ClassNode("Shop.Orders.A", "A")
        b_node = ClassNode("Shop.Orders.B", "B")
        m_node = MethodNode("Shop.Orders.A.M", "M")
        go_node = MethodNode("Shop.Orders.B.Go", "Go")

        assert [(t.source_node, t.relationship_type, t.target_node) for t in triples] == [
            (proj, RelationshipType.included_in, root),
            (src, RelationshipType.included_in, proj),
            (file_node, RelationshipType.included_in, src),
            (i_node, RelationshipType.declared_at, file_node),
            (a_node, RelationshipType.declared_at, file_node),
            (a_node, RelationshipType.of_type, i_node),
            (a_node, RelationshipType.have, m_node),
            (m_node, RelationshipType.invoke, go_node),
            (m_node, RelationshipType.construct, b_node),
            (b_node, RelationshipType.declared_at, file_node),
            (b_node, RelationshipType.have, go_node),
        ]

    def test_path_is_trimmed_to_root_folder(self, semantic_model):
        unit = CompilationUnit("/work/root/Proj/A.cs")

        triples = CodeGraphExtractor(semantic_model).analyze_tree(unit, "root")

        assert triples[-1].source_node.full_name == "root/Proj/A.cs"
        assert triples[0].target_node == FolderNode("root", "root")
