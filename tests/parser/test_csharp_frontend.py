"""
Tests for the Tree-sitter C# front-end.

Tests for:
- Syntax building: namespaces, declarations, modifiers, base lists, methods
- Semantic model: cross-file type lookup through usings, receiver typing,
  overloads, unresolved external references
- Extraction over real C# sources
"""

import pytest

pytest.importorskip("tree_sitter_language_pack")

from src.analysis.extractor import CodeGraphExtractor
from src.analysis.semantic import MethodSymbol, SymbolKind, qualify
from src.analysis.syntax import DeclarationKind, ExpressionKind
from src.graph.graph_types import RelationshipType
from src.parser.csharp.semantic_model import CSharpSemanticModel, simple_type_name
from src.parser.csharp.syntax_builder import CSharpSyntaxBuilder
from src.parser.tree_sitter_parser import parse_bytes

ORDERS = b"""using System;
using Shop.Core;

namespace Shop.Orders
{
    public interface IEntity { }

    public interface IOrder : IEntity
    {
        void Submit();
    }

    public class Item
    {
        public decimal Price() { return 1m; }
    }

    public sealed class Order : EntityBase, IOrder, IDisposable
    {
        private readonly Cart _cart = new Cart();

        public void Submit()
        {
            var item = new Item();
            item.Price();
            _cart.Add(item);
            Helper(() => new Item());
            Console.WriteLine("done");
        }

        private static void Helper(Func<Item> factory) { }

        public void Dispose() { }

        public class Line
        {
            public Item Item { get; set; }
        }
    }
}
"""

CORE = b"""namespace Shop.Core;

public abstract class EntityBase { }

public class Cart
{
    public void Add(Shop.Orders.Item item) { }

    public void Add(Shop.Orders.Item item, int count) { }
}
"""


def _build(source: bytes, path: str):
    return CSharpSyntaxBuilder().build(parse_bytes(source, "csharp"), path, source)


@pytest.fixture
def units():
    return [
        _build(ORDERS, "Shop/Orders/Order.cs"),
        _build(CORE, "Shop/Core/Core.cs"),
    ]


@pytest.fixture
def model(units):
    return CSharpSemanticModel(units)


def _declaration(units, name):
    return next(d for unit in units for d in unit.declarations if d.name == name)


class TestSyntaxBuilder:

    def test_declarations_in_source_order_with_nested_types(self, units):
        assert [(d.kind, d.name) for d in units[0].declarations] == [
            (DeclarationKind.interface, "IEntity"),
            (DeclarationKind.interface, "IOrder"),
            (DeclarationKind.class_, "Item"),
            (DeclarationKind.class_, "Order"),
            (DeclarationKind.class_, "Line"),
        ]

    def test_modifiers_and_base_list(self, units):
        order = _declaration(units, "Order")

        assert order.modifiers == ("public", "sealed")
        assert [b.name for b in order.base_types] == ["EntityBase", "IOrder", "IDisposable"]

    def test_methods_and_body_expressions(self, units):
        order = _declaration(units, "Order")

        assert [m.name for m in order.methods] == ["Submit", "Helper", "Dispose"]
        submit = order.methods[0]
        assert [e.kind for e in submit.descendant_expressions()] == [
            ExpressionKind.object_creation,
            ExpressionKind.invocation,
            ExpressionKind.invocation,
            ExpressionKind.invocation,
            ExpressionKind.object_creation,
            ExpressionKind.invocation,
        ]

    def test_method_signature(self, units):
        helper = _declaration(units, "Order").methods[1]

        assert helper.modifiers == ("private", "static")
        assert helper.syntax.parameters == (("factory", "Func<Item>"),)
        assert helper.syntax.return_type == "void"

    def test_nested_types_hang_off_their_outer_type(self, units):
        order = _declaration(units, "Order")

        assert [nested.name for nested in order.nested_types] == ["Line"]
        assert [m.name for m in order.descendant_methods()] == ["Submit", "Helper", "Dispose"]

    def test_file_scoped_namespace(self, units):
        cart = _declaration(units, "Cart")

        assert qualify(cart.syntax.scope.namespace) == "Shop.Core"


class TestSemanticModel:

    def test_declared_symbols(self, units, model):
        line = model.get_declared_symbol(_declaration(units, "Line"))

        assert line.kind == SymbolKind.class_
        assert line.containing_type.name == "Order"
        assert qualify(line.containing_namespace) == "Shop.Orders"

    def test_base_types_resolve_through_usings(self, units, model):
        order = _declaration(units, "Order")

        resolved = [model.get_type_info(b) for b in order.base_types]

        assert [r.name if r else None for r in resolved] == ["EntityBase", "IOrder", None]
        assert qualify(resolved[0].containing_namespace) == "Shop.Core"

    def test_invocations_resolve_by_receiver_type(self, units, model):
        submit = _declaration(units, "Order").methods[0]
        calls = [e for e in submit.descendant_expressions() if e.kind == ExpressionKind.invocation]

        resolved = [model.get_symbol_info(c) for c in calls]

        assert [(r.containing_type.name, r.name) if r else None for r in resolved] == [
            ("Item", "Price"),
            ("Cart", "Add"),
            ("Order", "Helper"),
            None,
        ]
        assert isinstance(resolved[1], MethodSymbol)
        assert len(resolved[1].parameters) == 1

    def test_simple_type_name(self):
        assert simple_type_name("global::System.Collections.Generic.List<int>[]") == (
            "System.Collections.Generic.List"
        )
        assert simple_type_name("Item?") == "Item"


class TestExtractionOverSources:

    def test_order_triples(self, units, model):
        triples = CodeGraphExtractor(model).analyze_tree(units[0], "Shop")

        summary = [
            (t.source_node.name, t.relationship_type, t.target_node.name) for t in triples
        ]
        assert summary[:2] == [
            ("Orders", RelationshipType.included_in, "Shop"),
            ("Order.cs", RelationshipType.included_in, "Orders"),
        ]
        assert ("IOrder", RelationshipType.of_type, "IEntity") in summary
        assert ("Order", RelationshipType.of_type, "EntityBase") in summary
        assert ("Order", RelationshipType.of_type, "IOrder") in summary

        submit_start = summary.index(("Order", RelationshipType.have, "Submit"))
        assert summary[submit_start + 1:submit_start + 7] == [
            ("Submit", RelationshipType.construct, "Item"),
            ("Submit", RelationshipType.invoke, "Price"),
            ("Submit", RelationshipType.invoke, "Add"),
            ("Submit", RelationshipType.invoke, "Helper"),
            ("Submit", RelationshipType.construct, "Item"),
            ("Order", RelationshipType.have, "Helper"),
        ]

    def test_nested_type_full_name(self, units, model):
        triples = CodeGraphExtractor(model).analyze_tree(units[0], "Shop")

        declared = [
            t.source_node.full_name
            for t in triples
            if t.relationship_type == RelationshipType.declared_at
        ]
        assert declared == [
            "Shop.Orders.IEntity",
            "Shop.Orders.IOrder",
            "Shop.Orders.Item",
            "Shop.Orders.Order",
            "Shop.Orders.Line",
        ]


RECEIVERS = b"""namespace N
{
    public class Base
    {
        public void Go() { }
    }

    public class B
    {
        public void Go() { }

        public void Log(int a) { }

        public void Log(int a, int b) { }
    }

    public class A : Base
    {
        private B f;

        public void M()
        {
            this.f.Go();
            base.Go();
            f?.Go();
            new B().Log();
        }

        public class Inner
        {
            public void N2() { }
        }
    }
}
"""


class TestReceivers:

    @pytest.fixture
    def unit(self):
        return _build(RECEIVERS, "N/A.cs")

    @pytest.fixture
    def receivers_model(self, unit):
        return CSharpSemanticModel([unit])

    def _calls(self, unit):
        m = _declaration([unit], "A").methods[0]
        return [e for e in m.descendant_expressions() if e.kind == ExpressionKind.invocation]

    def test_this_base_and_conditional_receivers(self, unit, receivers_model):
        resolved = [receivers_model.get_symbol_info(c) for c in self._calls(unit)]

        assert [(r.containing_type.name, r.name) if r else None for r in resolved] == [
            ("B", "Go"),
            ("Base", "Go"),
            ("B", "Go"),
            None,
        ]

    def test_ambiguous_overload_is_unresolved(self, unit, receivers_model):
        b = receivers_model.lookup_type("B", _declaration([unit], "A").syntax.scope)

        assert receivers_model.find_method(b, "Log", 0) is None
        assert len(receivers_model.find_method(b, "Log", 2).parameters) == 2

    def test_outer_type_has_methods_of_nested_types(self, unit, receivers_model):
        triples = CodeGraphExtractor(receivers_model).analyze_tree(unit, "N")

        have = [
            (t.source_node.full_name, t.target_node.full_name)
            for t in triples
            if t.relationship_type == RelationshipType.have
        ]
        assert have == [
            ("N.Base", "N.Base.Go"),
            ("N.B", "N.B.Go"),
            ("N.B", "N.B.Log"),
            ("N.B", "N.B.Log"),
            ("N.A", "N.A.M"),
            ("N.A", "N.Inner.N2"),
            ("N.Inner", "N.Inner.N2"),
        ]
        invoked = [
            t.target_node.full_name
            for t in triples
            if t.relationship_type == RelationshipType.invoke
        ]
        assert invoked == ["N.B.Go", "N.Base.Go", "N.B.Go"]
