"""Type definitions for nodes and triples in the code knowledge graph."""

import dataclasses
import enum
from typing import ClassVar, TypedDict

from src.graph.helpers.utils import generate_pk, render_arguments, render_modifiers


class NodeLabel(enum.StrEnum):
    """ The label of a node in the knowledge graph """

    class_ = "Class"
    interface = "Interface"
    method = "Method"
    file = "File"
    folder = "Folder"
    project = "Project"
    package = "Package"


@dataclasses.dataclass(frozen=True)
class Node:
    """ A node in the knowledge graph

    Attributes:
        full_name: Kind-scoped unique qualified identifier (namespace path, file path, ...)
        name: Short identifier, e.g. the type name or the last path segment
        pk: Primary key used by the graph store to merge the node across runs
    """

    label: ClassVar[NodeLabel]

    full_name: str
    name: str
    pk: str = dataclasses.field(init=False, repr=False)

    def __post_init__(self):
        object.__setattr__(self, "pk", generate_pk(self.label, *self.identity()))

    def identity(self) -> tuple[str, ...]:
        """Identity-defining fields, in the order they enter the primary key."""
        return (self.full_name,)

    def to_neo4j_node(self) -> dict[str, str]:
        """Property map assigned to the node on merge."""
        return {"pk": self.pk, "fullName": self.full_name, "name": self.name}

    def set_clause(self, alias: str, row: str = "row") -> str:
        """Render the Cypher property assignment for this node.

        Values are never inlined: every property reads from the `row` parameter,
        so quotes or braces inside names cannot break the statement.

        Example:
            >>> FolderNode("src", "src").set_clause("n")
            'n.pk = row.pk, n.fullName = row.fullName, n.name = row.name'
        """
        return ", ".join(f"{alias}.{key} = {row}.{key}" for key in self.to_neo4j_node())


@dataclasses.dataclass(frozen=True)
class CodeNode(Node):
    modifiers: tuple[str, ...] = dataclasses.field(default=(), kw_only=True)

    @property
    def rendered_modifiers(self) -> str:
        return render_modifiers(self.modifiers)

    def to_neo4j_node(self) -> dict[str, str]:
        properties = super().to_neo4j_node()
        # Omitted when empty so a reference-only node never clears declared modifiers.
        if self.modifiers:
            properties["modifiers"] = self.rendered_modifiers
        return properties


@dataclasses.dataclass(frozen=True)
class TypeNode(CodeNode):
    pass


@dataclasses.dataclass(frozen=True)
class ClassNode(TypeNode):
    label: ClassVar[NodeLabel] = NodeLabel.class_


@dataclasses.dataclass(frozen=True)
class InterfaceNode(TypeNode):
    label: ClassVar[NodeLabel] = NodeLabel.interface


@dataclasses.dataclass(frozen=True)
class MethodNode(CodeNode):
    """ A node representing a method

    Attributes:
        parameters: Ordered (name, type) pairs of the method parameters
        return_type: The display name of the return type
    """

    label: ClassVar[NodeLabel] = NodeLabel.method

    parameters: tuple[tuple[str, str], ...] = ()
    return_type: str = "void"

    @property
    def arguments(self) -> str:
        return render_arguments(self.parameters)

    def identity(self) -> tuple[str, ...]:
        return (self.full_name, self.arguments, self.return_type)

    def to_neo4j_node(self) -> dict[str, str]:
        properties = super().to_neo4j_node()
        properties["returnType"] = self.return_type
        properties["arguments"] = self.arguments
        return properties


@dataclasses.dataclass(frozen=True)
class FileNode(Node):
    label: ClassVar[NodeLabel] = NodeLabel.file


@dataclasses.dataclass(frozen=True)
class FolderNode(Node):
    label: ClassVar[NodeLabel] = NodeLabel.folder


@dataclasses.dataclass(frozen=True)
class ProjectNode(Node):
    label: ClassVar[NodeLabel] = NodeLabel.project

    @classmethod
    def from_name(cls, name: str) -> "ProjectNode":
        return cls(full_name=name, name=name)


@dataclasses.dataclass(frozen=True)
class PackageNode(Node):
    label: ClassVar[NodeLabel] = NodeLabel.package

    version: str = ""

    def identity(self) -> tuple[str, ...]:
        return (self.full_name, self.version)

    def to_neo4j_node(self) -> dict[str, str]:
        properties = super().to_neo4j_node()
        properties["version"] = self.version
        return properties


class RelationshipType(enum.StrEnum):
    """ The type of a relationship in the knowledge graph """

    have = "HAVE"
    invoke = "INVOKE"
    construct = "CONSTRUCT"
    of_type = "OF_TYPE"
    declared_at = "DECLARED_AT"
    included_in = "INCLUDED_IN"
    depends_on = "DEPENDS_ON"


# Allowed (source, target) node kinds per relationship type.
_ENDPOINTS: dict[RelationshipType, tuple[tuple[type[Node], ...], tuple[type[Node], ...]]] = {
    RelationshipType.have: ((TypeNode,), (MethodNode,)),
    RelationshipType.invoke: ((MethodNode,), (MethodNode,)),
    RelationshipType.construct: ((MethodNode,), (ClassNode,)),
    RelationshipType.of_type: ((TypeNode,), (TypeNode,)),
    RelationshipType.declared_at: ((TypeNode,), (FileNode,)),
    RelationshipType.included_in: ((FileNode, FolderNode), (FolderNode,)),
    RelationshipType.depends_on: ((ProjectNode,), (ProjectNode, PackageNode)),
}


class Neo4jTriple(TypedDict):
    source_pk: str
    target_pk: str


@dataclasses.dataclass(frozen=True)
class Triple:
    """ A directed, typed relationship between two nodes

    Attributes:
        source_node: the source node of the relationship
        target_node: the target node of the relationship
        relationship_type: the type of the relationship
    """

    source_node: Node
    target_node: Node
    relationship_type: RelationshipType

    def __post_init__(self):
        if self.source_node is None or self.target_node is None:
            raise ValueError(f"{self.relationship_type} triple requires both endpoints")
        sources, targets = _ENDPOINTS[self.relationship_type]
        if not isinstance(self.source_node, sources) or not isinstance(self.target_node, targets):
            raise ValueError(
                f"Invalid {self.relationship_type} triple: "
                f"{type(self.source_node).__name__} -> {type(self.target_node).__name__}"
            )

    def to_neo4j_edge(self) -> Neo4jTriple:
        return Neo4jTriple(source_pk=self.source_node.pk, target_pk=self.target_node.pk)

    def __str__(self) -> str:
        return (
            f"({self.source_node.label}:{self.source_node.full_name})"
            f"-[:{self.relationship_type}]->"
            f"({self.target_node.label}:{self.target_node.full_name})"
        )
