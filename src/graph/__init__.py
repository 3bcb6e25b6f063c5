"""Code knowledge graph model.

Main components:
  - Graph types: ClassNode, InterfaceNode, MethodNode, FileNode, FolderNode,
    ProjectNode, PackageNode and the Triple connecting two of them
  - build_folder_chain: INCLUDED_IN chain of a file path
  - TripleSink: ordered collection of triples awaiting persistence
"""

from src.graph.folder_chain import build_folder_chain
from src.graph.graph_types import (
    ClassNode,
    FileNode,
    FolderNode,
    InterfaceNode,
    MethodNode,
    Node,
    NodeLabel,
    PackageNode,
    ProjectNode,
    RelationshipType,
    Triple,
    TypeNode,
)
from src.graph.triple_sink import TripleSink

__all__ = [
    "ClassNode",
    "FileNode",
    "FolderNode",
    "InterfaceNode",
    "MethodNode",
    "Node",
    "NodeLabel",
    "PackageNode",
    "ProjectNode",
    "RelationshipType",
    "Triple",
    "TripleSink",
    "TypeNode",
    "build_folder_chain",
]
