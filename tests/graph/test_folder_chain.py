"""Unit tests for build_folder_chain."""

import pytest

from src.graph.folder_chain import build_folder_chain
from src.graph.graph_types import FileNode, FolderNode, RelationshipType


class TestBuildFolderChain:

    def test_two_level_path(self):
        file_node = FileNode("A/B/file.ext", "file.ext")

        triples = build_folder_chain("A/B/file.ext", file_node)

        assert [(t.source_node, t.target_node) for t in triples] == [
            (FolderNode("A/B", "B"), FolderNode("A", "A")),
            (file_node, FolderNode("A/B", "B")),
        ]
        assert all(t.relationship_type == RelationshipType.included_in for t in triples)

    def test_single_segment_path_yields_nothing(self):
        assert build_folder_chain("file.ext", FileNode("file.ext", "file.ext")) == []

    def test_file_directly_under_root(self):
        file_node = FileNode("Root/A.cs", "A.cs")

        triples = build_folder_chain("Root/A.cs", file_node)

        assert len(triples) == 1
        assert triples[0].source_node == file_node
        assert triples[0].target_node == FolderNode("Root", "Root")

    def test_windows_separators(self):
        file_node = FileNode("A/B/file.ext", "file.ext")

        triples = build_folder_chain("A\\B\\file.ext", file_node)

        assert triples[0].source_node.full_name == "A/B"

    def test_mismatched_file_name_is_rejected(self):
        with pytest.raises(ValueError):
            build_folder_chain("A/B/file.ext", FileNode("A/B/other.ext", "other.ext"))

    def test_folders_with_same_name_get_distinct_keys(self):
        triples = build_folder_chain("R/Src/Src/A.cs", FileNode("R/Src/Src/A.cs", "A.cs"))

        folders = [t.source_node for t in triples[:-1]]
        assert folders[0].pk != folders[1].pk
