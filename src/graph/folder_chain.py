"""Containment chain for a file path.

Turns a relative file path such as 'Root/Proj/Src/A.cs' into INCLUDED_IN triples:

    (Folder Root/Proj)     -[:INCLUDED_IN]-> (Folder Root)
    (Folder Root/Proj/Src) -[:INCLUDED_IN]-> (Folder Root/Proj)
    (File Root/Proj/Src/A.cs) -[:INCLUDED_IN]-> (Folder Root/Proj/Src)

The first segment only seeds the chain, so a file without a containing folder gets
no containment triple at all and no folder node is created for it.
"""

from src.graph.graph_types import FileNode, FolderNode, RelationshipType, Triple
from src.graph.helpers.utils import normalize_path


def build_folder_chain(file_path: str, file_node: FileNode) -> list[Triple]:
    """Build the ordered INCLUDED_IN chain from the root folder down to the file.

    Args:
        file_path: Relative path of the file, '/' or '\\' separated.
        file_node: The already-constructed FileNode of the path's terminal segment.

    Returns:
        Folder triples from the outermost folder inwards, then the file triple.

    Raises:
        ValueError: If the terminal segment does not match the file's name.
    """
    segments = normalize_path(file_path).split("/")
    if segments[-1] != file_node.name:
        raise ValueError(
            f"File name '{file_node.name}' does not match path '{file_path}'"
        )

    triples: list[Triple] = []
    ancestor = FolderNode(full_name=segments[0], name=segments[0])
    path = segments[0]

    for index, segment in enumerate(segments[1:], start=1):
        if index == len(segments) - 1:
            triples.append(Triple(file_node, ancestor, RelationshipType.included_in))
            break
        path = f"{path}/{segment}"
        folder = FolderNode(full_name=path, name=segment)
        triples.append(Triple(folder, ancestor, RelationshipType.included_in))
        ancestor = folder

    return triples
