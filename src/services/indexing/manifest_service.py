"""
Solution and project manifest discovery.

Reads `.sln` files for the projects they list and `.csproj` files for their
project references, package references and source files. The project tier of
the graph (Project and Package nodes with DEPENDS_ON relationships) is derived
from these manifests alone; no source file is parsed for it.
"""

from __future__ import annotations

import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from pathlib import Path, PureWindowsPath

from src.core.config import settings
from src.graph.graph_types import PackageNode, ProjectNode, RelationshipType, Triple
from src.parser.file_types import FileTypes
from src.services.indexing.exceptions import ManifestError
from src.utils.logging import get_logger

logger = get_logger(__name__)

# Project("{type-guid}") = "Name", "relative\path\Name.csproj", "{project-guid}"
_SOLUTION_PROJECT = re.compile(
    r'^Project\("\{[^}]*\}"\)\s*=\s*"(?P<name>[^"]*)"\s*,\s*"(?P<path>[^"]*)"',
    re.MULTILINE,
)


@dataclass(frozen=True)
class PackageReference:
    name: str
    version: str = ""


@dataclass(frozen=True)
class ProjectManifest:
    """What one project file declares.

    Attributes:
        name: Project name (file stem of the manifest)
        path: Absolute path to the manifest
        project_references: Names of referenced projects
        package_references: Referenced packages with their versions
        source_files: C# sources under the project directory, sorted
    """

    name: str
    path: Path
    project_references: tuple[str, ...] = ()
    package_references: tuple[PackageReference, ...] = ()
    source_files: tuple[Path, ...] = field(default=(), repr=False)

    @property
    def directory(self) -> Path:
        return self.path.parent


def _local_name(tag: str) -> str:
    # Legacy project files carry the MSBuild XML namespace on every tag.
    return tag.rsplit("}", 1)[-1]


def _to_path(base: Path, relative: str) -> Path:
    """Resolve a manifest-relative path that may use Windows separators."""
    return (base / Path(*PureWindowsPath(relative).parts)).resolve()


def read_solution(path: Path) -> list[Path]:
    """List the project manifests referenced by a solution file.

    Solution folders and non-C# projects are skipped; project paths are resolved
    against the solution directory.

    Raises:
        ManifestError: If the solution file cannot be read
    """
    if not path.is_file():
        raise ManifestError("Solution file not found", path=str(path))

    try:
        content = path.read_text(encoding="utf-8-sig", errors="replace")
    except OSError as e:
        raise ManifestError(f"Failed to read solution: {e}", path=str(path)) from e

    projects: list[Path] = []
    for match in _SOLUTION_PROJECT.finditer(content):
        project_path = _to_path(path.parent, match.group("path"))
        if FileTypes.from_path(project_path) != FileTypes.PROJECT:
            logger.debug(f"Skipping solution entry {match.group('name')}: not a C# project")
            continue
        projects.append(project_path)

    logger.info(f"Solution {path.name} lists {len(projects)} projects")
    return projects


def discover_source_files(directory: Path, excluded_dirs: frozenset[str] | None = None) -> list[Path]:
    """C# source files under `directory`, skipping build output and VCS folders."""
    excluded_dirs = settings.EXCLUDED_DIRS if excluded_dirs is None else excluded_dirs
    files = [
        file
        for file in directory.rglob("*.cs")
        if file.is_file()
        and not any(part in excluded_dirs for part in file.relative_to(directory).parts[:-1])
    ]
    return sorted(files)


def read_project(path: Path) -> ProjectManifest:
    """Parse a project file.

    Raises:
        ManifestError: If the file is missing or is not well-formed XML
    """
    if not path.is_file():
        raise ManifestError("Project file not found", path=str(path))

    path = path.resolve()
    try:
        root = ET.parse(path).getroot()
    except (ET.ParseError, OSError) as e:
        raise ManifestError(f"Failed to parse project: {e}", path=str(path)) from e

    project_references: list[str] = []
    package_references: list[PackageReference] = []

    for element in root.iter():
        match _local_name(element.tag):
            case "ProjectReference":
                include = element.get("Include")
                if include:
                    name = PureWindowsPath(include).stem
                    if name not in project_references:
                        project_references.append(name)
            case "PackageReference":
                include = element.get("Include")
                if not include:
                    continue
                version = element.get("Version") or ""
                if not version:
                    for child in element:
                        if _local_name(child.tag) == "Version" and child.text:
                            version = child.text.strip()
                package_references.append(PackageReference(include, version))

    manifest = ProjectManifest(
        name=path.stem,
        path=path,
        project_references=tuple(project_references),
        package_references=tuple(package_references),
        source_files=tuple(discover_source_files(path.parent)),
    )
    logger.debug(
        f"Project {manifest.name}: {len(manifest.project_references)} project references, "
        f"{len(manifest.package_references)} package references, "
        f"{len(manifest.source_files)} source files"
    )
    return manifest


def project_triples(manifest: ProjectManifest) -> list[Triple]:
    """DEPENDS_ON triples from a project to the projects and packages it references."""
    project_node = ProjectNode.from_name(manifest.name)
    triples = [
        Triple(project_node, ProjectNode.from_name(reference), RelationshipType.depends_on)
        for reference in manifest.project_references
    ]
    triples.extend(
        Triple(
            project_node,
            PackageNode(full_name=package.name, name=package.name, version=package.version),
            RelationshipType.depends_on,
        )
        for package in manifest.package_references
    )
    return triples
