"""
Analysis orchestration: from solution or project manifests to a persisted graph.

For every project the analyzer produces the tiers the run asked for:

  - project tier: DEPENDS_ON triples from the project manifest
  - code tier: containment, declaration, inheritance, membership, construction
    and invocation triples extracted from the project's C# sources

Every source of the run is parsed first. Each project is then extracted against a
semantic model indexing its own sources and those of the projects it references,
so references across files and projects resolve. Extraction runs per file on a
worker pool; each file's triples reach the sink as one block.
"""

from __future__ import annotations

import asyncio
import enum
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from src.analysis.exceptions import ExtractionError
from src.analysis.extractor import CodeGraphExtractor
from src.analysis.syntax import CompilationUnit
from src.core.config import settings
from src.graph.graph_types import Triple
from src.graph.triple_sink import TripleSink
from src.models.graph.indexing_stats import IndexingStats
from src.parser.csharp.semantic_model import CSharpSemanticModel
from src.parser.csharp.syntax_builder import CSharpSyntaxBuilder
from src.parser.tree_sitter_parser import ParseError, UnsupportedLanguageError, get_parser
from src.services.indexing.exceptions import InvalidAnalyzerConfigError, ManifestError
from src.services.indexing.manifest_service import (
    ProjectManifest,
    project_triples,
    read_project,
    read_solution,
)
from src.services.kg.kg_service import KnowledgeGraphService
from src.utils.logging import Logger

logger = Logger(__name__)

ONLY_ONE_SOURCE_MESSAGE = "Please submit only one thing: `--solution` (-s) or `--projects` (-p)"
NO_SOURCE_MESSAGE = "Nothing to analyze: submit `--solution` (-s) or `--projects` (-p)"


class Tier(enum.StrEnum):
    project = "project"
    code = "code"
    all = "all"

    @property
    def includes_project(self) -> bool:
        return self in (Tier.project, Tier.all)

    @property
    def includes_code(self) -> bool:
        return self in (Tier.code, Tier.all)


class AnalyzerConfig(BaseModel):
    """Validated options of one analyzer run."""

    database: str = Field(..., min_length=1, description="Neo4j database name")
    username: str = Field(..., min_length=1, description="Neo4j user")
    password: str = Field(..., description="Neo4j password")
    tier: Tier = Field(default=Tier.all, description="Graph tier to build")
    delete: bool = Field(default=True, description="Clear the graph before the run")
    solution: Path | None = Field(default=None, description="Solution file to analyze")
    projects: list[Path] = Field(default_factory=list, description="Project files to analyze")

    @field_validator("tier", mode="before")
    @classmethod
    def parse_tier(cls, v):
        if v is None or v == "":
            return Tier.all
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @field_validator("delete", mode="before")
    @classmethod
    def parse_delete(cls, v):
        if v is None or v == "":
            return True
        if isinstance(v, str):
            match v.strip().lower():
                case "true":
                    return True
                case "false":
                    return False
                case _:
                    raise ValueError(f"--delete expects `true` or `false`, got '{v}'")
        return v

    @model_validator(mode="after")
    def check_single_source(self) -> "AnalyzerConfig":
        if self.solution is not None and self.projects:
            raise ValueError(ONLY_ONE_SOURCE_MESSAGE)
        if self.solution is None and not self.projects:
            raise ValueError(NO_SOURCE_MESSAGE)
        return self

    @classmethod
    def from_options(
        cls,
        credentials: str,
        tier: str | None = None,
        delete: str | None = None,
        solution: str | None = None,
        projects: list[str] | None = None,
    ) -> "AnalyzerConfig":
        """Build a config from raw command-line values.

        Args:
            credentials: `database:user:password`; the password may contain ':'

        Raises:
            InvalidAnalyzerConfigError: If any option is missing or inconsistent
        """
        parts = (credentials or "").split(":", 2)
        if len(parts) != 3 or not parts[0] or not parts[1]:
            raise InvalidAnalyzerConfigError(
                "Credentials must be given as `dbname:user:password`"
            )
        database, username, password = parts

        try:
            return cls(
                database=database,
                username=username,
                password=password,
                tier=tier,
                delete=delete,
                solution=Path(solution) if solution else None,
                projects=[Path(p) for p in projects or []],
            )
        except ValidationError as e:
            messages = [error["msg"].removeprefix("Value error, ") for error in e.errors()]
            raise InvalidAnalyzerConfigError("; ".join(messages)) from e


class Analyzer:
    """Runs one analysis and persists the result through the KG service."""

    def __init__(
        self,
        config: AnalyzerConfig,
        kg_service: KnowledgeGraphService,
        max_workers: int | None = None,
    ):
        self.config = config
        self.kg_service = kg_service
        self.max_workers = max_workers or settings.MAX_WORKERS
        self.syntax_builder = CSharpSyntaxBuilder()

    def load_manifests(self) -> tuple[Path | None, list[ProjectManifest]]:
        """Read the manifests of the run.

        Returns the solution directory (None for a projects run) and the manifests.

        Raises:
            ManifestError: If a manifest is missing or malformed
        """
        if self.config.solution is not None:
            solution = self.config.solution.resolve()
            return solution.parent, [read_project(path) for path in read_solution(solution)]

        return None, [read_project(path.resolve()) for path in self.config.projects]

    @staticmethod
    def root_folder(manifest: ProjectManifest, solution_root: Path | None) -> Path:
        """The solution directory, or the project's own directory outside a solution."""
        return solution_root if solution_root is not None else manifest.directory

    async def analyze(self) -> IndexingStats:
        """Build and persist the graph for every project of the run."""
        stats = IndexingStats()

        # Manifest errors must surface before the existing graph is cleared.
        solution_root, manifests = self.load_manifests()

        if self.config.delete:
            await self.kg_service.clear_graph()
        await self.kg_service.init_schema()

        logger.info(f"Analyzing {len(manifests)} projects", extra={"tier": str(self.config.tier)})

        units_by_project: dict[str, list[CompilationUnit]] = {}
        if self.config.tier.includes_code:
            units_by_project = await asyncio.to_thread(
                self.parse_projects, manifests, solution_root, stats
            )

        for manifest in manifests:
            root = self.root_folder(manifest, solution_root)
            await self.analyze_project(manifest, root, manifests, units_by_project, stats)
            stats.total_projects += 1

        logger.info(
            f"Analysis complete: projects={stats.total_projects}, files={stats.indexed_files}/"
            f"{stats.total_files}, failed={stats.failed_files}, triples={stats.total_triples}"
        )
        return stats

    async def analyze_project(
        self,
        manifest: ProjectManifest,
        root: Path,
        manifests: list[ProjectManifest],
        units_by_project: dict[str, list[CompilationUnit]],
        stats: IndexingStats,
    ) -> None:
        log = logger.bind(project=manifest.name, tier=str(self.config.tier))
        sink = TripleSink()

        if self.config.tier.includes_project:
            sink.extend(project_triples(manifest))
            log.debug(f"Project tier produced {len(sink)} triples")

        if self.config.tier.includes_code:
            visible = visible_units(manifest, manifests, units_by_project)
            await asyncio.to_thread(
                self.extract_code,
                manifest,
                root.name,
                units_by_project.get(manifest.name, []),
                visible,
                sink,
                stats,
            )

        stats.add_triples(sink.counts())
        persisted = await self.kg_service.persist_triples(sink.flush())
        log.info(
            f"Persisted {persisted.relationships_upserted} triples "
            f"over {persisted.nodes_upserted} nodes"
        )

    def parse_projects(
        self,
        manifests: list[ProjectManifest],
        solution_root: Path | None,
        stats: IndexingStats,
    ) -> dict[str, list[CompilationUnit]]:
        """Parse the sources of every project; failing files are counted and skipped."""
        units_by_project: dict[str, list[CompilationUnit]] = {}
        for manifest in manifests:
            log = logger.bind(project=manifest.name)
            root = self.root_folder(manifest, solution_root)
            units = units_by_project.setdefault(manifest.name, [])
            for file in manifest.source_files:
                stats.total_files += 1
                try:
                    units.append(self.parse_unit(file, root))
                except (ParseError, UnsupportedLanguageError, ExtractionError, OSError) as e:
                    stats.failed_files += 1
                    stats.errors.append(f"{file}: {e}")
                    log.warning(f"Skipping {file}: {e}")
        return units_by_project

    def extract_code(
        self,
        manifest: ProjectManifest,
        root_name: str,
        units: list[CompilationUnit],
        visible: list[CompilationUnit],
        sink: TripleSink,
        stats: IndexingStats,
    ) -> None:
        """Extract each of the project's files into the sink.

        `visible` holds the units of the project and of every project it references;
        all of them are indexed so cross-project references resolve.
        """
        log = logger.bind(project=manifest.name)
        extractor = CodeGraphExtractor(CSharpSemanticModel(visible))

        def extract(unit: CompilationUnit) -> tuple[list[Triple], str | None]:
            try:
                return extractor.analyze_tree(unit, root_name), None
            except ExtractionError as e:
                return [], f"{unit.file_path}: {e}"

        # map() keeps input order, so files land in the sink in source order.
        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            for triples, error in pool.map(extract, units):
                if error is not None:
                    stats.failed_files += 1
                    stats.errors.append(error)
                    log.warning(f"Extraction failed for {error}")
                    continue
                sink.extend(triples)
                stats.indexed_files += 1

    def parse_unit(self, file: Path, root: Path) -> CompilationUnit:
        """Parse one file into a compilation unit whose path starts with the root folder."""
        tree, _, content = get_parser(file)
        try:
            relative = file.resolve().relative_to(root.resolve().parent).as_posix()
        except ValueError:
            relative = file.as_posix()
        return self.syntax_builder.build(tree, relative, content)


def visible_units(
    manifest: ProjectManifest,
    manifests: list[ProjectManifest],
    units_by_project: dict[str, list[CompilationUnit]],
) -> list[CompilationUnit]:
    """Units of a project followed by those of the projects it references, transitively.

    Only projects that are part of the run contribute; anything else is external.
    """
    by_name = {m.name: m for m in manifests}
    ordered: list[str] = []
    pending = [manifest.name]
    while pending:
        name = pending.pop(0)
        if name in ordered or name not in by_name:
            continue
        ordered.append(name)
        pending.extend(by_name[name].project_references)
    return [unit for name in ordered for unit in units_by_project.get(name, [])]


__all__ = [
    "Analyzer",
    "AnalyzerConfig",
    "InvalidAnalyzerConfigError",
    "ManifestError",
    "Tier",
]
