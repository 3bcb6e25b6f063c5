from dataclasses import dataclass, field

@dataclass
class IndexingStats:
    """Statistics collected during one analyzer run.

    Attributes:
        total_projects: Number of projects analyzed.
        total_files: Total number of source files discovered.
        indexed_files: Number of files successfully extracted.
        failed_files: Number of files that failed to parse or extract.
        total_triples: Total number of triples produced.
        triples_by_type: Triple count per relationship type.
        errors: List of error messages encountered during analysis.
    """
    total_projects: int = 0
    total_files: int = 0
    indexed_files: int = 0
    failed_files: int = 0
    total_triples: int = 0
    triples_by_type: dict[str, int] = field(default_factory=dict)
    errors: list[str] = field(default_factory=list)

    def add_triples(self, counts: dict[str, int]) -> None:
        for relationship_type, count in counts.items():
            key = str(relationship_type)
            self.triples_by_type[key] = self.triples_by_type.get(key, 0) + count
            self.total_triples += count


@dataclass
class PersistenceStats:
    """Statistics of one persistence call.

    Attributes:
        nodes_upserted: Number of distinct nodes merged into the store.
        relationships_upserted: Number of triples merged into the store.
        batches: Number of UNWIND statements executed.
        errors: List of error messages encountered during persistence.
    """
    nodes_upserted: int = 0
    relationships_upserted: int = 0
    batches: int = 0
    errors: list[str] = field(default_factory=list)
