"""Knowledge Graph Service - High-level business logic for KG persistence.

This module provides high-level operations for persisting code knowledge graph
triples to Neo4j. It orchestrates low-level handler operations with error
handling and statistics tracking for the analyzer.
"""

from __future__ import annotations

from neo4j import AsyncDriver

from src.core.config import settings
from src.graph.graph_types import Triple
from src.models.graph.indexing_stats import PersistenceStats
from src.services.kg import kg_handler
from src.utils.logging import get_logger

logger = get_logger(__name__)


class KnowledgeGraphService:
    """High-level service for knowledge graph persistence operations.

    Attributes:
        driver: Neo4j AsyncDriver instance
        database: Name of the Neo4j database
        batch_size: Maximum rows per UNWIND statement
    """

    def __init__(
        self,
        driver: AsyncDriver,
        database: str | None = None,
        batch_size: int | None = None,
    ):
        self.driver = driver
        self.database = database or settings.NEO4J_DATABASE
        self.batch_size = batch_size or settings.NEO4J_BATCH_SIZE
        logger.debug(
            f"KnowledgeGraphService initialized with database={self.database}, "
            f"batch_size={self.batch_size}"
        )

    async def init_schema(self) -> None:
        await kg_handler.init_database(self.driver, self.database)

    async def persist_triples(self, triples: list[Triple]) -> PersistenceStats:
        """Merge a batch of triples and their endpoint nodes into the graph.

        Nodes go first so every relationship finds both endpoints. Merging by
        primary key makes the call idempotent: persisting the same batch twice
        leaves the graph unchanged.

        Args:
            triples: Triples to persist, in emission order

        Returns:
            PersistenceStats with node, relationship and statement counts

        Raises:
            neo4j.exceptions.Neo4jError: If persistence operations fail
        """
        stats = PersistenceStats()
        if not triples:
            logger.debug("No triples to persist")
            return stats

        nodes = kg_handler.collect_nodes(triples)
        logger.info(f"Persisting {len(triples)} triples over {len(nodes)} nodes")

        try:
            stats.batches += await kg_handler.batch_upsert_nodes(
                self.driver, nodes, self.database, self.batch_size
            )
            stats.nodes_upserted = len(nodes)

            stats.batches += await kg_handler.batch_upsert_triples(
                self.driver, triples, self.database, self.batch_size
            )
            stats.relationships_upserted = len(triples)

            logger.info(
                f"Persistence complete: nodes_upserted={stats.nodes_upserted}, "
                f"relationships_upserted={stats.relationships_upserted}, "
                f"batches={stats.batches}"
            )
        except Exception as e:
            error_msg = f"Failed to persist {len(triples)} triples: {str(e)}"
            logger.error(error_msg, exc_info=True)
            stats.errors.append(error_msg)
            raise

        return stats

    async def clear_graph(self) -> int:
        """Delete every node and relationship of the code knowledge graph.

        Returns:
            Number of nodes deleted

        Raises:
            neo4j.exceptions.Neo4jError: If deletion fails
        """
        logger.warning("Clearing the entire code knowledge graph")

        try:
            return await kg_handler.delete_all(self.driver, self.database)
        except Exception as e:
            error_msg = f"Failed to clear graph: {str(e)}"
            logger.error(error_msg, exc_info=True)
            raise
