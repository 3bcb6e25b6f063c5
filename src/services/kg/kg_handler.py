"""Knowledge Graph Handler - Low-level Neo4j operations.

This module provides low-level operations for persisting code knowledge graph
nodes and triples to Neo4j. It handles constraint creation, batch upserts by
primary key, and clearing the graph before a fresh run.

Every value reaches Cypher as a query parameter. Only labels and relationship
types, which come from fixed enums, are interpolated into statement text.
"""

from __future__ import annotations

from typing import Any, Iterable, Iterator, Sequence, TypeVar

from neo4j import AsyncDriver

from src.graph.graph_types import Node, NodeLabel, RelationshipType, Triple
from src.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_BATCH_SIZE = 500

T = TypeVar("T")


def _chunks(items: Sequence[T], size: int) -> Iterator[Sequence[T]]:
    if size < 1:
        raise ValueError(f"batch_size must be positive, got {size}")
    for start in range(0, len(items), size):
        yield items[start:start + size]


async def init_database(driver: AsyncDriver, database: str = "neo4j") -> None:
    """Create one uniqueness constraint on `pk` per node label.

    All operations are idempotent (IF NOT EXISTS), so this can run before
    every analysis.

    Args:
        driver: Neo4j AsyncDriver instance
        database: Name of the Neo4j database (default: "neo4j")

    Raises:
        neo4j.exceptions.Neo4jError: If constraint creation fails
    """
    logger.info("Initializing Neo4j database schema")

    async with driver.session(database=database) as session:
        for label in NodeLabel:
            logger.debug(f"Creating uniqueness constraint on {label}(pk)")
            result = await session.run(
                f"""
                CREATE CONSTRAINT {label.lower()}_pk_unique IF NOT EXISTS
                FOR (n:{label})
                REQUIRE n.pk IS UNIQUE
                """
            )
            await result.consume()

    logger.info("Neo4j database schema initialization complete")


def collect_nodes(triples: Iterable[Triple]) -> list[Node]:
    """Distinct endpoints of the triples by (label, pk), in first-seen order.

    When the same node shows up both as a bare reference and as a declaration,
    the occurrence carrying more properties (e.g. modifiers) is kept.
    """
    positions: dict[tuple[NodeLabel, str], int] = {}
    nodes: list[Node] = []
    for triple in triples:
        for node in (triple.source_node, triple.target_node):
            key = (node.label, node.pk)
            index = positions.get(key)
            if index is None:
                positions[key] = len(nodes)
                nodes.append(node)
            elif len(node.to_neo4j_node()) > len(nodes[index].to_neo4j_node()):
                nodes[index] = node
    return nodes


async def batch_upsert_nodes(
    driver: AsyncDriver,
    nodes: list[Node],
    database: str = "neo4j",
    batch_size: int = DEFAULT_BATCH_SIZE,
) -> int:
    """Batch upsert nodes using UNWIND with MERGE on the primary key.

    Nodes are grouped by label and property set, so one statement per group and
    chunk covers them all. Existing nodes get their properties refreshed; a
    node without modifiers never clears modifiers set by its declaration.

    Args:
        driver: Neo4j AsyncDriver instance
        nodes: Nodes to upsert
        database: Name of the Neo4j database (default: "neo4j")
        batch_size: Maximum rows per statement

    Returns:
        Number of statements executed

    Raises:
        neo4j.exceptions.Neo4jError: If the batch upsert operation fails
    """
    if not nodes:
        logger.debug("No nodes to upsert")
        return 0

    logger.info(f"Upserting {len(nodes)} nodes")

    groups: dict[tuple[NodeLabel, tuple[str, ...]], tuple[Node, list[dict[str, Any]]]] = {}
    for node in nodes:
        properties = node.to_neo4j_node()
        key = (node.label, tuple(properties))
        if key not in groups:
            groups[key] = (node, [])
        groups[key][1].append(properties)

    statements = 0
    async with driver.session(database=database) as session:
        for (label, _), (sample, rows) in groups.items():
            query = f"""
            UNWIND $rows AS row
            MERGE (n:{label} {{pk: row.pk}})
            SET {sample.set_clause("n")}
            """
            for chunk in _chunks(rows, batch_size):
                logger.debug(f"Upserting {len(chunk)} {label} nodes")
                result = await session.run(query, rows=list(chunk))
                await result.consume()
                statements += 1

    logger.info(f"Successfully upserted {len(nodes)} nodes in {statements} statements")
    return statements


async def batch_upsert_triples(
    driver: AsyncDriver,
    triples: list[Triple],
    database: str = "neo4j",
    batch_size: int = DEFAULT_BATCH_SIZE,
) -> int:
    """Batch upsert relationships using UNWIND with MATCH and MERGE.

    Both endpoints must already exist (see `batch_upsert_nodes`). Triples are
    grouped by (source label, relationship type, target label) so the endpoint
    lookups use the per-label pk constraint.

    Args:
        driver: Neo4j AsyncDriver instance
        triples: Triples to upsert
        database: Name of the Neo4j database (default: "neo4j")
        batch_size: Maximum rows per statement

    Returns:
        Number of statements executed

    Raises:
        neo4j.exceptions.Neo4jError: If the batch upsert operation fails
    """
    if not triples:
        logger.debug("No triples to upsert")
        return 0

    logger.info(f"Upserting {len(triples)} triples")

    groups: dict[tuple[NodeLabel, RelationshipType, NodeLabel], list[dict[str, str]]] = {}
    for triple in triples:
        key = (triple.source_node.label, triple.relationship_type, triple.target_node.label)
        groups.setdefault(key, []).append(dict(triple.to_neo4j_edge()))

    statements = 0
    async with driver.session(database=database) as session:
        for (source_label, relationship_type, target_label), rows in groups.items():
            query = f"""
            UNWIND $rows AS row
            MATCH (source:{source_label} {{pk: row.source_pk}})
            MATCH (target:{target_label} {{pk: row.target_pk}})
            MERGE (source)-[:{relationship_type}]->(target)
            """
            for chunk in _chunks(rows, batch_size):
                logger.debug(
                    f"Upserting {len(chunk)} {source_label}-{relationship_type}->{target_label} triples"
                )
                result = await session.run(query, rows=list(chunk))
                await result.consume()
                statements += 1

    logger.info(f"Successfully upserted {len(triples)} triples in {statements} statements")
    return statements


async def delete_all(driver: AsyncDriver, database: str = "neo4j") -> int:
    """Delete every node carrying one of the graph's labels, with its relationships.

    Args:
        driver: Neo4j AsyncDriver instance
        database: Name of the Neo4j database (default: "neo4j")

    Returns:
        Number of nodes deleted
    """
    logger.info("Deleting existing code knowledge graph")

    async with driver.session(database=database) as session:
        result = await session.run(
            """
            MATCH (n)
            WHERE any(label IN labels(n) WHERE label IN $labels)
            DETACH DELETE n
            RETURN count(n) AS deleted_count
            """,
            labels=[str(label) for label in NodeLabel],
        )
        record = await result.single()
        deleted_count = record["deleted_count"] if record else 0

    logger.info(f"Deleted {deleted_count} nodes")
    return deleted_count
