"""Knowledge Graph persistence module.

This module provides both low-level Neo4j operations (handler) and high-level
business logic (service) for persisting code knowledge graphs to Neo4j.

Public API:
  - KnowledgeGraphService: High-level service for KG persistence
  - init_database: Create the per-label primary key constraints
  - collect_nodes: Distinct endpoints of a batch of triples
  - batch_upsert_nodes: Low-level batch node upsert
  - batch_upsert_triples: Low-level batch relationship upsert
  - delete_all: Low-level removal of the whole graph
"""

from src.services.kg.kg_handler import (
    batch_upsert_nodes,
    batch_upsert_triples,
    collect_nodes,
    delete_all,
    init_database,
)
from src.services.kg.kg_service import KnowledgeGraphService

__all__ = [
    "KnowledgeGraphService",
    "init_database",
    "collect_nodes",
    "batch_upsert_nodes",
    "batch_upsert_triples",
    "delete_all",
]
