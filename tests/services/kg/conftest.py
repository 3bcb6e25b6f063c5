"""Fake Neo4j driver for persistence tests.

`FakeGraphDriver` records every statement and applies the handler's UNWIND
MERGE statements to an in-memory store keyed the way Neo4j keys them: nodes by
(label, pk), relationships by (source pk, type, target pk).
"""

import re
from unittest.mock import AsyncMock

import pytest

_NODE_MERGE = re.compile(r"MERGE \(n:(\w+) \{pk: row\.pk\}\)")
_REL_MERGE = re.compile(
    r"MATCH \(source:(\w+) .*MATCH \(target:(\w+) .*MERGE \(source\)-\[:(\w+)\]->\(target\)",
    re.DOTALL,
)


class FakeGraphStore:
    def __init__(self):
        self.nodes: dict[tuple[str, str], dict] = {}
        self.relationships: set[tuple[str, str, str]] = set()

    def apply(self, query: str, params: dict) -> int:
        if (match := _NODE_MERGE.search(query)) is not None:
            label = match.group(1)
            for row in params["rows"]:
                self.nodes.setdefault((label, row["pk"]), {}).update(row)
            return 0
        if (match := _REL_MERGE.search(query)) is not None:
            source_label, target_label, relationship = match.groups()
            for row in params["rows"]:
                assert (source_label, row["source_pk"]) in self.nodes
                assert (target_label, row["target_pk"]) in self.nodes
                self.relationships.add((row["source_pk"], relationship, row["target_pk"]))
            return 0
        if "DETACH DELETE" in query:
            deleted = len(self.nodes)
            self.nodes.clear()
            self.relationships.clear()
            return deleted
        return 0

    def labelled(self, label: str) -> list[dict]:
        return [props for (node_label, _), props in self.nodes.items() if node_label == label]


class FakeSession:
    def __init__(self, driver: "FakeGraphDriver", database: str):
        self.driver = driver
        self.database = database

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False

    async def run(self, query, **params):
        self.driver.statements.append((self.database, query, params))
        deleted = self.driver.store.apply(query, params)
        result = AsyncMock()
        result.single.return_value = {"deleted_count": deleted}
        return result


class FakeGraphDriver:
    def __init__(self, store: FakeGraphStore | None = None):
        self.store = store or FakeGraphStore()
        self.statements: list[tuple[str, str, dict]] = []

    def session(self, database: str = "neo4j"):
        return FakeSession(self, database)


@pytest.fixture
def graph_store() -> FakeGraphStore:
    return FakeGraphStore()


@pytest.fixture
def fake_driver(graph_store) -> FakeGraphDriver:
    return FakeGraphDriver(graph_store)
