"""
Unit tests for the relational store client.

The asyncpg pool is mocked; SQL text is checked only where the filter
translation matters.

Run with: pytest tests/unit/test_store.py -v
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from tcrd_core.clients.store import (
    FACET_SOURCES,
    QUERIES,
    StoreClient,
    StoreError,
    StoreTimeoutError,
    TARGET_COUNT_KINDS,
    _facet_source_for,
    _filter_conditions,
    _order_clause,
    _Params,
    like_pattern,
)
from tcrd_core.schemas import FacetFilter, FacetValue, Filter, IntRange
from tcrd_core.services.facet_catalog import TARGET_FACETS
from tcrd_core.services.hierarchy import ONTOLOGY_SOURCES


@pytest.fixture
def client():
    return StoreClient(host="localhost", database="tcrd", user="tcrd", password="secret")


def _pool(rows=None, side_effect=None):
    conn = MagicMock()
    conn.fetch = AsyncMock(return_value=rows or [], side_effect=side_effect)
    acquire = MagicMock()
    acquire.__aenter__ = AsyncMock(return_value=conn)
    acquire.__aexit__ = AsyncMock(return_value=False)
    pool = MagicMock()
    pool.acquire.return_value = acquire
    pool.close = AsyncMock()
    return pool, conn


# =============================================================================
# Test filter translation
# =============================================================================

class TestFilterTranslation:
    """Test Filter to SQL condition translation."""

    def test_params_placeholders(self):
        params = _Params()

        assert params.add("a") == "$1"
        assert params.add(2) == "$2"
        assert params.values == ["a", 2]

    def test_empty_filter(self):
        params = _Params()
        assert _filter_conditions(Filter(), params) == []
        assert params.values == []

    def test_term_facet_and_range(self):
        params = _Params()
        active = Filter(
            term="kinase",
            facets=[FacetFilter(name="Family", values=["Kinase", "GPCR"])],
            irange=[IntRange(name="Log Novelty", start=-2, end=0)],
        )

        conditions = _filter_conditions(active, params)

        assert len(conditions) == 3
        assert params.values == ["%kinase%", ["Kinase", "GPCR"], -2, 0]
        assert "ILIKE $1" in conditions[0]
        assert "ANY($2::text[])" in conditions[1]
        assert "fs.value >= $3 AND fs.value < $4" in conditions[2]

    def test_unknown_and_non_numeric_ignored(self):
        params = _Params()
        active = Filter(
            facets=[FacetFilter(name="Nope", values=["x"]), FacetFilter(name="fam", values=[])],
            irange=[IntRange(name="Family", start=0, end=1)],
        )

        assert _filter_conditions(active, params) == []

    @pytest.mark.parametrize(
        "order,expected",
        [
            (None, "t.id"),
            ("name", "t.name"),
            ("-name", "t.name DESC"),
            ("^sym", "p.sym DESC"),
            ("bogus", "t.id"),
        ],
    )
    def test_order_clause(self, order, expected):
        assert _order_clause(order) == expected

    def test_every_catalog_facet_has_a_source(self):
        assert {key for _, key, _ in TARGET_FACETS} == set(FACET_SOURCES)

    def test_every_ontology_has_a_query(self):
        for name in ONTOLOGY_SOURCES:
            assert f"ontology_{name}" in QUERIES

    def test_ontology_tables_quoted(self):
        for name, source in ONTOLOGY_SOURCES.items():
            assert f'FROM "{source.table}"' in QUERIES[f"ontology_{name}"]

    def test_catalog_aliases_resolve(self):
        assert _facet_source_for("Target Family").key == "fam"
        assert _facet_source_for("target family").key == "fam"
        assert _facet_source_for("fam").key == "fam"
        assert _facet_source_for("Nope") is None

    def test_alias_facet_and_range(self):
        params = _Params()
        active = Filter(
            facets=[FacetFilter(name="Target Family", values=["Kinase"])],
            irange=[IntRange(name="novelty", start=-2, end=0)],
        )

        conditions = _filter_conditions(active, params)

        assert len(conditions) == 2
        assert params.values == [["Kinase"], -2, 0]

    def test_like_pattern_escapes_wildcards(self):
        assert like_pattern("kinase") == "%kinase%"
        assert like_pattern("50%_a\\b") == "%50\\%\\_a\\\\b%"

    def test_term_escaped(self):
        params = _Params()
        conditions = _filter_conditions(Filter(term="p53_%"), params)

        assert params.values == ["%p53\\_\\%%"]
        assert "ESCAPE '\\'" in conditions[0]

    def test_search_queries_escape(self):
        for name in ("search_diseases", "search_pubs", "search_orthologs"):
            assert "ESCAPE '\\'" in QUERIES[name]


# =============================================================================
# Test connection lifecycle and execution
# =============================================================================

class TestStoreClient:
    """Test pool handling, execution and named queries."""

    async def test_connect_once(self, client):
        pool, _ = _pool()
        with patch("tcrd_core.clients.store.asyncpg.create_pool", AsyncMock(return_value=pool)) as create:
            await client.connect()
            await client.connect()

        create.assert_awaited_once()
        assert client.connected

        await client.close()
        pool.close.assert_awaited_once()
        assert not client.connected

    async def test_execute_not_connected(self, client):
        with pytest.raises(StoreError, match="not connected"):
            await client.execute("SELECT 1")

    async def test_execute_returns_dicts(self, client):
        client._pool, conn = _pool(rows=[{"id": 1, "name": "EGFR"}])

        rows = await client.execute("SELECT id, name FROM target WHERE id = $1", 1, timeout=5)

        assert rows == [{"id": 1, "name": "EGFR"}]
        conn.fetch.assert_awaited_once_with("SELECT id, name FROM target WHERE id = $1", 1, timeout=5)

    async def test_execute_timeout(self, client):
        client._pool, _ = _pool(side_effect=asyncio.TimeoutError())

        with pytest.raises(StoreTimeoutError):
            await client.execute("SELECT pg_sleep(10)", timeout=1)

    async def test_fetch_unknown_query(self, client):
        with pytest.raises(ValueError, match="Unknown query"):
            await client.fetch("drop_everything")

    async def test_fetch_one(self, client):
        client._pool, _ = _pool(rows=[{"?column?": 1}])
        assert await client.fetch_one("health") == {"?column?": 1}
        assert await client.health_check() is True


# =============================================================================
# Test data methods
# =============================================================================

class TestDataMethods:
    """Test the data methods build the right calls."""

    async def test_facet_counts(self, client):
        execute = AsyncMock(return_value=[
            {"label": "Tclin", "count": 3},
            {"label": None, "count": 9},
            {"label": "Tchem", "count": 2},
        ])
        with patch.object(client, "execute", execute):
            values = await client.facet_counts("tdl", Filter(term="kinase"))

        assert values == [FacetValue(label="Tclin", count=3), FacetValue(label="Tchem", count=2)]
        sql, arg = execute.await_args.args
        assert "GROUP BY s.label" in sql
        assert arg == "%kinase%"

    async def test_facet_counts_unknown_key(self, client):
        with pytest.raises(ValueError, match="Unknown facet key"):
            await client.facet_counts("nope", Filter())

    async def test_targets_unfiltered(self, client):
        execute = AsyncMock(return_value=[])
        with patch.object(client, "execute", execute):
            await client.targets(Filter(order="-tdl"), skip=20, top=10)

        sql, *args = execute.await_args.args
        assert "WHERE" not in sql
        assert "ORDER BY t.tdl DESC LIMIT $1 OFFSET $2" in sql
        assert args == [10, 20]

    async def test_count_targets(self, client):
        execute = AsyncMock(return_value=[{"n": 42}])
        with patch.object(client, "execute", execute):
            assert await client.count_targets(Filter()) == 42

    async def test_ontology_rows(self, client):
        fetch = AsyncMock(return_value=[])
        with patch.object(client, "fetch", fetch):
            await client.ontology_rows(ONTOLOGY_SOURCES["dto"])

        fetch.assert_awaited_once_with("ontology_dto")

    async def test_search_pattern_and_paging(self, client):
        fetch = AsyncMock(return_value=[])
        with patch.object(client, "fetch", fetch):
            await client.search_diseases("asthma", skip=5, top=15)

        fetch.assert_awaited_once_with("search_diseases", "%asthma%", 15, 5)

    async def test_search_wildcards_escaped(self, client):
        fetch = AsyncMock(return_value=[])
        with patch.object(client, "fetch", fetch):
            await client.search_pubs("100%")

        fetch.assert_awaited_once_with("search_pubs", "%100\\%%", 10, 0)


# =============================================================================
# Test target detail methods
# =============================================================================

class TestTargetDetail:
    """Test per-target detail queries."""

    @pytest.mark.parametrize(
        "method,query_name",
        [("target_expressions", "target_expressions"), ("target_orthologs", "target_orthologs")],
    )
    async def test_paged_queries(self, client, method, query_name):
        fetch = AsyncMock(return_value=[])
        with patch.object(client, "fetch", fetch):
            await getattr(client, method)(42, skip=10, top=5)

        fetch.assert_awaited_once_with(query_name, 42, 5, 10)

    async def test_props(self, client):
        fetch = AsyncMock(return_value=[{"itype": "IDG Disease", "string_value": "asthma"}])
        with patch.object(client, "fetch", fetch):
            rows = await client.target_props(42)

        assert rows[0]["itype"] == "IDG Disease"
        fetch.assert_awaited_once_with("target_props", 42)

    @pytest.mark.parametrize("kind,query_name", [("ppi", "target_ppis"), ("kegg", "target_kegg")])
    async def test_neighbors(self, client, kind, query_name):
        fetch = AsyncMock(return_value=[])
        with patch.object(client, "fetch", fetch):
            await client.target_neighbors(42, kind)

        fetch.assert_awaited_once_with(query_name, 42, 10, 0)

    async def test_neighbors_unknown_kind(self, client):
        with pytest.raises(ValueError, match="Unknown neighbor kind"):
            await client.target_neighbors(42, "string")

    async def test_counts(self, client):
        fetch = AsyncMock(return_value=[
            {"label": "STRINGDB", "count": 12},
            {"label": None, "count": 4},
            {"label": "BioPlex", "count": 3},
        ])
        with patch.object(client, "fetch", fetch):
            counts = await client.target_counts(42, "ppi")

        fetch.assert_awaited_once_with("counts_ppi", 42)
        assert counts == [FacetValue(label="STRINGDB", count=12), FacetValue(label="BioPlex", count=3)]

    async def test_counts_unknown_kind(self, client):
        with pytest.raises(ValueError, match="Unknown count kind"):
            await client.target_counts(42, "tinx")

    def test_every_count_kind_has_a_query(self):
        for kind in TARGET_COUNT_KINDS:
            assert f"counts_{kind}" in QUERIES

    async def test_health_check_failure(self, client):
        with patch.object(client, "fetch_one", AsyncMock(side_effect=StoreError("connection refused"))):
            healthy = await client.health_check()

        assert healthy is False
