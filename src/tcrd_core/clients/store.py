"""
Relational store client with connection pooling and named queries.

Provides async access to the TCRD Postgres database with:
- Connection pooling for concurrent facet queries
- Query timeout enforcement
- Automatic retry with exponential backoff on transient errors
- Filter-to-SQL translation for facet counts and entity pages
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any

import asyncpg
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from tcrd_core.schemas import FacetValue, Filter
from tcrd_core.services.facet_catalog import TARGET_FACETS
from tcrd_core.services.hierarchy import OntologySource

logger = logging.getLogger(__name__)

TRANSIENT_ERRORS = (
    asyncpg.exceptions.PostgresConnectionError,
    asyncpg.exceptions.ConnectionDoesNotExistError,
    asyncpg.exceptions.DeadlockDetectedError,
    ConnectionError,
)


class StoreError(Exception):
    """Base exception for store access errors."""

    pass


class StoreTimeoutError(StoreError):
    """A query exceeded its timeout."""

    pass


# ============================================================================
# Named queries
# ============================================================================

QUERIES: dict[str, str] = {
    "health": "SELECT 1",
    # Classes attached to one target plus every class named in their chains
    "panther_classes": """
        WITH direct AS (
            SELECT pc.pcid, pc.name, pc.parent_pcids
            FROM panther_class pc
            JOIN p2pc ON p2pc.panther_class_id = pc.id
            WHERE p2pc.protein_id = (
                SELECT protein_id FROM t2tc WHERE target_id = $1 LIMIT 1
            )
        )
        SELECT pcid AS id, name, parent_pcids AS parent_ids FROM direct
        UNION
        SELECT pc.pcid, pc.name, pc.parent_pcids
        FROM panther_class pc
        WHERE pc.pcid IN (
            SELECT unnest(string_to_array(parent_pcids, '|')) FROM direct
        )
    """,
    "ontology_do": """
        SELECT d.doid AS id, d.name, string_agg(dp.parent_id, '|') AS parent_ids
        FROM "do" d
        LEFT JOIN do_parent dp ON dp.doid = d.doid
        GROUP BY d.doid, d.name
        ORDER BY d.doid
    """,
    "ontology_dto": """
        SELECT dtoid AS id, name, parent_id AS parent_ids
        FROM "dto"
        ORDER BY dtoid
    """,
    "ontology_panther": """
        SELECT pcid AS id, name, parent_pcids AS parent_ids
        FROM "panther_class"
        ORDER BY pcid
    """,
    "drug_rows": """
        SELECT drug, smiles, lychi_h4, cmpd_chemblid, nlm_drug_info, dcid,
               reference, source, act_type, act_value
        FROM drug_activity
        WHERE lychi_h4 = $1 OR drug = $1
        ORDER BY id
    """,
    "compound_rows": """
        SELECT catype, cmpd_id_in_src, cmpd_name_in_src, smiles, lychi_h4,
               cmpd_pubchem_cid, reference, act_type, act_value
        FROM cmpd_activity
        WHERE lychi_h4 = $1 OR cmpd_id_in_src = $1
        ORDER BY id
    """,
    "search_diseases": """
        SELECT min(d.id) AS disid, d.name, d.did, min(d.dtype) AS type, 'disease' AS kind
        FROM disease d
        WHERE d.name ILIKE $1 ESCAPE '\\'
        GROUP BY d.name, d.did
        ORDER BY d.name
        LIMIT $2 OFFSET $3
    """,
    "search_pubs": """
        SELECT p.id AS pmid, p.title, p.journal, p.date, 'pubmed' AS kind
        FROM pubmed p
        WHERE p.title ILIKE $1 ESCAPE '\\' OR p.abstract ILIKE $1 ESCAPE '\\'
        ORDER BY p.date DESC
        LIMIT $2 OFFSET $3
    """,
    "search_orthologs": """
        SELECT o.id AS orid, o.species, o.symbol AS sym, o.name, 'ortholog' AS kind
        FROM ortholog o
        WHERE o.name ILIKE $1 ESCAPE '\\' OR o.symbol ILIKE $1 ESCAPE '\\'
        ORDER BY o.species, o.symbol
        LIMIT $2 OFFSET $3
    """,
    # Per-target detail
    "target_props": """
        SELECT ti.itype, ti.number_value, ti.integer_value, ti.boolean_value,
               ti.date_value, ti.string_value
        FROM tdl_info ti
        JOIN t2tc ON t2tc.protein_id = ti.protein_id
        WHERE t2tc.target_id = $1
        ORDER BY ti.itype
    """,
    "target_expressions": """
        SELECT e.id AS expid, e.etype AS type, e.tissue, e.qual_value AS qual,
               e.number_value, e.boolean_value, e.string_value,
               e.evidence, e.zscore, e.conf, e.pubmed_id, e.uberon_id
        FROM expression e
        JOIN t2tc ON t2tc.protein_id = e.protein_id
        WHERE t2tc.target_id = $1
        ORDER BY e.etype, e.tissue
        LIMIT $2 OFFSET $3
    """,
    "target_orthologs": """
        SELECT o.id AS orid, o.species, o.symbol AS sym, o.name, o.db_id AS dbid,
               o.geneid, o.sources
        FROM ortholog o
        JOIN t2tc ON t2tc.protein_id = o.protein_id
        WHERE t2tc.target_id = $1
        ORDER BY o.species, o.symbol
        LIMIT $2 OFFSET $3
    """,
    "target_ppis": """
        SELECT p.id AS nid, p.ppitype AS type, p.p_int, p.p_ni, p.p_wrong,
               p.evidence, p.score, b.target_id, t.tdl, t.fam, n.score AS novelty
        FROM ppi p
        JOIN t2tc a ON a.protein_id = p.protein1_id
        JOIN t2tc b ON b.protein_id = p.protein2_id
        JOIN target t ON t.id = b.target_id
        LEFT JOIN tinx_novelty n ON n.protein_id = p.protein2_id
        WHERE a.target_id = $1
        ORDER BY p.score DESC NULLS LAST, p.id
        LIMIT $2 OFFSET $3
    """,
    "target_kegg": """
        SELECT kd.id AS nid, 'KEGG' AS type, kd.distance,
               b.target_id, t.tdl, t.fam, n.score AS novelty
        FROM kegg_distance kd
        JOIN t2tc a ON a.protein_id = kd.pid1
        JOIN t2tc b ON b.protein_id = kd.pid2
        JOIN target t ON t.id = b.target_id
        LEFT JOIN tinx_novelty n ON n.protein_id = kd.pid2
        WHERE a.target_id = $1
        ORDER BY kd.distance, kd.id
        LIMIT $2 OFFSET $3
    """,
    # Per-target count breakdowns, as (label, count)
    "counts_ppi": """
        SELECT p.ppitype AS label, COUNT(*) AS count
        FROM ppi p
        JOIN t2tc a ON a.protein_id = p.protein1_id
        WHERE a.target_id = $1
        GROUP BY p.ppitype ORDER BY count DESC, label
    """,
    "counts_disease": """
        SELECT d.dtype AS label, COUNT(*) AS count
        FROM disease d
        JOIN t2tc ON t2tc.protein_id = d.protein_id
        WHERE t2tc.target_id = $1
        GROUP BY d.dtype ORDER BY count DESC, label
    """,
    "counts_expression": """
        SELECT e.etype AS label, COUNT(*) AS count
        FROM expression e
        JOIN t2tc ON t2tc.protein_id = e.protein_id
        WHERE t2tc.target_id = $1
        GROUP BY e.etype ORDER BY count DESC, label
    """,
    "counts_ortholog": """
        SELECT o.species AS label, COUNT(*) AS count
        FROM ortholog o
        JOIN t2tc ON t2tc.protein_id = o.protein_id
        WHERE t2tc.target_id = $1
        GROUP BY o.species ORDER BY count DESC, label
    """,
    "counts_pathway": """
        SELECT pw.pwtype AS label, COUNT(*) AS count
        FROM pathway pw
        WHERE pw.target_id = $1
        GROUP BY pw.pwtype ORDER BY count DESC, label
    """,
}

NEIGHBOR_QUERIES = {"ppi": "target_ppis", "kegg": "target_kegg"}

TARGET_COUNT_KINDS = ("ppi", "disease", "expression", "ortholog", "pathway")


@dataclass(frozen=True)
class FacetSource:
    """
    SQL yielding (target_id, label) pairs for one facet.

    Numeric sources also yield `value`, which range filters apply to.
    """

    key: str
    name: str
    sql: str
    numeric: bool = False


_T2TC = "JOIN t2tc ON t2tc.protein_id = {alias}.protein_id"

FACET_SOURCES: dict[str, FacetSource] = {
    source.key: source
    for source in (
        FacetSource("tdl", "Target Development Level", "SELECT t.id AS target_id, t.tdl AS label FROM target t"),
        FacetSource(
            "fam",
            "Family",
            "SELECT t.id AS target_id, COALESCE(t.fam, 'Non-IDG') AS label FROM target t",
        ),
        FacetSource(
            "impc",
            "IMPC Phenotype",
            "SELECT t2tc.target_id, ph.term_name AS label FROM phenotype ph "
            + _T2TC.format(alias="ph")
            + " WHERE ph.ptype = 'IMPC'",
        ),
        FacetSource(
            "jax",
            "JAX/MGI Phenotype",
            "SELECT t2tc.target_id, ph.term_name AS label FROM phenotype ph "
            + _T2TC.format(alias="ph")
            + " WHERE ph.ptype = 'JAX/MGI Human Ortholog Phenotype'",
        ),
        FacetSource(
            "gwas",
            "GWAS",
            "SELECT t2tc.target_id, g.disease_trait AS label FROM gwas g " + _T2TC.format(alias="g"),
        ),
        FacetSource(
            "expression_consensus",
            "Expression: Consensus",
            "SELECT t2tc.target_id, e.tissue AS label FROM expression e "
            + _T2TC.format(alias="e")
            + " WHERE e.etype = 'Consensus'",
        ),
        FacetSource(
            "ortholog",
            "Ortholog",
            "SELECT t2tc.target_id, o.species AS label FROM ortholog o " + _T2TC.format(alias="o"),
        ),
        FacetSource(
            "disease",
            "Disease",
            "SELECT t2tc.target_id, d.name AS label FROM disease d " + _T2TC.format(alias="d"),
        ),
        FacetSource(
            "panther",
            "PANTHER Class",
            "SELECT t2tc.target_id, pc.name AS label FROM p2pc "
            "JOIN panther_class pc ON pc.id = p2pc.panther_class_id "
            + _T2TC.format(alias="p2pc"),
        ),
        FacetSource(
            "dto",
            "DTO Class",
            "SELECT t2tc.target_id, dto.name AS label FROM p2dto "
            "JOIN dto ON dto.dtoid = p2dto.dtoid "
            + _T2TC.format(alias="p2dto"),
        ),
        FacetSource(
            "reactome",
            "Reactome Pathway",
            "SELECT pw.target_id, pw.name AS label FROM pathway pw WHERE pw.pwtype = 'Reactome'",
        ),
        FacetSource(
            "keyword",
            "UniProt Keyword",
            "SELECT t2tc.target_id, x.xtra AS label FROM xref x "
            + _T2TC.format(alias="x")
            + " WHERE x.xtype = 'UniProt Keyword'",
        ),
        FacetSource(
            "data_source",
            "Data Source",
            "SELECT t2tc.target_id, d.dtype AS label FROM disease d " + _T2TC.format(alias="d"),
        ),
        FacetSource(
            "ligand_activity",
            "Ligand Activity",
            "SELECT c.target_id, c.catype AS label FROM cmpd_activity c",
        ),
        FacetSource(
            "log_novelty",
            "Log Novelty",
            "SELECT t2tc.target_id, floor(log(n.score))::int::text AS label, log(n.score) AS value "
            "FROM tinx_novelty n " + _T2TC.format(alias="n"),
            numeric=True,
        ),
        FacetSource(
            "pubmed_count",
            "PubMed Count",
            "SELECT t2tc.target_id, floor(log(ti.integer_value + 1))::int::text AS label, "
            "ti.integer_value AS value FROM tdl_info ti "
            + _T2TC.format(alias="ti")
            + " WHERE ti.itype = 'NCBI Gene PubMed Count'",
            numeric=True,
        ),
    )
}

ORDER_COLUMNS = {
    "id": "t.id",
    "name": "t.name",
    "sym": "p.sym",
    "tdl": "t.tdl",
    "fam": "t.fam",
    "uniprot": "p.uniprot",
}


class _Params:
    """Accumulates positional query arguments and hands out placeholders."""

    def __init__(self):
        self.values: list[Any] = []

    def add(self, value: Any) -> str:
        self.values.append(value)
        return f"${len(self.values)}"


def like_pattern(term: str) -> str:
    """Substring ILIKE pattern with LIKE wildcards in the term escaped."""
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def _facet_key_index() -> dict[str, str]:
    """Casefolded facet name, store key and every catalog alias, to store key."""
    index = {}
    for source in FACET_SOURCES.values():
        index[source.name.casefold()] = source.key
        index[source.key] = source.key
    for _, key, aliases in TARGET_FACETS:
        for alias in aliases:
            index.setdefault(alias.casefold(), key)
    return index


FACET_KEYS_BY_NAME = _facet_key_index()


def _facet_source_for(name: str) -> FacetSource | None:
    key = FACET_KEYS_BY_NAME.get(name.casefold())
    return FACET_SOURCES.get(key) if key else None


def _filter_conditions(filter: Filter, params: _Params) -> list[str]:
    """SQL conditions on `t.id` (and `p` for the term) implementing a filter."""
    conditions = []
    if filter.term:
        placeholder = params.add(like_pattern(filter.term))
        match = f"ILIKE {placeholder} ESCAPE '\\'"
        conditions.append(
            f"(t.name {match} OR p.sym {match} "
            f"OR p.uniprot {match} OR p.description {match})"
        )

    for facet in filter.facets:
        source = _facet_source_for(facet.name)
        if source is None:
            logger.debug(f"Ignoring filter on unknown facet: {facet.name}")
            continue
        if not facet.values:
            continue
        placeholder = params.add(list(facet.values))
        conditions.append(
            f"t.id IN (SELECT fs.target_id FROM ({source.sql}) fs "
            f"WHERE fs.label = ANY({placeholder}::text[]))"
        )

    for rng in filter.irange:
        source = _facet_source_for(rng.name)
        if source is None or not source.numeric:
            logger.debug(f"Ignoring range on non-numeric facet: {rng.name}")
            continue
        start, end = params.add(rng.start), params.add(rng.end)
        conditions.append(
            f"t.id IN (SELECT fs.target_id FROM ({source.sql}) fs "
            f"WHERE fs.value >= {start} AND fs.value < {end})"
        )
    return conditions


def _filtered_targets_sql(filter: Filter, params: _Params) -> str | None:
    """Sub-select of target ids matching the filter; None when unconstrained."""
    conditions = _filter_conditions(filter, params)
    if not conditions:
        return None
    return (
        "SELECT t.id FROM target t "
        "JOIN t2tc ON t2tc.target_id = t.id "
        "JOIN protein p ON p.id = t2tc.protein_id "
        f"WHERE {' AND '.join(conditions)}"
    )


def _order_clause(order: str | None) -> str:
    if not order:
        return "t.id"
    descending = order.startswith(("-", "^"))
    column = ORDER_COLUMNS.get(order.lstrip("-^").lower())
    if column is None:
        logger.debug(f"Unknown order '{order}'; using id")
        return "t.id"
    return f"{column} DESC" if descending else column


class StoreClient:
    """
    Async Postgres client for the TCRD schema.

    Features:
    - Connection pooling with configurable size
    - Automatic retry on transient failures
    - Query timeout enforcement
    """

    def __init__(
        self,
        host: str,
        database: str,
        user: str,
        password: str,
        port: int = 5432,
        min_pool_size: int = 2,
        max_pool_size: int = 10,
        command_timeout: int = 60,
    ):
        """
        Initialize store client.

        Args:
            host: Database host
            database: Database name
            user: Username
            password: Password
            port: Database port
            min_pool_size: Connections kept open
            max_pool_size: Maximum connections in pool
            command_timeout: Default statement timeout in seconds
        """
        self.host = host
        self.port = port
        self.database = database
        self.user = user
        self.password = password
        self.min_pool_size = min_pool_size
        self.max_pool_size = max_pool_size
        self.command_timeout = command_timeout

        self._pool: asyncpg.Pool | None = None
        self._lock = asyncio.Lock()

    async def connect(self) -> None:
        """Create the connection pool."""
        async with self._lock:
            if self._pool is not None:
                return
            try:
                self._pool = await asyncpg.create_pool(
                    host=self.host,
                    port=self.port,
                    database=self.database,
                    user=self.user,
                    password=self.password,
                    min_size=self.min_pool_size,
                    max_size=self.max_pool_size,
                    command_timeout=self.command_timeout,
                )
                logger.info(
                    f"Store client connected to {self.host}:{self.port}/{self.database} "
                    f"(pool_size={self.max_pool_size})"
                )
            except Exception as e:
                logger.error(f"Failed to connect to store: {e}")
                raise

    async def close(self) -> None:
        """Close the pool and all connections."""
        async with self._lock:
            if self._pool:
                await self._pool.close()
                self._pool = None
                logger.info("Store client closed")

    @property
    def connected(self) -> bool:
        return self._pool is not None

    def _require_pool(self) -> asyncpg.Pool:
        if self._pool is None:
            raise StoreError("Store client not connected. Call connect() first.")
        return self._pool

    @retry(
        retry=retry_if_exception_type(TRANSIENT_ERRORS),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        stop=stop_after_attempt(3),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    async def execute(
        self,
        sql: str,
        *args: Any,
        timeout: float | None = None,
        label: str = "query",
    ) -> list[dict[str, Any]]:
        """
        Run SQL and return rows as dictionaries.

        Args:
            sql: Statement with $n placeholders
            *args: Positional arguments
            timeout: Timeout in seconds; the pool default when None
            label: Name used in log messages

        Raises:
            StoreTimeoutError: If the statement times out
            StoreError: If not connected
        """
        pool = self._require_pool()
        try:
            async with pool.acquire() as conn:
                rows = await conn.fetch(sql, *args, timeout=timeout)
        except asyncio.TimeoutError as e:
            logger.error(f"Query '{label}' timed out after {timeout}s")
            raise StoreTimeoutError(f"Query '{label}' timed out") from e

        logger.debug(f"Query '{label}' returned {len(rows)} rows")
        return [dict(row) for row in rows]

    async def fetch(self, query_name: str, *args: Any, timeout: float | None = None) -> list[dict[str, Any]]:
        """Run a named query."""
        try:
            sql = QUERIES[query_name]
        except KeyError:
            raise ValueError(f"Unknown query: {query_name}") from None
        return await self.execute(sql, *args, timeout=timeout, label=query_name)

    async def fetch_one(self, query_name: str, *args: Any) -> dict[str, Any] | None:
        rows = await self.fetch(query_name, *args)
        return rows[0] if rows else None

    async def health_check(self) -> bool:
        """
        Check that the store answers a trivial query.

        Returns:
            True if healthy, False otherwise
        """
        try:
            return await self.fetch_one("health") is not None
        except Exception as e:
            logger.error(f"Store health check failed: {e}")
            return False

    # ------------------------------------------------------------------------
    # Hierarchies
    # ------------------------------------------------------------------------

    async def panther_rows(self, target_id: int) -> list[dict[str, Any]]:
        """PANTHER classes of a target together with their ancestors."""
        return await self.fetch("panther_classes", target_id)

    async def ontology_rows(self, source: OntologySource) -> list[dict[str, Any]]:
        """Every row of a global ontology."""
        return await self.fetch(f"ontology_{source.name}")

    # ------------------------------------------------------------------------
    # Facets and entity pages
    # ------------------------------------------------------------------------

    async def facet_counts(self, facet_key: str, filter: Filter) -> list[FacetValue]:
        """
        Count distinct targets per facet value under a filter.

        Args:
            facet_key: Key into FACET_SOURCES
            filter: Active filter

        Returns:
            FacetValues ordered by count, highest first
        """
        try:
            source = FACET_SOURCES[facet_key]
        except KeyError:
            raise ValueError(f"Unknown facet key: {facet_key}") from None

        params = _Params()
        targets = _filtered_targets_sql(filter, params)
        where = f"WHERE s.target_id IN ({targets})" if targets else ""
        sql = (
            "SELECT s.label AS label, COUNT(DISTINCT s.target_id) AS count "
            f"FROM ({source.sql}) s {where} "
            "GROUP BY s.label ORDER BY count DESC, label"
        )
        rows = await self.execute(sql, *params.values, label=f"facet:{facet_key}")
        return [FacetValue(label=str(r["label"]), count=r["count"]) for r in rows if r["label"] is not None]

    async def count_targets(self, filter: Filter) -> int:
        params = _Params()
        targets = _filtered_targets_sql(filter, params)
        sql = f"SELECT COUNT(*) AS n FROM ({targets}) x" if targets else "SELECT COUNT(*) AS n FROM target"
        rows = await self.execute(sql, *params.values, label="count_targets")
        return rows[0]["n"] if rows else 0

    async def targets(self, filter: Filter, skip: int, top: int) -> list[dict[str, Any]]:
        """One page of targets matching a filter."""
        params = _Params()
        targets = _filtered_targets_sql(filter, params)
        where = f"WHERE t.id IN ({targets})" if targets else ""
        limit, offset = params.add(top), params.add(skip)
        sql = (
            "SELECT t.id AS tcrdid, p.uniprot, t.name, p.sym, p.description, "
            "t.tdl, t.fam, p.seq, 'target' AS kind "
            "FROM target t "
            "JOIN t2tc ON t2tc.target_id = t.id "
            "JOIN protein p ON p.id = t2tc.protein_id "
            f"{where} ORDER BY {_order_clause(filter.order)} "
            f"LIMIT {limit} OFFSET {offset}"
        )
        return await self.execute(sql, *params.values, label="targets")

    # ------------------------------------------------------------------------
    # Ligands
    # ------------------------------------------------------------------------

    async def drug_rows(self, ligand_id: str) -> list[dict[str, Any]]:
        return await self.fetch("drug_rows", ligand_id)

    async def compound_rows(self, ligand_id: str) -> list[dict[str, Any]]:
        return await self.fetch("compound_rows", ligand_id)

    # ------------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------------

    async def search_targets(self, term: str, skip: int = 0, top: int = 10) -> list[dict[str, Any]]:
        return await self.targets(Filter(term=term), skip, top)

    async def search_diseases(self, term: str, skip: int = 0, top: int = 10) -> list[dict[str, Any]]:
        return await self.fetch("search_diseases", like_pattern(term), top, skip)

    async def search_pubs(self, term: str, skip: int = 0, top: int = 10) -> list[dict[str, Any]]:
        return await self.fetch("search_pubs", like_pattern(term), top, skip)

    async def search_orthologs(self, term: str, skip: int = 0, top: int = 10) -> list[dict[str, Any]]:
        return await self.fetch("search_orthologs", like_pattern(term), top, skip)

    # ------------------------------------------------------------------------
    # Target detail
    # ------------------------------------------------------------------------

    async def target_props(self, target_id: int) -> list[dict[str, Any]]:
        """Typed TDL info rows of a target."""
        return await self.fetch("target_props", target_id)

    async def target_expressions(self, target_id: int, skip: int = 0, top: int = 10) -> list[dict[str, Any]]:
        return await self.fetch("target_expressions", target_id, top, skip)

    async def target_orthologs(self, target_id: int, skip: int = 0, top: int = 10) -> list[dict[str, Any]]:
        return await self.fetch("target_orthologs", target_id, top, skip)

    async def target_neighbors(
        self, target_id: int, kind: str = "ppi", skip: int = 0, top: int = 10
    ) -> list[dict[str, Any]]:
        """
        Targets linked to a target by interaction or pathway distance.

        Args:
            target_id: TCRD target id
            kind: "ppi" or "kegg"
            skip: Rows to skip
            top: Maximum rows to return

        Raises:
            ValueError: If kind is unknown
        """
        try:
            query_name = NEIGHBOR_QUERIES[kind]
        except KeyError:
            raise ValueError(f"Unknown neighbor kind: {kind}. Known: {sorted(NEIGHBOR_QUERIES)}") from None
        return await self.fetch(query_name, target_id, top, skip)

    async def target_counts(self, target_id: int, kind: str) -> list[FacetValue]:
        """
        Per-target count breakdown, such as PPIs by interaction type.

        Raises:
            ValueError: If kind is not one of TARGET_COUNT_KINDS
        """
        if kind not in TARGET_COUNT_KINDS:
            raise ValueError(f"Unknown count kind: {kind}. Known: {list(TARGET_COUNT_KINDS)}")
        rows = await self.fetch(f"counts_{kind}", target_id)
        return [FacetValue(label=str(r["label"]), count=r["count"]) for r in rows if r["label"] is not None]
