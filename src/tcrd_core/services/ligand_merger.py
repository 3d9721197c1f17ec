"""
Ligand merging across the drug and compound activity tables.

A ligand may appear as approved-drug rows (drug_activity) and as plain
compound rows (cmpd_activity), several times each. Merging folds those rows
into one canonical ligand:

- identity: structural hash (LyChI), else drug name, else source compound id
- drug rows win for name, SMILES and description
- synonyms accumulate in row order; duplicates are kept
- activity count is the number of contributing rows
"""

import asyncio
import logging
from collections.abc import Iterable
from typing import Any, Protocol

from tcrd_core.constants import (
    XREF_CHEMBL,
    XREF_DRUGCENTRAL,
    XREF_PUBCHEM,
    XREF_REFERENCE,
    LigandSource,
)
from tcrd_core.schemas import CanonicalLigand, LigandRow, LigandSynonym

logger = logging.getLogger(__name__)

ALL_SOURCES = (LigandSource.DRUG, LigandSource.COMPOUND)


def ligand_identity(row: LigandRow) -> str | None:
    """Identity key of a single row, by precedence."""
    return row.lychi_h4 or row.drug or row.cmpd_id_in_src


def row_synonyms(row: LigandRow) -> list[LigandSynonym]:
    """
    Synonyms contributed by one row.

    A source-typed compound id, external database cross references, and the
    row's citation, each only when present.
    """
    synonyms = []
    if row.cmpd_id_in_src:
        synonyms.append(LigandSynonym(source=row.catype or "compound", value=row.cmpd_id_in_src))
    if row.cmpd_chemblid:
        synonyms.append(LigandSynonym(source=XREF_CHEMBL, value=row.cmpd_chemblid))
    if row.cmpd_pubchem_cid:
        synonyms.append(LigandSynonym(source=XREF_PUBCHEM, value=row.cmpd_pubchem_cid))
    if row.dcid:
        synonyms.append(LigandSynonym(source=XREF_DRUGCENTRAL, value=row.dcid))
    citation = row.reference or row.source
    if citation:
        synonyms.append(LigandSynonym(source=XREF_REFERENCE, value=citation))
    return synonyms


def _first(values: Iterable[str | None]) -> str | None:
    return next((v for v in values if v), None)


def merge_ligand_rows(
    rows: Iterable[LigandRow | dict[str, Any]],
    include: Iterable[LigandSource] = ALL_SOURCES,
) -> CanonicalLigand | None:
    """
    Fold rows describing one ligand into a canonical record.

    Args:
        rows: Rows in encounter order; dicts must carry an 'origin' key
        include: Source tables whose rows count; others are ignored

    Returns:
        CanonicalLigand, or None when no row has an identifying field
    """
    include = set(include)
    rows = [r for r in (_as_row(r) for r in rows) if r.origin in include]

    identity = (
        _first(r.lychi_h4 for r in rows)
        or _first(r.drug for r in rows)
        or _first(r.cmpd_id_in_src for r in rows)
    )
    if identity is None:
        return None

    drug_rows = [r for r in rows if r.is_drug]
    compound_rows = [r for r in rows if not r.is_drug]

    name = (
        _first(r.drug for r in drug_rows)
        or _first(r.cmpd_name_in_src for r in compound_rows)
        or identity
    )
    smiles = _first(r.smiles for r in drug_rows) or _first(r.smiles for r in compound_rows)
    description = _first(r.nlm_drug_info for r in drug_rows)

    synonyms: list[LigandSynonym] = []
    for row in rows:
        synonyms.extend(row_synonyms(row))

    return CanonicalLigand(
        identity=identity,
        name=name,
        is_drug=bool(drug_rows),
        smiles=smiles,
        description=description,
        synonyms=synonyms,
        activity_count=len(drug_rows) + len(compound_rows),
    )


def group_ligand_rows(
    rows: Iterable[LigandRow | dict[str, Any]],
    include: Iterable[LigandSource] = ALL_SOURCES,
) -> list[CanonicalLigand]:
    """
    Merge a mixed batch into one canonical ligand per identity.

    Rows are grouped by their own identity key; rows without one are
    skipped. Groups keep first-seen order.
    """
    include = set(include)
    groups: dict[str, list[LigandRow]] = {}
    skipped = 0
    for raw in rows:
        row = _as_row(raw)
        if row.origin not in include:
            continue
        key = ligand_identity(row)
        if key is None:
            skipped += 1
            continue
        groups.setdefault(key, []).append(row)

    if skipped:
        logger.debug(f"Skipped {skipped} ligand row(s) without an identity")

    ligands = []
    for group in groups.values():
        ligand = merge_ligand_rows(group, include)
        if ligand is not None:
            ligands.append(ligand)
    return ligands


def _as_row(row: LigandRow | dict[str, Any]) -> LigandRow:
    if isinstance(row, LigandRow):
        return row
    return LigandRow.model_validate(row)


class LigandRowSource(Protocol):
    async def drug_rows(self, ligand_id: str) -> list[dict[str, Any]]: ...

    async def compound_rows(self, ligand_id: str) -> list[dict[str, Any]]: ...


class LigandMerger:
    """Fetches a ligand's rows from both tables and merges them."""

    def __init__(self, store: LigandRowSource):
        self.store = store

    async def fetch(
        self,
        ligand_id: str,
        include_drugs: bool = True,
        include_compounds: bool = True,
    ) -> CanonicalLigand | None:
        """
        Fetch and merge one ligand.

        Both tables are queried concurrently when both are requested; the
        activity count then sums the two.

        Args:
            ligand_id: Structural hash, drug name or source compound id
            include_drugs: Query drug_activity
            include_compounds: Query cmpd_activity

        Returns:
            CanonicalLigand, or None if no row identifies it
        """
        queries = []
        if include_drugs:
            queries.append((LigandSource.DRUG, self.store.drug_rows(ligand_id)))
        if include_compounds:
            queries.append((LigandSource.COMPOUND, self.store.compound_rows(ligand_id)))
        if not queries:
            return None

        results = await asyncio.gather(*(q for _, q in queries))

        rows: list[LigandRow] = []
        for (origin, _), records in zip(queries, results):
            rows.extend(LigandRow.from_record(record, origin) for record in records)

        ligand = merge_ligand_rows(rows, [origin for origin, _ in queries])
        if ligand is None:
            logger.debug(f"No identifying rows for ligand {ligand_id}")
        return ligand
