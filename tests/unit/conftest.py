"""
Shared fixtures for unit tests.

Every store interaction is faked with AsyncMock; no database is needed.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from tcrd_core.schemas import FacetValue


@pytest.fixture
def panther_rows():
    """
    PANTHER classes of one target as stored.

    PC00021 (G-protein coupled receptor) -> PC00197 (transmembrane signal receptor)
    PC00171 (kinase) -> PC00220, which is not part of the batch
    """
    return [
        {"id": "PC00021", "name": "G-protein coupled receptor", "parent_ids": "PC00000|PC00197|PC00197"},
        {"id": "PC00197", "name": "transmembrane signal receptor", "parent_ids": "PC00000"},
        {"id": "PC00171", "name": "kinase", "parent_ids": "PC00000|PC00220"},
    ]


@pytest.fixture
def do_rows():
    """Small Disease Ontology slice with two roots."""
    return [
        {"id": "DOID:4", "name": "disease", "parent_ids": None},
        {"id": "DOID:162", "name": "cancer", "parent_ids": "DOID:4"},
        {"id": "DOID:1612", "name": "breast cancer", "parent_ids": "DOID:162"},
        {"id": "DOID:3263", "name": "lung carcinoma", "parent_ids": "DOID:162"},
        {"id": "DOID:7", "name": "disease of anatomical entity", "parent_ids": ""},
    ]


def _facet_counts(facet_key, filter):
    if facet_key == "tdl":
        return [FacetValue(label="Tchem", count=7), FacetValue(label="Tclin", count=3)]
    if facet_key == "ligand_activity":
        return [
            FacetValue(label="IC50", count=2),
            FacetValue(label="Ki", count=9),
            FacetValue(label="EC50", count=4),
        ]
    return [FacetValue(label=f"{facet_key}-value", count=1)]


@pytest.fixture
def mock_store(panther_rows, do_rows):
    """Store double exposing the coroutine surface of StoreClient."""
    store = MagicMock()
    store.connect = AsyncMock()
    store.close = AsyncMock()
    store.panther_rows = AsyncMock(return_value=panther_rows)
    store.ontology_rows = AsyncMock(
        side_effect=lambda source: {"do": do_rows}.get(source.name, [])
    )
    store.facet_counts = AsyncMock(side_effect=_facet_counts)
    store.targets = AsyncMock(
        side_effect=lambda filter, skip, top: [{"tcrdid": i, "kind": "target"} for i in range(skip, skip + top)]
    )
    store.drug_rows = AsyncMock(return_value=[])
    store.compound_rows = AsyncMock(return_value=[])
    store.search_targets = AsyncMock(return_value=[{"kind": "target", "tcrdid": 1}])
    store.search_diseases = AsyncMock(return_value=[{"kind": "disease", "name": "asthma"}])
    store.search_pubs = AsyncMock(return_value=[{"kind": "pubmed", "pmid": 12345}])
    store.search_orthologs = AsyncMock(return_value=[{"kind": "ortholog", "sym": "Egfr"}])
    store.count_targets = AsyncMock(return_value=10)
    store.health_check = AsyncMock(return_value=True)
    store.target_props = AsyncMock(return_value=[
        {"itype": "IDG Disease", "string_value": "asthma"},
        {"itype": "JensenLab PubMed Score", "number_value": 128.5},
        {"itype": "Is Transcription Factor", "boolean_value": False},
    ])
    store.target_expressions = AsyncMock(return_value=[
        {"expid": 1, "type": "GTEx", "tissue": "Lung", "number_value": 0, "string_value": "Low"},
    ])
    store.target_orthologs = AsyncMock(return_value=[
        {"orid": 7, "species": "Mouse", "sym": "Egfr", "sources": "OMA, EggNOG,Inparanoid"},
    ])
    store.target_neighbors = AsyncMock(return_value=[
        {"nid": 3, "type": "KEGG", "distance": 2, "target_id": 9, "tdl": "Tbio", "fam": None, "novelty": 0.5},
    ])
    store.target_counts = AsyncMock(return_value=[FacetValue(label="STRINGDB", count=12)])
    return store
