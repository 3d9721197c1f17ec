"""
Unit tests for row decoding and row-shaping helpers.

Run with: pytest tests/unit/test_row_decoder.py -v
"""

import pytest

from tcrd_core.services.row_decoder import (
    DecodedRow,
    coalesce_expression_value,
    coalesce_prop_value,
    decode_ancestor_chain,
    decode_row,
    neighbor_props,
    split_sources,
)


# =============================================================================
# Test decode_ancestor_chain
# =============================================================================

class TestDecodeAncestorChain:
    """Test ancestor column parsing."""

    def test_sentinel_self_and_repeats_dropped(self):
        """Test the stored PANTHER encoding reduces to real, unique parents."""
        chain = decode_ancestor_chain("PC00000|PC00197|PC00197|PC00021", own_id="PC00021")
        assert chain == ("PC00197",)

    def test_first_occurrence_order_kept(self):
        chain = decode_ancestor_chain("PC3|PC1|PC3|PC2|PC1")
        assert chain == ("PC3", "PC1", "PC2")

    def test_whitespace_and_empty_tokens(self):
        """Test tokens are stripped and empty tokens vanish."""
        assert decode_ancestor_chain(" PC1 | |PC2|| ") == ("PC1", "PC2")

    @pytest.mark.parametrize("raw", [None, "", 42, ["PC1"]])
    def test_missing_or_malformed_input(self, raw):
        """Test tolerant parsing yields an empty chain."""
        assert decode_ancestor_chain(raw) == ()

    def test_only_sentinel(self):
        assert decode_ancestor_chain("PC00000") == ()

    def test_no_sentinel_keeps_pc00000(self):
        """Test ontologies without a sentinel keep every token."""
        assert decode_ancestor_chain("PC00000|X", sentinel=None) == ("PC00000", "X")

    def test_custom_delimiter(self):
        assert decode_ancestor_chain("DOID:4,DOID:162", delimiter=",") == ("DOID:4", "DOID:162")

    def test_empty_delimiter(self):
        assert decode_ancestor_chain("PC1|PC2", delimiter="") == ()

    def test_result_is_immutable(self):
        chain = decode_ancestor_chain("PC1|PC2")
        assert isinstance(chain, tuple)


# =============================================================================
# Test decode_row
# =============================================================================

class TestDecodeRow:
    """Test decoding whole rows."""

    def test_decode_row(self):
        row = {"id": " PC00021 ", "name": "GPCR", "parent_ids": "PC00000|PC00197|PC00021"}
        decoded = decode_row(row)

        assert decoded == DecodedRow(id="PC00021", name="GPCR", ancestors=("PC00197",))

    def test_missing_name_falls_back_to_id(self):
        decoded = decode_row({"id": "DOID:4", "parent_ids": None})
        assert decoded.name == "DOID:4"
        assert decoded.ancestors == ()

    def test_custom_columns(self):
        row = {"pcid": "PC1", "label": "kinase", "parent_pcids": "PC00000|PC9"}
        decoded = decode_row(row, id_field="pcid", name_field="label", parents_field="parent_pcids")

        assert decoded.id == "PC1"
        assert decoded.name == "kinase"
        assert decoded.ancestors == ("PC9",)


# =============================================================================
# Test row-shaping helpers
# =============================================================================

class TestCoalescePropValue:
    """Test typed property collapsing."""

    def test_number_wins(self):
        row = {"itype": "JensenLab PubMed Score", "number_value": 12.5, "string_value": "x"}
        assert coalesce_prop_value(row) == {"name": "JensenLab PubMed Score", "value": "12.5"}

    def test_integer_value(self):
        row = {"itype": "NCBI Gene PubMed Count", "number_value": None, "integer_value": 0}
        assert coalesce_prop_value(row) == {"name": "NCBI Gene PubMed Count", "value": "0"}

    def test_boolean_rendered_lowercase(self):
        row = {"itype": "Is Transcription Factor", "boolean_value": False}
        assert coalesce_prop_value(row)["value"] == "false"

    def test_string_fallback(self):
        row = {"itype": "UniProt Function", "string_value": "Receptor tyrosine kinase"}
        assert coalesce_prop_value(row)["value"] == "Receptor tyrosine kinase"

    def test_nothing_set(self):
        assert coalesce_prop_value({"itype": "Empty"}) == {"name": "Empty", "value": None}


class TestOtherHelpers:
    """Test expression, ortholog source and neighbor helpers."""

    def test_expression_skips_falsy(self):
        row = {"number_value": 0, "boolean_value": None, "string_value": "High"}
        assert coalesce_expression_value(row) == "High"

    def test_expression_number(self):
        assert coalesce_expression_value({"number_value": 3.2, "string_value": "Low"}) == 3.2

    def test_expression_empty(self):
        assert coalesce_expression_value({}) is None

    def test_split_sources(self):
        assert split_sources("OMA, EggNOG,,Inparanoid ") == ["OMA", "EggNOG", "Inparanoid"]

    @pytest.mark.parametrize("raw", [None, ""])
    def test_split_sources_empty(self, raw):
        assert split_sources(raw) == []

    def test_kegg_neighbor(self):
        row = {"type": "KEGG", "tdl": "Tclin", "fam": "Kinase", "novelty": None, "distance": 2, "score": 0.9}
        props = neighbor_props(row)

        assert props == [
            {"name": "tdl", "value": "Tclin"},
            {"name": "fam", "value": "Kinase"},
            {"name": "distance", "value": 2},
        ]

    def test_ppi_neighbor(self):
        row = {"type": "STRINGDB", "tdl": "Tdark", "novelty": 0.4, "p_int": 0.8, "p_ni": None, "score": 700}
        names = [p["name"] for p in neighbor_props(row)]

        assert names == ["tdl", "novelty", "p_int", "score"]
