"""
Row decoding for flat hierarchy rows and other raw store rows.

Ontology tables store each class with its ancestors packed into one
delimited column, e.g. ``"PC00000|PC00197|PC00197|PC00021"``. The decoder
turns that column into an ordered, de-duplicated ancestor chain.
"""

import logging
from dataclasses import dataclass
from typing import Any

from tcrd_core.constants import (
    ANCESTOR_DELIMITER,
    NEIGHBOR_KEGG,
    NEIGHBOR_PPI_PROPS,
    PANTHER_ROOT,
)

logger = logging.getLogger(__name__)

AncestorChain = tuple[str, ...]


@dataclass(frozen=True)
class DecodedRow:
    """An ontology row reduced to identity, name and ancestor chain."""

    id: str
    name: str
    ancestors: AncestorChain


def decode_ancestor_chain(
    raw: Any,
    own_id: str | None = None,
    sentinel: str | None = PANTHER_ROOT,
    delimiter: str = ANCESTOR_DELIMITER,
) -> AncestorChain:
    """
    Parse a delimited ancestor column into an ancestor chain.

    Tokens are whitespace-stripped; empty tokens, the sentinel root and the
    row's own id are dropped, and only the first occurrence of a repeated
    token is kept.

    Args:
        raw: Raw column value
        own_id: Identifier of the row the column belongs to
        sentinel: Universal root token, or None if the ontology has none
        delimiter: Token separator

    Returns:
        Ancestor ids in first-seen order; () for missing or malformed input

    Example:
        >>> decode_ancestor_chain("PC00000|PC00197|PC00197|PC00021", "PC00021")
        ('PC00197',)
    """
    if not isinstance(raw, str) or not delimiter:
        if raw is not None:
            logger.debug(f"Unparseable ancestor chain for {own_id}: {raw!r}")
        return ()

    chain: list[str] = []
    seen: set[str] = set()
    for token in raw.split(delimiter):
        token = token.strip()
        if not token or token == sentinel or token == own_id or token in seen:
            continue
        seen.add(token)
        chain.append(token)
    return tuple(chain)


def decode_row(
    row: dict[str, Any],
    id_field: str = "id",
    name_field: str = "name",
    parents_field: str = "parent_ids",
    sentinel: str | None = PANTHER_ROOT,
    delimiter: str = ANCESTOR_DELIMITER,
) -> DecodedRow:
    """
    Decode one raw ontology row.

    Args:
        row: Raw row mapping
        id_field: Column holding the class id
        name_field: Column holding the display name
        parents_field: Column holding the delimited ancestor ids

    Returns:
        DecodedRow; a missing name falls back to the id
    """
    node_id = str(row[id_field]).strip()
    name = row.get(name_field) or node_id
    ancestors = decode_ancestor_chain(
        row.get(parents_field),
        own_id=node_id,
        sentinel=sentinel,
        delimiter=delimiter,
    )
    return DecodedRow(id=node_id, name=name, ancestors=ancestors)


# ============================================================================
# Value shaping for property-style rows
# ============================================================================


def coalesce_prop_value(row: dict[str, Any]) -> dict[str, str | None]:
    """
    Collapse a typed property row into a {name, value} pair.

    The first non-null of number, integer, boolean and date value is
    rendered as a string; otherwise the string value is used as-is.
    """
    for column in ("number_value", "integer_value", "boolean_value", "date_value"):
        value = row.get(column)
        if value is not None:
            if isinstance(value, bool):
                value = "true" if value else "false"
            return {"name": row.get("itype"), "value": str(value)}
    return {"name": row.get("itype"), "value": row.get("string_value")}


def coalesce_expression_value(row: dict[str, Any]) -> Any:
    """First truthy of number, boolean and string value of an expression row."""
    for column in ("number_value", "boolean_value", "string_value"):
        value = row.get(column)
        if value:
            return value
    return None


def split_sources(raw: str | None) -> list[str]:
    """Split a comma-separated source list such as 'OMA, EggNOG,Inparanoid'."""
    if not raw:
        return []
    return [s.strip() for s in raw.split(",") if s.strip()]


def neighbor_props(row: dict[str, Any]) -> list[dict[str, Any]]:
    """
    Build the property list of a target neighbor.

    KEGG neighbors carry their pathway distance; anything else is treated
    as a protein-protein interaction and carries its interaction scores.
    """
    props = [{"name": "tdl", "value": row.get("tdl")}]
    for key in ("novelty", "fam"):
        if row.get(key):
            props.append({"name": key, "value": row[key]})

    if row.get("type") == NEIGHBOR_KEGG:
        props.append({"name": "distance", "value": row.get("distance")})
    else:
        for key in NEIGHBOR_PPI_PROPS:
            if row.get(key):
                props.append({"name": key, "value": row[key]})
    return props
