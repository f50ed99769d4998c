"""Field Shaper — narrows an entity to a client-requested subset of fields.

Invariants:
    - Output always contains the schema's id field
    - Output keys are exactly (requested ∩ schema fields) ∪ {id}, in schema order,
      so the result does not depend on the order of the request
    - Unknown field names are dropped silently, never an error
    - A token containing a collection name ("expenses", "expenses.id") includes the
      whole collection as full, unshaped child objects
    - Pure: the entity is never mutated

Design Decisions:
    - Registry-driven (no getattr on arbitrary names)
    - Collection must be loaded upstream; callers use wants_collection() to decide
      whether to eager-load before fetching
"""

from typing import Any, Iterable

from expense_tracker.core.field_registry import EntitySchema


def parse_field_list(fields: str | Iterable[str] | None) -> list[str]:
    """Split a comma-separated field list into lower-cased, trimmed tokens."""
    if fields is None:
        return []
    tokens = fields.split(",") if isinstance(fields, str) else fields
    return [t.strip().lower() for t in tokens if t and t.strip()]


def wants_collection(fields: str | Iterable[str] | None, collection_name: str) -> bool:
    """True when any requested token mentions the collection."""
    needle = collection_name.lower()
    return any(needle in token for token in parse_field_list(fields))


def shape(
    entity: Any, fields: str | Iterable[str] | None, schema: EntitySchema,
) -> dict[str, Any]:
    """Return the requested view of entity as a camelCase dict."""
    tokens = parse_field_list(fields)
    if not tokens:
        return schema.to_dict(entity)

    requested = set(tokens)
    shaped: dict[str, Any] = {}
    for spec in schema.fields:
        if spec is schema.id_field or spec.key in requested:
            shaped[spec.name] = spec.read(entity)

    for coll in schema.collections:
        if not any(coll.key in token for token in tokens):
            continue
        items = coll.read(entity)
        shaped[coll.name] = (
            None if items is None
            else [coll.item_schema.to_dict(i) for i in items]
        )
    return shaped


def shape_many(
    entities: Iterable[Any], fields: str | Iterable[str] | None, schema: EntitySchema,
) -> list[dict[str, Any]]:
    return [shape(e, fields, schema) for e in entities]
