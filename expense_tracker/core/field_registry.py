"""Field Registry — static map from wire field names to typed accessors per entity type.

Invariants:
    - Built once at import time; never mutated afterwards
    - Lookups are case-insensitive and whitespace-trimmed ("ExpenseGroupStatusId" == "expensegroupstatusid")
    - Every addressable field has a pydantic TypeAdapter that validates incoming values
    - Constrained types (Title, Amount, ...) are the ones request bodies use, so a
      patched value obeys the same length and precision limits as a POST or PUT
    - A required field cannot be removed; it has no default to fall back to
    - Field order in a schema is the canonical output order

Design Decisions:
    - Explicit registry over getattr on arbitrary names: shaping, sorting and patching
      can only ever touch fields listed here; unknown names are rejected at the boundary
    - TypeAdapter per field: same validation rules pydantic applies to request bodies
"""

import copy
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Annotated, Any, Iterable

from pydantic import Field, StringConstraints, TypeAdapter

from expense_tracker.core.domain_types import EXPENSES_FIELD, ExpenseGroupStatus
from expense_tracker.core.dtos import ExpenseDTO


Title = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=200)]
GroupDescription = Annotated[str, StringConstraints(max_length=10_000)]
OwnerId = Annotated[str, StringConstraints(max_length=500)]
ExpenseDescription = Annotated[str, StringConstraints(max_length=500)]
Amount = Annotated[Decimal, Field(max_digits=18, decimal_places=2)]


@dataclass(frozen=True, eq=False)
class FieldSpec:
    """A scalar field: wire name, DTO attribute, value type and defaults."""
    name: str
    attr: str
    adapter: TypeAdapter
    type_name: str
    default: Any = None
    read_only: bool = False
    required: bool = False
    sortable: bool = True

    @property
    def key(self) -> str:
        return self.name.lower()

    def read(self, obj: Any) -> Any:
        return getattr(obj, self.attr)

    def write(self, obj: Any, value: Any) -> None:
        setattr(obj, self.attr, value)

    def validate(self, value: Any) -> Any:
        """Convert value to the field type. Raises ValueError on mismatch."""
        return self.adapter.validate_python(value)


@dataclass(frozen=True, eq=False)
class CollectionSpec:
    """An owned, ordered collection of child entities (e.g. a group's expenses)."""
    name: str
    attr: str
    item_schema: "EntitySchema"
    item_type: type

    @property
    def key(self) -> str:
        return self.name.lower()

    def read(self, obj: Any) -> list | None:
        return getattr(obj, self.attr)

    def write(self, obj: Any, items: list | None) -> None:
        setattr(obj, self.attr, items)

    def build_item(self, value: Any) -> Any:
        """Build a child entity from a wire dict or copy an existing one.

        Read-only fields in a wire dict are ignored; the store assigns them.
        Raises ValueError when value cannot form a child entity.
        """
        if isinstance(value, self.item_type):
            return copy.deepcopy(value)
        if not isinstance(value, dict):
            raise ValueError(f"{self.name} item must be an object")
        item = self.item_type()
        for raw_name, raw_value in value.items():
            spec = self.item_schema.field(raw_name)
            if spec is None or spec.read_only:
                continue
            spec.write(item, spec.validate(raw_value))
        return item

    def build_items(self, value: Any) -> list:
        if not isinstance(value, list):
            raise ValueError(f"{self.name} must be an array")
        return [self.build_item(v) for v in value]


class EntitySchema:
    """Addressable surface of one entity type: scalar fields plus owned collections."""

    def __init__(
        self,
        name: str,
        fields: Iterable[FieldSpec],
        collections: Iterable[CollectionSpec] = (),
        id_field: str = "id",
    ):
        self.name = name
        self._fields = tuple(fields)
        self._collections = tuple(collections)
        self._fields_by_key = {f.key: f for f in self._fields}
        self._collections_by_key = {c.key: c for c in self._collections}
        self.id_field = self._fields_by_key[id_field.lower()]

    @property
    def fields(self) -> tuple[FieldSpec, ...]:
        return self._fields

    @property
    def collections(self) -> tuple[CollectionSpec, ...]:
        return self._collections

    def field(self, name: str) -> FieldSpec | None:
        return self._fields_by_key.get(name.strip().lower())

    def collection(self, name: str) -> CollectionSpec | None:
        return self._collections_by_key.get(name.strip().lower())

    def to_dict(self, obj: Any) -> dict[str, Any]:
        """Full canonical representation, camelCase keys, schema order."""
        out = {spec.name: spec.read(obj) for spec in self._fields}
        for coll in self._collections:
            items = coll.read(obj)
            out[coll.name] = (
                None if items is None
                else [coll.item_schema.to_dict(i) for i in items]
            )
        return out


def _make_field(
    name: str, attr: str, tp: Any, type_name: str, **kwargs: Any,
) -> FieldSpec:
    return FieldSpec(
        name=name, attr=attr, adapter=TypeAdapter(tp), type_name=type_name, **kwargs,
    )


EXPENSE_SCHEMA = EntitySchema(
    "Expense",
    fields=[
        _make_field("id", "id", int, "integer", read_only=True),
        _make_field(
            "expenseGroupId", "expense_group_id", int, "integer", read_only=True,
        ),
        _make_field(
            "description", "description", ExpenseDescription,
            "string (at most 500 characters)", default="",
        ),
        _make_field("date", "date", date | None, "date"),
        _make_field(
            "amount", "amount", Amount, "decimal (at most 2 decimal places)",
            default=Decimal("0"),
        ),
    ],
)

EXPENSE_GROUP_SCHEMA = EntitySchema(
    "ExpenseGroup",
    fields=[
        _make_field("id", "id", int, "integer", read_only=True),
        _make_field("userId", "user_id", OwnerId | None, "string (at most 500 characters)"),
        _make_field(
            "title", "title", Title, "non-blank string (at most 200 characters)",
            required=True,
        ),
        _make_field(
            "description", "description", GroupDescription | None,
            "string (at most 10000 characters)",
        ),
        _make_field(
            "expenseGroupStatusId", "expense_group_status_id",
            ExpenseGroupStatus, "expense group status (1, 2 or 3)",
            default=ExpenseGroupStatus.OPEN,
        ),
    ],
    collections=[
        CollectionSpec(
            name=EXPENSES_FIELD, attr="expenses",
            item_schema=EXPENSE_SCHEMA, item_type=ExpenseDTO,
        ),
    ],
)
