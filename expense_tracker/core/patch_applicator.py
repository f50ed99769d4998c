"""Patch Applicator — typed JSON-patch (add/remove/replace/move/copy/test) over DTOs.

Invariants:
    - Paths resolve only against the schema's closed set of fields and collections
    - Operation kind, path and value type are validated when the document is parsed
    - Operations apply strictly in document order; the first failure aborts
    - apply_patch never mutates its input: it works on a deep copy and returns it,
      so a failed patch leaves the caller's object untouched and nothing is persisted
    - Read-only locations reject every mutating operation; 'test' may still read them
    - Required fields (title) can be replaced but never removed or moved away

Design Decisions:
    - Tagged operation (PatchOp + PatchPath) over a generic object-graph walker:
      every addressable location is known up front
    - Paths accept both JSON-pointer ("/expenses/0/amount") and dotted ("expenses.0.amount") forms
    - move/copy re-validate the value against the destination type at apply time
"""

import copy
import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Iterable

from expense_tracker.core.errors import (
    PathNotFoundError,
    TestFailedError,
    TypeMismatchError,
    UnsupportedOperationError,
    ValidationFailureError,
)
from expense_tracker.core.field_registry import CollectionSpec, EntitySchema, FieldSpec

logger = logging.getLogger(__name__)

APPEND_TOKEN = "-"
_SEGMENT_SEPARATORS = re.compile(r"[/.]")


class PatchOp(str, Enum):
    """Supported patch operation kinds."""
    ADD = "add"
    REMOVE = "remove"
    REPLACE = "replace"
    MOVE = "move"
    COPY = "copy"
    TEST = "test"


class PathKind(str, Enum):
    """What a resolved path addresses."""
    FIELD = "field"                  # /title
    COLLECTION = "collection"        # /expenses
    ELEMENT = "element"              # /expenses/0, /expenses/-
    ELEMENT_FIELD = "element_field"  # /expenses/0/amount


@dataclass(frozen=True, eq=False)
class PatchPath:
    """A path resolved against an EntitySchema."""
    raw: str
    kind: PathKind
    field: FieldSpec | None = None
    collection: CollectionSpec | None = None
    index: int | None = None  # None on an ELEMENT path means "append"

    @property
    def appends(self) -> bool:
        return self.kind is PathKind.ELEMENT and self.index is None

    @property
    def read_only(self) -> bool:
        return self.field is not None and self.field.read_only

    @property
    def required(self) -> bool:
        return self.field is not None and self.field.required

    @property
    def type_name(self) -> str:
        if self.field is not None:
            return self.field.type_name
        item = self.collection.item_schema.name
        if self.kind is PathKind.COLLECTION:
            return f"array of {item} objects"
        return f"{item} object"

    def contains(self, other: "PatchPath") -> bool:
        """True when other lies strictly inside this location."""
        if self.collection is None or other.collection is not self.collection:
            return False
        if self.kind is PathKind.COLLECTION:
            return other.kind is not PathKind.COLLECTION
        return (
            self.kind is PathKind.ELEMENT
            and other.kind is PathKind.ELEMENT_FIELD
            and self.index == other.index
        )


@dataclass(frozen=True, eq=False)
class PatchOperation:
    """One validated operation of a patch document."""
    op: PatchOp
    path: PatchPath
    value: Any = None
    from_path: PatchPath | None = None
    index: int = 0


# ─── Parsing ─────────────────────────────────────────────────────

def _split_path(raw: str) -> list[str]:
    text = raw.strip()
    if text.startswith("/"):
        text = text[1:]
    return _SEGMENT_SEPARATORS.split(text) if text else []


def _parse_index(segment: str, raw: str, op_index: int | None) -> int | None:
    if segment == APPEND_TOKEN:
        return None
    if not (segment.isascii() and segment.isdigit()):
        raise PathNotFoundError(raw, op_index, f"'{segment}' is not a valid index")
    return int(segment)


def resolve_path(raw: str, schema: EntitySchema, op_index: int | None = None) -> PatchPath:
    """Resolve raw against schema. Raises PathNotFoundError if it addresses nothing."""
    segments = _split_path(raw)
    if not segments or any(not s for s in segments):
        raise PathNotFoundError(raw, op_index, "empty path segment")

    head, rest = segments[0], segments[1:]
    spec = schema.field(head)
    if spec is not None:
        if rest:
            raise PathNotFoundError(raw, op_index, f"'{spec.name}' has no nested fields")
        return PatchPath(raw, PathKind.FIELD, field=spec)

    coll = schema.collection(head)
    if coll is None:
        raise PathNotFoundError(raw, op_index)
    if not rest:
        return PatchPath(raw, PathKind.COLLECTION, collection=coll)

    index = _parse_index(rest[0], raw, op_index)
    if len(rest) == 1:
        return PatchPath(raw, PathKind.ELEMENT, collection=coll, index=index)

    child = coll.item_schema.field(rest[1])
    if index is None or child is None or len(rest) > 2:
        raise PathNotFoundError(raw, op_index)
    return PatchPath(
        raw, PathKind.ELEMENT_FIELD, field=child, collection=coll, index=index,
    )


def _coerce(path: PatchPath, value: Any, op_index: int | None) -> Any:
    """Validate value for a write at path; returns the typed value."""
    try:
        if path.field is not None:
            return path.field.validate(value)
        if path.kind is PathKind.COLLECTION:
            return path.collection.build_items(value)
        return path.collection.build_item(value)
    except ValueError:
        raise TypeMismatchError(path.raw, path.type_name, op_index) from None


def _wire_item(coll: CollectionSpec, value: Any) -> dict[str, Any]:
    """Typed wire dict of a child object, used as the expected value of 'test'."""
    if isinstance(value, coll.item_type):
        return coll.item_schema.to_dict(value)
    if not isinstance(value, dict):
        raise ValueError(f"{coll.name} item must be an object")
    expected = {}
    for raw_name, raw_value in value.items():
        spec = coll.item_schema.field(raw_name)
        if spec is None:
            raise ValueError(f"unknown field '{raw_name}'")
        expected[spec.name] = spec.validate(raw_value)
    return expected


def _coerce_expected(path: PatchPath, value: Any, op_index: int | None) -> Any:
    if path.field is not None:
        return _coerce(path, value, op_index)
    try:
        if path.kind is PathKind.COLLECTION:
            if not isinstance(value, list):
                raise ValueError("expected an array")
            return [_wire_item(path.collection, v) for v in value]
        return _wire_item(path.collection, value)
    except ValueError:
        raise TypeMismatchError(path.raw, path.type_name, op_index) from None


def parse_operation(raw: Any, schema: EntitySchema, index: int = 0) -> PatchOperation:
    """Validate one raw {op, path, value?, from?} mapping."""
    if not isinstance(raw, dict):
        raise ValidationFailureError(f"Patch operation {index} must be an object")
    op_name, raw_path = raw.get("op"), raw.get("path")
    if not isinstance(op_name, str) or not isinstance(raw_path, str):
        raise ValidationFailureError(
            f"Patch operation {index} requires string 'op' and 'path' members",
            field=f"{index}",
        )
    try:
        op = PatchOp(op_name.strip().lower())
    except ValueError:
        raise UnsupportedOperationError(
            f"Unsupported patch operation '{op_name}'", raw_path, index,
        ) from None

    path = resolve_path(raw_path, schema, index)

    from_path = None
    if op in (PatchOp.MOVE, PatchOp.COPY):
        raw_from = raw.get("from")
        if not isinstance(raw_from, str):
            raise ValidationFailureError(
                f"Patch operation {index} ('{op.value}') requires a 'from' path",
                field=f"{index}.from",
            )
        from_path = resolve_path(raw_from, schema, index)
        if from_path.appends:
            raise PathNotFoundError(raw_from, index, "'-' cannot be read")
        if op is PatchOp.MOVE and from_path.required:
            raise UnsupportedOperationError(
                f"Path '{raw_from}' is required and cannot be moved", raw_from, index,
            )
        if op is PatchOp.MOVE and from_path.read_only:
            raise UnsupportedOperationError(
                f"Path '{raw_from}' is read-only", raw_from, index,
            )
        if op is PatchOp.MOVE and from_path.contains(path):
            raise UnsupportedOperationError(
                f"Cannot move '{raw_from}' into one of its children", raw_path, index,
            )

    if path.appends and op not in (PatchOp.ADD, PatchOp.MOVE, PatchOp.COPY):
        raise PathNotFoundError(raw_path, index, f"'-' is not valid for '{op.value}'")
    if op is not PatchOp.TEST and path.read_only:
        raise UnsupportedOperationError(f"Path '{raw_path}' is read-only", raw_path, index)
    if op is PatchOp.REMOVE and path.required:
        raise UnsupportedOperationError(
            f"Path '{raw_path}' is required and cannot be removed", raw_path, index,
        )

    value = None
    if op in (PatchOp.ADD, PatchOp.REPLACE, PatchOp.TEST):
        if "value" not in raw:
            raise ValidationFailureError(
                f"Patch operation {index} ('{op.value}') requires a 'value'",
                field=f"{index}.value",
            )
        if op is PatchOp.TEST:
            value = _coerce_expected(path, raw["value"], index)
        else:
            value = _coerce(path, raw["value"], index)

    return PatchOperation(op=op, path=path, value=value, from_path=from_path, index=index)


def parse_patch_document(raw_operations: Any, schema: EntitySchema) -> list[PatchOperation]:
    """Validate a whole patch document. Raises on the first invalid operation."""
    if not isinstance(raw_operations, list):
        raise ValidationFailureError("Patch document must be an array of operations")
    return [parse_operation(raw, schema, i) for i, raw in enumerate(raw_operations)]


def touches_collection(operations: Iterable[PatchOperation], collection_name: str) -> bool:
    """True when any operation reads or writes the named collection."""
    key = collection_name.lower()
    for operation in operations:
        for path in (operation.path, operation.from_path):
            if path is not None and path.collection is not None and path.collection.key == key:
                return True
    return False


# ─── Location primitives ─────────────────────────────────────────

def _items(target: Any, path: PatchPath, op_index: int) -> list:
    items = path.collection.read(target)
    if items is None:
        raise PathNotFoundError(path.raw, op_index, f"'{path.collection.name}' is not loaded")
    return items


def _position(items: list, path: PatchPath, op_index: int, allow_end: bool = False) -> int:
    limit = len(items) if allow_end else len(items) - 1
    if path.index is None or path.index > limit:
        raise PathNotFoundError(path.raw, op_index, "index out of range")
    return path.index


def _read(target: Any, path: PatchPath, op_index: int) -> Any:
    if path.kind is PathKind.FIELD:
        return path.field.read(target)
    items = _items(target, path, op_index)
    if path.kind is PathKind.COLLECTION:
        return items
    element = items[_position(items, path, op_index)]
    if path.kind is PathKind.ELEMENT:
        return element
    return path.field.read(element)


def _write(target: Any, path: PatchPath, value: Any, op_index: int, insert: bool) -> None:
    if path.kind is PathKind.FIELD:
        path.field.write(target, value)
        return
    if path.kind is PathKind.COLLECTION:
        path.collection.write(target, value)
        return
    items = _items(target, path, op_index)
    if path.kind is PathKind.ELEMENT_FIELD:
        path.field.write(items[_position(items, path, op_index)], value)
    elif not insert:
        items[_position(items, path, op_index)] = value
    elif path.appends:
        items.append(value)
    else:
        items.insert(_position(items, path, op_index, allow_end=True), value)


def _remove(target: Any, path: PatchPath, op_index: int) -> None:
    if path.kind is PathKind.FIELD:
        path.field.write(target, copy.copy(path.field.default))
        return
    items = _items(target, path, op_index)
    if path.kind is PathKind.COLLECTION:
        path.collection.write(target, [])
    elif path.kind is PathKind.ELEMENT:
        items.pop(_position(items, path, op_index))
    else:
        element = items[_position(items, path, op_index)]
        path.field.write(element, copy.copy(path.field.default))


# ─── Operations ──────────────────────────────────────────────────

def _apply_add(target: Any, operation: PatchOperation) -> None:
    _write(target, operation.path, copy.deepcopy(operation.value), operation.index, insert=True)


def _apply_replace(target: Any, operation: PatchOperation) -> None:
    _write(target, operation.path, copy.deepcopy(operation.value), operation.index, insert=False)


def _apply_remove(target: Any, operation: PatchOperation) -> None:
    _remove(target, operation.path, operation.index)


def _apply_copy(target: Any, operation: PatchOperation) -> None:
    value = _read(target, operation.from_path, operation.index)
    value = _coerce(operation.path, copy.deepcopy(value), operation.index)
    _write(target, operation.path, value, operation.index, insert=True)


def _apply_move(target: Any, operation: PatchOperation) -> None:
    if operation.from_path.raw == operation.path.raw:
        return
    value = _read(target, operation.from_path, operation.index)
    value = _coerce(operation.path, value, operation.index)
    _remove(target, operation.from_path, operation.index)
    _write(target, operation.path, value, operation.index, insert=True)


def _apply_test(target: Any, operation: PatchOperation) -> None:
    path = operation.path
    current = _read(target, path, operation.index)
    if path.kind is PathKind.ELEMENT:
        current = path.collection.item_schema.to_dict(current)
    elif path.kind is PathKind.COLLECTION:
        current = [path.collection.item_schema.to_dict(i) for i in current]
    if current != operation.value:
        raise TestFailedError(path.raw, operation.index)


_APPLIERS: dict[PatchOp, Callable[[Any, PatchOperation], None]] = {
    PatchOp.ADD: _apply_add,
    PatchOp.REMOVE: _apply_remove,
    PatchOp.REPLACE: _apply_replace,
    PatchOp.MOVE: _apply_move,
    PatchOp.COPY: _apply_copy,
    PatchOp.TEST: _apply_test,
}


def apply_patch(target: Any, operations: Iterable[PatchOperation]) -> Any:
    """Apply operations in order to a deep copy of target and return the copy."""
    working = copy.deepcopy(target)
    applied = 0
    for operation in operations:
        _APPLIERS[operation.op](working, operation)
        applied += 1
    logger.debug(f"Applied {applied} patch operation(s)")
    return working


def patch(target: Any, raw_operations: Any, schema: EntitySchema) -> Any:
    """Parse then apply a raw patch document."""
    return apply_patch(target, parse_patch_document(raw_operations, schema))
