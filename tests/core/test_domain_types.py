"""Domain Types — verifies identity types and enum values.

Tests:
    - NewType wrappers exist and are callable
    - ExpenseGroupStatus ids are fixed (1, 2, 3) and lookups are case-insensitive
    - RepositoryActionStatus serializes to plain strings
"""

from expense_tracker.core.domain_types import (
    ExpenseGroupId, ExpenseId, ExpenseGroupStatus, RepositoryActionStatus,
)


def test_identity_types_wrap_int():
    assert ExpenseGroupId(3) == 3
    assert ExpenseId(7) == 7


def test_status_ids_are_fixed():
    assert ExpenseGroupStatus.OPEN == 1
    assert ExpenseGroupStatus.CONFIRMED == 2
    assert ExpenseGroupStatus.PROCESSED == 3
    assert len(ExpenseGroupStatus) == 3


def test_status_description_is_capitalized_name():
    assert ExpenseGroupStatus.CONFIRMED.description == "Confirmed"


def test_status_from_name_ignores_case_and_whitespace():
    assert ExpenseGroupStatus.from_name("open") is ExpenseGroupStatus.OPEN
    assert ExpenseGroupStatus.from_name(" Processed ") is ExpenseGroupStatus.PROCESSED


def test_status_from_name_unknown_returns_none():
    assert ExpenseGroupStatus.from_name("archived") is None


def test_action_status_values():
    assert {s.value for s in RepositoryActionStatus} == {
        "created", "updated", "deleted", "not_found", "error",
    }
