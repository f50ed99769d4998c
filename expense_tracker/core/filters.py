"""Listing Filters — independent equality predicates on status and owner.

Invariants:
    - Absent parameters mean "no restriction"
    - Status names are case-insensitive ("open", "Confirmed", "PROCESSED")
    - An unrecognized status name is a validation failure, never silently ignored
"""

from dataclasses import dataclass

from expense_tracker.core.domain_types import ExpenseGroupStatus
from expense_tracker.core.dtos import ExpenseGroupDTO
from expense_tracker.core.errors import ValidationFailureError


@dataclass(frozen=True)
class ExpenseGroupFilter:
    status: ExpenseGroupStatus | None = None
    user_id: str | None = None

    @property
    def is_empty(self) -> bool:
        return self.status is None and self.user_id is None

    def matches(self, group: ExpenseGroupDTO) -> bool:
        if self.status is not None and group.expense_group_status_id != self.status:
            return False
        if self.user_id is not None and group.user_id != self.user_id:
            return False
        return True


def parse_status(status: str | None) -> ExpenseGroupStatus | None:
    if status is None or not status.strip():
        return None
    parsed = ExpenseGroupStatus.from_name(status)
    if parsed is None:
        allowed = ", ".join(s.name.lower() for s in ExpenseGroupStatus)
        raise ValidationFailureError(
            f"Unknown status '{status}'. Expected one of: {allowed}", field="status",
        )
    return parsed


def build_filter(status: str | None = None, user_id: str | None = None) -> ExpenseGroupFilter:
    return ExpenseGroupFilter(status=parse_status(status), user_id=user_id or None)
