"""
Cross-registry validators.

A registry that stores foreign ids holds one ``ReferenceRule`` per
foreign field. Each rule carries only the target registry's
``exists_by_id`` callable, so registries never read each other's records.
"""

from dataclasses import dataclass
from typing import Any, Callable, Iterable

from course_board.core.models import ErrorKind, RegistryFailure

ExistenceCheck = Callable[[str], bool]


@dataclass(frozen=True)
class ReferenceRule:
    """A payload field whose value must name live records elsewhere."""

    field: str
    target: str
    exists: ExistenceCheck
    many: bool = False  # field holds a list of ids
    label: str | None = None

    @property
    def display_name(self) -> str:
        return self.label or self.field

    def missing_ids(self, value: Any) -> list[str]:
        """Return the ids in value that the target registry does not hold."""
        ids = value if self.many else [value]
        return [ref_id for ref_id in ids if not self.exists(ref_id)]


def check_references(
    rules: Iterable[ReferenceRule], fields: dict[str, Any]
) -> RegistryFailure | None:
    """
    Check every foreign id present in fields.

    Rules are checked in order; the first missing id is reported.
    Fields absent from the payload are skipped.
    """
    for rule in rules:
        value = fields.get(rule.field)
        if value is None:
            continue
        missing = rule.missing_ids(value)
        if missing:
            return RegistryFailure(
                kind=ErrorKind.REFERENCE_NOT_FOUND,
                message=f"No {rule.target} found with id={missing[0]} ({rule.display_name})",
                field=rule.display_name,
                value=missing[0],
            )
    return None
