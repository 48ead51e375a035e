"""
ValidationFailure Value Object

A single field-level validation problem collected for the current request.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List


@dataclass(frozen=True)
class ValidationFailure:
    """
    Immutable (field, message) pair.

    Collected by the endpoint base or a validator and consumed read-only
    when the error response is written.
    """

    field: str
    message: str

    def __post_init__(self):
        """Validate failure contents."""
        if not self.message:
            raise ValueError("Validation failure message cannot be empty")

    @classmethod
    def from_pydantic_error(cls, error: dict) -> "ValidationFailure":
        """
        Build a failure from one entry of pydantic's ValidationError.errors().

        Nested locations are joined with dots, e.g. ("items", 0, "name") -> "items.0.name".
        """
        loc = error.get("loc") or ()
        field = ".".join(str(part) for part in loc) or "body"
        return cls(field=field, message=error.get("msg") or "Invalid value")

    def __str__(self) -> str:
        return f"{self.field}: {self.message}"


def group_by_field(failures: Iterable[ValidationFailure]) -> Dict[str, List[str]]:
    """Group failure messages per field, keeping first-seen field order."""
    grouped: Dict[str, List[str]] = {}
    for failure in failures:
        grouped.setdefault(failure.field, []).append(failure.message)
    return grouped
