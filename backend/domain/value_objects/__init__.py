"""
Domain Value Objects

Value objects are immutable types that represent descriptive aspects of the domain.
They have no conceptual identity and are compared by their values, not by ID.

Examples:
- ValidationFailure: A (field, message) pair reported back to the client
- ByteRange: A resolved, satisfiable slice of a binary payload
"""

from .byte_range import ByteRange
from .validation_failure import ValidationFailure, group_by_field

__all__ = ["ByteRange", "ValidationFailure", "group_by_field"]
