"""
ByteRange Value Object

Immutable representation of a resolved, inclusive byte range within a payload.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class ByteRange:
    """
    Inclusive byte range [start, end] of a payload of total_length bytes.

    Always satisfiable: construction fails for ranges outside the payload.
    """

    start: int
    end: int
    total_length: int

    def __post_init__(self):
        """Validate range bounds."""
        if self.start < 0 or self.end < self.start:
            raise ValueError(f"Invalid byte range: {self.start}-{self.end}")
        if self.end >= self.total_length:
            raise ValueError(
                f"Byte range {self.start}-{self.end} exceeds payload length {self.total_length}"
            )

    @property
    def length(self) -> int:
        """Number of bytes covered by the range."""
        return self.end - self.start + 1

    def content_range(self) -> str:
        """Value for the Content-Range header of a 206 response."""
        return f"bytes {self.start}-{self.end}/{self.total_length}"

    @staticmethod
    def unsatisfied_content_range(total_length: int) -> str:
        """Value for the Content-Range header of a 416 response."""
        return f"bytes */{total_length}"

    def __str__(self) -> str:
        return f"{self.start}-{self.end}/{self.total_length}"
