"""
Download Request DTOs

DTOs for file download requests.
"""

from pydantic import BaseModel, Field, field_validator


class DownloadRequest(BaseModel):
    """
    Request DTO for downloading a file from the served directory.

    Only bare file names are accepted; anything resembling a path is rejected.
    """

    file_name: str = Field(min_length=1, max_length=255, description="Name of the file to download")

    @field_validator("file_name")
    @classmethod
    def validate_file_name(cls, v: str) -> str:
        """Reject path traversal."""
        if '..' in v or '/' in v or '\\' in v:
            raise ValueError("Invalid file name")
        return v
