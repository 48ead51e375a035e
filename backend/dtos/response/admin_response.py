"""
Admin Response DTOs

DTOs for admin-related API responses.
"""

from datetime import datetime
from typing import List

from pydantic import BaseModel, ConfigDict, Field


class AdminLoginResponse(BaseModel):
    """Response DTO for a successful admin login."""

    model_config = ConfigDict(populate_by_name=True)

    jwt_token: str = Field(alias="JWTToken", description="HS256-signed JWT")
    expiry_date: datetime = Field(alias="ExpiryDate", description="Token expiry (UTC)")
    permissions: List[str] = Field(default_factory=list, alias="Permissions", description="Granted permissions")
