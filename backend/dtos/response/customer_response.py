"""
Customer Response DTOs

DTOs for customer-related API responses.
"""

from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from typing import Optional


class CustomerResponse(BaseModel):
    """
    Response DTO for customer information.

    Separates the API response from the database model.
    """

    model_config = ConfigDict(from_attributes=True)

    id: int = Field(description="Customer ID")
    name: str = Field(description="Customer display name")
    email: str = Field(description="Contact email address")
    phone: Optional[str] = Field(None, description="Phone number")
    created_at: datetime = Field(description="Creation timestamp")
