"""
Customer Request DTOs

DTOs for customer-related API requests.
"""

from pydantic import BaseModel, Field, field_validator
from typing import Optional


class CreateCustomerRequest(BaseModel):
    """Request DTO for creating a customer."""

    name: str = Field(min_length=1, max_length=120, description="Customer display name")
    email: str = Field(description="Contact email address")
    phone: Optional[str] = Field(None, max_length=32, description="Optional phone number")

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        """Require a local part and a dotted domain."""
        v = v.strip()
        local, sep, domain = v.partition("@")
        if not sep or not local or "." not in domain:
            raise ValueError("Email address is invalid")
        return v.lower()


class GetCustomerRequest(BaseModel):
    """Request DTO for fetching one customer by route id."""

    customer_id: int = Field(ge=1, description="Customer ID from the route")
