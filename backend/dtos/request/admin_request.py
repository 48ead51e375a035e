"""
Admin Request DTOs

DTOs for admin-related API requests.
"""

from pydantic import BaseModel, ConfigDict, Field


class AdminLoginRequest(BaseModel):
    """
    Request DTO for the admin login.

    Field names travel over the wire in PascalCase.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "UserName": "admin",
                "Password": "secret"
            }
        },
    )

    user_name: str = Field("", alias="UserName", description="The admin username")
    password: str = Field("", alias="Password", description="The admin password")
