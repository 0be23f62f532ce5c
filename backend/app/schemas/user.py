"""
Eclairum Backend — User Schemas
=================================

What:  Request/response models for the users endpoints.
"""

import uuid
from datetime import datetime

from pydantic import BaseModel, Field, field_validator


class CreateUserRequest(BaseModel):
    """Body of POST /api/users."""
    email: str = Field(min_length=3, max_length=255, description="User email address")

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        """Lowercases and checks the basic local@domain.tld shape."""
        value = v.strip().lower()
        local, _, domain = value.partition("@")
        if not local or "." not in domain or " " in value:
            raise ValueError("Invalid email format")
        return value


class UserResponse(BaseModel):
    id: uuid.UUID = Field(description="Unique user identifier (UUID)")
    email: str = Field(description="Lowercased email address")
    created_at: datetime = Field(description="When the user was created (UTC)")

    model_config = {"from_attributes": True}
