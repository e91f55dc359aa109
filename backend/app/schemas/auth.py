from __future__ import annotations

from pydantic import BaseModel

from app.models.enums import Role


class AuthContext(BaseModel):
    """Dev auth context extracted from request headers."""

    user_id: str
    role: Role = Role.EMPLOYEE
