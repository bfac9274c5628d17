"""
Pydantic schemas for authentication endpoints.
"""
from typing import Optional
from datetime import datetime
from pydantic import BaseModel, EmailStr, Field, field_validator


def _check_password_bytes(v: str) -> str:
    password_bytes = v.encode("utf-8")
    if len(password_bytes) > 72:
        raise ValueError("Password too long (bcrypt limit 72 bytes)")
    if len(password_bytes) < 6:
        raise ValueError("Password must be at least 6 characters")
    return v


class SignupRequest(BaseModel):
    """Request schema for company signup (creates the empresa and its admin)."""
    nombre_completo: str = Field(..., min_length=1, max_length=200, description="Admin's full name")
    email: EmailStr = Field(..., description="Admin's email address")
    password: str = Field(..., description="Password (6 to 72 bytes)")
    empresa_nombre: str = Field(..., min_length=1, max_length=200, description="Company name")

    @field_validator("password")
    @classmethod
    def validate_password_length(cls, v: str) -> str:
        """Validate password length in bytes (bcrypt limit is 72 bytes)."""
        return _check_password_bytes(v)

    class Config:
        json_schema_extra = {
            "example": {
                "nombre_completo": "Ana Pérez",
                "email": "ana@gruasdelsur.com",
                "password": "SecurePass123",
                "empresa_nombre": "Grúas del Sur"
            }
        }


class JoinRequest(BaseModel):
    """Request schema for a chofer redeeming an invitation."""
    nombre_completo: str = Field(..., min_length=1, max_length=200)
    email: EmailStr
    password: str

    @field_validator("password")
    @classmethod
    def validate_password_length(cls, v: str) -> str:
        return _check_password_bytes(v)


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    rol: Optional[str] = None


class PerfilResponse(BaseModel):
    id: int
    email: str
    nombre_completo: str
    rol: str
    empresa_id: Optional[int] = None
    plan: str
    plan_renovacion: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
