"""
Pydantic schemas for team (invitations and choferes) endpoints.
"""
from typing import Optional
from datetime import datetime
from pydantic import BaseModel


class InvitacionResponse(BaseModel):
    codigo: str
    empresa_id: int
    expires_at: datetime
    link: str


class InvitacionValidaResponse(BaseModel):
    codigo: str
    empresa_id: int
    empresa_nombre: Optional[str] = None
    expires_at: datetime


class ChoferResponse(BaseModel):
    id: int
    nombre_completo: str
    email: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
