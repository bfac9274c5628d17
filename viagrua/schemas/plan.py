"""
Pydantic schemas for the plan summary endpoint.
"""
from typing import Optional
from datetime import datetime
from pydantic import BaseModel, Field


class PlanSummaryResponse(BaseModel):
    """Response schema for GET /me/plan."""
    plan: str = Field(..., description="Stored plan (free, mensual, anual, premium)")
    plan_efectivo: str = Field(..., description="Plan in force (expired paid plans count as free)")
    nombre: str
    plan_renovacion: Optional[datetime] = None
    traslados_max: Optional[int] = Field(None, description="Monthly limit (None for unlimited)")
    traslados_usados: int
    traslados_restantes: Optional[int] = Field(None, description="Remaining this month (None for unlimited)")
    bloqueado: bool
    puede_agregar_personas: bool
    puede_exportar: bool
