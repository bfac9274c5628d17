"""
Pydantic schemas for expense endpoints.
"""
from typing import Optional, List
from datetime import date, datetime
from pydantic import BaseModel, Field


class GastoCreate(BaseModel):
    tipo: str = Field(..., pattern="^(combustible|seguro|mantenimiento|peaje|patente|multa|otro)$")
    importe: float = Field(..., gt=0)
    descripcion: Optional[str] = Field(None, max_length=500)
    fecha: Optional[date] = None


class GastoResponse(BaseModel):
    id: int
    empresa_id: int
    usuario_id: int
    tipo: str
    importe: float
    descripcion: Optional[str] = None
    fecha: date
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class MovimientoResponse(BaseModel):
    id: int
    tipo: str  # ingreso | gasto
    concepto: str
    importe: float
    fecha: datetime
    descripcion: Optional[str] = None
    categoria: str


class MovimientoListResponse(BaseModel):
    movimientos: List[MovimientoResponse]
    total: int
    page: int
    total_paginas: int
