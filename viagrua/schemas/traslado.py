"""
Pydantic schemas for traslado endpoints.
"""
from typing import Optional, List, Union
from datetime import datetime
from pydantic import BaseModel, Field


class CreateTrasladoRequest(BaseModel):
    """
    Body of POST /api/create-traslado-safe.

    Required fields are checked by the handler so a missing one answers 400
    like the rest of the payment/traslado API.
    """
    user_id: Optional[int] = None
    empresa_id: Optional[int] = None
    chofer_id: Optional[int] = None
    marca_modelo: Optional[str] = None
    matricula: Optional[str] = None
    es_0km: Optional[bool] = False
    importe_total: Optional[Union[float, str]] = None
    observaciones: Optional[str] = None
    desde: Optional[str] = None
    hasta: Optional[str] = None

    class Config:
        json_schema_extra = {
            "example": {
                "user_id": 1,
                "empresa_id": 1,
                "chofer_id": 2,
                "marca_modelo": "Toyota Hilux",
                "matricula": "SBA 1234",
                "es_0km": False,
                "importe_total": "3500",
                "observaciones": "Retirar en taller",
                "desde": "Montevideo",
                "hasta": "Maldonado"
            }
        }


class TrasladoResponse(BaseModel):
    id: int
    empresa_id: int
    chofer_id: Optional[int] = None
    marca_modelo: str
    matricula: Optional[str] = None
    es_0km: bool
    importe_total: Optional[float] = None
    observaciones: Optional[str] = None
    desde: Optional[str] = None
    hasta: Optional[str] = None
    estado: str
    estado_pago: str
    foto_frontal: Optional[str] = None
    foto_lateral: Optional[str] = None
    foto_trasera: Optional[str] = None
    foto_interior: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class TrasladoListResponse(BaseModel):
    traslados: List[TrasladoResponse]
    total: int
    page: int = 1
    page_size: int = 10


class EstadoUpdate(BaseModel):
    estado: str = Field(..., pattern="^(pendiente|en_curso|completado)$")


class EstadoPagoUpdate(BaseModel):
    estado_pago: str = Field(..., pattern="^(pendiente|efectivo|transferencia)$")
