"""
Pydantic schemas for billing endpoints.

Fields are optional so the handlers can answer 400 with the message the
checkout frontend expects.
"""
from typing import Optional, Union
from pydantic import BaseModel


class CreatePreferenceRequest(BaseModel):
    """Request schema for POST /api/create-preference."""
    plan: Optional[str] = None
    email: Optional[str] = None
    user_id: Optional[Union[int, str]] = None

    class Config:
        json_schema_extra = {
            "example": {
                "plan": "mensual",
                "email": "ana@gruasdelsur.com",
                "user_id": 1
            }
        }


class PagoPremiumRequest(BaseModel):
    """Request schema for POST /api/pago-premium."""
    user_id: Optional[Union[int, str]] = None
    email: Optional[str] = None
