"""
Expense endpoints.

Provides the expense ledger, company profitability and the chofer's
income/expense movements.
"""
import logging
import math
from typing import List
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session

from viagrua.db.models.perfil import Perfil
from viagrua.db.models.gasto import TIPOS_GASTO
from viagrua.core.auth_dependency import get_db, require_empresa
from viagrua.services import gasto_service
from viagrua.services.gasto_service import GastoPermissionError, FILTROS_MOVIMIENTOS, ORDENES_MOVIMIENTOS
from viagrua.schemas.gasto import GastoCreate, GastoResponse, MovimientoListResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/gastos", tags=["Gastos"])


@router.get("", response_model=List[GastoResponse])
def list_gastos(
    solo_mios: bool = Query(False, description="Admins: only own expenses"),
    perfil: Perfil = Depends(require_empresa),
    db: Session = Depends(get_db)
):
    return gasto_service.list_gastos(db, perfil, solo_mios=solo_mios)


@router.post("", status_code=status.HTTP_201_CREATED, response_model=GastoResponse)
def create_gasto(
    payload: GastoCreate,
    perfil: Perfil = Depends(require_empresa),
    db: Session = Depends(get_db)
):
    try:
        return gasto_service.create_gasto(
            db,
            perfil,
            tipo=payload.tipo,
            importe=payload.importe,
            descripcion=payload.descripcion,
            fecha=payload.fecha,
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.delete("/{gasto_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_gasto(
    gasto_id: int,
    perfil: Perfil = Depends(require_empresa),
    db: Session = Depends(get_db)
):
    try:
        deleted = gasto_service.delete_gasto(db, perfil, gasto_id)
    except GastoPermissionError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))

    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Gasto not found")
    return None


@router.get("/balance")
def get_balance(
    perfil: Perfil = Depends(require_empresa),
    db: Session = Depends(get_db)
):
    """Company rentabilidad for admins, own balance for choferes."""
    return gasto_service.get_balance(db, perfil)


@router.get("/movimientos", response_model=MovimientoListResponse)
def list_movimientos(
    filtro: str = Query("todos", description="todos, solo_ingresos, solo_gastos or an expense type"),
    orden: str = Query("fecha_desc", description="fecha_desc, fecha_asc, mayor_importe, menor_importe"),
    page: int = Query(1, ge=1),
    perfil: Perfil = Depends(require_empresa),
    db: Session = Depends(get_db)
):
    """Own completed traslados and expenses in one ledger."""
    if filtro not in FILTROS_MOVIMIENTOS and filtro not in TIPOS_GASTO and filtro != "traslado":
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=f"Filtro inválido: {filtro}")
    if orden not in ORDENES_MOVIMIENTOS:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=f"Orden inválido: {orden}")

    items, total = gasto_service.get_movimientos_page(db, perfil, filtro=filtro, orden=orden, page=page)
    return {
        "movimientos": items,
        "total": total,
        "page": page,
        "total_paginas": math.ceil(total / gasto_service.ITEMS_POR_PAGINA),
    }
