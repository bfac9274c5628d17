"""
Traslado endpoints.

Quota-gated creation for admins plus listing, status/payment transitions,
photo upload and deletion scoped to the caller's company (and to the
assigned chofer for choferes).
"""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, status, Query, UploadFile, File
from sqlalchemy.orm import Session

from viagrua.db.models.perfil import Perfil
from viagrua.db.models.traslado import FOTO_TIPOS, ESTADOS
from viagrua.core.auth_dependency import get_db, get_current_perfil, require_empresa, require_admin
from viagrua.services import traslado_service, storage_service
from viagrua.services.plan_service import QuotaExceededError, ReservationConflictError
from viagrua.services.traslado_service import TrasladoCreateError
from viagrua.schemas.traslado import (
    CreateTrasladoRequest,
    TrasladoResponse,
    TrasladoListResponse,
    EstadoUpdate,
    EstadoPagoUpdate,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Traslados"])


@router.post("/api/create-traslado-safe", status_code=status.HTTP_201_CREATED)
def create_traslado_safe(
    payload: CreateTrasladoRequest,
    current: Perfil = Depends(get_current_perfil),
    db: Session = Depends(get_db)
):
    """
    Reserve a monthly quota slot and create the traslado.

    - 400 missing required fields
    - 404 perfil not found
    - 403 not the caller / not admin / other company / quota reached
    - 409 concurrent reservation, retry
    - 500 insert failed (reservation rolled back)
    """
    if not payload.user_id or not payload.empresa_id or not payload.chofer_id or not payload.marca_modelo:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing required fields")

    perfil = db.query(Perfil).filter(Perfil.id == payload.user_id).first()
    if not perfil:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Perfil not found")

    if perfil.id != current.id or not perfil.is_admin or perfil.empresa_id != payload.empresa_id:
        logger.warning(
            f"Traslado creation denied: caller={current.id}, user_id={payload.user_id}, empresa_id={payload.empresa_id}"
        )
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="No autorizado")

    chofer = db.query(Perfil).filter(
        Perfil.id == payload.chofer_id,
        Perfil.empresa_id == payload.empresa_id,
    ).first()
    if not chofer:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Chofer not found")

    try:
        traslado = traslado_service.create_traslado_safe(
            db,
            perfil,
            empresa_id=payload.empresa_id,
            chofer_id=payload.chofer_id,
            data=payload.model_dump(),
        )
    except QuotaExceededError:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Límite de traslados alcanzado")
    except ReservationConflictError:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Conflicto al intentar reservar traslado. Reintentar."
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except TrasladoCreateError:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Error creando traslado")

    return {"traslado": TrasladoResponse.model_validate(traslado)}


@router.get("/traslados", response_model=TrasladoListResponse)
def list_traslados(
    page: int = Query(1, ge=1, description="Page number"),
    estado: Optional[str] = Query(None, description="Filter by estado"),
    perfil: Perfil = Depends(require_empresa),
    db: Session = Depends(get_db)
):
    """Company traslados for admins, assigned ones for choferes. Newest first."""
    if estado and estado not in ESTADOS:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=f"Estado inválido: {estado}")

    items, total = traslado_service.list_traslados(db, perfil, page=page, estado=estado)
    return {
        "traslados": [TrasladoResponse.model_validate(t) for t in items],
        "total": total,
        "page": page,
        "page_size": traslado_service.ITEMS_PER_PAGE,
    }


@router.get("/traslados/resumen")
def traslados_resumen(
    perfil: Perfil = Depends(require_empresa),
    db: Session = Depends(get_db)
):
    """Count of traslados per estado."""
    return traslado_service.count_by_estado(db, perfil)


@router.get("/traslados/{traslado_id}", response_model=TrasladoResponse)
def get_traslado(
    traslado_id: int,
    perfil: Perfil = Depends(require_empresa),
    db: Session = Depends(get_db)
):
    traslado = traslado_service.get_traslado(db, perfil, traslado_id)
    if not traslado:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Traslado not found")
    return traslado


@router.patch("/traslados/{traslado_id}/estado", response_model=TrasladoResponse)
def update_estado(
    traslado_id: int,
    payload: EstadoUpdate,
    perfil: Perfil = Depends(require_empresa),
    db: Session = Depends(get_db)
):
    traslado = traslado_service.update_estado(db, perfil, traslado_id, payload.estado)
    if not traslado:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Traslado not found")
    return traslado


@router.patch("/traslados/{traslado_id}/pago", response_model=TrasladoResponse)
def update_estado_pago(
    traslado_id: int,
    payload: EstadoPagoUpdate,
    perfil: Perfil = Depends(require_empresa),
    db: Session = Depends(get_db)
):
    traslado = traslado_service.update_estado_pago(db, perfil, traslado_id, payload.estado_pago)
    if not traslado:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Traslado not found")
    return traslado


@router.post("/traslados/{traslado_id}/fotos/{tipo}", response_model=TrasladoResponse)
async def upload_foto(
    traslado_id: int,
    tipo: str,
    file: UploadFile = File(...),
    perfil: Perfil = Depends(require_empresa),
    db: Session = Depends(get_db)
):
    """
    Upload one of the four traslado photos and store its public URL.

    Runs after creation; a failure here leaves the traslado without that photo.
    """
    if tipo not in FOTO_TIPOS:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=f"Tipo de foto inválido: {tipo}")

    if not traslado_service.get_traslado(db, perfil, traslado_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Traslado not found")

    content = await file.read()
    try:
        url = storage_service.save_photo(traslado_id, tipo, content, file.filename)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except OSError as e:
        logger.error(f"Error subiendo foto {tipo} traslado={traslado_id}: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=f"Error al subir foto {tipo}")

    return traslado_service.set_foto_url(db, perfil, traslado_id, tipo, url)


@router.delete("/traslados/{traslado_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_traslado(
    traslado_id: int,
    perfil: Perfil = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Delete a traslado of the admin's company and, best effort, its photos."""
    if not traslado_service.delete_traslado(db, perfil, traslado_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Traslado not found")

    storage_service.remove_traslado_photos(traslado_id)
    return None
