"""
Team endpoints: invitation codes, joining a company and managing choferes.
"""
import logging
from typing import List
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from viagrua.core import config
from viagrua.core.auth_dependency import get_db, require_admin
from viagrua.core.plan_limits import can_add_people
from viagrua.core.security import create_access_token
from viagrua.db.models.empresa import Empresa
from viagrua.db.models.perfil import Perfil
from viagrua.services import invitation_service
from viagrua.services.invitation_service import InvitationError, EmailAlreadyRegisteredError
from viagrua.services.plan_service import get_effective_plan
from viagrua.schemas.auth import JoinRequest, TokenResponse
from viagrua.schemas.team import InvitacionResponse, InvitacionValidaResponse, ChoferResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Team"])


@router.post("/empresa/invitaciones", status_code=status.HTTP_201_CREATED, response_model=InvitacionResponse)
def create_invitacion(
    perfil: Perfil = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Generate a single-use join code. Only plans that allow adding people."""
    plan_type = get_effective_plan(perfil)
    if not can_add_people(plan_type):
        logger.warning(f"Invitation denied by plan: perfil_id={perfil.id}, plan={plan_type}")
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Disponible solo en planes pagos")

    invitacion = invitation_service.create_invitation(db, perfil.empresa_id)
    return {
        "codigo": invitacion.codigo,
        "empresa_id": invitacion.empresa_id,
        "expires_at": invitacion.expires_at,
        "link": f"{config.PUBLIC_URL}/unirse/{invitacion.codigo}",
    }


@router.get("/unirse/{codigo}", response_model=InvitacionValidaResponse)
def validar_invitacion(
    codigo: str,
    db: Session = Depends(get_db)
):
    try:
        invitacion = invitation_service.validate_invitation(db, codigo)
    except InvitationError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))

    empresa = db.query(Empresa).filter(Empresa.id == invitacion.empresa_id).first()
    return {
        "codigo": invitacion.codigo,
        "empresa_id": invitacion.empresa_id,
        "empresa_nombre": empresa.nombre if empresa else None,
        "expires_at": invitacion.expires_at,
    }


@router.post("/unirse/{codigo}", status_code=status.HTTP_201_CREATED, response_model=TokenResponse)
def unirse(
    codigo: str,
    payload: JoinRequest,
    db: Session = Depends(get_db)
):
    """Register a chofer with an invitation code and log them in."""
    try:
        perfil = invitation_service.redeem_invitation(
            db,
            codigo,
            nombre_completo=payload.nombre_completo,
            email=payload.email,
            password=payload.password,
        )
    except InvitationError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    except EmailAlreadyRegisteredError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return {
        "access_token": create_access_token({"sub": perfil.email}),
        "token_type": "bearer",
        "rol": perfil.rol,
    }


@router.get("/empresa/choferes", response_model=List[ChoferResponse])
def list_choferes(
    perfil: Perfil = Depends(require_admin),
    db: Session = Depends(get_db)
):
    return (
        db.query(Perfil)
        .filter(Perfil.empresa_id == perfil.empresa_id, Perfil.rol == "chofer")
        .order_by(Perfil.nombre_completo)
        .all()
    )


@router.delete("/empresa/choferes/{chofer_id}", status_code=status.HTTP_204_NO_CONTENT)
def expulsar_chofer(
    chofer_id: int,
    perfil: Perfil = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Remove a chofer from the company. Their traslados stay with the company."""
    chofer = db.query(Perfil).filter(
        Perfil.id == chofer_id,
        Perfil.empresa_id == perfil.empresa_id,
        Perfil.rol == "chofer",
    ).first()
    if not chofer:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Chofer not found")

    chofer.empresa_id = None
    db.commit()
    logger.info(f"Chofer expelled: chofer_id={chofer_id}, empresa_id={perfil.empresa_id}, by={perfil.id}")
    return None
