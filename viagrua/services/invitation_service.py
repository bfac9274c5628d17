"""
Team invitations: code generation, validation and redemption by a joining chofer.
"""
import logging
import secrets
import string
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import update
from sqlalchemy.orm import Session

from viagrua.core.config import INVITATION_TTL_DAYS
from viagrua.core.security import hash_password
from viagrua.db.models.invitacion import Invitacion
from viagrua.db.models.perfil import Perfil
from viagrua.services.plan_service import as_naive_utc

logger = logging.getLogger(__name__)

CODE_ALPHABET = string.ascii_uppercase + string.digits
CODE_LENGTH = 8


class InvitationError(Exception):
    """Base class for rejected invitation codes."""
    status_code = 400


class InvitationNotFoundError(InvitationError):
    status_code = 404


class InvitationUsedError(InvitationError):
    status_code = 410


class InvitationExpiredError(InvitationError):
    status_code = 410


class EmailAlreadyRegisteredError(ValueError):
    pass


def generate_code() -> str:
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(CODE_LENGTH))


def create_invitation(db: Session, empresa_id: int, now: Optional[datetime] = None) -> Invitacion:
    now = now or datetime.utcnow()

    codigo = generate_code()
    while db.query(Invitacion.id).filter(Invitacion.codigo == codigo).first():
        codigo = generate_code()

    invitacion = Invitacion(
        empresa_id=empresa_id,
        codigo=codigo,
        usado=False,
        expires_at=now + timedelta(days=INVITATION_TTL_DAYS),
    )
    db.add(invitacion)
    db.commit()
    db.refresh(invitacion)

    logger.info(f"Invitation created: empresa_id={empresa_id}, invitacion_id={invitacion.id}")
    return invitacion


def validate_invitation(db: Session, codigo: str, now: Optional[datetime] = None) -> Invitacion:
    """
    Look up a code and check it can still be redeemed.

    Raises:
        InvitationNotFoundError, InvitationUsedError, InvitationExpiredError
    """
    now = now or datetime.utcnow()
    invitacion = db.query(Invitacion).filter(Invitacion.codigo == (codigo or "").upper()).first()

    if not invitacion:
        raise InvitationNotFoundError("Código de invitación inválido")
    if invitacion.usado:
        raise InvitationUsedError("Este código ya fue utilizado")
    if as_naive_utc(invitacion.expires_at) < now:
        raise InvitationExpiredError("Este código ha expirado")
    return invitacion


def redeem_invitation(
    db: Session,
    codigo: str,
    nombre_completo: str,
    email: str,
    password: str,
    now: Optional[datetime] = None,
) -> Perfil:
    """
    Create a chofer profile in the inviting company and burn the code.

    The code is validated before anything else is looked at. The profile and
    the used flag are committed together.
    """
    invitacion = validate_invitation(db, codigo, now)

    email = email.strip().lower()
    if db.query(Perfil.id).filter(Perfil.email == email).first():
        raise EmailAlreadyRegisteredError("Email already registered")

    perfil = Perfil(
        email=email,
        password_hash=hash_password(password),
        nombre_completo=nombre_completo,
        rol="chofer",
        empresa_id=invitacion.empresa_id,
        plan="free",
    )
    # Burn the code only if no concurrent redemption got there first
    result = db.execute(
        update(Invitacion)
        .where(Invitacion.id == invitacion.id, Invitacion.usado.is_(False))
        .values(usado=True)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        db.rollback()
        logger.warning(f"Invitation already redeemed concurrently: invitacion_id={invitacion.id}")
        raise InvitationUsedError("Este código ya fue utilizado")

    db.add(perfil)
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(perfil)

    logger.info(
        f"Invitation redeemed: invitacion_id={invitacion.id}, empresa_id={invitacion.empresa_id}, perfil_id={perfil.id}"
    )
    return perfil
