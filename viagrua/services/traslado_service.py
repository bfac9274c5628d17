"""
Traslado service.

Quota-gated creation plus the status, payment and delete operations used by
the dashboard and the chofer panel. Tenant scoping (empresa_id, and chofer_id
for choferes) is applied on every query.
"""
import logging
import math
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from viagrua.db.models.perfil import Perfil
from viagrua.db.models.traslado import Traslado, ESTADOS, ESTADOS_PAGO, FOTO_TIPOS
from viagrua.services.plan_service import check_and_reserve

logger = logging.getLogger(__name__)

ITEMS_PER_PAGE = 10


class TrasladoCreateError(Exception):
    """The traslado row could not be inserted; the reservation was rolled back."""


def _parse_importe(value) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        importe = float(value)
    except (TypeError, ValueError):
        raise ValueError(f"importe_total inválido: {value!r}")
    if not math.isfinite(importe) or importe < 0:
        raise ValueError(f"importe_total inválido: {value!r}")
    return importe


def create_traslado_safe(
    db: Session,
    perfil: Perfil,
    empresa_id: int,
    chofer_id: int,
    data: Dict,
    now: Optional[datetime] = None,
) -> Traslado:
    """
    Reserve a quota slot and create the traslado in one transaction.

    The conditional counter update and the insert are committed together, so a
    failed insert rolls the reservation back with it.

    Args:
        db: Database session
        perfil: Admin profile creating the traslado (owner of the counter)
        empresa_id: Company of the traslado
        chofer_id: Assigned chofer
        data: marca_modelo, matricula, es_0km, importe_total, observaciones, desde, hasta
        now: Reference time for plan expiry and month key

    Returns:
        Created Traslado

    Raises:
        QuotaExceededError, ReservationConflictError: from the reservation
        ValueError: invalid importe_total
        TrasladoCreateError: insert failed
    """
    importe_total = _parse_importe(data.get("importe_total"))
    es_0km = bool(data.get("es_0km") or False)

    try:
        plan_type, used = check_and_reserve(db, perfil, now)

        traslado = Traslado(
            empresa_id=empresa_id,
            chofer_id=chofer_id,
            marca_modelo=data["marca_modelo"],
            matricula=None if es_0km else (data.get("matricula") or None),
            es_0km=es_0km,
            importe_total=importe_total,
            observaciones=data.get("observaciones") or None,
            desde=data.get("desde") or None,
            hasta=data.get("hasta") or None,
            estado="pendiente",
            estado_pago="pendiente",
        )
        db.add(traslado)
        db.flush()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error creando traslado: perfil_id={perfil.id}, error={e}", exc_info=True)
        raise TrasladoCreateError("Error creando traslado") from e
    except Exception:
        db.rollback()
        raise

    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error confirmando traslado: perfil_id={perfil.id}, error={e}", exc_info=True)
        raise TrasladoCreateError("Error creando traslado") from e

    db.refresh(traslado)
    db.refresh(perfil)

    logger.info(
        f"Traslado created: traslado_id={traslado.id}, empresa_id={empresa_id}, "
        f"chofer_id={chofer_id}, plan={plan_type}, used={used if used is not None else 'unlimited'}"
    )
    return traslado


def scoped_query(db: Session, perfil: Perfil):
    """Traslados visible to a profile: whole company for admins, own for choferes."""
    query = db.query(Traslado).filter(Traslado.empresa_id == perfil.empresa_id)
    if not perfil.is_admin:
        query = query.filter(Traslado.chofer_id == perfil.id)
    return query


def get_traslado(db: Session, perfil: Perfil, traslado_id: int) -> Optional[Traslado]:
    return scoped_query(db, perfil).filter(Traslado.id == traslado_id).first()


def list_traslados(
    db: Session,
    perfil: Perfil,
    page: int = 1,
    estado: Optional[str] = None,
    page_size: int = ITEMS_PER_PAGE,
) -> Tuple[List[Traslado], int]:
    """Newest first, paginated. Returns (items, total)."""
    query = scoped_query(db, perfil)
    if estado:
        query = query.filter(Traslado.estado == estado)

    total = query.count()
    items = (
        query.order_by(Traslado.created_at.desc(), Traslado.id.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
        .all()
    )
    return items, total


def count_by_estado(db: Session, perfil: Perfil) -> Dict[str, int]:
    rows = (
        scoped_query(db, perfil)
        .with_entities(Traslado.estado, func.count(Traslado.id))
        .group_by(Traslado.estado)
        .all()
    )
    counts = {estado: 0 for estado in ESTADOS}
    counts.update({estado: int(total) for estado, total in rows})
    return counts


def _update_scoped(db: Session, perfil: Perfil, traslado_id: int, values: Dict) -> Optional[Traslado]:
    # Choferes only match rows assigned to them
    traslado = get_traslado(db, perfil, traslado_id)
    if not traslado:
        return None

    for key, value in values.items():
        setattr(traslado, key, value)
    db.commit()
    db.refresh(traslado)
    return traslado


def update_estado(db: Session, perfil: Perfil, traslado_id: int, estado: str) -> Optional[Traslado]:
    if estado not in ESTADOS:
        raise ValueError(f"Estado inválido: {estado}")
    traslado = _update_scoped(db, perfil, traslado_id, {"estado": estado})
    if traslado:
        logger.info(f"Traslado estado updated: traslado_id={traslado_id}, estado={estado}, by={perfil.id}")
    return traslado


def update_estado_pago(db: Session, perfil: Perfil, traslado_id: int, estado_pago: str) -> Optional[Traslado]:
    if estado_pago not in ESTADOS_PAGO:
        raise ValueError(f"Estado de pago inválido: {estado_pago}")
    traslado = _update_scoped(db, perfil, traslado_id, {"estado_pago": estado_pago})
    if traslado:
        logger.info(f"Traslado pago updated: traslado_id={traslado_id}, estado_pago={estado_pago}, by={perfil.id}")
    return traslado


def set_foto_url(db: Session, perfil: Perfil, traslado_id: int, tipo: str, url: str) -> Optional[Traslado]:
    if tipo not in FOTO_TIPOS:
        raise ValueError(f"Tipo de foto inválido: {tipo}")
    return _update_scoped(db, perfil, traslado_id, {f"foto_{tipo}": url})


def delete_traslado(db: Session, perfil: Perfil, traslado_id: int) -> bool:
    traslado = get_traslado(db, perfil, traslado_id)
    if not traslado:
        return False
    db.delete(traslado)
    db.commit()
    logger.info(f"Traslado deleted: traslado_id={traslado_id}, by={perfil.id}")
    return True
