"""
Plan service for entitlement checks and monthly traslado quota.

Handles effective plan resolution (expired paid plans fall back to free),
the conditional-update quota reservation and the plan summary shown on the
dashboard.
"""
import logging
from datetime import datetime, timezone
from typing import Dict, Optional, Tuple

from sqlalchemy import update, and_, or_
from sqlalchemy.orm import Session

from viagrua.db.models.perfil import Perfil
from viagrua.core.plan_limits import (
    DEFAULT_PLAN,
    normalize_plan,
    get_plan_info,
    get_traslados_limit,
    has_unlimited_quota,
)

logger = logging.getLogger(__name__)


class QuotaExceededError(Exception):
    """Free plan reached its monthly traslado limit."""

    def __init__(self, used: int, limit: int):
        self.used = used
        self.limit = limit
        super().__init__(f"Quota exceeded: used={used}, limit={limit}")


class ReservationConflictError(Exception):
    """The usage counter changed between read and conditional update."""


def as_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Normalize DB datetimes (aware on Postgres, naive on SQLite) to naive UTC."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def get_effective_plan(perfil: Perfil, now: Optional[datetime] = None) -> str:
    """
    Get the plan that currently applies to a profile.

    A paid plan without renewal date, or whose renewal date has passed,
    counts as free.
    """
    plan_type = normalize_plan(perfil.plan)
    if plan_type == DEFAULT_PLAN:
        return DEFAULT_PLAN

    now = now or datetime.utcnow()
    renovacion = as_naive_utc(perfil.plan_renovacion)
    if renovacion is None or now > renovacion:
        return DEFAULT_PLAN
    return plan_type


def get_month_usage(perfil: Perfil, month_key: Optional[str] = None) -> int:
    """Traslados reserved in the given month (the stored counter is for mes_contador only)."""
    month_key = month_key or Perfil.get_month_key()
    if perfil.mes_contador != month_key:
        return 0
    return perfil.traslados_mes_actual or 0


def reserve_traslado_slot(
    db: Session,
    perfil_id: int,
    read_count: int,
    read_month: Optional[str],
    month_key: Optional[str] = None,
) -> int:
    """
    Reserve one traslado with a conditional update.

    The counter is only written if it still holds the values read by the
    caller: SET counter = used + 1 WHERE counter = read_count AND month = read_month.
    Does not commit; the caller commits together with the traslado insert.

    Args:
        db: Database session
        perfil_id: Profile that owns the counter
        read_count: traslados_mes_actual as read by the caller
        read_month: mes_contador as read by the caller
        month_key: Current month key (defaults to now)

    Returns:
        New counter value

    Raises:
        ReservationConflictError: No row matched the values read
    """
    month_key = month_key or Perfil.get_month_key()
    current = (read_count or 0) if read_month == month_key else 0

    month_filter = (
        Perfil.mes_contador.is_(None) if read_month is None else Perfil.mes_contador == read_month
    )
    count_filter = (
        or_(Perfil.traslados_mes_actual == read_count, Perfil.traslados_mes_actual.is_(None))
        if not read_count
        else Perfil.traslados_mes_actual == read_count
    )

    result = db.execute(
        update(Perfil)
        .where(and_(Perfil.id == perfil_id, count_filter, month_filter))
        .values(traslados_mes_actual=current + 1, mes_contador=month_key)
        .execution_options(synchronize_session=False)
    )

    if result.rowcount != 1:
        logger.warning(
            f"Reservation conflict: perfil_id={perfil_id}, read_count={read_count}, read_month={read_month}"
        )
        raise ReservationConflictError("Conflicto al intentar reservar traslado. Reintentar.")

    return current + 1


def check_and_reserve(db: Session, perfil: Perfil, now: Optional[datetime] = None) -> Tuple[str, Optional[int]]:
    """
    Check the monthly quota for a profile and reserve one slot if it applies.

    Only free accounts are metered.

    Returns:
        Tuple of (effective plan, new counter value or None when not metered)

    Raises:
        QuotaExceededError: Free plan at or above its limit, nothing written
        ReservationConflictError: Concurrent reservation won the race
    """
    now = now or datetime.utcnow()
    plan_type = get_effective_plan(perfil, now)
    if has_unlimited_quota(plan_type):
        return plan_type, None
    limit = get_traslados_limit(plan_type)

    month_key = Perfil.get_month_key(now)
    read_count = perfil.traslados_mes_actual
    read_month = perfil.mes_contador
    used = get_month_usage(perfil, month_key)

    if used >= limit:
        logger.warning(f"Quota exceeded: perfil_id={perfil.id}, plan={plan_type}, used={used}, limit={limit}")
        raise QuotaExceededError(used, limit)

    new_count = reserve_traslado_slot(db, perfil.id, read_count, read_month, month_key)

    logger.info(
        f"Traslado slot reserved: perfil_id={perfil.id}, used={new_count}/{limit}, month={month_key}"
    )
    return plan_type, new_count


def get_plan_summary(perfil: Perfil, now: Optional[datetime] = None) -> Dict:
    """
    Get plan data formatted for GET /me/plan.

    Args:
        perfil: Profile
        now: Reference time (defaults to utcnow)

    Returns:
        Dictionary with stored and effective plan, quota usage and capabilities
    """
    now = now or datetime.utcnow()
    effective = get_effective_plan(perfil, now)
    info = get_plan_info(effective)
    limit = info["traslados_max"]
    used = get_month_usage(perfil, Perfil.get_month_key(now))
    remaining = None if limit is None else max(limit - used, 0)

    return {
        "plan": normalize_plan(perfil.plan),
        "plan_efectivo": effective,
        "nombre": info["nombre"],
        "plan_renovacion": perfil.plan_renovacion,
        "traslados_max": limit,
        "traslados_usados": used,
        "traslados_restantes": remaining,
        "bloqueado": limit is not None and remaining == 0,
        "puede_agregar_personas": info["puede_agregar_personas"],
        "puede_exportar": info["puede_exportar"],
    }
