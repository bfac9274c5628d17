"""
Expense ledger service.

Admins see the whole company, choferes only their own expenses. Income is
the importe_total of completed traslados.
"""
import logging
from datetime import date, datetime
from typing import Dict, List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from viagrua.db.models.gasto import Gasto, TIPOS_GASTO
from viagrua.db.models.perfil import Perfil
from viagrua.db.models.traslado import Traslado

logger = logging.getLogger(__name__)

ITEMS_POR_PAGINA = 10

FILTROS_MOVIMIENTOS = ("todos", "solo_ingresos", "solo_gastos")
ORDENES_MOVIMIENTOS = ("fecha_desc", "fecha_asc", "mayor_importe", "menor_importe")


class GastoPermissionError(Exception):
    """Profile may not modify this expense."""


def list_gastos(db: Session, perfil: Perfil, solo_mios: bool = False) -> List[Gasto]:
    query = db.query(Gasto).filter(Gasto.empresa_id == perfil.empresa_id)
    if not perfil.is_admin or solo_mios:
        query = query.filter(Gasto.usuario_id == perfil.id)
    return query.order_by(Gasto.fecha.desc(), Gasto.id.desc()).all()


def create_gasto(
    db: Session,
    perfil: Perfil,
    tipo: str,
    importe: float,
    descripcion: Optional[str] = None,
    fecha: Optional[date] = None,
) -> Gasto:
    if tipo not in TIPOS_GASTO:
        raise ValueError(f"Tipo de gasto inválido: {tipo}")
    if importe is None or importe <= 0:
        raise ValueError("El importe debe ser mayor a 0")

    gasto = Gasto(
        empresa_id=perfil.empresa_id,
        usuario_id=perfil.id,
        tipo=tipo,
        importe=importe,
        descripcion=descripcion or None,
        fecha=fecha or date.today(),
    )
    db.add(gasto)
    db.commit()
    db.refresh(gasto)

    logger.info(f"Gasto created: gasto_id={gasto.id}, usuario_id={perfil.id}, tipo={tipo}, importe={importe}")
    return gasto


def delete_gasto(db: Session, perfil: Perfil, gasto_id: int) -> bool:
    """
    Delete an expense of the profile's company.

    Returns False when the expense doesn't exist in the company.

    Raises:
        GastoPermissionError: chofer deleting someone else's expense
    """
    gasto = db.query(Gasto).filter(
        Gasto.id == gasto_id,
        Gasto.empresa_id == perfil.empresa_id,
    ).first()
    if not gasto:
        return False
    if not perfil.is_admin and gasto.usuario_id != perfil.id:
        raise GastoPermissionError("No puedes eliminar gastos de otros usuarios")

    db.delete(gasto)
    db.commit()
    logger.info(f"Gasto deleted: gasto_id={gasto_id}, by={perfil.id}")
    return True


def _completed_traslados_query(db: Session, perfil: Perfil, own_only: bool):
    query = db.query(Traslado).filter(
        Traslado.empresa_id == perfil.empresa_id,
        Traslado.estado == "completado",
    )
    if own_only:
        query = query.filter(Traslado.chofer_id == perfil.id)
    return query


def get_balance(db: Session, perfil: Perfil) -> Dict:
    """
    Income minus expenses.

    Admin: company-wide rentabilidad. Chofer: own completed traslados minus own expenses.
    """
    own_only = not perfil.is_admin

    ingresos = _completed_traslados_query(db, perfil, own_only).with_entities(
        func.coalesce(func.sum(Traslado.importe_total), 0.0)
    ).scalar() or 0.0

    gastos_query = db.query(func.coalesce(func.sum(Gasto.importe), 0.0)).filter(
        Gasto.empresa_id == perfil.empresa_id
    )
    if own_only:
        gastos_query = gastos_query.filter(Gasto.usuario_id == perfil.id)
    total_gastos = gastos_query.scalar() or 0.0

    result = {
        "ingresos": float(ingresos),
        "gastos": float(total_gastos),
    }
    if perfil.is_admin:
        result["rentabilidad"] = float(ingresos) - float(total_gastos)
        result["mis_gastos"] = float(
            db.query(func.coalesce(func.sum(Gasto.importe), 0.0))
            .filter(Gasto.empresa_id == perfil.empresa_id, Gasto.usuario_id == perfil.id)
            .scalar() or 0.0
        )
    else:
        result["balance"] = float(ingresos) - float(total_gastos)
    return result


def _as_datetime(value) -> datetime:
    if isinstance(value, datetime):
        return value.replace(tzinfo=None)
    return datetime(value.year, value.month, value.day)


def build_movimientos(db: Session, perfil: Perfil) -> List[Dict]:
    """Own completed traslados as income and own expenses as outflows."""
    movimientos = []

    for t in _completed_traslados_query(db, perfil, own_only=True).all():
        movimientos.append({
            "id": t.id,
            "tipo": "ingreso",
            "concepto": t.marca_modelo + (f" ({t.matricula})" if t.matricula else ""),
            "importe": t.importe_total or 0.0,
            "fecha": _as_datetime(t.created_at),
            "descripcion": "Pago en efectivo" if t.estado_pago == "efectivo" else "Pago por transferencia",
            "categoria": "traslado",
        })

    gastos = db.query(Gasto).filter(
        Gasto.empresa_id == perfil.empresa_id,
        Gasto.usuario_id == perfil.id,
    ).all()
    for g in gastos:
        movimientos.append({
            "id": g.id,
            "tipo": "gasto",
            "concepto": TIPOS_GASTO.get(g.tipo, g.tipo),
            "importe": g.importe,
            "fecha": _as_datetime(g.fecha),
            "descripcion": g.descripcion,
            "categoria": g.tipo,
        })

    return movimientos


def filter_and_sort_movimientos(
    movimientos: List[Dict],
    filtro: str = "todos",
    orden: str = "fecha_desc",
) -> List[Dict]:
    if filtro == "solo_ingresos":
        movimientos = [m for m in movimientos if m["tipo"] == "ingreso"]
    elif filtro == "solo_gastos":
        movimientos = [m for m in movimientos if m["tipo"] == "gasto"]
    elif filtro != "todos":
        movimientos = [m for m in movimientos if m["categoria"] == filtro]

    if orden == "fecha_asc":
        return sorted(movimientos, key=lambda m: m["fecha"])
    if orden == "mayor_importe":
        return sorted(movimientos, key=lambda m: m["importe"], reverse=True)
    if orden == "menor_importe":
        return sorted(movimientos, key=lambda m: m["importe"])
    return sorted(movimientos, key=lambda m: m["fecha"], reverse=True)


def get_movimientos_page(
    db: Session,
    perfil: Perfil,
    filtro: str = "todos",
    orden: str = "fecha_desc",
    page: int = 1,
) -> Tuple[List[Dict], int]:
    """Returns (page items, total after filtering)."""
    movimientos = filter_and_sort_movimientos(build_movimientos(db, perfil), filtro, orden)
    start = (page - 1) * ITEMS_POR_PAGINA
    return movimientos[start:start + ITEMS_POR_PAGINA], len(movimientos)
