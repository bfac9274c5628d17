"""
Billing service for MercadoPago webhook processing.

Notifications are never trusted for financial decisions: the payment is
re-fetched from MercadoPago and only an approved payment updates the plan
of the profile named in its metadata.
"""
import logging
from datetime import datetime, timedelta
from typing import Optional, Dict, Any

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from viagrua.core.plan_limits import get_catalog_entry
from viagrua.db.models.perfil import Perfil
from viagrua.db.models.pago_procesado import PagoProcesado
from viagrua.services import mercadopago_service

logger = logging.getLogger(__name__)


class WebhookError(Exception):
    """Notification can't be applied. status_code is the HTTP answer for the processor."""

    def __init__(self, message: str, status_code: int):
        self.status_code = status_code
        super().__init__(message)


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def extract_payment_id(body: Dict[str, Any], query_params: Optional[Dict[str, Any]] = None) -> Optional[str]:
    """
    Get the payment id from a notification.

    MercadoPago sends it as data.id in the body, and for some notification
    versions as data.id / id query parameters. Anything that isn't a string
    or an integer is not an id.
    """
    query_params = query_params or {}
    data = _as_dict(body.get("data"))
    payment_id = (
        data.get("id")
        or data.get("payment_id")
        or body.get("data.id")
        or query_params.get("data.id")
        or query_params.get("id")
    )
    if isinstance(payment_id, bool) or not isinstance(payment_id, (str, int)):
        return None
    payment_id = str(payment_id).strip()
    return payment_id or None


def extract_plan(payment: Dict[str, Any]) -> Optional[str]:
    """Plan purchased: metadata.plan, else the first item id of the preference."""
    plan = _as_dict(payment.get("metadata")).get("plan")
    if not plan:
        items = _as_dict(payment.get("additional_info")).get("items")
        first = items[0] if isinstance(items, list) and items else None
        plan = _as_dict(first).get("id")
    return plan if isinstance(plan, str) and plan else None


def apply_plan(db: Session, perfil: Perfil, plan: str, payment_id: str, now: Optional[datetime] = None) -> Perfil:
    """
    Write plan, renewal date and purchase date to a profile and record the payment.

    Plan update and ledger row are committed together.
    """
    now = now or datetime.utcnow()
    plan_info = get_catalog_entry(plan)

    perfil.plan = plan
    perfil.plan_renovacion = now + timedelta(days=plan_info["duracion_dias"])
    perfil.fecha_compra = now
    db.add(PagoProcesado(payment_id=payment_id, perfil_id=perfil.id, plan=plan))

    db.commit()
    db.refresh(perfil)
    return perfil


def handle_payment_notification(
    body: Dict[str, Any],
    db: Session,
    query_params: Optional[Dict[str, Any]] = None,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """
    Process a MercadoPago notification.

    Args:
        body: Notification JSON
        db: Database session
        query_params: Query string of the notification request
        now: Reference time for the renewal date

    Returns:
        Acknowledgement payload (HTTP 200)

    Raises:
        WebhookError: with the HTTP status to answer (400, 404, 500, 502)
    """
    query_params = query_params or {}
    notification_type = body.get("type") or body.get("topic") or query_params.get("type") or query_params.get("topic")
    if notification_type != "payment":
        logger.debug(f"Ignoring notification type={notification_type}")
        return {"ok": True, "ignored": True, "message": "Not a payment notification"}

    payment_id = extract_payment_id(body, query_params)
    if not payment_id:
        raise WebhookError("No payment id", 400)

    already = db.query(PagoProcesado).filter(PagoProcesado.payment_id == payment_id).first()
    if already:
        logger.info(f"Duplicate notification for processed payment_id={payment_id}")
        return {"ok": True, "duplicate": True, "message": "Payment already processed"}

    try:
        payment = mercadopago_service.get_payment(payment_id)
    except mercadopago_service.MercadoPagoError as e:
        raise WebhookError(f"No se pudo consultar el pago: {e}", 502) from e

    if not payment:
        raise WebhookError("Payment not found", 404)

    if payment.get("status") != "approved":
        logger.info(f"Payment not approved: payment_id={payment_id}, status={payment.get('status')}")
        return {"ok": True, "message": "Payment not approved"}

    user_id = _as_dict(payment.get("metadata")).get("user_id")
    plan = extract_plan(payment)
    if not user_id or not plan:
        raise WebhookError("Missing user_id or plan", 400)
    if not get_catalog_entry(plan):
        raise WebhookError(f"Unknown plan: {plan}", 400)

    try:
        perfil_id = int(user_id)
    except (TypeError, ValueError):
        raise WebhookError(f"Invalid user_id: {user_id}", 400)

    perfil = db.query(Perfil).filter(Perfil.id == perfil_id).first()
    if not perfil:
        raise WebhookError("Perfil not found", 404)

    try:
        apply_plan(db, perfil, plan, payment_id, now)
    except IntegrityError:
        # Another delivery of the same payment committed first
        db.rollback()
        logger.info(f"Concurrent duplicate for payment_id={payment_id}")
        return {"ok": True, "duplicate": True, "message": "Payment already processed"}
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error actualizando plan: perfil_id={perfil_id}, error={e}", exc_info=True)
        raise WebhookError("Error actualizando plan", 500) from e

    logger.info(f"Plan updated: perfil_id={perfil_id}, plan={plan}, payment_id={payment_id}")
    return {"ok": True, "message": "Plan actualizado", "userId": perfil_id, "plan": plan}
