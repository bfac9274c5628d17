"""
Billing endpoints: MercadoPago checkout preferences and payment webhook.
"""
import logging
from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from viagrua.core.auth_dependency import get_db, get_current_perfil
from viagrua.core.logging_config import sanitize_log_data
from viagrua.core.plan_limits import get_catalog_entry
from viagrua.db.models.perfil import Perfil
from viagrua.services import mercadopago_service
from viagrua.services.billing_service import handle_payment_notification, WebhookError
from viagrua.schemas.billing import CreatePreferenceRequest, PagoPremiumRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Billing"])


def _check_owner(user_id, perfil: Perfil) -> None:
    if str(user_id) != str(perfil.id):
        logger.warning(f"Preference for another user denied: caller={perfil.id}, user_id={user_id}")
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="No autorizado")


@router.post("/create-preference")
def create_preference(
    payload: CreatePreferenceRequest,
    perfil: Perfil = Depends(get_current_perfil)
):
    """Create a checkout link for a plan (mensual, anual, premium)."""
    if not payload.plan or not payload.email or not payload.user_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Faltan datos requeridos (plan, email, user_id)"
        )
    if not get_catalog_entry(payload.plan):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Plan inválido")
    _check_owner(payload.user_id, perfil)

    try:
        result = mercadopago_service.create_preference(payload.plan, payload.email, perfil.id)
    except mercadopago_service.MercadoPagoError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=f"Error creando preferencia: {e}")

    return {"ok": True, "id": result["id"], "init_point": result["init_point"]}


@router.post("/pago-premium")
def pago_premium(
    payload: PagoPremiumRequest,
    perfil: Perfil = Depends(get_current_perfil)
):
    """One-year premium checkout link."""
    if not payload.user_id or not payload.email:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Faltan o son inválidos los datos de usuario"
        )
    _check_owner(payload.user_id, perfil)

    try:
        result = mercadopago_service.create_preference("premium", payload.email, perfil.id)
    except mercadopago_service.MercadoPagoError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=f"No se pudo generar el link de pago: {e}")

    return {"url": result["init_point"]}


# ✅ MERCADOPAGO WEBHOOK
@router.post("/webhook-mercadopago")
async def mercadopago_webhook(
    request: Request,
    db: Session = Depends(get_db)
):
    """
    Payment notification from MercadoPago.

    Non-2xx answers make MercadoPago retry the notification.
    """
    try:
        body = await request.json()
    except ValueError:
        body = {}
    if not isinstance(body, dict):
        body = {}

    query_params = dict(request.query_params)
    logger.info(f"MercadoPago notification: {sanitize_log_data(body)}")

    try:
        result = handle_payment_notification(body, db, query_params=query_params)
    except WebhookError as e:
        logger.warning(f"Webhook rejected: status={e.status_code}, reason={e}")
        return JSONResponse(status_code=e.status_code, content={"ok": False, "message": str(e)})
    except Exception as e:
        db.rollback()
        logger.error(f"Error en webhook: {e}", exc_info=True)
        return JSONResponse(status_code=500, content={"ok": False, "message": "Error en webhook"})

    return result
