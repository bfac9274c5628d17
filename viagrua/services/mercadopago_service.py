"""
MercadoPago service for checkout preferences and payment lookup.
"""
import logging
from typing import Optional, Dict, Any

import mercadopago

from viagrua.core import config
from viagrua.core.plan_limits import get_catalog_entry

logger = logging.getLogger(__name__)


class MercadoPagoError(Exception):
    """MercadoPago rejected the request or could not be reached."""

    def __init__(self, message: str, status: Optional[int] = None, response: Any = None):
        self.status = status
        self.response = response
        super().__init__(message)


_sdk = None


def get_sdk() -> mercadopago.SDK:
    """Lazily build the SDK client so a missing token only fails payment calls."""
    global _sdk
    if _sdk is None:
        if not config.MERCADOPAGO_ACCESS_TOKEN:
            raise MercadoPagoError("MercadoPago not configured - MERCADOPAGO_ACCESS_TOKEN required")
        _sdk = mercadopago.SDK(config.MERCADOPAGO_ACCESS_TOKEN)
    return _sdk


def build_preference(plan: str, email: str, user_id: int) -> Dict[str, Any]:
    """
    Build the Checkout Pro preference body for a plan purchase.

    Raises:
        ValueError: plan not in the catalog
    """
    plan_info = get_catalog_entry(plan)
    if not plan_info:
        raise ValueError("Plan inválido")

    return {
        "items": [
            {
                "id": plan,
                "title": plan_info["nombre"],
                "description": plan_info["descripcion"],
                "quantity": 1,
                "currency_id": config.PAYMENT_CURRENCY,
                "unit_price": plan_info["precio"],
                "category_id": "services",
            }
        ],
        "payer": {"email": email},
        "metadata": {"user_id": str(user_id), "plan": plan},
        "external_reference": str(user_id),
        "back_urls": {
            "success": config.MP_SUCCESS_URL,
            "failure": config.MP_FAILURE_URL,
            "pending": config.MP_PENDING_URL,
        },
        "auto_return": "approved",
        "notification_url": config.MP_WEBHOOK_URL,
    }


def create_preference(plan: str, email: str, user_id: int) -> Dict[str, Any]:
    """
    Create a MercadoPago preference for a plan purchase.

    Args:
        plan: Plan key from the catalog (mensual, anual, premium)
        email: Payer email
        user_id: Profile id, echoed back in the payment metadata

    Returns:
        Dictionary with 'id' and 'init_point' (checkout redirect URL)

    Raises:
        ValueError: unknown plan
        MercadoPagoError: processor error or no init_point returned
    """
    body = build_preference(plan, email, user_id)

    try:
        result = get_sdk().preference().create(body)
    except MercadoPagoError:
        raise
    except Exception as e:
        logger.error(f"MercadoPago error creating preference: {e}", exc_info=True)
        raise MercadoPagoError(f"Failed to create preference: {e}") from e

    status = result.get("status")
    response = result.get("response") or {}
    if status not in (200, 201) or not response.get("init_point"):
        logger.error(f"MercadoPago preference rejected: status={status}, response={response}")
        raise MercadoPagoError("No se pudo generar el link de pago", status=status, response=response)

    logger.info(f"Created preference: preference_id={response.get('id')}, user_id={user_id}, plan={plan}")
    return {"id": response.get("id"), "init_point": response["init_point"]}


def get_payment(payment_id: str) -> Optional[Dict[str, Any]]:
    """
    Fetch the authoritative payment from MercadoPago.

    Returns:
        Payment dict, or None if MercadoPago doesn't know the id

    Raises:
        MercadoPagoError: processor unreachable or unexpected status
    """
    try:
        result = get_sdk().payment().get(payment_id)
    except MercadoPagoError:
        raise
    except Exception as e:
        logger.error(f"MercadoPago error fetching payment {payment_id}: {e}", exc_info=True)
        raise MercadoPagoError(f"Failed to fetch payment: {e}") from e

    status = result.get("status")
    if status == 404:
        return None
    if status != 200:
        logger.error(f"MercadoPago payment lookup failed: payment_id={payment_id}, status={status}")
        raise MercadoPagoError("No se pudo consultar el pago", status=status, response=result.get("response"))

    return result.get("response") or None
