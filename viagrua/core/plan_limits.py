"""
Plan entitlements configuration.

Single source of truth for monthly traslado quota, team and export
capabilities, checkout prices and paid period length per plan.
None means unlimited quota.
"""
from typing import Dict, Optional, Any

from viagrua.core.config import FREE_TRASLADOS_PER_MONTH

DEFAULT_PLAN = "free"

PLANES: Dict[str, Dict[str, Any]] = {
    "free": {
        "nombre": "Free",
        "traslados_max": FREE_TRASLADOS_PER_MONTH,
        "puede_agregar_personas": False,
        "puede_exportar": False,
    },
    "mensual": {
        "nombre": "Pago Mensual",
        "traslados_max": None,  # Unlimited
        "puede_agregar_personas": True,
        "puede_exportar": True,
    },
    "anual": {
        "nombre": "Pago Anual",
        "traslados_max": None,
        "puede_agregar_personas": True,
        "puede_exportar": True,
    },
    "premium": {
        "nombre": "Premium",
        "traslados_max": None,
        "puede_agregar_personas": True,
        "puede_exportar": True,
    },
}

# Checkout catalog (prices in PAYMENT_CURRENCY)
PLAN_CATALOG: Dict[str, Dict[str, Any]] = {
    "mensual": {
        "nombre": "Plan Mensual",
        "precio": 10,
        "descripcion": "Acceso completo por 1 mes",
        "duracion_dias": 30,
    },
    "anual": {
        "nombre": "Plan Anual",
        "precio": 20,
        "descripcion": "Acceso completo por 1 año (2 meses bonificados)",
        "duracion_dias": 365,
    },
    "premium": {
        "nombre": "Plan Premium ViaGrua (1 año)",
        "precio": 990,
        "descripcion": "Suscripción anual a ViaGrua con traslados ilimitados y acceso premium",
        "duracion_dias": 365,
    },
}


def normalize_plan(plan_type: Optional[str]) -> str:
    """Return a known plan key, defaulting to free."""
    plan_type = plan_type.lower() if plan_type else DEFAULT_PLAN
    return plan_type if plan_type in PLANES else DEFAULT_PLAN


def get_plan_info(plan_type: Optional[str]) -> Dict[str, Any]:
    """Get the entitlement row for a plan."""
    return PLANES[normalize_plan(plan_type)]


def get_traslados_limit(plan_type: Optional[str]) -> Optional[int]:
    """
    Get the monthly traslado limit for a plan.

    Returns:
        Monthly limit (int) or None for unlimited
    """
    return get_plan_info(plan_type)["traslados_max"]


def has_unlimited_quota(plan_type: Optional[str]) -> bool:
    """Check if the plan has unlimited traslados."""
    return get_traslados_limit(plan_type) is None


def can_add_people(plan_type: Optional[str]) -> bool:
    return get_plan_info(plan_type)["puede_agregar_personas"]


def get_catalog_entry(plan_type: Optional[str]) -> Optional[Dict[str, Any]]:
    """Get the purchasable catalog entry, None if the plan can't be bought."""
    if not plan_type:
        return None
    return PLAN_CATALOG.get(plan_type.lower())
