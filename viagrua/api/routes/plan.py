"""
Plan endpoints.

Provides plan, quota usage and capability flags for the authenticated profile.
"""
import logging
from fastapi import APIRouter, Depends, status

from viagrua.db.models.perfil import Perfil
from viagrua.core.auth_dependency import get_current_perfil
from viagrua.core.plan_limits import PLAN_CATALOG
from viagrua.services.plan_service import get_plan_summary
from viagrua.schemas.plan import PlanSummaryResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Plan"])


@router.get("/me/plan", status_code=status.HTTP_200_OK, response_model=PlanSummaryResponse)
def get_plan(perfil: Perfil = Depends(get_current_perfil)):
    """
    Get the plan card data for the authenticated profile.

    Returns:
    - plan / plan_efectivo: stored plan and the one in force
    - traslados_max / traslados_usados / traslados_restantes for this month
    - bloqueado: free plan with no traslados left
    - puede_agregar_personas / puede_exportar capability flags

    Requires authentication via Bearer token.
    """
    summary = get_plan_summary(perfil)
    logger.debug(f"Plan summary requested: perfil_id={perfil.id}, plan={summary['plan_efectivo']}")
    return summary


@router.get("/planes")
def list_planes():
    """Purchasable plans for the plan selection page."""
    return [
        {"id": plan_id, "nombre": info["nombre"], "precio": info["precio"], "descripcion": info["descripcion"]}
        for plan_id, info in PLAN_CATALOG.items()
    ]
