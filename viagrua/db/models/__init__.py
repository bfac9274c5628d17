"""
Database models module.

This module imports all database models to ensure they are registered with SQLAlchemy's Base.metadata
before table creation.

All models must be imported here to be included in database migrations and table creation.
"""
from viagrua.db.models.empresa import Empresa
from viagrua.db.models.perfil import Perfil
from viagrua.db.models.traslado import Traslado
from viagrua.db.models.gasto import Gasto
from viagrua.db.models.invitacion import Invitacion
from viagrua.db.models.pago_procesado import PagoProcesado

# Explicitly export all models for clarity
__all__ = [
    "Empresa",
    "Perfil",
    "Traslado",
    "Gasto",
    "Invitacion",
    "PagoProcesado",
]
