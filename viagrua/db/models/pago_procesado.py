from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.sql import func
from viagrua.db.base import Base


class PagoProcesado(Base):
    """Ledger of MercadoPago payment ids already applied to a profile."""
    __tablename__ = "pagos_procesados"

    id = Column(Integer, primary_key=True, index=True)
    payment_id = Column(String, unique=True, index=True, nullable=False)
    perfil_id = Column(Integer, ForeignKey("perfiles.id"), nullable=False, index=True)
    plan = Column(String, nullable=False)
    processed_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
