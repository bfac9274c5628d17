from sqlalchemy import Column, Integer, String, Text, Float, Boolean, DateTime, ForeignKey, Index
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from viagrua.db.base import Base

ESTADOS = ("pendiente", "en_curso", "completado")
ESTADOS_PAGO = ("pendiente", "efectivo", "transferencia")
FOTO_TIPOS = ("frontal", "lateral", "trasera", "interior")


class Traslado(Base):
    """Vehicle transport job dispatched to a chofer."""
    __tablename__ = "traslados"

    id = Column(Integer, primary_key=True, index=True)
    empresa_id = Column(Integer, ForeignKey("empresas.id"), nullable=False, index=True)
    chofer_id = Column(Integer, ForeignKey("perfiles.id"), nullable=True, index=True)

    marca_modelo = Column(String, nullable=False)
    matricula = Column(String, nullable=True)  # None for 0km vehicles
    es_0km = Column(Boolean, nullable=False, default=False)
    importe_total = Column(Float, nullable=True)
    observaciones = Column(Text, nullable=True)
    desde = Column(String, nullable=True)
    hasta = Column(String, nullable=True)

    estado = Column(String, nullable=False, default="pendiente")
    estado_pago = Column(String, nullable=False, default="pendiente")

    foto_frontal = Column(String, nullable=True)
    foto_lateral = Column(String, nullable=True)
    foto_trasera = Column(String, nullable=True)
    foto_interior = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    chofer = relationship("Perfil")

    __table_args__ = (
        Index("idx_traslados_empresa_estado", "empresa_id", "estado"),
    )
