from sqlalchemy import Column, Integer, String, Text, Float, Date, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from viagrua.db.base import Base

TIPOS_GASTO = {
    "combustible": "Combustible",
    "seguro": "Seguro",
    "mantenimiento": "Mantenimiento",
    "peaje": "Peaje",
    "patente": "Patente",
    "multa": "Multa",
    "otro": "Otro",
}


class Gasto(Base):
    __tablename__ = "gastos"

    id = Column(Integer, primary_key=True, index=True)
    empresa_id = Column(Integer, ForeignKey("empresas.id"), nullable=False, index=True)
    usuario_id = Column(Integer, ForeignKey("perfiles.id"), nullable=False, index=True)
    tipo = Column(String, nullable=False)
    importe = Column(Float, nullable=False)
    descripcion = Column(Text, nullable=True)
    fecha = Column(Date, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    usuario = relationship("Perfil")
