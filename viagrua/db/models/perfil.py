from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from viagrua.db.base import Base


class Perfil(Base):
    """
    Account profile.

    One row per login. The plan fields are written by the payment webhook and
    the usage counter by the traslado reservation, always for the current
    month_key ("YYYY-MM").
    """
    __tablename__ = "perfiles"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=False)
    nombre_completo = Column(String, nullable=False)
    rol = Column(String, nullable=False, default="admin")  # admin | chofer
    empresa_id = Column(Integer, ForeignKey("empresas.id"), nullable=True, index=True)

    plan = Column(String, nullable=False, default="free")  # free | mensual | anual | premium
    plan_renovacion = Column(DateTime(timezone=True), nullable=True)
    fecha_compra = Column(DateTime(timezone=True), nullable=True)

    traslados_mes_actual = Column(Integer, nullable=False, default=0)
    mes_contador = Column(String(7), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    empresa = relationship("Empresa", back_populates="perfiles")

    @staticmethod
    def get_month_key(date: datetime = None) -> str:
        """Generate month_key string in YYYY-MM format."""
        if date is None:
            date = datetime.utcnow()
        return date.strftime("%Y-%m")

    @property
    def is_admin(self) -> bool:
        return self.rol == "admin"
