"""
Shared fixtures: in-memory SQLite database, API client and profile factories.
"""
import pytest
from datetime import datetime, timedelta
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from viagrua.main import app
from viagrua.db.base import Base
from viagrua.db.models.empresa import Empresa
from viagrua.db.models.perfil import Perfil
from viagrua.core.auth_dependency import get_db
from viagrua.core.security import hash_password, create_access_token


# Setup in-memory SQLite database for testing
TEST_DATABASE_URL = "sqlite:///:memory:"
test_engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


def override_get_db():
    """Override get_db dependency for testing."""
    db = TestSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(scope="function")
def db():
    """Create a fresh database for each test."""
    Base.metadata.create_all(bind=test_engine)
    db = TestSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def client(db):
    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.pop(get_db, None)


@pytest.fixture
def empresa(db):
    empresa = Empresa(nombre="Grúas del Sur")
    db.add(empresa)
    db.commit()
    db.refresh(empresa)
    return empresa


def make_perfil(db, email, empresa_id=None, rol="admin", plan="free", plan_renovacion=None,
                traslados_mes_actual=0, mes_contador=None, password="testpass123"):
    perfil = Perfil(
        email=email,
        password_hash=hash_password(password),
        nombre_completo=email.split("@")[0].title(),
        rol=rol,
        empresa_id=empresa_id,
        plan=plan,
        plan_renovacion=plan_renovacion,
        traslados_mes_actual=traslados_mes_actual,
        mes_contador=mes_contador,
    )
    db.add(perfil)
    db.commit()
    db.refresh(perfil)
    return perfil


def auth_headers(perfil):
    return {"Authorization": f"Bearer {create_access_token({'sub': perfil.email})}"}


@pytest.fixture
def admin(db, empresa):
    return make_perfil(db, "admin@gruasdelsur.com", empresa_id=empresa.id)


@pytest.fixture
def paid_admin(db, empresa):
    return make_perfil(
        db,
        "pago@gruasdelsur.com",
        empresa_id=empresa.id,
        plan="mensual",
        plan_renovacion=datetime.utcnow() + timedelta(days=20),
    )


@pytest.fixture
def chofer(db, empresa):
    return make_perfil(db, "chofer@gruasdelsur.com", empresa_id=empresa.id, rol="chofer")
