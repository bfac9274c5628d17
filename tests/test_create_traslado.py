"""
Integration tests for POST /api/create-traslado-safe.
"""
import pytest
from datetime import datetime
from unittest.mock import patch
from sqlalchemy.exc import SQLAlchemyError

from viagrua.db.models.perfil import Perfil
from viagrua.db.models.traslado import Traslado
from viagrua.services.traslado_service import create_traslado_safe, TrasladoCreateError
from conftest import make_perfil, auth_headers


def _payload(admin, chofer, **overrides):
    body = {
        "user_id": admin.id,
        "empresa_id": admin.empresa_id,
        "chofer_id": chofer.id,
        "marca_modelo": "Toyota Hilux",
        "matricula": "SBA 1234",
        "es_0km": False,
        "importe_total": "3500",
        "desde": "Montevideo",
        "hasta": "Maldonado",
    }
    body.update(overrides)
    return body


def test_create_traslado_success(client, db, admin, chofer):
    response = client.post("/api/create-traslado-safe", json=_payload(admin, chofer), headers=auth_headers(admin))

    assert response.status_code == 201
    data = response.json()["traslado"]
    assert data["marca_modelo"] == "Toyota Hilux"
    assert data["importe_total"] == 3500.0
    assert data["estado"] == "pendiente"
    assert data["estado_pago"] == "pendiente"

    db.refresh(admin)
    assert admin.traslados_mes_actual == 1
    assert admin.mes_contador == Perfil.get_month_key()


def test_create_traslado_0km_drops_matricula(client, db, admin, chofer):
    response = client.post(
        "/api/create-traslado-safe",
        json=_payload(admin, chofer, es_0km=True, matricula="SBA 1234"),
        headers=auth_headers(admin),
    )

    assert response.status_code == 201
    assert response.json()["traslado"]["matricula"] is None
    assert response.json()["traslado"]["es_0km"] is True


def test_create_traslado_missing_fields(client, admin, chofer):
    response = client.post(
        "/api/create-traslado-safe",
        json=_payload(admin, chofer, marca_modelo=None),
        headers=auth_headers(admin),
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "Missing required fields"


def test_create_traslado_quota_reached(client, db, empresa, chofer):
    admin = make_perfil(
        db, "lleno@gruasdelsur.com", empresa.id,
        traslados_mes_actual=30, mes_contador=Perfil.get_month_key(),
    )

    response = client.post("/api/create-traslado-safe", json=_payload(admin, chofer), headers=auth_headers(admin))

    assert response.status_code == 403
    assert response.json()["detail"] == "Límite de traslados alcanzado"
    assert db.query(Traslado).count() == 0
    db.refresh(admin)
    assert admin.traslados_mes_actual == 30


def test_create_traslado_paid_plan_unlimited(client, db, empresa, chofer, paid_admin):
    paid_admin.traslados_mes_actual = 100
    paid_admin.mes_contador = Perfil.get_month_key()
    db.commit()

    response = client.post(
        "/api/create-traslado-safe", json=_payload(paid_admin, chofer), headers=auth_headers(paid_admin)
    )

    assert response.status_code == 201
    db.refresh(paid_admin)
    assert paid_admin.traslados_mes_actual == 100


def test_create_traslado_for_other_user_forbidden(client, db, admin, chofer, empresa):
    other = make_perfil(db, "otro@gruasdelsur.com", empresa.id)

    response = client.post("/api/create-traslado-safe", json=_payload(other, chofer), headers=auth_headers(admin))

    assert response.status_code == 403


def test_create_traslado_chofer_forbidden(client, chofer):
    response = client.post("/api/create-traslado-safe", json=_payload(chofer, chofer), headers=auth_headers(chofer))
    assert response.status_code == 403


def test_create_traslado_unknown_perfil(client, admin, chofer):
    response = client.post(
        "/api/create-traslado-safe", json=_payload(admin, chofer, user_id=9999), headers=auth_headers(admin)
    )
    assert response.status_code == 404


def test_create_traslado_chofer_other_company(client, db, admin):
    from viagrua.db.models.empresa import Empresa
    otra = Empresa(nombre="Otra")
    db.add(otra)
    db.commit()
    ajeno = make_perfil(db, "ajeno@otra.com", otra.id, rol="chofer")

    response = client.post("/api/create-traslado-safe", json=_payload(admin, ajeno), headers=auth_headers(admin))

    assert response.status_code == 404


def test_create_traslado_invalid_importe(client, db, admin, chofer):
    response = client.post(
        "/api/create-traslado-safe", json=_payload(admin, chofer, importe_total="mucho"), headers=auth_headers(admin)
    )
    assert response.status_code == 400
    db.refresh(admin)
    assert admin.traslados_mes_actual == 0


def test_create_traslado_conflict(client, db, admin, chofer):
    from viagrua.services.plan_service import ReservationConflictError
    with patch(
        "viagrua.services.traslado_service.check_and_reserve",
        side_effect=ReservationConflictError("conflict"),
    ):
        response = client.post("/api/create-traslado-safe", json=_payload(admin, chofer), headers=auth_headers(admin))

    assert response.status_code == 409


def test_create_traslado_insert_failure_releases_reservation(client, db, admin, chofer):
    with patch("viagrua.services.traslado_service.Traslado", side_effect=SQLAlchemyError("boom")):
        response = client.post("/api/create-traslado-safe", json=_payload(admin, chofer), headers=auth_headers(admin))

    assert response.status_code == 500
    assert response.json()["detail"] == "Error creando traslado"
    db.refresh(admin)
    assert admin.traslados_mes_actual == 0


def test_service_rolls_back_counter_when_insert_fails(db, admin, chofer):
    """A NOT NULL violation at flush must undo the reservation too."""
    with pytest.raises(TrasladoCreateError):
        create_traslado_safe(db, admin, admin.empresa_id, chofer.id, {"marca_modelo": None}, now=datetime.utcnow())

    db.refresh(admin)
    assert admin.traslados_mes_actual == 0
    assert db.query(Traslado).count() == 0


def test_requires_authentication(client, admin, chofer):
    response = client.post("/api/create-traslado-safe", json=_payload(admin, chofer))
    assert response.status_code == 401


@pytest.mark.parametrize("importe", ["nan", "inf", "-inf", "-5"])
def test_create_traslado_rejects_non_finite_or_negative_importe(client, db, admin, chofer, importe):
    response = client.post(
        "/api/create-traslado-safe", json=_payload(admin, chofer, importe_total=importe), headers=auth_headers(admin)
    )

    assert response.status_code == 400
    assert db.query(Traslado).count() == 0
    db.refresh(admin)
    assert admin.traslados_mes_actual == 0


def test_concurrent_creations_from_same_read_one_conflicts(db, admin, chofer):
    """Two sessions read the same counter; only the first creation goes through."""
    from conftest import TestSessionLocal
    from viagrua.services.plan_service import ReservationConflictError

    first = TestSessionLocal()
    second = TestSessionLocal()
    try:
        perfil_a = first.query(Perfil).filter(Perfil.id == admin.id).first()
        perfil_b = second.query(Perfil).filter(Perfil.id == admin.id).first()
        assert perfil_a.traslados_mes_actual == perfil_b.traslados_mes_actual == 0

        created = create_traslado_safe(first, perfil_a, admin.empresa_id, chofer.id, {"marca_modelo": "Fiat Uno"})
        with pytest.raises(ReservationConflictError):
            create_traslado_safe(second, perfil_b, admin.empresa_id, chofer.id, {"marca_modelo": "VW Gol"})
    finally:
        first.close()
        second.close()

    assert created.id is not None
    assert db.query(Traslado).count() == 1
    db.refresh(admin)
    assert admin.traslados_mes_actual == 1
