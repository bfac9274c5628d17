"""
Tests for the MercadoPago webhook and plan activation.
"""
from datetime import datetime, timedelta
from unittest.mock import patch

from viagrua.db.models.pago_procesado import PagoProcesado
from viagrua.services.billing_service import extract_payment_id, extract_plan, handle_payment_notification
from viagrua.services.mercadopago_service import MercadoPagoError
from conftest import make_perfil

WEBHOOK = "/api/webhook-mercadopago"


def _payment(user_id, plan="mensual", status="approved"):
    return {
        "id": 123456,
        "status": status,
        "metadata": {"user_id": str(user_id), "plan": plan},
        "additional_info": {"items": [{"id": plan}]},
    }


def _notification(payment_id="123456"):
    return {"type": "payment", "data": {"id": payment_id}}


def test_extract_payment_id_variants():
    assert extract_payment_id({"data": {"id": 99}}) == "99"
    assert extract_payment_id({"data.id": "98"}) == "98"
    assert extract_payment_id({}, {"id": "97"}) == "97"
    assert extract_payment_id({}) is None


def test_extract_plan_falls_back_to_item_id():
    assert extract_plan({"metadata": {"plan": "anual"}}) == "anual"
    assert extract_plan({"metadata": {}, "additional_info": {"items": [{"id": "premium"}]}}) == "premium"
    assert extract_plan({}) is None


def test_approved_payment_updates_only_target_profile(client, db, admin, empresa):
    other = make_perfil(db, "otro@gruasdelsur.com", empresa.id)

    with patch("viagrua.services.mercadopago_service.get_payment", return_value=_payment(admin.id, "anual")):
        response = client.post(WEBHOOK, json=_notification())

    assert response.status_code == 200
    assert response.json() == {"ok": True, "message": "Plan actualizado", "userId": admin.id, "plan": "anual"}

    db.refresh(admin)
    db.refresh(other)
    assert admin.plan == "anual"
    assert admin.fecha_compra is not None
    assert admin.plan_renovacion - admin.fecha_compra == timedelta(days=365)
    assert other.plan == "free"
    assert other.plan_renovacion is None
    assert db.query(PagoProcesado).filter(PagoProcesado.payment_id == "123456").count() == 1


def test_mensual_renews_thirty_days(db, admin):
    now = datetime(2026, 10, 1, 9, 0)
    with patch("viagrua.services.mercadopago_service.get_payment", return_value=_payment(admin.id, "mensual")):
        handle_payment_notification(_notification(), db, now=now)

    db.refresh(admin)
    assert admin.plan == "mensual"
    assert admin.plan_renovacion == now + timedelta(days=30)


def test_non_approved_payment_does_not_mutate(client, db, admin):
    with patch(
        "viagrua.services.mercadopago_service.get_payment",
        return_value=_payment(admin.id, status="pending"),
    ):
        response = client.post(WEBHOOK, json=_notification())

    assert response.status_code == 200
    assert response.json()["message"] == "Payment not approved"
    db.refresh(admin)
    assert admin.plan == "free"
    assert db.query(PagoProcesado).count() == 0


def test_duplicate_notification_is_acknowledged(client, db, admin):
    with patch(
        "viagrua.services.mercadopago_service.get_payment",
        return_value=_payment(admin.id, "mensual"),
    ) as mock_get:
        first = client.post(WEBHOOK, json=_notification())
        second = client.post(WEBHOOK, json=_notification())

    assert first.status_code == 200
    assert second.status_code == 200
    assert second.json()["duplicate"] is True
    assert mock_get.call_count == 1
    assert db.query(PagoProcesado).count() == 1


def test_non_payment_notification_ignored(client):
    with patch("viagrua.services.mercadopago_service.get_payment") as mock_get:
        response = client.post(WEBHOOK, json={"type": "merchant_order", "data": {"id": "1"}})

    assert response.status_code == 200
    assert response.json()["ignored"] is True
    mock_get.assert_not_called()


def test_payment_id_from_query_params(client, db, admin):
    with patch(
        "viagrua.services.mercadopago_service.get_payment",
        return_value=_payment(admin.id, "premium"),
    ) as mock_get:
        response = client.post(f"{WEBHOOK}?type=payment&data.id=555", json={})

    assert response.status_code == 200
    mock_get.assert_called_once_with("555")
    db.refresh(admin)
    assert admin.plan == "premium"


def test_missing_payment_id(client):
    response = client.post(WEBHOOK, json={"type": "payment", "data": {}})
    assert response.status_code == 400
    assert response.json()["ok"] is False


def test_payment_not_found(client):
    with patch("viagrua.services.mercadopago_service.get_payment", return_value=None):
        response = client.post(WEBHOOK, json=_notification())
    assert response.status_code == 404


def test_processor_error_is_retryable(client):
    with patch("viagrua.services.mercadopago_service.get_payment", side_effect=MercadoPagoError("down")):
        response = client.post(WEBHOOK, json=_notification())
    assert response.status_code == 502


def test_missing_metadata(client):
    payment = {"id": 1, "status": "approved", "metadata": {}}
    with patch("viagrua.services.mercadopago_service.get_payment", return_value=payment):
        response = client.post(WEBHOOK, json=_notification())
    assert response.status_code == 400


def test_unknown_plan(client, admin):
    with patch("viagrua.services.mercadopago_service.get_payment", return_value=_payment(admin.id, "gold")):
        response = client.post(WEBHOOK, json=_notification())
    assert response.status_code == 400


def test_unknown_profile(client):
    with patch("viagrua.services.mercadopago_service.get_payment", return_value=_payment(9999)):
        response = client.post(WEBHOOK, json=_notification())
    assert response.status_code == 404


def test_invalid_json_body_is_ignored(client):
    response = client.post(WEBHOOK, content=b"not json", headers={"Content-Type": "application/json"})
    assert response.status_code == 200
    assert response.json()["ignored"] is True


def test_non_object_data_is_bad_request(client):
    with patch("viagrua.services.mercadopago_service.get_payment") as mock_get:
        response = client.post(WEBHOOK, json={"type": "payment", "data": "123"})

    assert response.status_code == 400
    assert response.json() == {"ok": False, "message": "No payment id"}
    mock_get.assert_not_called()


def test_non_scalar_payment_id_is_bad_request(client):
    response = client.post(WEBHOOK, json={"type": "payment", "data": {"id": {"nested": 1}}})
    assert response.status_code == 400


def test_malformed_payment_items_is_bad_request(client, admin):
    payment = {
        "id": 1,
        "status": "approved",
        "metadata": "not-a-dict",
        "additional_info": {"items": ["mensual"]},
    }
    with patch("viagrua.services.mercadopago_service.get_payment", return_value=payment):
        response = client.post(WEBHOOK, json=_notification())

    assert response.status_code == 400
    assert response.json()["message"] == "Missing user_id or plan"


def test_extract_plan_ignores_malformed_shapes():
    assert extract_plan({"metadata": [], "additional_info": {"items": "premium"}}) is None
    assert extract_plan({"additional_info": {"items": [None]}}) is None
