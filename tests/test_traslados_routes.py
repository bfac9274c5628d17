"""
Integration tests for traslado listing, transitions, photos and deletion.
"""
import os
import pytest

from viagrua.core import config
from viagrua.db.models.traslado import Traslado
from viagrua.services import storage_service
from conftest import make_perfil, auth_headers


@pytest.fixture
def photo_dir(tmp_path, monkeypatch):
    monkeypatch.setattr(config, "PHOTO_STORAGE_DIR", str(tmp_path))
    return tmp_path


def _traslado(db, empresa_id, chofer_id, marca="Ford Ka", estado="pendiente"):
    traslado = Traslado(empresa_id=empresa_id, chofer_id=chofer_id, marca_modelo=marca, estado=estado)
    db.add(traslado)
    db.commit()
    db.refresh(traslado)
    return traslado


def test_admin_sees_company_chofer_sees_own(client, db, admin, chofer, empresa):
    otro = make_perfil(db, "otro@gruasdelsur.com", empresa.id, rol="chofer")
    _traslado(db, empresa.id, chofer.id, "Mio")
    _traslado(db, empresa.id, otro.id, "Ajeno")

    admin_list = client.get("/traslados", headers=auth_headers(admin)).json()
    chofer_list = client.get("/traslados", headers=auth_headers(chofer)).json()

    assert admin_list["total"] == 2
    assert chofer_list["total"] == 1
    assert chofer_list["traslados"][0]["marca_modelo"] == "Mio"


def test_list_pagination_and_filter(client, db, admin, chofer):
    for i in range(12):
        _traslado(db, admin.empresa_id, chofer.id, f"Auto {i}")
    _traslado(db, admin.empresa_id, chofer.id, "Listo", estado="completado")

    page2 = client.get("/traslados?page=2", headers=auth_headers(admin)).json()
    completados = client.get("/traslados?estado=completado", headers=auth_headers(admin)).json()

    assert page2["total"] == 13
    assert len(page2["traslados"]) == 3
    assert [t["marca_modelo"] for t in completados["traslados"]] == ["Listo"]


def test_list_invalid_estado(client, admin):
    response = client.get("/traslados?estado=volando", headers=auth_headers(admin))
    assert response.status_code == 422


def test_resumen(client, db, admin, chofer):
    _traslado(db, admin.empresa_id, chofer.id)
    _traslado(db, admin.empresa_id, chofer.id, estado="en_curso")

    response = client.get("/traslados/resumen", headers=auth_headers(admin))
    assert response.json() == {"pendiente": 1, "en_curso": 1, "completado": 0}


def test_other_company_is_invisible(client, db, admin):
    from viagrua.db.models.empresa import Empresa
    otra = Empresa(nombre="Otra")
    db.add(otra)
    db.commit()
    ajeno = _traslado(db, otra.id, None)

    response = client.get(f"/traslados/{ajeno.id}", headers=auth_headers(admin))
    assert response.status_code == 404


def test_chofer_updates_estado_and_pago(client, db, chofer):
    traslado = _traslado(db, chofer.empresa_id, chofer.id)

    estado = client.patch(f"/traslados/{traslado.id}/estado", json={"estado": "completado"}, headers=auth_headers(chofer))
    pago = client.patch(f"/traslados/{traslado.id}/pago", json={"estado_pago": "efectivo"}, headers=auth_headers(chofer))

    assert estado.status_code == 200
    assert estado.json()["estado"] == "completado"
    assert pago.json()["estado_pago"] == "efectivo"


def test_chofer_cannot_update_unassigned(client, db, chofer, empresa):
    otro = make_perfil(db, "otro@gruasdelsur.com", empresa.id, rol="chofer")
    traslado = _traslado(db, empresa.id, otro.id)

    response = client.patch(f"/traslados/{traslado.id}/estado", json={"estado": "en_curso"}, headers=auth_headers(chofer))
    assert response.status_code == 404


def test_invalid_estado_value(client, db, admin, chofer):
    traslado = _traslado(db, admin.empresa_id, chofer.id)
    response = client.patch(f"/traslados/{traslado.id}/estado", json={"estado": "cancelado"}, headers=auth_headers(admin))
    assert response.status_code == 422


def test_upload_photo(client, db, admin, chofer, photo_dir):
    traslado = _traslado(db, admin.empresa_id, chofer.id)

    response = client.post(
        f"/traslados/{traslado.id}/fotos/frontal",
        files={"file": ("frente.png", b"\x89PNG fake", "image/png")},
        headers=auth_headers(admin),
    )

    assert response.status_code == 200
    url = response.json()["foto_frontal"]
    assert url.startswith(f"{config.API_PUBLIC_URL}/fotos/{traslado.id}/frontal_")
    assert url.endswith(".png")
    assert len(os.listdir(photo_dir / str(traslado.id))) == 1


def test_upload_photo_invalid_tipo(client, db, admin, chofer, photo_dir):
    traslado = _traslado(db, admin.empresa_id, chofer.id)
    response = client.post(
        f"/traslados/{traslado.id}/fotos/techo",
        files={"file": ("x.jpg", b"data", "image/jpeg")},
        headers=auth_headers(admin),
    )
    assert response.status_code == 422


def test_upload_empty_photo(client, db, admin, chofer, photo_dir):
    traslado = _traslado(db, admin.empresa_id, chofer.id)
    response = client.post(
        f"/traslados/{traslado.id}/fotos/interior",
        files={"file": ("x.jpg", b"", "image/jpeg")},
        headers=auth_headers(admin),
    )
    assert response.status_code == 400


def test_delete_traslado_removes_photos(client, db, admin, chofer, photo_dir):
    traslado = _traslado(db, admin.empresa_id, chofer.id)
    storage_service.save_photo(traslado.id, "trasera", b"img", "t.jpg")

    response = client.delete(f"/traslados/{traslado.id}", headers=auth_headers(admin))

    assert response.status_code == 204
    assert db.query(Traslado).count() == 0
    assert not (photo_dir / str(traslado.id)).exists()


def test_chofer_cannot_delete(client, db, chofer):
    traslado = _traslado(db, chofer.empresa_id, chofer.id)
    response = client.delete(f"/traslados/{traslado.id}", headers=auth_headers(chofer))
    assert response.status_code == 403


def test_save_photo_too_large(tmp_path):
    with pytest.raises(ValueError):
        storage_service.save_photo(1, "frontal", b"x" * (storage_service.MAX_PHOTO_BYTES + 1), base_dir=str(tmp_path))


def test_remove_missing_folder(tmp_path):
    assert storage_service.remove_traslado_photos(42, base_dir=str(tmp_path)) is False
