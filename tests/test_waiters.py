"""Waiter roster CRUD tests, including per-owner isolation and photo uploads."""

import base64
import uuid

import pytest
from httpx import AsyncClient

WAITER = {
    "first_name": "Juan",
    "last_name": "Perez",
    "dni": "30111222",
    "phone": "1155552222",
    "mercadopago_link": "https://www.mercadopago.com.ar/abc",
}

PHOTO = b"\x89PNG\r\n\x1a\nnot-really-a-png"
PHOTO_DATA_URL = "data:image/png;base64," + base64.b64encode(PHOTO).decode()


async def _create(client: AsyncClient, headers: dict, **overrides) -> dict:
    resp = await client.post("/v1/admin/waiters", json={**WAITER, **overrides}, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()["waiter"]


@pytest.mark.asyncio
async def test_create_waiter(client: AsyncClient, onboard):
    headers = await onboard("u1")
    waiter = await _create(client, headers)
    assert waiter["first_name"] == "Juan"
    assert waiter["dni"] == "30111222"
    assert waiter["photo"] is None
    assert "id" in waiter


@pytest.mark.asyncio
async def test_created_waiter_on_public_page(client: AsyncClient, onboard):
    headers = await onboard("u1")
    await _create(client, headers)

    resp = await client.get("/v1/public/cafe-luz")
    waiters = resp.json()["waiters"]
    assert len(waiters) == 1
    assert waiters[0]["display_name"] == "Juan P."
    assert waiters[0]["mercadopago_link"] == "https://www.mercadopago.com.ar/abc"


@pytest.mark.asyncio
async def test_list_waiters_newest_first(client: AsyncClient, onboard):
    headers = await onboard("u1")
    await _create(client, headers)
    await _create(client, headers, first_name="Maria", dni="30111333")

    resp = await client.get("/v1/admin/waiters", headers=headers)
    assert resp.status_code == 200
    names = [w["first_name"] for w in resp.json()["waiters"]]
    assert sorted(names) == ["Juan", "Maria"]


@pytest.mark.asyncio
async def test_create_waiter_rejects_foreign_link(client: AsyncClient, onboard):
    headers = await onboard("u1")
    resp = await client.post(
        "/v1/admin/waiters",
        json={**WAITER, "mercadopago_link": "https://evil.com/mercadopago.com"},
        headers=headers,
    )
    assert resp.status_code == 400
    assert resp.json()["errors"] == {
        "mercadopago_link": "El link debe ser una URL valida de Mercado Pago.",
    }


@pytest.mark.asyncio
async def test_create_waiter_blank_field(client: AsyncClient, onboard, blob_store):
    headers = await onboard("u1")
    resp = await client.post(
        "/v1/admin/waiters", json={**WAITER, "dni": "", "image": PHOTO_DATA_URL}, headers=headers,
    )
    assert resp.status_code == 400
    assert "form" in resp.json()["errors"]
    # Rejected before any upload
    assert blob_store.objects == {}


@pytest.mark.asyncio
async def test_create_waiter_with_photo(client: AsyncClient, onboard, blob_store):
    headers = await onboard("u1")
    waiter = await _create(client, headers, image=PHOTO_DATA_URL)

    assert len(blob_store.objects) == 1
    (bucket, path), (data, content_type) = next(iter(blob_store.objects.items()))
    assert bucket == "wappedidos"
    assert path.startswith("mipropina/cafe-luz/employee/foto/foto-")
    assert path.endswith(".png")
    assert data == PHOTO
    assert content_type == "image/png"
    assert waiter["photo"] == f"https://storage.test/{bucket}/{path}"


@pytest.mark.asyncio
async def test_create_waiter_malformed_photo(client: AsyncClient, onboard):
    headers = await onboard("u1")
    resp = await client.post(
        "/v1/admin/waiters",
        json={**WAITER, "image": "data:image/png;base64,@@not-base64@@"},
        headers=headers,
    )
    assert resp.status_code == 400
    assert resp.json()["error"] == "Formato de imagen no valido"


@pytest.mark.asyncio
async def test_update_waiter(client: AsyncClient, onboard):
    headers = await onboard("u1")
    waiter = await _create(client, headers)

    resp = await client.patch(
        f"/v1/admin/waiters/{waiter['id']}",
        json={**WAITER, "phone": "1166667777"},
        headers=headers,
    )
    assert resp.status_code == 200
    assert resp.json()["waiter"]["phone"] == "1166667777"
    assert resp.json()["waiter"]["id"] == waiter["id"]


@pytest.mark.asyncio
async def test_update_waiter_keeps_or_clears_photo(client: AsyncClient, onboard, blob_store):
    headers = await onboard("u1")
    waiter = await _create(client, headers, image=PHOTO_DATA_URL)
    photo_url = waiter["photo"]

    resp = await client.patch(
        f"/v1/admin/waiters/{waiter['id']}", json={**WAITER, "image": photo_url}, headers=headers,
    )
    assert resp.json()["waiter"]["photo"] == photo_url
    assert len(blob_store.objects) == 1

    resp = await client.patch(
        f"/v1/admin/waiters/{waiter['id']}", json={**WAITER, "image": None}, headers=headers,
    )
    assert resp.json()["waiter"]["photo"] is None


@pytest.mark.asyncio
async def test_update_waiter_replaces_photo(client: AsyncClient, onboard, blob_store):
    headers = await onboard("u1")
    waiter = await _create(client, headers, image=PHOTO_DATA_URL)

    resp = await client.patch(
        f"/v1/admin/waiters/{waiter['id']}",
        json={**WAITER, "image": PHOTO_DATA_URL},
        headers=headers,
    )
    assert resp.status_code == 200
    assert resp.json()["waiter"]["photo"] != waiter["photo"]
    # The previous object is not cleaned up
    assert len(blob_store.objects) == 2


@pytest.mark.asyncio
async def test_delete_waiter(client: AsyncClient, onboard):
    headers = await onboard("u1")
    waiter = await _create(client, headers)

    resp = await client.delete(f"/v1/admin/waiters/{waiter['id']}", headers=headers)
    assert resp.status_code == 200
    assert resp.json() == {"ok": True}

    resp = await client.get("/v1/admin/waiters", headers=headers)
    assert resp.json()["waiters"] == []


@pytest.mark.asyncio
async def test_update_unknown_waiter(client: AsyncClient, onboard):
    headers = await onboard("u1")
    resp = await client.patch(f"/v1/admin/waiters/{uuid.uuid4()}", json=WAITER, headers=headers)
    assert resp.status_code == 404
    assert resp.json()["error"] == "Mozo no encontrado."


@pytest.mark.asyncio
async def test_waiters_isolated_between_owners(client: AsyncClient, onboard):
    h1 = await onboard("u1")
    h2 = await onboard("u2", brand_name="Bar Sur")
    waiter = await _create(client, h1)

    resp = await client.get("/v1/admin/waiters", headers=h2)
    assert resp.json()["waiters"] == []

    resp = await client.patch(
        f"/v1/admin/waiters/{waiter['id']}", json={**WAITER, "first_name": "Hacked"}, headers=h2,
    )
    assert resp.status_code == 404

    resp = await client.delete(f"/v1/admin/waiters/{waiter['id']}", headers=h2)
    assert resp.status_code == 404

    resp = await client.get("/v1/admin/waiters", headers=h1)
    assert resp.json()["waiters"][0]["first_name"] == "Juan"


@pytest.mark.asyncio
async def test_photo_requires_brand(client: AsyncClient, identity, blob_store):
    headers = identity.sign_in("u1")
    resp = await client.post(
        "/v1/admin/waiters", json={**WAITER, "image": PHOTO_DATA_URL}, headers=headers,
    )
    assert resp.status_code == 409
    assert blob_store.objects == {}


@pytest.mark.asyncio
async def test_create_waiter_photo_upload_failure(client: AsyncClient, onboard, blob_store):
    headers = await onboard("u1")
    blob_store.fail_uploads = True

    resp = await client.post(
        "/v1/admin/waiters", json={**WAITER, "image": PHOTO_DATA_URL}, headers=headers,
    )
    assert resp.status_code == 502
    assert resp.json()["ok"] is False

    resp = await client.get("/v1/admin/waiters", headers=headers)
    assert resp.json()["waiters"] == []


@pytest.mark.asyncio
@pytest.mark.parametrize("image", [
    "https://evil.com/photo.png",
    "javascript:alert(1)",
    "https://storage.test/wappedidos/mipropina/bar-sur/employee/foto/foto-1.png",
    "https://storage.test/wappedidos/mipropina/cafe-luz/../bar-sur/foto.png",
])
async def test_update_waiter_rejects_foreign_photo_url(client: AsyncClient, onboard, image):
    headers = await onboard("u1")
    waiter = await _create(client, headers)

    resp = await client.patch(
        f"/v1/admin/waiters/{waiter['id']}", json={**WAITER, "image": image}, headers=headers,
    )
    assert resp.status_code == 400
    assert "image" in resp.json()["errors"]

    resp = await client.get("/v1/admin/waiters", headers=headers)
    assert resp.json()["waiters"][0]["photo"] is None
