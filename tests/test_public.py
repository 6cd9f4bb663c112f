"""Public brand page resolution tests (no auth)."""

import pytest
from httpx import AsyncClient

from app.services.public import display_name

WAITER = {
    "first_name": "Juan",
    "last_name": "Perez",
    "dni": "30111222",
    "phone": "1155552222",
    "mercadopago_link": "https://www.mercadopago.com.ar/abc",
}


@pytest.mark.asyncio
async def test_unknown_slug_returns_empty_bundle(client: AsyncClient):
    resp = await client.get("/v1/public/no-existe")
    assert resp.status_code == 200
    assert resp.json() == {"ok": True, "store": None, "waiters": [], "rating_features": []}


@pytest.mark.asyncio
async def test_shell_without_onboarding_is_not_public(client: AsyncClient, identity):
    headers = identity.sign_in("u1")
    await client.get("/v1/admin/personal-data", headers=headers)

    resp = await client.get("/v1/public/cafe-luz")
    assert resp.json()["store"] is None


@pytest.mark.asyncio
async def test_full_bundle(client: AsyncClient, onboard, blob_store):
    headers = await onboard("u1")
    await client.post("/v1/admin/waiters", json=WAITER, headers=headers)
    await client.patch(
        "/v1/admin/rating-config", json={"features": ["Limpieza", "Atención"]}, headers=headers,
    )
    await client.post(
        "/v1/admin/logo",
        files={"file": ("Logo.png", b"\x89PNG-logo", "image/png")},
        headers=headers,
    )

    resp = await client.get("/v1/public/cafe-luz")
    assert resp.status_code == 200
    data = resp.json()
    assert data["store"] == {
        "brand_name": "Café Luz",
        "phone": "+54 11 5555-1234",
        "address": "Calle 123",
        "logo": "https://storage.test/wappedidos/mipropina/cafe-luz/logo.png",
    }
    assert data["rating_features"] == ["Limpieza", "Atención"]
    assert len(data["waiters"]) == 1


@pytest.mark.asyncio
async def test_public_roster_hides_private_fields(client: AsyncClient, onboard):
    headers = await onboard("u1")
    await client.post("/v1/admin/waiters", json=WAITER, headers=headers)

    waiter = (await client.get("/v1/public/cafe-luz")).json()["waiters"][0]
    assert set(waiter) == {"id", "first_name", "display_name", "photo", "mercadopago_link"}


@pytest.mark.asyncio
async def test_bundles_do_not_leak_between_brands(client: AsyncClient, onboard):
    h1 = await onboard("u1")
    await onboard("u2", brand_name="Bar Sur")
    await client.post("/v1/admin/waiters", json=WAITER, headers=h1)

    resp = await client.get("/v1/public/bar-sur")
    data = resp.json()
    assert data["store"]["brand_name"] == "Bar Sur"
    assert data["waiters"] == []


@pytest.mark.parametrize("first, last, expected", [
    ("Juan", "Perez", "Juan P."),
    (" Ana ", "diaz", "Ana D."),
    ("Leo", "", "Leo"),
])
def test_display_name(first, last, expected):
    assert display_name(first, last) == expected
