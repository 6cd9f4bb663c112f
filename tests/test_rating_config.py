"""Rating feature configuration tests."""

import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_rating_config_starts_empty(client: AsyncClient, onboard):
    headers = await onboard("u1")
    resp = await client.get("/v1/admin/rating-config", headers=headers)
    assert resp.status_code == 200
    assert resp.json() == {"ok": True, "features": []}


@pytest.mark.asyncio
async def test_save_rating_config(client: AsyncClient, onboard):
    headers = await onboard("u1")
    resp = await client.patch(
        "/v1/admin/rating-config",
        json={"features": ["Limpieza", "  ", "Atención"]},
        headers=headers,
    )
    assert resp.status_code == 200
    assert resp.json()["features"] == ["Limpieza", "Atención"]

    resp = await client.get("/v1/admin/rating-config", headers=headers)
    assert resp.json()["features"] == ["Limpieza", "Atención"]


@pytest.mark.asyncio
async def test_save_replaces_whole_list(client: AsyncClient, onboard):
    headers = await onboard("u1")
    await client.patch("/v1/admin/rating-config", json={"features": ["A", "B", "C"]}, headers=headers)
    await client.patch("/v1/admin/rating-config", json={"features": ["Comida"]}, headers=headers)

    resp = await client.get("/v1/admin/rating-config", headers=headers)
    assert resp.json()["features"] == ["Comida"]


@pytest.mark.asyncio
async def test_more_than_five_rejected_and_config_unchanged(client: AsyncClient, onboard):
    headers = await onboard("u1")
    await client.patch("/v1/admin/rating-config", json={"features": ["Limpieza"]}, headers=headers)

    resp = await client.patch(
        "/v1/admin/rating-config",
        json={"features": ["a", "b", "c", "d", "e", "f"]},
        headers=headers,
    )
    assert resp.status_code == 400
    assert "features" in resp.json()["errors"]

    resp = await client.get("/v1/admin/rating-config", headers=headers)
    assert resp.json()["features"] == ["Limpieza"]


@pytest.mark.asyncio
async def test_rating_config_is_per_tenant(client: AsyncClient, onboard):
    h1 = await onboard("u1")
    h2 = await onboard("u2", brand_name="Bar Sur")
    await client.patch("/v1/admin/rating-config", json={"features": ["Limpieza"]}, headers=h1)

    resp = await client.get("/v1/admin/rating-config", headers=h2)
    assert resp.json()["features"] == []


@pytest.mark.asyncio
async def test_non_string_labels_rejected_and_config_unchanged(client: AsyncClient, onboard):
    headers = await onboard("u1")
    await client.patch(
        "/v1/admin/rating-config", json={"features": ["Limpieza", "Atención"]}, headers=headers,
    )

    resp = await client.patch("/v1/admin/rating-config", json={"features": [1, 2]}, headers=headers)
    assert resp.status_code == 400
    assert resp.json()["errors"] == {"features": "Las caracteristicas deben ser una lista de textos."}

    resp = await client.get("/v1/admin/rating-config", headers=headers)
    assert resp.json()["features"] == ["Limpieza", "Atención"]
