"""Tests for the section palette routes: types, presets, new sections."""

from __future__ import annotations

import pytest

pytestmark = pytest.mark.asyncio


class TestHealth:
    async def test_health(self, async_client):
        res = await async_client.get("/health")
        assert res.status_code == 200
        assert res.json() == {"status": "ok"}


class TestSectionTypes:
    async def test_palette_grouped_by_category(self, async_client):
        res = await async_client.get("/api/section-types")
        assert res.status_code == 200
        groups = res.json()
        assert [g["category"] for g in groups] == ["structure", "content", "commerce"]
        types = [t["type"] for g in groups for t in g["types"]]
        assert "hero" in types and "coupon" in types

    async def test_single_type(self, async_client):
        res = await async_client.get("/api/section-types/coupon")
        assert res.status_code == 200
        data = res.json()
        assert data["defaults"]["coupon_code"] == "SAVE10"
        expiry = next(f for f in data["fields"] if f["key"] == "expiry")
        assert expiry["kind"] == "date"

    async def test_unknown_type(self, async_client):
        res = await async_client.get("/api/section-types/carousel")
        assert res.status_code == 404
        assert res.json()["detail"] == "Section type not found."


class TestPresets:
    async def test_presets(self, async_client):
        res = await async_client.get("/api/presets")
        assert res.status_code == 200
        hero = next(c for c in res.json() if c["category"] == "hero")
        assert "hero-forest" in [v["id"] for v in hero["variants"]]


class TestNewSection:
    async def test_seeded_from_preset(self, async_client):
        res = await async_client.post("/api/sections/new", json={"type": "hero", "variant_id": "hero-forest"})
        assert res.status_code == 201
        section = res.json()
        assert section["type"] == "hero"
        assert section["id"]
        assert section["settings"]["background_color"] == "#1a3d2b"
        assert section["settings"]["headline"] == "Your Campaign Headline"
        assert section["ai_flags"] == {"headline": True, "subtext": True}

    async def test_unknown_type(self, async_client):
        res = await async_client.post("/api/sections/new", json={"type": "carousel"})
        assert res.status_code == 404

    async def test_unknown_variant(self, async_client):
        res = await async_client.post("/api/sections/new", json={"type": "hero", "variant_id": "hero-neon"})
        assert res.status_code == 404
        assert res.json()["detail"] == "Preset not found."

    async def test_variant_for_other_type(self, async_client):
        res = await async_client.post("/api/sections/new", json={"type": "cta", "variant_id": "hero-forest"})
        assert res.status_code == 422

    async def test_extra_fields_rejected(self, async_client):
        res = await async_client.post("/api/sections/new", json={"type": "hero", "colour": "red"})
        assert res.status_code == 422
