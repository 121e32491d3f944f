"""
Mailkit Registry -- Preset Tests

Preset variants are named settings overlays. Every overlay must only name
fields of its own section type, with values those fields accept.
"""

import pytest

from mailkit.kernel.fields import coerce
from mailkit.kernel.presets import (
    PRESET_CATEGORIES,
    UnknownVariant,
    get_variant,
    list_presets_by_category,
    resolve_variant,
)
from mailkit.kernel.registry import get_type, has_type


def all_variants():
    return [v for c in PRESET_CATEGORIES for v in c["variants"]]


class TestPresetCatalog:
    def test_variant_ids_unique(self):
        ids = [v["id"] for v in all_variants()]
        assert len(ids) == len(set(ids))

    def test_every_category_has_variants(self):
        for category in list_presets_by_category():
            assert category["variants"], category["category"]

    def test_variant_types_are_registered(self):
        for v in all_variants():
            assert has_type(v["type"]), v["id"]

    def test_overlay_keys_are_fields_of_the_type(self):
        for v in all_variants():
            keys = set(get_type(v["type"]).field_keys)
            assert set(v["settings"]) <= keys, v["id"]

    def test_overlay_values_are_valid(self):
        for v in all_variants():
            st = get_type(v["type"])
            for key, value in v["settings"].items():
                coerce(st.get_field(key), value)

    def test_listing_returns_copies(self):
        listed = list_presets_by_category()
        listed[0]["variants"][0]["settings"]["background_color"] = "#000000"
        assert list_presets_by_category()[0]["variants"][0]["settings"] != {"background_color": "#000000"}


class TestResolveVariant:
    def test_forest_green_hero(self):
        settings = resolve_variant("hero-forest")
        assert settings["background_color"] == "#1a3d2b"
        assert settings["cta_bg_color"] == "#ffffff"
        assert "headline" not in settings

    def test_get_variant_record(self):
        variant = get_variant("hero-forest")
        assert variant["label"] == "Forest Green"
        assert variant["type"] == "hero"

    def test_unknown_variant_raises(self):
        with pytest.raises(UnknownVariant):
            resolve_variant("hero-neon")

    def test_resolved_settings_are_copies(self):
        resolve_variant("hero-forest")["background_color"] = "#000000"
        assert resolve_variant("hero-forest")["background_color"] == "#1a3d2b"

    def test_divider_overlay_keeps_its_color_field(self):
        settings = resolve_variant("divider-accent")
        assert settings["color"] == "#e63529"
        assert settings["thickness"] == 2
        assert get_variant("divider-accent")["indicator_color"] == "#e63529"
        assert resolve_variant("divider-dashed")["color"] == "#cccccc"
