"""
Mailkit Merge -- AI Patch Tests

An AI patch writes only fields whose AI flag is on. Pinned fields keep
their value, unknown keys are ignored, bad values are rejected per field.
Re-applying the same patch changes nothing.
"""

import copy
import logging

from mailkit.kernel.merge import ai_request_fields, apply_ai_patch, seed_settings
from mailkit.kernel.registry import get_type


class TestFlagRespect:
    def test_pinned_headline_survives_bulk_patch(self, model):
        hero = model.add_section("hero")
        model.set_ai_flag(hero.id, "headline", False)
        before = hero.settings["headline"]

        result = apply_ai_patch(hero, {"headline": "X", "subtext": "Y"})

        assert hero.settings["headline"] == before
        assert hero.settings["subtext"] == "Y"
        assert result.applied == ["subtext"]
        assert result.pinned == ["headline"]

    def test_all_flags_on_by_default(self, model):
        hero = model.add_section("hero")
        result = apply_ai_patch(hero, {"headline": "X", "subtext": "Y"})
        assert result.applied == ["headline", "subtext"]
        assert hero.settings["headline"] == "X"

    def test_non_eligible_fields_are_written(self, model):
        hero = model.add_section("hero")
        result = apply_ai_patch(hero, {"cta_text": "Browse"})
        assert hero.settings["cta_text"] == "Browse"
        assert result.applied == ["cta_text"]

    def test_request_fields_skip_pinned(self, model):
        hero = model.add_section("hero")
        model.set_ai_flag(hero.id, "headline", False)
        assert ai_request_fields(hero) == ["subtext"]

    def test_request_fields_in_schema_order(self, model):
        footer = model.add_section("footer")
        assert ai_request_fields(footer) == ["footer_text", "social_link_text"]


class TestPatchData:
    def test_unknown_key_ignored_and_logged(self, model, caplog):
        text = model.add_section("text")
        with caplog.at_level(logging.WARNING, logger="mailkit.kernel.merge"):
            result = apply_ai_patch(text, {"tagline": "Hi", "body": "Hello"})
        assert result.ignored == ["tagline"]
        assert "tagline" not in text.settings
        assert text.settings["body"] == "Hello"
        assert "tagline" in caplog.text

    def test_private_keys_ignored(self, model):
        text = model.add_section("text")
        result = apply_ai_patch(text, {"_cache": [1, 2]})
        assert result.ignored == ["_cache"]
        assert "_cache" not in text.settings

    def test_bad_value_rejected_prior_kept(self, model):
        text = model.add_section("text")
        result = apply_ai_patch(text, {"body": {"not": "text"}, "heading": "Fine"})
        assert "body" in result.rejected
        assert not result.ok
        assert text.settings["body"] == "Add your text content here."
        assert text.settings["heading"] == "Fine"

    def test_empty_patch(self, model):
        hero = model.add_section("hero")
        before = copy.deepcopy(hero.settings)
        result = apply_ai_patch(hero, {})
        assert hero.settings == before
        assert result.ok
        assert result.applied == []

    def test_list_items_patch(self, model):
        section = model.add_section("list")
        apply_ai_patch(section, {"items": [{"text": "One"}, {"text": "Two"}]})
        assert section.settings["items"] == [{"text": "One"}, {"text": "Two"}]


class TestIdempotence:
    def test_same_patch_twice(self, model):
        hero = model.add_section("hero")
        model.set_ai_flag(hero.id, "headline", False)
        patch = {"headline": "X", "subtext": "Y", "tagline": "Z"}

        apply_ai_patch(hero, patch)
        once = copy.deepcopy(hero.settings)
        apply_ai_patch(hero, patch)

        assert hero.settings == once

    def test_patch_values_are_not_aliased(self, model):
        section = model.add_section("list")
        items = [{"text": "One"}]
        apply_ai_patch(section, {"items": items})
        items[0]["text"] = "Mutated"
        assert section.settings["items"] == [{"text": "One"}]


class TestSeed:
    def test_overlay_over_defaults(self):
        settings = seed_settings(get_type("banner"), {"background_color": "#000000"})
        assert settings["background_color"] == "#000000"
        assert settings["heading"] == "Special Offer!"

    def test_overlay_unknown_key_dropped(self, caplog):
        with caplog.at_level(logging.WARNING, logger="mailkit.kernel.merge"):
            settings = seed_settings(get_type("banner"), {"glow": True})
        assert "glow" not in settings
        assert "glow" in caplog.text

    def test_overlay_invalid_value_dropped(self):
        settings = seed_settings(get_type("banner"), {"background_color": "red"})
        assert settings["background_color"] == "#e63529"
