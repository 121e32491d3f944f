"""
Mailkit Model -- Structure Operation Tests

TemplateModel is the ordered section list. Order changes only through
explicit structural operations; ids never change once assigned.
"""

import pytest

from mailkit.kernel.merge import apply_ai_patch
from mailkit.kernel.model import DEFAULT_STRUCTURE, TemplateModel, normalize_layout
from mailkit.kernel.presets import UnknownVariant
from mailkit.kernel.registry import UnknownSectionType, get_type


def build(model: TemplateModel, *types: str) -> list[str]:
    return [model.add_section(t).id for t in types]


class TestAddSection:
    def test_add_seeds_type_defaults(self, model):
        section = model.add_section("cta")
        assert section.type == "cta"
        assert section.settings == get_type("cta").defaults
        assert section.ai_flags == {"heading": True, "subtext": True}

    def test_add_appends_by_default(self, model):
        a, b = build(model, "header", "footer")
        c = model.add_section("text").id
        assert model.section_ids == [a, b, c]

    def test_add_at_index(self, model):
        a, b = build(model, "header", "footer")
        c = model.add_section("text", index=1).id
        assert model.section_ids == [a, c, b]

    def test_add_index_is_clamped(self, model):
        a = model.add_section("header").id
        b = model.add_section("footer", index=99).id
        c = model.add_section("hero", index=-5).id
        assert model.section_ids == [c, a, b]

    def test_forest_green_hero(self, model):
        """Preset overrides colours; the headline stays the type default."""
        section = model.add_section("hero", "hero-forest")
        assert section.settings["background_color"] == "#1a3d2b"
        assert section.settings["headline"] == "Your Campaign Headline"
        assert section.settings["subtext"] == "Discover our latest collection"

    def test_unknown_type_raises_and_leaves_model_alone(self, model):
        with pytest.raises(UnknownSectionType):
            model.add_section("carousel")
        assert model.sections == []

    def test_unknown_variant_raises(self, model):
        with pytest.raises(UnknownVariant):
            model.add_section("hero", "hero-neon")

    def test_variant_for_another_type_raises(self, model):
        with pytest.raises(ValueError, match="hero-forest"):
            model.add_section("cta", "hero-forest")
        assert model.sections == []

    def test_ids_are_unique(self, model):
        ids = build(model, "text", "text", "text", "text")
        assert len(set(ids)) == 4

    def test_sections_do_not_share_settings(self, model):
        a = model.add_section("list")
        b = model.add_section("list")
        a.settings["items"].append({"text": "Extra"})
        assert len(b.settings["items"]) == 3


class TestRemoveMoveDuplicate:
    def test_remove(self, model):
        a, b, c = build(model, "header", "text", "footer")
        assert model.remove_section(b) is True
        assert model.section_ids == [a, c]

    def test_remove_missing_is_false(self, model):
        build(model, "header")
        revision = model.revision
        assert model.remove_section("nope") is False
        assert model.revision == revision

    def test_move_reorders(self, model):
        a, b, c = build(model, "hero", "text", "cta")
        assert model.move_section(b, 0) is True
        assert model.section_ids == [b, a, c]

    def test_move_clamps_index(self, model):
        a, b, c = build(model, "hero", "text", "cta")
        model.move_section(a, 50)
        assert model.section_ids == [b, c, a]
        model.move_section(a, -3)
        assert model.section_ids == [a, b, c]

    def test_move_missing_is_false(self, model):
        build(model, "hero")
        assert model.move_section("nope", 0) is False

    def test_duplicate_inserts_after_source(self, model):
        a, b = build(model, "hero", "footer")
        clone = model.duplicate_section(a)
        assert model.section_ids == [a, clone.id, b]
        assert clone.id != a
        assert clone.settings == model.get_section(a).settings

    def test_duplicate_is_deep(self, model):
        source = model.add_section("list")
        clone = model.duplicate_section(source.id)
        clone.settings["items"][0]["text"] = "Changed"
        assert source.settings["items"][0]["text"] == "First item"

    def test_duplicate_keeps_ai_flags(self, model):
        source = model.add_section("hero")
        source.ai_flags["headline"] = False
        clone = model.duplicate_section(source.id)
        assert clone.ai_flags["headline"] is False

    def test_duplicate_missing_is_none(self, model):
        assert model.duplicate_section("nope") is None


class TestReconcileOrder:
    def test_explicit_order_applied(self, model):
        a, b, c = build(model, "hero", "text", "cta")
        assert model.reconcile_order([c, a, b]) == [c, a, b]

    def test_unknown_ids_ignored(self, model):
        a, b = build(model, "hero", "text")
        assert model.reconcile_order(["ghost", b, a]) == [b, a]

    def test_unmentioned_sections_keep_relative_order_at_end(self, model):
        a, b, c, d = build(model, "header", "hero", "text", "footer")
        assert model.reconcile_order([c]) == [c, a, b, d]

    def test_same_order_does_not_touch(self, model):
        a, b = build(model, "hero", "text")
        revision = model.revision
        model.reconcile_order([a, b])
        assert model.revision == revision


class TestOrderStability:
    def test_edits_and_patches_never_reorder(self, model):
        ids = build(model, "header", "hero", "text", "cta", "footer")
        hero = model.get_section(ids[1])
        model.edit_field(ids[2], "body", "Changed body")
        apply_ai_patch(hero, {"headline": "New"})
        model.set_ai_flag(ids[3], "heading", False)
        assert model.section_ids == ids


class TestLayouts:
    def test_default_structure(self, model):
        added = model.add_default_structure()
        assert [s.type for s in added] == DEFAULT_STRUCTURE

    def test_default_structure_only_on_empty_model(self, model):
        model.add_section("text")
        assert model.add_default_structure() == []
        assert len(model.sections) == 1

    def test_normalize_layout_forces_header_and_footer(self):
        assert normalize_layout(["hero", "products"]) == ["header", "hero", "products", "footer"]

    def test_normalize_layout_drops_unknown(self):
        assert normalize_layout(["header", "carousel", 3, "text", "footer"]) == ["header", "text", "footer"]

    def test_apply_layout(self, model):
        model.apply_layout(["hero", "cta"])
        assert [s.type for s in model.sections] == ["header", "hero", "cta", "footer"]


class TestFieldEdits:
    def test_edit_field(self, model):
        section = model.add_section("text")
        assert model.edit_field(section.id, "body", "Hello") is True
        assert section.settings["body"] == "Hello"

    def test_edit_bumps_revision(self, model):
        section = model.add_section("text")
        revision = model.revision
        model.edit_field(section.id, "body", "Hello")
        assert model.revision == revision + 1

    def test_edit_missing_section(self, model):
        assert model.edit_field("nope", "body", "x") is False

    def test_edit_unknown_field(self, model):
        section = model.add_section("text")
        assert model.edit_field(section.id, "colour", "#fff") is False


class TestSerialization:
    def test_round_trip_keeps_order_and_values(self, model):
        ids = build(model, "header", "hero", "footer")
        model.edit_field(ids[1], "headline", "Hello")
        restored = TemplateModel.from_dict(model.to_dict())
        assert restored.section_ids == ids
        assert restored.get_section(ids[1]).settings["headline"] == "Hello"
        assert restored.name == "Summer Sale"

    def test_from_dict_does_not_fill_defaults(self):
        restored = TemplateModel.from_dict(
            {"name": "Old", "sections": [{"id": "s1", "type": "hero", "settings": {"headline": "Kept"}}]}
        )
        assert restored.get_section("s1").settings == {"headline": "Kept"}

    def test_from_dict_keeps_unknown_types(self):
        restored = TemplateModel.from_dict({"sections": [{"id": "s1", "type": "carousel", "settings": {}}]})
        assert restored.get_section("s1").type == "carousel"

    def test_clone_is_independent(self, model):
        section = model.add_section("list")
        clone = model.clone()
        clone.sections[0].settings["items"].clear()
        assert section.settings["items"]
