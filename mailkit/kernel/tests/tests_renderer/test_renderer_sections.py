"""
Mailkit Renderer -- Section Tests

Per-type output: every section renders as a self-contained table block,
field kinds decide the markup (images as <img>, dates as "1 Mar 2026"),
and product sections resolve ids at render time.
"""

import re

from mailkit.kernel.products import NullProductResolver, StaticProductResolver
from mailkit.kernel.registry import SECTION_TYPES
from mailkit.kernel.renderer import render_plain_text, render_section
from mailkit.kernel.types import Product, SectionInstance


def section(model, section_type, **settings):
    instance = model.add_section(section_type)
    instance.settings.update(settings)
    return instance


def product_cells(html):
    return re.findall(r'class="mk-col mk-product"', html)


class TestEverySectionType:
    def test_defaults_render_for_every_type(self, model, resolver):
        for st in SECTION_TYPES:
            html = render_section(model.add_section(st.type), resolver)
            assert html.startswith("<!-- section:"), st.type
            assert "failed" not in html.splitlines()[0], st.type
            assert "<table" in html, st.type

    def test_wrapper_carries_id_and_background(self, model):
        banner = section(model, "banner", background_color="#123456")
        html = render_section(banner)
        assert html.startswith(f"<!-- section:{banner.id} -->")
        assert "background-color:#123456" in html


class TestCoupon:
    def test_expiry_date_is_formatted(self, model):
        coupon = section(model, "coupon", expiry="2026-03-01")
        html = render_section(coupon)
        assert "Expires 1 Mar 2026" in html
        assert "2026-03-01" not in html

    def test_expiry_text_when_no_date(self, model):
        html = render_section(section(model, "coupon"))
        assert "Expires in 7 days" in html

    def test_code_rendered(self, model):
        html = render_section(section(model, "coupon", coupon_code="WELCOME15"))
        assert "WELCOME15" in html


class TestProducts:
    def test_missing_product_is_skipped(self, model, resolver):
        products = section(model, "products", product_ids=[1, 2, 999], columns="3")
        html = render_section(products, resolver)
        assert len(product_cells(html)) == 2
        assert "Classic Linen Shirt" in html
        assert "Canvas Weekender Bag" in html
        assert "failed" not in html

    def test_order_follows_ids(self, model, resolver):
        html = render_section(section(model, "products", product_ids=[3, 1]), resolver)
        assert html.index("Merino Crew Socks") < html.index("Classic Linen Shirt")

    def test_rows_padded_with_filler_cells(self, model, resolver):
        html = render_section(section(model, "products", product_ids=[1, 2, 3], columns="2"), resolver)
        assert len(product_cells(html)) == 3
        assert html.count('class="mk-col"') == 1
        assert 'width="50%"' in html

    def test_no_products_selected(self, model, resolver):
        html = render_section(section(model, "products"), resolver)
        assert "No products selected" in html

    def test_all_products_gone(self, model):
        html = render_section(section(model, "products", product_ids=[7]), NullProductResolver())
        assert "These products are no longer available" in html

    def test_price_hidden(self, model, resolver):
        html = render_section(section(model, "products", product_ids=[1], show_price=False), resolver)
        assert "£39.00" not in html

    def test_resolved_at_render_time(self, model):
        products = section(model, "products", product_ids=[1])
        before = render_section(products, StaticProductResolver([Product(id=1, name="Shirt", price_display="£10.00")]))
        after = render_section(products, StaticProductResolver([Product(id=1, name="Shirt", price_display="£8.00")]))
        assert "£10.00" in before
        assert "£8.00" in after

    def test_resolver_failure_renders_empty_state(self, model):
        class Broken:
            def resolve(self, ids):
                raise ConnectionError("store offline")

        html = render_section(section(model, "products", product_ids=[1]), Broken())
        assert "These products are no longer available" in html


class TestImages:
    def test_image_has_explicit_dimensions_and_alt(self, model):
        image = section(model, "image", image_url="https://cdn.example.com/a.jpg", alt_text="Linen", width=50, height=200)
        html = render_section(image)
        img = re.search(r"<img [^>]*>", html).group(0)
        assert 'width="300"' in img
        assert 'height="200"' in img
        assert 'alt="Linen"' in img
        assert "max-width:300px" in img
        assert "height:auto" in img

    def test_empty_image_renders_no_img(self, model):
        assert "<img" not in render_section(section(model, "image"))

    def test_hero_image(self, model):
        hero = section(model, "hero", image_url="https://cdn.example.com/hero.jpg")
        img = re.search(r"<img [^>]*>", render_section(hero)).group(0)
        assert 'width="600"' in img
        assert 'alt="Your Campaign Headline"' in img

    def test_header_logo_links_to_store(self, model):
        header = section(model, "header", logo_url="https://cdn.example.com/logo.png")
        html = render_section(header, context={"store_url": "https://shop.example.com"})
        assert 'href="https://shop.example.com"' in html
        assert 'width="180"' in html
        assert 'height="60"' in html

    def test_logo_url_token(self, model):
        header = section(model, "header", logo_url="{{logo_url}}")
        html = render_section(header, context={"logo_url": "https://cdn.example.com/l.png"})
        assert 'src="https://cdn.example.com/l.png"' in html
        assert "{{logo_url}}" not in html


class TestText:
    def test_values_are_escaped(self, model):
        text = section(model, "text", heading="Fish & <Chips>", body="a < b")
        html = render_section(text)
        assert "Fish &amp; &lt;Chips&gt;" in html
        assert "a &lt; b" in html

    def test_paragraphs_and_line_breaks(self, model):
        html = render_section(section(model, "text", body="One\nline two\n\nPara two"))
        assert "One<br>line two" in html
        assert html.count("<p ") == 2

    def test_tokens_in_text(self, model):
        html = render_section(section(model, "text", body="Welcome to {{store_name}}"), context={"store_name": "Acme"})
        assert "Welcome to Acme" in html

    def test_list_markers(self, model):
        html = render_section(section(model, "list", list_style="numbers"))
        assert "1." in html and "3." in html
        checks = render_section(section(model, "list", list_style="checks"))
        assert "&#10003;" in checks

    def test_list_items_as_plain_strings(self, model):
        html = render_section(section(model, "list", items=["Alpha", "Beta"]))
        assert "Alpha" in html and "Beta" in html


class TestFooter:
    def test_unsubscribe_link_present_by_default(self, model):
        html = render_section(section(model, "footer"))
        assert 'href="{{ unsubscribe }}"' in html
        assert html.count("Unsubscribe") == 1

    def test_unsubscribe_added_when_links_omit_it(self, model):
        footer = section(model, "footer", footer_links=[{"label": "Shop", "url": "https://x"}])
        html = render_section(footer, context={"unsubscribe_url": "https://esp.example.com/u"})
        assert 'href="https://esp.example.com/u"' in html
        assert "&nbsp;|&nbsp;" in html

    def test_social_text(self, model):
        html = render_section(section(model, "footer"))
        assert "Follow us for new arrivals" in html

    def test_unsubscribe_toggle_off_hides_links_row(self, model):
        footer = section(model, "footer")
        model.edit_field(footer.id, "show_unsubscribe", False)
        html = render_section(footer)
        assert "unsubscribe" not in html.lower()
        assert "&nbsp;|&nbsp;" not in html
        assert "Follow us for new arrivals" in html

    def test_unsubscribe_toggle_off_plain_text(self, model):
        footer = section(model, "footer", show_unsubscribe=False)
        text = render_plain_text(model)
        assert "Unsubscribe" not in text
        assert footer.settings["footer_text"] in text


class TestButtons:
    def test_cta_button_falls_back_to_store_url(self, model):
        html = render_section(section(model, "cta"), context={"store_url": "https://shop.example.com"})
        assert 'href="https://shop.example.com"' in html
        assert "Shop Now" in html

    def test_hero_without_button_text(self, model):
        html = render_section(section(model, "hero", cta_text=""))
        assert "<a href" not in html


class TestPlaceholders:
    def test_missing_required_field(self, model):
        html = render_section(SectionInstance(id="s1", type="hero", settings={}))
        assert html.startswith("<!-- section:s1 failed -->")

    def test_unknown_type(self):
        html = render_section(SectionInstance(id="s2", type="carousel", settings={}))
        assert html.startswith("<!-- section:s2 failed -->")

    def test_out_of_range_value(self, model):
        spacer = section(model, "spacer", height=999)
        assert "failed" in render_section(spacer).splitlines()[0]

    def test_missing_optional_field_uses_empty_value(self, model):
        html = render_section(SectionInstance(id="s3", type="hero", settings={"headline": "Only this"}))
        assert "Only this" in html
        assert "failed" not in html.splitlines()[0]
