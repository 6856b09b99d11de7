"""
Preview Renderer -- Element Tests

Each element kind renders to its HTML primitive, text and attributes are
escaped, unsafe URLs are neutralized, and unknown kinds degrade to plain
content instead of failing the render.
"""

import pytest

from compiler.kernel.elements import GenerationInputError, parse_elements
from compiler.kernel.renderer import render_element, render_preview, safe_url
from compiler.kernel.types import PageMeta

# ============================================================================
# Helpers
# ============================================================================


def node(raw: dict):
    (parsed,) = parse_elements([raw]).elements
    return parsed


def assert_contains(html: str, *fragments: str) -> None:
    for fragment in fragments:
        assert fragment in html, f"Expected {fragment!r} in output:\n{html}"


def assert_not_contains(html: str, *fragments: str) -> None:
    for fragment in fragments:
        assert fragment not in html, f"Did not expect {fragment!r} in output:\n{html}"


# ============================================================================
# Per-kind rendering
# ============================================================================


class TestElementKinds:
    def test_heading_uses_level(self):
        html = render_element(node({"id": "h", "type": "heading", "content": {"innerText": "Title", "level": 3}}))
        assert html.startswith("<h3 ")
        assert html.endswith(">Title</h3>")

    def test_heading_without_level_is_h1(self):
        html = render_element(node({"id": "h", "type": "heading", "content": {"innerText": "Title"}}))
        assert html.startswith("<h1 ")

    def test_heading_level_is_clamped(self):
        html = render_element(node({"id": "h", "type": "heading", "content": {"innerText": "T", "level": 12}}))
        assert html.startswith("<h6 ")

    def test_text(self):
        html = render_element(node({"id": "t", "type": "text", "content": {"innerText": "Body copy"}}))
        assert_contains(html, "<p ", ">Body copy</p>")

    def test_button_defaults(self):
        html = render_element(node({"id": "b", "type": "button", "content": {}}))
        assert_contains(html, 'href="#"', 'role="button"', ">Button</a>")

    def test_link(self):
        html = render_element(node({"id": "l", "type": "link", "content": {"innerText": "Docs", "href": "/docs"}}))
        assert_contains(html, 'href="/docs"', ">Docs</a>")

    def test_image(self):
        html = render_element(
            node({"id": "i", "type": "image", "content": {"src": "https://x.test/a.png", "alt": "A cat"}})
        )
        assert_contains(html, '<img src="https://x.test/a.png"', 'alt="A cat"')

    def test_video(self):
        html = render_element(node({"id": "v", "type": "video", "content": {"src": "https://x.test/a.mp4"}}))
        assert_contains(html, '<video src="https://x.test/a.mp4"', "controls")

    def test_divider(self):
        assert render_element(node({"id": "d", "type": "divider", "content": {}})).startswith("<hr ")

    def test_element_id_is_exposed(self):
        html = render_element(node({"id": "hero-1", "type": "text", "content": {}}))
        assert_contains(html, 'data-element-id="hero-1"')

    def test_styles_become_inline_attribute(self):
        html = render_element(
            node({"id": "t", "type": "text", "styles": {"color": "red", "padding": "4px"}, "content": {}})
        )
        assert_contains(html, 'style="color: red; padding: 4px"')

    def test_no_style_attribute_without_styles(self):
        html = render_element(node({"id": "t", "type": "text", "content": {}}))
        assert_not_contains(html, "style=")


class TestContainers:
    def test_children_keep_order(self):
        html = render_element(
            node(
                {
                    "id": "c",
                    "type": "container",
                    "content": [{"id": f"t{i}", "type": "text", "content": {"innerText": f"item {i}"}} for i in range(5)],
                }
            )
        )
        positions = [html.index(f"item {i}") for i in range(5)]
        assert positions == sorted(positions)

    def test_nested_containers(self):
        html = render_element(
            node(
                {
                    "id": "outer",
                    "type": "container",
                    "content": [{"id": "inner", "type": "2Col", "content": [{"id": "t", "type": "text", "content": {"innerText": "deep"}}]}],
                }
            )
        )
        assert html.index('data-element-id="outer"') < html.index('data-element-id="inner"') < html.index("deep")


# ============================================================================
# Escaping and URL safety
# ============================================================================


class TestEscaping:
    def test_text_is_escaped(self):
        html = render_element(node({"id": "t", "type": "text", "content": {"innerText": "<script>alert(1)</script>"}}))
        assert_contains(html, "&lt;script&gt;alert(1)&lt;/script&gt;")
        assert_not_contains(html, "<script>")

    def test_style_values_cannot_break_the_attribute(self):
        html = render_element(node({"id": "t", "type": "text", "styles": {"color": 'red" onmouseover="x'}, "content": {}}))
        assert_not_contains(html, 'onmouseover="x"')

    def test_javascript_href_is_replaced(self):
        html = render_element(node({"id": "l", "type": "link", "content": {"href": "javascript:alert(1)"}}))
        assert_contains(html, 'href="#"')
        assert_not_contains(html, "javascript:")

    def test_obfuscated_scheme_is_replaced(self):
        html = render_element(node({"id": "b", "type": "button", "content": {"href": " java\tscript:alert(1)"}}))
        assert_not_contains(html, "script:alert")

    def test_data_image_src_is_dropped(self):
        html = render_element(node({"id": "i", "type": "image", "content": {"src": "data:text/html,<b>x</b>"}}))
        assert_contains(html, 'src=""')

    @pytest.mark.parametrize(
        "url",
        ["https://example.com", "http://example.com/a?b=1", "/relative/path", "#section", "mailto:a@b.c", "tel:+123", "page.html"],
    )
    def test_safe_urls_are_kept(self, url):
        assert safe_url(url) == url


# ============================================================================
# Fallback
# ============================================================================


class TestFallback:
    def test_unknown_leaf_renders_its_text(self):
        html = render_element(node({"id": "m", "type": "marquee", "content": {"innerText": "Sale!"}}))
        assert_contains(html, 'class="plura-custom"', "Sale!")

    def test_unknown_kind_with_children_renders_as_container(self):
        html = render_element(
            node({"id": "m", "type": "carousel", "content": [{"id": "t", "type": "text", "content": {"innerText": "slide"}}]})
        )
        assert_contains(html, 'class="plura-container"', "slide")

    def test_document_survives_unknown_nodes(self):
        elements = parse_elements(
            [
                {"id": "a", "type": "text", "content": {"innerText": "before"}},
                {"id": "b", "type": "hologram", "content": {}},
                {"id": "c", "type": "text", "content": {"innerText": "after"}},
            ]
        ).elements
        html = render_preview(elements)
        assert_contains(html, "before", "after", 'data-element-id="b"')


class TestDocument:
    def test_full_document(self):
        elements = parse_elements([{"id": "t", "type": "text", "content": {"innerText": "Hi"}}]).elements
        html = render_preview(elements, PageMeta(title="Launch <Day>", description="Big news"))
        assert html.startswith("<!DOCTYPE html>")
        assert_contains(html, "<title>Launch &lt;Day&gt;</title>", 'content="Big news"', "</html>")

    def test_empty_tree_is_rejected(self):
        with pytest.raises(GenerationInputError):
            render_preview([])

    def test_unsafe_favicon_is_omitted(self):
        elements = parse_elements([{"id": "t", "type": "text", "content": {}}]).elements
        html = render_preview(elements, PageMeta(favicon="javascript:alert(1)"))
        assert_not_contains(html, 'rel="icon"')
