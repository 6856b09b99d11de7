"""
Preview Renderer -- Mode Tests

`live` and `embedded` are independent flags:
  - live adds the indicator and the interaction logging script
  - embedded relaxes framing and hides the indicator
"""

import pytest

from compiler.kernel.elements import parse_elements
from compiler.kernel.renderer import preview_headers, render_preview
from compiler.kernel.types import PreviewOptions


@pytest.fixture
def elements():
    return parse_elements(
        [
            {
                "id": "root",
                "type": "container",
                "content": [{"id": "cta", "type": "button", "content": {"innerText": "Go", "href": "/go"}}],
            }
        ]
    ).elements


class TestLiveFlag:
    def test_static_preview_has_no_script(self, elements):
        html = render_preview(elements, options=PreviewOptions())
        assert "<script>" not in html
        assert "LIVE PREVIEW" not in html

    def test_live_preview_has_indicator_and_script(self, elements):
        html = render_preview(elements, options=PreviewOptions(live=True))
        assert "LIVE PREVIEW" in html
        assert "<script>" in html
        assert 'addEventListener("click"' in html

    def test_live_submit_is_only_logged(self, elements):
        html = render_preview(elements, options=PreviewOptions(live=True))
        assert 'addEventListener("submit"' in html
        assert "console.log" in html
        assert "preventDefault" not in html

    def test_live_embedded_hides_indicator_but_keeps_script(self, elements):
        html = render_preview(elements, options=PreviewOptions(live=True, embedded=True))
        assert "LIVE PREVIEW" not in html
        assert "<script>" in html

    def test_embedded_alone_changes_nothing_in_the_body(self, elements):
        plain = render_preview(elements, options=PreviewOptions())
        embedded = render_preview(elements, options=PreviewOptions(embedded=True))
        assert plain == embedded


class TestFrameHeaders:
    def test_embedded_permits_framing(self):
        headers = preview_headers(PreviewOptions(embedded=True))
        assert "X-Frame-Options" not in headers
        assert headers["Content-Security-Policy"] == "frame-ancestors *"

    def test_standalone_denies_framing(self):
        headers = preview_headers(PreviewOptions(embedded=False))
        assert headers["X-Frame-Options"] == "DENY"
        assert headers["Content-Security-Policy"] == "frame-ancestors 'none'"

    def test_live_does_not_affect_framing(self):
        assert preview_headers(PreviewOptions(live=True)) == preview_headers(PreviewOptions())

    def test_defaults_deny(self):
        assert preview_headers()["X-Frame-Options"] == "DENY"

    def test_no_caching(self):
        assert preview_headers()["Cache-Control"] == "no-store"
