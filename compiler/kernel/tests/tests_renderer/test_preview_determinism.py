"""
Preview Renderer -- Determinism Tests

Render the same tree many times, verify identical output every time.
No randomness, no timestamps, no external state.
"""

from compiler.kernel.elements import parse_elements
from compiler.kernel.renderer import render_preview
from compiler.kernel.types import PageMeta, PreviewOptions


def _find_diff(a: str, b: str) -> str:
    for i, (x, y) in enumerate(zip(a, b)):
        if x != y:
            return f"first difference at {i}: {a[max(0, i - 40):i + 40]!r} vs {b[max(0, i - 40):i + 40]!r}"
    return f"lengths differ: {len(a)} vs {len(b)}"


class TestPreviewDeterminism:
    def test_repeated_renders_are_identical(self, raw_pages):
        elements = parse_elements(raw_pages[0]["content"]).elements
        meta = PageMeta(title="Acme", description="Launch")
        opts = PreviewOptions(live=True)

        first = render_preview(elements, meta, opts)
        for _ in range(50):
            html = render_preview(elements, meta, opts)
            assert html == first, _find_diff(first, html)

    def test_reparsing_gives_the_same_output(self, raw_pages):
        a = render_preview(parse_elements(raw_pages[0]["content"]).elements)
        b = render_preview(parse_elements(raw_pages[0]["content"]).elements)
        assert a == b
