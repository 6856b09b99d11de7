"""
Plura Compiler — Preview Renderer

Pure function: (elements, page_meta, options) → HTML string.
No IO. Deterministic: same input → same output, always.

The preview interprets the element tree directly instead of going through
a generated project, so the editor can show a page without a build.

Trust boundary: element trees come from the tenant that owns the page.
Text and attribute values are escaped and URLs are restricted to safe
schemes, so content cannot inject markup or script. Style values are passed
through as inline CSS.
"""

from __future__ import annotations

import re
from html import escape as _html_escape

from compiler.kernel.elements import GenerationInputError, heading_level, node_kind
from compiler.kernel.styles import inline_css
from compiler.kernel.types import (
    DEFAULT_BUTTON_LABEL,
    DEFAULT_HREF,
    DEFAULT_LINK_LABEL,
    ContainerElement,
    ElementNode,
    LeafElement,
    PageMeta,
    PreviewOptions,
)

# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def render_preview(
    elements: tuple[ElementNode, ...] | list[ElementNode],
    page_meta: PageMeta | None = None,
    options: PreviewOptions | None = None,
) -> str:
    """
    Render a standalone HTML5 document for the given element tree.
    Raises GenerationInputError when there is nothing to render.
    """
    if not elements:
        raise GenerationInputError("Preview requires at least one element")

    meta = page_meta or PageMeta()
    opts = options or PreviewOptions()

    parts: list[str] = []
    parts.append("<!DOCTYPE html>")
    parts.append('<html lang="en">')
    parts.append("<head>")
    parts.append('  <meta charset="utf-8">')
    parts.append('  <meta name="viewport" content="width=device-width, initial-scale=1">')
    parts.append(f"  <title>{escape(meta.title)}</title>")
    if meta.description:
        parts.append(f'  <meta name="description" content="{escape(meta.description)}">')
    if meta.favicon:
        favicon = safe_url(meta.favicon)
        if favicon:
            parts.append(f'  <link rel="icon" href="{escape(favicon)}">')
    parts.append("  <style>")
    parts.append(BASE_CSS)
    if opts.live:
        parts.append(LIVE_CSS)
    parts.append("  </style>")
    parts.append("</head>")
    parts.append("<body>")

    if opts.live and not opts.embedded:
        parts.append('  <div class="plura-live-indicator">&#9679; LIVE PREVIEW</div>')

    parts.append('  <main class="plura-page">')
    for node in elements:
        parts.append(render_element(node))
    parts.append("  </main>")

    if opts.live:
        parts.append("  <script>")
        parts.append(LIVE_SCRIPT)
        parts.append("  </script>")

    parts.append("</body>")
    parts.append("</html>")

    return "\n".join(parts)


def render_element(node: ElementNode) -> str:
    """
    Render a single element and its children recursively.
    Returns an HTML fragment string.
    """
    kind = node_kind(node)
    renderer = _RENDERERS.get(kind, _render_custom)
    return renderer(node)


def preview_headers(options: PreviewOptions | None = None) -> dict[str, str]:
    """
    Response headers for a preview document.

    Embedded previews may be framed by any origin; standalone previews
    refuse framing entirely.
    """
    opts = options or PreviewOptions()
    headers = {
        "Cache-Control": "no-store",
        "X-Content-Type-Options": "nosniff",
    }
    if opts.embedded:
        headers["Content-Security-Policy"] = "frame-ancestors *"
    else:
        headers["X-Frame-Options"] = "DENY"
        headers["Content-Security-Policy"] = "frame-ancestors 'none'"
    return headers


# ---------------------------------------------------------------------------
# Per-kind renderers
# ---------------------------------------------------------------------------


def _attrs(node: ElementNode, class_name: str) -> str:
    attrs = f'class="{class_name}" data-element-id="{escape(node.id)}"'
    css = inline_css(node.styles)
    if css:
        attrs += f' style="{escape(css)}"'
    return attrs


def _text(node: ElementNode) -> str:
    if isinstance(node, LeafElement):
        return node.content.inner_text or ""
    return ""


def _render_container(node: ElementNode) -> str:
    children: tuple[ElementNode, ...] = node.children if isinstance(node, ContainerElement) else ()
    inner = "\n".join(render_element(child) for child in children)
    return f"<div {_attrs(node, 'plura-container')}>{inner}</div>"


def _render_text(node: LeafElement) -> str:
    return f"<p {_attrs(node, 'plura-text')}>{escape(_text(node))}</p>"


def _render_heading(node: LeafElement) -> str:
    level = heading_level(node.content.level)
    return f"<h{level} {_attrs(node, 'plura-heading')}>{escape(_text(node))}</h{level}>"


def _render_button(node: LeafElement) -> str:
    href = safe_url(node.content.href or DEFAULT_HREF) or DEFAULT_HREF
    label = node.content.inner_text or DEFAULT_BUTTON_LABEL
    return f'<a href="{escape(href)}" role="button" {_attrs(node, "plura-button")}>{escape(label)}</a>'


def _render_link(node: LeafElement) -> str:
    href = safe_url(node.content.href or DEFAULT_HREF) or DEFAULT_HREF
    label = node.content.inner_text or DEFAULT_LINK_LABEL
    return f'<a href="{escape(href)}" {_attrs(node, "plura-link")}>{escape(label)}</a>'


def _render_image(node: LeafElement) -> str:
    src = safe_url(node.content.src or "")
    alt = node.content.alt or ""
    return f'<img src="{escape(src)}" alt="{escape(alt)}" loading="lazy" {_attrs(node, "plura-image")}>'


def _render_video(node: LeafElement) -> str:
    src = safe_url(node.content.src or "")
    return f'<video src="{escape(src)}" controls {_attrs(node, "plura-video")}></video>'


def _render_divider(node: LeafElement) -> str:
    return f"<hr {_attrs(node, 'plura-divider')}>"


def _render_custom(node: ElementNode) -> str:
    # Unknown kinds degrade to plain text so the rest of the page still renders
    return f"<div {_attrs(node, 'plura-custom')}>{escape(_text(node))}</div>"


_RENDERERS = {
    "container": _render_container,
    "text": _render_text,
    "heading": _render_heading,
    "button": _render_button,
    "link": _render_link,
    "image": _render_image,
    "video": _render_video,
    "divider": _render_divider,
    "custom": _render_custom,
}


# ---------------------------------------------------------------------------
# Escaping helpers
# ---------------------------------------------------------------------------

_SCHEME_RE = re.compile(r"^([a-zA-Z][a-zA-Z0-9+.-]*):")
SAFE_SCHEMES = {"http", "https", "mailto", "tel"}


def escape(text: str) -> str:
    """HTML-escape user content."""
    return _html_escape(str(text), quote=True)


def safe_url(url: str) -> str:
    """
    Return the URL if its scheme is safe, else "".
    Relative paths and fragments carry no scheme and are kept.
    """
    # Browsers ignore control characters and whitespace inside schemes
    compact = re.sub(r"[\x00-\x20]", "", url)
    match = _SCHEME_RE.match(compact)
    if match and match.group(1).lower() not in SAFE_SCHEMES:
        return ""
    return url.strip()


# ---------------------------------------------------------------------------
# Static assets
# ---------------------------------------------------------------------------

BASE_CSS = """
*, *::before, *::after { box-sizing: border-box; }
body {
  margin: 0;
  font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", Roboto, sans-serif;
  line-height: 1.5;
  color: #111;
}
.plura-page { min-height: 100vh; }
.plura-button {
  display: inline-block;
  padding: 10px 20px;
  border-radius: 6px;
  background: #2563eb;
  color: #fff;
  text-decoration: none;
}
.plura-image, .plura-video { max-width: 100%; }
.plura-divider { border: none; border-top: 1px solid #e5e7eb; }
"""

LIVE_CSS = """
.plura-live-indicator {
  position: fixed;
  top: 12px;
  right: 12px;
  z-index: 9999;
  padding: 4px 10px;
  border-radius: 999px;
  background: #16a34a;
  color: #fff;
  font-size: 12px;
  font-weight: 600;
}
"""

LIVE_SCRIPT = """
document.addEventListener("click", function (event) {
  var target = event.target.closest("[data-element-id]");
  if (target && target.tagName === "A") {
    console.log("[preview] click", target.getAttribute("data-element-id"), target.getAttribute("href"));
  }
});
document.addEventListener("submit", function (event) {
  console.log("[preview] submit", event.target);
});
"""
