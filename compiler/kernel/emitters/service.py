"""
Plura Compiler — Service Emitter (Flask)

Pure function of (pages, meta). Each page becomes a module under pages/
holding its block tree as Python literals and a blueprint with two routes:
the server-rendered page and its JSON representation.

Styles have no meaning to a server, so they are carried as inert
`# styles:` comments above the block they belong to.
"""

from __future__ import annotations

from compiler.kernel.elements import heading_level, node_kind
from compiler.kernel.emitters.scaffold import GITIGNORE, readme, render_template, route_for
from compiler.kernel.naming import snake_case, unique_names
from compiler.kernel.styles import style_metadata
from compiler.kernel.types import (
    DEFAULT_BUTTON_LABEL,
    DEFAULT_HREF,
    DEFAULT_LINK_LABEL,
    TARGET_SERVICE,
    ContainerElement,
    ElementNode,
    GeneratedProject,
    LeafElement,
    Page,
    ProjectMeta,
    ProjectMetadata,
)

FRAMEWORK = "flask"
ENTRY_POINT = "app.py"
MANIFEST = "requirements.txt"

INDENT = "    "

# Module names the generated package already uses
RESERVED_MODULES = ["blocks", "app", "config"]


class ServiceEmitter:
    target = TARGET_SERVICE
    framework = FRAMEWORK

    def emit(self, pages: list[Page], meta: ProjectMeta) -> GeneratedProject:
        modules = unique_names(RESERVED_MODULES + [snake_case(p.name) for p in pages])
        modules = modules[len(RESERVED_MODULES) :]

        files: dict[str, str] = {}
        files[MANIFEST] = REQUIREMENTS
        files[ENTRY_POINT] = render_template(APP_TEMPLATE, {"title": repr(meta.name), "modules": modules})
        files["config.py"] = render_template(CONFIG_TEMPLATE, {"name": repr(meta.name)})
        files[".gitignore"] = GITIGNORE["python"]
        files["README.md"] = readme(
            meta,
            pages,
            "Flask",
            ["python -m venv .venv", "pip install -r requirements.txt", "flask --app app run"],
        )
        files["pages/__init__.py"] = ""
        files["pages/blocks.py"] = BLOCKS_PY

        for page, module in zip(pages, modules):
            files[f"pages/{module}.py"] = render_page_module(page, module)

        return GeneratedProject(
            target=TARGET_SERVICE,
            files=files,
            metadata=ProjectMetadata(framework=FRAMEWORK, entry_point=ENTRY_POINT, manifest=MANIFEST),
        )


def render_page_module(page: Page, module: str) -> str:
    used: set[str] = set()
    blocks = "\n".join(_render_node(node, 1, used) for node in page.elements)
    route = route_for(page)
    return render_template(
        PAGE_TEMPLATE,
        {
            "doc": _docline(page.name),
            "imports": ", ".join(sorted(used | {"render_page"})),
            "name": repr(page.name),
            "route": repr(route),
            "api_route": repr(f"/api/pages/{module}"),
            "module": repr(module),
            "blocks": blocks,
        },
    )


# ---------------------------------------------------------------------------
# Per-kind renderers
# ---------------------------------------------------------------------------


def _render_node(node: ElementNode, depth: int, used: set[str]) -> str:
    pad = INDENT * depth
    lines: list[str] = []
    if node.styles:
        lines.append(f"{pad}# styles: {style_metadata(node.styles)}")

    kind = node_kind(node)
    used.add(kind)

    if isinstance(node, ContainerElement):
        if not node.children:
            lines.append(f"{pad}container({node.id!r}),")
        else:
            lines.append(f"{pad}container(")
            lines.append(f"{pad}{INDENT}{node.id!r},")
            for child in node.children:
                lines.append(_render_node(child, depth + 1, used))
            lines.append(f"{pad}),")
        return "\n".join(lines)

    lines.append(f"{pad}{_leaf_call(kind, node)},")
    return "\n".join(lines)


def _docline(name: str) -> str:
    words = " ".join(name.replace("\\", " ").replace('"', "'").split())
    return f"{words} page." if words else "Page."


def _leaf_call(kind: str, node: LeafElement) -> str:
    c = node.content
    text = c.inner_text or ""
    if kind == "text":
        return f"text({node.id!r}, {text!r})"
    if kind == "heading":
        return f"heading({node.id!r}, {text!r}, level={heading_level(c.level)})"
    if kind == "button":
        return f"button({node.id!r}, {c.inner_text or DEFAULT_BUTTON_LABEL!r}, href={c.href or DEFAULT_HREF!r})"
    if kind == "link":
        return f"link({node.id!r}, {c.inner_text or DEFAULT_LINK_LABEL!r}, href={c.href or DEFAULT_HREF!r})"
    if kind == "image":
        return f"image({node.id!r}, {c.src or ''!r}, alt={c.alt or ''!r})"
    if kind == "video":
        return f"video({node.id!r}, {c.src or ''!r})"
    if kind == "divider":
        return f"divider({node.id!r})"
    # Unknown kinds keep their type name for the JSON view and render as text
    return f"custom({node.id!r}, {text!r}, type={node.type!r})"


# ---------------------------------------------------------------------------
# Scaffolding
# ---------------------------------------------------------------------------

REQUIREMENTS = """Flask>=3.0,<4
gunicorn>=22.0
"""

CONFIG_TEMPLATE = """import os


class Config:
    SITE_NAME = os.environ.get("SITE_NAME", <%& name %>)
    JSON_SORT_KEYS = False
"""

APP_TEMPLATE = '''"""Generated Flask service."""

import os

from flask import Flask, jsonify

from config import Config
<%#modules%>
from pages import <%& . %>
<%/modules%>

PAGES = [
<%#modules%>
    <%& . %>,
<%/modules%>
]


def create_app() -> Flask:
    app = Flask(__name__)
    app.config.from_object(Config)

    for page in PAGES:
        app.register_blueprint(page.blueprint)

    @app.get("/api/pages")
    def list_pages():
        return jsonify(
            {
                "site": app.config["SITE_NAME"],
                "pages": [{"name": page.NAME, "route": page.ROUTE} for page in PAGES],
            }
        )

    return app


app = create_app()

if __name__ == "__main__":
    app.run(host="0.0.0.0", port=int(os.environ.get("PORT", "5000")))
'''

PAGE_TEMPLATE = '''"""<%& doc %>"""

from flask import Blueprint, jsonify

from pages.blocks import <%& imports %>

NAME = <%& name %>
ROUTE = <%& route %>
API_ROUTE = <%& api_route %>

blueprint = Blueprint(<%& module %>, __name__)

BLOCKS = [
<%& blocks %>
]


@blueprint.get(ROUTE)
def view():
    return render_page(NAME, BLOCKS)


@blueprint.get(API_ROUTE)
def data():
    return jsonify({"name": NAME, "route": ROUTE, "blocks": [block.to_dict() for block in BLOCKS]})
'''

BLOCKS_PY = '''"""Server-side page blocks: constructors, HTML rendering and JSON views."""

from html import escape

SAFE_SCHEMES = ("http:", "https:", "mailto:", "tel:")


class Block:
    def __init__(self, kind, id, children=(), **props):
        self.kind = kind
        self.id = id
        self.children = list(children)
        self.props = props

    def to_dict(self):
        d = {"kind": self.kind, "id": self.id, **self.props}
        if self.children:
            d["children"] = [child.to_dict() for child in self.children]
        return d

    def to_html(self):
        p = self.props
        if self.kind == "container":
            inner = "".join(child.to_html() for child in self.children)
            return f"<div>{inner}</div>"
        if self.kind == "heading":
            level = p["level"]
            return f"<h{level}>{escape(p['text'])}</h{level}>"
        if self.kind == "button":
            return f'<a role="button" href="{_url(p["href"])}">{escape(p["label"])}</a>'
        if self.kind == "link":
            return f'<a href="{_url(p["href"])}">{escape(p["label"])}</a>'
        if self.kind == "image":
            return f'<img src="{_url(p["src"])}" alt="{escape(p["alt"])}">'
        if self.kind == "video":
            return f'<video src="{_url(p["src"])}" controls></video>'
        if self.kind == "divider":
            return "<hr>"
        return f"<p>{escape(p.get('text', ''))}</p>"


def _url(url):
    if ":" in url.split("/")[0] and not url.lower().startswith(SAFE_SCHEMES):
        return ""
    return escape(url)


def container(id, *children):
    return Block("container", id, children)


def text(id, value):
    return Block("text", id, text=value)


def heading(id, value, level=1):
    return Block("heading", id, text=value, level=level)


def button(id, label, href="#"):
    return Block("button", id, label=label, href=href)


def link(id, label, href="#"):
    return Block("link", id, label=label, href=href)


def image(id, src, alt=""):
    return Block("image", id, src=src, alt=alt)


def video(id, src):
    return Block("video", id, src=src)


def divider(id):
    return Block("divider", id)


def custom(id, value, type="custom"):
    return Block("custom", id, text=value, type=type)


def render_page(title, blocks):
    body = "".join(block.to_html() for block in blocks)
    return (
        "<!DOCTYPE html>"
        '<html lang="en"><head><meta charset="utf-8">'
        f"<title>{escape(title)}</title></head>"
        f"<body>{body}</body></html>"
    )
'''
