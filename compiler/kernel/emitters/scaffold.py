"""
Scaffolding shared by the emitters: Mustache rendering and the files every
target ships (README, .gitignore).

Templates use <% %> delimiters so JSX double braces and Python dict
literals pass through untouched. Values are inserted raw (<%& name %>);
callers quote them for the target language first.
"""

from __future__ import annotations

import json
from typing import Any

import chevron

from compiler.kernel.types import Page, ProjectMeta


def render_template(template: str, data: dict[str, Any]) -> str:
    return chevron.render(template, data, def_ldel="<%", def_rdel="%>")


def js_string(value: Any) -> str:
    """A double-quoted JS/TS string literal."""
    return json.dumps(value, ensure_ascii=False)


def json_file(data: dict[str, Any]) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False) + "\n"


def route_for(page: Page) -> str:
    return "/" + page.path_name if page.path_name else "/"


def package_name(meta: ProjectMeta, fallback: str) -> str:
    """npm-style package name from a project name."""
    chars = [c if c.isalnum() else "-" for c in meta.name.lower()]
    name = "-".join(part for part in "".join(chars).split("-") if part)
    return name or fallback


README_TEMPLATE = """# <%& name %>

<%#description%>
<%& description %>

<%/description%>
Generated by Plura as a <%& framework %> project.
<%#generated_at%>
Generated at <%& generated_at %>.
<%/generated_at%>

## Pages

<%#pages%>
- <%& name %> (`<%& route %>`)
<%/pages%>

## Getting started

```bash
<%#commands%>
<%& . %>
<%/commands%>
```
"""


def readme(meta: ProjectMeta, pages: list[Page], framework: str, commands: list[str]) -> str:
    return render_template(
        README_TEMPLATE,
        {
            "name": meta.name,
            "description": meta.description,
            "framework": framework,
            "generated_at": meta.generated_at,
            "pages": [{"name": p.name, "route": route_for(p)} for p in pages],
            "commands": commands,
        },
    )


GITIGNORE = {
    "node": "node_modules/\n.next/\nout/\ndist/\n.expo/\n*.log\n.env*.local\n",
    "python": "__pycache__/\n*.pyc\n.venv/\n.env\ninstance/\n",
}
