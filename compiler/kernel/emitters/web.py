"""
Plura Compiler — Web Emitter (Next.js app router, TypeScript)

Pure function of (pages, meta). Each page becomes a component under
src/components/pages/ holding its JSX tree, plus a thin route file under
src/app/. The home page is served from src/app/page.tsx.

Styles are written as JSX style objects with the editor's property names,
which already follow React's CSSProperties casing.
"""

from __future__ import annotations

from compiler.kernel.elements import heading_level, home_page, node_kind
from compiler.kernel.emitters.scaffold import (
    GITIGNORE,
    js_string,
    json_file,
    package_name,
    readme,
    render_template,
    route_for,
)
from compiler.kernel.naming import pascal_case, unique_names
from compiler.kernel.styles import jsx_style
from compiler.kernel.types import (
    DEFAULT_BUTTON_LABEL,
    DEFAULT_HREF,
    DEFAULT_LINK_LABEL,
    TARGET_WEB,
    ContainerElement,
    ElementNode,
    GeneratedProject,
    LeafElement,
    Page,
    ProjectMeta,
    ProjectMetadata,
)

FRAMEWORK = "nextjs"
ENTRY_POINT = "src/app/page.tsx"
MANIFEST = "package.json"

INDENT = "  "


class WebEmitter:
    target = TARGET_WEB
    framework = FRAMEWORK

    def emit(self, pages: list[Page], meta: ProjectMeta) -> GeneratedProject:
        components = unique_names([pascal_case(p.name) + "Page" for p in pages])
        home = home_page(pages)

        files: dict[str, str] = {}
        files[MANIFEST] = _package_json(meta)
        files["next.config.js"] = NEXT_CONFIG
        files["tsconfig.json"] = json_file(TSCONFIG)
        files["next-env.d.ts"] = NEXT_ENV
        files[".gitignore"] = GITIGNORE["node"]
        files["README.md"] = readme(meta, pages, "Next.js", ["npm install", "npm run dev"])
        files["src/app/globals.css"] = GLOBALS_CSS
        files["src/app/layout.tsx"] = _layout(meta, pages)

        for page, component in zip(pages, components):
            files[f"src/components/pages/{component}.tsx"] = render_page_component(page, component)
            route_file = render_template(ROUTE_TEMPLATE, {"component": component})
            if page is home:
                files[ENTRY_POINT] = route_file
            if page.path_name:
                files[f"src/app/{page.path_name}/page.tsx"] = route_file

        return GeneratedProject(
            target=TARGET_WEB,
            files=files,
            metadata=ProjectMetadata(framework=FRAMEWORK, entry_point=ENTRY_POINT, manifest=MANIFEST),
        )


def render_page_component(page: Page, component: str) -> str:
    body = "\n".join(render_node(node, 3) for node in page.elements)
    return render_template(PAGE_COMPONENT_TEMPLATE, {"component": component, "body": body})


def render_node(node: ElementNode, depth: int) -> str:
    """JSX for one node, indented `depth` levels."""
    kind = node_kind(node)
    renderer = _RENDERERS.get(kind, _custom)
    return renderer(node, depth)


# ---------------------------------------------------------------------------
# Per-kind renderers
# ---------------------------------------------------------------------------


def _style_attr(node: ElementNode) -> str:
    if not node.styles:
        return ""
    return " style={" + jsx_style(node.styles) + "}"


def _text_expr(text: str) -> str:
    return "{" + js_string(text) + "}"


def _container(node: ContainerElement, depth: int) -> str:
    pad = INDENT * depth
    if not node.children:
        return f"{pad}<div{_style_attr(node)} />"
    inner = "\n".join(render_node(child, depth + 1) for child in node.children)
    return f"{pad}<div{_style_attr(node)}>\n{inner}\n{pad}</div>"


def _text(node: LeafElement, depth: int) -> str:
    text = node.content.inner_text or ""
    return f"{INDENT * depth}<p{_style_attr(node)}>{_text_expr(text)}</p>"


def _heading(node: LeafElement, depth: int) -> str:
    level = heading_level(node.content.level)
    text = node.content.inner_text or ""
    return f"{INDENT * depth}<h{level}{_style_attr(node)}>{_text_expr(text)}</h{level}>"


def _button(node: LeafElement, depth: int) -> str:
    href = node.content.href or DEFAULT_HREF
    label = node.content.inner_text or DEFAULT_BUTTON_LABEL
    pad = INDENT * depth
    return (
        f"{pad}<a href={_text_expr(href)}>\n"
        f'{pad}{INDENT}<button type="button"{_style_attr(node)}>{_text_expr(label)}</button>\n'
        f"{pad}</a>"
    )


def _link(node: LeafElement, depth: int) -> str:
    href = node.content.href or DEFAULT_HREF
    label = node.content.inner_text or DEFAULT_LINK_LABEL
    return f"{INDENT * depth}<a href={_text_expr(href)}{_style_attr(node)}>{_text_expr(label)}</a>"


def _image(node: LeafElement, depth: int) -> str:
    src = node.content.src or ""
    alt = node.content.alt or ""
    return f"{INDENT * depth}<img src={_text_expr(src)} alt={_text_expr(alt)}{_style_attr(node)} />"


def _video(node: LeafElement, depth: int) -> str:
    src = node.content.src or ""
    return f"{INDENT * depth}<video src={_text_expr(src)} controls{_style_attr(node)} />"


def _divider(node: LeafElement, depth: int) -> str:
    return f"{INDENT * depth}<hr{_style_attr(node)} />"


def _custom(node: LeafElement, depth: int) -> str:
    text = node.content.inner_text or ""
    return (
        f"{INDENT * depth}<div data-element-type={_text_expr(node.type)}{_style_attr(node)}>"
        f"{_text_expr(text)}</div>"
    )


_RENDERERS = {
    "container": _container,
    "text": _text,
    "heading": _heading,
    "button": _button,
    "link": _link,
    "image": _image,
    "video": _video,
    "divider": _divider,
    "custom": _custom,
}


# ---------------------------------------------------------------------------
# Scaffolding
# ---------------------------------------------------------------------------


def _package_json(meta: ProjectMeta) -> str:
    return json_file(
        {
            "name": package_name(meta, "plura-site"),
            "version": "0.1.0",
            "private": True,
            "scripts": {
                "dev": "next dev",
                "build": "next build",
                "start": "next start",
            },
            "dependencies": {
                "next": "^14.2.5",
                "react": "^18.3.1",
                "react-dom": "^18.3.1",
            },
            "devDependencies": {
                "@types/node": "^20.14.0",
                "@types/react": "^18.3.3",
                "@types/react-dom": "^18.3.0",
                "typescript": "^5.5.0",
            },
        }
    )


def _layout(meta: ProjectMeta, pages: list[Page]) -> str:
    return render_template(
        LAYOUT_TEMPLATE,
        {
            "title": js_string(meta.name),
            "description": js_string(meta.description),
            "nav": [{"href": js_string(route_for(p)), "label": js_string(p.name)} for p in pages],
        },
    )


TSCONFIG = {
    "compilerOptions": {
        "target": "ES2017",
        "lib": ["dom", "dom.iterable", "esnext"],
        "allowJs": True,
        "skipLibCheck": True,
        "strict": True,
        "noEmit": True,
        "esModuleInterop": True,
        "module": "esnext",
        "moduleResolution": "bundler",
        "resolveJsonModule": True,
        "isolatedModules": True,
        "jsx": "preserve",
        "incremental": True,
        "plugins": [{"name": "next"}],
        "paths": {"@/*": ["./src/*"]},
    },
    "include": ["next-env.d.ts", "**/*.ts", "**/*.tsx", ".next/types/**/*.ts"],
    "exclude": ["node_modules"],
}

NEXT_CONFIG = """// NEXT_BASE_PATH is set when the site is served under a sub-path, e.g. /deployments/<id>
const basePath = process.env.NEXT_BASE_PATH || "";

/** @type {import('next').NextConfig} */
const nextConfig = {
  output: "export",
  basePath,
  assetPrefix: basePath || undefined,
  images: { unoptimized: true },
};

module.exports = nextConfig;
"""

NEXT_ENV = """/// <reference types="next" />
/// <reference types="next/image-types/global" />
"""

GLOBALS_CSS = """*, *::before, *::after { box-sizing: border-box; }
body {
  margin: 0;
  font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", Roboto, sans-serif;
  line-height: 1.5;
}
.site-nav { display: flex; gap: 16px; padding: 12px 24px; border-bottom: 1px solid #e5e7eb; }
img, video { max-width: 100%; }
"""

LAYOUT_TEMPLATE = """import type { Metadata } from "next";
import Link from "next/link";
import "./globals.css";

export const metadata: Metadata = {
  title: <%& title %>,
  description: <%& description %>,
};

export default function RootLayout({ children }: { children: React.ReactNode }) {
  return (
    <html lang="en">
      <body>
        <nav className="site-nav">
<%#nav%>
          <Link href={<%& href %>}>{<%& label %>}</Link>
<%/nav%>
        </nav>
        {children}
      </body>
    </html>
  );
}
"""

ROUTE_TEMPLATE = """import <%& component %> from "@/components/pages/<%& component %>";

export default function Page() {
  return <<%& component %> />;
}
"""

PAGE_COMPONENT_TEMPLATE = """export default function <%& component %>() {
  return (
    <>
<%& body %>
    </>
  );
}
"""
