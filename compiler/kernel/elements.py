"""
Plura Compiler — Element Tree Reading

Turns the editor's raw JSON (dicts and lists) into the frozen element tree.
Reading never throws on a structurally odd node: it repairs what it can and
reports a Warning. Only missing generation input (no pages, unreadable page
content, clashing routes) is an error.

Repairs:
- missing id        → positional id ("el-0-2"), warning `missing_id`
- duplicate id      → suffixed id ("hero-2"), warning `duplicate_id`
- unknown type      → kept verbatim, rendered as custom, warning `unknown_type`
- non-object node   → dropped, warning `invalid_node`
- cyclic/too deep   → subtree cut, warning `cycle` / `max_depth`
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from compiler.kernel.types import (
    CONTAINER_TYPES,
    CUSTOM_KIND,
    LEAF_TYPES,
    MAX_HEADING_LEVEL,
    MAX_TREE_DEPTH,
    MIN_HEADING_LEVEL,
    ContainerElement,
    ElementNode,
    LeafContent,
    LeafElement,
    Page,
    ParseResult,
    Warning,
)

logger = logging.getLogger(__name__)

_SLUG_INVALID = re.compile(r"[^a-z0-9_-]+")


class GenerationInputError(Exception):
    """Required generation input is missing or unusable."""

    pass


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def parse_elements(raw: Any) -> ParseResult:
    """
    Read a list of raw element dicts into ElementNodes.

    The variant is chosen by the shape of `content`: a list makes a
    container, a record makes a leaf. A missing `content` makes an empty
    container for container kinds and an empty leaf otherwise.
    """
    reader = _TreeReader()
    if not isinstance(raw, list):
        reader.warn("invalid_tree", "Element tree must be a list", {"got": type(raw).__name__})
        return ParseResult(elements=(), warnings=reader.warnings)
    elements = reader.read_children(raw, path=(), depth=0)
    return ParseResult(elements=elements, warnings=reader.warnings)


def parse_pages(raw_pages: Any) -> tuple[list[Page], list[Warning]]:
    """
    Read the pages of a generation request, sorted by (order, position).

    Raises GenerationInputError when there are no pages, a page is not an
    object, its content cannot be read, or two pages share a route.
    """
    if not isinstance(raw_pages, list) or not raw_pages:
        raise GenerationInputError("At least one page is required")

    indexed: list[tuple[int, int, Page]] = []
    warnings: list[Warning] = []

    for index, raw in enumerate(raw_pages):
        if not isinstance(raw, dict):
            raise GenerationInputError(f"Page {index} must be an object")

        name = str(raw.get("name") or f"Page {index + 1}")
        slug = slugify_path(raw.get("pathName") or raw.get("path_name") or "")
        order = coerce_int(raw.get("order"))
        if order is None:
            order = index

        content = raw.get("content", raw.get("elements"))
        if content is None:
            content = []
        if isinstance(content, str):
            # The editor persists page content as a JSON string
            try:
                content = json.loads(content) if content.strip() else []
            except ValueError as e:
                raise GenerationInputError(f"Page '{name}' content is not valid JSON: {e}") from e
        if not isinstance(content, list):
            raise GenerationInputError(f"Page '{name}' content must be a list of elements")

        result = parse_elements(content)
        for w in result.warnings:
            w.details = {**(w.details or {}), "page": name}
        warnings.extend(result.warnings)

        page = Page(
            id=str(raw.get("id") or slug or "home"),
            name=name,
            path_name=slug,
            order=order,
            elements=result.elements,
        )
        indexed.append((order, index, page))

    indexed.sort(key=lambda item: (item[0], item[1]))
    pages = [page for _, _, page in indexed]

    seen: dict[str, str] = {}
    for page in pages:
        if page.path_name in seen:
            route = page.path_name or "/"
            raise GenerationInputError(
                f"Pages '{seen[page.path_name]}' and '{page.name}' share the route '{route}'"
            )
        seen[page.path_name] = page.name

    return pages, warnings


def node_kind(node: ElementNode) -> str:
    """
    The kind an emitter dispatches on.

    Anything with children renders as a container, whatever its type says.
    A leaf whose type is not a known leaf kind renders as custom (text).
    """
    if isinstance(node, ContainerElement):
        return "container"
    if node.type in LEAF_TYPES:
        return node.type
    return CUSTOM_KIND


def heading_level(level: int | None) -> int:
    """Heading level from content.level: absent → 1, clamped to 1..6."""
    if level is None:
        return MIN_HEADING_LEVEL
    return max(MIN_HEADING_LEVEL, min(MAX_HEADING_LEVEL, level))


def home_page(pages: list[Page]) -> Page:
    """The page served at the site root: the one routed at "" or else the first."""
    for page in pages:
        if page.is_home:
            return page
    return pages[0]


def slugify_path(path_name: Any) -> str:
    """
    '/Pricing Plans' → 'pricing-plans'. Empty and '/' mean the home route.

    Leading underscores are dropped: the app router treats `_folder` as private.
    """
    text = str(path_name).strip().strip("/").lower()
    return _SLUG_INVALID.sub("-", text).lstrip("_-").rstrip("-")


def walk(nodes: tuple[ElementNode, ...]):
    """Depth-first, pre-order iteration over a tree."""
    for node in nodes:
        yield node
        if isinstance(node, ContainerElement):
            yield from walk(node.children)


def coerce_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


# ---------------------------------------------------------------------------
# Tree reader
# ---------------------------------------------------------------------------


class _TreeReader:
    def __init__(self) -> None:
        self.warnings: list[Warning] = []
        self.seen_ids: set[str] = set()
        self.active: set[int] = set()

    def warn(self, code: str, message: str, details: dict[str, Any] | None = None) -> None:
        logger.debug("TreeReader: %s: %s", code, message)
        self.warnings.append(Warning(code=code, message=message, details=details))

    def read_children(self, raw_children: list, path: tuple[int, ...], depth: int) -> tuple[ElementNode, ...]:
        children: list[ElementNode] = []
        for i, raw in enumerate(raw_children):
            node = self.read_node(raw, path + (i,), depth)
            if node is not None:
                children.append(node)
        return tuple(children)

    def read_node(self, raw: Any, path: tuple[int, ...], depth: int) -> ElementNode | None:
        position = "-".join(str(p) for p in path)

        if not isinstance(raw, dict):
            self.warn("invalid_node", f"Element at {position} is not an object", {"path": position})
            return None

        if id(raw) in self.active:
            self.warn("cycle", f"Element at {position} contains itself", {"path": position})
            return None

        node_id = self._read_id(raw.get("id"), position)
        node_type = raw.get("type")
        node_type = str(node_type) if node_type else CUSTOM_KIND
        if node_type not in CONTAINER_TYPES and node_type not in LEAF_TYPES and node_type != CUSTOM_KIND:
            self.warn("unknown_type", f"Unknown element type '{node_type}'", {"id": node_id})

        name = str(raw.get("name") or "")
        styles = self._read_styles(raw.get("styles"), node_id)
        content = raw.get("content")

        if isinstance(content, list) or (content is None and node_type in CONTAINER_TYPES):
            children: tuple[ElementNode, ...] = ()
            if content:
                if depth + 1 > MAX_TREE_DEPTH:
                    self.warn(
                        "max_depth",
                        f"Children of '{node_id}' exceed the maximum depth of {MAX_TREE_DEPTH}",
                        {"id": node_id},
                    )
                else:
                    self.active.add(id(raw))
                    children = self.read_children(content, path, depth + 1)
                    self.active.discard(id(raw))
            return ContainerElement(id=node_id, type=node_type, name=name, styles=styles, children=children)

        if content is not None and not isinstance(content, dict):
            self.warn("invalid_content", f"Content of '{node_id}' is neither a list nor an object", {"id": node_id})
            content = None

        return LeafElement(
            id=node_id,
            type=node_type,
            name=name,
            styles=styles,
            content=_read_leaf_content(content or {}),
        )

    def _read_id(self, raw_id: Any, position: str) -> str:
        node_id = str(raw_id).strip() if raw_id is not None else ""
        if not node_id:
            node_id = f"el-{position}"
            self.warn("missing_id", f"Element at {position} has no id", {"assigned": node_id})

        if node_id in self.seen_ids:
            base, n = node_id, 2
            while f"{base}-{n}" in self.seen_ids:
                n += 1
            node_id = f"{base}-{n}"
            self.warn("duplicate_id", f"Duplicate element id '{base}'", {"assigned": node_id})

        self.seen_ids.add(node_id)
        return node_id

    def _read_styles(self, raw_styles: Any, node_id: str) -> dict[str, str]:
        if raw_styles is None:
            return {}
        if not isinstance(raw_styles, dict):
            self.warn("invalid_styles", f"Styles of '{node_id}' are not an object", {"id": node_id})
            return {}
        return {str(k): str(v) for k, v in raw_styles.items() if v is not None}


def _read_leaf_content(raw: dict[str, Any]) -> LeafContent:
    return LeafContent(
        inner_text=_opt_str(raw.get("innerText")),
        href=_opt_str(raw.get("href")),
        src=_opt_str(raw.get("src")),
        alt=_opt_str(raw.get("alt")),
        level=coerce_int(raw.get("level")),
    )


def _opt_str(value: Any) -> str | None:
    if value is None:
        return None
    return str(value)
