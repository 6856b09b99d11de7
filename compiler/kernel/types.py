"""
Plura Compiler — Shared Types

Data classes used across the element model, style normalizer, emitters,
preview renderer, and assembly. These are the contracts that bind the
compiler together.

Element nodes are a tagged variant:
- ContainerElement carries an ordered tuple of children
- LeafElement carries a LeafContent record

A node is exactly one of the two. Raw editor JSON chooses the variant by the
shape of its `content` field (list → container, object → leaf).
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Union

# ---------------------------------------------------------------------------
# Element kinds
# ---------------------------------------------------------------------------

CONTAINER_TYPES: set[str] = {
    "container",
    # Editor layout aliases, all rendered as plain containers
    "__body",
    "section",
    "2Col",
    "3Col",
}

LEAF_TYPES: set[str] = {
    "text",
    "heading",
    "button",
    "image",
    "video",
    "link",
    "divider",
}

CUSTOM_KIND = "custom"

ELEMENT_KINDS: set[str] = {"container", *LEAF_TYPES, CUSTOM_KIND}

# ---------------------------------------------------------------------------
# Targets
# ---------------------------------------------------------------------------

TARGET_WEB = "web"
TARGET_MOBILE = "mobile"
TARGET_SERVICE = "service"

TARGETS: tuple[str, ...] = (TARGET_WEB, TARGET_MOBILE, TARGET_SERVICE)

# ---------------------------------------------------------------------------
# Leaf defaults
# ---------------------------------------------------------------------------

DEFAULT_HREF = "#"
DEFAULT_BUTTON_LABEL = "Button"
DEFAULT_LINK_LABEL = "Link"
MIN_HEADING_LEVEL = 1
MAX_HEADING_LEVEL = 6

MAX_TREE_DEPTH = 64


# ---------------------------------------------------------------------------
# Element tree
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LeafContent:
    """Content record of a leaf element. Every field is optional."""

    inner_text: str | None = None
    href: str | None = None
    src: str | None = None
    alt: str | None = None
    level: int | None = None

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {}
        if self.inner_text is not None:
            d["innerText"] = self.inner_text
        if self.href is not None:
            d["href"] = self.href
        if self.src is not None:
            d["src"] = self.src
        if self.alt is not None:
            d["alt"] = self.alt
        if self.level is not None:
            d["level"] = self.level
        return d


@dataclass(frozen=True)
class ContainerElement:
    id: str
    type: str
    name: str = ""
    styles: dict[str, str] = field(default_factory=dict)
    children: tuple[ElementNode, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "name": self.name,
            "styles": dict(self.styles),
            "content": [child.to_dict() for child in self.children],
        }


@dataclass(frozen=True)
class LeafElement:
    id: str
    type: str
    name: str = ""
    styles: dict[str, str] = field(default_factory=dict)
    content: LeafContent = field(default_factory=LeafContent)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "name": self.name,
            "styles": dict(self.styles),
            "content": self.content.to_dict(),
        }


ElementNode = Union[ContainerElement, LeafElement]


# ---------------------------------------------------------------------------
# Pages and project metadata
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Page:
    """One page of a project: a named, routed, ordered element tree."""

    id: str
    name: str
    path_name: str
    order: int
    elements: tuple[ElementNode, ...] = ()

    @property
    def is_home(self) -> bool:
        return self.path_name == ""


@dataclass(frozen=True)
class ProjectMeta:
    name: str
    description: str = ""
    # Only written into output when supplied by the caller
    generated_at: str | None = None


@dataclass(frozen=True)
class PageMeta:
    """Document-level metadata for a preview render."""

    title: str = "Preview"
    description: str = ""
    favicon: str | None = None


@dataclass(frozen=True)
class PreviewOptions:
    """
    Independent preview flags.

    live:     adds the live indicator and interaction logging script
    embedded: relaxes framing so the document can sit inside an iframe
    """

    live: bool = False
    embedded: bool = False


# ---------------------------------------------------------------------------
# Generated output
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ProjectMetadata:
    framework: str
    entry_point: str
    manifest: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "framework": self.framework,
            "entryPoint": self.entry_point,
            "manifest": self.manifest,
        }


@dataclass(frozen=True)
class GeneratedProject:
    """
    One target's emitted project. Files are read-only once produced;
    regeneration builds a new object.
    """

    target: str
    files: Mapping[str, str]
    metadata: ProjectMetadata

    def __post_init__(self) -> None:
        object.__setattr__(self, "files", MappingProxyType(dict(self.files)))

    def to_dict(self) -> dict[str, Any]:
        return {
            "target": self.target,
            "files": dict(self.files),
            "metadata": self.metadata.to_dict(),
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), sort_keys=True, ensure_ascii=False)

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> GeneratedProject:
        meta = d.get("metadata", {})
        return cls(
            target=d["target"],
            files=d.get("files", {}),
            metadata=ProjectMetadata(
                framework=meta.get("framework", ""),
                entry_point=meta.get("entryPoint", ""),
                manifest=meta.get("manifest", ""),
            ),
        )


# ---------------------------------------------------------------------------
# Diagnostics
# ---------------------------------------------------------------------------


@dataclass
class Warning:
    """A non-fatal issue found while reading an element tree."""

    code: str
    message: str
    details: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            d["details"] = self.details
        return d


@dataclass
class ParseResult:
    """Elements read from raw JSON plus anything that had to be repaired."""

    elements: tuple[ElementNode, ...]
    warnings: list[Warning] = field(default_factory=list)
