"""
Identifier helpers shared by the emitters.

Page names are free text; generated code needs identifiers. Every helper is
deterministic so the same pages always produce the same file names.
"""

from __future__ import annotations

import keyword
import re

_WORD_RE = re.compile(r"[A-Za-z0-9]+")


def pascal_case(text: str, fallback: str = "Page") -> str:
    """'about us!' → 'AboutUs'. Prefixes the fallback when no letter leads."""
    words = _WORD_RE.findall(text)
    name = "".join(w[:1].upper() + w[1:] for w in words)
    if not name or not name[0].isalpha():
        name = fallback + name
    return name


def snake_case(text: str, fallback: str = "page") -> str:
    """'About Us' → 'about_us'. Never a keyword, never leading with a digit."""
    words = [w.lower() for w in _WORD_RE.findall(text)]
    name = "_".join(words)
    if not name or not name[0].isalpha() or keyword.iskeyword(name):
        name = f"{fallback}_{name}" if name else fallback
    return name


def css_identifier(element_id: str) -> str:
    """Element id → a JS-safe key ('hero-1' → 'hero_1')."""
    name = re.sub(r"[^A-Za-z0-9_]", "_", element_id)
    if not name or name[0].isdigit():
        name = "el_" + name
    return name


def unique_names(names: list[str]) -> list[str]:
    """Suffix repeats with 2, 3, ... in order of appearance."""
    taken: set[str] = set()
    result: list[str] = []
    for name in names:
        candidate, n = name, 2
        while candidate in taken:
            candidate = f"{name}{n}"
            n += 1
        taken.add(candidate)
        result.append(candidate)
    return result
