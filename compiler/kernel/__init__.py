"""
Plura Compiler Kernel — element tree to preview HTML and generated projects.

Components:
  elements   — raw editor JSON → frozen element tree (repairs, never throws)
  styles     — style maps for preview, web, mobile and service output
  renderer   — (elements, page_meta, options) → preview HTML  (pure)
  emitters   — web / mobile / service project emitters      (pure)
  assembly   — path contract, bundle cache, zip export      (IO here)
"""

from compiler.kernel.assembly import (
    CompilerAssembly,
    GenerationInputError,
    MemoryBundleStorage,
    UnsafePathError,
    assemble,
    export_zip,
    normalize_project_path,
    parse_generation_request,
)
from compiler.kernel.elements import parse_elements, parse_pages
from compiler.kernel.emitters import EMITTERS
from compiler.kernel.renderer import preview_headers, render_preview

__all__ = [
    "parse_elements",
    "parse_pages",
    "render_preview",
    "preview_headers",
    "EMITTERS",
    "assemble",
    "export_zip",
    "normalize_project_path",
    "parse_generation_request",
    "CompilerAssembly",
    "MemoryBundleStorage",
    "GenerationInputError",
    "UnsafePathError",
]
