"""Content hashing for generated projects."""

import hashlib

from compiler.kernel.types import GeneratedProject


def hash_project(project: GeneratedProject) -> str:
    """
    Deterministic hash of a project's files and metadata.

    Identical projects hash identically, so the value doubles as an ETag
    for cached bundles.

    Returns:
        Hexadecimal hash string (first 16 characters of SHA-256)
    """
    return hashlib.sha256(project.to_json().encode("utf-8")).hexdigest()[:16]
