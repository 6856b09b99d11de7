"""
Target emitters.

One interface, three implementations. Each emitter owns its own per-kind
rendering table; they share only the scaffolding helpers.
"""

from __future__ import annotations

from typing import Protocol

from compiler.kernel.emitters.mobile import MobileEmitter
from compiler.kernel.emitters.service import ServiceEmitter
from compiler.kernel.emitters.web import WebEmitter
from compiler.kernel.types import (
    TARGET_MOBILE,
    TARGET_SERVICE,
    TARGET_WEB,
    GeneratedProject,
    Page,
    ProjectMeta,
)


class Emitter(Protocol):
    target: str
    framework: str

    def emit(self, pages: list[Page], meta: ProjectMeta) -> GeneratedProject: ...


EMITTERS: dict[str, Emitter] = {
    TARGET_WEB: WebEmitter(),
    TARGET_MOBILE: MobileEmitter(),
    TARGET_SERVICE: ServiceEmitter(),
}

__all__ = ["Emitter", "EMITTERS", "WebEmitter", "MobileEmitter", "ServiceEmitter"]
