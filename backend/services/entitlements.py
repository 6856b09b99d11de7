"""
Code export gate.

Subscription plans are managed outside this service; generation and export
only need a yes/no answer before handing out source code.
"""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)


class Entitlements:
    def __init__(self, export_enabled: bool = True, blocked_accounts: set[str] | None = None):
        self.export_enabled = export_enabled
        self.blocked_accounts = blocked_accounts or set()

    async def can_export_code(self, account_id: str | None) -> bool:
        if not self.export_enabled:
            return False
        if account_id and account_id in self.blocked_accounts:
            logger.info("Entitlements: code export refused for account %s", account_id)
            return False
        return True
