# cstore/branch_performance/access_control.py
"""
Access Control for Branch Performance Module

Every logged-in user can view the dashboard and export reports.
Write actions (data upload, target edits) need the privileged flag
supplied by AuthManager.is_admin().

VERSION: 1.0.0
"""

import logging

logger = logging.getLogger(__name__)


class AccessControl:
    """
    Usage:
        access = AccessControl(is_privileged=auth.is_admin())
        if access.can_upload():
            ...
    """

    def __init__(self, is_privileged: bool = False):
        self.is_privileged = bool(is_privileged)

    # =========================================================================
    # PAGE-LEVEL ACCESS
    # =========================================================================

    def can_view_dashboard(self) -> bool:
        return True

    def get_access_level(self) -> str:
        return 'admin' if self.is_privileged else 'viewer'

    # =========================================================================
    # FEATURE ACCESS
    # =========================================================================

    def can_export(self) -> bool:
        return True

    def can_upload(self) -> bool:
        """Replace the sales data with an uploaded file."""
        return self.is_privileged

    def can_edit_targets(self) -> bool:
        """Create or update monthly branch targets."""
        return self.is_privileged

    # =========================================================================
    # MESSAGES
    # =========================================================================

    def get_denied_message(self, action: str = "perform this action") -> str:
        return f"⚠️ Access Denied. Only administrators can {action}."

    def __repr__(self) -> str:
        return f"AccessControl(level={self.get_access_level()})"
