"""
Security Core Domain Enums

All enumeration types used across domain entities.
"""

from enum import Enum


class UserStatus(str, Enum):
    """User account status"""

    active = "active"
    disabled = "disabled"


class AuditEventType(str, Enum):
    """Audit event category"""

    auth = "auth"
    security = "security"
    system = "system"


class AuditSeverity(str, Enum):
    """Audit event severity"""

    info = "info"
    warn = "warn"
    critical = "critical"


class TwoFactorState(str, Enum):
    """Derived state of a user's two-factor credential"""

    unset = "unset"
    pending_verification = "pending_verification"
    enabled = "enabled"
