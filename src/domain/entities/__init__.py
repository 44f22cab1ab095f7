"""
Security Core Domain Entities

All domain entities organized by model.
Each entity in its own file for better maintainability.
"""

# Export all enums
from .enums import (
    UserStatus,
    AuditEventType,
    AuditSeverity,
    TwoFactorState,
)

# Export all entities
from .user import User
from .session import Session
from .audit_event import AuditEvent
from .password_reset_token import PasswordResetToken
from .rate_limit_counter import RateLimitCounter
from .two_factor_challenge import TwoFactorChallenge

__all__ = [
    # Enums
    "UserStatus",
    "AuditEventType",
    "AuditSeverity",
    "TwoFactorState",
    # Entities
    "User",
    "Session",
    "AuditEvent",
    "PasswordResetToken",
    "RateLimitCounter",
    "TwoFactorChallenge",
]
