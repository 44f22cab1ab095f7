"""
Use Cases

Organized into domain folders:
- password_reset/: Reset token issuance, validation and completion
- auth/: Password login and the two-factor login step
- sessions/: Session validation, rotation and revocation
- two_factor/: TOTP and backup code management
- maintenance/: Retention cleanup and statistics
- audit/: Audit history

Import from subdirectories for better organization.
"""
