"""
Security settings consumed by the engines.

Built once from ``ApplicationConfig`` at startup and injected, so use cases
never read the global configuration directly.
"""

from dataclasses import dataclass
from datetime import timedelta


@dataclass(frozen=True)
class SecuritySettings:
    reset_url_base: str = "http://localhost:3000/reset-password"
    reset_token_ttl: timedelta = timedelta(minutes=15)
    reset_max_requests_per_email: int = 3
    reset_max_requests_per_ip: int = 10
    reset_rate_limit_window: timedelta = timedelta(hours=1)
    reset_strict_ip_binding: bool = False
    reset_strict_user_agent_binding: bool = False

    login_max_attempts_per_email: int = 10
    login_max_attempts_per_ip: int = 50
    login_rate_limit_window: timedelta = timedelta(minutes=15)
    rate_limit_block_duration: timedelta = timedelta(minutes=15)

    session_default_duration: timedelta = timedelta(hours=24)
    session_remember_me_duration: timedelta = timedelta(days=30)
    session_refresh_threshold: float = 0.25
    session_strict_binding: bool = False

    totp_issuer: str = "Account Security"
    totp_valid_window: int = 1
    backup_code_count: int = 8
    two_factor_challenge_ttl: timedelta = timedelta(minutes=5)
    two_factor_max_attempts: int = 5

    audit_retention: timedelta = timedelta(days=90)
    used_token_retention: timedelta = timedelta(days=7)
    rate_limit_retention: timedelta = timedelta(days=30)
    inactive_session_retention: timedelta = timedelta(days=30)

    @classmethod
    def from_config(cls, config) -> "SecuritySettings":
        return cls(
            reset_url_base=config.RESET_URL_BASE,
            reset_token_ttl=timedelta(minutes=config.RESET_TOKEN_TTL_MINUTES),
            reset_max_requests_per_email=config.RESET_MAX_REQUESTS_PER_EMAIL,
            reset_max_requests_per_ip=config.RESET_MAX_REQUESTS_PER_IP,
            reset_rate_limit_window=timedelta(minutes=config.RESET_RATE_LIMIT_WINDOW_MINUTES),
            reset_strict_ip_binding=config.RESET_STRICT_IP_BINDING,
            reset_strict_user_agent_binding=config.RESET_STRICT_USER_AGENT_BINDING,
            login_max_attempts_per_email=config.LOGIN_MAX_ATTEMPTS_PER_EMAIL,
            login_max_attempts_per_ip=config.LOGIN_MAX_ATTEMPTS_PER_IP,
            login_rate_limit_window=timedelta(minutes=config.LOGIN_RATE_LIMIT_WINDOW_MINUTES),
            rate_limit_block_duration=timedelta(minutes=config.RATE_LIMIT_BLOCK_MINUTES),
            session_default_duration=timedelta(hours=config.SESSION_DEFAULT_HOURS),
            session_remember_me_duration=timedelta(days=config.SESSION_REMEMBER_ME_DAYS),
            session_refresh_threshold=config.SESSION_REFRESH_THRESHOLD,
            session_strict_binding=config.SESSION_STRICT_BINDING,
            totp_issuer=config.TOTP_ISSUER,
            totp_valid_window=config.TOTP_VALID_WINDOW,
            backup_code_count=config.BACKUP_CODE_COUNT,
            two_factor_challenge_ttl=timedelta(minutes=config.TWO_FACTOR_CHALLENGE_TTL_MINUTES),
            two_factor_max_attempts=config.TWO_FACTOR_MAX_ATTEMPTS,
            audit_retention=timedelta(days=config.AUDIT_RETENTION_DAYS),
        )

    def session_duration(self, remember_me: bool) -> timedelta:
        return self.session_remember_me_duration if remember_me else self.session_default_duration
