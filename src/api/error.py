import math
from typing import Dict, Optional

from fastapi import status
from libs.result import Error
from src.domain.errors import (
    AuthenticationError,
    NotFoundError,
    RateLimitError,
    TokenError,
    TwoFactorError,
    ValidationError,
)


class ClientError(Exception):
    def __init__(
        self,
        base_error: Error,
        status_code: int = status.HTTP_400_BAD_REQUEST,
        headers: Optional[Dict[str, str]] = None,
    ):
        self.base_error = base_error
        self.status_code = status_code
        self.headers = headers
        super().__init__(base_error.message)


class ServerError(Exception):
    def __init__(self, base_error: Error):
        self.base_error = base_error
        super().__init__(base_error.message)


# Codes whose status differs from their error class default
CODE_STATUS = {
    "INVALID_SESSION": status.HTTP_401_UNAUTHORIZED,
    "INVALID_2FA_TOKEN": status.HTTP_401_UNAUTHORIZED,
    "ALREADY_ENABLED": status.HTTP_409_CONFLICT,
    "CONCURRENT_UPDATE": status.HTTP_409_CONFLICT,
}

CLASS_STATUS = (
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (TokenError, status.HTTP_400_BAD_REQUEST),
    (TwoFactorError, status.HTTP_400_BAD_REQUEST),
    (AuthenticationError, status.HTTP_401_UNAUTHORIZED),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
)


def to_http_error(error: Error) -> Exception:
    """Map a use case error to the exception the API handlers render."""
    if isinstance(error, RateLimitError):
        retry_after = max(1, math.ceil(error.wait_time_ms / 1000))
        return ClientError(
            error,
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            headers={"Retry-After": str(retry_after)},
        )

    if error.code in CODE_STATUS:
        return ClientError(error, status_code=CODE_STATUS[error.code])

    for error_class, status_code in CLASS_STATUS:
        if isinstance(error, error_class):
            return ClientError(error, status_code=status_code)

    return ServerError(error)
