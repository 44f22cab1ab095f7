"""
Use-case boundary guard.

Unexpected exceptions (store down, driver errors) are logged with their
traceback and turned into a generic SecurityError, so nothing internal
reaches a caller and every security-sensitive action fails closed.
"""

import functools
import logging

from libs.result import Return
from src.domain.errors import SecurityError

logger = logging.getLogger(__name__)


def guarded(execute):
    @functools.wraps(execute)
    async def wrapper(self, *args, **kwargs):
        try:
            return await execute(self, *args, **kwargs)
        except Exception:
            logger.exception("Unhandled error in %s", type(self).__name__)
            return Return.err(SecurityError())

    return wrapper
