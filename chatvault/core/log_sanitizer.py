"""
Request-scoped helpers: log sanitizing and the authenticated user dependency.
"""

import logging
import re
from typing import Any

from fastapi import Request

from chatvault.domain.errors import AuthenticationError

logger = logging.getLogger(__name__)

_CONTROL_CHARS_RE = re.compile(r'[\x00-\x1f\x7f-\x9f]')
# Unicode LINE SEPARATOR and PARAGRAPH SEPARATOR
_UNICODE_NEWLINES_RE = re.compile(r'[\u2028\u2029]')


def sanitize_for_logging(value: Any) -> str:
    """
    Strip control characters and line separators from a value before logging,
    so user-supplied ids or paths cannot forge extra log lines.

    Examples:
        >>> sanitize_for_logging("user_1\\nFAKE ENTRY")
        'user_1FAKE ENTRY'
        >>> sanitize_for_logging("A\u2028B")
        'AB'
        >>> sanitize_for_logging(None)
        ''
    """
    if value is None:
        return ''
    if not isinstance(value, str):
        value = str(value)
    value = _CONTROL_CHARS_RE.sub('', value)
    value = _UNICODE_NEWLINES_RE.sub('', value)
    return value


async def get_current_user(request: Request) -> str:
    """Get the authenticated user id from request state (set by AuthMiddleware)."""
    user_id = getattr(request.state, 'user_id', None)
    if not user_id:
        raise AuthenticationError("Unauthorized", code="UNAUTHORIZED")
    return user_id
