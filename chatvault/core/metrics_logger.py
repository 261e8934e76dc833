"""
Activity metrics as ``[METRIC]`` log lines.

Only ids and counts are logged, never chat text or image references. Lines
are emitted when FEATURE_METRICS_LOGGING_ENABLED is set, for example::

    [METRIC] [user_2abc] chat_appended chat_id=5f0c... entries=2
"""

import logging
from typing import Any, Optional

from chatvault.core.log_sanitizer import sanitize_for_logging

logger = logging.getLogger(__name__)

CHAT_CREATED = "chat_created"
CHAT_APPENDED = "chat_appended"
UPLOAD_AUTH_ISSUED = "upload_auth_issued"
ERROR = "error"

KNOWN_EVENTS = frozenset({CHAT_CREATED, CHAT_APPENDED, UPLOAD_AUTH_ISSUED, ERROR})


def _metrics_enabled() -> bool:
    # Late import: config pulls in pydantic-settings and reads the environment
    from chatvault.modules.config import config_manager

    return config_manager.app_settings.feature_metrics_logging_enabled


def log_metric(event: str, user_id: Optional[str] = None, **fields: Any) -> None:
    """Emit one metric line for ``event`` on behalf of ``user_id``."""
    if not _metrics_enabled():
        return
    if event not in KNOWN_EVENTS:
        logger.debug("Unregistered metric event %s", sanitize_for_logging(event))

    who = sanitize_for_logging(user_id) or "unknown"
    line = f"[METRIC] [{who}] {event}"
    for key, value in fields.items():
        line += f" {key}={sanitize_for_logging(value)}"
    logger.info(line)
