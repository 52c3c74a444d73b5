"""Audit logging for administrative actions."""

import json
import logging
from typing import Any, Dict, Optional

from app.utils.clock import utcnow

logger = logging.getLogger("audit")


def audit_log(
    action: str,
    session_id: str,
    participant_id: Optional[str] = None,
    extra: Optional[Dict[str, Any]] = None,
) -> None:
    """Log an action that discards shared state.

    Args:
        action: Action name (e.g., 'reset', 'leave', 'delete_session')
        session_id: Session the action was applied to
        participant_id: Acting or affected participant, when known
        extra: Additional data (e.g., participant count)
    """
    timestamp = utcnow().isoformat()
    log_line = f"[AUDIT] {timestamp} | {action} | session:{session_id}"
    if participant_id:
        log_line += f" | participant:{participant_id}"

    if extra:
        extra_str = json.dumps(extra, ensure_ascii=False)
        log_line += f" | {extra_str}"

    logger.info(log_line)
