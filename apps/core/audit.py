"""
Audit trail helpers.

Every workflow mutation appends an AuditEvent inside the caller's
transaction, so the event is rolled back together with the change it
describes.
"""

import logging
from typing import Any, Optional

from apps.core.middleware import get_request_id
from apps.core.models import AuditEvent

logger = logging.getLogger(__name__)


def target_type_for(target) -> str:
    """Audit target type label for a model instance."""
    return getattr(target, 'AUDIT_TARGET_TYPE', target._meta.model_name.upper())


def record_event(
    action: str,
    target,
    actor=None,
    from_state: str = '',
    to_state: str = '',
    **details: Any,
) -> AuditEvent:
    """
    Append an audit event for ``target``.

    Args:
        action: Event name (STAGE_TRANSITION, TASK_COMPLETED, ...)
        target: Model instance the event concerns
        actor: User who caused the event, None for system events
        from_state: State before the event
        to_state: State after the event
        **details: Extra JSON-serializable context
    """
    event = AuditEvent.objects.create(
        actor=actor,
        action=action,
        target_type=target_type_for(target),
        target_id=target.pk,
        from_state=from_state or '',
        to_state=to_state or '',
        details=details,
        request_id=get_request_id() or '',
    )
    logger.debug(f"Audit {action} on {event.target_type}:{target.pk}")
    return event


def history_for(target, action: Optional[str] = None):
    """Audit events for ``target`` in chronological order."""
    events = AuditEvent.objects.filter(
        target_type=target_type_for(target),
        target_id=target.pk,
    ).select_related('actor')
    if action:
        events = events.filter(action=action)
    return events.order_by('created_at')
