"""
Revision requests.

Every revise transition (request_revision, send_back, return_to_author)
records who sent the story back, why, and who has to rework it. Open
requests are resolved when the story moves forward again.
"""

import logging

from django.utils import timezone

from apps.core.audit import record_event
from apps.core.exceptions import ValidationFailedError
from apps.core.permissions import get_user_role

from .models import RevisionRequest

logger = logging.getLogger(__name__)

MIN_REASON_LENGTH = 10


def validate_revision_reason(reason) -> str:
    """Return the stripped reason, or raise when it is too short to act on."""
    reason = (reason or '').strip()
    if len(reason) < MIN_REASON_LENGTH:
        raise ValidationFailedError(
            f"A revision reason of at least {MIN_REASON_LENGTH} characters is required",
            field='reason',
        )
    return reason


def record_revision_request(story, edge, actor, reason: str, assignee=None) -> RevisionRequest:
    revision = RevisionRequest.objects.create(
        story=story,
        edge=edge.name,
        requested_by=actor,
        requested_by_role=get_user_role(actor) or '',
        assigned_to=assignee,
        reason=reason,
    )
    logger.info(f"Revision {revision.id} requested on story {story.id} via {edge.name}")
    return revision


def resolve_revision_requests(story, actor=None) -> int:
    """Mark the story's open revision requests as resolved."""
    resolved = RevisionRequest.objects.filter(story=story, resolved_at__isnull=True).update(
        resolved_at=timezone.now()
    )
    if resolved:
        record_event('REVISIONS_RESOLVED', story, actor=actor, to_state=story.stage, count=resolved)
    return resolved


def revision_history(story):
    return story.revision_requests.select_related('requested_by', 'assigned_to').order_by('-created_at')
