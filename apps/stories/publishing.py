"""
Group Publish Coordinator.

An original story and its approved translations are released together:
either every member of the group reaches PUBLISHED in one transaction,
or none does.
"""

import logging
from typing import Any, Dict

from django.db import transaction

from apps.core.audit import record_event
from apps.core.exceptions import (
    AlreadyTerminalError,
    ForbiddenError,
    InvalidTransitionError,
    NewsroomException,
    StaleStateError,
)
from apps.core.metrics import record_group_publish
from apps.core.permissions import can_publish, get_user_role
from apps.translations.models import TranslationAssignment

from .models import Story

logger = logging.getLogger(__name__)


def _assignments(original):
    return (
        TranslationAssignment.objects
        .filter(original=original)
        .select_related('translated_story')
        .order_by('target_language')
    )


def evaluate_translation_readiness(original, actor=None) -> bool:
    """
    Mark an approved original as translated once every assignment is approved.

    The original row is locked for the duration, so two approvals landing
    at the same time cannot both read "one still outstanding".

    Returns:
        True if the original was advanced
    """
    from apps.tasks.orchestrator import advance_story

    with transaction.atomic():
        locked = Story.objects.select_for_update().get(pk=original.pk)
        if locked.is_translation or locked.stage != 'APPROVED':
            return False

        statuses = list(
            TranslationAssignment.objects.filter(original=locked).values_list('status', flat=True)
        )
        if any(status != 'APPROVED' for status in statuses):
            return False

        advance_story(
            locked,
            'mark_translated',
            actor=actor,
            system=True,
            metadata={'translations': len(statuses)},
            audit_action='AUTO_MARK_AS_TRANSLATED',
        )

    original.stage = locked.stage
    original.updated_at = locked.updated_at
    logger.info(f"Story {original.id} marked translated ({len(statuses)} translation(s) approved)")
    return True


def is_group_ready(original) -> bool:
    """True when the original is TRANSLATED and every translation is approved."""
    if original.is_translation or original.stage != 'TRANSLATED':
        return False
    for assignment in _assignments(original):
        if assignment.status != 'APPROVED':
            return False
        story = assignment.translated_story
        if story is None or story.stage != 'TRANSLATED':
            return False
    return True


def group_status(original) -> Dict[str, Any]:
    """Per-member summary of an original and its translations."""
    members = []
    for assignment in _assignments(original):
        story = assignment.translated_story
        members.append({
            'assignment_id': str(assignment.pk),
            'language': assignment.target_language,
            'status': assignment.status,
            'translated_story_id': str(story.pk) if story else None,
            'stage': story.stage if story else None,
        })

    return {
        'original': {
            'id': str(original.pk),
            'title': original.title,
            'stage': original.stage,
            'published_at': original.published_at.isoformat() if original.published_at else None,
        },
        'translations': members,
        'pending_languages': [m['language'] for m in members if m['status'] != 'APPROVED'],
        'ready': is_group_ready(original),
    }


def publish_group(original, actor) -> Story:
    """
    Publish an original story together with every approved translation.

    Raises:
        ForbiddenError: actor cannot publish
        InvalidTransitionError: called on a translation, or group not ready
        AlreadyTerminalError: already published
        StaleStateError: a member changed or vanished mid-publish; nothing
            is published
    """
    role = get_user_role(actor)
    if not can_publish(role):
        raise ForbiddenError(f"Role {role or 'none'} may not publish")
    if original.is_translation:
        raise InvalidTransitionError("Translations are published with their original story")
    if original.stage == 'PUBLISHED':
        raise AlreadyTerminalError(f"Story {original.id} is already published")
    if not is_group_ready(original):
        raise InvalidTransitionError(
            "Story group is not ready to publish",
            details=group_status(original),
        )

    from apps.tasks.models import ContentRef
    from apps.tasks.orchestrator import advance_story, close_open_tasks

    translated_ids = [
        assignment.translated_story_id for assignment in _assignments(original)
    ]
    group_size = 1 + len(translated_ids)

    try:
        with transaction.atomic():
            close_open_tasks(ContentRef.for_story(original), ['STORY_PUBLISH'], resolution='COMPLETED')
            advance_story(original, 'publish', actor=actor, system=True, audit_action='PUBLISH_GROUP')
            published_at = original.published_at

            for story_id in translated_ids:
                translated = Story.objects.filter(pk=story_id).first() if story_id else None
                if translated is None:
                    raise StaleStateError(f"A translation of story {original.id} no longer exists")
                updated = Story.objects.filter(pk=story_id, stage='TRANSLATED').update(
                    stage='PUBLISHED',
                    published_at=published_at,
                    updated_at=published_at,
                )
                if not updated:
                    raise StaleStateError(
                        f"Translation {story_id} left TRANSLATED before the group was published"
                    )
                record_event(
                    'AUTO_PUBLISH_TRANSLATION',
                    translated,
                    actor=actor,
                    from_state='TRANSLATED',
                    to_state='PUBLISHED',
                    original=str(original.pk),
                )
    except NewsroomException:
        original.refresh_from_db(fields=['stage', 'published_at', 'updated_at'])
        record_group_publish(group_size, 'failed')
        raise

    record_group_publish(group_size, 'success')
    logger.info(f"Published story group {original.id} ({group_size} item(s))")
    return original
