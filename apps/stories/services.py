"""
Story service layer.

Entry points the API uses for story lifecycle operations: creation
(which opens the author's first task), requested transitions, edits,
guarded deletion and editorial comments.
"""

import logging
from typing import Any, Dict, Optional

from django.db import transaction
from django.utils.text import slugify

from apps.core.audit import record_event
from apps.core.exceptions import (
    AlreadyTerminalError,
    ForbiddenError,
    InvalidTransitionError,
    NotFoundError,
    ValidationFailedError,
)
from apps.core.permissions import can_discuss_story, can_manage_any_story, get_user_role
from apps.tasks.models import ContentRef
from apps.tasks.orchestrator import advance_story, cancel_all_open_tasks, start_story

from .models import Comment, Story

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = (
    'title',
    'content',
    'category',
    'audio_refs',
    'follow_up_date',
    'scheduled_publish_at',
)


def get_story(story_id) -> Story:
    story = Story.objects.select_related('author', 'original').filter(pk=story_id).first()
    if story is None:
        raise NotFoundError(f"Story {story_id} not found")
    return story


def unique_slug(title: str) -> str:
    """Slugify a title, suffixing a counter until it is unused."""
    base = slugify(title)[:300] or 'story'
    slug = base
    counter = 2
    while Story.objects.filter(slug=slug).exists():
        slug = f"{base}-{counter}"
        counter += 1
    return slug


def create_story(actor, title: str, slug: Optional[str] = None, **fields) -> Story:
    """
    Create a draft story authored by ``actor`` and open its STORY_CREATE task.
    """
    if not get_user_role(actor):
        raise ForbiddenError("Only newsroom staff can create stories")
    if not title or not title.strip():
        raise ValidationFailedError("A title is required", field='title')

    if slug:
        if Story.objects.filter(slug=slug).exists():
            raise ValidationFailedError(f"Slug '{slug}' is already in use", field='slug')
    else:
        slug = unique_slug(title)

    unknown = set(fields) - set(EDITABLE_FIELDS) - {'language'}
    if unknown:
        raise ValidationFailedError(f"Unknown story fields: {', '.join(sorted(unknown))}")

    with transaction.atomic():
        story = Story.objects.create(title=title.strip(), slug=slug, author=actor, **fields)
        start_story(story, actor)

    logger.info(f"Story {story.id} created by {actor.pk}")
    return story


def _can_edit(story, actor, role) -> bool:
    if can_manage_any_story(role):
        return True
    if story.stage == 'DRAFT':
        return actor.pk == story.author_id
    if story.stage == 'NEEDS_JOURNALIST_REVIEW':
        return actor.pk == story.assigned_reviewer_id
    if story.stage == 'NEEDS_SUB_EDITOR_APPROVAL':
        return actor.pk == story.assigned_approver_id
    return False


def update_story(story, actor, **changes) -> Story:
    """Edit an unpublished original story."""
    if story.is_translation:
        raise InvalidTransitionError("Translations are edited through the translation workflow")
    if story.is_published:
        raise AlreadyTerminalError(f"Story {story.id} is already published")

    role = get_user_role(actor)
    if not _can_edit(story, actor, role):
        raise ForbiddenError("You cannot edit this story at its current stage")

    unknown = set(changes) - set(EDITABLE_FIELDS)
    if unknown:
        raise ValidationFailedError(f"Fields cannot be edited: {', '.join(sorted(unknown))}")

    # Queryset update keeps updated_at, which tracks time in stage
    if changes:
        Story.objects.filter(pk=story.pk).update(**changes)
        for name, value in changes.items():
            setattr(story, name, value)
    return story


def request_transition(
    story_id,
    transition: str,
    actor,
    metadata: Optional[Dict[str, Any]] = None,
    checklist: Optional[Dict[str, bool]] = None,
):
    """
    Apply a named transition on behalf of ``actor``.

    Returns:
        (story, next_task) tuple
    """
    story = get_story(story_id)
    _, next_task = advance_story(
        story, transition, actor=actor, metadata=metadata, checklist=checklist,
    )
    return story, next_task


def delete_story(story, actor):
    """
    Delete a story.

    Authors may delete their own drafts; editors may delete any story.
    Stories with translation work outstanding cannot be deleted.
    """
    role = get_user_role(actor)
    own_draft = actor.pk == story.author_id and story.stage == 'DRAFT'
    if not (own_draft or can_manage_any_story(role)):
        raise ForbiddenError("Only the author of a draft or an editor can delete this story")

    outstanding = story.translation_assignments.exclude(status='APPROVED')
    if outstanding.exists():
        raise ValidationFailedError(
            "Story has translations in progress and cannot be deleted",
            details={'languages': list(outstanding.values_list('target_language', flat=True))},
        )

    story_id = story.pk
    with transaction.atomic():
        cancel_all_open_tasks(ContentRef.for_story(story))
        for assignment in story.translation_assignments.all():
            cancel_all_open_tasks(ContentRef.for_assignment(assignment))
        record_event('STORY_DELETED', story, actor=actor, from_state=story.stage, title=story.title)
        story.delete()

    logger.info(f"Story {story_id} deleted by {actor.pk}")


def _require_discussion_access(story, actor):
    if not can_discuss_story(
        get_user_role(actor),
        is_author=actor.pk == story.author_id,
        is_reviewer=actor.pk == story.assigned_reviewer_id,
    ):
        raise ForbiddenError("You cannot view or comment on this story")


def list_comments(story, actor, comment_type: Optional[str] = None):
    """Top-level comments, newest first, with their replies prefetched."""
    _require_discussion_access(story, actor)
    comments = story.comments.filter(parent__isnull=True).select_related('author')
    if comment_type:
        comments = comments.filter(comment_type=comment_type)
    return comments.prefetch_related('replies__author').order_by('-created_at')


def add_comment(story, actor, content: str, comment_type: str = 'GENERAL', parent_id=None) -> Comment:
    _require_discussion_access(story, actor)

    parent = None
    if parent_id:
        parent = story.comments.filter(pk=parent_id).first()
        if parent is None:
            raise NotFoundError(f"Comment {parent_id} not found on this story")
        if parent.parent_id is not None:
            raise ValidationFailedError("Replies cannot be nested", field='parent_id')

    comment = Comment.objects.create(
        story=story,
        author=actor,
        content=content.strip(),
        comment_type=comment_type,
        parent=parent,
    )
    record_event('COMMENT_ADDED', story, actor=actor, comment_type=comment_type, comment=str(comment.pk))
    logger.info(f"Comment {comment.pk} added to story {story.pk} by {actor.pk}")
    return comment
