"""
Translation sub-workflow.

Per-language lifecycle of a commissioned translation:

    PENDING → IN_PROGRESS → NEEDS_REVIEW → APPROVED
                   ↑              ↓
                   └── REJECTED ←─┘

The translated Story's stage mirrors the assignment status. Every
approval re-evaluates whether the original's translation group is
complete, in the same transaction.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional

from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import transaction
from django.utils import timezone

from apps.core.audit import record_event
from apps.core.exceptions import (
    ForbiddenError,
    InvalidTransitionError,
    NotFoundError,
    StaleStateError,
    ValidationFailedError,
)
from apps.core.metrics import increment_translation_review
from apps.core.models import LANGUAGE_CHOICES
from apps.core.permissions import (
    can_request_translations,
    can_review_translation,
    get_user_role,
)
from apps.stories.models import Story
from apps.stories.publishing import evaluate_translation_readiness
from apps.stories.state_machine import clean_checklist
from apps.tasks.assignment import candidate_queryset
from apps.tasks.models import ContentKind, ContentRef
from apps.tasks.orchestrator import (
    close_open_tasks,
    create_task,
    default_due_date,
    resolve_assignee,
)

from .models import TranslationAssignment

logger = logging.getLogger(__name__)

User = get_user_model()

REVIEW_OUTCOMES = ('approve', 'reject')


def supported_languages() -> List[str]:
    return list(getattr(
        settings,
        'NEWSROOM_TRANSLATION_LANGUAGES',
        [code for code, _ in LANGUAGE_CHOICES],
    ))


def get_assignment(assignment_id) -> TranslationAssignment:
    assignment = (
        TranslationAssignment.objects
        .select_related('original', 'translated_story', 'assigned_to', 'reviewer')
        .filter(pk=assignment_id)
        .first()
    )
    if assignment is None:
        raise NotFoundError(f"Translation assignment {assignment_id} not found")
    return assignment


def _require_translator(assignment, actor):
    if actor is None or assignment.assigned_to_id != actor.pk:
        raise ForbiddenError("Only the assigned translator can work on this translation")


def _set_status(assignment, expected: str, status: str, **changes):
    """Check-and-set the assignment status and mirror it onto the translated story."""
    updated = TranslationAssignment.objects.filter(pk=assignment.pk, status=expected).update(
        status=status,
        updated_at=timezone.now(),
        **changes,
    )
    if not updated:
        raise StaleStateError(
            f"Translation {assignment.pk} left {expected} before this change was applied"
        )
    assignment.status = status
    for name, value in changes.items():
        setattr(assignment, name, value)

    if assignment.translated_story_id:
        stage = TranslationAssignment.STAGE_FOR_STATUS[status]
        Story.objects.filter(pk=assignment.translated_story_id).exclude(stage=stage).update(
            stage=stage,
            updated_at=timezone.now(),
        )
        if assignment.translated_story is not None:
            assignment.translated_story.stage = stage


def _has_complete_content(story) -> bool:
    return bool(story and story.title.strip() and story.content.strip())


def open_translation_task(assignment, actor=None):
    """Open the STORY_TRANSLATE task for the assignment's translator."""
    original = assignment.original
    return create_task(
        'STORY_TRANSLATE',
        ContentRef.for_assignment(assignment),
        assignee=assignment.assigned_to,
        priority=assignment.priority,
        due_date=assignment.due_date,
        created_by=actor,
        title=f"Translate to {assignment.get_target_language_display()}: {original.title}",
        source_language=original.language,
        target_language=assignment.target_language,
        validate_assignee=False,
    )


# =============================================================================
# Commissioning
# =============================================================================

def _validate_requests(original, requests: Iterable[Dict[str, Any]]):
    languages = supported_languages()
    existing = set(
        TranslationAssignment.objects.filter(original=original)
        .values_list('target_language', flat=True)
    )
    validated = []
    seen = set()

    for item in requests:
        language = item.get('language')
        translator_id = item.get('translator_id')

        if language not in languages:
            raise ValidationFailedError(
                f"Unsupported translation language '{language}'",
                field='language',
                details={'supported_languages': languages},
            )
        if language == original.language:
            raise ValidationFailedError(
                f"Story is already written in {language}",
                field='language',
            )
        if language in existing or language in seen:
            raise ValidationFailedError(
                f"A {language} translation has already been requested",
                field='language',
            )

        translator = User.objects.filter(pk=translator_id, is_active=True).first()
        if translator is None:
            raise ValidationFailedError(f"Translator {translator_id} not found", field='translator_id')
        eligible = candidate_queryset('STORY_TRANSLATE', ContentKind.TRANSLATION.value, language)
        if not eligible.filter(pk=translator.pk).exists():
            raise ValidationFailedError(
                f"{translator.get_username()} does not translate into {language}",
                field='translator_id',
            )

        seen.add(language)
        validated.append((language, translator))

    return validated


def request_translations(
    original,
    actor,
    requests: Iterable[Dict[str, Any]],
    priority: str = 'MEDIUM',
    due_date=None,
) -> List[TranslationAssignment]:
    """
    Commission translations of an approved story.

    Args:
        original: Approved, non-translation Story
        actor: Sub-editor or above
        requests: [{'language': 'XHOSA', 'translator_id': 7}, ...]; an
            empty list releases the story untranslated

    Returns:
        The created assignments
    """
    role = get_user_role(actor)
    if not can_request_translations(role):
        raise ForbiddenError(f"Role {role or 'none'} may not request translations")
    if original.is_translation:
        raise InvalidTransitionError("A translation cannot itself be translated")
    if original.stage != 'APPROVED':
        raise InvalidTransitionError(
            f"Translations can only be requested for approved stories, not {original.stage}",
            details={'current_stage': original.stage},
        )

    validated = _validate_requests(original, list(requests or []))
    due_date = due_date or default_due_date('STORY_TRANSLATE')

    assignments = []
    with transaction.atomic():
        for language, translator in validated:
            assignment = TranslationAssignment.objects.create(
                original=original,
                target_language=language,
                assigned_to=translator,
                requested_by=actor,
                priority=priority,
                due_date=due_date,
            )
            record_event(
                'TRANSLATION_REQUESTED',
                assignment,
                actor=actor,
                to_state='PENDING',
                language=language,
                translator=str(translator.pk),
            )
            open_translation_task(assignment, actor)
            assignments.append(assignment)

        close_open_tasks(ContentRef.for_story(original), ['STORY_TRANSLATE'], actor=actor)
        evaluate_translation_readiness(original, actor)

    logger.info(
        f"Requested {len(assignments)} translation(s) of story {original.id}: "
        f"{', '.join(a.target_language for a in assignments) or 'none'}"
    )
    return assignments


# =============================================================================
# Translator actions
# =============================================================================

def translated_slug(original, language: str) -> str:
    return f"{original.slug}-{language.lower()}"


def start_work(assignment, actor, title: Optional[str] = None, content: Optional[str] = None):
    """Translator begins (or resumes after rejection) work on a translation."""
    _require_translator(assignment, actor)
    if assignment.status not in ('PENDING', 'REJECTED'):
        raise InvalidTransitionError(
            f"Cannot start work on a translation that is {assignment.status}",
            details={'current_status': assignment.status},
        )

    original = assignment.original
    previous = assignment.status

    with transaction.atomic():
        story = assignment.translated_story
        if story is None:
            story = Story.objects.create(
                title=title or original.title,
                slug=translated_slug(original, assignment.target_language),
                content=content or '',
                language=assignment.target_language,
                category=original.category,
                is_translation=True,
                original=original,
                author=actor,
            )
            assignment.translated_story = story
        elif title is not None or content is not None:
            if title is not None:
                story.title = title
            if content is not None:
                story.content = content
            story.save(update_fields=['title', 'content', 'updated_at'])

        _set_status(
            assignment,
            previous,
            'IN_PROGRESS',
            translated_story=story,
            started_at=assignment.started_at or timezone.now(),
        )
        record_event('TRANSLATION_STARTED', assignment, actor=actor, from_state=previous, to_state='IN_PROGRESS')

        from apps.tasks.models import Task
        Task.objects.filter(
            content_kind=ContentKind.TRANSLATION.value,
            content_id=assignment.pk,
            task_type='STORY_TRANSLATE',
            status='PENDING',
            assigned_to=actor,
        ).update(status='IN_PROGRESS', started_at=timezone.now())

    logger.info(f"Translation {assignment.pk} ({assignment.target_language}) started by {actor.pk}")
    return assignment


def save_draft(
    assignment,
    actor,
    title: Optional[str] = None,
    content: Optional[str] = None,
    notes: Optional[str] = None,
):
    """Translator saves work in progress."""
    _require_translator(assignment, actor)
    if assignment.status != 'IN_PROGRESS':
        raise InvalidTransitionError(
            f"Drafts can only be saved while in progress, not {assignment.status}"
        )

    story = assignment.translated_story
    if title is not None:
        story.title = title
    if content is not None:
        story.content = content
    story.save(update_fields=['title', 'content', 'updated_at'])

    if notes is not None:
        assignment.translator_notes = notes
        assignment.save(update_fields=['translator_notes', 'updated_at'])

    return assignment


def submit_for_review(assignment, actor, reviewer=None, checklist=None):
    """Translator hands a finished translation to a reviewer, with their checklist if given."""
    _require_translator(assignment, actor)
    if checklist is not None:
        checklist = clean_checklist(checklist)
    if assignment.status != 'IN_PROGRESS':
        raise InvalidTransitionError(
            f"Only translations in progress can be submitted, not {assignment.status}",
            details={'current_status': assignment.status},
        )

    story = assignment.translated_story
    if not _has_complete_content(story):
        raise ValidationFailedError("A translated title and content are required before review")

    if reviewer is not None:
        if reviewer.pk == actor.pk:
            raise ValidationFailedError("Translators cannot review their own work", field='reviewer_id')
        if not can_review_translation(get_user_role(reviewer)):
            raise ValidationFailedError(
                f"{reviewer.get_username()} cannot review translations",
                field='reviewer_id',
            )
    else:
        reviewer = resolve_assignee(
            'STORY_TRANSLATION_REVIEW',
            ContentKind.TRANSLATION.value,
            preferred=assignment.reviewer or assignment.original.assigned_approver,
            exclude_ids=[actor.pk],
        )

    ref = ContentRef.for_assignment(assignment)
    with transaction.atomic():
        _set_status(
            assignment,
            'IN_PROGRESS',
            'NEEDS_REVIEW',
            reviewer=reviewer,
            submitted_at=timezone.now(),
        )
        record_event(
            'TRANSLATION_SUBMITTED',
            assignment,
            actor=actor,
            from_state='IN_PROGRESS',
            to_state='NEEDS_REVIEW',
            reviewer=str(reviewer.pk) if reviewer else None,
        )
        if checklist is not None:
            Story.objects.filter(pk=story.pk).update(translation_checklist=checklist)
            story.translation_checklist = checklist
        close_open_tasks(ref, ['STORY_TRANSLATE'], actor=actor)
        create_task(
            'STORY_TRANSLATION_REVIEW',
            ref,
            assignee=reviewer,
            priority=assignment.priority,
            created_by=actor,
            title=f"Review {assignment.get_target_language_display()} translation: {story.title}",
            source_language=assignment.original.language,
            target_language=assignment.target_language,
            validate_assignee=False,
        )

    logger.info(f"Translation {assignment.pk} submitted for review")
    return assignment


# =============================================================================
# Review
# =============================================================================

def review(assignment, actor, outcome: str, notes: str = ''):
    """
    Approve or reject a submitted translation.

    Approval re-evaluates the original's readiness; once every
    assignment is approved the original is marked translated.
    """
    role = get_user_role(actor)
    if actor is None or not (actor.pk == assignment.reviewer_id or can_review_translation(role)):
        raise ForbiddenError("Only the reviewer or a sub-editor can review this translation")
    if actor.pk == assignment.assigned_to_id:
        raise ForbiddenError("Translators cannot review their own work")
    if outcome not in REVIEW_OUTCOMES:
        raise ValidationFailedError(
            f"Review outcome must be one of {', '.join(REVIEW_OUTCOMES)}",
            field='outcome',
        )
    if assignment.status != 'NEEDS_REVIEW':
        raise InvalidTransitionError(
            f"Only translations awaiting review can be reviewed, not {assignment.status}",
            details={'current_status': assignment.status},
        )

    notes = (notes or '').strip()
    now = timezone.now()
    ref = ContentRef.for_assignment(assignment)

    if outcome == 'reject':
        if not notes:
            raise ValidationFailedError("A rejection reason is required", field='notes')
        changes = {
            'reviewed_at': now,
            'rejected_at': now,
            'reviewer_notes': notes,
            'rejection_reason': notes,
        }
        new_status = 'REJECTED'
    else:
        if not _has_complete_content(assignment.translated_story):
            raise ValidationFailedError("A translated title and content are required before approval")
        changes = {
            'reviewed_at': now,
            'approved_at': now,
            'reviewer_notes': notes,
            'rejection_reason': '',
        }
        new_status = 'APPROVED'

    with transaction.atomic():
        _set_status(assignment, 'NEEDS_REVIEW', new_status, **changes)
        record_event(
            f"TRANSLATION_{new_status}",
            assignment,
            actor=actor,
            from_state='NEEDS_REVIEW',
            to_state=new_status,
            notes=notes,
        )
        close_open_tasks(ref, ['STORY_TRANSLATION_REVIEW'], actor=actor)

        if new_status == 'REJECTED':
            open_translation_task(assignment, actor)
        else:
            evaluate_translation_readiness(assignment.original, actor)

    increment_translation_review(outcome)
    logger.info(f"Translation {assignment.pk} {new_status.lower()} by {actor.pk}")
    return assignment
