"""
Task Orchestrator.

Turns stage transitions into assigned units of work and task completion
back into stage transitions:
- create_task: issue one task for a workflow step (superseding any open
  task for the same step)
- advance_story: apply a stage edge, close the tasks of the stage left
  behind and open exactly one task for the next step
- complete_task: the assignee finishes a task; the coupled transition
  runs in the same transaction, so both persist or neither does
- start_task / reassign_task / claim_task: assignee-side status and
  ownership changes
- add_task_comment: discussion kept in the task's metadata

Usage:
    task = complete_task(task_id, actor=user, metadata={'outcome': 'approve'})
"""

import logging
import uuid
from datetime import timedelta
from typing import Any, Dict, Iterable, Optional

from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import transaction
from django.db.models import Q
from django.utils import timezone

from apps.core.audit import record_event
from apps.core.exceptions import (
    AlreadyTerminalError,
    ForbiddenError,
    InvalidTransitionError,
    NotFoundError,
    StaleStateError,
    ValidationFailedError,
)
from apps.core.metrics import increment_tasks_completed, increment_tasks_opened
from apps.core.permissions import (
    ROLE_LEVELS,
    can_complete_task,
    can_manage_any_story,
    can_reassign,
    get_user_role,
)
from apps.stories.models import Story
from apps.stories.revisions import (
    record_revision_request,
    resolve_revision_requests,
    validate_revision_reason,
)
from apps.stories.routing import next_edge
from apps.stories.state_machine import StoryStage, StoryStateMachine

from .assignment import candidate_queryset, get_assignment_policy
from .models import ContentKind, ContentRef, Task

logger = logging.getLogger(__name__)

User = get_user_model()


# Stage whose SLA threshold sets a task type's default due date
TASK_SLA_STAGE = {
    'STORY_CREATE': 'DRAFT',
    'STORY_REVISION_TO_AUTHOR': 'DRAFT',
    'STORY_REVIEW': 'NEEDS_JOURNALIST_REVIEW',
    'STORY_REVISION_TO_JOURNALIST': 'NEEDS_JOURNALIST_REVIEW',
    'STORY_APPROVAL': 'NEEDS_SUB_EDITOR_APPROVAL',
    'STORY_TRANSLATION_REVIEW': 'NEEDS_SUB_EDITOR_APPROVAL',
    'STORY_TRANSLATE': 'APPROVED',
    'STORY_PUBLISH': 'TRANSLATED',
}

# Story tasks that work on a given stage
STAGE_TASK_TYPES = {
    'DRAFT': ('STORY_CREATE', 'STORY_REVISION_TO_AUTHOR'),
    'NEEDS_JOURNALIST_REVIEW': ('STORY_REVIEW', 'STORY_REVISION_TO_JOURNALIST'),
    'NEEDS_SUB_EDITOR_APPROVAL': ('STORY_APPROVAL',),
    'APPROVED': ('STORY_TRANSLATE',),
    'TRANSLATED': ('STORY_PUBLISH',),
}

# Story tasks whose completion is a stage transition chosen by routing
ROUTED_TASK_TYPES = (
    'STORY_CREATE',
    'STORY_REVISION_TO_AUTHOR',
    'STORY_REVIEW',
    'STORY_REVISION_TO_JOURNALIST',
    'STORY_APPROVAL',
)

AUTHOR_TASK_TYPES = ('STORY_CREATE', 'STORY_REVISION_TO_AUTHOR')
REVIEWER_TASK_TYPES = ('STORY_REVIEW', 'STORY_REVISION_TO_JOURNALIST')

STORY_MANAGER_ROLES = tuple(role for role in ROLE_LEVELS if can_manage_any_story(role))

TASK_TITLES = dict(Task.TYPE_CHOICES)


def allowed_outcomes(task) -> tuple:
    """Outcomes a task of this type and content kind can be completed with."""
    task_type = task.task_type
    if task_type in AUTHOR_TASK_TYPES:
        return ('submit',)
    if task_type in REVIEWER_TASK_TYPES or task_type == 'STORY_APPROVAL':
        return ('approve', 'revise')
    if task_type == 'STORY_TRANSLATE':
        if task.content_kind == ContentKind.STORY.value:
            return ('commission',)
        return ('submit',)
    if task_type == 'STORY_TRANSLATION_REVIEW':
        return ('approve', 'reject')
    if task_type == 'STORY_PUBLISH':
        return ('publish',)
    return ('done',)


def resolve_outcome(task, outcome: Optional[str]) -> str:
    """Validate the requested outcome, defaulting when only one exists."""
    options = allowed_outcomes(task)
    if not outcome:
        if len(options) == 1:
            return options[0]
        raise ValidationFailedError(
            f"An outcome is required to complete {task.task_type}",
            field='outcome',
            details={'allowed_outcomes': list(options)},
        )
    if outcome not in options:
        raise ValidationFailedError(
            f"Outcome '{outcome}' is not valid for {task.task_type}",
            field='outcome',
            details={'allowed_outcomes': list(options)},
        )
    return outcome


def default_due_date(task_type: str):
    """Now plus the SLA threshold of the stage the task works on, if any."""
    stage = TASK_SLA_STAGE.get(task_type)
    thresholds = getattr(settings, 'NEWSROOM_SLA_THRESHOLDS', {})
    days = thresholds.get(stage) if stage else None
    if days is None:
        return None
    return timezone.now() + timedelta(days=days)


def _open_tasks(content_ref: ContentRef, task_types: Iterable[str]):
    return Task.objects.filter(
        content_kind=content_ref.kind.value,
        content_id=content_ref.id,
        task_type__in=list(task_types),
        status__in=Task.OPEN_STATUSES,
    )


def close_open_tasks(
    content_ref: ContentRef,
    task_types: Iterable[str],
    actor=None,
    exclude=None,
    resolution: Optional[str] = None,
):
    """
    Close open tasks for a content item once their step is done.

    Tasks held by ``actor`` count as completed by them; anybody else's
    open task for the same step is cancelled. A ``resolution`` of
    COMPLETED or CANCELLED applies to every open task instead.
    """
    now = timezone.now()
    open_tasks = _open_tasks(content_ref, task_types)
    if exclude is not None:
        open_tasks = open_tasks.exclude(pk=exclude.pk)
    if resolution is not None:
        return open_tasks.update(status=resolution, completed_at=now)

    completed = 0
    if actor is not None:
        completed = open_tasks.filter(assigned_to=actor).update(status='COMPLETED', completed_at=now)
    cancelled = open_tasks.update(status='CANCELLED', completed_at=now)

    if completed or cancelled:
        logger.debug(
            f"Closed tasks for {content_ref.kind.value}:{content_ref.id}: "
            f"{completed} completed, {cancelled} cancelled"
        )
    return completed + cancelled


def cancel_all_open_tasks(content_ref: ContentRef):
    """Cancel every open task for a content item (used before deletion)."""
    return close_open_tasks(content_ref, TASK_TITLES, resolution='CANCELLED')


# =============================================================================
# Task Creation
# =============================================================================

def create_task(
    task_type: str,
    content_ref: ContentRef,
    assignee=None,
    priority: str = 'MEDIUM',
    due_date=None,
    created_by=None,
    title: Optional[str] = None,
    description: str = '',
    metadata: Optional[Dict[str, Any]] = None,
    source_language: str = '',
    target_language: str = '',
    validate_assignee: bool = True,
) -> Task:
    """
    Issue a task for one workflow step.

    An explicit assignee must be a role-valid candidate. Without one the
    task starts in PENDING_ASSIGNMENT. Any open task for the same step on
    the same content is cancelled as superseded.
    """
    if task_type not in TASK_TITLES:
        raise ValidationFailedError(f"Unknown task type '{task_type}'", field='task_type')
    if priority not in dict(Task.PRIORITY_CHOICES):
        raise ValidationFailedError(f"Unknown priority '{priority}'", field='priority')

    if assignee is not None and validate_assignee:
        candidates = candidate_queryset(task_type, content_ref.kind.value, target_language)
        if not candidates.filter(pk=assignee.pk).exists():
            raise ValidationFailedError(
                f"User {assignee.pk} cannot be assigned a {task_type} task",
                field='assignee',
            )

    if due_date is None:
        due_date = default_due_date(task_type)

    status = 'PENDING' if assignee is not None else 'PENDING_ASSIGNMENT'

    with transaction.atomic():
        superseded = _open_tasks(content_ref, [task_type]).update(
            status='CANCELLED',
            completed_at=timezone.now(),
        )
        task = Task.objects.create(
            task_type=task_type,
            status=status,
            priority=priority,
            title=title or TASK_TITLES[task_type],
            description=description,
            assigned_to=assignee,
            created_by=created_by,
            content_kind=content_ref.kind.value,
            content_id=content_ref.id,
            due_date=due_date,
            metadata=metadata or {},
            source_language=source_language,
            target_language=target_language,
        )

    increment_tasks_opened(task_type, status)
    if superseded:
        logger.info(f"Task {task.id} superseded {superseded} open {task_type} task(s)")
    logger.info(
        f"Opened {task_type} task {task.id} for {content_ref.kind.value}:{content_ref.id} "
        f"(assignee: {assignee.pk if assignee else 'none'})"
    )
    return task


def resolve_assignee(
    task_type: str,
    content_kind: str,
    preferred=None,
    target_language: Optional[str] = None,
    exclude_ids: Iterable = (),
):
    """Preferred user when eligible, otherwise the assignment policy's pick."""
    candidates = candidate_queryset(task_type, content_kind, target_language, exclude_ids)
    if preferred is not None and candidates.filter(pk=preferred.pk).exists():
        return preferred
    return get_assignment_policy().choose(candidates, task_type)


def open_story_task(task_type: str, story, actor=None, preferred=None) -> Task:
    """Open a story-level task with a resolved assignee."""
    ref = ContentRef.for_story(story)

    if task_type in AUTHOR_TASK_TYPES:
        author = story.author if story.author_id and story.author.is_active else None
        assignee = author
    else:
        exclude = [story.author_id] if task_type in ('STORY_REVIEW', 'STORY_APPROVAL') else []
        assignee = resolve_assignee(task_type, ref.kind.value, preferred, exclude_ids=exclude)

    task = create_task(
        task_type,
        ref,
        assignee=assignee,
        created_by=actor,
        title=f"{TASK_TITLES[task_type]}: {story.title}",
        source_language=story.language,
        validate_assignee=False,
    )

    if assignee is not None:
        if task_type in REVIEWER_TASK_TYPES:
            Story.objects.filter(pk=story.pk).update(assigned_reviewer=assignee)
            story.assigned_reviewer = assignee
        elif task_type == 'STORY_APPROVAL':
            Story.objects.filter(pk=story.pk).update(assigned_approver=assignee)
            story.assigned_approver = assignee

    return task


def open_next_task(story, edge, actor=None) -> Optional[Task]:
    """Open the single task for the step that follows ``edge``."""
    target = edge.target

    if target is StoryStage.DRAFT:
        return open_story_task('STORY_REVISION_TO_AUTHOR', story, actor)
    if target is StoryStage.NEEDS_JOURNALIST_REVIEW:
        if edge.name == 'send_back':
            return open_story_task(
                'STORY_REVISION_TO_JOURNALIST', story, actor, preferred=story.assigned_reviewer,
            )
        return open_story_task('STORY_REVIEW', story, actor)
    if target is StoryStage.NEEDS_SUB_EDITOR_APPROVAL:
        return open_story_task('STORY_APPROVAL', story, actor)
    if target is StoryStage.APPROVED:
        return open_story_task('STORY_TRANSLATE', story, actor, preferred=actor)
    if target is StoryStage.TRANSLATED:
        return open_story_task('STORY_PUBLISH', story, actor, preferred=story.assigned_approver)
    return None


def advance_story(
    story,
    edge_name: str,
    actor=None,
    completed_task=None,
    system: bool = False,
    metadata: Optional[Dict[str, Any]] = None,
    audit_action: str = 'STAGE_TRANSITION',
    checklist: Optional[Dict[str, bool]] = None,
):
    """
    Apply a stage edge and rotate the story's tasks.

    Revise edges need a reason of at least ten characters in ``metadata``
    ('reason' or 'notes') and leave a RevisionRequest behind; forward
    edges resolve the story's open revision requests.

    Returns:
        (edge, next_task) tuple; next_task is None after publishing
    """
    machine = StoryStateMachine(story)
    from_stage = story.stage

    with transaction.atomic():
        edge = machine.apply(
            edge_name,
            actor=actor,
            system=system,
            metadata=metadata,
            audit_action=audit_action,
            checklist=checklist,
            require_reason=not system,
        )
        close_open_tasks(
            ContentRef.for_story(story),
            STAGE_TASK_TYPES.get(from_stage, ()),
            actor=actor,
            exclude=completed_task,
        )
        next_task = open_next_task(story, edge, actor)

        if edge.outcome == 'revise' and not system:
            meta = metadata or {}
            record_revision_request(
                story,
                edge,
                actor,
                validate_revision_reason(meta.get('reason') or meta.get('notes')),
                assignee=next_task.assigned_to if next_task else None,
            )
        elif edge.outcome in ('submit', 'approve'):
            resolve_revision_requests(story, actor)

    return edge, next_task


def start_story(story, actor) -> Task:
    """Open the STORY_CREATE task for a freshly created draft."""
    record_event('STORY_CREATED', story, actor=actor, to_state=story.stage)
    return open_story_task('STORY_CREATE', story, actor)


# =============================================================================
# Task Lifecycle
# =============================================================================

def get_task(task_id) -> Task:
    task = Task.objects.select_related('assigned_to', 'created_by').filter(pk=task_id).first()
    if task is None:
        raise NotFoundError(f"Task {task_id} not found")
    return task


def _run_completion_effect(task, actor, outcome, metadata):
    """Run the workflow operation coupled to a completed task."""
    ref = task.content_ref

    if ref.kind is ContentKind.STORY:
        story = ref.resolve()
        if story is None:
            raise NotFoundError(f"Story {ref.id} not found")

        if task.task_type in ROUTED_TASK_TYPES:
            if task.task_type not in STAGE_TASK_TYPES.get(story.stage, ()):
                raise InvalidTransitionError(
                    f"{task.task_type} does not apply while the story is {story.stage}"
                )
            machine = StoryStateMachine(story)
            edge = next_edge(story.stage, machine.author_role, outcome)
            advance_story(
                story,
                edge.name,
                actor=actor,
                completed_task=task,
                metadata={key: metadata[key] for key in ('reason', 'notes') if metadata.get(key)},
                checklist=metadata.get('checklist'),
            )

        elif task.task_type == 'STORY_TRANSLATE':
            from apps.translations.workflow import request_translations
            request_translations(story, actor, metadata.get('translations', []))

        elif task.task_type == 'STORY_PUBLISH':
            from apps.stories.publishing import publish_group
            publish_group(story, actor)

    elif ref.kind is ContentKind.TRANSLATION:
        from apps.translations.workflow import get_assignment, review, submit_for_review

        assignment = get_assignment(ref.id)
        if task.task_type == 'STORY_TRANSLATE':
            reviewer = None
            if metadata.get('reviewer_id'):
                reviewer = User.objects.filter(pk=metadata['reviewer_id']).first()
                if reviewer is None:
                    raise NotFoundError(f"Reviewer {metadata['reviewer_id']} not found")
            submit_for_review(
                assignment, actor, reviewer=reviewer, checklist=metadata.get('checklist'),
            )
        elif task.task_type == 'STORY_TRANSLATION_REVIEW':
            review(assignment, actor, outcome, metadata.get('notes', ''))


def complete_task(task_id, actor, metadata: Optional[Dict[str, Any]] = None) -> Task:
    """
    Complete a task as its assignee and run the coupled workflow step.

    Raises:
        NotFoundError: task absent
        AlreadyTerminalError: task already completed or cancelled
        ForbiddenError: actor is not the assignee or lacks role authority
        ValidationFailedError: missing or invalid outcome
        plus anything the coupled transition raises; the task is left
        unchanged in every failure case
    """
    metadata = dict(metadata or {})
    task = get_task(task_id)

    if task.is_terminal:
        raise AlreadyTerminalError(f"Task {task.id} is already {task.status.lower()}")

    if actor is None or task.assigned_to_id != actor.pk:
        raise ForbiddenError("Only the assignee can complete this task")

    role = get_user_role(actor)
    if not can_complete_task(role, task.task_type):
        raise ForbiddenError(f"Role {role or 'none'} may not complete {task.task_type} tasks")

    outcome = resolve_outcome(task, metadata.get('outcome'))
    previous_status = task.status

    with transaction.atomic():
        now = timezone.now()
        merged = {**(task.metadata or {}), **metadata, 'outcome': outcome}
        updated = Task.objects.filter(pk=task.pk, status=previous_status).update(
            status='COMPLETED',
            completed_at=now,
            metadata=merged,
        )
        if not updated:
            raise StaleStateError(f"Task {task.id} changed while it was being completed")
        task.status = 'COMPLETED'
        task.completed_at = now
        task.metadata = merged

        record_event(
            'TASK_COMPLETED',
            task,
            actor=actor,
            from_state=previous_status,
            to_state='COMPLETED',
            task_type=task.task_type,
            outcome=outcome,
        )

        _run_completion_effect(task, actor, outcome, metadata)

    increment_tasks_completed(task.task_type)
    logger.info(f"Task {task.id} ({task.task_type}) completed by {actor.pk} with outcome {outcome}")
    return task


def start_task(task_id, actor) -> Task:
    """Assignee marks a pending task as in progress."""
    task = get_task(task_id)

    if task.is_terminal:
        raise AlreadyTerminalError(f"Task {task.id} is already {task.status.lower()}")
    if actor is None or task.assigned_to_id != actor.pk:
        raise ForbiddenError("Only the assignee can start this task")
    if task.status == 'IN_PROGRESS':
        return task
    if task.status != 'PENDING':
        raise InvalidTransitionError(f"Cannot start a task that is {task.status}")

    now = timezone.now()
    updated = Task.objects.filter(pk=task.pk, status='PENDING').update(
        status='IN_PROGRESS',
        started_at=now,
    )
    if not updated:
        raise StaleStateError(f"Task {task.id} changed while it was being started")
    task.status = 'IN_PROGRESS'
    task.started_at = now
    return task


def task_candidates(task):
    """
    Role-valid users the task could be reassigned to.

    Author tasks stay with people who can submit the story: its author,
    or an editor acting for them.
    """
    exclude = []
    target = task.content_ref.resolve()
    if task.task_type in ('STORY_REVIEW', 'STORY_APPROVAL') and target is not None:
        exclude.append(target.author_id)
    if task.task_type == 'STORY_TRANSLATION_REVIEW' and target is not None:
        exclude.append(target.assigned_to_id)
    candidates = candidate_queryset(task.task_type, task.content_kind, task.target_language, exclude)
    if task.task_type in AUTHOR_TASK_TYPES and target is not None:
        candidates = candidates.filter(
            Q(pk=target.author_id) | Q(staff_profile__role__in=STORY_MANAGER_ROLES)
        )
    return candidates


def _sync_content_assignee(task, assignee):
    """Mirror a task's new assignee onto the content it concerns."""
    ref = task.content_ref
    if ref.kind is ContentKind.STORY:
        if task.task_type in REVIEWER_TASK_TYPES:
            Story.objects.filter(pk=ref.id).update(assigned_reviewer=assignee)
        elif task.task_type == 'STORY_APPROVAL':
            Story.objects.filter(pk=ref.id).update(assigned_approver=assignee)
    elif ref.kind is ContentKind.TRANSLATION:
        from apps.translations.models import TranslationAssignment
        if task.task_type == 'STORY_TRANSLATE':
            TranslationAssignment.objects.filter(pk=ref.id).update(assigned_to=assignee)
        elif task.task_type == 'STORY_TRANSLATION_REVIEW':
            TranslationAssignment.objects.filter(pk=ref.id).update(reviewer=assignee)


def reassign_task(task_id, new_assignee_id, actor, notes: str = '') -> Task:
    """
    Hand a task to another eligible user.

    The actor must be the task's creator, its current assignee, or hold
    sub-editor authority. Anyone may take an unassigned task for
    themselves if they are an eligible candidate.
    """
    task = get_task(task_id)

    if task.is_terminal:
        raise AlreadyTerminalError(f"Task {task.id} is already {task.status.lower()}")

    role = get_user_role(actor)
    self_claim = task.status == 'PENDING_ASSIGNMENT' and str(new_assignee_id) == str(actor.pk)
    if not (
        actor.pk in (task.created_by_id, task.assigned_to_id)
        or can_reassign(role)
        or self_claim
    ):
        raise ForbiddenError("Only the creator, the assignee or a sub-editor can reassign this task")

    new_assignee = User.objects.filter(pk=new_assignee_id).first()
    if new_assignee is None:
        raise NotFoundError(f"User {new_assignee_id} not found")
    if not task_candidates(task).filter(pk=new_assignee.pk).exists():
        raise ValidationFailedError(
            f"{new_assignee.get_username()} is not eligible for {task.task_type} tasks",
            field='assignee_id',
        )

    previous_assignee_id = task.assigned_to_id
    previous_status = task.status
    new_status = 'PENDING' if previous_status == 'PENDING_ASSIGNMENT' else previous_status

    with transaction.atomic():
        now = timezone.now()
        metadata = {
            **(task.metadata or {}),
            'reassigned_at': now.isoformat(),
            'reassigned_by': str(actor.pk),
            'previous_assignee': str(previous_assignee_id) if previous_assignee_id else None,
        }
        if notes:
            metadata['reassignment_notes'] = notes

        updated = Task.objects.filter(pk=task.pk, status=previous_status).update(
            assigned_to=new_assignee,
            status=new_status,
            metadata=metadata,
        )
        if not updated:
            raise StaleStateError(f"Task {task.id} changed while it was being reassigned")
        task.assigned_to = new_assignee
        task.status = new_status
        task.metadata = metadata

        _sync_content_assignee(task, new_assignee)

        record_event(
            'TASK_REASSIGNED',
            task,
            actor=actor,
            from_state=previous_status,
            to_state=new_status,
            previous_assignee=metadata['previous_assignee'],
            new_assignee=str(new_assignee.pk),
        )

    logger.info(f"Task {task.id} reassigned from {previous_assignee_id} to {new_assignee.pk}")
    return task


def claim_task(task_id, actor) -> Task:
    """Take an unassigned pool task; the actor must be a role-valid candidate."""
    task = get_task(task_id)
    if task.status != 'PENDING_ASSIGNMENT':
        raise InvalidTransitionError(
            f"Only unassigned tasks can be claimed, not {task.status}",
            details={'current_status': task.status},
        )
    return reassign_task(task.pk, actor.pk, actor, notes='Claimed from the unassigned pool')


# =============================================================================
# Task Comments
# =============================================================================

def _require_task_discussion(task, actor):
    if not (
        actor.pk in (task.created_by_id, task.assigned_to_id)
        or can_reassign(get_user_role(actor))
    ):
        raise ForbiddenError("Only the assignee, the creator or a sub-editor can discuss this task")


def task_comments(task, actor):
    _require_task_discussion(task, actor)
    return list((task.metadata or {}).get('comments', []))


def add_task_comment(task_id, actor, content: str, comment_type: str = 'GENERAL') -> Dict[str, Any]:
    """
    Append a comment to the task's metadata.

    The row is locked for the read-modify-write so concurrent comments are
    not lost.
    """
    content = (content or '').strip()
    if not content or len(content) > 1000:
        raise ValidationFailedError("Comments must be 1 to 1000 characters", field='content')

    with transaction.atomic():
        task = Task.objects.select_for_update().filter(pk=task_id).first()
        if task is None:
            raise NotFoundError(f"Task {task_id} not found")
        _require_task_discussion(task, actor)

        comment = {
            'id': str(uuid.uuid4()),
            'content': content,
            'type': comment_type,
            'author_id': actor.pk,
            'author': actor.get_username(),
            'created_at': timezone.now().isoformat(),
        }
        metadata = dict(task.metadata or {})
        metadata['comments'] = [*metadata.get('comments', []), comment]
        Task.objects.filter(pk=task.pk).update(metadata=metadata)
        task.metadata = metadata

        record_event('TASK_COMMENTED', task, actor=actor, comment=comment['id'], comment_type=comment_type)

    logger.info(f"Comment {comment['id']} added to task {task.pk} by {actor.pk}")
    return comment
