"""
Assignee candidates and pluggable assignment policies.

Candidates are filtered by the role a task type needs:
- reviewer tasks: journalists
- approval and review-of-translation tasks: sub-editors and above
- translation tasks: staff who translate into the task's target language
- publish tasks: roles allowed to publish
- everything else: any active staff member

Which candidate gets the task is decided by the policy named in
settings.NEWSROOM_ASSIGNMENT_POLICY (dotted path to a class).
"""

import logging
from typing import Iterable, Optional

from django.conf import settings
from django.contrib.auth import get_user_model
from django.db.models import Count, Q
from django.utils.module_loading import import_string

from apps.core.permissions import APPROVER_ROLES, publisher_roles

from .models import ContentKind, Task

logger = logging.getLogger(__name__)

User = get_user_model()

REVIEWER_TASK_TYPES = ('STORY_REVIEW', 'STORY_REVISION_TO_JOURNALIST')
APPROVER_TASK_TYPES = (
    'STORY_APPROVAL',
    'STORY_TRANSLATION_REVIEW',
    'BULLETIN_REVIEW',
    'SHOW_REVIEW',
)
PUBLISHER_TASK_TYPES = ('STORY_PUBLISH', 'BULLETIN_PUBLISH', 'SHOW_PUBLISH')


def candidate_roles(task_type: str, content_kind: Optional[str] = None):
    """Roles eligible for a task type, or None when any role will do."""
    if task_type in REVIEWER_TASK_TYPES:
        return ['JOURNALIST']
    if task_type in APPROVER_TASK_TYPES:
        return list(APPROVER_ROLES)
    if task_type in PUBLISHER_TASK_TYPES:
        return publisher_roles()
    if task_type == 'STORY_TRANSLATE' and content_kind == ContentKind.STORY.value:
        # Commissioning translations for an approved story
        return list(APPROVER_ROLES)
    return None


def candidate_queryset(
    task_type: str,
    content_kind: Optional[str] = None,
    target_language: Optional[str] = None,
    exclude_ids: Iterable = (),
):
    """
    Active users eligible for a task.

    Args:
        task_type: Task type value
        content_kind: ContentKind value of the task's content reference
        target_language: Required translation language for translate tasks
        exclude_ids: User ids that must not receive the task
    """
    queryset = User.objects.filter(is_active=True, staff_profile__isnull=False)

    if task_type == 'STORY_TRANSLATE' and content_kind == ContentKind.TRANSLATION.value:
        queryset = queryset.filter(staff_profile__translation_language=target_language)
    else:
        roles = candidate_roles(task_type, content_kind)
        if roles is not None:
            queryset = queryset.filter(staff_profile__role__in=roles)

    exclude_ids = [pk for pk in exclude_ids if pk is not None]
    if exclude_ids:
        queryset = queryset.exclude(pk__in=exclude_ids)

    return queryset.select_related('staff_profile').order_by('pk')


class AssignmentPolicy:
    """Chooses one assignee among role-valid candidates."""

    def choose(self, candidates, task_type: str):
        raise NotImplementedError


class LeastLoadedPolicy(AssignmentPolicy):
    """Pick the candidate with the fewest open tasks; ties go to the lowest id."""

    def choose(self, candidates, task_type: str):
        return candidates.annotate(
            open_task_count=Count(
                'assigned_tasks',
                filter=Q(assigned_tasks__status__in=Task.OPEN_STATUSES),
            )
        ).order_by('open_task_count', 'pk').first()


class RoundRobinPolicy(AssignmentPolicy):
    """Rotate through candidates, starting after the last recipient of this task type."""

    def choose(self, candidates, task_type: str):
        ordered = list(candidates.order_by('pk'))
        if not ordered:
            return None

        last_assignee_id = (
            Task.objects.filter(task_type=task_type, assigned_to__in=ordered)
            .order_by('-created_at')
            .values_list('assigned_to_id', flat=True)
            .first()
        )
        ids = [user.pk for user in ordered]
        if last_assignee_id in ids:
            return ordered[(ids.index(last_assignee_id) + 1) % len(ordered)]
        return ordered[0]


def get_assignment_policy() -> AssignmentPolicy:
    """Instantiate the configured assignment policy."""
    policy_path = getattr(
        settings,
        'NEWSROOM_ASSIGNMENT_POLICY',
        'apps.tasks.assignment.LeastLoadedPolicy',
    )
    return import_string(policy_path)()
