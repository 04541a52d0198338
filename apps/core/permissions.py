"""
Role Policy for the newsroom.

Maps StaffProfile.role to the workflow actions a staff member may take,
and exposes the same policy as DRF permission classes.

Roles (lowest to highest):
- INTERN: writes drafts; drafts are reviewed by a journalist
- JOURNALIST: writes drafts, reviews intern work
- SUB_EDITOR: approves stories, commissions and reviews translations
- EDITOR / ADMIN / SUPERADMIN: everything above, plus publishing

The policy functions are pure: they take a role string and answer a
question. Looking up the role for a user is done once, by get_user_role.

Usage:
    from apps.core.permissions import IsSubEditorOrAbove, can_publish

    class MyView(APIView):
        permission_classes = [IsAuthenticated, IsSubEditorOrAbove]
"""

import logging
from enum import Enum
from typing import Optional

from django.conf import settings
from rest_framework.permissions import BasePermission

logger = logging.getLogger(__name__)


class StaffRole(str, Enum):
    """Newsroom staff roles."""
    INTERN = 'INTERN'
    JOURNALIST = 'JOURNALIST'
    SUB_EDITOR = 'SUB_EDITOR'
    EDITOR = 'EDITOR'
    ADMIN = 'ADMIN'
    SUPERADMIN = 'SUPERADMIN'


ROLE_LEVELS = {
    StaffRole.INTERN.value: 1,
    StaffRole.JOURNALIST.value: 2,
    StaffRole.SUB_EDITOR.value: 3,
    StaffRole.EDITOR.value: 4,
    StaffRole.ADMIN.value: 5,
    StaffRole.SUPERADMIN.value: 6,
}

# Roles allowed to approve stories, in level order
APPROVER_ROLES = ('SUB_EDITOR', 'EDITOR', 'ADMIN', 'SUPERADMIN')


def role_at_least(role: Optional[str], required_role: str) -> bool:
    """Check if ``role`` is at or above ``required_role`` in the hierarchy."""
    if not role:
        return False
    return ROLE_LEVELS.get(role, 0) >= ROLE_LEVELS.get(required_role, 0)


def publisher_roles():
    """Roles allowed to publish under the current configuration."""
    roles = ['EDITOR', 'ADMIN', 'SUPERADMIN']
    if getattr(settings, 'NEWSROOM_SUB_EDITOR_CAN_PUBLISH', True):
        roles.insert(0, 'SUB_EDITOR')
    return roles


# =============================================================================
# Policy Functions
# =============================================================================

def can_review_story(role):
    return role_at_least(role, 'JOURNALIST')


def can_approve_story(role):
    return role_at_least(role, 'SUB_EDITOR')


def can_publish(role):
    return role in publisher_roles()


def can_reassign(role):
    return role_at_least(role, 'SUB_EDITOR')


def can_request_translations(role):
    return role_at_least(role, 'SUB_EDITOR')


def can_review_translation(role):
    return role_at_least(role, 'SUB_EDITOR')


def can_manage_any_story(role):
    """Editors may act on stories they did not write."""
    return role_at_least(role, 'EDITOR')


def can_discuss_story(role, is_author: bool, is_reviewer: bool) -> bool:
    """Interns discuss their own stories; journalists also those they review."""
    if role_at_least(role, 'SUB_EDITOR'):
        return True
    if role == 'JOURNALIST':
        return is_author or is_reviewer
    return role == 'INTERN' and is_author


# Minimum role per named stage edge. Submit edges are open to every role;
# ownership is checked separately by the state machine.
EDGE_MIN_ROLE = {
    'submit_for_review': 'INTERN',
    'submit_for_approval': 'INTERN',
    'send_for_approval': 'JOURNALIST',
    'request_revision': 'JOURNALIST',
    'send_back': 'SUB_EDITOR',
    'return_to_author': 'SUB_EDITOR',
    'approve': 'SUB_EDITOR',
}


def can_perform_edge(role, edge_name: str) -> bool:
    """Check role authority for a named stage edge."""
    if edge_name == 'publish':
        return can_publish(role)
    required = EDGE_MIN_ROLE.get(edge_name)
    if required is None:
        return False
    return role_at_least(role, required)


# Minimum role per task type; unlisted types are open to every role.
TASK_MIN_ROLE = {
    'STORY_REVIEW': 'JOURNALIST',
    'STORY_REVISION_TO_JOURNALIST': 'JOURNALIST',
    'STORY_APPROVAL': 'SUB_EDITOR',
    'STORY_TRANSLATION_REVIEW': 'SUB_EDITOR',
    'BULLETIN_REVIEW': 'SUB_EDITOR',
    'SHOW_REVIEW': 'SUB_EDITOR',
}

PUBLISH_TASK_TYPES = ('STORY_PUBLISH', 'BULLETIN_PUBLISH', 'SHOW_PUBLISH')


def can_complete_task(role, task_type: str) -> bool:
    """Check role authority for completing a task of ``task_type``."""
    if task_type in PUBLISH_TASK_TYPES:
        return can_publish(role)
    required = TASK_MIN_ROLE.get(task_type)
    if required is None:
        return bool(role)
    return role_at_least(role, required)


# =============================================================================
# User Lookups
# =============================================================================

def get_user_role(user):
    """
    Helper function to get user's newsroom role.

    Returns the role string, or None for anonymous users. Superusers are
    treated as SUPERADMIN.
    """
    if not user or not user.is_authenticated:
        return None

    if user.is_superuser:
        return StaffRole.SUPERADMIN.value

    try:
        from apps.core.models import StaffProfile
        profile = StaffProfile.objects.get(user=user)
        return profile.role
    except StaffProfile.DoesNotExist:
        logger.warning(f"User {user.pk} has no staff profile")
        return None


def has_role(user, required_role):
    """
    Check if user has at least the required role level.

    Role hierarchy: SUPERADMIN > ADMIN > EDITOR > SUB_EDITOR > JOURNALIST > INTERN
    """
    return role_at_least(get_user_role(user), required_role)


# =============================================================================
# DRF Permission Classes
# =============================================================================

class RolePermission(BasePermission):
    """Base class for role-based permissions."""

    # Override in subclasses
    minimum_role = 'INTERN'

    def has_permission(self, request, view):
        """Check if user has required role."""
        if not request.user or not request.user.is_authenticated:
            return False
        return has_role(request.user, self.minimum_role)


class IsStaffMember(RolePermission):
    """Any newsroom role."""
    minimum_role = 'INTERN'
    message = "Newsroom staff access required."


class IsSubEditorOrAbove(RolePermission):
    """
    Sub-editors and above.

    Sub-editors can:
    - View pipeline metrics and workloads
    - Reassign tasks
    - Commission translations
    """
    minimum_role = 'SUB_EDITOR'
    message = "Sub-editor access required."
