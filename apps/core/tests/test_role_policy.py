"""
Tests for the newsroom role policy.

Tests cover:
- Role hierarchy comparisons
- Edge and task authority per role
- Sub-editor publishing toggle
- Role lookup for anonymous users, superusers and new accounts
"""

import pytest
from django.contrib.auth.models import AnonymousUser

from apps.core.permissions import (
    can_complete_task,
    can_perform_edge,
    can_publish,
    get_user_role,
    has_role,
    publisher_roles,
    role_at_least,
)


# ============================================================================
# Hierarchy
# ============================================================================

class TestRoleHierarchy:

    def test_higher_role_satisfies_lower_requirement(self):
        assert role_at_least('EDITOR', 'SUB_EDITOR')
        assert role_at_least('SUB_EDITOR', 'SUB_EDITOR')

    def test_lower_role_fails_higher_requirement(self):
        assert not role_at_least('JOURNALIST', 'SUB_EDITOR')
        assert not role_at_least('INTERN', 'JOURNALIST')

    def test_missing_role_never_qualifies(self):
        assert not role_at_least(None, 'INTERN')
        assert not role_at_least('', 'INTERN')


# ============================================================================
# Edge Authority
# ============================================================================

class TestEdgeAuthority:

    @pytest.mark.parametrize('role', ['INTERN', 'JOURNALIST', 'SUB_EDITOR'])
    def test_anyone_can_submit(self, role):
        assert can_perform_edge(role, 'submit_for_review')
        assert can_perform_edge(role, 'submit_for_approval')

    def test_journalist_reviews_but_does_not_approve(self):
        assert can_perform_edge('JOURNALIST', 'send_for_approval')
        assert can_perform_edge('JOURNALIST', 'request_revision')
        assert not can_perform_edge('JOURNALIST', 'approve')
        assert not can_perform_edge('JOURNALIST', 'send_back')

    def test_intern_cannot_review(self):
        assert not can_perform_edge('INTERN', 'send_for_approval')

    def test_sub_editor_approves(self):
        assert can_perform_edge('SUB_EDITOR', 'approve')
        assert can_perform_edge('SUB_EDITOR', 'return_to_author')

    def test_unknown_and_system_edges_are_refused(self):
        assert not can_perform_edge('SUPERADMIN', 'mark_translated')
        assert not can_perform_edge('SUPERADMIN', 'teleport')


class TestPublishing:

    def test_sub_editor_publishes_by_default(self, settings):
        settings.NEWSROOM_SUB_EDITOR_CAN_PUBLISH = True
        assert can_publish('SUB_EDITOR')
        assert can_perform_edge('SUB_EDITOR', 'publish')

    def test_sub_editor_publishing_can_be_disabled(self, settings):
        settings.NEWSROOM_SUB_EDITOR_CAN_PUBLISH = False
        assert not can_publish('SUB_EDITOR')
        assert can_publish('EDITOR')
        assert 'SUB_EDITOR' not in publisher_roles()

    def test_journalist_never_publishes(self):
        assert not can_publish('JOURNALIST')


class TestTaskAuthority:

    def test_review_tasks_need_journalist(self):
        assert can_complete_task('JOURNALIST', 'STORY_REVIEW')
        assert not can_complete_task('INTERN', 'STORY_REVIEW')

    def test_approval_tasks_need_sub_editor(self):
        assert can_complete_task('SUB_EDITOR', 'STORY_APPROVAL')
        assert not can_complete_task('JOURNALIST', 'STORY_APPROVAL')
        assert not can_complete_task('JOURNALIST', 'STORY_TRANSLATION_REVIEW')

    def test_unlisted_types_are_open_to_staff(self):
        assert can_complete_task('INTERN', 'STORY_CREATE')
        assert can_complete_task('JOURNALIST', 'STORY_TRANSLATE')
        assert not can_complete_task(None, 'STORY_CREATE')

    def test_publish_tasks_follow_publish_policy(self):
        assert can_complete_task('EDITOR', 'STORY_PUBLISH')
        assert not can_complete_task('JOURNALIST', 'STORY_PUBLISH')


# ============================================================================
# Role Lookup
# ============================================================================

@pytest.mark.django_db
class TestUserRole:

    def test_anonymous_user_has_no_role(self):
        assert get_user_role(AnonymousUser()) is None
        assert get_user_role(None) is None

    def test_new_user_gets_journalist_profile(self, django_user_model):
        user = django_user_model.objects.create_user(username='newhire', password='pass')
        assert user.staff_profile.role == 'JOURNALIST'
        assert get_user_role(user) == 'JOURNALIST'

    def test_superuser_is_superadmin(self, django_user_model):
        admin = django_user_model.objects.create_superuser(username='root', password='pass')
        assert get_user_role(admin) == 'SUPERADMIN'

    def test_has_role_uses_profile(self, intern, sub_editor):
        assert has_role(sub_editor, 'SUB_EDITOR')
        assert not has_role(intern, 'JOURNALIST')
