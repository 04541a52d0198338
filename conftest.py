"""
Shared pytest fixtures for the newsroom test suite.
"""

import pytest
from rest_framework.test import APIClient

from apps.stories.services import create_story
from apps.tasks.models import Task
from apps.tasks.orchestrator import complete_task


@pytest.fixture
def make_staff(db, django_user_model):
    """Create a user with a newsroom role and optional translation language."""

    def _make(username, role='JOURNALIST', language=None, **extra):
        user = django_user_model.objects.create_user(
            username=username,
            password='pass',
            email=f'{username}@newsroom.test',
            **extra,
        )
        profile = user.staff_profile
        profile.role = role
        profile.translation_language = language
        profile.save()
        return user

    return _make


@pytest.fixture
def intern(make_staff):
    return make_staff('intern', 'INTERN')


@pytest.fixture
def journalist(make_staff):
    return make_staff('journalist', 'JOURNALIST')


@pytest.fixture
def sub_editor(make_staff):
    return make_staff('subeditor', 'SUB_EDITOR')


@pytest.fixture
def editor(make_staff):
    return make_staff('editor', 'EDITOR')


@pytest.fixture
def afrikaans_translator(make_staff):
    return make_staff('vertaler', 'JOURNALIST', language='AFRIKAANS')


@pytest.fixture
def xhosa_translator(make_staff):
    return make_staff('umguquleli', 'JOURNALIST', language='XHOSA')


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def client_for():
    """Return an APIClient authenticated as the given user."""

    def _client(user):
        client = APIClient()
        client.force_authenticate(user=user)
        return client

    return _client


@pytest.fixture
def story_factory(db):
    """Create a draft story through the service layer (opens STORY_CREATE)."""

    def _create(author, title='Council votes on water tariffs', **fields):
        fields.setdefault('category', 'local-news')
        fields.setdefault('content', 'The council voted on the new water tariffs on Tuesday.')
        return create_story(author, title, **fields)

    return _create


@pytest.fixture
def open_task():
    """Fetch the single open task of a type for a content item."""

    def _open(content, task_type):
        return Task.objects.get(
            content_id=content.pk,
            task_type=task_type,
            status__in=Task.OPEN_STATUSES,
        )

    return _open


@pytest.fixture
def approved_story(story_factory, open_task):
    """
    Drive a journalist-authored story to APPROVED through its tasks.

    The approver must be the only sub-editor-or-above candidate so the
    approval task lands on them.
    """

    def _approve(author, approver, **fields):
        story = story_factory(author, **fields)
        complete_task(open_task(story, 'STORY_CREATE').pk, author)
        complete_task(open_task(story, 'STORY_APPROVAL').pk, approver, {'outcome': 'approve'})
        story.refresh_from_db()
        return story

    return _approve
