"""
Tests for revision requests, stage checklists and story comments.

Tests cover:
- Revise outcomes need a reason and leave a RevisionRequest behind
- Revision requests resolve when the story moves forward again
- Checklists captured on the transition that leaves a stage
- Comment access by role, replies and type filtering
"""

import pytest

from apps.core.audit import history_for
from apps.core.exceptions import ValidationFailedError
from apps.stories.models import RevisionRequest, Story
from apps.stories.state_machine import StoryStateMachine
from apps.tasks.models import Task
from apps.tasks.orchestrator import complete_task
from apps.translations.workflow import request_translations, start_work, submit_for_review


@pytest.fixture
def awaiting_approval(journalist, sub_editor, story_factory, open_task):
    story = story_factory(journalist)
    complete_task(open_task(story, 'STORY_CREATE').pk, journalist)
    return story


# ============================================================================
# Revision requests
# ============================================================================

@pytest.mark.django_db
class TestRevisionRequests:

    def test_revise_without_reason_is_rejected(self, awaiting_approval, sub_editor, open_task):
        approval = open_task(awaiting_approval, 'STORY_APPROVAL')

        with pytest.raises(ValidationFailedError) as excinfo:
            complete_task(approval.pk, sub_editor, {'outcome': 'revise'})

        assert excinfo.value.field == 'reason'
        approval.refresh_from_db()
        assert approval.status == 'PENDING'
        assert Story.objects.get(pk=awaiting_approval.pk).stage == 'NEEDS_SUB_EDITOR_APPROVAL'
        assert not RevisionRequest.objects.exists()

    def test_short_reason_is_rejected(self, awaiting_approval, sub_editor, open_task):
        with pytest.raises(ValidationFailedError) as excinfo:
            complete_task(
                open_task(awaiting_approval, 'STORY_APPROVAL').pk,
                sub_editor,
                {'outcome': 'revise', 'reason': ' too short '},
            )
        assert excinfo.value.field == 'reason'

    def test_return_to_author_is_recorded(self, awaiting_approval, journalist, sub_editor, open_task):
        complete_task(
            open_task(awaiting_approval, 'STORY_APPROVAL').pk,
            sub_editor,
            {'outcome': 'revise', 'reason': '  Needs a second source  '},
        )

        revision = RevisionRequest.objects.get(story=awaiting_approval)
        assert revision.edge == 'return_to_author'
        assert revision.requested_by == sub_editor
        assert revision.requested_by_role == 'SUB_EDITOR'
        assert revision.assigned_to == journalist
        assert revision.reason == 'Needs a second source'
        assert not revision.is_resolved

    def test_resubmission_resolves_open_requests(self, awaiting_approval, journalist, sub_editor, open_task):
        complete_task(
            open_task(awaiting_approval, 'STORY_APPROVAL').pk,
            sub_editor,
            {'outcome': 'revise', 'reason': 'Needs a second source'},
        )

        complete_task(open_task(awaiting_approval, 'STORY_REVISION_TO_AUTHOR').pk, journalist)

        revision = RevisionRequest.objects.get(story=awaiting_approval)
        assert revision.resolved_at is not None
        event = history_for(awaiting_approval, action='REVISIONS_RESOLVED').get()
        assert event.details == {'count': 1}

    def test_send_back_names_the_original_reviewer(self, intern, journalist, sub_editor, story_factory, open_task):
        story = story_factory(intern)
        complete_task(open_task(story, 'STORY_CREATE').pk, intern)
        complete_task(open_task(story, 'STORY_REVIEW').pk, journalist, {'outcome': 'approve'})

        complete_task(
            open_task(story, 'STORY_APPROVAL').pk,
            sub_editor,
            {'outcome': 'revise', 'notes': 'Quote in par three is unattributed'},
        )

        revision = RevisionRequest.objects.get(story=story)
        assert revision.edge == 'send_back'
        assert revision.assigned_to == journalist
        assert revision.reason == 'Quote in par three is unattributed'

    def test_history_newest_first(self, client_for, awaiting_approval, journalist, sub_editor, open_task):
        complete_task(
            open_task(awaiting_approval, 'STORY_APPROVAL').pk,
            sub_editor,
            {'outcome': 'revise', 'reason': 'First round of changes'},
        )
        complete_task(open_task(awaiting_approval, 'STORY_REVISION_TO_AUTHOR').pk, journalist)
        complete_task(
            open_task(awaiting_approval, 'STORY_APPROVAL').pk,
            sub_editor,
            {'outcome': 'revise', 'reason': 'Second round of changes'},
        )

        response = client_for(sub_editor).get(f'/api/stories/{awaiting_approval.pk}/revisions/')

        assert response.status_code == 200
        assert [(r['reason'], r['is_resolved']) for r in response.data] == [
            ('Second round of changes', False),
            ('First round of changes', True),
        ]
        assert response.data[0]['assigned_to']['username'] == 'journalist'

    def test_transition_api_requires_reason(self, client_for, awaiting_approval, sub_editor):
        client = client_for(sub_editor)
        url = f'/api/stories/{awaiting_approval.pk}/transition/'

        missing = client.post(url, {'transition': 'return_to_author'}, format='json')
        given = client.post(
            url,
            {'transition': 'return_to_author', 'reason': 'Headline overstates the vote'},
            format='json',
        )

        assert missing.status_code == 400
        assert missing.data['error']['field'] == 'reason'
        assert given.status_code == 200
        assert given.data['story']['stage'] == 'DRAFT'
        assert RevisionRequest.objects.get(story=awaiting_approval).reason == 'Headline overstates the vote'


# ============================================================================
# Checklists
# ============================================================================

@pytest.mark.django_db
class TestChecklists:

    def test_approver_checklist_is_stored(self, awaiting_approval, sub_editor, open_task):
        complete_task(
            open_task(awaiting_approval, 'STORY_APPROVAL').pk,
            sub_editor,
            {'outcome': 'approve', 'checklist': {'headline_checked': True, 'legal_cleared': True}},
        )

        story = Story.objects.get(pk=awaiting_approval.pk)
        assert story.stage == 'APPROVED'
        assert story.approver_checklist == {'headline_checked': True, 'legal_cleared': True}
        assert story.author_checklist == {}

    def test_malformed_checklist_blocks_transition(self, journalist, story_factory):
        story = story_factory(journalist)

        with pytest.raises(ValidationFailedError) as excinfo:
            StoryStateMachine(story).apply(
                'submit_for_approval', actor=journalist, checklist={'facts_checked': 'yes'},
            )

        assert excinfo.value.field == 'checklist'
        assert Story.objects.get(pk=story.pk).stage == 'DRAFT'

    def test_transition_api_takes_checklist(self, client_for, journalist, sub_editor, story_factory):
        story = story_factory(journalist)

        response = client_for(journalist).post(
            f'/api/stories/{story.pk}/transition/',
            {'transition': 'submit_for_approval', 'checklist': {'spelling': True}},
            format='json',
        )

        assert response.status_code == 200
        assert response.data['story']['author_checklist'] == {'spelling': True}

    def test_translation_checklist(self, journalist, sub_editor, afrikaans_translator, approved_story):
        story = approved_story(journalist, sub_editor)
        [assignment] = request_translations(
            story, sub_editor, [{'language': 'AFRIKAANS', 'translator_id': afrikaans_translator.pk}],
        )
        start_work(assignment, afrikaans_translator, title='Water', content='Die raad het gestem')

        submit_for_review(assignment, afrikaans_translator, checklist={'terminology': True})

        translated = Story.objects.get(pk=assignment.translated_story_id)
        assert translated.translation_checklist == {'terminology': True}


# ============================================================================
# Comments
# ============================================================================

@pytest.mark.django_db
class TestStoryComments:

    def url(self, story):
        return f'/api/stories/{story.pk}/comments/'

    def test_author_comments_and_replies(self, client_for, journalist, sub_editor, story_factory):
        story = story_factory(journalist)

        created = client_for(journalist).post(
            self.url(story), {'content': 'Waiting on the council statement'}, format='json',
        )
        reply = client_for(sub_editor).post(
            self.url(story),
            {'content': 'Chase it before noon', 'comment_type': 'EDITORIAL_NOTE', 'parent_id': created.data['id']},
            format='json',
        )
        listed = client_for(journalist).get(self.url(story))

        assert created.status_code == 201
        assert created.data['comment_type'] == 'GENERAL'
        assert created.data['author']['username'] == 'journalist'
        assert reply.status_code == 201
        assert len(listed.data) == 1
        assert [r['content'] for r in listed.data[0]['replies']] == ['Chase it before noon']
        assert history_for(story, action='COMMENT_ADDED').count() == 2

    def test_replies_cannot_nest(self, client_for, journalist, story_factory):
        story = story_factory(journalist)
        client = client_for(journalist)
        top = client.post(self.url(story), {'content': 'Top'}, format='json')
        reply = client.post(self.url(story), {'content': 'Reply', 'parent_id': top.data['id']}, format='json')

        nested = client.post(self.url(story), {'content': 'Nested', 'parent_id': reply.data['id']}, format='json')

        assert nested.status_code == 400
        assert nested.data['error']['field'] == 'parent_id'

    def test_type_filter(self, client_for, journalist, story_factory):
        story = story_factory(journalist)
        client = client_for(journalist)
        client.post(self.url(story), {'content': 'General note'}, format='json')
        client.post(self.url(story), {'content': 'Fix the intro', 'comment_type': 'REVISION_REQUEST'}, format='json')

        response = client.get(self.url(story), {'type': 'REVISION_REQUEST'})

        assert [c['content'] for c in response.data] == ['Fix the intro']

    def test_access_by_role(self, client_for, intern, journalist, sub_editor, make_staff, story_factory, open_task):
        story = story_factory(intern)
        complete_task(open_task(story, 'STORY_CREATE').pk, intern)
        assert Story.objects.get(pk=story.pk).assigned_reviewer == journalist

        other_intern = make_staff('intern2', 'INTERN')
        bystander = make_staff('bystander', 'JOURNALIST')

        assert client_for(intern).get(self.url(story)).status_code == 200
        assert client_for(journalist).get(self.url(story)).status_code == 200
        assert client_for(sub_editor).get(self.url(story)).status_code == 200
        assert client_for(other_intern).get(self.url(story)).status_code == 403
        assert client_for(bystander).post(self.url(story), {'content': 'Hi'}, format='json').status_code == 403

    def test_open_tasks_untouched_by_comments(self, client_for, journalist, story_factory, open_task):
        story = story_factory(journalist)
        before = open_task(story, 'STORY_CREATE')

        client_for(journalist).post(self.url(story), {'content': 'Note to self'}, format='json')

        assert open_task(story, 'STORY_CREATE').pk == before.pk
        assert Task.objects.filter(content_id=story.pk).count() == 1
