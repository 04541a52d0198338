"""
Tests for the append-only audit trail.
"""

import pytest

from apps.core.audit import history_for, record_event
from apps.core.middleware import clear_request_context, set_request_context
from apps.core.models import AppendOnlyError, AuditEvent


@pytest.fixture
def story(story_factory, journalist):
    return story_factory(journalist)


@pytest.mark.django_db
class TestRecordEvent:

    def test_event_captures_target_and_states(self, story, journalist):
        event = record_event(
            'STAGE_TRANSITION',
            story,
            actor=journalist,
            from_state='DRAFT',
            to_state='NEEDS_SUB_EDITOR_APPROVAL',
            edge='submit_for_approval',
        )

        assert event.target_type == 'STORY'
        assert event.target_id == story.pk
        assert event.actor == journalist
        assert event.details == {'edge': 'submit_for_approval'}

    def test_event_records_current_request_id(self, story):
        set_request_context('3f1c9a52-0d7e-4a57-9b43-6a0f0e2c9d11')
        try:
            event = record_event('STORY_VIEWED', story)
        finally:
            clear_request_context()

        assert event.request_id == '3f1c9a52-0d7e-4a57-9b43-6a0f0e2c9d11'

    def test_event_outside_request_has_blank_request_id(self, story):
        event = record_event('STORY_VIEWED', story)
        assert event.request_id == ''

    def test_history_is_chronological_and_filterable(self, story, journalist):
        record_event('NOTE', story, actor=journalist, text='first')
        record_event('NOTE', story, actor=journalist, text='second')

        actions = [event.action for event in history_for(story)]
        assert actions[0] == 'STORY_CREATED'
        assert actions[-2:] == ['NOTE', 'NOTE']

        notes = history_for(story, action='NOTE')
        assert [event.details['text'] for event in notes] == ['first', 'second']


@pytest.mark.django_db
class TestAppendOnly:

    def test_saved_event_cannot_be_rewritten(self, story):
        event = record_event('NOTE', story)
        event.action = 'SOMETHING_ELSE'

        with pytest.raises(AppendOnlyError):
            event.save()

    def test_event_cannot_be_deleted(self, story):
        event = record_event('NOTE', story)

        with pytest.raises(AppendOnlyError):
            event.delete()
        assert AuditEvent.objects.filter(pk=event.pk).exists()

    def test_bulk_update_and_delete_are_refused(self, story):
        record_event('NOTE', story)

        with pytest.raises(AppendOnlyError):
            AuditEvent.objects.filter(action='NOTE').update(action='EDITED')
        with pytest.raises(AppendOnlyError):
            AuditEvent.objects.all().delete()
