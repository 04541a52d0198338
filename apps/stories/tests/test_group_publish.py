"""
Tests for translation readiness and group publishing.
"""

from unittest.mock import patch

import pytest

from apps.core.audit import history_for
from apps.core.exceptions import (
    AlreadyTerminalError,
    ForbiddenError,
    InvalidTransitionError,
    StaleStateError,
)
from apps.stories.models import Story
from apps.stories.publishing import (
    evaluate_translation_readiness,
    group_status,
    is_group_ready,
    publish_group,
)
from apps.translations.workflow import request_translations, review, start_work, submit_for_review


@pytest.fixture
def translated_group(journalist, sub_editor, afrikaans_translator, approved_story):
    """An original with one approved Afrikaans translation, ready to publish."""
    story = approved_story(journalist, sub_editor)
    [assignment] = request_translations(
        story, sub_editor, [{'language': 'AFRIKAANS', 'translator_id': afrikaans_translator.pk}],
    )
    start_work(assignment, afrikaans_translator, title='Raad stem', content='Die raad het gestem.')
    submit_for_review(assignment, afrikaans_translator)
    review(assignment, sub_editor, 'approve')
    story.refresh_from_db()
    return story, assignment


@pytest.mark.django_db
class TestReadiness:

    def test_pending_translation_blocks_readiness(self, journalist, sub_editor, xhosa_translator, approved_story):
        story = approved_story(journalist, sub_editor)
        request_translations(story, sub_editor, [{'language': 'XHOSA', 'translator_id': xhosa_translator.pk}])

        assert evaluate_translation_readiness(story) is False
        story.refresh_from_db()
        assert story.stage == 'APPROVED'

    def test_no_translations_marks_translated(self, journalist, sub_editor, approved_story):
        story = approved_story(journalist, sub_editor)

        assert evaluate_translation_readiness(story, sub_editor) is True
        assert story.stage == 'TRANSLATED'
        assert history_for(story, action='AUTO_MARK_AS_TRANSLATED').get().details == {
            'edge': 'mark_translated',
            'translations': 0,
        }

    def test_readiness_ignores_stories_outside_approved(self, journalist, story_factory):
        story = story_factory(journalist)
        assert evaluate_translation_readiness(story) is False

    def test_approved_translation_group_is_ready(self, translated_group):
        story, assignment = translated_group

        assert story.stage == 'TRANSLATED'
        assert is_group_ready(story)

        status = group_status(story)
        assert status['ready'] is True
        assert status['pending_languages'] == []
        assert status['translations'][0]['stage'] == 'TRANSLATED'


@pytest.mark.django_db
class TestPublishGroup:

    def test_publishes_original_and_translations(self, translated_group, sub_editor):
        story, assignment = translated_group

        publish_group(story, sub_editor)

        translation = Story.objects.get(pk=assignment.translated_story_id)
        assert story.stage == 'PUBLISHED'
        assert translation.stage == 'PUBLISHED'
        assert translation.published_at == story.published_at
        assert history_for(translation, action='AUTO_PUBLISH_TRANSLATION').exists()
        assert history_for(story, action='PUBLISH_GROUP').exists()

    def test_open_publish_task_is_completed(self, translated_group, sub_editor, open_task):
        story, _ = translated_group
        publish_task = open_task(story, 'STORY_PUBLISH')

        publish_group(story, sub_editor)

        publish_task.refresh_from_db()
        assert publish_task.status == 'COMPLETED'

    def test_journalist_cannot_publish(self, translated_group, journalist):
        story, _ = translated_group

        with pytest.raises(ForbiddenError):
            publish_group(story, journalist)

    def test_translation_cannot_be_published_alone(self, translated_group, sub_editor):
        _, assignment = translated_group

        with pytest.raises(InvalidTransitionError):
            publish_group(assignment.translated_story, sub_editor)

    def test_published_group_is_terminal(self, translated_group, sub_editor):
        story, _ = translated_group
        publish_group(story, sub_editor)

        with pytest.raises(AlreadyTerminalError):
            publish_group(story, sub_editor)

    def test_unready_group_reports_pending_languages(
        self, journalist, sub_editor, xhosa_translator, approved_story,
    ):
        story = approved_story(journalist, sub_editor)
        request_translations(story, sub_editor, [{'language': 'XHOSA', 'translator_id': xhosa_translator.pk}])

        with pytest.raises(InvalidTransitionError) as excinfo:
            publish_group(story, sub_editor)

        assert excinfo.value.error_details['pending_languages'] == ['XHOSA']

    def test_member_drift_rolls_back_whole_group(self, translated_group, sub_editor, open_task):
        story, assignment = translated_group
        Story.objects.filter(pk=assignment.translated_story_id).update(stage='DRAFT')

        # Readiness passed before the member drifted
        with patch('apps.stories.publishing.is_group_ready', return_value=True):
            with pytest.raises(StaleStateError):
                publish_group(story, sub_editor)

        story.refresh_from_db()
        assert story.stage == 'TRANSLATED'
        assert story.published_at is None
        assert not history_for(story, action='PUBLISH_GROUP').exists()
        assert open_task(story, 'STORY_PUBLISH').status == 'PENDING'
