"""
API tests for the editorial dashboards.
"""

from datetime import timedelta

import pytest
from django.utils import timezone

from apps.stories.models import Story


@pytest.mark.django_db
class TestEditorialAccess:

    @pytest.mark.parametrize('path', [
        '/api/editorial/pipeline/',
        '/api/editorial/workload/',
        '/api/editorial/health/',
        '/api/editorial/queue/DRAFT/',
        '/api/editorial/time-sensitive/',
    ])
    def test_journalists_are_refused(self, client_for, journalist, path):
        response = client_for(journalist).get(path)

        assert response.status_code == 403
        assert response.data['error']['code'] == 'PERMISSION_DENIED'

    def test_anonymous_is_refused(self, api_client):
        assert api_client.get('/api/editorial/pipeline/').status_code == 401


@pytest.mark.django_db
class TestEditorialDashboards:

    def test_pipeline(self, client_for, sub_editor, journalist, story_factory):
        story_factory(journalist)

        response = client_for(sub_editor).get('/api/editorial/pipeline/')

        assert response.status_code == 200
        assert response.data['stages'][0]['stage'] == 'DRAFT'
        assert response.data['stages'][0]['count'] == 1
        assert 'timestamp' in response.data

    def test_workload_role_is_case_insensitive(self, client_for, sub_editor, editor):
        response = client_for(sub_editor).get('/api/editorial/workload/', {'role': 'sub_editor'})

        assert response.status_code == 200
        assert response.data['role'] == 'SUB_EDITOR'
        assert len(response.data['workload']) == 2

    def test_workload_unknown_role(self, client_for, sub_editor):
        response = client_for(sub_editor).get('/api/editorial/workload/', {'role': 'intern'})

        assert response.status_code == 400
        assert response.data['error']['field'] == 'role'

    def test_health(self, client_for, editor):
        response = client_for(editor).get('/api/editorial/health/')

        assert response.status_code == 200
        assert response.data['total_in_pipeline'] == 0

    def test_queue(self, client_for, sub_editor, journalist, story_factory):
        story = story_factory(journalist)

        response = client_for(sub_editor).get('/api/editorial/queue/draft/')

        assert response.status_code == 200
        assert response.data['stage'] == 'DRAFT'
        assert [entry['id'] for entry in response.data['stories']] == [str(story.pk)]

    def test_queue_unknown_stage(self, client_for, sub_editor):
        response = client_for(sub_editor).get('/api/editorial/queue/archived/')

        assert response.status_code == 400
        assert response.data['error']['details']['stages'][0] == 'DRAFT'

    def test_time_sensitive(self, client_for, sub_editor, journalist, story_factory):
        story = story_factory(journalist, follow_up_date=timezone.now() + timedelta(days=1))
        story_factory(journalist, title='No follow-up')

        response = client_for(sub_editor).get('/api/editorial/time-sensitive/', {'window_days': '3'})

        assert response.status_code == 200
        assert [entry['id'] for entry in response.data['stories']] == [str(story.pk)]
        assert Story.objects.count() == 2

    def test_time_sensitive_bad_window(self, client_for, sub_editor):
        response = client_for(sub_editor).get('/api/editorial/time-sensitive/', {'window_days': 'soon'})

        assert response.status_code == 400
        assert response.data['error']['field'] == 'window_days'
