"""
Tests for request ID propagation.
"""

import logging
import uuid

import pytest

from apps.core.middleware import (
    RequestIDFilter,
    clear_request_context,
    get_request_context,
    get_request_id,
    set_request_context,
)


class TestRequestIDMiddleware:

    def test_response_carries_generated_request_id(self, client):
        response = client.get('/livez/')

        assert response.status_code == 200
        uuid.UUID(response['X-Request-ID'])

    def test_incoming_request_id_is_echoed(self, client):
        request_id = str(uuid.uuid4())
        response = client.get('/livez/', HTTP_X_REQUEST_ID=request_id)

        assert response['X-Request-ID'] == request_id

    def test_malformed_request_id_is_replaced(self, client):
        response = client.get('/livez/', HTTP_X_REQUEST_ID='not-a-uuid')

        assert response['X-Request-ID'] != 'not-a-uuid'
        uuid.UUID(response['X-Request-ID'])

    def test_context_is_cleared_after_response(self, client):
        client.get('/livez/')
        assert get_request_id() is None


class TestRequestContext:

    def test_set_and_clear(self):
        set_request_context('abc', user_id='7', path='/api/stories/')
        assert get_request_context() == {'request_id': 'abc', 'user_id': '7', 'path': '/api/stories/'}

        clear_request_context()
        assert get_request_id() is None


class TestRequestIDFilter:

    def _record(self):
        return logging.LogRecord('apps', logging.INFO, __file__, 1, 'message', None, None)

    def test_filter_uses_dash_outside_requests(self):
        record = self._record()
        assert RequestIDFilter().filter(record)
        assert record.request_id == '-'

    def test_filter_uses_current_request_id(self):
        set_request_context('req-123')
        try:
            record = self._record()
            RequestIDFilter().filter(record)
        finally:
            clear_request_context()
        assert record.request_id == 'req-123'


@pytest.mark.django_db
def test_api_error_body_uses_request_id(client_for, journalist):
    request_id = str(uuid.uuid4())
    response = client_for(journalist).get('/api/editorial/pipeline/', HTTP_X_REQUEST_ID=request_id)

    assert response.status_code == 403
    assert response.data['request_id'] == request_id
