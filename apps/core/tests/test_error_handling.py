"""
Tests for the workflow error taxonomy and the API exception handler.
"""

import pytest
from django.core.exceptions import ValidationError as DjangoValidationError
from django.http import Http404
from rest_framework.exceptions import NotAuthenticated

from apps.core.exceptions import (
    AlreadyTerminalError,
    ErrorCode,
    ForbiddenError,
    InvalidTransitionError,
    NotFoundError,
    StaleStateError,
    ValidationFailedError,
    newsroom_exception_handler,
)


class TestWorkflowExceptions:

    @pytest.mark.parametrize('exc_class, status_code, code', [
        (InvalidTransitionError, 409, ErrorCode.INVALID_TRANSITION),
        (ForbiddenError, 403, ErrorCode.FORBIDDEN),
        (StaleStateError, 409, ErrorCode.STALE_STATE),
        (ValidationFailedError, 400, ErrorCode.VALIDATION_FAILED),
        (NotFoundError, 404, ErrorCode.NOT_FOUND),
        (AlreadyTerminalError, 409, ErrorCode.ALREADY_TERMINAL),
    ])
    def test_status_and_code(self, exc_class, status_code, code):
        exc = exc_class("boom")
        assert exc.status_code == status_code
        assert exc.error_code is code
        assert exc.message == "boom"

    def test_default_message(self):
        assert ForbiddenError().message == "You are not allowed to perform this action"

    def test_only_stale_state_is_retryable(self):
        body = StaleStateError("lost the race").get_error_response('rid').to_dict()
        assert body['error']['details'] == {'retryable': True}

        body = InvalidTransitionError("nope").get_error_response('rid').to_dict()
        assert 'details' not in body['error']

    def test_field_and_details_are_serialized(self):
        exc = ValidationFailedError("Bad outcome", field='outcome', details={'allowed_outcomes': ['submit']})
        body = exc.get_error_response('rid').to_dict()

        assert body == {
            'error': {
                'code': 'VALIDATION_FAILED',
                'message': 'Bad outcome',
                'field': 'outcome',
                'details': {'allowed_outcomes': ['submit']},
            },
            'request_id': 'rid',
        }


class TestExceptionHandler:

    def test_workflow_exception(self):
        response = newsroom_exception_handler(InvalidTransitionError("Cannot approve"), {})

        assert response.status_code == 409
        assert response.data['error']['code'] == 'INVALID_TRANSITION'
        assert response.data['error']['message'] == 'Cannot approve'
        assert response.data['request_id']

    def test_django_validation_error(self):
        response = newsroom_exception_handler(DjangoValidationError("Title too long"), {})

        assert response.status_code == 400
        assert response.data['error']['code'] == 'VALIDATION_FAILED'
        assert response.data['error']['message'] == 'Title too long'

    def test_http_404(self):
        response = newsroom_exception_handler(Http404(), {})

        assert response.status_code == 404
        assert response.data['error']['code'] == 'NOT_FOUND'

    def test_drf_authentication_error(self):
        response = newsroom_exception_handler(NotAuthenticated(), {})

        assert response.status_code == 401
        assert response.data['error']['code'] == 'AUTHENTICATION_REQUIRED'

    def test_unexpected_exception_becomes_internal_error(self):
        response = newsroom_exception_handler(RuntimeError("kaboom"), {})

        assert response.status_code == 500
        assert response.data['error']['code'] == 'INTERNAL_ERROR'
        assert 'kaboom' not in response.data['error']['message']


@pytest.mark.django_db
def test_serializer_errors_are_wrapped(client_for, journalist):
    response = client_for(journalist).post('/api/stories/', {'title': ''}, format='json')

    assert response.status_code == 400
    assert response.data['error']['code'] == 'VALIDATION_FAILED'
    assert 'title' in response.data['error']['details']
