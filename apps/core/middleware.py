"""
Request correlation for the newsroom API.

Every request gets a request id (taken from a well-formed X-Request-ID
header or freshly generated). The id is echoed on the response, added to
log records through RequestIDFilter and stamped on every audit event the
request writes, so an editor can trace a stage change back to the call
that made it.

Management commands and shell sessions can stamp their own audit events
by calling set_request_context() themselves.
"""

import logging
import threading
import time
import uuid

logger = logging.getLogger(__name__)

REQUEST_ID_META_KEY = 'HTTP_X_REQUEST_ID'
REQUEST_ID_HEADER = 'X-Request-ID'

_local = threading.local()

_CONTEXT_FIELDS = ('request_id', 'user_id', 'path')


def normalize_request_id(value):
    """Return ``value`` when it is a UUID string, otherwise a new UUID."""
    if value:
        try:
            return str(uuid.UUID(str(value)))
        except ValueError:
            logger.debug(f"Replacing malformed request id {value!r}")
    return str(uuid.uuid4())


def get_request_id():
    """Request id of the current thread, or None outside a request."""
    return getattr(_local, 'request_id', None)


def get_request_context():
    return {name: getattr(_local, name, None) for name in _CONTEXT_FIELDS}


def set_request_context(request_id, user_id=None, path=None):
    _local.request_id = request_id
    _local.user_id = user_id
    _local.path = path


def clear_request_context():
    for name in _CONTEXT_FIELDS:
        setattr(_local, name, None)


class RequestIDMiddleware:
    """
    Bind a request id to the thread for the lifetime of a request.

    Workflow writes (anything other than GET/HEAD/OPTIONS) are logged with
    their duration once the response is ready.
    """

    SAFE_METHODS = ('GET', 'HEAD', 'OPTIONS')

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        request_id = normalize_request_id(request.META.get(REQUEST_ID_META_KEY))
        request.request_id = request_id

        user = getattr(request, 'user', None)
        user_id = str(user.pk) if user is not None and user.is_authenticated else None
        set_request_context(request_id, user_id=user_id, path=request.path)

        started = time.monotonic()
        try:
            response = self.get_response(request)
            response[REQUEST_ID_HEADER] = request_id
            if request.method not in self.SAFE_METHODS:
                logger.info(
                    f"{request.method} {request.path} -> {response.status_code} "
                    f"in {(time.monotonic() - started) * 1000:.0f}ms"
                )
            return response
        finally:
            clear_request_context()


class RequestIDFilter(logging.Filter):
    """Add ``request_id`` to log records ('-' outside requests)."""

    def filter(self, record):
        record.request_id = get_request_id() or '-'
        return True
