"""
================================================================================
PARLEY - CUSTOM MIDDLEWARE
================================================================================

@file        middleware.py
@description Maps social core errors to JSON API responses
@version     1.0.0

MODULE PURPOSE
================================================================================
Views call into the social core (follow_graph, conversations, reset_ledger,
directory), which raises exceptions from social/exceptions.py. This
middleware turns any of them that escape a view into a JSON error body:

    {"error": "<message>"}

with the HTTP status carried by the exception class:

    Unauthorized      -> 401
    NotFound          -> 404
    InvalidOperation  -> 400  (AlreadyExists included)
    ValidationError   -> 400
    InternalError     -> 500

Other exceptions are left to Django's normal handling.

SETTINGS
================================================================================
Add after AuthenticationMiddleware:

    MIDDLEWARE = [
        ...
        'django.contrib.auth.middleware.AuthenticationMiddleware',
        'social.middleware.SocialErrorMiddleware',
        ...
    ]

================================================================================
"""

import logging

from django.http import JsonResponse

from .exceptions import SocialError


logger = logging.getLogger(__name__)


class SocialErrorMiddleware:
    """
    Render SocialError exceptions raised by views as JSON responses.

    Client errors (4xx) are logged at INFO, InternalError at ERROR. The
    message is the one chosen by the core module, which never includes
    internal identifiers beyond what the response contracts already expose.
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        return self.get_response(request)

    def process_exception(self, request, exception):
        if not isinstance(exception, SocialError):
            return None

        if exception.status_code >= 500:
            logger.error(f"{request.method} {request.path} failed: {exception.message}")
        else:
            logger.info(
                f"{request.method} {request.path} rejected with "
                f"{exception.status_code}: {exception.message}"
            )
        return JsonResponse({"error": exception.message}, status=exception.status_code)
