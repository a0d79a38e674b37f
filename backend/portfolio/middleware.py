"""
Basic authentication for the admin API.
"""

import base64
import binascii
import hmac
import logging
from django.conf import settings
from django.http import JsonResponse

logger = logging.getLogger(__name__)

PROTECTED_PREFIXES = ('/api/', '/django-admin/')


class BasicAuthMiddleware:
    """
    Require HTTP basic credentials matching ADMIN_USERNAME / ADMIN_PASSWORD
    on admin paths. Disabled while no password is configured.
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        password = getattr(settings, 'ADMIN_PASSWORD', '')
        if password and request.path.startswith(PROTECTED_PREFIXES):
            if not self.is_authorized(request, settings.ADMIN_USERNAME, password):
                logger.warning(f"Rejected unauthenticated request to {request.path}")
                response = JsonResponse({'error': 'Authentication required'}, status=401)
                response['WWW-Authenticate'] = 'Basic realm="portfolio admin"'
                return response
        return self.get_response(request)

    @staticmethod
    def is_authorized(request, username, password):
        header = request.META.get('HTTP_AUTHORIZATION', '')
        scheme, _, encoded = header.partition(' ')
        if scheme.lower() != 'basic' or not encoded:
            return False
        try:
            decoded = base64.b64decode(encoded.strip()).decode('utf-8')
        except (binascii.Error, UnicodeDecodeError):
            return False
        given_user, sep, given_password = decoded.partition(':')
        if not sep:
            return False
        return (hmac.compare_digest(given_user.encode('utf-8'), username.encode('utf-8'))
                and hmac.compare_digest(given_password.encode('utf-8'), password.encode('utf-8')))
