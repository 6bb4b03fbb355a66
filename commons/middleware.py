"""
================================================================================
UBUNTIUM GLOBAL COMMONS - CUSTOM MIDDLEWARE
================================================================================

@file        middleware.py
@description Timezone activation and presence heartbeat

MODULE PURPOSE
================================================================================
1. TimezoneMiddleware
   - Activates the user's timezone for datetime rendering
   - Falls back to UTC for anonymous users or invalid timezones

2. UpdateLastSeenMiddleware
   - Refreshes the user's presence flag on every authenticated request
   - Writes last_seen / online to the database at most once per 30 seconds

CACHING STRATEGY
================================================================================
1. Presence flag (PRESENCE_TIMEOUT seconds):
   Key: "presence:{user_id}"
   Refreshed on every request, read by presence.presence_for()

2. Write Throttle Cache (30 seconds):
   Key: "last_seen_update_{user_id}"
   Purpose: Prevent frequent database writes

ONLINE STATUS LOGIC
================================================================================
A user is online while their presence key exists. Logging out deletes it;
closing the tab lets it expire.

================================================================================
"""

import logging
from datetime import timedelta

import pytz
from django.core.cache import cache
from django.utils import timezone

from . import presence

logger = logging.getLogger(__name__)

WRITE_THROTTLE_SECONDS = 30


# ============================================================================
# TIMEZONE MIDDLEWARE
# ============================================================================

class TimezoneMiddleware:
    """Render datetimes in the signed-in user's zone; UTC otherwise."""

    def __init__(self, get_response):
        self.get_response = get_response

    @staticmethod
    def zone_for(user):
        name = getattr(user, 'timezone', None) if user.is_authenticated else None
        if not name:
            return pytz.UTC
        try:
            return pytz.timezone(name)
        except pytz.UnknownTimeZoneError:
            logger.debug(f"Unknown timezone {name!r} for user {user.id}, using UTC")
            return pytz.UTC

    def __call__(self, request):
        timezone.activate(self.zone_for(request.user))
        return self.get_response(request)


# ============================================================================
# LAST SEEN / PRESENCE TRACKING MIDDLEWARE
# ============================================================================

class UpdateLastSeenMiddleware:
    """
    Keep the presence flag fresh for authenticated users.

    Example Timeline:
        00:00 - Request 1: presence refreshed, DB write + throttle set
        00:15 - Request 2: presence refreshed, no DB write
        00:31 - Request 3: presence refreshed, DB write + throttle set
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        if getattr(request, 'user', None) and request.user.is_authenticated:
            user = request.user
            now = timezone.now()

            presence.heartbeat(user)

            cache_key = f"last_seen_update_{user.id}"
            last_update = cache.get(cache_key)
            if not last_update or (now - last_update) > timedelta(seconds=WRITE_THROTTLE_SECONDS):
                user.last_seen = now
                user.online = True
                try:
                    user.save(update_fields=['last_seen', 'online'])
                    cache.set(cache_key, now, WRITE_THROTTLE_SECONDS)
                except Exception:
                    # Request flow continues without the write
                    logger.exception(f"Failed to update last_seen for user {user.id}")

        return self.get_response(request)
