"""
Online presence backed by the Django cache.

The cache holds one key per user ("presence:<id>") that expires after
PRESENCE_TIMEOUT seconds without a heartbeat. The flag and timestamp are
mirrored to User.online / User.last_seen so that presence survives a cache
flush and can be listed from the database.
"""

import logging

from django.conf import settings
from django.core.cache import cache
from django.utils import timezone

from .models import User

logger = logging.getLogger(__name__)


def presence_key(user_id):
    return f"presence:{user_id}"


def set_online(user):
    now = timezone.now()
    cache.set(presence_key(user.id), now, settings.PRESENCE_TIMEOUT)
    user.online = True
    user.last_seen = now
    User.objects.filter(pk=user.pk).update(online=True, last_seen=now)


def heartbeat(user):
    """Refresh the cache flag only; the middleware throttles database writes."""
    cache.set(presence_key(user.id), timezone.now(), settings.PRESENCE_TIMEOUT)


def go_offline(user):
    now = timezone.now()
    cache.delete(presence_key(user.id))
    user.online = False
    user.last_seen = now
    User.objects.filter(pk=user.pk).update(online=False, last_seen=now)
    logger.debug(f"User {user.id} went offline")


def presence_for(ids):
    """Return {id: {"online": bool, "last_seen": datetime|None}} for the given ids."""
    ids = [int(i) for i in ids]
    flags = cache.get_many([presence_key(i) for i in ids])
    result = {}
    for user_id, last_seen in User.objects.filter(id__in=ids).values_list('id', 'last_seen'):
        cached = flags.get(presence_key(user_id))
        result[user_id] = {
            "online": cached is not None,
            "last_seen": cached or last_seen,
        }
    return result
