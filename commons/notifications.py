"""
Personal notifications and the global activity feed.
"""

import logging

from .models import Activity, Notification

logger = logging.getLogger(__name__)

FEED_LIMIT = 50


def notify(recipient, notification_type, message, link='', causer=None):
    if causer is not None and causer.pk == recipient.pk:
        return None
    return Notification.objects.create(
        user=recipient,
        notification_type=notification_type,
        message=message,
        link=str(link),
        causer=causer,
        causer_name=causer.name if causer is not None else '',
    )


def record_activity(activity_type, message, link='', causer=None):
    return Activity.objects.create(
        activity_type=activity_type,
        message=message,
        link=str(link),
        causer=causer,
        causer_name=causer.name if causer is not None else '',
        causer_circle=(causer.circle or 'Unknown') if causer is not None else 'Unknown',
    )


def notifications_for(user, limit=FEED_LIMIT):
    return list(Notification.objects.filter(user=user).select_related('causer')[:limit])


def recent_activity(limit=FEED_LIMIT):
    return list(Activity.objects.select_related('causer')[:limit])


def merged_items(user):
    """Notifications and activity interleaved, newest first."""
    items = notifications_for(user) + recent_activity()
    return sorted(items, key=lambda item: item.timestamp, reverse=True)


def mark_read(notification):
    if not notification.is_read:
        notification.is_read = True
        notification.save(update_fields=['is_read'])


def mark_all_read(user):
    count = Notification.objects.filter(user=user, is_read=False).update(is_read=True)
    logger.debug(f"Marked {count} notifications read for user {user.id}")
    return count


def unread_notification_count(user):
    return Notification.objects.filter(user=user, is_read=False).count()
