"""
================================================================================
UBUNTIUM GLOBAL COMMONS - CONTEXT PROCESSORS
================================================================================

@file        context_processors.py
@description Unread badge counts shared by every response

MODULE PURPOSE
================================================================================
1. unread_counts() - Provides unread conversation and notification counts

Registered in TEMPLATES['OPTIONS']['context_processors'] and also served as
JSON by views.badges so clients can poll the same numbers:

    GET /badges
    {"unread_messages_count": 2, "unread_notifications_count": 5}

PERFORMANCE CONSIDERATIONS
================================================================================
- Early return for anonymous users
- Notifications counted with .count() at the database level
- Conversations are checked per membership (a user belongs to few)

================================================================================
"""

from .chat import unread_conversation_count
from .notifications import unread_notification_count


def unread_counts(request):
    """
    Unread badge counts for the current user.

    Returns:
        dict: {
            "unread_messages_count": conversations with an unread last message,
            "unread_notifications_count": notifications not yet marked read,
        }
    """
    if not request.user.is_authenticated:
        return {
            "unread_messages_count": 0,
            "unread_notifications_count": 0,
        }

    return {
        "unread_messages_count": unread_conversation_count(request.user),
        "unread_notifications_count": unread_notification_count(request.user),
    }
