"""
Model -> dict helpers for the JSON views.
"""

from .models import DISTRESS_AUTHOR_NAME
from .utils import format_time_ago


def _iso(value):
    return value.isoformat() if value else None


def picture_url(user):
    if user and user.profile_picture:
        return user.profile_picture.url
    return None


def user_summary(user):
    return {
        "id": user.id,
        "name": user.name,
        "role": user.role,
        "circle": user.circle,
        "status": user.status,
        "profile_picture": picture_url(user),
        "online": user.is_online,
    }


def user_detail(user):
    data = user_summary(user)
    data.update({
        "email": user.email,
        "phone": user.phone,
        "address": user.address,
        "bio": user.bio,
        "id_card_number": user.id_card_number,
        "credibility_score": user.credibility_score,
        "agent_code": user.agent_code,
        "distress_calls_available": user.distress_calls_available,
        "last_distress_post": user.last_distress_post_id,
        "email_verified": user.email_verified,
        "timezone": user.timezone,
        "last_seen": _iso(user.last_seen),
    })
    return data


def member_dict(member):
    data = {
        "id": member.id,
        "full_name": member.full_name,
        "phone": member.phone,
        "email": member.email,
        "circle": member.circle,
        "registration_amount": str(member.registration_amount),
        "payment_status": member.payment_status,
        "agent_id": member.agent_id,
        "agent_name": member.agent_name,
        "date_registered": _iso(member.date_registered),
        "membership_card_id": member.membership_card_id,
        "welcome_message": member.welcome_message,
        "user_id": member.user_id,
        "needs_welcome_update": member.needs_welcome_update,
    }
    for field in ('bio', 'profession', 'skills', 'awards', 'interests', 'passions',
                  'gender', 'age', 'address', 'national_id'):
        data[field] = getattr(member, field)
    if hasattr(member, 'is_duplicate_email'):
        data["is_duplicate_email"] = member.is_duplicate_email
    return data


def post_dict(post, viewer):
    """Distress posts hide their author from everyone but the author and admins."""
    reveal = not post.is_distress or viewer.is_admin_role or viewer.pk == post.author_id
    upvoter_ids = [u.pk for u in post.upvotes.all()]
    data = {
        "id": post.id,
        "kind": "post",
        "author_id": post.author_id if reveal else None,
        "author_name": post.author_name if not post.is_distress else DISTRESS_AUTHOR_NAME,
        "author_circle": post.author_circle,
        "content": post.content,
        "date": _iso(post.date),
        "time_ago": format_time_ago(post.date),
        "type": post.post_type,
        "is_pinned": post.is_pinned,
        "upvotes": len(upvoter_ids),
        "upvoted": viewer.pk in upvoter_ids,
        "comment_count": post.comments.count(),
        "can_edit": post.author_id == viewer.pk,
        "can_delete": post.author_id == viewer.pk or viewer.is_admin_role,
        "reposted_from": None,
    }
    if post.reposted_from_id and post.reposted_from is not None:
        original = post.reposted_from
        data["reposted_from"] = {
            "id": original.id,
            "author_id": original.author_id,
            "author_name": original.author_name,
            "content": original.content,
            "date": _iso(original.date),
        }
    return data


def comment_dict(comment, viewer):
    return {
        "id": comment.id,
        "post_id": comment.post_id,
        "author_id": comment.author_id,
        "author_name": comment.author_name,
        "content": comment.content,
        "timestamp": _iso(comment.timestamp),
        "upvotes": comment.upvotes.count(),
        "upvoted": comment.upvotes.filter(pk=viewer.pk).exists(),
    }


def report_dict(report):
    return {
        "id": report.id,
        "reporter_id": report.reporter_id,
        "reporter_name": report.reporter_name,
        "post_id": report.post_id,
        "post_author_id": report.post_author_id,
        "post_content": report.post_content,
        "reason": report.reason,
        "details": report.details,
        "date": _iso(report.date),
        "status": report.status,
    }


def notification_dict(notification):
    return {
        "id": notification.id,
        "kind": "notification",
        "type": notification.notification_type,
        "message": notification.message,
        "link": notification.link,
        "causer_id": notification.causer_id,
        "causer_name": notification.causer_name,
        "timestamp": _iso(notification.timestamp),
        "read": notification.is_read,
    }


def activity_dict(activity):
    return {
        "id": activity.id,
        "kind": "activity",
        "type": activity.activity_type,
        "message": activity.message,
        "link": activity.link,
        "causer_id": activity.causer_id,
        "causer_name": activity.causer_name,
        "causer_circle": activity.causer_circle,
        "timestamp": _iso(activity.timestamp),
    }


def conversation_dict(conversation, membership, unread, viewer):
    members = list(conversation.members.select_related('user'))
    data = {
        "id": conversation.id,
        "is_group": conversation.is_group,
        "name": conversation.name,
        "members": [m.user_id for m in members],
        "member_names": {str(m.user_id): m.display_name for m in members},
        "last_message": conversation.last_message,
        "last_message_sender_id": conversation.last_message_sender_id,
        "last_message_at": _iso(conversation.last_message_at),
        "unread": unread,
        "is_admin": membership.is_admin,
    }
    if not conversation.is_group:
        other = next((m for m in members if m.user_id != viewer.pk), None)
        data["name"] = other.display_name if other else ""
        data["other_user_id"] = other.user_id if other else None
    return data


def message_dict(message):
    return {
        "id": message.id,
        "sender_id": message.sender_id,
        "sender_name": message.sender_name,
        "text": message.text,
        "timestamp": _iso(message.timestamp),
    }


def broadcast_dict(broadcast):
    return {"id": broadcast.id, "message": broadcast.message, "date": _iso(broadcast.date)}
