"""
Direct and group conversations.

A conversation is unread for a member when its last message is newer than
the member's `last_read_at` and was sent by someone else.
"""

import logging

from django.db import IntegrityError, transaction
from django.db.models import Q
from django.utils import timezone

from . import notifications
from .exceptions import NotFound, PermissionDenied, ValidationFailed
from .feed import require_active
from .models import Conversation, ConversationMember, Message, User
from .utils import snippet

logger = logging.getLogger(__name__)


def dm_key(user_a, user_b):
    low, high = sorted([user_a.pk, user_b.pk])
    return f"{low}_{high}"


def chat_contacts(user, for_group=False):
    """Who `user` may start a chat with (or add to a group)."""
    if not user.can_participate:
        return User.objects.none()
    active = User.objects.filter(status='active').exclude(pk=user.pk)
    if user.is_admin_role or (for_group and user.role in ('member', 'agent')):
        return active.order_by('name')
    if user.role in ('member', 'agent'):
        return (
            User.objects.filter(Q(role='member', status='active') | Q(role='admin'))
            .exclude(pk=user.pk)
            .order_by('name')
        )
    return User.objects.none()


def get_membership(conversation, user):
    try:
        return ConversationMember.objects.get(conversation=conversation, user=user)
    except ConversationMember.DoesNotExist:
        raise PermissionDenied("You are not a member of this conversation.")


def is_unread(conversation, membership):
    if conversation.last_message_sender_id in (None, membership.user_id):
        return False
    return membership.last_read_at is None or conversation.last_message_at > membership.last_read_at


def conversations_for(user):
    """[(conversation, membership, unread)] newest activity first."""
    memberships = (
        ConversationMember.objects.filter(user=user)
        .select_related('conversation', 'conversation__last_message_sender')
        .order_by('-conversation__last_message_at', '-conversation__id')
    )
    return [(m.conversation, m, is_unread(m.conversation, m)) for m in memberships]


def unread_conversation_count(user):
    return sum(1 for _, _, unread in conversations_for(user) if unread)


def start_chat(user, other):
    require_active(user)
    if user.pk == other.pk:
        raise ValidationFailed("You cannot start a chat with yourself.")
    if not chat_contacts(user).filter(pk=other.pk).exists():
        raise PermissionDenied("You cannot message this user.")

    key = dm_key(user, other)
    existing = Conversation.objects.filter(dm_key=key).first()
    if existing is not None:
        return existing, False

    try:
        with transaction.atomic():
            conversation = Conversation.objects.create(
                is_group=False,
                created_by=user,
                dm_key=key,
                last_message="Chat started.",
            )
            ConversationMember.objects.bulk_create([
                ConversationMember(conversation=conversation, user=user, display_name=user.name),
                ConversationMember(conversation=conversation, user=other, display_name=other.name),
            ])
    except IntegrityError:
        # Both sides started the chat at the same time
        return Conversation.objects.get(dm_key=key), False

    notifications.notify(
        other,
        'NEW_CHAT',
        f"{user.name} started a conversation with you.",
        link=conversation.id,
        causer=user,
    )
    logger.info(f"Conversation {conversation.id} started by user {user.id}")
    return conversation, True


def create_group_chat(creator, name, members):
    require_active(creator)
    name = (name or "").strip()
    if not name:
        raise ValidationFailed("Group name is required.")
    others = [m for m in members if m.pk != creator.pk]
    if not others:
        raise ValidationFailed("Add at least one other member to the group.")
    allowed = set(chat_contacts(creator, for_group=True).values_list('pk', flat=True))
    if any(m.pk not in allowed for m in others):
        raise PermissionDenied("Some selected users cannot be added to a group.")

    with transaction.atomic():
        conversation = Conversation.objects.create(
            is_group=True,
            name=name,
            created_by=creator,
            last_message=f"{creator.name} created the group.",
        )
        ConversationMember.objects.bulk_create(
            [ConversationMember(conversation=conversation, user=creator, display_name=creator.name, is_admin=True)]
            + [ConversationMember(conversation=conversation, user=m, display_name=m.name) for m in others]
        )
    logger.info(f"Group {conversation.id} '{name}' created with {len(others) + 1} members")
    return conversation


def messages_for(conversation, user, after=None):
    get_membership(conversation, user)
    messages = conversation.messages.all()
    if after:
        messages = messages.filter(id__gt=after)
    return messages


def send_message(conversation, sender, text):
    require_active(sender)
    membership = get_membership(conversation, sender)
    text = (text or "").strip()
    if not text:
        raise ValidationFailed("Message cannot be empty.")

    now = timezone.now()
    with transaction.atomic():
        message = Message.objects.create(
            conversation=conversation,
            sender=sender,
            sender_name=sender.name,
            text=text,
            timestamp=now,
        )
        conversation.last_message = text
        conversation.last_message_sender = sender
        conversation.last_message_at = now
        conversation.save(update_fields=['last_message', 'last_message_sender', 'last_message_at'])
        membership.last_read_at = now
        membership.save(update_fields=['last_read_at'])

    preview = snippet(text)
    if conversation.is_group:
        notice = f'{sender.name} in {conversation.name}: "{preview}"'
    else:
        notice = f'{sender.name}: "{preview}"'
    for member in conversation.members.exclude(user=sender).select_related('user'):
        notifications.notify(member.user, 'NEW_MESSAGE', notice, link=conversation.id, causer=sender)

    return message


def mark_read(conversation, user):
    membership = get_membership(conversation, user)
    membership.last_read_at = timezone.now()
    membership.save(update_fields=['last_read_at'])
    return membership


def group_members(conversation, user):
    get_membership(conversation, user)
    return User.objects.filter(conversation_memberships__conversation=conversation).order_by('name')


def _require_group(conversation):
    if not conversation.is_group:
        raise NotFound("Group not found.")


def update_group_members(conversation, user, members):
    """Replace the member list. The acting user always stays in."""
    _require_group(conversation)
    membership = get_membership(conversation, user)
    if not membership.is_admin and not user.is_admin_role:
        raise PermissionDenied("Only group admins can change members.")

    wanted = {m.pk: m for m in members}
    wanted[user.pk] = user
    current = set(conversation.members.values_list('user_id', flat=True))
    allowed = set(chat_contacts(user, for_group=True).values_list('pk', flat=True))
    if any(pk not in allowed for pk in wanted if pk not in current):
        raise PermissionDenied("Some selected users cannot be added to a group.")

    with transaction.atomic():
        conversation.members.exclude(user_id__in=wanted.keys()).delete()
        ConversationMember.objects.bulk_create([
            ConversationMember(conversation=conversation, user=m, display_name=m.name)
            for pk, m in wanted.items() if pk not in current
        ])
    return group_members(conversation, user)


def leave_group(conversation, user):
    _require_group(conversation)
    membership = get_membership(conversation, user)
    with transaction.atomic():
        membership.delete()
        remaining = conversation.members.order_by('joined_at', 'id')
        if remaining.exists() and not remaining.filter(is_admin=True).exists():
            first = remaining.first()
            first.is_admin = True
            first.save(update_fields=['is_admin'])
    logger.info(f"User {user.id} left group {conversation.id}")
