from django.db import models

from commons import chat
from commons.exceptions import PermissionDenied, ValidationFailed
from commons.models import Conversation, ConversationMember, Notification
from commons.tests.factories import CommonsTestCase, make_user


class ContactTests(CommonsTestCase):

    def setUp(self):
        super().setUp()
        self.member = make_user("ama@example.com", name="Ama")
        self.peer = make_user("kofi@example.com", name="Kofi")
        self.agent = make_user("agent@example.com", name="Agent", role="agent")
        self.admin = make_user("admin@example.com", name="Admin", role="admin")
        self.pending = make_user("new@example.com", name="New", status="pending")

    def test_member_direct_contacts_are_members_and_admins(self):
        contacts = set(chat.chat_contacts(self.member))
        self.assertEqual(contacts, {self.peer, self.admin})

    def test_member_group_contacts_include_agents(self):
        contacts = set(chat.chat_contacts(self.member, for_group=True))
        self.assertEqual(contacts, {self.peer, self.agent, self.admin})

    def test_admin_sees_every_active_user(self):
        contacts = set(chat.chat_contacts(self.admin))
        self.assertEqual(contacts, {self.member, self.peer, self.agent})

    def test_pending_user_has_no_contacts(self):
        self.assertFalse(chat.chat_contacts(self.pending).exists())


class DirectChatTests(CommonsTestCase):

    def setUp(self):
        super().setUp()
        self.ama = make_user("ama@example.com", name="Ama")
        self.kofi = make_user("kofi@example.com", name="Kofi")

    def test_start_chat_creates_once(self):
        conversation, created = chat.start_chat(self.ama, self.kofi)

        self.assertTrue(created)
        low, high = sorted([self.ama.pk, self.kofi.pk])
        self.assertEqual(conversation.dm_key, f"{low}_{high}")
        self.assertEqual(conversation.last_message, "Chat started.")
        notice = Notification.objects.get()
        self.assertEqual(notice.user, self.kofi)
        self.assertEqual(notice.notification_type, "NEW_CHAT")
        self.assertEqual(notice.message, "Ama started a conversation with you.")

        again, created = chat.start_chat(self.kofi, self.ama)
        self.assertFalse(created)
        self.assertEqual(again, conversation)
        self.assertEqual(Conversation.objects.count(), 1)
        self.assertEqual(Notification.objects.count(), 1)

    def test_cannot_chat_with_self(self):
        with self.assertRaises(ValidationFailed):
            chat.start_chat(self.ama, self.ama)

    def test_member_cannot_start_chat_with_agent(self):
        agent = make_user("agent@example.com", role="agent")
        with self.assertRaises(PermissionDenied):
            chat.start_chat(self.ama, agent)

    def test_send_message_updates_conversation_and_notifies(self):
        conversation, _ = chat.start_chat(self.ama, self.kofi)
        Notification.objects.all().delete()

        message = chat.send_message(conversation, self.ama, "Akwaaba!")

        conversation.refresh_from_db()
        self.assertEqual(conversation.last_message, "Akwaaba!")
        self.assertEqual(conversation.last_message_sender, self.ama)
        self.assertEqual(conversation.last_message_at, message.timestamp)
        notice = Notification.objects.get()
        self.assertEqual(notice.user, self.kofi)
        self.assertEqual(notice.message, 'Ama: "Akwaaba!"')
        self.assertEqual(notice.link, str(conversation.id))

    def test_long_messages_are_snipped(self):
        conversation, _ = chat.start_chat(self.ama, self.kofi)
        text = "x" * 60
        chat.send_message(conversation, self.ama, text)

        notice = Notification.objects.get(notification_type="NEW_MESSAGE")
        self.assertEqual(notice.message, 'Ama: "' + "x" * 47 + '..."')

    def test_exactly_fifty_characters_not_snipped(self):
        conversation, _ = chat.start_chat(self.ama, self.kofi)
        chat.send_message(conversation, self.ama, "y" * 50)
        notice = Notification.objects.get(notification_type="NEW_MESSAGE")
        self.assertEqual(notice.message, 'Ama: "' + "y" * 50 + '"')

    def test_unread_until_marked_read(self):
        conversation, _ = chat.start_chat(self.ama, self.kofi)
        self.assertEqual(chat.unread_conversation_count(self.kofi), 0)

        chat.send_message(conversation, self.ama, "Are you coming?")
        self.assertEqual(chat.unread_conversation_count(self.kofi), 1)
        self.assertEqual(chat.unread_conversation_count(self.ama), 0)

        chat.mark_read(conversation, self.kofi)
        self.assertEqual(chat.unread_conversation_count(self.kofi), 0)

    def test_outsider_cannot_send(self):
        conversation, _ = chat.start_chat(self.ama, self.kofi)
        outsider = make_user("x@example.com")
        with self.assertRaises(PermissionDenied):
            chat.send_message(conversation, outsider, "Hi")

    def test_messages_after_id(self):
        conversation, _ = chat.start_chat(self.ama, self.kofi)
        first = chat.send_message(conversation, self.ama, "one")
        second = chat.send_message(conversation, self.kofi, "two")

        self.assertEqual(list(chat.messages_for(conversation, self.ama)), [first, second])
        self.assertEqual(list(chat.messages_for(conversation, self.ama, after=first.id)), [second])

    def test_conversations_newest_first(self):
        kojo = make_user("kojo@example.com", name="Kojo")
        older, _ = chat.start_chat(self.ama, self.kofi)
        newer, _ = chat.start_chat(self.ama, kojo)
        chat.send_message(older, self.kofi, "bump")

        ordered = [c for c, _, _ in chat.conversations_for(self.ama)]
        self.assertEqual(ordered, [older, newer])


class GroupChatTests(CommonsTestCase):

    def setUp(self):
        super().setUp()
        self.ama = make_user("ama@example.com", name="Ama")
        self.kofi = make_user("kofi@example.com", name="Kofi")
        self.agent = make_user("agent@example.com", name="Esi", role="agent")
        self.group = chat.create_group_chat(self.ama, "Circle Elders", [self.kofi, self.agent])

    def test_group_created_with_creator_as_admin(self):
        self.assertTrue(self.group.is_group)
        self.assertEqual(self.group.last_message, "Ama created the group.")
        self.assertTrue(ConversationMember.objects.get(conversation=self.group, user=self.ama).is_admin)
        self.assertEqual(set(chat.group_members(self.group, self.kofi)), {self.ama, self.kofi, self.agent})

    def test_group_needs_a_name(self):
        with self.assertRaises(ValidationFailed):
            chat.create_group_chat(self.ama, " ", [self.kofi])

    def test_group_message_notice(self):
        chat.send_message(self.group, self.ama, "Meeting at noon")

        notices = Notification.objects.filter(notification_type="NEW_MESSAGE")
        self.assertEqual({n.user for n in notices}, {self.kofi, self.agent})
        self.assertEqual(notices[0].message, 'Ama in Circle Elders: "Meeting at noon"')

    def test_long_group_notice_is_stored_whole(self):
        long_name = "Northern Region Weavers and Farmers Cooperative " * 5
        group = chat.create_group_chat(self.ama, long_name, [self.kofi])
        chat.send_message(group, self.ama, "z" * 80)

        notice = Notification.objects.get(notification_type="NEW_MESSAGE", user=self.kofi)
        self.assertGreater(len(notice.message), 255)
        self.assertTrue(notice.message.endswith('"' + "z" * 47 + '..."'))
        self.assertIsInstance(Notification._meta.get_field("message"), models.TextField)

    def test_only_group_admin_updates_members(self):
        kojo = make_user("kojo@example.com", name="Kojo")
        with self.assertRaises(PermissionDenied):
            chat.update_group_members(self.group, self.kofi, [kojo])

        members = chat.update_group_members(self.group, self.ama, [self.kofi, kojo])
        self.assertEqual(set(members), {self.ama, self.kofi, kojo})

    def test_update_members_rejects_inactive_users(self):
        ousted = make_user("ousted@example.com", name="Ousted", status="ousted")

        with self.assertRaises(PermissionDenied):
            chat.update_group_members(self.group, self.ama, [self.kofi, ousted])
        self.assertFalse(ConversationMember.objects.filter(conversation=self.group, user=ousted).exists())
        self.assertEqual(set(chat.group_members(self.group, self.ama)), {self.ama, self.kofi, self.agent})

    def test_leaving_hands_admin_to_next_member(self):
        chat.leave_group(self.group, self.ama)

        remaining = ConversationMember.objects.filter(conversation=self.group)
        self.assertEqual({m.user for m in remaining}, {self.kofi, self.agent})
        self.assertEqual(remaining.filter(is_admin=True).count(), 1)
        with self.assertRaises(PermissionDenied):
            chat.send_message(self.group, self.ama, "Still here?")
