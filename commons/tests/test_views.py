import re
from decimal import Decimal
from unittest import mock

from django.core import mail

from commons import chat, feed
from commons.gemini import AssistantError, WelcomeMessageError
from commons.models import AssistantMessage, Member, User
from commons.tests.factories import CommonsTestCase, PASSWORD, make_member, make_user

WELCOME = "commons.gemini.generate_welcome_message"


class AuthViewTests(CommonsTestCase):

    def setUp(self):
        super().setUp()
        self.user = make_user("ama@example.com", name="Ama")
        make_member(self.user)

    def _login(self, identifier, password=PASSWORD):
        return self.client.post("/login", {"identifier": identifier, "password": password},
                                content_type="application/json")

    def test_login_by_email_marks_online(self):
        response = self._login("AMA@example.com")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["user"]["id"], self.user.id)
        self.assertIn("profile_completion", response.json())
        self.assertTrue(User.objects.get(pk=self.user.pk).online)

    def test_wrong_password(self):
        response = self._login("ama@example.com", "nope-nope")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"], "Invalid password.")

    def test_ousted_account_refused(self):
        self.user.status = "ousted"
        self.user.save()
        response = self._login("ama@example.com")
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json()["error"], "This account has been suspended.")

    def test_member_without_profile_refused(self):
        make_user("orphan@example.com")
        response = self._login("orphan@example.com")
        self.assertEqual(response.status_code, 404)

    def test_logout_marks_offline(self):
        self._login("ama@example.com")
        response = self.client.post("/logout")
        self.assertEqual(response.status_code, 200)
        self.assertFalse(User.objects.get(pk=self.user.pk).online)

    def test_member_signup_sends_verification(self):
        response = self.client.post("/register/member", {
            "full_name": "Kojo Annan",
            "email": "kojo@example.com",
            "circle": "Cape Coast",
            "password": PASSWORD,
        }, content_type="application/json")

        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()["member"]["payment_status"], "pending_verification")
        self.assertEqual(len(mail.outbox), 1)
        self.assertIn("/verify-email/", mail.outbox[0].body)

    def test_agent_signup_duplicate_email(self):
        response = self.client.post("/register/agent", {
            "name": "Ama", "email": "ama@example.com", "password": PASSWORD, "circle": "Accra",
        }, content_type="application/json")
        self.assertEqual(response.status_code, 409)

    def test_null_fields_are_rejected_cleanly(self):
        response = self.client.post("/register/agent", {
            "name": None, "email": "new-agent@example.com", "password": PASSWORD, "circle": None,
        }, content_type="application/json")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"], "Name, email and circle are required.")

    def test_profile_update_treats_null_as_blank(self):
        self.client.force_login(self.user)
        response = self.client.put("/me", {"phone": None, "bio": "Weaver"}, content_type="application/json")
        self.assertEqual(response.status_code, 200)
        self.user.refresh_from_db()
        self.assertEqual(self.user.phone, "")
        self.assertEqual(self.user.bio, "Weaver")

    def test_json_array_body(self):
        response = self.client.post("/login", [1, 2], content_type="application/json")
        self.assertEqual(response.status_code, 400)

    def test_login_redirect_target_answers_get(self):
        response = self.client.get("/posts", follow=True)
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["next"], "/posts")

    def test_emailed_reset_link_opens(self):
        self.client.post("/password-reset", {"email": "ama@example.com"}, content_type="application/json")
        link = re.search(r"https?://\S+", mail.outbox[0].body).group(0)

        response = self.client.get(link)
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.json()["valid"])

        bogus = self.client.get("/password-reset/confirm?uid=MQ&token=nope")
        self.assertEqual(bogus.status_code, 400)

    def test_invalid_json_body(self):
        response = self.client.post("/login", "{not json", content_type="application/json")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"], "Invalid JSON body")

    def test_activation_flow(self):
        agent = make_user("agent@example.com", role="agent")
        make_member(agent=agent, full_name="Esi", email="esi@example.com")

        lookup = self.client.post("/activate/lookup", {"email": "esi@example.com"}, content_type="application/json")
        self.assertEqual(lookup.json()["member"]["full_name"], "Esi")

        response = self.client.post("/activate", {"email": "esi@example.com", "password": "abc123"},
                                    content_type="application/json")
        self.assertEqual(response.status_code, 201)
        self.assertEqual(self._login("esi@example.com", "abc123").status_code, 200)


class FeedViewTests(CommonsTestCase):

    def setUp(self):
        super().setUp()
        self.ama = make_user("ama@example.com", name="Ama", distress_calls_available=1)
        self.kofi = make_user("kofi@example.com", name="Kofi")
        self.admin = make_user("admin@example.com", name="Admin", role="admin")

    def test_feed_requires_login(self):
        response = self.client.get("/posts")
        self.assertEqual(response.status_code, 302)

    def test_create_and_list_posts(self):
        self.client.force_login(self.ama)
        response = self.client.post("/posts", {"content": "Seeds to share", "type": "offer"},
                                    content_type="application/json")
        self.assertEqual(response.status_code, 201)

        items = self.client.get("/posts?type=offer").json()["items"]
        self.assertEqual([i["content"] for i in items], ["Seeds to share"])

    def test_distress_author_hidden_from_other_members(self):
        post = feed.create_distress_post(self.ama, "Storm damage")

        self.client.force_login(self.kofi)
        item = self.client.get(f"/posts/{post.id}").json()["post"]
        self.assertIsNone(item["author_id"])
        self.assertEqual(item["author_name"], "Anonymous Member")

        self.client.force_login(self.admin)
        item = self.client.get(f"/posts/{post.id}").json()["post"]
        self.assertEqual(item["author_id"], self.ama.id)

    def test_distress_quota_exhausted(self):
        self.client.force_login(self.ama)
        first = self.client.post("/posts/distress", {"content": "Help"}, content_type="application/json")
        self.assertEqual(first.json()["distress_calls_available"], 0)
        second = self.client.post("/posts/distress", {"content": "Help"}, content_type="application/json")
        self.assertEqual(second.status_code, 403)
        self.assertEqual(second.json()["error"], "No distress calls available.")

    def test_upvote(self):
        post = feed.create_post(self.ama, "Hi", "general")
        self.client.force_login(self.kofi)
        response = self.client.post(f"/posts/{post.id}/upvote")
        self.assertEqual(response.json(), {"upvoted": True, "upvotes": 1})

    def test_pin_is_admin_only(self):
        post = feed.create_post(self.ama, "Hi", "general")
        self.client.force_login(self.kofi)
        self.assertEqual(self.client.post(f"/posts/{post.id}/pin").status_code, 403)
        self.client.force_login(self.admin)
        response = self.client.post(f"/posts/{post.id}/pin", {"pinned": True}, content_type="application/json")
        self.assertEqual(response.json(), {"is_pinned": True})

        response = self.client.post(f"/posts/{post.id}/pin", {"pinned": "false"})
        self.assertEqual(response.json(), {"is_pinned": False})

    def test_report_and_resolve(self):
        post = feed.create_post(self.ama, "Spam", "general")
        self.client.force_login(self.kofi)
        self.client.post(f"/posts/{post.id}/report", {"reason": "Spam"}, content_type="application/json")

        self.client.force_login(self.admin)
        report = self.client.get("/manage/reports?status=new").json()["reports"][0]
        response = self.client.post(f"/manage/reports/{report['id']}/resolve")
        self.assertEqual(response.json()["report"]["status"], "resolved")
        self.assertEqual(User.objects.get(pk=self.ama.pk).credibility_score, 75)


class ChatViewTests(CommonsTestCase):

    def setUp(self):
        super().setUp()
        self.ama = make_user("ama@example.com", name="Ama")
        self.kofi = make_user("kofi@example.com", name="Kofi")

    def test_start_chat_and_poll_messages(self):
        self.client.force_login(self.ama)
        response = self.client.post("/conversations/start", {"user_id": self.kofi.id},
                                    content_type="application/json")
        self.assertEqual(response.status_code, 201)
        conversation_id = response.json()["conversation"]["id"]
        self.assertEqual(response.json()["conversation"]["name"], "Kofi")

        again = self.client.post("/conversations/start", {"user_id": self.kofi.id},
                                 content_type="application/json")
        self.assertEqual(again.status_code, 200)

        sent = self.client.post(f"/conversations/{conversation_id}/messages", {"text": "Hello"},
                                content_type="application/json").json()["message"]
        self.client.post(f"/conversations/{conversation_id}/messages", {"text": "Again"},
                         content_type="application/json")

        messages = self.client.get(f"/conversations/{conversation_id}/messages?after={sent['id']}").json()["messages"]
        self.assertEqual([m["text"] for m in messages], ["Again"])

    def test_inbox_unread_and_badges(self):
        conversation, _ = chat.start_chat(self.ama, self.kofi)
        chat.send_message(conversation, self.ama, "Ping")

        self.client.force_login(self.kofi)
        inbox = self.client.get("/conversations").json()["conversations"]
        self.assertTrue(inbox[0]["unread"])
        self.assertEqual(self.client.get("/badges").json()["unread_messages_count"], 1)

        self.client.post(f"/conversations/{conversation.id}/read")
        self.assertEqual(self.client.get("/badges").json()["unread_messages_count"], 0)

    def test_outsider_gets_403(self):
        conversation, _ = chat.start_chat(self.ama, self.kofi)
        self.client.force_login(make_user("x@example.com"))
        response = self.client.get(f"/conversations/{conversation.id}/messages")
        self.assertEqual(response.status_code, 403)

    def test_create_group(self):
        self.client.force_login(self.ama)
        response = self.client.post("/conversations/group", {"name": "Weavers", "member_ids": [self.kofi.id]},
                                    content_type="application/json")
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()["conversation"]["last_message"], "Ama created the group.")

    def test_presence_endpoint(self):
        self.client.force_login(self.ama)
        response = self.client.get(f"/presence?ids={self.ama.id},{self.kofi.id}")
        presence = response.json()["presence"]
        self.assertTrue(presence[str(self.ama.id)]["online"])
        self.assertFalse(presence[str(self.kofi.id)]["online"])


class AgentAndAdminViewTests(CommonsTestCase):

    def setUp(self):
        super().setUp()
        self.agent = make_user("agent@example.com", name="Kwame", role="agent", circle="Tamale")
        self.admin = make_user("admin@example.com", name="Admin", role="admin")
        self.member_user = make_user("ama@example.com", name="Ama")

    def test_agent_registers_member(self):
        self.client.force_login(self.agent)
        with mock.patch(WELCOME, return_value="Welcome!"):
            response = self.client.post("/agent/members", {
                "full_name": "Yaw", "email": "yaw@example.com", "registration_amount": "100",
            }, content_type="application/json")
        self.assertEqual(response.status_code, 201)

        listing = self.client.get("/agent/members").json()
        self.assertEqual(len(listing["members"]), 1)
        self.assertEqual(listing["commission"], "10.00")

    def test_registration_amount_must_be_finite_and_non_negative(self):
        self.client.force_login(self.agent)
        for amount in ("NaN", "Infinity", "-5", "abc"):
            with mock.patch(WELCOME, return_value="Welcome!"):
                response = self.client.post("/agent/members", {
                    "full_name": "Yaw", "email": "yaw@example.com", "registration_amount": amount,
                }, content_type="application/json")
            self.assertEqual(response.status_code, 400, amount)
        self.assertFalse(Member.objects.exists())

    def test_member_cannot_use_agent_tools(self):
        self.client.force_login(self.member_user)
        self.assertEqual(self.client.get("/agent/members").status_code, 403)
        self.assertEqual(self.client.get("/manage/members").status_code, 403)

    def test_approve_view_reports_ai_outage(self):
        pending = make_user("new@example.com", name="New", status="pending")
        member = make_member(pending, payment_status="pending_verification")
        self.client.force_login(self.admin)

        with mock.patch(WELCOME, side_effect=WelcomeMessageError("AI down")):
            response = self.client.post(f"/manage/members/{member.id}/approve")
        self.assertEqual(response.status_code, 503)

        with mock.patch(WELCOME, return_value="Welcome, New!"):
            response = self.client.post(f"/manage/members/{member.id}/approve")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["member"]["payment_status"], "complete")

    def test_admin_members_include_account_state(self):
        make_member(self.member_user)
        self.client.force_login(self.admin)
        row = self.client.get("/manage/members").json()["members"][0]
        self.assertEqual(row["user_status"], "active")
        self.assertFalse(row["is_duplicate_email"])

    def test_agents_csv_export(self):
        make_member(agent=self.agent, registration_amount=Decimal("50"))
        self.client.force_login(self.admin)
        response = self.client.get("/manage/agents/export")
        self.assertEqual(response["Content-Type"], "text/csv")
        lines = response.content.decode().splitlines()
        self.assertTrue(lines[0].startswith("Name,Email,Circle"))
        self.assertTrue(lines[1].startswith("Kwame,agent@example.com,Tamale"))

    def test_broadcasts(self):
        self.client.force_login(self.member_user)
        denied = self.client.post("/broadcasts", {"message": "Hi"}, content_type="application/json")
        self.assertEqual(denied.status_code, 403)

        self.client.force_login(self.admin)
        created = self.client.post("/broadcasts", {"message": "Town hall on Friday"}, content_type="application/json")
        self.assertEqual(created.status_code, 201)

        self.client.force_login(self.member_user)
        listed = self.client.get("/broadcasts").json()["broadcasts"]
        self.assertEqual(listed[0]["message"], "Town hall on Friday")

    def test_role_dashboards(self):
        self.client.force_login(self.agent)
        self.assertEqual(self.client.get("/dashboard").json()["role"], "agent")
        self.client.force_login(self.admin)
        self.assertIn("pending_members", self.client.get("/dashboard").json())

    def test_update_role(self):
        self.client.force_login(self.admin)
        response = self.client.post(f"/manage/users/{self.member_user.id}/role", {"role": "agent"},
                                    content_type="application/json")
        self.assertEqual(response.json()["user"]["role"], "agent")
        self.assertEqual(Member.objects.count(), 0)


class AssistantViewTests(CommonsTestCase):

    def setUp(self):
        super().setUp()
        self.ama = make_user("ama@example.com", name="Ama")
        self.client.force_login(self.ama)

    def test_empty_history_starts_with_greeting(self):
        messages = self.client.get("/assistant").json()["messages"]
        self.assertEqual(messages[0]["author"], "bot")

    def test_reply_is_stored(self):
        with mock.patch("commons.gemini.assistant_reply", return_value="Circles are local groups.") as reply:
            response = self.client.post("/assistant", {"text": "What is a circle?"},
                                        content_type="application/json")

        self.assertEqual(response.json(), {"reply": "Circles are local groups."})
        reply.assert_called_once_with([], "What is a circle?")
        self.assertEqual(
            list(AssistantMessage.objects.values_list("author", flat=True)), ["user", "bot"]
        )

    def test_assistant_outage(self):
        with mock.patch("commons.gemini.assistant_reply", side_effect=AssistantError("down")):
            response = self.client.post("/assistant", {"text": "Hello"}, content_type="application/json")
        self.assertEqual(response.status_code, 503)
        self.assertFalse(AssistantMessage.objects.exists())
