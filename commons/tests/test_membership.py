import re
from decimal import Decimal
from io import StringIO
from unittest import mock

from django.contrib.auth.tokens import default_token_generator
from django.core import mail
from django.core.management import call_command
from django.utils.encoding import force_bytes
from django.utils.http import urlsafe_base64_encode

from commons import membership
from commons.exceptions import Conflict, NotFound, ValidationFailed
from commons.gemini import WelcomeMessageError
from commons.models import Activity, Member, Post, User
from commons.tests.factories import CommonsTestCase, PASSWORD, make_member, make_user

WELCOME = "commons.gemini.generate_welcome_message"


class SignupTests(CommonsTestCase):

    def test_agent_signup_creates_active_agent_with_code(self):
        agent = membership.agent_signup("Efua Agent", "Efua@Example.com", PASSWORD, "Kumasi")

        self.assertEqual(agent.username, "efua@example.com")
        self.assertEqual(agent.role, "agent")
        self.assertEqual(agent.status, "active")
        self.assertEqual(agent.credibility_score, 100)
        self.assertRegex(agent.agent_code, r"^UGC-[A-Z0-9]{6}$")
        self.assertTrue(agent.check_password(PASSWORD))

    def test_agent_signup_rejects_taken_email(self):
        make_user("efua@example.com")
        with self.assertRaises(Conflict):
            membership.agent_signup("Efua", "efua@example.com", PASSWORD, "Kumasi")

    def test_member_signup_creates_pending_records(self):
        member = membership.member_signup({
            "full_name": "Ama Mensah",
            "email": "ama@example.com",
            "circle": "Accra",
            "phone": "0244000000",
            "national_id": "GHA-123",
        }, PASSWORD)

        self.assertEqual(member.payment_status, "pending_verification")
        self.assertEqual(member.membership_card_id, "PENDING")
        self.assertIsNone(member.agent)
        self.assertEqual(member.welcome_message, membership.REVIEW_WELCOME_MESSAGE)
        user = member.user
        self.assertEqual(user.role, "member")
        self.assertEqual(user.status, "pending")
        self.assertEqual(user.distress_calls_available, 0)
        self.assertEqual(user.id_card_number, "GHA-123")

    def test_member_signup_rejects_short_password(self):
        with self.assertRaises(ValidationFailed):
            membership.member_signup(
                {"full_name": "Ama", "email": "ama@example.com", "circle": "Accra"}, "abc"
            )
        self.assertFalse(User.objects.filter(username="ama@example.com").exists())
        self.assertFalse(Member.objects.exists())


class AgentRegistrationTests(CommonsTestCase):

    def setUp(self):
        super().setUp()
        self.agent = make_user("agent@example.com", name="Kwame", role="agent", circle="Tamale")

    def test_register_member_uses_generated_message(self):
        with mock.patch(WELCOME, return_value="Akwaaba, Yaw!") as generate:
            member = membership.register_member(self.agent, {
                "full_name": "Yaw Darko",
                "email": "yaw@example.com",
                "registration_amount": "150.00",
                "payment_status": "installment",
            })

        generate.assert_called_once_with("Yaw Darko", "Tamale")
        self.assertEqual(member.welcome_message, "Akwaaba, Yaw!")
        self.assertFalse(member.needs_welcome_update)
        self.assertEqual(member.circle, "Tamale")
        self.assertEqual(member.agent_name, "Kwame")
        self.assertEqual(member.registration_amount, Decimal("150.00"))
        self.assertTrue(re.match(r"^UGC-M-\d+$", member.membership_card_id))

    def test_register_member_falls_back_when_generation_fails(self):
        with mock.patch(WELCOME, side_effect=WelcomeMessageError("down")):
            member = membership.register_member(self.agent, {"full_name": "Yaw Darko", "email": "yaw@example.com"})

        self.assertEqual(
            member.welcome_message,
            "Welcome to the Ubuntium Global Commons, Yaw Darko! "
            "We are thrilled to have you join the Tamale Circle. I am because we are.",
        )
        self.assertTrue(member.needs_welcome_update)

    def test_commission_counts_completed_payments_only(self):
        make_member(agent=self.agent, email="a@example.com", registration_amount=Decimal("100"))
        make_member(agent=self.agent, email="b@example.com", registration_amount=Decimal("200"))
        make_member(agent=self.agent, email="c@example.com", registration_amount=Decimal("50"),
                    payment_status="installment")

        members = membership.agent_members(self.agent)
        self.assertEqual(membership.agent_commission(members), Decimal("30.00"))

    def test_agents_csv_lists_stats(self):
        make_member(agent=self.agent, registration_amount=Decimal("100"))
        rows = membership.write_agents_csv(StringIO()).getvalue().splitlines()

        self.assertEqual(rows[0].split(","), membership.AGENT_CSV_HEADER)
        self.assertIn("Kwame", rows[1])
        self.assertTrue(rows[1].endswith(",1,10.00"))

    def test_process_pending_welcome_messages_keeps_failures_flagged(self):
        first = make_member(agent=self.agent, email="a@example.com", needs_welcome_update=True)
        second = make_member(agent=self.agent, email="b@example.com", needs_welcome_update=True)

        with mock.patch(WELCOME, side_effect=["Welcome, first!", WelcomeMessageError("down")]):
            updated = membership.process_pending_welcome_messages()

        self.assertEqual(updated, 1)
        first.refresh_from_db()
        second.refresh_from_db()
        self.assertFalse(first.needs_welcome_update)
        self.assertEqual(first.welcome_message, "Welcome, first!")
        self.assertTrue(second.needs_welcome_update)

    def test_management_command_reports_count(self):
        make_member(agent=self.agent, needs_welcome_update=True)
        out = StringIO()
        with mock.patch(WELCOME, return_value="Hello!"):
            call_command("process_welcome_messages", stdout=out)
        self.assertIn("Updated 1 welcome message(s).", out.getvalue())


class ActivationTests(CommonsTestCase):

    def setUp(self):
        super().setUp()
        self.agent = make_user("agent@example.com", role="agent")
        self.member = make_member(agent=self.agent, full_name="Abena Owusu", email="abena@example.com")

    def test_activation_creates_active_member_account(self):
        user = membership.activate_member_account("Abena@example.com", "secret1")

        self.member.refresh_from_db()
        self.assertEqual(self.member.user, user)
        self.assertEqual(user.role, "member")
        self.assertEqual(user.status, "active")
        self.assertEqual(user.distress_calls_available, 2)
        self.assertEqual(user.name, "Abena Owusu")

    def test_activation_requires_six_characters(self):
        with self.assertRaises(ValidationFailed):
            membership.activate_member_account("abena@example.com", "12345")

    def test_activation_only_once(self):
        membership.activate_member_account("abena@example.com", "secret1")
        with self.assertRaises(Conflict):
            membership.lookup_member_for_activation("abena@example.com")

    def test_lookup_ignores_public_signups(self):
        with self.assertRaises(NotFound):
            membership.lookup_member_for_activation("nobody@example.com")


class AdminReviewTests(CommonsTestCase):

    def setUp(self):
        super().setUp()
        self.member = membership.member_signup(
            {"full_name": "Ama Mensah", "email": "ama@example.com", "circle": "Accra"}, PASSWORD
        )

    def test_pending_members_oldest_first(self):
        later = membership.member_signup(
            {"full_name": "Kojo", "email": "kojo@example.com", "circle": "Accra"}, PASSWORD
        )
        self.assertEqual(list(membership.pending_members()), [self.member, later])

    def test_approve_member(self):
        with mock.patch(WELCOME, return_value="Welcome home, Ama."):
            membership.approve_member(self.member)

        self.member.refresh_from_db()
        user = User.objects.get(pk=self.member.user_id)
        self.assertEqual(self.member.payment_status, "complete")
        self.assertEqual(self.member.welcome_message, "Welcome home, Ama.")
        self.assertTrue(self.member.membership_card_id.startswith("UGC-M-"))
        self.assertEqual(user.status, "active")
        self.assertEqual(user.distress_calls_available, 2)
        activity = Activity.objects.get(activity_type="NEW_MEMBER")
        self.assertEqual(activity.message, "Ama Mensah from Accra has joined the commons!")
        self.assertEqual(activity.link, str(user.id))

    def test_approve_aborts_when_generation_fails(self):
        with mock.patch(WELCOME, side_effect=WelcomeMessageError("down")):
            with self.assertRaises(WelcomeMessageError):
                membership.approve_member(self.member)

        self.member.refresh_from_db()
        self.assertEqual(self.member.payment_status, "pending_verification")
        self.assertEqual(User.objects.get(pk=self.member.user_id).status, "pending")
        self.assertFalse(Activity.objects.exists())

    def test_approve_requires_account(self):
        agent = make_user("agent@example.com", role="agent")
        offline = make_member(agent=agent, email="offline@example.com")
        with self.assertRaises(ValidationFailed):
            membership.approve_member(offline)

    def test_reject_member_ousts_account(self):
        membership.reject_member(self.member)

        self.member.refresh_from_db()
        self.assertEqual(self.member.payment_status, "rejected")
        self.assertEqual(User.objects.get(pk=self.member.user_id).status, "ousted")

    def test_list_members_flags_duplicate_emails(self):
        agent = make_user("agent@example.com", role="agent")
        make_member(agent=agent, full_name="Ama again", email="AMA@example.com")
        make_member(agent=agent, full_name="Unique", email="unique@example.com")

        flags = {m.full_name: m.is_duplicate_email for m in membership.list_members()}
        self.assertEqual(flags, {"Ama Mensah": True, "Ama again": True, "Unique": False})

    def test_update_payment_status_validates(self):
        with self.assertRaises(ValidationFailed):
            membership.update_payment_status(self.member, "paid")
        membership.update_payment_status(self.member, "installment")
        self.member.refresh_from_db()
        self.assertEqual(self.member.payment_status, "installment")

    def test_clear_last_distress_post(self):
        user = self.member.user
        post = Post.objects.create(author=user, author_name="Anonymous Member", content="help", post_type="distress")
        user.last_distress_post = post
        user.save()

        self.assertTrue(membership.clear_last_distress_post(user))
        self.assertFalse(Post.objects.filter(pk=post.pk).exists())
        user.refresh_from_db()
        self.assertIsNone(user.last_distress_post)
        self.assertFalse(membership.clear_last_distress_post(user))

    def test_reset_distress_quota(self):
        user = self.member.user
        membership.reset_distress_quota(user)
        user.refresh_from_db()
        self.assertEqual(user.distress_calls_available, 2)

    def test_broadcasts_latest_twenty(self):
        for i in range(22):
            membership.send_broadcast(f"Notice {i}")
        broadcasts = membership.get_broadcasts()
        self.assertEqual(len(broadcasts), 20)
        self.assertEqual(broadcasts[0].message, "Notice 21")

    def test_update_user_role_assigns_agent_code(self):
        user = membership.update_user_role(self.member.user, "agent")
        self.assertEqual(user.role, "agent")
        self.assertTrue(user.agent_code.startswith("UGC-"))
        with self.assertRaises(ValidationFailed):
            membership.update_user_role(user, "owner")


class ProfileTests(CommonsTestCase):

    def test_staff_completion_uses_four_fields(self):
        agent = make_user("agent@example.com", role="agent", phone="0200", bio="Field agent")
        self.assertEqual(membership.profile_completion(agent), 50)
        self.assertTrue(membership.profile_incomplete(agent))

    def test_member_completion_reads_member_fields(self):
        user = make_user("ama@example.com", phone="0244", address="Osu", bio="Weaver")
        member = make_member(user, profession="Weaver", skills="kente", interests="music",
                             passions="community", gender="F", age="31")
        self.assertEqual(membership.profile_completion(user, member), 100)
        self.assertFalse(membership.profile_incomplete(user, member))

    def test_update_user_ignores_protected_fields(self):
        user = make_user("ama@example.com")
        membership.update_user(user, {"bio": "Hello", "role": "admin", "credibility_score": 999})
        user.refresh_from_db()
        self.assertEqual(user.bio, "Hello")
        self.assertEqual(user.role, "member")
        self.assertEqual(user.credibility_score, 100)

    def test_find_user_by_email_or_username(self):
        user = make_user("ama@example.com")
        self.assertEqual(membership.find_user("AMA@example.com"), user)
        self.assertIsNone(membership.find_user("nobody"))

    def test_circle_listings_only_active_members(self):
        me = make_user("me@example.com", circle="Accra")
        peer = make_user("peer@example.com", circle="Accra")
        make_user("pending@example.com", circle="Accra", status="pending")
        make_user("agent@example.com", circle="Accra", role="agent")
        make_user("far@example.com", circle="Tamale")

        self.assertEqual(membership.members_in_circle("Accra", exclude=me), [peer])
        self.assertEqual(len(membership.new_members_in_circle("Accra")), 2)


class EmailFlowTests(CommonsTestCase):

    def setUp(self):
        super().setUp()
        self.user = make_user("ama@example.com", name="Ama")

    def test_password_reset(self):
        membership.send_password_reset("ama@example.com", "http://testserver/reset?uid={uid}&token={token}")
        self.assertEqual(len(mail.outbox), 1)
        self.assertIn("http://testserver/reset?uid=", mail.outbox[0].body)

        uid = urlsafe_base64_encode(force_bytes(self.user.pk))
        token = default_token_generator.make_token(self.user)
        membership.reset_password(uid, token, "new-harambee-77")
        self.user.refresh_from_db()
        self.assertTrue(self.user.check_password("new-harambee-77"))

    def test_password_reset_unknown_email_is_silent(self):
        membership.send_password_reset("ghost@example.com", "http://testserver/{uid}/{token}")
        self.assertEqual(len(mail.outbox), 0)

    def test_reset_rejects_bad_token(self):
        uid = urlsafe_base64_encode(force_bytes(self.user.pk))
        with self.assertRaises(ValidationFailed):
            membership.reset_password(uid, "bad-token", "new-harambee-77")

    def test_email_verification(self):
        membership.send_verification_email(self.user, "http://testserver/verify-email/{token}")
        self.assertEqual(len(mail.outbox), 1)
        token = self.user.email_verification_token
        self.assertIn(token, mail.outbox[0].body)

        verified = membership.verify_email(token)
        self.assertTrue(verified.email_verified)
        with self.assertRaises(NotFound):
            membership.verify_email(token)
