"""
================================================================================
UBUNTIUM GLOBAL COMMONS - DATABASE MODELS
================================================================================

@file        models.py
@description Django ORM models defining the complete database schema
@version     1.0.0

MODULE PURPOSE
================================================================================
This module defines all database models for the Ubuntium Global Commons:
- User model (extended from AbstractUser) carrying role, circle and status
- Member registrations and their payment lifecycle
- Admin broadcasts
- Community feed (posts, comments, follows)
- Moderation reports
- Messaging system (conversations, members, messages)
- Personal notifications and the global activity feed
- Assistant chat history

DATABASE STRUCTURE
================================================================================
1. People
   - User (AbstractUser extension, roles: admin / agent / member)
   - Member (registration record, optionally linked to a User)

2. Content
   - Broadcast (admin announcements)
   - Post (typed community posts, distress posts, reposts)
   - Comment (flat comments on posts)
   - Follow (follower/followed connections)
   - Report (post moderation reports)

3. Messaging
   - Conversation (1:1 and group chats)
   - ConversationMember (membership + read tracking)
   - Message (chat messages)

4. Alerts
   - Notification (personal, per recipient)
   - Activity (global feed items)
   - AssistantMessage (AI assistant history per user)

MODEL RELATIONSHIPS
================================================================================
User (1) ──────> (0..1) Member          (linked on account activation)
User (1) ──────> (N) Member             (agent who registered them)
User (1) ──────> (N) Post
Post (1) ──────> (N) Comment
Post (1) ──────> (N) Post               (reposts)
User (N) <─────> (N) Conversation       (via ConversationMember)
Conversation (1) ──> (N) Message
User (1) ──────> (N) Notification

STATUS LIFECYCLE
================================================================================
Public signup:   Member.payment_status = pending_verification, User.status = pending
Admin approval:  Member.payment_status = complete,             User.status = active
Admin rejection: Member.payment_status = rejected,             User.status = ousted
Report penalty:  credibility_score drops; at or below zero User.status = ousted

================================================================================
"""

from datetime import timedelta

import pytz
from django.conf import settings
from django.contrib.auth.models import AbstractUser
from django.db import models
from django.utils import timezone as dj_timezone

# ============================================================================
# CONSTANTS & CHOICES
# ============================================================================

TIMEZONE_CHOICES = [(tz, tz) for tz in pytz.all_timezones]

ROLE_CHOICES = [
    ('admin', 'Admin'),
    ('agent', 'Agent'),
    ('member', 'Member'),
]

STATUS_CHOICES = [
    ('active', 'Active'),
    ('pending', 'Pending'),
    ('suspended', 'Suspended'),
    ('ousted', 'Ousted'),
]

PAYMENT_STATUS_CHOICES = [
    ('complete', 'Complete'),
    ('installment', 'Installment'),
    ('pending', 'Pending'),
    ('pending_verification', 'Pending Verification'),
    ('rejected', 'Rejected'),
]

POST_TYPE_CHOICES = [
    ('general', 'General'),
    ('proposal', 'Proposal'),
    ('offer', 'Offer'),
    ('distress', 'Distress'),
    ('opportunity', 'Opportunity'),
]

NOTIFICATION_TYPE_CHOICES = [
    ('NEW_MESSAGE', 'New message'),
    ('POST_LIKE', 'Post liked'),
    ('NEW_CHAT', 'New chat'),
    ('NEW_FOLLOWER', 'New follower'),
    ('POST_COMMENT', 'Post comment'),
]

ACTIVITY_TYPE_CHOICES = [
    ('NEW_MEMBER', 'New member'),
    ('NEW_POST_PROPOSAL', 'New proposal'),
    ('NEW_POST_OPPORTUNITY', 'New opportunity'),
    ('NEW_POST_GENERAL', 'New general post'),
    ('NEW_POST_OFFER', 'New offer'),
]

PUBLIC_SIGNUP_CARD_ID = 'PENDING'
DISTRESS_AUTHOR_NAME = 'Anonymous Member'


# ============================================================================
# SECTION 1: PEOPLE
# ============================================================================

class User(AbstractUser):
    """
    Account for every person using the commons.

    The username is always the lower-cased email address, so either can be
    used to sign in. Role decides which dashboard a user gets; status
    decides whether they can act at all.

    Attributes:
        name (CharField): Display name
        role (CharField): admin, agent or member
        circle (CharField): Circle the user belongs to
        status (CharField): active, pending, suspended or ousted
        credibility_score (IntegerField): Drops when reported posts are upheld
        agent_code (CharField): Agent referral code (agents only)
        distress_calls_available (IntegerField): Remaining distress posts (members)
        last_distress_post (ForeignKey): Most recent distress post
        online (BooleanField): Presence flag mirrored from the cache
        last_seen (DateTimeField): Last activity timestamp

    Properties:
        is_online: True if user was active in the presence window

    Example:
        agent = User.objects.create_user(
            username='ama@example.com', email='ama@example.com',
            password='secret1', name='Ama', role='agent', circle='Accra'
        )
    """

    # --- Identity & Role ---
    name = models.CharField(
        max_length=150,
        help_text="Display name"
    )
    role = models.CharField(
        max_length=10,
        choices=ROLE_CHOICES,
        default='member',
        help_text="Dashboard and permission role"
    )
    circle = models.CharField(
        max_length=100,
        blank=True,
        help_text="Circle (geographic/social grouping)"
    )
    status = models.CharField(
        max_length=10,
        choices=STATUS_CHOICES,
        default='active',
        help_text="Account standing"
    )
    credibility_score = models.IntegerField(
        default=100,
        help_text="Reduced when reported posts are upheld"
    )

    # --- Profile Information ---
    phone = models.CharField(max_length=40, blank=True)
    address = models.CharField(max_length=255, blank=True)
    id_card_number = models.CharField(max_length=60, blank=True)
    bio = models.TextField(
        max_length=500,
        blank=True,
        help_text="Profile biography or description"
    )
    profile_picture = models.ImageField(
        upload_to='profile_pics/',
        null=True,
        blank=True,
        help_text="User's profile avatar image"
    )
    timezone = models.CharField(
        max_length=100,
        choices=TIMEZONE_CHOICES,
        default='UTC',
        help_text="User's preferred timezone for display"
    )

    # --- Role-specific Fields ---
    agent_code = models.CharField(
        max_length=20,
        blank=True,
        help_text="Agent referral code (UGC-XXXXXX)"
    )
    distress_calls_available = models.IntegerField(
        default=0,
        help_text="Distress posts the member may still create"
    )
    last_distress_post = models.ForeignKey(
        'Post',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+',
        help_text="Most recent distress post by this member"
    )

    # --- Email Verification ---
    email_verified = models.BooleanField(default=False)
    email_verification_token = models.CharField(
        max_length=32,
        blank=True,
        null=True,
        help_text="Token for email verification"
    )

    # --- Presence ---
    online = models.BooleanField(
        default=False,
        help_text="Presence flag mirrored from the presence cache"
    )
    last_seen = models.DateTimeField(
        null=True,
        blank=True,
        help_text="Last activity timestamp for online status"
    )

    class Meta:
        ordering = ['name']

    def __str__(self):
        return self.name or self.username

    @property
    def is_online(self):
        """
        Online flag set and a heartbeat within PRESENCE_TIMEOUT seconds.
        Logging out clears the flag straight away.
        """
        if not self.online or not self.last_seen:
            return False
        return dj_timezone.now() - self.last_seen < timedelta(seconds=settings.PRESENCE_TIMEOUT)

    @property
    def is_admin_role(self):
        return self.role == 'admin'

    @property
    def can_participate(self):
        """Only active accounts may post, comment or message."""
        return self.status == 'active'


class Member(models.Model):
    """
    Membership registration.

    Created either by an agent registering someone in the field (linked to
    the agent, payment complete or installment) or by a public signup
    (no agent, awaiting verification). The `user` link is set once the
    member has an account.

    Attributes:
        full_name (CharField): Member's full name
        registration_amount (DecimalField): Amount paid at registration
        payment_status (CharField): Payment / verification state
        agent (ForeignKey): Registering agent (null for public signup)
        membership_card_id (CharField): UGC-M-<epoch ms> or PENDING
        welcome_message (TextField): AI-generated card message
        needs_welcome_update (BooleanField): AI generation deferred, retry later
        user (OneToOneField): Linked account (after activation)

    Meta:
        ordering: Newest registrations first
    """

    full_name = models.CharField(max_length=150)
    phone = models.CharField(max_length=40, blank=True)
    email = models.EmailField()
    circle = models.CharField(max_length=100)
    registration_amount = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=0,
        help_text="Amount paid at registration"
    )
    payment_status = models.CharField(
        max_length=20,
        choices=PAYMENT_STATUS_CHOICES,
        default='pending',
    )
    agent = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='registered_members',
        help_text="Agent who registered this member (null for public signup)"
    )
    agent_name = models.CharField(max_length=150, blank=True)
    date_registered = models.DateTimeField(default=dj_timezone.now)
    membership_card_id = models.CharField(max_length=40, default=PUBLIC_SIGNUP_CARD_ID)
    welcome_message = models.TextField(blank=True)
    user = models.OneToOneField(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='member_record',
        help_text="Account linked after activation"
    )
    needs_welcome_update = models.BooleanField(
        default=False,
        help_text="Welcome message still needs AI generation"
    )

    # --- Profile Fields ---
    bio = models.TextField(blank=True)
    profession = models.CharField(max_length=150, blank=True)
    skills = models.TextField(blank=True)
    awards = models.TextField(blank=True)
    interests = models.TextField(blank=True)
    passions = models.TextField(blank=True)
    gender = models.CharField(max_length=30, blank=True)
    age = models.CharField(max_length=10, blank=True)
    address = models.CharField(max_length=255, blank=True)
    national_id = models.CharField(max_length=60, blank=True)

    class Meta:
        ordering = ['-date_registered', '-id']

    def __str__(self):
        return f"{self.full_name} ({self.membership_card_id})"


# ============================================================================
# SECTION 2: CONTENT
# ============================================================================

class Broadcast(models.Model):
    """Admin announcement shown on every dashboard."""

    message = models.TextField()
    date = models.DateTimeField(default=dj_timezone.now)

    class Meta:
        ordering = ['-date', '-id']


class Post(models.Model):
    """
    Community feed post.

    Author name and circle are copied at write time so distress posts can
    show "Anonymous Member" while still being tied to their author.

    Attributes:
        author (ForeignKey): Post author
        post_type (CharField): general, proposal, offer, distress, opportunity
        upvotes (ManyToManyField): Users who liked the post
        is_pinned (BooleanField): Pinned to the top of the feed by an admin
        reposted_from (ForeignKey): Original post for reposts

    Meta:
        ordering: Newest first
    """

    author = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='posts',
        help_text="Author of this post"
    )
    author_name = models.CharField(max_length=150)
    author_circle = models.CharField(max_length=100, default='Unknown')
    content = models.TextField()
    date = models.DateTimeField(default=dj_timezone.now)
    upvotes = models.ManyToManyField(
        User,
        related_name='upvoted_posts',
        blank=True,
        help_text="Users who liked this post"
    )
    post_type = models.CharField(
        max_length=12,
        choices=POST_TYPE_CHOICES,
        default='general',
    )
    is_pinned = models.BooleanField(default=False)
    reposted_from = models.ForeignKey(
        'self',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='reposts',
    )

    class Meta:
        ordering = ['-date', '-id']

    def __str__(self):
        return f"{self.author_name} - {self.content[:50]}"

    @property
    def is_distress(self):
        return self.post_type == 'distress'


class Comment(models.Model):
    """Flat comment on a post."""

    post = models.ForeignKey(
        Post,
        on_delete=models.CASCADE,
        related_name='comments',
    )
    author = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='comments',
    )
    author_name = models.CharField(max_length=150)
    content = models.TextField()
    timestamp = models.DateTimeField(default=dj_timezone.now)
    upvotes = models.ManyToManyField(
        User,
        related_name='upvoted_comments',
        blank=True,
    )

    class Meta:
        ordering = ['timestamp', 'id']


class Follow(models.Model):
    """
    Follower-following relationship between users.

    One-way: A can follow B without B following back.
    """

    follower = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='following',
    )
    followed = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='followers',
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        unique_together = ('follower', 'followed')


class Report(models.Model):
    """
    Moderation report against a post.

    Post content and author are copied so the report survives the post
    being deleted on resolution.
    """

    reporter = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        related_name='reports_filed',
    )
    reporter_name = models.CharField(max_length=150)
    post = models.ForeignKey(
        Post,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='reports',
    )
    post_author = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        related_name='reports_received',
    )
    post_content = models.TextField()
    reason = models.CharField(max_length=100)
    details = models.TextField(blank=True)
    date = models.DateTimeField(default=dj_timezone.now)
    status = models.CharField(
        max_length=10,
        choices=[('new', 'New'), ('resolved', 'Resolved')],
        default='new',
    )

    class Meta:
        ordering = ['-date', '-id']


# ============================================================================
# SECTION 3: MESSAGING
# ============================================================================

class Conversation(models.Model):
    """
    Chat conversation (1:1 or group).

    Direct chats carry a deterministic `dm_key` ("<low id>_<high id>") so the
    same pair always lands in the same conversation. The last-message fields
    are denormalised for the inbox listing.

    Attributes:
        is_group (BooleanField): True for group chats
        name (CharField): Group name
        dm_key (CharField): Unique key for 1:1 chats
        last_message (TextField): Preview of the most recent message
        last_message_sender (ForeignKey): Sender of the most recent message
        last_message_at (DateTimeField): Timestamp used for inbox ordering
    """

    is_group = models.BooleanField(default=False)
    name = models.CharField(max_length=255, blank=True)
    created_by = models.ForeignKey(
        User,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name='created_conversations',
    )
    created_at = models.DateTimeField(auto_now_add=True)
    dm_key = models.CharField(
        max_length=64,
        unique=True,
        null=True,
        blank=True,
        help_text="Deterministic key for 1:1 conversations"
    )
    last_message = models.TextField(blank=True)
    last_message_sender = models.ForeignKey(
        User,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name='+',
    )
    last_message_at = models.DateTimeField(default=dj_timezone.now)

    class Meta:
        ordering = ['-last_message_at', '-id']

    def __str__(self):
        if self.is_group:
            return self.name or f"Group #{self.id}"
        return f"DM #{self.id}"


class ConversationMember(models.Model):
    """
    Membership in a conversation.

    `last_read_at` at or after `Conversation.last_message_at` means the member
    has read the conversation.
    """

    conversation = models.ForeignKey(
        Conversation,
        on_delete=models.CASCADE,
        related_name='members',
    )
    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='conversation_memberships',
    )
    display_name = models.CharField(max_length=150, blank=True)
    joined_at = models.DateTimeField(auto_now_add=True)
    last_read_at = models.DateTimeField(null=True, blank=True)
    is_admin = models.BooleanField(default=False)

    class Meta:
        unique_together = ('conversation', 'user')

    def __str__(self):
        return f"{self.user} in {self.conversation}"


class Message(models.Model):
    """Chat message in a conversation."""

    conversation = models.ForeignKey(
        Conversation,
        on_delete=models.CASCADE,
        related_name='messages',
    )
    sender = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='sent_messages',
    )
    sender_name = models.CharField(max_length=150)
    text = models.TextField()
    timestamp = models.DateTimeField(default=dj_timezone.now)

    class Meta:
        ordering = ['timestamp', 'id']

    def __str__(self):
        return f"[Room {self.conversation_id}] {self.sender_name}: {self.text[:30]}"


# ============================================================================
# SECTION 4: NOTIFICATIONS & ACTIVITY
# ============================================================================

class Notification(models.Model):
    """
    Personal notification for one recipient.

    `link` holds a conversation id, post id or user id depending on type.

    Example:
        Notification.objects.create(
            user=post.author, notification_type='POST_LIKE',
            message="Ama liked your post.", link=str(post.id),
            causer=ama, causer_name=ama.name
        )
    """

    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='notifications',
        help_text="User receiving this notification"
    )
    notification_type = models.CharField(
        max_length=20,
        choices=NOTIFICATION_TYPE_CHOICES,
    )
    message = models.TextField()
    link = models.CharField(max_length=64, blank=True)
    causer = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        related_name='+',
    )
    causer_name = models.CharField(max_length=150, blank=True)
    timestamp = models.DateTimeField(default=dj_timezone.now)
    is_read = models.BooleanField(default=False)

    class Meta:
        ordering = ['-timestamp', '-id']


class Activity(models.Model):
    """Global activity feed item visible to everyone."""

    activity_type = models.CharField(
        max_length=24,
        choices=ACTIVITY_TYPE_CHOICES,
    )
    message = models.CharField(max_length=255)
    link = models.CharField(max_length=64, blank=True)
    causer = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        related_name='+',
    )
    causer_name = models.CharField(max_length=150, blank=True)
    causer_circle = models.CharField(max_length=100, default='Unknown')
    timestamp = models.DateTimeField(default=dj_timezone.now)

    class Meta:
        ordering = ['-timestamp', '-id']
        verbose_name_plural = 'activities'


class AssistantMessage(models.Model):
    """One turn of a user's conversation with the AI assistant."""

    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='assistant_messages',
    )
    author = models.CharField(
        max_length=4,
        choices=[('user', 'User'), ('bot', 'Bot')],
    )
    text = models.TextField()
    timestamp = models.DateTimeField(default=dj_timezone.now)

    class Meta:
        ordering = ['timestamp', 'id']
