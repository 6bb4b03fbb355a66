"""
================================================================================
UBUNTIUM GLOBAL COMMONS - URL CONFIGURATION
================================================================================

@file        urls.py
@description JSON API routing for the commons app

URL STRUCTURE OVERVIEW
================================================================================
1. Authentication & Account Lifecycle (login, signup, reset, activation)
2. Dashboard & Profiles
3. Feed (posts, distress calls, reposts, pins)
4. Comments
5. Follows & Reports
6. Messaging (conversations, groups)
7. Notifications, Badges & Presence
8. Assistant
9. Agent Tools
10. Admin Tools
11. Broadcasts

URL NAMING CONVENTIONS
================================================================================
- Collections are plural nouns: posts, conversations, broadcasts
- Item actions hang off the item: posts/<id>/upvote, manage/members/<id>/approve
- Admin-only routes live under manage/ (admin/ is Django's own site)

================================================================================
"""

from django.conf import settings
from django.conf.urls.static import static
from django.urls import path

from . import views


# ============================================================================
# URL PATTERNS DEFINITION
# ============================================================================

urlpatterns = [

    # ========================================================================
    # SECTION 1: AUTHENTICATION & ACCOUNT LIFECYCLE
    # ========================================================================

    path(
        "login",
        views.login_view,
        name="login"
    ),  # Username or email + password

    path(
        "logout",
        views.logout_view,
        name="logout"
    ),  # Ends session, marks offline

    path(
        "session",
        views.session_view,
        name="session"
    ),  # Current user, member record, profile completion

    path(
        "register/agent",
        views.agent_signup,
        name="agent_signup"
    ),  # New agent account

    path(
        "register/member",
        views.member_signup,
        name="member_signup"
    ),  # Public member signup (pending verification)

    path(
        "password-reset",
        views.password_reset_request,
        name="password_reset"
    ),  # Email a reset link

    path(
        "password-reset/confirm",
        views.password_reset_confirm,
        name="password_reset_confirm"
    ),  # uid + token + new password

    path(
        "verify-email/send",
        views.resend_verification,
        name="resend_verification"
    ),  # Resend verification email

    path(
        "verify-email/<str:token>",
        views.verify_email,
        name="verify_email"
    ),  # Email verification link

    path(
        "activate/lookup",
        views.activation_lookup,
        name="activation_lookup"
    ),  # Find an agent-registered member by email

    path(
        "activate",
        views.activate_account,
        name="activate_account"
    ),  # Create the account for an agent-registered member


    # ========================================================================
    # SECTION 2: DASHBOARD & PROFILES
    # ========================================================================

    path(
        "dashboard",
        views.dashboard,
        name="dashboard"
    ),  # Role-specific dashboard summary

    path(
        "me",
        views.my_profile,
        name="my_profile"
    ),  # GET / PUT own profile

    path(
        "me/picture",
        views.upload_profile_picture,
        name="upload_profile_picture"
    ),  # Profile picture upload

    path(
        "users/search",
        views.search_users,
        name="search_users"
    ),  # ?q=name or circle

    path(
        "users/<int:user_id>",
        views.user_profile,
        name="user_profile"
    ),  # Public profile

    path(
        "users/<int:user_id>/posts",
        views.user_posts,
        name="user_posts"
    ),  # Posts by one author

    path(
        "circle",
        views.circle_members,
        name="circle_members"
    ),  # Members of a circle (?circle=, defaults to own)


    # ========================================================================
    # SECTION 3: FEED
    # ========================================================================

    path(
        "posts",
        views.posts,
        name="posts"
    ),  # GET feed (?type=&page=) / POST new post

    path(
        "posts/following",
        views.following_posts,
        name="following_posts"
    ),  # Posts from followed users

    path(
        "posts/distress",
        views.distress_post,
        name="distress_post"
    ),  # Anonymous distress call (uses quota)

    path(
        "posts/<int:post_id>",
        views.post_detail,
        name="post_detail"
    ),  # GET / PUT / DELETE

    path(
        "posts/<int:post_id>/upvote",
        views.toggle_upvote,
        name="toggle_upvote"
    ),  # Like / unlike

    path(
        "posts/<int:post_id>/repost",
        views.repost,
        name="repost"
    ),  # Repost with optional comment

    path(
        "posts/<int:post_id>/pin",
        views.toggle_pin,
        name="toggle_pin"
    ),  # Admin only


    # ========================================================================
    # SECTION 4: COMMENTS
    # ========================================================================

    path(
        "posts/<int:post_id>/comments",
        views.post_comments,
        name="post_comments"
    ),  # GET list / POST add

    path(
        "comments/<int:comment_id>",
        views.delete_comment,
        name="delete_comment"
    ),  # DELETE

    path(
        "comments/<int:comment_id>/upvote",
        views.toggle_comment_upvote,
        name="toggle_comment_upvote"
    ),


    # ========================================================================
    # SECTION 5: FOLLOWS & REPORTS
    # ========================================================================

    path(
        "users/<int:user_id>/follow",
        views.follow_user,
        name="follow_user"
    ),  # POST follow / DELETE unfollow

    path(
        "posts/<int:post_id>/report",
        views.report_post,
        name="report_post"
    ),  # Report a post to moderators


    # ========================================================================
    # SECTION 6: MESSAGING
    # ========================================================================

    path(
        "chat/contacts",
        views.chat_contacts,
        name="chat_contacts"
    ),  # ?group=1 for group candidates

    path(
        "conversations",
        views.conversations,
        name="conversations"
    ),  # Inbox, newest activity first

    path(
        "conversations/start",
        views.start_chat,
        name="start_chat"
    ),  # Open or reuse a 1:1 chat

    path(
        "conversations/group",
        views.create_group,
        name="create_group"
    ),  # New group chat

    path(
        "conversations/<int:conversation_id>/messages",
        views.conversation_messages,
        name="conversation_messages"
    ),  # GET (?after=<id>) / POST send

    path(
        "conversations/<int:conversation_id>/read",
        views.mark_conversation_read,
        name="mark_conversation_read"
    ),

    path(
        "conversations/<int:conversation_id>/members",
        views.group_members,
        name="group_members"
    ),  # GET / PUT member_ids

    path(
        "conversations/<int:conversation_id>/leave",
        views.leave_group,
        name="leave_group"
    ),


    # ========================================================================
    # SECTION 7: NOTIFICATIONS, BADGES & PRESENCE
    # ========================================================================

    path(
        "notifications",
        views.notifications_view,
        name="notifications"
    ),  # Personal notifications merged with activity

    path(
        "notifications/read-all",
        views.mark_all_notifications_read,
        name="mark_all_notifications_read"
    ),

    path(
        "notifications/<int:notification_id>/read",
        views.mark_notification_read,
        name="mark_notification_read"
    ),

    path(
        "badges",
        views.badges,
        name="badges"
    ),  # Unread message / notification counts

    path(
        "presence",
        views.presence_view,
        name="presence"
    ),  # ?ids=1,2,3


    # ========================================================================
    # SECTION 8: ASSISTANT
    # ========================================================================

    path(
        "assistant",
        views.assistant,
        name="assistant"
    ),  # GET history / POST message


    # ========================================================================
    # SECTION 9: AGENT TOOLS
    # ========================================================================

    path(
        "agent/members",
        views.agent_members,
        name="agent_members"
    ),  # GET own registrations + commission / POST register member


    # ========================================================================
    # SECTION 10: ADMIN TOOLS
    # ========================================================================

    path(
        "manage/users",
        views.admin_users,
        name="admin_users"
    ),

    path(
        "manage/users/<int:user_id>/role",
        views.admin_update_role,
        name="admin_update_role"
    ),

    path(
        "manage/users/<int:user_id>/distress-quota/reset",
        views.admin_reset_distress_quota,
        name="admin_reset_distress_quota"
    ),

    path(
        "manage/users/<int:user_id>/distress-post/clear",
        views.admin_clear_distress_post,
        name="admin_clear_distress_post"
    ),

    path(
        "manage/members",
        views.admin_members,
        name="admin_members"
    ),  # All members, duplicate email flags

    path(
        "manage/members/pending",
        views.admin_pending_members,
        name="admin_pending_members"
    ),

    path(
        "manage/members/<int:member_id>/approve",
        views.admin_approve_member,
        name="admin_approve_member"
    ),

    path(
        "manage/members/<int:member_id>/reject",
        views.admin_reject_member,
        name="admin_reject_member"
    ),

    path(
        "manage/members/<int:member_id>/payment",
        views.admin_payment_status,
        name="admin_payment_status"
    ),

    path(
        "manage/agents",
        views.admin_agents,
        name="admin_agents"
    ),  # Agents with member counts and commission

    path(
        "manage/agents/export",
        views.admin_agents_csv,
        name="admin_agents_csv"
    ),  # CSV download

    path(
        "manage/reports",
        views.admin_reports,
        name="admin_reports"
    ),  # ?status=new|resolved

    path(
        "manage/reports/<int:report_id>/resolve",
        views.admin_resolve_report,
        name="admin_resolve_report"
    ),

    path(
        "manage/reports/<int:report_id>/dismiss",
        views.admin_dismiss_report,
        name="admin_dismiss_report"
    ),

    path(
        "manage/welcome-messages/process",
        views.admin_process_welcome_messages,
        name="admin_process_welcome_messages"
    ),  # Retry deferred AI welcome messages


    # ========================================================================
    # SECTION 11: BROADCASTS
    # ========================================================================

    path(
        "broadcasts",
        views.broadcasts,
        name="broadcasts"
    ),  # GET latest 20 / POST (admin)
]


# ============================================================================
# DEVELOPMENT MEDIA SERVING
# ============================================================================

if settings.DEBUG and getattr(settings, 'MEDIA_ROOT', None):
    urlpatterns += static(
        settings.MEDIA_URL,
        document_root=settings.MEDIA_ROOT
    )
