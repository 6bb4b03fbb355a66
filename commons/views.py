import io
import json
import logging

from django.conf import settings
from django.contrib.auth.decorators import login_required
from django.core.paginator import Paginator
from django.db.models import Q
from django.http import HttpResponse, JsonResponse
from django.shortcuts import get_object_or_404
from django.urls import reverse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_http_methods, require_POST

from . import chat, feed, gemini, membership, notifications, presence, serializers
from .context_processors import unread_counts
from .decorators import json_errors, role_required
from .exceptions import NotFound, ValidationFailed
from .models import AssistantMessage, Comment, Conversation, Member, Notification, Post, Report, User

# Logger
logger = logging.getLogger(__name__)


def _data(request):
    if request.content_type == 'application/json':
        data = json.loads(request.body or b"{}")
        if not isinstance(data, dict):
            raise ValidationFailed("Request body must be a JSON object.")
        return data
    return request.POST


def _text(data, key, default=""):
    """String field from a request body; JSON null counts as missing."""
    value = data.get(key)
    if value is None:
        return default
    return value if isinstance(value, str) else str(value)


def _flag(data, key, default=False):
    value = data.get(key)
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("1", "true", "yes", "on")


def _page(request):
    try:
        return int(request.GET.get('page', 1))
    except ValueError:
        return 1


def _ids(values):
    try:
        return [int(v) for v in values]
    except (TypeError, ValueError):
        raise ValidationFailed("Ids must be integers.")


def _users(ids):
    ids = _ids(ids)
    users = list(User.objects.filter(pk__in=ids))
    if len(users) != len(set(ids)):
        raise NotFound("One or more users were not found.")
    return users


def _absolute(request, name, **kwargs):
    """Absolute URL with str.format placeholders kept intact."""
    placeholders = {key: f"__{key}__" for key in kwargs}
    url = request.build_absolute_uri(reverse(name, kwargs=placeholders))
    for key, value in kwargs.items():
        url = url.replace(f"__{key}__", value)
    return url


def _session_payload(user):
    member = membership.get_member_by_user(user)
    return {
        "user": serializers.user_detail(user),
        "member": serializers.member_dict(member) if member else None,
        "profile_completion": membership.profile_completion(user, member),
        "profile_incomplete": membership.profile_incomplete(user, member),
    }


# ============================================================================
# AUTH
# ============================================================================

@csrf_exempt
@require_http_methods(["GET", "POST"])
@json_errors
def login_view(request):
    if request.method == "GET":
        # LOGIN_URL target for unauthenticated requests
        if request.user.is_authenticated:
            return JsonResponse(_session_payload(request.user))
        return JsonResponse({"error": "Login required.", "next": request.GET.get('next', '')}, status=401)
    data = _data(request)
    user = membership.login(request, _text(data, "identifier"), _text(data, "password"))
    return JsonResponse(_session_payload(user))


@csrf_exempt
@require_POST
def logout_view(request):
    membership.logout(request)
    return JsonResponse({"message": "Logged out"})


@require_GET
@login_required
def session_view(request):
    return JsonResponse(_session_payload(request.user))


@csrf_exempt
@require_POST
@json_errors
def agent_signup(request):
    data = _data(request)
    agent = membership.agent_signup(
        _text(data, "name").strip(),
        _text(data, "email"),
        _text(data, "password"),
        _text(data, "circle").strip(),
    )
    return JsonResponse({"message": "Agent account created", "user": serializers.user_detail(agent)}, status=201)


@csrf_exempt
@require_POST
@json_errors
def member_signup(request):
    data = _data(request)
    member = membership.member_signup(data, _text(data, "password"))
    try:
        membership.send_verification_email(member.user, _absolute(request, 'verify_email', token="{token}"))
    except Exception as e:
        logger.error(f"Verification email failed for member {member.id}: {e}", exc_info=True)
    return JsonResponse({
        "message": "Registration received. Your account is pending verification.",
        "member": serializers.member_dict(member),
    }, status=201)


@csrf_exempt
@require_POST
@json_errors
def password_reset_request(request):
    data = _data(request)
    reset_url = _absolute(request, 'password_reset_confirm') + "?uid={uid}&token={token}"
    try:
        membership.send_password_reset(_text(data, "email"), reset_url)
    except Exception as e:
        logger.error(f"Password reset email failed: {e}", exc_info=True)
        return JsonResponse({"error": "Could not send reset email at this time"}, status=500)
    return JsonResponse({"message": "If that email is registered, a reset link is on its way."})


@csrf_exempt
@require_http_methods(["GET", "POST"])
@json_errors
def password_reset_confirm(request):
    if request.method == "GET":
        # Landing for the emailed link; the client then POSTs the new password
        membership.check_reset_link(request.GET.get('uid', ''), request.GET.get('token', ''))
        return JsonResponse({
            "valid": True,
            "uid": request.GET['uid'],
            "token": request.GET['token'],
        })
    data = _data(request)
    membership.reset_password(_text(data, "uid"), _text(data, "token"), _text(data, "password"))
    return JsonResponse({"message": "Password updated. You can now log in."})


@require_GET
@json_errors
def verify_email(request, token):
    membership.verify_email(token)
    return JsonResponse({"message": "Email verified."})


@csrf_exempt
@require_POST
@login_required
def resend_verification(request):
    if request.user.email_verified:
        return JsonResponse({"message": "Email already verified."})
    try:
        membership.send_verification_email(request.user, _absolute(request, 'verify_email', token="{token}"))
    except Exception as e:
        logger.error(f"Verification email failed for user {request.user.id}: {e}", exc_info=True)
        return JsonResponse({"error": "Could not send verification email at this time"}, status=500)
    return JsonResponse({"message": "Verification email sent."})


@csrf_exempt
@require_POST
@json_errors
def activation_lookup(request):
    member = membership.lookup_member_for_activation(_text(_data(request), "email"))
    return JsonResponse({"member": {"full_name": member.full_name, "circle": member.circle, "email": member.email}})


@csrf_exempt
@require_POST
@json_errors
def activate_account(request):
    data = _data(request)
    user = membership.activate_member_account(_text(data, "email"), _text(data, "password"))
    return JsonResponse({"message": "Account activated. You can now log in.", "user": serializers.user_detail(user)}, status=201)


# ============================================================================
# DASHBOARD & PROFILE
# ============================================================================

@require_GET
@login_required
def dashboard(request):
    user = request.user
    data = {
        "role": user.role,
        "broadcasts": [serializers.broadcast_dict(b) for b in membership.get_broadcasts()],
    }
    if user.role == 'admin':
        data.update({
            "pending_members": membership.pending_members().count(),
            "open_reports": Report.objects.filter(status='new').count(),
            "total_members": Member.objects.count(),
            "total_agents": User.objects.filter(role='agent').count(),
        })
    elif user.role == 'agent':
        members = list(membership.agent_members(user))
        data.update({
            "agent_code": user.agent_code,
            "members_registered": len(members),
            "commission": str(membership.agent_commission(members)),
        })
    else:
        member = membership.get_member_by_user(user)
        data.update({
            "status": user.status,
            "member": serializers.member_dict(member) if member else None,
            "distress_calls_available": user.distress_calls_available,
            "new_members_in_circle": [
                serializers.user_summary(u) for u in membership.new_members_in_circle(user.circle)
            ],
        })
    return JsonResponse(data)


@csrf_exempt
@login_required
@json_errors
def my_profile(request):
    if request.method == "PUT":
        data = _data(request)
        membership.update_user(request.user, data)
        member = membership.get_member_by_user(request.user)
        if member is not None:
            membership.update_member_profile(member, data)
    elif request.method != "GET":
        return JsonResponse({"error": "GET or PUT request required"}, status=400)
    return JsonResponse(_session_payload(request.user))


@csrf_exempt
@require_POST
@login_required
def upload_profile_picture(request):
    picture = request.FILES.get('profile_picture')
    if not picture:
        return JsonResponse({"error": "No picture uploaded"}, status=400)
    if not picture.content_type.startswith('image/'):
        return JsonResponse({"error": "Only image files are supported"}, status=400)
    request.user.profile_picture = picture
    request.user.save(update_fields=['profile_picture'])
    return JsonResponse({"profile_picture": serializers.picture_url(request.user)})


@require_GET
@login_required
def user_profile(request, user_id):
    user = get_object_or_404(User, pk=user_id)
    data = serializers.user_summary(user)
    data.update({
        "bio": user.bio,
        "credibility_score": user.credibility_score,
        "followers": user.followers.count(),
        "following": user.following.count(),
        "is_following": user.followers.filter(follower=request.user).exists(),
    })
    member = membership.get_member_by_user(user)
    if member is not None:
        data["profession"] = member.profession
        data["skills"] = member.skills
        data["interests"] = member.interests
    return JsonResponse(data)


@require_GET
@login_required
def user_posts(request, user_id):
    author = get_object_or_404(User, pk=user_id)
    page = Paginator(feed.posts_by_author(author, request.user), settings.FEED_PAGE_SIZE).get_page(_page(request))
    return JsonResponse({
        "posts": [serializers.post_dict(p, request.user) for p in page.object_list],
        "page": page.number,
        "num_pages": page.paginator.num_pages,
    })


@require_GET
@login_required
def search_users(request):
    query = request.GET.get('q', '').strip()
    users = membership.searchable_users(request.user)
    if query:
        users = users.filter(Q(name__icontains=query) | Q(circle__icontains=query))
    return JsonResponse({"users": [serializers.user_summary(u) for u in users[:50]]})


@require_GET
@login_required
def circle_members(request):
    circle = request.GET.get('circle') or request.user.circle
    return JsonResponse({
        "circle": circle,
        "members": [serializers.user_summary(u) for u in membership.members_in_circle(circle, request.user)],
        "new_members": [serializers.user_summary(u) for u in membership.new_members_in_circle(circle)],
    })


# ============================================================================
# FEED
# ============================================================================

def _feed_item(kind, obj, viewer):
    if kind == "post":
        return serializers.post_dict(obj, viewer)
    return serializers.activity_dict(obj)


@csrf_exempt
@login_required
@json_errors
def posts(request):
    if request.method == "POST":
        data = _data(request)
        post = feed.create_post(request.user, _text(data, "content"), _text(data, "type", "general"))
        return JsonResponse({"message": "Posted!", "post": serializers.post_dict(post, request.user)}, status=201)
    if request.method != "GET":
        return JsonResponse({"error": "GET or POST request required"}, status=400)

    admin_view = request.GET.get('view') == 'admin' and request.user.role == 'admin'
    result = feed.feed_page(request.user, request.GET.get('type', 'all'), _page(request), admin_view)
    return JsonResponse({
        "items": [_feed_item(kind, obj, request.user) for kind, obj in result["items"]],
        "page": result["page"],
        "num_pages": result["num_pages"],
        "has_next": result["has_next"],
    })


@require_GET
@login_required
def following_posts(request):
    page = feed.following_feed(request.user, _page(request))
    return JsonResponse({
        "items": [serializers.post_dict(p, request.user) for p in page.object_list],
        "page": page.number,
        "num_pages": page.paginator.num_pages,
        "has_next": page.has_next(),
    })


@csrf_exempt
@require_POST
@login_required
@json_errors
def distress_post(request):
    post = feed.create_distress_post(request.user, _text(_data(request), "content"))
    request.user.refresh_from_db()
    return JsonResponse({
        "post": serializers.post_dict(post, request.user),
        "distress_calls_available": request.user.distress_calls_available,
    }, status=201)


@csrf_exempt
@login_required
@json_errors
def post_detail(request, post_id):
    post = get_object_or_404(Post, id=post_id)
    if request.method == "PUT":
        data = _data(request)
        feed.update_post(post, request.user, _text(data, "content"))
        return JsonResponse({"message": "Post updated", "post": serializers.post_dict(post, request.user)})
    if request.method == "DELETE":
        feed.delete_post(post, request.user)
        return JsonResponse({"message": "Post deleted"})
    return JsonResponse({"post": serializers.post_dict(post, request.user)})


@csrf_exempt
@require_POST
@login_required
def toggle_upvote(request, post_id):
    post = get_object_or_404(Post, id=post_id)
    upvoted = feed.toggle_upvote(post, request.user)
    return JsonResponse({"upvoted": upvoted, "upvotes": post.upvotes.count()})


@csrf_exempt
@require_POST
@login_required
@json_errors
def repost(request, post_id):
    original = get_object_or_404(Post, id=post_id)
    post = feed.repost(original, request.user, _text(_data(request), "comment"))
    return JsonResponse({"post": serializers.post_dict(post, request.user)}, status=201)


@csrf_exempt
@require_POST
@login_required
@role_required('admin')
@json_errors
def toggle_pin(request, post_id):
    post = get_object_or_404(Post, id=post_id)
    pinned = _flag(_data(request), "pinned", not post.is_pinned)
    feed.toggle_pin(request.user, post, pinned)
    return JsonResponse({"is_pinned": post.is_pinned})


@csrf_exempt
@login_required
@json_errors
def post_comments(request, post_id):
    post = get_object_or_404(Post, id=post_id)
    if request.method == "POST":
        comment = feed.add_comment(post, request.user, _text(_data(request), "content"))
        return JsonResponse({"comment": serializers.comment_dict(comment, request.user)}, status=201)
    return JsonResponse({"comments": [serializers.comment_dict(c, request.user) for c in post.comments.all()]})


@csrf_exempt
@require_http_methods(["DELETE", "POST"])
@login_required
@json_errors
def delete_comment(request, comment_id):
    comment = get_object_or_404(Comment, id=comment_id)
    feed.delete_comment(comment, request.user)
    return JsonResponse({"message": "Comment deleted"})


@csrf_exempt
@require_POST
@login_required
def toggle_comment_upvote(request, comment_id):
    comment = get_object_or_404(Comment, id=comment_id)
    upvoted = feed.toggle_comment_upvote(comment, request.user)
    return JsonResponse({"upvoted": upvoted, "upvotes": comment.upvotes.count()})


@csrf_exempt
@require_POST
@login_required
@json_errors
def report_post(request, post_id):
    post = get_object_or_404(Post, id=post_id)
    data = _data(request)
    feed.report_post(request.user, post, _text(data, "reason"), _text(data, "details"))
    return JsonResponse({"status": "success", "message": "Report submitted"}, status=201)


@csrf_exempt
@require_http_methods(["POST", "DELETE"])
@login_required
@json_errors
def follow_user(request, user_id):
    target = get_object_or_404(User, pk=user_id)
    if request.method == "DELETE":
        feed.unfollow(request.user, target)
        action = "unfollowed"
    else:
        feed.follow(request.user, target)
        action = "followed"
    return JsonResponse({
        "action": action,
        "followers": target.followers.count(),
        "following": target.following.count(),
    })


# ============================================================================
# CHAT
# ============================================================================

def _conversation_for(request, conversation_id):
    conversation = get_object_or_404(Conversation, pk=conversation_id)
    return conversation, chat.get_membership(conversation, request.user)


@require_GET
@login_required
def chat_contacts(request):
    for_group = request.GET.get('group') in ('1', 'true')
    contacts = chat.chat_contacts(request.user, for_group=for_group)
    return JsonResponse({"contacts": [serializers.user_summary(u) for u in contacts]})


@require_GET
@login_required
def conversations(request):
    return JsonResponse({"conversations": [
        serializers.conversation_dict(c, m, unread, request.user)
        for c, m, unread in chat.conversations_for(request.user)
    ]})


@csrf_exempt
@require_POST
@login_required
@json_errors
def start_chat(request):
    other = get_object_or_404(User, pk=_ids([_data(request).get("user_id")])[0])
    conversation, created = chat.start_chat(request.user, other)
    membership_row = chat.get_membership(conversation, request.user)
    return JsonResponse(
        {"conversation": serializers.conversation_dict(
            conversation, membership_row, chat.is_unread(conversation, membership_row), request.user)},
        status=201 if created else 200,
    )


@csrf_exempt
@require_POST
@login_required
@json_errors
def create_group(request):
    data = _data(request)
    members = _users(data.get("member_ids") or [])
    conversation = chat.create_group_chat(request.user, _text(data, "name"), members)
    membership_row = chat.get_membership(conversation, request.user)
    return JsonResponse(
        {"conversation": serializers.conversation_dict(conversation, membership_row, False, request.user)},
        status=201,
    )


@csrf_exempt
@login_required
@json_errors
def conversation_messages(request, conversation_id):
    conversation, _ = _conversation_for(request, conversation_id)
    if request.method == "POST":
        message = chat.send_message(conversation, request.user, _text(_data(request), "text"))
        return JsonResponse({"message": serializers.message_dict(message)}, status=201)

    after = request.GET.get('after')
    if after:
        after = _ids([after])[0]
    messages = chat.messages_for(conversation, request.user, after)
    return JsonResponse({"messages": [serializers.message_dict(m) for m in messages]})


@csrf_exempt
@require_POST
@login_required
@json_errors
def mark_conversation_read(request, conversation_id):
    conversation, _ = _conversation_for(request, conversation_id)
    chat.mark_read(conversation, request.user)
    return JsonResponse({"status": "success"})


@csrf_exempt
@login_required
@json_errors
def group_members(request, conversation_id):
    conversation, _ = _conversation_for(request, conversation_id)
    if request.method == "PUT":
        members = _users(_data(request).get("member_ids") or [])
        users = chat.update_group_members(conversation, request.user, members)
    else:
        users = chat.group_members(conversation, request.user)
    return JsonResponse({"members": [serializers.user_summary(u) for u in users]})


@csrf_exempt
@require_POST
@login_required
@json_errors
def leave_group(request, conversation_id):
    conversation, _ = _conversation_for(request, conversation_id)
    chat.leave_group(conversation, request.user)
    return JsonResponse({"message": "You left the group"})


# ============================================================================
# NOTIFICATIONS & PRESENCE
# ============================================================================

@require_GET
@login_required
def notifications_view(request):
    items = []
    for item in notifications.merged_items(request.user):
        if isinstance(item, Notification):
            items.append(serializers.notification_dict(item))
        else:
            items.append(serializers.activity_dict(item))
    return JsonResponse({"items": items})


@csrf_exempt
@require_POST
@login_required
def mark_notification_read(request, notification_id):
    notification = get_object_or_404(Notification, id=notification_id, user=request.user)
    notifications.mark_read(notification)
    return JsonResponse({"status": "success"})


@csrf_exempt
@require_POST
@login_required
def mark_all_notifications_read(request):
    count = notifications.mark_all_read(request.user)
    return JsonResponse({"status": "success", "marked": count})


@require_GET
@login_required
def badges(request):
    return JsonResponse(unread_counts(request))


@require_GET
@login_required
@json_errors
def presence_view(request):
    raw = [v for v in request.GET.get('ids', '').split(',') if v.strip()]
    statuses = presence.presence_for(_ids(raw))
    return JsonResponse({"presence": {
        str(user_id): {"online": s["online"], "last_seen": s["last_seen"].isoformat() if s["last_seen"] else None}
        for user_id, s in statuses.items()
    }})


# ============================================================================
# ASSISTANT
# ============================================================================

@csrf_exempt
@login_required
@json_errors
def assistant(request):
    turns = list(AssistantMessage.objects.filter(user=request.user))
    if request.method == "POST":
        text = _text(_data(request), "text").strip()
        if not text:
            return JsonResponse({"error": "Message cannot be empty"}, status=400)
        try:
            reply = gemini.assistant_reply(gemini.to_history(turns), text)
        except gemini.AssistantError as e:
            return JsonResponse({"error": str(e)}, status=503)
        AssistantMessage.objects.create(user=request.user, author='user', text=text)
        bot = AssistantMessage.objects.create(user=request.user, author='bot', text=reply)
        return JsonResponse({"reply": bot.text})

    history = [{"author": t.author, "text": t.text} for t in turns]
    if not history:
        history = [{"author": "bot", "text": gemini.ASSISTANT_GREETING}]
    return JsonResponse({"messages": history})


# ============================================================================
# AGENT
# ============================================================================

@csrf_exempt
@login_required
@role_required('agent')
@json_errors
def agent_members(request):
    if request.method == "POST":
        member = membership.register_member(request.user, _data(request))
        return JsonResponse({"member": serializers.member_dict(member)}, status=201)

    members = list(membership.agent_members(request.user))
    return JsonResponse({
        "members": [serializers.member_dict(m) for m in members],
        "commission": str(membership.agent_commission(members)),
    })


# ============================================================================
# ADMIN
# ============================================================================

@require_GET
@login_required
@role_required('admin')
def admin_users(request):
    return JsonResponse({"users": [serializers.user_detail(u) for u in membership.list_users()]})


@csrf_exempt
@require_POST
@login_required
@role_required('admin')
@json_errors
def admin_update_role(request, user_id):
    user = get_object_or_404(User, pk=user_id)
    membership.update_user_role(user, _text(_data(request), "role"))
    return JsonResponse({"user": serializers.user_detail(user)})


@require_GET
@login_required
@role_required('admin')
def admin_members(request):
    rows = []
    for member in membership.list_members():
        row = serializers.member_dict(member)
        row["user_status"] = member.user.status if member.user else None
        row["distress_calls_available"] = member.user.distress_calls_available if member.user else None
        rows.append(row)
    page = Paginator(rows, settings.LIST_PAGE_SIZE).get_page(_page(request))
    return JsonResponse({"members": list(page.object_list), "page": page.number, "num_pages": page.paginator.num_pages})


@require_GET
@login_required
@role_required('admin')
def admin_pending_members(request):
    return JsonResponse({"members": [serializers.member_dict(m) for m in membership.pending_members()]})


@csrf_exempt
@require_POST
@login_required
@role_required('admin')
@json_errors
def admin_approve_member(request, member_id):
    member = get_object_or_404(Member, pk=member_id)
    try:
        membership.approve_member(member)
    except gemini.WelcomeMessageError as e:
        return JsonResponse({"error": str(e)}, status=503)
    return JsonResponse({"member": serializers.member_dict(member)})


@csrf_exempt
@require_POST
@login_required
@role_required('admin')
def admin_reject_member(request, member_id):
    member = get_object_or_404(Member, pk=member_id)
    membership.reject_member(member)
    return JsonResponse({"member": serializers.member_dict(member)})


@csrf_exempt
@require_POST
@login_required
@role_required('admin')
@json_errors
def admin_payment_status(request, member_id):
    member = get_object_or_404(Member, pk=member_id)
    membership.update_payment_status(member, _text(_data(request), "payment_status"))
    return JsonResponse({"member": serializers.member_dict(member)})


@csrf_exempt
@require_POST
@login_required
@role_required('admin')
def admin_reset_distress_quota(request, user_id):
    user = get_object_or_404(User, pk=user_id)
    membership.reset_distress_quota(user)
    return JsonResponse({"distress_calls_available": user.distress_calls_available})


@csrf_exempt
@require_POST
@login_required
@role_required('admin')
def admin_clear_distress_post(request, user_id):
    user = get_object_or_404(User, pk=user_id)
    cleared = membership.clear_last_distress_post(user)
    return JsonResponse({"cleared": cleared})


@require_GET
@login_required
@role_required('admin')
def admin_agents(request):
    agents = membership.agents_with_stats()
    return JsonResponse({"agents": [
        dict(serializers.user_detail(a), member_count=a.member_count, commission=str(a.commission))
        for a in agents
    ]})


@require_GET
@login_required
@role_required('admin')
def admin_agents_csv(request):
    stream = membership.write_agents_csv(io.StringIO())
    response = HttpResponse(stream.getvalue(), content_type='text/csv')
    response['Content-Disposition'] = 'attachment; filename="agents.csv"'
    return response


@require_GET
@login_required
@role_required('admin')
def admin_reports(request):
    reports = feed.list_reports(request.GET.get('status'))
    return JsonResponse({"reports": [serializers.report_dict(r) for r in reports]})


@csrf_exempt
@require_POST
@login_required
@role_required('admin')
@json_errors
def admin_resolve_report(request, report_id):
    report = get_object_or_404(Report, pk=report_id)
    feed.resolve_post_report(report)
    return JsonResponse({"report": serializers.report_dict(report)})


@csrf_exempt
@require_POST
@login_required
@role_required('admin')
@json_errors
def admin_dismiss_report(request, report_id):
    report = get_object_or_404(Report, pk=report_id)
    feed.dismiss_report(report)
    return JsonResponse({"report": serializers.report_dict(report)})


@csrf_exempt
@require_POST
@login_required
@role_required('admin')
def admin_process_welcome_messages(request):
    return JsonResponse({"updated": membership.process_pending_welcome_messages()})


@csrf_exempt
@login_required
@json_errors
def broadcasts(request):
    if request.method == "POST":
        if request.user.role != 'admin':
            return JsonResponse({"error": "You do not have permission to do that."}, status=403)
        broadcast = membership.send_broadcast(_text(_data(request), "message"))
        return JsonResponse({"broadcast": serializers.broadcast_dict(broadcast)}, status=201)
    return JsonResponse({"broadcasts": [serializers.broadcast_dict(b) for b in membership.get_broadcasts()]})
