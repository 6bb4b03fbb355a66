"""
Community feed: posts, distress calls, reposts, pins, comments, follows and
moderation reports.
"""

import logging

from django.conf import settings
from django.core.paginator import Paginator
from django.db import transaction
from django.db.models import F

from . import notifications
from .exceptions import Conflict, PermissionDenied, QuotaExhausted, ValidationFailed
from .models import (
    Activity, Comment, DISTRESS_AUTHOR_NAME, Follow, Post, POST_TYPE_CHOICES, Report, User,
)

logger = logging.getLogger(__name__)

POST_TYPES = [value for value, _ in POST_TYPE_CHOICES]
FEED_FILTERS = ['all'] + POST_TYPES


def require_active(user):
    if not user.can_participate:
        raise PermissionDenied("Your account is not active yet.")


def _clean_content(content):
    content = (content or "").strip()
    if not content:
        raise ValidationFailed("Post content cannot be empty.")
    return content


# ============================================================================
# POSTS
# ============================================================================

def create_post(author, content, post_type='general'):
    require_active(author)
    content = _clean_content(content)
    if post_type == 'distress':
        return create_distress_post(author, content)
    if post_type not in POST_TYPES:
        raise ValidationFailed(f"Unknown post type: {post_type}")

    post = Post.objects.create(
        author=author,
        author_name=author.name,
        author_circle=author.circle or 'Unknown',
        content=content,
        post_type=post_type,
    )
    notifications.record_activity(
        f"NEW_POST_{post_type.upper()}",
        f"{author.name} created a new {post_type} post.",
        link=post.id,
        causer=author,
    )
    return post


def create_distress_post(user, content):
    require_active(user)
    content = _clean_content(content)

    with transaction.atomic():
        user = User.objects.select_for_update().get(pk=user.pk)
        if user.distress_calls_available <= 0:
            raise QuotaExhausted("No distress calls available.")
        post = Post.objects.create(
            author=user,
            author_name=DISTRESS_AUTHOR_NAME,
            author_circle=user.circle or 'Unknown',
            content=content,
            post_type='distress',
        )
        user.distress_calls_available -= 1
        user.last_distress_post = post
        user.save(update_fields=['distress_calls_available', 'last_distress_post'])

    logger.info(f"Distress post {post.id} created ({user.distress_calls_available} left for user {user.id})")
    return post


def feed_page(viewer, type_filter='all', page=1, admin_view=False):
    """One page of the feed.

    Pinned posts lead page 1 and are left out of the paged listing. The
    'all' feed also merges recent NEW_MEMBER activity into page 1 unless
    this is the admin moderation view.

    Returns a dict with `items` (list of ("post"|"activity", obj)), `page`,
    `num_pages` and `has_next`.
    """
    if type_filter not in FEED_FILTERS:
        raise ValidationFailed(f"Unknown feed filter: {type_filter}")

    posts = Post.objects.select_related('author', 'reposted_from').prefetch_related('upvotes')
    if type_filter != 'all':
        posts = posts.filter(post_type=type_filter)

    paginator = Paginator(posts.filter(is_pinned=False).order_by('-date', '-id'), settings.FEED_PAGE_SIZE)
    page_obj = paginator.get_page(page)
    items = [("post", post) for post in page_obj.object_list]

    if page_obj.number == 1:
        if type_filter == 'all' and not admin_view:
            activities = Activity.objects.filter(activity_type='NEW_MEMBER')
            if page_obj.has_next() and items:
                activities = activities.filter(timestamp__gte=items[-1][1].date)
            merged = items + [("activity", a) for a in activities[:notifications.FEED_LIMIT]]
            merged.sort(key=lambda item: item[1].date if item[0] == "post" else item[1].timestamp, reverse=True)
            items = merged
        pinned = [("post", post) for post in posts.filter(is_pinned=True).order_by('-date', '-id')]
        items = pinned + items

    return {
        "items": items,
        "page": page_obj.number,
        "num_pages": paginator.num_pages,
        "has_next": page_obj.has_next(),
    }


def following_feed(viewer, page=1):
    followed_ids = Follow.objects.filter(follower=viewer).values_list('followed_id', flat=True)
    posts = (
        Post.objects.filter(author_id__in=followed_ids)
        .exclude(post_type='distress')
        .select_related('author', 'reposted_from')
        .order_by('-date', '-id')
    )
    return Paginator(posts, settings.FEED_PAGE_SIZE).get_page(page)


def posts_by_author(author, viewer):
    posts = Post.objects.filter(author=author).order_by('-date', '-id')
    # Distress posts stay anonymous on public profiles
    if viewer.pk != author.pk and not viewer.is_admin_role:
        posts = posts.exclude(post_type='distress')
    return posts


def toggle_upvote(post, user):
    """Returns True when the post is now upvoted by `user`."""
    if post.upvotes.filter(pk=user.pk).exists():
        post.upvotes.remove(user)
        return False

    post.upvotes.add(user)
    if post.author_id != user.pk:
        notifications.notify(
            post.author,
            'POST_LIKE',
            f"{user.name} liked your post.",
            link=post.id,
            causer=user,
        )
    return True


def _can_manage(post, user):
    return post.author_id == user.pk or user.is_admin_role


def update_post(post, user, content):
    if post.author_id != user.pk:
        raise PermissionDenied("You can only edit your own posts.")
    post.content = _clean_content(content)
    post.save(update_fields=['content'])
    return post


def delete_post(post, user):
    if not _can_manage(post, user):
        raise PermissionDenied("You can only delete your own posts.")
    if post.is_distress:
        return delete_distress_post(post, user)
    post.delete()


def delete_distress_post(post, user):
    if not _can_manage(post, user):
        raise PermissionDenied("You can only delete your own posts.")
    with transaction.atomic():
        User.objects.filter(pk=post.author_id, last_distress_post_id=post.pk).update(last_distress_post=None)
        post.delete()


def repost(original, user, comment=''):
    require_active(user)
    if original.is_distress:
        raise ValidationFailed("Distress posts cannot be reposted.")
    root = original.reposted_from or original
    return Post.objects.create(
        author=user,
        author_name=user.name,
        author_circle=user.circle or 'Unknown',
        content=(comment or "").strip(),
        post_type=root.post_type,
        reposted_from=root,
    )


def toggle_pin(admin, post, pinned):
    if not admin.is_admin_role:
        raise PermissionDenied("Only admins can pin posts.")
    post.is_pinned = bool(pinned)
    post.save(update_fields=['is_pinned'])
    logger.info(f"Post {post.id} pinned={post.is_pinned} by admin {admin.id}")
    return post


# ============================================================================
# COMMENTS
# ============================================================================

def add_comment(post, user, content):
    require_active(user)
    content = (content or "").strip()
    if not content:
        raise ValidationFailed("Comment cannot be empty.")
    comment = Comment.objects.create(post=post, author=user, author_name=user.name, content=content)
    if post.author_id != user.pk:
        notifications.notify(
            post.author,
            'POST_COMMENT',
            f"{user.name} commented on your post.",
            link=post.id,
            causer=user,
        )
    return comment


def delete_comment(comment, user):
    if user.pk not in (comment.author_id, comment.post.author_id) and not user.is_admin_role:
        raise PermissionDenied("You cannot delete this comment.")
    comment.delete()


def toggle_comment_upvote(comment, user):
    if comment.upvotes.filter(pk=user.pk).exists():
        comment.upvotes.remove(user)
        return False
    comment.upvotes.add(user)
    return True


# ============================================================================
# FOLLOWS
# ============================================================================

def follow(follower, followed):
    if follower.pk == followed.pk:
        raise ValidationFailed("Cannot follow yourself")
    _, created = Follow.objects.get_or_create(follower=follower, followed=followed)
    if not created:
        raise Conflict("Already following this user.")
    notifications.notify(
        followed,
        'NEW_FOLLOWER',
        f"{follower.name} started following you.",
        link=follower.id,
        causer=follower,
    )


def unfollow(follower, followed):
    deleted, _ = Follow.objects.filter(follower=follower, followed=followed).delete()
    return deleted > 0


# ============================================================================
# REPORTS
# ============================================================================

def report_post(reporter, post, reason, details=''):
    reason = (reason or "").strip()
    if not reason:
        raise ValidationFailed("A reason is required.")
    report = Report.objects.create(
        reporter=reporter,
        reporter_name=reporter.name,
        post=post,
        post_author_id=post.author_id,
        post_content=post.content,
        reason=reason,
        details=(details or "").strip(),
    )
    logger.info(f"Post {post.id} reported by user {reporter.id}: {reason}")
    return report


def list_reports(status=None):
    reports = Report.objects.select_related('post_author')
    if status:
        reports = reports.filter(status=status)
    return reports


def _lock_open_report(report):
    locked = Report.objects.select_for_update().get(pk=report.pk)
    if locked.status != 'new':
        raise Conflict("This report has already been handled.")
    return locked


def resolve_post_report(report):
    """Uphold a report: delete the post and penalise its author."""
    with transaction.atomic():
        _lock_open_report(report)
        report.status = 'resolved'
        report.save(update_fields=['status'])
        if report.post_id is not None:
            Post.objects.filter(pk=report.post_id).delete()
        if report.post_author_id is not None:
            User.objects.filter(pk=report.post_author_id).update(
                credibility_score=F('credibility_score') - settings.CREDIBILITY_PENALTY
            )
            User.objects.filter(pk=report.post_author_id, credibility_score__lte=0).update(status='ousted')
    logger.info(f"Report {report.id} resolved")
    return report


def dismiss_report(report):
    with transaction.atomic():
        _lock_open_report(report)
        report.status = 'resolved'
        report.save(update_fields=['status'])
    return report
