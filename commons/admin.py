from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from django.contrib.auth.models import Group
from django.urls import reverse
from django.utils.html import format_html

from . import membership
from .models import (
    Activity, AssistantMessage, Broadcast, Comment, Conversation, ConversationMember,
    Follow, Member, Message, Notification, Post, Report, User,
)


def _short(text, limit=80):
    if text:
        return text[:limit] + '...' if len(text) > limit else text
    return "(no content)"


# ==================== ADMIN CLASSES ====================

@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = ('username', 'name', 'role', 'circle', 'status', 'credibility_score', 'date_joined')
    list_filter = ('role', 'status', 'circle')
    search_fields = ('username', 'email', 'name', 'agent_code')
    fieldsets = BaseUserAdmin.fieldsets + (
        ('Commons', {'fields': (
            'name', 'role', 'circle', 'status', 'credibility_score', 'agent_code',
            'distress_calls_available', 'phone', 'address', 'id_card_number', 'bio',
            'profile_picture', 'timezone', 'email_verified',
        )}),
    )
    actions = ['reset_distress_quota', 'oust_users']

    def reset_distress_quota(self, request, queryset):
        for user in queryset:
            membership.reset_distress_quota(user)
        self.message_user(request, f"{queryset.count()} distress quotas reset")
    reset_distress_quota.short_description = "Reset distress call quota"

    def oust_users(self, request, queryset):
        queryset.update(status='ousted')
        self.message_user(request, f"{queryset.count()} users ousted")
    oust_users.short_description = "Oust selected users"


@admin.register(Member)
class MemberAdmin(admin.ModelAdmin):
    list_display = ('full_name', 'email', 'circle', 'payment_status', 'agent_link', 'membership_card_id', 'date_registered')
    list_filter = ('payment_status', 'circle', 'needs_welcome_update')
    search_fields = ('full_name', 'email', 'membership_card_id')
    actions = ['reject_members']

    def agent_link(self, obj):
        if obj.agent_id is None:
            return "(public signup)"
        url = reverse("admin:commons_user_change", args=[obj.agent_id])
        return format_html('<a href="{}">{}</a>', url, obj.agent_name or obj.agent_id)
    agent_link.short_description = 'Agent'

    def reject_members(self, request, queryset):
        for member in queryset:
            membership.reject_member(member)
        self.message_user(request, f"{queryset.count()} members rejected")
    reject_members.short_description = "Reject selected members"


@admin.register(Post)
class PostAdmin(admin.ModelAdmin):
    list_display = ('id', 'author_name', 'post_type', 'is_pinned', 'date', 'content_short')
    list_filter = ('post_type', 'is_pinned')
    search_fields = ('content', 'author__username', 'author_name')

    def content_short(self, obj):
        return _short(obj.content)
    content_short.short_description = 'Content'


@admin.register(Comment)
class CommentAdmin(admin.ModelAdmin):
    list_display = ('id', 'author_name', 'post', 'timestamp', 'content_short')
    search_fields = ('content', 'author__username', 'post__id')

    def content_short(self, obj):
        return _short(obj.content, 50)
    content_short.short_description = 'Content'


@admin.register(Report)
class ReportAdmin(admin.ModelAdmin):
    list_display = ('id', 'reporter_name', 'reason', 'status', 'date', 'content_short')
    list_filter = ('status', 'reason')

    def content_short(self, obj):
        return _short(obj.post_content, 50)
    content_short.short_description = 'Post'


@admin.register(Conversation)
class ConversationAdmin(admin.ModelAdmin):
    list_display = ('id', 'name', 'is_group', 'created_by', 'last_message_at', 'member_count')
    list_filter = ('is_group',)
    search_fields = ('name', 'created_by__username')

    def member_count(self, obj):
        return obj.members.count()
    member_count.short_description = 'Members'


@admin.register(ConversationMember)
class ConversationMemberAdmin(admin.ModelAdmin):
    list_display = ('id', 'conversation', 'user', 'joined_at', 'is_admin')
    list_filter = ('is_admin',)
    search_fields = ('conversation__name', 'user__username')


@admin.register(Message)
class MessageAdmin(admin.ModelAdmin):
    list_display = ('id', 'conversation', 'sender_name', 'timestamp', 'content_short')
    search_fields = ('text', 'sender__username')

    def content_short(self, obj):
        return _short(obj.text, 50)
    content_short.short_description = 'Text'


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ('id', 'user', 'notification_type', 'message', 'timestamp', 'is_read')
    list_filter = ('notification_type', 'is_read')
    search_fields = ('user__username', 'causer_name', 'message')


@admin.register(Activity)
class ActivityAdmin(admin.ModelAdmin):
    list_display = ('id', 'activity_type', 'message', 'causer_circle', 'timestamp')
    list_filter = ('activity_type',)


@admin.register(Follow)
class FollowAdmin(admin.ModelAdmin):
    list_display = ('id', 'follower', 'followed')
    search_fields = ('follower__username', 'followed__username')


admin.site.register(Broadcast)
admin.site.register(AssistantMessage)

# Unregister Django's default Group
admin.site.unregister(Group)

# Basic admin site configuration
admin.site.site_header = "Ubuntium Global Commons Admin"
admin.site.site_title = "Ubuntium Commons Admin Portal"
admin.site.index_title = "Welcome"
