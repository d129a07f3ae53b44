from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from django.contrib.auth.models import Group

from . import follow_graph
from .models import User, Message

# ==================== ADMIN CLASSES ====================

@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = ('username', 'email', 'full_name', 'followers_count', 'following_count', 'date_joined')
    search_fields = ('username', 'email', 'full_name')
    readonly_fields = ('followers', 'following')
    fieldsets = BaseUserAdmin.fieldsets + (
        ('Profile', {'fields': ('full_name', 'birthdate', 'gender', 'interests')}),
        ('Social', {'fields': ('followers', 'following')}),
    )
    add_fieldsets = (
        (None, {
            'classes': ('wide',),
            'fields': ('username', 'email', 'password1', 'password2'),
        }),
    )
    actions = ['reconcile_follow_graph']

    def followers_count(self, obj):
        return len(obj.follower_set())
    followers_count.short_description = 'Followers'

    def following_count(self, obj):
        return len(obj.following_set())
    following_count.short_description = 'Following'

    def reconcile_follow_graph(self, request, queryset):
        # Symmetry spans accounts, so the repair always covers the whole graph.
        report = follow_graph.reconcile()
        self.message_user(
            request,
            f"{report.scanned} accounts scanned, {report.updated} updated, "
            f"{report.followers_rewritten} follower sets rewritten"
        )
    reconcile_follow_graph.short_description = "Reconcile follow graph (all accounts)"

@admin.register(Message)
class MessageAdmin(admin.ModelAdmin):
    list_display = ('id', 'sender_username', 'receiver_username', 'timestamp', 'is_read', 'content_short')
    list_filter = ('is_read', 'is_deleted', 'is_group_message', 'timestamp')
    search_fields = ('content', 'sender_username', 'receiver_username', 'sender_email', 'receiver_email')

    def content_short(self, obj):
        if obj.content:
            return obj.content[:50] + '...' if len(obj.content) > 50 else obj.content
        return "(empty)"
    content_short.short_description = 'Content'

# Unregister Django's default Group
admin.site.unregister(Group)

# Basic admin site configuration
admin.site.site_header = "Parley Admin"
admin.site.site_title = "Parley Admin Portal"
admin.site.index_title = "Welcome"
