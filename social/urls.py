"""
================================================================================
PARLEY - URL CONFIGURATION
================================================================================

@file        urls.py
@description JSON API routing for the social app
@version     1.0.0

MODULE PURPOSE
================================================================================
Maps API paths to view functions. URLs are grouped by concern:

1. Accounts & Password Reset (/api/auth/...)
2. User Directory (/api/users/...)
3. Follow Graph (/api/follow/...)
4. Direct Messages (/api/messages/...)

URL PARAMETER TYPES
================================================================================
- <str:username>: Account handle
- <int:message_id>: Message primary key

ORDERING NOTES
================================================================================
Fixed segments ("search", "mentions", "suggestions") are listed before the
<str:username> patterns that would otherwise capture them.

SECURITY CONSIDERATIONS
================================================================================
- Everything except register, login, logout, the password reset pair and
  the public follower/following/counts listings requires an authenticated
  session (401 JSON otherwise)
- The forgot-password response is identical for known and unknown emails

================================================================================
"""

from django.urls import path
from . import views


urlpatterns = [

    # ========================================================================
    # SECTION 1: ACCOUNTS & PASSWORD RESET
    # ========================================================================

    path(
        "api/auth/register",
        views.register,
        name="register"
    ),  # Create account and start a session

    path(
        "api/auth/login",
        views.login_view,
        name="login"
    ),  # Username or email + password

    path(
        "api/auth/logout",
        views.logout_view,
        name="logout"
    ),  # End session

    path(
        "api/auth/me",
        views.me,
        name="me"
    ),  # Current account profile

    path(
        "api/auth/forgot-password",
        views.forgot_password,
        name="forgot_password"
    ),  # Issue reset token

    path(
        "api/auth/reset-password",
        views.reset_password,
        name="reset_password"
    ),  # Consume reset token

    # ========================================================================
    # SECTION 2: USER DIRECTORY
    # ========================================================================

    path(
        "api/users/",
        views.list_users,
        name="list_users"
    ),  # All accounts

    path(
        "api/users/search",
        views.search_users,
        name="search_users"
    ),  # ?q= handle or name search

    path(
        "api/users/mentions",
        views.mention_users,
        name="mention_users"
    ),  # ?q= search with follow flags

    path(
        "api/users/<str:username>/",
        views.user_profile,
        name="user_profile"
    ),  # Single profile

    # ========================================================================
    # SECTION 3: FOLLOW GRAPH
    # ========================================================================

    path(
        "api/follow/",
        views.follow_user,
        name="follow_user"
    ),  # POST {username}

    path(
        "api/follow/suggestions/",
        views.follow_suggestions,
        name="follow_suggestions"
    ),  # Accounts not followed yet

    path(
        "api/follow/status/<str:username>/",
        views.follow_status,
        name="follow_status"
    ),  # {isFollowing}

    path(
        "api/follow/followers/<str:username>/",
        views.followers_list,
        name="followers_list"
    ),  # Accounts following username

    path(
        "api/follow/following/<str:username>/",
        views.following_list,
        name="following_list"
    ),  # Accounts username follows

    path(
        "api/follow/counts/<str:username>/",
        views.follow_counts,
        name="follow_counts"
    ),  # {followers, following}

    path(
        "api/follow/<str:username>/",
        views.unfollow_user,
        name="unfollow_user"
    ),  # DELETE

    # ========================================================================
    # SECTION 4: DIRECT MESSAGES
    # ========================================================================

    path(
        "api/messages/send/",
        views.send_message,
        name="send_message"
    ),  # POST new message

    path(
        "api/messages/conversations/",
        views.conversation_list,
        name="conversation_list"
    ),  # Inbox summaries, newest first

    path(
        "api/messages/conversation/<str:username>/",
        views.conversation,
        name="conversation"
    ),  # Full history with one partner

    path(
        "api/messages/mark-read/<str:username>/",
        views.mark_read,
        name="mark_read"
    ),  # Mark partner's messages read

    path(
        "api/messages/unread-count/",
        views.unread_count,
        name="unread_count"
    ),  # Inbox badge count

    path(
        "api/messages/<int:message_id>/",
        views.message_detail,
        name="message_detail"
    ),  # PUT edit, DELETE soft delete
]
