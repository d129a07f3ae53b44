import json
import logging
from functools import wraps

from django.conf import settings
from django.contrib.auth import authenticate, login, logout
from django.db import IntegrityError
from django.http import JsonResponse
from django.utils.dateparse import parse_date
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_http_methods, require_POST

from . import conversations, directory, follow_graph, reset_ledger
from .exceptions import AlreadyExists, Unauthorized, ValidationError
from .models import User


# Logger
logger = logging.getLogger(__name__)


def api_login_required(view):
    """Like login_required, but answers 401 JSON instead of redirecting."""
    @wraps(view)
    def wrapper(request, *args, **kwargs):
        if not request.user.is_authenticated:
            raise Unauthorized("Not authenticated")
        return view(request, *args, **kwargs)
    return wrapper


def _text(data, key):
    """String field from a JSON body; missing or null reads as empty."""
    value = data.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValidationError(f"{key} must be a string")
    return value


def _profile_fields(data):
    """Optional personal fields accepted at registration."""
    fields = {}

    birthdate = _text(data, "birthdate").strip()
    if birthdate:
        try:
            parsed = parse_date(birthdate)
        except ValueError:
            parsed = None
        if parsed is None:
            raise ValidationError("birthdate must be a date in YYYY-MM-DD format")
        fields["birthdate"] = parsed

    gender = _text(data, "gender").strip()
    if len(gender) > 30:
        raise ValidationError("gender cannot exceed 30 characters")
    fields["gender"] = gender

    interests = data.get("interests") or []
    if not isinstance(interests, list) or not all(isinstance(i, str) for i in interests):
        raise ValidationError("interests must be a list of strings")
    fields["interests"] = [i.strip() for i in interests if i.strip()]

    return fields


def _json_body(request):
    if not request.body:
        return {}
    try:
        data = json.loads(request.body)
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise ValidationError("Invalid JSON body")
    if not isinstance(data, dict):
        raise ValidationError("JSON object expected")
    return data


# ============================================================================
# ACCOUNTS
# ============================================================================

@csrf_exempt
@require_POST
def register(request):
    data = _json_body(request)
    username = _text(data, "username").strip()
    email = _text(data, "email").strip().lower()
    password = _text(data, "password")
    full_name = _text(data, "name").strip()
    profile = _profile_fields(data)

    errors = []

    if not username:
        errors.append("Username is required.")
    elif len(username) < 3:
        errors.append("Username must be at least 3 characters.")
    elif len(username) > 30:
        errors.append("Username cannot exceed 30 characters.")
    elif not username.replace('_', '').isalnum():
        errors.append("Username can only contain letters, numbers, and underscores.")

    if not email:
        errors.append("Email is required.")
    elif '@' not in email or '.' not in email.split('@')[-1]:
        errors.append("Please enter a valid email address.")

    if not password:
        errors.append("Password is required.")
    elif len(password) < 8:
        errors.append("Password must be at least 8 characters.")

    if errors:
        raise ValidationError(" ".join(errors))

    if User.objects.filter(username=username).exists():
        raise AlreadyExists("Username already taken.")
    if User.objects.filter(email__iexact=email).exists():
        raise AlreadyExists("Email already registered.")

    try:
        user = User.objects.create_user(
            username=username,
            email=email,
            password=password,
            full_name=full_name,
            **profile,
        )
    except IntegrityError as e:
        logger.warning(f"IntegrityError during registration: {str(e)}")
        raise AlreadyExists("Username or email already taken.")

    login(request, user, backend='django.contrib.auth.backends.ModelBackend')
    logger.info(f"Registered {username}")
    return JsonResponse(directory.account_details_view(user), status=201)


@csrf_exempt
@require_POST
def login_view(request):
    data = _json_body(request)
    identifier = (_text(data, "identifier") or _text(data, "email")).strip()
    password = _text(data, "password")

    # Try to find user by username or email
    user = User.objects.by_handle(identifier) or User.objects.by_identifier(identifier)
    if user is not None:
        user = authenticate(request, username=user.username, password=password)

    if user is None or not user.is_active:
        logger.info("Login rejected")
        raise Unauthorized("Invalid credentials")

    login(request, user)
    logger.info(f"Login success for {user.username}")
    return JsonResponse(directory.profile_view(user))


@csrf_exempt
@require_POST
def logout_view(request):
    logout(request)
    return JsonResponse({"message": "Logged out"})


@require_GET
@api_login_required
def me(request):
    return JsonResponse(directory.account_details_view(request.user))


@csrf_exempt
@require_POST
def forgot_password(request):
    data = _json_body(request)
    token = reset_ledger.issue_token(data.get("email"))

    response = {"message": reset_ledger.GENERIC_RESET_MESSAGE}
    if token is not None and reset_ledger.expose_tokens():
        response["resetToken"] = token
    return JsonResponse(response)


@csrf_exempt
@require_POST
def reset_password(request):
    data = _json_body(request)
    reset_ledger.consume_token(data.get("token"), data.get("newPassword"))
    return JsonResponse({"message": "Password reset successfully"})


# ============================================================================
# USERS
# ============================================================================

@require_GET
@api_login_required
def list_users(request):
    users = directory.list_accounts()
    return JsonResponse([directory.profile_view(u) for u in users], safe=False)


@require_GET
@api_login_required
def search_users(request):
    users = directory.search(request.GET.get('q', ''))
    return JsonResponse([directory.profile_view(u) for u in users], safe=False)


@require_GET
@api_login_required
def mention_users(request):
    candidates = directory.mention_candidates(request.user, request.GET.get('q', ''))
    return JsonResponse(candidates, safe=False)


@require_GET
@api_login_required
def user_profile(request, username):
    return JsonResponse(directory.profile_view(directory.get_profile(username)))


# ============================================================================
# FOLLOW GRAPH
# ============================================================================

@csrf_exempt
@require_POST
@api_login_required
def follow_user(request):
    data = _json_body(request)
    result = follow_graph.follow(request.user, data.get("username"))
    return JsonResponse({
        "success": True,
        "message": "Successfully followed user",
        "followersCount": result.followers_count,
        "followingCount": result.following_count,
    })


@csrf_exempt
@require_http_methods(["DELETE"])
@api_login_required
def unfollow_user(request, username):
    result = follow_graph.unfollow(request.user, username)
    return JsonResponse({
        "success": True,
        "message": "Successfully unfollowed user",
        "followersCount": result.followers_count,
        "followingCount": result.following_count,
    })


@require_GET
@api_login_required
def follow_status(request, username):
    return JsonResponse({"isFollowing": follow_graph.follow_status(request.user, username)})


@require_GET
def followers_list(request, username):
    users = follow_graph.followers(username)
    return JsonResponse([directory.account_view(u) for u in users], safe=False)


@require_GET
def following_list(request, username):
    users = follow_graph.following(username)
    return JsonResponse([directory.account_view(u) for u in users], safe=False)


@require_GET
def follow_counts(request, username):
    return JsonResponse(follow_graph.follow_counts(username))


@require_GET
@api_login_required
def follow_suggestions(request):
    users = follow_graph.suggestions(request.user, limit=settings.PARLEY_SUGGESTION_LIMIT)
    return JsonResponse([directory.account_view(u) for u in users], safe=False)


# ============================================================================
# MESSAGES
# ============================================================================

@csrf_exempt
@require_POST
@api_login_required
def send_message(request):
    data = _json_body(request)
    extras = {}
    if "imageUri" in data:
        extras["image_uri"] = data["imageUri"]
    if "audioUri" in data:
        extras["audio_uri"] = data["audioUri"]
    if "replyToMessageId" in data:
        extras["reply_to_message_id"] = data["replyToMessageId"]

    message = conversations.send_message(
        request.user,
        data.get("receiverUsername"),
        data.get("content"),
        message_type=data.get("type") or "text",
        extras=extras,
    )
    return JsonResponse({"success": True, "message": conversations.message_view(message)})


@require_GET
@api_login_required
def conversation(request, username):
    msgs = conversations.conversation(request.user, username)
    return JsonResponse([conversations.message_view(m) for m in msgs], safe=False)


@require_GET
@api_login_required
def conversation_list(request):
    summaries = conversations.conversations(request.user)
    return JsonResponse([conversations.summary_view(s) for s in summaries], safe=False)


@csrf_exempt
@require_POST
@api_login_required
def mark_read(request, username):
    marked = conversations.mark_read(request.user, username)
    return JsonResponse({"success": True, "markedCount": marked})


@require_GET
@api_login_required
def unread_count(request):
    return JsonResponse({"unreadCount": conversations.unread_total(request.user)})


@csrf_exempt
@require_http_methods(["PUT", "DELETE"])
@api_login_required
def message_detail(request, message_id):
    if request.method == "PUT":
        data = _json_body(request)
        message = conversations.edit_message(request.user, message_id, data.get("content"))
    else:
        message = conversations.delete_message(request.user, message_id)
    return JsonResponse({"success": True, "message": conversations.message_view(message)})
