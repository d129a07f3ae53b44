"""
Account directory queries: listing, profiles, search and mention lookup.

Search and mention lookup are discovery surfaces; a store failure yields an
empty result instead of an error.
"""

import logging

from django.db import DatabaseError

from .exceptions import InternalError, NotFound, ValidationError
from .models import User


logger = logging.getLogger(__name__)

SEARCH_LIMIT = 20
MENTION_LIMIT = 10


def account_view(user):
    return {
        "id": user.email,
        "username": user.username,
        "email": user.email,
        "name": user.full_name,
        "followersCount": len(user.follower_set()),
    }


def profile_view(user):
    view = account_view(user)
    view["followingCount"] = len(user.following_set())
    return view


def account_details_view(user):
    """Profile view plus the personal fields only the account itself sees."""
    view = profile_view(user)
    view["birthdate"] = user.birthdate.isoformat() if user.birthdate else None
    view["gender"] = user.gender
    view["interests"] = list(user.interests or [])
    return view


def list_accounts():
    try:
        return list(User.objects.order_by('pk'))
    except DatabaseError as e:
        logger.error(f"Listing accounts failed: {e}")
        raise InternalError("Failed to list users") from e


def resolve_handle(handle, missing_message="User not found"):
    """
    Account for handle, or an error the API can report.

    Raises:
        ValidationError: handle missing, blank or not a string
        NotFound: no account with that handle
        InternalError: the store failed during the lookup
    """
    if handle is not None and not isinstance(handle, str):
        raise ValidationError("Username must be a string")
    if not handle or not handle.strip():
        raise ValidationError("Username is required")
    try:
        user = User.objects.by_handle(handle.strip())
    except DatabaseError as e:
        logger.error(f"Account lookup failed for {handle!r}: {e}")
        raise InternalError("Failed to look up user") from e
    if user is None:
        raise NotFound(missing_message)
    return user


def get_profile(handle):
    return resolve_handle(handle)


def _matching(query):
    """Handle matches first, then full-name matches, one entry per account."""
    seen = set()
    results = []
    by_handle = User.objects.filter(username__icontains=query).order_by('pk')
    by_name = User.objects.filter(full_name__icontains=query).order_by('pk')
    for user in list(by_handle) + list(by_name):
        if user.email in seen:
            continue
        seen.add(user.email)
        results.append(user)
    return results


def search(query, limit=SEARCH_LIMIT):
    query = (query or '').strip()
    if not query:
        return []
    try:
        results = _matching(query)[:limit]
    except DatabaseError as e:
        logger.error(f"User search failed for '{query}': {e}")
        return []
    logger.info(f"Search for '{query}' returned {len(results)} users")
    return results


def mention_candidates(actor, query, limit=MENTION_LIMIT):
    """Search results minus actor, tagged with follow flags relative to actor."""
    query = (query or '').strip()
    if not query:
        return []
    try:
        users = [user for user in _matching(query) if user.email != actor.email][:limit]
    except DatabaseError as e:
        logger.error(f"Mention search failed for '{query}': {e}")
        return []

    following_ids = actor.following_set()
    follower_ids = actor.follower_set()
    candidates = []
    for user in users:
        view = profile_view(user)
        view["isFollowing"] = user.email in following_ids
        view["isFollower"] = user.email in follower_ids
        candidates.append(view)
    return candidates
