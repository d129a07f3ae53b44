"""
Follow graph manager.

Keeps `User.following` and `User.followers` symmetric: B is in A.following
exactly when A is in B.followers. Every mutation writes both records inside
one transaction, target first, with both rows locked in primary-key order.

Relation sets hold identifiers (emails), not owned records, so an identifier
can outlive its account. Listing operations drop such dangling entries;
reconcile() is the offline tool that rewrites the sets.
"""

import logging
from dataclasses import dataclass

from django.db import DatabaseError, transaction

from .directory import resolve_handle
from .exceptions import AlreadyExists, InternalError, InvalidOperation, NotFound
from .models import User


logger = logging.getLogger(__name__)

DEFAULT_SUGGESTION_LIMIT = 10


@dataclass(frozen=True)
class FollowResult:
    followers_count: int  # target's followers
    following_count: int  # actor's following


@dataclass
class RepairReport:
    scanned: int = 0
    normalized: int = 0
    self_follows_removed: int = 0
    dangling_pruned: int = 0
    followers_rewritten: int = 0
    updated: int = 0


def _lock_pair(actor, target):
    """Re-read actor and target under row locks, in primary-key order."""
    rows = {
        user.pk: user
        for user in User.objects.select_for_update().filter(
            pk__in=[actor.pk, target.pk]
        ).order_by('pk')
    }
    if actor.pk not in rows:
        raise NotFound("Account not found")
    if target.pk not in rows:
        raise NotFound("User not found")
    return rows[actor.pk], rows[target.pk]


def _write_pair(actor_row, target_row, following_ids, follower_ids):
    # Target is persisted before actor.
    target_row.followers = sorted(follower_ids)
    target_row.save(update_fields=['followers'])
    actor_row.following = sorted(following_ids)
    actor_row.save(update_fields=['following'])


def follow(actor, target_handle):
    """
    Make actor follow the account with handle target_handle.

    Raises:
        ValidationError: empty handle
        NotFound: no account with that handle
        InvalidOperation: actor and target are the same account
        AlreadyExists: actor already follows target
        InternalError: the store failed while writing
    """
    target = resolve_handle(target_handle)
    if actor.email == target.email:
        raise InvalidOperation("Cannot follow yourself")

    try:
        with transaction.atomic():
            actor_row, target_row = _lock_pair(actor, target)
            following_ids = actor_row.following_set()
            if target_row.email in following_ids:
                raise AlreadyExists("Already following this user")
            following_ids.add(target_row.email)
            follower_ids = target_row.follower_set()
            follower_ids.add(actor_row.email)
            _write_pair(actor_row, target_row, following_ids, follower_ids)
    except DatabaseError as e:
        logger.error(f"Follow failed for {actor.username} -> {target.username}: {e}")
        raise InternalError("Failed to follow user") from e

    actor.following = actor_row.following
    logger.info(f"{actor.username} started following {target.username}")
    return FollowResult(followers_count=len(follower_ids), following_count=len(following_ids))


def unfollow(actor, target_handle):
    """
    Exact inverse of follow().

    Raises:
        ValidationError: empty handle
        NotFound: no account with that handle
        InvalidOperation: actor does not follow target
        InternalError: the store failed while writing
    """
    target = resolve_handle(target_handle)

    try:
        with transaction.atomic():
            actor_row, target_row = _lock_pair(actor, target)
            following_ids = actor_row.following_set()
            if target_row.email not in following_ids:
                raise InvalidOperation("Not following this user")
            following_ids.discard(target_row.email)
            follower_ids = target_row.follower_set()
            follower_ids.discard(actor_row.email)
            _write_pair(actor_row, target_row, following_ids, follower_ids)
    except DatabaseError as e:
        logger.error(f"Unfollow failed for {actor.username} -> {target.username}: {e}")
        raise InternalError("Failed to unfollow user") from e

    actor.following = actor_row.following
    logger.info(f"{actor.username} unfollowed {target.username}")
    return FollowResult(followers_count=len(follower_ids), following_count=len(following_ids))


def follow_status(actor, target_handle):
    """True when actor follows target_handle. Never raises."""
    try:
        target = User.objects.by_handle(target_handle)
    except DatabaseError as e:
        logger.error(f"Follow status lookup failed for {actor.username} -> {target_handle}: {e}")
        return False
    if target is None:
        return False
    return target.email in actor.following_set()


def followers(handle):
    """Accounts following handle, dangling identifiers dropped."""
    user = resolve_handle(handle)
    try:
        return User.objects.resolve_identifiers(sorted(user.follower_set()))
    except DatabaseError as e:
        logger.error(f"Get followers failed for {handle}: {e}")
        raise InternalError("Failed to get followers") from e


def following(handle):
    """Accounts handle follows, dangling identifiers dropped."""
    user = resolve_handle(handle)
    try:
        return User.objects.resolve_identifiers(sorted(user.following_set()))
    except DatabaseError as e:
        logger.error(f"Get following failed for {handle}: {e}")
        raise InternalError("Failed to get following") from e


def follow_counts(handle):
    user = resolve_handle(handle)
    return {
        "followers": len(user.follower_set()),
        "following": len(user.following_set()),
    }


def suggestions(actor, limit=DEFAULT_SUGGESTION_LIMIT):
    """
    Accounts actor does not follow yet, excluding actor, in directory order.

    Discovery surface: store failures give an empty list.
    """
    excluded = actor.following_set() | {actor.email}
    try:
        return list(User.objects.exclude(email__in=excluded).order_by('pk')[:limit])
    except DatabaseError as e:
        logger.error(f"Get suggestions failed for {actor.username}: {e}")
        return []


def reconcile(prune_dangling=False):
    """
    Rewrite every account's relation sets from the `following` sets.

    `following` is authoritative: each account's `followers` becomes exactly
    the set of accounts listing it in `following`. NULL sets are normalized
    to empty lists and self-follows are removed. With prune_dangling,
    identifiers in `following` that no longer resolve are dropped too.
    """
    report = RepairReport()

    with transaction.atomic():
        users = list(User.objects.select_for_update().order_by('pk'))
        known = {user.email for user in users}
        report.scanned = len(users)

        cleaned = {}
        for user in users:
            following_ids = user.following_set()
            if user.email in following_ids:
                following_ids.discard(user.email)
                report.self_follows_removed += 1
            if prune_dangling:
                dangling = following_ids - known
                report.dangling_pruned += len(dangling)
                following_ids -= dangling
            cleaned[user.email] = following_ids

        expected_followers = {user.email: set() for user in users}
        for follower_id, following_ids in cleaned.items():
            for followed_id in following_ids:
                if followed_id in expected_followers:
                    expected_followers[followed_id].add(follower_id)

        for user in users:
            new_following = sorted(cleaned[user.email])
            new_followers = sorted(expected_followers[user.email])
            if user.followers is None or user.following is None:
                report.normalized += 1
            if set(user.followers or []) != set(new_followers):
                report.followers_rewritten += 1
            if user.following != new_following or user.followers != new_followers:
                user.following = new_following
                user.followers = new_followers
                user.save(update_fields=['following', 'followers'])
                report.updated += 1

    logger.info(
        f"Follow graph reconciled: {report.scanned} scanned, {report.updated} updated, "
        f"{report.followers_rewritten} follower sets rewritten"
    )
    return report
