"""
Conversation aggregator.

Direct messages are stored as a flat log. A conversation is not a stored
entity: it is the set of direct messages between the requester and one
partner, where the partner is whichever side of a message is not the
requester. conversations() groups the requester's log by partner, keeps the
most recent message of each group as its representative and sorts the
summaries newest first. Nothing here is cached; every call reads the store.

Write paths (send, mark read, edit, delete) go straight to the Message log.
mark_read() saves one message at a time without a transaction: if the store
fails halfway, messages already flipped stay read.
"""

import logging
from dataclasses import dataclass
from datetime import datetime

from django.db import DatabaseError
from django.utils import timezone

from .directory import resolve_handle
from .exceptions import InternalError, InvalidOperation, NotFound, ValidationError
from .models import MESSAGE_TYPES, Message


logger = logging.getLogger(__name__)

EXTRA_FIELDS = ('image_uri', 'audio_uri', 'reply_to_message_id')


@dataclass(frozen=True)
class ConversationSummary:
    partner_id: str
    partner_username: str
    last_message: str
    last_timestamp: datetime
    unread_count: int
    is_group: bool = False


# ============================================================================
# PROJECTIONS
# ============================================================================

def message_view(message):
    """Response shape of a single message. Optional fields only when set."""
    view = {
        "id": message.pk,
        "senderId": message.sender_email,
        "senderUsername": message.sender_username,
        "receiverId": message.receiver_email,
        "receiverUsername": message.receiver_username,
        "content": message.content,
        "type": message.type,
        "timestamp": message.timestamp.isoformat(),
        "isRead": message.is_read,
        "isDelivered": message.is_delivered,
        "isEdited": message.is_edited,
        "isDeleted": message.is_deleted,
    }
    if message.image_uri is not None:
        view["imageUri"] = message.image_uri
    if message.audio_uri is not None:
        view["audioUri"] = message.audio_uri
    if message.reply_to_message_id is not None:
        view["replyToMessageId"] = message.reply_to_message_id
    return view


def summary_view(summary):
    return {
        "id": summary.partner_username,
        "username": summary.partner_username,
        "name": summary.partner_username,
        "lastMessage": summary.last_message,
        "lastTimestamp": summary.last_timestamp.isoformat(),
        "unreadCount": summary.unread_count,
        "isGroup": summary.is_group,
    }


# ============================================================================
# AGGREGATION
# ============================================================================

def _recency(message):
    # Log order breaks timestamp ties.
    return (message.timestamp, message.pk or 0)


def _partner(actor_id, message):
    """(identifier, cached username) of the side that is not actor_id."""
    if message.sender_email == actor_id:
        return message.receiver_email, message.receiver_username
    return message.sender_email, message.sender_username


def summarize(actor_id, messages, unread_counter):
    """
    Build one ConversationSummary per partner found in messages.

    Args:
        actor_id: Identifier of the requester
        messages: Direct messages the requester sent or received, any order
        unread_counter: Callable(partner_id) -> int, asked once per partner

    Returns:
        list[ConversationSummary] ordered by representative recency,
        newest first.

    The partner's username comes from the representative message, so a
    handle change shows up only once a newer message exists.
    """
    representatives = {}
    for message in messages:
        partner_id, _ = _partner(actor_id, message)
        current = representatives.get(partner_id)
        if current is None or _recency(message) > _recency(current):
            representatives[partner_id] = message

    ordered = sorted(representatives.items(), key=lambda item: _recency(item[1]), reverse=True)

    summaries = []
    for partner_id, message in ordered:
        _, partner_username = _partner(actor_id, message)
        summaries.append(ConversationSummary(
            partner_id=partner_id,
            partner_username=partner_username,
            last_message=message.content,
            last_timestamp=message.timestamp,
            unread_count=unread_counter(partner_id),
        ))
    return summaries


def _is_text(value):
    return isinstance(value, str) and bool(value.strip())


def _own_message(actor, message_id):
    try:
        message = Message.objects.filter(pk=message_id, sender_email=actor.email).first()
    except DatabaseError as e:
        logger.error(f"Failed to load message {message_id} for {actor.username}: {e}")
        raise InternalError("Failed to load message") from e
    if message is None:
        raise NotFound("Message not found or not yours")
    return message


# ============================================================================
# OPERATIONS
# ============================================================================

def send_message(sender, receiver_handle, content, message_type='text', extras=None):
    """
    Append a direct message from sender to receiver_handle.

    extras may carry image_uri, audio_uri and reply_to_message_id; a key
    that is absent stays unset on the message.

    Raises:
        ValidationError: empty receiver or content, unknown type
        NotFound: receiver handle does not resolve
        InternalError: the store failed
    """
    if not _is_text(receiver_handle) or not _is_text(content):
        raise ValidationError("Receiver username and content are required")
    message_type = message_type or 'text'
    if not isinstance(message_type, str) or message_type not in MESSAGE_TYPES:
        raise ValidationError(f"Unsupported message type: {message_type}")

    optional = {
        field: value for field, value in (extras or {}).items()
        if field in EXTRA_FIELDS
    }
    for field, value in optional.items():
        if value is not None and not isinstance(value, str):
            raise ValidationError(f"{field} must be a string")

    receiver = resolve_handle(receiver_handle, missing_message="Receiver not found")

    try:
        message = Message.objects.create(
            sender_email=sender.email,
            sender_username=sender.username,
            receiver_email=receiver.email,
            receiver_username=receiver.username,
            content=content,
            type=message_type,
            timestamp=timezone.now(),
            is_read=False,
            is_delivered=True,
            is_group_message=False,
            **optional,
        )
    except DatabaseError as e:
        logger.error(f"Failed to send message from {sender.username} to {receiver.username}: {e}")
        raise InternalError("Failed to send message") from e

    logger.info(f"Message sent from {sender.username} to {receiver.username}")
    return message


def conversation(actor, partner_handle):
    """All direct messages between actor and partner_handle, oldest first."""
    partner = resolve_handle(partner_handle)
    try:
        messages = list(Message.objects.between(actor.email, partner.email).chronological())
    except DatabaseError as e:
        logger.error(f"Failed to get conversation {actor.username} <-> {partner.username}: {e}")
        raise InternalError("Failed to get conversation") from e

    logger.info(
        f"Retrieved {len(messages)} messages for conversation between "
        f"{actor.username} and {partner.username}"
    )
    return messages


def conversations(actor):
    """
    Conversation summaries for actor, most recent conversation first.

    Unread counts are queried per partner after the log scan, so they reflect
    the store at count time rather than the scanned snapshot.
    """
    def count_unread(partner_id):
        return Message.objects.unread_for(actor.email).filter(sender_email=partner_id).count()

    try:
        messages = list(Message.objects.involving(actor.email).order_by('id'))
        summaries = summarize(actor.email, messages, count_unread)
    except DatabaseError as e:
        logger.error(f"Failed to get conversations for {actor.username}: {e}")
        raise InternalError("Failed to get conversations") from e

    logger.info(f"Retrieved {len(summaries)} conversations for {actor.username}")
    return summaries


def mark_read(actor, sender_handle):
    """
    Mark every unread message from sender_handle to actor as read.

    Returns the number of messages flipped. Messages arriving during the
    scan may or may not be included.
    """
    sender = resolve_handle(sender_handle)

    marked = 0
    try:
        unread = list(Message.objects.unread_for(actor.email).order_by('-timestamp'))
        for message in unread:
            if message.sender_email != sender.email:
                continue
            message.is_read = True
            message.save(update_fields=['is_read'])
            marked += 1
    except DatabaseError as e:
        logger.error(
            f"Failed to mark messages as read for {actor.username} from "
            f"{sender.username} after {marked} updates: {e}"
        )
        raise InternalError("Failed to mark messages as read") from e

    logger.info(f"Marked {marked} messages as read for {actor.username} from {sender.username}")
    return marked


def unread_total(actor):
    """Unread direct messages addressed to actor, across all partners."""
    try:
        return Message.objects.direct().unread_for(actor.email).count()
    except DatabaseError as e:
        logger.error(f"Failed to count unread messages for {actor.username}: {e}")
        raise InternalError("Failed to count unread messages") from e


def edit_message(actor, message_id, content):
    if not _is_text(content):
        raise ValidationError("Content cannot be empty")
    message = _own_message(actor, message_id)
    if message.is_deleted:
        raise InvalidOperation("Cannot edit a deleted message")

    message.content = content
    message.is_edited = True
    message.edited_at = timezone.now()
    try:
        message.save(update_fields=['content', 'is_edited', 'edited_at'])
    except DatabaseError as e:
        logger.error(f"Failed to edit message {message_id} for {actor.username}: {e}")
        raise InternalError("Failed to edit message") from e
    return message


def delete_message(actor, message_id):
    """Soft delete: the record stays in the log with is_deleted set."""
    message = _own_message(actor, message_id)
    if message.is_deleted:
        raise InvalidOperation("Message already deleted")

    message.is_deleted = True
    message.deleted_at = timezone.now()
    try:
        message.save(update_fields=['is_deleted', 'deleted_at'])
    except DatabaseError as e:
        logger.error(f"Failed to delete message {message_id} for {actor.username}: {e}")
        raise InternalError("Failed to delete message") from e

    logger.info(f"{actor.username} deleted message {message_id}")
    return message
