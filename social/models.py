"""
================================================================================
PARLEY - DATABASE MODELS
================================================================================

@file        models.py
@description Django ORM models for accounts and the direct message log
@version     1.0.0

MODULE PURPOSE
================================================================================
This module defines the two stored entities of Parley:
- User (account directory entry, carries the follow relation sets)
- Message (direct message log)

Follow relations are stored on the accounts themselves, as two JSON lists of
account identifiers (emails): `following` on the follower and `followers` on
the followed account. Keeping both lists in step is the job of
social/follow_graph.py; nothing else writes them.

DATABASE STRUCTURE
================================================================================
1. Accounts
   - User (AbstractUser extension, email is unique)

2. Messaging
   - Message (sender/receiver identifiers with cached usernames)

MODEL RELATIONSHIPS
================================================================================
User.following ──> [email, ...]   (accounts this user follows)
User.followers ──> [email, ...]   (accounts following this user)
Message.sender_email / receiver_email ──> User.email

There are no foreign keys from Message to User: a message keeps the handles
it was sent with, and survives account deletion.

================================================================================
"""

from django.contrib.auth.models import AbstractUser, UserManager
from django.db import models
from django.db.models import Q
from django.utils import timezone as dj_timezone


# ============================================================================
# CONSTANTS & CHOICES
# ============================================================================

MESSAGE_TYPE_CHOICES = [
    ('text', 'Text'),
    ('image', 'Image'),
    ('audio', 'Audio'),
]

MESSAGE_TYPES = {value for value, _ in MESSAGE_TYPE_CHOICES}


# ============================================================================
# SECTION 1: ACCOUNT DIRECTORY
# ============================================================================

class AccountManager(UserManager):
    """
    Account lookups used by the social core.

    Lookups return None instead of raising DoesNotExist; callers decide
    whether a miss is an error (follow, send) or a filtered entry
    (follower lists).
    """

    def by_handle(self, handle):
        if not handle:
            return None
        return self.filter(username=handle).first()

    def by_identifier(self, identifier):
        """Exact email match first, then the oldest case-insensitive match."""
        if not identifier:
            return None
        exact = self.filter(email=identifier).first()
        if exact is not None:
            return exact
        return self.filter(email__iexact=identifier).order_by('pk').first()

    def resolve_identifiers(self, identifiers):
        """
        Map each identifier to its account, dropping ones that no longer resolve.

        Order follows the input sequence.
        """
        identifiers = list(identifiers)
        if not identifiers:
            return []
        found = {
            user.email.lower(): user
            for user in self.filter(email__in=identifiers)
        }
        resolved = (found.get(identifier.lower()) for identifier in identifiers)
        return [user for user in resolved if user is not None]


class User(AbstractUser):
    """
    Account with follow relation sets.

    Attributes:
        email (EmailField): Unique identifier used as the relation key
        full_name (CharField): Display name (optional)
        birthdate (DateField): Date of birth (optional)
        gender (CharField): Self-described gender (optional)
        interests (JSONField): List of interest tags
        followers (JSONField): Identifiers of accounts following this one
        following (JSONField): Identifiers of accounts this one follows

    Both relation fields may be NULL on legacy records. Use follower_set()
    and following_set(), which treat NULL as empty.

    Example:
        alice = User.objects.by_handle('alice')
        if bob.email in alice.following_set():
            ...
    """

    email = models.EmailField(
        unique=True,
        help_text="Unique account identifier used in follow relations"
    )
    full_name = models.CharField(
        max_length=150,
        blank=True,
        help_text="Display name"
    )
    birthdate = models.DateField(
        null=True,
        blank=True,
        help_text="Date of birth (optional)"
    )
    gender = models.CharField(
        max_length=30,
        blank=True,
        help_text="Self-described gender (optional)"
    )
    interests = models.JSONField(
        default=list,
        blank=True,
        help_text="Free-form interest tags"
    )
    followers = models.JSONField(
        default=list,
        blank=True,
        null=True,
        help_text="Identifiers of accounts following this account"
    )
    following = models.JSONField(
        default=list,
        blank=True,
        null=True,
        help_text="Identifiers of accounts this account follows"
    )

    objects = AccountManager()

    @property
    def identifier(self):
        return self.email

    def follower_set(self):
        return set(self.followers or [])

    def following_set(self):
        return set(self.following or [])

    def __str__(self):
        return self.username


# ============================================================================
# SECTION 2: MESSAGE LOG
# ============================================================================

class MessageQuerySet(models.QuerySet):
    """Query primitives over the message log."""

    def direct(self):
        return self.filter(is_group_message=False)

    def between(self, first, second):
        """Direct messages exchanged by the unordered pair {first, second}."""
        return self.direct().filter(
            Q(sender_email=first, receiver_email=second) |
            Q(sender_email=second, receiver_email=first)
        )

    def involving(self, identifier):
        return self.direct().filter(
            Q(sender_email=identifier) | Q(receiver_email=identifier)
        )

    def unread_for(self, identifier):
        return self.filter(receiver_email=identifier, is_read=False)

    def chronological(self):
        return self.order_by('timestamp', 'id')


class Message(models.Model):
    """
    Direct message between two accounts.

    Sender and receiver are stored as identifier plus the username at send
    time. Flags (read, delivered, edited, deleted) only ever move from False
    to True.

    Attributes:
        sender_email (EmailField): Sender identifier
        sender_username (CharField): Sender handle at send time
        receiver_email (EmailField): Receiver identifier
        receiver_username (CharField): Receiver handle at send time
        content (TextField): Message text
        type (CharField): 'text', 'image' or 'audio'
        image_uri / audio_uri (CharField): Attachment references
        reply_to_message_id (CharField): Message this one replies to
        timestamp (DateTimeField): Creation instant
        is_read / is_delivered / is_edited / is_deleted (BooleanField)
        edited_at / deleted_at (DateTimeField)
        group_id (CharField), is_group_message (BooleanField)

    Example:
        Message.objects.between(alice.email, bob.email).chronological()
    """

    sender_email = models.EmailField(
        db_index=True,
        help_text="Identifier of the sender"
    )
    sender_username = models.CharField(
        max_length=150,
        help_text="Sender username when the message was sent"
    )
    receiver_email = models.EmailField(
        db_index=True,
        blank=True,
        help_text="Identifier of the receiver"
    )
    receiver_username = models.CharField(
        max_length=150,
        blank=True,
        help_text="Receiver username when the message was sent"
    )
    content = models.TextField(
        help_text="Message text content"
    )
    type = models.CharField(
        max_length=10,
        choices=MESSAGE_TYPE_CHOICES,
        default='text',
        help_text="Type of message content"
    )
    image_uri = models.CharField(
        max_length=500,
        null=True,
        blank=True,
        help_text="Image attachment reference"
    )
    audio_uri = models.CharField(
        max_length=500,
        null=True,
        blank=True,
        help_text="Audio attachment reference"
    )
    reply_to_message_id = models.CharField(
        max_length=64,
        null=True,
        blank=True,
        help_text="Identifier of the message this one replies to"
    )
    timestamp = models.DateTimeField(
        default=dj_timezone.now,
        db_index=True,
        help_text="Message creation timestamp"
    )
    is_read = models.BooleanField(
        default=False,
        help_text="Receiver has read the message"
    )
    is_delivered = models.BooleanField(
        default=False,
        help_text="Message reached the store"
    )
    is_edited = models.BooleanField(
        default=False,
        help_text="Content changed after sending"
    )
    is_deleted = models.BooleanField(
        default=False,
        help_text="Sender deleted the message"
    )
    edited_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="Last edit timestamp"
    )
    deleted_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="Deletion timestamp"
    )
    group_id = models.CharField(
        max_length=64,
        null=True,
        blank=True,
        help_text="Group identifier for group messages"
    )
    is_group_message = models.BooleanField(
        default=False,
        help_text="True for group messages, excluded from direct conversations"
    )

    objects = MessageQuerySet.as_manager()

    class Meta:
        ordering = ['-timestamp']
        indexes = [
            models.Index(fields=['receiver_email', 'is_read'], name='message_receiver_unread_idx'),
        ]

    def __str__(self):
        return f"{self.sender_username} to {self.receiver_username}: {self.content[:30]}"
