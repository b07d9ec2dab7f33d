"""
Blind Dating Models
====================
Demonstrates:
- A waiting queue with one entry per user
- A timed session state machine with per-user choices
- Enum fields via TextChoices instead of free-form strings

Lifecycle:
    active -> extended  (both chose chat and both had a free chat slot)
    active/extended -> ended  (expired, abandoned, ended by a user, declined)
    ended is terminal
"""

from datetime import timedelta

from django.db import models
from django.conf import settings
from django.utils import timezone
from django.utils.translation import gettext_lazy as _
import uuid

from apps.users.models import DatingGender, LookingFor


# ============================================================================
# QUEUE
# ============================================================================

class BlindDateQueueEntry(models.Model):
    """
    A user waiting for a blind date partner.
    """
    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='blind_date_queue_entry'
    )
    gender = models.CharField(max_length=16, choices=DatingGender.choices)
    looking_for = models.CharField(max_length=16, choices=LookingFor.choices)
    joined_at = models.DateTimeField(default=timezone.now, db_index=True)

    class Meta:
        db_table = 'blind_date_queue'
        ordering = ['joined_at']
        verbose_name_plural = 'Blind date queue entries'

    def __str__(self):
        return f"{self.user.username} ({self.gender} looking for {self.looking_for})"


# ============================================================================
# SESSION
# ============================================================================

class BlindDateSession(models.Model):
    """
    A timed anonymous chat between two users.
    """

    class Status(models.TextChoices):
        ACTIVE = 'active', _('Active')
        EXTENDED = 'extended', _('Extended')    # Turned into a permanent chat
        ENDED = 'ended', _('Ended')

    class Choice(models.TextChoices):
        NONE = 'none', _('None')
        REVEAL = 'reveal', _('Reveal')
        CHAT = 'chat', _('Chat')
        DECLINE = 'decline', _('Decline')

    class EndReason(models.TextChoices):
        EXPIRED = 'expired', _('Expired')
        ABANDONED = 'abandoned', _('Abandoned')
        ENDED_BY_USER = 'ended_by_user', _('Ended by user')
        DECLINED = 'declined', _('Declined')

    LIVE_STATUSES = [Status.ACTIVE, Status.EXTENDED]

    uuid = models.UUIDField(
        default=uuid.uuid4,
        editable=False,
        unique=True,
        db_index=True
    )

    user1 = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='blind_sessions_as_user1'
    )
    user2 = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='blind_sessions_as_user2'
    )

    status = models.CharField(
        max_length=16,
        choices=Status.choices,
        default=Status.ACTIVE,
        db_index=True
    )

    start_time = models.DateTimeField(default=timezone.now)
    expires_at = models.DateTimeField(db_index=True)
    last_activity = models.DateTimeField(default=timezone.now)

    user1_choice = models.CharField(max_length=16, choices=Choice.choices, default=Choice.NONE)
    user2_choice = models.CharField(max_length=16, choices=Choice.choices, default=Choice.NONE)

    # One-way: never reset once set
    user1_revealed = models.BooleanField(default=False)
    user2_revealed = models.BooleanField(default=False)

    end_reason = models.CharField(max_length=16, choices=EndReason.choices, blank=True)
    ended_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'blind_date_sessions'
        ordering = ['-start_time']
        indexes = [
            models.Index(fields=['user1', 'status'], name='blind_session_user1_idx'),
            models.Index(fields=['user2', 'status'], name='blind_session_user2_idx'),
            models.Index(fields=['status', 'last_activity'], name='blind_session_activity_idx'),
        ]

    def __str__(self):
        return f"Blind date {self.uuid} ({self.status})"

    def save(self, *args, **kwargs):
        """
        A session always lasts exactly BLIND_DATE_SESSION_MINUTES.
        """
        if not self.expires_at:
            self.expires_at = self.start_time + timedelta(minutes=settings.BLIND_DATE_SESSION_MINUTES)
        super().save(*args, **kwargs)

    @property
    def is_live(self):
        return self.status in self.LIVE_STATUSES

    def is_past_expiry(self, now=None):
        return (now or timezone.now()) > self.expires_at

    def has_party(self, user):
        return user.pk in (self.user1_id, self.user2_id)

    def is_user1(self, user):
        return user.pk == self.user1_id

    def partner_of(self, user):
        return self.user2 if self.is_user1(user) else self.user1

    def choice_of(self, user):
        return self.user1_choice if self.is_user1(user) else self.user2_choice

    def revealed_by(self, user):
        return self.user1_revealed if self.is_user1(user) else self.user2_revealed

    def partner_revealed(self, user):
        return self.user2_revealed if self.is_user1(user) else self.user1_revealed

    def set_choice(self, user, choice):
        """
        Record a choice. reveal and chat both reveal the chooser.
        """
        reveals = choice in (self.Choice.REVEAL, self.Choice.CHAT)
        if self.is_user1(user):
            self.user1_choice = choice
            self.user1_revealed = self.user1_revealed or reveals
        else:
            self.user2_choice = choice
            self.user2_revealed = self.user2_revealed or reveals

    @property
    def both_chose_chat(self):
        return self.user1_choice == self.Choice.CHAT and self.user2_choice == self.Choice.CHAT

    @property
    def anyone_declined(self):
        return self.Choice.DECLINE in (self.user1_choice, self.user2_choice)


class BlindDateMessage(models.Model):
    """
    An anonymous message sent during a session.
    """
    session = models.ForeignKey(
        BlindDateSession,
        on_delete=models.CASCADE,
        related_name='messages'
    )
    sender = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='blind_messages_sent'
    )
    text = models.TextField(
        help_text=_('Message content (max BLIND_MESSAGE_MAX_LENGTH characters)')
    )
    created_at = models.DateTimeField(default=timezone.now, db_index=True)

    class Meta:
        db_table = 'blind_date_messages'
        ordering = ['created_at', 'id']

    def __str__(self):
        return f"Message in {self.session_id} from {self.sender_id}"
