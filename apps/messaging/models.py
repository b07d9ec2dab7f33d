"""
Permanent Chat Models
======================
Demonstrates:
- One conversation row per pair of users, whatever the direction
- Read tracking per message
- Efficient conversation grouping

Who may write into a conversation is decided by the matching app: only
users holding a `chatting` like can send messages.
"""

from django.db import models
from django.conf import settings
from django.utils import timezone
from django.utils.translation import gettext_lazy as _
import uuid


# ============================================================================
# CONVERSATION MODEL
# ============================================================================

class Conversation(models.Model):
    """
    Groups messages between two users.

    Participants are always stored in primary key order, so (a, b) and
    (b, a) share a row.
    """

    uuid = models.UUIDField(
        default=uuid.uuid4,
        editable=False,
        unique=True,
        db_index=True
    )

    participant_1 = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='conversations_as_participant_1'
    )

    participant_2 = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='conversations_as_participant_2'
    )

    created_at = models.DateTimeField(auto_now_add=True)
    last_message_at = models.DateTimeField(default=timezone.now, db_index=True)

    class Meta:
        db_table = 'conversations'
        constraints = [
            models.UniqueConstraint(
                fields=['participant_1', 'participant_2'],
                name='unique_conversation_per_pair'
            ),
        ]
        indexes = [
            models.Index(fields=['participant_1', '-last_message_at'], name='conversation_p1_idx'),
            models.Index(fields=['participant_2', '-last_message_at'], name='conversation_p2_idx'),
        ]
        ordering = ['-last_message_at']

    def __str__(self):
        return f"Conversation: {self.participant_1.username} <-> {self.participant_2.username}"

    def save(self, *args, **kwargs):
        if self.participant_1_id > self.participant_2_id:
            self.participant_1, self.participant_2 = self.participant_2, self.participant_1
        super().save(*args, **kwargs)

    def get_other_participant(self, user):
        if user.pk == self.participant_1_id:
            return self.participant_2
        return self.participant_1

    @staticmethod
    def ordered(user_a, user_b):
        if user_a.pk > user_b.pk:
            return user_b, user_a
        return user_a, user_b

    @classmethod
    def between(cls, user_a, user_b):
        """
        The pair's conversation, or None.
        """
        first, second = cls.ordered(user_a, user_b)
        return cls.objects.filter(participant_1=first, participant_2=second).first()

    @classmethod
    def get_or_create_conversation(cls, user_a, user_b):
        first, second = cls.ordered(user_a, user_b)
        return cls.objects.get_or_create(participant_1=first, participant_2=second)


# ============================================================================
# MESSAGE MODEL
# ============================================================================

class Message(models.Model):
    """
    A single chat message. Receiver is stored explicitly so unread counts
    need no join.
    """

    uuid = models.UUIDField(
        default=uuid.uuid4,
        editable=False,
        unique=True,
        db_index=True
    )

    conversation = models.ForeignKey(
        Conversation,
        on_delete=models.CASCADE,
        related_name='messages'
    )

    sender = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='sent_messages'
    )

    receiver = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='received_messages'
    )

    text = models.TextField(help_text=_('Message content'))

    is_read = models.BooleanField(default=False, db_index=True)
    read_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(default=timezone.now, db_index=True)

    class Meta:
        db_table = 'messages'
        ordering = ['created_at', 'id']
        indexes = [
            models.Index(fields=['conversation', 'created_at'], name='message_conversation_idx'),
            models.Index(fields=['receiver', 'is_read'], name='message_unread_idx'),
        ]

    def __str__(self):
        return f"Message from {self.sender.username} to {self.receiver.username}"
