"""
Matching System Models
=======================
Demonstrates:
- Directional interaction records with a single row per (sender, receiver)
- Status lifecycle enforced by the service layer
- Efficient query optimization with indexes
"""

from django.db import models
from django.conf import settings
from django.db.models import Q
from django.utils.translation import gettext_lazy as _
import uuid


# ============================================================================
# LIKE MODEL
# ============================================================================

class Like(models.Model):
    """
    A directional like from `sender` to `receiver`.

    Lifecycle:
        pending -> revealed -> chatting -> archived
        pending/revealed -> declined (by the receiver)
        anything but chatting -> passed (by the sender)

    `chatting` is the only status that occupies a chat slot on both users.
    """

    class Status(models.TextChoices):
        PENDING = 'pending', _('Pending')        # Sent, receiver sees a blurred profile
        REVEALED = 'revealed', _('Revealed')     # Receiver paid to see the sender
        CHATTING = 'chatting', _('Chatting')     # Both can message each other
        DECLINED = 'declined', _('Declined')     # Receiver said no
        PASSED = 'passed', _('Passed')           # Sender skipped this person
        ARCHIVED = 'archived', _('Archived')     # Chat ended by unmatch

    uuid = models.UUIDField(
        default=uuid.uuid4,
        editable=False,
        unique=True,
        db_index=True
    )

    sender = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='likes_sent'
    )

    receiver = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='likes_received'
    )

    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.PENDING,
        db_index=True
    )

    is_blind_match = models.BooleanField(
        default=False,
        help_text=_('Created by a blind date where both chose to chat')
    )

    revealed_at = models.DateTimeField(null=True, blank=True)
    chat_started_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'likes'
        constraints = [
            models.UniqueConstraint(fields=['sender', 'receiver'], name='unique_like_per_pair'),
        ]
        indexes = [
            models.Index(fields=['receiver', 'status'], name='like_receiver_status_idx'),
            models.Index(fields=['sender', 'status'], name='like_sender_status_idx'),
        ]
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.sender.username} -> {self.receiver.username} ({self.status})"

    def involves(self, user):
        return user.pk in (self.sender_id, self.receiver_id)

    def partner_of(self, user):
        """
        The other user in this like.
        """
        return self.receiver if user.pk == self.sender_id else self.sender

    @classmethod
    def between(cls, user_a, user_b):
        """
        Likes in either direction between two users.
        """
        return cls.objects.filter(
            Q(sender=user_a, receiver=user_b) | Q(sender=user_b, receiver=user_a)
        )
