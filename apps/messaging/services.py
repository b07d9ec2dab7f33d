"""
Messaging Service Layer
========================
Demonstrates:
- Business logic separation from views
- Permission checks delegated to the matching app (only chatting pairs talk)
- Transaction management for data consistency
- Rewards and notifications hooked onto message delivery

Key Principle: Views should be thin - they handle HTTP, services handle business logic.
"""

from django.db import transaction
from django.db.models import Q, Count
from django.conf import settings
from django.utils import timezone
import logging

from .models import Conversation, Message
from apps.common import exceptions as errors
from apps.common.activity import log_activity
from apps.economy.services import RewardService
from apps.matching.models import Like
from apps.matching.services import LikeService
from apps.users.utils.push_notifications import send_chat_message_notification

logger = logging.getLogger(__name__)


# ============================================================================
# MESSAGE SERVICE
# ============================================================================

class MessageService:
    """
    Permanent chats between users whose like reached `chatting`.
    """

    @staticmethod
    def can_send_message(sender, receiver):
        """
        Check if sender can message receiver.

        Returns:
            tuple: (bool, str) - (can_send, reason_if_not)
        """
        if sender.pk == receiver.pk:
            return False, 'Cannot send messages to yourself'

        if not sender.is_active or not receiver.is_active:
            return False, 'One or both users are inactive'

        if not LikeService.chatting_between(sender, receiver):
            return False, 'You can only message people you are chatting with.'

        return True, ''

    @staticmethod
    def preview(text):
        limit = settings.CHAT_PREVIEW_LENGTH
        return text if len(text) <= limit else f'{text[:limit]}...'

    @staticmethod
    @transaction.atomic
    def send_message(sender, receiver, text):
        """
        Send a chat message.

        The first message a user ever sends earns FIRST_CHAT_REWARD.

        Returns:
            tuple: (Message, reward granted or None)

        Raises:
            ValidationError: Empty or overlong text, or messaging yourself
            NotActive: If the two users are not chatting
        """
        text = (text or '').strip()
        if not text:
            raise errors.ValidationError('Message text is required')
        if len(text) > settings.CHAT_MESSAGE_MAX_LENGTH:
            raise errors.ValidationError(
                f'Message cannot exceed {settings.CHAT_MESSAGE_MAX_LENGTH} characters.'
            )

        can_send, reason = MessageService.can_send_message(sender, receiver)
        if not can_send:
            if sender.pk == receiver.pk:
                raise errors.ValidationError(reason)
            raise errors.NotActive(reason)

        conversation, _ = Conversation.get_or_create_conversation(sender, receiver)

        now = timezone.now()
        message = Message.objects.create(
            conversation=conversation,
            sender=sender,
            receiver=receiver,
            text=text,
            created_at=now
        )
        Conversation.objects.filter(pk=conversation.pk).update(last_message_at=now)

        reward = RewardService.check_first_chat_reward(sender)

        send_chat_message_notification(
            receiver.pk,
            sender.first_name or sender.username,
            MessageService.preview(text),
            sender.pk
        )
        logger.info(f"Message sent: {sender.username} -> {receiver.username} ({conversation.uuid})")

        return message, reward

    @staticmethod
    def get_messages(user, partner):
        """
        Messages between the two users, oldest first. History stays
        readable after an unmatch until the conversation is deleted.
        """
        conversation = Conversation.between(user, partner)
        if conversation is None:
            return Message.objects.none()
        return conversation.messages.select_related('sender')

    @staticmethod
    def get_user_conversations(user):
        """
        The user's conversations, most recent first, each annotated with
        `unread_count` for that user.
        """
        return Conversation.objects.filter(
            Q(participant_1=user) | Q(participant_2=user)
        ).select_related(
            'participant_1__profile',
            'participant_2__profile'
        ).annotate(
            unread_count=Count(
                'messages',
                filter=Q(messages__receiver=user, messages__is_read=False)
            )
        ).order_by('-last_message_at')

    @staticmethod
    def get_unread_message_count(user):
        return Message.objects.filter(receiver=user, is_read=False).count()

    @staticmethod
    def mark_as_read(user, partner):
        """
        Mark everything the partner sent the user as read.

        Returns:
            int: Number of messages marked as read
        """
        updated_count = Message.objects.filter(
            sender=partner,
            receiver=user,
            is_read=False
        ).update(
            is_read=True,
            read_at=timezone.now()
        )

        logger.debug(f"Marked {updated_count} messages as read for {user.username}")
        return updated_count

    @staticmethod
    @transaction.atomic
    def delete_conversation(user, partner):
        """
        Delete the pair's messages and end their chat, freeing a slot on
        both sides.

        Returns:
            dict: deleted_messages, slot_freed
        """
        deleted_messages = 0
        conversation = Conversation.between(user, partner)
        if conversation is not None:
            deleted_messages = conversation.messages.count()
            conversation.delete()

        like = Like.between(user, partner).filter(status=Like.Status.CHATTING).first()
        if like is not None:
            LikeService.unmatch(like.uuid, user)
            log_activity(user, 'CONVERSATION_DELETED', {
                'partner_id': str(partner.pk), 'slot_freed': True
            })

        logger.info(
            f"Conversation {user.username} <-> {partner.username} deleted "
            f"({deleted_messages} messages, slot freed: {like is not None})"
        )
        return {'deleted_messages': deleted_messages, 'slot_freed': like is not None}
