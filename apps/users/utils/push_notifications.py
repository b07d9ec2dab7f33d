# apps/users/utils/push_notifications.py

import json
import logging
from typing import Any, Dict, Optional

import requests
from django.conf import settings
from django.db import DatabaseError, transaction

from apps.users.models import DeviceToken, Notification

logger = logging.getLogger(__name__)


def send_push_notification(
    user_id: str,
    title: str,
    body: str,
    data: Optional[Dict[str, Any]] = None
) -> bool:
    """
    Send push notification to every active device of a user.

    Args:
        user_id: User UUID
        title: Notification title
        body: Notification body
        data: Additional data to include in the payload

    Returns:
        bool: True if sent successfully
    """
    data = data or {}

    if not settings.PUSH_NOTIFICATIONS_ENABLED:
        return False

    try:
        tokens = list(DeviceToken.objects.filter(
            user__id=user_id,
            is_active=True
        ).values_list('token', flat=True))

        if not tokens:
            logger.debug(f'No active tokens for user {user_id}')
            return False

        messages = [
            {
                'to': token,
                'sound': 'default',
                'title': title,
                'body': body,
                'data': data,
                'priority': 'high',
            }
            for token in tokens
        ]

        response = requests.post(
            settings.EXPO_PUSH_URL,
            headers={
                'Accept': 'application/json',
                'Accept-encoding': 'gzip, deflate',
                'Content-Type': 'application/json',
            },
            data=json.dumps(messages),
            timeout=settings.PUSH_TIMEOUT_SECONDS,
        )

        if response.status_code == 200:
            logger.info(f'Push notification "{title}" sent to user {user_id}')
            return True

        logger.warning(f'Failed to send notification to {user_id}: {response.text}')
        return False

    except (requests.RequestException, DatabaseError) as e:
        logger.warning(f'Error sending push notification to {user_id}: {e}')
        return False


def notify_user(
    user_id,
    title: str,
    body: str,
    data: Optional[Dict[str, Any]] = None,
    category: str = Notification.Category.ADMIN
) -> None:
    """
    Store a notification and push it to the user's devices.

    Best-effort: nothing is returned and nothing is raised, callers must not
    depend on delivery.
    """
    data = data or {}
    try:
        with transaction.atomic():
            Notification.objects.create(
                user_id=user_id,
                title=title,
                body=body,
                data=data,
                category=category,
            )
    except DatabaseError:
        logger.exception(f'Could not store notification for user {user_id}')

    send_push_notification(str(user_id), title, body, data)


def notify_user_on_commit(user_id, title, body, data=None, category=Notification.Category.ADMIN):
    """
    Queue a notification to go out once the surrounding transaction commits,
    so a rolled back state change never notifies anybody.
    """
    transaction.on_commit(
        lambda: notify_user(user_id, title, body, data=data, category=category)
    )


# --- Domain notifications ---

def send_like_notification(liked_user_id, like_id):
    """Send notification when someone likes you."""
    notify_user_on_commit(
        liked_user_id,
        'New Like! ❤️',
        'Someone likes your vibe! Check it out.',
        data={'type': 'like', 'likeId': str(like_id)},
        category=Notification.Category.LIKE,
    )


def send_match_notification(user_id, matched_username, match_id):
    """Send notification when there's a mutual match."""
    notify_user_on_commit(
        user_id,
        "It's a Vibe! 💚",
        f"You matched with {matched_username or 'someone'}!",
        data={'type': 'match', 'matchId': str(match_id)},
        category=Notification.Category.MATCH,
    )


def send_chat_message_notification(receiver_id, sender_name, preview, sender_id):
    """Send notification for a new chat message."""
    notify_user_on_commit(
        receiver_id,
        'New Message 💬',
        f"{sender_name or 'Someone'}: {preview}",
        data={'type': 'chat', 'chatUserId': str(sender_id)},
        category=Notification.Category.CHAT,
    )


def send_blind_match_found_notification(user_id, session_id):
    """Tell a waiting user their blind date has started."""
    notify_user_on_commit(
        user_id,
        'Blind date found! 🙈',
        f'Someone is waiting to chat with you. You have {settings.BLIND_DATE_SESSION_MINUTES} minutes.',
        data={'type': 'blind_matched', 'sessionId': str(session_id)},
        category=Notification.Category.BLIND,
    )


def send_blind_session_ended_notification(user_id, session_id):
    """Tell a user their blind date ended because nobody was talking."""
    notify_user_on_commit(
        user_id,
        'Session Ended',
        'Your blind date session ended due to inactivity.',
        data={'type': 'blind_ended', 'sessionId': str(session_id)},
        category=Notification.Category.BLIND,
    )
