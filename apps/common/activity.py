"""
Best-effort activity logging.

An audit row must never break the operation that produced it, so failures
are logged and dropped.
"""

import logging

from django.db import DatabaseError, transaction

from .models import ActivityLog

logger = logging.getLogger(__name__)


def _client_ip(request):
    forwarded = request.META.get('HTTP_X_FORWARDED_FOR')
    if forwarded:
        return forwarded.split(',')[0].strip()
    return request.META.get('REMOTE_ADDR')


def log_activity(user, action, details=None, request=None):
    """
    Record an action for a user.

    Args:
        user: User (or None for system actions)
        action: Upper-case action name, e.g. 'DAILY_REWARD_CLAIMED'
        details: JSON-serialisable dict with extra context
        request: Optional HTTP request to capture IP and user agent

    Returns:
        ActivityLog or None if the write failed
    """
    ip_address = None
    user_agent = ''
    if request is not None:
        ip_address = _client_ip(request)
        user_agent = request.META.get('HTTP_USER_AGENT', '')[:255]

    try:
        # Savepoint so a failed insert does not poison an outer transaction
        with transaction.atomic():
            return ActivityLog.objects.create(
                user=user,
                action=action,
                details=details or {},
                ip_address=ip_address,
                user_agent=user_agent,
            )
    except DatabaseError:
        logger.exception(f"Failed to log activity {action} for user {getattr(user, 'pk', None)}")
        return None
