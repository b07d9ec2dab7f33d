"""
Periodic cleanup of blind date sessions and the queue.

Safe to run any number of times: every step filters on a live status or
an age cutoff, so already ended sessions are never touched twice.
"""

from datetime import timedelta
import logging

from django.conf import settings
from django.utils import timezone

from .models import BlindDateQueueEntry, BlindDateSession
from apps.users.utils.push_notifications import send_blind_session_ended_notification

logger = logging.getLogger(__name__)


def end_expired_sessions(now):
    """
    End live sessions whose timer ran out.
    """
    count = BlindDateSession.objects.filter(
        status__in=BlindDateSession.LIVE_STATUSES,
        expires_at__lt=now
    ).update(
        status=BlindDateSession.Status.ENDED,
        end_reason=BlindDateSession.EndReason.EXPIRED,
        ended_at=now,
        updated_at=now
    )
    if count:
        logger.info(f"[Cleanup] Ended {count} expired blind date sessions")
    return count


def end_abandoned_sessions(now):
    """
    End live sessions nobody has written in for a while and tell both users.
    """
    cutoff = now - timedelta(minutes=settings.BLIND_DATE_ABANDONED_MINUTES)
    candidates = BlindDateSession.objects.filter(
        status__in=BlindDateSession.LIVE_STATUSES,
        last_activity__lt=cutoff
    ).values_list('pk', 'uuid', 'user1_id', 'user2_id')

    count = 0
    for pk, session_uuid, user1_id, user2_id in list(candidates):
        # A message may have arrived since the scan
        updated = BlindDateSession.objects.filter(
            pk=pk,
            status__in=BlindDateSession.LIVE_STATUSES,
            last_activity__lt=cutoff
        ).update(
            status=BlindDateSession.Status.ENDED,
            end_reason=BlindDateSession.EndReason.ABANDONED,
            ended_at=now,
            updated_at=now
        )
        if not updated:
            continue

        count += 1
        logger.info(f"[Cleanup] Ended abandoned session: {session_uuid}")
        send_blind_session_ended_notification(user1_id, session_uuid)
        send_blind_session_ended_notification(user2_id, session_uuid)

    return count


def delete_stale_queue_entries(now):
    """
    Drop queue entries that have waited too long to ever be matched.
    """
    cutoff = now - timedelta(minutes=settings.BLIND_DATE_QUEUE_STALE_MINUTES)
    count, _ = BlindDateQueueEntry.objects.filter(joined_at__lt=cutoff).delete()
    if count:
        logger.info(f"[Cleanup] Removed {count} stale queue entries")
    return count


def cleanup_sessions(now=None):
    """
    Run one sweep.

    Returns:
        dict: expired, abandoned, stale_queue_entries counts
    """
    now = now or timezone.now()

    result = {
        'expired': end_expired_sessions(now),
        'abandoned': end_abandoned_sessions(now),
        'stale_queue_entries': delete_stale_queue_entries(now),
    }

    total = result['expired'] + result['abandoned']
    if total:
        logger.info(f"[Cleanup] Total sessions cleaned: {total}")

    return result
