"""
Blind Dating Service Layer
===========================
Demonstrates:
- FIFO matchmaking with mutual preference checks
- Claiming a queue entry with a conditional delete
- A timed session state machine with lazy expiry on read
- Paid choices that feed into the coin ledger and chat slots
"""

from django.db import transaction
from django.db.models import Q
from django.core.exceptions import ValidationError as DjangoValidationError
from django.conf import settings
from django.utils import timezone
import logging

from .models import BlindDateQueueEntry, BlindDateSession, BlindDateMessage
from apps.common import exceptions as errors
from apps.common.activity import log_activity
from apps.economy.services import LedgerService
from apps.matching.services import LikeService
from apps.users.models import User, PREFERENCE_GENDER, LookingFor, preferences_accepting
from apps.users.utils.push_notifications import (
    send_blind_match_found_notification, send_match_notification
)

logger = logging.getLogger(__name__)


def live_sessions_for(user):
    """
    Active or extended sessions the user takes part in.
    """
    return BlindDateSession.objects.filter(
        Q(user1=user) | Q(user2=user),
        status__in=BlindDateSession.LIVE_STATUSES
    )


# ============================================================================
# MATCHMAKING
# ============================================================================

class MatchmakingService:
    """
    The waiting queue.

    A user is either idle, queued, or in a live session, never two of those
    at once. Joins for the same user are serialised on the user row.
    """

    @staticmethod
    def find_match(user):
        """
        Oldest queued entry compatible with the user in both directions.

        The user is looking for the entry's gender, and the entry is looking
        for the user's gender. People either side declined or passed are
        skipped.

        Returns:
            QuerySet of candidate entries, oldest first
        """
        profile = user.profile

        entries = BlindDateQueueEntry.objects.exclude(user=user).exclude(
            user_id__in=LikeService.turned_down_user_ids(user)
        ).filter(
            looking_for__in=preferences_accepting(profile.gender)
        )
        if profile.looking_for != LookingFor.EVERYONE:
            entries = entries.filter(gender=PREFERENCE_GENDER.get(profile.looking_for))

        return entries.select_related('user').order_by('joined_at', 'id')

    @staticmethod
    @transaction.atomic
    def join(user):
        """
        Join the queue, or start a session straight away if someone
        compatible is already waiting.

        Returns:
            dict: status ('matched' or 'searching'), session, already_queued

        Raises:
            ProfileIncomplete: Without a complete profile, gender and preference
            AlreadyInSession: If the user is in a live session
        """
        # Serialise concurrent joins of the same user
        user = User.objects.select_for_update().select_related('profile').get(pk=user.pk)

        profile = getattr(user, 'profile', None)
        if profile is None or not profile.is_complete:
            raise errors.ProfileIncomplete()
        if not profile.has_preferences:
            raise errors.ProfileIncomplete('Please set your gender and preferences in dating profile.')

        for session in live_sessions_for(user):
            if not BlindDateService.expire_if_due(session):
                raise errors.AlreadyInSession(session_id=str(session.uuid))

        if BlindDateQueueEntry.objects.filter(user=user).exists():
            return {'status': 'searching', 'session': None, 'already_queued': True}

        for entry in MatchmakingService.find_match(user):
            if live_sessions_for(entry.user).exists():
                continue

            # Only one joiner can delete the entry
            claimed, _ = BlindDateQueueEntry.objects.filter(pk=entry.pk).delete()
            if not claimed:
                continue

            session = BlindDateSession.objects.create(user1=user, user2=entry.user)

            send_blind_match_found_notification(entry.user_id, session.uuid)
            log_activity(user, 'BLIND_DATE_MATCHED', {'session_id': str(session.uuid)})
            logger.info(f"Blind date started: {user.username} <-> {entry.user.username} ({session.uuid})")

            return {'status': 'matched', 'session': session, 'already_queued': False}

        BlindDateQueueEntry.objects.create(
            user=user,
            gender=profile.gender,
            looking_for=profile.looking_for
        )
        logger.debug(f"{user.username} joined the blind date queue")

        return {'status': 'searching', 'session': None, 'already_queued': False}

    @staticmethod
    def leave(user):
        """
        Leave the queue. Does nothing if the user is not queued.
        """
        deleted, _ = BlindDateQueueEntry.objects.filter(user=user).delete()
        return deleted > 0


# ============================================================================
# SESSIONS
# ============================================================================

class BlindDateService:
    """
    Messages, choices and the end of a blind date.

    `ended` is terminal: every transition into it is a conditional update
    on a live status, so the sweeper and user requests can race safely.
    """

    CHOICES = [
        BlindDateSession.Choice.REVEAL,
        BlindDateSession.Choice.CHAT,
        BlindDateSession.Choice.DECLINE,
    ]

    @staticmethod
    def _get_session(session_id, user, lock=False):
        """
        Fetch a session the user takes part in.

        Raises:
            NotFound: If the session does not exist
            NotAParty: If the user is neither user1 nor user2
        """
        queryset = BlindDateSession.objects.select_related('user1', 'user2')
        if lock:
            queryset = queryset.select_for_update()

        try:
            session = queryset.filter(uuid=session_id).first()
        except (ValueError, DjangoValidationError):
            session = None

        if session is None:
            raise errors.NotFound('Session not found')
        if not session.has_party(user):
            raise errors.NotAParty()
        return session

    @staticmethod
    def _end(session, reason, now=None):
        """
        Move a live session to ended. Returns False if it had already ended.
        """
        now = now or timezone.now()
        updated = BlindDateSession.objects.filter(
            pk=session.pk,
            status__in=BlindDateSession.LIVE_STATUSES
        ).update(
            status=BlindDateSession.Status.ENDED,
            end_reason=reason,
            ended_at=now,
            updated_at=now
        )
        if updated:
            session.status = BlindDateSession.Status.ENDED
            session.end_reason = reason
            session.ended_at = now
        else:
            session.refresh_from_db(fields=['status', 'end_reason', 'ended_at'])
        return bool(updated)

    @staticmethod
    def expire_if_due(session, now=None):
        """
        End a live session whose timer has run out.

        Returns:
            bool: True if the session is (now) ended because of its timer
        """
        now = now or timezone.now()
        if not session.is_live or not session.is_past_expiry(now):
            return False

        if BlindDateService._end(session, BlindDateSession.EndReason.EXPIRED, now):
            logger.info(f"Blind date {session.uuid} expired")
        return True

    # --- Reads ---

    @staticmethod
    def get_status(user):
        """
        Where the user stands: in a session, searching, or idle.

        Returns:
            dict: status, plus session and messages when in a session
        """
        session = live_sessions_for(user).select_related('user1', 'user2').first()

        if session is not None:
            if BlindDateService.expire_if_due(session):
                return {'status': BlindDateSession.Status.ENDED, 'session': session, 'messages': None}
            return {
                'status': session.status,
                'session': session,
                'messages': list(session.messages.all()),
            }

        if BlindDateQueueEntry.objects.filter(user=user).exists():
            return {'status': 'searching', 'session': None, 'messages': None}

        return {'status': 'idle', 'session': None, 'messages': None}

    @staticmethod
    def get_messages(session_id, user):
        """
        Session and its messages, ending it first if time is up.
        """
        session = BlindDateService._get_session(session_id, user)
        BlindDateService.expire_if_due(session)
        return session, list(session.messages.select_related('sender'))

    # --- Messages ---

    @staticmethod
    def send_message(session_id, sender, text):
        """
        Post an anonymous message.

        Raises:
            ValidationError: Empty or overlong text
            SessionExpired: If the session has ended or its timer ran out
        """
        text = (text or '').strip()
        if not text:
            raise errors.ValidationError('Message text is required')
        if len(text) > settings.BLIND_MESSAGE_MAX_LENGTH:
            raise errors.ValidationError(
                f'Message cannot exceed {settings.BLIND_MESSAGE_MAX_LENGTH} characters.'
            )

        session = BlindDateService._get_session(session_id, sender)

        # The lazy end must commit even though the request fails
        BlindDateService.expire_if_due(session)
        if not session.is_live:
            raise errors.SessionExpired()

        now = timezone.now()
        with transaction.atomic():
            touched = BlindDateSession.objects.filter(
                pk=session.pk,
                status__in=BlindDateSession.LIVE_STATUSES
            ).update(last_activity=now, updated_at=now)
            if not touched:
                raise errors.SessionExpired()

            message = BlindDateMessage.objects.create(
                session=session,
                sender=sender,
                text=text,
                created_at=now
            )

        session.last_activity = now
        return session, message

    # --- Choices ---

    @staticmethod
    def choice_cost(session, user, choice):
        """
        Coins a choice costs. Chat is cheaper once the user already paid
        to reveal.
        """
        if choice == BlindDateSession.Choice.REVEAL:
            return settings.BLIND_DATE_REVEAL_COST
        if choice == BlindDateSession.Choice.CHAT:
            if session.revealed_by(user):
                return settings.BLIND_DATE_CHAT_AFTER_REVEAL_COST
            return settings.BLIND_DATE_CHAT_COST
        return 0

    @staticmethod
    @transaction.atomic
    def record_choice(session_id, user, choice):
        """
        Record reveal, chat or decline for one side of the session.

        Choices are accepted while the session is live, which includes the
        closing seconds of the timer. Once the timer has run out any read,
        message or sweep ends the session, and from then on every choice
        fails with SessionExpired. Clients show the choice screen before
        `expires_at`.

        Revealing again is free and only returns the partner profile if the
        partner has revealed since.

        Returns:
            dict: session, wallet, slots_full, partner (User or None)

        Raises:
            ValidationError: Unknown choice
            SessionExpired: If the session has ended
            ChoiceAlreadyRecorded: If the user already chose chat or decline
            InsufficientFunds: Nothing is recorded in that case
        """
        if choice not in BlindDateService.CHOICES:
            raise errors.ValidationError('Invalid choice')

        session = BlindDateService._get_session(session_id, user, lock=True)
        if session.status == BlindDateSession.Status.ENDED:
            raise errors.SessionExpired()

        current = session.choice_of(user)
        if current not in (BlindDateSession.Choice.NONE, BlindDateSession.Choice.REVEAL):
            raise errors.ChoiceAlreadyRecorded()

        # Both wallets, in a fixed order, since a mutual chat touches both
        wallets = LedgerService.lock_wallets(session.user1, session.user2)
        wallet = wallets[0] if session.is_user1(user) else wallets[1]

        if current == choice:
            return {
                'session': session,
                'wallet': wallet,
                'slots_full': False,
                'partner': session.partner_of(user) if session.partner_revealed(user) else None,
            }

        cost = BlindDateService.choice_cost(session, user, choice)
        if cost:
            LedgerService._debit_locked(
                wallet, cost, 'blind_date', f'Blind date choice: {choice} (session {session.uuid})'
            )

        now = timezone.now()
        session.set_choice(user, choice)
        session.last_activity = now
        session.save(update_fields=[
            'user1_choice', 'user2_choice', 'user1_revealed', 'user2_revealed',
            'last_activity', 'updated_at'
        ])

        slots_full = False
        if session.both_chose_chat:
            slots_full = not BlindDateService._open_permanent_chat(session)
        elif session.anyone_declined:
            BlindDateService._end(session, BlindDateSession.EndReason.DECLINED, now)
            logger.info(f"Blind date {session.uuid} declined by {user.username}")

        partner = None
        if session.partner_revealed(user) or choice == BlindDateSession.Choice.CHAT:
            partner = session.partner_of(user)

        wallet.refresh_from_db()
        return {
            'session': session,
            'wallet': wallet,
            'slots_full': slots_full,
            'partner': partner,
        }

    @staticmethod
    @transaction.atomic
    def retry_chat_transition(session_id, user):
        """
        Try the mutual chat again after a slots-full outcome, without
        charging anyone again.

        Returns:
            dict: session, slots_full, partner
        """
        session = BlindDateService._get_session(session_id, user, lock=True)

        if session.status == BlindDateSession.Status.EXTENDED:
            return {'session': session, 'slots_full': False, 'partner': session.partner_of(user)}
        if session.status == BlindDateSession.Status.ENDED:
            raise errors.SessionExpired()
        if not session.both_chose_chat:
            raise errors.ValidationError('Both of you must choose chat first.')

        LedgerService.lock_wallets(session.user1, session.user2)
        slots_full = not BlindDateService._open_permanent_chat(session)

        return {'session': session, 'slots_full': slots_full, 'partner': session.partner_of(user)}

    @staticmethod
    def _open_permanent_chat(session):
        """
        Turn a mutual chat into a permanent chatting like and extend the
        session. The caller holds the session and both wallet locks.

        Returns:
            bool: False if either user has no free chat slot
        """
        user1, user2 = session.user1, session.user2

        if LikeService.chatting_between(user1, user2):
            like = None
        else:
            try:
                LedgerService.reserve_chat_slots(user1, user2)
            except errors.NoSlotsAvailable as exc:
                logger.info(
                    f"Blind date {session.uuid} mutual chat waiting for slots "
                    f"(full: {exc.extra.get('full_user_ids')})"
                )
                return False
            like = LikeService.open_blind_match_chat(user1, user2)

        session.status = BlindDateSession.Status.EXTENDED
        session.save(update_fields=['status', 'updated_at'])

        match_id = like.uuid if like is not None else session.uuid
        send_match_notification(user1.pk, user2.username, match_id)
        send_match_notification(user2.pk, user1.username, match_id)

        log_activity(user1, 'BLIND_DATE_EXTENDED', {'session_id': str(session.uuid)})
        log_activity(user2, 'BLIND_DATE_EXTENDED', {'session_id': str(session.uuid)})
        logger.info(f"Blind date {session.uuid} became a permanent chat")
        return True

    # --- Ending ---

    @staticmethod
    def end_session(session_id, user):
        """
        End the session now. Either party may do it at any time.
        """
        session = BlindDateService._get_session(session_id, user)

        if BlindDateService._end(session, BlindDateSession.EndReason.ENDED_BY_USER):
            logger.info(f"Blind date {session.uuid} ended by {user.username}")

        # Also clear a stray queue entry
        MatchmakingService.leave(user)
        return session
