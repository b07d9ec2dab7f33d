"""
Matching Service Layer
=======================
Demonstrates:
- Like lifecycle transitions gated by the coin ledger
- Coordinated two-sided chat slot reservation inside one transaction
- Score-based ranking system with exclusion filtering
- Caching strategies for expensive computations

The recommendation score considers:
1. Shared interests (Jaccard overlap)
2. Shared intentions (Jaccard overlap)
3. Whether the candidate is looking for someone of the user's gender
"""

from django.db import transaction, IntegrityError
from django.db.models import Q
from django.core.cache import cache
from django.core.exceptions import ValidationError as DjangoValidationError
from django.conf import settings
from django.utils import timezone
import logging

from .models import Like
from apps.common import exceptions as errors
from apps.common.activity import log_activity
from apps.economy.services import LedgerService
from apps.users.models import User, LookingFor, PREFERENCE_GENDER, accepts_gender
from apps.users.utils.push_notifications import send_like_notification, send_match_notification

logger = logging.getLogger(__name__)


# ============================================================================
# LIKE SERVICE
# ============================================================================

class LikeService:
    """
    Directional likes and the paid transitions between their statuses.

    Design Pattern: Service Layer
    - Every transition runs in one transaction with the ledger calls it needs
    - Slots are reserved before coins are taken, so a failure never leaves
      a debited balance behind
    """

    OPEN_STATUSES = [Like.Status.PENDING, Like.Status.REVEALED]

    @staticmethod
    def _get_like(like_id, **filters):
        """
        Lock and return a like, or raise NotFound. A like the caller may not
        see looks exactly like a missing one.
        """
        try:
            like = Like.objects.select_for_update().select_related(
                'sender', 'receiver'
            ).filter(uuid=like_id, **filters).first()
        except (ValueError, DjangoValidationError):
            like = None

        if like is None:
            raise errors.NotFound('Like not found')
        return like

    @staticmethod
    def _reserve_pair(user, partner):
        """
        Reserve one chat slot on both users, telling the caller whose slots
        are full.
        """
        try:
            LedgerService.reserve_chat_slots(user, partner)
        except errors.NoSlotsAvailable as exc:
            if str(user.pk) not in exc.extra.get('full_user_ids', []):
                raise errors.NoSlotsAvailable(
                    "They're popular - their chat slots are full right now.",
                    **exc.extra
                ) from exc
            raise

    @staticmethod
    def _notify_match(like):
        send_match_notification(like.sender_id, like.receiver.username, like.uuid)
        send_match_notification(like.receiver_id, like.sender.username, like.uuid)

    @staticmethod
    @transaction.atomic
    def record_like(sender, receiver):
        """
        Like someone.

        If they already like the sender, both go straight to chatting when
        both have a free chat slot. Otherwise it is a match that cannot chat
        yet: the like is still spent and no record is created.

        Returns:
            dict: is_match, can_chat, reason, likes, like
        """
        if sender.pk == receiver.pk:
            raise errors.ValidationError('You cannot like yourself.')

        reciprocal = Like.objects.select_for_update().select_related('sender', 'receiver').filter(
            sender=receiver,
            receiver=sender,
            status__in=LikeService.OPEN_STATUSES
        ).first()

        if reciprocal:
            # Take both wallet locks up front, in a fixed order
            LedgerService.lock_wallets(sender, receiver)

        wallet = LedgerService.regenerate_likes(sender)
        if wallet.likes < 1:
            raise errors.NoLikesRemaining(next_regen_time=wallet.next_regen_time())

        if Like.objects.filter(sender=sender, receiver=receiver).exists():
            raise errors.AlreadyInteracted()

        if reciprocal:
            try:
                LedgerService.reserve_chat_slots(sender, receiver)
            except errors.NoSlotsAvailable as exc:
                wallet = LedgerService.consume_like(sender)
                full = exc.extra.get('full_user_ids', [])
                reason = 'your_slots_full' if str(sender.pk) in full else 'their_slots_full'
                logger.info(f"Match {sender.username} <-> {receiver.username} pending slots ({reason})")
                return {
                    'is_match': True,
                    'can_chat': False,
                    'reason': reason,
                    'likes': wallet.likes,
                    'like': None,
                }

            now = timezone.now()
            reciprocal.status = Like.Status.CHATTING
            reciprocal.revealed_at = reciprocal.revealed_at or now
            reciprocal.chat_started_at = now
            reciprocal.save(update_fields=['status', 'revealed_at', 'chat_started_at', 'updated_at'])

            wallet = LedgerService.consume_like(sender)

            LikeService._notify_match(reciprocal)
            log_activity(sender, 'MATCH_CREATED', {
                'like_id': str(reciprocal.uuid), 'partner_id': str(receiver.pk)
            })
            logger.info(f"Mutual match created: {sender.username} <-> {receiver.username}")

            return {
                'is_match': True,
                'can_chat': True,
                'reason': None,
                'likes': wallet.likes,
                'like': reciprocal,
            }

        try:
            with transaction.atomic():
                like = Like.objects.create(sender=sender, receiver=receiver)
        except IntegrityError:
            raise errors.AlreadyInteracted()

        wallet = LedgerService.consume_like(sender)
        send_like_notification(receiver.pk, like.uuid)

        return {
            'is_match': False,
            'can_chat': False,
            'reason': None,
            'likes': wallet.likes,
            'like': like,
        }

    @staticmethod
    @transaction.atomic
    def reveal(like_id, requester):
        """
        Pay REVEAL_COST to see who sent a pending like.
        """
        like = LikeService._get_like(like_id, receiver=requester)
        if like.status != Like.Status.PENDING:
            raise errors.AlreadyRevealed()

        wallet = LedgerService.lock_wallet(requester)
        LedgerService._debit_locked(
            wallet, settings.REVEAL_COST, 'reveal', f'Profile reveal (like {like.uuid})'
        )

        like.status = Like.Status.REVEALED
        like.revealed_at = timezone.now()
        like.save(update_fields=['status', 'revealed_at', 'updated_at'])

        return like, wallet

    @staticmethod
    @transaction.atomic
    def start_chat(like_id, requester):
        """
        Pay START_CHAT_COST to start chatting with a revealed like.
        """
        like = LikeService._get_like(like_id, receiver=requester)

        if like.status == Like.Status.PENDING:
            raise errors.RevealRequired()
        if like.status == Like.Status.CHATTING:
            raise errors.AlreadyChatting()
        if like.status != Like.Status.REVEALED:
            raise errors.NotActive('This like is no longer active.')

        return LikeService._open_chat(like, requester, settings.START_CHAT_COST, 'Start chat from like')

    @staticmethod
    @transaction.atomic
    def direct_chat(like_id, requester):
        """
        Pay DIRECT_CHAT_COST to reveal and start chatting in one step.
        """
        like = LikeService._get_like(like_id, receiver=requester)

        if like.status == Like.Status.CHATTING:
            raise errors.AlreadyChatting()
        if like.status not in LikeService.OPEN_STATUSES:
            raise errors.NotActive('This like is no longer active.')

        return LikeService._open_chat(like, requester, settings.DIRECT_CHAT_COST, 'Direct chat (reveal + chat)')

    @staticmethod
    def _open_chat(like, requester, cost, reason):
        LedgerService.lock_wallets(requester, like.sender)
        # The pair may already chat through the like in the other direction
        if LikeService.chatting_between(requester, like.sender):
            raise errors.AlreadyChatting()
        LikeService._reserve_pair(requester, like.sender)

        wallet = LedgerService.lock_wallet(requester)
        LedgerService._debit_locked(wallet, cost, 'chat', f'{reason} (like {like.uuid})')

        now = timezone.now()
        like.status = Like.Status.CHATTING
        like.revealed_at = like.revealed_at or now
        like.chat_started_at = now
        like.save(update_fields=['status', 'revealed_at', 'chat_started_at', 'updated_at'])

        send_match_notification(like.sender_id, requester.username, like.uuid)
        logger.info(f"Chat started: {requester.username} <-> {like.sender.username}")

        return like, wallet

    @staticmethod
    @transaction.atomic
    def decline(like_id, requester):
        """
        Receiver turns down a pending or revealed like.
        """
        like = LikeService._get_like(like_id, receiver=requester)
        if like.status not in LikeService.OPEN_STATUSES:
            raise errors.NotActive('This like is no longer active.')

        like.status = Like.Status.DECLINED
        like.save(update_fields=['status', 'updated_at'])
        return like

    @staticmethod
    @transaction.atomic
    def pass_user(sender, target):
        """
        Skip someone in discovery. They will not be recommended again.
        """
        if sender.pk == target.pk:
            raise errors.ValidationError('You cannot pass on yourself.')

        like = Like.objects.select_for_update().filter(sender=sender, receiver=target).first()
        if like is None:
            try:
                with transaction.atomic():
                    return Like.objects.create(sender=sender, receiver=target, status=Like.Status.PASSED)
            except IntegrityError:
                raise errors.AlreadyInteracted()

        if like.status == Like.Status.CHATTING:
            raise errors.AlreadyChatting('You are already chatting. Unmatch instead.')

        like.status = Like.Status.PASSED
        like.save(update_fields=['status', 'updated_at'])
        return like

    @staticmethod
    @transaction.atomic
    def unmatch(like_id, requester):
        """
        End a chat. Either party may do it; both slots are released.
        """
        like = LikeService._get_like(like_id)
        if not like.involves(requester):
            raise errors.NotFound('Like not found')
        if like.status != Like.Status.CHATTING:
            raise errors.NotActive()

        like.status = Like.Status.ARCHIVED
        like.save(update_fields=['status', 'updated_at'])

        LedgerService.release_chat_slot(like.sender)
        LedgerService.release_chat_slot(like.receiver)

        log_activity(requester, 'UNMATCHED', {'like_id': str(like.uuid)})
        return like

    # --- Blind date chats ---

    @staticmethod
    def turned_down_user_ids(user):
        """
        Ids of users the user declined or passed, or who declined or passed
        the user. Matching flows never pair them again.
        """
        pairs = Like.objects.filter(
            Q(sender=user) | Q(receiver=user),
            status__in=[Like.Status.DECLINED, Like.Status.PASSED]
        ).values_list('sender_id', 'receiver_id')

        return {
            receiver_id if sender_id == user.pk else sender_id
            for sender_id, receiver_id in pairs
        }

    @staticmethod
    def chatting_between(user_a, user_b):
        return Like.between(user_a, user_b).filter(status=Like.Status.CHATTING).exists()

    @staticmethod
    def open_blind_match_chat(user1, user2):
        """
        Turn the pair's like into a blind-match chat. Slots must already be
        reserved by the caller.

        An open like in either direction is upgraded in place, preferring
        user1 -> user2. Otherwise the user1 -> user2 record is created or
        overwritten.
        """
        records = {
            like.sender_id: like
            for like in Like.between(user1, user2).select_for_update()
        }
        forward = records.get(user1.pk)
        backward = records.get(user2.pk)

        if forward is not None and forward.status in LikeService.OPEN_STATUSES:
            like = forward
        elif backward is not None and backward.status in LikeService.OPEN_STATUSES:
            like = backward
        else:
            like = forward or Like(sender=user1, receiver=user2)

        now = timezone.now()
        like.status = Like.Status.CHATTING
        like.is_blind_match = True
        like.revealed_at = like.revealed_at or now
        like.chat_started_at = now
        like.save()
        return like

    # --- Reads ---

    @staticmethod
    def get_received_likes(user):
        """
        Likes waiting for the user's decision, newest first.
        """
        return Like.objects.filter(
            receiver=user,
            status__in=LikeService.OPEN_STATUSES
        ).select_related('sender__profile').order_by('-created_at')

    @staticmethod
    def get_active_chats(user):
        """
        Ongoing chats in either direction, most recently started first.
        """
        return Like.objects.filter(
            Q(sender=user) | Q(receiver=user),
            status=Like.Status.CHATTING
        ).select_related('sender__profile', 'receiver__profile').order_by('-chat_started_at')


# ============================================================================
# RECOMMENDATION SERVICE
# ============================================================================

class RecommendationService:
    """
    Discovery feed ranking.

    Design Philosophy:
    - Score-based matching (0-100)
    - Weights configured in settings.RECOMMENDATION_WEIGHTS
    - Exclusions applied at database level, scoring in Python
    - Cached per user and page, invalidated when the user likes or passes
    """

    @staticmethod
    def calculate_overlap_score(user_tags, target_tags):
        """
        Calculate compatibility score based on shared tags.

        Args:
            user_tags: list of the user's interests or intentions
            target_tags: list of the candidate's interests or intentions

        Returns:
            int: Score from 0-100
        """
        if not user_tags or not target_tags:
            return 50  # Neutral score if data missing

        user_set = set(str(tag).strip().lower() for tag in user_tags)
        target_set = set(str(tag).strip().lower() for tag in target_tags)

        union = len(user_set | target_set)
        if union == 0:
            return 50

        # Jaccard similarity as percentage
        raw_score = len(user_set & target_set) / union * 100
        return max(0, min(100, int(raw_score)))

    @staticmethod
    def calculate_gender_preference_score(target_looking_for, user_gender):
        """
        100 if the candidate is looking for someone of the user's gender.
        """
        return 100 if accepts_gender(target_looking_for, user_gender) else 0

    @staticmethod
    def calculate_match_score(user_profile, target_profile):
        """
        Calculate overall match score between two profiles.

        Returns:
            int: Overall match score from 0-100
        """
        weights = settings.RECOMMENDATION_WEIGHTS

        scores = {
            'interests': RecommendationService.calculate_overlap_score(
                user_profile.interests, target_profile.interests
            ),
            'intentions': RecommendationService.calculate_overlap_score(
                user_profile.intentions, target_profile.intentions
            ),
            'gender_preference': RecommendationService.calculate_gender_preference_score(
                target_profile.looking_for, user_profile.gender
            ),
        }

        total_weight = sum(weights.get(key, 0) for key in scores)
        if total_weight == 0:
            return 50

        total_weighted_score = sum(scores[key] * weights.get(key, 0) for key in scores)
        final_score = int(total_weighted_score / total_weight)

        return max(0, min(100, final_score))

    @staticmethod
    def get_candidates(user):
        """
        Users that may be shown to `user`, before scoring.
        """
        profile = user.profile

        candidates = User.objects.filter(
            is_active=True,
            profile__is_complete=True
        ).exclude(
            id=user.id  # Don't show self
        ).select_related('profile')

        # Filter by gender preference
        if profile.looking_for != LookingFor.EVERYONE:
            candidates = candidates.filter(
                profile__gender=PREFERENCE_GENDER.get(profile.looking_for)
            )

        # Anyone I already liked, passed or chatted with
        already_interacted = Like.objects.filter(sender=user).values('receiver_id')

        # Anyone whose like to me went past pending (revealed, declined, chatting...)
        already_handled = Like.objects.filter(
            receiver=user
        ).exclude(status=Like.Status.PENDING).values('sender_id')

        return candidates.exclude(
            id__in=already_interacted
        ).exclude(
            id__in=already_handled
        ).order_by('-profile__created_at')

    @staticmethod
    def _version_key(user_id):
        return f'recommendations_version_{user_id}'

    @staticmethod
    def _cache_key(user_id, page, limit):
        version = cache.get(RecommendationService._version_key(user_id), 0)
        return f'recommendations_{user_id}_v{version}_page_{page}_limit_{limit}'

    @staticmethod
    def invalidate(user_id):
        """
        Drop every cached page for a user.
        """
        key = RecommendationService._version_key(user_id)
        try:
            cache.incr(key)
        except ValueError:
            cache.set(key, 1, None)

    @staticmethod
    def get_recommendations(user, page=1, limit=20):
        """
        Ranked discovery candidates.

        Args:
            user: User object (with a complete profile)
            page: 1-based page number
            limit: Page size

        Returns:
            dict: results (list of {'user', 'score'}), page, limit, has_more
        """
        profile = getattr(user, 'profile', None)
        if profile is None or not profile.is_complete:
            raise errors.ProfileIncomplete()

        page = max(1, int(page))
        limit = max(1, min(100, int(limit)))

        # Check cache first
        cache_key = RecommendationService._cache_key(user.id, page, limit)
        cached_result = cache.get(cache_key)
        if cached_result is not None:
            return cached_result

        candidates = RecommendationService.get_candidates(user)[:settings.RECOMMENDATION_CANDIDATE_POOL]

        scored = [
            (candidate, RecommendationService.calculate_match_score(profile, candidate.profile))
            for candidate in candidates
        ]

        # Highest score first, newest profile breaks ties
        scored.sort(key=lambda item: (item[1], item[0].profile.created_at), reverse=True)

        start = (page - 1) * limit
        page_items = scored[start:start + limit]

        result = {
            'results': [{'user': candidate, 'score': score} for candidate, score in page_items],
            'page': page,
            'limit': limit,
            'has_more': len(scored) > start + limit,
        }

        cache.set(cache_key, result, settings.RECOMMENDATION_CACHE_SECONDS)
        return result
