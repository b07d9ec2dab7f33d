"""
Economy Service Layer
======================
Demonstrates:
- Row-level locking with select_for_update for every counter change
- Coordinated multi-wallet updates (lock in primary key order, check, then write)
- Unlimited-plan cost waiving in one place
- Coin-based monetization implementation

Key Principle: Only this module writes wallet fields. Other apps call
LedgerService inside their own transaction so a failed check rolls back
the whole operation.
"""

from django.db import transaction
from django.db.models import F
from django.conf import settings
from django.utils import timezone
from datetime import timedelta
import math
import logging

from apps.common import exceptions as errors
from apps.common.activity import log_activity
from apps.users.models import User, Profile, Notification
from apps.users.utils.push_notifications import notify_user_on_commit
from .models import CoinWallet, CoinTransaction

logger = logging.getLogger(__name__)


# ============================================================================
# LEDGER SERVICE
# ============================================================================

class LedgerService:
    """
    Coins, likes and chat slots of a single user.

    Every mutating method must run inside a transaction: the wallet row is
    locked for the rest of the caller's transaction.
    """

    @staticmethod
    def get_wallet(user):
        """
        Get the user's wallet without locking it.
        """
        wallet, created = CoinWallet.objects.get_or_create(user=user)
        return wallet

    @staticmethod
    def lock_wallet(user):
        """
        Lock and return the user's wallet row.
        """
        try:
            return CoinWallet.objects.select_for_update().get(user=user)
        except CoinWallet.DoesNotExist:
            CoinWallet.objects.get_or_create(user=user)
            return CoinWallet.objects.select_for_update().get(user=user)

    @staticmethod
    def lock_wallets(*users):
        """
        Lock several wallets at once, always in primary key order so two
        requests locking the same pair can never deadlock.

        Returns:
            list: wallets in the same order as `users`
        """
        user_ids = [user.pk for user in users]
        existing = set(
            CoinWallet.objects.filter(user_id__in=user_ids).values_list('user_id', flat=True)
        )
        for user in users:
            if user.pk not in existing:
                CoinWallet.objects.get_or_create(user=user)

        locked = {
            wallet.pk: wallet
            for wallet in CoinWallet.objects.select_for_update()
            .filter(user_id__in=user_ids)
            .order_by('pk')
        }
        return [locked[user_id] for user_id in user_ids]

    # --- Likes ---

    @staticmethod
    @transaction.atomic
    def regenerate_likes(user, now=None):
        """
        Top likes back up to the daily floor once the regeneration window
        has passed. A larger (purchased) balance is never reduced.

        Returns:
            CoinWallet: the locked, up to date wallet
        """
        now = now or timezone.now()
        wallet = LedgerService.lock_wallet(user)

        if wallet.likes_due_for_regen(now):
            wallet.likes = max(wallet.likes, settings.MAX_FREE_LIKES)
            wallet.last_like_regen_at = now
            wallet.save(update_fields=['likes', 'last_like_regen_at', 'updated_at'])
            logger.debug(f"Regenerated likes for {user.username}: {wallet.likes}")

        return wallet

    @staticmethod
    @transaction.atomic
    def consume_like(user, now=None):
        """
        Spend one like.

        Raises:
            NoLikesRemaining: If the user has no likes left after regeneration
        """
        wallet = LedgerService.regenerate_likes(user, now=now)
        if wallet.likes < 1:
            raise errors.NoLikesRemaining(next_regen_time=wallet.next_regen_time())

        wallet.likes -= 1
        wallet.save(update_fields=['likes', 'updated_at'])
        return wallet

    # --- Coins ---

    @staticmethod
    def _debit_locked(wallet, amount, transaction_type, description='', now=None):
        """
        Debit a wallet the caller already holds a lock on.
        """
        if amount < 0:
            raise errors.ValidationError('Amount must not be negative.')

        if wallet.has_unlimited_coins(now):
            # Audit row only, nothing is deducted
            return CoinTransaction.objects.create(
                wallet=wallet,
                amount=0,
                transaction_type=transaction_type,
                balance_after=wallet.balance,
                description=f'{description} (waived: unlimited plan)'.strip()
            )

        if not wallet.has_sufficient_balance(amount):
            raise errors.InsufficientFunds(
                f'Insufficient coins. Need {amount} coins.',
                required=amount,
                current=wallet.balance
            )

        wallet.balance -= amount
        wallet.total_spent += amount
        wallet.save(update_fields=['balance', 'total_spent', 'updated_at'])

        coin_transaction = CoinTransaction.objects.create(
            wallet=wallet,
            amount=-amount,
            transaction_type=transaction_type,
            balance_after=wallet.balance,
            description=description
        )

        if amount:
            log_activity(
                wallet.user,
                'COINS_DEDUCTED',
                {'amount': amount, 'reason': description, 'type': transaction_type}
            )
            logger.info(
                f"Debited {amount} coins from {wallet.user.username} ({transaction_type}). "
                f"New balance: {wallet.balance}"
            )

        return coin_transaction

    @staticmethod
    def _credit_locked(wallet, amount, transaction_type, description=''):
        """
        Credit a wallet the caller already holds a lock on.
        """
        if amount <= 0:
            raise errors.ValidationError('Amount must be positive.')

        wallet.balance += amount
        wallet.total_earned += amount
        wallet.save(update_fields=['balance', 'total_earned', 'updated_at'])

        coin_transaction = CoinTransaction.objects.create(
            wallet=wallet,
            amount=amount,
            transaction_type=transaction_type,
            balance_after=wallet.balance,
            description=description
        )

        logger.info(
            f"Credited {amount} coins to {wallet.user.username} ({transaction_type}). "
            f"New balance: {wallet.balance}"
        )
        return coin_transaction

    @staticmethod
    @transaction.atomic
    def debit(user, amount, transaction_type, description=''):
        """
        Deduct coins, unless an unlimited plan is active.

        Args:
            user: User paying
            amount: Number of coins to deduct
            transaction_type: Type of transaction (see CoinTransaction.TRANSACTION_TYPES)
            description: Reason recorded for audit

        Returns:
            CoinTransaction object

        Raises:
            InsufficientFunds: If balance is too low and no unlimited plan is active
        """
        wallet = LedgerService.lock_wallet(user)
        return LedgerService._debit_locked(wallet, amount, transaction_type, description)

    @staticmethod
    @transaction.atomic
    def credit(user, amount, transaction_type, description=''):
        """
        Add coins with transaction record.
        """
        wallet = LedgerService.lock_wallet(user)
        return LedgerService._credit_locked(wallet, amount, transaction_type, description)

    # --- Chat slots ---

    @staticmethod
    @transaction.atomic
    def reserve_chat_slot(user):
        """
        Occupy one chat slot.

        Raises:
            NoSlotsAvailable: If every slot is already in use
        """
        return LedgerService.reserve_chat_slots(user)[0]

    @staticmethod
    @transaction.atomic
    def reserve_chat_slots(*users):
        """
        Occupy one chat slot on every given user, or on none of them.

        All wallets are locked and checked before any is incremented.

        Raises:
            NoSlotsAvailable: naming the users whose slots are full
        """
        wallets = LedgerService.lock_wallets(*users)

        full = [wallet for wallet in wallets if not wallet.has_free_slot()]
        if full:
            raise errors.NoSlotsAvailable(
                full_user_ids=[str(wallet.user_id) for wallet in full]
            )

        for wallet in wallets:
            wallet.active_chat_count += 1
            wallet.save(update_fields=['active_chat_count', 'updated_at'])

        return wallets

    @staticmethod
    def release_chat_slot(user):
        """
        Free one chat slot. Never goes below zero.

        Returns:
            bool: True if a slot was released
        """
        updated = CoinWallet.objects.filter(
            user=user,
            active_chat_count__gt=0
        ).update(active_chat_count=F('active_chat_count') - 1, updated_at=timezone.now())
        return updated == 1

    # --- Purchases with coins ---

    @staticmethod
    @transaction.atomic
    def buy_likes(user):
        """
        Spend BUY_LIKES_COST coins for BUY_LIKES_AMOUNT extra likes.
        """
        wallet = LedgerService.regenerate_likes(user)
        LedgerService._debit_locked(
            wallet,
            settings.BUY_LIKES_COST,
            'likes',
            f'Purchased {settings.BUY_LIKES_AMOUNT} likes'
        )
        wallet.likes += settings.BUY_LIKES_AMOUNT
        wallet.save(update_fields=['likes', 'updated_at'])
        return wallet

    @staticmethod
    @transaction.atomic
    def buy_chat_slot(user):
        """
        Spend BUY_CHAT_SLOT_COST coins for one more chat slot.
        """
        wallet = LedgerService.lock_wallet(user)
        LedgerService._debit_locked(
            wallet,
            settings.BUY_CHAT_SLOT_COST,
            'chat_slot',
            'Purchased 1 chat slot'
        )
        wallet.chat_slots += 1
        wallet.save(update_fields=['chat_slots', 'updated_at'])
        return wallet

    @staticmethod
    @transaction.atomic
    def get_status(user):
        """
        Likes, slots and coins as shown on the dating screen.
        """
        wallet = LedgerService.regenerate_likes(user)
        return {
            'likes': wallet.likes,
            'chat_slots': wallet.chat_slots,
            'active_chat_count': wallet.active_chat_count,
            'available_slots': wallet.available_slots,
            'coins': wallet.balance,
            'next_regen_time': wallet.next_regen_time(),
            'max_free_likes': settings.MAX_FREE_LIKES,
            'has_unlimited_coins': wallet.has_unlimited_coins(),
            'unlimited_coins_expiry': wallet.unlimited_coins_expiry,
        }


# ============================================================================
# COIN SERVICE
# ============================================================================

class CoinService:
    """
    Encapsulates business logic for coin purchases and history.
    """

    @staticmethod
    @transaction.atomic
    def purchase_coins(user, amount, payment_reference=''):
        """
        Process a coin purchase.

        Payment verification happens upstream; this only credits the wallet.

        Args:
            user: User purchasing coins
            amount: Number of coins to purchase
            payment_reference: External payment reference ID

        Returns:
            CoinTransaction: The transaction record
        """
        wallet = LedgerService.lock_wallet(user)

        transaction_obj = LedgerService._credit_locked(
            wallet,
            amount,
            'purchase',
            f'Purchased {amount} coins. Ref: {payment_reference}'
        )

        # Update purchase statistics
        wallet.total_purchased += amount
        wallet.save(update_fields=['total_purchased'])

        log_activity(user, 'COINS_PURCHASED', {
            'amount': amount,
            'payment_reference': payment_reference,
            'new_balance': wallet.balance,
        })

        logger.info(
            f"User {user.username} purchased {amount} coins. "
            f"New balance: {wallet.balance}"
        )

        return transaction_obj

    @staticmethod
    @transaction.atomic
    def purchase_unlimited(user, days, payment_reference=''):
        """
        Extend the unlimited plan by `days`, starting from whichever is later:
        now or the current expiry.

        Returns:
            CoinWallet: wallet with the new expiry
        """
        if days <= 0:
            raise errors.ValidationError('Days must be positive.')

        now = timezone.now()
        wallet = LedgerService.lock_wallet(user)

        starts_at = max(now, wallet.unlimited_coins_expiry or now)
        wallet.unlimited_coins_expiry = starts_at + timedelta(days=days)
        wallet.save(update_fields=['unlimited_coins_expiry', 'updated_at'])

        CoinTransaction.objects.create(
            wallet=wallet,
            amount=0,
            transaction_type='unlimited',
            balance_after=wallet.balance,
            description=f'Unlimited plan {days} days. Ref: {payment_reference}'
        )

        log_activity(user, 'UNLIMITED_PLAN_PURCHASED', {
            'days': days,
            'payment_reference': payment_reference,
            'expires_at': wallet.unlimited_coins_expiry.isoformat(),
        })

        logger.info(
            f"User {user.username} bought {days} unlimited days, "
            f"expires {wallet.unlimited_coins_expiry}"
        )
        return wallet

    @staticmethod
    def get_transaction_history(user, limit=50):
        """
        Get coin transaction history for a user.

        Args:
            user: User object
            limit: Maximum number of transactions to return

        Returns:
            QuerySet: CoinTransaction objects
        """
        try:
            wallet = CoinWallet.objects.get(user=user)
            return wallet.transactions.all()[:limit]
        except CoinWallet.DoesNotExist:
            return CoinTransaction.objects.none()


# ============================================================================
# REWARD SERVICE
# ============================================================================

class RewardService:
    """
    Free coins: daily login, profile completion, first chat message and
    referrals.
    """

    @staticmethod
    def _daily_window(wallet, now):
        """
        Returns (available, hours_remaining, next_claim_at).
        """
        if not wallet.last_daily_reward_at:
            return True, 0, None

        next_claim_at = wallet.last_daily_reward_at + timedelta(hours=24)
        if now >= next_claim_at:
            return True, 0, None

        hours_remaining = math.ceil((next_claim_at - now).total_seconds() / 3600)
        return False, hours_remaining, next_claim_at

    @staticmethod
    @transaction.atomic
    def claim_daily_reward(user, now=None):
        """
        Grant DAILY_REWARD coins once every 24 hours.

        Raises:
            RewardUnavailable: If claimed less than 24 hours ago
        """
        now = now or timezone.now()
        wallet = LedgerService.lock_wallet(user)

        available, hours_remaining, next_claim_at = RewardService._daily_window(wallet, now)
        if not available:
            raise errors.RewardUnavailable(
                'Daily reward already claimed',
                hours_remaining=hours_remaining,
                next_claim_at=next_claim_at.isoformat()
            )

        LedgerService._credit_locked(wallet, settings.DAILY_REWARD, 'reward', 'Daily login reward')
        wallet.last_daily_reward_at = now
        wallet.save(update_fields=['last_daily_reward_at'])

        log_activity(user, 'DAILY_REWARD_CLAIMED', {
            'amount': settings.DAILY_REWARD,
            'new_balance': wallet.balance,
        })

        return {
            'reward': settings.DAILY_REWARD,
            'new_balance': wallet.balance,
        }

    @staticmethod
    @transaction.atomic
    def check_profile_reward(user):
        """
        Grant PROFILE_COMPLETE_REWARD the first time the dating profile is
        complete.

        Returns:
            int or None: coins granted
        """
        # The caller may hold a stale copy of the profile
        profile = Profile.objects.filter(user=user).first()
        if profile is None or not profile.is_complete:
            return None

        wallet = LedgerService.lock_wallet(user)
        if wallet.profile_reward_claimed:
            return None

        LedgerService._credit_locked(
            wallet, settings.PROFILE_COMPLETE_REWARD, 'reward', 'Profile completed'
        )
        wallet.profile_reward_claimed = True
        wallet.save(update_fields=['profile_reward_claimed'])

        log_activity(user, 'PROFILE_REWARD_CLAIMED', {
            'amount': settings.PROFILE_COMPLETE_REWARD,
            'new_balance': wallet.balance,
        })
        return settings.PROFILE_COMPLETE_REWARD

    @staticmethod
    @transaction.atomic
    def check_first_chat_reward(user):
        """
        Grant FIRST_CHAT_REWARD for the first chat message the user sends.

        Returns:
            int or None: coins granted
        """
        wallet = LedgerService.lock_wallet(user)
        if wallet.first_chat_reward_claimed:
            return None

        LedgerService._credit_locked(
            wallet, settings.FIRST_CHAT_REWARD, 'reward', 'First chat message'
        )
        wallet.first_chat_reward_claimed = True
        wallet.save(update_fields=['first_chat_reward_claimed'])

        log_activity(user, 'FIRST_CHAT_REWARD_CLAIMED', {
            'amount': settings.FIRST_CHAT_REWARD,
            'new_balance': wallet.balance,
        })
        return settings.FIRST_CHAT_REWARD

    @staticmethod
    @transaction.atomic
    def apply_referral(user, referral_code):
        """
        Link `user` to the owner of `referral_code` and credit both.

        Raises:
            ValidationError: Missing, unknown or own code, or user already referred
        """
        code = (referral_code or '').strip().upper()
        if not code:
            raise errors.ValidationError('Referral code is required.')

        user = User.objects.select_for_update().get(pk=user.pk)
        if user.referred_by_id:
            raise errors.ValidationError('You have already used a referral code.')

        referrer = User.objects.filter(referral_code=code).first()
        if referrer is None:
            raise errors.ValidationError('Invalid referral code.')
        if referrer.pk == user.pk:
            raise errors.ValidationError('Cannot use your own referral code.')

        user.referred_by = referrer
        user.save(update_fields=['referred_by'])

        referee_wallet, referrer_wallet = LedgerService.lock_wallets(user, referrer)
        LedgerService._credit_locked(
            referee_wallet, settings.REFERRAL_REWARD, 'referral', f'Referred by {referrer.username}'
        )
        LedgerService._credit_locked(
            referrer_wallet, settings.REFERRAL_REWARD, 'referral', f'Referred {user.username}'
        )

        log_activity(user, 'REFERRAL_BONUS_RECEIVED', {
            'referrer_id': str(referrer.pk), 'amount': settings.REFERRAL_REWARD
        })
        log_activity(referrer, 'REFERRAL_BONUS_GRANTED', {
            'referee_id': str(user.pk), 'amount': settings.REFERRAL_REWARD
        })

        notify_user_on_commit(
            referrer.pk,
            'Referral bonus! 🎉',
            f'{user.username} joined with your code. You earned {settings.REFERRAL_REWARD} coins!',
            data={'type': 'referral'},
            category=Notification.Category.PROMO,
        )

        return {
            'bonus_granted': settings.REFERRAL_REWARD,
            'new_balance': referee_wallet.balance,
        }

    @staticmethod
    def get_reward_status(user, now=None):
        """
        What the user can claim right now, plus their referral code.
        """
        now = now or timezone.now()
        wallet = LedgerService.get_wallet(user)
        available, hours_remaining, next_claim_at = RewardService._daily_window(wallet, now)

        return {
            'daily': {
                'available': available,
                'hours_remaining': hours_remaining,
                'next_claim_at': next_claim_at,
                'amount': settings.DAILY_REWARD,
            },
            'profile_complete': {
                'claimed': wallet.profile_reward_claimed,
                'amount': settings.PROFILE_COMPLETE_REWARD,
            },
            'first_chat': {
                'claimed': wallet.first_chat_reward_claimed,
                'amount': settings.FIRST_CHAT_REWARD,
            },
            'referral': {
                'code': user.ensure_referral_code(),
                'used': user.referred_by_id is not None,
                'amount': settings.REFERRAL_REWARD,
            },
        }
