"""
Coin Economy Models
====================
Demonstrates:
- Wallet model holding every per-user economy counter
- Transaction tracking for audit trail
- Business rule helpers at model level

Business Rules:
- New users start with STARTING_COINS coins and DEFAULT_CHAT_SLOTS chat slots
- Likes regenerate up to MAX_FREE_LIKES once every LIKE_REGEN_HOURS
- active_chat_count never exceeds chat_slots
- While unlimited_coins_expiry is in the future every coin cost is waived
"""

from django.db import models
from django.conf import settings
from django.utils.translation import gettext_lazy as _
from django.utils import timezone
from datetime import timedelta
import uuid


def default_starting_coins():
    return settings.STARTING_COINS


def default_chat_slots():
    return settings.DEFAULT_CHAT_SLOTS


def default_free_likes():
    return settings.MAX_FREE_LIKES


# ============================================================================
# COIN WALLET MODEL
# ============================================================================

class CoinWallet(models.Model):
    """
    Each user has one wallet holding coins, likes and chat slots.

    Design Pattern: Separate wallet model for:
    - Easy transaction tracking
    - Row-level locking of a single user's counters
    - Audit trail
    """

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='coin_wallet',
        primary_key=True
    )

    balance = models.PositiveIntegerField(
        default=default_starting_coins,
        help_text=_('Current coin balance')
    )

    # Likes
    likes = models.PositiveIntegerField(
        default=default_free_likes,
        help_text=_('Likes left to send')
    )
    last_like_regen_at = models.DateTimeField(default=timezone.now)

    # Chat capacity
    chat_slots = models.PositiveIntegerField(
        default=default_chat_slots,
        help_text=_('Maximum number of simultaneous chats')
    )
    active_chat_count = models.PositiveIntegerField(default=0)

    unlimited_coins_expiry = models.DateTimeField(
        null=True,
        blank=True,
        help_text=_('Coin costs are waived until this time')
    )

    # Lifetime statistics
    total_earned = models.PositiveIntegerField(
        default=default_starting_coins,
        help_text=_('Total coins earned (including initial)')
    )

    total_spent = models.PositiveIntegerField(
        default=0,
        help_text=_('Total coins spent')
    )

    total_purchased = models.PositiveIntegerField(
        default=0,
        help_text=_('Total coins purchased with real money')
    )

    # Rewards
    last_daily_reward_at = models.DateTimeField(null=True, blank=True)
    profile_reward_claimed = models.BooleanField(default=False)
    first_chat_reward_claimed = models.BooleanField(default=False)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'coin_wallets'
        constraints = [
            models.CheckConstraint(
                condition=models.Q(active_chat_count__lte=models.F('chat_slots')),
                name='wallet_active_chats_within_slots',
            ),
        ]

    def __str__(self):
        return f"{self.user.username}'s wallet: {self.balance} coins"

    def has_sufficient_balance(self, amount):
        """
        Check if user has enough coins.
        """
        return self.balance >= amount

    def has_unlimited_coins(self, now=None):
        now = now or timezone.now()
        return bool(self.unlimited_coins_expiry and self.unlimited_coins_expiry > now)

    def can_afford(self, amount, now=None):
        return self.has_unlimited_coins(now) or self.has_sufficient_balance(amount)

    @property
    def available_slots(self):
        return max(0, self.chat_slots - self.active_chat_count)

    def has_free_slot(self):
        return self.active_chat_count < self.chat_slots

    def likes_due_for_regen(self, now=None):
        now = now or timezone.now()
        return now - self.last_like_regen_at >= timedelta(hours=settings.LIKE_REGEN_HOURS)

    def next_regen_time(self):
        """
        When likes will next be topped up, or None if already at the floor.
        """
        if self.likes >= settings.MAX_FREE_LIKES:
            return None
        return self.last_like_regen_at + timedelta(hours=settings.LIKE_REGEN_HOURS)


# ============================================================================
# COIN TRANSACTION MODEL
# ============================================================================

class CoinTransaction(models.Model):
    """
    Immutable record of all coin transactions.
    Provides audit trail and history.
    """

    TRANSACTION_TYPES = [
        ('purchase', 'Purchased with Money'),
        ('unlimited', 'Unlimited Plan Purchase'),
        ('reveal', 'Spent on Profile Reveal'),
        ('chat', 'Spent on Starting a Chat'),
        ('likes', 'Spent on Likes'),
        ('chat_slot', 'Spent on Chat Slot'),
        ('blind_date', 'Spent on Blind Date Choice'),
        ('reward', 'Earned as Reward'),
        ('referral', 'Referral Bonus'),
        ('refund', 'Refund'),
        ('admin', 'Admin Adjustment'),
    ]

    uuid = models.UUIDField(
        default=uuid.uuid4,
        editable=False,
        unique=True,
        db_index=True
    )

    wallet = models.ForeignKey(
        CoinWallet,
        on_delete=models.CASCADE,
        related_name='transactions'
    )

    amount = models.IntegerField(
        help_text=_('Positive for credit, negative for debit, zero when waived')
    )

    transaction_type = models.CharField(
        max_length=20,
        choices=TRANSACTION_TYPES,
        db_index=True
    )

    balance_after = models.PositiveIntegerField(
        help_text=_('Balance after this transaction')
    )

    description = models.CharField(
        max_length=255,
        blank=True
    )

    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        db_table = 'coin_transactions'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['wallet', '-created_at'], name='coin_tx_wallet_idx'),
            models.Index(fields=['transaction_type', '-created_at'], name='coin_tx_type_idx'),
        ]

    def __str__(self):
        sign = '+' if self.amount > 0 else ''
        return f"{self.wallet.user.username}: {sign}{self.amount} coins ({self.transaction_type})"
