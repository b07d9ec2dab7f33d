from datetime import timedelta

import pytest
from django.conf import settings
from django.utils import timezone

from apps.common import exceptions as errors
from apps.economy.services import RewardService
from apps.users.models import Notification


pytestmark = pytest.mark.django_db


class TestDailyReward:

    def test_first_claim(self, make_user, wallet_of):
        user = make_user(coins=0)

        result = RewardService.claim_daily_reward(user)

        assert result == {'reward': settings.DAILY_REWARD, 'new_balance': settings.DAILY_REWARD}
        assert wallet_of(user).last_daily_reward_at is not None

    def test_second_claim_within_a_day(self, make_user):
        user = make_user(last_daily_reward_at=timezone.now() - timedelta(hours=20))

        with pytest.raises(errors.RewardUnavailable) as exc_info:
            RewardService.claim_daily_reward(user)

        assert exc_info.value.extra['hours_remaining'] == 4

    def test_claim_after_a_day(self, make_user):
        user = make_user(coins=0, last_daily_reward_at=timezone.now() - timedelta(hours=25))

        result = RewardService.claim_daily_reward(user)

        assert result['new_balance'] == settings.DAILY_REWARD


class TestProfileReward:

    def test_granted_once(self, make_user, wallet_of):
        user = make_user(coins=0)

        assert RewardService.check_profile_reward(user) == settings.PROFILE_COMPLETE_REWARD
        assert RewardService.check_profile_reward(user) is None
        assert wallet_of(user).balance == settings.PROFILE_COMPLETE_REWARD

    def test_not_granted_for_incomplete_profile(self, make_user):
        user = make_user(complete=False)

        assert RewardService.check_profile_reward(user) is None


class TestFirstChatReward:

    def test_granted_once(self, make_user, wallet_of):
        user = make_user(coins=0)

        assert RewardService.check_first_chat_reward(user) == settings.FIRST_CHAT_REWARD
        assert RewardService.check_first_chat_reward(user) is None

        wallet = wallet_of(user)
        assert wallet.balance == settings.FIRST_CHAT_REWARD
        assert wallet.first_chat_reward_claimed is True

    def test_shown_in_reward_status(self, make_user):
        user = make_user()
        RewardService.check_first_chat_reward(user)

        status = RewardService.get_reward_status(user)

        assert status['first_chat'] == {'claimed': True, 'amount': settings.FIRST_CHAT_REWARD}


class TestReferral:

    def test_both_users_credited(self, make_user, wallet_of, django_capture_on_commit_callbacks):
        referrer = make_user(coins=0)
        newcomer = make_user(coins=0)
        code = referrer.ensure_referral_code()

        with django_capture_on_commit_callbacks(execute=True):
            result = RewardService.apply_referral(newcomer, f'  {code.lower()} ')

        assert result['bonus_granted'] == settings.REFERRAL_REWARD
        assert wallet_of(newcomer).balance == settings.REFERRAL_REWARD
        assert wallet_of(referrer).balance == settings.REFERRAL_REWARD
        newcomer.refresh_from_db()
        assert newcomer.referred_by_id == referrer.pk
        assert Notification.objects.filter(
            user=referrer, category=Notification.Category.PROMO
        ).exists()

    def test_cannot_use_twice(self, make_user):
        first, second = make_user(), make_user()
        newcomer = make_user()

        RewardService.apply_referral(newcomer, first.ensure_referral_code())

        with pytest.raises(errors.ValidationError):
            RewardService.apply_referral(newcomer, second.ensure_referral_code())

    def test_own_code_rejected(self, make_user):
        user = make_user()

        with pytest.raises(errors.ValidationError):
            RewardService.apply_referral(user, user.ensure_referral_code())

    def test_unknown_code_rejected(self, make_user):
        with pytest.raises(errors.ValidationError):
            RewardService.apply_referral(make_user(), 'NOPE1234')


def test_reward_status_generates_referral_code(make_user):
    user = make_user()

    status = RewardService.get_reward_status(user)

    assert status['daily']['available'] is True
    assert status['profile_complete']['claimed'] is False
    assert status['referral']['code']
    user.refresh_from_db()
    assert user.referral_code == status['referral']['code']
