import itertools

import pytest
from django.core.cache import cache
from rest_framework.test import APIClient

from apps.economy.models import CoinWallet
from apps.users.models import User, Profile, DatingGender, LookingFor


_usernames = itertools.count(1)


@pytest.fixture(autouse=True)
def clear_cache():
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def make_user(db):
    """
    Create a user with a complete dating profile and an adjustable wallet.

    Wallet fields (coins, likes, chat_slots, active_chat_count,
    unlimited_coins_expiry) are written straight to the row.
    """
    def _make_user(
        gender=DatingGender.WOMAN,
        looking_for=LookingFor.MEN,
        complete=True,
        interests=None,
        intentions=None,
        **wallet_fields
    ):
        username = f'dater{next(_usernames)}'
        user = User.objects.create_user(
            email=f'{username}@example.com',
            username=username,
            password='testpassword123'
        )

        if complete:
            profile, _ = Profile.objects.get_or_create(user=user)
            profile.gender = gender
            profile.looking_for = looking_for
            profile.bio = 'Hello there'
            profile.interests = interests if interests is not None else ['Music', 'Travel']
            profile.intentions = intentions if intentions is not None else ['Something serious']
            profile.save()
            profile.refresh_completion()

        if 'coins' in wallet_fields:
            wallet_fields['balance'] = wallet_fields.pop('coins')
        if wallet_fields:
            CoinWallet.objects.filter(user=user).update(**wallet_fields)

        return User.objects.select_related('profile').get(pk=user.pk)

    return _make_user


@pytest.fixture
def user(make_user):
    return make_user()


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def auth_client(api_client, user):
    api_client.force_authenticate(user=user)
    return api_client


@pytest.fixture
def wallet_of(db):
    def _wallet_of(user):
        return CoinWallet.objects.get(user=user)
    return _wallet_of
