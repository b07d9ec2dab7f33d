import pytest
from django.conf import settings
from rest_framework import status


pytestmark = pytest.mark.django_db


def test_wallet_requires_authentication(api_client):
    response = api_client.get('/api/wallet/')

    assert response.status_code in (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN)


def test_wallet_returns_balance(auth_client):
    response = auth_client.get('/api/wallet/')

    assert response.status_code == status.HTTP_200_OK
    assert response.data['balance'] == settings.STARTING_COINS
    assert response.data['available_slots'] == settings.DEFAULT_CHAT_SLOTS
    assert response.data['has_unlimited_coins'] is False


def test_purchase_and_history(auth_client):
    response = auth_client.post('/api/wallet/purchase/', {'amount': 300, 'payment_reference': 'ref-1'}, format='json')

    assert response.status_code == status.HTTP_201_CREATED
    assert response.data['new_balance'] == settings.STARTING_COINS + 300

    history = auth_client.get('/api/wallet/transactions/')
    assert history.status_code == status.HTTP_200_OK
    assert history.data['results'][0]['transaction_type'] == 'purchase'


def test_purchase_rejects_invalid_amount(auth_client):
    response = auth_client.post('/api/wallet/purchase/', {'amount': 0}, format='json')

    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_purchase_unlimited(auth_client):
    response = auth_client.post('/api/wallet/purchase-unlimited/', {'days': 7}, format='json')

    assert response.status_code == status.HTTP_200_OK
    assert response.data['unlimited_coins_expiry'] is not None


def test_daily_reward_twice(auth_client):
    first = auth_client.post('/api/rewards/daily/')
    second = auth_client.post('/api/rewards/daily/')

    assert first.status_code == status.HTTP_200_OK
    assert first.data['reward'] == settings.DAILY_REWARD
    assert second.status_code == status.HTTP_400_BAD_REQUEST
    assert second.data['code'] == 'reward_unavailable'
    assert second.data['hours_remaining'] == 24


def test_reward_status(auth_client):
    response = auth_client.get('/api/rewards/status/')

    assert response.status_code == status.HTTP_200_OK
    assert response.data['daily']['amount'] == settings.DAILY_REWARD
    assert response.data['referral']['code']


def test_referral_endpoint(api_client, make_user):
    referrer = make_user()
    newcomer = make_user()
    api_client.force_authenticate(user=newcomer)

    response = api_client.post('/api/rewards/referral/', {'code': referrer.ensure_referral_code()}, format='json')

    assert response.status_code == status.HTTP_200_OK
    assert response.data['bonus_granted'] == settings.REFERRAL_REWARD
