import pytest
from django.conf import settings
from rest_framework import status

from apps.matching.models import Like
from apps.users.models import LookingFor


pytestmark = pytest.mark.django_db


@pytest.fixture
def alice(make_user):
    return make_user(looking_for=LookingFor.EVERYONE)


@pytest.fixture
def bob(make_user):
    return make_user(looking_for=LookingFor.EVERYONE)


def client_for(api_client, user):
    api_client.force_authenticate(user=user)
    return api_client


def test_like_then_match(api_client, alice, bob):
    response = client_for(api_client, alice).post(f'/api/dating/like/{bob.pk}/')

    assert response.status_code == status.HTTP_201_CREATED
    assert response.data['is_match'] is False
    assert response.data['likes'] == settings.MAX_FREE_LIKES - 1

    response = client_for(api_client, bob).post(f'/api/dating/like/{alice.pk}/')

    assert response.data['is_match'] is True
    assert response.data['can_chat'] is True
    assert Like.objects.get(sender=alice, receiver=bob).status == Like.Status.CHATTING


def test_like_unknown_user(api_client, alice):
    response = client_for(api_client, alice).post('/api/dating/like/00000000-0000-0000-0000-000000000000/')

    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.data['code'] == 'not_found'


def test_duplicate_like_error_shape(api_client, alice, bob):
    client = client_for(api_client, alice)
    client.post(f'/api/dating/like/{bob.pk}/')

    response = client.post(f'/api/dating/like/{bob.pk}/')

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.data == {'error': 'You already liked this person!', 'code': 'already_interacted'}


def test_received_likes_are_blurred_until_revealed(api_client, alice, bob):
    client_for(api_client, bob).post(f'/api/dating/like/{alice.pk}/')
    client = client_for(api_client, alice)

    response = client.get('/api/dating/likes/')

    assert response.status_code == status.HTTP_200_OK
    item = response.data['results'][0]
    assert 'username' not in item['sender']

    reveal = client.post(f"/api/dating/reveal/{item['id']}/")
    assert reveal.status_code == status.HTTP_200_OK
    assert reveal.data['coins'] == settings.STARTING_COINS - settings.REVEAL_COST
    assert reveal.data['like']['sender']['username'] == bob.username


def test_reveal_insufficient_funds_payload(api_client, make_user, bob):
    poor = make_user(coins=5)
    client_for(api_client, bob).post(f'/api/dating/like/{poor.pk}/')
    like = Like.objects.get(sender=bob, receiver=poor)

    response = client_for(api_client, poor).post(f'/api/dating/reveal/{like.uuid}/')

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.data['code'] == 'insufficient_funds'
    assert response.data['required'] == settings.REVEAL_COST
    assert response.data['current'] == 5


def test_direct_chat_and_active_chats(api_client, alice, bob):
    client_for(api_client, bob).post(f'/api/dating/like/{alice.pk}/')
    like = Like.objects.get(sender=bob, receiver=alice)
    client = client_for(api_client, alice)

    response = client.post(f'/api/dating/direct-chat/{like.uuid}/')
    assert response.status_code == status.HTTP_200_OK
    assert response.data['sender']['id'] == str(bob.pk)

    chats = client.get('/api/dating/active-chats/')
    assert chats.data['count'] == 1
    assert chats.data['results'][0]['partner']['id'] == str(bob.pk)
    assert chats.data['results'][0]['is_my_like'] is False

    unmatch = client.post(f'/api/dating/unmatch/{like.uuid}/')
    assert unmatch.status_code == status.HTTP_200_OK


def test_pass_and_decline(api_client, alice, bob, make_user):
    client = client_for(api_client, alice)
    assert client.post(f'/api/dating/pass/{bob.pk}/').status_code == status.HTTP_200_OK

    carol = make_user()
    client_for(api_client, carol).post(f'/api/dating/like/{alice.pk}/')
    like = Like.objects.get(sender=carol, receiver=alice)

    response = client_for(api_client, alice).post(f'/api/dating/decline/{like.uuid}/')
    assert response.status_code == status.HTTP_200_OK


def test_purchases_and_status(api_client, alice):
    client = client_for(api_client, alice)

    likes = client.post('/api/dating/buy-likes/')
    assert likes.status_code == status.HTTP_200_OK
    assert likes.data['likes'] == settings.MAX_FREE_LIKES + settings.BUY_LIKES_AMOUNT

    slot = client.post('/api/dating/buy-chat-slot/')
    assert slot.status_code == status.HTTP_400_BAD_REQUEST
    assert slot.data['code'] == 'insufficient_funds'

    my_status = client.get('/api/dating/my-status/')
    assert my_status.data['coins'] == settings.STARTING_COINS - settings.BUY_LIKES_COST
    assert my_status.data['chat_slots'] == settings.DEFAULT_CHAT_SLOTS


def test_recommendations_endpoint(api_client, alice, bob):
    response = client_for(api_client, alice).get('/api/dating/recommendations/', {'limit': 5})

    assert response.status_code == status.HTTP_200_OK
    assert response.data['limit'] == 5
    assert response.data['results'][0]['id'] == str(bob.pk)
    assert 'match_score' in response.data['results'][0]


def test_recommendations_bad_paging(api_client, alice):
    response = client_for(api_client, alice).get('/api/dating/recommendations/', {'page': 'two'})

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.data['code'] == 'validation_error'
