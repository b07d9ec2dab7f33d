import pytest
from django.conf import settings
from rest_framework import status

from apps.matching.models import Like
from apps.matching.services import LikeService
from apps.messaging.models import Message
from apps.messaging.services import MessageService
from apps.users.models import LookingFor


pytestmark = pytest.mark.django_db


@pytest.fixture
def alice(make_user):
    return make_user(looking_for=LookingFor.EVERYONE)


@pytest.fixture
def bob(make_user):
    return make_user(looking_for=LookingFor.EVERYONE)


@pytest.fixture
def chatting(alice, bob):
    LikeService.record_like(alice, bob)
    LikeService.record_like(bob, alice)


def client_for(api_client, user):
    api_client.force_authenticate(user=user)
    return api_client


def test_send_message(api_client, alice, bob, chatting):
    response = client_for(api_client, alice).post(
        '/api/chat/send/', {'receiver_id': str(bob.pk), 'text': 'Hi Bob'}, format='json'
    )

    assert response.status_code == status.HTTP_201_CREATED
    assert response.data['message']['text'] == 'Hi Bob'
    assert response.data['message']['is_mine'] is True
    assert response.data['reward'] == settings.FIRST_CHAT_REWARD


def test_send_without_chat_is_rejected(api_client, alice, bob):
    response = client_for(api_client, alice).post(
        '/api/chat/send/', {'receiver_id': str(bob.pk), 'text': 'Hi Bob'}, format='json'
    )

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.data['code'] == 'not_active'
    assert not Message.objects.exists()


def test_send_to_unknown_user(api_client, alice):
    response = client_for(api_client, alice).post(
        '/api/chat/send/',
        {'receiver_id': '00000000-0000-0000-0000-000000000000', 'text': 'Hi'},
        format='json'
    )

    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_history_and_read(api_client, alice, bob, chatting):
    MessageService.send_message(alice, bob, 'one')
    MessageService.send_message(alice, bob, 'two')
    client = client_for(api_client, bob)

    response = client.get(f'/api/chat/{alice.pk}/')

    assert [m['text'] for m in response.data['messages']] == ['one', 'two']
    assert all(m['is_mine'] is False for m in response.data['messages'])
    assert client.get('/api/chat/unread-count/').data == {'unread_count': 2}

    response = client.post(f'/api/chat/read/{alice.pk}/')

    assert response.data == {'success': True, 'marked_read': 2}
    assert client.get('/api/chat/unread-count/').data == {'unread_count': 0}


def test_conversations(api_client, alice, bob, chatting):
    MessageService.send_message(alice, bob, 'Hi')

    response = client_for(api_client, bob).get('/api/chat/conversations/')

    assert response.data['count'] == 1
    conversation = response.data['results'][0]
    assert conversation['partner']['id'] == str(alice.pk)
    assert conversation['unread_count'] == 1
    assert conversation['last_message']['text'] == 'Hi'


def test_delete_conversation(api_client, alice, bob, chatting, wallet_of):
    MessageService.send_message(alice, bob, 'Hi')

    response = client_for(api_client, bob).delete(f'/api/chat/{alice.pk}/')

    assert response.status_code == status.HTTP_200_OK
    assert response.data['deleted_messages'] == 1
    assert response.data['slot_freed'] is True
    assert Like.objects.get(sender=alice, receiver=bob).status == Like.Status.ARCHIVED
    assert wallet_of(alice).active_chat_count == 0


def test_requires_authentication(api_client):
    response = api_client.get('/api/chat/conversations/')

    assert response.status_code in (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN)
