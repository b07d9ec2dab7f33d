from datetime import timedelta

import pytest
from django.conf import settings
from django.utils import timezone

from apps.common import exceptions as errors
from apps.matching.models import Like
from apps.matching.services import LikeService
from apps.users.models import Notification


pytestmark = pytest.mark.django_db


@pytest.fixture
def pair(make_user):
    alice = make_user()
    bob = make_user()
    return alice, bob


class TestRecordLike:

    def test_creates_pending_like_and_spends_one(self, pair, wallet_of):
        alice, bob = pair

        result = LikeService.record_like(alice, bob)

        assert result['is_match'] is False
        assert result['like'].status == Like.Status.PENDING
        assert result['likes'] == settings.MAX_FREE_LIKES - 1
        assert wallet_of(alice).likes == settings.MAX_FREE_LIKES - 1

    def test_notifies_receiver_after_commit(self, pair, django_capture_on_commit_callbacks):
        alice, bob = pair

        with django_capture_on_commit_callbacks(execute=True):
            LikeService.record_like(alice, bob)

        assert Notification.objects.filter(user=bob, category=Notification.Category.LIKE).count() == 1

    def test_duplicate_like_rejected(self, pair, wallet_of):
        alice, bob = pair
        LikeService.record_like(alice, bob)

        with pytest.raises(errors.AlreadyInteracted):
            LikeService.record_like(alice, bob)

        assert Like.objects.filter(sender=alice, receiver=bob).count() == 1
        assert wallet_of(alice).likes == settings.MAX_FREE_LIKES - 1

    def test_cannot_like_self(self, make_user):
        user = make_user()

        with pytest.raises(errors.ValidationError):
            LikeService.record_like(user, user)

    def test_no_likes_left(self, make_user):
        sender = make_user(likes=0, last_like_regen_at=timezone.now() - timedelta(hours=2))

        with pytest.raises(errors.NoLikesRemaining):
            LikeService.record_like(sender, make_user())

        assert not Like.objects.filter(sender=sender).exists()

    def test_mutual_like_starts_chat(self, pair, wallet_of):
        alice, bob = pair
        LikeService.record_like(bob, alice)

        result = LikeService.record_like(alice, bob)

        assert result['is_match'] is True
        assert result['can_chat'] is True
        like = Like.objects.get(sender=bob, receiver=alice)
        assert like.status == Like.Status.CHATTING
        assert like.chat_started_at is not None
        assert not Like.objects.filter(sender=alice, receiver=bob).exists()
        assert wallet_of(alice).active_chat_count == 1
        assert wallet_of(bob).active_chat_count == 1
        assert wallet_of(alice).likes == settings.MAX_FREE_LIKES - 1

    def test_mutual_like_with_their_slots_full(self, make_user, wallet_of):
        alice = make_user()
        bob = make_user(chat_slots=1, active_chat_count=1)
        LikeService.record_like(bob, alice)

        result = LikeService.record_like(alice, bob)

        assert result['is_match'] is True
        assert result['can_chat'] is False
        assert result['reason'] == 'their_slots_full'
        assert result['like'] is None
        assert Like.objects.get(sender=bob, receiver=alice).status == Like.Status.PENDING
        assert not Like.objects.filter(sender=alice, receiver=bob).exists()
        assert wallet_of(alice).likes == settings.MAX_FREE_LIKES - 1
        assert wallet_of(alice).active_chat_count == 0

    def test_mutual_like_with_your_slots_full(self, make_user):
        alice = make_user(chat_slots=0)
        bob = make_user()
        LikeService.record_like(bob, alice)

        result = LikeService.record_like(alice, bob)

        assert result['reason'] == 'your_slots_full'


class TestRevealAndChat:

    @pytest.fixture
    def like(self, pair):
        alice, bob = pair
        return LikeService.record_like(bob, alice)['like']

    def test_reveal_charges_receiver(self, like, wallet_of):
        alice = like.receiver

        revealed, wallet = LikeService.reveal(like.uuid, alice)

        assert revealed.status == Like.Status.REVEALED
        assert revealed.revealed_at is not None
        assert wallet.balance == settings.STARTING_COINS - settings.REVEAL_COST

    def test_reveal_twice(self, like):
        LikeService.reveal(like.uuid, like.receiver)

        with pytest.raises(errors.AlreadyRevealed):
            LikeService.reveal(like.uuid, like.receiver)

    def test_only_receiver_can_reveal(self, like):
        with pytest.raises(errors.NotFound):
            LikeService.reveal(like.uuid, like.sender)

    def test_reveal_unknown_like(self, user):
        with pytest.raises(errors.NotFound):
            LikeService.reveal('not-a-uuid', user)

    def test_reveal_without_coins(self, make_user, wallet_of):
        receiver = make_user(coins=10)
        like = LikeService.record_like(make_user(), receiver)['like']

        with pytest.raises(errors.InsufficientFunds):
            LikeService.reveal(like.uuid, receiver)

        like.refresh_from_db()
        assert like.status == Like.Status.PENDING
        assert wallet_of(receiver).balance == 10

    def test_start_chat_requires_reveal(self, like):
        with pytest.raises(errors.RevealRequired):
            LikeService.start_chat(like.uuid, like.receiver)

    def test_start_chat_after_reveal(self, like, wallet_of):
        LikeService.reveal(like.uuid, like.receiver)

        chat, wallet = LikeService.start_chat(like.uuid, like.receiver)

        assert chat.status == Like.Status.CHATTING
        assert wallet.balance == settings.STARTING_COINS - settings.REVEAL_COST - settings.START_CHAT_COST
        assert wallet_of(like.sender).active_chat_count == 1
        assert wallet_of(like.receiver).active_chat_count == 1

        with pytest.raises(errors.AlreadyChatting):
            LikeService.start_chat(like.uuid, like.receiver)

    def test_start_chat_without_coins_keeps_slots(self, make_user, wallet_of):
        receiver = make_user(coins=settings.REVEAL_COST)
        sender = make_user()
        like = LikeService.record_like(sender, receiver)['like']
        LikeService.reveal(like.uuid, receiver)

        with pytest.raises(errors.InsufficientFunds):
            LikeService.start_chat(like.uuid, receiver)

        assert wallet_of(receiver).active_chat_count == 0
        assert wallet_of(sender).active_chat_count == 0

    def test_start_chat_when_sender_has_no_slot(self, make_user, wallet_of):
        receiver = make_user()
        sender = make_user(chat_slots=1, active_chat_count=1)
        like = LikeService.record_like(sender, receiver)['like']
        LikeService.reveal(like.uuid, receiver)
        balance = wallet_of(receiver).balance

        with pytest.raises(errors.NoSlotsAvailable):
            LikeService.start_chat(like.uuid, receiver)

        assert wallet_of(receiver).balance == balance

    def test_direct_chat(self, like, wallet_of):
        chat, wallet = LikeService.direct_chat(like.uuid, like.receiver)

        assert chat.status == Like.Status.CHATTING
        assert chat.revealed_at is not None
        assert wallet.balance == settings.STARTING_COINS - settings.DIRECT_CHAT_COST


class TestDeclinePassUnmatch:

    def test_decline(self, pair):
        alice, bob = pair
        like = LikeService.record_like(bob, alice)['like']

        LikeService.decline(like.uuid, alice)

        like.refresh_from_db()
        assert like.status == Like.Status.DECLINED
        with pytest.raises(errors.NotActive):
            LikeService.decline(like.uuid, alice)

    def test_pass_creates_record(self, pair):
        alice, bob = pair

        like = LikeService.pass_user(alice, bob)

        assert like.status == Like.Status.PASSED
        with pytest.raises(errors.AlreadyInteracted):
            LikeService.record_like(alice, bob)

    def test_pass_on_chat_rejected(self, pair):
        alice, bob = pair
        LikeService.record_like(bob, alice)
        LikeService.record_like(alice, bob)

        with pytest.raises(errors.AlreadyChatting):
            LikeService.pass_user(bob, alice)

    def test_unmatch_releases_both_slots(self, pair, wallet_of):
        alice, bob = pair
        LikeService.record_like(bob, alice)
        LikeService.record_like(alice, bob)
        like = Like.objects.get(sender=bob, receiver=alice)

        LikeService.unmatch(like.uuid, alice)

        like.refresh_from_db()
        assert like.status == Like.Status.ARCHIVED
        assert wallet_of(alice).active_chat_count == 0
        assert wallet_of(bob).active_chat_count == 0

    def test_unmatch_requires_chat(self, pair):
        alice, bob = pair
        like = LikeService.record_like(bob, alice)['like']

        with pytest.raises(errors.NotActive):
            LikeService.unmatch(like.uuid, alice)

    def test_outsider_cannot_unmatch(self, pair, make_user):
        alice, bob = pair
        LikeService.record_like(bob, alice)
        LikeService.record_like(alice, bob)
        like = Like.objects.get(sender=bob, receiver=alice)

        with pytest.raises(errors.NotFound):
            LikeService.unmatch(like.uuid, make_user())


class TestBlindMatchChat:

    def test_upgrades_existing_like(self, pair):
        alice, bob = pair
        LikeService.pass_user(alice, bob)

        like = LikeService.open_blind_match_chat(alice, bob)

        assert like.status == Like.Status.CHATTING
        assert like.is_blind_match is True
        assert Like.objects.filter(sender=alice, receiver=bob).count() == 1
        assert LikeService.chatting_between(bob, alice)

    def test_upgrades_partner_open_like(self, pair):
        alice, bob = pair
        pending = LikeService.record_like(bob, alice)['like']

        like = LikeService.open_blind_match_chat(alice, bob)

        assert like.pk == pending.pk
        assert like.status == Like.Status.CHATTING
        assert not Like.objects.filter(sender=alice, receiver=bob).exists()

    def test_creates_like_when_none_exists(self, pair):
        alice, bob = pair

        like = LikeService.open_blind_match_chat(alice, bob)

        assert (like.sender_id, like.receiver_id) == (alice.pk, bob.pk)
        assert Like.between(alice, bob).count() == 1

    def test_no_second_chat_for_the_same_pair(self, pair, wallet_of):
        alice, bob = pair
        LikeService.open_blind_match_chat(alice, bob)
        # A fresh like sent in the other direction while already chatting
        stray = Like.objects.create(sender=bob, receiver=alice)

        with pytest.raises(errors.AlreadyChatting):
            LikeService.direct_chat(stray.uuid, alice)

        assert wallet_of(alice).balance == settings.STARTING_COINS
        assert Like.between(alice, bob).filter(status=Like.Status.CHATTING).count() == 1


def test_turned_down_user_ids(pair, make_user):
    alice, bob = pair
    carol, dave = make_user(), make_user()
    LikeService.decline(LikeService.record_like(bob, alice)['like'].uuid, alice)
    LikeService.pass_user(carol, alice)
    LikeService.record_like(dave, alice)

    assert LikeService.turned_down_user_ids(alice) == {bob.pk, carol.pk}
    assert LikeService.turned_down_user_ids(bob) == {alice.pk}


def test_active_chats_lists_both_directions(pair, make_user):
    alice, bob = pair
    carol = make_user()
    LikeService.record_like(bob, alice)
    LikeService.record_like(alice, bob)
    LikeService.record_like(alice, carol)
    LikeService.record_like(carol, alice)

    chats = LikeService.get_active_chats(alice)

    assert {chat.partner_of(alice).pk for chat in chats} == {bob.pk, carol.pk}
