from datetime import timedelta

import pytest
from django.conf import settings
from django.utils import timezone

from apps.blind_dating.models import BlindDateQueueEntry, BlindDateSession
from apps.blind_dating.services import MatchmakingService
from apps.common import exceptions as errors
from apps.matching.services import LikeService
from apps.users.models import DatingGender, LookingFor, Notification


pytestmark = pytest.mark.django_db


@pytest.fixture
def woman(make_user):
    return make_user(gender=DatingGender.WOMAN, looking_for=LookingFor.MEN)


@pytest.fixture
def man(make_user):
    return make_user(gender=DatingGender.MAN, looking_for=LookingFor.WOMEN)


class TestJoin:

    def test_first_user_waits(self, woman):
        result = MatchmakingService.join(woman)

        assert result['status'] == 'searching'
        entry = BlindDateQueueEntry.objects.get(user=woman)
        assert entry.gender == DatingGender.WOMAN
        assert entry.looking_for == LookingFor.MEN

    def test_compatible_user_is_matched(self, woman, man):
        MatchmakingService.join(woman)

        result = MatchmakingService.join(man)

        assert result['status'] == 'matched'
        session = result['session']
        assert {session.user1_id, session.user2_id} == {woman.pk, man.pk}
        assert session.status == BlindDateSession.Status.ACTIVE
        assert session.expires_at == session.start_time + timedelta(minutes=settings.BLIND_DATE_SESSION_MINUTES)
        assert not BlindDateQueueEntry.objects.exists()

    def test_waiting_user_is_notified(self, woman, man, django_capture_on_commit_callbacks):
        MatchmakingService.join(woman)

        with django_capture_on_commit_callbacks(execute=True):
            MatchmakingService.join(man)

        assert Notification.objects.filter(user=woman, category=Notification.Category.BLIND).exists()
        assert not Notification.objects.filter(user=man).exists()

    def test_join_twice_is_idempotent(self, woman):
        MatchmakingService.join(woman)

        result = MatchmakingService.join(woman)

        assert result['status'] == 'searching'
        assert result['already_queued'] is True
        assert BlindDateQueueEntry.objects.filter(user=woman).count() == 1

    def test_incompatible_preferences_both_wait(self, make_user, woman):
        man_for_men = make_user(gender=DatingGender.MAN, looking_for=LookingFor.MEN)
        MatchmakingService.join(woman)

        result = MatchmakingService.join(man_for_men)

        assert result['status'] == 'searching'
        assert BlindDateQueueEntry.objects.count() == 2

    def test_one_sided_preference_is_not_enough(self, make_user):
        waiting = make_user(gender=DatingGender.WOMAN, looking_for=LookingFor.WOMEN)
        MatchmakingService.join(waiting)

        # The joiner accepts anyone, but the waiting user only wants women
        result = MatchmakingService.join(make_user(gender=DatingGender.MAN, looking_for=LookingFor.EVERYONE))

        assert result['status'] == 'searching'

    def test_everyone_matches_any_gender(self, make_user):
        waiting = make_user(gender=DatingGender.NON_BINARY, looking_for=LookingFor.EVERYONE)
        MatchmakingService.join(waiting)

        result = MatchmakingService.join(make_user(gender=DatingGender.MAN, looking_for=LookingFor.EVERYONE))

        assert result['status'] == 'matched'

    def test_oldest_entry_wins(self, make_user, man):
        older = make_user(gender=DatingGender.WOMAN, looking_for=LookingFor.MEN)
        newer = make_user(gender=DatingGender.WOMAN, looking_for=LookingFor.MEN)
        MatchmakingService.join(newer)
        MatchmakingService.join(older)
        BlindDateQueueEntry.objects.filter(user=older).update(joined_at=timezone.now() - timedelta(minutes=3))

        result = MatchmakingService.join(man)

        assert result['session'].user2_id == older.pk
        assert BlindDateQueueEntry.objects.filter(user=newer).exists()

    def test_incomplete_profile_rejected(self, make_user):
        with pytest.raises(errors.ProfileIncomplete):
            MatchmakingService.join(make_user(complete=False))

    def test_already_in_session(self, woman, man):
        MatchmakingService.join(woman)
        session = MatchmakingService.join(man)['session']

        with pytest.raises(errors.AlreadyInSession) as exc_info:
            MatchmakingService.join(woman)

        assert exc_info.value.extra['session_id'] == str(session.uuid)

    def test_expired_session_does_not_block_joining(self, woman, man):
        MatchmakingService.join(woman)
        session = MatchmakingService.join(man)['session']
        BlindDateSession.objects.filter(pk=session.pk).update(expires_at=timezone.now() - timedelta(seconds=1))

        result = MatchmakingService.join(woman)

        assert result['status'] == 'searching'
        session.refresh_from_db()
        assert session.status == BlindDateSession.Status.ENDED
        assert session.end_reason == BlindDateSession.EndReason.EXPIRED

    def test_declined_pair_is_not_matched(self, woman, man):
        like = LikeService.record_like(man, woman)['like']
        LikeService.decline(like.uuid, woman)
        MatchmakingService.join(woman)

        result = MatchmakingService.join(man)

        assert result['status'] == 'searching'
        assert BlindDateQueueEntry.objects.count() == 2

    def test_passed_pair_is_not_matched(self, make_user, woman, man):
        LikeService.pass_user(woman, man)
        MatchmakingService.join(woman)
        other = make_user(gender=DatingGender.WOMAN, looking_for=LookingFor.MEN)
        MatchmakingService.join(other)

        result = MatchmakingService.join(man)

        assert result['session'].user2_id == other.pk
        assert BlindDateQueueEntry.objects.filter(user=woman).exists()

    def test_skips_entries_of_users_in_a_session(self, make_user, woman, man):
        # A stray entry left behind while its owner is in a session
        busy = make_user(gender=DatingGender.WOMAN, looking_for=LookingFor.MEN)
        BlindDateSession.objects.create(user1=busy, user2=make_user())
        BlindDateQueueEntry.objects.create(
            user=busy, gender=DatingGender.WOMAN, looking_for=LookingFor.MEN,
            joined_at=timezone.now() - timedelta(minutes=1)
        )
        MatchmakingService.join(woman)

        result = MatchmakingService.join(man)

        assert result['session'].user2_id == woman.pk


def test_leave(woman):
    MatchmakingService.join(woman)

    assert MatchmakingService.leave(woman) is True
    assert MatchmakingService.leave(woman) is False
    assert not BlindDateQueueEntry.objects.exists()
