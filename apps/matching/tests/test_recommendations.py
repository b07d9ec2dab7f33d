import pytest

from apps.common import exceptions as errors
from apps.matching.models import Like
from apps.matching.services import LikeService, RecommendationService
from apps.users.models import DatingGender, LookingFor


class TestScoring:

    def test_overlap_score(self):
        assert RecommendationService.calculate_overlap_score(['Music', 'Travel'], ['music', 'travel']) == 100
        assert RecommendationService.calculate_overlap_score(['Music'], ['Art']) == 0
        assert RecommendationService.calculate_overlap_score(['Music', 'Art'], ['Music', 'Travel']) == 33

    def test_overlap_score_missing_data_is_neutral(self):
        assert RecommendationService.calculate_overlap_score([], ['Music']) == 50
        assert RecommendationService.calculate_overlap_score(None, None) == 50

    def test_gender_preference_score(self):
        assert RecommendationService.calculate_gender_preference_score(LookingFor.EVERYONE, DatingGender.MAN) == 100
        assert RecommendationService.calculate_gender_preference_score(LookingFor.WOMEN, DatingGender.WOMAN) == 100
        assert RecommendationService.calculate_gender_preference_score(LookingFor.WOMEN, DatingGender.MAN) == 0


@pytest.mark.django_db
class TestRecommendations:

    def test_requires_complete_profile(self, make_user):
        with pytest.raises(errors.ProfileIncomplete):
            RecommendationService.get_recommendations(make_user(complete=False))

    def test_filters_by_preference_and_ranks_by_score(self, make_user):
        me = make_user(gender=DatingGender.WOMAN, looking_for=LookingFor.MEN, interests=['Music', 'Travel'])
        best = make_user(gender=DatingGender.MAN, looking_for=LookingFor.WOMEN, interests=['Music', 'Travel'])
        weaker = make_user(gender=DatingGender.MAN, looking_for=LookingFor.WOMEN, interests=['Chess'])
        make_user(gender=DatingGender.WOMAN, looking_for=LookingFor.MEN)   # wrong gender
        make_user(gender=DatingGender.MAN, complete=False)                  # incomplete

        result = RecommendationService.get_recommendations(me)

        users = [item['user'].pk for item in result['results']]
        assert users == [best.pk, weaker.pk]
        assert result['results'][0]['score'] > result['results'][1]['score']
        assert result['has_more'] is False

    def test_excludes_interacted_users(self, make_user):
        me = make_user(looking_for=LookingFor.EVERYONE)
        liked = make_user()
        passed = make_user()
        declined_sender = make_user()
        pending_sender = make_user()

        LikeService.record_like(me, liked)
        LikeService.pass_user(me, passed)
        like = LikeService.record_like(declined_sender, me)['like']
        LikeService.decline(like.uuid, me)
        LikeService.record_like(pending_sender, me)

        result = RecommendationService.get_recommendations(me)

        assert [item['user'].pk for item in result['results']] == [pending_sender.pk]

    def test_pagination(self, make_user):
        me = make_user(looking_for=LookingFor.EVERYONE)
        for _ in range(3):
            make_user()

        first = RecommendationService.get_recommendations(me, page=1, limit=2)
        second = RecommendationService.get_recommendations(me, page=2, limit=2)

        assert len(first['results']) == 2
        assert first['has_more'] is True
        assert len(second['results']) == 1
        assert second['has_more'] is False

    def test_cache_invalidated_by_like(self, make_user):
        me = make_user(looking_for=LookingFor.EVERYONE)
        other = make_user()

        assert len(RecommendationService.get_recommendations(me)['results']) == 1

        LikeService.record_like(me, other)

        assert RecommendationService.get_recommendations(me)['results'] == []
        assert Like.objects.filter(sender=me).count() == 1
