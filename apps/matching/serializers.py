from rest_framework import serializers

from .models import Like
from apps.users.serializers import (
    UserBriefSerializer, RevealedProfileSerializer, BlurredProfileSerializer
)


class ReceivedLikeSerializer(serializers.ModelSerializer):
    """
    A like as seen by its receiver: the sender stays blurred until revealed.
    """
    id = serializers.UUIDField(source='uuid', read_only=True)
    sender = serializers.SerializerMethodField()

    class Meta:
        model = Like
        fields = ['id', 'status', 'created_at', 'revealed_at', 'sender']

    def get_sender(self, obj):
        if obj.status == Like.Status.PENDING:
            return BlurredProfileSerializer(obj.sender, context=self.context).data
        return RevealedProfileSerializer(obj.sender, context=self.context).data


class ActiveChatSerializer(serializers.ModelSerializer):
    """
    A chatting like from the point of view of the requesting user.
    """
    id = serializers.UUIDField(source='uuid', read_only=True)
    partner = serializers.SerializerMethodField()
    is_my_like = serializers.SerializerMethodField()

    class Meta:
        model = Like
        fields = ['id', 'partner', 'is_my_like', 'is_blind_match', 'chat_started_at']

    def get_partner(self, obj):
        user = self.context['request'].user
        return UserBriefSerializer(obj.partner_of(user), context=self.context).data

    def get_is_my_like(self, obj):
        return obj.sender_id == self.context['request'].user.pk


class RecommendationSerializer(serializers.Serializer):
    """
    One ranked candidate: {'user': User, 'score': int}.
    """

    def to_representation(self, instance):
        data = RevealedProfileSerializer(instance['user'], context=self.context).data
        data['match_score'] = instance['score']
        return data
