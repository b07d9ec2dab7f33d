from django.conf import settings
from rest_framework import serializers

from .models import BlindDateSession, BlindDateMessage


class BlindDateMessageSerializer(serializers.ModelSerializer):
    """
    A message as seen by one of the parties. The sender is never exposed,
    only whether it was the requesting user.
    """
    is_mine = serializers.SerializerMethodField()

    class Meta:
        model = BlindDateMessage
        fields = ['id', 'text', 'is_mine', 'created_at']

    def get_is_mine(self, obj):
        return obj.sender_id == self.context['request'].user.pk


class BlindDateSessionSerializer(serializers.ModelSerializer):
    """
    Session state from the requesting user's side.
    """
    id = serializers.UUIDField(source='uuid', read_only=True)
    my_choice = serializers.SerializerMethodField()
    partner_choice = serializers.SerializerMethodField()
    partner_revealed = serializers.SerializerMethodField()

    class Meta:
        model = BlindDateSession
        fields = [
            'id', 'status', 'start_time', 'expires_at', 'end_reason',
            'my_choice', 'partner_choice', 'partner_revealed',
            'user1_choice', 'user2_choice'
        ]

    def _user(self):
        return self.context['request'].user

    def get_my_choice(self, obj):
        return obj.choice_of(self._user())

    def get_partner_choice(self, obj):
        return obj.choice_of(obj.partner_of(self._user()))

    def get_partner_revealed(self, obj):
        return obj.partner_revealed(self._user())


class SendMessageSerializer(serializers.Serializer):
    text = serializers.CharField(
        max_length=settings.BLIND_MESSAGE_MAX_LENGTH,
        trim_whitespace=True,
        error_messages={'blank': 'Message text is required'}
    )


class ChoiceSerializer(serializers.Serializer):
    choice = serializers.ChoiceField(choices=[
        BlindDateSession.Choice.REVEAL,
        BlindDateSession.Choice.CHAT,
        BlindDateSession.Choice.DECLINE,
    ])
