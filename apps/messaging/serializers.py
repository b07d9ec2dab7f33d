from rest_framework import serializers

from .models import Conversation, Message
from apps.users.serializers import UserBriefSerializer


class ChatMessageSerializer(serializers.ModelSerializer):
    id = serializers.UUIDField(source='uuid', read_only=True)
    sender_id = serializers.UUIDField(read_only=True)
    is_mine = serializers.SerializerMethodField()

    class Meta:
        model = Message
        fields = ['id', 'sender_id', 'text', 'is_mine', 'is_read', 'read_at', 'created_at']
        read_only_fields = fields

    def get_is_mine(self, obj):
        return obj.sender_id == self.context['request'].user.pk


class ConversationSerializer(serializers.ModelSerializer):
    """
    A conversation from the point of view of the requesting user.
    Expects the `unread_count` annotation from MessageService.
    """
    id = serializers.UUIDField(source='uuid', read_only=True)
    partner = serializers.SerializerMethodField()
    last_message = serializers.SerializerMethodField()
    unread_count = serializers.IntegerField(read_only=True)

    class Meta:
        model = Conversation
        fields = ['id', 'partner', 'last_message', 'unread_count', 'last_message_at']

    def get_partner(self, obj):
        partner = obj.get_other_participant(self.context['request'].user)
        return UserBriefSerializer(partner, context=self.context).data

    def get_last_message(self, obj):
        message = obj.messages.last()
        if message is None:
            return None
        return ChatMessageSerializer(message, context=self.context).data
