from rest_framework import viewsets, status, serializers
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.conf import settings

from apps.matching.views import get_target_user, USER_ID
from .services import MessageService
from .serializers import ChatMessageSerializer, ConversationSerializer


class SendChatMessageSerializer(serializers.Serializer):
    receiver_id = serializers.UUIDField()
    text = serializers.CharField(max_length=settings.CHAT_MESSAGE_MAX_LENGTH)


# ============================================================================
# CHAT VIEWSET
# ============================================================================
class ChatViewSet(viewsets.ViewSet):
    """
    Permanent chats between users who are chatting.

    Endpoints (all under /api/chat/):
    - POST send/
    - GET conversations/, unread-count/
    - GET {user_id}/ (history), DELETE {user_id}/ (delete and unmatch)
    - POST read/{user_id}/
    """
    permission_classes = [IsAuthenticated]

    @action(detail=False, methods=['post'])
    def send(self, request):
        serializer = SendChatMessageSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        receiver = get_target_user(serializer.validated_data['receiver_id'])
        message, reward = MessageService.send_message(
            request.user, receiver, serializer.validated_data['text']
        )

        data = {
            'success': True,
            'message': ChatMessageSerializer(message, context={'request': request}).data,
        }
        if reward:
            data['reward'] = reward
        return Response(data, status=status.HTTP_201_CREATED)

    @action(detail=False, methods=['get'])
    def conversations(self, request):
        conversations = MessageService.get_user_conversations(request.user)
        return Response({
            'count': len(conversations),
            'results': ConversationSerializer(conversations, many=True, context={'request': request}).data,
        })

    @action(detail=False, methods=['get'], url_path='unread-count')
    def unread_count(self, request):
        return Response({'unread_count': MessageService.get_unread_message_count(request.user)})

    @action(detail=False, methods=['get', 'delete'], url_path=USER_ID)
    def history(self, request, user_id=None):
        """
        GET: messages with the user, oldest first.
        DELETE: remove the conversation and end the chat, freeing both slots.
        """
        partner = get_target_user(user_id)

        if request.method == 'DELETE':
            result = MessageService.delete_conversation(request.user, partner)
            return Response({
                'success': True,
                'message': 'Conversation deleted',
                **result,
            })

        messages = MessageService.get_messages(request.user, partner)
        return Response({
            'partner_id': str(partner.pk),
            'messages': ChatMessageSerializer(messages, many=True, context={'request': request}).data,
        })

    @action(detail=False, methods=['post'], url_path=f'read/{USER_ID}')
    def read(self, request, user_id=None):
        partner = get_target_user(user_id)
        count = MessageService.mark_as_read(request.user, partner)
        return Response({'success': True, 'marked_read': count})
