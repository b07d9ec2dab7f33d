from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated

from apps.users.serializers import RevealedProfileSerializer
from .models import BlindDateSession
from .services import MatchmakingService, BlindDateService
from .serializers import (
    BlindDateSessionSerializer, BlindDateMessageSerializer,
    SendMessageSerializer, ChoiceSerializer
)


SESSION_ID = r'sessions/(?P<session_id>[0-9a-fA-F-]+)'


# ============================================================================
# BLIND DATE VIEWSET
# ============================================================================
class BlindDateViewSet(viewsets.ViewSet):
    """
    Anonymous timed chats.

    Endpoints (all under /api/blind/):
    - POST join/, leave/
    - GET status/
    - POST sessions/{id}/message/, sessions/{id}/choice/,
      sessions/{id}/retry-chat/, sessions/{id}/end/
    - GET sessions/{id}/messages/
    """
    permission_classes = [IsAuthenticated]

    def _session_data(self, session, request):
        return BlindDateSessionSerializer(session, context={'request': request}).data

    def _messages_data(self, messages, request):
        return BlindDateMessageSerializer(messages, many=True, context={'request': request}).data

    # --- Queue ---

    @action(detail=False, methods=['post'])
    def join(self, request):
        result = MatchmakingService.join(request.user)

        if result['status'] == 'matched':
            return Response({
                'status': 'matched',
                'session_id': str(result['session'].uuid),
                'session': self._session_data(result['session'], request),
                'message': 'Match found! Start chatting anonymously.',
            }, status=status.HTTP_201_CREATED)

        return Response({
            'status': 'searching',
            'message': (
                'You are already in the queue' if result['already_queued']
                else 'Searching for a match...'
            ),
        })

    @action(detail=False, methods=['post'])
    def leave(self, request):
        MatchmakingService.leave(request.user)
        return Response({'success': True, 'message': 'Left the queue'})

    @action(detail=False, methods=['get'], url_path='status')
    def blind_status(self, request):
        """
        Current session, searching or idle.
        """
        result = BlindDateService.get_status(request.user)
        session = result['session']

        if session is None:
            message = 'Looking for a match...' if result['status'] == 'searching' else 'Not in a session or queue'
            return Response({'status': result['status'], 'message': message})

        if result['status'] == BlindDateSession.Status.ENDED:
            return Response({
                'status': BlindDateSession.Status.ENDED,
                'session_id': str(session.uuid),
                'message': "Time's up!",
            })

        return Response({
            'status': session.status,
            'session_id': str(session.uuid),
            'expires_at': session.expires_at,
            'session': self._session_data(session, request),
            'messages': self._messages_data(result['messages'], request),
        })

    # --- Session ---

    @action(detail=False, methods=['post'], url_path=f'{SESSION_ID}/message')
    def message(self, request, session_id=None):
        serializer = SendMessageSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        session, message = BlindDateService.send_message(
            session_id, request.user, serializer.validated_data['text']
        )
        return Response({
            'success': True,
            'message': BlindDateMessageSerializer(message, context={'request': request}).data,
            'messages': self._messages_data(session.messages.all(), request),
        }, status=status.HTTP_201_CREATED)

    @action(detail=False, methods=['get'], url_path=f'{SESSION_ID}/messages')
    def messages(self, request, session_id=None):
        session, messages = BlindDateService.get_messages(session_id, request.user)
        return Response({
            'status': session.status,
            'expires_at': session.expires_at,
            'session': self._session_data(session, request),
            'messages': self._messages_data(messages, request),
        })

    @action(detail=False, methods=['post'], url_path=f'{SESSION_ID}/choice')
    def choice(self, request, session_id=None):
        """
        Record reveal, chat or decline.

        Clients should send it before the session's `expires_at`. Once the
        timer has run out the next poll, message or sweep ends the session,
        and from then on this returns 400 `session_expired`.
        """
        serializer = ChoiceSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        choice = serializer.validated_data['choice']

        result = BlindDateService.record_choice(session_id, request.user, choice)
        return Response(self._choice_response(result, request, f"Choice '{choice}' recorded."))

    @action(detail=False, methods=['post'], url_path=f'{SESSION_ID}/retry-chat')
    def retry_chat(self, request, session_id=None):
        """
        Retry the permanent chat after freeing a slot. Nothing is charged.
        """
        result = BlindDateService.retry_chat_transition(session_id, request.user)
        return Response(self._choice_response(result, request, 'Chat unlocked!'))

    def _choice_response(self, result, request, message):
        session = result['session']
        data = {
            'success': not result['slots_full'],
            'message': message,
            'status': session.status,
            'user1_choice': session.user1_choice,
            'user2_choice': session.user2_choice,
            'partner_profile': None,
        }
        if 'wallet' in result:
            data['coins'] = result['wallet'].balance

        if result['slots_full']:
            data['slots_full'] = True
            data['message'] = 'One or both users have no available chat slots. Free up slots to continue.'

        if result['partner'] is not None:
            data['partner_profile'] = RevealedProfileSerializer(
                result['partner'], context={'request': request}
            ).data
        return data

    @action(detail=False, methods=['post'], url_path=f'{SESSION_ID}/end')
    def end(self, request, session_id=None):
        BlindDateService.end_session(session_id, request.user)
        return Response({'success': True, 'message': 'Session ended'})
