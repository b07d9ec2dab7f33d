from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.conf import settings
from django.core.exceptions import ValidationError as DjangoValidationError

from apps.common import exceptions as errors
from apps.common.pagination import StandardResultsSetPagination
from apps.economy.services import LedgerService
from apps.users.models import User
from apps.users.serializers import RevealedProfileSerializer
from .services import LikeService, RecommendationService
from .serializers import ReceivedLikeSerializer, ActiveChatSerializer, RecommendationSerializer


LIKE_ID = r'(?P<like_id>[0-9a-fA-F-]+)'
USER_ID = r'(?P<user_id>[0-9a-fA-F-]+)'


def get_target_user(user_id):
    """
    Look up an active user by id, or raise NotFound.
    """
    try:
        target = User.objects.filter(id=user_id, is_active=True).first()
    except (ValueError, DjangoValidationError):
        target = None
    if target is None:
        raise errors.NotFound('User not found')
    return target


# ============================================================================
# DATING VIEWSET
# ============================================================================
class DatingViewSet(viewsets.ViewSet):
    """
    Likes, reveals, chats and discovery.

    Endpoints (all under /api/dating/):
    - POST like/{user_id}/, pass/{user_id}/
    - GET likes/, active-chats/, recommendations/, my-status/
    - POST reveal/{like_id}/, start-chat/{like_id}/, direct-chat/{like_id}/
    - POST decline/{like_id}/, unmatch/{like_id}/
    - POST buy-likes/, buy-chat-slot/
    """
    permission_classes = [IsAuthenticated]

    # --- Likes ---

    @action(detail=False, methods=['post'], url_path=f'like/{USER_ID}')
    def like(self, request, user_id=None):
        """
        Send a like and auto-match if they already like you.
        """
        target = get_target_user(user_id)
        result = LikeService.record_like(request.user, target)

        if result['is_match'] and result['can_chat']:
            message = "It's a Match! You can now start chatting."
        elif result['is_match']:
            message = (
                "💕 It's a match! They like you too! Get more chat slots to start vibing."
                if result['reason'] == 'your_slots_full'
                else "💕 It's a match! They're popular - their chat slots are full right now."
            )
        else:
            message = 'Like sent! They will see you in their Chat tab.'

        response_data = {
            'success': True,
            'message': message,
            'likes': result['likes'],
            'is_match': result['is_match'],
            'can_chat': result['can_chat'],
        }
        if result['reason']:
            response_data['reason'] = result['reason']
        if result['like'] is not None:
            response_data['like_id'] = str(result['like'].uuid)

        return Response(response_data, status=status.HTTP_201_CREATED)

    @action(detail=False, methods=['get'])
    def likes(self, request):
        """
        Likes received, blurred until revealed.
        """
        likes = LikeService.get_received_likes(request.user)

        paginator = StandardResultsSetPagination()
        page = paginator.paginate_queryset(likes, request)
        serializer = ReceivedLikeSerializer(page, many=True, context={'request': request})
        return paginator.get_paginated_response(serializer.data)

    @action(detail=False, methods=['post'], url_path=f'reveal/{LIKE_ID}')
    def reveal(self, request, like_id=None):
        like, wallet = LikeService.reveal(like_id, request.user)
        return Response({
            'success': True,
            'coins': wallet.balance,
            'like': ReceivedLikeSerializer(like, context={'request': request}).data,
            'message': 'Profile revealed! You can now see who liked you.',
        })

    @action(detail=False, methods=['post'], url_path=f'start-chat/{LIKE_ID}')
    def start_chat(self, request, like_id=None):
        like, wallet = LikeService.start_chat(like_id, request.user)
        return Response({
            'success': True,
            'coins': wallet.balance,
            'active_chat_count': wallet.active_chat_count,
            'chat_partner_id': str(like.sender_id),
            'message': 'Chat started! You can now message each other.',
        })

    @action(detail=False, methods=['post'], url_path=f'direct-chat/{LIKE_ID}')
    def direct_chat(self, request, like_id=None):
        like, wallet = LikeService.direct_chat(like_id, request.user)
        return Response({
            'success': True,
            'coins': wallet.balance,
            'active_chat_count': wallet.active_chat_count,
            'chat_partner_id': str(like.sender_id),
            'sender': RevealedProfileSerializer(like.sender, context={'request': request}).data,
            'message': 'Profile revealed and chat started!',
        })

    @action(detail=False, methods=['post'], url_path=f'decline/{LIKE_ID}')
    def decline(self, request, like_id=None):
        LikeService.decline(like_id, request.user)
        return Response({'success': True, 'message': 'Like declined.'})

    @action(detail=False, methods=['post'], url_path=f'pass/{USER_ID}')
    def pass_user(self, request, user_id=None):
        target = get_target_user(user_id)
        LikeService.pass_user(request.user, target)
        return Response({'success': True, 'message': 'Passed.'})

    @action(detail=False, methods=['post'], url_path=f'unmatch/{LIKE_ID}')
    def unmatch(self, request, like_id=None):
        LikeService.unmatch(like_id, request.user)
        return Response({'success': True, 'message': 'Unmatched. Chat slot freed.'})

    @action(detail=False, methods=['get'], url_path='active-chats')
    def active_chats(self, request):
        chats = LikeService.get_active_chats(request.user)
        serializer = ActiveChatSerializer(chats, many=True, context={'request': request})
        return Response({'count': len(serializer.data), 'results': serializer.data})

    # --- Purchases ---

    @action(detail=False, methods=['post'], url_path='buy-likes')
    def buy_likes(self, request):
        wallet = LedgerService.buy_likes(request.user)
        return Response({
            'success': True,
            'coins': wallet.balance,
            'likes': wallet.likes,
            'message': f'Purchased {settings.BUY_LIKES_AMOUNT} likes!',
        })

    @action(detail=False, methods=['post'], url_path='buy-chat-slot')
    def buy_chat_slot(self, request):
        wallet = LedgerService.buy_chat_slot(request.user)
        return Response({
            'success': True,
            'coins': wallet.balance,
            'chat_slots': wallet.chat_slots,
            'available_slots': wallet.available_slots,
            'message': 'Purchased 1 chat slot!',
        })

    @action(detail=False, methods=['get'], url_path='my-status')
    def my_status(self, request):
        return Response(LedgerService.get_status(request.user))

    # --- Discovery ---

    @action(detail=False, methods=['get'])
    def recommendations(self, request):
        """
        Ranked discovery feed.

        Query params:
        - page: Page number (default 1)
        - limit: Page size (default 20, max 100)
        """
        try:
            page = int(request.query_params.get('page', 1))
            limit = int(request.query_params.get('limit', 20))
        except ValueError:
            raise errors.ValidationError('page and limit must be integers.')

        result = RecommendationService.get_recommendations(request.user, page=page, limit=limit)
        serializer = RecommendationSerializer(result['results'], many=True, context={'request': request})

        return Response({
            'page': result['page'],
            'limit': result['limit'],
            'has_more': result['has_more'],
            'results': serializer.data,
        })
