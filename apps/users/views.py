"""
User Views
===========
Handles:
- Dating profile viewing and updating
- Device token registration for push notifications
- Notification history and read state
"""

from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated

from apps.common import exceptions as errors
from apps.common.pagination import StandardResultsSetPagination
from apps.economy.services import RewardService
from .models import Profile, DeviceToken, Notification
from .serializers import (
    ProfileSerializer, ProfileUpdateSerializer, DeviceTokenSerializer, NotificationSerializer
)


# ============================================================================
# PROFILE VIEWSET
# ============================================================================
class ProfileViewSet(viewsets.GenericViewSet):
    """
    Manage the authenticated user's dating profile.
    """
    permission_classes = [IsAuthenticated]

    def get_object(self):
        """
        Get or create the profile for the current user.
        """
        profile, _ = Profile.objects.get_or_create(user=self.request.user)
        return profile

    @action(detail=False, methods=['get'])
    def me(self, request):
        """
        Get current user's profile.
        """
        profile = self.get_object()
        return Response(
            ProfileSerializer(profile, context={'request': request}).data,
            status=status.HTTP_200_OK
        )

    @action(detail=False, methods=['put', 'patch'], url_path='update')
    def update_profile(self, request):
        """
        Update user's profile details.

        Completing the profile for the first time grants the one-off
        profile reward.
        """
        profile = self.get_object()
        serializer = ProfileUpdateSerializer(
            profile,
            data=request.data,
            partial=(request.method == 'PATCH'),
            context={'request': request}
        )
        serializer.is_valid(raise_exception=True)
        serializer.save()

        reward = RewardService.check_profile_reward(request.user)

        return Response({
            "message": "Profile updated successfully",
            "profile": ProfileSerializer(profile, context={'request': request}).data,
            "reward_granted": reward is not None,
            "reward_amount": reward or 0,
        }, status=status.HTTP_200_OK)


#======= Expo notifications push
class DeviceTokenViewSet(viewsets.ViewSet):
    """
    Manage device tokens for push notifications.
    """
    permission_classes = [IsAuthenticated]

    @action(detail=False, methods=['post'])
    def register(self, request):
        """
        Register or update device token.

        POST /api/device-tokens/register/
        Body: {
            "token": "ExponentPushToken[xxx]",
            "platform": "ios" or "android"
        }
        """
        serializer = DeviceTokenSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        # A token belongs to whichever account last registered it
        device_token, created = DeviceToken.objects.update_or_create(
            token=serializer.validated_data['token'],
            defaults={
                'user': request.user,
                'platform': serializer.validated_data.get('platform', ''),
                'is_active': True
            }
        )

        return Response({
            'message': 'Token registered successfully',
            'created': created
        }, status=status.HTTP_200_OK)


# ============================================================================
# NOTIFICATION HISTORY
# ============================================================================
class NotificationViewSet(viewsets.ViewSet):
    """
    The user's stored notifications.

    GET  /api/notifications/             newest first, paginated, with unread_count
    POST /api/notifications/{id}/read/
    POST /api/notifications/read-all/
    """
    permission_classes = [IsAuthenticated]

    def list(self, request):
        notifications = Notification.objects.filter(user=request.user).order_by('-created_at', '-id')

        paginator = StandardResultsSetPagination()
        page = paginator.paginate_queryset(notifications, request)
        response = paginator.get_paginated_response(
            NotificationSerializer(page, many=True).data
        )
        response.data['unread_count'] = notifications.filter(is_read=False).count()
        return response

    @action(detail=True, methods=['post'])
    def read(self, request, pk=None):
        notification = None
        if str(pk).isdigit():
            notification = Notification.objects.filter(pk=pk, user=request.user).first()
        if notification is None:
            raise errors.NotFound('Notification not found')

        if not notification.is_read:
            notification.is_read = True
            notification.save(update_fields=['is_read'])

        return Response({
            'success': True,
            'notification': NotificationSerializer(notification).data
        }, status=status.HTTP_200_OK)

    @action(detail=False, methods=['post'], url_path='read-all')
    def read_all(self, request):
        count = Notification.objects.filter(user=request.user, is_read=False).update(is_read=True)
        return Response({
            'success': True,
            'count': count,
            'message': 'All notifications marked as read'
        }, status=status.HTTP_200_OK)
