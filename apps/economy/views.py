# ============================================================================
# WALLET & REWARD VIEWS
# ============================================================================

"""
apps/economy/views.py
"""

from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated

from .serializers import (
    CoinWalletSerializer, CoinTransactionSerializer,
    PurchaseSerializer, UnlimitedPurchaseSerializer, ReferralSerializer
)
from .services import LedgerService, CoinService, RewardService
from apps.common.pagination import StandardResultsSetPagination


class CoinWalletViewSet(viewsets.GenericViewSet):
    """
    ViewSet for coin wallet operations.

    Purchases arrive here only after the payment gateway confirmed them.
    """

    serializer_class = CoinWalletSerializer
    permission_classes = [IsAuthenticated]

    def get_object(self):
        """
        Get current user's wallet.
        """
        return LedgerService.get_wallet(self.request.user)

    def list(self, request, *args, **kwargs):
        """
        GET /api/wallet/

        Returns current user's wallet information.
        """
        wallet = self.get_object()
        serializer = self.get_serializer(wallet)
        return Response(serializer.data)

    @action(detail=False, methods=['get'])
    def transactions(self, request):
        """
        Get transaction history.

        GET /api/wallet/transactions/
        """
        transactions = CoinService.get_transaction_history(
            user=request.user,
            limit=100
        )

        paginator = StandardResultsSetPagination()
        paginated_transactions = paginator.paginate_queryset(transactions, request)

        serializer = CoinTransactionSerializer(
            paginated_transactions,
            many=True
        )

        return paginator.get_paginated_response(serializer.data)

    @action(detail=False, methods=['post'])
    def purchase(self, request):
        """
        Purchase coins.

        POST /api/wallet/purchase/
        Body: {
            "amount": 100,
            "payment_reference": "gateway_payment_id"
        }
        """
        serializer = PurchaseSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        amount = serializer.validated_data['amount']

        transaction = CoinService.purchase_coins(
            user=request.user,
            amount=amount,
            payment_reference=serializer.validated_data['payment_reference']
        )

        return Response({
            'message': f'Successfully purchased {amount} coins',
            'transaction': CoinTransactionSerializer(transaction).data,
            'new_balance': transaction.balance_after
        }, status=status.HTTP_201_CREATED)

    @action(detail=False, methods=['post'], url_path='purchase-unlimited')
    def purchase_unlimited(self, request):
        """
        Buy or extend the unlimited plan.

        POST /api/wallet/purchase-unlimited/
        Body: {"days": 30, "payment_reference": "gateway_payment_id"}
        """
        serializer = UnlimitedPurchaseSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        wallet = CoinService.purchase_unlimited(
            user=request.user,
            days=serializer.validated_data['days'],
            payment_reference=serializer.validated_data['payment_reference']
        )

        return Response({
            'message': 'Unlimited plan activated',
            'unlimited_coins_expiry': wallet.unlimited_coins_expiry
        }, status=status.HTTP_200_OK)


class RewardViewSet(viewsets.ViewSet):
    """
    Free coin rewards.
    """
    permission_classes = [IsAuthenticated]

    @action(detail=False, methods=['get'], url_path='status')
    def reward_status(self, request):
        """
        GET /api/rewards/status/
        """
        return Response(RewardService.get_reward_status(request.user))

    @action(detail=False, methods=['post'])
    def daily(self, request):
        """
        POST /api/rewards/daily/
        """
        result = RewardService.claim_daily_reward(request.user)
        return Response({
            'message': f"You received {result['reward']} coins!",
            **result
        })

    @action(detail=False, methods=['post'])
    def referral(self, request):
        """
        POST /api/rewards/referral/
        Body: {"code": "ABC123XYZ9"}
        """
        serializer = ReferralSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = RewardService.apply_referral(request.user, serializer.validated_data['code'])
        return Response({
            'message': f"Referral applied! You received {result['bonus_granted']} coins.",
            **result
        })
