from rest_framework import serializers

from .models import CoinWallet, CoinTransaction


class CoinWalletSerializer(serializers.ModelSerializer):
    """
    Serializer for CoinWallet model.
    """
    available_slots = serializers.IntegerField(read_only=True)
    has_unlimited_coins = serializers.SerializerMethodField()

    class Meta:
        model = CoinWallet
        fields = [
            'balance', 'likes', 'chat_slots', 'active_chat_count',
            'available_slots', 'unlimited_coins_expiry', 'has_unlimited_coins',
            'total_earned', 'total_spent', 'total_purchased',
            'created_at', 'updated_at'
        ]
        read_only_fields = fields

    def get_has_unlimited_coins(self, obj):
        return obj.has_unlimited_coins()


class CoinTransactionSerializer(serializers.ModelSerializer):
    """
    Serializer for CoinTransaction model.
    """

    class Meta:
        model = CoinTransaction
        fields = [
            'uuid', 'amount', 'transaction_type',
            'balance_after', 'description', 'created_at'
        ]
        read_only_fields = fields


class PurchaseSerializer(serializers.Serializer):
    amount = serializers.IntegerField(min_value=1)
    payment_reference = serializers.CharField(max_length=100, required=False, allow_blank=True, default='')


class UnlimitedPurchaseSerializer(serializers.Serializer):
    days = serializers.IntegerField(min_value=1, max_value=365)
    payment_reference = serializers.CharField(max_length=100, required=False, allow_blank=True, default='')


class ReferralSerializer(serializers.Serializer):
    code = serializers.CharField(max_length=16)
