from django.contrib import admin

from .models import CoinWallet, CoinTransaction


@admin.register(CoinWallet)
class CoinWalletAdmin(admin.ModelAdmin):
    list_display = [
        'user', 'balance', 'likes', 'chat_slots',
        'active_chat_count', 'unlimited_coins_expiry', 'first_chat_reward_claimed'
    ]
    search_fields = ['user__username', 'user__email']


@admin.register(CoinTransaction)
class CoinTransactionAdmin(admin.ModelAdmin):
    list_display = ['wallet', 'amount', 'transaction_type', 'balance_after', 'created_at']
    list_filter = ['transaction_type']
    readonly_fields = ['uuid', 'wallet', 'amount', 'transaction_type', 'balance_after', 'description']
