from django.conf import settings
from django.db.models.signals import post_save
from django.dispatch import receiver

from .models import CoinWallet


@receiver(post_save, sender=settings.AUTH_USER_MODEL)
def create_wallet_for_new_user(sender, instance, created, **kwargs):
    """
    Give every new user a wallet with the starting coins, likes and slots.
    """
    if created:
        CoinWallet.objects.get_or_create(user=instance)
