from django.db.models.signals import post_save, post_delete
from django.dispatch import receiver

from .models import Like
from .services import RecommendationService


@receiver(post_save, sender=Like)
def invalidate_recommendations_on_save(sender, instance, created, **kwargs):
    """
    A new or changed like changes who both users may be shown.
    """
    RecommendationService.invalidate(instance.sender_id)
    RecommendationService.invalidate(instance.receiver_id)


@receiver(post_delete, sender=Like)
def invalidate_recommendations_on_delete(sender, instance, **kwargs):
    RecommendationService.invalidate(instance.sender_id)
    RecommendationService.invalidate(instance.receiver_id)
