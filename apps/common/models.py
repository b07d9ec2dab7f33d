from django.db import models
from django.conf import settings
from django.utils.translation import gettext_lazy as _


# ============================================================================
# ACTIVITY LOG MODEL
# ============================================================================

class ActivityLog(models.Model):
    """
    Append-only audit trail of notable user actions
    (rewards granted, matches made, sessions ended...).
    """
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='activity_logs'
    )
    action = models.CharField(max_length=64, db_index=True)
    details = models.JSONField(default=dict, blank=True)
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    user_agent = models.CharField(
        max_length=255,
        blank=True,
        help_text=_('User agent of the request that triggered the action')
    )
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        db_table = 'activity_logs'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['user', '-created_at'], name='activity_user_idx'),
        ]

    def __str__(self):
        return f"{self.user_id}: {self.action}"
