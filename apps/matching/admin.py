from django.contrib import admin
from .models import Like


@admin.register(Like)
class LikeAdmin(admin.ModelAdmin):
    list_display = ['sender', 'receiver', 'status', 'is_blind_match', 'created_at']
    list_filter = ['status', 'is_blind_match']
    search_fields = ['sender__username', 'receiver__username']
