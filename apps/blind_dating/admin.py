from django.contrib import admin
from .models import BlindDateQueueEntry, BlindDateSession, BlindDateMessage


@admin.register(BlindDateQueueEntry)
class BlindDateQueueEntryAdmin(admin.ModelAdmin):
    list_display = ['user', 'gender', 'looking_for', 'joined_at']
    list_filter = ['gender', 'looking_for']
    search_fields = ['user__username']


class BlindDateMessageInline(admin.TabularInline):
    model = BlindDateMessage
    extra = 0
    readonly_fields = ['sender', 'text', 'created_at']


@admin.register(BlindDateSession)
class BlindDateSessionAdmin(admin.ModelAdmin):
    list_display = ['uuid', 'user1', 'user2', 'status', 'end_reason', 'start_time', 'expires_at']
    list_filter = ['status', 'end_reason']
    search_fields = ['user1__username', 'user2__username']
    readonly_fields = ['uuid', 'created_at', 'updated_at']
    inlines = [BlindDateMessageInline]
