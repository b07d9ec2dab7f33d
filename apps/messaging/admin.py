from django.contrib import admin
from .models import Conversation, Message


class MessageInline(admin.TabularInline):
    model = Message
    extra = 0
    readonly_fields = ['sender', 'receiver', 'text', 'is_read', 'created_at']


@admin.register(Conversation)
class ConversationAdmin(admin.ModelAdmin):
    list_display = ['uuid', 'participant_1', 'participant_2', 'last_message_at']
    search_fields = ['participant_1__username', 'participant_2__username']
    readonly_fields = ['uuid', 'created_at']
    inlines = [MessageInline]


@admin.register(Message)
class MessageAdmin(admin.ModelAdmin):
    list_display = ['sender', 'receiver', 'is_read', 'created_at']
    list_filter = ['is_read']
    search_fields = ['sender__username', 'receiver__username', 'text']
