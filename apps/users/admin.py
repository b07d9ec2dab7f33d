from django.contrib import admin

from .models import User, Profile, DeviceToken, Notification

admin.site.register(User)
admin.site.register(DeviceToken)


@admin.register(Profile)
class ProfileAdmin(admin.ModelAdmin):
    list_display = ['user', 'gender', 'looking_for', 'is_complete', 'updated_at']
    list_filter = ['gender', 'looking_for', 'is_complete']
    search_fields = ['user__username', 'user__email']


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ['user', 'title', 'category', 'is_read', 'created_at']
    list_filter = ['category', 'is_read']
    search_fields = ['user__username', 'title']
