from django.contrib import admin

from notifications.models import Notification


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ("id", "user", "category", "title", "reference", "created_at", "read_at")
    list_filter = ("category",)
    search_fields = ("title", "reference", "user__username")
    ordering = ("-created_at", "-id")
