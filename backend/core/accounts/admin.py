from django.contrib import admin

from accounts.models import UserProfile


@admin.register(UserProfile)
class UserProfileAdmin(admin.ModelAdmin):
    list_display = ("id", "user", "role", "full_name", "is_active", "updated_at")
    list_filter = ("role", "is_active")
    search_fields = ("user__username", "user__email", "full_name")
    ordering = ("user__username",)
