from django.contrib import admin

from temporary_access.models import TemporaryAccessGrant


@admin.register(TemporaryAccessGrant)
class TemporaryAccessGrantAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "user",
        "region",
        "access_level",
        "granted_at",
        "expires_at",
        "revoked_at",
        "swept_at",
    )
    list_filter = ("access_level", "region")
    search_fields = ("user__username", "region__name", "reason")
    ordering = ("-granted_at", "-id")
    readonly_fields = ("granted_at", "revoked_at", "revoked_by", "swept_at")
