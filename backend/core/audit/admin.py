from django.contrib import admin

from audit.models import AuditEntry


@admin.register(AuditEntry)
class AuditEntryAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "action",
        "severity",
        "resource_type",
        "resource_id",
        "occurred_at",
        "actor_username",
        "ip_address",
    )
    list_filter = ("severity", "resource_type")
    search_fields = ("action", "resource_type", "resource_id", "actor_username", "request_id")
    ordering = ("-occurred_at", "-id")
    readonly_fields = [field.name for field in AuditEntry._meta.fields]

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
