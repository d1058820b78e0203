from __future__ import annotations

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.serializers.json import DjangoJSONEncoder
from django.db import models
from django.utils import timezone


class AuditEntryQuerySet(models.QuerySet):
    def for_resource(self, resource_type: str, resource_id) -> "AuditEntryQuerySet":
        return self.filter(resource_type=resource_type, resource_id=str(resource_id))

    def purge(self, before=None) -> int:
        """Bulk-delete entries, optionally only those older than ``before``.

        This is the only supported way to remove audit rows. It bypasses
        ``AuditEntry.delete`` on purpose and must stay restricted to ADMIN callers.
        """

        queryset = self
        if before is not None:
            queryset = queryset.filter(occurred_at__lt=before)
        deleted, _ = models.QuerySet.delete(queryset)
        return deleted

    def delete(self):
        raise ValidationError("Audit entries are immutable; use purge() instead.")


class AuditEntry(models.Model):
    """Append-only record of a security-relevant mutation."""

    SEVERITY_INFO = "info"
    SEVERITY_WARNING = "warning"
    SEVERITY_CRITICAL = "critical"
    SEVERITY_CHOICES = [
        (SEVERITY_INFO, "Info"),
        (SEVERITY_WARNING, "Warning"),
        (SEVERITY_CRITICAL, "Critical"),
    ]

    actor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        related_name="audit_entries",
        null=True,
        blank=True,
    )
    actor_username = models.CharField(max_length=150, blank=True)
    action = models.CharField(max_length=80)
    severity = models.CharField(max_length=10, choices=SEVERITY_CHOICES, default=SEVERITY_INFO)
    resource_type = models.CharField(max_length=80)
    resource_id = models.CharField(max_length=64, blank=True)

    occurred_at = models.DateTimeField(default=timezone.now)
    request_id = models.CharField(max_length=64, blank=True)
    request_method = models.CharField(max_length=12, blank=True)
    request_path = models.CharField(max_length=255, blank=True)
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    user_agent = models.TextField(blank=True)

    data_before = models.JSONField(null=True, blank=True, encoder=DjangoJSONEncoder)
    data_after = models.JSONField(null=True, blank=True, encoder=DjangoJSONEncoder)
    metadata = models.JSONField(default=dict, blank=True, encoder=DjangoJSONEncoder)

    objects = AuditEntryQuerySet.as_manager()

    class Meta:
        ordering = ("-occurred_at", "-id")
        indexes = [
            models.Index(fields=("resource_type", "resource_id"), name="idx_audit_resource"),
            models.Index(fields=("action", "occurred_at"), name="idx_audit_action_occurred"),
        ]
        verbose_name = "Audit Entry"
        verbose_name_plural = "Audit Entries"

    def __str__(self) -> str:  # pragma: no cover - admin/debug helper
        return f"{self.occurred_at:%Y-%m-%d %H:%M:%S} {self.action} {self.resource_type}:{self.resource_id}"

    def save(self, *args, **kwargs):
        if self.pk is not None:
            raise ValidationError("Audit entries are immutable; updates are not allowed.")
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("Audit entries are immutable; deletes are not allowed.")
