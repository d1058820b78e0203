from django.conf import settings
from django.core.serializers.json import DjangoJSONEncoder
from django.db import models


class Notification(models.Model):
    CATEGORY_TEMPORARY_ACCESS_GRANTED = "temporary_access_granted"
    CATEGORY_TEMPORARY_ACCESS_REVOKED = "temporary_access_revoked"
    CATEGORY_TEMPORARY_ACCESS_EXPIRING = "temporary_access_expiring"
    CATEGORY_TEMPORARY_ACCESS_EXPIRED = "temporary_access_expired"
    CATEGORY_REGION_ASSIGNED = "region_assigned"
    CATEGORY_REGION_UNASSIGNED = "region_unassigned"
    CATEGORY_CHOICES = [
        (CATEGORY_TEMPORARY_ACCESS_GRANTED, "Temporary access granted"),
        (CATEGORY_TEMPORARY_ACCESS_REVOKED, "Temporary access revoked"),
        (CATEGORY_TEMPORARY_ACCESS_EXPIRING, "Temporary access expiring"),
        (CATEGORY_TEMPORARY_ACCESS_EXPIRED, "Temporary access expired"),
        (CATEGORY_REGION_ASSIGNED, "Region assigned"),
        (CATEGORY_REGION_UNASSIGNED, "Region unassigned"),
    ]

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="notifications",
    )
    category = models.CharField(max_length=40, choices=CATEGORY_CHOICES)
    title = models.CharField(max_length=200)
    body = models.TextField(blank=True)
    metadata = models.JSONField(default=dict, blank=True, encoder=DjangoJSONEncoder)
    # Dedup key such as "temporary_access_grant:42".
    reference = models.CharField(max_length=120, blank=True, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    read_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ("-created_at", "-id")
        indexes = [
            models.Index(fields=("user", "read_at"), name="idx_notification_user_read"),
        ]

    def __str__(self):
        return f"{self.user} {self.category}: {self.title}"

    @property
    def is_read(self) -> bool:
        return self.read_at is not None
