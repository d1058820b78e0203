from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models

from regions.boundaries import within_national_envelope


class InfrastructureAsset(models.Model):
    TYPE_POP = "POP"
    TYPE_SUBPOP = "SubPOP"
    TYPE_TOWER = "Tower"
    TYPE_BUILDING = "Building"
    TYPE_EQUIPMENT = "Equipment"
    TYPE_OTHER = "Other"
    TYPE_CHOICES = [
        (TYPE_POP, "POP"),
        (TYPE_SUBPOP, "Sub POP"),
        (TYPE_TOWER, "Tower"),
        (TYPE_BUILDING, "Building"),
        (TYPE_EQUIPMENT, "Equipment"),
        (TYPE_OTHER, "Other"),
    ]

    STATUS_ACTIVE = "Active"
    STATUS_INACTIVE = "Inactive"
    STATUS_PLANNED = "Planned"
    STATUS_MAINTENANCE = "Maintenance"
    STATUS_DAMAGED = "Damaged"
    STATUS_RFS = "RFS"
    STATUS_CHOICES = [
        (STATUS_ACTIVE, "Active"),
        (STATUS_INACTIVE, "Inactive"),
        (STATUS_PLANNED, "Planned"),
        (STATUS_MAINTENANCE, "Maintenance"),
        (STATUS_DAMAGED, "Damaged"),
        (STATUS_RFS, "Ready for service"),
    ]
    VISIBLE_STATUSES = (STATUS_ACTIVE, STATUS_RFS, STATUS_MAINTENANCE)

    SOURCE_MANUAL = "Manual"
    SOURCE_KML = "KML"
    SOURCE_CHOICES = [
        (SOURCE_MANUAL, "Manual"),
        (SOURCE_KML, "KML import"),
    ]

    item_type = models.CharField(max_length=20, choices=TYPE_CHOICES, default=TYPE_OTHER)
    name = models.CharField(max_length=255)
    unique_id = models.CharField(max_length=120, blank=True)
    latitude = models.FloatField()
    longitude = models.FloatField()
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_ACTIVE)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        related_name="infrastructure_assets",
        null=True,
        blank=True,
    )
    region = models.ForeignKey(
        "regions.Region",
        on_delete=models.SET_NULL,
        related_name="assets",
        null=True,
        blank=True,
    )
    source = models.CharField(max_length=10, choices=SOURCE_CHOICES, default=SOURCE_MANUAL)
    notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ("-created_at", "-id")
        indexes = [
            models.Index(fields=("latitude", "longitude"), name="idx_asset_lat_lng"),
            models.Index(fields=("region",), name="idx_asset_region"),
            models.Index(fields=("created_by",), name="idx_asset_created_by"),
            models.Index(fields=("status",), name="idx_asset_status"),
            models.Index(fields=("item_type",), name="idx_asset_item_type"),
        ]

    def __str__(self):
        return f"{self.name} ({self.item_type})"

    def clean(self):
        super().clean()
        if not within_national_envelope(self.latitude, self.longitude):
            raise ValidationError(
                {"latitude": "Coordinates must lie within the national envelope."}
            )

    def save(self, *args, **kwargs):
        if self.latitude is None or self.longitude is None:
            raise ValidationError("Latitude and longitude are required.")
        if not within_national_envelope(self.latitude, self.longitude):
            raise ValidationError("Coordinates must lie within the national envelope.")
        return super().save(*args, **kwargs)
