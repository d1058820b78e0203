from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models


class Region(models.Model):
    """Named administrative area with an axis-aligned lat/lng rectangle boundary."""

    name = models.CharField(max_length=120, unique=True)
    code = models.CharField(max_length=20, blank=True)
    lat_min = models.FloatField()
    lat_max = models.FloatField()
    lng_min = models.FloatField()
    lng_max = models.FloatField()
    # Lower values win when rectangles overlap.
    priority = models.PositiveIntegerField(default=0)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ("priority", "name")

    def __str__(self):
        return self.name

    def clean(self):
        super().clean()
        if self.lat_min > self.lat_max or self.lng_min > self.lng_max:
            raise ValidationError("Region boundary minimums must not exceed maximums.")

    def contains(self, latitude: float, longitude: float) -> bool:
        return (
            self.lat_min <= latitude <= self.lat_max
            and self.lng_min <= longitude <= self.lng_max
        )


class UserRegionAssignment(models.Model):
    ACCESS_READ = "read"
    ACCESS_WRITE = "write"
    ACCESS_ADMIN = "admin"
    ACCESS_LEVEL_CHOICES = [
        (ACCESS_READ, "Read"),
        (ACCESS_WRITE, "Write"),
        (ACCESS_ADMIN, "Admin"),
    ]

    SOURCE_PERMANENT = "PERMANENT"
    SOURCE_TEMPORARY = "TEMPORARY"
    SOURCE_CHOICES = [
        (SOURCE_PERMANENT, "Permanent"),
        (SOURCE_TEMPORARY, "Temporary grant"),
    ]

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="region_assignments",
    )
    region = models.ForeignKey(
        Region,
        on_delete=models.CASCADE,
        related_name="assignments",
    )
    access_level = models.CharField(
        max_length=10,
        choices=ACCESS_LEVEL_CHOICES,
        default=ACCESS_READ,
    )
    # TEMPORARY rows are materialized from grants and owned by the grant lifecycle.
    source = models.CharField(max_length=12, choices=SOURCE_CHOICES, default=SOURCE_PERMANENT)
    assigned_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        related_name="region_assignments_made",
        null=True,
        blank=True,
    )
    assigned_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ("user_id", "region__name")
        constraints = [
            models.UniqueConstraint(
                fields=("user", "region"),
                name="uq_user_region_assignment",
            ),
        ]

    def __str__(self):
        return f"{self.user} -> {self.region} ({self.access_level}, {self.source})"

    @property
    def is_permanent(self) -> bool:
        return self.source == self.SOURCE_PERMANENT
