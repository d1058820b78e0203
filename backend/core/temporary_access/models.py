from django.conf import settings
from django.db import models
from django.utils import timezone


class TemporaryAccessGrantQuerySet(models.QuerySet):
    def live(self, now=None):
        now = now or timezone.now()
        return self.filter(revoked_at__isnull=True, expires_at__gt=now)

    def expired(self, now=None):
        now = now or timezone.now()
        return self.filter(revoked_at__isnull=True, expires_at__lte=now)

    def revoked(self):
        return self.filter(revoked_at__isnull=False)

    def pending_sweep(self, now=None):
        return self.expired(now=now).filter(swept_at__isnull=True)

    def with_status(self, status, now=None):
        if status == TemporaryAccessGrant.STATUS_ACTIVE:
            return self.live(now=now)
        if status == TemporaryAccessGrant.STATUS_EXPIRED:
            return self.expired(now=now)
        if status == TemporaryAccessGrant.STATUS_REVOKED:
            return self.revoked()
        return self


class TemporaryAccessGrant(models.Model):
    """Time-boxed region access for one user.

    Status is derived from ``revoked_at`` and ``expires_at`` and never stored.
    """

    STATUS_ACTIVE = "active"
    STATUS_EXPIRED = "expired"
    STATUS_REVOKED = "revoked"
    STATUS_CHOICES = (STATUS_ACTIVE, STATUS_EXPIRED, STATUS_REVOKED)

    ACCESS_LEVEL_CHOICES = [
        ("read", "Read"),
        ("write", "Write"),
        ("admin", "Admin"),
    ]

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="temporary_access_grants",
    )
    region = models.ForeignKey(
        "regions.Region",
        on_delete=models.CASCADE,
        related_name="temporary_access_grants",
    )
    access_level = models.CharField(max_length=10, choices=ACCESS_LEVEL_CHOICES, default="read")
    reason = models.TextField(blank=True)
    granted_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        related_name="temporary_access_grants_made",
        null=True,
        blank=True,
    )
    granted_at = models.DateTimeField(default=timezone.now)
    expires_at = models.DateTimeField()
    revoked_at = models.DateTimeField(null=True, blank=True)
    revoked_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        related_name="temporary_access_grants_revoked",
        null=True,
        blank=True,
    )
    # Set once the sweep has reconciled an expired grant.
    swept_at = models.DateTimeField(null=True, blank=True)

    objects = TemporaryAccessGrantQuerySet.as_manager()

    class Meta:
        ordering = ("-granted_at", "-id")
        indexes = [
            models.Index(fields=("user", "region", "expires_at"), name="idx_grant_user_region_exp"),
            models.Index(fields=("expires_at",), name="idx_grant_expires_at"),
        ]

    def __str__(self):
        return f"{self.user} -> {self.region} until {self.expires_at:%Y-%m-%d %H:%M}"

    def status_at(self, now=None) -> str:
        if self.revoked_at is not None:
            return self.STATUS_REVOKED
        now = now or timezone.now()
        if self.expires_at <= now:
            return self.STATUS_EXPIRED
        return self.STATUS_ACTIVE

    @property
    def status(self) -> str:
        return self.status_at()

    def is_live(self, now=None) -> bool:
        return self.status_at(now) == self.STATUS_ACTIVE
