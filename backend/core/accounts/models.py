from django.conf import settings
from django.db import models

from scoping.roles import ROLE_ADMIN, ROLE_MANAGER, ROLE_USER, ROLE_VIEWER, normalize_role


class UserProfile(models.Model):
    ROLE_ADMIN = ROLE_ADMIN
    ROLE_MANAGER = ROLE_MANAGER
    ROLE_USER = ROLE_USER
    ROLE_VIEWER = ROLE_VIEWER
    ROLE_CHOICES = [
        (ROLE_ADMIN, "Admin"),
        (ROLE_MANAGER, "Manager"),
        (ROLE_USER, "User"),
        (ROLE_VIEWER, "Viewer"),
    ]

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="profile",
    )
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default=ROLE_USER)
    full_name = models.CharField(max_length=255, blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ("user__username",)
        verbose_name = "User Profile"
        verbose_name_plural = "User Profiles"

    def __str__(self):
        return f"{self.user} ({self.role})"

    @property
    def display_name(self) -> str:
        return self.full_name or self.user.get_username()


def get_user_role(user) -> str:
    """Effective role of a user; superusers always act as ADMIN."""

    if user is None or not getattr(user, "is_authenticated", False):
        return ROLE_VIEWER
    if user.is_superuser:
        return ROLE_ADMIN
    try:
        profile = user.profile
    except UserProfile.DoesNotExist:
        return ROLE_USER
    return normalize_role(profile.role)
