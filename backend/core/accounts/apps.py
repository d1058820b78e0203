from django.apps import AppConfig


class AccountsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "accounts"

    def ready(self):
        # Register signal handlers that keep a profile next to every user.
        from accounts import signals  # noqa: F401
