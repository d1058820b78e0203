from django.apps import AppConfig


class TemporaryAccessConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "temporary_access"
