from django.apps import AppConfig


class ScopingConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "scoping"
