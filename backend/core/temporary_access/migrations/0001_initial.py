# Generated manually. Keep in sync with temporary_access/models.py.

from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("regions", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="TemporaryAccessGrant",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("access_level", models.CharField(choices=[("read", "Read"), ("write", "Write"), ("admin", "Admin")], default="read", max_length=10)),
                ("reason", models.TextField(blank=True)),
                ("granted_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("expires_at", models.DateTimeField()),
                ("revoked_at", models.DateTimeField(blank=True, null=True)),
                ("swept_at", models.DateTimeField(blank=True, null=True)),
                ("granted_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="temporary_access_grants_made", to=settings.AUTH_USER_MODEL)),
                ("region", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="temporary_access_grants", to="regions.region")),
                ("revoked_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="temporary_access_grants_revoked", to=settings.AUTH_USER_MODEL)),
                ("user", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="temporary_access_grants", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "ordering": ("-granted_at", "-id"),
            },
        ),
        migrations.AddIndex(
            model_name="temporaryaccessgrant",
            index=models.Index(fields=["user", "region", "expires_at"], name="idx_grant_user_region_exp"),
        ),
        migrations.AddIndex(
            model_name="temporaryaccessgrant",
            index=models.Index(fields=["expires_at"], name="idx_grant_expires_at"),
        ),
    ]
