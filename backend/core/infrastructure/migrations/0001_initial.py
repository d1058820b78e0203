# Generated manually. Keep in sync with infrastructure/models.py.

from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("regions", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="InfrastructureAsset",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("item_type", models.CharField(choices=[("POP", "POP"), ("SubPOP", "Sub POP"), ("Tower", "Tower"), ("Building", "Building"), ("Equipment", "Equipment"), ("Other", "Other")], default="Other", max_length=20)),
                ("name", models.CharField(max_length=255)),
                ("unique_id", models.CharField(blank=True, max_length=120)),
                ("latitude", models.FloatField()),
                ("longitude", models.FloatField()),
                ("status", models.CharField(choices=[("Active", "Active"), ("Inactive", "Inactive"), ("Planned", "Planned"), ("Maintenance", "Maintenance"), ("Damaged", "Damaged"), ("RFS", "Ready for service")], default="Active", max_length=20)),
                ("source", models.CharField(choices=[("Manual", "Manual"), ("KML", "KML import")], default="Manual", max_length=10)),
                ("notes", models.TextField(blank=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("created_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="infrastructure_assets", to=settings.AUTH_USER_MODEL)),
                ("region", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="assets", to="regions.region")),
            ],
            options={
                "ordering": ("-created_at", "-id"),
            },
        ),
        migrations.AddIndex(
            model_name="infrastructureasset",
            index=models.Index(fields=["latitude", "longitude"], name="idx_asset_lat_lng"),
        ),
        migrations.AddIndex(
            model_name="infrastructureasset",
            index=models.Index(fields=["region"], name="idx_asset_region"),
        ),
        migrations.AddIndex(
            model_name="infrastructureasset",
            index=models.Index(fields=["created_by"], name="idx_asset_created_by"),
        ),
        migrations.AddIndex(
            model_name="infrastructureasset",
            index=models.Index(fields=["status"], name="idx_asset_status"),
        ),
        migrations.AddIndex(
            model_name="infrastructureasset",
            index=models.Index(fields=["item_type"], name="idx_asset_item_type"),
        ),
    ]
