# Generated manually. Keep in sync with regions/models.py.

from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Region",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=120, unique=True)),
                ("code", models.CharField(blank=True, max_length=20)),
                ("lat_min", models.FloatField()),
                ("lat_max", models.FloatField()),
                ("lng_min", models.FloatField()),
                ("lng_max", models.FloatField()),
                ("priority", models.PositiveIntegerField(default=0)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ("priority", "name"),
            },
        ),
        migrations.CreateModel(
            name="UserRegionAssignment",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("access_level", models.CharField(choices=[("read", "Read"), ("write", "Write"), ("admin", "Admin")], default="read", max_length=10)),
                ("source", models.CharField(choices=[("PERMANENT", "Permanent"), ("TEMPORARY", "Temporary grant")], default="PERMANENT", max_length=12)),
                ("assigned_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("assigned_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="region_assignments_made", to=settings.AUTH_USER_MODEL)),
                ("region", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="assignments", to="regions.region")),
                ("user", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="region_assignments", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "ordering": ("user_id", "region__name"),
            },
        ),
        migrations.AddConstraint(
            model_name="userregionassignment",
            constraint=models.UniqueConstraint(fields=("user", "region"), name="uq_user_region_assignment"),
        ),
    ]
