from django.contrib import admin

from regions.models import Region, UserRegionAssignment


@admin.register(Region)
class RegionAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "code", "lat_min", "lat_max", "lng_min", "lng_max", "priority", "is_active")
    list_filter = ("is_active",)
    search_fields = ("name", "code")
    ordering = ("priority", "name")


@admin.register(UserRegionAssignment)
class UserRegionAssignmentAdmin(admin.ModelAdmin):
    list_display = ("id", "user", "region", "access_level", "source", "assigned_by", "assigned_at")
    list_filter = ("access_level", "source")
    search_fields = ("user__username", "region__name")
    # TEMPORARY rows are managed by the grant lifecycle.
    readonly_fields = ("source",)
