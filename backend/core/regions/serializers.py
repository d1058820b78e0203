from rest_framework import serializers

from regions.models import Region, UserRegionAssignment


class RegionSerializer(serializers.ModelSerializer):
    class Meta:
        model = Region
        fields = ("id", "name", "code", "lat_min", "lat_max", "lng_min", "lng_max")


class UserRegionAssignmentSerializer(serializers.ModelSerializer):
    region_name = serializers.CharField(source="region.name", read_only=True)
    assigned_by_username = serializers.SerializerMethodField()

    class Meta:
        model = UserRegionAssignment
        fields = (
            "id",
            "user_id",
            "region_id",
            "region_name",
            "access_level",
            "source",
            "assigned_by_username",
            "assigned_at",
        )
        read_only_fields = fields

    def get_assigned_by_username(self, obj):
        return obj.assigned_by.username if obj.assigned_by_id else None


class RegionAssignmentCreateSerializer(serializers.Serializer):
    region_id = serializers.IntegerField(min_value=1, required=False)
    region_name = serializers.CharField(max_length=120, required=False)
    access_level = serializers.CharField(max_length=10, required=False, default="read")

    def validate(self, attrs):
        if not attrs.get("region_id") and not attrs.get("region_name"):
            raise serializers.ValidationError("region_id or region_name is required.")
        return attrs
