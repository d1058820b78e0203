from rest_framework import serializers

from infrastructure.models import InfrastructureAsset


class InfrastructureAssetSerializer(serializers.ModelSerializer):
    region_name = serializers.SerializerMethodField()
    created_by_username = serializers.SerializerMethodField()

    class Meta:
        model = InfrastructureAsset
        fields = (
            "id",
            "name",
            "item_type",
            "status",
            "unique_id",
            "latitude",
            "longitude",
            "region_id",
            "region_name",
            "source",
            "notes",
            "created_by_id",
            "created_by_username",
            "created_at",
            "updated_at",
        )
        read_only_fields = fields

    def get_region_name(self, obj):
        return obj.region.name if obj.region_id else None

    def get_created_by_username(self, obj):
        return obj.created_by.username if obj.created_by_id else None


class AssetWriteSerializer(serializers.Serializer):
    """Shape check only; coordinate and choice rules live in the service layer."""

    name = serializers.CharField(max_length=255, required=False)
    item_type = serializers.CharField(max_length=20, required=False)
    status = serializers.CharField(max_length=20, required=False)
    unique_id = serializers.CharField(max_length=120, required=False, allow_blank=True)
    notes = serializers.CharField(required=False, allow_blank=True)
    latitude = serializers.FloatField(required=False)
    longitude = serializers.FloatField(required=False)
    redetect_region = serializers.BooleanField(required=False, default=False)


class AssetImportSerializer(serializers.Serializer):
    items = serializers.ListField(child=serializers.DictField(), allow_empty=False, max_length=5000)
