from django.utils import timezone
from rest_framework import serializers

from temporary_access.models import TemporaryAccessGrant
from temporary_access.services import time_remaining


class TemporaryAccessGrantSerializer(serializers.ModelSerializer):
    username = serializers.CharField(source="user.username", read_only=True)
    region_name = serializers.CharField(source="region.name", read_only=True)
    region_code = serializers.CharField(source="region.code", read_only=True)
    granted_by_username = serializers.SerializerMethodField()
    revoked_by_username = serializers.SerializerMethodField()
    status = serializers.SerializerMethodField()
    time_remaining = serializers.SerializerMethodField()

    class Meta:
        model = TemporaryAccessGrant
        fields = (
            "id",
            "user_id",
            "username",
            "region_id",
            "region_name",
            "region_code",
            "access_level",
            "reason",
            "granted_by_username",
            "granted_at",
            "expires_at",
            "revoked_at",
            "revoked_by_username",
            "status",
            "time_remaining",
        )
        read_only_fields = fields

    def _now(self):
        return self.context.get("now") or timezone.now()

    def get_granted_by_username(self, obj):
        return obj.granted_by.username if obj.granted_by_id else None

    def get_revoked_by_username(self, obj):
        return obj.revoked_by.username if obj.revoked_by_id else None

    def get_status(self, obj):
        return obj.status_at(self._now())

    def get_time_remaining(self, obj):
        remaining = time_remaining(obj, now=self._now())
        return {
            "seconds": remaining.seconds,
            "expired": remaining.expired,
            "display": remaining.display,
        }


class TemporaryAccessGrantCreateSerializer(serializers.Serializer):
    user_id = serializers.IntegerField(min_value=1)
    region_id = serializers.IntegerField(min_value=1, required=False)
    region_name = serializers.CharField(max_length=120, required=False, allow_blank=False)
    access_level = serializers.CharField(max_length=10, required=False, default="read")
    expires_at = serializers.DateTimeField()
    reason = serializers.CharField(required=False, allow_blank=True, default="")

    def validate(self, attrs):
        if not attrs.get("region_id") and not attrs.get("region_name"):
            raise serializers.ValidationError("region_id or region_name is required.")
        return attrs
