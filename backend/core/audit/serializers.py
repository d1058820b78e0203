from rest_framework import serializers

from audit.models import AuditEntry


class AuditEntrySerializer(serializers.ModelSerializer):
    class Meta:
        model = AuditEntry
        fields = (
            "id",
            "actor_id",
            "actor_username",
            "action",
            "severity",
            "resource_type",
            "resource_id",
            "occurred_at",
            "request_id",
            "request_method",
            "request_path",
            "ip_address",
            "user_agent",
            "data_before",
            "data_after",
            "metadata",
        )


class AuditPurgeSerializer(serializers.Serializer):
    before = serializers.DateTimeField(required=False, allow_null=True)
