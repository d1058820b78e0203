from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from audit.models import AuditEntry
from audit.serializers import AuditEntrySerializer, AuditPurgeSerializer
from audit.services import purge_audit_entries
from scoping.exceptions import InvalidArgument, error_response
from scoping.params import parse_limit
from scoping.permissions import IsRoleAllowed


class AuditEntryListAPIView(APIView):
    permission_classes = [IsRoleAllowed]
    resource_key = "audit"

    def get(self, request):
        params = request.query_params
        limit = parse_limit(params.get("limit"))

        entries = AuditEntry.objects.all()
        for param, lookup in (
            ("action", "action"),
            ("resource_type", "resource_type"),
            ("resource_id", "resource_id"),
            ("severity", "severity"),
            ("actor", "actor_username"),
        ):
            value = (params.get(param) or "").strip()
            if value:
                entries = entries.filter(**{lookup: value})

        entries = entries.order_by("-occurred_at", "-id")[:limit]
        return Response(AuditEntrySerializer(entries, many=True).data)


class AuditPurgeAPIView(APIView):
    permission_classes = [IsRoleAllowed]
    resource_key = "audit_purge"

    def post(self, request):
        serializer = AuditPurgeSerializer(data=request.data)
        if not serializer.is_valid():
            return error_response(InvalidArgument("before must be an ISO 8601 datetime."))
        purged = purge_audit_entries(
            request.user,
            before=serializer.validated_data.get("before"),
            request=request,
        )
        return Response({"purged": purged}, status=status.HTTP_200_OK)
