import logging

from django.utils import timezone
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from regions.services import get_region
from scoping.exceptions import AccessServiceError, InvalidArgument, error_response
from scoping.permissions import IsActiveOperator, IsRoleAllowed
from temporary_access.serializers import (
    TemporaryAccessGrantCreateSerializer,
    TemporaryAccessGrantSerializer,
)
from temporary_access.services import (
    grant_temporary_access,
    list_grants,
    list_my_access,
    revoke_temporary_access,
    sweep_expired_grants,
)

logger = logging.getLogger(__name__)


def _first_error(errors) -> str:
    if isinstance(errors, dict):
        for field_name, messages in errors.items():
            message = _first_error(messages)
            if field_name == "non_field_errors":
                return message
            return f"{field_name}: {message}"
    if isinstance(errors, (list, tuple)) and errors:
        return _first_error(errors[0])
    return str(errors)


class TemporaryAccessListCreateAPIView(APIView):
    permission_classes = [IsRoleAllowed]
    resource_key = "temporary_access"

    def get(self, request):
        try:
            grants = list_grants(
                status=(request.query_params.get("status") or "").strip().lower() or None,
                user_id=request.query_params.get("user_id"),
            )
        except AccessServiceError as exc:
            return error_response(exc)
        serializer = TemporaryAccessGrantSerializer(
            grants, many=True, context={"now": timezone.now()}
        )
        return Response({"access": serializer.data, "count": len(serializer.data)})

    def post(self, request):
        serializer = TemporaryAccessGrantCreateSerializer(data=request.data)
        if not serializer.is_valid():
            return error_response(InvalidArgument(_first_error(serializer.errors)))
        data = serializer.validated_data

        try:
            region = get_region(
                region_id=data.get("region_id"),
                region_name=data.get("region_name"),
            )
            grant = grant_temporary_access(
                user_id=data["user_id"],
                region=region,
                access_level=data.get("access_level"),
                reason=data.get("reason", ""),
                expires_at=data["expires_at"],
                granted_by=request.user,
                request=request,
            )
        except AccessServiceError as exc:
            return error_response(exc)

        return Response(
            {
                "access": {
                    "id": grant.pk,
                    "user_id": grant.user_id,
                    "region_id": grant.region_id,
                    "region_name": region.name,
                    "access_level": grant.access_level,
                    "expires_at": grant.expires_at,
                }
            },
            status=status.HTTP_201_CREATED,
        )


class TemporaryAccessRevokeAPIView(APIView):
    permission_classes = [IsRoleAllowed]
    resource_key = "temporary_access"

    def delete(self, request, pk):
        try:
            revoke_temporary_access(pk, revoked_by=request.user, request=request)
        except AccessServiceError as exc:
            return error_response(exc)
        return Response({"detail": "Temporary access revoked successfully."})


class MyTemporaryAccessAPIView(APIView):
    permission_classes = [IsActiveOperator]

    def get(self, request):
        now = timezone.now()
        grants = list_my_access(request.user, now=now)
        serializer = TemporaryAccessGrantSerializer(grants, many=True, context={"now": now})
        return Response({"access": serializer.data, "count": len(serializer.data)})


class TemporaryAccessCleanupAPIView(APIView):
    permission_classes = [IsRoleAllowed]
    resource_key = "temporary_access_cleanup"

    def post(self, request):
        result = sweep_expired_grants()
        logger.info(
            "manual temporary access cleanup",
            extra={"user_id": request.user.pk, "expired": result.expired},
        )
        return Response(
            {
                "cleaned_count": result.expired,
                "scanned": result.scanned,
                "assignments_removed": result.assignments_removed,
            }
        )
