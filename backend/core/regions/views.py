from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.models import get_user_role
from regions.models import Region
from regions.serializers import (
    RegionAssignmentCreateSerializer,
    RegionSerializer,
    UserRegionAssignmentSerializer,
)
from regions.services import (
    assign_region,
    get_region,
    get_user,
    list_user_assignments,
    unassign_region,
)
from scoping.exceptions import AccessServiceError, Forbidden, InvalidArgument, error_response
from scoping.permissions import IsRoleAllowed
from scoping.roles import is_elevated_role


class RegionListAPIView(APIView):
    permission_classes = [IsRoleAllowed]
    resource_key = "regions"

    def get(self, request):
        regions = Region.objects.filter(is_active=True).order_by("name")
        return Response(RegionSerializer(regions, many=True).data)


class UserRegionAssignmentListCreateAPIView(APIView):
    permission_classes = [IsRoleAllowed]
    resource_key = "region_assignments"

    def get(self, request, user_id):
        try:
            if request.user.pk != user_id and not is_elevated_role(get_user_role(request.user)):
                raise Forbidden("You can only view your own region assignments.")
            user = get_user(user_id)
        except AccessServiceError as exc:
            return error_response(exc)
        assignments = list_user_assignments(user.pk)
        return Response(UserRegionAssignmentSerializer(assignments, many=True).data)

    def post(self, request, user_id):
        serializer = RegionAssignmentCreateSerializer(data=request.data)
        if not serializer.is_valid():
            return error_response(InvalidArgument("region_id or region_name is required."))
        data = serializer.validated_data

        try:
            user = get_user(user_id)
            region = get_region(region_id=data.get("region_id"), region_name=data.get("region_name"))
            assignment = assign_region(
                user=user,
                region=region,
                access_level=data.get("access_level"),
                assigned_by=request.user,
                request=request,
            )
        except AccessServiceError as exc:
            return error_response(exc)

        return Response(
            UserRegionAssignmentSerializer(assignment).data,
            status=status.HTTP_201_CREATED,
        )


class UserRegionAssignmentDetailAPIView(APIView):
    permission_classes = [IsRoleAllowed]
    resource_key = "region_assignments"

    def delete(self, request, user_id, region_id):
        try:
            user = get_user(user_id)
            region = get_region(region_id=region_id)
            unassign_region(user=user, region=region, removed_by=request.user, request=request)
        except AccessServiceError as exc:
            return error_response(exc)
        return Response(status=status.HTTP_204_NO_CONTENT)
