from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.models import UserProfile
from scoping.identity import identity_for_user
from scoping.permissions import IsActiveOperator
from scoping.roles import get_resource_role_matrices, serialize_role_matrices
from scoping.scope import resolve_scope


class AuthenticatedUserAPIView(APIView):
    permission_classes = [IsActiveOperator]

    def get(self, request):
        user = request.user
        identity = identity_for_user(user)
        scope = resolve_scope(identity)
        try:
            full_name = user.profile.full_name
        except UserProfile.DoesNotExist:
            full_name = ""

        return Response(
            {
                "id": user.pk,
                "username": user.get_username(),
                "email": user.email,
                "full_name": full_name,
                "role": identity.role,
                "is_elevated": identity.is_elevated,
                "region_ids": sorted(scope.region_ids),
                "unrestricted": scope.unrestricted,
                "permissions": serialize_role_matrices(get_resource_role_matrices()),
            }
        )
