from django.contrib import admin
from django.http import JsonResponse
from django.urls import path
from rest_framework.authtoken.views import obtain_auth_token

from accounts.views import AuthenticatedUserAPIView
from audit.views import AuditEntryListAPIView, AuditPurgeAPIView
from infrastructure.views import (
    AssetAuditHistoryAPIView,
    AssetDetailAPIView,
    AssetImportAPIView,
    AssetListCreateAPIView,
    ClusterAPIView,
    InfrastructureStatsAPIView,
    MapViewAPIView,
    ViewportAPIView,
)
from notifications.views import NotificationListAPIView, NotificationMarkReadAPIView
from regions.views import (
    RegionListAPIView,
    UserRegionAssignmentDetailAPIView,
    UserRegionAssignmentListCreateAPIView,
)
from temporary_access.views import (
    MyTemporaryAccessAPIView,
    TemporaryAccessCleanupAPIView,
    TemporaryAccessListCreateAPIView,
    TemporaryAccessRevokeAPIView,
)


def healthz(_request):
    return JsonResponse({"status": "ok"})


urlpatterns = [
    path("admin/", admin.site.urls),
    path("healthz/", healthz, name="healthz"),
    path("api/auth/token/", obtain_auth_token, name="api-token-auth"),
    path("api/auth/me/", AuthenticatedUserAPIView.as_view(), name="auth-me"),
    path(
        "api/infrastructure/viewport/",
        ViewportAPIView.as_view(),
        name="infrastructure-viewport",
    ),
    path(
        "api/infrastructure/map-view/",
        MapViewAPIView.as_view(),
        name="infrastructure-map-view",
    ),
    path(
        "api/infrastructure/clusters/",
        ClusterAPIView.as_view(),
        name="infrastructure-clusters",
    ),
    path(
        "api/infrastructure/assets/",
        AssetListCreateAPIView.as_view(),
        name="infrastructure-assets-list",
    ),
    path(
        "api/infrastructure/assets/<int:pk>/",
        AssetDetailAPIView.as_view(),
        name="infrastructure-assets-detail",
    ),
    path(
        "api/infrastructure/assets/<int:pk>/audit/",
        AssetAuditHistoryAPIView.as_view(),
        name="infrastructure-assets-audit",
    ),
    path(
        "api/infrastructure/import/",
        AssetImportAPIView.as_view(),
        name="infrastructure-import",
    ),
    path(
        "api/infrastructure/stats/",
        InfrastructureStatsAPIView.as_view(),
        name="infrastructure-stats",
    ),
    path("api/regions/", RegionListAPIView.as_view(), name="regions-list"),
    path(
        "api/users/<int:user_id>/regions/",
        UserRegionAssignmentListCreateAPIView.as_view(),
        name="user-regions-list",
    ),
    path(
        "api/users/<int:user_id>/regions/<int:region_id>/",
        UserRegionAssignmentDetailAPIView.as_view(),
        name="user-regions-detail",
    ),
    path(
        "api/temporary-access/",
        TemporaryAccessListCreateAPIView.as_view(),
        name="temporary-access-list",
    ),
    path(
        "api/temporary-access/my-access/",
        MyTemporaryAccessAPIView.as_view(),
        name="temporary-access-my-access",
    ),
    path(
        "api/temporary-access/cleanup/",
        TemporaryAccessCleanupAPIView.as_view(),
        name="temporary-access-cleanup",
    ),
    path(
        "api/temporary-access/<int:pk>/",
        TemporaryAccessRevokeAPIView.as_view(),
        name="temporary-access-detail",
    ),
    path("api/audit/", AuditEntryListAPIView.as_view(), name="audit-list"),
    path("api/audit/purge/", AuditPurgeAPIView.as_view(), name="audit-purge"),
    path("api/notifications/", NotificationListAPIView.as_view(), name="notifications-list"),
    path(
        "api/notifications/<int:pk>/read/",
        NotificationMarkReadAPIView.as_view(),
        name="notifications-read",
    ),
]
