from dataclasses import replace

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from audit.models import AuditEntry
from audit.serializers import AuditEntrySerializer
from infrastructure.clustering import DEFAULT_ZOOM, cluster_assets, should_cluster
from infrastructure.models import InfrastructureAsset
from infrastructure.serializers import (
    AssetImportSerializer,
    AssetWriteSerializer,
    InfrastructureAssetSerializer,
)
from infrastructure.services import (
    create_asset,
    delete_asset,
    get_asset_for,
    import_assets,
    infrastructure_stats,
    update_asset,
)
from infrastructure.viewport import ViewportBounds, parse_zoom, query_viewport
from scoping.exceptions import AccessServiceError, InvalidArgument, error_response
from scoping.identity import resolve_identity
from scoping.params import parse_int, parse_limit
from scoping.permissions import IsRoleAllowed
from scoping.predicates import AssetPredicate, FieldEqualsClause, ScopeClause, TextSearchClause
from scoping.scope import resolve_scope

REQUIRED_ON_REPLACE = ("name", "item_type", "latitude", "longitude")


def _filters_from(params) -> dict:
    return {
        "item_type": (params.get("item_type") or "").strip() or None,
        "status": (params.get("status") or "").strip() or None,
        "source": (params.get("source") or "").strip() or None,
        "search": (params.get("search") or "").strip() or None,
    }


def _region_filter(params):
    raw_region_id = params.get("regionId") or params.get("region_id")
    if raw_region_id in (None, ""):
        return None
    region_id = parse_int(raw_region_id)
    if region_id is None:
        raise InvalidArgument("regionId must be an integer.")
    return region_id


def _map_view_payload(request, bounds, zoom, scope):
    result = query_viewport(
        bounds,
        zoom=zoom,
        scope=scope,
        filters={"region_id": _region_filter(request.query_params)},
        limit=request.query_params.get("limit"),
        visible_only=True,
    )
    return {
        "items": result.items,
        "count": result.count,
        "limit": result.limit,
        "limited": result.limited,
        "bounds": bounds.as_dict(),
        "zoom": zoom,
    }


class ViewportAPIView(APIView):
    permission_classes = [IsRoleAllowed]
    resource_key = "viewport"

    def get(self, request):
        params = request.query_params
        try:
            bounds = ViewportBounds.from_params(params)
            zoom = parse_zoom(params.get("zoom"))
            scope = resolve_scope(resolve_identity(request))
            result = query_viewport(
                bounds,
                zoom=zoom,
                scope=scope,
                filters=_filters_from(params),
                limit=params.get("limit"),
            )
        except AccessServiceError as exc:
            return error_response(exc)

        return Response(
            {
                "items": result.items,
                "count": result.count,
                "limit": result.limit,
                "limited": result.limited,
                "bounds": bounds.as_dict(),
                "zoom": zoom,
                "queryTimeMs": result.query_time_ms,
            }
        )


class MapViewAPIView(APIView):
    permission_classes = [IsRoleAllowed]
    resource_key = "viewport"

    def get(self, request):
        params = request.query_params
        try:
            bounds = ViewportBounds.from_params(params)
            zoom = parse_zoom(params.get("zoom"))
            zoom = DEFAULT_ZOOM if zoom is None else zoom
            scope = resolve_scope(resolve_identity(request))
            payload = _map_view_payload(request, bounds, zoom, scope)
        except AccessServiceError as exc:
            return error_response(exc)
        return Response(payload)


class ClusterAPIView(APIView):
    permission_classes = [IsRoleAllowed]
    resource_key = "clusters"

    def get(self, request):
        params = request.query_params
        try:
            bounds = ViewportBounds.from_params(params)
            zoom = parse_zoom(params.get("zoom"))
            zoom = DEFAULT_ZOOM if zoom is None else zoom
            scope = resolve_scope(resolve_identity(request))

            if not should_cluster(zoom):
                payload = _map_view_payload(request, bounds, zoom, scope)
                payload["clusteringEnabled"] = False
                return Response(payload)

            result = cluster_assets(
                bounds,
                zoom=zoom,
                scope=scope,
                grid_size=params.get("gridSize"),
                region_id=_region_filter(params),
            )
        except AccessServiceError as exc:
            return error_response(exc)

        return Response(
            {
                "clusters": result.clusters,
                "count": len(result.clusters),
                "bounds": bounds.as_dict(),
                "zoom": zoom,
                "gridSize": result.grid_size,
                "clusteringEnabled": True,
                "truncated": result.truncated,
            }
        )


class InfrastructureStatsAPIView(APIView):
    permission_classes = [IsRoleAllowed]
    resource_key = "stats"

    def get(self, request):
        try:
            scope = resolve_scope(resolve_identity(request))
            stats = infrastructure_stats(scope)
        except AccessServiceError as exc:
            return error_response(exc)
        return Response(stats)


class AssetListCreateAPIView(APIView):
    permission_classes = [IsRoleAllowed]
    resource_key = "assets"

    def get(self, request):
        params = request.query_params
        try:
            scope = resolve_scope(resolve_identity(request))
            predicate = AssetPredicate([ScopeClause(scope)])
            filters = _filters_from(params)
            filters["region_id"] = _region_filter(params)
        except AccessServiceError as exc:
            return error_response(exc)

        for field_name in ("item_type", "status", "source", "region_id"):
            if filters.get(field_name) is not None:
                predicate.add(FieldEqualsClause(field_name, filters[field_name]))
        if filters.get("search"):
            predicate.add(TextSearchClause(filters["search"], fields=("name", "unique_id")))

        limit = parse_limit(params.get("limit"))
        assets = (
            predicate.apply(InfrastructureAsset.objects.select_related("region", "created_by"))
            .order_by("-created_at", "-id")[:limit]
        )
        return Response(InfrastructureAssetSerializer(assets, many=True).data)

    def post(self, request):
        serializer = AssetWriteSerializer(data=request.data)
        if not serializer.is_valid():
            return error_response(InvalidArgument("Invalid asset payload."))
        try:
            asset = create_asset(
                data=serializer.validated_data,
                created_by=request.user,
                request=request,
            )
        except AccessServiceError as exc:
            return error_response(exc)
        return Response(InfrastructureAssetSerializer(asset).data, status=status.HTTP_201_CREATED)


class AssetDetailAPIView(APIView):
    permission_classes = [IsRoleAllowed]
    resource_key = "assets"

    def _load(self, request, pk):
        identity = resolve_identity(request)
        # Detail reads ignore "view as" narrowing.
        scope = resolve_scope(replace(identity, target_user_id=None))
        return identity, get_asset_for(pk, scope)

    def get(self, request, pk):
        try:
            _identity, asset = self._load(request, pk)
        except AccessServiceError as exc:
            return error_response(exc)
        return Response(InfrastructureAssetSerializer(asset).data)

    def patch(self, request, pk):
        return self._update(request, pk, partial=True)

    def put(self, request, pk):
        return self._update(request, pk, partial=False)

    def _update(self, request, pk, *, partial):
        serializer = AssetWriteSerializer(data=request.data)
        if not serializer.is_valid():
            return error_response(InvalidArgument("Invalid asset payload."))
        data = dict(serializer.validated_data)
        redetect_region = data.pop("redetect_region", False)
        if not partial:
            missing = [key for key in REQUIRED_ON_REPLACE if key not in data]
            if missing:
                return error_response(InvalidArgument(f"Missing fields: {', '.join(missing)}."))

        try:
            identity, asset = self._load(request, pk)
            asset = update_asset(
                asset,
                data=data,
                identity=identity,
                actor=request.user,
                request=request,
                redetect_region=redetect_region,
            )
        except AccessServiceError as exc:
            return error_response(exc)
        return Response(InfrastructureAssetSerializer(asset).data)

    def delete(self, request, pk):
        try:
            identity, asset = self._load(request, pk)
            delete_asset(asset, identity=identity, actor=request.user, request=request)
        except AccessServiceError as exc:
            return error_response(exc)
        return Response(status=status.HTTP_204_NO_CONTENT)


class AssetAuditHistoryAPIView(APIView):
    permission_classes = [IsRoleAllowed]
    resource_key = "asset_audit"

    def get(self, request, pk):
        limit = parse_limit(request.query_params.get("limit"))
        entries = (
            AuditEntry.objects.for_resource("infrastructure_asset", pk)
            .order_by("-occurred_at", "-id")[:limit]
        )
        return Response(AuditEntrySerializer(entries, many=True).data)


class AssetImportAPIView(APIView):
    permission_classes = [IsRoleAllowed]
    resource_key = "asset_import"

    def post(self, request):
        serializer = AssetImportSerializer(data=request.data)
        if not serializer.is_valid():
            return error_response(InvalidArgument("items must be a non-empty list of records."))

        result = import_assets(
            serializer.validated_data["items"],
            imported_by=request.user,
            request=request,
        )
        return Response(
            {
                "summary": result.summary,
                "accepted": result.accepted,
                "rejected": result.rejected,
            },
            status=status.HTTP_201_CREATED if result.accepted else status.HTTP_200_OK,
        )
