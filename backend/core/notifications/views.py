from django.shortcuts import get_object_or_404
from rest_framework.response import Response
from rest_framework.views import APIView

from notifications.models import Notification
from notifications.serializers import NotificationSerializer
from notifications.services import mark_read
from scoping.params import parse_limit
from scoping.permissions import IsActiveOperator


class NotificationListAPIView(APIView):
    permission_classes = [IsActiveOperator]

    def get(self, request):
        notifications = Notification.objects.filter(user=request.user)
        if (request.query_params.get("unread") or "").lower() in ("1", "true"):
            notifications = notifications.filter(read_at__isnull=True)
        limit = parse_limit(request.query_params.get("limit"), default=100, maximum=500)
        return Response(NotificationSerializer(notifications[:limit], many=True).data)


class NotificationMarkReadAPIView(APIView):
    permission_classes = [IsActiveOperator]

    def post(self, request, pk):
        notification = get_object_or_404(Notification, pk=pk, user=request.user)
        mark_read(notification)
        return Response(NotificationSerializer(notification).data)
