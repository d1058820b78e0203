from datetime import timedelta
from unittest import mock

from django.contrib.auth import get_user_model
from django.test import TestCase
from django.utils import timezone

from notifications.models import Notification
from notifications.services import grant_reference, notify, recently_notified

User = get_user_model()


class NotifyServiceTests(TestCase):
    def setUp(self):
        self.user = User.objects.create_user(username="engineer", password="testpass123")

    def test_creates_notification(self):
        notification = notify(
            self.user,
            category=Notification.CATEGORY_REGION_ASSIGNED,
            title="Region access: Goa",
            metadata={"region_id": 3},
        )
        self.assertFalse(notification.is_read)
        self.assertEqual(notification.metadata, {"region_id": 3})

    def test_accepts_user_id(self):
        notification = notify(
            self.user.pk, category=Notification.CATEGORY_TEMPORARY_ACCESS_EXPIRED, title="Expired"
        )
        self.assertEqual(notification.user_id, self.user.pk)

    def test_failures_are_logged_not_raised(self):
        with mock.patch.object(Notification.objects, "create", side_effect=RuntimeError("db down")):
            with self.assertLogs("notifications.services", level="ERROR"):
                result = notify(
                    self.user, category=Notification.CATEGORY_REGION_ASSIGNED, title="Region access"
                )
        self.assertIsNone(result)
        self.assertFalse(Notification.objects.exists())

    def test_recently_notified_uses_reference_and_window(self):
        reference = grant_reference(12)
        self.assertEqual(reference, "temporary_access_grant:12")
        notify(
            self.user,
            category=Notification.CATEGORY_TEMPORARY_ACCESS_EXPIRING,
            title="Expiring",
            reference=reference,
        )

        self.assertTrue(
            recently_notified(
                self.user.pk,
                category=Notification.CATEGORY_TEMPORARY_ACCESS_EXPIRING,
                reference=reference,
                days=2,
            )
        )
        self.assertFalse(
            recently_notified(
                self.user.pk,
                category=Notification.CATEGORY_TEMPORARY_ACCESS_EXPIRING,
                reference=grant_reference(13),
                days=2,
            )
        )
        self.assertFalse(
            recently_notified(
                self.user.pk,
                category=Notification.CATEGORY_TEMPORARY_ACCESS_EXPIRING,
                reference=reference,
                days=2,
                now=timezone.now() + timedelta(days=3),
            )
        )


class NotificationApiTests(TestCase):
    def setUp(self):
        self.user = User.objects.create_user(username="engineer", password="testpass123")
        self.other = User.objects.create_user(username="other", password="testpass123")
        self.first = notify(self.user, category=Notification.CATEGORY_REGION_ASSIGNED, title="Goa")
        self.second = notify(self.user, category=Notification.CATEGORY_REGION_ASSIGNED, title="Kerala")
        self.foreign = notify(self.other, category=Notification.CATEGORY_REGION_ASSIGNED, title="Assam")

    def test_lists_only_own_notifications(self):
        self.client.force_login(self.user)
        titles = [item["title"] for item in self.client.get("/api/notifications/").json()]
        self.assertEqual(sorted(titles), ["Goa", "Kerala"])

    def test_mark_read_and_unread_filter(self):
        self.client.force_login(self.user)
        response = self.client.post(f"/api/notifications/{self.first.pk}/read/")
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.json()["is_read"])

        unread = self.client.get("/api/notifications/", {"unread": "true"}).json()
        self.assertEqual([item["title"] for item in unread], ["Kerala"])

    def test_cannot_mark_someone_elses_notification(self):
        self.client.force_login(self.user)
        response = self.client.post(f"/api/notifications/{self.foreign.pk}/read/")
        self.assertEqual(response.status_code, 404)

    def test_inactive_profile_is_rejected(self):
        self.user.profile.is_active = False
        self.user.profile.save()
        self.client.force_login(self.user)
        self.assertEqual(self.client.get("/api/notifications/").status_code, 403)
