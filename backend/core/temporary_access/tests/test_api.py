from datetime import timedelta
from io import StringIO

from django.contrib.auth import get_user_model
from django.core.management import call_command
from django.test import TestCase
from django.utils import timezone

from regions.models import Region, UserRegionAssignment
from scoping.roles import ROLE_ADMIN, ROLE_MANAGER, ROLE_USER
from temporary_access.models import TemporaryAccessGrant

User = get_user_model()


def make_user(username, role=ROLE_USER):
    user = User.objects.create_user(username=username, password="testpass123")
    user.profile.role = role
    user.profile.save()
    return user


class TemporaryAccessApiTests(TestCase):
    def setUp(self):
        self.admin = make_user("admin", ROLE_ADMIN)
        self.manager = make_user("manager", ROLE_MANAGER)
        self.user = make_user("engineer")
        self.region = Region.objects.create(
            name="Tamil Nadu", lat_min=8.0, lat_max=13.6, lng_min=76.2, lng_max=80.3
        )

    def _create(self, **overrides):
        payload = {
            "user_id": self.user.pk,
            "region_name": "Tamil Nadu",
            "access_level": "read",
            "reason": "Fiber cut on NH44",
            "expires_at": (timezone.now() + timedelta(hours=6)).isoformat(),
        }
        payload.update(overrides)
        return self.client.post("/api/temporary-access/", data=payload, content_type="application/json")

    def test_manager_grants_access(self):
        self.client.force_login(self.manager)
        response = self._create()

        self.assertEqual(response.status_code, 201)
        access = response.json()["access"]
        self.assertEqual(access["region_name"], "Tamil Nadu")
        self.assertEqual(access["user_id"], self.user.pk)
        self.assertTrue(
            UserRegionAssignment.objects.filter(
                user=self.user, source=UserRegionAssignment.SOURCE_TEMPORARY
            ).exists()
        )

    def test_duplicate_grant_is_bad_request(self):
        self.client.force_login(self.manager)
        self.assertEqual(self._create().status_code, 201)
        response = self._create()
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["code"], "active_grant_exists")

    def test_validation_errors(self):
        self.client.force_login(self.manager)
        past = (timezone.now() - timedelta(hours=1)).isoformat()
        self.assertEqual(self._create(expires_at=past).status_code, 400)
        self.assertEqual(self._create(region_name="").status_code, 400)

        response = self._create(user_id=None)
        self.assertEqual(response.status_code, 400)
        self.assertTrue(response.json()["detail"].startswith("user_id"))

    def test_unknown_region_or_user_is_not_found(self):
        self.client.force_login(self.manager)
        self.assertEqual(self._create(region_name="Atlantis").status_code, 404)
        self.assertEqual(self._create(user_id=999999).status_code, 404)

    def test_regular_user_cannot_grant_or_list(self):
        self.client.force_login(self.user)
        self.assertEqual(self._create().status_code, 403)
        self.assertEqual(self.client.get("/api/temporary-access/").status_code, 403)

    def test_list_filters_by_status(self):
        self.client.force_login(self.manager)
        self._create()
        TemporaryAccessGrant.objects.create(
            user=self.user,
            region=self.region,
            granted_by=self.manager,
            expires_at=timezone.now() - timedelta(days=1),
        )

        everything = self.client.get("/api/temporary-access/").json()
        self.assertEqual(everything["count"], 2)

        active = self.client.get("/api/temporary-access/", {"status": "active"}).json()
        self.assertEqual(active["count"], 1)
        self.assertEqual(active["access"][0]["status"], "active")
        self.assertFalse(active["access"][0]["time_remaining"]["expired"])

        expired = self.client.get("/api/temporary-access/", {"status": "expired"}).json()
        self.assertEqual(expired["access"][0]["time_remaining"]["display"], "Expired")

        bad = self.client.get("/api/temporary-access/", {"status": "pending"})
        self.assertEqual(bad.status_code, 400)

    def test_revoke_then_revoke_again(self):
        self.client.force_login(self.manager)
        grant_id = self._create().json()["access"]["id"]

        first = self.client.delete(f"/api/temporary-access/{grant_id}/")
        second = self.client.delete(f"/api/temporary-access/{grant_id}/")
        missing = self.client.delete("/api/temporary-access/999999/")

        self.assertEqual(first.status_code, 200)
        self.assertEqual(second.status_code, 409)
        self.assertEqual(missing.status_code, 404)

    def test_my_access_lists_only_live_grants_of_caller(self):
        self.client.force_login(self.manager)
        self._create()
        TemporaryAccessGrant.objects.create(
            user=self.user,
            region=self.region,
            granted_by=self.manager,
            expires_at=timezone.now() - timedelta(hours=1),
        )

        self.client.force_login(self.user)
        payload = self.client.get("/api/temporary-access/my-access/").json()
        self.assertEqual(payload["count"], 1)
        self.assertEqual(payload["access"][0]["granted_by_username"], "manager")

    def test_cleanup_sweeps_expired_grants(self):
        TemporaryAccessGrant.objects.create(
            user=self.user,
            region=self.region,
            granted_by=self.manager,
            expires_at=timezone.now() - timedelta(minutes=5),
        )
        self.client.force_login(self.user)
        self.assertEqual(self.client.post("/api/temporary-access/cleanup/").status_code, 403)

        self.client.force_login(self.admin)
        response = self.client.post("/api/temporary-access/cleanup/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["cleaned_count"], 1)
        self.assertEqual(self.client.post("/api/temporary-access/cleanup/").json()["cleaned_count"], 0)


class SchedulerCommandTests(TestCase):
    def setUp(self):
        manager = make_user("manager", ROLE_MANAGER)
        self.user = make_user("engineer")
        region = Region.objects.create(
            name="Punjab", lat_min=29.5, lat_max=32.6, lng_min=73.9, lng_max=76.9
        )
        self.expired = TemporaryAccessGrant.objects.create(
            user=self.user,
            region=region,
            granted_by=manager,
            expires_at=timezone.now() - timedelta(minutes=1),
        )
        self.expiring = TemporaryAccessGrant.objects.create(
            user=self.user,
            region=region,
            granted_by=manager,
            expires_at=timezone.now() + timedelta(hours=24),
        )

    def test_sweep_command(self):
        out = StringIO()
        call_command("sweep_temporary_access", stdout=out)
        self.assertIn("expired=1", out.getvalue())
        self.expired.refresh_from_db()
        self.assertIsNotNone(self.expired.swept_at)

    def test_notify_command(self):
        out = StringIO()
        call_command("notify_expiring_temporary_access", stdout=out)
        self.assertIn("sent=1", out.getvalue())

    def test_scheduler_runs_both_jobs_once(self):
        out = StringIO()
        call_command("run_access_scheduler", "--once", stdout=out)
        output = out.getvalue()
        self.assertIn("sweep:", output)
        self.assertIn("expiry_warnings:", output)
        self.assertNotIn("failed", output)
