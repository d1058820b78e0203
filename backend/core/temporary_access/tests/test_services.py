from datetime import timedelta
from unittest import mock

from django.contrib.auth import get_user_model
from django.test import TestCase, override_settings
from django.utils import timezone

from audit.models import AuditEntry
from notifications.models import Notification
from regions.models import Region, UserRegionAssignment
from regions.services import RegionNotFound, UserNotFound
from scoping.exceptions import InvalidArgument
from scoping.roles import ROLE_MANAGER, ROLE_USER
from temporary_access.models import TemporaryAccessGrant
from temporary_access.services import (
    ActiveGrantConflict,
    GrantNotActive,
    GrantNotFound,
    grant_temporary_access,
    list_grants,
    notify_expiring_soon,
    revoke_temporary_access,
    sweep_expired_grants,
    time_remaining,
)

User = get_user_model()


def make_user(username, role=ROLE_USER):
    user = User.objects.create_user(username=username, password="testpass123")
    user.profile.role = role
    user.profile.save()
    return user


class GrantTemporaryAccessTests(TestCase):
    def setUp(self):
        self.manager = make_user("manager", ROLE_MANAGER)
        self.user = make_user("engineer")
        self.region = Region.objects.create(
            name="Odisha", lat_min=17.8, lat_max=22.6, lng_min=81.3, lng_max=87.5
        )

    def _grant(self, hours=4, **kwargs):
        params = {
            "user_id": self.user.pk,
            "region": self.region,
            "access_level": "write",
            "reason": "Cyclone restoration",
            "expires_at": timezone.now() + timedelta(hours=hours),
            "granted_by": self.manager,
        }
        params.update(kwargs)
        return grant_temporary_access(**params)

    def test_grant_materializes_temporary_assignment(self):
        grant = self._grant()

        self.assertTrue(grant.is_live())
        assignment = UserRegionAssignment.objects.get(user=self.user, region=self.region)
        self.assertEqual(assignment.source, UserRegionAssignment.SOURCE_TEMPORARY)
        self.assertEqual(assignment.access_level, "write")
        self.assertTrue(AuditEntry.objects.filter(action="temporary_access.grant").exists())
        self.assertTrue(
            Notification.objects.filter(
                user=self.user,
                category=Notification.CATEGORY_TEMPORARY_ACCESS_GRANTED,
                reference=f"temporary_access_grant:{grant.pk}",
            ).exists()
        )

    def test_region_can_be_given_by_name_or_id(self):
        grant = self._grant(region="odisha")
        self.assertEqual(grant.region_id, self.region.pk)
        revoke_temporary_access(grant.pk, revoked_by=self.manager)
        grant = self._grant(region=str(self.region.pk))
        self.assertEqual(grant.region_id, self.region.pk)

    def test_second_live_grant_is_rejected(self):
        self._grant()
        with self.assertRaises(ActiveGrantConflict) as ctx:
            self._grant(hours=8)
        self.assertEqual(ctx.exception.http_status, 400)
        self.assertEqual(TemporaryAccessGrant.objects.count(), 1)

    def test_regrant_allowed_after_expiry(self):
        first = self._grant()
        TemporaryAccessGrant.objects.filter(pk=first.pk).update(
            expires_at=timezone.now() - timedelta(minutes=1)
        )
        second = self._grant()
        self.assertNotEqual(first.pk, second.pk)

    def test_expiry_must_be_in_the_future(self):
        with self.assertRaises(InvalidArgument):
            self._grant(hours=-1)
        with self.assertRaises(InvalidArgument):
            self._grant(expires_at="tomorrow")

    def test_naive_expiry_is_read_as_utc(self):
        naive = timezone.now().replace(tzinfo=None) + timedelta(hours=3)
        grant = self._grant(expires_at=naive)
        self.assertEqual(grant.expires_at.replace(tzinfo=None), naive)

    def test_unknown_user_and_region(self):
        with self.assertRaises(UserNotFound):
            self._grant(user_id=987654)
        with self.assertRaises(RegionNotFound):
            self._grant(region="Atlantis")
        with self.assertRaises(InvalidArgument):
            self._grant(access_level="superuser")

    def test_permanent_assignment_is_left_untouched(self):
        UserRegionAssignment.objects.create(user=self.user, region=self.region, access_level="admin")
        grant = self._grant()
        revoke_temporary_access(grant.pk, revoked_by=self.manager)

        assignment = UserRegionAssignment.objects.get(user=self.user, region=self.region)
        self.assertEqual(assignment.source, UserRegionAssignment.SOURCE_PERMANENT)
        self.assertEqual(assignment.access_level, "admin")


class RevokeTemporaryAccessTests(TestCase):
    def setUp(self):
        self.manager = make_user("manager", ROLE_MANAGER)
        self.user = make_user("engineer")
        self.region = Region.objects.create(
            name="Assam", lat_min=24.1, lat_max=28.2, lng_min=89.7, lng_max=96.0
        )
        self.grant = grant_temporary_access(
            user_id=self.user.pk,
            region=self.region,
            access_level="read",
            reason="",
            expires_at=timezone.now() + timedelta(hours=2),
            granted_by=self.manager,
        )

    def test_revoke_removes_assignment_and_records_actor(self):
        grant = revoke_temporary_access(self.grant.pk, revoked_by=self.manager)

        self.assertEqual(grant.status, TemporaryAccessGrant.STATUS_REVOKED)
        self.assertEqual(grant.revoked_by, self.manager)
        self.assertFalse(UserRegionAssignment.objects.filter(user=self.user).exists())
        entry = AuditEntry.objects.get(action="temporary_access.revoke")
        self.assertEqual(entry.severity, AuditEntry.SEVERITY_WARNING)
        self.assertIsNone(entry.data_before["revoked_at"])
        self.assertIsNotNone(entry.data_after["revoked_at"])

    def test_second_revoke_conflicts(self):
        revoke_temporary_access(self.grant.pk, revoked_by=self.manager)
        with self.assertRaises(GrantNotActive) as ctx:
            revoke_temporary_access(self.grant.pk, revoked_by=self.manager)
        self.assertEqual(ctx.exception.http_status, 409)

    def test_expired_grant_cannot_be_revoked(self):
        TemporaryAccessGrant.objects.filter(pk=self.grant.pk).update(
            expires_at=timezone.now() - timedelta(seconds=1)
        )
        with self.assertRaises(GrantNotActive):
            revoke_temporary_access(self.grant.pk, revoked_by=self.manager)

    def test_revoke_serializes_on_the_user_row(self):
        with mock.patch.object(
            User.objects, "select_for_update", wraps=User.objects.select_for_update
        ) as locked:
            revoke_temporary_access(self.grant.pk, revoked_by=self.manager)
        locked.assert_called()

    def test_unknown_grant(self):
        with self.assertRaises(GrantNotFound):
            revoke_temporary_access(123456, revoked_by=self.manager)
        with self.assertRaises(GrantNotFound):
            revoke_temporary_access("abc", revoked_by=self.manager)


class SweepExpiredGrantsTests(TestCase):
    def setUp(self):
        self.manager = make_user("manager", ROLE_MANAGER)
        self.user = make_user("engineer")
        self.region = Region.objects.create(
            name="Bihar", lat_min=24.3, lat_max=27.5, lng_min=83.3, lng_max=88.3
        )
        self.grant = grant_temporary_access(
            user_id=self.user.pk,
            region=self.region,
            access_level="read",
            reason="",
            expires_at=timezone.now() + timedelta(minutes=30),
            granted_by=self.manager,
        )

    def test_nothing_to_sweep_before_expiry(self):
        result = sweep_expired_grants()
        self.assertEqual(result.expired, 0)
        self.assertTrue(UserRegionAssignment.objects.filter(user=self.user).exists())

    def test_sweep_is_idempotent(self):
        later = self.grant.expires_at + timedelta(minutes=1)

        first = sweep_expired_grants(now=later)
        second = sweep_expired_grants(now=later)

        self.assertEqual(first.expired, 1)
        self.assertEqual(first.assignments_removed, 1)
        self.assertEqual(first.grants, [self.grant.pk])
        self.assertEqual(second.scanned, 0)
        self.assertEqual(second.expired, 0)
        self.assertEqual(AuditEntry.objects.filter(action="temporary_access.expire").count(), 1)
        self.assertEqual(
            Notification.objects.filter(category=Notification.CATEGORY_TEMPORARY_ACCESS_EXPIRED).count(),
            1,
        )
        self.grant.refresh_from_db()
        self.assertEqual(self.grant.swept_at, later)

    def test_revoked_grants_are_not_swept(self):
        revoke_temporary_access(self.grant.pk, revoked_by=self.manager)
        result = sweep_expired_grants(now=self.grant.expires_at + timedelta(hours=1))
        self.assertEqual(result.scanned, 0)

    def test_permanent_assignment_survives_sweep(self):
        UserRegionAssignment.objects.filter(user=self.user, region=self.region).update(
            source=UserRegionAssignment.SOURCE_PERMANENT
        )
        result = sweep_expired_grants(now=self.grant.expires_at)
        self.assertEqual(result.expired, 1)
        self.assertEqual(result.assignments_removed, 0)
        self.assertTrue(UserRegionAssignment.objects.filter(user=self.user).exists())

    def test_newer_live_grant_keeps_its_assignment(self):
        TemporaryAccessGrant.objects.filter(pk=self.grant.pk).update(
            expires_at=timezone.now() - timedelta(minutes=1)
        )
        renewal = grant_temporary_access(
            user_id=self.user.pk,
            region=self.region,
            access_level="write",
            reason="Extended survey",
            expires_at=timezone.now() + timedelta(hours=2),
            granted_by=self.manager,
        )

        result = sweep_expired_grants()

        self.assertEqual(result.grants, [self.grant.pk])
        self.assertEqual(result.assignments_removed, 0)
        assignment = UserRegionAssignment.objects.get(user=self.user, region=self.region)
        self.assertEqual(assignment.access_level, renewal.access_level)

    def test_sweep_serializes_on_the_user_row(self):
        with mock.patch.object(
            User.objects, "select_for_update", wraps=User.objects.select_for_update
        ) as locked:
            sweep_expired_grants(now=self.grant.expires_at)
        locked.assert_called()


class ExpiryWarningTests(TestCase):
    def setUp(self):
        self.manager = make_user("manager", ROLE_MANAGER)
        self.user = make_user("engineer")
        self.region = Region.objects.create(
            name="Goa", lat_min=14.9, lat_max=15.8, lng_min=73.7, lng_max=74.4
        )

    def _grant(self, hours):
        return TemporaryAccessGrant.objects.create(
            user=self.user,
            region=self.region,
            granted_by=self.manager,
            expires_at=timezone.now() + timedelta(hours=hours),
        )

    def test_warns_inside_window_once(self):
        grant = self._grant(24)

        first = notify_expiring_soon()
        second = notify_expiring_soon()

        self.assertEqual((first.scanned, first.sent), (1, 1))
        self.assertEqual((second.sent, second.skipped), (0, 1))
        notification = Notification.objects.get(
            category=Notification.CATEGORY_TEMPORARY_ACCESS_EXPIRING
        )
        self.assertEqual(notification.reference, f"temporary_access_grant:{grant.pk}")
        self.assertIn("Goa", notification.title)

    def test_grants_outside_window_are_ignored(self):
        self._grant(5)
        self._grant(48)
        result = notify_expiring_soon()
        self.assertEqual(result.scanned, 0)

    @override_settings(TEMPORARY_ACCESS_WARNING_WINDOW_HOURS=[1, 6])
    def test_window_is_configurable(self):
        self._grant(5)
        self.assertEqual(notify_expiring_soon().sent, 1)

    def test_failed_notification_counts_as_skipped(self):
        self._grant(24)
        with mock.patch("temporary_access.services.notify", return_value=None):
            result = notify_expiring_soon()
        self.assertEqual((result.sent, result.skipped), (0, 1))


class TimeRemainingTests(TestCase):
    def _grant_expiring_in(self, delta, now):
        return TemporaryAccessGrant(expires_at=now + delta)

    def test_display_formats(self):
        now = timezone.now()
        cases = [
            (timedelta(days=2, hours=3, minutes=10), "2d 3h"),
            (timedelta(hours=5, minutes=7), "5h 7m"),
            (timedelta(minutes=42, seconds=5), "42m"),
            (timedelta(seconds=20), "1m"),
            (timedelta(seconds=-5), "Expired"),
        ]
        for delta, expected in cases:
            with self.subTest(expected=expected):
                remaining = time_remaining(self._grant_expiring_in(delta, now), now=now)
                self.assertEqual(remaining.display, expected)

    def test_expired_reports_zero_seconds(self):
        now = timezone.now()
        remaining = time_remaining(self._grant_expiring_in(timedelta(hours=-1), now), now=now)
        self.assertTrue(remaining.expired)
        self.assertEqual(remaining.seconds, 0)

    def test_list_grants_rejects_unknown_status(self):
        with self.assertRaises(InvalidArgument):
            list_grants(status="pending")
