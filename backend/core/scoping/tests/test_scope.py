from datetime import timedelta

from django.contrib.auth import get_user_model
from django.test import RequestFactory, TestCase
from django.utils import timezone

from regions.models import Region, UserRegionAssignment
from scoping.identity import Identity, identity_for_user, resolve_identity
from scoping.roles import ROLE_ADMIN, ROLE_MANAGER, ROLE_USER, ROLE_VIEWER
from scoping.scope import resolve_scope
from temporary_access.models import TemporaryAccessGrant
from temporary_access.services import grant_temporary_access, revoke_temporary_access

User = get_user_model()


def make_user(username, role=ROLE_USER, **extra):
    user = User.objects.create_user(username=username, password="testpass123", **extra)
    user.profile.role = role
    user.profile.save()
    return user


def make_region(name, lat_min, lat_max, lng_min, lng_max):
    return Region.objects.create(
        name=name,
        lat_min=lat_min,
        lat_max=lat_max,
        lng_min=lng_min,
        lng_max=lng_max,
    )


class ResolveScopeTests(TestCase):
    def setUp(self):
        self.now = timezone.now()
        self.manager = make_user("manager", ROLE_MANAGER)
        self.user = make_user("field_user", ROLE_USER)
        self.gujarat = make_region("Gujarat", 20.1, 24.7, 68.2, 74.5)
        self.kerala = make_region("Kerala", 8.2, 12.8, 74.8, 77.4)
        self.assam = make_region("Assam", 24.1, 28.2, 89.7, 96.0)

    def _grant(self, region, **kwargs):
        defaults = {
            "user": self.user,
            "region": region,
            "granted_by": self.manager,
            "expires_at": self.now + timedelta(hours=4),
        }
        defaults.update(kwargs)
        return TemporaryAccessGrant.objects.create(**defaults)

    def test_elevated_identity_is_unrestricted(self):
        scope = resolve_scope(identity_for_user(self.manager))
        self.assertTrue(scope.unrestricted)
        self.assertEqual(scope.region_ids, frozenset())
        self.assertIsNone(scope.target_user_id)

    def test_superuser_is_unrestricted(self):
        root = User.objects.create_superuser(username="root", password="testpass123")
        scope = resolve_scope(identity_for_user(root))
        self.assertTrue(scope.unrestricted)

    def test_user_without_assignments_sees_only_own_assets(self):
        scope = resolve_scope(identity_for_user(self.user))
        self.assertFalse(scope.unrestricted)
        self.assertEqual(scope.region_ids, frozenset())
        self.assertEqual(scope.owner_id, self.user.pk)

    def test_permanent_and_live_grant_regions_are_unioned(self):
        UserRegionAssignment.objects.create(user=self.user, region=self.gujarat)
        self._grant(self.kerala)

        scope = resolve_scope(identity_for_user(self.user), now=self.now)

        self.assertEqual(scope.region_ids, frozenset({self.gujarat.pk, self.kerala.pk}))

    def test_expired_grant_is_ignored_without_sweep(self):
        grant = self._grant(self.kerala, expires_at=self.now + timedelta(minutes=5))
        UserRegionAssignment.objects.create(
            user=self.user,
            region=self.kerala,
            source=UserRegionAssignment.SOURCE_TEMPORARY,
        )

        before = resolve_scope(identity_for_user(self.user), now=self.now)
        after = resolve_scope(identity_for_user(self.user), now=grant.expires_at)

        self.assertIn(self.kerala.pk, before.region_ids)
        self.assertNotIn(self.kerala.pk, after.region_ids)

    def test_revoked_grant_is_ignored(self):
        self._grant(self.assam, revoked_at=self.now, revoked_by=self.manager)
        scope = resolve_scope(identity_for_user(self.user), now=self.now)
        self.assertNotIn(self.assam.pk, scope.region_ids)

    def test_revoking_sole_source_grant_removes_region(self):
        grant = grant_temporary_access(
            user_id=self.user.pk,
            region=self.kerala,
            access_level="read",
            reason="Flood survey",
            expires_at=timezone.now() + timedelta(hours=6),
            granted_by=self.manager,
        )
        self.assertIn(self.kerala.pk, resolve_scope(identity_for_user(self.user)).region_ids)

        revoke_temporary_access(grant.pk, revoked_by=self.manager)

        self.assertEqual(resolve_scope(identity_for_user(self.user)).region_ids, frozenset())

    def test_live_grant_to_inactive_region_is_ignored(self):
        self._grant(self.kerala)
        self.kerala.is_active = False
        self.kerala.save()
        scope = resolve_scope(identity_for_user(self.user), now=self.now)
        self.assertEqual(scope.region_ids, frozenset())

    def test_orphan_temporary_assignment_is_not_trusted(self):
        UserRegionAssignment.objects.create(
            user=self.user,
            region=self.assam,
            source=UserRegionAssignment.SOURCE_TEMPORARY,
        )
        scope = resolve_scope(identity_for_user(self.user), now=self.now)
        self.assertEqual(scope.region_ids, frozenset())

    def test_inactive_region_assignment_is_ignored(self):
        UserRegionAssignment.objects.create(user=self.user, region=self.gujarat)
        self.gujarat.is_active = False
        self.gujarat.save()
        scope = resolve_scope(identity_for_user(self.user))
        self.assertEqual(scope.region_ids, frozenset())

    def test_anonymous_identity_sees_nothing(self):
        scope = resolve_scope(Identity(user_id=None, role=ROLE_VIEWER))
        self.assertFalse(scope.unrestricted)
        self.assertIsNone(scope.owner_id)


class ResolveIdentityTests(TestCase):
    def setUp(self):
        self.factory = RequestFactory()
        self.admin = make_user("admin", ROLE_ADMIN)
        self.user = make_user("user", ROLE_USER)

    def _request(self, user, **params):
        request = self.factory.get("/api/infrastructure/viewport/", params)
        request.user = user
        return request

    def test_elevated_caller_can_view_as_another_user(self):
        identity = resolve_identity(self._request(self.admin, filter="user", userId=str(self.user.pk)))
        self.assertEqual(identity.target_user_id, self.user.pk)
        self.assertTrue(resolve_scope(identity).unrestricted)

    def test_invalid_target_falls_back_to_caller(self):
        identity = resolve_identity(self._request(self.admin, filter="user", userId="-3"))
        self.assertEqual(identity.target_user_id, self.admin.pk)

        identity = resolve_identity(self._request(self.admin, filter="user", userId="abc"))
        self.assertEqual(identity.target_user_id, self.admin.pk)

    def test_filter_without_user_id_is_ignored(self):
        identity = resolve_identity(self._request(self.admin, filter="user"))
        self.assertIsNone(identity.target_user_id)

    def test_non_elevated_caller_cannot_view_as(self):
        identity = resolve_identity(self._request(self.user, filter="user", userId=str(self.admin.pk)))
        self.assertIsNone(identity.target_user_id)
        self.assertEqual(identity.role, ROLE_USER)
