from django.contrib.auth import get_user_model
from django.test import TestCase

from accounts.models import UserProfile, get_user_role
from regions.models import Region, UserRegionAssignment
from scoping.roles import ROLE_ADMIN, ROLE_MANAGER, ROLE_USER, ROLE_VIEWER

User = get_user_model()


class UserProfileTests(TestCase):
    def test_profile_is_created_with_default_role(self):
        user = User.objects.create_user(username="engineer", password="testpass123")
        self.assertTrue(UserProfile.objects.filter(user=user).exists())
        self.assertEqual(get_user_role(user), ROLE_USER)

    def test_superuser_acts_as_admin(self):
        root = User.objects.create_superuser(username="root", password="testpass123")
        root.profile.role = ROLE_VIEWER
        root.profile.save()
        self.assertEqual(get_user_role(root), ROLE_ADMIN)

    def test_unknown_stored_role_degrades_to_viewer(self):
        user = User.objects.create_user(username="legacy", password="testpass123")
        user.profile.role = "OPERATOR"
        user.profile.save()
        self.assertEqual(get_user_role(user), ROLE_VIEWER)

    def test_display_name_falls_back_to_username(self):
        user = User.objects.create_user(username="engineer", password="testpass123")
        self.assertEqual(user.profile.display_name, "engineer")
        user.profile.full_name = "Asha Nair"
        self.assertEqual(user.profile.display_name, "Asha Nair")


class AuthenticatedUserApiTests(TestCase):
    def test_me_reports_role_and_scope(self):
        user = User.objects.create_user(
            username="engineer", email="engineer@example.com", password="testpass123"
        )
        region = Region.objects.create(
            name="Goa", lat_min=14.9, lat_max=15.8, lng_min=73.7, lng_max=74.4
        )
        UserRegionAssignment.objects.create(user=user, region=region)
        self.client.force_login(user)

        payload = self.client.get("/api/auth/me/").json()

        self.assertEqual(payload["username"], "engineer")
        self.assertEqual(payload["role"], ROLE_USER)
        self.assertFalse(payload["is_elevated"])
        self.assertFalse(payload["unrestricted"])
        self.assertEqual(payload["region_ids"], [region.pk])
        self.assertEqual(payload["permissions"]["audit_purge"]["POST"], [ROLE_ADMIN])

    def test_manager_is_unrestricted(self):
        manager = User.objects.create_user(username="manager", password="testpass123")
        manager.profile.role = ROLE_MANAGER
        manager.profile.save()
        self.client.force_login(manager)

        payload = self.client.get("/api/auth/me/").json()
        self.assertTrue(payload["is_elevated"])
        self.assertTrue(payload["unrestricted"])

    def test_token_login(self):
        User.objects.create_user(username="engineer", password="testpass123")
        response = self.client.post(
            "/api/auth/token/",
            data={"username": "engineer", "password": "testpass123"},
            content_type="application/json",
        )
        self.assertEqual(response.status_code, 200)
        token = response.json()["token"]

        me = self.client.get("/api/auth/me/", HTTP_AUTHORIZATION=f"Token {token}")
        self.assertEqual(me.status_code, 200)
