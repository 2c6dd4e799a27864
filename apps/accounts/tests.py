from django.test import TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from apps.accounts.models import User


class UserModelTests(TestCase):

    def test_create_user_normalizes_email(self):
        user = User.objects.create_user(email="Dealer@Example.COM", password="pass12345", name="Dealer")
        self.assertEqual(user.email, "Dealer@example.com")
        self.assertEqual(user.role, "General")
        self.assertTrue(user.check_password("pass12345"))

    def test_create_superuser_is_super_admin(self):
        admin = User.objects.create_superuser(email="root@example.com", password="pass12345", name="Root")
        self.assertEqual(admin.role, "SuperAdmin")
        self.assertEqual(admin.status, "Approved")
        self.assertTrue(admin.is_order_staff)
        self.assertTrue(admin.is_admin_role)

    def test_role_flags(self):
        sales = User.objects.create_user(email="sales@example.com", name="Sales", role="Sales")
        support = User.objects.create_user(email="support@example.com", name="Support", role="Support")

        self.assertTrue(sales.is_order_staff)
        self.assertFalse(sales.is_admin_role)
        self.assertFalse(support.is_order_staff)

    def test_has_complete_address(self):
        user = User.objects.create_user(
            email="addr@example.com", name="Addr",
            address="1 Main St", city="Delhi", state="Delhi", country="India",
        )
        self.assertFalse(user.has_complete_address)
        user.pincode = "110001"
        self.assertTrue(user.has_complete_address)


class AuthAPITests(TestCase):

    def setUp(self):
        self.client = APIClient()
        self.user = User.objects.create_user(
            email="architect@example.com", password="pass12345", name="Ar", role="Architect",
        )

    def test_obtain_token_and_fetch_profile(self):
        resp = self.client.post(
            reverse("token-obtain"),
            {"email": "architect@example.com", "password": "pass12345"},
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertIn("access", resp.data)

        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {resp.data['access']}")
        me = self.client.get(reverse("user-me"))
        self.assertEqual(me.status_code, status.HTTP_200_OK)
        self.assertEqual(me.data["role"], "Architect")
        self.assertFalse(me.data["hasCompleteAddress"])

    def test_wrong_password(self):
        resp = self.client.post(
            reverse("token-obtain"),
            {"email": "architect@example.com", "password": "nope"},
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertFalse(resp.data["success"])

    def test_profile_update_cannot_change_role(self):
        self.client.force_authenticate(self.user)
        resp = self.client.patch(
            reverse("user-me"),
            {"role": "Dealer", "city": "Jaipur"},
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.user.refresh_from_db()
        self.assertEqual(self.user.role, "Architect")
        self.assertEqual(self.user.city, "Jaipur")

    def test_me_requires_auth(self):
        resp = self.client.get(reverse("user-me"))
        self.assertEqual(resp.status_code, status.HTTP_401_UNAUTHORIZED)
