from django.contrib.auth import get_user_model
from django.test import TestCase
from django.urls import reverse

from rest_framework import status
from rest_framework.test import APIClient, APITestCase

from apps.utils.exceptions import NotFoundError

from .models import ShippingAddress
from .services import ShippingAddressService

User = get_user_model()

ADDRESS = {
    "name": "Head Office",
    "phone": "+919999999999",
    "address": "5th Floor, Tower B",
    "city": "Gurugram",
    "state": "Haryana",
    "country": "India",
    "pincode": "122002",
}


class ShippingAddressServiceTests(TestCase):
    def setUp(self):
        self.user = User.objects.create_user(email="book@example.com", name="Book")

    def test_new_default_clears_previous_default(self):
        first = ShippingAddressService.create_address(self.user, {**ADDRESS, "is_default": True})
        second = ShippingAddressService.create_address(self.user, {**ADDRESS, "is_default": True})

        first.refresh_from_db()
        self.assertFalse(first.is_default)
        self.assertTrue(second.is_default)
        self.assertEqual(ShippingAddress.objects.filter(user=self.user, is_default=True).count(), 1)

    def test_set_default(self):
        first = ShippingAddressService.create_address(self.user, {**ADDRESS, "is_default": True})
        second = ShippingAddressService.create_address(self.user, ADDRESS)

        ShippingAddressService.set_default_address(self.user, second.id)

        first.refresh_from_db()
        second.refresh_from_db()
        self.assertFalse(first.is_default)
        self.assertTrue(second.is_default)

    def test_other_users_address_is_not_found(self):
        other = User.objects.create_user(email="stranger@example.com", name="Stranger")
        theirs = ShippingAddressService.create_address(other, ADDRESS)

        with self.assertRaises(NotFoundError):
            ShippingAddressService.set_default_address(self.user, theirs.id)


class ShippingAddressAPITests(APITestCase):
    def setUp(self):
        self.client = APIClient()
        self.user = User.objects.create_user(email="api-book@example.com", name="Api")
        self.client.force_authenticate(self.user)

    def test_create_and_list(self):
        resp = self.client.post(
            reverse("shipping-address-list"),
            {**ADDRESS, "addressType": "Office", "isDefault": True},
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        self.assertEqual(resp.data["shippingAddress"]["addressType"], "Office")
        self.assertTrue(resp.data["shippingAddress"]["isDefault"])

        listing = self.client.get(reverse("shipping-address-list"))
        self.assertEqual(listing.status_code, status.HTTP_200_OK)
        self.assertEqual(len(listing.data), 1)

    def test_missing_fields_rejected(self):
        resp = self.client.post(reverse("shipping-address-list"), {"name": "Only name"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("phone", resp.data["errors"])

    def test_update_and_delete(self):
        address = ShippingAddressService.create_address(self.user, ADDRESS)
        url = reverse("shipping-address-detail", kwargs={"pk": address.id})

        resp = self.client.patch(url, {"city": "Faridabad"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        address.refresh_from_db()
        self.assertEqual(address.city, "Faridabad")

        resp = self.client.delete(url)
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertFalse(ShippingAddress.objects.filter(id=address.id).exists())

    def test_set_default_endpoint(self):
        ShippingAddressService.create_address(self.user, {**ADDRESS, "is_default": True})
        second = ShippingAddressService.create_address(self.user, ADDRESS)

        resp = self.client.post(reverse("shipping-address-set-default", kwargs={"pk": second.id}))
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertTrue(resp.data["shippingAddress"]["isDefault"])

    def test_cannot_read_other_users_address(self):
        other = User.objects.create_user(email="someone@example.com", name="Someone")
        theirs = ShippingAddressService.create_address(other, ADDRESS)

        resp = self.client.get(reverse("shipping-address-detail", kwargs={"pk": theirs.id}))
        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)
