# apps/catalog/tests.py
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.test import TestCase
from django.urls import reverse

from rest_framework import status
from rest_framework.test import APIClient, APITestCase

from .models import Category, Product
from .pricing import resolve_price
from .serializers import ProductDisplaySerializer, build_image_url

User = get_user_model()


def make_product(**extra):
    fields = {
        "name": "Vitrified Tile",
        "general_price": Decimal("100.00"),
        "architect_price": Decimal("90.00"),
        "dealer_price": Decimal("80.00"),
        "gst": Decimal("18.00"),
    }
    fields.update(extra)
    return Product.objects.create(**fields)


class CategoryModelTests(TestCase):
    def test_category_slug_auto_generated_and_unique(self):
        parent = Category.objects.create(name="Tiles")
        c1 = Category.objects.create(name="Floor Tiles", parent=parent)
        c2 = Category.objects.create(name="Floor Tiles", parent=parent)

        self.assertNotEqual(c1.slug, c2.slug)
        self.assertTrue(c1.slug.startswith("floor-tiles"))
        self.assertTrue(c2.slug.startswith("floor-tiles"))


class ResolvePriceTests(TestCase):
    def setUp(self):
        self.product = make_product()

    def test_tier_roles(self):
        self.assertEqual(resolve_price(self.product, "Dealer"), Decimal("80.00"))
        self.assertEqual(resolve_price(self.product, "Architect"), Decimal("90.00"))

    def test_everyone_else_pays_general_price(self):
        for role in ("General", "customer", "Admin", "", None, "Wholesaler"):
            self.assertEqual(resolve_price(self.product, role), Decimal("100.00"), role)


class ProductModelTests(TestCase):
    def test_tier_order_is_validated(self):
        product = Product(
            name="Bad tiers",
            general_price=Decimal("100.00"),
            architect_price=Decimal("120.00"),
            dealer_price=Decimal("80.00"),
        )
        with self.assertRaises(ValidationError):
            product.full_clean()

    def test_gst_above_hundred_is_invalid(self):
        product = make_product()
        product.gst = Decimal("150.00")
        with self.assertRaises(ValidationError):
            product.full_clean()


class ProductDisplayTests(TestCase):
    def test_display_uses_role_from_context(self):
        category = Category.objects.create(name="Sanitary")
        product = make_product(category=category, image="tile.jpg", images=["a.jpg", "https://cdn.example.com/b.jpg"])

        data = ProductDisplaySerializer(product, context={"role": "Dealer"}).data

        self.assertEqual(data["currentPrice"], Decimal("80.00"))
        self.assertEqual(data["imageUrl"], "/uploads/products/tile.jpg")
        self.assertEqual(data["imageUrls"][1], "https://cdn.example.com/b.jpg")
        self.assertEqual(data["category"]["name"], "Sanitary")

    def test_image_url_passthrough(self):
        self.assertIsNone(build_image_url(None))
        self.assertEqual(build_image_url("/uploads/x.png"), "/uploads/x.png")


class ProductViewSetTests(APITestCase):
    def setUp(self):
        self.client = APIClient()
        self.dealer = User.objects.create_user(email="dealer@example.com", password="testpass", name="D", role="Dealer")
        self.active = make_product(name="Active Tile")
        self.inactive = make_product(name="Old Tile", is_active=False)

    def test_list_only_active_products_with_role_price(self):
        self.client.force_authenticate(self.dealer)
        resp = self.client.get(reverse("product-list"))

        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        names = [item["name"] for item in resp.data["results"]]
        self.assertEqual(names, ["Active Tile"])
        self.assertEqual(resp.data["results"][0]["currentPrice"], Decimal("80.00"))

    def test_requires_authentication(self):
        resp = self.client.get(reverse("product-list"))
        self.assertEqual(resp.status_code, status.HTTP_401_UNAUTHORIZED)
