# apps/orders/tests.py
from decimal import Decimal
from unittest.mock import patch

from django.contrib.auth import get_user_model
from django.db import DatabaseError
from django.test import TestCase
from django.urls import reverse

from rest_framework import status
from rest_framework.test import APIClient, APITestCase

from apps.catalog.models import Product
from apps.shipping.models import ShippingAddress
from apps.utils.exceptions import NotFoundError, ValidationError

from .addresses import AddressResolver
from .models import CartItem, Order, OrderCancellation, OrderItem, OrderTimeline
from .pricing import LineItemAggregator, round2
from .services import CartService, OrderService, normalize_payment_method
from .types import OrderItemRequest, OrderRequest

User = get_user_model()

PROFILE_ADDRESS = {
    "address": "12 MG Road",
    "city": "Bengaluru",
    "state": "Karnataka",
    "country": "India",
    "pincode": "560001",
}


def make_user(email, role="General", with_address=True, **extra):
    fields = dict(PROFILE_ADDRESS) if with_address else {}
    fields.update(extra)
    return User.objects.create_user(
        email=email,
        password="testpass123",
        name=email.split("@")[0].title(),
        role=role,
        mobile="+919876543210",
        **fields,
    )


def make_product(name, general, architect=None, dealer=None, gst="0", **extra):
    return Product.objects.create(
        name=name,
        general_price=Decimal(general),
        architect_price=Decimal(architect or general),
        dealer_price=Decimal(dealer or general),
        gst=Decimal(gst),
        **extra,
    )


def make_address(user, **extra):
    data = {
        "name": "Warehouse Desk",
        "phone": "+918888888888",
        "address": "Plot 4, Industrial Area",
        "city": "Pune",
        "state": "Maharashtra",
        "country": "India",
        "pincode": "411001",
    }
    data.update(extra)
    return ShippingAddress.objects.create(user=user, **data)


class RoundingTests(TestCase):
    def test_round2_is_half_up(self):
        self.assertEqual(round2(Decimal("2.345")), Decimal("2.35"))
        self.assertEqual(round2(Decimal("2.344")), Decimal("2.34"))
        self.assertEqual(round2(Decimal("0.005")), Decimal("0.01"))


class LineItemAggregatorTests(TestCase):
    def setUp(self):
        self.user = make_user("buyer@example.com")
        self.tiles = make_product("Tiles", "100.00", "90.00", "80.00", gst="18")
        self.grout = make_product("Grout", "50.50", gst="0")

    def test_totals_for_mixed_gst_lines(self):
        items = [OrderItemRequest(self.tiles.id, 2), OrderItemRequest(self.grout.id, 3)]

        result = LineItemAggregator.aggregate(self.user, items, "General")

        self.assertEqual(result.subtotal, Decimal("351.50"))
        self.assertEqual(result.gst_total, Decimal("36.00"))
        self.assertEqual(result.grand_total, Decimal("387.50"))

        tiles_line = result.lines[0]
        self.assertEqual(tiles_line.subtotal, Decimal("200.00"))
        self.assertEqual(tiles_line.gst_amount, Decimal("36.00"))
        self.assertEqual(tiles_line.total, Decimal("236.00"))

    def test_role_price_is_used(self):
        result = LineItemAggregator.aggregate(self.user, [OrderItemRequest(self.tiles.id, 1)], "Dealer")
        self.assertEqual(result.lines[0].unit_price, Decimal("80.00"))

    def test_missing_quantity_defaults_to_one(self):
        result = LineItemAggregator.aggregate(self.user, [OrderItemRequest(self.grout.id)], "General")
        self.assertEqual(result.lines[0].quantity, 1)

    def test_duplicate_products_are_merged(self):
        items = [OrderItemRequest(self.grout.id, 1), OrderItemRequest(self.grout.id, 2)]
        result = LineItemAggregator.aggregate(self.user, items, "General")

        self.assertEqual(len(result.lines), 1)
        self.assertEqual(result.lines[0].quantity, 3)

    def test_negative_quantity_is_rejected(self):
        with self.assertRaises(ValidationError):
            LineItemAggregator.aggregate(self.user, [OrderItemRequest(self.grout.id, -2)], "General")

    def test_unknown_product_raises_not_found(self):
        with self.assertRaises(NotFoundError) as ctx:
            LineItemAggregator.aggregate(self.user, [OrderItemRequest(999999, 1)], "General")
        self.assertIn("999999", ctx.exception.message)

    def test_inactive_product_is_rejected(self):
        self.grout.is_active = False
        self.grout.save()
        with self.assertRaises(ValidationError):
            LineItemAggregator.aggregate(self.user, [OrderItemRequest(self.grout.id, 1)], "General")

    def test_cart_used_when_no_items_given(self):
        CartItem.objects.create(user=self.user, product=self.tiles, quantity=4)
        result = LineItemAggregator.aggregate(self.user, [], "Architect")

        self.assertEqual(len(result.lines), 1)
        self.assertEqual(result.lines[0].quantity, 4)
        self.assertEqual(result.lines[0].unit_price, Decimal("90.00"))

    def test_cart_skips_inactive_products(self):
        self.grout.is_active = False
        self.grout.save()
        CartItem.objects.create(user=self.user, product=self.grout, quantity=1)

        with self.assertRaises(ValidationError):
            LineItemAggregator.aggregate(self.user, [], "General")


class PaymentMethodTests(TestCase):
    def test_aliases(self):
        self.assertEqual(normalize_payment_method("gpay"), "UPI")
        self.assertEqual(normalize_payment_method("PhonePe"), "UPI")
        self.assertEqual(normalize_payment_method("NEFT"), "BankTransfer")
        self.assertEqual(normalize_payment_method("cash"), "COD")
        self.assertEqual(normalize_payment_method("gateway"), "Gateway")

    def test_unknown_method_passes_through(self):
        self.assertEqual(normalize_payment_method("Crypto"), "Crypto")


class AddressResolverTests(TestCase):
    def setUp(self):
        self.user = make_user("profile@example.com")

    def test_default_resolution_is_repeatable(self):
        first = AddressResolver.resolve(self.user, "default")
        second = AddressResolver.resolve(self.user, "default")

        self.assertEqual(first.type, "default")
        self.assertEqual(first.data, second.data)
        self.assertEqual(first.data["source"], "user_profile")
        self.assertFalse(ShippingAddress.objects.filter(user=self.user).exists())

    def test_incomplete_profile_falls_back_to_saved_address(self):
        user = make_user("nocity@example.com", with_address=False)
        make_address(user, name="Old", is_default=False)
        preferred = make_address(user, name="Preferred", is_default=True)

        snapshot = AddressResolver.resolve(user, "default")

        self.assertEqual(snapshot.type, "shipping")
        self.assertEqual(snapshot.data["source"], "address_fallback")
        self.assertEqual(snapshot.shipping_address_id, preferred.id)

    def test_no_address_at_all(self):
        user = make_user("homeless@example.com", with_address=False)
        with self.assertRaises(ValidationError):
            AddressResolver.resolve(user, "default")

    def test_new_address_accepts_aliases_and_is_saved(self):
        payload = {
            "name": "Site Office",
            "phone": "+917777777777",
            "street": "Sector 21",
            "city": "Noida",
            "state": "UP",
            "country": "India",
            "postalCode": "201301",
            "addressType": "Office",
        }
        snapshot = AddressResolver.resolve(self.user, "new", new_address_data=payload)

        self.assertEqual(snapshot.type, "new")
        saved = ShippingAddress.objects.get(id=snapshot.shipping_address_id)
        self.assertEqual(saved.address, "Sector 21")
        self.assertEqual(saved.pincode, "201301")
        self.assertEqual(saved.address_type, "Office")

    def test_new_address_missing_fields(self):
        with self.assertRaises(ValidationError) as ctx:
            AddressResolver.resolve(self.user, "new", new_address_data={"name": "X", "city": " "})
        self.assertIn("phone", ctx.exception.message)
        self.assertIn("city", ctx.exception.message)

    def test_new_address_field_over_column_limit(self):
        payload = {
            "name": "Site Office",
            "phone": "+91" + "7" * 30,
            "address": "Sector 21",
            "city": "Noida",
            "state": "UP",
            "country": "India",
            "pincode": "201301",
        }
        with self.assertRaises(ValidationError) as ctx:
            AddressResolver.resolve(self.user, "new", new_address_data=payload)
        self.assertIn("phone", ctx.exception.message)
        self.assertFalse(ShippingAddress.objects.filter(user=self.user).exists())

    def test_foreign_shipping_address_is_not_found(self):
        other = make_user("other@example.com")
        foreign = make_address(other)
        with self.assertRaises(NotFoundError):
            AddressResolver.resolve(self.user, "shipping", shipping_address_id=foreign.id)


class CreateOrderServiceTests(TestCase):
    def setUp(self):
        self.user = make_user("orders@example.com")
        self.tiles = make_product("Tiles", "100.00", gst="18")
        self.grout = make_product("Grout", "50.50")

    def _request(self, **kwargs):
        kwargs.setdefault("items", (OrderItemRequest(self.tiles.id, 2), OrderItemRequest(self.grout.id, 3)))
        return OrderRequest(**kwargs)

    def test_order_and_items_are_persisted(self):
        created = OrderService.create_order(self.user, self._request(payment_method="upi"))
        order = created.order

        self.assertEqual(order.total, Decimal("387.50"))
        self.assertEqual(order.gst_amount, Decimal("36.00"))
        self.assertEqual(order.payment_method, "UPI")
        self.assertEqual(order.status, Order.Status.PENDING)
        self.assertEqual(order.payment_status, Order.PaymentStatus.AWAITING)
        self.assertEqual(order.items.count(), 2)
        self.assertEqual(order.delivery_address_type, "default")
        self.assertTrue(OrderTimeline.objects.filter(order=order, status="Pending").exists())

    def test_empty_payment_method_is_stored_as_gateway(self):
        created = OrderService.create_order(self.user, self._request(payment_method=""))
        self.assertEqual(created.order.payment_method, "Gateway")

    def test_unknown_payment_method_passes_model_validation(self):
        created = OrderService.create_order(self.user, self._request(payment_method="Crypto"))
        self.assertEqual(created.order.payment_method, "Crypto")
        created.order.full_clean()

    def test_new_address_is_kept_when_order_fails(self):
        new_address = {
            "name": "Site Office",
            "phone": "+917777777777",
            "address": "Sector 21",
            "city": "Noida",
            "state": "UP",
            "country": "India",
            "pincode": "201301",
        }
        request = OrderRequest(
            address_type="new",
            new_address_data=new_address,
            items=(OrderItemRequest(424242, 1),),
        )
        with self.assertRaises(NotFoundError):
            OrderService.create_order(self.user, request)

        self.assertEqual(Order.objects.count(), 0)
        self.assertTrue(ShippingAddress.objects.filter(user=self.user, address="Sector 21").exists())

    def test_ordered_products_leave_the_cart(self):
        CartItem.objects.create(user=self.user, product=self.tiles, quantity=1)
        keep = make_product("Adhesive", "10.00")
        CartItem.objects.create(user=self.user, product=keep, quantity=1)

        OrderService.create_order(self.user, self._request())

        remaining = list(CartItem.objects.filter(user=self.user).values_list("product_id", flat=True))
        self.assertEqual(remaining, [keep.id])

    def test_cart_clear_failure_does_not_fail_order(self):
        CartItem.objects.create(user=self.user, product=self.tiles, quantity=1)

        with patch.object(CartItem.objects, "filter", side_effect=DatabaseError("table locked")):
            created = OrderService.create_order(self.user, self._request())

        self.assertTrue(Order.objects.filter(id=created.order.id).exists())
        self.assertEqual(OrderItem.objects.filter(order=created.order).count(), 2)
        self.assertTrue(CartItem.objects.filter(user=self.user, product=self.tiles).exists())

    def test_empty_cart_creates_nothing(self):
        with self.assertRaises(ValidationError):
            OrderService.create_order(self.user, OrderRequest(payment_method="COD"))
        self.assertEqual(Order.objects.count(), 0)

    def test_unknown_product_rolls_back(self):
        request = self._request(items=(OrderItemRequest(self.tiles.id, 1), OrderItemRequest(424242, 1)))
        with self.assertRaises(NotFoundError):
            OrderService.create_order(self.user, request)
        self.assertEqual(Order.objects.count(), 0)
        self.assertEqual(OrderItem.objects.count(), 0)

    def test_crm_sync_queued_after_commit(self):
        with patch("apps.orders.services.sync_order_to_crm.delay") as delay:
            with self.captureOnCommitCallbacks(execute=True):
                created = OrderService.create_order(self.user, self._request())

        delay.assert_called_once()
        self.assertEqual(delay.call_args[0][:2], (created.order.id, "created"))


class OrderCreateAPITests(APITestCase):
    def setUp(self):
        self.client = APIClient()
        self.user = make_user("api@example.com")
        self.client.force_authenticate(self.user)
        self.tiles = make_product("Tiles", "100.00", gst="18")
        self.grout = make_product("Grout", "50.50")
        self.url = reverse("order-list")

    def test_create_order_success(self):
        payload = {
            "paymentMethod": "Gateway",
            "items": [
                {"productId": self.tiles.id, "quantity": 2},
                {"productId": self.grout.id, "quantity": 3},
            ],
            "notes": "Deliver before noon",
        }
        resp = self.client.post(self.url, payload, format="json")

        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        self.assertTrue(resp.data["success"])
        order = resp.data["order"]
        self.assertEqual(order["total"], Decimal("387.50"))
        self.assertEqual(order["subtotal"], Decimal("351.50"))
        self.assertEqual(order["itemCount"], 2)
        self.assertTrue(order["redirectToPayment"])
        self.assertEqual(order["deliveryAddress"]["type"], "default")
        self.assertEqual(order["orderItems"][0]["product"]["name"], "Tiles")

    def test_cod_does_not_redirect_to_payment(self):
        payload = {"paymentMethod": "cod", "items": [{"id": self.grout.id}]}
        resp = self.client.post(self.url, payload, format="json")

        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        self.assertEqual(resp.data["order"]["paymentMethod"], "COD")
        self.assertFalse(resp.data["order"]["redirectToPayment"])

    def test_empty_cart_returns_400_and_no_order(self):
        resp = self.client.post(self.url, {"paymentMethod": "UPI"}, format="json")

        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(resp.data["success"])
        self.assertEqual(Order.objects.count(), 0)

    def test_foreign_shipping_address_returns_400_and_no_rows(self):
        other = make_user("someoneelse@example.com")
        foreign = make_address(other)
        payload = {
            "paymentMethod": "UPI",
            "addressType": "shipping",
            "shippingAddressId": foreign.id,
            "items": [{"productId": self.tiles.id, "quantity": 1}],
        }
        resp = self.client.post(self.url, payload, format="json")

        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(resp.data["code"], "not_found")
        self.assertEqual(Order.objects.count(), 0)
        self.assertEqual(OrderItem.objects.count(), 0)

    def test_own_shipping_address_is_snapshotted(self):
        mine = make_address(self.user, city="Nagpur")
        payload = {
            "shippingAddressId": mine.id,
            "items": [{"productId": self.tiles.id, "quantity": 1}],
        }
        resp = self.client.post(self.url, payload, format="json")

        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        order = Order.objects.get(id=resp.data["order"]["id"])
        self.assertEqual(order.delivery_address_type, "shipping")
        self.assertEqual(order.delivery_address_data["city"], "Nagpur")
        self.assertEqual(order.shipping_address_ref, mine.id)

        # Later edits to the saved address do not touch the order
        mine.city = "Indore"
        mine.save()
        order.refresh_from_db()
        self.assertEqual(order.delivery_address_data["city"], "Nagpur")

    def test_empty_new_address_payload_is_rejected(self):
        payload = {
            "paymentMethod": "COD",
            "addressType": "new",
            "newAddressData": {},
            "items": [{"productId": self.tiles.id, "quantity": 1}],
        }
        resp = self.client.post(self.url, payload, format="json")

        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("Missing required address fields", resp.data["message"])
        self.assertEqual(Order.objects.count(), 0)

    def test_invalid_product_id_type(self):
        resp = self.client.post(self.url, {"items": [{"productId": "abc"}]}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("errors", resp.data)

    def test_requires_authentication(self):
        self.client.force_authenticate(None)
        resp = self.client.post(self.url, {}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_401_UNAUTHORIZED)


class OrderManagementAPITests(APITestCase):
    def setUp(self):
        self.client = APIClient()
        self.customer = make_user("customer@example.com")
        self.other = make_user("other@example.com")
        self.sales = make_user("sales@example.com", role="Sales")
        self.manager = make_user("manager@example.com", role="Manager")
        self.admin = make_user("admin@example.com", role="Admin")

        self.product = make_product("Tiles", "100.00", gst="18")
        self.order = OrderService.create_order(
            self.customer,
            OrderRequest(payment_method="UPI", items=(OrderItemRequest(self.product.id, 1),)),
        ).order
        self.other_order = OrderService.create_order(
            self.other,
            OrderRequest(payment_method="UPI", items=(OrderItemRequest(self.product.id, 2),)),
        ).order

    def _cancel_url(self, order):
        return reverse("order-cancel", kwargs={"pk": order.id})

    def _detail_url(self, order):
        return reverse("order-detail", kwargs={"pk": order.id})

    def test_list_only_shows_own_orders(self):
        self.client.force_authenticate(self.customer)
        resp = self.client.get(reverse("order-list"))

        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        ids = [o["id"] for o in resp.data["orders"]]
        self.assertEqual(ids, [self.order.id])
        self.assertEqual(resp.data["pagination"]["total"], 1)
        self.assertEqual(resp.data["orderSummary"]["statusBreakdown"]["Pending"]["count"], 1)

    def test_staff_list_shows_all_and_filters(self):
        self.client.force_authenticate(self.sales)
        resp = self.client.get(reverse("order-list"), {"userId": self.other.id})

        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual([o["id"] for o in resp.data["orders"]], [self.other_order.id])
        self.assertEqual(resp.data["orderSummary"]["statusBreakdown"]["Pending"]["count"], 2)

    def test_status_filter(self):
        Order.objects.filter(id=self.other_order.id).update(status=Order.Status.SHIPPED)
        self.client.force_authenticate(self.manager)
        resp = self.client.get(reverse("order-list"), {"status": "Shipped"})

        self.assertEqual([o["id"] for o in resp.data["orders"]], [self.other_order.id])

    def test_detail_of_other_users_order_is_404(self):
        self.client.force_authenticate(self.customer)
        resp = self.client.get(self._detail_url(self.other_order))
        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)
        self.assertFalse(resp.data["success"])

    def test_detail_reports_price_change(self):
        self.product.general_price = Decimal("120.00")
        self.product.save()

        self.client.force_authenticate(self.customer)
        resp = self.client.get(self._detail_url(self.order))

        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        product = resp.data["order"]["orderItems"][0]["product"]
        self.assertEqual(product["orderPrice"], Decimal("100.00"))
        self.assertEqual(product["currentPrice"], Decimal("120.00"))
        self.assertEqual(product["priceChange"], Decimal("20.00"))

    def test_customer_can_cancel_pending_order(self):
        self.client.force_authenticate(self.customer)
        resp = self.client.put(self._cancel_url(self.order), {"reason": "Ordered twice"}, format="json")

        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, Order.Status.CANCELLED)
        cancellation = OrderCancellation.objects.get(order=self.order)
        self.assertEqual(cancellation.cancelled_by, "CUSTOMER")
        self.assertEqual(cancellation.reason, "Ordered twice")

    def test_customer_cannot_cancel_processing_order(self):
        Order.objects.filter(id=self.order.id).update(status=Order.Status.PROCESSING)
        self.client.force_authenticate(self.customer)
        resp = self.client.put(self._cancel_url(self.order), {}, format="json")

        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("Cannot cancel order with status: Processing", resp.data["message"])

    def test_staff_can_cancel_shipped_order(self):
        Order.objects.filter(id=self.order.id).update(status=Order.Status.SHIPPED)
        self.client.force_authenticate(self.sales)
        resp = self.client.put(self._cancel_url(self.order), {"reason": "Damaged"}, format="json")

        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(OrderCancellation.objects.get(order=self.order).cancelled_by, "STAFF")

    def test_other_user_cannot_cancel(self):
        self.client.force_authenticate(self.other)
        resp = self.client.put(self._cancel_url(self.order), {}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)

    def test_staff_update_follows_transitions(self):
        self.client.force_authenticate(self.manager)

        resp = self.client.patch(self._detail_url(self.order), {"status": "Shipped"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)

        resp = self.client.patch(
            self._detail_url(self.order),
            {"status": "Processing", "trackingNumber": "TRK-1", "paymentStatus": "Approved"},
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, "Processing")
        self.assertEqual(self.order.tracking_number, "TRK-1")
        self.assertEqual(self.order.payment_status, "Approved")
        self.assertTrue(OrderTimeline.objects.filter(order=self.order, status="Processing").exists())

    def test_update_without_fields(self):
        self.client.force_authenticate(self.manager)
        resp = self.client.patch(self._detail_url(self.order), {}, format="json")

        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(resp.data["message"], "No valid fields to update")

    def test_customer_cannot_update(self):
        self.client.force_authenticate(self.customer)
        resp = self.client.patch(self._detail_url(self.order), {"notes": "x"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)

    def test_only_admin_can_delete(self):
        self.client.force_authenticate(self.manager)
        resp = self.client.delete(self._detail_url(self.order))
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)

        self.client.force_authenticate(self.admin)
        resp = self.client.delete(self._detail_url(self.order))
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertFalse(Order.objects.filter(id=self.order.id).exists())
        self.assertFalse(OrderItem.objects.filter(order_id=self.order.id).exists())

    def test_stats_for_staff(self):
        self.client.force_authenticate(self.manager)
        resp = self.client.get(reverse("order-stats"))

        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["stats"]["totalOrders"], 2)
        # 118.00 + 236.00
        self.assertEqual(resp.data["stats"]["totalValue"], Decimal("354.00"))
        self.assertEqual(resp.data["stats"]["averageOrderValue"], Decimal("177.00"))
        self.assertEqual(len(resp.data["recentOrders"]), 2)

    def test_sales_stats_cover_own_orders_only(self):
        self.client.force_authenticate(self.sales)
        resp = self.client.get(reverse("order-stats"))

        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["stats"]["totalOrders"], 0)

    def test_stats_forbidden_for_customer(self):
        self.client.force_authenticate(self.customer)
        resp = self.client.get(reverse("order-stats"))
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)

    def test_available_addresses(self):
        make_address(self.customer, is_default=True)
        self.client.force_authenticate(self.customer)
        resp = self.client.get(reverse("order-addresses"))

        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertTrue(resp.data["summary"]["hasDefaultAddress"])
        self.assertEqual(resp.data["summary"]["totalShippingAddresses"], 1)
        self.assertEqual(resp.data["addresses"]["defaultAddress"]["source"], "user_profile")


class CartAPITests(APITestCase):
    def setUp(self):
        self.client = APIClient()
        self.user = make_user("cart@example.com", role="Dealer")
        self.client.force_authenticate(self.user)
        self.product = make_product("Tiles", "100.00", "90.00", "80.00")

    def test_add_increments_existing_line(self):
        url = reverse("cart-list")
        self.client.post(url, {"productId": self.product.id, "quantity": 2}, format="json")
        resp = self.client.post(url, {"productId": self.product.id, "quantity": 3}, format="json")

        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        self.assertEqual(CartItem.objects.get(user=self.user).quantity, 5)

    def test_list_uses_role_price(self):
        CartService.add_item(self.user, self.product.id, 2)
        resp = self.client.get(reverse("cart-list"))

        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["items"][0]["product"]["currentPrice"], Decimal("80.00"))
        self.assertEqual(resp.data["total"], Decimal("160.00"))

    def test_update_and_remove(self):
        item = CartService.add_item(self.user, self.product.id, 1)
        url = reverse("cart-detail", kwargs={"pk": item.id})

        resp = self.client.put(url, {"quantity": 7}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        item.refresh_from_db()
        self.assertEqual(item.quantity, 7)

        resp = self.client.delete(url)
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertFalse(CartItem.objects.filter(id=item.id).exists())

    def test_cannot_touch_other_users_cart(self):
        other = make_user("cartother@example.com")
        item = CartService.add_item(other, self.product.id, 1)

        resp = self.client.delete(reverse("cart-detail", kwargs={"pk": item.id}))
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertTrue(CartItem.objects.filter(id=item.id).exists())

    def test_cannot_add_inactive_product(self):
        self.product.is_active = False
        self.product.save()
        resp = self.client.post(reverse("cart-list"), {"productId": self.product.id}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
