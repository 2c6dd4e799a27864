from rest_framework import serializers

from apps.catalog.serializers import ProductDisplaySerializer

from .models import CartItem, Order, OrderCancellation, OrderItem, OrderTimeline
from .pricing import round2
from .types import OrderItemRequest, OrderRequest


# ---------------------------------------------------------------------------
# Input
# ---------------------------------------------------------------------------

class OrderItemInputSerializer(serializers.Serializer):
    productId = serializers.IntegerField(required=False)
    id = serializers.IntegerField(required=False)
    quantity = serializers.IntegerField(required=False, allow_null=True)

    def validate(self, attrs):
        if not attrs.get("productId") and not attrs.get("id"):
            raise serializers.ValidationError("Each item requires a productId.")
        return attrs


class CreateOrderSerializer(serializers.Serializer):
    paymentMethod = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=50)
    items = OrderItemInputSerializer(many=True, required=False)
    addressType = serializers.ChoiceField(choices=Order.AddressType.choices, default=Order.AddressType.DEFAULT)
    shippingAddressId = serializers.IntegerField(required=False, allow_null=True)
    newAddressData = serializers.DictField(required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    expectedDeliveryDate = serializers.DateTimeField(required=False, allow_null=True)

    def to_order_request(self) -> OrderRequest:
        data = self.validated_data
        items = tuple(
            OrderItemRequest(
                product_id=item.get("productId") or item.get("id"),
                quantity=item.get("quantity"),
            )
            for item in data.get("items") or []
        )
        return OrderRequest(
            payment_method=data.get("paymentMethod"),
            items=items,
            address_type=data.get("addressType"),
            shipping_address_id=data.get("shippingAddressId"),
            new_address_data=data.get("newAddressData"),
            notes=data.get("notes"),
            expected_delivery_date=data.get("expectedDeliveryDate"),
        )


class OrderUpdateSerializer(serializers.Serializer):
    """
    Staff-editable fields. validated_data is keyed by model field name.
    """
    status = serializers.ChoiceField(choices=Order.Status.choices, required=False)
    paymentStatus = serializers.ChoiceField(
        source="payment_status", choices=Order.PaymentStatus.choices, required=False
    )
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    expectedDeliveryDate = serializers.DateTimeField(source="expected_delivery_date", required=False, allow_null=True)
    trackingNumber = serializers.CharField(source="tracking_number", required=False, allow_blank=True, max_length=100)
    shippingProvider = serializers.CharField(source="shipping_provider", required=False, allow_blank=True, max_length=100)


class OrderCancelSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, max_length=1000)


class CartItemCreateSerializer(serializers.Serializer):
    productId = serializers.IntegerField()
    quantity = serializers.IntegerField(min_value=1, default=1)


class CartItemUpdateSerializer(serializers.Serializer):
    quantity = serializers.IntegerField(min_value=1)


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------

class OrderItemSerializer(serializers.ModelSerializer):
    productId = serializers.IntegerField(source="product_id", read_only=True)
    gstRate = serializers.DecimalField(source="gst_rate", max_digits=5, decimal_places=2, read_only=True)
    gstAmount = serializers.DecimalField(source="gst_amount", max_digits=12, decimal_places=2, read_only=True)
    product = serializers.SerializerMethodField()

    class Meta:
        model = OrderItem
        fields = ["id", "productId", "quantity", "price", "subtotal", "gstRate", "gstAmount", "total", "product"]

    def get_product(self, obj):
        data = ProductDisplaySerializer(obj.product, context=self.context).data
        data["orderPrice"] = obj.price
        return data


class OrderItemDetailSerializer(OrderItemSerializer):

    def get_product(self, obj):
        data = super().get_product(obj)
        data["priceChange"] = round2(data["currentPrice"] - obj.price)
        return data


class OrderTimelineSerializer(serializers.ModelSerializer):
    createdBy = serializers.IntegerField(source="created_by_id", read_only=True)

    class Meta:
        model = OrderTimeline
        fields = ["status", "note", "timestamp", "createdBy"]


class OrderSerializer(serializers.ModelSerializer):
    userId = serializers.IntegerField(source="user_id", read_only=True)
    paymentStatus = serializers.CharField(source="payment_status", read_only=True)
    paymentMethod = serializers.CharField(source="payment_method", read_only=True)
    gstAmount = serializers.DecimalField(source="gst_amount", max_digits=12, decimal_places=2, read_only=True)
    itemCount = serializers.SerializerMethodField()
    orderDate = serializers.DateTimeField(source="order_date", read_only=True)
    expectedDeliveryDate = serializers.DateTimeField(source="expected_delivery_date", read_only=True)
    trackingNumber = serializers.CharField(source="tracking_number", read_only=True)
    shippingProvider = serializers.CharField(source="shipping_provider", read_only=True)
    deliveryAddress = serializers.DictField(source="delivery_address", read_only=True)
    orderItems = OrderItemSerializer(source="items", many=True, read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "userId",
            "status",
            "paymentStatus",
            "paymentMethod",
            "subtotal",
            "gstAmount",
            "total",
            "itemCount",
            "orderDate",
            "expectedDeliveryDate",
            "notes",
            "trackingNumber",
            "shippingProvider",
            "deliveryAddress",
            "orderItems",
        ]

    def get_itemCount(self, obj):
        return len(obj.items.all())


class OrderDetailSerializer(OrderSerializer):
    orderItems = OrderItemDetailSerializer(source="items", many=True, read_only=True)
    timeline = OrderTimelineSerializer(many=True, read_only=True)
    cancellationReason = serializers.SerializerMethodField()
    cancelledAt = serializers.SerializerMethodField()

    class Meta(OrderSerializer.Meta):
        fields = OrderSerializer.Meta.fields + ["timeline", "cancellationReason", "cancelledAt"]

    def _cancellation(self, obj):
        try:
            return obj.cancellation
        except OrderCancellation.DoesNotExist:
            return None

    def get_cancellationReason(self, obj):
        cancellation = self._cancellation(obj)
        return cancellation.reason if cancellation else None

    def get_cancelledAt(self, obj):
        cancellation = self._cancellation(obj)
        return serializers.DateTimeField().to_representation(cancellation.created_at) if cancellation else None


class RecentOrderSerializer(serializers.ModelSerializer):
    paymentStatus = serializers.CharField(source="payment_status", read_only=True)
    orderDate = serializers.DateTimeField(source="order_date", read_only=True)
    customerName = serializers.CharField(source="user.name", default="Unknown", read_only=True)

    class Meta:
        model = Order
        fields = ["id", "status", "total", "orderDate", "paymentStatus", "customerName"]


class CartItemSerializer(serializers.ModelSerializer):
    productId = serializers.IntegerField(source="product_id", read_only=True)
    addedAt = serializers.DateTimeField(source="added_at", read_only=True)
    product = ProductDisplaySerializer(read_only=True)
    lineTotal = serializers.SerializerMethodField()

    class Meta:
        model = CartItem
        fields = ["id", "productId", "quantity", "addedAt", "product", "lineTotal"]

    def get_lineTotal(self, obj):
        price = self.fields["product"].get_currentPrice(obj.product)
        return round2(price * obj.quantity)
