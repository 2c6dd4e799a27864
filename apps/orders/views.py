
from django.db.models import Prefetch
from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import NotFound
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from apps.accounts.permissions import IsAdmin, IsOrderStaff
from apps.shipping.serializers import ShippingAddressSerializer
from apps.utils.pagination import StandardResultsSetPagination
from apps.utils.throttle import BurstRateThrottle, SustainedRateThrottle

from .addresses import AddressResolver
from .filters import OrderFilter
from .models import Order, OrderItem
from .serializers import (
    CartItemCreateSerializer,
    CartItemSerializer,
    CartItemUpdateSerializer,
    CreateOrderSerializer,
    OrderCancelSerializer,
    OrderDetailSerializer,
    OrderSerializer,
    OrderUpdateSerializer,
    RecentOrderSerializer,
)
from .services import CartService, OrderService


SORTABLE_FIELDS = {
    "orderDate": "order_date",
    "total": "total",
    "status": "status",
    "id": "id",
}


class OrderViewSet(mixins.CreateModelMixin,
                   mixins.ListModelMixin,
                   mixins.RetrieveModelMixin,
                   mixins.UpdateModelMixin,
                   mixins.DestroyModelMixin,
                   viewsets.GenericViewSet):
    """
    /api/v1/orders/
    Customers see their own orders; staff roles see everyone's.
    """
    serializer_class = OrderSerializer
    permission_classes = [IsAuthenticated]
    lookup_value_regex = r"\d+"
    pagination_class = StandardResultsSetPagination
    filter_backends = [DjangoFilterBackend]
    filterset_class = OrderFilter

    def get_permissions(self):
        if self.action in ('update', 'partial_update', 'stats'):
            return [IsAuthenticated(), IsOrderStaff()]
        if self.action == 'destroy':
            return [IsAuthenticated(), IsAdmin()]
        return super().get_permissions()

    def get_throttles(self):
        if self.action == 'create':
            return [BurstRateThrottle(), SustainedRateThrottle()]
        return super().get_throttles()

    def get_serializer_class(self):
        if self.action == 'retrieve':
            return OrderDetailSerializer
        return super().get_serializer_class()

    def get_queryset(self):
        items = OrderItem.objects.select_related('product__category')
        qs = (
            OrderService.visible_orders(self.request.user)
            .select_related('user')
            .prefetch_related(Prefetch('items', queryset=items))
        )
        if self.action == 'retrieve':
            qs = qs.select_related('cancellation').prefetch_related('timeline')
        return qs

    def get_object(self):
        try:
            return self.get_queryset().get(pk=self.kwargs['pk'])
        except (Order.DoesNotExist, ValueError):
            raise NotFound("Order not found")

    def _sorted(self, queryset):
        sort_by = self.request.query_params.get('sortBy', 'orderDate')
        sort_order = self.request.query_params.get('sortOrder', 'DESC').upper()
        field = SORTABLE_FIELDS.get(sort_by, 'order_date')
        prefix = '' if sort_order == 'ASC' else '-'
        return queryset.order_by(f"{prefix}{field}", f"{prefix}id")

    def create(self, request, *args, **kwargs):
        serializer = CreateOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        created = OrderService.create_order(request.user, serializer.to_order_request())

        order = self.get_queryset().get(pk=created.order.pk)
        data = OrderSerializer(order, context=self.get_serializer_context()).data
        data["redirectToPayment"] = created.payment_method == "Gateway"

        return Response(
            {"success": True, "message": "Order created successfully", "order": data},
            status=status.HTTP_201_CREATED,
        )

    def list(self, request, *args, **kwargs):
        base = self.get_queryset()
        queryset = self._sorted(self.filter_queryset(base))

        page = self.paginate_queryset(queryset)
        serializer = self.get_serializer(page, many=True)

        return Response({
            "success": True,
            "orders": serializer.data,
            "orderSummary": OrderService.order_summary(base),
            "pagination": self.paginator.get_pagination_meta(),
            "sorting": {
                "sortBy": request.query_params.get('sortBy', 'orderDate'),
                "sortOrder": request.query_params.get('sortOrder', 'DESC').upper(),
            },
        })

    def retrieve(self, request, *args, **kwargs):
        order = self.get_object()
        return Response({"success": True, "order": self.get_serializer(order).data})

    def update(self, request, *args, **kwargs):
        serializer = OrderUpdateSerializer(data=request.data, partial=kwargs.pop('partial', False))
        serializer.is_valid(raise_exception=True)

        try:
            order = OrderService.update_order(request.user, kwargs['pk'], dict(serializer.validated_data))
        except Order.DoesNotExist:
            raise NotFound("Order not found")

        return Response({
            "success": True,
            "message": "Order updated successfully",
            "order": OrderSerializer(order, context=self.get_serializer_context()).data,
        })

    def destroy(self, request, *args, **kwargs):
        try:
            OrderService.delete_order(request.user, kwargs['pk'])
        except Order.DoesNotExist:
            raise NotFound("Order not found")
        return Response({"success": True, "message": "Order deleted successfully"})

    @action(detail=True, methods=['put'])
    def cancel(self, request, pk=None):
        """
        PUT /api/v1/orders/{id}/cancel/
        """
        serializer = OrderCancelSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            order = OrderService.cancel_order(request.user, pk, serializer.validated_data.get('reason', ''))
        except Order.DoesNotExist:
            raise NotFound("Order not found")

        return Response({
            "success": True,
            "message": "Order cancelled successfully",
            "order": OrderSerializer(order, context=self.get_serializer_context()).data,
        })

    @action(detail=False, methods=['get'])
    def stats(self, request):
        stats = OrderService.get_stats(request.user)
        recent = stats.pop("recentOrders")
        return Response({
            "success": True,
            "stats": stats,
            "recentOrders": RecentOrderSerializer(recent, many=True).data,
        })

    @action(detail=False, methods=['get'])
    def addresses(self, request):
        available = AddressResolver.available_addresses(request.user)
        shipping = ShippingAddressSerializer(available["shipping_addresses"], many=True).data
        default_shipping = available["default_shipping_address"]

        return Response({
            "success": True,
            "message": "Available addresses fetched successfully",
            "addresses": {
                "defaultAddress": available["default_address"],
                "shippingAddresses": shipping,
            },
            "summary": {
                "hasDefaultAddress": available["default_address"] is not None,
                "totalShippingAddresses": len(shipping),
                "defaultShippingAddress": ShippingAddressSerializer(default_shipping).data if default_shipping else None,
            },
        })


class CartViewSet(viewsets.ViewSet):
    """
    /api/v1/cart/
    """
    permission_classes = [IsAuthenticated]
    lookup_value_regex = r"\d+"

    def _serialize(self, lines, many=False):
        return CartItemSerializer(lines, many=many, context={"request": self.request}).data

    def list(self, request):
        lines = CartService.get_lines(request.user)
        items = self._serialize(lines, many=True)
        return Response({
            "success": True,
            "items": items,
            "itemCount": len(items),
            "total": sum((item["lineTotal"] for item in items), 0),
        })

    def create(self, request):
        serializer = CartItemCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        item = CartService.add_item(
            request.user,
            serializer.validated_data['productId'],
            serializer.validated_data['quantity'],
        )
        return Response(
            {"success": True, "message": "Item added to cart", "item": self._serialize(item)},
            status=status.HTTP_201_CREATED,
        )

    def update(self, request, pk=None):
        serializer = CartItemUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        item = CartService.update_quantity(request.user, pk, serializer.validated_data['quantity'])
        return Response({"success": True, "message": "Cart updated", "item": self._serialize(item)})

    def partial_update(self, request, pk=None):
        return self.update(request, pk)

    def destroy(self, request, pk=None):
        CartService.remove_item(request.user, pk)
        return Response({"success": True, "message": "Item removed from cart"})
