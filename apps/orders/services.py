import logging
from decimal import Decimal

from django.db import DatabaseError, transaction
from django.db.models import Count, Sum
from django.utils import timezone

from apps.accounts.models import Role
from apps.catalog.models import Product
from apps.utils.exceptions import NotFoundError, ValidationError

from .addresses import AddressResolver
from .models import CartItem, Order, OrderCancellation, OrderItem, OrderTimeline, PaymentMethod
from .pricing import LineItemAggregator, round2
from .tasks import sync_order_to_crm
from .types import CreatedOrder, OrderRequest

logger = logging.getLogger(__name__)

PAYMENT_METHOD_ALIASES = {
    PaymentMethod.GATEWAY: {'gateway'},
    PaymentMethod.UPI: {'upi', 'gpay', 'googlepay', 'phonepe', 'paytm', 'bhim', 'qr'},
    PaymentMethod.BANK_TRANSFER: {'bank', 'banktransfer', 'bank_transfer', 'neft', 'imps', 'rtgs'},
    PaymentMethod.COD: {'cod', 'cash', 'cashondelivery'},
}


def normalize_payment_method(method):
    """
    Map aliases like 'gpay' or 'neft' onto the canonical methods.
    Anything unrecognised is returned unchanged.
    """
    key = str(method or '').strip().lower()
    for canonical, aliases in PAYMENT_METHOD_ALIASES.items():
        if key in aliases:
            return canonical.value
    return method


def _queue_crm_sync(order_id, event, payload=None):
    transaction.on_commit(lambda: sync_order_to_crm.delay(order_id, event, payload or {}))


class CartService:
    """
    Cart lines of the requester. Quantities only; prices are resolved on read.
    """

    @staticmethod
    def get_lines(user):
        return (
            CartItem.objects
            .filter(user=user)
            .select_related('product__category')
        )

    @staticmethod
    def add_item(user, product_id, quantity=1) -> CartItem:
        try:
            product = Product.objects.get(id=product_id)
        except Product.DoesNotExist:
            raise NotFoundError("Product not found")
        if not product.is_active:
            raise ValidationError(f'Product "{product.name}" is not available')

        item, created = CartItem.objects.get_or_create(
            user=user, product=product, defaults={'quantity': quantity}
        )
        if not created:
            item.quantity += quantity
            item.save(update_fields=['quantity'])
        return item

    @staticmethod
    def update_quantity(user, item_id, quantity) -> CartItem:
        try:
            item = CartItem.objects.select_related('product').get(id=item_id, user=user)
        except CartItem.DoesNotExist:
            raise NotFoundError("Cart item not found")
        item.quantity = quantity
        item.save(update_fields=['quantity'])
        return item

    @staticmethod
    def remove_item(user, item_id):
        deleted, _ = CartItem.objects.filter(id=item_id, user=user).delete()
        if not deleted:
            raise NotFoundError("Cart item not found")

    @staticmethod
    def clear_products(user, product_ids):
        """
        Best-effort cleanup after checkout. Runs in its own savepoint so a
        failure leaves the surrounding order transaction usable.
        """
        try:
            with transaction.atomic():
                CartItem.objects.filter(user=user, product_id__in=product_ids).delete()
        except DatabaseError as e:
            logger.warning(f"Failed to clear cart items for user {user.id}: {e}")


class OrderService:

    @staticmethod
    def create_order(user, order_request: OrderRequest) -> CreatedOrder:
        """
        1. Normalise payment method
        2. Resolve delivery address (outside the transaction, may save a new address)
        3. Price lines, create Order + OrderItems, clear cart lines (atomic)
        """
        payment_method = normalize_payment_method(order_request.payment_method)

        address = AddressResolver.resolve(
            user,
            address_type=order_request.address_type,
            shipping_address_id=order_request.shipping_address_id,
            new_address_data=order_request.new_address_data,
        )

        with transaction.atomic():
            aggregated = LineItemAggregator.aggregate(user, order_request.items, user.role)
            if not aggregated.lines:
                raise ValidationError("No items provided to create order")

            order = Order.objects.create(
                user=user,
                payment_method=payment_method or PaymentMethod.GATEWAY,
                subtotal=aggregated.subtotal,
                gst_amount=aggregated.gst_total,
                total=aggregated.grand_total,
                delivery_address_type=address.type,
                delivery_address_data=address.data,
                shipping_address_ref=address.shipping_address_id,
                notes=order_request.notes or None,
                expected_delivery_date=order_request.expected_delivery_date,
            )

            OrderItem.objects.bulk_create([
                OrderItem(
                    order=order,
                    product=line.product,
                    quantity=line.quantity,
                    price=line.unit_price,
                    subtotal=line.subtotal,
                    gst_rate=line.gst_rate,
                    gst_amount=line.gst_amount,
                    total=line.total,
                    product_snapshot={"name": line.product.name, "image": line.product.image},
                ) for line in aggregated.lines
            ])

            OrderTimeline.objects.create(
                order=order,
                status=order.status,
                note="Order placed.",
                created_by=user,
            )

            CartService.clear_products(user, aggregated.product_ids)

            _queue_crm_sync(order.id, "created", {
                "userId": user.id,
                "userRole": user.role,
                "total": str(order.total),
                "itemCount": len(aggregated.lines),
                "paymentMethod": order.payment_method,
            })

        logger.info(
            f"Order {order.id} created for user {user.id}: {len(aggregated.lines)} items, total {order.total}",
            extra={"order_id": order.id, "user_id": user.id},
        )
        return CreatedOrder(
            order=order,
            lines=aggregated.lines,
            address=address,
            payment_method=order.payment_method,
        )

    @staticmethod
    def visible_orders(user):
        qs = Order.objects.all()
        if not user.is_order_staff:
            qs = qs.filter(user=user)
        return qs

    @staticmethod
    def _get_for_update(user, order_id, queryset=None):
        queryset = queryset if queryset is not None else OrderService.visible_orders(user)
        try:
            return queryset.select_for_update().get(id=order_id)
        except (Order.DoesNotExist, ValueError, TypeError):
            raise Order.DoesNotExist(f"Order {order_id} not found")

    @staticmethod
    @transaction.atomic
    def cancel_order(user, order_id, reason=""):
        """
        Owners may cancel only Pending orders; staff may cancel at any stage.
        """
        is_staff = user.is_order_staff
        order = OrderService._get_for_update(user, order_id)

        if order.status == Order.Status.CANCELLED:
            raise ValidationError("Order is already cancelled")
        if not is_staff and order.status != Order.Status.PENDING:
            raise ValidationError(f"Cannot cancel order with status: {order.status}")

        order.status = Order.Status.CANCELLED
        order.save(update_fields=['status', 'updated_at'])

        reason = reason or "Cancelled by user"
        OrderCancellation.objects.create(
            order=order,
            reason=reason,
            cancelled_by=OrderCancellation.CancelledBy.STAFF if is_staff else OrderCancellation.CancelledBy.CUSTOMER,
            cancelled_by_user=user,
        )
        OrderTimeline.objects.create(
            order=order,
            status=Order.Status.CANCELLED,
            note=f"Cancelled: {reason}",
            created_by=user,
        )
        _queue_crm_sync(order.id, "cancelled", {"reason": reason, "cancelledBy": user.id})

        logger.info(f"Order {order.id} cancelled by user {user.id}", extra={"order_id": order.id})
        return order

    @staticmethod
    @transaction.atomic
    def update_order(user, order_id, changes: dict):
        """
        Staff update. `changes` holds model field names; status must follow Order.STATUS_TRANSITIONS.
        """
        if not changes:
            raise ValidationError("No valid fields to update")

        order = OrderService._get_for_update(user, order_id)
        new_status = changes.get('status')

        if new_status and new_status != order.status and not order.can_transition_to(new_status):
            raise ValidationError(f"Cannot change order status from {order.status} to {new_status}")

        status_changed = bool(new_status) and new_status != order.status
        for field, value in changes.items():
            setattr(order, field, value)
        order.save(update_fields=[*changes.keys(), 'updated_at'])

        if status_changed:
            OrderTimeline.objects.create(
                order=order,
                status=new_status,
                note=f"Status changed to {new_status}.",
                created_by=user,
            )
            if new_status == Order.Status.CANCELLED:
                OrderCancellation.objects.update_or_create(
                    order=order,
                    defaults={
                        "reason": "Cancelled by staff",
                        "cancelled_by": OrderCancellation.CancelledBy.STAFF,
                        "cancelled_by_user": user,
                    },
                )

        _queue_crm_sync(order.id, "updated", {
            key: str(value) if value is not None else None for key, value in changes.items()
        })
        logger.info(f"Order {order.id} updated by user {user.id}: {sorted(changes)}", extra={"order_id": order.id})
        return order

    @staticmethod
    @transaction.atomic
    def delete_order(user, order_id):
        try:
            order = Order.objects.get(id=order_id)
        except (Order.DoesNotExist, ValueError, TypeError):
            raise Order.DoesNotExist(f"Order {order_id} not found")

        OrderItem.objects.filter(order=order).delete()
        order.delete()

        _queue_crm_sync(int(order_id), "deleted", {"deletedBy": user.id})
        logger.warning(f"Order {order_id} deleted by user {user.id}")

    @staticmethod
    def order_summary(queryset) -> dict:
        """
        Count and amount per status and per payment status.
        """
        def breakdown(field):
            rows = (
                queryset.order_by().prefetch_related(None)
                .values(field)
                .annotate(count=Count('id'), total_amount=Sum('total'))
            )
            return {
                row[field]: {
                    "count": row['count'],
                    "totalAmount": float(row['total_amount'] or 0),
                }
                for row in rows
            }

        return {
            "statusBreakdown": breakdown('status'),
            "paymentStatusBreakdown": breakdown('payment_status'),
        }

    @staticmethod
    def get_stats(user) -> dict:
        qs = Order.objects.all()
        if not user.is_admin_role and user.role != Role.MANAGER:
            qs = qs.filter(user=user)

        now = timezone.now()
        month_start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)

        total_orders = qs.count()
        total_value = qs.aggregate(total=Sum('total'))['total'] or Decimal('0')
        month_value = qs.filter(order_date__gte=month_start).aggregate(total=Sum('total'))['total'] or Decimal('0')

        return {
            "totalOrders": total_orders,
            "pendingOrders": qs.filter(status=Order.Status.PENDING).count(),
            "completedOrders": qs.filter(status=Order.Status.COMPLETED).count(),
            "cancelledOrders": qs.filter(status=Order.Status.CANCELLED).count(),
            "totalValue": round2(total_value),
            "thisMonthValue": round2(month_value),
            "averageOrderValue": round2(total_value / total_orders) if total_orders else Decimal('0.00'),
            "recentOrders": list(qs.select_related('user').order_by('-order_date')[:5]),
        }
