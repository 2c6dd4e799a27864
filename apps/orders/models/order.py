from django.conf import settings
from django.db import models
from django.utils import timezone

__all__ = ["Order", "PaymentMethod"]


class PaymentMethod(models.TextChoices):
    GATEWAY = "Gateway", "Payment Gateway"
    UPI = "UPI", "UPI"
    BANK_TRANSFER = "BankTransfer", "Bank Transfer"
    COD = "COD", "Cash on Delivery"


class Order(models.Model):
    class Status(models.TextChoices):
        PENDING = "Pending", "Pending"
        PROCESSING = "Processing", "Processing"
        SHIPPED = "Shipped", "Shipped"
        COMPLETED = "Completed", "Completed"
        CANCELLED = "Cancelled", "Cancelled"

    class PaymentStatus(models.TextChoices):
        AWAITING = "Awaiting", "Awaiting"
        APPROVED = "Approved", "Approved"
        REJECTED = "Rejected", "Rejected"

    class AddressType(models.TextChoices):
        NEW = "new", "New address"
        SHIPPING = "shipping", "Saved shipping address"
        DEFAULT = "default", "Profile address"

    # Staff status updates must follow this table
    STATUS_TRANSITIONS = {
        Status.PENDING: {Status.PROCESSING, Status.CANCELLED},
        Status.PROCESSING: {Status.SHIPPED, Status.CANCELLED},
        Status.SHIPPED: {Status.COMPLETED},
        Status.COMPLETED: set(),
        Status.CANCELLED: set(),
    }

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name='orders')

    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING, db_index=True)
    # Free text: unrecognised methods are stored as sent. Canonical values live in PaymentMethod
    payment_method = models.CharField(max_length=50, default=PaymentMethod.GATEWAY)
    payment_status = models.CharField(max_length=20, choices=PaymentStatus.choices, default=PaymentStatus.AWAITING)
    payment_proof = models.CharField(max_length=500, blank=True, null=True)

    subtotal = models.DecimalField(max_digits=12, decimal_places=2)
    gst_amount = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    total = models.DecimalField(max_digits=12, decimal_places=2)

    # Snapshot of Address (JSON) to prevent historical drift.
    # shipping_address_ref is provenance only, not a foreign key.
    delivery_address_type = models.CharField(max_length=20, choices=AddressType.choices, default=AddressType.DEFAULT)
    delivery_address_data = models.JSONField(null=True, blank=True)
    shipping_address_ref = models.PositiveBigIntegerField(null=True, blank=True)

    notes = models.TextField(blank=True, null=True)
    order_date = models.DateTimeField(default=timezone.now, db_index=True)
    expected_delivery_date = models.DateTimeField(null=True, blank=True)

    tracking_number = models.CharField(max_length=100, blank=True, null=True)
    shipping_provider = models.CharField(max_length=100, blank=True, null=True)

    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-order_date"]
        indexes = [
            models.Index(fields=["user", "status"], name="order_user_status_idx"),
            models.Index(fields=["payment_status"], name="order_payment_status_idx"),
        ]

    def __str__(self):
        return f"Order #{self.pk} [{self.status}]"

    def can_transition_to(self, new_status):
        return new_status in self.STATUS_TRANSITIONS.get(self.status, set())

    @property
    def delivery_address(self):
        return {"type": self.delivery_address_type, "data": self.delivery_address_data}
