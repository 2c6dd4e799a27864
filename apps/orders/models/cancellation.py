from django.conf import settings
from django.db import models

from .order import Order

__all__ = ["OrderCancellation"]


class OrderCancellation(models.Model):
    """
    Canonical cancellation record: reason and who cancelled (customer or staff).
    """
    class CancelledBy(models.TextChoices):
        CUSTOMER = "CUSTOMER", "Customer"
        STAFF = "STAFF", "Staff"

    order = models.OneToOneField(
        Order,
        related_name="cancellation",
        on_delete=models.CASCADE,
    )

    reason = models.TextField(blank=True)
    cancelled_by = models.CharField(
        max_length=20, choices=CancelledBy.choices, default=CancelledBy.CUSTOMER
    )
    cancelled_by_user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        related_name="orders_cancelled",
        on_delete=models.SET_NULL,
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "order_cancellations"

    def __str__(self):
        return f"Cancellation for {self.order_id} ({self.cancelled_by})"
