from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models

__all__ = ["CartItem"]


class CartItem(models.Model):
    """
    One cart line per (user, product).
    """
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        related_name="cart_items",
        on_delete=models.CASCADE,
    )
    product = models.ForeignKey(
        "catalog.Product",
        related_name="cart_items",
        on_delete=models.CASCADE,
    )

    quantity = models.PositiveIntegerField(default=1, validators=[MinValueValidator(1)])

    added_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "cart_items"
        ordering = ["added_at", "id"]
        constraints = [
            models.UniqueConstraint(fields=["user", "product"], name="uniq_cart_line_per_product"),
        ]

    def __str__(self):
        return f"{self.user_id} -> {self.product_id} x {self.quantity}"
