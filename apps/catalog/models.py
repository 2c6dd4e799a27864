# apps/catalog/models.py
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models
from django.utils.text import slugify

from apps.utils.models import TimestampedModel


class Category(TimestampedModel):
    """
    Product category tree (e.g. Tiles > Floor Tiles)
    """
    name = models.CharField(max_length=255)
    slug = models.SlugField(unique=True, blank=True, db_index=True)
    parent = models.ForeignKey(
        'self',
        null=True,
        blank=True,
        on_delete=models.CASCADE,
        related_name='subcategories',
    )
    is_active = models.BooleanField(default=True)

    class Meta:
        verbose_name_plural = "Categories"
        ordering = ["name"]

    def __str__(self):
        return self.name

    def save(self, *args, **kwargs):
        if not self.slug:
            base_slug = slugify(self.name)
            slug_candidate = base_slug
            counter = 1

            while Category.objects.filter(slug=slug_candidate).exclude(pk=self.pk).exists():
                slug_candidate = f"{base_slug}-{counter}"
                counter += 1

            self.slug = slug_candidate
        super().save(*args, **kwargs)


class Product(TimestampedModel):
    """
    Sellable item with three tier prices.

    NOTE:
    - dealer_price <= architect_price <= general_price, checked in clean().
    - gst is a percentage (18.00 means 18%).
    """
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True)

    category = models.ForeignKey(
        Category,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name='products',
    )

    image = models.CharField(max_length=500, blank=True, null=True)
    images = models.JSONField(default=list, blank=True)

    general_price = models.DecimalField(max_digits=10, decimal_places=2)
    architect_price = models.DecimalField(max_digits=10, decimal_places=2)
    dealer_price = models.DecimalField(max_digits=10, decimal_places=2)

    gst = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=[MinValueValidator(Decimal("0")), MaxValueValidator(Decimal("100"))],
        help_text="GST percentage (e.g. 18.00 for 18%)",
    )

    is_active = models.BooleanField(default=True)

    class Meta:
        ordering = ["name"]
        indexes = [
            models.Index(fields=["is_active", "category"], name="product_active_category_idx"),
        ]

    def __str__(self):
        return self.name

    def clean(self):
        super().clean()
        prices = (self.dealer_price, self.architect_price, self.general_price)
        if None in prices:
            return
        if not (self.dealer_price <= self.architect_price <= self.general_price):
            raise ValidationError(
                "Tier prices must satisfy dealer price <= architect price <= general price."
            )
