"""
Plain value objects passed between the order views and services.
"""
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional


@dataclass(frozen=True)
class OrderItemRequest:
    product_id: Any
    quantity: Any = None


@dataclass(frozen=True)
class OrderRequest:
    """Validated body of POST /orders/."""
    payment_method: Optional[str] = None
    items: tuple = ()
    address_type: str = "default"
    shipping_address_id: Optional[int] = None
    new_address_data: Optional[dict] = None
    notes: Optional[str] = None
    expected_delivery_date: Optional[datetime] = None


@dataclass(frozen=True)
class AddressSnapshot:
    """
    Copy of the chosen delivery address, embedded in the Order.
    `shipping_address_id` records provenance only.
    """
    type: str
    data: dict
    shipping_address_id: Optional[int] = None


@dataclass
class LineDraft:
    product: Any
    quantity: int
    unit_price: Decimal
    gst_rate: Decimal
    subtotal: Decimal
    gst_amount: Decimal
    total: Decimal

    @property
    def product_id(self):
        return self.product.pk


@dataclass
class AggregatedLines:
    lines: list = field(default_factory=list)
    subtotal: Decimal = Decimal("0.00")
    gst_total: Decimal = Decimal("0.00")
    grand_total: Decimal = Decimal("0.00")

    @property
    def product_ids(self):
        return [line.product_id for line in self.lines]


@dataclass
class CreatedOrder:
    order: Any
    lines: list
    address: AddressSnapshot
    payment_method: Optional[str]
