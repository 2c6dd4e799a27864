import logging
from decimal import Decimal, ROUND_HALF_UP

from apps.catalog.models import Product
from apps.catalog.pricing import resolve_price
from apps.utils.exceptions import NotFoundError, ValidationError

from .models import CartItem
from .types import AggregatedLines, LineDraft

logger = logging.getLogger(__name__)

TWO_PLACES = Decimal("0.01")


def round2(value) -> Decimal:
    return Decimal(value).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def _parse_quantity(raw):
    if not raw:
        return 1
    try:
        quantity = int(raw)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid quantity: {raw}")
    if quantity < 1:
        raise ValidationError(f"Invalid quantity: {raw}")
    return quantity


class LineItemAggregator:
    """
    Turns requested items (or the saved cart) into priced order lines.
    Each step is rounded to 2 places half-up before it feeds the next one.
    """

    @staticmethod
    def collect_items(user, items):
        """
        [(product_id, quantity, product_or_None), ...] with duplicates merged.
        Explicit items win; otherwise the user's cart lines for active products.
        """
        requested = []
        if items:
            for item in items:
                product_id = getattr(item, "product_id", None)
                if not product_id:
                    raise ValidationError("Each item requires a productId.")
                requested.append((product_id, _parse_quantity(item.quantity), None))
        else:
            cart_lines = (
                CartItem.objects
                .filter(user=user, product__is_active=True)
                .select_related("product__category")
            )
            requested = [(line.product_id, line.quantity or 1, line.product) for line in cart_lines]

        merged = {}
        for product_id, quantity, product in requested:
            key = str(product_id)
            if key in merged:
                pid, qty, prod = merged[key]
                merged[key] = (pid, qty + quantity, prod or product)
            else:
                merged[key] = (product_id, quantity, product)
        return list(merged.values())

    @staticmethod
    def price_line(product, quantity, role) -> LineDraft:
        unit_price = round2(resolve_price(product, role))
        gst_rate = Decimal(product.gst or 0)
        subtotal = round2(unit_price * quantity)
        gst_amount = round2(subtotal * gst_rate / 100)
        return LineDraft(
            product=product,
            quantity=quantity,
            unit_price=unit_price,
            gst_rate=gst_rate,
            subtotal=subtotal,
            gst_amount=gst_amount,
            total=round2(subtotal + gst_amount),
        )

    @staticmethod
    def aggregate(user, items, role) -> AggregatedLines:
        requested = LineItemAggregator.collect_items(user, items)
        if not requested:
            raise ValidationError("No items provided to create order")

        # Single query for every referenced product
        missing_ids = [pid for pid, _, product in requested if product is None]
        try:
            products = Product.objects.select_related("category").in_bulk(missing_ids) if missing_ids else {}
        except (ValueError, TypeError):
            raise NotFoundError(f"Product not found: {missing_ids}")
        products_by_key = {str(pk): product for pk, product in products.items()}

        result = AggregatedLines()
        for product_id, quantity, product in requested:
            product = product or products_by_key.get(str(product_id))
            if product is None:
                raise NotFoundError(f"Product not found: {product_id}")
            if not product.is_active:
                raise ValidationError(f'Product "{product.name}" is not available')

            line = LineItemAggregator.price_line(product, quantity, role)
            result.lines.append(line)
            result.subtotal += line.subtotal
            result.gst_total += line.gst_amount

        result.subtotal = round2(result.subtotal)
        result.gst_total = round2(result.gst_total)
        result.grand_total = round2(result.subtotal + result.gst_total)

        logger.debug(
            f"Aggregated {len(result.lines)} lines for user {user.id}: "
            f"subtotal={result.subtotal} gst={result.gst_total} total={result.grand_total}"
        )
        return result
