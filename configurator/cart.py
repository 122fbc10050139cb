"""Cart store collaborator and coupon discounts.

A confirmed ConfigurationSession appends its CartLine through the CartStore
protocol. InMemoryCartStore is the reference implementation:

- A line whose configuration signature matches an existing line is merged into
  it (quantities summed) instead of being added twice.
- A cart holds lines of a single store. A line from another store starts a
  fresh cart.
- At most one coupon is applied; its discount is recomputed from the current
  lines and never exceeds the subtotal of the lines it applies to.
"""

import itertools
import logging
from decimal import Decimal
from enum import Enum
from typing import Optional, Protocol

from pydantic import BaseModel, ConfigDict, Field

from configurator.logic.cart_line import CartLine
from configurator.logic.failures import CouponNotApplicable
from configurator.logic.money import ZERO

logger = logging.getLogger(__name__)


# =============================================================================
# COUPONS
# =============================================================================

class DiscountType(str, Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


class CouponScope(str, Enum):
    ALL = "all"
    CATEGORY = "category"
    PRODUCT = "product"


class Coupon(BaseModel):
    model_config = ConfigDict(frozen=True)

    code: str
    discount_type: DiscountType
    value: Decimal = Field(..., gt=0, description="Percent for percentage coupons, amount for fixed ones")
    applies_to: CouponScope = CouponScope.ALL
    category_names: list[str] = Field(default_factory=list)
    product_ids: list[str] = Field(default_factory=list)
    min_order_value: Decimal = Field(Decimal("0"), ge=0)
    is_active: bool = True


def _normalize_category(name: Optional[str]) -> str:
    return (name or "").strip().lower()


def eligible_lines(lines: list[CartLine], coupon: Coupon) -> list[CartLine]:
    """Lines the coupon applies to.

    Category names are compared case-insensitively, ignoring surrounding spaces.
    """
    if coupon.applies_to == CouponScope.ALL:
        return list(lines)
    if coupon.applies_to == CouponScope.PRODUCT:
        return [line for line in lines if line.product_id in coupon.product_ids]

    categories = {_normalize_category(c) for c in coupon.category_names}
    return [line for line in lines if _normalize_category(line.product_category) in categories]


def eligible_subtotal(lines: list[CartLine], coupon: Coupon) -> Decimal:
    return sum((line.line_total for line in eligible_lines(lines, coupon)), ZERO)


def calculate_discount(eligible: Decimal, discount_type: DiscountType, value: Decimal) -> Decimal:
    """Discount over an eligible subtotal, capped at that subtotal."""
    if eligible <= 0:
        return ZERO
    if discount_type == DiscountType.PERCENTAGE:
        discount = eligible * value / 100
    else:
        discount = value
    return min(discount, eligible)


# =============================================================================
# CART STORE
# =============================================================================

class CartStore(Protocol):
    """Downstream receiver of confirmed cart lines."""

    def append(self, line: CartLine) -> str:
        ...


class InMemoryCartStore:
    """Single-store shopping cart."""

    def __init__(self):
        self._lines: dict[str, CartLine] = {}
        self._ids = itertools.count(1)
        self.store_id: Optional[str] = None
        self.coupon: Optional[Coupon] = None

    @property
    def lines(self) -> list[CartLine]:
        return list(self._lines.values())

    def line_ids(self) -> list[str]:
        return list(self._lines)

    def get(self, line_id: str) -> CartLine:
        try:
            return self._lines[line_id]
        except KeyError:
            raise KeyError(f"Unknown cart line '{line_id}'") from None

    def append(self, line: CartLine) -> str:
        """Add a confirmed line and return the id of the line that holds it."""
        if self.store_id is not None and line.store_id != self.store_id:
            logger.info(
                f"Line from store '{line.store_id}' replaces cart of store '{self.store_id}'"
            )
            self.clear()

        self.store_id = line.store_id
        signature = line.signature()
        for line_id, existing in self._lines.items():
            if existing.signature() == signature:
                self._lines[line_id] = existing.with_quantity(existing.quantity + line.quantity)
                logger.debug(f"Merged '{line.product_id}' into cart line {line_id}")
                return line_id

        line_id = f"line-{next(self._ids)}"
        self._lines[line_id] = line
        logger.debug(f"Added '{line.product_id}' as cart line {line_id}")
        return line_id

    def replace(self, line_id: str, line: CartLine):
        """Swap in an edited line, keeping its position."""
        self.get(line_id)
        self._lines[line_id] = line

    def update_quantity(self, line_id: str, quantity: int):
        """Set a line's quantity; zero or less removes the line."""
        if quantity <= 0:
            self.remove(line_id)
            return
        self._lines[line_id] = self.get(line_id).with_quantity(quantity)

    def remove(self, line_id: str):
        self.get(line_id)
        del self._lines[line_id]
        if not self._lines:
            self.clear()

    def clear(self):
        self._lines.clear()
        self.store_id = None
        self.coupon = None

    # -------------------------------------------------------------------------
    # Totals
    # -------------------------------------------------------------------------

    @property
    def item_count(self) -> int:
        return sum(line.quantity for line in self._lines.values())

    @property
    def subtotal(self) -> Decimal:
        return sum((line.line_total for line in self._lines.values()), ZERO)

    def apply_coupon(self, coupon: Coupon) -> Optional[CouponNotApplicable]:
        """Apply a coupon, replacing any previous one. Returns the refusal, if any."""
        reason = None
        if not coupon.is_active:
            reason = "coupon is inactive"
        elif self.subtotal < coupon.min_order_value:
            reason = f"order below minimum of {coupon.min_order_value}"
        elif eligible_subtotal(self.lines, coupon) <= 0:
            reason = "no eligible items in the cart"

        if reason:
            logger.info(f"Coupon '{coupon.code}' refused: {reason}")
            return CouponNotApplicable(coupon_code=coupon.code, reason=reason)

        self.coupon = coupon
        logger.info(f"Coupon '{coupon.code}' applied")
        return None

    def remove_coupon(self):
        self.coupon = None

    @property
    def discount(self) -> Decimal:
        coupon = self.coupon
        if coupon is None or self.subtotal < coupon.min_order_value:
            return ZERO
        return calculate_discount(eligible_subtotal(self.lines, coupon), coupon.discount_type, coupon.value)

    @property
    def total(self) -> Decimal:
        return self.subtotal - self.discount
