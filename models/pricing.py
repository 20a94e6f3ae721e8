from decimal import Decimal

from pydantic import BaseModel, Field, field_validator

from enums.discount_type import DiscountType
from models.pack_size import PackSizeDTO
from models.product import ProductDTO
from models.promo_code import PromoCodeDTO


class DiscountRule(BaseModel):
    """
    A single discount, either an offer plan attached to a product or a promo code.

    No clamping: a percentage above 100 or a fixed amount above the base
    produces a discount larger than the base, and callers report the
    resulting negative totals as computed.
    """
    kind: DiscountType
    amount: Decimal = Field(ge=0)

    @field_validator("amount", mode="before")
    @classmethod
    def _to_decimal(cls, value):
        # str() first so floats coming from JSON keep their printed value
        if isinstance(value, float):
            return Decimal(str(value))
        return value

    def apply(self, base_amount: Decimal) -> Decimal:
        """
        Return the discount for base_amount.

        Percentage: base_amount * amount / 100
        Fixed amount: amount, independent of base_amount
        """
        if self.kind == DiscountType.PERCENTAGE:
            return base_amount * self.amount / Decimal(100)
        return self.amount


class LineItemPriceDTO(BaseModel):
    """Unrounded price of one line (unit price x quantity, offer plan applied)."""
    unit_price: Decimal
    quantity: int
    unit_discount: Decimal
    original_subtotal: Decimal
    discount_amount: Decimal
    final_total: Decimal


class PricingTotalsDTO(BaseModel):
    """
    Aggregate over all lines of a cart or order.

    subtotal: sum of original line subtotals
    total: sum of final line totals (after offer plans, before promo code)
    promo_discount: promo code applied once to total
    shipping_charge: 0 unless a shipping policy was applied
    grand_total: total - promo_discount + shipping_charge
    """
    subtotal: Decimal
    total: Decimal
    promo_discount: Decimal
    shipping_charge: Decimal
    grand_total: Decimal


class CartLineDTO(BaseModel):
    """Cart line as reported to the caller, money rounded to 2 places."""
    id: int | None = None
    product: ProductDTO | None = None
    packsize: PackSizeDTO | None = None
    quantity: int
    original_price: Decimal
    discount: Decimal
    final_price: Decimal


class CartViewDTO(BaseModel):
    """
    Priced cart. total already has the promo discount subtracted;
    shipping is not part of the cart view.
    """
    cart_id: int | None = None
    items: list[CartLineDTO] = []
    subtotal: Decimal = Decimal("0.00")
    total: Decimal = Decimal("0.00")
    promocode_discount: Decimal = Decimal("0.00")
    promocode: PromoCodeDTO | None = None
