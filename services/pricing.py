import logging
from decimal import Decimal, ROUND_HALF_UP

from enums.record_status import RecordStatus
from models.offer_plan import OfferPlanDTO
from models.pack_size import PackSizeDTO
from models.pricing import (
    DiscountRule,
    LineItemPriceDTO,
    PricingTotalsDTO,
    CartLineDTO,
    CartViewDTO,
)
from models.product import ProductDTO
from models.promo_code import PromoCodeDTO
from services.shipping import ShippingPolicy

logger = logging.getLogger(__name__)

MONEY_QUANTUM = Decimal("0.01")


def to_decimal(value) -> Decimal:
    # floats go through str() so 10.005 stays 10.005
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


class PricingService:
    """
    Price & order total engine.

    Every place that shows or stores a price (cart view, admin cart view,
    order creation) goes through these functions, so the formula exists once.
    All arithmetic is Decimal; rounding happens only in round_money(), which
    callers apply when they report or persist a result.
    """

    @staticmethod
    def round_money(value: Decimal) -> Decimal:
        """Round to 2 decimal places, half up."""
        return to_decimal(value).quantize(MONEY_QUANTUM, rounding=ROUND_HALF_UP)

    @staticmethod
    def offer_plan_rule(offer_plan: OfferPlanDTO | None) -> DiscountRule | None:
        """
        Discount rule of a product's offer plan, or None when the product has
        no plan or the plan is not Active.
        """
        if offer_plan is None:
            return None
        if offer_plan.status != RecordStatus.ACTIVE:
            logger.debug(f"Offer plan {offer_plan.id} is {offer_plan.status.value}, not applied")
            return None
        return DiscountRule(kind=offer_plan.type, amount=offer_plan.discount)

    @staticmethod
    def promo_code_rule(promo_code: PromoCodeDTO | None) -> DiscountRule | None:
        if promo_code is None:
            return None
        return DiscountRule(kind=promo_code.type, amount=promo_code.discount)

    @staticmethod
    def price_line_item(
        unit_price: Decimal,
        quantity: int,
        offer_plan: DiscountRule | None = None
    ) -> LineItemPriceDTO:
        """
        Price one line.

        The offer plan discount is computed per unit and then multiplied by
        the quantity, so fixed-amount plans take their amount off every unit.

        Args:
            unit_price: Pack size price
            quantity: Number of units (>= 1)
            offer_plan: Active offer plan of the product, if any

        Returns:
            LineItemPriceDTO with unrounded values where
            discount_amount + final_total == original_subtotal

        Example:
            >>> PricingService.price_line_item(Decimal("20.00"), 3, DiscountRule(kind=FIXED_AMOUNT, amount=5))
            original_subtotal=60.00, discount_amount=15.00, final_total=45.00
        """
        unit_price = to_decimal(unit_price)
        original_subtotal = unit_price * quantity

        if offer_plan is None:
            return LineItemPriceDTO(
                unit_price=unit_price,
                quantity=quantity,
                unit_discount=Decimal("0"),
                original_subtotal=original_subtotal,
                discount_amount=Decimal("0"),
                final_total=original_subtotal
            )

        unit_discount = offer_plan.apply(unit_price)
        return LineItemPriceDTO(
            unit_price=unit_price,
            quantity=quantity,
            unit_discount=unit_discount,
            original_subtotal=original_subtotal,
            discount_amount=unit_discount * quantity,
            final_total=(unit_price - unit_discount) * quantity
        )

    @staticmethod
    def price_cart_line(
        product: ProductDTO | None,
        pack_size: PackSizeDTO | None,
        quantity: int
    ) -> LineItemPriceDTO:
        """Price a stored cart line. A pack size that no longer exists is priced at 0."""
        unit_price = pack_size.price if pack_size is not None and pack_size.price is not None else Decimal("0")
        offer_plan = product.offer_plan if product is not None else None
        return PricingService.price_line_item(unit_price, quantity, PricingService.offer_plan_rule(offer_plan))

    @staticmethod
    def candidate_subtotal(line_items: list[LineItemPriceDTO]) -> Decimal:
        """
        Unrounded sum of the original line subtotals, the base of the promo code
        minimum rule. Cart attachment and checkout both pass this value.
        """
        return sum((line.original_subtotal for line in line_items), Decimal("0"))

    @staticmethod
    def aggregate(
        line_items: list[LineItemPriceDTO],
        promo_code: DiscountRule | None = None,
        shipping_policy: ShippingPolicy | None = None
    ) -> PricingTotalsDTO:
        """
        Sum priced lines and apply the cart-level promo code and shipping.

        The promo code is applied once, to the aggregate total, never per line.
        Shipping is decided on the total before the promo code. Values are
        returned unrounded; the aggregate never fails and never clamps.

        Args:
            line_items: Results of price_line_item()
            promo_code: Rule of the attached promo code, if any
            shipping_policy: Applied for orders, None for cart previews

        Returns:
            PricingTotalsDTO
        """
        subtotal = PricingService.candidate_subtotal(line_items)
        total = sum((line.final_total for line in line_items), Decimal("0"))

        promo_discount = promo_code.apply(total) if promo_code is not None else Decimal("0")
        shipping_charge = shipping_policy.charge_for(total) if shipping_policy is not None else Decimal("0")

        return PricingTotalsDTO(
            subtotal=subtotal,
            total=total,
            promo_discount=promo_discount,
            shipping_charge=shipping_charge,
            grand_total=total - promo_discount + shipping_charge
        )

    @staticmethod
    def rounded(totals: PricingTotalsDTO) -> PricingTotalsDTO:
        """Output boundary: round every money field of an aggregate once."""
        return PricingTotalsDTO(
            subtotal=PricingService.round_money(totals.subtotal),
            total=PricingService.round_money(totals.total),
            promo_discount=PricingService.round_money(totals.promo_discount),
            shipping_charge=PricingService.round_money(totals.shipping_charge),
            grand_total=PricingService.round_money(totals.grand_total)
        )

    @staticmethod
    def build_cart_view(
        cart_id: int | None,
        lines: list[tuple[int | None, ProductDTO | None, PackSizeDTO | None, int]],
        promo_code: PromoCodeDTO | None
    ) -> CartViewDTO:
        """
        Price a cart for display.

        Used by both the customer cart endpoint and the admin cart detail view.
        A line whose pack size no longer exists is priced at 0.

        Args:
            cart_id: Cart ID
            lines: (cart_item_id, product, pack size, quantity) per cart item
            promo_code: Promo code attached to the cart (not re-validated here)

        Returns:
            CartViewDTO where total = lines after offer plans - promo discount,
            without shipping
        """
        priced_lines = []
        view_lines = []
        for cart_item_id, product, pack_size, quantity in lines:
            priced = PricingService.price_cart_line(product, pack_size, quantity)
            priced_lines.append(priced)
            view_lines.append(CartLineDTO(
                id=cart_item_id,
                product=product,
                packsize=pack_size,
                quantity=quantity,
                original_price=PricingService.round_money(priced.original_subtotal),
                discount=PricingService.round_money(priced.discount_amount),
                final_price=PricingService.round_money(priced.final_total)
            ))

        totals = PricingService.aggregate(priced_lines, PricingService.promo_code_rule(promo_code))

        return CartViewDTO(
            cart_id=cart_id,
            items=view_lines,
            subtotal=PricingService.round_money(totals.subtotal),
            total=PricingService.round_money(totals.total - totals.promo_discount),
            promocode_discount=PricingService.round_money(totals.promo_discount),
            promocode=promo_code
        )
