"""
Shipping Policy

Flat shipping charge applied at order creation: orders whose discounted
total (after offer plans, before the promo code) is strictly above the
free-shipping threshold ship free, everything else pays the flat charge.

The cart preview does not include shipping; only OrderService applies it.
"""

from decimal import Decimal

from pydantic import BaseModel, Field

import config


class ShippingPolicy(BaseModel):
    free_threshold: Decimal = Field(ge=0)
    charge: Decimal = Field(ge=0)

    @classmethod
    def from_config(cls) -> 'ShippingPolicy':
        return cls(free_threshold=config.SHIPPING_FREE_THRESHOLD, charge=config.SHIPPING_CHARGE)

    def charge_for(self, total: Decimal) -> Decimal:
        """
        Shipping charge for an order total.

        Examples (defaults 199 / 25):
            >>> policy.charge_for(Decimal("150.00"))
            Decimal('25')
            >>> policy.charge_for(Decimal("199.00"))   # not strictly above
            Decimal('25')
            >>> policy.charge_for(Decimal("199.01"))
            Decimal('0')
        """
        if total > self.free_threshold:
            return Decimal("0")
        return self.charge
