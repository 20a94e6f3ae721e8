from enum import Enum


class DiscountType(str, Enum):
    """
    Discount kinds for offer plans and promo codes.

    The values are the tags stored in the database and sent over the API.
    They must round-trip unchanged, including the historical spelling
    of the percentage tag.
    """

    PERCENTAGE = "Percantage"
    FIXED_AMOUNT = "Amount"

    @classmethod
    def from_string(cls, value: str) -> 'DiscountType':
        """
        Convert an incoming tag to DiscountType.

        Accepts the stored tags case-insensitively, plus the correctly spelled
        "percentage" and "fixed" aliases that admin forms tend to send.

        Raises:
            ValueError: If value is not a known discount type

        Examples:
            >>> DiscountType.from_string("Percantage")
            DiscountType.PERCENTAGE
            >>> DiscountType.from_string(" amount ")
            DiscountType.FIXED_AMOUNT
        """
        if not value or not value.strip():
            raise ValueError("Discount type cannot be empty")

        normalized = value.strip().lower()
        aliases = {
            "percantage": cls.PERCENTAGE,
            "percentage": cls.PERCENTAGE,
            "amount": cls.FIXED_AMOUNT,
            "fixed": cls.FIXED_AMOUNT,
        }
        if normalized in aliases:
            return aliases[normalized]

        raise ValueError(
            f"Invalid discount type '{value}'. Valid types: {', '.join(t.value for t in cls)}"
        )
