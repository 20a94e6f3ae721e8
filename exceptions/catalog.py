"""
Catalog exceptions (products, pack sizes).
"""

from .base import ShopException, NotFoundException


class CatalogException(ShopException):
    """Base exception for catalog errors."""
    pass


class ProductNotFoundException(CatalogException, NotFoundException):

    def __init__(self, product_id: int):
        super().__init__(
            f"Product {product_id} not found",
            details={'product_id': product_id}
        )
        self.product_id = product_id


class PackSizeNotFoundException(CatalogException, NotFoundException):
    """Raised when a pack size does not exist or belongs to another product."""

    def __init__(self, packsize_ids: list[int], product_id: int | None = None):
        if product_id is not None:
            message = f"Product/Packsize not found for product_id: {product_id}, packsize_id: {packsize_ids[0]}"
        else:
            message = f"Invalid packsize_id(s): {packsize_ids}"
        super().__init__(
            message,
            details={'packsize_ids': packsize_ids, 'product_id': product_id}
        )
        self.packsize_ids = packsize_ids
        self.product_id = product_id


class PackSizeInUseException(CatalogException):
    """Raised when deleting a pack size that existing order lines reference."""

    def __init__(self, packsize_id: int, order_item_count: int):
        super().__init__(
            f"Pack size {packsize_id} is referenced by {order_item_count} order item(s) and cannot be deleted",
            details={'packsize_id': packsize_id, 'order_item_count': order_item_count}
        )
        self.packsize_id = packsize_id
        self.order_item_count = order_item_count


class OfferPlanNotFoundException(CatalogException, NotFoundException):

    def __init__(self, offer_plan_id: int):
        super().__init__(
            f"Offer plan {offer_plan_id} not found",
            details={'offer_plan_id': offer_plan_id}
        )
        self.offer_plan_id = offer_plan_id
