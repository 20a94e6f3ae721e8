"""
Models Package

This file ensures all SQLAlchemy models are imported and registered,
which is required for relationships to work correctly.
"""

from models.base import Base
from models.user import User
from models.offer_plan import OfferPlan
from models.product import Product
from models.pack_size import PackSize
from models.promo_code import PromoCode
from models.cart import Cart
from models.cartItem import CartItem
from models.order import Order
from models.orderItem import OrderItem
from models.outbox_event import OutboxEvent

__all__ = [
    'Base',
    'User',
    'OfferPlan',
    'Product',
    'PackSize',
    'PromoCode',
    'Cart',
    'CartItem',
    'Order',
    'OrderItem',
    'OutboxEvent',
]
