from enum import Enum


class OrderStatus(str, Enum):
    PENDING = "Pending"          # Created, not yet handled by staff
    PROCESSING = "Processing"    # Being prepared
    CONFIRMED = "Confirmed"      # Confirmed by staff
    DELIVERED = "Delivered"      # Handed over to the customer
    CANCELLED = "Cancelled"      # Cancelled by customer or staff


class PaymentStatus(str, Enum):
    PENDING = "Pending"
    PAID = "Paid"
    CANCELLED = "Cancelled"
