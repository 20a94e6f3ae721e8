from enum import Enum


class OutboxEventType(str, Enum):
    ORDER_CREATED = "order_created"


class OutboxEventStatus(str, Enum):
    PENDING = "pending"      # Waiting for dispatch (or retry)
    DONE = "done"            # All side effects delivered
    FAILED = "failed"        # Gave up after OUTBOX_MAX_ATTEMPTS
