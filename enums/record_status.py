from enum import Enum


class RecordStatus(str, Enum):
    """
    Activation flag shared by catalog records (products, offer plans, promo codes).

    Stored values are kept exactly as existing rows carry them.
    """
    ACTIVE = "Active"
    INACTIVE = "InActive"

    def toggled(self) -> 'RecordStatus':
        return RecordStatus.INACTIVE if self == RecordStatus.ACTIVE else RecordStatus.ACTIVE
