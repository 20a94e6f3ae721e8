from pydantic import BaseModel


class PaymentLinkDTO(BaseModel):
    """Approval link returned by the payment provider for one order."""
    id: str
    link: str
