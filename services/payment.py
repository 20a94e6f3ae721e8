"""
Payment link provider (PayPal Orders API v2).

create_payment_link(amount, currency) -> PaymentLinkDTO(id, link)

Only called from the outbox dispatch job, after the order is committed.
Failures raise PaymentLinkException and are retried by the job; they never
reach the customer.
"""

import logging
from decimal import Decimal

import httpx

import config
from enums.currency import Currency
from exceptions import PaymentLinkException
from models.payment import PaymentLinkDTO

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT_SECONDS = 10.0


class PaymentService:

    @staticmethod
    async def _get_access_token(client: httpx.AsyncClient) -> str:
        if not config.PAYPAL_CLIENT_ID or not config.PAYPAL_CLIENT_SECRET:
            raise PaymentLinkException("PayPal credentials are not configured")
        response = await client.post(
            "/v1/oauth2/token",
            data={"grant_type": "client_credentials"},
            auth=(config.PAYPAL_CLIENT_ID, config.PAYPAL_CLIENT_SECRET)
        )
        response.raise_for_status()
        return response.json()["access_token"]

    @staticmethod
    async def create_payment_link(
        amount: Decimal,
        currency: Currency,
        order_id: int | None = None,
        client: httpx.AsyncClient | None = None
    ) -> PaymentLinkDTO:
        """
        Create a PayPal order for amount and return its approval link.

        Args:
            amount: Grand total, already rounded to 2 places
            currency: Order currency
            order_id: Used as the PayPal reference_id and in log lines
            client: Preconfigured client (tests); a new one is opened otherwise

        Raises:
            PaymentLinkException: provider unreachable, error status, or no approve link
        """
        request_body = {
            "intent": "CAPTURE",
            "purchase_units": [{
                "reference_id": str(order_id) if order_id is not None else "default",
                "amount": {"currency_code": currency.value, "value": f"{amount:.2f}"},
            }],
        }
        try:
            if client is None:
                async with httpx.AsyncClient(base_url=config.PAYPAL_API_URL,
                                             timeout=REQUEST_TIMEOUT_SECONDS) as own_client:
                    payload = await PaymentService._create_order(own_client, request_body)
            else:
                payload = await PaymentService._create_order(client, request_body)
        except httpx.HTTPStatusError as e:
            logger.error(f"PayPal returned status {e.response.status_code} for order {order_id}: "
                         f"{e.response.text[:500]}")
            raise PaymentLinkException(f"provider status {e.response.status_code}", order_id) from e
        except httpx.RequestError as e:
            logger.error(f"Could not reach PayPal for order {order_id}: {e}")
            raise PaymentLinkException("provider unreachable", order_id) from e
        except (KeyError, ValueError) as e:
            logger.error(f"Unexpected PayPal response for order {order_id}: {e}")
            raise PaymentLinkException("malformed provider response", order_id) from e

        link = next((lk.get("href") for lk in payload.get("links", []) if lk.get("rel") == "approve"), None)
        if not link or not payload.get("id"):
            raise PaymentLinkException("Failed to retrieve PayPal approval link.", order_id)

        logger.info(f"💳 Payment link created for order {order_id}: PayPal order {payload['id']}")
        return PaymentLinkDTO(id=payload["id"], link=link)

    @staticmethod
    async def _create_order(client: httpx.AsyncClient, request_body: dict) -> dict:
        access_token = await PaymentService._get_access_token(client)
        response = await client.post(
            "/v2/checkout/orders",
            json=request_body,
            headers={"Authorization": f"Bearer {access_token}", "Prefer": "return=representation"}
        )
        response.raise_for_status()
        return response.json()
