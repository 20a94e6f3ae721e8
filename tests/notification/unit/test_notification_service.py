import smtplib
from decimal import Decimal
from unittest.mock import patch

import pytest

from enums.currency import Currency
from models.order import OrderDetailDTO
from models.orderItem import OrderItemDTO
from models.pack_size import PackSizeDTO
from services.notification import NotificationService, ORDER_CONFIRMATION_SUBJECT


@pytest.fixture
def order():
    return OrderDetailDTO(
        id=42, user_id=1, name="Jane <Doe>", email="jane@example.com",
        country="Germany", state="Berlin", city="Berlin", phone="4930123456",
        address="Unter den Linden 1", zip_code="10117",
        subtotal=Decimal("160.00"), total=Decimal("135.00"), promo_discount=Decimal("13.50"),
        shipping_charge=Decimal("25.00"), total_amount=Decimal("146.50"), currency=Currency.USD,
        promo_code="TENOFF",
        items=[OrderItemDTO(product_id=2, packsize_id=2, quantity=2, unit_price=Decimal("50.00"),
                            discount=Decimal("10.00"), price=Decimal("90.00"),
                            pack_size=PackSizeDTO(id=2, product_id=2, size=250, price=Decimal("50.00")))]
    )


class TestRenderOrderConfirmation:

    def test_contains_snapshot_totals_and_link(self, order):
        html = NotificationService.render_order_confirmation(order, "https://pay.example/approve")

        assert "Grand total: 146.50 USD" in html
        assert "Promo code TENOFF: -13.50 USD" in html
        assert "90.00 USD" in html
        assert 'href="https://pay.example/approve"' in html

    def test_without_link(self, order):
        html = NotificationService.render_order_confirmation(order, None)

        assert "A payment link will follow shortly." in html

    def test_customer_input_is_escaped(self, order):
        html = NotificationService.render_order_confirmation(order, None)

        assert "Jane &lt;Doe&gt;" in html


class TestSendOrderConfirmation:

    @pytest.mark.asyncio
    async def test_sent(self, order):
        with patch.object(NotificationService, "_send_mail") as send_mail:
            sent = await NotificationService.send_order_confirmation(order, "https://pay.example/approve")

        assert sent is True
        recipient, subject, html = send_mail.call_args.args
        assert recipient == "jane@example.com"
        assert subject == ORDER_CONFIRMATION_SUBJECT

    @pytest.mark.asyncio
    async def test_smtp_failure_is_reported_not_raised(self, order):
        with patch.object(NotificationService, "_send_mail", side_effect=smtplib.SMTPException("550")):
            sent = await NotificationService.send_order_confirmation(order, None)

        assert sent is False

    @pytest.mark.asyncio
    async def test_connection_failure(self, order):
        with patch.object(NotificationService, "_send_mail", side_effect=ConnectionRefusedError()):
            sent = await NotificationService.send_order_confirmation(order, None)

        assert sent is False
