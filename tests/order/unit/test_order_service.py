"""
OrderService Unit Tests

Server-side pricing at checkout, the frozen price snapshot, cart checkout,
the order_created outbox event and customer/admin updates.
"""

from datetime import datetime
from decimal import Decimal

import pytest
import pytest_asyncio
from sqlalchemy import update

from enums.order_status import OrderStatus, PaymentStatus
from enums.outbox_event import OutboxEventType, OutboxEventStatus
from exceptions import (
    CartNotFoundException,
    InvalidOrderStateException,
    OrderNotFoundException,
    PackSizeNotFoundException,
    PromoCodeNotFoundException,
    UserNotFoundException,
    ValidationException,
)
from models.cart import CartIdentity, CartUpdateDTO, CartLineInputDTO
from models.order import OrderCreateDTO, OrderItemInputDTO, OrderUserUpdateDTO
from models.pack_size import PackSize
from repositories.cart import CartRepository
from repositories.outbox import OutboxRepository
from services.cart import CartService
from services.order import OrderService


def order_request(items=(), **overrides) -> OrderCreateDTO:
    fields = {
        "name": "Jane Doe",
        "email": "jane@example.com",
        "country": "Germany",
        "state": "Berlin",
        "city": "Berlin",
        "phone": "4930123456",
        "shipping_address": "Unter den Linden 1",
        "zip_code": "10117",
        "items": [OrderItemInputDTO(product_id=product_id, packsize_id=packsize_id, quantity=quantity)
                  for product_id, packsize_id, quantity in items],
    }
    fields.update(overrides)
    return OrderCreateDTO(**fields)


@pytest.fixture
def lines(catalog):
    products, pack_sizes = catalog["products"], catalog["pack_sizes"]
    return [
        (products["percent"], pack_sizes["percent"], 2),  # 100.00 - 10.00 = 90.00
        (products["fixed"], pack_sizes["fixed"], 3),      # 60.00 - 15.00 = 45.00
    ]


class TestOrderCreation:
    """Test OrderService.orchestrate_order_creation()"""

    @pytest.mark.asyncio
    async def test_totals_with_promo_code_and_shipping(self, test_session, catalog, promo_codes, lines, now):
        order = await OrderService.orchestrate_order_creation(
            catalog["user_id"], order_request(lines, promocode="TENOFF"), now, test_session
        )

        assert order.subtotal == Decimal("160.00")
        assert order.total == Decimal("135.00")
        assert order.promo_discount == Decimal("13.50")
        assert order.shipping_charge == Decimal("25.00")
        assert order.total_amount == Decimal("146.50")
        assert order.promo_code == "TENOFF"
        assert order.promocode_id == promo_codes["TENOFF"]
        assert order.status == OrderStatus.PENDING
        assert order.payment_status == PaymentStatus.PENDING

    @pytest.mark.asyncio
    async def test_items_are_frozen_per_line(self, test_session, catalog, lines, now):
        order = await OrderService.orchestrate_order_creation(
            catalog["user_id"], order_request(lines), now, test_session
        )

        items = sorted(order.items, key=lambda item: item.packsize_id)
        assert [(item.unit_price, item.discount, item.price) for item in items] == [
            (Decimal("50.00"), Decimal("10.00"), Decimal("90.00")),
            (Decimal("20.00"), Decimal("15.00"), Decimal("45.00")),
        ]

    @pytest.mark.asyncio
    async def test_free_shipping_above_threshold(self, test_session, catalog, now):
        order = await OrderService.orchestrate_order_creation(
            catalog["user_id"],
            order_request([(catalog["products"]["plain"], catalog["pack_sizes"]["plain"], 2)]),
            now, test_session
        )

        assert order.shipping_charge == Decimal("0.00")
        assert order.total_amount == Decimal("200.00")

    @pytest.mark.asyncio
    async def test_snapshot_survives_catalog_price_change(self, test_session, catalog, lines, now):
        order = await OrderService.orchestrate_order_creation(
            catalog["user_id"], order_request(lines), now, test_session
        )

        await test_session.execute(update(PackSize)
                                   .where(PackSize.id == catalog["pack_sizes"]["percent"])
                                   .values(price=Decimal("999.00")))
        await test_session.commit()

        reloaded = await OrderService.get_order(order.id, catalog["user_id"], test_session)
        assert reloaded.total_amount == order.total_amount
        assert {item.unit_price for item in reloaded.items} == {Decimal("50.00"), Decimal("20.00")}

    @pytest.mark.asyncio
    async def test_client_total_is_ignored(self, test_session, catalog, lines, now):
        order = await OrderService.orchestrate_order_creation(
            catalog["user_id"], order_request(lines, total_amount=Decimal("1.00")), now, test_session
        )

        assert order.total_amount == Decimal("160.00")

    @pytest.mark.asyncio
    async def test_outbox_event_written_with_order(self, test_session, catalog, lines, now):
        order = await OrderService.orchestrate_order_creation(
            catalog["user_id"], order_request(lines), now, test_session
        )

        events = await OutboxRepository.get_pending(10, test_session)
        assert len(events) == 1
        assert events[0].event_type == OutboxEventType.ORDER_CREATED
        assert events[0].payload == {"order_id": order.id}
        assert events[0].status == OutboxEventStatus.PENDING

    @pytest.mark.asyncio
    async def test_invalid_promo_code_writes_nothing(self, test_session, catalog, promo_codes, lines, now):
        with pytest.raises(PromoCodeNotFoundException):
            await OrderService.orchestrate_order_creation(
                catalog["user_id"], order_request(lines, promocode="SAVE20"), now, test_session
            )

        assert await OrderService.get_orders(catalog["user_id"], test_session) == []
        assert await OutboxRepository.get_pending(10, test_session) == []

    @pytest.mark.asyncio
    async def test_unknown_pack_size(self, test_session, catalog, now):
        with pytest.raises(PackSizeNotFoundException) as exc_info:
            await OrderService.orchestrate_order_creation(
                catalog["user_id"], order_request([(catalog["products"]["plain"], 9999, 1)]), now, test_session
            )

        assert 9999 in exc_info.value.details["packsize_ids"]

    @pytest.mark.asyncio
    async def test_pack_size_of_other_product(self, test_session, catalog, now):
        with pytest.raises(PackSizeNotFoundException):
            await OrderService.orchestrate_order_creation(
                catalog["user_id"],
                order_request([(catalog["products"]["plain"], catalog["pack_sizes"]["fixed"], 1)]),
                now, test_session
            )

    @pytest.mark.asyncio
    async def test_unknown_user(self, test_session, catalog, lines, now):
        with pytest.raises(UserNotFoundException):
            await OrderService.orchestrate_order_creation(9999, order_request(lines), now, test_session)


class TestCartCheckout:

    @pytest.fixture
    def identity(self, catalog):
        return CartIdentity(user_id=catalog["user_id"])

    async def fill_cart(self, identity, lines, session):
        await CartService.add_or_update(identity, CartUpdateDTO(items=[
            CartLineInputDTO(product_id=product_id, packsize_id=packsize_id, quantity=quantity)
            for product_id, packsize_id, quantity in lines
        ]), session)

    @pytest.mark.asyncio
    async def test_checkout_uses_cart_lines_and_code(self, test_session, catalog, promo_codes, lines, identity, now):
        await self.fill_cart(identity, lines, test_session)
        await CartService.apply_promo_code(identity, "TENOFF", now, test_session)

        order = await OrderService.orchestrate_order_creation(
            catalog["user_id"], order_request(), now, test_session
        )

        assert len(order.items) == 2
        assert order.promo_code == "TENOFF"
        assert order.total_amount == Decimal("146.50")
        assert await CartRepository.find_by_identity(catalog["user_id"], None, test_session) is None

    @pytest.mark.asyncio
    async def test_cart_code_revalidated_at_checkout(self, test_session, catalog, promo_codes, lines, identity, now):
        await self.fill_cart(identity, lines, test_session)
        await CartService.apply_promo_code(identity, "FLAT30", now, test_session)

        with pytest.raises(PromoCodeNotFoundException):
            await OrderService.orchestrate_order_creation(
                catalog["user_id"], order_request(), datetime(2031, 1, 1), test_session
            )

        assert await CartRepository.find_by_identity(catalog["user_id"], None, test_session) is not None

    @pytest.mark.asyncio
    async def test_no_cart(self, test_session, catalog, now):
        with pytest.raises(CartNotFoundException):
            await OrderService.orchestrate_order_creation(catalog["user_id"], order_request(), now, test_session)

    @pytest.mark.asyncio
    async def test_empty_cart(self, test_session, catalog, identity, now):
        await self.fill_cart(identity, [], test_session)

        with pytest.raises(ValidationException):
            await OrderService.orchestrate_order_creation(catalog["user_id"], order_request(), now, test_session)


class TestOrderUpdates:

    @pytest_asyncio.fixture
    async def order(self, test_session, catalog, lines, now):
        return await OrderService.orchestrate_order_creation(
            catalog["user_id"], order_request(lines), now, test_session
        )

    @pytest.mark.asyncio
    async def test_user_cancels(self, test_session, catalog, order):
        updated = await OrderService.update_by_user(
            order.id, catalog["user_id"], OrderUserUpdateDTO(status=OrderStatus.CANCELLED), test_session
        )

        assert updated.status == OrderStatus.CANCELLED
        assert updated.total_amount == order.total_amount

    @pytest.mark.asyncio
    async def test_user_records_payment_detail(self, test_session, catalog, order):
        updated = await OrderService.update_by_user(
            order.id, catalog["user_id"],
            OrderUserUpdateDTO(payment_status=PaymentStatus.CANCELLED, payment_detail={"capture_id": "CAP-1"}),
            test_session
        )

        assert updated.payment_status == PaymentStatus.CANCELLED
        assert updated.payment_detail == {"capture_id": "CAP-1"}

    @pytest.mark.asyncio
    async def test_user_cannot_mark_paid(self, test_session, catalog, order):
        with pytest.raises(ValidationException):
            await OrderService.update_by_user(
                order.id, catalog["user_id"],
                OrderUserUpdateDTO(payment_status=PaymentStatus.PAID, payment_detail={"capture_id": "forged"}),
                test_session
            )

        stored = await OrderService.get_order(order.id, catalog["user_id"], test_session)
        assert stored.payment_status == PaymentStatus.PENDING
        assert stored.payment_detail is None

    @pytest.mark.asyncio
    async def test_admin_marks_paid(self, test_session, order):
        updated = await OrderService.update_payment_status(order.id, PaymentStatus.PAID, test_session)

        assert updated.payment_status == PaymentStatus.PAID
        assert updated.total_amount == order.total_amount

    @pytest.mark.asyncio
    async def test_admin_payment_status_unknown_order(self, test_session, order):
        with pytest.raises(OrderNotFoundException):
            await OrderService.update_payment_status(order.id + 100, PaymentStatus.PAID, test_session)

    @pytest.mark.asyncio
    async def test_user_may_only_cancel(self, test_session, catalog, order):
        with pytest.raises(ValidationException):
            await OrderService.update_by_user(
                order.id, catalog["user_id"], OrderUserUpdateDTO(status=OrderStatus.CONFIRMED), test_session
            )

    @pytest.mark.asyncio
    async def test_delivered_order_cannot_be_cancelled(self, test_session, catalog, order):
        await OrderService.update_status(order.id, OrderStatus.DELIVERED, test_session)

        with pytest.raises(InvalidOrderStateException):
            await OrderService.update_by_user(
                order.id, catalog["user_id"], OrderUserUpdateDTO(status=OrderStatus.CANCELLED), test_session
            )

    @pytest.mark.asyncio
    async def test_other_users_order_is_not_found(self, test_session, catalog, order):
        with pytest.raises(OrderNotFoundException):
            await OrderService.get_order(order.id, catalog["other_user_id"], test_session)

    @pytest.mark.asyncio
    async def test_admin_items_and_page(self, test_session, catalog, order):
        items = await OrderService.get_items(order.id, test_session)
        page = await OrderService.get_page(0, "jane", "total_amount", "asc", test_session)

        assert len(items) == 2
        assert all(item.pack_size is not None for item in items)
        assert page["total"] == 1
        assert page["items"][0].id == order.id
