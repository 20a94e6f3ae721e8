import datetime
import logging
import math
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

import config
from enums.order_status import OrderStatus, PaymentStatus
from enums.outbox_event import OutboxEventType
from exceptions import (
    CartNotFoundException,
    InvalidOrderStateException,
    OrderNotFoundException,
    PackSizeNotFoundException,
    ProductNotFoundException,
    UserNotFoundException,
    ValidationException,
)
from models.cart import CartIdentity
from models.order import OrderDTO, OrderDetailDTO, OrderCreateDTO, OrderItemInputDTO, OrderUserUpdateDTO
from models.orderItem import OrderItemDTO
from models.pricing import DiscountRule
from models.promo_code import PromoCodeDTO
from repositories.cart import CartRepository
from repositories.order import OrderRepository
from repositories.orderItem import OrderItemRepository
from repositories.outbox import OutboxRepository
from repositories.pack_size import PackSizeRepository
from repositories.product import ProductRepository
from repositories.promo_code import PromoCodeRepository
from repositories.user import UserRepository
from services.pricing import PricingService
from services.promo_code import PromoCodeService
from services.shipping import ShippingPolicy
from utils.transaction_manager import TransactionManager

logger = logging.getLogger(__name__)


class OrderService:

    @staticmethod
    async def _items_from_cart(user_id: int, session: AsyncSession | Session) -> tuple[int, list[OrderItemInputDTO], int | None]:
        identity = CartIdentity(user_id=user_id)
        cart = await CartRepository.find_by_identity(user_id, None, session)
        if cart is None:
            raise CartNotFoundException(identity.key)
        lines = await CartRepository.get_lines(cart.id, session)
        if len(lines) == 0:
            raise ValidationException("cart is empty")
        items = [OrderItemInputDTO(product_id=cart_item.product_id,
                                   packsize_id=cart_item.packsize_id,
                                   quantity=cart_item.quantity)
                 for cart_item, _, _ in lines]
        return cart.id, items, cart.promocode_id

    @staticmethod
    async def orchestrate_order_creation(
        user_id: int,
        order_create: OrderCreateDTO,
        now: datetime.datetime,
        session: AsyncSession | Session
    ) -> OrderDetailDTO:
        """
        Price and persist an order.

        Flow:
        1. Resolve the lines (request items, or the user's cart)
        2. Validate every pack size against its product
        3. Price each line from the live catalog (pack size price + active offer plan)
        4. Resolve the promo code at this moment (window + minimum rule)
        5. Aggregate: promo once on the total, shipping decided on the total
        6. Write order, frozen items and an order_created outbox event in one transaction

        Payment link and confirmation mail are delivered later by the outbox
        dispatch job; their failure never affects the order.

        Args:
            user_id: Customer placing the order (must exist)
            order_create: Validated checkout request
            now: Reference time for the promo code window
            session: Database session

        Returns:
            OrderDetailDTO with the frozen items

        Raises:
            UserNotFoundException, CartNotFoundException, PackSizeNotFoundException,
            ProductNotFoundException, PromoCodeNotFoundException,
            PromoCodeBelowMinimumException, TransactionFailureException
        """
        if await UserRepository.get_by_id(user_id, session) is None:
            raise UserNotFoundException(user_id)

        # 1. Lines
        cart_id = None
        promo_code_text = order_create.promocode.strip() if order_create.promocode else None
        cart_promocode_id = None
        if len(order_create.items) > 0:
            items = order_create.items
        else:
            cart_id, items, cart_promocode_id = await OrderService._items_from_cart(user_id, session)

        # 2. Pack sizes
        requested_ids = list(dict.fromkeys(item.packsize_id for item in items))
        pack_sizes = await PackSizeRepository.get_by_ids(requested_ids, session)
        invalid_ids = [packsize_id for packsize_id in requested_ids if packsize_id not in pack_sizes]
        if len(invalid_ids) > 0:
            raise PackSizeNotFoundException(invalid_ids)
        for item in items:
            if pack_sizes[item.packsize_id].product_id != item.product_id:
                raise PackSizeNotFoundException([item.packsize_id], product_id=item.product_id)

        products = await ProductRepository.get_by_ids(list({item.product_id for item in items}), session)
        for item in items:
            if item.product_id not in products:
                raise ProductNotFoundException(item.product_id)

        # 3. Lines priced from the catalog
        priced_lines = [
            PricingService.price_line_item(
                pack_sizes[item.packsize_id].price,
                item.quantity,
                PricingService.offer_plan_rule(products[item.product_id].offer_plan)
            )
            for item in items
        ]

        # 4. Promo code, resolved now
        promo_code, promo_rule = await OrderService._resolve_promo_code(
            promo_code_text, cart_promocode_id, now,
            PricingService.candidate_subtotal(priced_lines),
            session
        )

        # 5. Totals
        totals = PricingService.rounded(
            PricingService.aggregate(priced_lines, promo_rule, ShippingPolicy.from_config())
        )
        if order_create.total_amount is not None and \
                PricingService.round_money(order_create.total_amount) != totals.grand_total:
            logger.warning(f"⚠️ Client total {order_create.total_amount} differs from computed grand total "
                           f"{totals.grand_total} for user {user_id}, using computed total")

        order_dto = OrderDTO(
            user_id=user_id,
            name=order_create.name,
            email=order_create.email,
            country=order_create.country,
            state=order_create.state,
            city=order_create.city,
            phone=order_create.phone,
            address=order_create.shipping_address,
            zip_code=order_create.zip_code,
            subtotal=totals.subtotal,
            total=totals.total,
            promo_discount=totals.promo_discount,
            shipping_charge=totals.shipping_charge,
            total_amount=totals.grand_total,
            currency=config.CURRENCY,
            status=OrderStatus.PENDING,
            payment_status=PaymentStatus.PENDING,
            promocode_id=promo_code.id if promo_code else None,
            promo_code=promo_code.code if promo_code else None
        )
        order_items = [
            OrderItemDTO(
                product_id=item.product_id,
                packsize_id=item.packsize_id,
                quantity=item.quantity,
                unit_price=line.unit_price,
                discount=PricingService.round_money(line.discount_amount),
                price=PricingService.round_money(line.final_total)
            )
            for item, line in zip(items, priced_lines)
        ]

        # 6. One transaction
        async with TransactionManager.atomic(session, "order creation"):
            order = await OrderRepository.create(order_dto, order_items, session)
            await OutboxRepository.add(OutboxEventType.ORDER_CREATED, {"order_id": order.id}, session)
            if cart_id is not None:
                await CartRepository.delete(cart_id, session)

        logger.info(f"✅ Order {order.id} created for user {user_id}: {len(order_items)} item(s), "
                    f"grand total {order.total_amount} {order.currency.value}"
                    f"{' (from cart ' + str(cart_id) + ')' if cart_id is not None else ''}")
        return await OrderRepository.get_detail(order.id, None, session)

    @staticmethod
    async def _resolve_promo_code(
        code: str | None,
        cart_promocode_id: int | None,
        now: datetime.datetime,
        candidate_subtotal: Decimal,
        session: AsyncSession | Session
    ) -> tuple[PromoCodeDTO | None, DiscountRule | None]:
        if not code and cart_promocode_id is not None:
            # Checkout of a cart: the attached code must still be valid now
            attached = await PromoCodeRepository.get_by_id(cart_promocode_id, session)
            code = attached.code if attached is not None else None
        if not code:
            return None, None
        return await PromoCodeService.validate(code, now, candidate_subtotal, session)

    @staticmethod
    async def get_orders(user_id: int, session: AsyncSession | Session) -> list[OrderDetailDTO]:
        return await OrderRepository.get_by_user_id(user_id, session)

    @staticmethod
    async def get_order(order_id: int, user_id: int | None, session: AsyncSession | Session) -> OrderDetailDTO:
        order = await OrderRepository.get_detail(order_id, user_id, session)
        if order is None:
            raise OrderNotFoundException(order_id)
        return order

    @staticmethod
    async def update_by_user(order_id: int, user_id: int, order_update: OrderUserUpdateDTO,
                             session: AsyncSession | Session) -> OrderDetailDTO:
        """
        Customer-side order update: cancel, or record payment status/detail.
        Prices are never touched.

        Raises:
            ValidationException: status other than Cancelled, or payment status Paid
            OrderNotFoundException: unknown order or not owned by user_id
            InvalidOrderStateException: cancelling a delivered order
        """
        if order_update.status is not None and order_update.status != OrderStatus.CANCELLED:
            raise ValidationException("Only 'Cancelled' status updates are allowed.")
        if order_update.payment_status == PaymentStatus.PAID:
            # Paid is recorded by staff once the capture is confirmed
            raise ValidationException("Payment status 'Paid' cannot be set by the customer.")

        async with TransactionManager.atomic(session, "order update"):
            order = await OrderService.get_order(order_id, user_id, session)
            values = {}
            if order_update.status == OrderStatus.CANCELLED:
                if order.status == OrderStatus.DELIVERED:
                    raise InvalidOrderStateException(order_id, order.status.value, "not Delivered")
                values["status"] = OrderStatus.CANCELLED
            if order_update.payment_status is not None:
                values["payment_status"] = order_update.payment_status
            if order_update.payment_detail is not None:
                values["payment_detail"] = order_update.payment_detail
            if len(values) > 0:
                await OrderRepository.update(order_id, values, session)

        logger.info(f"Order {order_id} updated by user {user_id}: {', '.join(values.keys()) or 'no changes'}")
        return await OrderService.get_order(order_id, user_id, session)

    # === Admin Methods ===

    @staticmethod
    async def get_page(page: int, search: str | None, sort_column: str, sort_order: str,
                       session: AsyncSession | Session) -> dict:
        orders, count = await OrderRepository.get_paginated(page, search, sort_column, sort_order, session)
        return {
            "items": orders,
            "page": page,
            "total": count,
            "total_pages": math.ceil(count / config.PAGE_ENTRIES),
        }

    @staticmethod
    async def update_status(order_id: int, status: OrderStatus, session: AsyncSession | Session) -> OrderDetailDTO:
        async with TransactionManager.atomic(session, "order status change"):
            order = await OrderService.get_order(order_id, None, session)
            await OrderRepository.update(order_id, {"status": status}, session)
        logger.info(f"Order {order_id} status {order.status.value} -> {status.value}")
        return await OrderService.get_order(order_id, None, session)

    @staticmethod
    async def update_payment_status(order_id: int, payment_status: PaymentStatus,
                                    session: AsyncSession | Session) -> OrderDetailDTO:
        """Staff-side payment status change (e.g. marking a captured order Paid)."""
        async with TransactionManager.atomic(session, "order payment status change"):
            order = await OrderService.get_order(order_id, None, session)
            await OrderRepository.update(order_id, {"payment_status": payment_status}, session)
        logger.info(f"Order {order_id} payment status {order.payment_status.value} -> {payment_status.value}")
        return await OrderService.get_order(order_id, None, session)

    @staticmethod
    async def get_items(order_id: int, session: AsyncSession | Session) -> list[OrderItemDTO]:
        await OrderService.get_order(order_id, None, session)
        return await OrderItemRepository.get_by_order_id(order_id, session)
