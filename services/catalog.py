import logging
import math

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

import config
from enums.record_status import RecordStatus
from exceptions import (
    OfferPlanNotFoundException,
    PackSizeNotFoundException,
    PackSizeInUseException,
    ProductNotFoundException,
)
from models.offer_plan import OfferPlanDTO
from models.pack_size import PackSizeDTO
from repositories.offer_plan import OfferPlanRepository
from repositories.pack_size import PackSizeRepository
from repositories.product import ProductRepository
from utils.transaction_manager import TransactionManager

logger = logging.getLogger(__name__)


class CatalogService:
    """
    Admin maintenance of the pricing inputs: offer plans and pack-size prices.

    Carts are priced from the live catalog, so every change here shows up on
    the next cart read. Orders keep the prices frozen at checkout.
    """

    # === Offer plans ===

    @staticmethod
    async def get_offer_plan_page(page: int, status: RecordStatus | None, session: AsyncSession | Session) -> dict:
        offer_plans, count = await OfferPlanRepository.get_paginated(page, status, session)
        return {
            "items": offer_plans,
            "page": page,
            "total": count,
            "total_pages": math.ceil(count / config.PAGE_ENTRIES),
        }

    @staticmethod
    async def get_offer_plan(offer_plan_id: int, session: AsyncSession | Session) -> OfferPlanDTO:
        offer_plan = await OfferPlanRepository.get_by_id(offer_plan_id, session)
        if offer_plan is None:
            raise OfferPlanNotFoundException(offer_plan_id)
        return offer_plan

    @staticmethod
    async def create_offer_plan(offer_plan_dto: OfferPlanDTO, session: AsyncSession | Session) -> OfferPlanDTO:
        async with TransactionManager.atomic(session, "offer plan creation"):
            offer_plan = await OfferPlanRepository.create(offer_plan_dto, session)
        logger.info(f"✅ Offer plan {offer_plan.id} created ({offer_plan.type.value} {offer_plan.discount}, "
                    f"{offer_plan.status.value})")
        return offer_plan

    @staticmethod
    async def update_offer_plan(offer_plan_id: int, values: dict, session: AsyncSession | Session) -> OfferPlanDTO:
        async with TransactionManager.atomic(session, "offer plan update"):
            await CatalogService.get_offer_plan(offer_plan_id, session)
            if len(values) > 0:
                await OfferPlanRepository.update(offer_plan_id, values, session)
            offer_plan = await OfferPlanRepository.get_by_id(offer_plan_id, session)
        logger.info(f"Offer plan {offer_plan_id} updated: {', '.join(values.keys()) or 'no changes'}")
        return offer_plan

    @staticmethod
    async def toggle_offer_plan_status(offer_plan_id: int, session: AsyncSession | Session) -> OfferPlanDTO:
        """An InActive plan stays attached to its products but no longer discounts them."""
        async with TransactionManager.atomic(session, "offer plan status change"):
            offer_plan = await CatalogService.get_offer_plan(offer_plan_id, session)
            new_status = offer_plan.status.toggled()
            await OfferPlanRepository.set_status(offer_plan_id, new_status, session)
            offer_plan.status = new_status
        logger.info(f"Offer plan {offer_plan_id} is now {new_status.value}")
        return offer_plan

    # === Pack sizes ===

    @staticmethod
    async def get_pack_size(packsize_id: int, session: AsyncSession | Session) -> PackSizeDTO:
        pack_size = await PackSizeRepository.get_by_id(packsize_id, session)
        if pack_size is None:
            raise PackSizeNotFoundException([packsize_id])
        return pack_size

    @staticmethod
    async def create_pack_size(pack_size_dto: PackSizeDTO, session: AsyncSession | Session) -> PackSizeDTO:
        """
        Raises:
            ProductNotFoundException: pack_size_dto.product_id does not exist
        """
        async with TransactionManager.atomic(session, "pack size creation"):
            if await ProductRepository.get_by_id(pack_size_dto.product_id, session) is None:
                raise ProductNotFoundException(pack_size_dto.product_id)
            pack_size = await PackSizeRepository.create(pack_size_dto, session)
        logger.info(f"✅ Pack size {pack_size.id} (size {pack_size.size}) of product {pack_size.product_id} "
                    f"created at {pack_size.price}")
        return pack_size

    @staticmethod
    async def update_pack_size(packsize_id: int, values: dict, session: AsyncSession | Session) -> PackSizeDTO:
        """
        Change a pack size's price and/or size.

        Existing order items are unaffected: they carry their own unit_price.
        """
        async with TransactionManager.atomic(session, "pack size update"):
            pack_size = await CatalogService.get_pack_size(packsize_id, session)
            if len(values) > 0:
                await PackSizeRepository.update(packsize_id, values, session)
            updated = await PackSizeRepository.get_by_id(packsize_id, session)
        if "price" in values:
            logger.info(f"Pack size {packsize_id} price {pack_size.price} -> {updated.price}")
        else:
            logger.info(f"Pack size {packsize_id} updated: {', '.join(values.keys()) or 'no changes'}")
        return updated

    @staticmethod
    async def delete_pack_size(packsize_id: int, session: AsyncSession | Session) -> None:
        """
        Delete a pack size that no order references.

        Order items keep a foreign key to the pack size they were bought in,
        so a referenced pack size stays in the catalog.

        Raises:
            PackSizeNotFoundException: unknown pack size
            PackSizeInUseException: at least one order item references it
        """
        async with TransactionManager.atomic(session, "pack size deletion"):
            pack_size = await CatalogService.get_pack_size(packsize_id, session)
            order_item_count = await PackSizeRepository.count_order_references(packsize_id, session)
            if order_item_count > 0:
                raise PackSizeInUseException(packsize_id, order_item_count)
            await PackSizeRepository.delete(packsize_id, session)
        logger.info(f"🗑️ Pack size {packsize_id} of product {pack_size.product_id} deleted")
