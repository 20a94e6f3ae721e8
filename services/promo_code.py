import datetime
import logging
import math
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

import config
from enums.discount_type import DiscountType
from exceptions import (
    PromoCodeNotFoundException,
    PromoCodeBelowMinimumException,
    DuplicatePromoCodeException,
    PromoCodeRecordNotFoundException,
    ValidationException,
)
from models.pricing import DiscountRule
from models.promo_code import PromoCodeDTO
from repositories.promo_code import PromoCodeRepository
from services.pricing import PricingService
from utils.transaction_manager import TransactionManager

logger = logging.getLogger(__name__)


class PromoCodeService:

    @staticmethod
    def check_minimum(promo_code: PromoCodeDTO, candidate_subtotal: Decimal) -> DiscountRule:
        """
        Minimum-subtotal rule of a promo code that passed the window check.

        Only fixed-amount codes have a minimum: the candidate subtotal must be
        at least the discount amount. Percentage codes always pass.

        Raises:
            PromoCodeBelowMinimumException
        """
        rule = PricingService.promo_code_rule(promo_code)
        if rule.kind == DiscountType.FIXED_AMOUNT and candidate_subtotal < rule.amount:
            logger.info(f"Promo code {promo_code.code} rejected: subtotal {candidate_subtotal} < {rule.amount}")
            raise PromoCodeBelowMinimumException(promo_code.code,
                                                 PricingService.round_money(candidate_subtotal),
                                                 PricingService.round_money(rule.amount))
        return rule

    @staticmethod
    async def validate(
        code: str,
        now: datetime.datetime,
        candidate_subtotal: Decimal,
        session: AsyncSession | Session
    ) -> tuple[PromoCodeDTO, DiscountRule]:
        """
        Check that a promo code may be attached to a cart or baked into an order.

        Args:
            code: Code as entered by the customer
            now: Reference time; the window start_date <= now <= end_date is inclusive
            candidate_subtotal: Sum of the original line subtotals the code would apply to
            session: Database session

        Returns:
            (promo code, its discount rule)

        Raises:
            PromoCodeNotFoundException: unknown code, inactive, or now outside the window
            PromoCodeBelowMinimumException: fixed-amount code larger than candidate_subtotal
        """
        promo_code = await PromoCodeRepository.get_valid_by_code(code, now, session)
        if promo_code is None:
            logger.info(f"Promo code '{code}' not valid at {now.isoformat()}")
            raise PromoCodeNotFoundException(code)
        rule = PromoCodeService.check_minimum(promo_code, candidate_subtotal)
        return promo_code, rule

    # === Admin Management Methods ===

    @staticmethod
    async def get_page(page: int, search: str | None, session: AsyncSession | Session) -> dict:
        promo_codes, count = await PromoCodeRepository.get_paginated(page, search, session)
        return {
            "items": promo_codes,
            "page": page,
            "total": count,
            "total_pages": math.ceil(count / config.PAGE_ENTRIES),
        }

    @staticmethod
    async def get_by_id(promocode_id: int, session: AsyncSession | Session) -> PromoCodeDTO:
        promo_code = await PromoCodeRepository.get_by_id(promocode_id, session)
        if promo_code is None:
            raise PromoCodeRecordNotFoundException(promocode_id)
        return promo_code

    @staticmethod
    def _check_window(start_date: datetime.datetime, end_date: datetime.datetime) -> None:
        if end_date <= start_date:
            raise ValidationException("end_date must be greater than start_date")

    @staticmethod
    async def create(promo_code_dto: PromoCodeDTO, session: AsyncSession | Session) -> PromoCodeDTO:
        PromoCodeService._check_window(promo_code_dto.start_date, promo_code_dto.end_date)
        async with TransactionManager.atomic(session, "promo code creation"):
            if await PromoCodeRepository.code_exists(promo_code_dto.code, None, session):
                raise DuplicatePromoCodeException(promo_code_dto.code)
            promo_code = await PromoCodeRepository.create(promo_code_dto, session)
        logger.info(f"✅ Promo code {promo_code.id} '{promo_code.code}' created "
                    f"({promo_code.type.value} {promo_code.discount})")
        return promo_code

    @staticmethod
    async def update(promocode_id: int, values: dict, session: AsyncSession | Session) -> PromoCodeDTO:
        """
        Update a promo code. Carts that already carry it see the new discount
        on their next read; existing orders keep their snapshot.
        """
        async with TransactionManager.atomic(session, "promo code update"):
            promo_code = await PromoCodeService.get_by_id(promocode_id, session)
            start_date = values.get("start_date", promo_code.start_date)
            end_date = values.get("end_date", promo_code.end_date)
            if start_date is not None and end_date is not None:
                PromoCodeService._check_window(start_date, end_date)
            if "code" in values and await PromoCodeRepository.code_exists(values["code"], promocode_id, session):
                raise DuplicatePromoCodeException(values["code"])
            await PromoCodeRepository.update(promocode_id, values, session)
            promo_code = await PromoCodeRepository.get_by_id(promocode_id, session)
        logger.info(f"Promo code {promocode_id} updated: {', '.join(values.keys())}")
        return promo_code

    @staticmethod
    async def toggle_status(promocode_id: int, session: AsyncSession | Session) -> PromoCodeDTO:
        async with TransactionManager.atomic(session, "promo code status change"):
            promo_code = await PromoCodeService.get_by_id(promocode_id, session)
            new_status = promo_code.status.toggled()
            await PromoCodeRepository.set_status(promocode_id, new_status, session)
            promo_code.status = new_status
        logger.info(f"Promo code {promocode_id} is now {new_status.value}")
        return promo_code

    @staticmethod
    async def delete(promocode_id: int, session: AsyncSession | Session) -> None:
        async with TransactionManager.atomic(session, "promo code deletion"):
            await PromoCodeService.get_by_id(promocode_id, session)
            await PromoCodeRepository.delete(promocode_id, session)
        logger.info(f"🗑️ Promo code {promocode_id} deleted")
