from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from db import session_execute
from models.product import Product, ProductDTO


class ProductRepository:
    @staticmethod
    async def get_by_id(product_id: int, session: AsyncSession | Session) -> ProductDTO | None:
        stmt = select(Product).where(Product.id == product_id)
        product = await session_execute(stmt, session)
        product = product.unique().scalar()
        if product is not None:
            return ProductDTO.model_validate(product, from_attributes=True)
        return None

    @staticmethod
    async def get_by_ids(product_ids: list[int], session: AsyncSession | Session) -> dict[int, ProductDTO]:
        # offer_plan is joined-loaded, ProductDTO carries it for pricing
        stmt = select(Product).where(Product.id.in_(product_ids))
        products = await session_execute(stmt, session)
        return {
            product.id: ProductDTO.model_validate(product, from_attributes=True)
            for product in products.unique().scalars().all()
        }
