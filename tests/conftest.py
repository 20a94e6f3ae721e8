"""
Pytest configuration and fixtures for tests.

This file is automatically loaded by pytest and provides shared fixtures
and configuration for all tests.
"""

import os
import sys
from datetime import datetime
from decimal import Decimal

# Test configuration must be in place before config is imported anywhere
os.environ["RUNTIME_ENVIRONMENT"] = "TEST"
os.environ["DB_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["ADMIN_API_TOKEN"] = "test-admin-token"
os.environ["USER_TOKEN_SECRET"] = "test-user-token-secret"
os.environ["CURRENCY"] = "USD"
os.environ.pop("PAYPAL_CLIENT_ID", None)
os.environ.pop("PAYPAL_CLIENT_SECRET", None)

# Add parent directory to Python path so tests can import modules
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

import pytest
import pytest_asyncio
from fakeredis import FakeAsyncRedis
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from enums.discount_type import DiscountType
from enums.record_status import RecordStatus
from models.base import Base
from models.offer_plan import OfferPlan
from models.pack_size import PackSize
from models.product import Product
from models.promo_code import PromoCode
from models.user import User


# ============================================================================
# Database Fixtures
# ============================================================================

@pytest_asyncio.fixture
async def test_engine():
    """Create test database engine (in-memory SQLite shared by every session)."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool
    )

    import db  # noqa: F401 registers every model on Base.metadata
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    # Cleanup
    await engine.dispose()


@pytest_asyncio.fixture
async def test_session_maker(test_engine):
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def test_session(test_session_maker):
    """Create test database session."""
    async with test_session_maker() as session:
        yield session
        await session.rollback()


# ============================================================================
# Redis Fixtures
# ============================================================================

@pytest_asyncio.fixture
async def redis_client():
    """Create fake Redis client for testing (no real Redis server needed)."""
    client = FakeAsyncRedis(decode_responses=True)
    yield client
    await client.aclose()


# ============================================================================
# Catalog Fixtures
# ============================================================================

@pytest_asyncio.fixture
async def catalog(test_session):
    """
    Users, offer plans, products and pack sizes used across tests.

    Products:
        plain:      no offer plan,               pack size 100.00
        percent:    Percentage(10) offer plan,   pack size 50.00
        fixed:      Amount(5) offer plan,        pack size 20.00
        inactive:   InActive Percentage(50) plan, pack size 40.00
    """
    user = User(name="Jane Doe", email="jane@example.com")
    other_user = User(name="John Roe", email="john@example.com")
    percent_plan = OfferPlan(discount=Decimal("10"), type=DiscountType.PERCENTAGE, status=RecordStatus.ACTIVE)
    fixed_plan = OfferPlan(discount=Decimal("5"), type=DiscountType.FIXED_AMOUNT, status=RecordStatus.ACTIVE)
    inactive_plan = OfferPlan(discount=Decimal("50"), type=DiscountType.PERCENTAGE, status=RecordStatus.INACTIVE)
    test_session.add_all([user, other_user, percent_plan, fixed_plan, inactive_plan])
    await test_session.flush()

    plain = Product(title="Plain Tea", slug="plain-tea")
    percent = Product(title="Green Tea", slug="green-tea", offer_plan_id=percent_plan.id)
    fixed = Product(title="Black Tea", slug="black-tea", offer_plan_id=fixed_plan.id)
    inactive = Product(title="White Tea", slug="white-tea", offer_plan_id=inactive_plan.id)
    test_session.add_all([plain, percent, fixed, inactive])
    await test_session.flush()

    plain_pack = PackSize(product_id=plain.id, size=1, price=Decimal("100.00"))
    percent_pack = PackSize(product_id=percent.id, size=1, price=Decimal("50.00"))
    fixed_pack = PackSize(product_id=fixed.id, size=1, price=Decimal("20.00"))
    inactive_pack = PackSize(product_id=inactive.id, size=1, price=Decimal("40.00"))
    test_session.add_all([plain_pack, percent_pack, fixed_pack, inactive_pack])
    await test_session.commit()

    return {
        "user_id": user.id,
        "other_user_id": other_user.id,
        "products": {"plain": plain.id, "percent": percent.id, "fixed": fixed.id, "inactive": inactive.id},
        "pack_sizes": {"plain": plain_pack.id, "percent": percent_pack.id,
                       "fixed": fixed_pack.id, "inactive": inactive_pack.id},
    }


@pytest_asyncio.fixture
async def promo_codes(test_session):
    """
    TENOFF:  Percentage(10), valid through 2030
    SAVE20:  Amount(20), January 2024 only
    FLAT30:  Amount(30), valid through 2030
    OFFLINE: Percentage(5), InActive
    """
    codes = {
        "TENOFF": PromoCode(code="TENOFF", discount=Decimal("10"), type=DiscountType.PERCENTAGE,
                            start_date=datetime(2024, 1, 1), end_date=datetime(2030, 12, 31),
                            status=RecordStatus.ACTIVE),
        "SAVE20": PromoCode(code="SAVE20", discount=Decimal("20"), type=DiscountType.FIXED_AMOUNT,
                            start_date=datetime(2024, 1, 1), end_date=datetime(2024, 1, 31),
                            status=RecordStatus.ACTIVE),
        "FLAT30": PromoCode(code="FLAT30", discount=Decimal("30"), type=DiscountType.FIXED_AMOUNT,
                            start_date=datetime(2024, 1, 1), end_date=datetime(2030, 12, 31),
                            status=RecordStatus.ACTIVE),
        "OFFLINE": PromoCode(code="OFFLINE", discount=Decimal("5"), type=DiscountType.PERCENTAGE,
                             start_date=datetime(2024, 1, 1), end_date=datetime(2030, 12, 31),
                             status=RecordStatus.INACTIVE),
    }
    test_session.add_all(codes.values())
    await test_session.commit()
    return {code: promo_code.id for code, promo_code in codes.items()}


@pytest.fixture
def now():
    """Reference time inside the TENOFF/FLAT30 windows."""
    return datetime(2025, 6, 15, 12, 0, 0)
