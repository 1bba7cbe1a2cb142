"""
Pytest configuration and fixtures for storefront tests.

Each test gets a fresh in-memory SQLite database (aiosqlite + StaticPool so
every session shares one connection). The app is driven in-process through
httpx.ASGITransport with the database, payment gateway and email service
swapped out via app.dependency_overrides.
"""
import itertools
import os
from decimal import Decimal
from typing import AsyncGenerator, List, Optional

import pytest
import pytest_asyncio

# Set test environment before importing app modules
os.environ["ENVIRONMENT"] = "development"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["SECRET_KEY"] = "test-secret-key-for-unit-tests-only"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["STRIPE_SECRET_KEY"] = "sk_test_storefront"
os.environ["STRIPE_WEBHOOK_SECRET"] = "whsec_test_storefront"
os.environ["RESEND_API_KEY"] = ""

from httpx import AsyncClient, ASGITransport  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from storefront.core.database import Base, get_db  # noqa: E402
from storefront.core.exceptions import PaymentError  # noqa: E402
from storefront.core.security import create_access_token, get_password_hash  # noqa: E402
from storefront.main import app  # noqa: E402
from storefront.models import Address, Category, Order, Product, User  # noqa: E402
from storefront.services.email_service import EmailService, SendResult, get_email_service  # noqa: E402
from storefront.services.order_service import OrderLine, order_service  # noqa: E402
from storefront.services.payment_gateway import CheckoutSession, get_payment_gateway  # noqa: E402

TEST_PASSWORD = "password123"
_PASSWORD_HASH = get_password_hash(TEST_PASSWORD)
_counter = itertools.count(1)


class FakeGateway:
    """Records checkout sessions instead of calling Stripe."""

    webhook_configured = True

    def __init__(self):
        self.sessions: List[dict] = []
        self.fail = False

    def create_checkout_session(self, line_items, metadata, success_url, cancel_url, customer_email=None):
        if self.fail:
            raise PaymentError("Failed to create checkout session", details={"stripe_error": "card_declined"})
        session_id = f"cs_test_{len(self.sessions) + 1}"
        self.sessions.append({
            "id": session_id,
            "line_items": line_items,
            "metadata": metadata,
            "success_url": success_url,
            "cancel_url": cancel_url,
            "customer_email": customer_email,
        })
        return CheckoutSession(id=session_id, url=f"https://checkout.stripe.test/{session_id}")


class FakeEmailProvider:
    """Captures outgoing mail; can be switched to fail."""

    def __init__(self):
        self.sent: List[dict] = []
        self.fail = False

    async def send(self, to_email: str, subject: str, html_body: str) -> SendResult:
        if self.fail:
            raise RuntimeError("email provider unavailable")
        self.sent.append({"to": to_email, "subject": subject, "html": html_body})
        return SendResult(success=True, message_id=f"msg_{len(self.sent)}")


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def email_provider() -> FakeEmailProvider:
    return FakeEmailProvider()


@pytest_asyncio.fixture
async def client(session_factory, gateway, email_provider) -> AsyncGenerator[AsyncClient, None]:
    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_payment_gateway] = lambda: gateway
    app.dependency_overrides[get_email_service] = lambda: EmailService(email_provider)

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token({'sub': user.id})}"}


@pytest.fixture
def make_user(db):
    async def _make(
        email: Optional[str] = None,
        name: str = "Test User",
        is_admin: bool = False,
        is_active: bool = True,
    ) -> User:
        user = User(
            email=email or f"user{next(_counter)}@example.com",
            name=name,
            hashed_password=_PASSWORD_HASH,
            is_admin=is_admin,
            is_active=is_active,
        )
        db.add(user)
        await db.commit()
        await db.refresh(user)
        return user
    return _make


@pytest_asyncio.fixture
async def user(make_user) -> User:
    return await make_user(name="Alice Shopper")


@pytest_asyncio.fixture
async def admin(make_user) -> User:
    return await make_user(name="Store Admin", is_admin=True)


@pytest.fixture
def make_category(db):
    async def _make(name: str = "Gadgets") -> Category:
        n = next(_counter)
        category = Category(name=name, slug=f"{name.lower()}-{n}")
        db.add(category)
        await db.commit()
        await db.refresh(category)
        return category
    return _make


@pytest.fixture
def make_product(db):
    async def _make(
        name: str = "Widget",
        price: str = "10.00",
        inventory: int = 10,
        active: bool = True,
        featured: bool = False,
        category_id: Optional[int] = None,
        description: Optional[str] = None,
        vendor_id: Optional[int] = None,
    ) -> Product:
        n = next(_counter)
        product = Product(
            name=name,
            slug=f"{name.lower().replace(' ', '-')}-{n}",
            sku=f"SKU-{n:05d}",
            price=Decimal(price),
            inventory=inventory,
            active=active,
            featured=featured,
            category_id=category_id,
            description=description,
            vendor_id=vendor_id,
            images=[],
        )
        db.add(product)
        await db.commit()
        await db.refresh(product)
        return product
    return _make


@pytest.fixture
def make_address(db):
    async def _make(user: User, is_default: bool = True, street: str = "1 Main St") -> Address:
        address = Address(
            user_id=user.id,
            street=street,
            city="Springfield",
            state="IL",
            zip_code="62701",
            country="US",
            is_default=is_default,
        )
        db.add(address)
        await db.commit()
        await db.refresh(address)
        return address
    return _make


@pytest.fixture
def make_order(db):
    """Create an order through OrderService (decrements inventory)."""
    async def _make(user: User, items: List[tuple], address: Optional[Address] = None,
                    session_id: Optional[str] = None) -> Order:
        lines = [
            OrderLine(product_id=product.id, quantity=qty, price=product.price, product_name=product.name)
            for product, qty in items
        ]
        subtotal = sum((Decimal(str(line.price)) * line.quantity for line in lines), Decimal("0"))
        order = await order_service.create_order(
            db,
            user_id=user.id,
            lines=lines,
            subtotal=subtotal,
            shipping=Decimal("0"),
            tax=Decimal("0"),
            total=subtotal,
            shipping_address_id=address.id if address else None,
            stripe_session_id=session_id,
        )
        await db.commit()
        return await order_service.reload(db, order.id)
    return _make
