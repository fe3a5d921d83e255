import os
import sys
from datetime import date
from pathlib import Path

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

sys.path.append(str(Path(__file__).parents[1] / "src"))

ENV_TEST_PATH = Path(__file__).parents[1] / ".env.test"


def _load_env_file(path: Path) -> None:
    if not path.exists():
        return
    for line in path.read_text().splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        os.environ.setdefault(key, value)


_load_env_file(ENV_TEST_PATH)

TEST_DATABASE_URL = os.getenv(
    "TEST_DATABASE_URL",
    f"sqlite+aiosqlite:///{Path(__file__).parent / 'test_budget_ledger.db'}",
)
TEST_ENCRYPTION_KEY = "MDEyMzQ1Njc4OWFiY2RlZjAxMjM0NTY3ODlhYmNkZWY="

# Settings are read at import time; point the app at the test database.
os.environ.setdefault("DATABASE_URL", TEST_DATABASE_URL)
os.environ.setdefault("ENCRYPTION_KEY", TEST_ENCRYPTION_KEY)
os.environ.setdefault("JWT_SECRET", "test-secret")

from budget_ledger.api.deps import (  # noqa: E402
    get_ledger_client,
    get_secret_store,
    get_session_factory,
)
from budget_ledger.core.encryption import SecretStore  # noqa: E402
from budget_ledger.db.session import enable_sqlite_foreign_keys, get_db  # noqa: E402
from budget_ledger.main import app  # noqa: E402
from budget_ledger.schemas.provider import (  # noqa: E402
    AccountBalances,
    AccountInfo,
    InstitutionInfo,
    LinkToken,
    PersonalFinanceCategory,
    ProviderTransaction,
    SyncPage,
    TokenExchange,
)

test_engine = create_async_engine(TEST_DATABASE_URL, echo=False)
if TEST_DATABASE_URL.startswith("sqlite"):
    enable_sqlite_foreign_keys(test_engine)
TestSessionLocal = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


class FakeLedgerClient:
    """In-memory provider: hands out queued sync pages and records calls."""

    def __init__(self):
        self.pages: list = []
        self.accounts: list[AccountInfo] = [
            AccountInfo(
                account_id="acc-checking",
                name="Everyday Checking",
                type="depository",
                subtype="checking",
                mask="0001",
                balances=AccountBalances(current=1200.5, available=1100.25, iso_currency_code="USD"),
            )
        ]
        self.institution = InstitutionInfo(institution_id="ins_109508", name="First Platypus Bank")
        self.institution_error: Exception | None = None
        self.exchange = TokenExchange(access_token="access-sandbox-abc123", item_id="item-abc")
        self.accounts_error: Exception | None = None
        self.remove_error: Exception | None = None
        self.sync_calls: list[tuple[str, str | None]] = []
        self.removed_credentials: list[str] = []

    async def sync_page(self, credential, cursor=None):
        self.sync_calls.append((credential, cursor))
        if not self.pages:
            return SyncPage(next_cursor=cursor or "")
        page = self.pages.pop(0)
        if isinstance(page, Exception):
            raise page
        return page

    async def list_accounts(self, credential):
        if self.accounts_error:
            raise self.accounts_error
        return list(self.accounts)

    async def get_institution(self, credential):
        if self.institution_error:
            raise self.institution_error
        return self.institution

    async def remove_item(self, credential):
        self.removed_credentials.append(credential)
        if self.remove_error:
            raise self.remove_error

    async def create_link_token(self, owner_id):
        return LinkToken(link_token=f"link-sandbox-{owner_id[:8]}", expiration="2026-10-18T12:00:00Z")

    async def exchange_public_token(self, public_token):
        return self.exchange


def provider_txn(
    transaction_id: str,
    amount: float,
    merchant_name: str | None = "Coffee Corner",
    name: str | None = "COFFEE CORNER #12",
    account_id: str = "acc-checking",
    txn_date: date = date(2026, 10, 1),
    pending: bool = False,
    category: str | None = "FOOD_AND_DRINK",
) -> ProviderTransaction:
    """Provider-convention record (positive amount = money out)."""
    return ProviderTransaction(
        transaction_id=transaction_id,
        account_id=account_id,
        amount=amount,
        date=txn_date,
        name=name,
        merchant_name=merchant_name,
        pending=pending,
        personal_finance_category=PersonalFinanceCategory(primary=category) if category else None,
    )


@pytest.fixture(scope="function")
async def setup_database():
    """Create tables for tests that need the database, and drop them after.

    Not autouse, so pure unit tests run without touching a database.
    """
    from budget_ledger.models.base import Base

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await test_engine.dispose()


@pytest.fixture
async def db_session(setup_database):
    """Provide test database session with fresh connection per test."""
    async with TestSessionLocal() as session:
        yield session
        await session.rollback()


@pytest.fixture
async def test_user(db_session: AsyncSession):
    from budget_ledger.models.user import User
    from budget_ledger.repositories.user import UserRepository

    return await UserRepository(db_session).create(
        User(email="testuser@example.com", full_name="Test User")
    )


@pytest.fixture
async def another_user(db_session: AsyncSession):
    from budget_ledger.models.user import User
    from budget_ledger.repositories.user import UserRepository

    return await UserRepository(db_session).create(
        User(email="another@example.com", full_name="Another User")
    )


@pytest.fixture
async def categories(db_session: AsyncSession, test_user) -> dict:
    """Default categories of ``test_user`` keyed by name."""
    from budget_ledger.services.category import CategoryService

    created = await CategoryService(db_session).create_defaults_for_user(test_user.id)
    return {c.name: c for c in created}


@pytest.fixture
def secret_store() -> SecretStore:
    return SecretStore(TEST_ENCRYPTION_KEY)


@pytest.fixture
def ledger_client() -> FakeLedgerClient:
    return FakeLedgerClient()


@pytest.fixture
async def linked_item(db_session: AsyncSession, test_user, secret_store: SecretStore):
    """An active item with one registered checking account."""
    from budget_ledger.models.ledger_account import LedgerAccount
    from budget_ledger.models.ledger_item import LedgerItem

    item = LedgerItem(
        user_id=test_user.id,
        provider_item_id="item-existing",
        credential_encrypted=secret_store.encrypt("access-sandbox-existing"),
        institution_id="ins_109508",
        institution_name="First Platypus Bank",
    )
    db_session.add(item)
    await db_session.commit()
    account = LedgerAccount(
        item_id=item.id,
        provider_account_id="acc-checking",
        name="Everyday Checking",
        type="depository",
        subtype="checking",
        mask="0001",
        currency_code="USD",
    )
    db_session.add(account)
    await db_session.commit()
    await db_session.refresh(item)
    await db_session.refresh(account)
    return item, account


@pytest.fixture
async def auth_headers(test_user):
    from budget_ledger.core.security import create_access_token

    token = create_access_token(user_id=test_user.id)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
async def client(db_session: AsyncSession, ledger_client: FakeLedgerClient, secret_store: SecretStore):
    """Test client sharing the test session, fake provider and test key."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_ledger_client] = lambda: ledger_client
    app.dependency_overrides[get_secret_store] = lambda: secret_store
    app.dependency_overrides[get_session_factory] = lambda: TestSessionLocal

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
