"""FastAPI dependency injection for authentication, database and services."""

from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from budget_ledger.core.encryption import SecretStore
from budget_ledger.core.security import get_user_id_from_token
from budget_ledger.db.session import AsyncSessionLocal, get_db
from budget_ledger.ledger.client import LedgerClient, PlaidLedgerClient
from budget_ledger.models.user import User
from budget_ledger.repositories.user import UserRepository
from budget_ledger.services.categorization import CategorizationService
from budget_ledger.services.category import CategoryService
from budget_ledger.services.item import ItemService
from budget_ledger.services.rule import RuleService
from budget_ledger.services.sync import SyncService
from budget_ledger.services.transaction import TransactionService

# OAuth2 bearer token scheme
security = HTTPBearer()

_ledger_client: PlaidLedgerClient | None = None


def get_ledger_client() -> LedgerClient:
    """Process-wide provider client (one pooled HTTP connection set)."""
    global _ledger_client
    if _ledger_client is None:
        _ledger_client = PlaidLedgerClient()
    return _ledger_client


async def close_ledger_client() -> None:
    global _ledger_client
    if _ledger_client is not None:
        await _ledger_client.close()
        _ledger_client = None


def get_secret_store() -> SecretStore:
    return SecretStore()


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Session factory for work that outlives the request (webhook processing)."""
    return AsyncSessionLocal


async def get_user_repository(db: AsyncSession = Depends(get_db)) -> UserRepository:
    return UserRepository(db)


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(security)],
    user_repo: UserRepository = Depends(get_user_repository),
) -> User:
    """
    Extract and validate user from JWT token.

    Raises:
        HTTPException: If token is invalid, expired, or user not found
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    try:
        user_id = get_user_id_from_token(credentials.credentials)
    except (JWTError, ValueError):
        raise credentials_exception

    user = await user_repo.get_by_id(user_id)
    if user is None:
        raise credentials_exception

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is deactivated",
        )

    return user


async def get_categorization_service(
    db: AsyncSession = Depends(get_db),
) -> CategorizationService:
    return CategorizationService(db)


async def get_rule_service(db: AsyncSession = Depends(get_db)) -> RuleService:
    return RuleService(db)


async def get_category_service(db: AsyncSession = Depends(get_db)) -> CategoryService:
    return CategoryService(db)


async def get_transaction_service(db: AsyncSession = Depends(get_db)) -> TransactionService:
    return TransactionService(db)


async def get_sync_service(
    db: AsyncSession = Depends(get_db),
    client: LedgerClient = Depends(get_ledger_client),
    secret_store: SecretStore = Depends(get_secret_store),
) -> SyncService:
    return SyncService(db, client, secret_store)


async def get_item_service(
    db: AsyncSession = Depends(get_db),
    client: LedgerClient = Depends(get_ledger_client),
    secret_store: SecretStore = Depends(get_secret_store),
) -> ItemService:
    return ItemService(db, client, secret_store)


CurrentUser = Annotated[User, Depends(get_current_user)]
