"""Bank-data provider client.

``LedgerClient`` is the contract the sync and item services consume;
``PlaidLedgerClient`` implements it over Plaid's JSON-over-POST API.
"""
import logging
from typing import Any, Protocol

import httpx
from pydantic import ValidationError as PydanticValidationError

from budget_ledger.config import settings
from budget_ledger.core.exceptions import LedgerProviderError
from budget_ledger.schemas.provider import (
    AccountInfo,
    InstitutionInfo,
    LinkToken,
    SyncPage,
    TokenExchange,
)

logger = logging.getLogger(__name__)

PLAID_ENVIRONMENTS = {
    "sandbox": "https://sandbox.plaid.com",
    "development": "https://development.plaid.com",
    "production": "https://production.plaid.com",
}

# Page size requested from transactions/sync (provider maximum is 500).
SYNC_PAGE_SIZE = 500


class LedgerClient(Protocol):
    """Operations the core needs from the bank-data provider."""

    async def sync_page(self, credential: str, cursor: str | None = None) -> SyncPage: ...

    async def list_accounts(self, credential: str) -> list[AccountInfo]: ...

    async def get_institution(self, credential: str) -> InstitutionInfo: ...

    async def remove_item(self, credential: str) -> None: ...

    async def create_link_token(self, owner_id: str) -> LinkToken: ...

    async def exchange_public_token(self, public_token: str) -> TokenExchange: ...


class PlaidLedgerClient:
    """Plaid implementation of ``LedgerClient``.

    Plaid authenticates with ``client_id``/``secret`` in the JSON body and
    reports failures as 4xx/5xx responses carrying ``error_code`` and
    ``error_message``; both become ``LedgerProviderError``.
    """

    def __init__(
        self,
        client_id: str | None = None,
        secret: str | None = None,
        environment: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.client_id = client_id if client_id is not None else settings.plaid_client_id
        self.secret = secret if secret is not None else settings.plaid_secret
        env = environment or settings.plaid_env
        if env not in PLAID_ENVIRONMENTS:
            raise ValueError(f"Unknown Plaid environment: {env}")
        self.base_url = PLAID_ENVIRONMENTS[env]
        self.timeout = timeout if timeout is not None else settings.ledger_timeout_seconds
        self._transport = transport
        self._http: httpx.AsyncClient | None = None

    def _client(self) -> httpx.AsyncClient:
        if self._http is None or self._http.is_closed:
            self._http = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                headers={"Content-Type": "application/json"},
                transport=self._transport,
            )
        return self._http

    async def close(self) -> None:
        if self._http is not None and not self._http.is_closed:
            await self._http.aclose()

    async def _post(self, endpoint: str, payload: dict[str, Any]) -> dict[str, Any]:
        body = {"client_id": self.client_id, "secret": self.secret, **payload}
        try:
            response = await self._client().post(f"/{endpoint}", json=body)
        except httpx.HTTPError as e:
            logger.warning(
                "Provider request failed",
                extra={"endpoint": endpoint, "error_type": type(e).__name__},
            )
            raise LedgerProviderError(
                "PROV_001", details={"endpoint": endpoint, "reason": str(e) or type(e).__name__}
            ) from e

        if response.status_code >= 400:
            try:
                error = response.json()
            except ValueError:
                error = {}
            provider_code = error.get("error_code") or f"HTTP_{response.status_code}"
            provider_message = error.get("error_message") or response.text
            logger.warning(
                "Provider rejected request",
                extra={
                    "endpoint": endpoint,
                    "status_code": response.status_code,
                    "provider_error_code": provider_code,
                    "request_id": error.get("request_id"),
                },
            )
            raise LedgerProviderError(
                "PROV_002",
                details={"endpoint": endpoint, "status_code": response.status_code},
                provider_error_code=provider_code,
                provider_error_message=provider_message,
            )

        return response.json()

    async def sync_page(self, credential: str, cursor: str | None = None) -> SyncPage:
        payload: dict[str, Any] = {
            "access_token": credential,
            "count": SYNC_PAGE_SIZE,
            "options": {"include_personal_finance_category": True},
        }
        if cursor:
            payload["cursor"] = cursor
        data = await self._post("transactions/sync", payload)
        try:
            return SyncPage.model_validate(data)
        except PydanticValidationError as e:
            raise LedgerProviderError(
                "PROV_001", details={"endpoint": "transactions/sync", "reason": "malformed page"}
            ) from e

    async def list_accounts(self, credential: str) -> list[AccountInfo]:
        data = await self._post("accounts/get", {"access_token": credential})
        return [AccountInfo.model_validate(a) for a in data.get("accounts", [])]

    async def get_institution(self, credential: str) -> InstitutionInfo:
        """Institution of the item; empty when the provider does not report one."""
        data = await self._post("item/get", {"access_token": credential})
        institution_id = (data.get("item") or {}).get("institution_id")
        if not institution_id:
            return InstitutionInfo()
        inst = await self._post(
            "institutions/get_by_id",
            {"institution_id": institution_id, "country_codes": ["US"]},
        )
        return InstitutionInfo(
            institution_id=institution_id,
            name=(inst.get("institution") or {}).get("name"),
        )

    async def remove_item(self, credential: str) -> None:
        await self._post("item/remove", {"access_token": credential})

    async def create_link_token(self, owner_id: str) -> LinkToken:
        payload: dict[str, Any] = {
            "user": {"client_user_id": owner_id},
            "client_name": settings.plaid_client_name,
            "products": ["transactions"],
            "country_codes": ["US"],
            "language": "en",
        }
        if settings.plaid_webhook_url:
            payload["webhook"] = settings.plaid_webhook_url
        data = await self._post("link/token/create", payload)
        return LinkToken.model_validate(data)

    async def exchange_public_token(self, public_token: str) -> TokenExchange:
        data = await self._post("item/public_token/exchange", {"public_token": public_token})
        logger.info("Exchanged public token", extra={"provider_item_id": data.get("item_id")})
        return TokenExchange.model_validate(data)
