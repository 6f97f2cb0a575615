# src/md_order/infrastructure/store_client.py
"""HttpOrderStore — httpx client for the Order Store REST contract.

Every request carries the caller's id in `X-User-Id`; the store derives the
transition actor from it. Responses use the ApiResponse envelope.

Error mapping:
  - reads:     any failure → FetchError (caller may retry manually)
  - mutations: envelope-bearing 4xx → ServerRejectionError (verbatim),
               transport failure / 5xx / unreadable body → OrderStoreError
"""
import logging
from datetime import date
from types import TracebackType
from typing import Any, Self

import httpx
from pydantic import ValidationError

from config.settings import settings
from src.md_common.enums import OrderStatus
from src.md_common.errors import FetchError, OrderStoreError, ServerRejectionError
from src.md_common.response import ApiResponse
from src.md_order.application.schemas import (
    CreateOrderRequest,
    OrderListResponse,
    OrderResponse,
    UpdateOrderStatusRequest,
)
from src.md_order.domain.models import Order

logger = logging.getLogger(__name__)


def _parse_envelope(resp: httpx.Response) -> ApiResponse | None:
    try:
        return ApiResponse.model_validate(resp.json())
    except (ValueError, ValidationError):
        return None


class HttpOrderStore:
    """Concrete implementation of OrderStoreProtocol over HTTP."""

    def __init__(
        self,
        user_id: str,
        base_url: str | None = None,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._user_id = user_id
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=base_url or settings.ORDER_STORE_URL,
            timeout=timeout if timeout is not None else settings.ORDER_STORE_TIMEOUT_SECONDS,
        )

    @property
    def user_id(self) -> str:
        return self._user_id

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    @property
    def _headers(self) -> dict[str, str]:
        return {"X-User-Id": self._user_id}

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def list_orders(
        self, *, dealer_id: str | None = None, client_id: str | None = None
    ) -> list[Order]:
        params = {k: v for k, v in (("dealer_id", dealer_id), ("client_id", client_id)) if v}
        return await self._fetch_list("/orders", params)

    async def list_upcoming(self, dealer_id: str) -> list[Order]:
        return await self._fetch_list("/orders/upcoming", {"dealer_id": dealer_id})

    async def _fetch_list(self, path: str, params: dict[str, str]) -> list[Order]:
        try:
            resp = await self._client.get(path, params=params, headers=self._headers)
        except httpx.HTTPError as exc:
            raise FetchError(f"{type(exc).__name__}: {exc}") from exc
        envelope = _parse_envelope(resp)
        if resp.is_error or envelope is None or not envelope.is_success:
            detail = envelope.message if envelope is not None else resp.reason_phrase
            raise FetchError(f"HTTP {resp.status_code}: {detail}")
        try:
            items = OrderListResponse.model_validate(envelope.data).items
            return [item.to_domain() for item in items]
        except (ValidationError, ValueError) as exc:
            raise FetchError(f"malformed order list: {exc}") from exc

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def create_order(
        self,
        gig_id: str,
        dealer_id: str,
        proposed_price: int,
        notes: str | None = None,
        scheduled_date: date | None = None,
    ) -> Order:
        body = CreateOrderRequest(
            gig_id=gig_id,
            dealer_id=dealer_id,
            proposed_price=proposed_price,
            notes=notes,
            scheduled_date=scheduled_date,
        )
        return await self._mutate(
            "POST", "/orders", body.model_dump(mode="json", exclude_none=True)
        )

    async def update_status(
        self, order_id: str, status: OrderStatus, agreed_price: int | None = None
    ) -> Order:
        body = UpdateOrderStatusRequest(status=status, agreed_price=agreed_price)
        return await self._mutate(
            "PATCH", f"/orders/{order_id}", body.model_dump(mode="json", exclude_none=True)
        )

    async def mark_opened(self, order_id: str) -> Order:
        return await self._mutate("PATCH", f"/orders/{order_id}/opened", None)

    async def _mutate(self, method: str, path: str, json: dict[str, Any] | None) -> Order:
        try:
            resp = await self._client.request(method, path, json=json, headers=self._headers)
        except httpx.HTTPError as exc:
            raise OrderStoreError(f"{type(exc).__name__}: {exc}") from exc
        envelope = _parse_envelope(resp)
        if resp.is_client_error and envelope is not None and not envelope.is_success:
            logger.info(
                "Order Store rejected %s %s: code=%d %s",
                method,
                path,
                envelope.code,
                envelope.message,
            )
            raise ServerRejectionError(envelope.code, envelope.message, resp.status_code)
        if resp.is_error or envelope is None or not envelope.is_success:
            raise OrderStoreError(f"{method} {path} → HTTP {resp.status_code}")
        try:
            return OrderResponse.model_validate(envelope.data).to_domain()
        except (ValidationError, ValueError) as exc:
            raise OrderStoreError(f"malformed order record: {exc}") from exc
