#   Copyright 2026 UCP Authors
#
#   Licensed under the Apache License, Version 2.0 (the "License");
#   you may not use this file except in compliance with the License.
#   You may obtain a copy of the License at
#
#       http://www.apache.org/licenses/LICENSE-2.0
#
#   Unless required by applicable law or agreed to in writing, software
#   distributed under the License is distributed on an "AS IS" BASIS,
#   WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
#   See the License for the specific language governing permissions and
#   limitations under the License.

"""Async HTTP client for the storefront API."""

import logging
from typing import Any, Dict, List, Optional, Sequence

import httpx
from storefront.models import ActionResult
from storefront.models import AddressCreated
from storefront.models import AddressCreateRequest
from storefront.models import AddressView
from storefront.models import CartView
from storefront.models import GuestCartItem
from storefront.models import HostedCheckout
from storefront.models import OrderConfirmationView
from storefront.models import PaymentAuthorization
from storefront.models import ProductSummary

logger = logging.getLogger(__name__)


class ApiError(Exception):
  """The storefront answered with an error result."""

  def __init__(self, message: str, code: str, status_code: int):
    super().__init__(message)
    self.message = message
    self.code = code
    self.status_code = status_code


class StorefrontClient:
  """Calls the storefront API, optionally as a signed-in user."""

  def __init__(
      self,
      base_url: str,
      token: Optional[str] = None,
      transport: Optional[httpx.AsyncBaseTransport] = None,
      timeout: float = 10.0,
  ) -> None:
    self.base_url = base_url.rstrip("/")
    self.token = token
    self._transport = transport
    self.timeout = timeout

  @property
  def authenticated(self) -> bool:
    return bool(self.token)

  async def _request(
      self,
      method: str,
      path: str,
      json: Optional[Dict[str, Any]] = None,
      params: Optional[Dict[str, Any]] = None,
  ) -> Any:
    headers = {}
    if self.token:
      headers["Authorization"] = f"Bearer {self.token}"
    async with httpx.AsyncClient(
        base_url=self.base_url,
        transport=self._transport,
        timeout=self.timeout,
    ) as client:
      response = await client.request(
          method, path, json=json, params=params, headers=headers
      )
    try:
      body = response.json()
    except ValueError:
      body = None
    if response.is_error:
      error = body if isinstance(body, dict) else {}
      raise ApiError(
          error.get("error") or response.text or "Request failed",
          error.get("code") or "HTTP_ERROR",
          response.status_code,
      )
    return body

  async def get_products_by_ids(
      self, product_ids: Sequence[str]
  ) -> List[ProductSummary]:
    body = await self._request(
        "GET", "/products/lookup", params={"ids": ",".join(product_ids)}
    )
    return [ProductSummary.model_validate(p) for p in body]

  async def get_cart(self) -> CartView:
    return CartView.model_validate(await self._request("GET", "/cart"))

  async def add_to_cart(self, product_id: str, quantity: int = 1) -> ActionResult:
    body = await self._request(
        "POST",
        "/cart/items",
        json={"product_id": product_id, "quantity": quantity},
    )
    return ActionResult.model_validate(body)

  async def merge_guest_cart(
      self, items: Sequence[GuestCartItem]
  ) -> ActionResult:
    body = await self._request(
        "POST",
        "/cart/merge",
        json={"items": [i.model_dump(by_alias=True) for i in items]},
    )
    return ActionResult.model_validate(body)

  async def create_address(self, req: AddressCreateRequest) -> AddressCreated:
    body = await self._request("POST", "/addresses", json=req.model_dump())
    return AddressCreated.model_validate(body)

  async def list_addresses(self) -> List[AddressView]:
    body = await self._request("GET", "/addresses")
    return [AddressView.model_validate(a) for a in body]

  async def create_payment_intent(
      self, address_id: str
  ) -> PaymentAuthorization:
    body = await self._request(
        "POST", "/checkout/payment-intent", json={"address_id": address_id}
    )
    return PaymentAuthorization.model_validate(body)

  async def create_checkout_session(self, address_id: str) -> HostedCheckout:
    body = await self._request(
        "POST", "/checkout/session", json={"address_id": address_id}
    )
    return HostedCheckout.model_validate(body)

  async def get_order(self, order_id: str) -> OrderConfirmationView:
    body = await self._request("GET", f"/orders/{order_id}")
    return OrderConfirmationView.model_validate(body)

  async def get_order_by_session(
      self, session_id: str
  ) -> OrderConfirmationView:
    body = await self._request("GET", f"/orders/by-session/{session_id}")
    return OrderConfirmationView.model_validate(body)
