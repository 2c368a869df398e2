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

"""Checkout service for starting payments.

This module provides the `CheckoutService` class, which encapsulates the
business logic shared by both payment entry points:

- Embedded payment: creates a payment intent whose client secret is handed to
  the client payment widget.
- Hosted payment: creates a hosted checkout session and returns the URL the
  customer is redirected to.

Both validate the shipping address and the cart, compute totals with one
formula (`pricing.compute_totals`) and create a PENDING order before calling
the gateway. If the gateway call fails, the order is deleted again. Stock is
not touched here; it is consumed when the payment webhook fulfills the order.
"""

import dataclasses
import logging
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from storefront import auth
from storefront import db
from storefront import pricing
from storefront.config import Settings
from storefront.enums import OrderStatus
from storefront.exceptions import AmountTooSmallError
from storefront.exceptions import EmptyCartError
from storefront.exceptions import InvalidAddressError
from storefront.exceptions import ItemUnavailableError
from storefront.exceptions import PaymentGatewayError
from storefront.exceptions import ValidationError
from storefront.gateway.port import GatewayAuthenticationError
from storefront.gateway.port import GatewayConfigurationError
from storefront.gateway.port import GatewayError
from storefront.gateway.port import HostedLineItem
from storefront.gateway.port import PaymentGateway
from storefront.models import HostedCheckout
from storefront.models import PaymentAuthorization
from storefront.models import Totals

logger = logging.getLogger(__name__)

# Literal placeholder the gateway substitutes with the session ID on redirect.
SESSION_ID_PLACEHOLDER = "{CHECKOUT_SESSION_ID}"


@dataclasses.dataclass
class _PreparedCheckout:
  user_id: str
  address: db.Address
  items: List[db.CartItem]
  totals: pricing.OrderTotals


class CheckoutService:
  """Starts payments for the requesting user's cart."""

  def __init__(
      self,
      session: AsyncSession,
      gateway: PaymentGateway,
      settings: Settings,
      user_id: Optional[str],
      base_url: str,
  ):
    self.session = session
    self.gateway = gateway
    self.settings = settings
    self.user_id = user_id
    self.base_url = (settings.storefront_url or base_url).rstrip("/")

  async def _prepare(self, address_id: str) -> _PreparedCheckout:
    """Validates the request and computes totals from the current cart."""
    user_id = auth.require_user(self.user_id)
    if not address_id:
      raise ValidationError(
          "Select a shipping address.", fields=["address_id"]
      )

    address = await db.get_address(self.session, user_id, address_id)
    if not address:
      raise InvalidAddressError()

    items = await db.get_cart_items(self.session, user_id)
    if not items:
      raise EmptyCartError()

    for item in items:
      product = item.product
      if product.price < 0 or product.stock < item.quantity:
        raise ItemUnavailableError(product.name)

    totals = pricing.compute_totals(
        (item.product.price, item.quantity) for item in items
    )
    if totals.subtotal < pricing.MINIMUM_CHARGE:
      raise AmountTooSmallError(
          "The minimum order amount is"
          f" {pricing.format_amount(pricing.MINIMUM_CHARGE)}."
      )
    return _PreparedCheckout(user_id, address, items, totals)

  async def _create_pending_order(self, prepared: _PreparedCheckout) -> db.Order:
    order = db.Order(
        user_id=prepared.user_id,
        status=OrderStatus.PENDING.value,
        total=prepared.totals.total,
        shipping_address_id=prepared.address.id,
    )
    self.session.add(order)
    await self.session.commit()
    logger.info(
        "Created pending order %s for user %s (total %d)",
        order.id,
        prepared.user_id,
        order.total,
    )
    return order

  async def _discard_order(self, order_id: str) -> None:
    """Compensates a failed gateway call by deleting the pending order."""
    await self.session.rollback()
    await db.delete_order(self.session, order_id)
    await self.session.commit()
    logger.info("Deleted pending order %s after gateway failure", order_id)

  def _gateway_failure(self, e: GatewayError) -> PaymentGatewayError:
    if isinstance(e, GatewayConfigurationError):
      code = "GATEWAY_MISCONFIGURED"
      message = "Payments are not configured on this store."
    elif isinstance(e, GatewayAuthenticationError):
      code = "GATEWAY_AUTHENTICATION_FAILED"
      message = "The payment provider rejected the store's credentials."
    else:
      code = "GATEWAY_ERROR"
      message = "Could not start the payment. Please try again."
    if self.settings.debug:
      message = f"{message} ({e})"
    return PaymentGatewayError(message, code=code)

  async def create_payment_intent(
      self, address_id: str
  ) -> PaymentAuthorization:
    """Creates a pending order and a payment intent for its total.

    The client secret is returned to the caller and never stored.
    """
    prepared = await self._prepare(address_id)
    order = await self._create_pending_order(prepared)

    try:
      intent = await self.gateway.create_payment_intent(
          amount=prepared.totals.total,
          currency=self.settings.currency,
          metadata={"order_id": order.id},
      )
    except GatewayError as e:
      logger.exception("Payment intent failed for order %s", order.id)
      await self._discard_order(order.id)
      raise self._gateway_failure(e) from e

    if not intent.client_secret:
      logger.error("Payment intent %s has no client secret", intent.id)
      await self._discard_order(order.id)
      raise PaymentGatewayError("Could not start the payment.")

    return PaymentAuthorization(
        client_secret=intent.client_secret,
        order_id=order.id,
        totals=Totals.from_totals(prepared.totals),
    )

  def _hosted_line_items(
      self, prepared: _PreparedCheckout
  ) -> List[HostedLineItem]:
    """One line per cart entry, plus shipping and tax.

    The extra lines make the hosted page charge the same total as the
    embedded flow.
    """
    lines = [
        HostedLineItem(
            name=item.product.name,
            unit_amount=item.product.price,
            quantity=item.quantity,
            image=(item.product.images or [None])[0],
            product_id=item.product.id,
        )
        for item in prepared.items
    ]
    lines.append(
        HostedLineItem(
            name="Shipping", unit_amount=prepared.totals.shipping, quantity=1
        )
    )
    if prepared.totals.tax:
      lines.append(
          HostedLineItem(
              name="Tax", unit_amount=prepared.totals.tax, quantity=1
          )
      )
    return lines

  async def create_checkout_session(self, address_id: str) -> HostedCheckout:
    """Creates a pending order and a hosted checkout page for it."""
    prepared = await self._prepare(address_id)
    order = await self._create_pending_order(prepared)

    success_url = (
        f"{self.base_url}/checkout/success"
        f"?session_id={SESSION_ID_PLACEHOLDER}&order_id={order.id}"
    )
    cancel_url = f"{self.base_url}/checkout?order_id={order.id}"

    try:
      hosted = await self.gateway.create_checkout_session(
          line_items=self._hosted_line_items(prepared),
          currency=self.settings.currency,
          success_url=success_url,
          cancel_url=cancel_url,
          client_reference_id=order.id,
          metadata={"order_id": order.id},
      )
    except GatewayError as e:
      logger.exception("Checkout session failed for order %s", order.id)
      await self._discard_order(order.id)
      raise self._gateway_failure(e) from e

    if not hosted.url:
      logger.error("Checkout session %s has no URL", hosted.id)
      await self._discard_order(order.id)
      raise PaymentGatewayError("Could not start the payment.")

    order.payment_session_id = hosted.id
    await self.session.commit()
    logger.info("Order %s bound to checkout session %s", order.id, hosted.id)

    return HostedCheckout(url=hosted.url, order_id=order.id, session_id=hosted.id)
