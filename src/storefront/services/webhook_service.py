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

"""Payment webhook receiver.

Turns a verified payment-completion event into a fulfilled order. Fulfillment
runs in one transaction:

1. Move the order from PENDING to PAID (compare-and-swap on the status).
2. Snapshot each cart line into an order item at the product's current price.
3. Decrement stock for each line, only if enough stock is left.
4. Delete the user's cart rows.

Any failure rolls the whole transaction back, so the order stays PENDING and
the cart stays intact until the gateway redelivers the event. Redelivery of an
event for an order that is already PAID is acknowledged without writes.
"""

import logging
from typing import Any, Dict, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession
from storefront import cache
from storefront import db
from storefront.enums import GatewayEventType
from storefront.enums import OrderStatus
from storefront.exceptions import MalformedPayloadError
from storefront.exceptions import OutOfStockError
from storefront.exceptions import WebhookSignatureError
from storefront.gateway.port import GatewayEvent
from storefront.gateway.port import InvalidEventError
from storefront.gateway.port import PaymentGateway
from storefront.gateway.port import SignatureVerificationError
from storefront.models import WebhookAck

logger = logging.getLogger(__name__)


def _metadata_order_id(obj: Dict[str, Any]) -> Optional[str]:
  metadata = obj.get("metadata") or {}
  if not isinstance(metadata, dict):
    return None
  return metadata.get("order_id") or metadata.get("orderId")


def _references(event: GatewayEvent) -> Tuple[Optional[str], Optional[str]]:
  """Returns the (order ID, payment ID) carried by a payment event."""
  obj = event.data["object"]
  if event.type == GatewayEventType.CHECKOUT_SESSION_COMPLETED.value:
    order_id = obj.get("client_reference_id") or _metadata_order_id(obj)
    payment = obj.get("payment_intent")
    if isinstance(payment, dict):
      payment = payment.get("id")
    return order_id, payment
  return _metadata_order_id(obj), obj.get("id")


class WebhookService:
  """Verifies payment events and fulfills the orders they reference."""

  def __init__(
      self,
      session: AsyncSession,
      gateway: PaymentGateway,
      page_cache: cache.PageCache = cache.page_cache,
  ):
    self.session = session
    self.gateway = gateway
    self.cache = page_cache

  def _verify(self, payload: bytes, signature: Optional[str]) -> GatewayEvent:
    if not signature:
      logger.warning("Rejected webhook without signature header")
      raise WebhookSignatureError("Missing signature header.")
    try:
      return self.gateway.construct_event(payload, signature)
    except SignatureVerificationError as e:
      logger.warning("Rejected webhook: %s", e)
      raise WebhookSignatureError(str(e)) from e
    except InvalidEventError as e:
      logger.warning("Rejected malformed webhook: %s", e)
      raise MalformedPayloadError(str(e)) from e

  async def handle(
      self, payload: bytes, signature: Optional[str]
  ) -> WebhookAck:
    """Verifies and processes one webhook delivery."""
    event = self._verify(payload, signature)
    handled = {t.value for t in GatewayEventType}
    if event.type not in handled:
      logger.info("Ignoring webhook event %s (%s)", event.id, event.type)
      return WebhookAck()

    order_id, payment_id = _references(event)
    if not order_id:
      logger.error("Webhook event %s has no order reference", event.id)
      return WebhookAck()
    return await self.fulfill(order_id, payment_id)

  async def fulfill(
      self, order_id: str, payment_id: Optional[str]
  ) -> WebhookAck:
    """Fulfills a pending order from its owner's cart."""
    order = await db.get_order(self.session, order_id)
    if not order:
      logger.error("Webhook references unknown order %s", order_id)
      return WebhookAck(order_id=order_id)
    if order.status != OrderStatus.PENDING.value:
      logger.info("Order %s already %s; nothing to do", order_id, order.status)
      return WebhookAck(order_id=order_id)

    items = await db.get_cart_items(self.session, order.user_id)

    try:
      if not await db.mark_order_paid(self.session, order.id, payment_id):
        # Lost the race against a concurrent delivery.
        await self.session.rollback()
        return WebhookAck(order_id=order_id)

      for item in items:
        self.session.add(
            db.OrderItem(
                order_id=order.id,
                product_id=item.product_id,
                quantity=item.quantity,
                price_at_purchase=item.product.price,
            )
        )
        if not await db.reserve_stock(
            self.session, item.product_id, item.quantity
        ):
          raise OutOfStockError(
              f"Item {item.product_id} is out of stock", status_code=409
          )

      await db.clear_cart(
          self.session, order.user_id, [item.id for item in items]
      )
      await self.session.commit()
    except Exception:
      await self.session.rollback()
      logger.exception("Fulfillment of order %s rolled back", order_id)
      raise

    logger.info(
        "Order %s paid (payment %s, %d items)", order_id, payment_id, len(items)
    )
    self.cache.invalidate(cache.PRODUCT_PAGE, cache.HOME_PAGE)
    return WebhookAck(order_id=order_id, fulfilled=True)
