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

"""Read-only order lookups for confirmation pages.

Orders are only visible to their owner. Until the payment webhook has run an
order is PENDING and has no items yet; the breakdown is then derived from the
stored total, and the order is reported as still updating.
"""

import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession
from storefront import auth
from storefront import db
from storefront import pricing
from storefront.enums import ConfirmationState
from storefront.enums import OrderStatus
from storefront.exceptions import ResourceNotFoundError
from storefront.models import OrderConfirmationView
from storefront.models import OrderDetails
from storefront.models import OrderItemView
from storefront.models import ShippingAddressView

logger = logging.getLogger(__name__)


def to_details(order: db.Order) -> OrderDetails:
  """Builds the confirmation view of an order with its items loaded."""
  totals = pricing.split_total(order.total)
  address = None
  if order.shipping_address is not None:
    address = ShippingAddressView.model_validate(order.shipping_address)
  return OrderDetails(
      id=order.id,
      status=order.status,
      created_at=order.created_at,
      items=[
          OrderItemView(
              id=item.id,
              product_id=item.product_id,
              product_name=item.product.name if item.product else None,
              quantity=item.quantity,
              price_at_purchase=item.price_at_purchase,
              line_total=item.price_at_purchase * item.quantity,
          )
          for item in order.items
      ],
      shipping_address=address,
      subtotal=totals.subtotal,
      shipping=totals.shipping,
      tax=totals.tax,
      total=totals.total,
      updating=order.status == OrderStatus.PENDING.value,
  )


class OrderService:

  def __init__(self, session: AsyncSession, user_id: Optional[str]):
    self.session = session
    self.user_id = user_id

  async def get_order_details(self, order_id: str) -> OrderDetails:
    user_id = auth.require_user(self.user_id)
    order = await db.find_order_for_user(
        self.session, user_id, order_id=order_id
    )
    if not order:
      raise ResourceNotFoundError("Order not found.")
    return to_details(order)

  async def get_confirmation(
      self,
      order_id: Optional[str] = None,
      session_id: Optional[str] = None,
  ) -> OrderConfirmationView:
    """Resolves what the confirmation page should show.

    The order ID wins when both references are given. A session reference
    that does not resolve yet is reported as updating, since the redirect
    can arrive before the order is bound to the session.
    """
    user_id = auth.require_user(self.user_id)
    order = await db.find_order_for_user(
        self.session,
        user_id,
        order_id=order_id,
        payment_session_id=session_id,
    )
    if order is None:
      state = (
          ConfirmationState.UPDATING
          if session_id and not order_id
          else ConfirmationState.NOT_FOUND
      )
      logger.info(
          "No order for user %s (order %s, session %s)",
          user_id,
          order_id,
          session_id,
      )
      return OrderConfirmationView(state=state)

    details = to_details(order)
    state = (
        ConfirmationState.UPDATING
        if details.updating
        else ConfirmationState.CONFIRMED
    )
    return OrderConfirmationView(state=state, order=details)
