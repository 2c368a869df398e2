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

"""Hands a payment authorization from checkout to the payment page.

The client secret and an order-summary snapshot are kept in session storage
keyed by order ID, and are removed when the payment page takes them.
"""

import dataclasses
import logging
from typing import Optional

import pydantic
from storefront.client.storage import Storage
from storefront.models import PaymentAuthorization
from storefront.models import Totals

logger = logging.getLogger(__name__)

SECRET_PREFIX = "payment_"
SUMMARY_PREFIX = "payment_summary_"


@dataclasses.dataclass(frozen=True)
class PendingPayment:
  order_id: str
  client_secret: str
  summary: Optional[Totals]


class PaymentHandoff:

  def __init__(self, session_storage: Storage) -> None:
    self.storage = session_storage

  def put(self, authorization: PaymentAuthorization) -> None:
    order_id = authorization.order_id
    self.storage.set_item(
        f"{SECRET_PREFIX}{order_id}", authorization.client_secret
    )
    self.storage.set_item(
        f"{SUMMARY_PREFIX}{order_id}", authorization.totals.model_dump_json()
    )

  def take(self, order_id: str) -> Optional[PendingPayment]:
    """Returns and forgets the pending payment of an order."""
    secret = self.storage.get_item(f"{SECRET_PREFIX}{order_id}")
    raw_summary = self.storage.get_item(f"{SUMMARY_PREFIX}{order_id}")
    self.storage.remove_item(f"{SECRET_PREFIX}{order_id}")
    self.storage.remove_item(f"{SUMMARY_PREFIX}{order_id}")
    if not secret:
      return None

    summary = None
    if raw_summary:
      try:
        summary = Totals.model_validate_json(raw_summary)
      except pydantic.ValidationError:
        logger.warning("Ignoring unreadable summary for order %s", order_id)
    return PendingPayment(order_id, secret, summary)
