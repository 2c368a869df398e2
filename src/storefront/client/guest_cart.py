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

"""Cart of an anonymous visitor, kept in client storage.

The store is serialized as a JSON array of `{productId, quantity}` under the
`guest-cart` entry. Persisted state is not loaded implicitly: `rehydrate()`
must run once before the store is read or changed.
"""

import json
import logging
from typing import List

import pydantic
from storefront.client.storage import Storage
from storefront.models import GuestCartItem

logger = logging.getLogger(__name__)

STORAGE_KEY = "guest-cart"


class NotHydratedError(RuntimeError):
  """The store was used before `rehydrate()`."""


class GuestCartStore:
  """State container for the guest cart."""

  def __init__(self, storage: Storage, key: str = STORAGE_KEY) -> None:
    self.storage = storage
    self.key = key
    self._items: List[GuestCartItem] = []
    self._hydrated = False

  @property
  def hydrated(self) -> bool:
    return self._hydrated

  def rehydrate(self) -> None:
    """Loads persisted items. Only the first call has an effect."""
    if self._hydrated:
      return
    raw = self.storage.get_item(self.key)
    items: List[GuestCartItem] = []
    if raw:
      try:
        items = [GuestCartItem.model_validate(i) for i in json.loads(raw)]
      except (ValueError, TypeError, pydantic.ValidationError) as e:
        logger.warning("Discarding unreadable guest cart: %s", e)
        items = []
    self._items = [i for i in items if i.quantity >= 1]
    self._hydrated = True

  def _require_hydrated(self) -> None:
    if not self._hydrated:
      raise NotHydratedError("Call rehydrate() before using the guest cart.")

  def _persist(self) -> None:
    self.storage.set_item(
        self.key,
        json.dumps([i.model_dump(by_alias=True) for i in self._items]),
    )

  @property
  def items(self) -> List[GuestCartItem]:
    self._require_hydrated()
    return [i.model_copy() for i in self._items]

  def total_count(self) -> int:
    self._require_hydrated()
    return sum(i.quantity for i in self._items)

  def add_item(self, product_id: str, quantity: int) -> None:
    """Adds `quantity` (possibly negative) to a product's entry.

    An entry that drops to zero or below is removed. A new entry is only
    created for a positive delta.
    """
    self._require_hydrated()
    for i, entry in enumerate(self._items):
      if entry.product_id == product_id:
        new_quantity = max(0, entry.quantity + quantity)
        if new_quantity == 0:
          del self._items[i]
        else:
          entry.quantity = new_quantity
        break
    else:
      if quantity <= 0:
        return
      self._items.append(
          GuestCartItem(product_id=product_id, quantity=quantity)
      )
    self._persist()

  def update_quantity(self, product_id: str, quantity: int) -> None:
    """Replaces a quantity. Below one removes the entry."""
    self._require_hydrated()
    if quantity < 1:
      self.remove_item(product_id)
      return
    for entry in self._items:
      if entry.product_id == product_id:
        entry.quantity = quantity
        self._persist()
        return

  def remove_item(self, product_id: str) -> None:
    self._require_hydrated()
    self._items = [i for i in self._items if i.product_id != product_id]
    self._persist()

  def clear(self) -> None:
    self._require_hydrated()
    self._items = []
    self._persist()
