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

"""Moves the guest cart into the persisted cart after sign-in."""

import logging

from storefront.client.api_client import StorefrontClient
from storefront.client.guest_cart import GuestCartStore

logger = logging.getLogger(__name__)


class CartMerger:
  """Runs the guest cart merge at most once per client session."""

  def __init__(self, client: StorefrontClient, store: GuestCartStore) -> None:
    self.client = client
    self.store = store
    self._started = False

  async def merge_if_needed(self) -> bool:
    """Merges when signed in with a non-empty guest cart.

    The guest cart is cleared only after the server accepted the merge. A
    failed merge leaves it intact and is not retried in this session.

    Returns:
      True if a merge was performed.
    """
    if not self.client.authenticated:
      return False
    self.store.rehydrate()
    items = self.store.items
    if not items or self._started:
      return False
    self._started = True

    await self.client.merge_guest_cart(items)
    self.store.clear()
    logger.info("Merged %d guest cart entries", len(items))
    return True
