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

"""Cart service for signed-in users.

This module provides the `CartService` class, which owns the persisted cart
of one user. Cart rows are unique per (user, product) and their quantity never
exceeds the product's stock at write time: requested quantities are clamped
silently rather than rejected.

Key responsibilities include:
- Adding products with increment semantics via a single upsert statement.
- Updating and removing lines owned by the caller.
- Folding a guest cart into the persisted cart after sign-in.
- Invalidating cached catalog pages that show cart-dependent state.
"""

import logging
from typing import List, Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession
from storefront import auth
from storefront import cache
from storefront import db
from storefront.exceptions import InvalidQuantityError
from storefront.exceptions import OutOfStockError
from storefront.exceptions import ResourceNotFoundError
from storefront.models import ActionResult
from storefront.models import CartLine
from storefront.models import CartView
from storefront.models import GuestCartItem
from storefront.models import ProductSummary
from storefront.services.catalog_service import to_summary

logger = logging.getLogger(__name__)


class CartService:
  """Operations over the persisted cart of the requesting user."""

  def __init__(
      self,
      session: AsyncSession,
      user_id: Optional[str],
      page_cache: cache.PageCache = cache.page_cache,
  ):
    self.session = session
    self.user_id = user_id
    self.cache = page_cache

  def _invalidate(self, slug: Optional[str] = None) -> None:
    if slug:
      self.cache.invalidate(cache.product_page_key(slug), cache.HOME_PAGE)
    else:
      self.cache.invalidate(cache.PRODUCT_PAGE, cache.HOME_PAGE)

  async def add(self, product_id: str, quantity: int = 1) -> ActionResult:
    """Adds `quantity` units of a product, clamped to its stock."""
    user_id = auth.require_user(self.user_id)
    if quantity < 1:
      raise InvalidQuantityError()

    product = await db.get_product(self.session, product_id)
    if not product:
      raise ResourceNotFoundError("Product not found.")
    if product.stock < 1:
      raise OutOfStockError("Product is out of stock.")

    await db.upsert_cart_item(
        self.session,
        user_id,
        product.id,
        min(quantity, product.stock),
        product.stock,
    )
    await self.session.commit()
    logger.info(
        "Added product %s (x%d) to cart of user %s",
        product.id,
        quantity,
        user_id,
    )
    self._invalidate(product.slug)
    return ActionResult()

  async def list(self) -> CartView:
    """Returns the caller's cart lines, oldest first."""
    user_id = auth.require_user(self.user_id)
    items = await db.get_cart_items(self.session, user_id)
    ratings = await db.get_rating_summaries(
        self.session, [item.product_id for item in items]
    )
    lines = [
        CartLine(
            id=item.id,
            product=to_summary(item.product, ratings),
            quantity=item.quantity,
            line_total=item.product.price * item.quantity,
        )
        for item in items
    ]
    return CartView(
        items=lines,
        count=sum(line.quantity for line in lines),
        subtotal=sum(line.line_total for line in lines),
    )

  async def count(self) -> int:
    """Returns the total number of units in the cart.

    Anonymous callers have an empty persisted cart.
    """
    if not self.user_id:
      return 0
    return await db.count_cart_units(self.session, self.user_id)

  async def update_quantity(self, item_id: str, quantity: int) -> ActionResult:
    """Sets a line's quantity, clamped to the product's stock."""
    user_id = auth.require_user(self.user_id)
    if quantity < 1:
      raise InvalidQuantityError()

    item = await db.get_cart_item(self.session, user_id, item_id)
    if not item:
      raise ResourceNotFoundError("Cart item not found.")
    if item.product.stock < 1:
      raise OutOfStockError("Product is out of stock.")

    item.quantity = min(quantity, item.product.stock)
    await self.session.commit()
    self._invalidate(item.product.slug)
    return ActionResult()

  async def remove(self, item_id: str) -> ActionResult:
    """Deletes one of the caller's cart lines."""
    user_id = auth.require_user(self.user_id)
    deleted = await db.delete_cart_item(self.session, user_id, item_id)
    if not deleted:
      await self.session.rollback()
      raise ResourceNotFoundError("Cart item not found.")
    await self.session.commit()
    self._invalidate()
    return ActionResult()

  async def get_products_by_ids(
      self, product_ids: Sequence[str]
  ) -> List[ProductSummary]:
    """Resolves guest cart entries to products. No identity required.

    Products are returned in the order requested; unknown IDs are skipped.
    """
    ids = [i for i in dict.fromkeys(product_ids) if i]
    products = await db.get_products_by_ids(self.session, ids)
    ratings = await db.get_rating_summaries(self.session, ids)
    by_id = {p.id: p for p in products}
    return [to_summary(by_id[i], ratings) for i in ids if i in by_id]

  async def merge_guest(self, items: Sequence[GuestCartItem]) -> ActionResult:
    """Folds guest cart entries into the persisted cart.

    Entries with a quantity below one, unknown products and products without
    stock are skipped. The rest are clamped to stock and added with increment
    semantics, one entry at a time.
    """
    user_id = auth.require_user(self.user_id)
    merged = 0
    for entry in items:
      if entry.quantity < 1:
        continue
      product = await db.get_product(self.session, entry.product_id)
      if not product or product.stock < 1:
        logger.info(
            "Skipping guest cart entry %s for user %s",
            entry.product_id,
            user_id,
        )
        continue
      await db.upsert_cart_item(
          self.session,
          user_id,
          product.id,
          min(entry.quantity, product.stock),
          product.stock,
      )
      await self.session.commit()
      merged += 1

    logger.info("Merged %d guest cart entries for user %s", merged, user_id)
    if merged:
      self._invalidate()
    return ActionResult()
